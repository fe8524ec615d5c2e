"""electronqa command-line interface."""
