"""Centralized defaults for build discovery, polling and launching."""

# Build discovery
DEFAULT_OUTPUT_DIR = "out"
ASAR_ARCHIVE_NAME = "app.asar"
UNPACKED_APP_DIR = "app"
MANIFEST_NAME = "package.json"

# Polling
DEFAULT_POLL_INTERVAL = 0.1  # seconds

# Launching
DEFAULT_LAUNCH_TIMEOUT = 30  # seconds
DEFAULT_CLOSE_TIMEOUT = 10  # seconds
LOOPBACK_HOST = "127.0.0.1"

# Environment signal read by the app to relax window isolation under test
TESTING_ENV_VAR = "CI"
TESTING_ENV_VALUE = "e2e"
