"""electronqa configuration management."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from electronqa.errors import ElectronQAConfigError
from electronqa.models import (
    DEFAULT_CLOSE_TIMEOUT,
    DEFAULT_LAUNCH_TIMEOUT,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_POLL_INTERVAL,
    TESTING_ENV_VALUE,
    TESTING_ENV_VAR,
)

PROJECT_DIR_NAME = ".electronqa"
CONFIG_FILE_NAME = "config.yaml"


@dataclass
class ElectronQAConfig:
    """Configuration for locating, launching and polling an Electron app."""

    # Paths
    project_dir: Path = field(default_factory=lambda: Path(PROJECT_DIR_NAME))
    output_dir: Path = field(default_factory=lambda: Path(DEFAULT_OUTPUT_DIR))

    # Polling
    poll_interval: float = DEFAULT_POLL_INTERVAL

    # Launching
    launch_timeout: int = DEFAULT_LAUNCH_TIMEOUT
    close_timeout: int = DEFAULT_CLOSE_TIMEOUT
    launch_args: list[str] = field(default_factory=list)
    inspect_port: int = 0  # 0 picks a free port
    remote_debugging_port: int = 0

    # Environment signal for relaxed window isolation
    testing_env_var: str = TESTING_ENV_VAR
    testing_env_value: str = TESTING_ENV_VALUE

    @classmethod
    def from_file(cls, config_path: Path) -> ElectronQAConfig:
        """Load config from a YAML file."""
        if not config_path.exists():
            raise ElectronQAConfigError(
                f"Config file not found: {config_path}\n\n"
                f"To fix: create {PROJECT_DIR_NAME}/{CONFIG_FILE_NAME}"
            )
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ElectronQAConfigError(f"Config file must be a YAML mapping: {config_path}")
        return cls._from_dict(data, config_path.parent)

    @classmethod
    def discover(cls, start: Path | None = None) -> ElectronQAConfig:
        """Find ``.electronqa/config.yaml`` searching upward from *start*.

        Falls back to defaults (relative to *start*) when no file exists.
        Environment overrides are applied either way.
        """
        current = (start or Path.cwd()).resolve()
        config: ElectronQAConfig | None = None
        for base in [current, *current.parents]:
            candidate = base / PROJECT_DIR_NAME / CONFIG_FILE_NAME
            if candidate.is_file():
                config = cls.from_file(candidate)
                break
        if config is None:
            config = cls._from_dict({}, current / PROJECT_DIR_NAME)
        config.apply_env()
        return config

    @classmethod
    def _from_dict(cls, data: dict[str, Any], project_dir: Path) -> ElectronQAConfig:
        """Create config from a dictionary.

        Relative paths resolve against the project root, i.e. the parent of
        the ``.electronqa/`` directory.
        """
        config = cls()
        config.project_dir = project_dir
        root = project_dir.parent

        config.output_dir = root / data.get("output_dir", DEFAULT_OUTPUT_DIR)

        try:
            if "poll_interval" in data:
                config.poll_interval = float(data["poll_interval"])
            if "launch_timeout" in data:
                config.launch_timeout = int(data["launch_timeout"])
            if "close_timeout" in data:
                config.close_timeout = int(data["close_timeout"])
            if "inspect_port" in data:
                config.inspect_port = int(data["inspect_port"])
            if "remote_debugging_port" in data:
                config.remote_debugging_port = int(data["remote_debugging_port"])
        except (TypeError, ValueError) as exc:
            raise ElectronQAConfigError(f"Invalid numeric value in config: {exc}") from exc

        if config.poll_interval <= 0:
            raise ElectronQAConfigError(
                f"poll_interval must be a positive number, got: {config.poll_interval!r}"
            )

        if "launch_args" in data:
            args = data["launch_args"] or []
            if not isinstance(args, list):
                raise ElectronQAConfigError("launch_args must be a list of strings")
            config.launch_args = [str(a) for a in args]

        if "testing_env_var" in data:
            config.testing_env_var = str(data["testing_env_var"])
        if "testing_env_value" in data:
            config.testing_env_value = str(data["testing_env_value"])

        return config

    def apply_env(self) -> None:
        """Apply ``ELECTRONQA_*`` environment overrides."""
        if out := os.environ.get("ELECTRONQA_OUTPUT_DIR"):
            self.output_dir = Path(out)
