"""Exception hierarchy for electronqa.

Every error names the offending path or identifier both in its message and in
an attribute, so a failing test step reports what went wrong and where.
"""

from __future__ import annotations

from pathlib import Path


class ElectronQAError(Exception):
    """Base class for all electronqa errors."""


class ElectronQAConfigError(ElectronQAError):
    """Raised when configuration is invalid or missing."""

    pass


# ── Build discovery ───────────────────────────────────────────────────────


class NoBuildFoundError(ElectronQAError):
    """No platform build directory was found under the output root."""

    def __init__(self, root: Path | str, reason: str = "") -> None:
        self.root = Path(root)
        message = f"No build found in {self.root}"
        if reason:
            message += f" ({reason})"
        super().__init__(message + "\n\nTo fix: package the app first (e.g. npm run package)")


class UnsupportedPlatformError(ElectronQAError):
    """The platform of a build directory could not be inferred."""

    def __init__(self, path: Path | str, detail: str = "") -> None:
        self.path = Path(path)
        super().__init__(detail or f"Platform not found in directory name: {self.path.name}")


class MalformedBundleError(ElectronQAError):
    """A build directory lacks an executable, resources directory or manifest."""

    def __init__(self, path: Path | str, detail: str) -> None:
        self.path = Path(path)
        super().__init__(f"{detail}: {self.path}")


class ArchiveReadError(ElectronQAError):
    """An archive is missing, corrupt, or does not contain the requested entry."""

    def __init__(self, archive: Path | str, detail: str, entry: str | None = None) -> None:
        self.archive = Path(archive)
        self.entry = entry
        where = f"{self.archive}" if entry is None else f"{self.archive} (entry {entry!r})"
        super().__init__(f"{detail}: {where}")


# ── Cross-process bridge ──────────────────────────────────────────────────


class BridgeError(ElectronQAError):
    """A bridge call failed inside the target process."""


class MenuItemNotFoundError(BridgeError):
    def __init__(self, menu_id: str) -> None:
        self.menu_id = menu_id
        super().__init__(f"Menu item with id {menu_id} not found")


class NoListenerError(BridgeError):
    def __init__(self, channel: str) -> None:
        self.channel = channel
        super().__init__(f"No listeners for message {channel}")


class BridgeCallError(BridgeError):
    """Any other failure reported by a dispatcher, keyed by its error kind."""

    def __init__(self, kind: str, message: str) -> None:
        self.kind = kind
        super().__init__(f"[{kind}] {message}")


# ── Waiting and launching ─────────────────────────────────────────────────


class WaitTimeoutError(ElectronQAError):
    """The caller-supplied deadline passed before the probe became true."""

    def __init__(self, attempts: int, elapsed: float) -> None:
        self.attempts = attempts
        self.elapsed = elapsed
        super().__init__(f"Condition not met after {attempts} evaluations ({elapsed:.1f}s)")


class WaitCancelledError(ElectronQAError):
    """The caller cancelled a wait before the probe became true."""

    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(f"Wait cancelled after {attempts} evaluations")


class LaunchError(ElectronQAError):
    """The application process could not be started or connected to."""

    def __init__(self, executable: Path | str, detail: str) -> None:
        self.executable = Path(executable)
        super().__init__(f"{detail}: {self.executable}")
