"""electronqa -- end-to-end test support for packaged Electron apps.

Find the build you just packaged, describe it, launch it, and drive its main
and renderer processes from test code::

    from electronqa import find_latest_build, parse_electron_app
    from electronqa.engine import launch_app, click_menu_item_by_id

    info = parse_electron_app(find_latest_build().path)
    with launch_app(info) as app:
        click_menu_item_by_id(app, "new-window")
"""

from electronqa.archive import ArchiveEntry, extract_entry, list_entries, read_header
from electronqa.bundle import AppBundleInfo, Manifest, parse_electron_app
from electronqa.errors import (
    ArchiveReadError,
    BridgeCallError,
    BridgeError,
    ElectronQAError,
    LaunchError,
    MalformedBundleError,
    MenuItemNotFoundError,
    NoBuildFoundError,
    NoListenerError,
    UnsupportedPlatformError,
    WaitCancelledError,
    WaitTimeoutError,
)
from electronqa.locator import BuildDirectory, find_latest_build, list_builds
from electronqa.platforms import Architecture, Platform

__version__ = "0.1.0"

__all__ = [
    "AppBundleInfo",
    "Architecture",
    "ArchiveEntry",
    "ArchiveReadError",
    "BridgeCallError",
    "BridgeError",
    "BuildDirectory",
    "ElectronQAError",
    "LaunchError",
    "MalformedBundleError",
    "Manifest",
    "MenuItemNotFoundError",
    "NoBuildFoundError",
    "NoListenerError",
    "Platform",
    "UnsupportedPlatformError",
    "WaitCancelledError",
    "WaitTimeoutError",
    "__version__",
    "extract_entry",
    "find_latest_build",
    "list_builds",
    "list_entries",
    "parse_electron_app",
    "read_header",
]
