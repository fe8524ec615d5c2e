"""electronqa Bundle Introspector -- describe one packaged Electron build.

Given a build directory (or a ``.app`` bundle / ``.exe`` inside one), infers
platform and architecture, then resolves the executable, the resources
directory, the ``package.json`` manifest (loose or inside ``app.asar``) and
the entry module.

On-disk layouts::

    macOS                          Windows / Linux
    <build>/                       <build>/
      <App>.app/                     <app>[.exe]
        Contents/                    resources/
          MacOS/<App>                  app.asar    -or-   app/package.json
          Resources/
            app.asar   -or-   app/package.json

Resolution is a strategy per platform (``BundleLayout`` subclasses keyed by
``Platform`` in ``LAYOUTS``).
"""

from __future__ import annotations

import abc
import dataclasses
import json
import logging
import os
import re
import stat
from pathlib import Path
from typing import Any

from electronqa.archive import extract_entry
from electronqa.errors import MalformedBundleError, UnsupportedPlatformError
from electronqa.models import ASAR_ARCHIVE_NAME, MANIFEST_NAME, UNPACKED_APP_DIR
from electronqa.platforms import (
    MAC_BUNDLE_SUFFIX,
    WINDOWS_EXE_SUFFIX,
    Architecture,
    Platform,
    app_name_prefix,
    arch_from_name,
    infer_platform,
)

logger = logging.getLogger("electronqa.bundle")


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclasses.dataclass(frozen=True)
class Manifest:
    """The fields of ``package.json`` needed to describe a build."""

    name: str
    main: str
    data: dict[str, Any] = dataclasses.field(default_factory=dict, repr=False, compare=False)

    @property
    def product_name(self) -> str | None:
        value = self.data.get("productName")
        return value if isinstance(value, str) and value else None


@dataclasses.dataclass(frozen=True)
class ManifestSource:
    """Where the manifest lives and what the entry module is relative to."""

    packed: bool
    location: Path  # app.asar when packed, else <resources>/app/package.json
    app_root: Path  # app.asar when packed, else <resources>/app


@dataclasses.dataclass(frozen=True)
class AppBundleInfo:
    """Resolved description of one build. All paths are absolute."""

    executable: Path
    main: Path  # inside the archive this is <archive>/<entry>
    name: str
    asar: bool
    platform: Platform
    arch: Architecture
    resources_dir: Path
    build_dir: Path

    @property
    def packed(self) -> bool:
        return self.asar


# ---------------------------------------------------------------------------
# Layout strategies
# ---------------------------------------------------------------------------

class BundleLayout(abc.ABC):
    """Resolution contract shared by every platform layout."""

    platform: Platform = Platform.UNKNOWN

    def __init__(self, build_dir: Path, selected: Path | None = None) -> None:
        """
        Args:
            build_dir: The directory holding the build.
            selected: The ``.app`` bundle or ``.exe`` the caller pointed at,
                when the path given to ``parse_electron_app`` was one.
        """
        self.build_dir = build_dir
        self.selected = selected

    @abc.abstractmethod
    def locate_resources_dir(self) -> Path: ...

    @abc.abstractmethod
    def locate_executable(self, manifest: Manifest) -> Path: ...

    def locate_manifest_source(self, resources_dir: Path) -> ManifestSource:
        archive = resources_dir / ASAR_ARCHIVE_NAME
        if archive.is_file():
            return ManifestSource(packed=True, location=archive, app_root=archive)
        app_dir = resources_dir / UNPACKED_APP_DIR
        return ManifestSource(packed=False, location=app_dir / MANIFEST_NAME, app_root=app_dir)

    def _require_dir(self, path: Path, what: str) -> Path:
        if not path.is_dir():
            raise MalformedBundleError(path, f"Missing {what}")
        return path


class DarwinLayout(BundleLayout):
    platform = Platform.DARWIN

    def _app_bundle(self) -> Path:
        if self.selected is not None:
            return self._require_dir(self.selected, "app bundle")
        bundles = sorted(
            p for p in self.build_dir.iterdir()
            if p.name.lower().endswith(MAC_BUNDLE_SUFFIX) and p.is_dir()
        )
        if not bundles:
            raise MalformedBundleError(self.build_dir, f"No {MAC_BUNDLE_SUFFIX} bundle found")
        if len(bundles) > 1:
            names = ", ".join(b.name for b in bundles)
            raise MalformedBundleError(self.build_dir, f"Multiple app bundles ({names})")
        return bundles[0]

    def locate_resources_dir(self) -> Path:
        return self._require_dir(self._app_bundle() / "Contents" / "Resources", "Contents/Resources")

    def locate_executable(self, manifest: Manifest) -> Path:
        macos_dir = self._require_dir(self._app_bundle() / "Contents" / "MacOS", "Contents/MacOS")
        for candidate in sorted(macos_dir.iterdir()):
            if candidate.is_file():
                return candidate
        raise MalformedBundleError(macos_dir, "No executable found")


class WindowsLayout(BundleLayout):
    platform = Platform.WIN32

    def locate_resources_dir(self) -> Path:
        return self._require_dir(self.build_dir / "resources", "resources directory")

    def locate_executable(self, manifest: Manifest) -> Path:
        if self.selected is not None:
            if not self.selected.is_file():
                raise MalformedBundleError(self.selected, "Missing executable")
            return self.selected
        exes = sorted(
            p for p in self.build_dir.iterdir()
            if p.name.lower().endswith(WINDOWS_EXE_SUFFIX) and p.is_file()
        )
        if not exes:
            raise MalformedBundleError(self.build_dir, f"No {WINDOWS_EXE_SUFFIX} found")
        return _pick_one(exes, _preferred_names(self.build_dir, manifest), self.build_dir)


class LinuxLayout(BundleLayout):
    """Linux packages mirror the Windows layout without a file extension.

    The executable is the executable file at the build root that is not one
    of Electron's helper binaries or shared libraries.
    """

    platform = Platform.LINUX

    _HELPERS = frozenset({"chrome-sandbox", "chrome_crashpad_handler"})
    _DATA_SUFFIXES = frozenset({".pak", ".bin", ".dat", ".json", ".html", ".txt"})
    _SHARED_LIB_RE = re.compile(r"\.so(\.\d+)*$")

    def locate_resources_dir(self) -> Path:
        return self._require_dir(self.build_dir / "resources", "resources directory")

    def locate_executable(self, manifest: Manifest) -> Path:
        candidates = sorted(p for p in self.build_dir.iterdir() if self._is_app_binary(p))
        if not candidates:
            raise MalformedBundleError(self.build_dir, "No executable found")
        return _pick_one(candidates, _preferred_names(self.build_dir, manifest), self.build_dir)

    def _is_app_binary(self, path: Path) -> bool:
        if not path.is_file() or path.name in self._HELPERS:
            return False
        if path.suffix.lower() in self._DATA_SUFFIXES or self._SHARED_LIB_RE.search(path.name):
            return False
        return bool(path.stat().st_mode & (stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH))


LAYOUTS: dict[Platform, type[BundleLayout]] = {
    Platform.DARWIN: DarwinLayout,
    Platform.WIN32: WindowsLayout,
    Platform.LINUX: LinuxLayout,
}


def _preferred_names(build_dir: Path, manifest: Manifest) -> list[str]:
    names = [manifest.name, manifest.product_name or "", app_name_prefix(build_dir.name)]
    return [n.lower() for n in names if n]


def _pick_one(candidates: list[Path], preferred: list[str], build_dir: Path) -> Path:
    if len(candidates) == 1:
        return candidates[0]
    for name in preferred:
        for candidate in candidates:
            stem = candidate.name
            if stem.lower().endswith(WINDOWS_EXE_SUFFIX):
                stem = stem[: -len(WINDOWS_EXE_SUFFIX)]
            if stem.lower() == name:
                return candidate
    names = ", ".join(c.name for c in candidates)
    raise MalformedBundleError(build_dir, f"Ambiguous executable ({names})")


# ---------------------------------------------------------------------------
# Manifest
# ---------------------------------------------------------------------------

def read_manifest(source: ManifestSource) -> Manifest:
    """Read and validate ``package.json`` from *source*.

    Raises:
        MalformedBundleError: the file is missing, not JSON, or lacks
            ``name``/``main``.
        ArchiveReadError: the archive cannot be read or has no manifest entry.
    """
    if source.packed:
        raw = extract_entry(source.location, MANIFEST_NAME)
        where = source.location / MANIFEST_NAME
    else:
        where = source.location
        try:
            raw = where.read_bytes()
        except FileNotFoundError:
            raise MalformedBundleError(where, "Missing manifest") from None
        except OSError as exc:
            raise MalformedBundleError(where, f"Unreadable manifest ({exc})") from exc

    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise MalformedBundleError(where, f"Invalid manifest JSON ({exc})") from exc
    if not isinstance(data, dict):
        raise MalformedBundleError(where, "Manifest is not a JSON object")

    for key in ("main", "name"):
        value = data.get(key)
        if not isinstance(value, str) or not value:
            raise MalformedBundleError(where, f"Manifest has no {key!r} field")

    return Manifest(name=data["name"], main=data["main"], data=data)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def parse_electron_app(build_dir: Path | str) -> AppBundleInfo:
    """Describe the Electron build at *build_dir*.

    Args:
        build_dir: A build directory such as ``out/my-app-darwin-arm64``, or a
            ``.app`` bundle / ``.exe`` inside one.

    Raises:
        UnsupportedPlatformError: the platform cannot be inferred or has no
            layout.
        MalformedBundleError: executable, resources or manifest is missing.
        ArchiveReadError: ``app.asar`` exists but cannot be read.
    """
    path = Path(build_dir).resolve()
    logger.info("Parsing Electron app in %s", path)

    platform, root, selected = infer_platform(path)
    arch = arch_from_name(root.name)
    if not root.is_dir():
        raise MalformedBundleError(root, "Build directory not found")

    layout_cls = LAYOUTS.get(platform)
    if layout_cls is None:
        raise UnsupportedPlatformError(path, f"Platform not supported: {platform.value}")
    layout = layout_cls(root, selected)

    resources_dir = layout.locate_resources_dir()
    source = layout.locate_manifest_source(resources_dir)
    manifest = read_manifest(source)
    executable = layout.locate_executable(manifest)
    main = Path(os.path.normpath(source.app_root / manifest.main))

    info = AppBundleInfo(
        executable=executable,
        main=main,
        name=manifest.name,
        asar=source.packed,
        platform=platform,
        arch=arch,
        resources_dir=resources_dir,
        build_dir=root,
    )
    logger.debug(
        "Parsed %s: platform=%s arch=%s asar=%s executable=%s main=%s",
        info.name, platform.value, arch.value, info.asar, executable, main,
    )
    return info
