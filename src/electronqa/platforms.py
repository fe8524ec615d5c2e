"""Platform and CPU architecture vocabulary for packaged build directories.

Packagers name their output ``<app>-<platform>-<arch>`` (for example
``my-app-darwin-arm64``). Names are lowercased and split on ``-``, ``_``, ``.``
and whitespace, except that ``x86_64`` stays one token; each token is matched
against disjoint vocabularies. Tokens are matched whole, so ``darwin`` never
reads as ``win``.
"""

from __future__ import annotations

import enum
import re
from pathlib import Path

from electronqa.errors import UnsupportedPlatformError


class Platform(str, enum.Enum):
    DARWIN = "darwin"
    WIN32 = "win32"
    LINUX = "linux"
    UNKNOWN = "unknown"


class Architecture(str, enum.Enum):
    X32 = "x32"
    X64 = "x64"
    ARM64 = "arm64"
    UNKNOWN = "unknown"


# Order matters: first matching platform wins.
PLATFORM_TOKENS: dict[Platform, frozenset[str]] = {
    Platform.WIN32: frozenset({"win", "win32", "windows"}),
    Platform.DARWIN: frozenset({"darwin", "mac", "macos", "osx"}),
    Platform.LINUX: frozenset({"linux", "ubuntu", "debian"}),
}

# Vocabulary a build-output subdirectory must mention to count as a build.
BUILD_DIR_TOKENS: frozenset[str] = frozenset(
    {"win", "windows", "win32", "darwin", "mac", "macos", "osx", "linux", "ubuntu"}
)

ARCH_TOKENS: dict[Architecture, frozenset[str]] = {
    Architecture.X32: frozenset({"x32", "ia32", "i386", "i686", "x86"}),
    Architecture.X64: frozenset({"x64", "amd64", "x86_64"}),
    Architecture.ARM64: frozenset({"arm64", "aarch64"}),
}

MAC_BUNDLE_SUFFIX = ".app"
WINDOWS_EXE_SUFFIX = ".exe"

_TOKEN_RE = re.compile(r"x86_64|[^-._\s]+", re.IGNORECASE)


def tokenize(name: str) -> list[str]:
    """Split a directory name into lowercase tokens."""
    return [t.lower() for t in _TOKEN_RE.findall(name)]


def is_build_dir_name(name: str) -> bool:
    """True when *name* carries a platform token from the build vocabulary."""
    return any(token in BUILD_DIR_TOKENS for token in tokenize(name))


def platform_from_name(name: str) -> Platform:
    """Return the platform named by *name*, or ``Platform.UNKNOWN``."""
    tokens = set(tokenize(name))
    for platform, vocabulary in PLATFORM_TOKENS.items():
        if tokens & vocabulary:
            return platform
    return Platform.UNKNOWN


def arch_from_name(name: str) -> Architecture:
    """Return the architecture named by *name*, or ``Architecture.UNKNOWN``."""
    tokens = set(tokenize(name))
    for arch, vocabulary in ARCH_TOKENS.items():
        if tokens & vocabulary:
            return arch
    return Architecture.UNKNOWN


def infer_platform(path: Path) -> tuple[Platform, Path, Path | None]:
    """Infer the platform of a build path.

    Returns ``(platform, build_dir, selected)``. When *path* itself is a
    ``.app`` bundle or ``.exe`` file the build directory is its parent and
    *selected* is that bundle or executable; otherwise *selected* is None.

    Raises:
        UnsupportedPlatformError: no platform token in the directory name.
    """
    suffix = path.suffix.lower()
    if suffix == MAC_BUNDLE_SUFFIX:
        return Platform.DARWIN, path.parent, path
    if suffix == WINDOWS_EXE_SUFFIX:
        return Platform.WIN32, path.parent, path

    platform = platform_from_name(path.name)
    if platform is Platform.UNKNOWN:
        raise UnsupportedPlatformError(path)
    return platform, path, None


def app_name_prefix(name: str) -> str:
    """Return the part of a build directory name before its platform token.

    ``my-app-win32-x64`` -> ``my-app``. Empty when the name starts with a
    platform token.
    """
    for match in _TOKEN_RE.finditer(name):
        if platform_from_name(match.group()) is not Platform.UNKNOWN:
            return name[: match.start()].rstrip("-_. ")
    return name
