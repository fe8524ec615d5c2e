"""electronqa Build Locator -- pick the most recently produced build.

Packagers write one subdirectory per target under an output root (``out/``
for Electron Forge), and the exact folder name depends on the packager
version and target. Any subdirectory whose name carries a platform token is a
candidate; the newest one wins.
"""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path

from electronqa.errors import NoBuildFoundError
from electronqa.models import DEFAULT_OUTPUT_DIR
from electronqa.platforms import Platform, is_build_dir_name, platform_from_name

logger = logging.getLogger("electronqa.locator")


@dataclasses.dataclass(frozen=True)
class BuildDirectory:
    """A directory believed to contain one packaged build."""

    path: Path
    platform: Platform
    mtime: float


def list_builds(output_root: Path | str | None = None) -> list[BuildDirectory]:
    """Return every valid build directory under *output_root*, newest first.

    Ties on modification time are ordered by name, last name first.

    Raises:
        NoBuildFoundError: *output_root* does not exist or is not a directory.
    """
    root = Path(output_root) if output_root is not None else Path.cwd() / DEFAULT_OUTPUT_DIR
    root = root.resolve()
    if not root.is_dir():
        raise NoBuildFoundError(root, "output directory does not exist")

    builds: list[BuildDirectory] = []
    for child in root.iterdir():
        if not child.is_dir() or not is_build_dir_name(child.name):
            continue
        builds.append(
            BuildDirectory(
                path=child,
                platform=platform_from_name(child.name),
                mtime=child.stat().st_mtime,
            )
        )

    builds.sort(key=lambda b: (b.mtime, b.path.name), reverse=True)
    return builds


def find_latest_build(output_root: Path | str | None = None) -> BuildDirectory:
    """Return the most recently modified build directory under *output_root*.

    *output_root* defaults to ``./out``.

    Raises:
        NoBuildFoundError: the root is missing or holds no valid build.
    """
    builds = list_builds(output_root)
    if not builds:
        root = Path(output_root) if output_root is not None else Path.cwd() / DEFAULT_OUTPUT_DIR
        raise NoBuildFoundError(root.resolve(), "no subdirectory names a platform")

    latest = builds[0]
    logger.info("Latest build: %s (platform=%s, %d candidate(s))", latest.path, latest.platform.value, len(builds))
    return latest
