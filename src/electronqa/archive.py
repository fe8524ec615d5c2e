"""electronqa Archive Reader -- random access to entries of an ``app.asar`` archive.

ASAR layout::

    [0:8]             pickle(uint32 header_size)
    [8:8+header_size] pickle(string header_json)
    [8+header_size:]  concatenated file payloads

Each pickle starts with a uint32 payload length; strings are an int32 length
followed by UTF-8 bytes padded to 4 bytes. The JSON header is a tree of
``{"files": {...}}`` directory nodes, file nodes with ``size``/``offset`` and
link nodes with ``link``. Files marked ``unpacked`` live next to the archive
in ``<archive>.unpacked/``.

The header is parsed on every call and nothing is cached.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import posixpath
import struct
from pathlib import Path
from typing import Any, Iterator

from electronqa.errors import ArchiveReadError

logger = logging.getLogger("electronqa.archive")

_SIZE_PICKLE_LEN = 8
_MAX_LINK_HOPS = 40


@dataclasses.dataclass(frozen=True)
class ArchiveEntry:
    """A single file or link inside an archive."""

    path: str
    size: int = 0
    offset: int = 0  # relative to AsarHeader.data_offset
    unpacked: bool = False
    executable: bool = False
    link: str | None = None


@dataclasses.dataclass(frozen=True)
class AsarHeader:
    """Parsed archive header."""

    archive: Path
    tree: dict[str, Any]
    data_offset: int  # absolute byte offset of the first payload


def read_header(archive_path: Path | str) -> AsarHeader:
    """Parse the header of *archive_path*."""
    archive = Path(archive_path)
    try:
        with open(archive, "rb") as f:
            size_pickle = f.read(_SIZE_PICKLE_LEN)
            if len(size_pickle) < _SIZE_PICKLE_LEN:
                raise ArchiveReadError(archive, "Truncated archive header")
            _, header_size = struct.unpack("<II", size_pickle)
            header_pickle = f.read(header_size)
    except FileNotFoundError:
        raise ArchiveReadError(archive, "Archive not found") from None
    except IsADirectoryError:
        raise ArchiveReadError(archive, "Archive path is a directory") from None
    except OSError as exc:
        raise ArchiveReadError(archive, f"Cannot read archive ({exc})") from exc

    if len(header_pickle) < header_size or header_size < 8:
        raise ArchiveReadError(archive, "Truncated archive header")

    payload_size, json_len = struct.unpack("<Ii", header_pickle[:8])
    if json_len < 0 or 8 + json_len > header_size or json_len > payload_size:
        raise ArchiveReadError(archive, "Malformed archive header")

    try:
        tree = json.loads(header_pickle[8 : 8 + json_len].decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ArchiveReadError(archive, f"Malformed archive header ({exc})") from exc

    if not isinstance(tree, dict) or not isinstance(tree.get("files"), dict):
        raise ArchiveReadError(archive, "Malformed archive header (no file table)")

    return AsarHeader(archive=archive, tree=tree, data_offset=_SIZE_PICKLE_LEN + header_size)


def list_entries(archive_path: Path | str) -> list[ArchiveEntry]:
    """Return every file and link entry, depth first in header order."""
    header = read_header(archive_path)
    return list(_walk(header.tree, "", header.archive))


def extract_entry(archive_path: Path | str, entry_name: str) -> bytes:
    """Read the bytes of *entry_name* without unpacking the archive.

    Links are followed. Entries stored outside the archive (``unpacked``) are
    read from the sibling ``.unpacked`` directory.
    """
    header = read_header(archive_path)
    entry = _resolve(header, entry_name)

    if entry.unpacked:
        unpacked_path = header.archive.with_name(header.archive.name + ".unpacked") / entry.path
        logger.debug("Reading unpacked entry %s from %s", entry.path, unpacked_path)
        try:
            return unpacked_path.read_bytes()
        except OSError as exc:
            raise ArchiveReadError(header.archive, f"Unpacked entry unreadable ({exc})", entry_name) from exc

    start = header.data_offset + entry.offset
    try:
        with open(header.archive, "rb") as f:
            f.seek(start)
            data = f.read(entry.size)
    except OSError as exc:
        raise ArchiveReadError(header.archive, f"Cannot read archive ({exc})", entry_name) from exc
    if len(data) != entry.size:
        raise ArchiveReadError(header.archive, "Truncated entry data", entry_name)
    return data


# -- Internals ---------------------------------------------------------------


def _normalize(name: str) -> list[str]:
    cleaned = posixpath.normpath(name.replace("\\", "/").lstrip("/"))
    if cleaned in (".", ""):
        return []
    parts = cleaned.split("/")
    if parts[0] == "..":
        raise ValueError(name)
    return parts


def _resolve(header: AsarHeader, entry_name: str) -> ArchiveEntry:
    target = entry_name
    for _ in range(_MAX_LINK_HOPS):
        try:
            parts = _normalize(target)
        except ValueError:
            raise ArchiveReadError(header.archive, "Entry escapes archive root", entry_name) from None
        node = _lookup(header, parts, entry_name)
        if "link" in node:
            target = str(node["link"])
            continue
        if "files" in node:
            raise ArchiveReadError(header.archive, "Entry is a directory", entry_name)
        return _to_entry("/".join(parts), node, header.archive)
    raise ArchiveReadError(header.archive, "Too many levels of links", entry_name)


def _lookup(header: AsarHeader, parts: list[str], entry_name: str) -> dict[str, Any]:
    node: dict[str, Any] = header.tree
    hops = 0
    index = 0
    while index < len(parts):
        files = node.get("files")
        child = files.get(parts[index]) if isinstance(files, dict) else None
        if not isinstance(child, dict):
            raise ArchiveReadError(header.archive, "Entry not found in archive", entry_name)
        index += 1
        if "link" in child and index < len(parts):
            # Directory symlink in the middle of the path: restart from its target.
            hops += 1
            if hops > _MAX_LINK_HOPS:
                raise ArchiveReadError(header.archive, "Too many levels of links", entry_name)
            try:
                parts = _normalize(str(child["link"])) + parts[index:]
            except ValueError:
                raise ArchiveReadError(header.archive, "Link escapes archive root", entry_name) from None
            node, index = header.tree, 0
            continue
        node = child
    if node is header.tree:
        raise ArchiveReadError(header.archive, "Entry is a directory", entry_name)
    return node


def _to_entry(path: str, node: dict[str, Any], archive: Path) -> ArchiveEntry:
    try:
        return ArchiveEntry(
            path=path,
            size=int(node.get("size", 0)),
            offset=int(node.get("offset", 0)),
            unpacked=bool(node.get("unpacked", False)),
            executable=bool(node.get("executable", False)),
        )
    except (TypeError, ValueError) as exc:
        raise ArchiveReadError(archive, f"Malformed entry metadata ({exc})", path) from exc


def _walk(node: dict[str, Any], prefix: str, archive: Path) -> Iterator[ArchiveEntry]:
    for name, child in node.get("files", {}).items():
        path = f"{prefix}{name}"
        if "files" in child:
            yield from _walk(child, path + "/", archive)
        elif "link" in child:
            yield ArchiveEntry(path=path, link=str(child["link"]))
        else:
            yield _to_entry(path, child, archive)
