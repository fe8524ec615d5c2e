"""Shared fixtures for electronqa unit tests."""

from __future__ import annotations

import json
import os
import struct
from collections import defaultdict
from pathlib import Path
from typing import Any, Callable

import pytest
import yaml

from electronqa.engine.dispatchers import MAIN_DISPATCHER, PROTOCOL_VERSION, RENDERER_DISPATCHER


# ---------------------------------------------------------------------------
# Fixture: ASAR archive writer
# ---------------------------------------------------------------------------

def write_asar(
    archive: Path,
    files: dict[str, bytes | str],
    unpacked: set[str] | None = None,
    links: dict[str, str] | None = None,
) -> Path:
    """Write a minimal ASAR archive holding *files*.

    Entries named in *unpacked* are written next to the archive in
    ``<archive>.unpacked/`` instead. *links* maps a link path to its target.
    """
    unpacked = unpacked or set()
    tree: dict[str, Any] = {"files": {}}
    payload = bytearray()

    def _node_for(parts: list[str]) -> dict[str, Any]:
        node = tree
        for part in parts:
            node = node["files"].setdefault(part, {"files": {}})
        return node

    for name, content in files.items():
        data = content.encode("utf-8") if isinstance(content, str) else content
        *dirs, leaf = name.split("/")
        parent = _node_for(dirs)
        if name in unpacked:
            parent["files"][leaf] = {"size": len(data), "unpacked": True}
            target = archive.with_name(archive.name + ".unpacked") / name
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        else:
            parent["files"][leaf] = {"size": len(data), "offset": str(len(payload))}
            payload.extend(data)

    for name, target in (links or {}).items():
        *dirs, leaf = name.split("/")
        _node_for(dirs)["files"][leaf] = {"link": target}

    header_json = json.dumps(tree).encode("utf-8")
    padded = header_json + b"\0" * (-len(header_json) % 4)
    header_pickle = struct.pack("<Ii", 4 + len(padded), len(header_json)) + padded
    size_pickle = struct.pack("<II", 4, len(header_pickle))

    archive.parent.mkdir(parents=True, exist_ok=True)
    archive.write_bytes(size_pickle + header_pickle + bytes(payload))
    return archive


@pytest.fixture
def make_asar() -> Callable[..., Path]:
    return write_asar


# ---------------------------------------------------------------------------
# Fixture: synthetic packaged builds
# ---------------------------------------------------------------------------

def _manifest(name: str, main: str) -> str:
    return json.dumps({"name": name, "productName": name.title(), "main": main, "version": "1.0.0"})


def _make_executable(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"\x7fELF")
    os.chmod(path, 0o755)
    return path


def _write_resources(resources: Path, packed: bool, name: str, main: str) -> None:
    resources.mkdir(parents=True, exist_ok=True)
    if packed:
        write_asar(
            resources / "app.asar",
            {"package.json": _manifest(name, main), main: "console.log('hi')\n"},
        )
    else:
        app_dir = resources / "app"
        app_dir.mkdir()
        (app_dir / "package.json").write_text(_manifest(name, main), encoding="utf-8")
        (app_dir / main).parent.mkdir(parents=True, exist_ok=True)
        (app_dir / main).write_text("console.log('hi')\n", encoding="utf-8")


def build_bundle(
    out_dir: Path,
    platform: str,
    *,
    packed: bool = True,
    name: str = "demo-app",
    main: str = "index.js",
    arch: str = "x64",
) -> Path:
    """Create ``<out_dir>/<name>-<platform>-<arch>/`` laid out like a packager would."""
    build = out_dir / f"{name}-{platform}-{arch}"
    build.mkdir(parents=True)
    if platform == "darwin":
        contents = build / "Demo App.app" / "Contents"
        _make_executable(contents / "MacOS" / "Demo App")
        (contents / "Info.plist").write_text("<plist/>", encoding="utf-8")
        _write_resources(contents / "Resources", packed, name, main)
    elif platform == "win32":
        (build / f"{name}.exe").write_bytes(b"MZ")
        (build / "ffmpeg.dll").write_bytes(b"MZ")
        _write_resources(build / "resources", packed, name, main)
    elif platform == "linux":
        _make_executable(build / name)
        _make_executable(build / "chrome-sandbox")
        _make_executable(build / "chrome_crashpad_handler")
        _make_executable(build / "libffmpeg.so")
        (build / "resources.pak").write_bytes(b"PAK")
        _write_resources(build / "resources", packed, name, main)
    else:
        raise ValueError(platform)
    return build


@pytest.fixture
def make_bundle(tmp_path: Path) -> Callable[..., Path]:
    out_dir = tmp_path / "out"

    def _make(platform: str, **kwargs: Any) -> Path:
        return build_bundle(out_dir, platform, **kwargs)

    return _make


# ---------------------------------------------------------------------------
# Fixture: in-memory main and renderer processes
# ---------------------------------------------------------------------------

class FakeMenuItem:
    def __init__(self, item_id: str, label: str = "", on_click: Callable[[], Any] | None = None) -> None:
        self.id = item_id
        self.label = label
        self.enabled = True
        self.clicks = 0
        self._on_click = on_click

    def click(self) -> Any:
        self.clicks += 1
        return self._on_click() if self._on_click else None


class FakeMainProcess:
    """Interprets bridge payloads the way MAIN_DISPATCHER does in Electron."""

    def __init__(self) -> None:
        self.menu: dict[str, FakeMenuItem] = {}
        self.listeners: dict[str, list[Callable[..., Any]]] = defaultdict(list)
        self.handlers: dict[str, Callable[..., Any]] = {}
        self.functions: dict[str, Callable[[Any], Any]] = {}
        self.window_total = 1
        self.payloads: list[dict[str, Any]] = []

    # Driver contract
    def evaluate(self, expression: str, arg: Any = None) -> Any:
        assert expression == MAIN_DISPATCHER
        self.payloads.append(arg)
        return self.dispatch(arg)

    # Test helpers
    def add_menu_item(self, item_id: str, label: str = "", on_click: Callable[[], Any] | None = None) -> FakeMenuItem:
        item = FakeMenuItem(item_id, label, on_click)
        self.menu[item_id] = item
        return item

    def on(self, channel: str, listener: Callable[..., Any]) -> None:
        self.listeners[channel].append(listener)

    def handle(self, channel: str, handler: Callable[..., Any]) -> None:
        self.handlers[channel] = handler

    def dispatch(self, payload: dict[str, Any]) -> dict[str, Any]:
        if payload.get("v") != PROTOCOL_VERSION:
            return {"ok": False, "error": {"kind": "protocol_version", "message": "bad version"}}
        op, args = payload["op"], payload["args"]
        event = {"sender": None}
        if op == "menu.exists":
            return {"ok": True, "value": args["id"] in self.menu}
        if op in ("menu.click", "menu.attribute"):
            item = self.menu.get(args["id"])
            if item is None:
                return {
                    "ok": False,
                    "error": {"kind": "menu_item_not_found", "message": "missing", "id": args["id"]},
                }
            if op == "menu.click":
                return {"ok": True, "value": item.click()}
            return {"ok": True, "value": getattr(item, args["attribute"], None)}
        if op == "ipcMain.emit":
            listeners = list(self.listeners.get(args["channel"], []))
            for listener in listeners:
                listener(event, *args["args"])
            return {"ok": True, "value": bool(listeners)}
        if op == "ipcMain.listenerCount":
            return {"ok": True, "value": len(self.listeners.get(args["channel"], []))}
        if op == "ipcMain.invokeFirstListener":
            listeners = self.listeners.get(args["channel"], [])
            if not listeners:
                return {
                    "ok": False,
                    "error": {"kind": "no_listener", "message": "none", "channel": args["channel"]},
                }
            return {"ok": True, "value": listeners[0](event, *args["args"])}
        if op == "app.windowCount":
            return {"ok": True, "value": self.window_total}
        if op == "function":
            fn = self.functions[args["source"]]
            return {"ok": True, "value": fn(args.get("arg"))}
        return {"ok": False, "error": {"kind": "unknown_op", "message": op}}


class FakeWindow:
    """Interprets renderer bridge payloads against a FakeMainProcess."""

    def __init__(self, main: FakeMainProcess, title: str = "Window 1", isolated: bool = False) -> None:
        self._main = main
        self._title = title
        self._isolated = isolated
        self.payloads: list[dict[str, Any]] = []

    def title(self) -> str:
        return self._title

    def evaluate(self, expression: str, arg: Any = None) -> Any:
        assert expression == RENDERER_DISPATCHER
        self.payloads.append(arg)
        if self._isolated:
            return {"ok": False, "error": {"kind": "renderer_isolated", "message": "no require()"}}
        op, args = arg["op"], arg["args"]
        if op == "ipcRenderer.send":
            for listener in self._main.listeners.get(args["channel"], []):
                listener({"sender": self._title}, *args["args"])
            return {"ok": True, "value": None}
        if op == "ipcRenderer.invoke":
            handler = self._main.handlers.get(args["channel"])
            if handler is None:
                return {
                    "ok": False,
                    "error": {
                        "kind": "remote_error",
                        "message": f"No handler registered for '{args['channel']}'",
                    },
                }
            return {"ok": True, "value": handler({"sender": self._title}, *args["args"])}
        return {"ok": False, "error": {"kind": "unknown_op", "message": op}}


@pytest.fixture
def fake_main() -> FakeMainProcess:
    return FakeMainProcess()


@pytest.fixture
def fake_window(fake_main: FakeMainProcess) -> FakeWindow:
    return FakeWindow(fake_main)


@pytest.fixture
def make_window(fake_main: FakeMainProcess) -> Callable[..., FakeWindow]:
    def _make(**kwargs: Any) -> FakeWindow:
        return FakeWindow(fake_main, **kwargs)

    return _make


# ---------------------------------------------------------------------------
# Fixture: temporary project directory with .electronqa/ structure
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """Create ``<tmp>/.electronqa/config.yaml`` and return the .electronqa dir."""
    project_dir = tmp_path / ".electronqa"
    project_dir.mkdir()
    config_data = {
        "output_dir": "dist",
        "poll_interval": 0.05,
        "launch_timeout": 45,
    }
    (project_dir / "config.yaml").write_text(
        yaml.dump(config_data, default_flow_style=False), encoding="utf-8"
    )
    return project_dir
