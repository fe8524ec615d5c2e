"""electronqa Launcher -- start an Electron app and attach to both process kinds.

The executable is started with two debugging endpoints:

- ``--inspect``: the Node inspector of the main process. ``InspectorSession``
  speaks ``Runtime.evaluate`` over its WebSocket, which is how main-process
  bridge calls run.
- ``--remote-debugging-port``: Chromium's DevTools endpoint. Playwright
  attaches with ``connect_over_cdp`` and every BrowserWindow shows up as a
  ``Page``.

Both endpoints are polled over HTTP until they answer. The environment
signal (``CI=e2e`` by default) is set so the app creates windows that allow
renderer-side bridge calls.

Always pair a launch with ``close()``; ``launch_electron_app`` does it for
you::

    with launch_electron_app(info.executable) as app:
        window = app.first_window()
        ...
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import socket
import subprocess
import time
from pathlib import Path
from typing import Any, Callable, Iterator, Sequence

import requests

from electronqa.bundle import AppBundleInfo
from electronqa.config import ElectronQAConfig
from electronqa.errors import BridgeCallError, LaunchError
from electronqa.models import LOOPBACK_HOST

logger = logging.getLogger("electronqa.engine.launcher")

_ENDPOINT_POLL_INTERVAL = 0.1


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind((LOOPBACK_HOST, 0))
        return sock.getsockname()[1]


# ---------------------------------------------------------------------------
# Main process: Node inspector
# ---------------------------------------------------------------------------

class InspectorSession:
    """Blocking DevTools-protocol client for the main process inspector."""

    def __init__(self, ws_url: str, open_timeout: float = 10) -> None:
        from websockets.sync.client import connect

        self._ws = connect(ws_url, max_size=None, open_timeout=open_timeout)
        self._next_id = 0

    def send(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Send one command and block until its response arrives."""
        from websockets.exceptions import ConnectionClosed

        self._next_id += 1
        message_id = self._next_id
        try:
            self._ws.send(json.dumps({"id": message_id, "method": method, "params": params or {}}))
            while True:
                message = json.loads(self._ws.recv())
                if message.get("id") != message_id:
                    continue  # protocol event
                if "error" in message:
                    raise BridgeCallError("inspector", str(message["error"].get("message", message["error"])))
                return message.get("result", {})
        except ConnectionClosed as exc:
            raise BridgeCallError("disconnected", f"main process inspector closed: {exc}") from exc

    def evaluate(self, expression: str, arg: Any = None) -> Any:
        """Call function source *expression* as ``fn(electron, arg)``; return by value."""
        source = (
            "(async () => {\n"
            "  const electron = (typeof process !== 'undefined' && process.mainModule)\n"
            "    ? process.mainModule.require('electron')\n"
            "    : require('electron')\n"
            f"  return await ({expression})(electron, {json.dumps(arg)})\n"
            "})()"
        )
        result = self.send(
            "Runtime.evaluate",
            {
                "expression": source,
                "awaitPromise": True,
                "returnByValue": True,
                "includeCommandLineAPI": True,
            },
        )
        details = result.get("exceptionDetails")
        if details:
            exception = details.get("exception") or {}
            text = exception.get("description") or details.get("text", "evaluation failed")
            raise BridgeCallError("remote_error", text)
        return result.get("result", {}).get("value")

    def close(self) -> None:
        self._ws.close()


# ---------------------------------------------------------------------------
# Application handle
# ---------------------------------------------------------------------------

class ElectronApp:
    """A running Electron application.

    Implements the driver contract: ``evaluate`` in the main process, window
    access through Playwright pages, and ``close``.
    """

    def __init__(self, process: subprocess.Popen, config: ElectronQAConfig) -> None:
        self._process = process
        self._config = config
        # Attached by launch_electron(); any of them may be missing if launch failed.
        self._inspector: InspectorSession | None = None
        self._playwright: Any = None
        self._browser: Any = None
        self._closed = False

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def process(self) -> subprocess.Popen:
        return self._process

    @property
    def poll_interval(self) -> float:
        """Seconds between condition evaluations when a wait gives no policy."""
        return self._config.poll_interval

    @property
    def context(self) -> Any:
        """The Playwright ``BrowserContext`` holding the app's windows."""
        if self._browser is None or not self._browser.contexts:
            raise LaunchError(self._process.args[0], "Not connected to the renderer endpoint")
        return self._browser.contexts[0]

    # -- Main process ---------------------------------------------------------

    def evaluate(self, expression: str, arg: Any = None) -> Any:
        if self._inspector is None:
            raise LaunchError(self._process.args[0], "Not connected to the main process inspector")
        return self._inspector.evaluate(expression, arg)

    # -- Windows --------------------------------------------------------------

    def windows(self) -> list[Any]:
        return list(self.context.pages)

    def first_window(self, timeout: float | None = None) -> Any:
        """Return the first window, waiting for it to open if necessary."""
        pages = self.windows()
        if pages:
            return pages[0]
        return self.wait_for_event("window", timeout)

    def wait_for_event(self, event: str, timeout: float | None = None) -> Any:
        """Wait for the next ``"window"`` event and return the new window."""
        if event != "window":
            raise ValueError(f"Unsupported event: {event!r}")
        return self.context.wait_for_event("page", timeout=self._timeout_ms(timeout))

    def expect_window(self, timeout: float | None = None) -> Any:
        """Context manager that captures a window opened inside the block.

        ``with app.expect_window() as info: ...`` then ``info.value``.
        """
        return self.context.expect_page(timeout=self._timeout_ms(timeout))

    def _timeout_ms(self, timeout: float | None) -> float:
        return (timeout if timeout is not None else self._config.launch_timeout) * 1000

    # -- Lifecycle ------------------------------------------------------------

    def close(self) -> None:
        """Disconnect and terminate the application. Safe to call twice."""
        if self._closed:
            return
        self._closed = True

        for label, action in (
            ("browser connection", self._browser.close if self._browser is not None else None),
            ("inspector session", self._inspector.close if self._inspector is not None else None),
            ("playwright", self._playwright.stop if self._playwright is not None else None),
        ):
            if action is None:
                continue
            try:
                action()
            except Exception as exc:
                logger.warning("Failed to close %s: %s", label, exc)

        self._browser = None
        self._inspector = None
        self._playwright = None
        self._terminate()

    def _terminate(self) -> None:
        if self._process.poll() is not None:
            return
        self._process.terminate()
        try:
            self._process.wait(timeout=self._config.close_timeout)
            logger.info("Terminated app pid=%s", self._process.pid)
        except subprocess.TimeoutExpired:
            logger.warning("App pid=%s ignored SIGTERM, killing", self._process.pid)
            self._process.kill()
            self._process.wait()

    def __enter__(self) -> ElectronApp:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


# ---------------------------------------------------------------------------
# Launching
# ---------------------------------------------------------------------------

def _select_node_target(data: Any) -> str | None:
    if isinstance(data, list):
        for target in data:
            if isinstance(target, dict) and target.get("webSocketDebuggerUrl"):
                return str(target["webSocketDebuggerUrl"])
    return None


def _select_browser_target(data: Any) -> str | None:
    if isinstance(data, dict) and data.get("webSocketDebuggerUrl"):
        return str(data["webSocketDebuggerUrl"])
    return None


def _wait_for_endpoint(
    process: subprocess.Popen,
    url: str,
    select: Callable[[Any], str | None],
    deadline: float,
    executable: Path,
) -> str:
    """Poll a DevTools HTTP endpoint until it lists a WebSocket URL."""
    while True:
        if process.poll() is not None:
            raise LaunchError(executable, f"Process exited with code {process.returncode} before {url} answered")
        try:
            resp = requests.get(url, timeout=2)
            if resp.ok:
                ws_url = select(resp.json())
                if ws_url:
                    logger.debug("Endpoint %s ready: %s", url, ws_url)
                    return ws_url
        except (requests.RequestException, ValueError):
            pass  # not listening yet
        if time.monotonic() >= deadline:
            raise LaunchError(executable, f"Timed out waiting for {url}")
        time.sleep(_ENDPOINT_POLL_INTERVAL)


def launch_electron(
    executable: Path | str,
    args: Sequence[str] = (),
    *,
    env: dict[str, str] | None = None,
    cwd: Path | str | None = None,
    config: ElectronQAConfig | None = None,
) -> ElectronApp:
    """Start *executable* with *args* and attach to it.

    *executable* is a packaged app binary, or the ``electron`` binary with the
    entry script as the first of *args*.

    Raises:
        LaunchError: the process cannot start, exits early, or its debugging
            endpoints do not answer within ``config.launch_timeout``.
    """
    config = config or ElectronQAConfig()
    executable = Path(executable)
    if not executable.exists():
        raise LaunchError(executable, "Executable not found")

    inspect_port = config.inspect_port or _free_port()
    cdp_port = config.remote_debugging_port or _free_port()
    cmd = [
        str(executable),
        f"--inspect={LOOPBACK_HOST}:{inspect_port}",
        f"--remote-debugging-port={cdp_port}",
        *config.launch_args,
        *args,
    ]
    process_env = os.environ.copy()
    process_env[config.testing_env_var] = config.testing_env_value
    process_env.update(env or {})

    logger.info("Launching Electron app: %s", " ".join(cmd))
    try:
        process = subprocess.Popen(cmd, env=process_env, cwd=cwd)
    except OSError as exc:
        raise LaunchError(executable, f"Cannot start process ({exc})") from exc

    app = ElectronApp(process, config)
    try:
        deadline = time.monotonic() + config.launch_timeout
        base = f"http://{LOOPBACK_HOST}"
        inspector_url = _wait_for_endpoint(
            process, f"{base}:{inspect_port}/json/list", _select_node_target, deadline, executable
        )
        _wait_for_endpoint(
            process, f"{base}:{cdp_port}/json/version", _select_browser_target, deadline, executable
        )

        app._inspector = InspectorSession(inspector_url, open_timeout=config.launch_timeout)

        from playwright.sync_api import sync_playwright

        app._playwright = sync_playwright().start()
        app._browser = app._playwright.chromium.connect_over_cdp(
            f"{base}:{cdp_port}", timeout=config.launch_timeout * 1000
        )
    except BaseException:
        app.close()
        raise

    logger.info("Electron app running: pid=%s inspector=%s cdp=%s", process.pid, inspect_port, cdp_port)
    return app


def launch_app(info: AppBundleInfo, *args: str, **kwargs: Any) -> ElectronApp:
    """Launch the executable of a parsed build."""
    return launch_electron(info.executable, args, **kwargs)


@contextlib.contextmanager
def launch_electron_app(
    executable: Path | str,
    args: Sequence[str] = (),
    **kwargs: Any,
) -> Iterator[ElectronApp]:
    """``launch_electron`` that always closes the app on exit, pass or fail."""
    app = launch_electron(executable, args, **kwargs)
    try:
        yield app
    finally:
        app.close()
