"""electronqa Cross-Process Bridge -- run narrow operations inside the app.

Each helper builds a ``BridgeRequest`` (an operation kind plus JSON-copyable
arguments), hands it to the dispatcher in the main process or in one window,
and unwraps the reply. Dispatcher failures come back as named exceptions:
``MenuItemNotFoundError``, ``NoListenerError`` or ``BridgeCallError``.

Renderer-side calls need the window created with ``nodeIntegration: true``
and ``contextIsolation: false``. The demo app does this when launched with
``CI=e2e``.
"""

from __future__ import annotations

import dataclasses
import enum
import json
import logging
from typing import Any

from electronqa.engine.dispatchers import MAIN_DISPATCHER, PROTOCOL_VERSION, RENDERER_DISPATCHER
from electronqa.engine.protocols import MainProcessContext, WindowContext
from electronqa.errors import BridgeCallError, MenuItemNotFoundError, NoListenerError

logger = logging.getLogger("electronqa.engine.bridge")


class BridgeOp(str, enum.Enum):
    """Operation kinds understood by the dispatchers."""

    # Main process
    MENU_ITEM_EXISTS = "menu.exists"
    MENU_ITEM_CLICK = "menu.click"
    MENU_ITEM_ATTRIBUTE = "menu.attribute"
    IPC_MAIN_EMIT = "ipcMain.emit"
    IPC_MAIN_LISTENER_COUNT = "ipcMain.listenerCount"
    IPC_MAIN_INVOKE_FIRST_LISTENER = "ipcMain.invokeFirstListener"
    WINDOW_COUNT = "app.windowCount"
    FUNCTION = "function"

    # Renderer process
    IPC_RENDERER_SEND = "ipcRenderer.send"
    IPC_RENDERER_INVOKE = "ipcRenderer.invoke"


MAIN_OPS = frozenset({
    BridgeOp.MENU_ITEM_EXISTS,
    BridgeOp.MENU_ITEM_CLICK,
    BridgeOp.MENU_ITEM_ATTRIBUTE,
    BridgeOp.IPC_MAIN_EMIT,
    BridgeOp.IPC_MAIN_LISTENER_COUNT,
    BridgeOp.IPC_MAIN_INVOKE_FIRST_LISTENER,
    BridgeOp.WINDOW_COUNT,
    BridgeOp.FUNCTION,
})
RENDERER_OPS = frozenset({BridgeOp.IPC_RENDERER_SEND, BridgeOp.IPC_RENDERER_INVOKE})


@dataclasses.dataclass(frozen=True)
class BridgeRequest:
    """A serializable description of one operation to run remotely."""

    op: BridgeOp
    args: dict[str, Any] = dataclasses.field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        """Encode as the versioned wire payload.

        Raises:
            TypeError: an argument is not plain JSON data. Live objects do not
                survive the process boundary.
        """
        try:
            args = json.loads(json.dumps(self.args, allow_nan=False))
        except (TypeError, ValueError) as exc:
            raise TypeError(
                f"Arguments for {self.op.value} must be JSON-serializable data: {exc}"
            ) from exc
        return {"v": PROTOCOL_VERSION, "op": self.op.value, "args": args}


# -- Transport ---------------------------------------------------------------


def decode_reply(reply: Any, request: BridgeRequest) -> Any:
    """Return the value of a dispatcher envelope or raise its error."""
    if not isinstance(reply, dict) or "ok" not in reply:
        raise BridgeCallError("protocol", f"malformed reply to {request.op.value}: {reply!r}")
    if reply["ok"]:
        return reply.get("value")

    error = reply.get("error") or {}
    kind = str(error.get("kind", "remote_error"))
    message = str(error.get("message", ""))
    if kind == "menu_item_not_found":
        raise MenuItemNotFoundError(str(error.get("id", request.args.get("id"))))
    if kind == "no_listener":
        raise NoListenerError(str(error.get("channel", request.args.get("channel"))))
    raise BridgeCallError(kind, message)


def call_main(app: MainProcessContext, request: BridgeRequest) -> Any:
    """Run *request* in the main process and return its value."""
    if request.op not in MAIN_OPS:
        raise ValueError(f"{request.op.value} does not run in the main process")
    payload = request.to_payload()
    logger.debug("main <- %s %s", request.op.value, payload["args"])
    return decode_reply(app.evaluate(MAIN_DISPATCHER, payload), request)


def call_window(window: WindowContext, request: BridgeRequest) -> Any:
    """Run *request* in the renderer process behind *window*."""
    if request.op not in RENDERER_OPS:
        raise ValueError(f"{request.op.value} does not run in a renderer process")
    payload = request.to_payload()
    logger.debug("renderer <- %s %s", request.op.value, payload["args"])
    return decode_reply(window.evaluate(RENDERER_DISPATCHER, payload), request)


# -- Menu --------------------------------------------------------------------


def click_menu_item_by_id(app: MainProcessContext, menu_id: str) -> Any:
    """Activate the application menu item *menu_id*, as a user click would.

    Raises:
        MenuItemNotFoundError: no item with that id in the current menu.
    """
    return call_main(app, BridgeRequest(BridgeOp.MENU_ITEM_CLICK, {"id": menu_id}))


def get_menu_item_attribute(app: MainProcessContext, menu_id: str, attribute: str) -> Any:
    """Return ``attribute`` (e.g. ``"label"``, ``"enabled"``) of menu item *menu_id*."""
    return call_main(
        app,
        BridgeRequest(BridgeOp.MENU_ITEM_ATTRIBUTE, {"id": menu_id, "attribute": attribute}),
    )


def menu_item_exists(app: MainProcessContext, menu_id: str) -> bool:
    return bool(call_main(app, BridgeRequest(BridgeOp.MENU_ITEM_EXISTS, {"id": menu_id})))


# -- IPC ---------------------------------------------------------------------


def ipc_renderer_send(window: WindowContext, channel: str, *args: Any) -> None:
    """Fire-and-forget ``ipcRenderer.send(channel, *args)`` from *window*."""
    call_window(
        window,
        BridgeRequest(BridgeOp.IPC_RENDERER_SEND, {"channel": channel, "args": list(args)}),
    )


def ipc_renderer_invoke(window: WindowContext, channel: str, *args: Any) -> Any:
    """``ipcRenderer.invoke(channel, *args)`` from *window*; returns the reply."""
    return call_window(
        window,
        BridgeRequest(BridgeOp.IPC_RENDERER_INVOKE, {"channel": channel, "args": list(args)}),
    )


def ipc_main_emit(app: MainProcessContext, channel: str, *args: Any) -> bool:
    """Deliver *channel* to every ``ipcMain.on`` handler as if a renderer sent it.

    Handlers receive a synthetic event followed by *args*. Returns True when at
    least one handler was registered.
    """
    return bool(
        call_main(app, BridgeRequest(BridgeOp.IPC_MAIN_EMIT, {"channel": channel, "args": list(args)}))
    )


def ipc_main_invoke_first_listener(app: MainProcessContext, channel: str, *args: Any) -> Any:
    """Call the first ``ipcMain.on`` listener for *channel* and return its result.

    Raises:
        NoListenerError: nothing listens on *channel*.
    """
    return call_main(
        app,
        BridgeRequest(BridgeOp.IPC_MAIN_INVOKE_FIRST_LISTENER, {"channel": channel, "args": list(args)}),
    )


def ipc_main_listener_count(app: MainProcessContext, channel: str) -> int:
    return int(call_main(app, BridgeRequest(BridgeOp.IPC_MAIN_LISTENER_COUNT, {"channel": channel})))


# -- Generic -----------------------------------------------------------------


def window_count(app: MainProcessContext) -> int:
    return int(call_main(app, BridgeRequest(BridgeOp.WINDOW_COUNT)))


def evaluate_in_main(app: MainProcessContext, source: str, arg: Any = None) -> Any:
    """Run a JavaScript function ``(electron, arg) => ...`` in the main process.

    Use for one-off probes the fixed operations do not cover. Only *source*
    and *arg* cross the boundary, so the function must not close over test
    state.
    """
    return call_main(app, BridgeRequest(BridgeOp.FUNCTION, {"source": source, "arg": arg}))
