"""electronqa engine -- drive and observe a running Electron app.

- bridge: run menu and IPC operations inside the main or a renderer process
- polling: wait until a main-process probe becomes true
- launcher: start an app and attach to its main process and windows
- protocols: the driver contract the bridge and polling depend on

The launcher imports Playwright and websockets lazily, so the bridge and the
synchronizer work against any object honoring the protocols.
"""

from electronqa.engine.bridge import (
    BridgeOp,
    BridgeRequest,
    call_main,
    call_window,
    click_menu_item_by_id,
    evaluate_in_main,
    get_menu_item_attribute,
    ipc_main_emit,
    ipc_main_invoke_first_listener,
    ipc_main_listener_count,
    ipc_renderer_invoke,
    ipc_renderer_send,
    menu_item_exists,
    window_count,
)
from electronqa.engine.launcher import ElectronApp, launch_app, launch_electron, launch_electron_app
from electronqa.engine.polling import (
    RetryPolicy,
    wait_for_condition,
    wait_for_menu_item,
    wait_for_window_count,
)
from electronqa.engine.protocols import ApplicationHandle, MainProcessContext, WindowContext

__all__ = [
    "ApplicationHandle",
    "BridgeOp",
    "BridgeRequest",
    "ElectronApp",
    "MainProcessContext",
    "RetryPolicy",
    "WindowContext",
    "call_main",
    "call_window",
    "click_menu_item_by_id",
    "evaluate_in_main",
    "get_menu_item_attribute",
    "ipc_main_emit",
    "ipc_main_invoke_first_listener",
    "ipc_main_listener_count",
    "ipc_renderer_invoke",
    "ipc_renderer_send",
    "launch_app",
    "launch_electron",
    "launch_electron_app",
    "menu_item_exists",
    "wait_for_condition",
    "wait_for_menu_item",
    "wait_for_window_count",
    "window_count",
]
