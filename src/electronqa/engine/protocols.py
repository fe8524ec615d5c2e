"""Automation driver contract.

These protocols are everything the bridge and the synchronizer need from the
tool that drives the application. ``ElectronApp`` (see ``launcher``)
implements them; a Playwright ``Page`` already satisfies ``WindowContext``;
tests substitute in-memory fakes.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class MainProcessContext(Protocol):
    """Evaluates code in the privileged main process.

    *expression* is a JavaScript function source. It is called as
    ``fn(electron, arg)`` where ``electron`` is the framework module, and its
    (awaited) return value comes back by value.
    """

    def evaluate(self, expression: str, arg: Any = None) -> Any: ...


@runtime_checkable
class WindowContext(Protocol):
    """Evaluates code in one renderer process, called as ``fn(arg)``."""

    def evaluate(self, expression: str, arg: Any = None) -> Any: ...

    def title(self) -> str: ...


@runtime_checkable
class ApplicationHandle(MainProcessContext, Protocol):
    """A launched application: main-process access plus window lifecycle."""

    def first_window(self, timeout: float | None = None) -> WindowContext: ...

    def wait_for_event(self, event: str, timeout: float | None = None) -> WindowContext: ...

    def close(self) -> None: ...
