"""electronqa Polling Synchronizer -- wait until a main-process probe is true.

The framework does not publish state changes (a menu item appearing, a
window opening) to an outside driver, so the only way to wait for them is to
re-evaluate a predicate. ``wait_for_condition`` does that on a fixed interval.

There is no built-in timeout. Bound a wait with ``RetryPolicy(deadline=...)``
or a ``threading.Event`` passed as *cancel*, or rely on the test runner's own
timeout.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
import time
from typing import Callable

from electronqa.engine.bridge import BridgeOp, BridgeRequest, call_main
from electronqa.engine.protocols import MainProcessContext
from electronqa.errors import WaitCancelledError, WaitTimeoutError
from electronqa.models import DEFAULT_POLL_INTERVAL

logger = logging.getLogger("electronqa.engine.polling")

_WINDOW_COUNT_AT_LEAST = "({ BrowserWindow }, count) => BrowserWindow.getAllWindows().length >= count"


@dataclasses.dataclass(frozen=True)
class RetryPolicy:
    """Fixed-interval retry with an optional caller-supplied deadline."""

    interval: float = DEFAULT_POLL_INTERVAL  # seconds between evaluations
    deadline: float | None = None  # seconds; None waits forever

    def __post_init__(self) -> None:
        if self.interval <= 0:
            raise ValueError(f"interval must be positive, got {self.interval!r}")
        if self.deadline is not None and self.deadline < 0:
            raise ValueError(f"deadline must not be negative, got {self.deadline!r}")


Probe = BridgeRequest | str


def wait_for_condition(
    app: MainProcessContext,
    probe: Probe,
    *,
    policy: RetryPolicy | None = None,
    cancel: threading.Event | None = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> int:
    """Evaluate *probe* in the main process until it returns a truthy value.

    Args:
        app: Main-process context to evaluate in.
        probe: A ``BridgeRequest`` for a main-process operation, or the source
            of a JavaScript function ``(electron, arg) => boolean``.
        policy: Interval and optional deadline. Defaults to the app's
            ``poll_interval`` when it has one (an ``ElectronApp`` takes it from
            its config), else 100 ms; no deadline.
        cancel: Checked before every evaluation; set it to abandon the wait.
        sleep: Injected for tests.
        clock: Injected for tests.

    Returns:
        The number of evaluations performed.

    Raises:
        WaitCancelledError: *cancel* was set.
        WaitTimeoutError: the policy deadline passed.
        BridgeError: the probe itself failed. Never retried.
    """
    policy = policy or RetryPolicy(interval=getattr(app, "poll_interval", DEFAULT_POLL_INTERVAL))
    request = probe if isinstance(probe, BridgeRequest) else BridgeRequest(BridgeOp.FUNCTION, {"source": probe})
    started = clock()
    attempts = 0

    while True:
        if cancel is not None and cancel.is_set():
            raise WaitCancelledError(attempts)

        attempts += 1
        if call_main(app, request):
            logger.debug("Condition %s met after %d evaluation(s)", request.op.value, attempts)
            return attempts

        if policy.deadline is not None:
            elapsed = clock() - started
            if elapsed >= policy.deadline:
                raise WaitTimeoutError(attempts, elapsed)
        sleep(policy.interval)


def wait_for_menu_item(app: MainProcessContext, menu_id: str, **kwargs) -> int:
    """Wait until the application menu contains an item with *menu_id*."""
    return wait_for_condition(app, BridgeRequest(BridgeOp.MENU_ITEM_EXISTS, {"id": menu_id}), **kwargs)


def wait_for_window_count(app: MainProcessContext, count: int, **kwargs) -> int:
    """Wait until the application has at least *count* windows open."""
    return wait_for_condition(
        app,
        BridgeRequest(BridgeOp.FUNCTION, {"source": _WINDOW_COUNT_AT_LEAST, "arg": count}),
        **kwargs,
    )
