"""Implicit cancellation and deadline propagation for service calls.

A :class:`CancellationToken` is installed in a :class:`ContextVar` by
:func:`cancellation_scope`.  Service code never receives the token as a
parameter; it calls :func:`raise_if_cancelled` at its checkpoints instead.
When no scope is active the checkpoints are no-ops.

Usage::

    with cancellation_scope(timeout=5.0) as token:
        service.transition(tenant_id, LifecycleEvent.SUSPEND)

    # from another thread
    token.cancel()
"""

from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING, Optional

from domain.exceptions import OperationCancelledError

if TYPE_CHECKING:
    from collections.abc import Iterator


class CancellationToken:
    """Thread-safe cancellation flag with an optional monotonic deadline."""

    def __init__(self, timeout: Optional[float] = None) -> None:
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def raise_if_cancelled(self, operation: str) -> None:
        if self.cancelled:
            raise OperationCancelledError(operation=operation)


_current_token: ContextVar[Optional[CancellationToken]] = ContextVar(
    "cancellation_token", default=None
)


@contextmanager
def cancellation_scope(
    timeout: Optional[float] = None,
    token: Optional[CancellationToken] = None,
) -> Iterator[CancellationToken]:
    """Install a token for the duration of the ``with`` block.

    Pass an existing ``token`` to cancel from elsewhere; otherwise a new
    one is created with the given ``timeout`` in seconds.
    """
    active = token or CancellationToken(timeout=timeout)
    reset_token = _current_token.set(active)
    try:
        yield active
    finally:
        _current_token.reset(reset_token)


def raise_if_cancelled(operation: str) -> None:
    token = _current_token.get()
    if token is not None:
        token.raise_if_cancelled(operation)
