"""
core/scope.py -- Bounded cancellation scopes for use-case calls.

Every use-case operation opens a scope with bounded_scope(timeout). The scope
is an anyio CancelScope nested inside the caller's own task, so it is
cancelled when the request is, and it fires on its own once the deadline
passes. Leaving the `async with` block releases it on every exit path.

Repository methods are synchronous (SQLAlchemy Core). Use cases hand them the
Scope explicitly and run them through Scope.run(), which executes the call in
a worker thread. If the deadline fires while the thread is still busy the
caller is released immediately with OperationTimeout; the repository checks
scope.check() between round trips so a late thread does not start new work.

Usage:
    async with bounded_scope(settings.operation_timeout_seconds) as scope:
        account = await scope.run(store.find_by_username, scope, "alice")
"""

from __future__ import annotations

import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from functools import partial
from typing import Any, TypeVar

import anyio
import anyio.to_thread

from core.errors import OperationTimeout

T = TypeVar("T")


class Scope:
    """Handle for one bounded use-case call. Passed to every repository method."""

    def __init__(self, deadline: float, cancel_scope: anyio.CancelScope) -> None:
        self.deadline = deadline  # time.monotonic() value
        self._cancel_scope = cancel_scope

    @property
    def expired(self) -> bool:
        return self._cancel_scope.cancel_called or time.monotonic() >= self.deadline

    def check(self) -> None:
        """Raise OperationTimeout if the scope has expired or been cancelled.

        Safe to call from worker threads -- reads only the monotonic clock and
        a flag on the cancel scope.
        """
        if self.expired:
            raise OperationTimeout()

    async def run(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run a blocking callable in a worker thread, bounded by this scope."""
        self.check()
        return await anyio.to_thread.run_sync(partial(func, *args, **kwargs), abandon_on_cancel=True)


@asynccontextmanager
async def bounded_scope(timeout: float) -> AsyncIterator[Scope]:
    """Open a Scope that expires after `timeout` seconds.

    The deadline is derived from the caller's context: an outer cancellation
    (client disconnect, server shutdown) still propagates into the scope.
    Expiry is reported as OperationTimeout rather than the bare TimeoutError
    anyio raises, so the API layer maps it to 504.
    """
    deadline = time.monotonic() + timeout
    try:
        with anyio.fail_after(timeout) as cancel_scope:
            yield Scope(deadline, cancel_scope)
    except TimeoutError as exc:
        raise OperationTimeout() from exc
