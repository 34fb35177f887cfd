"""Emission — the awaitable result of one emit().

emit() itself is synchronous: the in-memory value is updated and every
listener is dispatched before it returns. Asynchronous side effects
(async listeners, store writes) run as tasks on the running loop. The
Emission collects them so a caller can ``await`` joint completion, or drop
it and let them run in the background.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Awaitable, Callable

# Strong references to in-flight tasks so ignored emissions are not collected.
_background: set[asyncio.Future] = set()


def spawn(
    awaitable: Awaitable, on_error: Callable[[BaseException], None]
) -> asyncio.Future | None:
    """Run awaitable as a task on the running loop.

    Failures go to on_error instead of the loop's exception handler. Returns
    None when no loop is running; a coroutine is closed in that case.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        if inspect.iscoroutine(awaitable):
            awaitable.close()
        return None

    future = asyncio.ensure_future(awaitable)
    _background.add(future)

    def _done(f: asyncio.Future) -> None:
        _background.discard(f)
        if f.cancelled():
            return
        exc = f.exception()
        if exc is not None:
            on_error(exc)

    future.add_done_callback(_done)
    return future


async def _settle(futures: list[asyncio.Future]) -> None:
    if futures:
        await asyncio.gather(*futures, return_exceptions=True)


class Emission:
    """Joint-completion handle for the work triggered by one emit."""

    __slots__ = ("value", "accepted", "_futures")

    def __init__(self, value: object, accepted: bool = True) -> None:
        self.value = value
        self.accepted = accepted
        self._futures: list[asyncio.Future] = []

    @property
    def done(self) -> bool:
        """True once every task started by this emit has settled."""
        return all(f.done() for f in self._futures)

    def add(self, future: asyncio.Future | None) -> None:
        if future is not None:
            self._futures.append(future)

    def merge(self, other: Emission) -> None:
        self._futures.extend(other._futures)

    def __await__(self):
        yield from _settle(self._futures).__await__()
        return self.value

    def __repr__(self) -> str:
        state = "accepted" if self.accepted else "suppressed"
        return f"Emission({self.value!r}, {state}, pending={not self.done})"
