"""MemoryValue — a single observable slot with an ordered listener list.

emit() is equality-gated: re-emitting a value that is structurally equal to
the current one does nothing. Accepted emits update the slot and then call
every listener in subscription order. Listeners may be plain callables or
return an awaitable; awaitables are started as tasks so slow listeners do not
hold up the rest, and the returned Emission can be awaited for all of them.

A failing listener is reported on the warning channel and the remaining
listeners still run.
"""

from __future__ import annotations

import inspect
from typing import Any, Awaitable, Callable, Generic, TypeVar, Union

from memval._sentinel import UNDETERMINED, is_equal
from memval.emission import Emission, spawn
from memval.errors import ListenerError
from memval.log import report

T = TypeVar("T")

Listener = Callable[[Any], Union[None, Awaitable[None]]]
Unsubscribe = Callable[[], None]


class _Registration:
    """One subscribe() call. Compared by identity."""

    __slots__ = ("listener",)

    def __init__(self, listener: Listener) -> None:
        self.listener = listener


class MemoryValue(Generic[T]):
    """An in-memory observable value."""

    __slots__ = ("_value", "_registrations")

    def __init__(self, initial: T = UNDETERMINED) -> None:
        self._value: Any = initial
        self._registrations: list[_Registration] = []

    @property
    def current(self) -> T:
        return self._value

    @property
    def is_determined(self) -> bool:
        return self._value is not UNDETERMINED

    @property
    def listener_count(self) -> int:
        return len(self._registrations)

    def subscribe(self, listener: Listener, emit: bool = True) -> Unsubscribe:
        """Register listener. Returns a callable that removes this registration.

        With emit=True and a determined value, the listener is called with the
        current value before this returns.
        """
        if not callable(listener):
            raise TypeError(f"listener must be callable, got {listener!r}")

        registration = _Registration(listener)
        self._registrations.append(registration)

        if emit and self._value is not UNDETERMINED:
            # Discard the Emission; failures are reported by _call.
            pending = Emission(self._value)
            self._call(registration, self._value, pending)

        def _unsubscribe() -> None:
            try:
                self._registrations.remove(registration)
            except ValueError:
                pass  # already removed

        return _unsubscribe

    def unsubscribe(self, listener: Listener) -> None:
        """Remove the first registration of listener, if any."""
        for index, registration in enumerate(self._registrations):
            if registration.listener is listener:
                del self._registrations[index]
                return

    def emit(self, value: T, persist: bool = False, new_only: bool = True) -> Emission:
        """Set the value and notify listeners.

        persist is a hint for persisted wrappers and is ignored here.
        """
        if new_only and is_equal(value, self._value):
            return Emission(self._value, accepted=False)

        self._value = value
        emission = Emission(value)
        for registration in list(self._registrations):
            # Skip listeners unsubscribed earlier in this dispatch.
            if registration not in self._registrations:
                continue
            self._call(registration, value, emission)
        return emission

    def update(self, fn: Callable[[T], T]) -> Emission:
        """Emit fn(current)."""
        return self.emit(fn(self._value))

    def _call(self, registration: _Registration, value: Any, emission: Emission) -> None:
        listener = registration.listener
        try:
            result = listener(value)
        except Exception as exc:
            _report_listener(listener, exc)
            return

        if inspect.isawaitable(result):
            future = spawn(result, lambda exc: _report_listener(listener, exc))
            if future is None:
                report(ListenerError(listener, "async listener called outside an event loop"))
            emission.add(future)

    def __repr__(self) -> str:
        return f"MemoryValue({self._value!r}, listeners={len(self._registrations)})"


def _report_listener(listener: Listener, exc: BaseException) -> None:
    error = ListenerError(listener)
    error.__cause__ = exc
    report(error)
