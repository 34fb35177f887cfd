"""Bindings — glue between a container and a UI component's lifecycle.

A Binding subscribes when the component mounts, keeps the last value it saw
as ``snapshot``, forwards every notification to a render callback, and
unsubscribes on unmount. Updates are explicit variants instead of a
callable-or-value guess:

    binding.dispatch(Replace({"foo": 1}))
    binding.dispatch(Update(lambda prev: {**prev, "foo": prev["foo"] + 1}))

Works with MemoryValue and StoredMemoryValue alike; only subscribe, emit and
current are used.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar, Union

from memval.emission import Emission
from memval.value import Unsubscribe

T = TypeVar("T")


@dataclass(frozen=True)
class Replace(Generic[T]):
    """Emit this value as-is."""

    value: T


@dataclass(frozen=True)
class Update(Generic[T]):
    """Emit fn(current)."""

    fn: Callable[[T], T]


Change = Union[Replace, Update]


class Binding(Generic[T]):
    """Mount-scoped subscription with a snapshot and an updater."""

    def __init__(self, value, on_change: Callable[[T], Any] | None = None) -> None:
        self._value = value
        self._on_change = on_change
        self._snapshot: T = value.current
        self._unsubscribe: Unsubscribe | None = None

    @property
    def mounted(self) -> bool:
        return self._unsubscribe is not None

    @property
    def snapshot(self) -> T:
        return self._snapshot

    def mount(self) -> Binding[T]:
        if self._unsubscribe is None:
            self._snapshot = self._value.current
            self._unsubscribe = self._value.subscribe(self._receive)
        return self

    def unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _receive(self, value: T) -> None:
        self._snapshot = value
        if self._on_change is not None:
            self._on_change(value)

    def dispatch(self, change: Change) -> Emission:
        if isinstance(change, Update):
            return self._value.emit(change.fn(self._value.current))
        if isinstance(change, Replace):
            return self._value.emit(change.value)
        raise TypeError(f"expected Replace or Update, got {change!r}")

    def set(self, value: T) -> Emission:
        return self.dispatch(Replace(value))

    def update(self, fn: Callable[[T], T]) -> Emission:
        return self.dispatch(Update(fn))

    def __enter__(self) -> Binding[T]:
        return self.mount()

    def __exit__(self, *exc) -> None:
        self.unmount()

    def __repr__(self) -> str:
        state = "mounted" if self.mounted else "unmounted"
        return f"Binding({self._snapshot!r}, {state})"


def bind(value, on_change: Callable[[Any], Any] | None = None) -> Binding:
    """Create and mount a Binding.

    Usage:
        binding = bind(SETTINGS, render)
        binding.update(lambda prev: {**prev, "theme": "dark"})
        binding.unmount()
    """
    return Binding(value, on_change).mount()
