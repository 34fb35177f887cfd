"""StoredMemoryValue — a MemoryValue kept in sync with a key-value store.

On construction the container reads its key once (hydration) and emits what
it finds without writing it back. Every accepted emit afterwards writes
through to the store before listeners are notified; the write itself runs in
the background and its failure is only reported.

Write policy for an emitted value:

    UNDETERMINED  -> store.remove(key)
    ABSENT (None) -> store.set(key, None)
    anything else -> store.set(key, value)

Hydration and application emits are not coordinated. If the hydration read
resolves after an emit, the stored value replaces the emitted one in memory
(the store still holds the emitted one). Wait for ``hydrated()`` or
``is_determined`` before a first write that must not be lost.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Generic, TypeVar

from memval._sentinel import ABSENT, UNDETERMINED, is_equal
from memval.emission import Emission, spawn
from memval.errors import MemoryValueError, ReadError, WriteError
from memval.log import report
from memval.storage import StoreAdapter, get_default_store
from memval.value import Listener, MemoryValue, Unsubscribe

T = TypeVar("T")


class StoredMemoryValue(Generic[T]):
    """A persisted observable value bound to one storage key."""

    __slots__ = ("_key", "_store", "_value", "_hydrate_pending", "_hydration", "_last_write")

    def __init__(
        self,
        storage_key: str,
        hydrate: bool = True,
        initial: T = UNDETERMINED,
        *,
        store: StoreAdapter | None = None,
    ) -> None:
        self._key = storage_key
        self._store = store if store is not None else get_default_store()
        self._value: MemoryValue[Any] = MemoryValue(initial)
        self._hydrate_pending = hydrate
        self._hydration: asyncio.Future | None = None
        self._last_write: asyncio.Future | None = None
        self._start_hydration()

    @property
    def storage_key(self) -> str:
        return self._key

    @property
    def store(self) -> StoreAdapter:
        return self._store

    @property
    def current(self) -> T | None:
        return self._value.current

    @property
    def is_determined(self) -> bool:
        return self._value.is_determined

    @property
    def listener_count(self) -> int:
        return self._value.listener_count

    def subscribe(self, listener: Listener, emit: bool = True) -> Unsubscribe:
        unsubscribe = self._value.subscribe(listener, emit)
        self._start_hydration()
        return unsubscribe

    def unsubscribe(self, listener: Listener) -> None:
        self._value.unsubscribe(listener)

    def emit(self, value: T | None, persist: bool = True, new_only: bool = True) -> Emission:
        """Write value through to the store and notify listeners.

        With persist=False only the in-memory value changes.
        """
        if new_only and is_equal(value, self._value.current):
            return Emission(self._value.current, accepted=False)

        write = self._write(value) if persist else None
        emission = self._value.emit(value, False, new_only)
        emission.add(write)
        # After the write is queued, so a late hydration reads it back.
        self._start_hydration()
        return emission

    def update(self, fn: Callable[[T | None], T | None]) -> Emission:
        return self.emit(fn(self._value.current))

    async def hydrated(self) -> T | None:
        """Wait for hydration and its notifications, then return current."""
        self._start_hydration()
        if self._hydration is not None:
            await asyncio.gather(self._hydration, return_exceptions=True)
        return self._value.current

    # --- storage ---

    def _start_hydration(self) -> None:
        """Start the one hydration read, once a loop is available."""
        if not self._hydrate_pending:
            return
        future = spawn(self._read(), lambda exc: report(_as_error(ReadError, self._key, exc)))
        if future is None:
            return  # no running loop yet
        self._hydrate_pending = False
        self._hydration = future

    async def _read(self) -> None:
        try:
            stored = await self._store.get(self._key)
        except Exception as exc:
            report(_as_error(ReadError, self._key, exc))
            return
        await self.emit(ABSENT if stored is None else stored, persist=False)

    def _write(self, value: Any) -> asyncio.Future | None:
        future = spawn(
            self._store_value(value, self._last_write),
            lambda exc: report(_as_error(WriteError, self._key, exc)),
        )
        if future is None:
            report(WriteError(self._key, "no running event loop to write"))
            return None
        self._last_write = future
        return future

    async def _store_value(self, value: Any, previous: asyncio.Future | None) -> None:
        # Writes from one container land in emit order.
        if previous is not None and not previous.done():
            await asyncio.gather(previous, return_exceptions=True)
        if value is UNDETERMINED:
            await self._store.remove(self._key)
        else:
            await self._store.set(self._key, value)

    def __repr__(self) -> str:
        return f"StoredMemoryValue({self._key!r}, {self._value.current!r})"


def _as_error(cls: type[MemoryValueError], key: str, exc: BaseException) -> MemoryValueError:
    if isinstance(exc, cls):
        return exc
    error = cls(key)
    error.__cause__ = exc
    return error
