"""Store adapters — the async key-value boundary behind StoredMemoryValue.

Any object with async get/set/remove/clear keyed by strings satisfies
StoreAdapter. Two adapters ship here:

- MemoryStore: process-local, values kept as JSON text.
- JsonFileStore: one JSON file per key in a directory.

A process-wide default store is used by containers built without an explicit
``store=``. Call set_default_store() once at startup (or in test setup) to
replace it; containers already built keep the store they resolved.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Protocol, runtime_checkable
from urllib.parse import quote, unquote

from memval.errors import ReadError, WriteError


@runtime_checkable
class StoreAdapter(Protocol):
    """Async key-value store. get() returns None for missing keys."""

    async def get(self, key: str) -> Any: ...

    async def set(self, key: str, value: Any) -> None: ...

    async def remove(self, key: str) -> None: ...

    async def clear(self) -> None: ...


class MemoryStore:
    """In-process store.

    Values round-trip through JSON, so the store never shares mutable objects
    with its callers and anything JSON cannot encode is rejected on set().
    """

    def __init__(self, name: str = "memval", store_name: str = "keyvaluepairs") -> None:
        self.name = name
        self.store_name = store_name
        self._items: dict[str, str] = {}

    async def get(self, key: str) -> Any:
        raw = self._items.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as exc:
            raise ReadError(key) from exc

    async def set(self, key: str, value: Any) -> None:
        try:
            self._items[key] = json.dumps(value)
        except (TypeError, ValueError) as exc:
            raise WriteError(key, "value is not serializable") from exc

    async def remove(self, key: str) -> None:
        self._items.pop(key, None)

    async def clear(self) -> None:
        self._items.clear()

    def keys(self) -> list[str]:
        return list(self._items)

    def __repr__(self) -> str:
        return f"MemoryStore({self.name!r}, {self.store_name!r}, keys={len(self._items)})"


class JsonFileStore:
    """Directory-backed store. File I/O runs in a worker thread.

    The directory should belong to the store. clear() only deletes files
    whose names are encoded keys, so ``notes.json`` would go but
    ``my notes.json`` stays.
    """

    suffix = ".json"

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / (quote(key, safe="") + self.suffix)

    async def get(self, key: str) -> Any:
        path = self._path(key)
        try:
            return await asyncio.to_thread(_read_json, path)
        except (OSError, ValueError) as exc:
            raise ReadError(key) from exc

    async def set(self, key: str, value: Any) -> None:
        try:
            text = json.dumps(value)
        except (TypeError, ValueError) as exc:
            raise WriteError(key, "value is not serializable") from exc
        try:
            await asyncio.to_thread(_write_text, self._path(key), text)
        except OSError as exc:
            raise WriteError(key) from exc

    async def remove(self, key: str) -> None:
        try:
            await asyncio.to_thread(self._path(key).unlink, missing_ok=True)
        except OSError as exc:
            raise WriteError(key, "could not remove stored value") from exc

    async def clear(self) -> None:
        try:
            await asyncio.to_thread(self._clear_sync)
        except OSError as exc:
            raise WriteError("*", "could not clear store") from exc

    def _clear_sync(self) -> None:
        if not self.directory.is_dir():
            return
        for path in self.directory.glob("*" + self.suffix):
            stem = path.name[: -len(self.suffix)]
            if quote(unquote(stem), safe="") != stem:
                continue  # not written by this store
            path.unlink(missing_ok=True)

    def __repr__(self) -> str:
        return f"JsonFileStore({str(self.directory)!r})"


def _read_json(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    return json.loads(text)


def _write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_text(text, encoding="utf-8")
    tmp.replace(path)


def create_instance(name: str = "memval", store_name: str = "keyvaluepairs") -> MemoryStore:
    """A fresh, isolated MemoryStore."""
    return MemoryStore(name=name, store_name=store_name)


# ─── Default store ───────────────────────────────────────────────────────────
_default_store: StoreAdapter = MemoryStore()


def get_default_store() -> StoreAdapter:
    return _default_store


def set_default_store(store: StoreAdapter) -> None:
    """Replace the store used by containers constructed from now on.

    Call before building containers:
        memval.set_default_store(JsonFileStore("/var/lib/myapp/state"))
    """
    global _default_store
    if not isinstance(store, StoreAdapter):
        raise TypeError(f"{store!r} does not implement get/set/remove/clear")
    _default_store = store
