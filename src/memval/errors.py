"""Recoverable failures reported on the warning channel.

None of these escape ``emit`` or ``subscribe``: the containers catch them at
the boundary and hand them to :func:`memval.log.report`.
"""

from __future__ import annotations


class MemoryValueError(Exception):
    """Base class for memval failures."""


class ReadError(MemoryValueError):
    """A store read (hydration) failed."""

    def __init__(self, key: str, message: str = "could not read stored value") -> None:
        super().__init__(f"{message} for key {key!r}")
        self.key = key


class WriteError(MemoryValueError):
    """A store write or removal failed."""

    def __init__(self, key: str, message: str = "could not write stored value") -> None:
        super().__init__(f"{message} for key {key!r}")
        self.key = key


class ListenerError(MemoryValueError):
    """A subscribed listener raised or its awaitable failed."""

    def __init__(self, listener, message: str = "listener failed") -> None:
        name = getattr(listener, "__qualname__", None) or repr(listener)
        super().__init__(f"{message}: {name}")
        self.listener = listener
