"""Value-state markers and the equality gate shared by every container.

A container is always in one of three states:

- UNDETERMINED: nothing has been established yet.
- ABSENT (``None``): the value was looked for and found empty.
- anything else: a present value.
"""

from __future__ import annotations

from typing import Any


class _Undetermined:
    """Singleton marker for "no value has ever been set"."""

    __slots__ = ()
    _instance: _Undetermined | None = None

    def __new__(cls) -> _Undetermined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNDETERMINED"

    def __reduce__(self):
        return (_Undetermined, ())

    def __copy__(self) -> _Undetermined:
        return self

    def __deepcopy__(self, memo) -> _Undetermined:
        return self


UNDETERMINED: Any = _Undetermined()
ABSENT = None


def is_equal(a: object, b: object) -> bool:
    """Structural equality used to gate emits.

    Values of different types are never equal, so ``1``, ``1.0`` and
    ``True`` stay distinct, also inside dicts, lists and tuples. NaN equals
    NaN. UNDETERMINED only equals itself. Other types fall back to ``==``;
    comparisons that raise count as different.
    """
    if a is b:
        return True
    if type(a) is not type(b):
        return False
    if isinstance(a, float):
        return a == b or (a != a and b != b)
    if isinstance(a, dict):
        return a.keys() == b.keys() and all(is_equal(a[k], b[k]) for k in a)
    if isinstance(a, (list, tuple)):
        return len(a) == len(b) and all(is_equal(x, y) for x, y in zip(a, b))
    try:
        return bool(a == b)
    except Exception:
        return False
