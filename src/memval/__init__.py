"""memval: observable values with optional async key-value persistence."""

from importlib.metadata import version as _version

__version__ = _version("memval")

from memval._sentinel import ABSENT, UNDETERMINED, is_equal
from memval.errors import ListenerError, MemoryValueError, ReadError, WriteError
from memval.log import disable_warnings, enable_warnings, warnings_enabled
from memval.emission import Emission
from memval.value import MemoryValue
from memval.storage import (
    JsonFileStore,
    MemoryStore,
    StoreAdapter,
    create_instance,
    get_default_store,
    set_default_store,
)
from memval.stored import StoredMemoryValue
from memval.binding import Binding, Replace, Update, bind
# textual NOT auto-imported — opt-in only

__all__ = [
    "ABSENT",
    "UNDETERMINED",
    "is_equal",
    "MemoryValueError",
    "ReadError",
    "WriteError",
    "ListenerError",
    "disable_warnings",
    "enable_warnings",
    "warnings_enabled",
    "Emission",
    "MemoryValue",
    "StoreAdapter",
    "MemoryStore",
    "JsonFileStore",
    "create_instance",
    "get_default_store",
    "set_default_store",
    "StoredMemoryValue",
    "Binding",
    "Replace",
    "Update",
    "bind",
]
