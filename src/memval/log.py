"""Warning channel for recoverable failures.

Adapter and listener failures never raise to the caller; they are logged
here instead. Turning the channel off silences the output and nothing else.
"""

import logging

from memval.errors import MemoryValueError

logger = logging.getLogger("memval")

_warnings_disabled = False


def disable_warnings() -> None:
    global _warnings_disabled
    _warnings_disabled = True


def enable_warnings() -> None:
    global _warnings_disabled
    _warnings_disabled = False


def warnings_enabled() -> bool:
    return not _warnings_disabled


def warn(message: str, *args, exc_info=None) -> None:
    """Log a warning prefixed with ``[memval]`` unless warnings are disabled."""
    if _warnings_disabled:
        return
    logger.warning("[memval] " + message, *args, exc_info=exc_info)


def report(error: MemoryValueError) -> None:
    """Log a recovered failure, with its cause as the traceback."""
    warn("%s", error, exc_info=error)
