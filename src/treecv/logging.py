"""Opt-in loguru output for treecv.

treecv records are disabled at import. `enable_logging()` turns them on and
adds one stderr handler; the returned `LoggingHandle` removes that handler
again, and the last handle to go also disables the package.

Records carry their structured fields as loguru extras:

- DEBUG "Decision tree built": one per trained tree.
- PROGRESS "Fold scored": one per cross-validation fold.
- PROGRESS "Hyperparameters validated": one per cross-validated set.

Note:
    Importing this module removes loguru's default handler (ID 0) so that
    `enable_logging()` does not print every record twice.
"""

from __future__ import annotations

import contextlib
import sys
import threading
import warnings
from typing import TYPE_CHECKING, ClassVar, Final, Literal

from loguru import logger

if TYPE_CHECKING:
    from types import TracebackType

    from loguru import Record

PACKAGE_NAME: Final[str] = __name__.split(".")[0]

with contextlib.suppress(ValueError):
    logger.remove(0)

# Sits between INFO (20) and WARNING (30).
PROGRESS_LEVEL: Final[str] = "PROGRESS"
PROGRESS_LEVEL_NUMBER: Final[int] = 25

_FORMAT: Final[str] = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "  # noqa: RUF027 - loguru format string
    "<cyan>{function}</cyan> - <level>{message}</level> {extra}"
)


def _register_progress_level() -> None:
    """Add the PROGRESS level to loguru, or warn if it exists with another number."""
    try:
        existing_level = logger.level(PROGRESS_LEVEL)
    except ValueError:
        logger.level(PROGRESS_LEVEL, no=PROGRESS_LEVEL_NUMBER, icon="⏳")
        return
    if existing_level.no != PROGRESS_LEVEL_NUMBER:
        warnings.warn(
            f"PROGRESS level already registered with numeric value {existing_level.no},"
            f" expected {PROGRESS_LEVEL_NUMBER}",
            stacklevel=2,
        )


_register_progress_level()

type LogLevel = Literal["TRACE", "DEBUG", "INFO", "PROGRESS", "WARNING", "ERROR", "CRITICAL"]


class LoggingHandle:
    """Owner of one stderr handler added by `enable_logging`.

    Handles are independent: disabling one removes only its own handler.
    Usable as a context manager.

    Examples:
        >>> with enable_logging(level="DEBUG"):  # doctest: +SKIP
        ...     CrossValidator(dataset).validate_depths([1, 2, 3])
    """

    _active_ids: ClassVar[set[int]] = set()
    _lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(self, handler_id: int) -> None:
        """Register `handler_id` as active.

        Args:
            handler_id (int): The id returned by `logger.add`.
        """
        self.handler_id: int | None = handler_id
        with LoggingHandle._lock:
            LoggingHandle._active_ids.add(handler_id)

    def disable(self) -> None:
        """Remove this handle's handler; calling it again does nothing."""
        with LoggingHandle._lock:
            if self.handler_id is None:
                return
            LoggingHandle._active_ids.discard(self.handler_id)
            with contextlib.suppress(ValueError):
                logger.remove(self.handler_id)
            self.handler_id = None
            if not LoggingHandle._active_ids:
                logger.disable(PACKAGE_NAME)

    def __enter__(self) -> LoggingHandle:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.disable()

    @classmethod
    def get_active_handle_count(cls) -> int:
        """Return how many handles have not been disabled yet.

        Returns:
            int: Number of active handles.
        """
        with cls._lock:
            return len(cls._active_ids)


def enable_logging(*, level: LogLevel = PROGRESS_LEVEL) -> LoggingHandle:
    """Print treecv records at or above `level` to stderr.

    Args:
        level (LogLevel): Minimum level shown. Defaults to "PROGRESS", which
            reports fold scores and validated hyperparameter sets; "DEBUG" adds
            one record per built tree.

    Returns:
        LoggingHandle: Handle that removes the handler again.
    """
    logger.enable(PACKAGE_NAME)
    handler_id = logger.add(sys.stderr, level=level, filter=_is_treecv_record, format=_FORMAT)
    return LoggingHandle(handler_id)


def _is_treecv_record(record: Record) -> bool:
    name = record["name"]
    return name is not None and name.startswith(PACKAGE_NAME)
