"""Simulation logging — an append-only event log shared by every actor.

Every tick of the simulation produces a status line: an allocation was
split, a block was reclaimed, the inspector dumped both collections.
This module collects those lines the way ``dmesg`` collects kernel
messages:

- **LogLevel** — severity levels ordered for filtering (DEBUG < ERROR).
- **LogEntry** — a single structured record (level, message, source).
- **Logger** — an append-only log with filtering, clearing, and an
  optional *sink* that receives each formatted line as it is written
  (the console, in the running program).

Four actor threads write to the same logger at once, so every access to
the entry buffer happens under an internal lock.  The sink is called
outside that lock so a slow console never stalls another actor's log
call.
"""

import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum


class LogLevel(IntEnum):
    """Severity levels for log entries.

    Using IntEnum means levels compare with ``<`` / ``>`` naturally,
    which makes minimum-level filtering trivial.
    """

    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3


@dataclass(frozen=True)
class LogEntry:
    """A single structured log record.

    Attributes:
        level: The severity of this event.
        message: A human-readable description of what happened.
        source: The component that generated the event (e.g. "allocator").

    """

    level: LogLevel
    message: str
    source: str

    def __str__(self) -> str:
        """Format as ``[LEVEL] source: message``."""
        return f"[{self.level.name}] {self.source}: {self.message}"


class Logger:
    """Thread-safe append-only log buffer with filtering.

    The logger collects ``LogEntry`` records and provides simple
    querying by level and/or source.  Entries below ``min_level`` are
    neither stored nor forwarded to the sink.
    """

    def __init__(
        self,
        *,
        sink: Callable[[str], None] | None = None,
        min_level: LogLevel = LogLevel.DEBUG,
    ) -> None:
        """Create an empty logger.

        Args:
            sink: Optional callable that receives each formatted entry.
            min_level: Entries below this level are dropped.

        """
        self._entries: list[LogEntry] = []
        self._lock = threading.Lock()
        self._sink = sink
        self._min_level = min_level

    @property
    def entries(self) -> list[LogEntry]:
        """Return all log entries in chronological order."""
        with self._lock:
            return list(self._entries)

    def log(self, level: LogLevel, message: str, *, source: str) -> None:
        """Append a new entry to the log.

        Args:
            level: Severity of the event.
            message: Human-readable event description.
            source: Component that generated the event.

        """
        if level < self._min_level:
            return
        entry = LogEntry(level=level, message=message, source=source)
        with self._lock:
            self._entries.append(entry)
        if self._sink is not None:
            self._sink(str(entry))

    def debug(self, message: str, *, source: str) -> None:
        """Log at DEBUG level."""
        self.log(LogLevel.DEBUG, message, source=source)

    def info(self, message: str, *, source: str) -> None:
        """Log at INFO level."""
        self.log(LogLevel.INFO, message, source=source)

    def warning(self, message: str, *, source: str) -> None:
        """Log at WARNING level."""
        self.log(LogLevel.WARNING, message, source=source)

    def error(self, message: str, *, source: str) -> None:
        """Log at ERROR level."""
        self.log(LogLevel.ERROR, message, source=source)

    def filter(
        self,
        *,
        min_level: LogLevel | None = None,
        source: str | None = None,
    ) -> list[LogEntry]:
        """Return entries matching the given criteria.

        Args:
            min_level: If set, only return entries at or above this level.
            source: If set, only return entries from this source.

        Returns:
            A filtered list of log entries.

        """
        result = self.entries
        if min_level is not None:
            result = [e for e in result if e.level >= min_level]
        if source is not None:
            result = [e for e in result if e.source == source]
        return result

    def clear(self) -> None:
        """Remove all log entries."""
        with self._lock:
            self._entries.clear()
