"""Actors — periodic background threads that drive the simulation.

An **actor** is an OS thread running the simplest possible loop::

    while not shutting down:
        do one unit of work
        sleep a fixed interval

Four actors share one memory region: the allocator, the reclaimer, the
aging clock, and the inspector.  They never talk to each other; all
coordination happens through the region's lock.  There is no queue and
no hand-off: an actor that finds nothing to do simply waits for its
next tick.

Actor lifecycle::

    NEW → RUNNING → STOPPED
      ↘      ↘
       FAILED ←

Shutdown:
    Every actor shares one ``threading.Event``.  It is checked at the
    top of each loop and doubles as the sleep (``event.wait(interval)``),
    so setting it wakes sleeping actors immediately.

Failures:
    If a unit of work raises (an ``IntegrityError``, say), the actor
    logs it, records it, moves to FAILED, and sets the shared shutdown
    event so the rest of the simulation stops too.  The simulator
    re-raises the recorded error to its caller.
"""

import threading
from collections.abc import Callable
from enum import StrEnum

from py_memsim.logging import Logger


class ActorStartupError(RuntimeError):
    """Raise when an actor thread cannot be launched."""

    def __init__(self, message: str, *, actor: str, critical: bool) -> None:
        """Create the error.

        Args:
            message: Diagnostic text.
            actor: Name of the actor that failed to start.
            critical: Whether the simulation can run without it.

        """
        super().__init__(message)
        self.actor = actor
        self.critical = critical


class ActorState(StrEnum):
    """Lifecycle states of an actor."""

    NEW = "new"
    RUNNING = "running"
    STOPPED = "stopped"
    FAILED = "failed"


class Actor:
    """A named thread that repeats one unit of work at a fixed interval."""

    def __init__(
        self,
        *,
        name: str,
        work: Callable[[], object],
        interval: float,
        stop_event: threading.Event,
        logger: Logger | None = None,
        critical: bool = True,
    ) -> None:
        """Create an actor in the NEW state.

        Args:
            name: Human-readable label (e.g. "allocator").
            work: Callable performing one unit of work.
            interval: Seconds to wait between units of work.
            stop_event: Shared shutdown signal.
            logger: Optional logger for lifecycle events and failures.
            critical: Whether a startup failure should stop the simulation.

        Raises:
            ValueError: If the interval is not positive.

        """
        if interval <= 0:
            msg = f"Interval must be positive, got {interval}"
            raise ValueError(msg)
        self._name = name
        self._work = work
        self._interval = interval
        self._stop_event = stop_event
        self._logger = logger
        self._critical = critical
        self._state = ActorState.NEW
        self._ticks = 0
        self._error: BaseException | None = None
        self._thread: threading.Thread | None = None

    @property
    def name(self) -> str:
        """Return the actor name."""
        return self._name

    @property
    def interval(self) -> float:
        """Return the seconds between units of work."""
        return self._interval

    @property
    def critical(self) -> bool:
        """Return whether the simulation requires this actor."""
        return self._critical

    @property
    def state(self) -> ActorState:
        """Return the current actor state."""
        return self._state

    @property
    def ticks(self) -> int:
        """Return how many units of work have completed."""
        return self._ticks

    @property
    def error(self) -> BaseException | None:
        """Return the exception that stopped the actor, if any."""
        return self._error

    def is_alive(self) -> bool:
        """Return True while the underlying thread is running."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Launch the actor's thread.

        Raises:
            RuntimeError: If the actor is not in the NEW state.
            ActorStartupError: If the thread cannot be started.

        """
        if self._state is not ActorState.NEW:
            msg = f"Cannot start actor {self._name!r}: it is {self._state}, expected new"
            raise RuntimeError(msg)
        thread = threading.Thread(target=self._run, name=f"py-memsim-{self._name}", daemon=True)
        # RUNNING before start() so a failing first tick is not overwritten
        self._state = ActorState.RUNNING
        try:
            thread.start()
        except RuntimeError as e:
            self._state = ActorState.FAILED
            msg = f"Cannot start actor {self._name!r}: {e}"
            raise ActorStartupError(msg, actor=self._name, critical=self._critical) from e
        self._thread = thread
        self._log_debug(f"Started (every {self._interval:g}s)")

    def join(self, timeout: float | None = None) -> None:
        """Wait for the thread to finish after the stop event is set.

        Args:
            timeout: Maximum seconds to wait.

        """
        if self._thread is not None:
            self._thread.join(timeout)
        if self._state is ActorState.RUNNING and not self.is_alive():
            self._state = ActorState.STOPPED

    def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                self._work()
            except Exception as e:  # noqa: BLE001
                self._fail(e)
                return
            self._ticks += 1
            self._stop_event.wait(self._interval)

    def _fail(self, error: Exception) -> None:
        self._error = error
        self._state = ActorState.FAILED
        if self._logger is not None:
            self._logger.error(f"{type(error).__name__}: {error}", source=self._name)
        self._stop_event.set()

    def _log_debug(self, message: str) -> None:
        if self._logger is not None:
            self._logger.debug(message, source=self._name)

    def __repr__(self) -> str:
        """Return a debug-friendly representation."""
        return f"Actor(name={self._name!r}, interval={self._interval:g}, state={self._state})"
