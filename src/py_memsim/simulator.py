"""The simulator — wires the region, engines, and actors together.

The simulator owns the lifecycle of one run, with an explicit state
machine::

    STOPPED  →  STARTING  →  RUNNING  →  STOPPING  →  STOPPED

Start sequence (order matters):
    1. Memory region — every engine needs it.
    2. Engines — allocator, coalescer, reclaimer, aging clock, inspector.
    3. Actors — one thread per engine, all sharing one stop event.

Stop sequence (reverse order):
    3. Actors — signal the stop event and join every thread.
    2. Engines and region are kept so the final state can be inspected.

Actor startup failures follow one rule: the allocator, reclaimer and
inspector are required, so failing to start any of them stops the
actors already running and raises ``ActorStartupError``.  The aging
clock is optional; without it reclamation still works (every block
just looks equally old), so its failure is logged as a warning.
"""

import random
import threading
from collections.abc import Callable
from enum import StrEnum
from time import monotonic

from py_memsim.actors import Actor, ActorStartupError
from py_memsim.config import SimulationConfig
from py_memsim.logging import Logger
from py_memsim.memory.aging import AgingClock
from py_memsim.memory.allocator import AllocationEngine, RequestSizer
from py_memsim.memory.coalescer import Coalescer
from py_memsim.memory.inspector import Inspector
from py_memsim.memory.reclaimer import ReclamationEngine
from py_memsim.memory.region import MemoryRegion, RegionSnapshot

_JOIN_TIMEOUT = 5.0


class SimulatorState(StrEnum):
    """Represent the lifecycle state of the simulator."""

    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"


class Simulator:
    """Run the four actors against one shared memory region."""

    def __init__(
        self,
        config: SimulationConfig | None = None,
        *,
        logger: Logger | None = None,
    ) -> None:
        """Create a stopped simulator.

        Args:
            config: Startup parameters (defaults if None).
            logger: Logger shared by every component; a fresh one if None.

        """
        self._config = config if config is not None else SimulationConfig()
        self._logger = logger if logger is not None else Logger()
        self._state = SimulatorState.STOPPED
        self._stop_event = threading.Event()
        self._boot_log: list[str] = []
        self._start_time: float | None = None
        self._region: MemoryRegion | None = None
        self._actors: list[Actor] = []

    @property
    def state(self) -> SimulatorState:
        """Return the current lifecycle state."""
        return self._state

    @property
    def config(self) -> SimulationConfig:
        """Return the startup parameters."""
        return self._config

    @property
    def logger(self) -> Logger:
        """Return the shared logger."""
        return self._logger

    @property
    def region(self) -> MemoryRegion | None:
        """Return the memory region, or None before the first start."""
        return self._region

    @property
    def actors(self) -> list[Actor]:
        """Return the actors that were started, in start order."""
        return list(self._actors)

    @property
    def uptime(self) -> float:
        """Return seconds since the last start (0.0 when never started)."""
        if self._start_time is None:
            return 0.0
        return monotonic() - self._start_time

    @property
    def failure(self) -> BaseException | None:
        """Return the first error raised by an actor, if any."""
        return next((a.error for a in self._actors if a.error is not None), None)

    def dmesg(self) -> list[str]:
        """Return the start log."""
        return list(self._boot_log)

    def start(self) -> None:
        """Transition the simulator from STOPPED → RUNNING.

        Raises:
            RuntimeError: If the simulator is not STOPPED.
            ResourceExhaustionError: If the region cannot be created.
            ActorStartupError: If a required actor cannot be started.

        """
        if self._state is not SimulatorState.STOPPED:
            msg = f"Cannot start: simulator is {self._state}, expected stopped"
            raise RuntimeError(msg)

        self._state = SimulatorState.STARTING
        self._start_time = monotonic()
        self._boot_log.clear()
        self._stop_event = threading.Event()
        self._actors = []
        cfg = self._config

        try:
            # 1. Memory region
            self._region = MemoryRegion(
                num_blocks=cfg.num_blocks,
                block_size=cfg.block_size,
                logger=self._logger,
            )
            self._boot_log.append(
                f"[OK] Memory region ({cfg.num_blocks} x {cfg.block_size} units)"
            )

            # 2. Engines
            sizer = RequestSizer(
                minimum=cfg.min_request,
                maximum=cfg.max_request,
                rng=random.Random(cfg.seed),  # noqa: S311
            )
            allocator = AllocationEngine(self._region, sizer=sizer)
            reclaimer = ReclamationEngine(self._region, coalescer=Coalescer(self._region))
            aging = AgingClock(self._region)
            inspector = Inspector(self._region)
            self._boot_log.append("[OK] Engines (allocator, reclaimer, aging, inspector)")

            # 3. Actors
            self._start_actors([
                ("allocator", allocator.tick, cfg.allocate_every, True),
                ("reclaimer", reclaimer.reclaim, cfg.reclaim_every, True),
                ("inspector", inspector.report, cfg.inspect_every, True),
                ("aging", aging.tick, cfg.age_every, False),
            ])
        except Exception:
            self._stop_event.set()
            self._join_actors()
            self._state = SimulatorState.STOPPED
            raise

        self._state = SimulatorState.RUNNING
        self._logger.info("Simulation started", source="simulator")

    def _start_actors(self, plan: list[tuple[str, Callable[[], object], float, bool]]) -> None:
        cfg = self._config
        for name, work, every, critical in plan:
            actor = Actor(
                name=name,
                work=work,
                interval=cfg.interval(every),
                stop_event=self._stop_event,
                logger=self._logger,
                critical=critical,
            )
            try:
                actor.start()
            except ActorStartupError as e:
                if e.critical:
                    self._logger.error(str(e), source="simulator")
                    raise
                self._logger.warning(f"{e}; continuing without it", source="simulator")
                self._boot_log.append(f"[WARN] Actor {name}")
                continue
            self._actors.append(actor)
            self._boot_log.append(f"[OK] Actor {name} (every {actor.interval:g}s)")

    def stop(self) -> None:
        """Transition the simulator from RUNNING → STOPPED.

        Signal every actor and join their threads in reverse start order.

        Raises:
            RuntimeError: If the simulator is not RUNNING.

        """
        if self._state is not SimulatorState.RUNNING:
            msg = f"Cannot stop: simulator is {self._state}, expected running"
            raise RuntimeError(msg)
        self._state = SimulatorState.STOPPING
        self._stop_event.set()
        self._join_actors()
        self._state = SimulatorState.STOPPED
        self._logger.info("Simulation stopped", source="simulator")

    def _join_actors(self) -> None:
        for actor in reversed(self._actors):
            actor.join(_JOIN_TIMEOUT)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until an actor fails or ``timeout`` seconds pass.

        Returns:
            True if the stop event was set (an actor failed).

        """
        return self._stop_event.wait(timeout)

    def run(self, duration: float | None = None) -> None:
        """Start, run until ``duration`` elapses (or forever), then stop.

        Args:
            duration: Seconds to run; None runs until an actor fails or
                the caller interrupts (e.g. KeyboardInterrupt).

        Raises:
            BaseException: The error that stopped a failed actor.

        """
        self.start()
        try:
            self.wait(duration)
        finally:
            self.stop()
        failure = self.failure
        if failure is not None:
            raise failure

    def snapshot(self) -> RegionSnapshot:
        """Return a consistent copy of both collections.

        Raises:
            RuntimeError: If the simulator has never been started.

        """
        return self._require_region().snapshot()

    def check_invariants(self) -> None:
        """Verify the region's invariants.

        Raises:
            RuntimeError: If the simulator has never been started.
            IntegrityError: If an invariant is violated.

        """
        self._require_region().check_invariants()

    def _require_region(self) -> MemoryRegion:
        if self._region is None:
            msg = "Simulator has not been started"
            raise RuntimeError(msg)
        return self._region
