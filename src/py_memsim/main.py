"""Console entry point — run the simulation until interrupted.

``run()`` loads the configuration (from the file named by
``PY_MEMSIM_CONFIG`` when set), starts the simulator with a logger
that prints every entry to the console, and blocks until Ctrl+C or an
actor failure.

Exit codes:
    0 — clean shutdown (Ctrl+C).
    1 — configuration, region, or actor startup failure, or an actor
        stopped on an error.  A diagnostic is written to stderr.

The helper ``format_boot_log`` is pure and testable; ``run()`` is the
I/O wrapper.
"""

import os
import sys
from pathlib import Path

from py_memsim.actors import ActorStartupError
from py_memsim.config import CONFIG_ENV_VAR, ConfigError, load_config
from py_memsim.logging import Logger, LogLevel
from py_memsim.memory.collection import IntegrityError
from py_memsim.memory.region import ResourceExhaustionError
from py_memsim.simulator import Simulator

_BANNER_WIDTH = 38
EXIT_OK = 0
EXIT_FAILURE = 1


def format_boot_log(boot_log: list[str]) -> str:
    """Format the start log into a displayable banner string.

    Args:
        boot_log: Messages from ``Simulator.dmesg()``.

    Returns:
        A formatted string suitable for printing to the console.

    """
    border = "=" * _BANNER_WIDTH
    header = f"\n  {border}\n            PyMemSim v0.1.0\n     A simulated block allocator\n  {border}\n\n"
    body = "\n".join(f"  {msg}" for msg in boot_log)
    footer = "\nSimulation running. Press Ctrl+C to stop.\n"
    return header + body + footer


def _print(line: str) -> None:
    print(line, flush=True)  # noqa: T201


def _fail(message: str) -> int:
    print(f"py-memsim: {message}", file=sys.stderr)  # noqa: T201
    return EXIT_FAILURE


def run() -> int:
    """Run the simulation until interrupted.

    Returns:
        The process exit code.

    """
    config_path = os.environ.get(CONFIG_ENV_VAR)
    try:
        config = load_config(Path(config_path) if config_path else None)
    except ConfigError as e:
        return _fail(str(e))

    simulator = Simulator(config, logger=Logger(sink=_print, min_level=LogLevel.INFO))
    try:
        simulator.start()
    except (ResourceExhaustionError, ActorStartupError) as e:
        return _fail(f"startup failed: {e}")

    _print(format_boot_log(simulator.dmesg()))

    try:
        simulator.wait()
    except KeyboardInterrupt:
        _print("\nInterrupted.")
    finally:
        simulator.stop()

    failure = simulator.failure
    if failure is not None:
        if isinstance(failure, IntegrityError):
            return _fail(f"integrity violation: {failure}")
        return _fail(f"actor failed: {failure}")
    _print("Simulation halted.")
    return EXIT_OK


def main() -> None:
    """Console-script wrapper around ``run()``."""
    sys.exit(run())


if __name__ == "__main__":
    main()
