"""Simulation configuration — the knobs the simulator starts with.

A simulation is fully described by a handful of numbers:

- How the address space is carved up: ``num_blocks`` blocks of
  ``block_size`` units each.
- How big requests are: uniformly drawn from
  ``[min_request, max_request]``.
- How fast each actor ticks: a per-actor multiple of one ``time_unit``
  (in seconds).  The defaults keep the classic ratios: allocate and
  age every unit, reclaim every 2, inspect every 5.

Configuration can come from defaults, keyword arguments, or a JSON
file whose keys match the field names.  Unknown keys are rejected so a
typo does not silently fall back to a default.
"""

import json
import math
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

DEFAULT_NUM_BLOCKS = 3
DEFAULT_BLOCK_SIZE = 1024
DEFAULT_MIN_REQUEST = 10
DEFAULT_MAX_REQUEST = 50
DEFAULT_TIME_UNIT = 1.0
DEFAULT_ALLOCATE_EVERY = 1.0
DEFAULT_RECLAIM_EVERY = 2.0
DEFAULT_AGE_EVERY = 1.0
DEFAULT_INSPECT_EVERY = 5.0

CONFIG_ENV_VAR = "PY_MEMSIM_CONFIG"

_INT_FIELDS = ("num_blocks", "block_size", "min_request", "max_request", "seed")
_INTERVAL_FIELDS = ("time_unit", "allocate_every", "reclaim_every", "age_every", "inspect_every")


class ConfigError(ValueError):
    """Raise when a configuration cannot be loaded or is invalid."""


@dataclass(frozen=True)
class SimulationConfig:
    """Immutable startup parameters for a simulation run."""

    num_blocks: int = DEFAULT_NUM_BLOCKS
    block_size: int = DEFAULT_BLOCK_SIZE
    min_request: int = DEFAULT_MIN_REQUEST
    max_request: int = DEFAULT_MAX_REQUEST
    time_unit: float = DEFAULT_TIME_UNIT
    allocate_every: float = DEFAULT_ALLOCATE_EVERY
    reclaim_every: float = DEFAULT_RECLAIM_EVERY
    age_every: float = DEFAULT_AGE_EVERY
    inspect_every: float = DEFAULT_INSPECT_EVERY
    seed: int | None = None

    def __post_init__(self) -> None:
        """Validate field values.

        Raises:
            ConfigError: If any value has the wrong type or is out of range.

        """
        for name in _INT_FIELDS:
            value = getattr(self, name)
            if name == "seed" and value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, int):
                msg = f"{name} must be an integer, got {value!r}"
                raise ConfigError(msg)
        for name in _INTERVAL_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int | float):
                msg = f"{name} must be a number, got {value!r}"
                raise ConfigError(msg)

        if self.num_blocks <= 0:
            msg = f"num_blocks must be positive, got {self.num_blocks}"
            raise ConfigError(msg)
        if self.block_size <= 0:
            msg = f"block_size must be positive, got {self.block_size}"
            raise ConfigError(msg)
        if self.min_request <= 0 or self.max_request < self.min_request:
            msg = f"Invalid request bounds [{self.min_request}, {self.max_request}]"
            raise ConfigError(msg)
        for name in _INTERVAL_FIELDS:
            value = getattr(self, name)
            if not math.isfinite(value) or value <= 0:
                msg = f"{name} must be positive, got {value}"
                raise ConfigError(msg)

    @property
    def total_size(self) -> int:
        """Return the size of the simulated address space."""
        return self.num_blocks * self.block_size

    def interval(self, every: float) -> float:
        """Convert a tick multiple into seconds."""
        return every * self.time_unit

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SimulationConfig":
        """Build a config from a mapping of field names to values.

        Args:
            data: Any subset of the config fields.

        Raises:
            ConfigError: If a key is unknown or a value is invalid.

        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            msg = f"Unknown config keys: {', '.join(unknown)}"
            raise ConfigError(msg)
        try:
            return cls(**data)
        except TypeError as e:
            msg = f"Invalid config values: {e}"
            raise ConfigError(msg) from e


def load_config(path: Path | None = None) -> SimulationConfig:
    """Load a config from a JSON file, or return the defaults.

    Args:
        path: JSON file containing an object of config fields.

    Returns:
        The loaded (or default) configuration.

    Raises:
        ConfigError: If the file cannot be read or is not a JSON object.

    """
    if path is None:
        return SimulationConfig()
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        msg = f"Cannot load config {path}: {e}"
        raise ConfigError(msg) from e
    if not isinstance(data, dict):
        msg = f"Config {path} must contain a JSON object"
        raise ConfigError(msg)
    return SimulationConfig.from_dict(data)
