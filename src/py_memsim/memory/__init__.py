"""Memory subsystem — blocks, collections, and the engines that move them.

Re-exports public symbols so callers can write::

    from py_memsim.memory import AllocationEngine, MemoryRegion
"""

from py_memsim.memory.aging import AgingClock
from py_memsim.memory.allocator import (
    AllocationEngine,
    AllocationOutcome,
    AllocationResult,
    RequestSizer,
)
from py_memsim.memory.block import Block
from py_memsim.memory.coalescer import Coalescer
from py_memsim.memory.collection import BlockList, IntegrityError, relocate
from py_memsim.memory.inspector import Inspector, format_snapshot
from py_memsim.memory.reclaimer import ReclamationEngine, ReclamationResult
from py_memsim.memory.region import (
    BlockView,
    MemoryRegion,
    RegionSnapshot,
    ResourceExhaustionError,
)

__all__ = [
    "AgingClock",
    "AllocationEngine",
    "AllocationOutcome",
    "AllocationResult",
    "Block",
    "BlockList",
    "BlockView",
    "Coalescer",
    "Inspector",
    "IntegrityError",
    "MemoryRegion",
    "ReclamationEngine",
    "ReclamationResult",
    "RegionSnapshot",
    "RequestSizer",
    "ResourceExhaustionError",
    "format_snapshot",
    "relocate",
]
