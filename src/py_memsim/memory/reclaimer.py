"""Reclamation engine — return the longest-resident block to the free pool.

The reclaimer is the simulation's garbage collector.  Each tick it
picks the allocated block with the greatest ``age`` (the one that has
been resident the longest), resets its age, moves it back to the free
collection, and then asks the coalescer to tidy up fragments.

Why pick by age instead of taking the head?
    Blocks are appended in arrival order with age 0 and the aging clock
    ages them all at the same rate, so the head is *usually* the oldest.
    Selecting by the recorded age keeps the policy correct whatever the
    arrival order, including when the aging clock is not running or a
    block's age was set some other way.  Ties go to the earliest block
    in collection order.

Reclamation and coalescing run in one critical section: no other actor
ever sees the reclaimed fragment sitting in the free collection before
the coalescer has had its chance to absorb it.  Both log lines are
written after the lock is released.
"""

from dataclasses import dataclass, field

from py_memsim.memory.coalescer import Coalescer
from py_memsim.memory.collection import relocate
from py_memsim.memory.region import MemoryRegion


@dataclass(frozen=True)
class ReclamationResult:
    """Outcome of one reclamation tick.

    Attributes:
        block_id: The reclaimed block, or None if nothing was allocated.
        previous_age: The block's age before it was reset.
        absorbed: Ids of blocks the coalescer absorbed afterwards.

    """

    block_id: int | None
    previous_age: int = 0
    absorbed: tuple[int, ...] = field(default_factory=tuple)

    @property
    def reclaimed(self) -> bool:
        """Return True if a block was moved back to the free collection."""
        return self.block_id is not None


class ReclamationEngine:
    """Reclaim the oldest allocated block, then coalesce."""

    def __init__(self, region: MemoryRegion, *, coalescer: Coalescer | None = None) -> None:
        """Create a reclamation engine.

        Args:
            region: The shared memory region.
            coalescer: Coalescer to run after each reclamation.

        """
        self._region = region
        self._coalescer = coalescer if coalescer is not None else Coalescer(region)

    def reclaim(self) -> ReclamationResult:
        """Reclaim the allocated block with the greatest age.

        Returns:
            A ReclamationResult (``block_id`` is None when the allocated
            collection is empty).

        """
        region = self._region
        reservoir_id = None
        with region.lock:
            oldest = None
            for block in region.allocated:
                if oldest is None or block.age > oldest.age:
                    oldest = block
            if oldest is None:
                result = ReclamationResult(block_id=None)
            else:
                previous_age = oldest.age
                oldest.age = 0
                relocate(region.free, region.allocated, oldest)
                absorbed = self._coalescer.absorb()
                reservoir = region.free.head
                if reservoir is not None:
                    reservoir_id = reservoir.block_id
                result = ReclamationResult(
                    block_id=oldest.block_id,
                    previous_age=previous_age,
                    absorbed=tuple(absorbed),
                )

        if region.logger is not None:
            if result.reclaimed:
                region.logger.info(
                    f"Reclaimed block {result.block_id} (age {result.previous_age})",
                    source="reclaimer",
                )
            else:
                region.logger.debug("Nothing allocated; skipped", source="reclaimer")
        if reservoir_id is not None:
            self._coalescer.report(list(result.absorbed), reservoir_id)
        return result
