"""Coalescer — fold free fragments back into a reservoir block.

Splitting leaves small pieces behind.  Over time the free collection
fills with **fragments** (blocks smaller than the uniform initial block
size B) that are too small to satisfy most requests even though their
combined capacity would.  This is *external fragmentation*.

The coalescer runs after every reclamation.  It treats the first
member of the free collection as a **reservoir** and folds every other
fragment into it: the fragment's size is added to the reservoir and
the fragment leaves the collection for good.

Adjacency policy:
    Fragments are absorbed whether or not their address range touches
    the reservoir's.  Only total capacity is conserved; the reservoir
    keeps its own ``base``.  A spatially faithful allocator would
    merge only neighbours, but then most fragments scattered by
    reclamation order would never merge at all.
"""

from py_memsim.memory.region import MemoryRegion


class Coalescer:
    """Absorb undersized free blocks into the head of the free collection."""

    def __init__(self, region: MemoryRegion) -> None:
        """Create a coalescer for the given region."""
        self._region = region

    def coalesce(self) -> list[int]:
        """Run one coalescing pass.

        Returns:
            Ids of the blocks absorbed, in the order they were absorbed.
            Empty if the free collection has fewer than two members.

        """
        region = self._region
        with region.lock:
            absorbed = self.absorb()
            reservoir = region.free.head
        if reservoir is not None:
            self.report(absorbed, reservoir.block_id)
        return absorbed

    def absorb(self) -> list[int]:
        """Fold fragments into the reservoir without logging.

        The caller must hold the lock.
        """
        region = self._region
        absorbed: list[int] = []
        reservoir = region.free.head
        if reservoir is None or len(region.free) < 2:  # noqa: PLR2004
            return absorbed
        fragments = [
            block
            for block in region.free
            if block is not reservoir and block.size < region.block_size
        ]
        for fragment in fragments:
            region.free.detach(fragment)
            reservoir.absorb(fragment)
            absorbed.append(fragment.block_id)
        return absorbed

    def report(self, absorbed: list[int], reservoir_id: int) -> None:
        """Log one coalescing pass.  Call without holding the lock."""
        logger = self._region.logger
        if absorbed and logger is not None:
            logger.info(
                f"Absorbed {len(absorbed)} fragment(s) {absorbed} into block {reservoir_id}",
                source="coalescer",
            )
