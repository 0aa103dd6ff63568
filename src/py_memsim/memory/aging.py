"""Aging clock — advance the residency age of every allocated block.

The reclaimer needs to know which block has been resident the longest.
Rather than timestamping blocks, the simulation keeps a simple counter
on each one and a clock that bumps every counter by one on each tick,
much like the reference bits an OS sweeps to approximate LRU.
"""

from py_memsim.memory.region import MemoryRegion


class AgingClock:
    """Increment ``age`` on every block in the allocated collection."""

    def __init__(self, region: MemoryRegion) -> None:
        """Create an aging clock for the given region."""
        self._region = region
        self._ticks = 0

    @property
    def ticks(self) -> int:
        """Return how many times the clock has ticked."""
        return self._ticks

    def tick(self) -> int:
        """Age every allocated block by one.

        Returns:
            The number of blocks aged (0 if nothing is allocated).

        """
        region = self._region
        with region.lock:
            self._ticks += 1
            aged = 0
            for block in region.allocated:
                block.age += 1
                aged += 1

        if aged and region.logger is not None:
            region.logger.debug(f"Aged {aged} allocated block(s)", source="aging")
        return aged
