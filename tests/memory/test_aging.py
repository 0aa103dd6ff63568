"""Tests for the aging clock and age bookkeeping across engines."""

from py_memsim.memory.aging import AgingClock
from py_memsim.memory.allocator import AllocationEngine
from py_memsim.memory.reclaimer import ReclamationEngine
from py_memsim.memory.region import MemoryRegion

BLOCK_SIZE = 100
TICKS = 3


class TestAgingClock:
    """Verify per-tick aging."""

    def test_ages_every_allocated_block(self) -> None:
        """Each tick adds one to every allocated block."""
        region = MemoryRegion.from_sizes([BLOCK_SIZE] * 2, block_size=BLOCK_SIZE)
        allocator = AllocationEngine(region)
        allocator.allocate(10)
        allocator.allocate(10)
        clock = AgingClock(region)
        for _ in range(TICKS):
            assert clock.tick() == 2  # noqa: PLR2004
        assert [b.age for b in region.allocated] == [TICKS, TICKS]
        assert clock.ticks == TICKS

    def test_free_blocks_do_not_age(self) -> None:
        """Only allocated residents age."""
        region = MemoryRegion.from_sizes([BLOCK_SIZE], block_size=BLOCK_SIZE)
        assert AgingClock(region).tick() == 0
        assert [b.age for b in region.free] == [0]

    def test_topology_unchanged(self) -> None:
        """Aging never moves blocks."""
        region = MemoryRegion.from_sizes([BLOCK_SIZE] * 2, block_size=BLOCK_SIZE)
        AllocationEngine(region).allocate(10)
        before = [b.block_id for b in region.allocated], [b.block_id for b in region.free]
        AgingClock(region).tick()
        after = [b.block_id for b in region.allocated], [b.block_id for b in region.free]
        assert before == after


class TestAgeLifecycle:
    """Verify ages are monotonic while resident and reset on transition."""

    def test_age_resets_on_reclaim_and_reallocation(self) -> None:
        """Ages grow while allocated, drop to 0 on reclaim and on re-entry."""
        region = MemoryRegion.from_sizes([25], block_size=BLOCK_SIZE)
        allocator = AllocationEngine(region)
        clock = AgingClock(region)
        reclaimer = ReclamationEngine(region)

        allocator.allocate(20)
        block = region.allocated.head
        assert block is not None
        observed = []
        for _ in range(TICKS):
            clock.tick()
            observed.append(block.age)
        assert observed == sorted(observed)

        reclaimer.reclaim()
        assert block.age == 0
        allocator.allocate(20)
        assert block in region.allocated
        assert block.age == 0
