"""Tests for the memory region — shared state and its invariants."""

import pytest

from py_memsim.logging import Logger
from py_memsim.memory.block import Block
from py_memsim.memory.collection import IntegrityError, relocate
from py_memsim.memory.region import MemoryRegion, ResourceExhaustionError

NUM_BLOCKS = 3
BLOCK_SIZE = 1024


class TestRegionCreation:
    """Verify the initial partition."""

    def test_all_blocks_start_free(self) -> None:
        """N equal blocks, all in the free collection."""
        region = MemoryRegion(num_blocks=NUM_BLOCKS, block_size=BLOCK_SIZE)
        assert len(region.free) == NUM_BLOCKS
        assert region.allocated.is_empty()

    def test_ids_and_bases(self) -> None:
        """Ids run 0..N-1 and bases step by B."""
        region = MemoryRegion(num_blocks=NUM_BLOCKS, block_size=BLOCK_SIZE)
        assert [(b.block_id, b.base, b.size) for b in region.free] == [
            (0, 0, BLOCK_SIZE),
            (1, BLOCK_SIZE, BLOCK_SIZE),
            (2, 2 * BLOCK_SIZE, BLOCK_SIZE),
        ]

    def test_total_size(self) -> None:
        """Total size is N * B."""
        region = MemoryRegion(num_blocks=NUM_BLOCKS, block_size=BLOCK_SIZE)
        assert region.total_size == NUM_BLOCKS * BLOCK_SIZE

    def test_next_id_follows_initial_blocks(self) -> None:
        """Fresh ids continue after the initial ones and are never reused."""
        region = MemoryRegion(num_blocks=NUM_BLOCKS, block_size=BLOCK_SIZE)
        assert region.next_block_id() == NUM_BLOCKS
        assert region.next_block_id() == NUM_BLOCKS + 1

    @pytest.mark.parametrize(("num_blocks", "block_size"), [(0, BLOCK_SIZE), (NUM_BLOCKS, 0)])
    def test_empty_region_is_resource_exhaustion(self, num_blocks: int, block_size: int) -> None:
        """A region with nothing in it cannot be created."""
        with pytest.raises(ResourceExhaustionError):
            MemoryRegion(num_blocks=num_blocks, block_size=block_size)

    def test_from_sizes_lays_blocks_back_to_back(self) -> None:
        """Custom layouts get contiguous bases."""
        region = MemoryRegion.from_sizes([5, 100, 30], block_size=BLOCK_SIZE)
        assert [(b.base, b.size) for b in region.free] == [(0, 5), (5, 100), (105, 30)]
        assert region.total_size == 135  # noqa: PLR2004

    def test_from_sizes_rejects_bad_size(self) -> None:
        """A zero-size block cannot be created."""
        with pytest.raises(ResourceExhaustionError):
            MemoryRegion.from_sizes([10, 0], block_size=BLOCK_SIZE)

    def test_from_sizes_rejects_empty_layout(self) -> None:
        """At least one block is needed."""
        with pytest.raises(ResourceExhaustionError):
            MemoryRegion.from_sizes([], block_size=BLOCK_SIZE)

    def test_sizes_must_match_block_count(self) -> None:
        """An explicit layout must hold exactly num_blocks entries."""
        with pytest.raises(ResourceExhaustionError, match="Expected 3 block sizes"):
            MemoryRegion(num_blocks=3, block_size=BLOCK_SIZE, sizes=[10, 20])

    def test_from_sizes_matches_explicit_constructor(self) -> None:
        """Both constructors build the same layout and id sequence."""
        built = MemoryRegion.from_sizes([5, 100, 30], block_size=BLOCK_SIZE)
        direct = MemoryRegion(num_blocks=3, block_size=BLOCK_SIZE, sizes=[5, 100, 30])
        assert built.snapshot() == direct.snapshot()
        assert built.next_block_id() == direct.next_block_id() == 3  # noqa: PLR2004

    def test_creation_is_logged(self) -> None:
        """The region announces itself on the logger."""
        logger = Logger()
        MemoryRegion(num_blocks=NUM_BLOCKS, block_size=BLOCK_SIZE, logger=logger)
        assert any("Region ready" in e.message for e in logger.filter(source="region"))


class TestSnapshot:
    """Verify snapshots are detached copies."""

    def test_snapshot_copies_fields(self) -> None:
        """A snapshot lists both collections in order."""
        region = MemoryRegion(num_blocks=2, block_size=BLOCK_SIZE)
        block = region.free.head
        assert block is not None
        relocate(region.allocated, region.free, block)
        snap = region.snapshot()
        assert [v.block_id for v in snap.free] == [1]
        assert [v.block_id for v in snap.allocated] == [0]
        assert snap.free_size + snap.allocated_size == region.total_size

    def test_snapshot_does_not_track_later_changes(self) -> None:
        """Mutating a block after the snapshot leaves the snapshot alone."""
        region = MemoryRegion(num_blocks=1, block_size=BLOCK_SIZE)
        snap = region.snapshot()
        block = region.free.head
        assert block is not None
        block.age = 9
        assert snap.free[0].age == 0


class TestInvariants:
    """Verify the invariant checker catches each kind of corruption."""

    def test_fresh_region_is_consistent(self) -> None:
        """A new region satisfies every invariant."""
        MemoryRegion(num_blocks=NUM_BLOCKS, block_size=BLOCK_SIZE).check_invariants()

    def test_conservation_violation_detected(self) -> None:
        """Changing a size without a matching change elsewhere is caught."""
        region = MemoryRegion(num_blocks=NUM_BLOCKS, block_size=BLOCK_SIZE)
        block = region.free.head
        assert block is not None
        block.size += 1
        with pytest.raises(IntegrityError, match="Conservation"):
            region.check_invariants()

    def test_double_membership_detected(self) -> None:
        """A block id present in both collections is caught."""
        region = MemoryRegion(num_blocks=NUM_BLOCKS, block_size=BLOCK_SIZE)
        region.allocated.append(Block(block_id=0, base=0, size=1))
        with pytest.raises(IntegrityError, match="both collections"):
            region.check_invariants()
