"""Tests for the allocation engine — first-fit with splitting.

The allocator takes the first free block strictly larger than the
request.  A candidate more than twice the request is split; otherwise
the whole block moves to the allocated collection.
"""

import random

import pytest

from py_memsim.config import SimulationConfig
from py_memsim.logging import Logger
from py_memsim.memory.allocator import (
    AllocationEngine,
    AllocationOutcome,
    RequestSizer,
)
from py_memsim.memory.collection import BlockList
from py_memsim.memory.region import MemoryRegion

BLOCK_SIZE = 100
REQUEST = 20


def _sizes(blocks: BlockList) -> list[int]:
    return [block.size for block in blocks]


class TestFirstFit:
    """Verify candidate selection."""

    def test_split_first_block_larger_than_request(self) -> None:
        """[5, 100, 30] with request 20 splits the 100 into 80 + 20."""
        region = MemoryRegion.from_sizes([5, 100, 30], block_size=BLOCK_SIZE)
        result = AllocationEngine(region).allocate(REQUEST)

        assert result.outcome is AllocationOutcome.SPLIT
        assert result.source_id == 1
        assert _sizes(region.free) == [5, 80, 30]
        assert _sizes(region.allocated) == [REQUEST]
        region.check_invariants()

    def test_split_block_gets_fresh_id_and_vacated_tail(self) -> None:
        """The new block takes a new id and the tail of the original extent."""
        region = MemoryRegion.from_sizes([5, 100, 30], block_size=BLOCK_SIZE)
        result = AllocationEngine(region).allocate(REQUEST)
        fragment = region.allocated.head
        assert fragment is not None
        assert result.block_id == fragment.block_id == 3  # noqa: PLR2004
        assert fragment.base == 5 + 80
        assert fragment.age == 0

    def test_whole_block_when_not_oversized(self) -> None:
        """A 25-unit block for a 20-unit request moves whole."""
        region = MemoryRegion.from_sizes([25], block_size=BLOCK_SIZE)
        result = AllocationEngine(region).allocate(REQUEST)

        assert result.outcome is AllocationOutcome.WHOLE
        assert result.block_id == result.source_id == 0
        assert region.free.is_empty()
        assert _sizes(region.allocated) == [25]

    def test_exactly_twice_is_not_oversized(self) -> None:
        """Splitting needs size > 2s, so 40 for 20 moves whole."""
        region = MemoryRegion.from_sizes([40], block_size=BLOCK_SIZE)
        result = AllocationEngine(region).allocate(REQUEST)
        assert result.outcome is AllocationOutcome.WHOLE

    def test_equal_size_does_not_fit(self) -> None:
        """The fit is strict: a 20-unit block cannot serve 20."""
        region = MemoryRegion.from_sizes([20, 30], block_size=BLOCK_SIZE)
        result = AllocationEngine(region).allocate(REQUEST)
        assert result.source_id == 1

    def test_no_fit_leaves_collections_unchanged(self) -> None:
        """Request 60 against [5, 30, 10] is skipped."""
        region = MemoryRegion.from_sizes([5, 30, 10], block_size=BLOCK_SIZE)
        before = region.snapshot()
        result = AllocationEngine(region).allocate(60)

        assert result.outcome is AllocationOutcome.NO_FIT
        assert result.block_id is None
        assert region.snapshot() == before

    def test_whole_allocation_resets_age(self) -> None:
        """A block entering allocated starts at age 0."""
        region = MemoryRegion.from_sizes([25], block_size=BLOCK_SIZE)
        block = region.free.head
        assert block is not None
        block.age = 4
        AllocationEngine(region).allocate(REQUEST)
        assert block.age == 0

    def test_non_positive_request_rejected(self) -> None:
        """Requests must be positive."""
        region = MemoryRegion.from_sizes([25], block_size=BLOCK_SIZE)
        with pytest.raises(ValueError, match="positive"):
            AllocationEngine(region).allocate(0)

    def test_allocation_is_logged(self) -> None:
        """Each attempt emits one allocator line."""
        logger = Logger()
        region = MemoryRegion.from_sizes([5, 100], block_size=BLOCK_SIZE, logger=logger)
        engine = AllocationEngine(region)
        engine.allocate(REQUEST)
        engine.allocate(500)
        messages = [e.message for e in logger.filter(source="allocator")]
        assert len(messages) == 2  # noqa: PLR2004
        assert "Split block 1" in messages[0]
        assert "skipped" in messages[1]


class TestRequestSizer:
    """Verify the request size distribution."""

    def test_draws_within_bounds(self) -> None:
        """Every draw lies in [minimum, maximum]."""
        sizer = RequestSizer(minimum=10, maximum=50, rng=random.Random(1))
        draws = [sizer.draw() for _ in range(200)]
        assert min(draws) >= 10  # noqa: PLR2004
        assert max(draws) <= 50  # noqa: PLR2004

    def test_seeded_draws_repeat(self) -> None:
        """The same seed gives the same sequence."""
        first = RequestSizer(rng=random.Random(7))
        second = RequestSizer(rng=random.Random(7))
        assert [first.draw() for _ in range(10)] == [second.draw() for _ in range(10)]

    def test_invalid_bounds_rejected(self) -> None:
        """Minimum must be positive and not above maximum."""
        with pytest.raises(ValueError, match="Invalid request bounds"):
            RequestSizer(minimum=30, maximum=20)

    def test_tick_uses_sizer(self) -> None:
        """A tick draws a fresh size and allocates it."""
        region = MemoryRegion.from_sizes([1000], block_size=BLOCK_SIZE)
        engine = AllocationEngine(region, sizer=RequestSizer(minimum=REQUEST, maximum=REQUEST))
        result = engine.tick()
        assert result.requested == REQUEST
        assert result.outcome is AllocationOutcome.SPLIT

    def test_default_bounds_match_config(self) -> None:
        """A bare sizer draws from the same range as the default config."""
        cfg = SimulationConfig()
        assert RequestSizer().bounds == (cfg.min_request, cfg.max_request)
