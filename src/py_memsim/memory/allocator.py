"""Allocation engine — first-fit allocation with block splitting.

Each tick the allocator draws a random request size *s* and walks the
free collection from head to tail looking for the **first** block with
``size > s``.  First-fit does not look for the best match; it takes the
first one that works, which keeps the scan short.

What happens next depends on how much bigger the candidate is:

- **Oversized** (``size > 2s``) — *split* it.  The candidate shrinks by
  *s* and stays free; a brand-new block of size *s* is carved from the
  vacated tail of its extent and appended to the allocated collection.
- **Not oversized** — move the *whole* candidate to allocated.  The
  leftover is too small to be worth keeping as a separate free block.
- **No candidate** — skip this tick.  Nothing is queued or retried.

Analogy: filling a bookshelf.  You take the first shelf with room.  If
the shelf is more than twice as wide as your books, you put a divider
in and leave the rest of the shelf free; otherwise you just claim the
whole shelf.
"""

import random
from dataclasses import dataclass
from enum import StrEnum

from py_memsim.config import DEFAULT_MAX_REQUEST, DEFAULT_MIN_REQUEST
from py_memsim.memory.block import Block
from py_memsim.memory.collection import relocate
from py_memsim.memory.region import MemoryRegion


class AllocationOutcome(StrEnum):
    """What a single allocation attempt did."""

    SPLIT = "split"
    WHOLE = "whole"
    NO_FIT = "no_fit"


@dataclass(frozen=True)
class AllocationResult:
    """Outcome of one allocation attempt.

    Attributes:
        outcome: Which path the allocator took.
        requested: The request size *s*.
        block_id: The block now in the allocated collection (None on
            NO_FIT).
        source_id: The free block the request was served from (None on
            NO_FIT; equal to ``block_id`` on WHOLE).

    """

    outcome: AllocationOutcome
    requested: int
    block_id: int | None = None
    source_id: int | None = None


class RequestSizer:
    """Draw request sizes uniformly from ``[minimum, maximum]``."""

    def __init__(
        self,
        *,
        minimum: int = DEFAULT_MIN_REQUEST,
        maximum: int = DEFAULT_MAX_REQUEST,
        rng: random.Random | None = None,
    ) -> None:
        """Create a sizer.

        Args:
            minimum: Smallest request size (must be positive).
            maximum: Largest request size (must be >= minimum).
            rng: Random source; a fresh unseeded one if None.

        Raises:
            ValueError: If the bounds are invalid.

        """
        if minimum <= 0 or maximum < minimum:
            msg = f"Invalid request bounds [{minimum}, {maximum}]"
            raise ValueError(msg)
        self._minimum = minimum
        self._maximum = maximum
        self._rng = rng if rng is not None else random.Random()  # noqa: S311

    @property
    def bounds(self) -> tuple[int, int]:
        """Return the ``(minimum, maximum)`` request size."""
        return self._minimum, self._maximum

    def draw(self) -> int:
        """Return the next request size."""
        return self._rng.randint(self._minimum, self._maximum)


class AllocationEngine:
    """Serve one first-fit request per call against a shared region."""

    def __init__(self, region: MemoryRegion, *, sizer: RequestSizer | None = None) -> None:
        """Create an allocation engine.

        Args:
            region: The shared memory region.
            sizer: Source of request sizes for ``tick()``.

        """
        self._region = region
        self._sizer = sizer if sizer is not None else RequestSizer()

    def tick(self) -> AllocationResult:
        """Draw a request size and try to allocate it."""
        return self.allocate(self._sizer.draw())

    def allocate(self, size: int) -> AllocationResult:
        """Allocate ``size`` units using first-fit.

        The scan and the resulting mutation happen under one hold of
        the region lock.

        Args:
            size: Requested units (must be positive).

        Returns:
            An AllocationResult describing what happened.

        Raises:
            ValueError: If size is not positive.

        """
        if size <= 0:
            msg = f"Request size must be positive, got {size}"
            raise ValueError(msg)

        region = self._region
        with region.lock:
            candidate = next((block for block in region.free if block.size > size), None)
            if candidate is None:
                result = AllocationResult(outcome=AllocationOutcome.NO_FIT, requested=size)
            elif candidate.size > 2 * size:
                result = self._split(candidate, size)
            else:
                candidate.age = 0
                relocate(region.allocated, region.free, candidate)
                result = AllocationResult(
                    outcome=AllocationOutcome.WHOLE,
                    requested=size,
                    block_id=candidate.block_id,
                    source_id=candidate.block_id,
                )

        self._report(result)
        return result

    def _split(self, candidate: Block, size: int) -> AllocationResult:
        """Carve ``size`` units off the tail of ``candidate``.  Lock held."""
        region = self._region
        candidate.shrink(size)
        fragment = Block(
            block_id=region.next_block_id(),
            base=candidate.end,
            size=size,
        )
        region.allocated.append(fragment)
        return AllocationResult(
            outcome=AllocationOutcome.SPLIT,
            requested=size,
            block_id=fragment.block_id,
            source_id=candidate.block_id,
        )

    def _report(self, result: AllocationResult) -> None:
        logger = self._region.logger
        if logger is None:
            return
        match result.outcome:
            case AllocationOutcome.SPLIT:
                message = (
                    f"Split block {result.source_id}: new block {result.block_id} "
                    f"of {result.requested} units allocated"
                )
            case AllocationOutcome.WHOLE:
                message = f"Allocated whole block {result.block_id} for request of {result.requested}"
            case _:
                message = f"No free block larger than {result.requested}; skipped"
        logger.info(message, source="allocator")
