"""Memory region — the shared state every actor works against.

The region owns everything the four actors share:

- The **free** and **allocated** block collections.
- One **re-entrant lock** guarding both collections and every block
  reachable from them.
- The **id counter** that hands out fresh block ids on split.

The region is passed to each engine at construction, never reached
through module globals.  Any sequence that must look atomic to other
actors (a detach + append, a scan followed by a mutation, aging every
allocated block) runs inside ``with region.lock:``.  The lock is
re-entrant so the reclaimer can call the coalescer without releasing
it in between.

Conservation law:
    ``free.total_size + allocated.total_size == total_size``
    holds whenever no actor is holding the lock.  ``check_invariants``
    verifies it together with exclusive membership and link integrity.
"""

import threading
from collections.abc import Sequence
from dataclasses import dataclass
from itertools import count

from py_memsim.logging import Logger
from py_memsim.memory.block import Block
from py_memsim.memory.collection import BlockList, IntegrityError


class ResourceExhaustionError(Exception):
    """Raise when the initial region cannot be created."""


@dataclass(frozen=True)
class BlockView:
    """Immutable copy of one block's fields, taken under the lock."""

    block_id: int
    base: int
    size: int
    age: int


@dataclass(frozen=True)
class RegionSnapshot:
    """Immutable copy of both collections, in collection order."""

    free: tuple[BlockView, ...]
    allocated: tuple[BlockView, ...]

    @property
    def free_size(self) -> int:
        """Return the total size held in the free collection."""
        return sum(view.size for view in self.free)

    @property
    def allocated_size(self) -> int:
        """Return the total size held in the allocated collection."""
        return sum(view.size for view in self.allocated)


class MemoryRegion:
    """A fixed-size simulated address space split into blocks."""

    def __init__(
        self,
        *,
        num_blocks: int,
        block_size: int,
        sizes: Sequence[int] | None = None,
        logger: Logger | None = None,
    ) -> None:
        """Partition the address space into free blocks.

        Blocks get ids ``0..num_blocks-1`` and are laid out back to back
        from offset 0.  Without ``sizes`` every block is ``block_size``
        units, so block ``i`` starts at ``i * block_size``.

        Args:
            num_blocks: Number of initial blocks (N).
            block_size: Uniform initial block size (B).
            sizes: Explicit size of each initial block, in collection
                order; must hold exactly ``num_blocks`` entries.
            logger: Optional logger for region events.

        Raises:
            ResourceExhaustionError: If N or B is not positive, ``sizes``
                does not match N, or the blocks cannot be created.

        """
        if num_blocks <= 0 or block_size <= 0:
            msg = f"Cannot create region of {num_blocks} blocks x {block_size} units"
            raise ResourceExhaustionError(msg)
        if sizes is None:
            sizes = [block_size] * num_blocks
        elif len(sizes) != num_blocks:
            msg = f"Expected {num_blocks} block sizes, got {len(sizes)}"
            raise ResourceExhaustionError(msg)

        self._block_size = block_size
        self._logger = logger
        self.lock = threading.RLock()
        self.free = BlockList(name="free")
        self.allocated = BlockList(name="allocated")
        base = 0
        try:
            for block_id, size in enumerate(sizes):
                self.free.append(Block(block_id=block_id, base=base, size=size))
                base += size
        except MemoryError as e:
            msg = f"Out of memory while creating block {len(self.free)} of {num_blocks}"
            raise ResourceExhaustionError(msg) from e
        except ValueError as e:
            raise ResourceExhaustionError(str(e)) from e
        self._total_size = base
        self._block_ids = count(start=num_blocks)
        if logger is not None:
            for block in self.free:
                logger.debug(
                    f"New block {block.block_id} base={block.base} size={block.size}",
                    source="region",
                )
            logger.info(
                f"Region ready: {num_blocks} blocks, {self._total_size} units",
                source="region",
            )

    @classmethod
    def from_sizes(
        cls,
        sizes: Sequence[int],
        *,
        block_size: int,
        logger: Logger | None = None,
    ) -> "MemoryRegion":
        """Build a region whose free collection holds blocks of the given sizes.

        Useful for reproducing a particular fragmentation pattern.

        Args:
            sizes: Size of each initial free block, in collection order.
            block_size: The nominal block size used by the coalescer.
            logger: Optional logger for region events.

        Raises:
            ResourceExhaustionError: If sizes is empty, a size is not
                positive, or block_size is not positive.

        """
        return cls(num_blocks=len(sizes), block_size=block_size, sizes=sizes, logger=logger)

    @property
    def block_size(self) -> int:
        """Return the uniform initial block size (B)."""
        return self._block_size

    @property
    def total_size(self) -> int:
        """Return the total simulated address space."""
        return self._total_size

    @property
    def logger(self) -> Logger | None:
        """Return the region's logger, if any."""
        return self._logger

    def next_block_id(self) -> int:
        """Hand out a fresh, never-reused block id.

        The caller must hold the lock.
        """
        return next(self._block_ids)

    def snapshot(self) -> RegionSnapshot:
        """Copy both collections under the lock.

        Returns:
            A RegionSnapshot that can be read without holding the lock.

        """
        with self.lock:
            return RegionSnapshot(
                free=tuple(_view(block) for block in self.free),
                allocated=tuple(_view(block) for block in self.allocated),
            )

    def check_invariants(self) -> None:
        """Verify link integrity, exclusive membership and conservation.

        Raises:
            IntegrityError: If any invariant is violated.

        """
        with self.lock:
            self.free.check_links()
            self.allocated.check_links()

            free_ids = {block.block_id for block in self.free}
            allocated_ids = {block.block_id for block in self.allocated}
            both = free_ids & allocated_ids
            if both:
                msg = f"Blocks {sorted(both)} are in both collections"
                raise IntegrityError(msg)

            for block in (*self.free, *self.allocated):
                if block.size <= 0:
                    msg = f"Block {block.block_id} has non-positive size {block.size}"
                    raise IntegrityError(msg)

            held = self.free.total_size + self.allocated.total_size
            if held != self._total_size:
                msg = f"Conservation violated: {held} units held, expected {self._total_size}"
                raise IntegrityError(msg)

    def __repr__(self) -> str:
        """Return a debug-friendly representation."""
        return f"MemoryRegion(total={self._total_size}, free={self.free!r}, allocated={self.allocated!r})"


def _view(block: Block) -> BlockView:
    return BlockView(block_id=block.block_id, base=block.base, size=block.size, age=block.age)
