"""Block collections — ordered, id-linked lists of blocks.

The simulator keeps two collections: *free* (blocks available to
satisfy requests) and *allocated* (blocks in use).  Both need:

- **Append at the end** — arrival order is preserved.
- **O(1) removal of any member** — the reclaimer pulls blocks from the
  middle, the coalescer pulls fragments from anywhere.
- **Relocation** — detach from one collection, append to the other.

A textbook doubly linked list does this with ``prev``/``next`` pointers
stored on each node.  Here the links live in the collection instead, as
a table ``block_id → [prev_id, next_id]``.  Think of a class register:
the students don't hold hands, the register just lists who sits next
to whom.  Moving a student to another class means crossing them off one
register and writing them at the bottom of the other; the student is
never touched.

The collection itself is NOT synchronised.  Callers mutate it only
while holding the region lock (see ``region.py``), which is also what
makes ``relocate`` atomic to every other actor.
"""

from collections.abc import Iterator

from py_memsim.memory.block import Block

_PREV = 0
_NEXT = 1


class IntegrityError(Exception):
    """Raise when a collection operation names a block it does not hold."""


class BlockList:
    """An ordered collection of blocks with O(1) append and detach."""

    def __init__(self, *, name: str) -> None:
        """Create an empty collection.

        Args:
            name: Human-readable label (e.g. "free", "allocated").

        """
        self._name = name
        self._blocks: dict[int, Block] = {}
        self._links: dict[int, list[int | None]] = {}
        self._head: int | None = None
        self._tail: int | None = None

    @property
    def name(self) -> str:
        """Return the collection name."""
        return self._name

    @property
    def head(self) -> Block | None:
        """Return the first block, or None if empty."""
        return None if self._head is None else self._blocks[self._head]

    @property
    def tail(self) -> Block | None:
        """Return the last block, or None if empty."""
        return None if self._tail is None else self._blocks[self._tail]

    @property
    def total_size(self) -> int:
        """Return the sum of sizes over all members."""
        return sum(block.size for block in self._blocks.values())

    def find(self, block_id: int) -> Block | None:
        """Return the member with the given id, or None."""
        return self._blocks.get(block_id)

    def is_empty(self) -> bool:
        """Return True if the collection has no members."""
        return self._head is None

    def __len__(self) -> int:
        """Return the number of members."""
        return len(self._blocks)

    def __contains__(self, block: object) -> bool:
        """Return True if this exact block object is a member."""
        if not isinstance(block, Block):
            return False
        return self._blocks.get(block.block_id) is block

    def __iter__(self) -> Iterator[Block]:
        """Yield members from head to tail.

        The cursor is local to this generator.  Mutating the collection
        while iterating is not supported; take a ``list()`` first.
        """
        cursor = self._head
        while cursor is not None:
            yield self._blocks[cursor]
            cursor = self._links[cursor][_NEXT]

    def append(self, block: Block) -> None:
        """Place a block at the end of the collection.

        Args:
            block: The block to add.

        Raises:
            IntegrityError: If a block with the same id is already a member.

        """
        block_id = block.block_id
        if block_id in self._blocks:
            msg = f"Block {block_id} is already in the {self._name} collection"
            raise IntegrityError(msg)
        self._blocks[block_id] = block
        self._links[block_id] = [self._tail, None]
        if self._tail is None:
            self._head = block_id
        else:
            self._links[self._tail][_NEXT] = block_id
        self._tail = block_id

    def detach(self, block: Block) -> Block:
        """Remove a block from wherever it sits, relinking its neighbours.

        Args:
            block: The block to remove.

        Returns:
            The removed block.

        Raises:
            IntegrityError: If the block is not a member of this collection.

        """
        if block not in self:
            msg = f"Block {block.block_id} is not in the {self._name} collection"
            raise IntegrityError(msg)
        block_id = block.block_id
        prev_id, next_id = self._links.pop(block_id)
        del self._blocks[block_id]

        if prev_id is None:
            self._head = next_id
        else:
            self._links[prev_id][_NEXT] = next_id
        if next_id is None:
            self._tail = prev_id
        else:
            self._links[next_id][_PREV] = prev_id
        return block

    def check_links(self) -> None:
        """Verify that head, tail and neighbour links all agree.

        Raises:
            IntegrityError: If the list is cyclic, a link is one-sided,
                or the walk does not visit every member exactly once.

        """
        if (self._head is None) != (self._tail is None):
            msg = f"{self._name}: head={self._head} but tail={self._tail}"
            raise IntegrityError(msg)
        seen: set[int] = set()
        prev: int | None = None
        cursor = self._head
        while cursor is not None:
            if cursor in seen:
                msg = f"{self._name}: cycle at block {cursor}"
                raise IntegrityError(msg)
            seen.add(cursor)
            if self._links[cursor][_PREV] != prev:
                msg = f"{self._name}: block {cursor} prev link disagrees with {prev}"
                raise IntegrityError(msg)
            prev = cursor
            cursor = self._links[cursor][_NEXT]
        if prev != self._tail:
            msg = f"{self._name}: walk ended at {prev}, tail is {self._tail}"
            raise IntegrityError(msg)
        if seen != self._blocks.keys():
            msg = f"{self._name}: {len(self._blocks) - len(seen)} members unreachable"
            raise IntegrityError(msg)

    def __repr__(self) -> str:
        """Return a debug-friendly representation."""
        ids = [block.block_id for block in self]
        return f"BlockList({self._name!r}, {ids})"


def relocate(target: BlockList, source: BlockList, block: Block) -> None:
    """Move a block from ``source`` to the end of ``target``.

    A failed detach leaves both collections unchanged.  The caller must
    hold the region lock for the whole call.

    Args:
        target: Collection that receives the block.
        source: Collection that currently holds the block.
        block: The block to move.

    Raises:
        IntegrityError: If the block is not a member of ``source``, or
            ``target`` already holds a block with the same id.

    """
    if target.find(block.block_id) is not None:
        msg = f"Block {block.block_id} is already in the {target.name} collection"
        raise IntegrityError(msg)
    source.detach(block)
    target.append(block)
