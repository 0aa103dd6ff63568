"""Blocks — the atomic unit of simulated address space.

Classic memory managers describe a process's memory with two hardware
registers: a **base** register (where the region starts) and a **limit**
register (how big it is).  A block is exactly that pair, plus an
identity and an **age**:

- ``block_id`` — unique, never reused, assigned at creation or split.
- ``base`` — offset into the simulated address space.
- ``size`` — number of address units the block owns (the limit).
- ``age`` — how many aging-clock ticks the block has spent resident
  in the allocated collection since it last arrived there.

Blocks carry no links of their own.  Ordering lives in the collection
that holds them (see ``collection.py``), so a block can be moved
between collections without any pointer surgery on the block itself.
"""


class Block:
    """A contiguous run of simulated address space."""

    def __init__(self, *, block_id: int, base: int, size: int, age: int = 0) -> None:
        """Create a block.

        Args:
            block_id: Unique identifier (never reused).
            base: Offset of the first unit owned by this block.
            size: Number of units owned (must be positive).
            age: Initial residency age.

        Raises:
            ValueError: If size is not positive or base/age are negative.

        """
        if size <= 0:
            msg = f"Block {block_id} size must be positive, got {size}"
            raise ValueError(msg)
        if base < 0:
            msg = f"Block {block_id} base must be non-negative, got {base}"
            raise ValueError(msg)
        if age < 0:
            msg = f"Block {block_id} age must be non-negative, got {age}"
            raise ValueError(msg)
        self._block_id = block_id
        self.base = base
        self.size = size
        self.age = age

    @property
    def block_id(self) -> int:
        """Return the block's unique identifier."""
        return self._block_id

    @property
    def end(self) -> int:
        """Return the offset one past the last unit owned."""
        return self.base + self.size

    def shrink(self, amount: int) -> None:
        """Give up ``amount`` units from the tail of this block.

        Args:
            amount: Units to remove (must leave the block non-empty).

        Raises:
            ValueError: If the shrink would leave size <= 0.

        """
        if amount <= 0 or amount >= self.size:
            msg = f"Cannot shrink block {self._block_id} (size {self.size}) by {amount}"
            raise ValueError(msg)
        self.size -= amount

    def absorb(self, other: "Block") -> None:
        """Fold another block's capacity into this one.

        Args:
            other: The block being absorbed.  Its identity is discarded
                by the caller; only its size carries over.

        """
        self.size += other.size

    def __repr__(self) -> str:
        """Return a debug-friendly representation."""
        return f"Block(id={self._block_id}, base={self.base}, size={self.size}, age={self.age})"
