"""Inspector — a read-only report of both block collections.

The inspector copies the region under the lock (``region.snapshot()``)
and formats the copy afterwards, so the lock is held only for the
copy and never for string building or console output.

The helper ``format_snapshot`` is pure and testable; ``Inspector.report``
adds the lock and the logging.
"""

from py_memsim.memory.region import BlockView, MemoryRegion, RegionSnapshot


def format_block(view: BlockView) -> str:
    """Format one block as ``id=.. base=.. size=.. age=..``."""
    return f"id={view.block_id} base={view.base} size={view.size} age={view.age}"


def format_snapshot(snapshot: RegionSnapshot) -> list[str]:
    """Format a snapshot as report lines, free collection first.

    Args:
        snapshot: The region snapshot to format.

    Returns:
        One header line per collection followed by one line per block,
        or a single "... is empty" line for an empty collection.

    """
    lines: list[str] = []
    for name, views in (("Free", snapshot.free), ("Allocated", snapshot.allocated)):
        if not views:
            lines.append(f"{name} memory is empty")
            continue
        total = sum(view.size for view in views)
        lines.append(f"{name} memory: {len(views)} block(s), {total} units")
        lines.extend(f"  {format_block(view)}" for view in views)
    return lines


class Inspector:
    """Produce periodic reports of the region without mutating it."""

    def __init__(self, region: MemoryRegion) -> None:
        """Create an inspector for the given region."""
        self._region = region

    def report(self) -> list[str]:
        """Snapshot the region and return (and log) the report lines."""
        lines = format_snapshot(self._region.snapshot())
        logger = self._region.logger
        if logger is not None:
            for line in lines:
                logger.info(line, source="inspector")
        return lines
