"""
Measurement pass: reset every offset, then read natural geometry.

The two phases are separate calls so that measuring from an unshifted state
is an explicit contract rather than a side effect buried in a loop.
"""

from typing import Iterable, List, Sequence, Tuple

from src.pagination.measurable import LayoutContainer, Measurable
from src.pagination.types import BlockGeometry, BlockId


def reset_all(blocks: Sequence[Measurable]) -> None:
    """Clear the applied offset of every block."""
    for block in blocks:
        block.apply_offset(0.0)


def to_relative(
    container_top: float,
    rects: Iterable[Tuple[BlockId, float, float]],
) -> List[BlockGeometry]:
    """
    Convert viewport rects (block_id, top, height) to container-relative
    geometry, preserving order.
    """
    return [
        BlockGeometry(block_id=block_id, top=top - container_top, height=height)
        for block_id, top, height in rects
    ]


def measure_all(container: LayoutContainer, blocks: Sequence[Measurable]) -> List[BlockGeometry]:
    """
    Measure each block relative to the container's top edge.

    Backends report viewport coordinates, and the container itself may be
    scrolled or offset, so the container top is subtracted from each block.
    Call reset_all() first; otherwise the measured tops include stale offsets.

    Args:
        container: Container the blocks belong to
        blocks: Blocks in document order

    Returns:
        One BlockGeometry per block, in the same order
    """
    return to_relative(
        container.top,
        ((block.block_id, block.top, block.height) for block in blocks),
    )
