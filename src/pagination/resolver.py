"""
Boundary resolver: decides which blocks straddle a simulated page boundary
and how far each must move down to start on the next page.

Works on plain numeric geometry only; no backend types are involved.

Pages are modeled as a periodic coordinate transform. Instead of
transforming every coordinate, only blocks that would straddle a page-end
line are displaced, so non-crossing content is never touched.

Usage:
    page = PageGeometry(page_height=1056, gap_height=40, buffer=20)
    offsets = resolve_offsets(measure_all(container, blocks), page)
"""

import math
from typing import Dict, List, Sequence, Tuple

from src.pagination.types import BlockGeometry, BlockId, PageGeometry


def crosses_boundary(block: BlockGeometry, page: PageGeometry) -> bool:
    """
    Check whether a block straddles the page-end line after its top.

    Strict on both sides: a block that ends exactly on the boundary, or
    starts exactly on it, does not cross.
    """
    if block.is_degenerate:
        return False
    boundary = page.next_boundary(block.top)
    return block.top < boundary < block.bottom


def resolve_offset(block: BlockGeometry, page: PageGeometry) -> float:
    """
    Compute the downward offset that moves a crossing block past the gap.

    Blocks taller than a page cannot avoid every boundary; they are still
    pushed past the first one they cross and overflow into later pages.

    Returns:
        targetTop - naturalTop for crossing blocks, 0.0 otherwise
    """
    if not crosses_boundary(block, page):
        return 0.0
    target_top = page.next_boundary(block.top) + page.clearance
    return target_top - block.top


def resolve_offsets(
    blocks: Sequence[BlockGeometry],
    page: PageGeometry,
    flow_layout: bool = False,
) -> Dict[BlockId, float]:
    """
    Resolve an offset for every block, in document order.

    Args:
        blocks: Natural geometry measured from a fully reset state
        page: Page geometry for this pass
        flow_layout: If True, an offset on one block displaces every later
            block (InMemoryContainer(flow=True)), so each block is resolved at
            its natural top plus the displacement accumulated so far.
            If False, blocks are independent.

    Returns:
        Mapping block id -> offset (0.0 for blocks that stay put)
    """
    offsets: Dict[BlockId, float] = {}
    carried = 0.0

    for block in blocks:
        if flow_layout and carried:
            shifted = BlockGeometry(block.block_id, block.top + carried, block.height)
        else:
            shifted = block
        offset = resolve_offset(shifted, page)
        offsets[block.block_id] = offset
        if flow_layout:
            carried += offset

    return offsets


def final_positions(
    blocks: Sequence[BlockGeometry],
    offsets: Dict[BlockId, float],
    flow_layout: bool = False,
) -> List[Tuple[BlockGeometry, float]]:
    """Pair each block with its top edge after offsets are applied."""
    positions = []
    carried = 0.0
    for block in blocks:
        offset = offsets.get(block.block_id, 0.0)
        if flow_layout:
            carried += offset
            positions.append((block, block.top + carried))
        else:
            positions.append((block, block.top + offset))
    return positions


def find_straddling(
    blocks: Sequence[BlockGeometry],
    offsets: Dict[BlockId, float],
    page: PageGeometry,
    flow_layout: bool = False,
) -> List[BlockId]:
    """
    List blocks that still cross a page boundary after offsets are applied.

    Blocks taller than a page are excluded: their overflow is unavoidable.
    Blocks taller than page_height - clearance are not excluded, and a
    pushed one is reported: it starts clearance px into the next page and
    so ends past that page's boundary. The resolver does not shrink the
    clearance to fit them.

    An empty list means no block that fits after a push straddles.
    """
    straddling = []
    for block, top in final_positions(blocks, offsets, flow_layout):
        if block.height > page.page_height:
            continue
        if crosses_boundary(BlockGeometry(block.block_id, top, block.height), page):
            straddling.append(block.block_id)
    return straddling


def assign_pages(
    blocks: Sequence[BlockGeometry],
    offsets: Dict[BlockId, float],
    page: PageGeometry,
    flow_layout: bool = False,
) -> Dict[BlockId, int]:
    """Page number (1-based) each block starts on after offsets are applied."""
    pages: Dict[BlockId, int] = {}
    for block, top in final_positions(blocks, offsets, flow_layout):
        if not math.isfinite(top):
            pages[block.block_id] = 1
            continue
        pages[block.block_id] = max(1, page.page_index(top))
    return pages
