"""
In-memory rendering backend.

Models a layout container and its blocks with plain numbers, for headless
use (pre-computing offsets from known geometry) and for tests. Geometry is
reported in viewport coordinates like a real DOM: the container sits at
``top`` in the viewport (negative when scrolled) and every block's reported
top includes the container position and any applied offset.
"""

import logging
from typing import Callable, Hashable, Iterable, List, Optional

logger = logging.getLogger(__name__)


class InMemoryBlock:
    """A layout block with a fixed natural position inside its container."""

    def __init__(self, block_id: Hashable, top: float, height: float):
        self._block_id = block_id
        self.natural_top = top
        self._height = height
        self.offset = 0.0
        self._container: Optional["InMemoryContainer"] = None

    @property
    def block_id(self) -> Hashable:
        return self._block_id

    @property
    def height(self) -> float:
        return self._height

    @height.setter
    def height(self, value: float) -> None:
        self._height = value

    @property
    def top(self) -> float:
        """Viewport-relative top, including applied displacement."""
        if self._container is None:
            return self.natural_top + self.offset
        return self._container.top + self.natural_top + self._container.displacement_of(self)

    @property
    def bottom(self) -> float:
        return self.top + self._height

    def apply_offset(self, offset: float) -> None:
        self.offset = offset

    def __repr__(self) -> str:
        return (
            f"InMemoryBlock({self._block_id!r}, top={self.natural_top}, "
            f"height={self._height}, offset={self.offset})"
        )


class InMemoryContainer:
    """
    Ordered collection of InMemoryBlocks.

    With flow=True an offset on one block also displaces every block after
    it, the way a CSS margin-top does in normal flow. With flow=False each
    offset moves only its own block.
    """

    def __init__(
        self,
        blocks: Iterable[InMemoryBlock] = (),
        top: float = 0.0,
        flow: bool = False,
        mounted: bool = True,
    ):
        self.top = top
        self.flow = flow
        self.mounted = mounted
        self._blocks: List[InMemoryBlock] = []
        for block in blocks:
            self.append(block)

    @property
    def is_mounted(self) -> bool:
        return self.mounted

    def blocks(self) -> List[InMemoryBlock]:
        return list(self._blocks)

    def append(self, block: InMemoryBlock) -> InMemoryBlock:
        block._container = self
        self._blocks.append(block)
        return block

    def remove(self, block_id: Hashable) -> None:
        for block in self._blocks:
            if block.block_id == block_id:
                block._container = None
                self._blocks.remove(block)
                return
        raise KeyError(block_id)

    def get(self, block_id: Hashable) -> InMemoryBlock:
        for block in self._blocks:
            if block.block_id == block_id:
                return block
        raise KeyError(block_id)

    def displacement_of(self, block: InMemoryBlock) -> float:
        """Total vertical displacement of a block from applied offsets."""
        if not self.flow:
            return block.offset
        total = 0.0
        for candidate in self._blocks:
            total += candidate.offset
            if candidate is block:
                break
        return total

    def offsets(self) -> dict:
        """Block id -> applied offset, in document order."""
        return {block.block_id: block.offset for block in self._blocks}

    @classmethod
    def stacked(
        cls,
        heights: Iterable[float],
        spacing: float = 0.0,
        top: float = 0.0,
        flow: bool = True,
        id_prefix: str = "block",
    ) -> "InMemoryContainer":
        """
        Build a container of blocks laid out one after another.

        Args:
            heights: Block heights in document order
            spacing: Vertical space between consecutive blocks
            top: Container position in the viewport
            flow: Whether offsets cascade to later blocks
            id_prefix: Block ids are f"{id_prefix}-{index}"
        """
        container = cls(top=top, flow=flow)
        cursor = 0.0
        for index, height in enumerate(heights):
            container.append(InMemoryBlock(f"{id_prefix}-{index}", cursor, height))
            cursor += height + spacing
        return container


class InMemoryViewport:
    """Resize notification source; resize() fires every listener."""

    def __init__(self, width: float = 816.0, height: float = 1056.0):
        self.width = width
        self.height = height
        self._listeners: List[Callable[[], None]] = []

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def add_resize_listener(self, listener: Callable[[], None]) -> None:
        self._listeners.append(listener)

    def remove_resize_listener(self, listener: Callable[[], None]) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            logger.debug("remove_resize_listener: listener was not registered")

    def resize(self, width: Optional[float] = None, height: Optional[float] = None) -> None:
        if width is not None:
            self.width = width
        if height is not None:
            self.height = height
        for listener in list(self._listeners):
            listener()
