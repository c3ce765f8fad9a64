"""
Rendering-backend capabilities consumed by the engine.

Any backend (a DOM, a headless browser, an in-memory model) plugs in by
implementing these protocols. The resolver itself never sees them; it works
on plain BlockGeometry.
"""

from typing import Callable, Hashable, Protocol, Sequence, runtime_checkable


@runtime_checkable
class Measurable(Protocol):
    """One layout block whose geometry can be measured and shifted."""

    @property
    def block_id(self) -> Hashable:
        """Identity, stable across passes."""
        ...

    @property
    def top(self) -> float:
        """Current top edge in viewport coordinates (offset included)."""
        ...

    @property
    def height(self) -> float:
        ...

    def apply_offset(self, offset: float) -> None:
        """Set (not add to) the block's vertical displacement."""
        ...


@runtime_checkable
class LayoutContainer(Protocol):
    """The element holding the layout blocks, in document order."""

    @property
    def is_mounted(self) -> bool:
        ...

    @property
    def top(self) -> float:
        """Container top edge in viewport coordinates."""
        ...

    def blocks(self) -> Sequence[Measurable]:
        """Query the current layout blocks, in document order."""
        ...


@runtime_checkable
class Viewport(Protocol):
    """Source of resize notifications."""

    def add_resize_listener(self, listener: Callable[[], None]) -> None:
        ...

    def remove_resize_listener(self, listener: Callable[[], None]) -> None:
        ...
