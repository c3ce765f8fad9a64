"""
Print-pagination layout engine.

Simulates discrete page boundaries (as used by print/PDF output) over a
continuously flowing preview and keeps every layout block on a single page:

1. Mode Controller - PageBreakEngine.set_print_mode()
2. Measurement Pass - reset_all() then measure_all()
3. Boundary Resolver - resolve_offsets()
4. Reflow Scheduler - ReflowScheduler (debounced, cancellable)

Backends implement the Measurable / LayoutContainer protocols; an
in-memory backend and a Playwright backend are provided.
"""

from src.pagination.types import (
    BlockGeometry,
    EngineStats,
    LayoutPassResult,
    PageGeometry,
)
from src.pagination.measurable import LayoutContainer, Measurable, Viewport
from src.pagination.measurement import measure_all, reset_all, to_relative
from src.pagination.resolver import (
    assign_pages,
    crosses_boundary,
    find_straddling,
    resolve_offset,
    resolve_offsets,
)
from src.pagination.scheduler import ReflowScheduler, SchedulerStats
from src.pagination.engine import PageBreakEngine
from src.pagination.memory import InMemoryBlock, InMemoryContainer, InMemoryViewport

__all__ = [
    # Types
    "BlockGeometry",
    "EngineStats",
    "LayoutPassResult",
    "PageGeometry",
    # Backend capabilities
    "LayoutContainer",
    "Measurable",
    "Viewport",
    # Measurement pass
    "measure_all",
    "reset_all",
    "to_relative",
    # Boundary resolver
    "assign_pages",
    "crosses_boundary",
    "find_straddling",
    "resolve_offset",
    "resolve_offsets",
    # Scheduling
    "ReflowScheduler",
    "SchedulerStats",
    # Engine
    "PageBreakEngine",
    # In-memory backend
    "InMemoryBlock",
    "InMemoryContainer",
    "InMemoryViewport",
]
