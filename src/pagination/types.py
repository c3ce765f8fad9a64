"""
Data types for the print-pagination engine.

- PageGeometry: Page height, inter-page gap and clearance buffer for a pass
- BlockGeometry: Natural (unshifted) position of one layout block
- LayoutPassResult: Offsets and page assignment produced by one pass
- EngineStats: Counters describing engine activity
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Hashable, List, Optional

from src.common.error_handling import LayoutError


BlockId = Hashable


@dataclass(frozen=True)
class PageGeometry:
    """
    Simulated page geometry, immutable for a given pass.

    Pages are a periodic coordinate transform: every page_height units a
    gap_height-tall dead zone is inserted. buffer is extra clearance past
    the gap that absorbs sub-pixel measurement error.
    """

    page_height: float = 1056.0  # 11in at 96 DPI
    gap_height: float = 40.0
    buffer: float = 20.0

    def __post_init__(self):
        """Reject geometry that would make page indexing meaningless."""
        for name in ("page_height", "gap_height", "buffer"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or math.isnan(value) or math.isinf(value):
                raise ValueError(f"{name} must be a finite number (got {value!r})")
        if self.page_height <= 0:
            raise ValueError(f"page_height must be > 0 (got {self.page_height})")
        if self.gap_height < 0:
            raise ValueError(f"gap_height must be >= 0 (got {self.gap_height})")
        if self.buffer < 0:
            raise ValueError(f"buffer must be >= 0 (got {self.buffer})")

    @property
    def clearance(self) -> float:
        """Distance from a page boundary to the earliest allowed block top."""
        return self.gap_height + self.buffer

    def page_index(self, top: float) -> int:
        """1-based page number a position falls on."""
        return math.floor(top / self.page_height) + 1

    def next_boundary(self, top: float) -> float:
        """Absolute position of the page-end line after ``top``."""
        return self.page_index(top) * self.page_height

    def to_dict(self) -> Dict[str, float]:
        """Convert to dictionary for serialization."""
        return {
            "page_height": self.page_height,
            "gap_height": self.gap_height,
            "buffer": self.buffer,
        }


@dataclass(frozen=True)
class BlockGeometry:
    """
    Natural geometry of one layout block, relative to the container top.

    Measured with every offset reset to zero, so it never includes a
    displacement applied by a previous pass.
    """

    block_id: BlockId
    top: float
    height: float

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def is_degenerate(self) -> bool:
        """Zero-height, negative or non-finite blocks never cross a boundary."""
        if math.isnan(self.top) or math.isinf(self.top):
            return True
        if math.isnan(self.height) or math.isinf(self.height):
            return True
        return self.height <= 0


@dataclass
class LayoutPassResult:
    """
    Outcome of one measure-resolve-apply cycle.

    offsets holds an entry for every block seen in the pass (0.0 for blocks
    that stayed put). A skipped pass (missing container, inactive engine)
    carries no offsets and applies nothing.
    """

    offsets: Dict[BlockId, float] = field(default_factory=dict)
    pages: Dict[BlockId, int] = field(default_factory=dict)
    block_count: int = 0
    skipped: bool = False
    skip_reason: Optional[str] = None
    failed: bool = False
    completed_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def pushed(self) -> List[BlockId]:
        """Blocks that received a non-zero offset, in document order."""
        return [block_id for block_id, offset in self.offsets.items() if offset]

    @property
    def page_count(self) -> int:
        """Number of simulated pages the content occupies after the pass."""
        return max(self.pages.values(), default=0)

    @classmethod
    def skip(cls, reason: str) -> "LayoutPassResult":
        """Result for a pass that did not run."""
        return cls(skipped=True, skip_reason=reason)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "offsets": {str(k): v for k, v in self.offsets.items()},
            "pages": {str(k): v for k, v in self.pages.items()},
            "pushed": [str(k) for k in self.pushed],
            "page_count": self.page_count,
            "block_count": self.block_count,
            "skipped": self.skipped,
            "skip_reason": self.skip_reason,
            "failed": self.failed,
            "completed_at": self.completed_at.isoformat(),
        }


@dataclass
class EngineStats:
    """Activity counters for one engine instance."""

    passes_run: int = 0
    passes_skipped: int = 0
    passes_failed: int = 0
    triggers: int = 0                  # dependency changes + resizes + activations
    debounced_triggers: int = 0        # triggers that replaced a pending pass
    last_pass_at: Optional[datetime] = None
    last_error: Optional[LayoutError] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "passes_run": self.passes_run,
            "passes_skipped": self.passes_skipped,
            "passes_failed": self.passes_failed,
            "triggers": self.triggers,
            "debounced_triggers": self.debounced_triggers,
            "last_pass_at": self.last_pass_at.isoformat() if self.last_pass_at else None,
            "last_error": self.last_error.to_dict() if self.last_error else None,
        }
