"""
Print-pagination engine.

Simulates discrete page boundaries over a continuously flowing preview and
keeps every layout block from being split across one, by displacing only
the blocks that would straddle a boundary.

One pass is strictly ordered:
1. Reset  - every block's offset back to zero
2. Measure - natural container-relative geometry of every block
3. Resolve - offset per block (src.pagination.resolver)
4. Apply  - write offsets back to the blocks

Offsets are always recomputed from a reset state, never adjusted
incrementally, so running a pass twice with unchanged content yields the
same mapping.

Usage:
    engine = PageBreakEngine(container, viewport=viewport)
    engine.set_print_mode(True)          # schedules a pass
    engine.update_dependencies([resume]) # content changed -> reflow
    ...
    engine.dispose()
"""

import asyncio
import uuid
from typing import Any, Dict, List, Optional, Sequence

from src.common.config import Config
from src.common.error_handling import LayoutError, layout_operation
from src.common.logger import get_logger
from src.pagination.measurable import LayoutContainer, Measurable, Viewport
from src.pagination.measurement import measure_all, reset_all
from src.pagination.resolver import assign_pages, resolve_offsets
from src.pagination.scheduler import ReflowScheduler
from src.pagination.types import BlockId, EngineStats, LayoutPassResult, PageGeometry


class PageBreakEngine:
    """
    Mode controller and pass orchestrator for one layout container.

    The engine is the only writer of block offsets; the rendering layer only
    reads them. No method raises into the caller: every failure degrades to
    "no layout change this pass".
    """

    def __init__(
        self,
        container: Optional[LayoutContainer],
        geometry: Optional[PageGeometry] = None,
        viewport: Optional[Viewport] = None,
        settle_delay: Optional[float] = None,
        flow_layout: bool = False,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        engine_id: Optional[str] = None,
        debug_mode: Optional[bool] = None,
    ):
        """
        Initialize engine.

        Args:
            container: Container of layout blocks (may be None until mounted)
            geometry: Page geometry (defaults to Config values)
            viewport: Resize notification source (optional)
            settle_delay: Seconds between a trigger and its pass
                (defaults to Config.REFLOW_SETTLE_DELAY_MS)
            flow_layout: True when an offset on one block displaces the
                blocks after it (see resolve_offsets)
            loop: Event loop for scheduled passes (defaults to running loop)
            engine_id: Identifier for log correlation
            debug_mode: Pin the engine logger (shared by every engine) to
                DEBUG or INFO; None defers to the global debug mode
        """
        self.container = container
        self.geometry = geometry or Config.get_page_geometry()
        self.viewport = viewport
        self.flow_layout = flow_layout
        self.engine_id = engine_id or uuid.uuid4().hex

        if settle_delay is None:
            settle_delay = Config.get_settle_delay_seconds()

        self.logger = get_logger(
            __name__, engine_id=self.engine_id, component="engine", debug_mode=debug_mode
        )
        self._scheduler = ReflowScheduler(
            self.run_pass,
            settle_delay=settle_delay,
            loop=loop,
            name=self.engine_id[:8],
        )

        self._active = False
        self._disposed = False
        self._listening = False
        self._dependencies: Optional[List[Any]] = None
        self._offsets: Dict[BlockId, float] = {}
        self._stats = EngineStats()
        self._last_result: Optional[LayoutPassResult] = None

    # =========================================================================
    # State
    # =========================================================================

    @property
    def active(self) -> bool:
        """True while print simulation is on."""
        return self._active

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def pending(self) -> bool:
        """True while a scheduled pass is waiting for the settle delay."""
        return self._scheduler.pending

    @property
    def offsets(self) -> Dict[BlockId, float]:
        """Offsets currently applied by the engine, block id -> px."""
        return dict(self._offsets)

    @property
    def stats(self) -> EngineStats:
        return self._stats

    @property
    def scheduler(self) -> ReflowScheduler:
        return self._scheduler

    @property
    def last_result(self) -> Optional[LayoutPassResult]:
        return self._last_result

    # =========================================================================
    # Mode Controller
    # =========================================================================

    def set_print_mode(self, active: bool) -> None:
        """
        Enable or disable print simulation.

        Enabling attaches the resize listener and schedules a pass.
        Disabling cancels any pending pass, detaches the listener and clears
        every block's offset immediately; no pass runs until re-enabled.
        """
        if self._disposed:
            self.logger.debug("set_print_mode() ignored: engine disposed")
            return

        if not active:
            was_active = self._active
            self._active = False
            self._scheduler.cancel()
            self._detach_viewport()
            self._clear_offsets()
            if was_active:
                self.logger.info("Print mode disabled - offsets cleared")
            return

        if self._active:
            return

        self._active = True
        self._attach_viewport()
        self.logger.info("Print mode enabled")
        self._trigger("activation")

    # =========================================================================
    # Triggers
    # =========================================================================

    def update_dependencies(self, dependencies: Sequence[Any]) -> bool:
        """
        Report the current content values the layout depends on.

        A change is detected by identity, element by element; a new object
        with equal contents still counts as a change. The first call only
        records the baseline (activation already schedules a pass).

        Returns:
            True if a change was detected
        """
        current = list(dependencies)
        previous = self._dependencies
        self._dependencies = current

        changed = previous is not None and (
            len(previous) != len(current)
            or any(old is not new for old, new in zip(previous, current))
        )
        if changed:
            self._trigger("dependency change")
        return changed

    def notify_resize(self) -> None:
        """Viewport resize trigger (registered as the resize listener)."""
        self._trigger("resize")

    def _trigger(self, reason: str) -> None:
        if self._disposed or not self._active:
            return
        self._stats.triggers += 1
        if self._scheduler.pending:
            self._stats.debounced_triggers += 1
        if self._scheduler.schedule():
            self.logger.debug(f"Pass scheduled ({reason})")

    # =========================================================================
    # Pass
    # =========================================================================

    def run_pass(self) -> LayoutPassResult:
        """
        Run one measure-resolve-apply cycle now.

        Skipped (no-op) when the engine is inactive or the container is
        missing or unmounted. On any failure the offsets applied before the
        pass are restored and a failed result is returned.
        """
        if self._disposed or not self._active:
            return self._record_skip("print mode inactive")
        if self.container is None or not self._is_mounted():
            return self._record_skip("container not mounted")

        previous = dict(self._offsets)
        blocks: Sequence[Measurable] = ()
        try:
            blocks = list(self.container.blocks())

            reset_all(blocks)
            geometry = measure_all(self.container, blocks)
            offsets = resolve_offsets(geometry, self.geometry, flow_layout=self.flow_layout)
            self._apply(blocks, offsets)
            pages = assign_pages(geometry, offsets, self.geometry, flow_layout=self.flow_layout)
        except Exception as e:
            return self._record_failure(blocks, previous, e)

        self._offsets = offsets
        result = LayoutPassResult(offsets=dict(offsets), pages=pages, block_count=len(blocks))
        self._stats.passes_run += 1
        self._stats.last_pass_at = result.completed_at
        self._last_result = result

        self.logger.pass_complete(result)
        return result

    def _apply(self, blocks: Sequence[Measurable], offsets: Dict[BlockId, float]) -> None:
        for block in blocks:
            offset = offsets.get(block.block_id, 0.0)
            if offset:
                block.apply_offset(offset)

    def _is_mounted(self) -> bool:
        try:
            return bool(self.container.is_mounted)
        except Exception as e:
            self.logger.debug(f"Container mount check failed: {e}")
            return False

    def _record_skip(self, reason: str) -> LayoutPassResult:
        self._stats.passes_skipped += 1
        self.logger.debug(f"Pass skipped: {reason}")
        return LayoutPassResult.skip(reason)

    def _record_failure(
        self,
        blocks: Sequence[Measurable],
        previous: Dict[BlockId, float],
        error: Exception,
    ) -> LayoutPassResult:
        self._stats.passes_failed += 1
        self._stats.last_error = LayoutError.from_exception("engine", "layout_pass", error)
        self.logger.warning(f"Pass failed, restoring previous offsets: {error}")
        self._restore(blocks, previous)
        return LayoutPassResult(
            offsets=dict(self._offsets),
            block_count=len(blocks),
            failed=True,
            skip_reason=str(error),
        )

    def _restore(self, blocks: Sequence[Measurable], previous: Dict[BlockId, float]) -> None:
        for block in blocks:
            try:
                block.apply_offset(previous.get(block.block_id, 0.0))
            except Exception as e:
                self.logger.debug(f"Could not restore offset: {e}")

    # =========================================================================
    # Offsets / listeners
    # =========================================================================

    def _clear_offsets(self) -> None:
        self._offsets = {}
        if self.container is None or not self._is_mounted():
            return
        try:
            blocks = list(self.container.blocks())
            reset_all(blocks)
        except Exception as e:
            self.logger.warning(f"Failed to clear offsets: {e}")
            return
        self._offsets = {block.block_id: 0.0 for block in blocks}

    @layout_operation("resize listener attach", component="engine")
    def _attach_viewport(self) -> None:
        if self.viewport is None or self._listening:
            return
        self.viewport.add_resize_listener(self.notify_resize)
        self._listening = True

    @layout_operation("resize listener detach", component="engine")
    def _detach_viewport(self) -> None:
        if self.viewport is None or not self._listening:
            return
        self._listening = False
        self.viewport.remove_resize_listener(self.notify_resize)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def dispose(self) -> None:
        """
        Tear down: cancel any pending pass and remove the resize listener.

        Offsets already applied are left in place (the owner is going away).
        """
        if self._disposed:
            return
        self._scheduler.dispose()
        self._detach_viewport()
        self._active = False
        self._disposed = True
        self.logger.debug("Engine disposed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.dispose()
        return False

    def to_dict(self) -> Dict[str, Any]:
        """Export engine state as dictionary."""
        return {
            "engine_id": self.engine_id,
            "active": self._active,
            "disposed": self._disposed,
            "pending": self.pending,
            "flow_layout": self.flow_layout,
            "geometry": self.geometry.to_dict(),
            "offsets": {str(k): v for k, v in self._offsets.items()},
            "stats": self._stats.to_dict(),
            "scheduler": self._scheduler.stats.to_dict(),
        }
