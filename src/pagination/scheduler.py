"""
Reflow Scheduler: debounced, cancellable execution of layout passes.

Runs entirely on the asyncio event loop, so a scheduled pass never runs
concurrently with another one. The only suspension point is the settle delay
between a trigger and the pass.

Usage:
    scheduler = ReflowScheduler(engine.run_pass, settle_delay=0.1)

    scheduler.schedule()   # pass runs 100ms from now
    scheduler.schedule()   # replaces the pending pass (last trigger wins)
    scheduler.cancel()     # nothing runs
    scheduler.dispose()    # cancel + refuse further scheduling
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from src.common.error_handling import safe_execute
from src.common.logger import get_logger


@dataclass
class SchedulerStats:
    """Statistics for a reflow scheduler."""
    scheduled: int = 0
    replaced: int = 0      # pending passes superseded by a newer trigger
    cancelled: int = 0
    executed: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "scheduled": self.scheduled,
            "replaced": self.replaced,
            "cancelled": self.cancelled,
            "executed": self.executed,
        }


class ReflowScheduler:
    """
    Debounce a callback behind a fixed settle delay.

    Each schedule() cancels any pending run and starts a fresh timer, so N
    triggers inside one settle window produce exactly one execution.
    """

    def __init__(
        self,
        callback: Callable[[], Any],
        settle_delay: float = 0.1,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        name: str = "reflow",
    ):
        """
        Initialize scheduler.

        Args:
            callback: Zero-argument callable run when the delay expires
            settle_delay: Seconds to wait after the last trigger
            loop: Event loop to schedule on (defaults to the running loop)
            name: Identifier used in log messages
        """
        if settle_delay < 0:
            raise ValueError(f"settle_delay must be >= 0 (got {settle_delay})")

        self.callback = callback
        self.settle_delay = settle_delay
        self.name = name
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None
        self._disposed = False
        self._stats = SchedulerStats()
        self.logger = get_logger(__name__, component=f"scheduler:{name}")

    @property
    def pending(self) -> bool:
        """True while a pass is waiting for its settle delay."""
        return self._handle is not None

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def stats(self) -> SchedulerStats:
        return self._stats

    def _resolve_loop(self) -> Optional[asyncio.AbstractEventLoop]:
        if self._loop is not None:
            return self._loop
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            return None

    def schedule(self) -> bool:
        """
        Schedule a pass after the settle delay, replacing any pending one.

        Returns:
            True if a pass is now pending, False if the scheduler is disposed
            or no event loop is available
        """
        if self._disposed:
            self.logger.debug("schedule() ignored: scheduler disposed")
            return False

        loop = self._resolve_loop()
        if loop is None or loop.is_closed():
            self.logger.warning("schedule() ignored: no running event loop")
            return False

        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
            self._stats.replaced += 1

        self._handle = loop.call_later(self.settle_delay, self._fire)
        self._stats.scheduled += 1
        return True

    def cancel(self) -> bool:
        """
        Cancel the pending pass, if any.

        Returns:
            True if a pending pass was cancelled
        """
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        self._stats.cancelled += 1
        return True

    def dispose(self) -> None:
        """Cancel the pending pass and refuse any further scheduling."""
        self.cancel()
        self._disposed = True

    def _fire(self) -> None:
        self._handle = None
        if self._disposed:
            return
        self._stats.executed += 1
        safe_execute(
            self.callback,
            operation_name=f"{self.name} pass",
            logger=self.logger.logger,
        )
