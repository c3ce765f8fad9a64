"""
Logging for the pagination engine.

LayoutLogger prefixes every message with ``[engine:<id>] [<component>]`` so
the interleaved output of several engines (one per preview) stays readable.
The same context is attached to each record as ``engine_id`` and
``component`` so the json format can emit them as separate fields.

Debug mode turns on the per-pass DEBUG output (skips, pushed blocks,
scheduler activity). It is read from Config.DEBUG_MODE, switched on by the
CLI's --verbose, or forced for one logger with debug_mode=True.
"""

import json
import logging
import sys
from typing import Any, Dict, Optional

from src.common.config import Config

LOG_FORMATS = ("simple", "json")

_GLOBAL_DEBUG_MODE = Config.DEBUG_MODE


def set_global_debug_mode(enabled: bool) -> None:
    """Set global debug mode (picked up by the next setup_logging call)."""
    global _GLOBAL_DEBUG_MODE
    _GLOBAL_DEBUG_MODE = enabled


def is_debug_mode() -> bool:
    return _GLOBAL_DEBUG_MODE


class JsonFormatter(logging.Formatter):
    """One JSON object per line, with engine context fields when present."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        for key in ("engine_id", "component"):
            value = getattr(record, key, None)
            if value:
                entry[key] = value
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry)


class LayoutLogger:
    """
    Contextual logger for layout engine components.

    Adds engine id and component name to all log messages.
    """

    def __init__(
        self,
        name: str,
        engine_id: Optional[str] = None,
        component: Optional[str] = None,
        debug_mode: Optional[bool] = None
    ):
        """
        Args:
            name: Logger name (usually __name__)
            engine_id: Optional engine identifier for correlation
            component: Optional component name (e.g., "scheduler", "engine")
            debug_mode: True/False pins this logger to DEBUG/INFO regardless
                of the global setting; None defers to setup_logging()
        """
        self.logger = logging.getLogger(name)
        self.engine_id = engine_id
        self.component = component

        if debug_mode is not None:
            self.logger.setLevel(logging.DEBUG if debug_mode else logging.INFO)

    def _format_message(self, message: str) -> str:
        prefix_parts = []
        if self.engine_id:
            prefix_parts.append(f"[engine:{self.engine_id[:8]}]")
        if self.component:
            prefix_parts.append(f"[{self.component}]")

        if prefix_parts:
            return f"{' '.join(prefix_parts)} {message}"
        return message

    def _log(self, level: int, message: str) -> None:
        self.logger.log(
            level,
            self._format_message(message),
            extra={"engine_id": self.engine_id, "component": self.component},
        )

    def debug(self, message: str) -> None:
        self._log(logging.DEBUG, message)

    def info(self, message: str) -> None:
        self._log(logging.INFO, message)

    def warning(self, message: str) -> None:
        self._log(logging.WARNING, message)

    def pass_complete(self, result) -> None:
        """
        Log a completed LayoutPassResult: one summary line, plus one line
        per pushed block when DEBUG is enabled.
        """
        if not self.logger.isEnabledFor(logging.DEBUG):
            return
        pushed = result.pushed
        self.debug(
            f"Pass complete: {result.block_count} blocks, "
            f"{len(pushed)} pushed, {result.page_count} pages"
        )
        for block_id in pushed:
            self.debug(
                f"  pushed {block_id}: +{result.offsets[block_id]:.1f}px "
                f"-> page {result.pages.get(block_id, '?')}"
            )


def setup_logging(level: Optional[str] = None, format: Optional[str] = None) -> None:
    """
    Configure global logging settings.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to DEBUG in
            debug mode, Config.LOG_LEVEL otherwise.
        format: "simple" or "json" (defaults to Config.LOG_FORMAT)

    Raises:
        ValueError: Unknown format
    """
    if level is None:
        level = "DEBUG" if is_debug_mode() else Config.LOG_LEVEL
    format = format or Config.LOG_FORMAT
    if format not in LOG_FORMATS:
        raise ValueError(f"Unknown log format {format!r} (expected one of {', '.join(LOG_FORMATS)})")

    log_level = getattr(logging, level.upper(), logging.INFO)

    # Remove existing handlers
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    if format == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        ))

    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)


def get_logger(
    name: str,
    engine_id: Optional[str] = None,
    component: Optional[str] = None,
    debug_mode: Optional[bool] = None
) -> LayoutLogger:
    """Get a layout logger instance."""
    return LayoutLogger(name, engine_id, component, debug_mode)
