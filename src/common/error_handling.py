"""
Centralized error handling for the pagination engine.

A pagination glitch must never block rendering or crash the host UI, so
engine entry points degrade to "no layout change" instead of raising.
This module provides the decorator and helpers that implement that policy
with consistent logging.
"""

import logging
import traceback
from functools import wraps
from typing import Any, Callable, Optional, TypeVar
from dataclasses import dataclass, field
from datetime import datetime

# Type variable for generic return types
T = TypeVar("T")


@dataclass
class LayoutError:
    """
    Structured error information for a failed layout operation.
    """

    component: str  # e.g., "engine", "measurement", "scheduler"
    operation: str  # e.g., "layout_pass", "resize listener attach"
    message: str
    timestamp: str = field(default_factory=lambda: datetime.utcnow().isoformat())
    exception_type: Optional[str] = None
    stack_trace: Optional[str] = None

    @classmethod
    def from_exception(cls, component: str, operation: str, exc: BaseException) -> "LayoutError":
        """Build an error record from a caught exception."""
        return cls(
            component=component,
            operation=operation,
            message=str(exc),
            exception_type=type(exc).__name__,
            stack_trace="".join(
                traceback.format_exception(type(exc), exc, exc.__traceback__)
            ),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "component": self.component,
            "operation": self.operation,
            "message": self.message,
            "timestamp": self.timestamp,
            "exception_type": self.exception_type,
        }


def layout_operation(
    operation_name: str,
    component: str = "unknown",
    critical: bool = False,
    log_success: bool = False,
    fallback_value: Any = None,
    reraise: bool = False,
):
    """
    Decorator for layout operations with consistent error handling.

    Provides:
    - Optional DEBUG logging on success (if log_success=True)
    - ERROR logging with stack trace on failure for critical operations
    - WARNING logging on failure for non-critical operations
    - Optional re-raising of exceptions

    Args:
        operation_name: Human-readable operation name (e.g., "apply offsets")
        component: Component identifier (e.g., "engine", "scheduler")
        critical: If True, logs at ERROR level with stack trace; if False, WARNING
        log_success: If True, logs successful completion at DEBUG level
        fallback_value: Value to return on failure (default: None)
        reraise: If True, re-raises the exception after logging

    Usage:
        @layout_operation("resize listener detach", component="engine")
        def _detach_viewport(self):
            self.viewport.remove_resize_listener(self.notify_resize)
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            logger = logging.getLogger(func.__module__)
            try:
                result = func(*args, **kwargs)
                if log_success:
                    logger.debug(f"[{component}] [{operation_name}] Completed")
                return result
            except Exception as e:
                log_level = logging.ERROR if critical else logging.WARNING
                logger.log(
                    log_level,
                    f"[{component}] [{operation_name}] Failed: {e}",
                    exc_info=critical,  # Stack trace for critical errors only
                )
                if reraise:
                    raise
                return fallback_value

        return wrapper

    return decorator


def safe_execute(
    func: Callable[..., T],
    *args,
    operation_name: str = "operation",
    logger: Optional[logging.Logger] = None,
    fallback: T = None,
    critical: bool = False,
    **kwargs,
) -> T:
    """
    Execute a function safely with error handling and logging.

    This is an alternative to the decorator for one-off calls, e.g. the
    scheduler invoking a pass callback from the event loop.

    Args:
        func: Function to execute
        *args: Positional arguments for func
        operation_name: Name for logging
        logger: Logger instance (uses module logger if None)
        fallback: Value to return on failure
        critical: If True, log at ERROR level with traceback
        **kwargs: Keyword arguments for func

    Returns:
        Function result or fallback value on error
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    try:
        return func(*args, **kwargs)
    except Exception as e:
        log_level = logging.ERROR if critical else logging.WARNING
        logger.log(
            log_level,
            f"[{operation_name}] Failed: {e}",
            exc_info=critical,
        )
        return fallback
