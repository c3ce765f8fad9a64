"""
Configuration loader for the print-pagination engine.

Loads all settings from environment variables (.env file).
Validates settings and provides type-safe access.
"""

import os
from typing import List
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_float(name: str, default: str) -> float:
    """Read a float setting, falling back to the default on garbage input."""
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except (TypeError, ValueError):
        return float(default)


class Config:
    """
    Centralized configuration for the pagination engine and its backends.

    Page geometry here is only the default: every engine instance accepts
    its own PageGeometry override.
    """

    # ===== Page Geometry =====
    # 11 inches at 96 DPI
    PAGE_HEIGHT_PX: float = _env_float("PAGE_HEIGHT_PX", "1056")
    # Visual dead zone inserted at each page boundary
    PAGE_GAP_PX: float = _env_float("PAGE_GAP_PX", "40")
    # Extra clearance beyond the gap (sub-pixel rounding)
    PAGE_BUFFER_PX: float = _env_float("PAGE_BUFFER_PX", "20")

    # ===== Reflow Scheduling =====
    # Lets fonts/images settle before measuring; also the debounce window
    REFLOW_SETTLE_DELAY_MS: float = _env_float("REFLOW_SETTLE_DELAY_MS", "100")

    # ===== DOM Selectors =====
    LAYOUT_BLOCK_SELECTOR: str = os.getenv("LAYOUT_BLOCK_SELECTOR", ".resume-item")
    LAYOUT_CONTAINER_SELECTOR: str = os.getenv("LAYOUT_CONTAINER_SELECTOR", "#resume-preview")

    # ===== Headless Browser =====
    PLAYWRIGHT_HEADLESS: bool = os.getenv("PLAYWRIGHT_HEADLESS", "true").lower() == "true"
    PLAYWRIGHT_TIMEOUT: int = int(_env_float("PLAYWRIGHT_TIMEOUT", "30000"))  # milliseconds
    MAX_CONCURRENT_RENDERS: int = int(_env_float("MAX_CONCURRENT_RENDERS", "5"))

    # ===== Logging =====
    DEBUG_MODE: bool = os.getenv("DEBUG_MODE", "false").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    # "simple" or "json"
    LOG_FORMAT: str = os.getenv("LOG_FORMAT", "simple").lower()

    @classmethod
    def validate(cls) -> None:
        """
        Validate that configured values are usable.
        Raises ValueError listing every invalid setting.
        """
        problems: List[str] = []

        if cls.PAGE_HEIGHT_PX <= 0:
            problems.append(f"PAGE_HEIGHT_PX must be > 0 (got {cls.PAGE_HEIGHT_PX})")
        if cls.PAGE_GAP_PX < 0:
            problems.append(f"PAGE_GAP_PX must be >= 0 (got {cls.PAGE_GAP_PX})")
        if cls.PAGE_BUFFER_PX < 0:
            problems.append(f"PAGE_BUFFER_PX must be >= 0 (got {cls.PAGE_BUFFER_PX})")
        if cls.REFLOW_SETTLE_DELAY_MS < 0:
            problems.append(
                f"REFLOW_SETTLE_DELAY_MS must be >= 0 (got {cls.REFLOW_SETTLE_DELAY_MS})"
            )
        if cls.MAX_CONCURRENT_RENDERS < 1:
            problems.append(
                f"MAX_CONCURRENT_RENDERS must be >= 1 (got {cls.MAX_CONCURRENT_RENDERS})"
            )
        if not cls.LAYOUT_BLOCK_SELECTOR.strip():
            problems.append("LAYOUT_BLOCK_SELECTOR must not be empty")
        if cls.LOG_FORMAT not in ("simple", "json"):
            problems.append(f"LOG_FORMAT must be 'simple' or 'json' (got {cls.LOG_FORMAT!r})")

        if problems:
            raise ValueError(
                f"Invalid pagination configuration: {'; '.join(problems)}. "
                f"Please check your .env file."
            )

    @classmethod
    def get_page_geometry(cls):
        """Build the default PageGeometry from configured values."""
        from src.pagination.types import PageGeometry

        return PageGeometry(
            page_height=cls.PAGE_HEIGHT_PX,
            gap_height=cls.PAGE_GAP_PX,
            buffer=cls.PAGE_BUFFER_PX,
        )

    @classmethod
    def get_settle_delay_seconds(cls) -> float:
        """Settle delay converted to seconds for the event loop."""
        return cls.REFLOW_SETTLE_DELAY_MS / 1000.0

    @classmethod
    def summary(cls) -> str:
        """Get a summary of current configuration."""
        return f"""
Configuration Summary:
  Page Height: {cls.PAGE_HEIGHT_PX}px
  Page Gap: {cls.PAGE_GAP_PX}px
  Buffer: {cls.PAGE_BUFFER_PX}px
  Settle Delay: {cls.REFLOW_SETTLE_DELAY_MS}ms
  Block Selector: {cls.LAYOUT_BLOCK_SELECTOR}
  Container Selector: {cls.LAYOUT_CONTAINER_SELECTOR}
  Playwright Headless: {cls.PLAYWRIGHT_HEADLESS}
  Max Concurrent Renders: {cls.MAX_CONCURRENT_RENDERS}
  Debug Mode: {cls.DEBUG_MODE}
  Log Level: {cls.LOG_LEVEL}
  Log Format: {cls.LOG_FORMAT}
"""
