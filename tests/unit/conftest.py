"""
Global fixtures for all unit tests.

Isolates the pagination environment variables so a developer's .env cannot
change page geometry or selectors under the tests, and provides shared
page geometry and container fixtures.
"""

import os
import pytest

from src.pagination.memory import InMemoryBlock, InMemoryContainer, InMemoryViewport
from src.pagination.types import PageGeometry

# Set test environment BEFORE any imports of Config elsewhere
os.environ["DEBUG_MODE"] = "false"


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """
    Isolate test environment from local configuration.

    Config reads the environment at import time, so the class attributes
    are pinned too.
    """
    from src.common import logger as logger_module
    from src.common.config import Config

    for name in (
        "PAGE_HEIGHT_PX",
        "PAGE_GAP_PX",
        "PAGE_BUFFER_PX",
        "REFLOW_SETTLE_DELAY_MS",
        "LAYOUT_BLOCK_SELECTOR",
        "LAYOUT_CONTAINER_SELECTOR",
        "LOG_LEVEL",
        "LOG_FORMAT",
    ):
        monkeypatch.delenv(name, raising=False)

    monkeypatch.setattr(Config, "PAGE_HEIGHT_PX", 1056.0)
    monkeypatch.setattr(Config, "PAGE_GAP_PX", 40.0)
    monkeypatch.setattr(Config, "PAGE_BUFFER_PX", 20.0)
    monkeypatch.setattr(Config, "REFLOW_SETTLE_DELAY_MS", 100.0)
    monkeypatch.setattr(Config, "LAYOUT_BLOCK_SELECTOR", ".resume-item")
    monkeypatch.setattr(Config, "LAYOUT_CONTAINER_SELECTOR", "#resume-preview")
    monkeypatch.setattr(Config, "LOG_LEVEL", "INFO")
    monkeypatch.setattr(Config, "LOG_FORMAT", "simple")
    monkeypatch.setattr(logger_module, "_GLOBAL_DEBUG_MODE", False)
    yield


@pytest.fixture
def letter_page():
    """11in page at 96 DPI with the default gap and buffer."""
    return PageGeometry(page_height=1056, gap_height=40, buffer=20)


@pytest.fixture
def viewport():
    return InMemoryViewport()


@pytest.fixture
def single_block_container():
    """Factory: container holding one independent block."""

    def _make(top: float, height: float, container_top: float = 0.0) -> InMemoryContainer:
        return InMemoryContainer([InMemoryBlock("entry", top, height)], top=container_top)

    return _make
