"""
Unit tests for the Playwright backend.

The page is an AsyncMock whose evaluate() dispatches on the script it is
given, standing in for Chromium.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.pagination import playwright_backend
from src.pagination.playwright_backend import (
    PlaywrightPageBreaker,
    _unique_ids,
    build_document,
    paginate_html,
)
from src.pagination.resolver import find_straddling
from src.pagination.types import BlockGeometry, PageGeometry


class FakePage:
    """
    Minimal in-browser model: blocks stacked in normal flow.

    A block's margin-top collapses with the previous block's margin-bottom,
    so it only moves by the part of the margin that exceeds it.
    """

    def __init__(self, blocks, container_top=0.0, mounted=True):
        # blocks: list of (id, natural_top, height[, margin_bottom])
        self.blocks = [tuple(b) + (0.0,) * (4 - len(b)) for b in blocks]
        self.container_top = container_top
        self.mounted = mounted
        self.margins = [""] * len(blocks)
        self.fail_on_measure = False
        self.evaluate = AsyncMock(side_effect=self._evaluate)

    def _px(self, value):
        return float(value[:-2]) if value.endswith("px") else 0.0

    def layout(self):
        """Container-relative (id, top, height) of every block as rendered."""
        carried = 0.0
        previous_margin_bottom = 0.0
        rects = []
        for (block_id, top, height, margin_bottom), margin in zip(self.blocks, self.margins):
            carried += max(0.0, self._px(margin) - previous_margin_bottom)
            rects.append((block_id, top + carried, height))
            previous_margin_bottom = margin_bottom
        return rects

    async def _evaluate(self, script, args=None):
        if script is playwright_backend._RESET_JS:
            if not self.mounted:
                return None
            previous = list(self.margins)
            self.margins = ["0px"] * len(self.blocks)
            return previous
        if script is playwright_backend._MEASURE_JS:
            if not self.mounted:
                return None
            if self.fail_on_measure:
                raise RuntimeError("Target closed")
            rects = [
                {"id": block_id, "top": self.container_top + top, "height": height}
                for block_id, top, height in self.layout()
            ]
            return {"containerTop": self.container_top, "blocks": rects}
        if script is playwright_backend._APPLY_JS:
            margins = args[2]
            self.margins = list(margins) + self.margins[len(margins):]
            return True
        if script is playwright_backend._SNAPSHOT_JS:
            return "<div id='resume-preview'>...</div>" if self.mounted else None
        # document.fonts.ready and other housekeeping scripts
        return True


class TestPlaywrightPageBreaker:
    """Tests for PlaywrightPageBreaker.run_pass()."""

    @pytest.mark.asyncio
    async def test_crossing_block_gets_margin(self, letter_page):
        page = FakePage([("summary", 0, 400), ("job-1", 1000, 100)])
        breaker = PlaywrightPageBreaker(page, geometry=letter_page)

        result = await breaker.run_pass()

        assert result.offsets == {"summary": 0.0, "job-1": 116.0}
        assert page.margins == ["0.0px", "116.0px"]
        assert result.page_count == 2

    @pytest.mark.asyncio
    async def test_later_blocks_resolved_at_live_position(self):
        page = FakePage([("a", 900, 200), ("b", 1100, 850)], container_top=-40)
        breaker = PlaywrightPageBreaker(page, geometry=PageGeometry(1000, 40, 20))

        result = await breaker.run_pass()

        assert result.offsets["a"] == 160.0
        assert result.offsets["b"] == pytest.approx(800.0)

    @pytest.mark.asyncio
    async def test_collapsed_margin_shortfall_is_topped_up(self, letter_page):
        """A pushed block whose margin collapses with margin-bottom 8px still lands on target."""
        page = FakePage([("a", 0, 1000, 8), ("b", 1008, 100, 8), ("c", 2006, 50)])
        breaker = PlaywrightPageBreaker(page, geometry=letter_page)

        result = await breaker.run_pass()

        assert result.offsets == {"a": 0.0, "b": 116.0, "c": 0.0}
        assert page.margins == ["0.0px", "116.0px", "0.0px"]
        assert result.pages == {"a": 1, "b": 2, "c": 3}

        rendered = [BlockGeometry(*rect) for rect in page.layout()]
        assert [(g.block_id, g.top) for g in rendered] == [("a", 0), ("b", 1116), ("c", 2114)]
        assert find_straddling(rendered, {}, letter_page) == []

    @pytest.mark.asyncio
    async def test_collapse_is_measured_for_later_blocks(self, letter_page):
        """Blocks after a collapsed push are resolved where they really are."""
        page = FakePage([("a", 0, 1000, 30), ("b", 1030, 100, 30), ("c", 2000, 100)])
        breaker = PlaywrightPageBreaker(page, geometry=letter_page)

        result = await breaker.run_pass()

        rendered = [BlockGeometry(*rect) for rect in page.layout()]
        assert find_straddling(rendered, {}, letter_page) == []
        assert rendered[1].top == 1116
        assert result.offsets["b"] == 116.0
        assert rendered[2].top == 2172
        assert result.offsets["c"] == 116.0

    @pytest.mark.asyncio
    async def test_one_apply_per_push_without_collapse(self, letter_page):
        page = FakePage([("summary", 0, 400), ("job-1", 1000, 100)])
        await PlaywrightPageBreaker(page, geometry=letter_page).run_pass()

        scripts = [call.args[0] for call in page.evaluate.call_args_list]
        assert scripts.count(playwright_backend._APPLY_JS) == 1

    @pytest.mark.asyncio
    async def test_second_pass_is_identical(self, letter_page):
        page = FakePage([("a", 0, 500), ("b", 1000, 100), ("c", 1120, 300)])
        breaker = PlaywrightPageBreaker(page, geometry=letter_page)

        first = await breaker.run_pass()
        second = await breaker.run_pass()

        assert first.offsets == second.offsets

    @pytest.mark.asyncio
    async def test_missing_container_is_skipped(self, letter_page):
        page = FakePage([("a", 1000, 100)], mounted=False)
        result = await PlaywrightPageBreaker(page, geometry=letter_page).run_pass()

        assert result.skipped is True
        assert result.offsets == {}

    @pytest.mark.asyncio
    async def test_failure_restores_margins(self, letter_page):
        page = FakePage([("a", 1000, 100)])
        page.margins = ["12px"]
        page.fail_on_measure = True
        breaker = PlaywrightPageBreaker(page, geometry=letter_page)

        result = await breaker.run_pass()

        assert result.failed is True
        assert page.margins == ["12px"]
        assert breaker.last_error.exception_type == "RuntimeError"

    @pytest.mark.asyncio
    async def test_clear_resets_margins(self, letter_page):
        page = FakePage([("a", 1000, 100)])
        breaker = PlaywrightPageBreaker(page, geometry=letter_page)
        await breaker.run_pass()

        await breaker.clear()

        assert page.margins == ["0px"]

    @pytest.mark.asyncio
    async def test_selectors_default_to_config(self, letter_page):
        page = FakePage([])
        breaker = PlaywrightPageBreaker(page, geometry=letter_page)
        await breaker.run_pass()

        args = page.evaluate.call_args_list[0].args[1]
        assert args == ["#resume-preview", ".resume-item"]

    @pytest.mark.asyncio
    async def test_snapshot(self, letter_page):
        page = FakePage([])
        html = await PlaywrightPageBreaker(page, geometry=letter_page).snapshot_html()
        assert "resume-preview" in html


class TestHelpers:
    """Tests for module helpers."""

    def test_unique_ids(self):
        assert _unique_ids(["a", "b", "a", "a"]) == ["a", "b", "a#1", "a#2"]

    def test_build_document_without_css_is_passthrough(self):
        assert build_document("<p>x</p>") == "<p>x</p>"

    def test_build_document_inlines_css(self):
        doc = build_document("<p>x</p>", ".resume-item { color: red; }")
        assert "<style>.resume-item { color: red; }</style>" in doc
        assert "<p>x</p>" in doc


class TestPaginateHTML:
    """Tests for paginate_html() with Playwright mocked."""

    @pytest.mark.asyncio
    @patch("playwright.async_api.async_playwright")
    async def test_renders_and_closes_browser(self, mock_playwright, letter_page):
        fake_page = FakePage([("a", 1000, 100)])
        mock_page = MagicMock()
        mock_page.evaluate = fake_page.evaluate
        mock_page.set_content = AsyncMock()
        mock_page.wait_for_load_state = AsyncMock()
        mock_page.wait_for_timeout = AsyncMock()

        mock_browser = AsyncMock()
        mock_browser.new_page = AsyncMock(return_value=mock_page)
        mock_playwright.return_value.__aenter__ = AsyncMock(
            return_value=MagicMock(
                chromium=MagicMock(
                    launch=AsyncMock(return_value=mock_browser)
                )
            )
        )
        mock_playwright.return_value.__aexit__ = AsyncMock(return_value=False)

        snapshot, result = await paginate_html("<div id='resume-preview'></div>", geometry=letter_page)

        assert result.offsets == {"a": 116.0}
        assert "resume-preview" in snapshot
        mock_page.set_default_timeout.assert_called_once()
        mock_page.wait_for_timeout.assert_awaited_once_with(100.0)
        mock_browser.close.assert_awaited_once()
