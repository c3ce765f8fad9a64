"""
Headless-browser backend: runs page-break passes against a live Chromium
page via Playwright.

Offsets are written as inline ``margin-top`` on each block. In normal flow a
margin displaces every later block, but it also collapses with the previous
sibling's ``margin-bottom``, so the distance a block actually moves is only
known after layout. Passes therefore walk the blocks in document order and
re-measure the page after every push, resolving each block at its live
position. The snapshot taken afterwards (snapshot_html) is what an export
step serializes for PDF rendering.

Usage:
    async with async_playwright() as p:
        browser = await p.chromium.launch()
        page = await browser.new_page()
        await page.set_content(html)

        breaker = PlaywrightPageBreaker(page)
        result = await breaker.run_pass()
        paginated = await breaker.snapshot_html()
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

from src.common.config import Config
from src.common.error_handling import LayoutError
from src.common.logger import get_logger
from src.pagination.measurement import to_relative
from src.pagination.resolver import assign_pages, resolve_offset
from src.pagination.types import BlockGeometry, BlockId, LayoutPassResult, PageGeometry

logger = get_logger(__name__, component="playwright")

# Sub-pixel slack when comparing a pushed block's live top to its target
SETTLE_TOLERANCE_PX = 0.01


# Each script takes [containerSelector, blockSelector, ...] and returns null
# when the container is not in the document.
_RESET_JS = """
([containerSelector, blockSelector]) => {
    const root = document.querySelector(containerSelector);
    if (!root) return null;
    const previous = [];
    root.querySelectorAll(blockSelector).forEach((el) => {
        previous.push(el.style.marginTop || '');
        el.style.marginTop = '0px';
    });
    return previous;
}
"""

_MEASURE_JS = """
([containerSelector, blockSelector]) => {
    const root = document.querySelector(containerSelector);
    if (!root) return null;
    const blocks = [];
    root.querySelectorAll(blockSelector).forEach((el, index) => {
        const rect = el.getBoundingClientRect();
        blocks.push({
            id: el.dataset.blockId || el.id || String(index),
            top: rect.top,
            height: rect.height,
        });
    });
    return {containerTop: root.getBoundingClientRect().top, blocks: blocks};
}
"""

_APPLY_JS = """
([containerSelector, blockSelector, margins]) => {
    const root = document.querySelector(containerSelector);
    if (!root) return false;
    root.querySelectorAll(blockSelector).forEach((el, index) => {
        if (index < margins.length) el.style.marginTop = margins[index];
    });
    return true;
}
"""

_SNAPSHOT_JS = """
([containerSelector]) => {
    const root = document.querySelector(containerSelector);
    return root ? root.outerHTML : null;
}
"""


def _unique_ids(raw_ids: Sequence[str]) -> List[str]:
    """Disambiguate repeated ids (e.g. two blocks sharing a data-block-id)."""
    seen: Dict[str, int] = {}
    result = []
    for raw in raw_ids:
        count = seen.get(raw, 0)
        seen[raw] = count + 1
        result.append(raw if count == 0 else f"{raw}#{count}")
    return result


class PlaywrightPageBreaker:
    """Run the reset/measure/resolve/apply cycle inside a Playwright page."""

    def __init__(
        self,
        page: Any,
        container_selector: Optional[str] = None,
        block_selector: Optional[str] = None,
        geometry: Optional[PageGeometry] = None,
    ):
        """
        Args:
            page: playwright.async_api.Page with the document loaded
            container_selector: CSS selector of the layout container
            block_selector: CSS selector of layout blocks inside it
            geometry: Page geometry (defaults to Config values)
        """
        self.page = page
        self.container_selector = container_selector or Config.LAYOUT_CONTAINER_SELECTOR
        self.block_selector = block_selector or Config.LAYOUT_BLOCK_SELECTOR
        self.geometry = geometry or Config.get_page_geometry()
        self.last_error: Optional[LayoutError] = None

    @property
    def _selectors(self) -> List[str]:
        return [self.container_selector, self.block_selector]

    async def reset_offsets(self) -> Optional[List[str]]:
        """
        Clear every block's margin-top.

        Returns:
            The inline margin-top values found before the reset, or None
            when the container is missing
        """
        return await self.page.evaluate(_RESET_JS, self._selectors)

    async def measure(self) -> Optional[List[BlockGeometry]]:
        """Current geometry of every block, relative to the container top."""
        snapshot = await self.page.evaluate(_MEASURE_JS, self._selectors)
        if snapshot is None:
            return None
        raw_blocks = snapshot.get("blocks") or []
        ids = _unique_ids([str(item.get("id")) for item in raw_blocks])
        return to_relative(
            float(snapshot.get("containerTop") or 0.0),
            (
                (block_id, float(item.get("top") or 0.0), float(item.get("height") or 0.0))
                for block_id, item in zip(ids, raw_blocks)
            ),
        )

    async def apply_margins(self, margins: Sequence[float]) -> bool:
        """Write margin-top values (px) to the blocks, in document order."""
        return await self.page.evaluate(_APPLY_JS, self._selectors + [[f"{m}px" for m in margins]])

    async def _apply_and_measure(self, margins: Sequence[float]) -> List[BlockGeometry]:
        await self.apply_margins(margins)
        blocks = await self.measure()
        if blocks is None or len(blocks) != len(margins):
            raise RuntimeError("layout blocks changed during pass")
        return blocks

    async def _restore(self, previous: Optional[List[str]]) -> None:
        if previous is None:
            return
        try:
            await self.page.evaluate(_APPLY_JS, self._selectors + [previous])
        except Exception as e:
            logger.debug(f"Could not restore margins: {e}")

    async def run_pass(self) -> LayoutPassResult:
        """
        One full pass over the page.

        Blocks are resolved in document order at their live position. After
        a push the page is re-measured; if margin collapse left the block
        short of its target, the shortfall is added to its margin once.
        Reported offsets are the margin-top values written.

        Never raises: a missing container yields a skipped result, any other
        failure restores the margins found at the start and yields a failed
        result.
        """
        previous: Optional[List[str]] = None
        try:
            previous = await self.reset_offsets()
            if previous is None:
                logger.debug(f"Pass skipped: container {self.container_selector!r} not found")
                return LayoutPassResult.skip("container not mounted")

            blocks = await self.measure()
            if blocks is None:
                await self._restore(previous)
                return LayoutPassResult.skip("container not mounted")

            ids: List[BlockId] = [block.block_id for block in blocks]
            margins = [0.0] * len(blocks)
            for index in range(len(blocks)):
                offset = resolve_offset(blocks[index], self.geometry)
                if not offset:
                    continue
                target_top = blocks[index].top + offset
                margins[index] = offset
                blocks = await self._apply_and_measure(margins)

                shortfall = target_top - blocks[index].top
                if shortfall > SETTLE_TOLERANCE_PX:
                    margins[index] += shortfall
                    blocks = await self._apply_and_measure(margins)
        except Exception as e:
            self.last_error = LayoutError.from_exception("playwright", "layout_pass", e)
            logger.warning(f"Pass failed, restoring margins: {e}")
            await self._restore(previous)
            return LayoutPassResult(failed=True, skip_reason=str(e))

        result = LayoutPassResult(
            offsets=dict(zip(ids, margins)),
            pages=assign_pages(blocks, {}, self.geometry),
            block_count=len(blocks),
        )
        logger.pass_complete(result)
        return result

    async def clear(self) -> None:
        """Leave print simulation: every block back to zero offset."""
        try:
            await self.reset_offsets()
        except Exception as e:
            logger.warning(f"Failed to clear margins: {e}")

    async def snapshot_html(self) -> Optional[str]:
        """outerHTML of the container with offsets applied (None if missing)."""
        return await self.page.evaluate(_SNAPSHOT_JS, [self.container_selector])


def build_document(html: str, css: Optional[str] = None) -> str:
    """Wrap a fragment in a minimal document, inlining extra CSS."""
    if not css:
        return html
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <style>{css}</style>
    </head>
    <body>
        {html}
    </body>
    </html>
    """


async def paginate_html(
    html: str,
    css: Optional[str] = None,
    geometry: Optional[PageGeometry] = None,
    container_selector: Optional[str] = None,
    block_selector: Optional[str] = None,
    headless: Optional[bool] = None,
    timeout_ms: Optional[int] = None,
    settle_ms: Optional[float] = None,
) -> Tuple[Optional[str], LayoutPassResult]:
    """
    Render HTML in Chromium, run one pass, and snapshot the result.

    Args:
        html: Document or fragment to render
        css: Extra CSS inlined into the document
        geometry: Page geometry (defaults to Config values)
        container_selector: Layout container selector
        block_selector: Layout block selector
        headless: Browser launch mode (defaults to Config)
        timeout_ms: Page timeout (defaults to Config)
        settle_ms: Wait before measuring so fonts/images settle

    Returns:
        (container outerHTML after the pass or None, pass result)
    """
    from playwright.async_api import async_playwright

    if headless is None:
        headless = Config.PLAYWRIGHT_HEADLESS
    if timeout_ms is None:
        timeout_ms = Config.PLAYWRIGHT_TIMEOUT
    if settle_ms is None:
        settle_ms = Config.REFLOW_SETTLE_DELAY_MS

    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=headless)
        try:
            page = await browser.new_page()
            page.set_default_timeout(timeout_ms)

            await page.set_content(build_document(html, css), wait_until="networkidle")
            await page.wait_for_load_state("networkidle")
            await page.evaluate("document.fonts ? document.fonts.ready.then(() => true) : true")
            if settle_ms:
                await page.wait_for_timeout(settle_ms)

            breaker = PlaywrightPageBreaker(
                page,
                container_selector=container_selector,
                block_selector=block_selector,
                geometry=geometry,
            )
            result = await breaker.run_pass()
            snapshot = await breaker.snapshot_html()
        finally:
            await browser.close()

    return snapshot, result
