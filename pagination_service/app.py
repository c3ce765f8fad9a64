"""
Pagination Service - FastAPI application for page-break simulation.

Provides an endpoint that renders HTML with Playwright/Chromium, pushes
layout blocks off simulated page boundaries and returns the resulting
markup plus the applied offsets.
"""

import asyncio
import logging
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from src.common.config import Config
from src.common.logger import setup_logging
from src.pagination.types import PageGeometry

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Pagination Service",
    version="0.1.0",
    description="Print-pagination simulation using Playwright/Chromium"
)

# Configuration
MAX_CONCURRENT_RENDERS = Config.MAX_CONCURRENT_RENDERS
PLAYWRIGHT_TIMEOUT = Config.PLAYWRIGHT_TIMEOUT  # milliseconds
PLAYWRIGHT_HEADLESS = Config.PLAYWRIGHT_HEADLESS

# Semaphore for rate limiting
_render_semaphore = asyncio.Semaphore(MAX_CONCURRENT_RENDERS)

# Playwright readiness state
_playwright_ready = False
_playwright_error: Optional[str] = None


# ============================================================================
# Startup Event - Validate Playwright
# ============================================================================

@app.on_event("startup")
async def validate_playwright_on_startup():
    """
    Validate Playwright/Chromium is properly installed on startup.

    The service won't report as healthy if Chromium can't lay out a page.
    """
    global _playwright_ready, _playwright_error

    logger.info("Pagination Service starting - validating Playwright installation...")

    try:
        from playwright.async_api import async_playwright

        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=PLAYWRIGHT_HEADLESS)
            page = await browser.new_page()
            await page.set_content("<html><body><div id='layout-check' style='height: 10px'></div></body></html>")
            height = await page.evaluate(
                "document.getElementById('layout-check').getBoundingClientRect().height"
            )
            await browser.close()

        if height and height > 0:
            _playwright_ready = True
            logger.info("Playwright validation successful")
        else:
            _playwright_error = "Layout check returned zero height"
            logger.error(f"Playwright validation failed: {_playwright_error}")

    except Exception as e:
        _playwright_error = str(e)
        logger.error(f"Playwright validation failed: {_playwright_error}")
        logger.error("Pagination will not work until this is resolved.")


# ============================================================================
# Request/Response Models
# ============================================================================

class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    timestamp: datetime
    active_renders: int
    max_concurrent: int
    playwright_ready: bool = True
    playwright_error: Optional[str] = None


class PaginateRequest(BaseModel):
    """HTML page-break simulation request."""
    html: str = Field(..., description="HTML content to paginate")
    css: Optional[str] = Field(None, description="Additional CSS styles")
    pageHeight: float = Field(default_factory=lambda: Config.PAGE_HEIGHT_PX, gt=0, allow_inf_nan=False, description="Simulated page height (px)")
    gapHeight: float = Field(default_factory=lambda: Config.PAGE_GAP_PX, ge=0, allow_inf_nan=False, description="Inter-page gap (px)")
    buffer: float = Field(default_factory=lambda: Config.PAGE_BUFFER_PX, ge=0, allow_inf_nan=False, description="Clearance past the gap (px)")
    containerSelector: Optional[str] = Field(None, description="Layout container selector")
    blockSelector: Optional[str] = Field(None, description="Layout block selector")


class PaginateResponse(BaseModel):
    """Result of one page-break pass."""
    html: Optional[str] = Field(None, description="Container markup after the pass")
    offsets: Dict[str, float] = Field(default_factory=dict)
    pushed: List[str] = Field(default_factory=list)
    pageCount: int = 0
    blockCount: int = 0
    skipped: bool = False
    skipReason: Optional[str] = None


# ============================================================================
# Health Check Endpoint
# ============================================================================

@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Health check endpoint for container orchestration.

    Returns HTTP 503 if Playwright validation failed on startup.
    """
    if not _playwright_ready:
        raise HTTPException(
            status_code=503,
            detail={
                "status": "unhealthy",
                "timestamp": datetime.utcnow().isoformat(),
                "active_renders": MAX_CONCURRENT_RENDERS - _render_semaphore._value,
                "max_concurrent": MAX_CONCURRENT_RENDERS,
                "playwright_ready": False,
                "playwright_error": _playwright_error,
                "message": "Pagination service is unhealthy - Playwright/Chromium not available"
            }
        )

    return HealthResponse(
        status="healthy",
        timestamp=datetime.utcnow(),
        active_renders=MAX_CONCURRENT_RENDERS - _render_semaphore._value,
        max_concurrent=MAX_CONCURRENT_RENDERS,
        playwright_ready=True,
        playwright_error=None
    )


# ============================================================================
# Pagination Endpoint
# ============================================================================

@app.post("/paginate", response_model=PaginateResponse)
async def paginate(request: PaginateRequest) -> PaginateResponse:
    """
    Render HTML and push layout blocks off simulated page boundaries.

    Args:
        request: HTML content, CSS, page geometry and selectors

    Returns:
        PaginateResponse with the adjusted markup and per-block offsets

    Raises:
        HTTPException: 400 for invalid input, 422 for invalid geometry,
            500 for rendering failures, 503 for overload
    """
    if not request.html or not request.html.strip():
        raise HTTPException(status_code=400, detail="HTML content is required")

    if _render_semaphore._value <= 0:
        logger.warning("Pagination service overloaded, rejecting request")
        raise HTTPException(
            status_code=503,
            detail="Service overloaded. Too many concurrent render operations."
        )

    try:
        geometry = PageGeometry(
            page_height=request.pageHeight,
            gap_height=request.gapHeight,
            buffer=request.buffer,
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=f"Invalid page geometry: {e}")

    async with _render_semaphore:
        try:
            logger.info(f"Starting pagination (pageHeight={geometry.page_height})")

            # Import here to avoid loading Playwright on startup
            from src.pagination.playwright_backend import paginate_html

            snapshot, result = await paginate_html(
                request.html,
                css=request.css,
                geometry=geometry,
                container_selector=request.containerSelector,
                block_selector=request.blockSelector,
                headless=PLAYWRIGHT_HEADLESS,
                timeout_ms=PLAYWRIGHT_TIMEOUT,
            )

        except asyncio.TimeoutError:
            logger.error("Pagination render timed out")
            raise HTTPException(
                status_code=500,
                detail=f"Rendering timed out after {PLAYWRIGHT_TIMEOUT}ms"
            )
        except Exception as e:
            logger.error(f"Pagination render failed: {str(e)}")
            raise HTTPException(
                status_code=500,
                detail=f"Rendering failed: {str(e)}"
            )

    if result.failed:
        logger.warning(f"Pass failed, returning unshifted markup: {result.skip_reason}")

    logger.info(
        f"Pagination completed: {result.block_count} blocks, "
        f"{len(result.pushed)} pushed, {result.page_count} pages"
    )

    return PaginateResponse(
        html=snapshot,
        offsets={str(k): v for k, v in result.offsets.items()},
        pushed=[str(k) for k in result.pushed],
        pageCount=result.page_count,
        blockCount=result.block_count,
        skipped=result.skipped,
        skipReason=result.skip_reason,
    )
