"""
Pagination Service - headless page-break simulation over HTTP.

Renders submitted HTML in Playwright/Chromium, runs one page-break pass
and returns the adjusted markup for an export step to serialize.
"""

__version__ = "0.1.0"
