"""Headless browser rendering using Playwright."""
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, Optional, Protocol

from playwright.async_api import (
    Error as PlaywrightError,
    Page,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from monitorify.constants import (
    DEFAULT_PDF_FORMAT,
    DEFAULT_PDF_MARGIN,
    DEFAULT_VIEWPORT_HEIGHT,
    DEFAULT_VIEWPORT_WIDTH,
)
from monitorify.utils.exceptions import RenderFailure, RenderTimeout
from monitorify.utils.logger import logger


@dataclass
class ScreenshotOptions:
    """Screenshot rendering options."""
    width: int = DEFAULT_VIEWPORT_WIDTH
    height: int = DEFAULT_VIEWPORT_HEIGHT
    full_page: bool = True
    timeout_ms: int = 30000

    @classmethod
    def from_payload(cls, payload: Dict[str, Any], timeout_ms: int) -> "ScreenshotOptions":
        return cls(
            width=int(payload.get("width") or DEFAULT_VIEWPORT_WIDTH),
            height=int(payload.get("height") or DEFAULT_VIEWPORT_HEIGHT),
            full_page=bool(payload.get("fullPage", True)),
            timeout_ms=timeout_ms,
        )


@dataclass
class PdfOptions:
    """PDF rendering options."""
    format: str = DEFAULT_PDF_FORMAT
    landscape: bool = False
    print_background: bool = True
    margin: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_PDF_MARGIN))
    width: int = DEFAULT_VIEWPORT_WIDTH
    height: int = DEFAULT_VIEWPORT_HEIGHT
    timeout_ms: int = 45000

    @classmethod
    def from_payload(cls, payload: Dict[str, Any], timeout_ms: int) -> "PdfOptions":
        return cls(
            format=payload.get("format") or DEFAULT_PDF_FORMAT,
            landscape=bool(payload.get("landscape", False)),
            print_background=bool(payload.get("printBackground", True)),
            margin=payload.get("margin") or dict(DEFAULT_PDF_MARGIN),
            width=int(payload.get("width") or DEFAULT_VIEWPORT_WIDTH),
            height=int(payload.get("height") or DEFAULT_VIEWPORT_HEIGHT),
            timeout_ms=timeout_ms,
        )


@dataclass
class PageSnapshot:
    """Page data extracted for diagnostics."""
    fetched_url: str
    status: Optional[int]
    headers: Dict[str, str]
    html: str
    meta: Dict[str, str]
    timing: Optional[Dict[str, float]]
    elapsed_ms: int


class Renderer(Protocol):
    """Rendering capability used by the job worker and diagnostics."""

    async def screenshot(self, url: str, options: ScreenshotOptions) -> bytes: ...

    async def pdf(self, url: str, options: PdfOptions) -> bytes: ...

    async def inspect(self, url: str, timeout_ms: int) -> PageSnapshot: ...


META_SCRIPT = """
() => {
    const pickAttr = (sel, attr) => document.querySelector(sel)?.getAttribute(attr) || "";
    const pick = (sel) => pickAttr(sel, "content");
    return {
        title: document.title || "",
        description: pick('meta[name="description"]'),
        canonical: pickAttr('link[rel="canonical"]', "href"),
        ogTitle: pick('meta[property="og:title"]'),
        ogDescription: pick('meta[property="og:description"]'),
        ogImage: pick('meta[property="og:image"]'),
    };
}
"""

TIMING_SCRIPT = """
() => {
    const nav = performance.getEntriesByType("navigation")[0];
    if (!nav) return null;
    return {
        ttfbMs: nav.responseStart - nav.requestStart,
        domContentLoadedMs: nav.domContentLoadedEventEnd,
        loadEventMs: nav.loadEventEnd,
    };
}
"""


class PlaywrightRenderer:
    """Renders pages in a fresh headless Chromium per call."""

    def __init__(self, launch_args: Optional[list] = None, wait_until: str = "networkidle"):
        self.launch_args = launch_args or ["--no-sandbox", "--disable-setuid-sandbox"]
        self.wait_until = wait_until

    @asynccontextmanager
    async def _open_page(self, width: int, height: int) -> AsyncIterator[Page]:
        """Launch a browser and yield a page; everything is closed on exit."""
        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=True, args=self.launch_args)
            try:
                context = await browser.new_context(viewport={"width": width, "height": height})
                try:
                    page = await context.new_page()
                    page.on("pageerror", lambda err: logger.debug(f"Browser page error: {err}"))
                    yield page
                finally:
                    await context.close()
            finally:
                await browser.close()

    async def _goto(self, page: Page, url: str, timeout_ms: int, wait_until: Optional[str] = None):
        try:
            return await page.goto(url, wait_until=wait_until or self.wait_until, timeout=timeout_ms)
        except PlaywrightTimeoutError:
            raise RenderTimeout(f"Navigation timed out after {timeout_ms}ms")

    async def screenshot(self, url: str, options: ScreenshotOptions) -> bytes:
        try:
            async with self._open_page(options.width, options.height) as page:
                await self._goto(page, url, options.timeout_ms)
                return await page.screenshot(full_page=options.full_page, type="png")
        except (RenderTimeout, RenderFailure):
            raise
        except PlaywrightTimeoutError as e:
            raise RenderTimeout(f"Screenshot timed out: {e}")
        except PlaywrightError as e:
            raise RenderFailure(f"Screenshot failed: {e.message}")

    async def pdf(self, url: str, options: PdfOptions) -> bytes:
        try:
            async with self._open_page(options.width, options.height) as page:
                await self._goto(page, url, options.timeout_ms)
                return await page.pdf(
                    format=options.format,
                    landscape=options.landscape,
                    print_background=options.print_background,
                    prefer_css_page_size=True,
                    margin=options.margin,
                )
        except (RenderTimeout, RenderFailure):
            raise
        except PlaywrightTimeoutError as e:
            raise RenderTimeout(f"PDF rendering timed out: {e}")
        except PlaywrightError as e:
            raise RenderFailure(f"PDF failed: {e.message}")

    async def inspect(self, url: str, timeout_ms: int) -> PageSnapshot:
        try:
            async with self._open_page(DEFAULT_VIEWPORT_WIDTH, DEFAULT_VIEWPORT_HEIGHT) as page:
                nav_start = time.monotonic()
                response = await self._goto(page, url, timeout_ms, wait_until="load")
                elapsed_ms = round((time.monotonic() - nav_start) * 1000)

                html = await page.content()
                meta = await page.evaluate(META_SCRIPT)
                timing = await page.evaluate(TIMING_SCRIPT)

                return PageSnapshot(
                    fetched_url=response.url if response else url,
                    status=response.status if response else None,
                    headers=dict(response.headers) if response else {},
                    html=html,
                    meta=meta,
                    timing=timing,
                    elapsed_ms=elapsed_ms,
                )
        except (RenderTimeout, RenderFailure):
            raise
        except PlaywrightTimeoutError as e:
            raise RenderTimeout(f"Page inspection timed out: {e}")
        except PlaywrightError as e:
            raise RenderFailure(f"Meta scrape failed: {e.message}")


def build_renderer() -> PlaywrightRenderer:
    """Default renderer for the running service."""
    return PlaywrightRenderer()


__all__ = [
    "PageSnapshot",
    "PdfOptions",
    "PlaywrightRenderer",
    "Renderer",
    "ScreenshotOptions",
    "build_renderer",
]
