"""Headless Chromium render host driven through Playwright's sync API."""

from __future__ import annotations

import collections.abc as cabc
import contextlib
import io

from loguru import logger
from PIL import Image
from playwright.sync_api import Browser, Page, Playwright, sync_playwright
from playwright.sync_api import Error as PlaywrightError

from trs_export.config import RenderSettings

from .backend import ImageState, RasterizationError, RenderHostError

_LIST_IMAGES_JS = """
() => Array.from(document.images).map((img, index) => ({
  index,
  src: img.getAttribute("src") || "",
  settled: img.dataset.trsSettled === "1",
}))
"""

_RELOAD_IMAGE_JS = """
(index) => {
  const img = document.images[index];
  if (!img) {
    return;
  }
  const src = img.getAttribute("src");
  const mark = () => { img.dataset.trsSettled = "1"; };
  if (!src) {
    mark();
    return;
  }
  delete img.dataset.trsSettled;
  img.removeAttribute("src");
  setTimeout(() => {
    img.addEventListener("load", mark, { once: true });
    img.addEventListener("error", mark, { once: true });
    img.src = src;
  }, 50);
}
"""

_CONTENT_SIZE_JS = """
() => [document.body.scrollWidth, document.body.scrollHeight]
"""


class PlaywrightHost:
    """Render host backed by a single Chromium page."""

    def __init__(self, page: Page) -> None:
        self.page = page

    def images(self) -> list[ImageState]:
        try:
            rows = self.page.evaluate(_LIST_IMAGES_JS)
        except PlaywrightError as exc:
            msg = f"Could not inspect document images: {exc}"
            raise RenderHostError(msg) from exc
        return [
            ImageState(
                index=int(row["index"]),
                src=str(row["src"]),
                settled=bool(row["settled"]),
            )
            for row in rows
        ]

    def reload_image(self, index: int) -> None:
        try:
            self.page.evaluate(_RELOAD_IMAGE_JS, index)
        except PlaywrightError as exc:
            msg = f"Could not reload image {index}: {exc}"
            raise RenderHostError(msg) from exc

    def content_size(self) -> tuple[int, int]:
        try:
            width, height = self.page.evaluate(_CONTENT_SIZE_JS)
        except PlaywrightError as exc:
            msg = f"Could not measure document: {exc}"
            raise RenderHostError(msg) from exc
        return int(width), int(height)

    def rasterize(self) -> Image.Image:
        """Screenshot the whole ``<body>`` at the context's device scale."""
        try:
            png = self.page.locator("body").screenshot(
                type="png", animations="disabled", scale="device"
            )
        except PlaywrightError as exc:
            msg = f"Could not rasterise document: {exc}"
            raise RasterizationError(msg) from exc
        try:
            with Image.open(io.BytesIO(png)) as image:
                return image.convert("RGB")
        except OSError as exc:
            msg = f"Render host returned an unreadable bitmap: {exc}"
            raise RasterizationError(msg) from exc


class PlaywrightBackend:
    """Open documents in an isolated headless Chromium page.

    Each call to :meth:`open_document` launches its own browser, so concurrent
    exports never share a surface. The browser is closed when the context
    exits, whether the export succeeded or failed.
    """

    def __init__(self, settings: RenderSettings | None = None) -> None:
        self.settings = settings or RenderSettings()

    @contextlib.contextmanager
    def open_document(self, html: str) -> cabc.Iterator[PlaywrightHost]:
        """Yield a host with ``html`` loaded and parsed.

        Raises
        ------
        RenderHostError
            If Chromium cannot be started, the document fails to load, or it
            has no ``<body>``.
        """
        try:
            playwright = sync_playwright().start()
        except PlaywrightError as exc:
            msg = f"Could not start Playwright: {exc}"
            raise RenderHostError(msg) from exc
        try:
            browser = self._launch(playwright)
            try:
                page = self._load(browser, html)
                yield PlaywrightHost(page)
            finally:
                browser.close()
        finally:
            playwright.stop()

    def _launch(self, playwright: Playwright) -> Browser:
        try:
            return playwright.chromium.launch(headless=True)
        except PlaywrightError as exc:
            msg = f"Could not launch Chromium: {exc}"
            raise RenderHostError(msg) from exc

    def _load(self, browser: Browser, html: str) -> Page:
        settings = self.settings
        try:
            context = browser.new_context(
                viewport={
                    "width": settings.viewport_width,
                    "height": settings.viewport_height,
                },
                device_scale_factor=settings.scale,
            )
            page = context.new_page()
            page.set_content(
                html, wait_until="load", timeout=settings.load_timeout * 1000
            )
        except PlaywrightError as exc:
            msg = f"Could not load document into render host: {exc}"
            raise RenderHostError(msg) from exc
        if page.query_selector("body") is None:
            msg = "Rendered document has no <body> element"
            raise RenderHostError(msg)
        logger.debug(
            "Render host ready ({}x{} @ {}x)",
            settings.viewport_width,
            settings.viewport_height,
            settings.scale,
        )
        return page


__all__ = ["PlaywrightBackend", "PlaywrightHost"]
