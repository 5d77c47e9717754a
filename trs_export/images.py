"""Inline remote images as base64 data URIs before rendering.

Rasterising a document whose images are still remote means the render host
must reach every image host, often across CORS boundaries. This module removes
that dependency up front: :class:`ImageInliner` downloads each image (through a
CORS passthrough proxy when direct fetches are disabled), re-encodes it and
returns a ``data:`` URI that can be dropped straight into ``<img src>``.

Every failure degrades to an empty string and a logged warning, for SVG and
raster images alike, so one broken image never aborts an export.

Example
-------
>>> from trs_export.images import ImageInliner
>>> inliner = ImageInliner()  # doctest: +SKIP
>>> inliner.to_data_uri("https://example.com/logo.png")[:22]  # doctest: +SKIP
'data:image/png;base64,'
"""

from __future__ import annotations

import base64
import io
from urllib.parse import quote

import requests
from bs4 import BeautifulSoup
from loguru import logger
from PIL import Image
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from trs_export._constants import DATA_URI_PREFIX, SVG_DATA_URI_PREFIX, SVG_MIME
from trs_export.config import ImageSettings

_JPEG_SUFFIXES = (".jpg", ".jpeg")


class ImageInliner:
    """Convert image URLs into self-contained data URIs."""

    def __init__(
        self,
        settings: ImageSettings | None = None,
        *,
        session: requests.Session | None = None,
    ) -> None:
        """Initialise the inliner with fetch settings and an HTTP session.

        Parameters
        ----------
        settings : ImageSettings, optional
            Proxy, timeout and JPEG quality settings. Defaults to
            ``ImageSettings()`` which routes every fetch through the proxy.
        session : requests.Session, optional
            Preconfigured session to reuse. When omitted a session with a
            retrying adapter for transient 5xx responses is created.
        """
        self.settings = settings or ImageSettings()
        self._owns_session = session is None
        self._session = session or _build_session()

    def close(self) -> None:
        """Close the underlying session when this inliner created it."""
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> ImageInliner:
        return self

    def __exit__(self, *_exc_info: object) -> None:
        self.close()

    def fetch_url(self, url: str) -> str:
        """Return the URL actually requested for ``url``."""
        if self.settings.direct_fetch:
            return url
        return self.settings.proxy_template.format(url=quote(url, safe=""))

    def to_data_uri(self, url: str) -> str:
        """Return ``url`` as a data URI, or ``""`` when it cannot be inlined.

        Parameters
        ----------
        url : str
            Remote image location. Values that are already data URIs are
            returned unchanged.

        Returns
        -------
        str
            ``data:image/svg+xml;base64,...`` for SVGs, ``data:image/jpeg``
            for ``.jpg``/``.jpeg`` sources and ``data:image/png`` otherwise.
            An empty string when the fetch or the decode fails.
        """
        if not url:
            return ""
        if url.startswith(DATA_URI_PREFIX):
            return url
        try:
            if _is_svg(url):
                return self._inline_svg(url)
            return self._inline_raster(url)
        except (requests.RequestException, OSError, ValueError) as exc:
            logger.warning("Could not inline image {}: {}", url, exc)
            return ""

    def inline_images(self, html: str) -> str:
        """Rewrite every remote ``<img src>`` in ``html`` to a data URI.

        Images that fail to inline keep their original ``src`` so the render
        host can still attempt to load them.
        """
        soup = BeautifulSoup(html, "html.parser")
        images = soup.find_all("img")
        if not images:
            return html
        cache: dict[str, str] = {}
        for img in images:
            src = img.get("src")
            if not isinstance(src, str) or not src or src.startswith(DATA_URI_PREFIX):
                continue
            if src not in cache:
                cache[src] = self.to_data_uri(src)
            if cache[src]:
                img["src"] = cache[src]
        return str(soup)

    def _get(self, url: str) -> requests.Response:
        response = self._session.get(self.fetch_url(url), timeout=self.settings.timeout)
        response.raise_for_status()
        return response

    def _inline_svg(self, url: str) -> str:
        svg_text = self._get(url).text
        encoded = base64.b64encode(svg_text.encode("utf-8")).decode("ascii")
        return f"{SVG_DATA_URI_PREFIX}{encoded}"

    def _inline_raster(self, url: str) -> str:
        payload = self._get(url).content
        with Image.open(io.BytesIO(payload)) as image:
            image.load()
            buffer = io.BytesIO()
            if _is_jpeg(url):
                mime = "image/jpeg"
                image.convert("RGB").save(
                    buffer, format="JPEG", quality=pil_quality(self.settings.jpeg_quality)
                )
            else:
                mime = "image/png"
                image.save(buffer, format="PNG")
        encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
        return f"data:{mime};base64,{encoded}"


def _build_session() -> requests.Session:
    session = requests.Session()
    retry = Retry(
        total=3,
        connect=2,
        backoff_factor=0.5,
        status_forcelist=(500, 502, 503, 504),
        allowed_methods=("GET", "HEAD"),
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def _is_svg(url: str) -> bool:
    return url.lower().endswith(".svg") or SVG_MIME in url


def _is_jpeg(url: str) -> bool:
    return url.lower().endswith(_JPEG_SUFFIXES)


def pil_quality(fraction: float) -> int:
    """Translate a ``0..1`` canvas-style quality into Pillow's ``1..95`` scale."""
    return max(1, min(95, round(fraction * 100)))


__all__ = ["ImageInliner", "pil_quality"]
