"""Slice a full-content bitmap into US Letter PDF pages.

The bitmap is scaled to the width of the page's content box. Content that fits
in one content box becomes a single page; anything taller is cut into bands of
``content_height_in * bitmap_width / content_width_in`` source pixels, each
band (rounded down to whole pixels) placed on its own page at the top-left
margin, so no band is drawn taller than the content box. The final band holds
exactly the remaining pixels, so band heights always sum to the bitmap height.

Examples
--------
>>> from trs_export.config import PageGeometry
>>> from trs_export.render.paginator import plan_slices
>>> [(s.source_y_offset, s.source_height) for s in plan_slices(1500, 4500, PageGeometry())]
[(0, 2000), (2000, 2000), (4000, 500)]
"""

from __future__ import annotations

import base64
import dataclasses as dc
import io
import math

from PIL import Image
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen.canvas import Canvas

from trs_export._constants import POINTS_PER_INCH
from trs_export.config import PageGeometry
from trs_export.images import pil_quality

from .backend import RasterizationError


@dc.dataclass(slots=True, frozen=True)
class PageSlice:
    """One horizontal band of the source bitmap, destined for one page.

    Attributes
    ----------
    source_y_offset : int
        Top edge of the band in bitmap pixels.
    source_height : int
        Height of the band in bitmap pixels.
    jpeg : bytes
        Band encoded as JPEG; empty for a planned but not yet encoded slice.
    """

    source_y_offset: int
    source_height: int
    jpeg: bytes = b""

    @property
    def image_data_url(self) -> str:
        """Return the encoded band as a ``data:image/jpeg`` URI."""
        encoded = base64.b64encode(self.jpeg).decode("ascii")
        return f"data:image/jpeg;base64,{encoded}"


def band_height(canvas_width: int, geometry: PageGeometry) -> float:
    """Return how many source pixels fill one page's content box."""
    return geometry.content_height_in * canvas_width / geometry.content_width_in


def plan_slices(
    canvas_width: int, canvas_height: int, geometry: PageGeometry
) -> list[PageSlice]:
    """Return the top-to-bottom bands covering a ``canvas_width`` bitmap.

    Raises
    ------
    RasterizationError
        If the bitmap has no area.
    """
    if canvas_width <= 0 or canvas_height <= 0:
        msg = f"Cannot paginate an empty bitmap ({canvas_width}x{canvas_height})"
        raise RasterizationError(msg)

    band = band_height(canvas_width, geometry)
    if canvas_height <= band:
        return [PageSlice(source_y_offset=0, source_height=canvas_height)]

    step = max(1, math.floor(band))
    slices: list[PageSlice] = []
    offset = 0
    while offset < canvas_height:
        height = min(step, canvas_height - offset)
        slices.append(PageSlice(source_y_offset=offset, source_height=height))
        offset += height
    return slices


@dc.dataclass(slots=True)
class PaginatedPdf:
    """A finished reportlab canvas plus the slices drawn onto it."""

    canvas: Canvas
    buffer: io.BytesIO
    slices: list[PageSlice]

    @property
    def page_count(self) -> int:
        """Return the number of pages drawn onto the canvas."""
        return len(self.slices)

    def pdf_data(self) -> bytes:
        """Return the document bytes through ``Canvas.getpdfdata``."""
        return self.canvas.getpdfdata()

    def saved_data(self) -> bytes:
        """Return the document bytes by saving into the backing buffer."""
        self.canvas.save()
        return self.buffer.getvalue()


class PdfPaginator:
    """Draw bitmap bands onto Letter pages with fixed margins."""

    def __init__(self, geometry: PageGeometry | None = None) -> None:
        self.geometry = geometry or PageGeometry()

    def paginate(self, bitmap: Image.Image, *, quality: float) -> PaginatedPdf:
        """Slice ``bitmap`` and draw every band as a JPEG page.

        Parameters
        ----------
        bitmap : PIL.Image.Image
            Full-content capture of the rendered document.
        quality : float
            JPEG quality in ``(0, 1]`` used for every page image.

        Returns
        -------
        PaginatedPdf
            Canvas ready to be serialised, with the encoded slices.
        """
        geometry = self.geometry
        width, height = bitmap.size
        planned = plan_slices(width, height, geometry)

        buffer = io.BytesIO()
        canvas = Canvas(
            buffer,
            pagesize=(
                geometry.width_in * POINTS_PER_INCH,
                geometry.height_in * POINTS_PER_INCH,
            ),
        )
        rgb = bitmap if bitmap.mode == "RGB" else bitmap.convert("RGB")
        points_per_pixel = geometry.content_width_in * POINTS_PER_INCH / width
        margin = geometry.margin_in * POINTS_PER_INCH
        page_top = geometry.height_in * POINTS_PER_INCH

        slices: list[PageSlice] = []
        for planned_slice in planned:
            band = rgb.crop(
                (
                    0,
                    planned_slice.source_y_offset,
                    width,
                    planned_slice.source_y_offset + planned_slice.source_height,
                )
            )
            jpeg = _encode_jpeg(band, quality)
            drawn_height = planned_slice.source_height * points_per_pixel
            canvas.drawImage(
                ImageReader(io.BytesIO(jpeg)),
                margin,
                page_top - margin - drawn_height,
                width=geometry.content_width_in * POINTS_PER_INCH,
                height=drawn_height,
            )
            canvas.showPage()
            slices.append(dc.replace(planned_slice, jpeg=jpeg))
        return PaginatedPdf(canvas=canvas, buffer=buffer, slices=slices)


def _encode_jpeg(image: Image.Image, quality: float) -> bytes:
    buffer = io.BytesIO()
    try:
        image.save(buffer, format="JPEG", quality=pil_quality(quality))
    except OSError as exc:
        msg = f"Could not encode page image: {exc}"
        raise RasterizationError(msg) from exc
    return buffer.getvalue()


__all__ = ["PageSlice", "PaginatedPdf", "PdfPaginator", "band_height", "plan_slices"]
