"""Render hosts, the image-readiness gate and the bitmap paginator."""

from .backend import (
    ExportError,
    ImageState,
    RasterizationError,
    RenderBackend,
    RenderedDocument,
    RenderHost,
    RenderHostError,
)
from .paginator import PageSlice, PaginatedPdf, PdfPaginator, band_height, plan_slices
from .readiness import GateResult, ImageReadinessGate

__all__ = [
    "ExportError",
    "GateResult",
    "ImageReadinessGate",
    "ImageState",
    "PageSlice",
    "PaginatedPdf",
    "PdfPaginator",
    "RasterizationError",
    "RenderBackend",
    "RenderHost",
    "RenderHostError",
    "RenderedDocument",
    "band_height",
    "plan_slices",
]
