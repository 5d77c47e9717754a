"""Turn HTML fragments into US Letter PDFs.

The pipeline runs strictly in sequence: wrap the fragment in the export
document, load it into an isolated render host, wait for its images, capture
the full content at 2x and slice the bitmap onto Letter pages. The render host
is released on every exit path before pagination starts.

Two entry points mirror the two ways the dashboard consumes exports:

* :func:`generate_pdf` writes a file and never raises. Failures are logged and
  reported as ``None``.
* :func:`generate_pdf_as_bytes` returns the PDF bytes and lets failures
  propagate so callers can upload or attach the result.

Example
-------
>>> from trs_export.exporter import generate_pdf_as_bytes
>>> pdf = generate_pdf_as_bytes("<p>Hello</p>")  # doctest: +SKIP
>>> pdf[:5]  # doctest: +SKIP
b'%PDF-'
"""

from __future__ import annotations

import dataclasses as dc
from pathlib import Path

from loguru import logger

from trs_export._constants import DEFAULT_FILENAME
from trs_export.config import ExportConfig
from trs_export.document import DocumentWrapper
from trs_export.images import ImageInliner
from trs_export.render import (
    ExportError,
    GateResult,
    ImageReadinessGate,
    PageSlice,
    PaginatedPdf,
    PdfPaginator,
    RenderBackend,
    RenderedDocument,
)


class EmptyPdfError(ExportError):
    """Raised when PDF serialisation yields no bytes."""


@dc.dataclass(slots=True)
class ExportResult:
    """Everything produced by one run of the pipeline."""

    pdf: bytes
    slices: list[PageSlice]
    document: RenderedDocument
    gate: GateResult

    @property
    def page_count(self) -> int:
        return len(self.slices)


class PdfExporter:
    """Run the wrap, render, gate, rasterise and paginate pipeline."""

    def __init__(
        self,
        config: ExportConfig | None = None,
        *,
        backend: RenderBackend | None = None,
        inliner: ImageInliner | None = None,
        wrapper: DocumentWrapper | None = None,
        gate: ImageReadinessGate | None = None,
    ) -> None:
        """Initialise the exporter and its collaborators.

        Parameters
        ----------
        config : ExportConfig, optional
            Page geometry, timings and image settings. Defaults to
            ``ExportConfig()``.
        backend : RenderBackend, optional
            Source of render hosts. Defaults to a headless Chromium backend.
        inliner : ImageInliner, optional
            Converts remote images to data URIs before rendering when
            ``config.images.inline_before_render`` is set.
        wrapper : DocumentWrapper, optional
            Builds the full HTML document around each fragment.
        gate : ImageReadinessGate, optional
            Wait barrier used between loading and rasterising.
        """
        self.config = config or ExportConfig()
        if backend is None:
            from trs_export.render.playwright_backend import PlaywrightBackend

            backend = PlaywrightBackend(self.config.render)
        self.backend = backend
        self.inliner = inliner or ImageInliner(self.config.images)
        self.wrapper = wrapper or DocumentWrapper()
        self.gate = gate or ImageReadinessGate(self.config.gate)
        self.paginator = PdfPaginator(self.config.page)

    def build_document(self, content: str) -> str:
        """Return the complete HTML document that will be rendered."""
        preprocess = (
            self.inliner.inline_images
            if self.config.images.inline_before_render
            else None
        )
        return self.wrapper.wrap(content, preprocess=preprocess)

    def render(self, content: str, *, quality: float) -> ExportResult:
        """Run the full pipeline for ``content``.

        Parameters
        ----------
        content : str
            HTML fragment to export.
        quality : float
            JPEG quality for the page images.

        Returns
        -------
        ExportResult
            PDF bytes plus what the pipeline observed along the way.

        Raises
        ------
        RenderHostError
            If the render host could not be created or loaded.
        RasterizationError
            If the document could not be captured or encoded.
        EmptyPdfError
            If both serialisation paths produced no bytes.
        """
        html = self.build_document(content)
        with self.backend.open_document(html) as host:
            gate_result = self.gate.wait(host)
            width, height = host.content_size()
            bitmap = host.rasterize()
        document = RenderedDocument(
            width=width,
            height=height,
            image_count=gate_result.total,
            images_loaded=gate_result.settled,
        )
        logger.debug(
            "Rasterised {}x{} document to {}x{} bitmap",
            width,
            height,
            bitmap.width,
            bitmap.height,
        )
        paginated = self.paginator.paginate(bitmap, quality=quality)
        pdf = _serialise(paginated)
        logger.info(
            "Exported {} page(s), {} bytes", paginated.page_count, len(pdf)
        )
        return ExportResult(
            pdf=pdf, slices=paginated.slices, document=document, gate=gate_result
        )

    def export_bytes(self, content: str) -> bytes:
        """Return PDF bytes for ``content`` at the upload JPEG quality."""
        return self.render(content, quality=self.config.render.blob_quality).pdf

    def export_file(
        self,
        content: str,
        filename: str | Path | None = None,
        *,
        output_dir: Path | None = None,
    ) -> Path:
        """Write ``content`` as a PDF and return the path written."""
        result = self.render(content, quality=self.config.render.download_quality)
        path = Path(filename or DEFAULT_FILENAME)
        if output_dir is not None:
            path = output_dir / path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(result.pdf)
        return path


def _serialise(paginated: PaginatedPdf) -> bytes:
    pdf = paginated.pdf_data()
    if pdf:
        return pdf
    logger.warning("PDF output was empty; retrying through the file buffer")
    pdf = paginated.saved_data()
    if not pdf:
        msg = "Generated PDF is empty"
        raise EmptyPdfError(msg)
    return pdf


def generate_pdf(
    content: str,
    filename: str | Path | None = None,
    *,
    exporter: PdfExporter | None = None,
) -> Path | None:
    """Export ``content`` to ``filename`` (``document.pdf`` by default).

    Every failure is logged and swallowed; ``None`` signals that no file was
    written.
    """
    try:
        active = exporter or PdfExporter()
        return active.export_file(content, filename)
    except Exception as exc:  # noqa: BLE001 - download path reports, never raises
        logger.error("Failed to generate PDF: {}", exc)
        return None


def generate_pdf_as_bytes(
    content: str, *, exporter: PdfExporter | None = None
) -> bytes:
    """Export ``content`` and return the PDF bytes, propagating failures."""
    active = exporter or PdfExporter()
    return active.export_bytes(content)


__all__ = [
    "EmptyPdfError",
    "ExportResult",
    "PdfExporter",
    "generate_pdf",
    "generate_pdf_as_bytes",
]
