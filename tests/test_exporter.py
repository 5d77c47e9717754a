"""Tests for the export pipeline and its two entry points."""

from __future__ import annotations

import collections.abc as cabc
import io
import typing as typ

import pytest
import requests
from pypdf import PdfReader

from trs_export.config import ExportConfig, ImageSettings
from trs_export.exporter import EmptyPdfError, generate_pdf, generate_pdf_as_bytes
from trs_export.images import ImageInliner
from trs_export.render import PaginatedPdf, RasterizationError

if typ.TYPE_CHECKING:
    from pathlib import Path

    from conftest import FakeBackend, FakeClock
    from pytest_mock import MockerFixture

    from trs_export.exporter import PdfExporter

    MakeExporter = cabc.Callable[..., PdfExporter]


def _pages(pdf: bytes) -> int:
    return len(PdfReader(io.BytesIO(pdf)).pages)


def test_one_paragraph_exports_single_page(make_exporter: MakeExporter) -> None:
    pdf = generate_pdf_as_bytes("<p>Hello</p>", exporter=make_exporter())

    assert pdf.startswith(b"%PDF-")
    assert _pages(pdf) == 1


def test_tall_content_exports_three_letter_pages(
    make_exporter: MakeExporter, fake_backend: FakeBackend
) -> None:
    fake_backend.bitmap_size = (1500, 5800)

    result = make_exporter().render("<p>tall</p>", quality=0.95)

    assert result.page_count == 3
    reader = PdfReader(io.BytesIO(result.pdf))
    assert len(reader.pages) == 3
    assert all(float(page.mediabox.height) <= 792 for page in reader.pages)
    assert sum(s.source_height for s in result.slices) == 5800


def test_wrapped_document_reaches_render_host(
    make_exporter: MakeExporter, fake_backend: FakeBackend
) -> None:
    make_exporter().export_bytes("<section id='body'>Report</section>")

    (html,) = fake_backend.documents
    assert "<section id='body'>Report</section>" in html
    assert "cdn.tailwindcss.com" in html
    assert fake_backend.closed == 1


def test_render_records_document_and_gate(
    make_exporter: MakeExporter, fake_backend: FakeBackend
) -> None:
    fake_backend.bitmap_size = (1500, 900)

    result = make_exporter().render(
        '<img src="data:image/png;base64,AAAA"><p>x</p>', quality=0.9
    )

    assert (result.document.width, result.document.height) == (750, 450)
    assert result.document.image_count == 1
    assert result.gate.timed_out is False


def test_broken_image_still_exports_within_gate_budget(
    mocker: MockerFixture,
    make_exporter: MakeExporter,
    fake_backend: FakeBackend,
    fake_clock: FakeClock,
) -> None:
    broken = "https://unreachable.example.com/logo.png"
    fake_backend.failing_sources = {broken}
    session = mocker.Mock(spec=requests.Session)
    session.get.side_effect = requests.ConnectionError("offline")
    exporter = make_exporter(
        ExportConfig(), inliner=ImageInliner(ImageSettings(), session=session)
    )

    pdf = exporter.export_bytes(f'<img src="{broken}"><p>Invoice</p>')

    assert _pages(pdf) == 1
    assert fake_clock.now <= 8.5, "a dead image may delay the export by the timeout only"
    (host,) = fake_backend.hosts
    assert host.sources == [broken], "failed inlining keeps the original src"


def test_render_host_closed_when_rasterisation_fails(
    make_exporter: MakeExporter, fake_backend: FakeBackend
) -> None:
    fake_backend.rasterize_error = RasterizationError("canvas tainted")

    with pytest.raises(RasterizationError):
        make_exporter().export_bytes("<p>x</p>")
    assert fake_backend.closed == 1


def test_empty_output_falls_back_then_fails(
    mocker: MockerFixture, make_exporter: MakeExporter
) -> None:
    mocker.patch.object(PaginatedPdf, "pdf_data", return_value=b"")
    saved = mocker.patch.object(PaginatedPdf, "saved_data", return_value=b"")

    with pytest.raises(EmptyPdfError, match="Generated PDF is empty"):
        make_exporter().export_bytes("<p>x</p>")
    saved.assert_called_once()


def test_empty_primary_output_uses_fallback(
    mocker: MockerFixture, make_exporter: MakeExporter
) -> None:
    mocker.patch.object(PaginatedPdf, "pdf_data", return_value=b"")
    mocker.patch.object(PaginatedPdf, "saved_data", return_value=b"%PDF-1.4 fallback")

    assert make_exporter().export_bytes("<p>x</p>") == b"%PDF-1.4 fallback"


def test_generate_pdf_writes_default_filename(
    make_exporter: MakeExporter, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(tmp_path)

    written = generate_pdf("<p>Hello</p>", exporter=make_exporter())

    assert written is not None
    assert written.name == "document.pdf"
    assert (tmp_path / "document.pdf").read_bytes().startswith(b"%PDF-")


def test_generate_pdf_honours_filename(make_exporter: MakeExporter, tmp_path: Path) -> None:
    target = tmp_path / "out" / "invoice-42.pdf"

    written = generate_pdf("<p>Invoice</p>", target, exporter=make_exporter())

    assert written == target
    assert _pages(target.read_bytes()) == 1


def test_generate_pdf_logs_and_swallows_failures(
    make_exporter: MakeExporter,
    fake_backend: FakeBackend,
    log_messages: list[str],
    tmp_path: Path,
) -> None:
    fake_backend.rasterize_error = RasterizationError("no canvas")

    written = generate_pdf("<p>x</p>", tmp_path / "x.pdf", exporter=make_exporter())

    assert written is None
    assert not (tmp_path / "x.pdf").exists()
    assert any("no canvas" in message for message in log_messages)


def test_bytes_entry_point_propagates_failures(
    make_exporter: MakeExporter, fake_backend: FakeBackend
) -> None:
    fake_backend.rasterize_error = RasterizationError("no canvas")

    with pytest.raises(RasterizationError, match="no canvas"):
        generate_pdf_as_bytes("<p>x</p>", exporter=make_exporter())
