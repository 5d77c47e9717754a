"""Shared fixtures: an in-memory render backend, a fake clock and log capture."""

from __future__ import annotations

import collections.abc as cabc
import contextlib
import dataclasses as dc
import typing as typ

import pytest
from bs4 import BeautifulSoup
from loguru import logger
from PIL import Image

from trs_export.config import ExportConfig, ImageSettings
from trs_export.render import ImageReadinessGate, ImageState

if typ.TYPE_CHECKING:
    from trs_export.exporter import PdfExporter


class FakeClock:
    """Monotonic clock whose ``sleep`` advances time instantly."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@dc.dataclass
class FakeHost:
    """Render host over a parsed document with a blank bitmap of fixed size."""

    sources: list[str]
    bitmap_size: tuple[int, int]
    failing_sources: set[str]
    settled: set[int] = dc.field(default_factory=set)
    reloads: list[int] = dc.field(default_factory=list)
    rasterize_error: Exception | None = None

    def images(self) -> list[ImageState]:
        return [
            ImageState(index=index, src=src, settled=index in self.settled)
            for index, src in enumerate(self.sources)
        ]

    def reload_image(self, index: int) -> None:
        self.reloads.append(index)
        if self.sources[index] not in self.failing_sources:
            self.settled.add(index)

    def content_size(self) -> tuple[int, int]:
        width, height = self.bitmap_size
        return width // 2, height // 2

    def rasterize(self) -> Image.Image:
        if self.rasterize_error is not None:
            raise self.rasterize_error
        return Image.new("RGB", self.bitmap_size, "white")


@dc.dataclass
class FakeBackend:
    """Backend that records every document it opens and whether it closed."""

    bitmap_size: tuple[int, int] = (1500, 1000)
    failing_sources: set[str] = dc.field(default_factory=set)
    rasterize_error: Exception | None = None
    documents: list[str] = dc.field(default_factory=list)
    hosts: list[FakeHost] = dc.field(default_factory=list)
    closed: int = 0

    @contextlib.contextmanager
    def open_document(self, html: str) -> cabc.Iterator[FakeHost]:
        self.documents.append(html)
        soup = BeautifulSoup(html, "html.parser")
        host = FakeHost(
            sources=[str(img.get("src") or "") for img in soup.find_all("img")],
            bitmap_size=self.bitmap_size,
            failing_sources=self.failing_sources,
            rasterize_error=self.rasterize_error,
        )
        self.hosts.append(host)
        try:
            yield host
        finally:
            self.closed += 1


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def make_exporter(
    fake_backend: FakeBackend, fake_clock: FakeClock
) -> cabc.Callable[..., PdfExporter]:
    """Build exporters wired to the fake backend and clock."""
    from trs_export.exporter import PdfExporter

    def _make(
        config: ExportConfig | None = None, **kwargs: typ.Any
    ) -> PdfExporter:
        active = config or ExportConfig(
            images=ImageSettings(inline_before_render=False)
        )
        gate = ImageReadinessGate(
            active.gate, sleep=fake_clock.sleep, clock=fake_clock
        )
        return PdfExporter(active, backend=fake_backend, gate=gate, **kwargs)

    return _make


@pytest.fixture
def log_messages() -> cabc.Iterator[list[str]]:
    """Collect loguru messages emitted during the test."""
    messages: list[str] = []
    handler_id = logger.add(
        lambda message: messages.append(message.record["message"]), level="DEBUG"
    )
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def make_host() -> cabc.Callable[..., FakeHost]:
    """Build a standalone fake host for gate tests."""

    def _make(sources: list[str], failing: set[str] | None = None) -> FakeHost:
        return FakeHost(
            sources=sources, bitmap_size=(100, 100), failing_sources=failing or set()
        )

    return _make
