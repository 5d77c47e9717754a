"""Interfaces between the export pipeline and the surface it renders on.

The exporter never touches a browser directly. It opens a document through a
:class:`RenderBackend`, receives a :class:`RenderHost` for the laid-out DOM,
and asks the host about its images, to force image reloads and finally to
rasterise the full content. Production code uses the Playwright backend;
tests substitute an in-memory fake with the same shape.
"""

from __future__ import annotations

import contextlib
import dataclasses as dc
import typing as typ

from trs_export._constants import DATA_URI_PREFIX

if typ.TYPE_CHECKING:
    from PIL import Image


class ExportError(RuntimeError):
    """Base class for failures that abort a PDF export."""


class RenderHostError(ExportError):
    """Raised when the render host cannot be created or the document cannot load."""


class RasterizationError(ExportError):
    """Raised when the laid-out document cannot be captured as a bitmap."""


@dc.dataclass(slots=True, frozen=True)
class ImageState:
    """Snapshot of one ``<img>`` element inside the render host.

    Attributes
    ----------
    index : int
        Position of the element in document order.
    src : str
        Current ``src`` attribute, empty when absent.
    settled : bool
        ``True`` once a ``load`` or ``error`` event fired after a forced reload.
    """

    index: int
    src: str
    settled: bool = False

    @property
    def is_data_uri(self) -> bool:
        """Return ``True`` when the image is already embedded."""
        return self.src.startswith(DATA_URI_PREFIX)


@dc.dataclass(slots=True, frozen=True)
class RenderedDocument:
    """What the exporter observed about a rendered document."""

    width: int
    height: int
    image_count: int
    images_loaded: int


class RenderHost(typ.Protocol):
    """Live, laid-out document isolated from any visible UI."""

    def images(self) -> list[ImageState]:
        """Return the current state of every image in document order."""
        ...

    def reload_image(self, index: int) -> None:
        """Clear and reassign the ``src`` of image ``index`` with settle listeners."""
        ...

    def content_size(self) -> tuple[int, int]:
        """Return the natural scroll width and height of the content in CSS px."""
        ...

    def rasterize(self) -> Image.Image:
        """Capture the full scrollable content, not just the viewport."""
        ...


class RenderBackend(typ.Protocol):
    """Factory for render hosts."""

    def open_document(
        self, html: str
    ) -> contextlib.AbstractContextManager[RenderHost]:
        """Load ``html`` into a fresh host that is released on context exit."""
        ...


__all__ = [
    "ExportError",
    "ImageState",
    "RasterizationError",
    "RenderBackend",
    "RenderHost",
    "RenderHostError",
    "RenderedDocument",
]
