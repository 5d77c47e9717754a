"""Typed dataclasses describing trs-export configuration structures."""

from __future__ import annotations

import dataclasses as dc
import enum

from trs_export._constants import (
    BLOB_JPEG_QUALITY,
    CORS_PROXY_TEMPLATE,
    DEFAULT_API_BASE,
    DOWNLOAD_JPEG_QUALITY,
    HOST_VIEWPORT_HEIGHT,
    HOST_VIEWPORT_WIDTH,
    INLINE_JPEG_QUALITY,
    LETTER_HEIGHT_IN,
    LETTER_WIDTH_IN,
    PAGE_MARGIN_IN,
    RASTER_SCALE,
)


class ExportConfigError(ValueError):
    """Raised when the export configuration is invalid or incomplete."""


class HoldReleasePolicy(enum.StrEnum):
    """What a project's status becomes when its hold is lifted."""

    RESET = "reset"
    RESTORE = "restore"


@dc.dataclass(slots=True, frozen=True)
class PageGeometry:
    """Output page size and margins, in inches."""

    width_in: float = LETTER_WIDTH_IN
    height_in: float = LETTER_HEIGHT_IN
    margin_in: float = PAGE_MARGIN_IN

    @property
    def content_width_in(self) -> float:
        """Width of the printable box inside the margins."""
        return self.width_in - 2 * self.margin_in

    @property
    def content_height_in(self) -> float:
        """Height of the printable box inside the margins."""
        return self.height_in - 2 * self.margin_in


@dc.dataclass(slots=True, frozen=True)
class GateTimings:
    """Delays used by the image-readiness gate, in seconds.

    Attributes
    ----------
    timeout : float
        Upper bound on the wait for every image to settle.
    data_uri_settle : float
        Pause granted to inlined images before treating them as ready.
    post_settle : float
        Extra pause once every image has settled, absorbing trailing paint.
    poll_interval : float
        How often pending images are re-checked.
    """

    timeout: float = 8.0
    data_uri_settle: float = 0.1
    post_settle: float = 0.5
    poll_interval: float = 0.05


@dc.dataclass(slots=True, frozen=True)
class ImageSettings:
    """How remote images are fetched and inlined."""

    direct_fetch: bool = False
    proxy_template: str = CORS_PROXY_TEMPLATE
    jpeg_quality: float = INLINE_JPEG_QUALITY
    timeout: float = 15.0
    inline_before_render: bool = True


@dc.dataclass(slots=True, frozen=True)
class RenderSettings:
    """Render host and rasterisation knobs."""

    scale: float = RASTER_SCALE
    viewport_width: int = HOST_VIEWPORT_WIDTH
    viewport_height: int = HOST_VIEWPORT_HEIGHT
    download_quality: float = DOWNLOAD_JPEG_QUALITY
    blob_quality: float = BLOB_JPEG_QUALITY
    load_timeout: float = 30.0


@dc.dataclass(slots=True, frozen=True)
class StatusSettings:
    """Project status reducer behaviour."""

    hold_release: HoldReleasePolicy = HoldReleasePolicy.RESET


@dc.dataclass(slots=True, frozen=True)
class ApiSettings:
    """Dashboard REST API location."""

    base_url: str = DEFAULT_API_BASE
    timeout: float = 10.0


@dc.dataclass(slots=True, frozen=True)
class ExportConfig:
    """Aggregate configuration loaded from ``export.yaml``."""

    page: PageGeometry = dc.field(default_factory=PageGeometry)
    gate: GateTimings = dc.field(default_factory=GateTimings)
    images: ImageSettings = dc.field(default_factory=ImageSettings)
    render: RenderSettings = dc.field(default_factory=RenderSettings)
    status: StatusSettings = dc.field(default_factory=StatusSettings)
    api: ApiSettings = dc.field(default_factory=ApiSettings)


__all__ = [
    "ApiSettings",
    "ExportConfig",
    "ExportConfigError",
    "GateTimings",
    "HoldReleasePolicy",
    "ImageSettings",
    "PageGeometry",
    "RenderSettings",
    "StatusSettings",
]
