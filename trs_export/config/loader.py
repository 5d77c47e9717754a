"""Load export configuration YAML into typed dataclasses."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from ruamel.yaml import YAML

from .helpers import (
    _flag,
    _hold_policy,
    _non_negative_float,
    _optional_str,
    _positive_float,
    _quality,
    _section,
)
from .models import (
    ApiSettings,
    ExportConfig,
    ExportConfigError,
    GateTimings,
    ImageSettings,
    PageGeometry,
    RenderSettings,
    StatusSettings,
)


def load_export_config(path: Path | None) -> ExportConfig:
    """Load the YAML configuration controlling PDF export and status handling.

    Parameters
    ----------
    path : Path or None
        Filesystem path to the YAML file (for example ``config/export.yaml``).
        ``None`` or a missing file yields the built-in defaults.

    Returns
    -------
    ExportConfig
        Parsed configuration with every section populated.

    Raises
    ------
    TypeError
        If the top-level YAML structure is not a mapping.
    ExportConfigError
        If a section or value is invalid (negative timings, qualities outside
        ``(0, 1]``, margins that leave no printable area, unknown policies).
    YAMLError
        If the YAML content cannot be parsed by the underlying loader.

    Examples
    --------
    >>> from trs_export.config import load_export_config
    >>> config = load_export_config(None)
    >>> config.gate.timeout
    8.0
    """
    if path is None or not path.exists():
        return ExportConfig()

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        loaded = loader.load(handle) or {}
    if not isinstance(loaded, dict):
        msg = "Top-level YAML structure must be a mapping."
        raise TypeError(msg)
    raw: dict[str, typ.Any] = dict(loaded)

    return ExportConfig(
        page=_build_page(_section(raw, "page")),
        gate=_build_gate(_section(raw, "gate")),
        images=_build_images(_section(raw, "images")),
        render=_build_render(_section(raw, "render")),
        status=StatusSettings(
            hold_release=_hold_policy(_section(raw, "status").get("hold_release"))
        ),
        api=_build_api(_section(raw, "api")),
    )


def _build_page(payload: typ.Mapping[str, typ.Any]) -> PageGeometry:
    base = PageGeometry()
    page = PageGeometry(
        width_in=_positive_float(payload, "width_in", base.width_in),
        height_in=_positive_float(payload, "height_in", base.height_in),
        margin_in=_non_negative_float(payload, "margin_in", base.margin_in),
    )
    if page.content_width_in <= 0 or page.content_height_in <= 0:
        msg = "Page margins leave no printable area."
        raise ExportConfigError(msg)
    return page


def _build_gate(payload: typ.Mapping[str, typ.Any]) -> GateTimings:
    base = GateTimings()
    return GateTimings(
        timeout=_positive_float(payload, "timeout", base.timeout),
        data_uri_settle=_non_negative_float(
            payload, "data_uri_settle", base.data_uri_settle
        ),
        post_settle=_non_negative_float(payload, "post_settle", base.post_settle),
        poll_interval=_positive_float(payload, "poll_interval", base.poll_interval),
    )


def _build_images(payload: typ.Mapping[str, typ.Any]) -> ImageSettings:
    base = ImageSettings()
    return ImageSettings(
        direct_fetch=_flag(payload, "direct_fetch", default=base.direct_fetch),
        proxy_template=_optional_str(payload.get("proxy_template"))
        or base.proxy_template,
        jpeg_quality=_quality(payload, "jpeg_quality", base.jpeg_quality),
        timeout=_positive_float(payload, "timeout", base.timeout),
        inline_before_render=_flag(
            payload, "inline_before_render", default=base.inline_before_render
        ),
    )


def _build_render(payload: typ.Mapping[str, typ.Any]) -> RenderSettings:
    base = RenderSettings()
    return RenderSettings(
        scale=_positive_float(payload, "scale", base.scale),
        viewport_width=int(
            _positive_float(payload, "viewport_width", base.viewport_width)
        ),
        viewport_height=int(
            _positive_float(payload, "viewport_height", base.viewport_height)
        ),
        download_quality=_quality(payload, "download_quality", base.download_quality),
        blob_quality=_quality(payload, "blob_quality", base.blob_quality),
        load_timeout=_positive_float(payload, "load_timeout", base.load_timeout),
    )


def _build_api(payload: typ.Mapping[str, typ.Any]) -> ApiSettings:
    base = ApiSettings()
    return ApiSettings(
        base_url=_optional_str(payload.get("base_url")) or base.base_url,
        timeout=_positive_float(payload, "timeout", base.timeout),
    )


__all__ = ["load_export_config"]
