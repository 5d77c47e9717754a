"""Load and validate export configuration YAML for trs-export.

This subpackage parses the project's ``export.yaml`` file into strongly typed,
frozen dataclasses (:class:`ExportConfig`, :class:`GateTimings`, etc.) that the
exporter, the readiness gate, and the status reducer consume. The primary
entry point is :func:`load_export_config`, which applies defaults for every
missing section and rejects values that would break the pipeline.

Examples
--------
>>> from pathlib import Path
>>> from trs_export.config import load_export_config
>>> config = load_export_config(Path("config/export.yaml"))  # doctest: +SKIP
>>> config.page.content_height_in  # doctest: +SKIP
10.0
"""

from .loader import load_export_config
from .models import (
    ApiSettings,
    ExportConfig,
    ExportConfigError,
    GateTimings,
    HoldReleasePolicy,
    ImageSettings,
    PageGeometry,
    RenderSettings,
    StatusSettings,
)

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
    "load_export_config",
]
