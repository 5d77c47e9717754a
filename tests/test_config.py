"""Unit tests for export configuration loading."""

from __future__ import annotations

import typing as typ
from textwrap import dedent

import pytest

from trs_export.config import (
    ExportConfigError,
    HoldReleasePolicy,
    PageGeometry,
    load_export_config,
)

if typ.TYPE_CHECKING:
    from pathlib import Path


def _write(tmp_path: Path, body: str) -> Path:
    path = tmp_path / "export.yaml"
    path.write_text(dedent(body).strip() + "\n", encoding="utf-8")
    return path


def test_missing_file_yields_defaults(tmp_path: Path) -> None:
    config = load_export_config(tmp_path / "absent.yaml")

    assert config.page == PageGeometry(), "expected Letter geometry by default"
    assert config.page.content_width_in == 7.5
    assert config.page.content_height_in == 10.0
    assert config.gate.timeout == 8.0
    assert config.gate.data_uri_settle == 0.1
    assert config.gate.post_settle == 0.5
    assert config.images.direct_fetch is False, "proxy fetches are the default"
    assert config.render.download_quality == 0.9
    assert config.render.blob_quality == 0.95
    assert config.status.hold_release is HoldReleasePolicy.RESET


def test_sections_override_defaults(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        """
        gate:
          timeout: 2
          post_settle: 0
        images:
          direct_fetch: true
        status:
          hold_release: restore
        api:
          base_url: https://api.example.invalid
        """,
    )

    config = load_export_config(path)

    assert config.gate.timeout == 2.0
    assert config.gate.post_settle == 0.0
    assert config.gate.data_uri_settle == 0.1, "unset keys keep their defaults"
    assert config.images.direct_fetch is True
    assert config.status.hold_release is HoldReleasePolicy.RESTORE
    assert config.api.base_url == "https://api.example.invalid"


def test_shipped_config_matches_defaults() -> None:
    from pathlib import Path

    shipped = Path(__file__).resolve().parents[1] / "config" / "export.yaml"
    assert load_export_config(shipped) == load_export_config(None)


@pytest.mark.parametrize(
    ("body", "fragment"),
    [
        ("gate:\n  timeout: -1\n", "timeout"),
        ("render:\n  blob_quality: 1.5\n", "blob_quality"),
        ("page:\n  margin_in: 5\n", "printable"),
        ("status:\n  hold_release: forget\n", "hold_release"),
        ("images:\n  direct_fetch: maybe\n", "direct_fetch"),
        ("gate: []\n", "gate"),
    ],
)
def test_invalid_values_are_rejected(
    tmp_path: Path, body: str, fragment: str
) -> None:
    path = _write(tmp_path, body)

    with pytest.raises(ExportConfigError, match=fragment):
        load_export_config(path)


def test_non_mapping_top_level_raises_type_error(tmp_path: Path) -> None:
    path = _write(tmp_path, "- just\n- a list\n")

    with pytest.raises(TypeError):
        load_export_config(path)
