"""Unit tests for the project status/progress reducer."""

from __future__ import annotations

import pytest

from trs_export.config import HoldReleasePolicy
from trs_export.status import (
    BackendStatus,
    ProjectHeldError,
    ProjectStatusState,
    UiStatus,
    UnknownStatusError,
    clamp_percent,
    completion_to_status,
    parse_status,
    status_color,
    to_backend_status,
)


@pytest.mark.parametrize(
    ("percent", "expected"),
    [
        (0, UiStatus.NOT_STARTED),
        (1, UiStatus.IN_PROGRESS),
        (37, UiStatus.IN_PROGRESS),
        (99, UiStatus.IN_PROGRESS),
        (100, UiStatus.COMPLETED),
    ],
)
def test_slider_derives_status(percent: int, expected: UiStatus) -> None:
    state = ProjectStatusState().set_completion(percent)

    assert state.ui_status is expected
    assert state.completion_percent == percent
    assert completion_to_status(percent) is expected


@pytest.mark.parametrize(
    ("status", "percent"),
    [
        (UiStatus.NOT_STARTED, 0),
        (UiStatus.IN_PROGRESS, 50),
        (UiStatus.COMPLETED, 100),
    ],
)
def test_selecting_status_snaps_completion(status: UiStatus, percent: int) -> None:
    state = ProjectStatusState().set_completion(73).select_status(status)

    assert state.completion_percent == percent
    assert state.ui_status is status


def test_slider_values_are_clamped() -> None:
    assert ProjectStatusState().set_completion(140).completion_percent == 100
    assert ProjectStatusState().set_completion(-5).ui_status is UiStatus.NOT_STARTED


def test_hold_freezes_status_and_progress() -> None:
    held = ProjectStatusState().set_completion(37).toggle_hold()

    assert held.is_held is True
    assert held.ui_status is UiStatus.ON_HOLD
    assert held.last_known is UiStatus.IN_PROGRESS
    with pytest.raises(ProjectHeldError):
        held.set_completion(80)
    with pytest.raises(ProjectHeldError):
        held.select_status(UiStatus.COMPLETED)
    assert held.completion_percent == 37


def test_held_submit_payload_uses_on_hold() -> None:
    held = ProjectStatusState().set_completion(37).toggle_hold()

    assert held.to_payload() == {"status": "on-hold", "progress": 37}


def test_release_resets_by_default() -> None:
    released = ProjectStatusState().set_completion(37).toggle_hold().toggle_hold()

    assert released.is_held is False
    assert released.ui_status is UiStatus.NOT_STARTED
    assert released.completion_percent == 0


def test_release_can_restore_last_known_status() -> None:
    held = ProjectStatusState().set_completion(37).toggle_hold()

    released = held.toggle_hold(HoldReleasePolicy.RESTORE)

    assert released.ui_status is UiStatus.IN_PROGRESS
    assert released.completion_percent == 37


@pytest.mark.parametrize(
    ("status", "backend"),
    [
        (UiStatus.NOT_STARTED, "inactive"),
        (UiStatus.IN_PROGRESS, "active"),
        (UiStatus.COMPLETED, "completed"),
        (UiStatus.ON_HOLD, "on-hold"),
    ],
)
def test_ui_status_maps_to_backend_vocabulary(status: UiStatus, backend: str) -> None:
    assert to_backend_status(status) == BackendStatus(backend)


def test_payload_never_carries_ui_labels() -> None:
    for percent in (0, 50, 100):
        payload = ProjectStatusState().set_completion(percent).to_payload()
        assert payload["status"] in {s.value for s in BackendStatus}
        assert payload["status"] not in {s.value for s in UiStatus}


@pytest.mark.parametrize(
    ("label", "expected"),
    [
        ("On Hold", UiStatus.ON_HOLD),
        ("on-hold", UiStatus.ON_HOLD),
        ("ON_HOLD", UiStatus.ON_HOLD),
        ("active", UiStatus.IN_PROGRESS),
        ("inactive", UiStatus.NOT_STARTED),
        ("Completed", UiStatus.COMPLETED),
        (" in progress ", UiStatus.IN_PROGRESS),
    ],
)
def test_parse_status_accepts_both_vocabularies(label: str, expected: UiStatus) -> None:
    assert parse_status(label) is expected


def test_unknown_status_is_rejected() -> None:
    with pytest.raises(UnknownStatusError):
        parse_status("archived")
    with pytest.raises(UnknownStatusError):
        ProjectStatusState().select_status(UiStatus.ON_HOLD)


def test_from_backend_seeds_held_project() -> None:
    state = ProjectStatusState.from_backend("on-hold", 37)

    assert state.is_held is True
    assert state.last_known is UiStatus.IN_PROGRESS
    assert state.describe() == "Status: On Hold (Last Known: In Progress, 37%)"


def test_from_backend_without_progress_uses_canonical_percent() -> None:
    state = ProjectStatusState.from_backend("completed")

    assert state.completion_percent == 100
    assert state.describe() == "Status: Completed, Progress: 100%"


def test_state_is_immutable_for_retries() -> None:
    attempted = ProjectStatusState().set_completion(60)

    attempted.toggle_hold()

    assert attempted.is_held is False
    assert attempted.to_payload() == {"status": "active", "progress": 60}


@pytest.mark.parametrize(
    ("label", "color"),
    [
        ("Not Started", "text-gray-500"),
        ("In Progress", "text-blue-500"),
        ("completed", "text-green-500"),
        ("on hold", "text-amber-500"),
        ("archived", "text-gray-500"),
    ],
)
def test_status_color(label: str, color: str) -> None:
    assert status_color(label) == color


@pytest.mark.parametrize(
    ("percent", "expected"), [(-5, 0), (36.6, 37), (100, 100), (140, 100)]
)
def test_clamp_percent_rounds_into_range(percent: float, expected: int) -> None:
    assert clamp_percent(percent) == expected
