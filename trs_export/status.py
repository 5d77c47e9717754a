r"""Keep a project's status, completion percentage and hold flag consistent.

The dashboard edits project progress through a status selector, a completion
slider and an "on hold" toggle. Each control drives the others:

* selecting a status snaps the slider to its canonical percentage
  (Not Started 0, In Progress 50, Completed 100);
* moving the slider derives the status (0 is Not Started, 100 is Completed,
  anything between is In Progress);
* holding freezes both controls until the hold is released.

:class:`ProjectStatusState` is immutable; every edit returns a new state, so a
caller whose submit fails still holds the values it attempted to send. The UI
vocabulary is translated to the backend's ``inactive|active|completed|on-hold``
only by :meth:`ProjectStatusState.to_payload`.

Examples
--------
>>> from trs_export.status import ProjectStatusState
>>> state = ProjectStatusState().set_completion(37).toggle_hold()
>>> state.to_payload()
{'status': 'on-hold', 'progress': 37}
>>> state.describe()
'Status: On Hold (Last Known: In Progress, 37%)'
"""

from __future__ import annotations

import dataclasses as dc
import enum

from trs_export.config import HoldReleasePolicy


class UiStatus(enum.StrEnum):
    """Status labels shown in the dashboard."""

    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    ON_HOLD = "On Hold"


class BackendStatus(enum.StrEnum):
    """Status values accepted by the projects API."""

    INACTIVE = "inactive"
    ACTIVE = "active"
    COMPLETED = "completed"
    ON_HOLD = "on-hold"


class ProjectHeldError(ValueError):
    """Raised when a held project's status or progress is edited."""


class UnknownStatusError(ValueError):
    """Raised when a status label is not part of either vocabulary."""


SELECTABLE_STATUSES = (UiStatus.NOT_STARTED, UiStatus.IN_PROGRESS, UiStatus.COMPLETED)

STATUS_TO_COMPLETION: dict[UiStatus, int] = {
    UiStatus.NOT_STARTED: 0,
    UiStatus.IN_PROGRESS: 50,
    UiStatus.COMPLETED: 100,
}

_UI_TO_BACKEND: dict[UiStatus, BackendStatus] = {
    UiStatus.NOT_STARTED: BackendStatus.INACTIVE,
    UiStatus.IN_PROGRESS: BackendStatus.ACTIVE,
    UiStatus.COMPLETED: BackendStatus.COMPLETED,
    UiStatus.ON_HOLD: BackendStatus.ON_HOLD,
}
_BACKEND_TO_UI = {backend: ui for ui, backend in _UI_TO_BACKEND.items()}

STATUS_COLORS: dict[UiStatus, str] = {
    UiStatus.NOT_STARTED: "text-gray-500",
    UiStatus.IN_PROGRESS: "text-blue-500",
    UiStatus.COMPLETED: "text-green-500",
    UiStatus.ON_HOLD: "text-amber-500",
}
_DEFAULT_COLOR = "text-gray-500"


def parse_status(value: str) -> UiStatus:
    """Return the UI status for a label from either vocabulary.

    Matching ignores case and treats spaces, hyphens and underscores alike, so
    ``"On Hold"``, ``"on-hold"`` and ``"ON_HOLD"`` all parse to
    :attr:`UiStatus.ON_HOLD`.

    Raises
    ------
    UnknownStatusError
        If ``value`` names no known status.
    """
    key = _normalise(value)
    for status in UiStatus:
        if _normalise(status.value) == key:
            return status
    for backend, ui in _BACKEND_TO_UI.items():
        if _normalise(backend.value) == key:
            return ui
    msg = f"Unknown project status: {value!r}"
    raise UnknownStatusError(msg)


def completion_to_status(percent: int) -> UiStatus:
    """Derive the status implied by a slider position."""
    clamped = clamp_percent(percent)
    if clamped == 0:
        return UiStatus.NOT_STARTED
    if clamped == 100:
        return UiStatus.COMPLETED
    return UiStatus.IN_PROGRESS


def clamp_percent(percent: float) -> int:
    """Round ``percent`` and clamp it to the 0-100 range."""
    return max(0, min(100, int(round(percent))))


def to_backend_status(status: UiStatus) -> BackendStatus:
    return _UI_TO_BACKEND[status]


def status_color(status: str) -> str:
    """Return the Tailwind text colour class used for ``status``."""
    try:
        return STATUS_COLORS[parse_status(status)]
    except UnknownStatusError:
        return _DEFAULT_COLOR


@dc.dataclass(slots=True, frozen=True)
class ProjectStatusState:
    """Immutable snapshot of a project's status controls.

    Attributes
    ----------
    last_known : UiStatus
        The selectable status the project had when last edited. While held it
        is the status captured at hold time.
    completion_percent : int
        Slider value in ``[0, 100]``; frozen while held.
    is_held : bool
        Whether the project is on hold.
    """

    last_known: UiStatus = UiStatus.NOT_STARTED
    completion_percent: int = 0
    is_held: bool = False

    def __post_init__(self) -> None:
        if self.last_known is UiStatus.ON_HOLD:
            msg = "last_known must be a selectable status, not On Hold"
            raise UnknownStatusError(msg)
        if not 0 <= self.completion_percent <= 100:
            msg = f"completion_percent out of range: {self.completion_percent}"
            raise ValueError(msg)

    @property
    def ui_status(self) -> UiStatus:
        """Return the status displayed to the user."""
        return UiStatus.ON_HOLD if self.is_held else self.last_known

    @classmethod
    def from_backend(
        cls, status: str | None, progress: int | None = None
    ) -> ProjectStatusState:
        """Seed a state from a project record returned by the API.

        When ``progress`` is present it decides the selectable status, as the
        slider does. Otherwise the status' canonical percentage is used. A
        held project keeps its percentage and derives the last known status
        from it.
        """
        parsed = parse_status(status) if status else UiStatus.NOT_STARTED
        if progress is not None:
            percent = clamp_percent(progress)
            derived = completion_to_status(percent)
        elif parsed is UiStatus.ON_HOLD:
            percent, derived = 0, UiStatus.NOT_STARTED
        else:
            percent, derived = STATUS_TO_COMPLETION[parsed], parsed
        return cls(
            last_known=derived,
            completion_percent=percent,
            is_held=parsed is UiStatus.ON_HOLD,
        )

    def select_status(self, status: UiStatus | str) -> ProjectStatusState:
        """Select ``status`` and snap the completion to its canonical value.

        Raises
        ------
        ProjectHeldError
            If the project is on hold.
        UnknownStatusError
            If ``status`` is unknown or is On Hold, which only the hold toggle
            may set.
        """
        selected = parse_status(status) if isinstance(status, str) else status
        self._ensure_editable()
        if selected not in SELECTABLE_STATUSES:
            msg = f"{selected} is set with the hold toggle, not the status selector"
            raise UnknownStatusError(msg)
        return dc.replace(
            self,
            last_known=selected,
            completion_percent=STATUS_TO_COMPLETION[selected],
        )

    def set_completion(self, percent: float) -> ProjectStatusState:
        """Move the slider to ``percent`` (clamped) and derive the status.

        Raises
        ------
        ProjectHeldError
            If the project is on hold.
        """
        self._ensure_editable()
        clamped = clamp_percent(percent)
        return dc.replace(
            self,
            last_known=completion_to_status(clamped),
            completion_percent=clamped,
        )

    def toggle_hold(
        self, policy: HoldReleasePolicy = HoldReleasePolicy.RESET
    ) -> ProjectStatusState:
        """Put the project on hold, or release it according to ``policy``.

        ``RESET`` returns a released project to Not Started at 0%; ``RESTORE``
        returns it to the status and percentage it was held at.
        """
        if not self.is_held:
            return dc.replace(self, is_held=True)
        if policy is HoldReleasePolicy.RESTORE:
            return dc.replace(self, is_held=False)
        return ProjectStatusState()

    def to_payload(self) -> dict[str, str | int]:
        """Return the request body for ``PUT /projects/{id}``."""
        return {
            "status": to_backend_status(self.ui_status).value,
            "progress": self.completion_percent,
        }

    def describe(self) -> str:
        """Return the confirmation text shown after a successful update."""
        if self.is_held:
            return (
                f"Status: {UiStatus.ON_HOLD} "
                f"(Last Known: {self.last_known}, {self.completion_percent}%)"
            )
        return f"Status: {self.last_known}, Progress: {self.completion_percent}%"

    def _ensure_editable(self) -> None:
        if self.is_held:
            msg = "Project is on hold; release the hold before editing progress"
            raise ProjectHeldError(msg)


def _normalise(value: str) -> str:
    return value.strip().lower().replace("-", " ").replace("_", " ")


__all__ = [
    "STATUS_COLORS",
    "STATUS_TO_COMPLETION",
    "BackendStatus",
    "ProjectHeldError",
    "ProjectStatusState",
    "SELECTABLE_STATUSES",
    "UiStatus",
    "UnknownStatusError",
    "clamp_percent",
    "completion_to_status",
    "parse_status",
    "status_color",
    "to_backend_status",
]
