r"""Client for the project endpoints of the TRS REST API.

Only the two calls the project status workflow needs are wrapped: listing the
projects led by the authenticated user and updating a project's status and
progress. Error responses are normalised into :class:`ProjectApiError`
carrying the server's own message where one is provided.

Example
-------
>>> from trs_export.projects import ProjectClient, submit_project_status
>>> from trs_export.status import ProjectStatusState
>>> client = ProjectClient(token="eyJ...")  # doctest: +SKIP
>>> state = ProjectStatusState().set_completion(37)
>>> submit_project_status(client, "p-1", state).status  # doctest: +SKIP
'active'
"""

from __future__ import annotations

import dataclasses as dc
import json
import typing as typ
from http import HTTPStatus

import requests

from trs_export._constants import DEFAULT_API_BASE

if typ.TYPE_CHECKING:
    from trs_export.status import ProjectStatusState

_OVERLOAD_MARKERS = ("sort memory", "overload", "too many requests", "rate limit", "server busy")
_OVERLOAD_MESSAGE = (
    "Server is temporarily overloaded. Please try again later or contact "
    "support if the issue persists."
)


class ProjectApiError(RuntimeError):
    """Raised when the projects API rejects a request or cannot be reached."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dc.dataclass(slots=True)
class Project:
    """Project record as returned by the API.

    Attributes
    ----------
    id : str
        Backend identifier.
    name : str
        Display name.
    status : str
        Backend status (``active``, ``inactive``, ``completed`` or ``on-hold``).
    progress : int
        Completion percentage.
    """

    id: str
    name: str = ""
    status: str = "inactive"
    progress: int = 0

    @classmethod
    def from_payload(cls, payload: typ.Mapping[str, typ.Any]) -> Project:
        identifier = payload.get("id") or payload.get("_id")
        if not identifier:
            msg = "Project payload has no id"
            raise ProjectApiError(msg)
        progress = payload.get("progress")
        return cls(
            id=str(identifier),
            name=str(payload.get("name") or ""),
            status=str(payload.get("status") or "inactive"),
            progress=int(progress) if isinstance(progress, int | float) else 0,
        )


class ProjectClient:
    """Thin wrapper around the ``/projects`` endpoints."""

    default_api_base = DEFAULT_API_BASE

    def __init__(
        self,
        *,
        token: str | None = None,
        api_base: str = DEFAULT_API_BASE,
        session: requests.Session | None = None,
        timeout: float = 10.0,
    ) -> None:
        """Initialise the client with optional authentication and transport.

        Parameters
        ----------
        token : str | None, optional
            Bearer token issued by the TRS login endpoint.
        api_base : str, optional
            Base URL of the API, without a trailing slash.
        session : requests.Session, optional
            Preconfigured session to reuse connections.
        timeout : float, optional
            Per-request timeout in seconds. Defaults to ``10.0``.
        """
        self._api_base = api_base.rstrip("/") or DEFAULT_API_BASE
        self._session = session or requests.Session()
        self.timeout = timeout
        self._headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "User-Agent": "trs-export/0.1",
        }
        if token:
            self._headers["Authorization"] = f"Bearer {token}"

    def list_led_projects(self) -> list[Project]:
        """Return the projects led by the authenticated user."""
        payload = self._request("GET", "/projects/by-lead")
        rows = payload.get("data", payload) if isinstance(payload, dict) else payload
        if not isinstance(rows, list):
            msg = "Unexpected response shape for /projects/by-lead"
            raise ProjectApiError(msg)
        return [Project.from_payload(row) for row in rows if isinstance(row, dict)]

    def update_project(
        self, project_id: str, body: typ.Mapping[str, typ.Any]
    ) -> Project:
        """Send ``body`` to ``PUT /projects/{project_id}`` and return the result."""
        normalized = project_id.strip()
        if not normalized:
            msg = "Project id cannot be empty"
            raise ValueError(msg)
        payload = self._request("PUT", f"/projects/{normalized}", body=dict(body))
        if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
            payload = payload["data"]
        if not isinstance(payload, dict):
            msg = f"Unexpected response shape updating project '{normalized}'"
            raise ProjectApiError(msg)
        return Project.from_payload(payload)

    def _request(
        self,
        method: str,
        path: str,
        *,
        body: dict[str, typ.Any] | None = None,
    ) -> typ.Any:  # noqa: ANN401 - decoded JSON
        url = f"{self._api_base}{path}"
        try:
            response = self._session.request(
                method,
                url,
                headers=self._headers,
                json=body,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            msg = f"Failed to reach {url}: {exc}"
            raise ProjectApiError(msg) from exc

        try:
            payload = response.json()
        except (json.JSONDecodeError, ValueError) as exc:
            if response.status_code >= HTTPStatus.BAD_REQUEST:
                msg = (
                    f"{method} {path} failed with status {response.status_code}: "
                    f"{response.text[:200]}"
                )
                raise ProjectApiError(msg, status_code=response.status_code) from exc
            msg = f"Response from {path} was not valid JSON"
            raise ProjectApiError(msg) from exc

        if response.status_code >= HTTPStatus.BAD_REQUEST:
            msg = _error_message(response.status_code, payload)
            raise ProjectApiError(msg, status_code=response.status_code)
        return payload


def _error_message(status_code: int, payload: typ.Any) -> str:  # noqa: ANN401
    """Return the user-facing message for an error response body."""
    if status_code == HTTPStatus.FORBIDDEN:
        return "Access denied."
    if not isinstance(payload, dict):
        return f"Request failed with status {status_code}"
    errors = payload.get("errors")
    if status_code == HTTPStatus.BAD_REQUEST and isinstance(errors, list):
        parts = []
        for error in errors:
            if not isinstance(error, dict):
                continue
            constraints = error.get("constraints") or {}
            joined = ", ".join(str(value) for value in constraints.values())
            parts.append(f"{error.get('property')}: {joined}")
        if parts:
            return "; ".join(parts)
    message = payload.get("message")
    if isinstance(message, list):
        message = "; ".join(str(item) for item in message)
    if isinstance(message, str) and message:
        if any(marker in message.lower() for marker in _OVERLOAD_MARKERS):
            return _OVERLOAD_MESSAGE
        return message
    return f"Request failed with status {status_code}"


def submit_project_status(
    client: ProjectClient, project_id: str, state: ProjectStatusState
) -> Project:
    """Reduce ``state`` to the API payload and update ``project_id``."""
    return client.update_project(project_id, state.to_payload())


__all__ = ["Project", "ProjectApiError", "ProjectClient", "submit_project_status"]
