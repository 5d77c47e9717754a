"""Build the HTML fragments exported from the freelancer time-logs page.

Two fragments are produced: a sheet for a single time log and a summary with a
table of every log. Both are rendered from Jinja templates and are meant to be
handed to :mod:`trs_export.exporter` for conversion to PDF.

Time logs are read from the JSON the ``/time-logs`` endpoints return. The
loader accepts the bare list, ``{"data": [...]}`` and the paginated
``{"data": {"items": [...]}}`` shapes.
"""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import json
import typing as typ
from pathlib import Path

from bs4 import BeautifulSoup
from jinja2 import Environment, FileSystemLoader, select_autoescape

NO_PROJECT = "No Project"
NO_DESCRIPTION = "No description"
NO_DESCRIPTION_PROVIDED = "No description provided"
SUMMARY_DESCRIPTION_LIMIT = 100


@dc.dataclass(slots=True)
class TimeLogProject:
    id: str
    name: str


@dc.dataclass(slots=True)
class ReportUser:
    """Person and company named in the report header."""

    full_name: str = "Freelancer Name"
    email: str = "email@example.com"
    phone_number: str = "Phone Number"
    job_title: str = "Freelancer"
    company_name: str = "Company Name"
    company_sector: str = "Sector"

    @classmethod
    def from_payload(cls, payload: typ.Mapping[str, typ.Any] | None) -> ReportUser:
        if not payload:
            return cls()
        base = cls()
        company = payload.get("company") or {}
        return cls(
            full_name=payload.get("fullName") or base.full_name,
            email=payload.get("email") or base.email,
            phone_number=payload.get("phoneNumber") or base.phone_number,
            job_title=payload.get("jobTitle") or base.job_title,
            company_name=company.get("name") or base.company_name,
            company_sector=company.get("sector") or base.company_sector,
        )


@dc.dataclass(slots=True)
class TimeLog:
    """One logged block of work.

    Attributes
    ----------
    id : str
        Backend identifier.
    title : str
        Task title.
    description : str | None
        Free text, possibly containing HTML from the rich-text editor.
    duration : int
        Logged time in minutes.
    status : str
        Backend status, for example ``active`` or ``draft``.
    created_at : datetime | None
        When the log was created.
    project : TimeLogProject | None
        Project the log was booked against.
    """

    id: str
    title: str
    description: str | None = None
    duration: int = 0
    status: str = ""
    created_at: dt.datetime | None = None
    project: TimeLogProject | None = None

    @classmethod
    def from_payload(cls, payload: typ.Mapping[str, typ.Any]) -> TimeLog:
        try:
            identifier = str(payload["id"])
            title = str(payload["title"])
        except KeyError as exc:
            msg = f"Time log payload is missing {exc}"
            raise ValueError(msg) from exc
        project_data = payload.get("project")
        project = (
            TimeLogProject(id=str(project_data.get("id", "")), name=str(project_data["name"]))
            if isinstance(project_data, dict) and project_data.get("name")
            else None
        )
        duration = payload.get("duration") or 0
        return cls(
            id=identifier,
            title=title,
            description=payload.get("description"),
            duration=int(duration),
            status=str(payload.get("status") or ""),
            created_at=_parse_timestamp(payload.get("createdAt")),
            project=project,
        )

    @property
    def project_name(self) -> str:
        return self.project.name if self.project else NO_PROJECT

    @property
    def plain_description(self) -> str:
        """Return the description without tags, with entities decoded."""
        return BeautifulSoup(self.description or "", "html.parser").get_text()


def format_duration(minutes: int) -> str:
    """Format a minute count as hours and minutes.

    Examples
    --------
    >>> format_duration(135)
    '2h 15m'
    >>> format_duration(0)
    '0h 0m'
    """
    hours, mins = divmod(int(minutes), 60)
    return f"{hours}h {mins}m"


def format_date(value: dt.datetime | None) -> str:
    """Format ``value`` as ``M/D/YYYY``; empty when unknown."""
    if value is None:
        return ""
    return f"{value.month}/{value.day}/{value.year}"


def summary_description(log: TimeLog) -> str:
    """Return the description cell text used in the summary table."""
    text = log.plain_description
    if not text:
        return NO_DESCRIPTION
    if len(text) > SUMMARY_DESCRIPTION_LIMIT:
        return f"{text[:SUMMARY_DESCRIPTION_LIMIT]}..."
    return text


def capitalize_status(status: str) -> str:
    return status[:1].upper() + status[1:]


def load_time_logs(path: Path) -> list[TimeLog]:
    """Load time logs from an API response saved as JSON.

    Raises
    ------
    ValueError
        If the file does not hold a recognised payload shape.
    """
    with path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    rows: typ.Any = payload
    if isinstance(rows, dict):
        rows = rows.get("data", rows)
    if isinstance(rows, dict):
        rows = rows.get("items")
    if not isinstance(rows, list):
        msg = f"No time log list found in {path}"
        raise ValueError(msg)
    return [TimeLog.from_payload(row) for row in rows if isinstance(row, dict)]


class TimeLogReportBuilder:
    """Render time logs into the fragments the exporter turns into PDFs."""

    def __init__(
        self,
        user: ReportUser | None = None,
        *,
        templates_dir: Path | None = None,
        now: typ.Callable[[], dt.datetime] = dt.datetime.now,
    ) -> None:
        self.user = user or ReportUser()
        self.templates_dir = templates_dir or Path(__file__).parent / "templates"
        self._now = now
        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=select_autoescape(["html", "xml", "jinja"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["duration"] = format_duration
        self.env.filters["date"] = format_date
        self.env.filters["capitalize_status"] = capitalize_status

    def sheet(self, log: TimeLog) -> str:
        """Return the fragment for a single time log."""
        template = self.env.get_template("timelog_sheet.jinja")
        return template.render(
            log=log,
            user=self.user,
            description=log.plain_description or NO_DESCRIPTION_PROVIDED,
            status_class=_status_badge(log.status),
            generated_at=self._now(),
        )

    def summary(self, logs: typ.Sequence[TimeLog]) -> str:
        """Return the fragment summarising ``logs``.

        Raises
        ------
        ValueError
            If ``logs`` is empty.
        """
        if not logs:
            msg = "No time logs to generate PDF for."
            raise ValueError(msg)
        template = self.env.get_template("timelog_summary.jinja")
        rows = [(log, summary_description(log)) for log in logs]
        return template.render(
            rows=rows,
            user=self.user,
            total_count=len(logs),
            total_duration=sum(log.duration for log in logs),
            generated_at=self._now(),
        )


def _status_badge(status: str) -> str:
    if status == "active":
        return "bg-green-50 text-green-700 border-green-200"
    return "bg-yellow-50 text-yellow-700 border-yellow-200"


def _parse_timestamp(value: object) -> dt.datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


__all__ = [
    "ReportUser",
    "TimeLog",
    "TimeLogProject",
    "TimeLogReportBuilder",
    "capitalize_status",
    "format_date",
    "format_duration",
    "load_time_logs",
    "summary_description",
]
