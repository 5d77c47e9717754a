"""Cyclopts CLI entrypoint for exporting dashboard documents and project status.

The ``trs-export`` console script turns HTML fragments and time-log JSON into
US Letter PDFs, reduces project status edits into the payload the REST API
expects (optionally submitting it), and stores API credentials for later runs.
Every option falls back to a ``TRS_``-prefixed environment variable.

Examples
--------
Export a fragment next to its source file:

>>> from trs_export.cli import app
>>> app(["pdf", "invoice.html"])  # doctest: +SKIP

Hold a project at 37% and submit it:

>>> app(["status", "p-1", "--progress", "37", "--hold", "--submit"])  # doctest: +SKIP
"""

from __future__ import annotations

import json
import sys
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter
from loguru import logger

from .config import HoldReleasePolicy, load_export_config
from .credentials import (
    DEFAULT_CREDENTIALS_PATH,
    ApiCredentials,
    resolve_credentials,
    save_credentials,
)
from .exporter import PdfExporter
from .projects import ProjectClient, submit_project_status
from .status import ProjectStatusState
from .timelogs import ReportUser, TimeLogReportBuilder, load_time_logs

DEFAULT_CONFIG = Path("config/export.yaml")
_LOG_FORMAT = "<level>{level: <8}</level> {message}"

app = App(name="trs-export", config=cyclopts.config.Env("TRS_", command=False))  # type: ignore[unknown-argument]


def configure_logging(level: str = "INFO") -> None:
    """Replace loguru's default handler with a single stderr sink."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=_LOG_FORMAT)


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


@app.meta.default
def _launcher(
    *tokens: typ.Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
    log_level: typ.Annotated[
        str, Parameter(help="Log level for stderr output", env_var="TRS_LOG_LEVEL")
    ] = "INFO",
) -> None:
    configure_logging(log_level)
    app(tokens)


@app.command(help="Export an HTML fragment to a US Letter PDF.")
def pdf(
    source: Path,
    *,
    output: typ.Annotated[
        Path | None, Parameter(help="Where to write the PDF")
    ] = None,
    config: typ.Annotated[
        Path, Parameter(help="Path to export config", env_var="TRS_CONFIG")
    ] = DEFAULT_CONFIG,
) -> None:
    """Render ``source`` and write the PDF beside it unless ``output`` is set.

    Parameters
    ----------
    source : Path
        File holding the HTML fragment.
    output : Path or None, optional
        Destination PDF. Defaults to ``source`` with a ``.pdf`` suffix.
    config : Path, optional
        Export configuration YAML (overridable via ``TRS_CONFIG``).
    """
    exporter = PdfExporter(load_export_config(config))
    content = source.read_text(encoding="utf-8")
    written = exporter.export_file(content, output or source.with_suffix(".pdf"))
    print(f"wrote {_format_path(written)}")


@app.command(help="Export time logs as a summary PDF or a single log sheet.")
def timelogs(
    source: Path,
    *,
    log_id: typ.Annotated[
        str | None, Parameter(help="Export only the time log with this id")
    ] = None,
    user: typ.Annotated[
        Path | None, Parameter(help="JSON file with the signed-in user profile")
    ] = None,
    output: typ.Annotated[
        Path | None, Parameter(help="Where to write the PDF")
    ] = None,
    config: typ.Annotated[
        Path, Parameter(help="Path to export config", env_var="TRS_CONFIG")
    ] = DEFAULT_CONFIG,
) -> None:
    """Build a time-log fragment from ``source`` and export it.

    Raises
    ------
    ValueError
        If ``log_id`` matches no time log, or ``source`` holds none.
    """
    logs = load_time_logs(source)
    profile = None
    if user is not None:
        profile = json.loads(user.read_text(encoding="utf-8"))
    builder = TimeLogReportBuilder(ReportUser.from_payload(profile))

    if log_id:
        matches = [log for log in logs if log.id == log_id]
        if not matches:
            msg = f"No time log with id '{log_id}' in {source}"
            raise ValueError(msg)
        content = builder.sheet(matches[0])
        default_name = f"time-log-{log_id}.pdf"
    else:
        content = builder.summary(logs)
        default_name = "time-logs-summary.pdf"

    exporter = PdfExporter(load_export_config(config))
    written = exporter.export_file(content, output or Path(default_name))
    print(f"wrote {_format_path(written)}")


@app.command(name="status", help="Update a project's status, progress and hold flag.")
def status_command(
    project_id: str,
    *,
    progress: typ.Annotated[
        int | None, Parameter(help="Completion percentage (0-100)")
    ] = None,
    status: typ.Annotated[
        str | None,
        Parameter(help="Not Started, In Progress or Completed"),
    ] = None,
    hold: typ.Annotated[bool, Parameter(help="Put the project on hold")] = False,
    release: typ.Annotated[bool, Parameter(help="Release an existing hold")] = False,
    current_status: typ.Annotated[
        str | None, Parameter(help="Status the project currently has")
    ] = None,
    current_progress: typ.Annotated[
        int | None, Parameter(help="Progress the project currently has")
    ] = None,
    submit: typ.Annotated[
        bool, Parameter(help="Send the update to the projects API")
    ] = False,
    token: typ.Annotated[
        str | None, Parameter(help="API bearer token", env_var="TRS_API_TOKEN")
    ] = None,
    api_url: typ.Annotated[
        str | None, Parameter(help="API base URL", env_var="TRS_API_URL")
    ] = None,
    config: typ.Annotated[
        Path, Parameter(help="Path to export config", env_var="TRS_CONFIG")
    ] = DEFAULT_CONFIG,
    credentials_path: typ.Annotated[
        Path,
        Parameter(help="Credentials TOML file", env_var="TRS_CONFIG_FILE"),
    ] = DEFAULT_CREDENTIALS_PATH,
) -> None:
    """Apply edits in the order release, status, progress, hold.

    The resulting payload is printed as JSON. With ``--submit`` it is sent to
    ``PUT /projects/{id}`` and the confirmation text is printed.
    """
    export_config = load_export_config(config)
    policy: HoldReleasePolicy = export_config.status.hold_release

    state = ProjectStatusState.from_backend(current_status, current_progress)
    if release and state.is_held:
        state = state.toggle_hold(policy)
    if status is not None:
        state = state.select_status(status)
    if progress is not None:
        state = state.set_completion(progress)
    if hold and not state.is_held:
        state = state.toggle_hold(policy)

    print(json.dumps(state.to_payload()))
    if not submit:
        return

    creds = resolve_credentials(
        path=credentials_path,
        token=token,
        base_url=api_url,
    )
    client = ProjectClient(
        token=creds.token,
        api_base=creds.base_url or export_config.api.base_url,
        timeout=export_config.api.timeout,
    )
    project = submit_project_status(client, project_id, state)
    logger.info("Updated project {} to {}", project.id, project.status)
    print(state.describe())


@app.command(help="Store the API token and base URL for later runs.")
def login(
    *,
    token: typ.Annotated[
        str, Parameter(help="API bearer token", env_var="TRS_API_TOKEN")
    ],
    api_url: typ.Annotated[
        str | None, Parameter(help="API base URL", env_var="TRS_API_URL")
    ] = None,
    credentials_path: typ.Annotated[
        Path,
        Parameter(help="Credentials TOML file", env_var="TRS_CONFIG_FILE"),
    ] = DEFAULT_CREDENTIALS_PATH,
) -> None:
    """Persist credentials to ``credentials_path`` with owner-only permissions."""
    save_credentials(
        ApiCredentials(token=token, base_url=api_url), path=credentials_path
    )
    print(f"wrote {_format_path(credentials_path)}")


def main() -> None:
    """Invoke the Cyclopts application that powers the ``trs-export`` command.

    Examples
    --------
    >>> main()  # doctest: +SKIP
    """
    app.meta()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()


__all__ = ["app", "configure_logging", "main"]
