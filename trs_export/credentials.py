"""Load and persist API credentials for the ``trs-export`` command.

Credentials live in ``~/.config/trs-export/config.toml`` under an ``[api]``
table. Values are resolved in order of precedence: explicit arguments, then
``TRS_API_TOKEN`` / ``TRS_API_URL``, then the stored file. Saving preserves
any other tables already in the file and restricts it to the owner.
"""

from __future__ import annotations

import dataclasses as dc
import os
import typing as typ
from pathlib import Path

import tomlkit
from tomlkit.exceptions import ParseError

from trs_export._constants import DEFAULT_API_BASE

DEFAULT_CREDENTIALS_PATH = Path(
    os.getenv(
        "TRS_CONFIG_FILE",
        Path.home() / ".config" / "trs-export" / "config.toml",
    )
)

_CREDENTIALS_FILE_MODE = 0o600


class CredentialError(RuntimeError):
    """Raised when required credentials are missing or unreadable."""


@dc.dataclass(slots=True)
class ApiCredentials:
    """Resolved API location and bearer token."""

    token: str | None = None
    base_url: str | None = None

    @property
    def api_base(self) -> str:
        return self.base_url or DEFAULT_API_BASE


def load_credentials(path: Path = DEFAULT_CREDENTIALS_PATH) -> ApiCredentials:
    """Return the credentials stored at ``path``, empty when absent."""
    if not path.exists():
        return ApiCredentials()
    try:
        data = tomlkit.parse(path.read_text(encoding="utf-8"))
    except ParseError as exc:
        msg = f"Unable to parse credentials TOML at {path}"
        raise CredentialError(msg) from exc
    table = data.get("api") or {}
    return ApiCredentials(
        token=typ.cast(str | None, table.get("token")),
        base_url=typ.cast(str | None, table.get("base_url")),
    )


def save_credentials(
    creds: ApiCredentials, *, path: Path = DEFAULT_CREDENTIALS_PATH
) -> None:
    """Persist ``creds`` into ``path`` preserving the file's other content."""
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        doc = tomlkit.parse(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        doc = tomlkit.document()
    except ParseError as exc:
        msg = f"Unable to parse credentials TOML at {path}"
        raise CredentialError(msg) from exc

    api_table = doc.get("api")
    if not isinstance(api_table, tomlkit.items.Table):
        api_table = tomlkit.table()

    def _set(key: str, value: str | None) -> None:
        if value is None:
            api_table.pop(key, None)
        else:
            api_table[key] = value

    _set("token", creds.token)
    _set("base_url", creds.base_url)
    doc["api"] = api_table

    path.write_text(tomlkit.dumps(doc), encoding="utf-8")
    os.chmod(path, _CREDENTIALS_FILE_MODE)


def resolve_credentials(
    *,
    path: Path = DEFAULT_CREDENTIALS_PATH,
    token: str | None = None,
    base_url: str | None = None,
    require_token: bool = True,
) -> ApiCredentials:
    """Merge explicit, environment and stored credentials.

    Raises
    ------
    CredentialError
        If ``require_token`` is set and no token was found anywhere.
    """
    stored = load_credentials(path)
    resolved = ApiCredentials(
        token=token or os.getenv("TRS_API_TOKEN") or stored.token,
        base_url=base_url or os.getenv("TRS_API_URL") or stored.base_url,
    )
    if require_token and not resolved.token:
        msg = (
            "An API token is required. Provide it via --token, TRS_API_TOKEN, "
            "or `trs-export login`."
        )
        raise CredentialError(msg)
    return resolved


__all__ = [
    "DEFAULT_CREDENTIALS_PATH",
    "ApiCredentials",
    "CredentialError",
    "load_credentials",
    "resolve_credentials",
    "save_credentials",
]
