"""Utility helpers shared by the trs-export configuration loader."""

from __future__ import annotations

import typing as typ

from .models import ExportConfigError, HoldReleasePolicy


def _section(
    raw: typ.Mapping[str, typ.Any], key: str
) -> typ.Mapping[str, typ.Any]:
    """Return the mapping stored under ``key`` or an empty mapping."""
    value = raw.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        msg = f"Configuration section '{key}' must be a mapping."
        raise ExportConfigError(msg)
    return value


def _positive_float(
    payload: typ.Mapping[str, typ.Any], key: str, default: float
) -> float:
    """Read ``key`` as a float strictly greater than zero."""
    value = _number(payload, key, default)
    if value <= 0:
        msg = f"'{key}' must be greater than zero, got {value!r}."
        raise ExportConfigError(msg)
    return value


def _non_negative_float(
    payload: typ.Mapping[str, typ.Any], key: str, default: float
) -> float:
    """Read ``key`` as a float that may be zero."""
    value = _number(payload, key, default)
    if value < 0:
        msg = f"'{key}' cannot be negative, got {value!r}."
        raise ExportConfigError(msg)
    return value


def _quality(payload: typ.Mapping[str, typ.Any], key: str, default: float) -> float:
    """Read a JPEG quality expressed as a fraction in ``(0, 1]``."""
    value = _number(payload, key, default)
    if not 0 < value <= 1:
        msg = f"'{key}' must be within (0, 1], got {value!r}."
        raise ExportConfigError(msg)
    return value


def _number(payload: typ.Mapping[str, typ.Any], key: str, default: float) -> float:
    raw = payload.get(key, default)
    match raw:
        case bool():
            msg = f"'{key}' must be numeric, got a boolean."
            raise ExportConfigError(msg)
        case int() | float():
            return float(raw)
        case str() as text:
            try:
                return float(text.strip())
            except ValueError as exc:
                msg = f"'{key}' must be numeric, got {text!r}."
                raise ExportConfigError(msg) from exc
        case _:
            msg = f"'{key}' must be numeric, got {raw!r}."
            raise ExportConfigError(msg)


def _flag(payload: typ.Mapping[str, typ.Any], key: str, *, default: bool) -> bool:
    """Read a boolean, accepting the usual YAML/env spellings."""
    raw = payload.get(key, default)
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        lowered = raw.strip().lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
    msg = f"'{key}' must be a boolean, got {raw!r}."
    raise ExportConfigError(msg)


def _hold_policy(value: object | None) -> HoldReleasePolicy:
    """Parse the ``hold_release`` setting."""
    if value is None:
        return HoldReleasePolicy.RESET
    try:
        return HoldReleasePolicy(str(value).strip().lower())
    except ValueError as exc:
        allowed = ", ".join(policy.value for policy in HoldReleasePolicy)
        msg = f"Unknown hold_release policy {value!r}; expected one of: {allowed}."
        raise ExportConfigError(msg) from exc


def _optional_str(value: object | None) -> str | None:
    """Return a stripped string value or None when empty."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


__all__ = [
    "_flag",
    "_hold_policy",
    "_non_negative_float",
    "_optional_str",
    "_positive_float",
    "_quality",
    "_section",
]
