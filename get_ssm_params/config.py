from __future__ import annotations

import argparse
import os
from typing import Any, Mapping

from pydantic import ValidationError

from .config_schema import DEFAULT_REGION, FetchMode, Settings
from .errors import UsageError

# flag attribute -> environment variable names, first non-empty wins
ENV_FALLBACKS: dict[str, tuple[str, ...]] = {
    "env": ("SSM_ENV",),
    "service": ("SSM_SERVICE",),
    "params": ("SSM_PARAMS",),
    "extraparams": ("SSM_EXTRA_PARAMS",),
    "awsregion": ("SSM_AWS_REGION",),
    "rolearn": ("SSM_ROLEARN", "SSM_ROLE_ARN"),
    "log_file": ("SSM_LOG_FILE",),
}


def _resolve(
    args: argparse.Namespace,
    attr: str,
    env: Mapping[str, str],
    default: str = "",
) -> str:
    explicit = getattr(args, attr, None)
    if explicit is not None:
        return str(explicit)

    for name in ENV_FALLBACKS.get(attr, ()):
        value = env.get(name) or ""
        if value:
            return value

    return default


def _positional(args: argparse.Namespace) -> list[str]:
    rest = list(getattr(args, "command", None) or [])
    if rest and rest[0] == "--":
        rest = rest[1:]
    return rest


def resolve_settings(
    args: argparse.Namespace, *, environ: Mapping[str, str] | None = None
) -> Settings:
    """
    Merge parsed flags with SSM_* environment variables into Settings.

    A flag given on the command line always wins, even when empty.
    Raises UsageError with a readable message when validation fails.
    """
    env = os.environ if environ is None else environ

    mode = FetchMode.BLOB if getattr(args, "s3_get", False) else FetchMode.PARAMETERS
    positional = _positional(args)

    data: dict[str, Any] = {
        "environment": _resolve(args, "env", env),
        "service": _resolve(args, "service", env),
        "params": _resolve(args, "params", env),
        "extra_params": _resolve(args, "extraparams", env),
        "region": _resolve(args, "awsregion", env, DEFAULT_REGION),
        "role_arn": _resolve(args, "rolearn", env),
        "log_file": _resolve(args, "log_file", env),
        "mode": mode,
        "blob_args": positional if mode is FetchMode.BLOB else [],
        "command": positional if mode is FetchMode.PARAMETERS else [],
    }

    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        raise UsageError(_format_pydantic_errors(e)) from e


def _format_pydantic_errors(err: ValidationError) -> str:
    lines: list[str] = ["bad arguments:"]
    for item in err.errors():
        loc = ".".join(str(part) for part in item.get("loc", [])) or "<root>"
        msg = str(item.get("msg", "invalid value"))
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, ") :]
        lines.append(f"- {loc}: {msg}")
    return "\n".join(lines)
