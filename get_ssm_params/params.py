from __future__ import annotations

from typing import Sequence

from .errors import UsageError


def _entries(value: str | Sequence[str] | None) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return value.split(",") if value else []
    return list(value)


def build_parameter_names(
    environment: str,
    service: str,
    params: str | Sequence[str] | None,
    extra_params: str | Sequence[str] | None,
) -> list[str]:
    """
    Build the ordered list of SSM parameter names to request.

    Prefixed entries become ENV_SERVICE_<entry> and come first; extra entries
    follow verbatim. Raises UsageError when a prefixed entry is requested
    without both environment and service, or when nothing is requested.
    """
    names: list[str] = []

    prefixed = _entries(params)
    if prefixed:
        if not environment or not service:
            raise UsageError("-env and -service must be given for -params to work")
        names.extend(f"{environment}_{service}_{entry}" for entry in prefixed)

    names.extend(_entries(extra_params))

    if not names:
        raise UsageError("nothing requested, give -params and/or -extraparams (try -h for help)")
    return names


def strip_env_and_service(name: str, environment: str, service: str) -> str:
    """PROD_FOO_DB_USER -> DB_USER; names without the leading prefix are returned as-is."""
    prefix = f"{environment}_{service}_"
    if name.startswith(prefix):
        return name[len(prefix) :]
    return name
