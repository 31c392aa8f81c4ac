from __future__ import annotations

from .config import resolve_settings
from .config_schema import FetchMode, Settings
from .errors import (
    ExecError,
    FetchTimeoutError,
    GetSsmParamsError,
    InvalidParameterError,
    RemoteError,
    UsageError,
)
from .params import build_parameter_names, strip_env_and_service

__all__ = [
    "ExecError",
    "FetchMode",
    "FetchTimeoutError",
    "GetSsmParamsError",
    "InvalidParameterError",
    "RemoteError",
    "Settings",
    "UsageError",
    "build_parameter_names",
    "resolve_settings",
    "strip_env_and_service",
]
