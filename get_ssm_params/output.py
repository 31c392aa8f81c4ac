from __future__ import annotations

import os
import sys
from typing import Iterable, MutableMapping, TextIO

from .params import strip_env_and_service

_SHELL_ESCAPES = str.maketrans(
    {
        "\\": "\\\\",
        '"': '\\"',
        "$": "\\$",
        "`": "\\`",
    }
)


def shell_quote(value: str) -> str:
    """Wrap value in double quotes so a POSIX shell reads it back literally."""
    return '"' + value.translate(_SHELL_ESCAPES) + '"'


def format_assignment(name: str, value: str) -> str:
    return f"{name}={shell_quote(value)}"


def projected(
    parameters: Iterable[tuple[str, str]], environment: str, service: str
) -> list[tuple[str, str]]:
    return [
        (strip_env_and_service(name, environment, service), value)
        for name, value in parameters
    ]


def print_assignments(
    parameters: Iterable[tuple[str, str]],
    environment: str,
    service: str,
    *,
    out: TextIO | None = None,
) -> int:
    """
    Print one KEY="value" line per parameter, ready to be sourced.

    Order follows the fetch order. Returns the number of lines written.
    """
    stream = out or sys.stdout
    count = 0
    for name, value in projected(parameters, environment, service):
        stream.write(format_assignment(name, value) + "\n")
        count += 1
    stream.flush()
    return count


def apply_to_environ(
    parameters: Iterable[tuple[str, str]],
    environment: str,
    service: str,
    *,
    environ: MutableMapping[str, str] | None = None,
) -> list[str]:
    env = os.environ if environ is None else environ
    names: list[str] = []
    for name, value in projected(parameters, environment, service):
        env[name] = value
        names.append(name)
    return names
