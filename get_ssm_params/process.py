from __future__ import annotations

import os
import subprocess
import sys
from typing import Callable, Mapping, NoReturn, Sequence

from .errors import ExecError

ExecFn = Callable[[str, list[str], dict[str, str]], object]


def _has_posix_exec() -> bool:
    return os.name == "posix"


def replace_process(
    argv: Sequence[str],
    env: Mapping[str, str],
    *,
    execve: ExecFn | None = None,
) -> NoReturn:
    """
    Replace the current process image with the program at argv[0], passing env.

    argv[0] is used as the program path as given; PATH is not searched. Never
    returns on success; raises ExecError when the program cannot be started.
    Where POSIX exec is not available the program runs as a child and this
    process exits with its status, keeping the inherited stdio streams.
    """
    args = list(argv)
    if not args or not args[0]:
        raise ExecError("Failed to execute, no command given")

    environment = dict(env)
    sys.stdout.flush()
    sys.stderr.flush()

    if execve is None and not _has_posix_exec():
        try:
            proc = subprocess.run(args, env=environment)
        except OSError as e:
            raise ExecError(f"Failed to execute {args[0]}, {e}") from e
        raise SystemExit(proc.returncode)

    do_exec = execve or os.execve
    try:
        do_exec(args[0], args, environment)
    except OSError as e:
        raise ExecError(f"Failed to execute {args[0]}, {e}") from e
    raise ExecError(f"Failed to execute {args[0]}, exec returned unexpectedly")
