from __future__ import annotations

import os
import sys
from typing import Any, Callable, Mapping, MutableMapping, Sequence, TextIO

from .aws_session import SessionFactory, resolve_session
from .blob_store import BlobStore
from .config_schema import FetchMode, Settings
from .errors import InvalidParameterError
from .output import apply_to_environ, print_assignments
from .parameter_store import ParameterStore
from .params import build_parameter_names
from .process import replace_process
from .run_log import RunLogger

ReplaceFn = Callable[[Sequence[str], Mapping[str, str]], Any]

PASSTHROUGH_NOTICE = "Notice: No SSM_PARAMS provided to get-ssm-params. Passing through to exec()."


def _session(settings: Settings, session_factory: SessionFactory | None) -> Any:
    return resolve_session(
        settings.region,
        settings.role_arn,
        session_factory=session_factory,
    )


def _exec(
    command: Sequence[str],
    env: Mapping[str, str],
    *,
    replace: ReplaceFn,
    log: RunLogger,
    event: str,
) -> int:
    log.info(event, argv0=command[0], argc=len(command))
    # Nothing after a successful exec runs, so the log must be flushed first.
    log.close()
    replace(list(command), dict(env))
    return 0


def run_get_ssm_params(
    settings: Settings,
    *,
    log: RunLogger | None = None,
    environ: MutableMapping[str, str] | None = None,
    out: TextIO | None = None,
    err: TextIO | None = None,
    session_factory: SessionFactory | None = None,
    parameter_store: ParameterStore | None = None,
    blob_store: BlobStore | None = None,
    replace: ReplaceFn | None = None,
) -> int:
    """
    Run one invocation: fetch, then print or exec.

    Collaborators default to the real AWS and exec implementations; tests
    inject fakes. Returns the exit code when the process is not replaced.
    """
    env = os.environ if environ is None else environ
    stdout = out or sys.stdout
    stderr = err or sys.stderr
    run_log = log or RunLogger(None)
    do_replace = replace or replace_process

    run_log.info(
        "settings_resolved",
        mode=settings.mode.value,
        environment=settings.environment,
        service=settings.service,
        params=len(settings.params),
        extra_params=len(settings.extra_params),
        region=settings.region,
        assume_role=settings.role_arn is not None,
        has_command=bool(settings.command),
    )

    if settings.is_passthrough:
        stderr.write(PASSTHROUGH_NOTICE + "\n")
        stderr.flush()
        return _exec(settings.command, env, replace=do_replace, log=run_log, event="passthrough_exec")

    if settings.mode is FetchMode.BLOB:
        bucket, key, local_path = settings.blob_args
        store = blob_store or BlobStore(_session(settings, session_factory))
        result = store.download(bucket, key, local_path)
        run_log.info(
            "blob_fetched",
            bucket=result.bucket,
            key=result.key,
            local_path=str(result.local_path),
            byte_count=result.byte_count,
        )
        stdout.write(result.summary() + "\n")
        stdout.flush()
        return 0

    names = build_parameter_names(
        settings.environment,
        settings.service,
        settings.params,
        settings.extra_params,
    )
    run_log.info("parameters_requested", names=names)

    ssm = parameter_store or ParameterStore(_session(settings, session_factory))
    fetched = ssm.get_parameters(names)

    # Fail early: either every requested name resolves or nothing is used.
    if fetched.invalid:
        run_log.error("parameters_invalid", names=fetched.invalid)
        raise InvalidParameterError(fetched.invalid)

    run_log.info("parameters_fetched", count=len(fetched.parameters))

    if not settings.command:
        print_assignments(
            fetched.parameters,
            settings.environment,
            settings.service,
            out=stdout,
        )
        return 0

    applied = apply_to_environ(
        fetched.parameters,
        settings.environment,
        settings.service,
        environ=env,
    )
    run_log.info("environment_updated", names=applied)
    return _exec(settings.command, env, replace=do_replace, log=run_log, event="exec_started")
