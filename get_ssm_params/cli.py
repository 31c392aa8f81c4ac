from __future__ import annotations

import argparse
import sys
from importlib.metadata import PackageNotFoundError, version
from typing import NoReturn, Sequence

from .config import resolve_settings
from .errors import GetSsmParamsError, InvalidParameterError
from .run_log import RunLogger
from .runner import run_get_ssm_params

PROG = "get-ssm-params"
DIST_NAME = "get-ssm-params"
DEV_VERSION = "0.0.0-dev"


def _pkg_version(name: str) -> str:
    try:
        return version(name)
    except PackageNotFoundError:
        return DEV_VERSION


class _ArgumentParser(argparse.ArgumentParser):
    """Reports bad flags like every other usage error: ERROR: on stderr, exit 1."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"ERROR: {message}\n")


def _build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog=PROG,
        description=(
            "Fetch parameters from AWS SSM Parameter Store and print them as "
            "KEY=\"value\" lines, or exec COMMAND with them in its environment."
        ),
        allow_abbrev=False,
    )

    # Defaults stay None so explicitly given flags can be told apart from
    # SSM_* environment fallbacks.
    parser.add_argument(
        "-env",
        "--env",
        dest="env",
        help="[$SSM_ENV] environment name to use (PROD, STAG, ...)",
    )
    parser.add_argument(
        "-service",
        "--service",
        dest="service",
        help="[$SSM_SERVICE] service name to use (YVES, ZED, ...)",
    )
    parser.add_argument(
        "-params",
        "--params",
        dest="params",
        help="[$SSM_PARAMS] parameters to fetch (prefixes env+service), comma-separated",
    )
    parser.add_argument(
        "-extraparams",
        "--extraparams",
        dest="extraparams",
        help="[$SSM_EXTRA_PARAMS] parameters to fetch (explicit), comma-separated",
    )
    parser.add_argument(
        "-awsregion",
        "--awsregion",
        dest="awsregion",
        help="[$SSM_AWS_REGION] AWS region (default: eu-central-1)",
    )
    parser.add_argument(
        "-rolearn",
        "--rolearn",
        dest="rolearn",
        help="[$SSM_ROLEARN] use given IAM role (ARN)",
    )
    parser.add_argument(
        "-log-file",
        "--log-file",
        dest="log_file",
        help="[$SSM_LOG_FILE] append a JSONL event log to this file (values are never logged)",
    )
    parser.add_argument(
        "-s3-get",
        "--s3-get",
        dest="s3_get",
        action="store_true",
        help="fetch file from S3, args: [bucket] [key] [localFile]",
    )
    parser.add_argument(
        "-version",
        "--version",
        action="version",
        version=_pkg_version(DIST_NAME),
        help="print version of get-ssm-params",
    )
    parser.add_argument(
        "command",
        nargs=argparse.REMAINDER,
        help="command to exec with the parameters in its environment",
    )

    return parser


def _eprint(message: str) -> None:
    print(message, file=sys.stderr)


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        settings = resolve_settings(args)

        with RunLogger.open(settings.log_file) as log:
            log.info("command_started", mode=settings.mode.value)
            try:
                return int(run_get_ssm_params(settings, log=log))
            except Exception as e:
                log.exception("command_failed", exc=e)
                raise
    except InvalidParameterError as e:
        _eprint("ERROR: Invalid/Unavailable parameter(s):")
        for name in e.names:
            _eprint(f"  - {name}")
        return 1
    except GetSsmParamsError as e:
        _eprint(f"ERROR: {e}")
        return 1
    except KeyboardInterrupt:
        _eprint("Interrupted")
        return 130
    except Exception as e:
        _eprint(f"ERROR: Unexpected error: {e}")
        return 1
