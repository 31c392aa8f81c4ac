from __future__ import annotations

from typing import Sequence


class GetSsmParamsError(RuntimeError):
    """Base class for every error that ends the process with exit code 1."""


class UsageError(GetSsmParamsError):
    """Raised when command-line arguments are missing or inconsistent."""


class InvalidParameterError(GetSsmParamsError):
    """Raised when the parameter store rejects one or more requested names."""

    def __init__(self, names: Sequence[str]) -> None:
        self.names = list(names)
        super().__init__("Invalid/Unavailable parameter(s): " + ", ".join(self.names))


class RemoteError(GetSsmParamsError):
    """Raised when a call to SSM, S3 or STS fails."""


class FetchTimeoutError(RemoteError):
    """Raised when an S3 download does not finish before its deadline."""


class ExecError(GetSsmParamsError):
    """Raised when the trailing command cannot replace the current process."""
