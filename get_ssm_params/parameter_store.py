from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, Sequence

from botocore.exceptions import BotoCoreError, ClientError

from .errors import RemoteError

# GetParameters rejects requests with more names than this.
MAX_NAMES_PER_CALL = 10


@dataclass(frozen=True)
class FetchedParameters:
    parameters: list[tuple[str, str]] = field(default_factory=list)
    invalid: list[str] = field(default_factory=list)

    def __repr__(self) -> str:
        # Values are secrets; keep them out of tracebacks and logs.
        names = [name for name, _ in self.parameters]
        return f"FetchedParameters(names={names!r}, invalid={self.invalid!r})"


def _chunked(values: Sequence[str], size: int) -> Iterator[list[str]]:
    if size <= 0:
        raise ValueError("chunk size must be positive")

    batch: list[str] = []
    for item in values:
        batch.append(item)
        if len(batch) >= size:
            yield batch
            batch = []
    if batch:
        yield batch


class ParameterStore:
    """
    Thin wrapper around SSM GetParameters with decryption enabled.

    Only performs the calls; deciding what to do with rejected names is up to
    the caller.
    """

    def __init__(self, session: Any = None, *, client: Any = None) -> None:
        if client is not None:
            self._client = client
        elif session is not None:
            self._client = session.client("ssm")
        else:
            raise ValueError("ParameterStore needs a boto3 session or an SSM client")

    def get_parameters(self, names: Sequence[str]) -> FetchedParameters:
        if not names:
            raise ValueError("at least one parameter name is required")

        parameters: list[tuple[str, str]] = []
        invalid: list[str] = []

        for batch in _chunked(list(names), MAX_NAMES_PER_CALL):
            try:
                resp = self._client.get_parameters(Names=batch, WithDecryption=True)
            except (ClientError, BotoCoreError) as e:
                raise RemoteError(f"GetParameters, {e}") from e

            for item in resp.get("Parameters") or []:
                parameters.append((str(item["Name"]), str(item.get("Value", ""))))
            invalid.extend(str(n) for n in resp.get("InvalidParameters") or [])

        return FetchedParameters(parameters=parameters, invalid=invalid)
