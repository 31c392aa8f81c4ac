from __future__ import annotations

from typing import Any, Callable

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .errors import RemoteError

ROLE_SESSION_NAME = "get-ssm-params"

SessionFactory = Callable[..., Any]


def resolve_session(
    region: str,
    role_arn: str | None = None,
    *,
    session_factory: SessionFactory | None = None,
) -> Any:
    """
    Return a boto3 Session for the given region.

    Without a role ARN the default credential chain is used unmodified. With
    one, the default chain calls STS AssumeRole and the returned session
    carries the temporary credentials.
    """
    factory = session_factory or boto3.session.Session
    base = factory(region_name=region)

    if not role_arn:
        return base

    try:
        resp = base.client("sts").assume_role(
            RoleArn=role_arn,
            RoleSessionName=ROLE_SESSION_NAME,
        )
    except (ClientError, BotoCoreError) as e:
        raise RemoteError(f"AssumeRole {role_arn}, {e}") from e

    creds = resp.get("Credentials") or {}
    try:
        return factory(
            aws_access_key_id=creds["AccessKeyId"],
            aws_secret_access_key=creds["SecretAccessKey"],
            aws_session_token=creds["SessionToken"],
            region_name=region,
        )
    except KeyError as e:
        raise RemoteError(f"AssumeRole {role_arn}, response missing {e}") from e
