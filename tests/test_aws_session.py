from __future__ import annotations

import unittest
from typing import Any

from botocore.exceptions import ClientError

from get_ssm_params.aws_session import ROLE_SESSION_NAME, resolve_session
from get_ssm_params.errors import RemoteError


class _FakeSTS:
    def __init__(self, response: dict[str, Any] | None = None, *, error: Exception | None = None) -> None:
        self._response = response or {}
        self._error = error
        self.calls: list[dict[str, Any]] = []

    def assume_role(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(kwargs)
        if self._error is not None:
            raise self._error
        return self._response


class _FakeSession:
    def __init__(self, sts: _FakeSTS | None, **kwargs: Any) -> None:
        self.kwargs = kwargs
        self._sts = sts

    def client(self, service: str, **kwargs: Any) -> Any:
        if service != "sts" or self._sts is None:
            raise AssertionError(f"unexpected client: {service}")
        return self._sts


class _SessionFactory:
    def __init__(self, sts: _FakeSTS | None = None) -> None:
        self.sts = sts
        self.created: list[_FakeSession] = []

    def __call__(self, **kwargs: Any) -> _FakeSession:
        session = _FakeSession(self.sts, **kwargs)
        self.created.append(session)
        return session


_CREDS = {
    "Credentials": {
        "AccessKeyId": "ASIAEXAMPLE",
        "SecretAccessKey": "secret",
        "SessionToken": "token",
    }
}


class TestResolveSession(unittest.TestCase):
    def test_without_role_uses_default_chain(self) -> None:
        factory = _SessionFactory()
        session = resolve_session("eu-central-1", None, session_factory=factory)

        self.assertIs(session, factory.created[0])
        self.assertEqual(session.kwargs, {"region_name": "eu-central-1"})
        self.assertEqual(len(factory.created), 1)

    def test_with_role_returns_session_with_temporary_credentials(self) -> None:
        sts = _FakeSTS(_CREDS)
        factory = _SessionFactory(sts)
        arn = "arn:aws:iam::123456789012:role/reader"

        session = resolve_session("eu-west-1", arn, session_factory=factory)

        self.assertEqual(sts.calls, [{"RoleArn": arn, "RoleSessionName": ROLE_SESSION_NAME}])
        self.assertEqual(len(factory.created), 2)
        self.assertEqual(
            session.kwargs,
            {
                "aws_access_key_id": "ASIAEXAMPLE",
                "aws_secret_access_key": "secret",
                "aws_session_token": "token",
                "region_name": "eu-west-1",
            },
        )

    def test_assume_role_failure_is_remote_error(self) -> None:
        err = ClientError({"Error": {"Code": "AccessDenied", "Message": "no"}}, "AssumeRole")
        factory = _SessionFactory(_FakeSTS(error=err))
        with self.assertRaises(RemoteError):
            resolve_session("eu-central-1", "arn:aws:iam::1:role/x", session_factory=factory)

    def test_incomplete_credentials_are_remote_error(self) -> None:
        factory = _SessionFactory(_FakeSTS({"Credentials": {"AccessKeyId": "A"}}))
        with self.assertRaises(RemoteError):
            resolve_session("eu-central-1", "arn:aws:iam::1:role/x", session_factory=factory)


if __name__ == "__main__":
    unittest.main()
