from __future__ import annotations

import unittest
from typing import Any

from get_ssm_params.errors import ExecError
from get_ssm_params.process import replace_process


class _Replaced(Exception):
    pass


class _FakeExec:
    def __init__(self, error: Exception | None = None) -> None:
        self._error = error
        self.calls: list[tuple[str, list[str], dict[str, str]]] = []

    def __call__(self, path: str, args: list[str], env: dict[str, str]) -> Any:
        self.calls.append((path, args, env))
        if self._error is not None:
            raise self._error
        raise _Replaced()


class TestReplaceProcess(unittest.TestCase):
    def test_execs_argv0_with_full_argv_and_env(self) -> None:
        fake = _FakeExec()
        with self.assertRaises(_Replaced):
            replace_process(["/bin/env", "-0"], {"DB_HOST": "db"}, execve=fake)
        self.assertEqual(fake.calls, [("/bin/env", ["/bin/env", "-0"], {"DB_HOST": "db"})])

    def test_missing_binary_is_exec_error(self) -> None:
        fake = _FakeExec(FileNotFoundError(2, "No such file or directory"))
        with self.assertRaises(ExecError) as ctx:
            replace_process(["/nonexistent/bin"], {}, execve=fake)
        self.assertIn("/nonexistent/bin", str(ctx.exception))
        self.assertIn("No such file or directory", str(ctx.exception))

    def test_not_executable_is_exec_error(self) -> None:
        fake = _FakeExec(PermissionError(13, "Permission denied"))
        with self.assertRaises(ExecError):
            replace_process(["/etc/hosts"], {}, execve=fake)

    def test_returning_exec_is_exec_error(self) -> None:
        with self.assertRaises(ExecError):
            replace_process(["/bin/true"], {}, execve=lambda path, args, env: None)

    def test_empty_command_is_exec_error(self) -> None:
        with self.assertRaises(ExecError):
            replace_process([], {}, execve=_FakeExec())


if __name__ == "__main__":
    unittest.main()
