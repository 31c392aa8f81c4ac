from __future__ import annotations

import os
import socket
import tempfile
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    ReadTimeoutError,
)

from .errors import FetchTimeoutError, GetSsmParamsError, RemoteError

DEFAULT_TIMEOUT_SECONDS = 30.0

_CHUNK_SIZE = 64 * 1024
_FILE_MODE = 0o644


@dataclass(frozen=True)
class BlobFetchResult:
    bucket: str
    key: str
    local_path: Path
    byte_count: int

    def summary(self) -> str:
        return (
            f"SUCCESS Fetching 's3://{self.bucket}/{self.key}' -> "
            f"'{self.local_path}' ({self.byte_count} bytes)"
        )


def _client_config(timeout_seconds: float) -> Config:
    # One attempt only; the overall deadline is enforced by BlobStore.download.
    return Config(
        connect_timeout=timeout_seconds,
        read_timeout=timeout_seconds,
        retries={"total_max_attempts": 1},
    )


def _shutdown_socket(body: Any) -> None:
    # Closing the stream alone does not wake a recv() blocked in another thread.
    raw = getattr(body, "_raw_stream", None)
    conn = getattr(raw, "_connection", None) or getattr(raw, "connection", None)
    sock = getattr(conn, "sock", None)
    if sock is None:
        return
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError:
        pass


class _Transfer:
    """State shared between the caller and the download thread."""

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.cancelled = False
        self.body: Any = None
        self.tmp_path: Path | None = None
        self.written = 0
        self.error: BaseException | None = None

    def attach_body(self, body: Any) -> bool:
        with self.lock:
            if self.cancelled:
                return False
            self.body = body
            return True

    def attach_tmp(self, path: Path) -> bool:
        with self.lock:
            if self.cancelled:
                return False
            self.tmp_path = path
            return True

    def cancel(self) -> None:
        with self.lock:
            self.cancelled = True
            body = self.body
            tmp_path = self.tmp_path

        if body is not None:
            _shutdown_socket(body)
            try:
                body.close()
            except Exception:
                # The reader thread may be using the stream; it fails on its own.
                pass
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)


class BlobStore:
    """
    Downloads a single S3 object to a local file within a fixed deadline.

    The request and the body transfer run in a worker thread; the caller
    waits at most timeout_seconds, then cancels the in-flight response and
    raises FetchTimeoutError. The destination is only replaced once the
    whole body has been received, and never after cancellation.
    """

    def __init__(
        self,
        session: Any = None,
        *,
        client: Any = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")
        self._timeout = float(timeout_seconds)

        if client is not None:
            self._client = client
        elif session is not None:
            self._client = session.client("s3", config=_client_config(self._timeout))
        else:
            raise ValueError("BlobStore needs a boto3 session or an S3 client")

    def download(self, bucket: str, key: str, local_path: str | Path) -> BlobFetchResult:
        dest = Path(local_path)
        where = f"s3://{bucket}/{key}"
        transfer = _Transfer()

        worker = threading.Thread(
            target=self._run_transfer,
            args=(transfer, bucket, key, dest, where),
            name="s3-get",
            daemon=True,
        )
        worker.start()
        worker.join(self._timeout)

        if worker.is_alive():
            transfer.cancel()
            raise FetchTimeoutError(
                f"Download canceled due to timeout, {where}: exceeded {self._timeout:g}s"
            )

        if transfer.error is not None:
            raise transfer.error

        return BlobFetchResult(
            bucket=bucket,
            key=key,
            local_path=dest,
            byte_count=transfer.written,
        )

    def _run_transfer(
        self, transfer: _Transfer, bucket: str, key: str, dest: Path, where: str
    ) -> None:
        try:
            transfer.written = self._fetch(transfer, bucket, key, dest, where)
        except BaseException as e:
            transfer.error = e

    def _fetch(self, transfer: _Transfer, bucket: str, key: str, dest: Path, where: str) -> int:
        try:
            resp = self._client.get_object(Bucket=bucket, Key=key)
        except (ConnectTimeoutError, ReadTimeoutError) as e:
            raise FetchTimeoutError(f"Download canceled due to timeout, {where}: {e}") from e
        except (ClientError, BotoCoreError) as e:
            raise RemoteError(f"Failed to download object {where}, {e}") from e

        body = resp["Body"]
        if not transfer.attach_body(body):
            body.close()
            raise FetchTimeoutError(f"Download canceled due to timeout, {where}")

        tmp_path: Path | None = None
        try:
            with tempfile.NamedTemporaryFile(
                dir=dest.parent,
                prefix=f".{dest.name}.",
                suffix=".part",
                delete=False,
            ) as fp:
                tmp_path = Path(fp.name)
                if not transfer.attach_tmp(tmp_path):
                    raise FetchTimeoutError(f"Download canceled due to timeout, {where}")
                written = self._copy_body(transfer, body, fp, where=where)

            with transfer.lock:
                if transfer.cancelled:
                    raise FetchTimeoutError(f"Download canceled due to timeout, {where}")
                os.chmod(tmp_path, _FILE_MODE)
                os.replace(tmp_path, dest)
                tmp_path = None
        except OSError as e:
            if transfer.cancelled:
                raise FetchTimeoutError(f"Download canceled due to timeout, {where}") from e
            raise GetSsmParamsError(f"writing {dest}, {e}") from e
        finally:
            body.close()
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)

        return written

    def _copy_body(self, transfer: _Transfer, body: Any, fp: Any, *, where: str) -> int:
        written = 0
        while True:
            try:
                chunk = body.read(_CHUNK_SIZE)
            except ReadTimeoutError as e:
                raise FetchTimeoutError(f"Download canceled due to timeout, {where}: {e}") from e
            except Exception as e:
                if transfer.cancelled:
                    raise FetchTimeoutError(f"Download canceled due to timeout, {where}") from e
                if isinstance(e, BotoCoreError):
                    raise RemoteError(f"reading body of {where}, {e}") from e
                raise
            if transfer.cancelled:
                raise FetchTimeoutError(f"Download canceled due to timeout, {where}")
            if not chunk:
                return written
            fp.write(chunk)
            written += len(chunk)
