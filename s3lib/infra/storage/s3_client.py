"""S3-compatible storage client implementation.

This module provides the boto3-backed client that works with AWS S3,
MinIO, LocalStack and other S3-compatible object storage services.

Dependencies:
    - boto3
    - botocore
"""

from __future__ import annotations

import io
import logging
import time
from contextlib import contextmanager
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Iterator
from urllib.parse import quote, urlsplit

import boto3
from boto3.s3.transfer import TransferConfig
from botocore.config import Config as BotoConfig
from botocore.exceptions import ClientError
from botocore.utils import check_dns_name

from s3lib.common.config import Config, get_config
from s3lib.infra.observability.metrics import observe
from s3lib.infra.storage.client import (
    ConnectionSetupError,
    Duration,
    FileInfo,
    InvalidArgumentError,
    InvalidBucketError,
    InvalidKeyError,
    ObjectNotFoundError,
    PresignedPost,
    PresignedURL,
    PresignMode,
    ProgressCallback,
    StorageError,
    TransportError,
    UploadOptions,
)

if TYPE_CHECKING:
    from boto3.session import Session

logger = logging.getLogger(__name__)

NO_SUCH_BUCKET = "NoSuchBucket"
# HEAD responses carry no body, so a missing key surfaces as a bare 404
NOT_FOUND_CODES = frozenset({"404", "NotFound", "NoSuchKey"})
DEFAULT_STORAGE_CLASS = "STANDARD"


def _error_code(exc: BaseException | None) -> str | None:
    """Return the S3 error code from ``exc`` or the first ClientError it chains."""
    while exc is not None:
        if isinstance(exc, ClientError):
            return str(exc.response.get("Error", {}).get("Code") or "") or None
        exc = exc.__cause__ or exc.__context__
    return None


def _translate_error(
    exc: Exception,
    action: str,
    bucket: str,
    key: str | None = None,
    *,
    map_not_found: bool = False,
) -> StorageError:
    code = _error_code(exc)
    if code == NO_SUCH_BUCKET:
        return InvalidBucketError(
            f"bucket does not exist: {bucket}", bucket=bucket, key=key
        )
    if map_not_found and code in NOT_FOUND_CODES:
        return ObjectNotFoundError(
            f"file not found: {bucket}/{key}", bucket=bucket, key=key
        )
    return TransportError(f"Failed to {action}: {exc}", bucket=bucket, key=key)


def _require_bucket(bucket: str) -> None:
    if not bucket:
        raise InvalidBucketError("invalid bucket name: bucket is required")


def _require_key(bucket: str, key: str) -> None:
    if not key:
        raise InvalidKeyError("invalid key: key is required", bucket=bucket)


def _as_seconds(expires_in: Duration) -> int:
    if isinstance(expires_in, timedelta):
        seconds = int(expires_in.total_seconds())
    elif isinstance(expires_in, int) and not isinstance(expires_in, bool):
        seconds = expires_in
    else:
        raise InvalidArgumentError(
            f"expires_in must be seconds or a timedelta, got {type(expires_in).__name__}"
        )
    if seconds <= 0:
        raise InvalidArgumentError("expires_in must be positive")
    return seconds


class S3StorageClient:
    """S3-compatible object storage client.

    All state is set in ``__init__`` and only dropped by ``close``, so one
    instance may be shared between threads. Operations are synchronous;
    retries and request signing are left to boto3.

    With ``Config.debug`` set, each operation emits a trace at DEBUG level
    on the ``s3lib`` logger. Those records are only visible once
    ``setup_logging(debug=True)`` has run or the application has attached
    its own handler at DEBUG.
    """

    def __init__(self, config: Config) -> None:
        """Validate ``config`` and build the boto3 session and client.

        Raises:
            InvalidConfigError: If region, access key or secret key is empty.
            ConnectionSetupError: If boto3 rejects the session or client setup.
        """
        config.validate()
        self._config = config
        self._debug = config.debug
        try:
            self._session: Session | None = self._build_session(config)
            self._client: Any = self._build_client(self._session, config)
        except Exception as exc:
            raise ConnectionSetupError(f"failed to create session: {exc}") from exc
        self._transfer_config: TransferConfig | None = TransferConfig()

    @classmethod
    def from_environment(cls) -> "S3StorageClient":
        return cls(get_config())

    @staticmethod
    def _build_session(config: Config) -> "Session":
        """Create a boto3 session bound to static credentials."""
        return boto3.session.Session(
            aws_access_key_id=config.access_key,
            aws_secret_access_key=config.secret_key,
            region_name=config.region,
        )

    @staticmethod
    def _build_client(session: "Session", config: Config) -> Any:
        """Create the low-level S3 client from a session and config."""
        options: dict[str, Any] = {}
        if config.timeout_seconds is not None:
            options["connect_timeout"] = config.timeout_seconds
            options["read_timeout"] = config.timeout_seconds
        if config.endpoint:
            # S3-compatible endpoints are always addressed path-style
            options["s3"] = {"addressing_style": "path"}

        return session.client(
            "s3",
            endpoint_url=config.endpoint or None,
            use_ssl=bool(config.use_ssl),
            config=BotoConfig(**options),
        )

    @property
    def closed(self) -> bool:
        return self._client is None

    def _require_client(self) -> Any:
        if self._client is None:
            raise ConnectionSetupError("client is closed")
        return self._client

    def _trace(self, message: str, **fields: Any) -> None:
        if self._debug:
            logger.debug(
                "%s %s",
                message,
                " ".join(f"{k}={v}" for k, v in fields.items()),
                extra={"extra": dict(fields, event=message)},
            )

    @contextmanager
    def _operation(self, name: str, bucket: str, key: str | None = None) -> Iterator[None]:
        start = time.perf_counter()
        outcome = "ok"
        try:
            with observe(name):
                yield
        except Exception as exc:
            outcome = type(exc).__name__
            raise
        finally:
            self._trace(
                "s3_operation",
                operation=name,
                bucket=bucket or "-",
                key=key or "-",
                outcome=outcome,
                duration_ms=round((time.perf_counter() - start) * 1000, 3),
            )

    def _object_location(self, client: Any, bucket: str, key: str) -> str:
        endpoint = str(client.meta.endpoint_url).rstrip("/")
        quoted_key = quote(key, safe="/~")
        parsed = urlsplit(endpoint)
        # boto3 itself falls back to path-style for these bucket names
        path_style = (
            bool(self._config.endpoint)
            or not check_dns_name(bucket)
            or ("." in bucket and parsed.scheme == "https")
        )
        if path_style:
            return f"{endpoint}/{bucket}/{quoted_key}"
        return f"{parsed.scheme}://{bucket}.{parsed.netloc}/{quoted_key}"

    def _head(self, client: Any, bucket: str, key: str, action: str) -> dict[str, Any]:
        try:
            return client.head_object(Bucket=bucket, Key=key)
        except Exception as exc:
            raise _translate_error(
                exc, action, bucket, key, map_not_found=True
            ) from exc

    def upload_file(
        self,
        bucket: str,
        key: str,
        data: bytes,
        options: UploadOptions | None = None,
        *,
        callback: ProgressCallback | None = None,
    ) -> str:
        """Upload ``data`` through the managed transfer and return its location."""
        with self._operation("upload", bucket, key):
            _require_bucket(bucket)
            _require_key(bucket, key)
            client = self._require_client()
            extra_args = options.to_extra_args() if options else {}

            try:
                client.upload_fileobj(
                    io.BytesIO(data),
                    bucket,
                    key,
                    ExtraArgs=extra_args or None,
                    Callback=callback,
                    Config=self._transfer_config,
                )
            except Exception as exc:
                raise _translate_error(exc, "upload file", bucket, key) from exc

            return self._object_location(client, bucket, key)

    def download_file(
        self,
        bucket: str,
        key: str,
        *,
        callback: ProgressCallback | None = None,
    ) -> bytes:
        """Probe the object, then download it into memory."""
        with self._operation("download", bucket, key):
            _require_bucket(bucket)
            _require_key(bucket, key)
            client = self._require_client()

            self._head(client, bucket, key, "get object info")

            buffer = io.BytesIO()
            try:
                client.download_fileobj(
                    bucket,
                    key,
                    buffer,
                    Callback=callback,
                    Config=self._transfer_config,
                )
            except Exception as exc:
                raise _translate_error(
                    exc, "download file", bucket, key, map_not_found=True
                ) from exc

            return buffer.getvalue()

    def iter_files(self, bucket: str, prefix: str = "") -> Iterator[FileInfo]:
        """Yield objects under ``prefix`` page by page, in service order."""
        _require_bucket(bucket)
        client = self._require_client()
        params: dict[str, Any] = {"Bucket": bucket}
        if prefix:
            params["Prefix"] = prefix
        return self._iter_pages(client, params)

    def _iter_pages(self, client: Any, params: dict[str, Any]) -> Iterator[FileInfo]:
        bucket = params["Bucket"]
        try:
            paginator = client.get_paginator("list_objects_v2")
            for page in paginator.paginate(**params):
                for obj in page.get("Contents", []):
                    yield FileInfo(
                        key=obj.get("Key", ""),
                        size=int(obj.get("Size") or 0),
                        last_modified=obj.get("LastModified"),
                        etag=obj.get("ETag", ""),
                        storage_class=obj.get("StorageClass", ""),
                    )
        except Exception as exc:
            raise _translate_error(exc, "list objects", bucket) from exc

    def list_files(self, bucket: str, prefix: str = "") -> list[FileInfo]:
        """Return every object under ``prefix``."""
        with self._operation("list", bucket):
            return list(self.iter_files(bucket, prefix))

    def delete_file(self, bucket: str, key: str) -> None:
        """Delete an object; a missing key is whatever the service says it is."""
        with self._operation("delete", bucket, key):
            _require_bucket(bucket)
            _require_key(bucket, key)
            client = self._require_client()
            try:
                client.delete_object(Bucket=bucket, Key=key)
            except Exception as exc:
                raise _translate_error(exc, "delete file", bucket, key) from exc

    def get_file_info(self, bucket: str, key: str) -> FileInfo:
        """Return object metadata without downloading the content."""
        with self._operation("info", bucket, key):
            _require_bucket(bucket)
            _require_key(bucket, key)
            client = self._require_client()

            response = self._head(client, bucket, key, "get file info")
            size = response.get("ContentLength")
            return FileInfo(
                key=key,
                size=int(size) if size is not None else 0,
                last_modified=response.get("LastModified"),
                etag=response.get("ETag", ""),
                # S3 omits the header for STANDARD objects
                storage_class=response.get("StorageClass") or DEFAULT_STORAGE_CLASS,
            )

    def presign_url(
        self,
        bucket: str,
        key: str,
        expires_in: Duration,
        mode: PresignMode = PresignMode.DOWNLOAD,
    ) -> PresignedURL:
        """Sign a PUT or GET URL locally; no request is sent."""
        with self._operation("presign_url", bucket, key):
            _require_bucket(bucket)
            _require_key(bucket, key)
            seconds = _as_seconds(expires_in)
            try:
                mode = PresignMode(mode)
            except ValueError as exc:
                raise InvalidArgumentError(f"unknown presign mode: {mode!r}") from exc
            client = self._require_client()

            try:
                url = client.generate_presigned_url(
                    mode.client_method,
                    Params={"Bucket": bucket, "Key": key},
                    ExpiresIn=seconds,
                )
            except Exception as exc:
                raise _translate_error(exc, "generate presigned URL", bucket, key) from exc

            if not url:
                raise TransportError(
                    "Generated presigned URL is empty", bucket=bucket, key=key
                )
            return PresignedURL(url=str(url), method=mode.http_method, expires_in=seconds)

    def presign_post(
        self,
        bucket: str,
        key: str,
        expires_in: Duration,
        max_size_bytes: int,
    ) -> PresignedPost:
        """Sign a browser POST policy capped at ``max_size_bytes``."""
        with self._operation("presign_post", bucket, key):
            _require_bucket(bucket)
            _require_key(bucket, key)
            seconds = _as_seconds(expires_in)
            if (
                not isinstance(max_size_bytes, int)
                or isinstance(max_size_bytes, bool)
                or max_size_bytes <= 0
            ):
                raise InvalidArgumentError("max_size_bytes must be a positive integer")
            client = self._require_client()

            try:
                response = client.generate_presigned_post(
                    Bucket=bucket,
                    Key=key,
                    Conditions=[["content-length-range", 0, max_size_bytes]],
                    ExpiresIn=seconds,
                )
            except Exception as exc:
                raise _translate_error(exc, "generate presigned POST", bucket, key) from exc

            url = response.get("url") if response else None
            if not url:
                raise TransportError(
                    "Generated presigned POST is empty", bucket=bucket, key=key
                )
            fields = {str(k): str(v) for k, v in (response.get("fields") or {}).items()}
            return PresignedPost(url=str(url), fields=fields, expires_in=seconds)

    def close(self) -> None:
        """Drop the session, client and transfer config. Idempotent."""
        self._session = None
        self._client = None
        self._transfer_config = None
        if self._debug:
            logger.debug("S3 client resources cleaned up")

    def __enter__(self) -> "S3StorageClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def close_client(client: S3StorageClient | None) -> None:
    """Close ``client`` if there is one."""
    if client is None:
        return
    client.close()
