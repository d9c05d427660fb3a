"""Storage client protocol, error taxonomy and data types.

This module defines the interface the S3 wrapper exposes and the value objects
it returns. The error taxonomy is re-exported from ``s3lib.common.errors``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Mapping, Protocol

from s3lib.common.errors import (
    ConnectionSetupError,
    InvalidArgumentError,
    InvalidBucketError,
    InvalidConfigError,
    InvalidKeyError,
    ObjectNotFoundError,
    StorageError,
    TransportError,
)


class PresignMode(str, enum.Enum):
    """Operation a pre-signed URL grants."""

    UPLOAD = "upload"
    DOWNLOAD = "download"

    @property
    def client_method(self) -> str:
        return "put_object" if self is PresignMode.UPLOAD else "get_object"

    @property
    def http_method(self) -> str:
        return "PUT" if self is PresignMode.UPLOAD else "GET"


@dataclass(frozen=True, slots=True)
class UploadOptions:
    """Optional attributes applied to an uploaded object.

    Only populated fields end up on the request; empty strings and empty
    mappings are treated as unset.
    """

    content_type: str | None = None
    content_disposition: str | None = None
    cache_control: str | None = None
    metadata: Mapping[str, str] | None = None
    storage_class: str | None = None
    acl: str | None = None

    def to_extra_args(self) -> dict[str, Any]:
        """Return the boto3 ``ExtraArgs`` mapping for this option set."""
        extra: dict[str, Any] = {}
        if self.content_type:
            extra["ContentType"] = self.content_type
        if self.content_disposition:
            extra["ContentDisposition"] = self.content_disposition
        if self.cache_control:
            extra["CacheControl"] = self.cache_control
        if self.metadata:
            extra["Metadata"] = {str(k): str(v) for k, v in self.metadata.items()}
        if self.storage_class:
            extra["StorageClass"] = self.storage_class
        if self.acl:
            extra["ACL"] = self.acl
        return extra


@dataclass(frozen=True, slots=True)
class FileInfo:
    """Metadata of a stored object."""

    key: str
    size: int
    last_modified: datetime | None
    etag: str
    storage_class: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "size": self.size,
            "last_modified": (
                self.last_modified.isoformat() if self.last_modified else None
            ),
            "etag": self.etag,
            "storage_class": self.storage_class,
        }


@dataclass(frozen=True, slots=True)
class PresignedURL:
    """Time-limited URL for a single PUT or GET."""

    url: str
    method: str
    expires_in: int


@dataclass(frozen=True, slots=True)
class PresignedPost:
    """Time-limited browser POST target and the form fields to submit."""

    url: str
    fields: Mapping[str, str]
    expires_in: int


ProgressCallback = Callable[[int], None]
Duration = int | timedelta


class StorageClient(Protocol):
    """Protocol defining the operations of the storage wrapper.

    Every method validates its bucket and key arguments locally before
    touching the network.
    """

    def upload_file(
        self,
        bucket: str,
        key: str,
        data: bytes,
        options: UploadOptions | None = None,
        *,
        callback: ProgressCallback | None = None,
    ) -> str:
        """Upload ``data`` and return the object location.

        Raises:
            InvalidBucketError: Empty bucket or bucket does not exist.
            InvalidKeyError: Empty key.
            TransportError: Any other failure.
        """
        ...

    def download_file(
        self,
        bucket: str,
        key: str,
        *,
        callback: ProgressCallback | None = None,
    ) -> bytes:
        """Return the full content of an object.

        Raises:
            InvalidBucketError: Empty bucket or bucket does not exist.
            InvalidKeyError: Empty key.
            ObjectNotFoundError: The object does not exist.
            TransportError: Any other failure.
        """
        ...

    def list_files(self, bucket: str, prefix: str = "") -> list[FileInfo]:
        """List every object under ``prefix`` in service order."""
        ...

    def delete_file(self, bucket: str, key: str) -> None:
        """Delete an object."""
        ...

    def get_file_info(self, bucket: str, key: str) -> FileInfo:
        """Return object metadata without downloading the content."""
        ...

    def presign_url(
        self,
        bucket: str,
        key: str,
        expires_in: Duration,
        mode: PresignMode = PresignMode.DOWNLOAD,
    ) -> PresignedURL:
        """Sign a PUT or GET URL locally."""
        ...

    def presign_post(
        self,
        bucket: str,
        key: str,
        expires_in: Duration,
        max_size_bytes: int,
    ) -> PresignedPost:
        """Sign a browser POST policy locally."""
        ...

    def close(self) -> None:
        """Release SDK references. Safe to call more than once."""
        ...


__all__ = [
    "ConnectionSetupError",
    "Duration",
    "FileInfo",
    "InvalidArgumentError",
    "InvalidBucketError",
    "InvalidConfigError",
    "InvalidKeyError",
    "ObjectNotFoundError",
    "PresignedPost",
    "PresignedURL",
    "PresignMode",
    "ProgressCallback",
    "StorageClient",
    "StorageError",
    "TransportError",
    "UploadOptions",
]
