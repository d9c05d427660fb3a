"""Object storage layer.

Exposes the error taxonomy, the value types returned by storage
operations, and the boto3-backed S3 client.
"""

from .client import (
    ConnectionSetupError,
    FileInfo,
    InvalidArgumentError,
    InvalidBucketError,
    InvalidConfigError,
    InvalidKeyError,
    ObjectNotFoundError,
    PresignedPost,
    PresignedURL,
    PresignMode,
    StorageClient,
    StorageError,
    TransportError,
    UploadOptions,
)
from .s3_client import S3StorageClient, close_client

__all__ = [
    "ConnectionSetupError",
    "FileInfo",
    "InvalidArgumentError",
    "InvalidBucketError",
    "InvalidConfigError",
    "InvalidKeyError",
    "ObjectNotFoundError",
    "PresignedPost",
    "PresignedURL",
    "PresignMode",
    "S3StorageClient",
    "StorageClient",
    "StorageError",
    "TransportError",
    "UploadOptions",
    "close_client",
]
