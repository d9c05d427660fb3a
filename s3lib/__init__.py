"""Thin synchronous wrapper around boto3 for common S3 object operations.

Basic usage::

    from s3lib import Config, S3StorageClient

    config = Config(region="us-west-2", access_key="...", secret_key="...")
    with S3StorageClient(config) as client:
        location = client.upload_file("my-bucket", "hello.txt", b"Hello, World!")
        data = client.download_file("my-bucket", "hello.txt")
        files = client.list_files("my-bucket")
        client.delete_file("my-bucket", "hello.txt")
"""

from s3lib.common.config import Config, get_config
from s3lib.infra.storage import (
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
    S3StorageClient,
    StorageClient,
    StorageError,
    TransportError,
    UploadOptions,
    close_client,
)

__version__ = "0.1.0"

__all__ = [
    "Config",
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
    "get_config",
]
