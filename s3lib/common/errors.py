"""Error taxonomy shared by configuration and storage operations."""

from __future__ import annotations


class StorageError(RuntimeError):
    """Raised when object storage operations fail."""

    def __init__(
        self,
        message: str,
        *,
        bucket: str | None = None,
        key: str | None = None,
    ) -> None:
        super().__init__(message)
        self.bucket = bucket
        self.key = key


class InvalidConfigError(StorageError):
    """Raised when a required configuration field is missing."""


class InvalidBucketError(StorageError):
    """Raised for an empty bucket name or a bucket the service does not know."""


class InvalidKeyError(StorageError):
    """Raised for an empty object key."""


class ObjectNotFoundError(StorageError):
    """Raised when the service reports the object does not exist."""


class ConnectionSetupError(StorageError):
    """Raised when the SDK session or client cannot be built."""


class TransportError(StorageError):
    """Raised for any other SDK failure; the original error is the cause."""


class InvalidArgumentError(StorageError, ValueError):
    """Raised for non-positive presign durations or size limits."""
