# src/bucket_migrate/exceptions.py
"""Custom exceptions for the bucket-migrate application."""

from typing import Optional


class MigrateError(Exception):
    """Base exception for all application-specific errors."""

    pass


class ConfigError(MigrateError):
    """Raised when the profiles file cannot be read or is malformed."""

    pass


class KeyFileError(MigrateError):
    """Raised when the key-list file cannot be opened."""

    pass


class StorageError(MigrateError):
    """Raised by an object store when an operation fails."""

    pass


class StorageConnectionError(StorageError):
    """Raised by an object store when the service cannot be reached."""

    pass


class ObjectCopyError(MigrateError):
    """
    Base exception for failures isolated to a single object key.

    Attributes:
        key (str): The object key being migrated.
        detail (str): A human-readable description of the failure.
    """

    def __init__(self, key: str, detail: str) -> None:
        super().__init__(f"[{key}] {detail}")
        self.key: str = key
        self.detail: str = detail


class ObjectConnectionError(ObjectCopyError):
    """Raised when a storage connection fails while handling a key."""

    pass


class ProbeError(ObjectCopyError):
    """Raised when the destination existence probe fails unexpectedly."""

    pass


class FetchError(ObjectCopyError):
    """Raised when an object cannot be retrieved from the source."""

    pass


class UploadError(ObjectCopyError):
    """Raised when an object cannot be written to the destination."""

    pass


class IntegrityError(ObjectCopyError):
    """Raised when the source and destination ETags differ after a copy."""

    def __init__(
        self,
        key: str,
        source_etag: Optional[str],
        destination_etag: Optional[str],
    ) -> None:
        super().__init__(
            key, f"ETags don't match after copy: {source_etag} != {destination_etag}"
        )
        self.source_etag: Optional[str] = source_etag
        self.destination_etag: Optional[str] = destination_etag
