# src/bucket_migrate/storage.py
"""
Object-storage access for the migration.

The pipeline only needs three operations per store: an existence probe, a
full-body read and a write. `ObjectStore` describes that capability and
`S3ObjectStore` implements it on top of an aiobotocore S3 client.
"""

import logging
from contextlib import AsyncExitStack, asynccontextmanager, contextmanager
from dataclasses import dataclass
from typing import (
    TYPE_CHECKING,
    Any,
    AsyncContextManager,
    AsyncIterator,
    Dict,
    Iterator,
    Optional,
    Protocol,
)

from aiobotocore.session import AioSession, get_session
from botocore.config import Config as BotoConfig
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    NoCredentialsError,
    PartialCredentialsError,
)

from bucket_migrate.config import Profile
from bucket_migrate.exceptions import StorageConnectionError, StorageError

if TYPE_CHECKING:
    from aiobotocore.response import StreamingBody
    from types_aiobotocore_s3.client import S3Client
    from types_aiobotocore_s3.type_defs import (
        GetObjectOutputTypeDef,
        PutObjectOutputTypeDef,
    )

logger: logging.Logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})
_CONNECTION_ERRORS = (
    EndpointConnectionError,
    ConnectTimeoutError,
    ConnectionClosedError,
    NoCredentialsError,
    PartialCredentialsError,
)


@dataclass(frozen=True)
class StoredObject:
    """
    A fully buffered object read from a store.

    Attributes:
        body (bytes): The object content.
        content_type (str, optional): The stored Content-Type, if any.
        etag (str, optional): The entity tag assigned by the store.
    """

    body: bytes
    content_type: Optional[str]
    etag: Optional[str]


class ObjectStore(Protocol):
    """The storage operations a migration needs from one account."""

    async def head(self, bucket: str, key: str) -> bool:
        """Return True if the object exists, False if it does not."""
        ...

    async def get(self, bucket: str, key: str) -> StoredObject:
        """Read the whole object."""
        ...

    async def put(
        self, bucket: str, key: str, body: bytes, content_type: Optional[str]
    ) -> Optional[str]:
        """Write the object and return the ETag assigned to it."""
        ...


class StoreFactory(Protocol):
    """Opens an `ObjectStore` for a profile as an async context manager."""

    def __call__(
        self,
        profile: Profile,
        *,
        path_style: bool = False,
        max_connections: int = 10,
    ) -> AsyncContextManager[ObjectStore]: ...


@contextmanager
def _storage_errors(operation: str, bucket: str, key: str) -> Iterator[None]:
    """Translate botocore failures into storage errors."""
    try:
        yield
    except _CONNECTION_ERRORS as e:
        raise StorageConnectionError(
            f"{operation} s3://{bucket}/{key} failed to connect: {e}"
        ) from e
    except (ClientError, BotoCoreError) as e:
        raise StorageError(f"{operation} s3://{bucket}/{key} failed: {e}") from e


def _is_not_found(error: ClientError) -> bool:
    code: str = str(error.response.get("Error", {}).get("Code", ""))
    return code in _NOT_FOUND_CODES


class S3ObjectStore:
    """An `ObjectStore` backed by an aiobotocore S3 client."""

    def __init__(self, client: "S3Client") -> None:
        self._client: "S3Client" = client

    async def head(self, bucket: str, key: str) -> bool:
        with _storage_errors("HEAD", bucket, key):
            try:
                await self._client.head_object(Bucket=bucket, Key=key)
            except ClientError as e:
                if _is_not_found(e):
                    return False
                raise
        return True

    async def get(self, bucket: str, key: str) -> StoredObject:
        with _storage_errors("GET", bucket, key):
            response: "GetObjectOutputTypeDef" = await self._client.get_object(
                Bucket=bucket, Key=key
            )
            stream: "StreamingBody" = response["Body"]
            # The whole object is buffered so the PUT can send Content-Length.
            body: bytes = await stream.read()
        return StoredObject(
            body=body,
            content_type=response.get("ContentType"),
            etag=response.get("ETag"),
        )

    async def put(
        self, bucket: str, key: str, body: bytes, content_type: Optional[str]
    ) -> Optional[str]:
        params: Dict[str, Any] = {
            "Bucket": bucket,
            "Key": key,
            "Body": body,
            "ContentLength": len(body),
        }
        if content_type:
            params["ContentType"] = content_type
        with _storage_errors("PUT", bucket, key):
            response: "PutObjectOutputTypeDef" = await self._client.put_object(
                **params
            )
        return response.get("ETag")


class UnavailableObjectStore:
    """
    An `ObjectStore` for a profile whose client could not be created.

    Every operation fails with a `StorageConnectionError`, so each key
    reports the failure on its own.
    """

    def __init__(self, reason: str) -> None:
        self._reason: str = reason

    def _fail(self, operation: str, bucket: str, key: str) -> StorageConnectionError:
        return StorageConnectionError(
            f"{operation} s3://{bucket}/{key} failed to connect: {self._reason}"
        )

    async def head(self, bucket: str, key: str) -> bool:
        raise self._fail("HEAD", bucket, key)

    async def get(self, bucket: str, key: str) -> StoredObject:
        raise self._fail("GET", bucket, key)

    async def put(
        self, bucket: str, key: str, body: bytes, content_type: Optional[str]
    ) -> Optional[str]:
        raise self._fail("PUT", bucket, key)


@asynccontextmanager
async def connect_store(
    profile: Profile,
    *,
    path_style: bool = False,
    max_connections: int = 10,
    session: Optional[AioSession] = None,
) -> AsyncIterator[ObjectStore]:
    """
    Opens an S3 client for a profile and wraps it in an `S3ObjectStore`.

    Client-side retries are disabled; a failed request fails its key. If
    the client cannot be created (a malformed endpoint or region), the
    error is logged and an `UnavailableObjectStore` is yielded instead.

    Args:
        profile (Profile): The account to connect to.
        path_style (bool): Use path-style bucket addressing.
        max_connections (int): Size of the HTTP connection pool.
        session (AioSession, optional): Session to create the client from.

    Yields:
        ObjectStore: The connected store.
    """
    # Explicitly set signature_version and disable payload signing. This is
    # the robust configuration for non-AWS S3 providers that require
    # Content-Length and support SigV4.
    s3_options: Dict[str, Any] = {"payload_signing_enabled": False}
    if path_style:
        s3_options["addressing_style"] = "path"
    boto_config: BotoConfig = BotoConfig(
        signature_version="s3v4",
        max_pool_connections=max_connections,
        retries={"total_max_attempts": 1},
        s3=s3_options,
    )
    aio_session: AioSession = session or get_session()
    target: str = (
        f"{profile.endpoint or 'default endpoint'} "
        f"({profile.region or 'default region'})"
    )
    logger.debug(f"Connecting to {target}.")
    async with AsyncExitStack() as stack:
        store: ObjectStore
        try:
            client: "S3Client" = await stack.enter_async_context(
                aio_session.create_client(
                    "s3", **profile.as_boto_dict(), config=boto_config
                )
            )
        except (ValueError, BotoCoreError) as e:
            logger.error(f"Could not create an S3 client for {target}: {e}")
            store = UnavailableObjectStore(str(e))
        else:
            store = S3ObjectStore(client)
        yield store
