# src/bucket_migrate/worker.py
"""
Defines the per-object copy and the worker loop that drives it.

A worker task continuously pulls object keys from the bounded key queue
and migrates each one from the source store to the destination store,
verifying the result with the stores' ETags.
"""

import asyncio
import logging
import time
from contextlib import contextmanager
from typing import Iterator, Optional, Type

from bucket_migrate.exceptions import (
    FetchError,
    IntegrityError,
    ObjectConnectionError,
    ObjectCopyError,
    ProbeError,
    StorageConnectionError,
    StorageError,
    UploadError,
)
from bucket_migrate.reporter import CopyOutcome, Reporter
from bucket_migrate.storage import ObjectStore, StoredObject

logger: logging.Logger = logging.getLogger(__name__)


def resolve_content_type(key: str, source_content_type: Optional[str]) -> Optional[str]:
    """
    Chooses the Content-Type to write at the destination.

    JPEG and PNG keys are typed by their (case-sensitive) suffix; any other
    key keeps the source object's Content-Type.

    Args:
        key (str): The object key.
        source_content_type (str, optional): Content-Type of the source object.

    Returns:
        Optional[str]: The Content-Type for the upload.
    """
    if key.endswith(".jpg") or key.endswith(".jpeg"):
        return "image/jpeg"
    if key.endswith(".png"):
        return "image/png"
    return source_content_type


@contextmanager
def _object_errors(key: str, error_cls: Type[ObjectCopyError]) -> Iterator[None]:
    """Attach the key to a storage failure."""
    try:
        yield
    except StorageConnectionError as e:
        raise ObjectConnectionError(key, str(e)) from e
    except StorageError as e:
        raise error_cls(key, str(e)) from e


async def _exists_at_destination(
    bucket: str, key: str, destination: ObjectStore
) -> bool:
    try:
        with _object_errors(key, ProbeError):
            return await destination.head(bucket, key)
    except (ProbeError, ObjectConnectionError) as e:
        logger.warning(f"{e}. Proceeding with copy.")
        return False


async def copy_object(
    bucket: str,
    key: str,
    check_existence: bool,
    source: ObjectStore,
    destination: ObjectStore,
) -> CopyOutcome:
    """
    Copies one object from the source store to the destination store.

    Args:
        bucket (str): Bucket name on both stores.
        key (str): The object key.
        check_existence (bool): Skip the copy if the key exists at the destination.
        source (ObjectStore): The store to read from.
        destination (ObjectStore): The store to write to.

    Returns:
        CopyOutcome: A copied or skipped outcome.

    Raises:
        ObjectConnectionError: If either store cannot be reached.
        FetchError: If the source object cannot be read.
        UploadError: If the destination write fails.
        IntegrityError: If the destination ETag differs from the source's.
    """
    if check_existence and await _exists_at_destination(bucket, key, destination):
        return CopyOutcome.skipped(key)

    start_time: float = time.monotonic()

    with _object_errors(key, FetchError):
        source_object: StoredObject = await source.get(bucket, key)

    content_type: Optional[str] = resolve_content_type(key, source_object.content_type)

    with _object_errors(key, UploadError):
        destination_etag: Optional[str] = await destination.put(
            bucket, key, source_object.body, content_type
        )

    if source_object.etag != destination_etag:
        raise IntegrityError(key, source_object.etag, destination_etag)

    elapsed_ms: int = int((time.monotonic() - start_time) * 1000)
    return CopyOutcome.copied(key, elapsed_ms, content_type)


async def transfer_worker(
    worker_id: int,
    bucket: str,
    check_existence: bool,
    key_queue: "asyncio.Queue[Optional[str]]",
    source: ObjectStore,
    destination: ObjectStore,
    reporter: Reporter,
) -> None:
    """
    A long-lived worker task that processes keys from a queue.

    The loop ends when it receives the `None` sentinel. Failures are
    reported per key and never stop the worker.

    Args:
        worker_id (int): A unique identifier for this worker.
        bucket (str): Bucket name on both stores.
        check_existence (bool): Skip keys that already exist at the destination.
        key_queue (asyncio.Queue[Optional[str]]): The queue to pull keys from.
        source (ObjectStore): The store to read from.
        destination (ObjectStore): The store to write to.
        reporter (Reporter): Receives one outcome per key.
    """
    logger.debug(f"Worker {worker_id} started.")
    while True:
        key: Optional[str] = await key_queue.get()
        try:
            if key is None:
                logger.debug(f"Worker {worker_id} shutting down.")
                break

            outcome: CopyOutcome
            try:
                outcome = await copy_object(
                    bucket, key, check_existence, source, destination
                )
            except ObjectCopyError as e:
                outcome = CopyOutcome.failed(key, e)
            except Exception as e:
                logger.exception(f"An unexpected error occurred migrating '{key}'")
                outcome = CopyOutcome.failed(
                    key, ObjectCopyError(key, f"{type(e).__name__}: {e}")
                )
            reporter.report(outcome)
        finally:
            key_queue.task_done()
