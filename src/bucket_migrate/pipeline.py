# src/bucket_migrate/pipeline.py
"""Core orchestration logic for the bucket-migrate pipeline."""

import asyncio
import logging
from enum import Enum
from typing import Iterable, Iterator, List, Optional, Tuple

from bucket_migrate.config import AppConfig, Config, Profiles
from bucket_migrate.keys import KeySource
from bucket_migrate.reporter import MigrationSummary, Reporter
from bucket_migrate.storage import ObjectStore, StoreFactory, connect_store
from bucket_migrate.worker import transfer_worker

logger: logging.Logger = logging.getLogger(__name__)


def _read_batch(
    keys: Iterator[str], size: int
) -> Tuple[List[str], Optional[Exception]]:
    """
    Reads up to `size` keys.

    A read error ends the batch early; the keys read before it are
    returned together with the error.
    """
    batch: List[str] = []
    try:
        for key in keys:
            batch.append(key)
            if len(batch) >= size:
                break
    except (OSError, UnicodeDecodeError) as e:
        return batch, e
    return batch, None


class DispatcherState(Enum):
    """Lifecycle of a pipeline run."""

    IDLE = "idle"
    RUNNING = "running"
    DRAINING = "draining"
    DONE = "done"


class MigrationPipeline:
    """Orchestrates the migration from start to finish."""

    def __init__(
        self,
        config: Config,
        store_factory: Optional[StoreFactory] = None,
        reporter: Optional[Reporter] = None,
    ) -> None:
        """
        Initializes the pipeline with the given configuration.

        Args:
            config (Config): The application configuration.
            store_factory (StoreFactory, optional): Opens an object store for a
                profile. Defaults to aiobotocore-backed S3 stores.
            reporter (Reporter, optional): Receives the per-key outcomes.
        """
        self._config: Config = config
        self._store_factory: StoreFactory = store_factory or connect_store
        self._reporter: Reporter = reporter or Reporter(
            show_progress=config.app.show_progress
        )
        self._state: DispatcherState = DispatcherState.IDLE

    @property
    def state(self) -> DispatcherState:
        return self._state

    async def run(self) -> MigrationSummary:
        """
        Executes the full migration.

        Opens the key file and both stores, then streams keys through a
        bounded queue into a fixed pool of workers until every key has
        been handled.

        Returns:
            MigrationSummary: Counts of copied, skipped and failed keys.

        Raises:
            KeyFileError: If the key file cannot be opened. No key is processed.
        """
        app: AppConfig = self._config.app
        profiles: Profiles = self._config.profiles
        logger.info(
            f"Starting migration of '{app.keys_file}' in bucket '{app.bucket}' "
            f"with {app.workers} workers."
        )

        with KeySource(app.keys_file) as keys:
            async with (
                self._store_factory(
                    profiles.old_profile,
                    path_style=True,
                    max_connections=app.workers,
                ) as source,
                self._store_factory(
                    profiles.new_profile,
                    max_connections=app.workers,
                ) as destination,
            ):
                with self._reporter:
                    await self._run_transfers(keys, source, destination)

        return self._reporter.complete()

    async def _feed(
        self,
        keys: Iterable[str],
        key_queue: "asyncio.Queue[Optional[str]]",
        num_workers: int,
    ) -> None:
        """
        Pushes every key into the queue, then one sentinel per worker.

        The file is read in batches of `num_workers` keys in a worker
        thread, so a slow read never blocks the event loop.

        Args:
            keys (Iterable[str]): The keys to migrate.
            key_queue (asyncio.Queue[Optional[str]]): The bounded key queue.
            num_workers (int): Number of workers to signal.
        """
        key_iter: Iterator[str] = iter(keys)
        submitted: int = 0
        try:
            while True:
                batch: List[str]
                error: Optional[Exception]
                batch, error = await asyncio.to_thread(
                    _read_batch, key_iter, num_workers
                )
                for key in batch:
                    await key_queue.put(key)
                    submitted += 1
                if error is not None:
                    logger.error(f"Error reading file: {error}")
                    break
                if len(batch) < num_workers:
                    break
        finally:
            self._state = DispatcherState.DRAINING
            logger.debug(f"Submitted {submitted} keys. Draining workers.")
            # Signal workers to exit
            for _ in range(num_workers):
                await key_queue.put(None)

    async def _run_transfers(
        self,
        keys: Iterable[str],
        source: ObjectStore,
        destination: ObjectStore,
    ) -> None:
        """
        Manages the concurrent transfer of objects using a worker pool.

        Args:
            keys (Iterable[str]): The keys to migrate.
            source (ObjectStore): The store to read from.
            destination (ObjectStore): The store to write to.
        """
        app: AppConfig = self._config.app
        key_queue: asyncio.Queue[Optional[str]] = asyncio.Queue(maxsize=app.workers)

        worker_tasks: List[asyncio.Task[None]] = [
            asyncio.create_task(
                transfer_worker(
                    worker_id=i,
                    bucket=app.bucket,
                    check_existence=app.check_existence,
                    key_queue=key_queue,
                    source=source,
                    destination=destination,
                    reporter=self._reporter,
                )
            )
            for i in range(app.workers)
        ]
        self._state = DispatcherState.RUNNING

        producer_task: asyncio.Task[None] = asyncio.create_task(
            self._feed(keys, key_queue, app.workers)
        )

        await asyncio.gather(producer_task, *worker_tasks)
        self._state = DispatcherState.DONE
        logger.debug("All workers have exited.")
