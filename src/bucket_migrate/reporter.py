# src/bucket_migrate/reporter.py
"""Per-object outcome reporting and the end-of-run summary."""

import logging
from dataclasses import dataclass
from enum import Enum
from types import TracebackType
from typing import Optional, Type

from rich.progress import (
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from bucket_migrate.exceptions import ObjectCopyError

logger: logging.Logger = logging.getLogger(__name__)

# Run summary and final line; the CLI keeps this logger at INFO
SUMMARY_LOGGER_NAME: str = f"{__name__}.summary"
summary_logger: logging.Logger = logging.getLogger(SUMMARY_LOGGER_NAME)


class OutcomeStatus(Enum):
    """The result of migrating one key."""

    COPIED = "copied"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class CopyOutcome:
    """
    The result of migrating a single object.

    Attributes:
        key (str): The object key.
        status (OutcomeStatus): Whether the key was copied, skipped or failed.
        elapsed_ms (int, optional): Transfer time for copied keys.
        content_type (str, optional): Content-Type written to the destination.
        error (ObjectCopyError, optional): The failure, for failed keys.
    """

    key: str
    status: OutcomeStatus
    elapsed_ms: Optional[int] = None
    content_type: Optional[str] = None
    error: Optional[ObjectCopyError] = None

    @classmethod
    def copied(
        cls, key: str, elapsed_ms: int, content_type: Optional[str]
    ) -> "CopyOutcome":
        return cls(
            key=key,
            status=OutcomeStatus.COPIED,
            elapsed_ms=elapsed_ms,
            content_type=content_type,
        )

    @classmethod
    def skipped(cls, key: str) -> "CopyOutcome":
        return cls(key=key, status=OutcomeStatus.SKIPPED)

    @classmethod
    def failed(cls, key: str, error: ObjectCopyError) -> "CopyOutcome":
        return cls(key=key, status=OutcomeStatus.FAILED, error=error)


@dataclass
class MigrationSummary:
    """Running totals of a migration."""

    copied: int = 0
    skipped: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.copied + self.skipped + self.failed

    @property
    def has_failures(self) -> bool:
        return self.failed > 0


class Reporter:
    """
    Emits one line per completed key and a final completion message.

    Can be used as a context manager to show a transient progress display
    while the migration runs.
    """

    def __init__(self, show_progress: bool = False) -> None:
        """
        Args:
            show_progress (bool): Render a rich progress display.
        """
        self.summary: MigrationSummary = MigrationSummary()
        self._progress: Optional[Progress] = None
        self._task_id: Optional[TaskID] = None
        if show_progress:
            self._progress = Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                TextColumn("[bold cyan]{task.completed} processed"),
                TextColumn("([red]{task.fields[failed]} failed)"),
                TimeElapsedColumn(),
                transient=True,
            )

    def __enter__(self) -> "Reporter":
        if self._progress is not None:
            self._progress.start()
            self._task_id = self._progress.add_task("Migrating...", failed=0)
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        if self._progress is not None:
            self._progress.stop()
            self._task_id = None

    def report(self, outcome: CopyOutcome) -> None:
        """
        Logs an outcome and adds it to the summary.

        Args:
            outcome (CopyOutcome): The result of one key.
        """
        if outcome.status is OutcomeStatus.COPIED:
            self.summary.copied += 1
            logger.info(
                f"[{outcome.key}] Successfully copied object from old profile "
                f"to new profile in: {outcome.elapsed_ms} ms."
            )
        elif outcome.status is OutcomeStatus.SKIPPED:
            self.summary.skipped += 1
            logger.info(
                f"[{outcome.key}] already exists in the destination bucket. "
                "Skipping copy."
            )
        else:
            self.summary.failed += 1
            detail: str = str(outcome.error) if outcome.error else outcome.key
            logger.error(f"Error processing line: {detail}")

        if self._progress is not None and self._task_id is not None:
            self._progress.update(
                self._task_id, advance=1, failed=self.summary.failed
            )

    def complete(self) -> MigrationSummary:
        """Logs the run summary and the final completion line."""
        summary_logger.info(
            f"Copied: {self.summary.copied}, skipped: {self.summary.skipped}, "
            f"failed: {self.summary.failed}."
        )
        summary_logger.info("Processing complete!")
        return self.summary
