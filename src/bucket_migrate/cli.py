# src/bucket_migrate/cli.py
"""Command-line interface for the bucket-migrate tool."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Optional

import click
from dotenv import load_dotenv
from rich.logging import RichHandler

from bucket_migrate.config import AppConfig, Config, Profiles, load_profiles
from bucket_migrate.exceptions import MigrateError
from bucket_migrate.reporter import SUMMARY_LOGGER_NAME, MigrationSummary

logger: logging.Logger = logging.getLogger(__name__)


def setup_logging(level: str) -> None:
    """Configure rich-based logging for the application."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )
    # Silence noisy loggers
    for logger_name in ["botocore", "aiobotocore", "urllib3"]:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
    # The summary is shown even when a quieter level is chosen
    logging.getLogger(SUMMARY_LOGGER_NAME).setLevel(logging.INFO)


async def main_async(config: Config) -> MigrationSummary:
    """
    Asynchronously execute the migration pipeline.

    Args:
        config (Config): The application configuration.

    Returns:
        MigrationSummary: Counts of copied, skipped and failed keys.
    """
    # Lazily import to keep CLI startup fast
    from bucket_migrate.pipeline import MigrationPipeline

    pipeline: MigrationPipeline = MigrationPipeline(config)
    return await pipeline.run()


@click.command(context_settings=dict(help_option_names=["-h", "--help"]))
@click.option(
    "--config",
    "config_path",
    required=True,
    envvar="BUCKET_MIGRATE_CONFIG",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to the configuration file.",
)
@click.option(
    "--filename",
    required=True,
    envvar="BUCKET_MIGRATE_FILENAME",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to the file containing keys to migrate.",
)
@click.option(
    "--bucket",
    required=True,
    envvar="BUCKET_MIGRATE_BUCKET",
    help="Name of the S3 bucket to operate on.",
)
@click.option(
    "--check",
    is_flag=True,
    default=False,
    help="Check if the file exists in the destination bucket before copying.",
)
@click.option(
    "--workers",
    type=click.IntRange(min=1),
    default=100,
    envvar="BUCKET_MIGRATE_WORKERS",
    help="Number of concurrent copy workers.",
    show_default=True,
)
@click.option(
    "--fail-on-error",
    is_flag=True,
    default=False,
    help="Exit with status 1 if any object failed to migrate.",
)
@click.option(
    "--no-progress",
    is_flag=True,
    default=False,
    help="Disable the progress display.",
)
@click.option(
    "--log-level",
    default="INFO",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Set the logging level.",
    show_default=True,
)
def cli(**kwargs: Any) -> None:
    """
    Migrate objects listed in a file between two S3-compatible accounts.

    Each key in --filename is copied from the old profile to the new
    profile in the same bucket name, with an ETag check after upload.
    Profiles are read from the YAML file given by --config.

    Per-object failures are reported and do not change the exit status
    unless --fail-on-error is set.
    """
    load_dotenv()
    setup_logging(kwargs["log_level"])

    summary: Optional[MigrationSummary] = None
    try:
        profiles: Profiles = load_profiles(kwargs["config_path"])
        app_config: AppConfig = AppConfig(
            bucket=kwargs["bucket"],
            keys_file=kwargs["filename"],
            check_existence=kwargs["check"],
            workers=kwargs["workers"],
            show_progress=not kwargs["no_progress"],
            fail_on_error=kwargs["fail_on_error"],
        )
        config: Config = Config(profiles=profiles, app=app_config)

        summary = asyncio.run(main_async(config))
    except MigrateError as e:
        logger.critical(f"A critical application error occurred: {e}")
        sys.exit(1)
    except Exception:
        logger.critical(
            "An unexpected error caused the application to fail:", exc_info=True
        )
        sys.exit(1)

    if kwargs["fail_on_error"] and summary.has_failures:
        logger.error(f"{summary.failed} of {summary.total} objects failed.")
        sys.exit(1)


if __name__ == "__main__":
    cli()
