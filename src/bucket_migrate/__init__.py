# src/bucket_migrate/__init__.py
"""
bucket-migrate: copy a list of objects between two S3-compatible accounts.

Keys are read from a file and streamed through a bounded queue into a fixed
pool of async workers. Each worker copies one object from the source
profile to the destination profile and verifies the result by ETag.

The primary entry point for programmatic use is the `MigrationPipeline` class.
"""

from typing import List

from bucket_migrate.pipeline import MigrationPipeline

__all__: List[str] = ["MigrationPipeline"]
