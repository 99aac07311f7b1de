# src/bucket_migrate/testing/__init__.py
"""Testing utilities and fakes for bucket-migrate."""

from bucket_migrate.testing.fakes import (
    FakeObjectStore,
    fake_store_factory,
    make_etag,
)

__all__ = [
    "FakeObjectStore",
    "fake_store_factory",
    "make_etag",
]
