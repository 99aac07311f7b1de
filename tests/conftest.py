# tests/conftest.py
"""
Pytest configuration and fixtures for the bucket-migrate unit tests.

This module sets up the testing environment, including:
- In-memory source and destination stores and a factory that opens them.
- Helper factories for writing key-list files and building configurations.
- A valid profiles file matching the fake stores' profiles.
"""

from pathlib import Path
from typing import Callable, Dict, List

import pytest

from bucket_migrate.config import AppConfig, Config, Profile, Profiles
from bucket_migrate.storage import StoreFactory
from bucket_migrate.testing import FakeObjectStore, fake_store_factory

# --- Constants ---
BUCKET: str = "media"
SOURCE_PROFILE: Profile = Profile(
    region="us-east-1",
    endpoint="http://source.example.com",
    access_key="old-key",
    secret_key="old-secret",
)
DESTINATION_PROFILE: Profile = Profile(
    region="eu-west-1",
    endpoint="http://destination.example.com",
    access_key="new-key",
    secret_key="new-secret",
)


# --- Store Fixtures ---
@pytest.fixture(scope="function")
def source_store() -> FakeObjectStore:
    """
    Provide an empty in-memory source store.

    Returns:
        FakeObjectStore: The store opened for the source profile.
    """
    return FakeObjectStore()


@pytest.fixture(scope="function")
def destination_store() -> FakeObjectStore:
    """
    Provide an empty in-memory destination store.

    Returns:
        FakeObjectStore: The store opened for the destination profile.
    """
    return FakeObjectStore()


@pytest.fixture(scope="function")
def store_factory(
    source_store: FakeObjectStore, destination_store: FakeObjectStore
) -> StoreFactory:
    """
    Provide a store factory that opens the fake stores by profile.

    Args:
        source_store (FakeObjectStore): The source store fixture.
        destination_store (FakeObjectStore): The destination store fixture.

    Returns:
        StoreFactory: A factory for `MigrationPipeline`.
    """
    return fake_store_factory(
        {SOURCE_PROFILE: source_store, DESTINATION_PROFILE: destination_store}
    )


# --- Application Fixtures ---
@pytest.fixture(scope="function")
def write_keys(tmp_path: Path) -> Callable[[List[str]], Path]:
    """
    Provide a factory that writes a key-list file.

    Args:
        tmp_path (Path): The pytest fixture for a temporary directory.

    Returns:
        A function taking the lines to write and returning the file path.
    """

    def _writer(lines: List[str]) -> Path:
        path: Path = tmp_path / "keys.txt"
        path.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
        return path

    return _writer


@pytest.fixture(scope="function")
def make_config() -> Callable[..., Config]:
    """
    Provide a factory for a `Config` that uses the fake stores' profiles.

    Returns:
        A function accepting the key file path and `AppConfig` overrides.
    """

    def _creator(keys_file: Path, **overrides: object) -> Config:
        options: Dict[str, object] = {
            "bucket": BUCKET,
            "keys_file": keys_file,
            "workers": 4,
            "show_progress": False,
        }
        options.update(overrides)
        return Config(
            profiles=Profiles(
                old_profile=SOURCE_PROFILE, new_profile=DESTINATION_PROFILE
            ),
            app=AppConfig(**options),  # type: ignore[arg-type]
        )

    return _creator


@pytest.fixture(scope="function")
def profiles_yaml(tmp_path: Path) -> Path:
    """
    Write a valid profiles file matching the fake stores' profiles.

    Args:
        tmp_path (Path): The pytest fixture for a temporary directory.

    Returns:
        Path: The path to the configuration file.
    """
    path: Path = tmp_path / "config.yaml"
    path.write_text(
        "profiles:\n"
        "  oldProfile:\n"
        "    region: us-east-1\n"
        "    endpoint: http://source.example.com\n"
        "    accessKey: old-key\n"
        "    secretKey: old-secret\n"
        "  newProfile:\n"
        "    region: eu-west-1\n"
        "    endpoint: http://destination.example.com\n"
        "    accessKey: new-key\n"
        "    secretKey: new-secret\n",
        encoding="utf-8",
    )
    return path
