# src/bucket_migrate/config.py
"""
Configuration for the bucket-migrate pipeline.

This module loads the two connection profiles from a YAML file and provides
the typed, immutable dataclasses that are passed through the application.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from bucket_migrate.exceptions import ConfigError

_PROFILE_FIELDS: Dict[str, str] = {
    "region": "region",
    "endpoint": "endpoint",
    "access_key": "accessKey",
    "secret_key": "secretKey",
}


@dataclass(frozen=True)
class Profile:
    """
    Connection parameters for one S3-compatible storage account.

    Attributes:
        region (str): The storage region.
        endpoint (str): The S3 endpoint URL.
        access_key (str): The access key ID.
        secret_key (str): The secret access key.
    """

    region: str
    endpoint: str
    access_key: str
    secret_key: str

    def as_boto_dict(self) -> Dict[str, Optional[str]]:
        """
        Returns the profile as a dictionary suitable for aiobotocore clients.

        Empty endpoint and region values are passed as None so that botocore
        falls back to its own defaults.

        Returns:
            Dict[str, Optional[str]]: A dictionary of client parameters.
        """
        return {
            "endpoint_url": self.endpoint or None,
            "aws_access_key_id": self.access_key,
            "aws_secret_access_key": self.secret_key,
            "region_name": self.region or None,
        }


@dataclass(frozen=True)
class Profiles:
    """
    The two connection profiles of a migration.

    Attributes:
        old_profile (Profile): The source account.
        new_profile (Profile): The destination account.
    """

    old_profile: Profile
    new_profile: Profile


@dataclass(frozen=True)
class AppConfig:
    """
    Defines the run's operational parameters.

    Attributes:
        bucket (str): Bucket name used on both the source and destination.
        keys_file (Path): File listing one object key per line.
        check_existence (bool): Skip keys already present at the destination.
        workers (int): Number of concurrent copy workers and queue capacity.
        show_progress (bool): Whether to render a progress display.
        fail_on_error (bool): Exit with a failure status if any key failed.
    """

    bucket: str
    keys_file: Path
    check_existence: bool = False
    workers: int = 100
    show_progress: bool = True
    fail_on_error: bool = False


@dataclass(frozen=True)
class Config:
    """
    Top-level configuration container for the entire application.

    Attributes:
        profiles (Profiles): Source and destination connection profiles.
        app (AppConfig): Run parameters.
    """

    profiles: Profiles
    app: AppConfig


def _field_value(profile_name: str, raw: Dict[str, Any], yaml_name: str) -> str:
    value: Any = raw.get(yaml_name)
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        raise ConfigError(
            f"Error parsing config file: 'profiles.{profile_name}.{yaml_name}' "
            "must be a string."
        )
    return str(value)


def _parse_profile(profiles: Dict[str, Any], name: str) -> Profile:
    raw: Any = profiles.get(name)
    if not isinstance(raw, dict):
        raise ConfigError(
            f"Error parsing config file: 'profiles.{name}' must be a mapping."
        )
    values: Dict[str, str] = {
        attr: _field_value(name, raw, yaml_name)
        for attr, yaml_name in _PROFILE_FIELDS.items()
    }
    return Profile(**values)


def load_profiles(path: Path) -> Profiles:
    """
    Reads the YAML profiles file.

    Missing credential fields are loaded as empty strings; problems with
    them surface later as connection failures.

    Args:
        path (Path): Path to the configuration file.

    Returns:
        Profiles: The source and destination profiles.

    Raises:
        ConfigError: If the file cannot be read or is not structured as
            ``profiles.oldProfile`` / ``profiles.newProfile`` mappings.
    """
    try:
        text: str = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Error reading config file '{path}': {e}") from e

    try:
        document: Any = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing config file '{path}': {e}") from e

    if not isinstance(document, dict) or not isinstance(
        document.get("profiles"), dict
    ):
        raise ConfigError(
            f"Error parsing config file '{path}': missing 'profiles' mapping."
        )

    profiles: Dict[str, Any] = document["profiles"]
    return Profiles(
        old_profile=_parse_profile(profiles, "oldProfile"),
        new_profile=_parse_profile(profiles, "newProfile"),
    )
