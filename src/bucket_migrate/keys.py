# src/bucket_migrate/keys.py
"""Streams object keys from a newline-delimited key-list file."""

import logging
from pathlib import Path
from types import TracebackType
from typing import IO, Iterator, Optional, Type

from bucket_migrate.exceptions import KeyFileError

logger: logging.Logger = logging.getLogger(__name__)


class KeySource:
    """
    A lazy, single-pass reader of object keys.

    Entering the context opens the file; iterating yields one key per line
    in file order. Blank lines are logged and not yielded.
    """

    def __init__(self, path: Path) -> None:
        """
        Args:
            path (Path): The key-list file.
        """
        self._path: Path = path
        self._file: Optional[IO[str]] = None
        self._consumed: bool = False

    @property
    def path(self) -> Path:
        return self._path

    def __enter__(self) -> "KeySource":
        try:
            # Only "\n" ends a line; a lone "\r" belongs to the key
            self._file = self._path.open("r", encoding="utf-8", newline="\n")
        except OSError as e:
            raise KeyFileError(f"Error opening file '{self._path}': {e}") from e
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def __iter__(self) -> Iterator[str]:
        if self._file is None:
            raise KeyFileError(f"Key file '{self._path}' is not open.")
        if self._consumed:
            raise KeyFileError(f"Key file '{self._path}' has already been read.")
        self._consumed = True
        return self._read_keys(self._file)

    def _read_keys(self, handle: IO[str]) -> Iterator[str]:
        for line_number, line in enumerate(handle, start=1):
            key: str = line[:-1] if line.endswith("\n") else line
            if key.endswith("\r"):
                key = key[:-1]
            if not key:
                logger.warning(
                    f"Skipping blank line {line_number} in '{self._path}'."
                )
                continue
            yield key
