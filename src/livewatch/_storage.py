"""JSON persistence backends for the credential and state files.

Components that own a file receive a :class:`JsonBackend` rather than a
path, so tests can swap in :class:`MemoryBackend` and never touch disk.
"""

from __future__ import annotations

import contextlib
import copy
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

_logger = logging.getLogger(__name__)


class JsonBackend(Protocol):
    """Structural persistence interface used by the stores."""

    def read(self) -> Any:
        """Return the decoded document, or ``None`` if unavailable."""
        ...

    def write(self, data: Any) -> None:
        ...


class JsonFile:
    """A JSON document on disk, replaced atomically on every write."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"JsonFile({str(self.path)!r})"

    def read(self) -> Any:
        """Decode the file; a missing or malformed file reads as ``None``."""
        try:
            data = self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError:
            _logger.warning("Could not read %s", self.path, exc_info=True)
            return None
        try:
            return json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            _logger.warning("Ignoring malformed JSON in %s", self.path)
            return None

    def write(self, data: Any) -> None:
        """Write to a sibling temp file, then ``os.replace`` it into place.

        A crash mid-write leaves the previous file intact.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2)
                fh.write("\n")
            os.replace(tmp_name, self.path)
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
            raise


class MemoryBackend:
    """In-memory backend for tests and dry runs."""

    def __init__(self, data: Any = None) -> None:
        self.data = copy.deepcopy(data)
        self.writes = 0

    def read(self) -> Any:
        return copy.deepcopy(self.data)

    def write(self, data: Any) -> None:
        self.data = copy.deepcopy(data)
        self.writes += 1
