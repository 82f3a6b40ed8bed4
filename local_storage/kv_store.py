"""Key-value persistence port for studio state.

The pipeline reads ``project_data`` (and a prior ``agreement`` when resuming)
at start, and writes ``agreement`` at consent-gate transitions plus
``pipeline_artifact`` and ``pipeline_run`` at completion. Values are plain
JSON-compatible data.

Example:
    >>> store = JsonFileStore(Path(".cto-studio"))
    >>> store.set("agreement", agreement.model_dump(mode="json"))
    >>> store.get("agreement")
"""

from __future__ import annotations

import copy
import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

PROJECT_DATA_KEY = "project_data"
AGREEMENT_KEY = "agreement"
ARTIFACT_KEY = "pipeline_artifact"
RUN_KEY = "pipeline_run"

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_\-]+$")


class StoreError(Exception):
    """Raised when a value cannot be read or written."""


@runtime_checkable
class KeyValueStore(Protocol):
    """Simple get/set persistence port."""

    def get(self, key: str, default: Any = None) -> Any:
        ...

    def set(self, key: str, value: Any) -> None:
        ...


class MemoryStore:
    """In-process store. Values are deep-copied in and out."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def keys(self) -> list[str]:
        return sorted(self._data)

    def __contains__(self, key: str) -> bool:
        return key in self._data


class JsonFileStore:
    """One JSON file per key under a state directory.

    Writes go to a temp file in the same directory and are moved into
    place with ``os.replace``, so a reader never sees a half-written value.
    """

    def __init__(self, state_dir: Path) -> None:
        """Initialize the store.

        Args:
            state_dir: Directory holding ``<key>.json`` files. Created lazily.
        """
        self.state_dir = Path(state_dir)

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise StoreError(f"Invalid store key: {key!r}")
        return self.state_dir / f"{key}.json"

    def get(self, key: str, default: Any = None) -> Any:
        """Read a value.

        Args:
            key: Store key
            default: Returned when the key is absent

        Returns:
            Decoded JSON value or ``default``

        Raises:
            StoreError: If the file exists but is not valid JSON
        """
        path = self._path(key)
        if not path.exists():
            return default
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise StoreError(f"Corrupt value for {key!r} at {path}: {e}") from e

    def set(self, key: str, value: Any) -> None:
        """Write a value atomically.

        Raises:
            StoreError: If the value is not JSON-serializable or the write fails
        """
        path = self._path(key)
        try:
            text = json.dumps(value, indent=2, default=str)
        except (TypeError, ValueError) as e:
            raise StoreError(f"Value for {key!r} is not JSON-serializable: {e}") from e

        self.state_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.state_dir, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except OSError as e:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise StoreError(f"Failed to write {key!r} to {path}: {e}") from e

        logger.debug("Stored %s (%d bytes)", key, len(text))

    def keys(self) -> list[str]:
        if not self.state_dir.exists():
            return []
        return sorted(p.stem for p in self.state_dir.glob("*.json"))

    def __contains__(self, key: str) -> bool:
        return self._path(key).exists()
