"""
Local persistent record store for the Quobyte volume driver.

Every record is a JSON file under the storage root whose name is built from a
fixed prefix, the record's identity and a fixed suffix, so that listing the
directory by prefix/suffix enumerates all records of one type.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, List, Protocol, Type, TypeVar, Union

from quobyte_volumes.cli.lib.config import load_config
from quobyte_volumes.driver.exceptions import CorruptRecordError, RecordNotFound, StorageError


class Record(Protocol):
    def to_dict(self) -> dict: ...


R = TypeVar("R")


def get_state_dir() -> Path:
    """
    Resolve the storage root.

    Priority:
    1) `QUOBYTE_VOLUMES_ROOT` env var, if set
    2) `root` from the `[plugin]` section of the config file (or its default)
    """
    env = os.environ.get("QUOBYTE_VOLUMES_ROOT")
    if env:
        return Path(env)
    return load_config().root


def record_key(prefix: str, ident: str, suffix: str) -> str:
    return f"{prefix}{ident}{suffix}"


class RecordStore:
    """Crash-consistent JSON record storage rooted at a directory."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        if not key or os.sep in key or key.startswith("."):
            raise StorageError(f"Invalid record key: {key!r}")
        return self.root / key

    def exists(self, key: str) -> bool:
        return self._path(key).is_file()

    def load(self, key: str, record_type: Type[R]) -> R:
        """
        Load and decode the record stored under `key`.

        `record_type` must provide a `from_dict` classmethod.

        Raises:
            RecordNotFound: No record exists under `key`
            CorruptRecordError: The stored data cannot be decoded
            StorageError: The file could not be read
        """
        path = self._path(key)
        try:
            with open(path, "r", encoding="utf-8") as file:
                data = json.load(file)
        except FileNotFoundError:
            raise RecordNotFound(f"Record {key} not found in {self.root}")
        except json.JSONDecodeError as e:
            raise CorruptRecordError(f"Record {key} is not valid JSON: {e}")
        except OSError as e:
            raise StorageError(f"Failed to read record {key}: {e}")

        from_dict: Callable[[Any], R] = getattr(record_type, "from_dict")
        if not isinstance(data, dict):
            raise CorruptRecordError(f"Record {key} does not contain a JSON object")
        try:
            return from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise CorruptRecordError(f"Record {key} is malformed: {e}")

    def save(self, key: str, record: Record) -> None:
        """
        Atomically replace the record stored under `key`.

        The data is written to a temporary file in the same directory and
        renamed over the target, so readers see either the old or the new
        record.
        """
        path = self._path(key)
        try:
            _atomic_write_json(path, record.to_dict())
        except OSError as e:
            raise StorageError(f"Failed to write record {key}: {e}")

    def delete(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            raise RecordNotFound(f"Record {key} not found in {self.root}")
        except OSError as e:
            raise StorageError(f"Failed to delete record {key}: {e}")

    def list_keys(self, prefix: str, suffix: str) -> List[str]:
        """
        Return the identities of all records named `<prefix><id><suffix>`.

        A missing root directory simply holds no records.
        """
        try:
            entries = os.listdir(self.root)
        except FileNotFoundError:
            return []
        except OSError as e:
            raise StorageError(f"Failed to list records in {self.root}: {e}")

        ids: List[str] = []
        for entry in entries:
            if entry.startswith("."):
                continue
            if not (entry.startswith(prefix) and entry.endswith(suffix)):
                continue
            ident = entry[len(prefix) : len(entry) - len(suffix)]
            if ident and (self.root / entry).is_file():
                ids.append(ident)
        return ids


def _atomic_write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_fd, tmp_path = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(tmp_fd, "w", encoding="utf-8") as file:
            json.dump(data, file, indent=2, ensure_ascii=False, sort_keys=True)
            file.write("\n")
            file.flush()
            os.fsync(file.fileno())
        os.replace(tmp_path, path)
    finally:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass
