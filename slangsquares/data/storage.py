"""Local key/value persistence for streak data.

Values are strings, mirroring browser ``localStorage``. The JSON file store
keeps every key in one document under ``local_db/``.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import ContextManager, Dict, Iterator, Optional, Protocol

from ..core.exceptions import StorageError
from ..utils.logger import get_logger


LOGGER = get_logger(__name__)

DEFAULT_STORE_PATH = Path("local_db/slangsquares_storage.json")


class KeyValueStore(Protocol):
    """Protocol implemented by all stores."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def transaction(self) -> ContextManager["KeyValueStore"]:
        ...


class MemoryStore:
    """Process-local store, used by tests and ``--storage memory``."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._values: Dict[str, str] = dict(initial or {})
        self._lock = threading.RLock()

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = str(value)

    @contextmanager
    def transaction(self) -> Iterator["MemoryStore"]:
        with self._lock:
            yield self


class JsonFileStore:
    """Persist string values in a single JSON document.

    Reads go to disk every time so that a second process sees the latest
    values. A transaction reloads the file, applies all ``set`` calls in
    memory, then writes the whole document once via an atomic rename.
    Two processes committing at the same moment can still lose one
    update; the lock only covers threads of this process.
    """

    def __init__(self, path: Path | str = DEFAULT_STORE_PATH) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()
        self._pending: Optional[Dict[str, str]] = None

    def get(self, key: str) -> Optional[str]:
        values = self._pending if self._pending is not None else self._read()
        return values.get(key)

    def set(self, key: str, value: str) -> None:
        if self._pending is not None:
            self._pending[key] = str(value)
            return
        with self.transaction() as txn:
            txn.set(key, value)

    @contextmanager
    def transaction(self) -> Iterator["JsonFileStore"]:
        with self._lock:
            if self._pending is not None:
                # Nested transaction joins the outer one.
                yield self
                return
            self._pending = self._read()
            try:
                yield self
                self._write(self._pending)
            finally:
                self._pending = None

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            doc = json.loads(self.path.read_text(encoding="utf-8"))
        except (ValueError, OSError) as exc:
            # ValueError covers bad JSON and bytes that are not UTF-8.
            LOGGER.warning("Store read error (%s): %s; starting empty", self.path.name, exc)
            return {}
        if not isinstance(doc, dict):
            LOGGER.warning("Store %s does not hold an object; starting empty", self.path.name)
            return {}
        return {str(k): str(v) for k, v in doc.items()}

    def _write(self, values: Dict[str, str]) -> None:
        tmp_name: Optional[str] = None
        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(values, handle, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            if tmp_name is not None:
                self._discard(tmp_name)
            raise StorageError(f"Could not write {self.path}: {exc}") from exc
        LOGGER.debug("Store saved: %s (%d keys)", self.path.name, len(values))

    def _discard(self, tmp_name: str) -> None:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        except OSError as exc:
            LOGGER.warning("Could not remove temporary store file %s: %s", tmp_name, exc)
