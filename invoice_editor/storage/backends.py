"""
Key-value persistence of JSON blobs.

The core only needs get/set/delete of JSON documents under a handful of
logical keys; these backends provide that in memory or on disk.
"""
import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Dict, Union


logger = logging.getLogger(__name__)


class StorageKeys:
    """Logical keys used by the application"""
    TEMPLATES = 'invoice_templates'
    CURRENT_INVOICE = 'current_invoice'
    SETTINGS = 'app_settings'
    LAST_INVOICE_NUMBER = 'last_invoice_number'

    ALL = (TEMPLATES, CURRENT_INVOICE, SETTINGS, LAST_INVOICE_NUMBER)


class StorageError(Exception):
    """Raised when stored data cannot be read or written"""
    pass


class KeyValueStore:
    """Interface of a JSON blob store"""

    def get_json(self, key: str, default: Any = None) -> Any:
        raise NotImplementedError  # pragma: no cover

    def set_json(self, key: str, value: Any) -> None:
        raise NotImplementedError  # pragma: no cover

    def delete(self, key: str) -> None:
        raise NotImplementedError  # pragma: no cover

    def keys(self) -> list:
        raise NotImplementedError  # pragma: no cover


class MemoryStore(KeyValueStore):
    """
    In-process store.

    Values are kept as serialized JSON text so callers never share mutable
    state with the store.
    """

    def __init__(self):
        self._data: Dict[str, str] = {}

    def get_json(self, key: str, default: Any = None) -> Any:
        raw = self._data.get(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageError(f"Malformed data stored under '{key}': {str(e)}") from e

    def set_json(self, key: str, value: Any) -> None:
        try:
            self._data[key] = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Cannot serialize value for '{key}': {str(e)}") from e

    def set_raw(self, key: str, raw: str) -> None:
        """Store text verbatim (used to simulate externally corrupted data)"""
        self._data[key] = raw

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list:
        return sorted(self._data)


class JSONFileStore(KeyValueStore):
    """
    Directory of JSON files, one file per key.

    Writes go to a temporary file that replaces the target atomically, so a
    failed write never leaves a half-written document behind.
    """

    KEY_PATTERN = re.compile(r'^[A-Za-z0-9_.-]+$')

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not self.KEY_PATTERN.match(key):
            raise StorageError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    def get_json(self, key: str, default: Any = None) -> Any:
        path = self._path(key)
        if not path.exists():
            return default

        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise StorageError(f"Malformed data in {path}: {str(e)}") from e
        except OSError as e:
            raise StorageError(f"Cannot read {path}: {str(e)}") from e

    def set_json(self, key: str, value: Any) -> None:
        path = self._path(key)

        try:
            payload = json.dumps(value, indent=2)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Cannot serialize value for '{key}': {str(e)}") from e

        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.directory, prefix=f".{key}.", suffix='.tmp'
            )
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    f.write(payload)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise StorageError(f"Cannot write {path}: {str(e)}") from e

        logger.debug(f"Stored '{key}' in {path}")

    def delete(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageError(f"Cannot delete {path}: {str(e)}") from e

    def keys(self) -> list:
        if not self.directory.exists():
            return []
        return sorted(p.stem for p in self.directory.glob('*.json'))
