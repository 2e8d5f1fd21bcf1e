"""Key-value backends for client-side state such as the cart."""

import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from libs.common.config import get_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)


class CartStorage(ABC):
    """Minimal string key-value store, shaped like browser localStorage."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None when the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key``; no-op when absent."""


class MemoryStorage(CartStorage):
    """Process-local storage, used in tests and short-lived sessions."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStorage(CartStorage):
    """One ``<key>.json`` file per key under a directory on this device.

    Writes replace the file atomically; the last writer wins.
    """

    def __init__(self, directory: Optional[str] = None):
        self.directory = Path(directory or get_settings().CART_STORAGE_DIR)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning(f"Could not read {path}: {e}")
            return None

    def set(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(value)
            os.replace(tmp_path, self._path(key))
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            pass
