"""JSON key/value file guarded by portalocker.

Plays the role of browser local storage for the family, activity, echo and
birth-data records: each key holds one JSON value. A missing or corrupt file
reads as empty.
"""
from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import portalocker

from settings import STORE_LOCK_TIMEOUT, STORE_PATH

logger = logging.getLogger(__name__)


class LocalStore:
    def __init__(self, path: Optional[Path | str] = None, timeout: float = STORE_LOCK_TIMEOUT):
        self.path = Path(path) if path is not None else STORE_PATH
        self.timeout = timeout

    # ---------------------------------
    # File helpers
    # ---------------------------------
    def _ensure_file(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            self.path.write_bytes(b"{}")

    def _decode(self, raw: bytes) -> Dict[str, Any]:
        if not raw.strip():
            return {}
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Local store %s is unreadable, treating as empty: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _read_all(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        with portalocker.Lock(str(self.path), "rb", timeout=self.timeout) as f:
            return self._decode(f.read())

    def _mutate(self, fn: Callable[[Dict[str, Any]], None]) -> Dict[str, Any]:
        self._ensure_file()
        with portalocker.Lock(str(self.path), "r+b", timeout=self.timeout) as f:
            data = self._decode(f.read())
            fn(data)
            f.seek(0)
            f.truncate()
            f.write(json.dumps(data, ensure_ascii=False, indent=2).encode("utf-8"))
            f.flush()
        return data

    # ---------------------------------
    # Public API
    # ---------------------------------
    def get_item(self, key: str, default: Any = None) -> Any:
        return self._read_all().get(key, default)

    def set_item(self, key: str, value: Any) -> None:
        def _set(data: Dict[str, Any]) -> None:
            data[key] = value

        self._mutate(_set)

    def remove_item(self, key: str) -> None:
        self._mutate(lambda data: data.pop(key, None))

    def update_item(self, key: str, fn: Callable[[Any], Any], default: Any = None) -> Any:
        """Read-modify-write one key under a single lock; returns the new value."""
        result: Dict[str, Any] = {}

        def _update(data: Dict[str, Any]) -> None:
            data[key] = fn(data.get(key, default))
            result["value"] = data[key]

        self._mutate(_update)
        return result["value"]
