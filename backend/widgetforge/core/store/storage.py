"""Key-value persistence media behind the document store."""

from __future__ import annotations

import logging
from pathlib import Path
from threading import Lock
from typing import Dict, Optional, Protocol

logger = logging.getLogger(__name__)


class KeyValueStorage(Protocol):
    """Durable string storage addressed by string keys."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...


class MemoryStorage:
    """Process-local medium, used for tests and throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def remove(self, key: str) -> None:
        self._values.pop(key, None)


class JsonFileStorage:
    """One JSON file per key under ``root_dir``."""

    def __init__(self, root_dir: Path) -> None:
        self._root = root_dir
        self._lock = Lock()
        self._root.mkdir(parents=True, exist_ok=True)

    def get(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError:
            logger.exception("storage_read_failed path=%s", path)
            return None

    def set(self, key: str, value: str) -> None:
        path = self._path_for(key)
        tmp_path = path.with_suffix(".json.tmp")
        with self._lock:
            with tmp_path.open("w", encoding="utf-8") as handle:
                handle.write(value)
            tmp_path.replace(path)

    def remove(self, key: str) -> None:
        path = self._path_for(key)
        with self._lock:
            if path.exists():
                path.unlink()

    def _path_for(self, key: str) -> Path:
        return self._root / f"{_sanitize_segment(key)}.json"


def _sanitize_segment(segment: str) -> str:
    return "".join(ch for ch in segment if ch.isalnum() or ch in {"-", "_", "."}) or "default"
