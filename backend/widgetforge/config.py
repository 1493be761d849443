"""Runtime configuration read from the environment (and an optional .env file)."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from widgetforge.core.history.coordinator import DEFAULT_COALESCE_WINDOW, DEFAULT_MAX_ENTRIES

logger = logging.getLogger(__name__)

load_dotenv()

BACKEND_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_DATA_DIR = BACKEND_ROOT / "data" / "widgets"
STORAGE_BACKENDS = ("file", "memory")


@dataclass(frozen=True)
class Settings:
    storage_backend: str = "file"
    data_dir: Path = DEFAULT_DATA_DIR
    history_limit: int = DEFAULT_MAX_ENTRIES
    rename_window: float = DEFAULT_COALESCE_WINDOW


def _read_int(env: str, default: int) -> int:
    raw = os.getenv(env)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid %s=%s; using %s", env, raw, default)
        return default
    if value < 1:
        logger.warning("Invalid %s=%s; using %s", env, raw, default)
        return default
    return value


def _read_float(env: str, default: float) -> float:
    raw = os.getenv(env)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid %s=%s; using %s", env, raw, default)
        return default
    if value < 0:
        logger.warning("Invalid %s=%s; using %s", env, raw, default)
        return default
    return value


def load_settings() -> Settings:
    backend = (os.getenv("WIDGETFORGE_STORAGE") or "file").strip().lower()
    if backend not in STORAGE_BACKENDS:
        logger.warning("Invalid WIDGETFORGE_STORAGE=%s; using file", backend)
        backend = "file"
    data_dir = os.getenv("WIDGETFORGE_DATA_DIR")
    return Settings(
        storage_backend=backend,
        data_dir=Path(data_dir).expanduser() if data_dir else DEFAULT_DATA_DIR,
        history_limit=_read_int("WIDGETFORGE_HISTORY_LIMIT", DEFAULT_MAX_ENTRIES),
        rename_window=_read_float("WIDGETFORGE_RENAME_WINDOW_MS", DEFAULT_COALESCE_WINDOW * 1000) / 1000.0,
    )
