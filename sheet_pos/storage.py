from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

SOURCE_URL_KEY = "catalog_url"

DEFAULT_CATALOG_URL = (
    "https://docs.google.com/spreadsheets/d/1L4iygFD3mB7jlJNAh97eeBfxkC7VBVYdwkH6Rb7SCMQ"
    "/edit?gid=1799151543#gid=1799151543"
)

# Superseded sources: OneDrive links and two retired Google Sheets.
STALE_SOURCE_MARKERS = (
    "onedrive",
    "excel.cloud.microsoft",
    "1n4Qvos_RZLgex2pxisiJGYjgneDbmujRkJuRE-W0bEM",
    "1mBy447WJ_QUle4MUA-GhZplP8UMowmuSJj6awjki5yQ",
)


class SettingsStore:
    """Small JSON key-value file that survives between sessions."""

    def __init__(self, path: str | Path = "data/settings.json"):
        self.path = Path(path)

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError as e:
            raise RuntimeError(f"Settings file {self.path} is not valid JSON: {e}") from e
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    def get(self, key: str, default: Any = None) -> Any:
        return self._read().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)


def is_stale_source(url: str | None) -> bool:
    return bool(url) and any(marker in url for marker in STALE_SOURCE_MARKERS)


def load_source_url(store: SettingsStore, default: str = DEFAULT_CATALOG_URL) -> str:
    stored = store.get(SOURCE_URL_KEY)
    if is_stale_source(stored):
        logger.info("Clearing stale catalog URL from settings: %s", stored)
        store.remove(SOURCE_URL_KEY)
        return default
    return stored or default


def save_source_url(store: SettingsStore, url: str) -> None:
    store.set(SOURCE_URL_KEY, url)
