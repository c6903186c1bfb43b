from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable

logger = logging.getLogger(__name__)


class LocalStorage:
    """String key/value store, optionally persisted to a JSON file."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path
        self._items: dict[str, str] = self._load()

    def _load(self) -> dict[str, str]:
        if self.path is None or not self.path.exists():
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as error:
            logger.warning("Ignoring unreadable storage file %s: %s", self.path, error)
            return {}
        if not isinstance(payload, dict):
            logger.warning("Ignoring storage file %s: expected a JSON object", self.path)
            return {}
        return {str(key): str(value) for key, value in payload.items()}

    def _save(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._items, indent=2, ensure_ascii=False), encoding="utf-8")

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: object) -> None:
        self._items[key] = str(value)
        self._save()

    def remove_item(self, key: str) -> None:
        if self._items.pop(key, None) is not None:
            self._save()

    def clear(self) -> None:
        self._items.clear()
        self._save()

    def __len__(self) -> int:
        return len(self._items)


class BrowserHistory:
    def __init__(self, url: str = "/") -> None:
        self.url = url
        self.entries: list[tuple[dict[str, Any] | None, str]] = [(None, url)]
        self._listeners: list[Callable[[dict[str, Any] | None], None]] = []

    @property
    def length(self) -> int:
        return len(self.entries)

    @property
    def state(self) -> dict[str, Any] | None:
        return self.entries[-1][0]

    def push_state(self, state: dict[str, Any], url: str | None = None) -> None:
        self.entries.append((dict(state), url or self.url))

    def on_popstate(self, listener: Callable[[dict[str, Any] | None], None]) -> None:
        self._listeners.append(listener)

    def back(self) -> None:
        if len(self.entries) <= 1:
            return
        self.entries.pop()
        for listener in list(self._listeners):
            listener(self.state)
