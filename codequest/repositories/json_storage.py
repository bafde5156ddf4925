"""
JSON file persistence adapter.

The whole store is one JSON document mapping keys to values, the same shape a
browser's localStorage would hold. Every flush rewrites the document through a
temporary file so readers never observe a half-written store.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any
import json
import os

from codequest.core.config import get_settings
from codequest.repositories.base import DELETED, CorruptStoreError, KeyValueBackend


def load(path: Path) -> dict:
    if path.exists():
        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as exc:
            raise CorruptStoreError(f"{path} is not valid JSON") from exc
        if not isinstance(data, dict):
            raise CorruptStoreError(f"{path} does not hold a JSON object")
        return data
    return {}


def save(db: dict, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_text(json.dumps(db, ensure_ascii=False, indent=2), encoding="utf-8")
    os.replace(tmp, path)


class JsonStorage(KeyValueBackend):
    def __init__(self, path: Path | str | None = None) -> None:
        super().__init__()
        self.path = Path(path) if path else get_settings().data_file

    def _read(self, key: str, default: Any = None) -> Any:
        return load(self.path).get(key, default)

    def _keys(self) -> list[str]:
        return list(load(self.path))

    def _flush(self, writes: dict[str, Any]) -> None:
        db = load(self.path)
        for key, value in writes.items():
            if value is DELETED:
                db.pop(key, None)
            else:
                db[key] = value
        save(db, self.path)
