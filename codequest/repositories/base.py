"""
Key-value backend contract used by the account store.

A backend only knows string keys and JSON-compatible values. Writes issued
inside ``transaction()`` are buffered and flushed in one step, so a caller
that must update several keys together either lands all of them or none.
"""

from __future__ import annotations

import copy
import logging
from contextlib import contextmanager
from typing import Any, Iterator

logger = logging.getLogger(__name__)

DELETED = object()


class StoreError(Exception):
    """Base class for persistence failures."""


class CorruptStoreError(StoreError):
    """Stored data exists but cannot be decoded."""


class KeyValueBackend:
    """Opaque get/set/list storage with buffered transactions."""

    def __init__(self) -> None:
        self._pending: dict[str, Any] | None = None

    # -------------------------- subclass hooks --------------------------
    def _read(self, key: str, default: Any = None) -> Any:
        raise NotImplementedError

    def _keys(self) -> list[str]:
        raise NotImplementedError

    def _flush(self, writes: dict[str, Any]) -> None:
        """Apply ``writes`` atomically. A value of ``DELETED`` removes the key."""
        raise NotImplementedError

    # -------------------------- public API --------------------------
    def get(self, key: str, default: Any = None) -> Any:
        if self._pending is not None and key in self._pending:
            value = self._pending[key]
            return default if value is DELETED else copy.deepcopy(value)
        return self._read(key, default)

    def set(self, key: str, value: Any) -> None:
        self._write(key, copy.deepcopy(value))

    def delete(self, key: str) -> None:
        self._write(key, DELETED)

    def keys(self) -> list[str]:
        found = set(self._keys())
        for key, value in (self._pending or {}).items():
            if value is DELETED:
                found.discard(key)
            else:
                found.add(key)
        return sorted(found)

    @contextmanager
    def transaction(self) -> Iterator["KeyValueBackend"]:
        if self._pending is not None:
            # nested: join the outer transaction
            yield self
            return
        self._pending = {}
        try:
            yield self
        except BaseException:
            self._pending = None
            raise
        writes, self._pending = self._pending, None
        if writes:
            self._flush(writes)
            logger.debug("Flushed %d key(s) to %s", len(writes), type(self).__name__)

    def _write(self, key: str, value: Any) -> None:
        if self._pending is not None:
            self._pending[key] = value
        else:
            self._flush({key: value})


class MemoryStorage(KeyValueBackend):
    """Process-local backend; nothing survives the interpreter."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        super().__init__()
        self._data: dict[str, Any] = copy.deepcopy(initial or {})

    def _read(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def _keys(self) -> list[str]:
        return list(self._data)

    def _flush(self, writes: dict[str, Any]) -> None:
        for key, value in writes.items():
            if value is DELETED:
                self._data.pop(key, None)
            else:
                self._data[key] = value
