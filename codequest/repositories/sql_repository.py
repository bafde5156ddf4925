"""Key-value backend stored in a single SQL table through SQLAlchemy."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from codequest.db.models import KeyValueEntry
from codequest.db.session import get_session
from codequest.repositories.base import DELETED, KeyValueBackend, StoreError


class SQLStorage(KeyValueBackend):
    """Each key is one ``kv_entries`` row; a flush is one SQL transaction."""

    def _read(self, key: str, default: Any = None) -> Any:
        try:
            with get_session() as session:
                entity = session.get(KeyValueEntry, key)
                return entity.value if entity else default
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to read {key!r}") from exc

    def _keys(self) -> list[str]:
        try:
            with get_session() as session:
                return list(session.execute(select(KeyValueEntry.key)).scalars().all())
        except SQLAlchemyError as exc:
            raise StoreError("Failed to list keys") from exc

    def _flush(self, writes: dict[str, Any]) -> None:
        now = datetime.now(timezone.utc)
        with get_session() as session:
            try:
                for key, value in writes.items():
                    if value is DELETED:
                        session.execute(delete(KeyValueEntry).where(KeyValueEntry.key == key))
                        continue
                    entity = session.get(KeyValueEntry, key)
                    if entity:
                        entity.value = value
                        entity.updated_at = now
                    else:
                        session.add(KeyValueEntry(key=key, value=value, updated_at=now))
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                raise StoreError(f"Failed to write {len(writes)} key(s)") from exc
