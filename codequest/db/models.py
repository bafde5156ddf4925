"""SQLAlchemy model backing the key-value store."""
from __future__ import annotations

from sqlalchemy import JSON, Column, DateTime, String, func

from .session import Base


class KeyValueEntry(Base):
    __tablename__ = "kv_entries"

    key = Column(String(255), primary_key=True)
    value = Column(JSON, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
