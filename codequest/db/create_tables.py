"""Create (or drop) the ``kv_entries`` table on the configured database."""
from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from codequest.core.logs import configure_logging
from .session import Base, get_engine
from . import models  # noqa: F401  # registers KeyValueEntry on the metadata

logger = logging.getLogger(__name__)


def create_all() -> None:
    Base.metadata.create_all(bind=get_engine())


def drop_all() -> None:
    Base.metadata.drop_all(bind=get_engine())


if __name__ == "__main__":
    configure_logging()
    try:
        create_all()
    except SQLAlchemyError as exc:
        raise SystemExit(f"Failed to create tables: {exc}") from exc
    logger.info("Key-value table ready on %s", get_engine().url.render_as_string(hide_password=True))
