from __future__ import annotations

import logging

from sqlalchemy import inspect

import slotforge.models  # noqa: F401
from slotforge.db.base import Base
from slotforge.db.session import engine

logger = logging.getLogger(__name__)


def ensure_schema() -> None:
    with engine.begin() as connection:
        existing = set(inspect(connection).get_table_names())
        missing = sorted(set(Base.metadata.tables) - existing)
        if missing:
            logger.info("Creating missing tables: %s", ", ".join(missing))
        Base.metadata.create_all(bind=connection)
