from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from charlieverse.config import Settings
from charlieverse.database import create_engine, create_session_factory, init_db
from charlieverse.repositories.base import Storage
from charlieverse.repositories.fallback import FallbackStorage
from charlieverse.repositories.memory_repository import MemoryStorage
from charlieverse.repositories.sql_repository import SqlStorage

logger = logging.getLogger(__name__)


async def build_storage(settings: Settings) -> Storage:
    """Select the storage backend from configuration.

    Without a database URL the in-memory store is used directly. Otherwise the
    relational store is wrapped in a ``FallbackStorage``; a schema that cannot
    be created at startup leaves the gateway in degraded mode instead of
    aborting.
    """
    if not settings.database_url:
        logger.info("No database URL configured; using in-memory storage")
        return MemoryStorage()

    try:
        engine = create_engine(settings.database_url)
    except (ImportError, SQLAlchemyError) as exc:
        logger.error("Cannot create database engine, using in-memory storage: %s", exc)
        return MemoryStorage()

    storage = FallbackStorage(SqlStorage(create_session_factory(engine), engine))
    try:
        await init_db(engine)
    except (SQLAlchemyError, OSError, ConnectionError) as exc:
        storage.mark_degraded(f"schema initialization failed: {exc}")
    return storage
