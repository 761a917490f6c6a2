# src/common/database/database.py

import logging
from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from src.common.config import settings
from src.models.models import Base

logger = logging.getLogger(__name__)

def enable_sqlite_foreign_keys(engine: AsyncEngine) -> AsyncEngine:
    """
    Turn on foreign key enforcement for every SQLite connection, so ON DELETE
    CASCADE (subject -> discussions) behaves as it does on Postgres.
    """
    if engine.dialect.name == "sqlite":
        event.listen(engine.sync_engine, "connect", _set_sqlite_pragma)
    return engine

def _set_sqlite_pragma(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()

engine = enable_sqlite_foreign_keys(create_async_engine(settings.DATABASE_URL, echo=False, future=True))

# Sessions keep loaded attributes after commit so responses can be built without lazy loads.
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that provides one AsyncSession per request.
    """
    async with async_session() as session:
        yield session

async def connect_to_db() -> None:
    """
    Verify connectivity and create any missing tables.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database connection established")

async def close_db_connection() -> None:
    await engine.dispose()
    logger.info("Database connection closed")
