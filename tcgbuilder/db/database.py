"""
Database engine and session management.

Saved decks default to a local SQLite file; any SQLAlchemy async URL works.
"""

import logging
from collections.abc import AsyncGenerator
from pathlib import Path

from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from tcgbuilder.config import settings
from tcgbuilder.models.db import Base

logger = logging.getLogger(__name__)


def _is_sqlite(url: URL) -> bool:
    return url.get_backend_name() == "sqlite"


def make_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine. Pre-ping only applies to server databases."""
    url = make_url(database_url)
    if _is_sqlite(url):
        return create_async_engine(url, echo=echo)
    return create_async_engine(url, echo=echo, pool_pre_ping=True)


engine = make_engine(settings.database_url, echo=settings.debug)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that provides a database session.

    Commits when the request handler returns, rolls back on database errors.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError:
            await session.rollback()
            raise


async def init_db(db_engine: AsyncEngine | None = None) -> None:
    """
    Create the saved-deck tables.

    For a file-backed SQLite database the containing directory is created
    first.
    """
    db_engine = db_engine or engine
    url = db_engine.url
    if _is_sqlite(url) and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database ready at %s", url.render_as_string(hide_password=True))