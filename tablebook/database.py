"""Database engine, session factory and declarative base"""

from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from tablebook.config import settings


Base = declarative_base()


def _engine_options(url: str) -> dict:
    options = {"echo": settings.database_echo}
    if not url.startswith("sqlite"):
        options["pool_pre_ping"] = True
        options["pool_timeout"] = settings.database_pool_timeout
    return options


engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

SessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncIterator[AsyncSession]:
    """Yield a session per request"""
    async with SessionLocal() as session:
        yield session
