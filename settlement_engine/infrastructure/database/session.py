"""Async database engine and session factory"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from settlement_engine.config import settings


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Build an async engine; pooling options only apply to server databases"""
    if database_url.startswith("sqlite"):
        return create_async_engine(database_url, echo=echo)

    # Connection pool: max 20 connections, recycle after 1 hour to avoid stale connections
    return create_async_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=10,
        pool_recycle=3600,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, autoflush=False, expire_on_commit=False)


engine = create_engine(settings.database_url, echo=settings.sql_echo)

SessionLocal = create_session_factory(engine)


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Dependency injection for the session factory"""
    return SessionLocal
