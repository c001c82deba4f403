from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from taplog.core.config import settings


class Base(DeclarativeBase):
    pass


def build_engine(url: str) -> AsyncEngine:
    """Postgres gets a sized pool; SQLite (local runs, tests) keeps the dialect default."""
    kwargs: dict = {"echo": settings.APP_ENV == "development"}
    if not url.startswith("sqlite"):
        kwargs.update(pool_pre_ping=True, pool_size=10, max_overflow=20)
    return create_async_engine(url, **kwargs)


engine = build_engine(str(settings.DATABASE_URL))

async_session_maker = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── FastAPI dependency ─────────────────────────────────────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session:
        yield session
