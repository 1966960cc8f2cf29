"""Async SQLAlchemy engine and session factory.

The engine is owned by a ``Database`` instance created in the app lifespan
and kept on ``app.state.database``. Nothing holds a module-level connection.

Usage in routes:
    from studynest.database import get_db

    @router.get("/items")
    async def list_items(db: AsyncSession = Depends(get_db)):
        result = await db.execute(select(Item))
        return result.scalars().all()
"""
from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from studynest.models import Base


class Database:
    """One async engine plus its session factory."""

    def __init__(self, url: str, **engine_kwargs):
        if url.startswith("postgresql"):
            engine_kwargs.setdefault("pool_size", 10)
            engine_kwargs.setdefault("max_overflow", 20)
        self.engine = create_async_engine(
            url,
            echo=False,
            pool_pre_ping=True,
            **engine_kwargs,
        )
        self.session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    async def create_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> None:
        async with self.session_factory() as session:
            await session.execute(text("SELECT 1"))

    async def dispose(self) -> None:
        await self.engine.dispose()


async def get_db(request: Request):
    """FastAPI dependency that yields an async DB session."""
    database: Database = request.app.state.database
    async with database.session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
