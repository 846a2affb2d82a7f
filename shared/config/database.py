from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

Base = declarative_base()

engine: Optional[AsyncEngine] = None
AsyncSessionLocal: Optional[async_sessionmaker] = None


def _connect_args(url: str, timeout: float) -> dict:
    # Bound connection setup and individual statements so a stuck database
    # fails the request instead of hanging it.
    if url.startswith("postgresql+asyncpg"):
        return {"timeout": timeout, "command_timeout": timeout}
    if url.startswith("sqlite"):
        return {"timeout": timeout}
    return {}


def init_database(url: str, timeout: float = 10.0, echo: bool = False) -> AsyncEngine:
    """Create the engine and session factory used by get_db()."""
    global engine, AsyncSessionLocal

    kwargs = {"echo": echo, "connect_args": _connect_args(url, timeout)}
    if not url.startswith("sqlite"):
        kwargs["pool_timeout"] = timeout

    engine = create_async_engine(url, **kwargs)
    AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)
    return engine


async def create_tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_database():
    global engine, AsyncSessionLocal
    if engine is not None:
        await engine.dispose()
    engine = None
    AsyncSessionLocal = None


async def get_db():
    async with AsyncSessionLocal() as session:
        yield session
