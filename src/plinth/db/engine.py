import os

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///plinth.db"


def get_engine(db_url: str | None = None) -> AsyncEngine:
    url = db_url or os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)
    return create_async_engine(url, future=True)
