from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from functools import lru_cache

from .config import Settings, get_settings

Base = declarative_base()


def create_engine_for(settings: Settings) -> AsyncEngine:
    # Supabase/PostgreSQL with PgBouncer needs statement_cache_size=0
    # SQLite doesn't support these parameters or pool sizing
    connect_args = {}
    pool_args = {}
    if "postgresql" in settings.database_url:
        connect_args = {
            "statement_cache_size": 0,
            "prepared_statement_cache_size": 0,
        }
        pool_args = {
            "pool_recycle": 300,  # Recycle connections every 5 minutes
            "pool_size": 10,
            "max_overflow": 20,
        }

    return create_async_engine(
        settings.database_url,
        echo=settings.debug,
        connect_args=connect_args,
        pool_pre_ping=True,  # Verify connections before use
        **pool_args,
    )


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db(engine: AsyncEngine):
    from . import models  # noqa: F401  register tables on Base.metadata

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@lru_cache()
def get_db_engine() -> AsyncEngine:
    """Process-wide engine for the configured database"""
    return create_engine_for(get_settings())
