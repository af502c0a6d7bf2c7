from collections.abc import AsyncGenerator

from sqlalchemy import MetaData, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from compliance_report.config import settings

convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=convention)


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Async engine for a SQLite (dev/tests) or Supabase Postgres URL."""
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=echo, connect_args={"check_same_thread": False})

    # Supabase pools through PgBouncer in transaction mode, which breaks
    # asyncpg's prepared statement cache.
    return create_async_engine(
        url,
        echo=echo,
        pool_size=5,
        max_overflow=5,
        pool_pre_ping=True,
        connect_args={"statement_cache_size": 0},
    )


engine = build_engine(settings.effective_database_url, echo=settings.app_debug)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def create_all_tables():
    """Create the saved_reports table if it does not exist yet.

    NOTE: user roles (user_roles table + has_role function) live in Supabase and
    are managed there; this service only owns its report table.
    """
    from compliance_report.models.saved_report import SavedReport

    async with engine.begin() as conn:
        await conn.run_sync(lambda sync_conn: SavedReport.__table__.create(sync_conn, checkfirst=True))


async def ping() -> str:
    """"connected", or the (truncated) error that made the database unreachable."""
    try:
        async with async_session() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        return f"error: {str(e)[:100]}"
    return "connected"
