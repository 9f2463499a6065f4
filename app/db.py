from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings
from app.models.base import Base

DATABASE_URL = settings.database_url
if not DATABASE_URL:
    raise ValueError("❌ DATABASE_URL is not set!")


def enable_sqlite_foreign_keys(async_engine):
    """SQLite ignores ON DELETE rules unless the pragma is set per connection."""
    if async_engine.dialect.name != "sqlite":
        return

    @event.listens_for(async_engine.sync_engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# Create engine
engine = create_async_engine(DATABASE_URL, echo=settings.database_echo)
enable_sqlite_foreign_keys(engine)

# Async session maker
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


# Dependency
async def get_db():
    async with async_session() as session:
        yield session


async def create_db_and_tables():
    import app.models  # triggers __init__.py

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# Reusable engine getter
def get_async_engine():
    return engine
