# crms/core/database.py

import ssl
from typing import AsyncGenerator

from dotenv import load_dotenv
from loguru import logger
from sqlmodel import SQLModel
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine
)
from sqlalchemy.pool import NullPool, StaticPool
from sqlalchemy import event, text

from crms.core.config import settings

# ----------------------------------------------------
# Load environment
# ----------------------------------------------------
load_dotenv()
DATABASE_URL = settings.DATABASE_URL

if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL is not set")


# ----------------------------------------------------
# SSL for managed Postgres poolers
# ----------------------------------------------------
def make_ssl():
    ctx = ssl.create_default_context()
    if not settings.DB_SSL_VERIFY:
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
    return ctx


def is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite leaves foreign key enforcement off on every new connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# ----------------------------------------------------
# Engine
# ----------------------------------------------------
def build_engine(url: str):
    """
    SQLite (local dev and tests) shares one connection through StaticPool.
    Postgres goes through asyncpg with prepared statements disabled so it
    works behind a transaction pooler.
    """
    if is_sqlite(url):
        sqlite_engine = create_async_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        event.listen(sqlite_engine.sync_engine, "connect", enable_sqlite_foreign_keys)
        return sqlite_engine

    connect_args = {
        "statement_cache_size": 0,            # disable prepared statements
        "prepared_statement_name_func": None,
    }
    if settings.ENV == "prod":
        connect_args["ssl"] = make_ssl()

    logger.info("Configuring database engine (pooler mode)")
    return create_async_engine(
        url,
        echo=False,
        connect_args=connect_args,
        pool_pre_ping=True,
        poolclass=NullPool,  # the pooler handles pooling
    )


engine = build_engine(DATABASE_URL)


# ----------------------------------------------------
# Sessions
# ----------------------------------------------------
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


# ----------------------------------------------------
# Create tables
# ----------------------------------------------------
async def init_db(bind=None):
    # models must be imported so their tables are registered on the metadata
    import crms.models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


# ----------------------------------------------------
# Test Connection
# ----------------------------------------------------
async def test_connection():
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
