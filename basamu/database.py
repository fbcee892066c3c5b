"""
Database connection and session management for SQLAlchemy 2.0.
The content repository lives in the hosted PostgreSQL database; all access is async.
"""
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy import text
from urllib.parse import urlparse
import logging
import socket

from basamu.config import settings

logger = logging.getLogger(__name__)

# Create declarative base for models
Base = declarative_base()

_engine_args = {
    "echo": False,  # Set to True for SQL query logging in development
}

# Pool settings only apply to PostgreSQL (not SQLite)
if settings.DATABASE_URL and settings.DATABASE_URL.startswith("postgresql"):
    _engine_args.update({
        "pool_size": 5,
        "max_overflow": 10,
        "pool_pre_ping": True,  # Verify connections before using (handles stale connections)
        "pool_recycle": 1800,
        "connect_args": {
            "server_settings": {
                "application_name": "basamu-api"
            }
        }
    })

LOCAL_DATABASE_URL = "sqlite+aiosqlite:///./basamu.db"

engine = create_async_engine(
    settings.DATABASE_URL if settings.DATABASE_URL else LOCAL_DATABASE_URL,
    **_engine_args
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncSession:
    """
    FastAPI dependency yielding one session per request.

    Services commit their own mutations, so nothing is committed here. Anything
    left uncommitted when the handler raises is rolled back.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception as e:
            if session.in_transaction():
                await session.rollback()
                logger.warning(f"Rolled back open transaction after {type(e).__name__}")
            raise


async def create_schema(target=None):
    """
    Create any missing content tables. Used for the local SQLite database;
    the hosted database is migrated with Alembic.
    """
    target = target or engine
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"Content tables ready on {target.url.render_as_string(hide_password=True)}")


def _validate_database_url(url: str) -> tuple[bool, str]:
    """
    Validate database URL and provide diagnostic information.
    Returns (is_valid, diagnostic_message)
    """
    if not url:
        return False, "DATABASE_URL is empty"

    try:
        parsed = urlparse(url)

        if not url.startswith(("postgresql://", "postgresql+asyncpg://", "sqlite+aiosqlite://")):
            return False, f"Unsupported database URL scheme: {parsed.scheme}"

        if url.startswith("sqlite"):
            return True, f"SQLite database at {parsed.path or ':memory:'}"

        hostname = parsed.hostname
        if not hostname:
            return False, "No hostname found in DATABASE_URL"

        try:
            socket.getaddrinfo(hostname, None)
            dns_status = "DNS resolution successful"
        except socket.gaierror as e:
            dns_status = f"DNS resolution failed: {str(e)}"

        return True, f"Hostname: {hostname}, Port: {parsed.port or 5432}, Database: {parsed.path or '/postgres'}. {dns_status}"

    except Exception as e:
        return False, f"Error parsing DATABASE_URL: {str(e)}"


async def init_db():
    """
    Verify the hosted database connection on startup, or prepare the local
    SQLite database when no DATABASE_URL is configured.
    """
    if not settings.DATABASE_URL:
        logger.warning(f"DATABASE_URL not set, using {LOCAL_DATABASE_URL}")
        await create_schema()
        return

    is_valid, diagnostic = _validate_database_url(settings.DATABASE_URL)
    if not is_valid:
        logger.error(f"Invalid DATABASE_URL: {diagnostic}")
        raise ValueError(f"Invalid DATABASE_URL: {diagnostic}")

    logger.info(f"Database URL validation: {diagnostic}")

    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            logger.info("Database connection initialized successfully")
    except Exception as e:
        error_msg = str(e)
        if "authentication failed" in error_msg.lower() or "password" in error_msg.lower():
            logger.error(
                f"Database connection failed - Authentication error: {error_msg}\n"
                f"Check the username and password in DATABASE_URL.\n"
                f"Diagnostic: {diagnostic}"
            )
        else:
            logger.error(
                f"Database connection failed ({type(e).__name__}): {error_msg}\n"
                f"Diagnostic: {diagnostic}"
            )
        raise


async def close_db():
    """Dispose of pooled connections on shutdown."""
    await engine.dispose()
    logger.info(f"Closed {engine.dialect.name} connection pool")
