"""Database Connection, Session and Transaction Management"""

import asyncio
import logging
import re
import ssl
from typing import AsyncGenerator, Awaitable, Callable, Optional, TypeVar

from sqlalchemy.exc import DBAPIError, SQLAlchemyError, TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base

from revenue_ledger.config import settings
from revenue_ledger.core.exceptions import LedgerError, StorageFailureError, StorageTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")

database_url = settings.async_database_url

# asyncpg uses ssl=SSLContext or True, not sslmode; strip sslmode from URL (asyncpg#737, SQLAlchemy#6275)
connect_args: dict = {}
engine_kwargs: dict = {}
if database_url.startswith("postgresql+asyncpg"):
    if re.search(r"[?&]sslmode=(require|required|verify-full)", database_url, re.I):
        _ssl_ctx = ssl.create_default_context()
        _ssl_ctx.check_hostname = False
        _ssl_ctx.verify_mode = ssl.CERT_NONE
        connect_args["ssl"] = _ssl_ctx
        database_url = re.sub(r"[?&]sslmode=[^&]+", "", database_url, flags=re.I)
        database_url = re.sub(r"\?&", "?", database_url).rstrip("?")
    # Server-side bound on every statement; exceeded statements surface as StorageTimeoutError
    connect_args["server_settings"] = {"statement_timeout": str(settings.DB_STATEMENT_TIMEOUT_MS)}
    engine_kwargs.update(
        pool_pre_ping=True,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
    )

engine = create_async_engine(
    database_url,
    connect_args=connect_args,
    echo=settings.DEBUG,
    future=True,
    **engine_kwargs,
)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

# Base class for declarative models
Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function to get database session.
    
    Yields:
        AsyncSession: Database session, scoped to one request
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def _is_timeout(exc: SQLAlchemyError) -> bool:
    if isinstance(exc, PoolTimeoutError):
        return True
    if isinstance(exc, DBAPIError):
        text = str(exc.orig).lower()
        return "timeout" in text or "canceling statement" in text
    return False


async def _rollback(db: AsyncSession, description: str) -> None:
    try:
        await db.rollback()
    except SQLAlchemyError:
        # The connection is already unusable; the pool discards it on close
        logger.error("Rollback failed", extra={"operation": description}, exc_info=True)


async def run_in_transaction(
    db: AsyncSession,
    operation: Callable[[], Awaitable[T]],
    *,
    description: str = "transaction",
    timeout: Optional[float] = None,
) -> T:
    """
    Run ``operation`` as one all-or-nothing unit on ``db``.

    Commits when the operation returns. On any failure the session is rolled
    back before the error propagates: ledger errors are re-raised unchanged,
    SQLAlchemy errors become StorageFailureError, and timeouts (client side
    or server statement timeout) become StorageTimeoutError.

    Args:
        db: Database session
        operation: Zero-argument coroutine function doing the writes
        description: Name used in operational logs
        timeout: Seconds before the transaction is abandoned
            (defaults to DB_TRANSACTION_TIMEOUT_SECONDS)

    Returns:
        Whatever ``operation`` returned
    """
    limit = settings.DB_TRANSACTION_TIMEOUT_SECONDS if timeout is None else timeout
    try:
        result = await asyncio.wait_for(operation(), timeout=limit)
        await db.commit()
        return result
    except asyncio.TimeoutError as exc:
        await _rollback(db, description)
        logger.error("Transaction timed out", extra={"operation": description, "timeout": limit})
        raise StorageTimeoutError() from exc
    except LedgerError:
        await _rollback(db, description)
        raise
    except SQLAlchemyError as exc:
        await _rollback(db, description)
        if _is_timeout(exc):
            logger.error("Statement timed out", extra={"operation": description}, exc_info=True)
            raise StorageTimeoutError() from exc
        logger.error(f"Transaction failed: {exc}", extra={"operation": description}, exc_info=True)
        raise StorageFailureError() from exc


async def init_db() -> None:
    """Initialize database tables (for development only)"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close database connections"""
    await engine.dispose()
