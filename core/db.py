from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, TypeVar

from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception, stop_after_attempt, wait_exponential

from core.config import get_settings
from core.logging import logger
from core.models import Base

settings = get_settings()

T = TypeVar("T")

SERIALIZATION_FAILURE = "40001"
DEADLOCK_DETECTED = "40P01"


def engine_options(url: str) -> dict[str, Any]:
    options: dict[str, Any] = dict(echo=False, future=True, pool_pre_ping=True)
    if settings.db_isolation_level:
        options["isolation_level"] = settings.db_isolation_level
    if not url.startswith("sqlite"):
        options.update(pool_recycle=1800, pool_size=10, max_overflow=20)
    return options


ENGINE_OPTIONS = engine_options(settings.database_url)

async_engine = create_async_engine(settings.database_url, **ENGINE_OPTIONS)
AsyncSessionLocal = async_sessionmaker(async_engine, expire_on_commit=False, class_=AsyncSession)


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def is_transient(exc: DBAPIError) -> bool:
    """Whether retrying the whole transaction may succeed."""

    if isinstance(exc, IntegrityError):
        return False
    if exc.connection_invalidated:
        return True
    code = getattr(exc.orig, "sqlstate", None) or getattr(exc.orig, "pgcode", None)
    if code in {SERIALIZATION_FAILURE, DEADLOCK_DETECTED}:
        return True
    return isinstance(exc, (OperationalError, InterfaceError))


def _retryable(exc: BaseException) -> bool:
    return isinstance(exc, DBAPIError) and is_transient(exc)


def _log_retry(state: RetryCallState) -> None:
    error = state.outcome.exception() if state.outcome else None
    logger.bind(event="transient_retry", attempt=state.attempt_number).warning(
        "Transient storage error, retrying transaction: {}", error
    )


async def run_in_transaction(
    work: Callable[[AsyncSession], Awaitable[T]],
    *,
    retries: int | None = None,
) -> T:
    """Run ``work`` in its own committed transaction.

    Transient storage errors roll back and rerun the whole unit of work
    ``settings.transient_retry_attempts`` times before being raised.
    """

    allowed = settings.transient_retry_attempts if retries is None else retries
    async for attempt in AsyncRetrying(
        wait=wait_exponential(multiplier=0.05, max=1),
        stop=stop_after_attempt(allowed + 1),
        retry=retry_if_exception(_retryable),
        before_sleep=_log_retry,
        reraise=True,
    ):
        with attempt:
            async with session_scope() as session:
                result = await work(session)
    return result


__all__ = [
    "Base",
    "ENGINE_OPTIONS",
    "AsyncSessionLocal",
    "async_engine",
    "is_transient",
    "run_in_transaction",
    "session_scope",
]
