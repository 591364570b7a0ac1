import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from src.infrastructure.database.models import Base, OrderModel

logger = logging.getLogger(__name__)


class PostgresClient:
    """
    Owns the asyncpg engine used by the order store.

    Sessions never expire their objects on commit: the repository maps rows
    to DTOs before the session closes.
    """

    def __init__(
        self,
        db_url: str,
        pool_size: int = 5,
        max_overflow: int = 10,
        pool_timeout: int = 30,
        pool_recycle: int = 3600,
        echo: bool = False,
        connect_timeout: float = 10.0,
    ):
        if db_url.startswith("postgresql://"):
            db_url = "postgresql+asyncpg://" + db_url[len("postgresql://"):]

        self.connect_timeout = connect_timeout
        self.engine: AsyncEngine = create_async_engine(
            db_url,
            echo=echo,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_timeout=pool_timeout,
            pool_recycle=pool_recycle,
            pool_pre_ping=True,
            connect_args={"timeout": connect_timeout},
        )
        self.sessions = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        self._ready = False

    @property
    def is_initialized(self) -> bool:
        return self._ready

    async def init(self, create_schema: bool = True) -> None:
        if self._ready:
            return

        logger.info("🔌 Connecting to the order database...")
        async with self.engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            if create_schema:
                await conn.run_sync(Base.metadata.create_all, tables=[OrderModel.__table__])
                logger.info(f"🧱 Table '{OrderModel.__tablename__}' ready")

        self._ready = True
        logger.info("✅ Order database ready")

    async def close(self) -> None:
        if not self._ready:
            return
        await self.engine.dispose()
        self._ready = False
        logger.info("🔌 Order database connection pool disposed")

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        async with self.sessions() as session:
            try:
                yield session
            except Exception as e:
                await session.rollback()
                logger.error(f"❌ Rolled back order session: {e}")
                raise

    async def health_check(self) -> bool:
        async def ping() -> None:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))

        try:
            await asyncio.wait_for(ping(), timeout=self.connect_timeout)
            return True
        except (SQLAlchemyError, OSError, asyncio.TimeoutError) as e:
            logger.error(f"❌ Order database unreachable: {e!r}")
            return False
