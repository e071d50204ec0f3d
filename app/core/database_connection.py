"""
Database Connection Manager
---------------------------
Manages relational database connections with the SQLAlchemy async engine.
PostgreSQL (asyncpg) in deployment, SQLite (aiosqlite) for local runs and tests.
"""

from typing import Any, Dict, Optional, AsyncGenerator, List, Union
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.engine import make_url
from sqlalchemy import text
from loguru import logger

from app.core.config_manager import settings


class DatabaseManager:
    """
    Manages database connections and operations using SQLAlchemy async engine.

    A single engine and sessionmaker are shared by every service in the process.
    Each ``get_session()`` block is one transaction: committed when the block
    exits normally, rolled back when it raises.
    """

    _instance = None
    _engine = None
    _sessionmaker = None

    def __new__(cls, *args, **kwargs):
        """Implement singleton pattern."""
        if cls._instance is None:
            cls._instance = super(DatabaseManager, cls).__new__(cls)
        return cls._instance

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")
        return self._engine

    async def initialize(self, database_url: Optional[str] = None) -> None:
        """
        Initialize SQLAlchemy async engine.

        Args:
            database_url: Optional URL override, defaults to settings.database_url
        """
        if self._engine is not None:
            logger.warning("Database engine already initialized")
            return

        database_url = database_url or settings.database_url
        url = make_url(database_url)

        logger.info(
            f"Initializing database connection: backend={url.get_backend_name()} "
            f"host={url.host or '-'} database={url.database}"
        )

        engine_options: Dict[str, Any] = {"echo": False}
        if url.get_backend_name() == "postgresql":
            engine_options.update(
                pool_size=settings.database_pool_size,
                max_overflow=settings.database_max_overflow,
                pool_pre_ping=True,  # Health checks
                pool_recycle=3600,  # Recycle connections every hour
                pool_timeout=30,
            )

        try:
            self._engine = create_async_engine(url, **engine_options)
            self._sessionmaker = async_sessionmaker(
                bind=self._engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
            logger.info(
                "SQLAlchemy async engine and sessionmaker initialized successfully"
            )
        except Exception as e:
            logger.error(f"Error initializing SQLAlchemy engine: {e}")
            raise

    async def close(self) -> None:
        """Close SQLAlchemy engine."""
        if self._engine is not None:
            logger.info("Disposing SQLAlchemy engine")
            await self._engine.dispose()
            self._engine = None
            self._sessionmaker = None
            logger.info("SQLAlchemy engine disposed")

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Get a SQLAlchemy async session from the sessionmaker.

        Yields:
            AsyncSession: Active SQLAlchemy session with automatic
                         commit on success or rollback on exception

        Raises:
            RuntimeError: If database not initialized

        Example:
            async with db_manager.get_session() as session:
                result = await session.execute(text("SELECT 1"))
                value = result.scalar()
        """
        if not self._sessionmaker:
            raise RuntimeError("Database not initialized. Call initialize() first.")

        session = self._sessionmaker()
        try:
            yield session
            await session.commit()
            logger.debug("Session committed successfully")
        except Exception as e:
            await session.rollback()
            logger.debug(f"Session rolled back due to {type(e).__name__}")
            raise
        finally:
            await session.close()

    async def execute_raw_query(
        self,
        query: str,
        params: Optional[Dict[str, Any]] = None,
        fetch_mode: str = "all",
    ) -> Union[List[Dict[str, Any]], Dict[str, Any], int, None]:
        """
        Execute a raw SQL query using SQLAlchemy's text() function.

        Args:
            query: SQL query string
            params: Query parameters as dictionary
            fetch_mode: Result fetch mode ('all', 'one', 'scalar', 'count', or None)

        Returns:
            Query results based on fetch mode:
            - 'all': List of dictionaries (rows)
            - 'one': Single dictionary (row)
            - 'scalar': Single value
            - 'count': Number of rows affected
            - None: No return value
        """
        async with self.get_session() as session:
            result = await session.execute(text(query), params or {})

            if fetch_mode == "all":
                return [dict(row) for row in result.mappings().all()]
            elif fetch_mode == "one":
                row = result.mappings().one_or_none()
                return dict(row) if row else None
            elif fetch_mode == "scalar":
                return result.scalar_one_or_none()
            elif fetch_mode == "count":
                return result.rowcount
            else:
                return None


# Global database manager instance
db_manager = DatabaseManager()
