"""
Database manager for Pipeline Library.

This module provides a centralized database connection manager
used to build the SQL pipeline store.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from pipeline_library import models  # noqa: F401  (registers tables in the metadata)

from ..settings import DatabaseDriver, Settings, settings
from ..utils.logger import logger


class DatabaseManager:
    """
    Manages database connections and sessions without global state.

    This class provides lazy initialization of the async engine and the
    session factory handed to the pipeline store.
    """

    def __init__(self, config: Settings = settings) -> None:
        """Initialize the database manager with empty connections."""
        self.config = config
        self._async_engine: AsyncEngine | None = None
        self._async_session_factory: async_sessionmaker[AsyncSession] | None = None

    def _create_async_engine(self) -> AsyncEngine:
        """Create and configure the asynchronous database engine."""
        url = self.config.database_url

        if self.config.database_driver == DatabaseDriver.SQLITE:
            engine = create_async_engine(
                url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool if self.config.debug else None,
                echo=self.config.debug,
            )
        else:
            engine = create_async_engine(
                url,
                echo=self.config.debug,
                pool_size=20,
                max_overflow=0,
            )

        logger.info(f"Async database engine created: {self.config.database_driver.value}")
        return engine

    @property
    def async_engine(self) -> AsyncEngine:
        """Get or create the asynchronous database engine."""
        if self._async_engine is None:
            self._async_engine = self._create_async_engine()
        return self._async_engine

    @property
    def async_session_factory(self) -> async_sessionmaker[AsyncSession]:
        """Get or create the async session factory."""
        if self._async_session_factory is None:
            self._async_session_factory = async_sessionmaker(
                self.async_engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
        return self._async_session_factory

    async def create_db_and_tables_async(self) -> None:
        """Create database tables asynchronously."""
        logger.info("Creating database tables (async)...")
        async with self.async_engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        logger.info("Database tables created (async)")

    async def close(self) -> None:
        """Close all database connections."""
        if self._async_engine:
            await self._async_engine.dispose()
            self._async_engine = None
            self._async_session_factory = None
            logger.info("Async database engine disposed")

    def __repr__(self) -> str:
        """String representation of the DatabaseManager."""
        return (
            f"<DatabaseManager("
            f"driver={self.config.database_driver.value}, "
            f"async_initialized={self._async_engine is not None}"
            f")>"
        )


# Create a singleton instance
db_manager = DatabaseManager()
