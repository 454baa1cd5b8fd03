"""
Async database access for the knowledge-base document store.

Retrieval only reads rag_documents, so sessions are never committed: they are
rolled back on error and closed when the request ends.
"""

import os
import logging
from dataclasses import dataclass
from typing import AsyncGenerator, Optional
from contextlib import asynccontextmanager
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, AsyncEngine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

Base = declarative_base()


@dataclass
class DatabaseConfig:
    """Connection and pool settings for the document store database"""
    host: str = 'localhost'
    port: int = 5432
    database: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    url: Optional[str] = None
    pool_size: int = 10
    max_overflow: int = 20
    pool_timeout: int = 30
    pool_recycle: int = 3600
    echo: bool = False
    application_name: str = 'kb-retrieval-engine'

    @classmethod
    def from_env(cls) -> "DatabaseConfig":
        """Build settings from DB_* variables; DATABASE_URL wins when set"""
        return cls(
            host=os.getenv('DB_HOST', 'localhost'),
            port=int(os.getenv('DB_PORT', '5432')),
            database=os.getenv('DB_NAME'),
            username=os.getenv('DB_USER'),
            password=os.getenv('DB_PASSWORD'),
            url=os.getenv('DATABASE_URL'),
            pool_size=int(os.getenv('DB_POOL_SIZE', '10')),
            max_overflow=int(os.getenv('DB_MAX_OVERFLOW', '20')),
            pool_timeout=int(os.getenv('DB_POOL_TIMEOUT', '30')),
            pool_recycle=int(os.getenv('DB_POOL_RECYCLE', '3600')),
            echo=os.getenv('DB_ECHO', 'false').lower() == 'true',
        )

    @property
    def async_url(self) -> str:
        if self.url:
            # accept plain postgresql:// URLs from hosting providers
            return self.url.replace('postgresql://', 'postgresql+asyncpg://', 1)
        return f"postgresql+asyncpg://{self.username}:{self.password}@{self.host}:{self.port}/{self.database}"


class DatabaseManager:
    """Lazily created async engine and session factory for the document store"""

    def __init__(self, config: Optional[DatabaseConfig] = None):
        self.config = config or DatabaseConfig.from_env()
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker] = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            logger.info(f"Creating document store engine for {self.config.host}:{self.config.port}")
            self._engine = create_async_engine(
                self.config.async_url,
                pool_size=self.config.pool_size,
                max_overflow=self.config.max_overflow,
                pool_timeout=self.config.pool_timeout,
                pool_recycle=self.config.pool_recycle,
                pool_pre_ping=True,
                echo=self.config.echo,
                connect_args={'server_settings': {'application_name': self.config.application_name}}
            )
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker:
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                bind=self.engine,
                class_=AsyncSession,
                autoflush=False,
                expire_on_commit=False
            )
        return self._session_factory

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Read-only session scope"""
        async with self.session_factory() as session:
            try:
                yield session
            except Exception as e:
                await session.rollback()
                logger.error(f"Document store session error: {e}")
                raise

    async def ping(self) -> bool:
        """True when the database answers a trivial query"""
        try:
            async with self.session() as session:
                return (await session.execute(text("SELECT 1"))).scalar() == 1
        except Exception as e:
            logger.error(f"Document store ping failed: {e}")
            return False

    async def ensure_schema(self) -> None:
        """Create rag_documents and its indexes when missing"""
        from database import models  # noqa: F401  registers tables on Base.metadata

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            logger.info("Document store engine disposed")
        self._engine = None
        self._session_factory = None


db_manager = DatabaseManager()


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one read-only session per request"""
    async with db_manager.session() as session:
        yield session


async def init_database() -> bool:
    """Ensure the schema exists and the database is reachable.

    Returns False instead of raising so the caller decides whether to abort startup.
    """
    try:
        await db_manager.ensure_schema()
    except Exception as e:
        logger.error(f"Document store schema setup failed: {e}")
        return False

    if not await db_manager.ping():
        logger.error("Document store is unreachable after schema setup")
        return False

    logger.info("Document store ready")
    return True
