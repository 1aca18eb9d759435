"""
Async database manager behind the SQL entity store.
- One engine per process, pool tuned for PostgreSQL
- Creates a missing PostgreSQL database on first start
- Imports the entity row modules and creates their tables
"""
import logging
from importlib import import_module
from asyncio import current_task
from contextlib import asynccontextmanager
from typing import AsyncGenerator, List, Optional
import sqlalchemy
from sqlalchemy import inspect, text
from sqlalchemy.engine.url import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_scoped_session,
    async_sessionmaker,
    create_async_engine,
)
import asyncpg
from metierflow.core.config import settings
from metierflow.models.base import Base

logger = logging.getLogger(__name__)


class DatabaseSessionManager:
    """Owns the engine and hands out one committed-or-rolled-back session per unit of work."""

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url or settings.DATABASE_URL
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker] = None

    @property
    def is_postgres(self) -> bool:
        return make_url(self.database_url).get_backend_name() == "postgresql"

    def _create_engine(self) -> AsyncEngine:
        options = {"pool_pre_ping": True, "echo": settings.DATABASE_ECHO}
        if self.is_postgres:
            options.update(pool_size=15, max_overflow=5, pool_timeout=30, pool_recycle=300)
        return create_async_engine(self.database_url, **options)

    async def init(self):
        """Connect, create the database when PostgreSQL reports it missing, then create entity tables."""
        self.engine = self._create_engine()
        try:
            try:
                await self._create_tables()
            except asyncpg.exceptions.InvalidCatalogNameError:
                logger.warning("⚠️ Database does not exist yet, creating it...")
                if not await self._create_database():
                    raise
                await self._create_tables()
        except Exception as e:
            logger.error(f"❌ Database initialization failed: {e}")
            await self.close()
            raise

        self.session_factory = async_sessionmaker(
            bind=self.engine,
            expire_on_commit=False,
            autoflush=False
        )

    async def _create_tables(self):
        async with self.engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            for module in settings.DB_MODELS:
                import_module(module)
            logger.info(f"📝 Entity tables registered: {sorted(Base.metadata.tables)}")
            await conn.run_sync(Base.metadata.create_all)
        logger.info("✅ Entity tables ready")

    async def _create_database(self) -> bool:
        if not self.is_postgres:
            return False
        url = make_url(self.database_url)
        admin = create_async_engine(url.set(database="postgres"), isolation_level="AUTOCOMMIT")
        try:
            async with admin.connect() as conn:
                await conn.execute(text(f'CREATE DATABASE "{url.database}"'))
            logger.info(f"✅ Database '{url.database}' created")
            return True
        except (asyncpg.exceptions.PostgresError, sqlalchemy.exc.SQLAlchemyError) as e:
            logger.error(f"❌ Failed to create database '{url.database}': {e}")
            return False
        finally:
            await admin.dispose()

    @property
    def session(self) -> async_scoped_session:
        """Session registry scoped to the running asyncio task"""
        if not self.session_factory:
            raise RuntimeError("DatabaseSessionManager not initialized")
        return async_scoped_session(self.session_factory, scopefunc=current_task)

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Commit when the block exits cleanly, roll back and re-raise otherwise."""
        async with self.session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def table_names(self) -> List[str]:
        async with self.engine.connect() as conn:
            return await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())

    async def close(self):
        """Dispose of the connection pool"""
        if self.engine:
            await self.engine.dispose()
        self.engine = None
        self.session_factory = None


session_manager = DatabaseSessionManager()
