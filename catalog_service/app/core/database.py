from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from ..models import CatalogServiceBase
from ..utils.logging import setup_catalog_logging as setup_logging
from .setting import CatalogSettings, get_settings

_settings = get_settings()
logger = setup_logging(
    "catalog_service.database",
    service_name=_settings.SERVICE_NAME,
    log_level=_settings.LOG_LEVEL,
    enable_file_logging=_settings.ENABLE_FILE_LOGGING,
)


def _mask_url(database_url: str) -> str:
    return make_url(database_url).render_as_string(hide_password=True)


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class CatalogServiceDatabaseManager:
    """Owns the async engine (connection pool) and session factory.

    Callers create one manager at startup, hand ``async_session_maker`` to
    repositories, and ``close()`` it at shutdown.
    """

    def __init__(
        self,
        database_url: str,
        echo: bool = False,
        pool_size: int = 25,
        max_overflow: int = 50,
        pool_timeout: int = 45,
        pool_recycle: int = 3600,
    ) -> None:
        logger.info(
            "Initializing Catalog Service database manager",
            extra={
                "operation": "database_manager_init",
                "database_url": _mask_url(database_url),
                "echo": echo,
                "event_type": "database_manager_initialization",
            },
        )

        engine_kwargs: Dict[str, Any] = {
            "echo": echo,
        }

        is_sqlite = database_url.startswith("sqlite")
        if is_sqlite:
            # SQLite configuration for development and tests
            engine_kwargs["connect_args"] = {
                "timeout": 60,
                "check_same_thread": False,
            }
            logger.info(
                "Configured SQLite database settings",
                extra={"database_type": "sqlite", "timeout": 60},
            )
        else:
            engine_kwargs.update(
                {
                    "pool_size": pool_size,
                    "max_overflow": max_overflow,
                    "pool_timeout": pool_timeout,
                    "pool_recycle": pool_recycle,
                    "pool_pre_ping": True,
                    "connect_args": {
                        "command_timeout": 30,
                        # No prepared statement cache behind pgbouncer
                        "prepared_statement_cache_size": 0,
                    },
                }
            )
            logger.info(
                "Configured PostgreSQL database settings",
                extra={
                    "database_type": "postgresql",
                    "pool_size": pool_size,
                    "max_overflow": max_overflow,
                    "pool_timeout": pool_timeout,
                    "pool_recycle": pool_recycle,
                },
            )

        self.async_engine = create_async_engine(database_url, **engine_kwargs)
        if is_sqlite:
            # SQLite ignores foreign keys unless asked per connection
            event.listen(
                self.async_engine.sync_engine, "connect", _enable_sqlite_foreign_keys
            )

        self.async_session_maker = async_sessionmaker(
            bind=self.async_engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(
        cls, settings: Optional[CatalogSettings] = None
    ) -> "CatalogServiceDatabaseManager":
        """Build a manager from the service settings."""
        settings = settings or get_settings()
        logger.info(
            "Building database manager from settings",
            extra={
                "operation": "database_manager_from_settings",
                "environment": settings.ENVIRONMENT,
            },
        )
        return cls(
            database_url=settings.CATALOG_DATABASE_URL,
            echo=settings.DEBUG,
            pool_size=settings.DATABASE_POOL_SIZE,
            max_overflow=settings.DATABASE_MAX_OVERFLOW,
            pool_timeout=settings.DATABASE_POOL_TIMEOUT,
            pool_recycle=settings.DATABASE_POOL_RECYCLE,
        )

    async def create_tables(self) -> None:
        """Create all Catalog Service database tables."""
        async with self.async_engine.begin() as conn:
            await conn.run_sync(CatalogServiceBase.metadata.create_all, checkfirst=True)
        logger.info(
            "Database tables created successfully",
            extra={
                "operation": "create_tables",
                "event_type": "database_tables_created",
            },
        )

    async def get_async_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Yield a session that is closed when the consumer is done."""
        async with self.async_session_maker() as session:
            yield session

    async def close(self) -> None:
        """Dispose the engine and every pooled connection."""
        logger.info(
            "Closing Catalog Service database connections",
            extra={"operation": "database_close", "event_type": "database_shutdown"},
        )
        await self.async_engine.dispose()
