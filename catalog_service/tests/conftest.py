"""
Pytest configuration and fixtures for catalog service tests.
"""

import os
from typing import Any, AsyncGenerator, Awaitable, Callable

import pytest
from sqlalchemy import select

# Set up test environment variables before importing anything else
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_LEVEL", "INFO")
os.environ.setdefault("SERVICE_NAME", "catalog-service")
os.environ.setdefault("CATALOG_DATABASE_URL", "sqlite+aiosqlite:///catalog_test.db")

# Import all models FIRST to ensure they're registered with SQLAlchemy
from catalog_service.app.core.database import CatalogServiceDatabaseManager
from catalog_service.app.models.inventory import Inventory  # noqa: F401
from catalog_service.app.models.product import Product  # noqa: F401
from catalog_service.app.models.shop import Shop
from catalog_service.app.repository.product_repository import (
    InventoryProductRepository,
)


@pytest.fixture
async def test_database_manager(
    tmp_path,
) -> AsyncGenerator[CatalogServiceDatabaseManager, None]:
    """Database manager backed by a fresh SQLite file per test."""
    manager = CatalogServiceDatabaseManager(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'catalog_test.db'}",
        echo=False,
    )
    await manager.create_tables()
    yield manager
    await manager.close()


@pytest.fixture
def test_session_maker(test_database_manager: CatalogServiceDatabaseManager) -> Any:
    return test_database_manager.async_session_maker


@pytest.fixture
def repository(test_session_maker: Any) -> InventoryProductRepository:
    return InventoryProductRepository(test_session_maker)


@pytest.fixture
def make_shop(test_session_maker: Any) -> Callable[..., Awaitable[int]]:
    """Factory inserting a shop row and returning its id."""

    async def _make_shop(
        name: str = "Corner Shop", is_active: bool = True, is_deleted: bool = False
    ) -> int:
        async with test_session_maker() as session:
            shop = Shop(name=name, is_active=is_active, is_deleted=is_deleted)
            session.add(shop)
            await session.commit()
            return shop.shop_id

    return _make_shop


@pytest.fixture
def fetch_rows(test_session_maker: Any) -> Callable[..., Awaitable[list]]:
    """Read raw rows, soft-deleted ones included, in a fresh session."""

    async def _fetch_rows(model: Any, *criteria: Any) -> list:
        async with test_session_maker() as session:
            result = await session.execute(select(model).where(*criteria))
            return list(result.scalars().all())

    return _fetch_rows
