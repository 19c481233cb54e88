"""Inventory-aware product repository"""

import math
from datetime import datetime
from typing import Any, List, Optional, Tuple, Union

from sqlalchemy import (
    ColumnElement,
    Select,
    Update,
    and_,
    distinct,
    func,
    or_,
    select,
    update,
)
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.exceptions import (
    InventoryConflictError,
    NoFieldsToUpdateError,
    StorageError,
    is_unique_violation,
)
from ..models.base import utcnow
from ..models.inventory import Inventory
from ..models.product import Product
from ..models.shop import Shop
from ..schemas.inventory import AvailabilityResponse, InventoryCreate, InventoryResponse
from ..schemas.product import (
    PaginationMeta,
    ProductCreate,
    ProductDetail,
    ProductListItem,
    ProductListResponse,
    ProductResponse,
    ProductUpdate,
)
from ..utils.logging import setup_catalog_logging as setup_logging

logger = setup_logging("catalog_service.repository")

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

LIKE_ESCAPE = "\\"

_PRODUCT_COLUMNS = (
    Product.product_id,
    Product.name,
    Product.description,
    Product.base_price,
    Product.image_url,
    Product.created_at,
)

_STOCK_COLUMNS = (
    Inventory.id.label("inventory_id"),
    Inventory.shop_id,
    Inventory.stock_quantity,
    Inventory.selling_price,
    Inventory.unit,
    Shop.name.label("shop_name"),
)


class InventoryProductRepository:
    """Reads and writes products, their per-shop inventory and shop metadata.

    Rows flagged ``is_deleted`` are invisible to every read, and only active
    shops take part in listings. Each public method opens one session from
    ``session_maker`` and releases it before returning or raising.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _paginate(page: Optional[int], limit: Optional[int]) -> Tuple[int, int, int]:
        safe_page = DEFAULT_PAGE if page is None else max(1, int(page))
        safe_limit = (
            DEFAULT_PAGE_SIZE
            if limit is None
            else min(MAX_PAGE_SIZE, max(1, int(limit)))
        )
        offset = (safe_page - 1) * safe_limit
        return safe_page, safe_limit, offset

    @staticmethod
    def _escape_like(term: str) -> str:
        return (
            term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
            .replace("%", LIKE_ESCAPE + "%")
            .replace("_", LIKE_ESCAPE + "_")
        )

    @staticmethod
    def _join_active_stock(query: Select) -> Select:
        return (
            query.select_from(Product)
            .join(Inventory, Inventory.product_id == Product.product_id)
            .join(Shop, Shop.shop_id == Inventory.shop_id)
        )

    def _listing_conditions(
        self, search: Optional[str], shop_id: Optional[int]
    ) -> List[ColumnElement[bool]]:
        conditions: List[ColumnElement[bool]] = [
            Product.is_deleted.is_(False),
            Inventory.is_deleted.is_(False),
            Shop.is_deleted.is_(False),
            Shop.is_active.is_(True),
        ]

        if shop_id is not None:
            conditions.append(Inventory.shop_id == shop_id)

        if search:
            pattern = f"%{self._escape_like(search)}%"
            conditions.append(
                or_(
                    Product.name.ilike(pattern, escape=LIKE_ESCAPE),
                    Product.description.ilike(pattern, escape=LIKE_ESCAPE),
                )
            )

        return conditions

    @staticmethod
    def _inventory_soft_delete(product_id: int, deleted_at: datetime) -> Update:
        return (
            update(Inventory)
            .where(Inventory.product_id == product_id, Inventory.is_deleted.is_(False))
            .values(is_deleted=True, deleted_at=deleted_at)
            .execution_options(synchronize_session=False)
        )

    @staticmethod
    def _product_soft_delete(product_id: int, deleted_at: datetime) -> Update:
        return (
            update(Product)
            .where(Product.product_id == product_id, Product.is_deleted.is_(False))
            .values(is_deleted=True, deleted_at=deleted_at)
            .execution_options(synchronize_session=False)
        )

    @staticmethod
    def _storage_error(
        operation: str, error: SQLAlchemyError, **context: Any
    ) -> StorageError:
        # Driver message without SQLAlchemy's statement/parameter dump
        detail = str(getattr(error, "orig", None) or error)
        logger.error(
            f"{operation} failed: {detail}",
            extra={"operation": operation, "error": detail, **context},
            exc_info=error,
        )
        return StorageError(detail, operation=operation)

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    async def list_products(
        self,
        page: Optional[int] = DEFAULT_PAGE,
        limit: Optional[int] = DEFAULT_PAGE_SIZE,
        search: Optional[str] = None,
        shop_id: Optional[int] = None,
    ) -> ProductListResponse:
        """List stocked products, newest first, one row per shop offering them.

        ``total`` counts distinct products while ``items`` holds joined
        product/shop rows, so a page may show the same product twice.
        """
        safe_page, safe_limit, offset = self._paginate(page, limit)
        conditions = self._listing_conditions(search, shop_id)

        count_query = self._join_active_stock(
            select(func.count(distinct(Product.product_id)))
        ).where(*conditions)

        data_query = (
            self._join_active_stock(select(*_PRODUCT_COLUMNS, *_STOCK_COLUMNS))
            .where(*conditions)
            .order_by(
                Product.created_at.desc(), Product.product_id.desc(), Inventory.id
            )
            .offset(offset)
            .limit(safe_limit)
        )

        try:
            async with self.session_maker() as session:
                count_result = await session.execute(count_query)
                total = count_result.scalar() or 0

                result = await session.execute(data_query)
                rows = result.all()
        except SQLAlchemyError as e:
            raise self._storage_error(
                "list_products", e, page=safe_page, limit=safe_limit, shop_id=shop_id
            ) from e

        return ProductListResponse(
            items=[ProductListItem(**row._mapping) for row in rows],
            pagination=PaginationMeta(
                total=total,
                page=safe_page,
                limit=safe_limit,
                total_pages=math.ceil(total / safe_limit),
            ),
        )

    async def get_product_by_id(
        self, product_id: int, shop_id: Optional[int] = None
    ) -> Union[ProductDetail, ProductResponse, None]:
        """Get a visible product, optionally with its stock in one shop.

        With ``shop_id`` the stock and shop fields of the result are None
        when that shop holds no active inventory row for the product.
        """
        try:
            async with self.session_maker() as session:
                if shop_id is not None:
                    query = (
                        select(*_PRODUCT_COLUMNS, *_STOCK_COLUMNS)
                        .select_from(Product)
                        .outerjoin(
                            Inventory,
                            and_(
                                Inventory.product_id == Product.product_id,
                                Inventory.shop_id == shop_id,
                                Inventory.is_deleted.is_(False),
                            ),
                        )
                        .outerjoin(Shop, Shop.shop_id == Inventory.shop_id)
                        .where(
                            Product.product_id == product_id,
                            Product.is_deleted.is_(False),
                            or_(Shop.is_deleted.is_(False), Shop.shop_id.is_(None)),
                        )
                    )
                    result = await session.execute(query)
                    row = result.first()
                    return ProductDetail(**row._mapping) if row else None

                query = select(Product).where(
                    Product.product_id == product_id, Product.is_deleted.is_(False)
                )
                result = await session.execute(query)
                product = result.scalar_one_or_none()
                return ProductResponse.model_validate(product) if product else None
        except SQLAlchemyError as e:
            raise self._storage_error(
                "get_product_by_id", e, product_id=product_id, shop_id=shop_id
            ) from e

    async def check_availability(
        self, product_id: int, shop_id: int
    ) -> Optional[AvailabilityResponse]:
        """Report stock for an active product in an active shop, or None."""
        query = (
            select(Inventory.stock_quantity)
            .select_from(Inventory)
            .join(Product, Product.product_id == Inventory.product_id)
            .join(Shop, Shop.shop_id == Inventory.shop_id)
            .where(
                Product.product_id == product_id,
                Inventory.shop_id == shop_id,
                Product.is_deleted.is_(False),
                Inventory.is_deleted.is_(False),
                Shop.is_active.is_(True),
                Shop.is_deleted.is_(False),
            )
        )

        try:
            async with self.session_maker() as session:
                result = await session.execute(query)
                stock_quantity = result.scalars().first()
        except SQLAlchemyError as e:
            raise self._storage_error(
                "check_availability", e, product_id=product_id, shop_id=shop_id
            ) from e

        if stock_quantity is None:
            return None

        return AvailabilityResponse(
            exists=True,
            available=stock_quantity > 0,
            stock_quantity=stock_quantity,
        )

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #

    async def create_product(self, product_data: ProductCreate) -> ProductResponse:
        """Create a new product"""
        product = Product(
            name=product_data.name,
            description=product_data.description,
            base_price=product_data.base_price,
            image_url=product_data.image_url,
        )

        try:
            async with self.session_maker() as session:
                session.add(product)
                await session.commit()
                await session.refresh(product)
                return ProductResponse.model_validate(product)
        except SQLAlchemyError as e:
            raise self._storage_error(
                "create_product", e, product_name=product_data.name
            ) from e

    async def update_product(
        self, product_id: int, product_data: ProductUpdate
    ) -> Optional[ProductResponse]:
        """Patch the fields the caller set; None if the product is not visible."""
        values = product_data.changes()
        if not values:
            raise NoFieldsToUpdateError()

        stmt = (
            update(Product)
            .where(Product.product_id == product_id, Product.is_deleted.is_(False))
            .values(**values)
            .execution_options(synchronize_session=False)
        )

        try:
            async with self.session_maker() as session:
                result = await session.execute(stmt)
                if result.rowcount == 0:
                    return None

                await session.commit()
                product = await session.get(Product, product_id)
                return ProductResponse.model_validate(product) if product else None
        except SQLAlchemyError as e:
            raise self._storage_error(
                "update_product", e, product_id=product_id, fields=sorted(values)
            ) from e

    async def add_inventory(
        self, shop_id: int, product_id: int, inventory_data: InventoryCreate
    ) -> InventoryResponse:
        """Stock a product in a shop.

        Raises InventoryConflictError when the shop already has an active
        row for the product.
        """
        inventory = Inventory(
            shop_id=shop_id,
            product_id=product_id,
            stock_quantity=inventory_data.stock_quantity,
            selling_price=inventory_data.selling_price,
            unit=inventory_data.unit,
            is_deleted=False,
        )

        try:
            async with self.session_maker() as session:
                session.add(inventory)
                await session.commit()
                await session.refresh(inventory)
                return InventoryResponse.model_validate(inventory)
        except IntegrityError as e:
            if is_unique_violation(e):
                logger.warning(
                    "Duplicate active inventory row rejected",
                    extra={
                        "operation": "add_inventory",
                        "shop_id": shop_id,
                        "product_id": product_id,
                    },
                )
                raise InventoryConflictError(shop_id, product_id) from e
            raise self._storage_error(
                "add_inventory", e, shop_id=shop_id, product_id=product_id
            ) from e
        except SQLAlchemyError as e:
            raise self._storage_error(
                "add_inventory", e, shop_id=shop_id, product_id=product_id
            ) from e

    async def soft_delete_product(self, product_id: int) -> bool:
        """Soft-delete a product together with its active inventory rows.

        Both updates run in one transaction and share one timestamp. Returns
        True only if the product itself was active before the call.
        """
        deleted_at = utcnow()

        try:
            async with self.session_maker() as session:
                async with session.begin():
                    await session.execute(
                        self._inventory_soft_delete(product_id, deleted_at)
                    )
                    result = await session.execute(
                        self._product_soft_delete(product_id, deleted_at)
                    )
                    deleted = result.rowcount > 0
        except SQLAlchemyError as e:
            raise self._storage_error(
                "soft_delete_product", e, product_id=product_id
            ) from e

        return deleted
