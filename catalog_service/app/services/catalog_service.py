"""Catalog service for business logic"""

from typing import Optional, Union

from ..core.exceptions import InventoryConflictError, ProductNotFoundError
from ..repository.product_repository import (
    DEFAULT_PAGE,
    DEFAULT_PAGE_SIZE,
    InventoryProductRepository,
)
from ..schemas.inventory import AvailabilityResponse, InventoryCreate, InventoryResponse
from ..schemas.product import (
    ProductCreate,
    ProductDetail,
    ProductListResponse,
    ProductResponse,
    ProductUpdate,
)
from ..utils.logging import setup_catalog_logging as setup_logging

# Setup structured logging for the service
logger = setup_logging("catalog_service")


class CatalogService:
    """Service class for catalog business logic

    Turns the repository's None/False "not found" signals into
    ProductNotFoundError where the caller asked for a specific product.
    """

    def __init__(self, repository: InventoryProductRepository):
        self.repository = repository

    async def list_products(
        self,
        page: Optional[int] = DEFAULT_PAGE,
        limit: Optional[int] = DEFAULT_PAGE_SIZE,
        search: Optional[str] = None,
        shop_id: Optional[int] = None,
        correlation_id: Optional[str] = None,
    ) -> ProductListResponse:
        """List products in active shops"""
        listing = await self.repository.list_products(
            page=page, limit=limit, search=search, shop_id=shop_id
        )

        logger.info(
            "Products listed",
            extra={
                "page": listing.pagination.page,
                "limit": listing.pagination.limit,
                "total": listing.pagination.total,
                "shop_id": shop_id,
                "search": search,
                "correlation_id": correlation_id,
            },
        )
        return listing

    async def get_product(
        self,
        product_id: int,
        shop_id: Optional[int] = None,
        correlation_id: Optional[str] = None,
    ) -> Union[ProductDetail, ProductResponse]:
        """Get product by ID, optionally with its stock in one shop"""
        product = await self.repository.get_product_by_id(product_id, shop_id)
        if product is None:
            raise ProductNotFoundError(product_id)

        logger.info(
            "Product retrieved",
            extra={
                "product_id": product_id,
                "shop_id": shop_id,
                "correlation_id": correlation_id,
            },
        )
        return product

    async def create_product(
        self, product_data: ProductCreate, correlation_id: Optional[str] = None
    ) -> ProductResponse:
        product = await self.repository.create_product(product_data)

        logger.info(
            "Product created successfully",
            extra={
                "product_id": product.product_id,
                "product_name": product.name,
                "correlation_id": correlation_id,
            },
        )
        return product

    async def update_product(
        self,
        product_id: int,
        product_data: ProductUpdate,
        correlation_id: Optional[str] = None,
    ) -> ProductResponse:
        product = await self.repository.update_product(product_id, product_data)
        if product is None:
            raise ProductNotFoundError(product_id)

        logger.info(
            "Product updated successfully",
            extra={
                "product_id": product_id,
                "updated_fields": sorted(product_data.changes()),
                "correlation_id": correlation_id,
            },
        )
        return product

    async def add_inventory(
        self,
        shop_id: int,
        product_id: int,
        inventory_data: InventoryCreate,
        correlation_id: Optional[str] = None,
    ) -> InventoryResponse:
        """Stock a product in a shop"""
        try:
            inventory = await self.repository.add_inventory(
                shop_id, product_id, inventory_data
            )
        except InventoryConflictError:
            logger.warning(
                "Product already stocked in shop",
                extra={
                    "shop_id": shop_id,
                    "product_id": product_id,
                    "correlation_id": correlation_id,
                },
            )
            raise

        logger.info(
            "Inventory created successfully",
            extra={
                "inventory_id": inventory.id,
                "shop_id": shop_id,
                "product_id": product_id,
                "stock_quantity": inventory.stock_quantity,
                "correlation_id": correlation_id,
            },
        )
        return inventory

    async def check_availability(
        self, product_id: int, shop_id: int, correlation_id: Optional[str] = None
    ) -> Optional[AvailabilityResponse]:
        """Stock state of a product in a shop; None when the shop does not carry it"""
        availability = await self.repository.check_availability(product_id, shop_id)

        logger.info(
            "Availability checked",
            extra={
                "product_id": product_id,
                "shop_id": shop_id,
                "available": availability.available if availability else False,
                "correlation_id": correlation_id,
            },
        )
        return availability

    async def delete_product(
        self, product_id: int, correlation_id: Optional[str] = None
    ) -> None:
        """Delete product (soft delete, inventory included)"""
        deleted = await self.repository.soft_delete_product(product_id)
        if not deleted:
            raise ProductNotFoundError(product_id)

        logger.info(
            "Product deleted successfully",
            extra={"product_id": product_id, "correlation_id": correlation_id},
        )
