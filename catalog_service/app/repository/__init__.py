"""Repository layer for Catalog Service"""

from .product_repository import InventoryProductRepository

__all__ = [
    "InventoryProductRepository",
]
