from .base import CatalogServiceBase, SoftDeleteModel, utcnow
from .inventory import Inventory
from .product import Product
from .shop import Shop

"""Catalog Service Models"""

__all__ = [
    "CatalogServiceBase",
    "SoftDeleteModel",
    "utcnow",
    "Inventory",
    "Product",
    "Shop",
]
