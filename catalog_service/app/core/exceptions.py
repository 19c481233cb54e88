"""Catalog data-access exceptions.

Every failure raised by the repository or the catalog service is a
``CatalogError`` subclass, so callers can catch the whole family at once
and still branch on the specific kind.
"""

from typing import Optional

from sqlalchemy.exc import IntegrityError

# SQLSTATE for unique_violation, reported by PostgreSQL drivers
UNIQUE_VIOLATION_SQLSTATE = "23505"


class CatalogError(Exception):
    """Base class for all catalog errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ProductNotFoundError(CatalogError):
    """The product does not exist or has been soft-deleted."""

    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


class NoFieldsToUpdateError(CatalogError):
    """An update was requested without any field to change."""

    def __init__(self, message: str = "No fields to update"):
        super().__init__(message)


class InventoryConflictError(CatalogError):
    """An active inventory row already exists for the shop/product pair."""

    def __init__(self, shop_id: int, product_id: int):
        super().__init__("Product already exists in inventory")
        self.shop_id = shop_id
        self.product_id = product_id


class StorageError(CatalogError):
    """The data store rejected or failed a statement."""

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(message)
        self.operation = operation


def is_unique_violation(error: IntegrityError) -> bool:
    """Tell whether an IntegrityError came from a unique constraint."""
    orig = error.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate is not None:
        return sqlstate == UNIQUE_VIOLATION_SQLSTATE
    return "UNIQUE constraint failed" in str(orig)
