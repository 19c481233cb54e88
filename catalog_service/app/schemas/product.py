from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProductCreate(BaseModel):
    name: str = Field(
        ..., min_length=1, max_length=255, description="Product name (required)"
    )
    description: Optional[str] = None
    base_price: Decimal = Field(
        ..., max_digits=10, decimal_places=2, description="Base price, 2 decimals"
    )
    image_url: Optional[str] = Field(None, max_length=500)


class ProductUpdate(BaseModel):
    """Sparse product patch.

    Only fields the caller actually set are written; a field left out is
    unchanged, while ``description=None`` clears the description.
    """

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    base_price: Optional[Decimal] = Field(None, max_digits=10, decimal_places=2)

    @field_validator("name", "base_price")
    @classmethod
    def reject_explicit_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be set to null")
        return v

    def changes(self) -> Dict[str, Any]:
        """Fields explicitly provided by the caller, with their values."""
        return self.model_dump(exclude_unset=True)


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: int
    name: str
    description: Optional[str] = None
    base_price: Decimal
    image_url: Optional[str] = None
    created_at: datetime
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None


class ProductSummary(BaseModel):
    """Product columns shared by the joined query shapes."""

    product_id: int
    name: str
    description: Optional[str] = None
    base_price: Decimal
    image_url: Optional[str] = None
    created_at: datetime


class ProductListItem(ProductSummary):
    """One product-per-shop row of a catalog listing."""

    inventory_id: int
    shop_id: int
    stock_quantity: int
    selling_price: Decimal
    unit: str
    shop_name: str


class ProductDetail(ProductSummary):
    """Product looked up for one shop; shop fields are None when unstocked."""

    inventory_id: Optional[int] = None
    shop_id: Optional[int] = None
    stock_quantity: Optional[int] = None
    selling_price: Optional[Decimal] = None
    unit: Optional[str] = None
    shop_name: Optional[str] = None


class PaginationMeta(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int


class ProductListResponse(BaseModel):
    items: List[ProductListItem]
    pagination: PaginationMeta
