from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class InventoryCreate(BaseModel):
    stock_quantity: int
    selling_price: Decimal = Field(..., max_digits=10, decimal_places=2)
    unit: str = Field(..., min_length=1, max_length=50)


class InventoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    shop_id: int
    product_id: int
    stock_quantity: int
    selling_price: Decimal
    unit: str
    created_at: datetime
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None


class AvailabilityResponse(BaseModel):
    """Stock state of an active shop/product pair"""

    exists: bool = True
    available: bool
    stock_quantity: int
