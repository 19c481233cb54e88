from decimal import Decimal
from typing import Optional

from sqlalchemy import DECIMAL, TEXT, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import SoftDeleteModel


class Product(SoftDeleteModel):
    __tablename__ = "products"

    product_id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    base_price: Mapped[Decimal] = mapped_column(DECIMAL(10, 2), nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
