from decimal import Decimal

from sqlalchemy import DECIMAL, CheckConstraint, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from .base import SoftDeleteModel


class Inventory(SoftDeleteModel):
    __tablename__ = "inventory"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    shop_id: Mapped[int] = mapped_column(ForeignKey("shops.shop_id"), nullable=False)
    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.product_id"), nullable=False
    )

    stock_quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    selling_price: Mapped[Decimal] = mapped_column(DECIMAL(10, 2), nullable=False)
    unit: Mapped[str] = mapped_column(String(50), nullable=False)

    __table_args__ = (
        CheckConstraint("stock_quantity >= 0", name="inventory_stock_non_negative"),
        # One active row per shop/product; soft-deleted rows are exempt
        Index(
            "uq_inventory_active_shop_product",
            "shop_id",
            "product_id",
            unique=True,
            sqlite_where=text("NOT is_deleted"),
            postgresql_where=text("NOT is_deleted"),
        ),
    )
