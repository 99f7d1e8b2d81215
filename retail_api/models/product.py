"""Product model module."""
from decimal import Decimal

from sqlalchemy import String, Integer, Numeric, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from retail_api.database.database import Base


class Product(Base):
    """Product reference data."""

    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("unit_price > 0", name="ck_products_unit_price_positive"),
    )

    product_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
