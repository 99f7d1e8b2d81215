"""Customer model module."""
from datetime import date

from sqlalchemy import String, Integer, Date
from sqlalchemy.orm import Mapped, mapped_column

from retail_api.database.database import Base

# Regions present in the coursework snapshot
REGIONS = ("Kigali", "Huye", "Musanze", "Rubavu")


class Customer(Base):
    """Customer reference data. Immutable for the purpose of the analysis."""

    __tablename__ = "customers"

    customer_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    region: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    signup_date: Mapped[date] = mapped_column(Date, nullable=False)
