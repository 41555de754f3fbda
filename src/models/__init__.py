"""SQLAlchemy ORM models for NitiPrint.

Import all models here so Alembic and Base.metadata.create_all() discover them.
"""

from __future__ import annotations

from src.models.base import Base
from src.models.enums import OrderStatus, PageKind, PrintMode
from src.models.order import Order

__all__ = [
    # Base
    "Base",
    # Models
    "Order",
    # Enums
    "OrderStatus",
    "PageKind",
    "PrintMode",
]
