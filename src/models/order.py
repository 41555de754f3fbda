"""Order model: a confirmed print order and the two files it owns."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base, TimestampMixin
from src.models.enums import OrderStatus, PrintMode


class Order(TimestampMixin, Base):
    """A confirmed order awaiting payment verification and printing.

    file_path and proof_path are relative to the storage root and must keep
    pointing at existing files until the order is deleted.
    """

    __tablename__ = "orders"

    order_id: Mapped[str] = mapped_column(String(100), primary_key=True)

    # Customer
    customer_name: Mapped[str | None] = mapped_column(String(200))
    customer_phone: Mapped[str | None] = mapped_column(String(30))

    # Payment
    transaction_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    payment_method: Mapped[str | None] = mapped_column(String(50))
    status: Mapped[str] = mapped_column(
        String(50), default=OrderStatus.PENDING_VERIFICATION.value, nullable=False
    )
    gross_amount: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False, comment="Rupiah")

    # Billing (final counts, after print-mode override)
    color_pages: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    bw_pages: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    copies: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    color_page_range: Mapped[str] = mapped_column(Text, default="N/A", nullable=False)
    grayscale_page_range: Mapped[str] = mapped_column(Text, default="N/A", nullable=False)
    print_mode: Mapped[str] = mapped_column(
        String(20), default=PrintMode.COLOR.value, nullable=False
    )

    # Files
    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_path: Mapped[str | None] = mapped_column(Text, comment="Relative to storage root")
    proof_path: Mapped[str | None] = mapped_column(Text, comment="Relative to storage root")

    # Fulfilment
    pickup_location: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<Order id={self.order_id} status={self.status} branch={self.pickup_location}>"
