"""Order persistence.

OrderRepository is the interface the service depends on; SqlOrderRepository
implements it over a request-scoped AsyncSession. Writes are committed here so
a successful return means the record exists.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.errors import DuplicateOrderError, PersistenceError
from src.models.order import Order

logger = logging.getLogger(__name__)


class OrderRepository(ABC):
    """Record store keyed by order id."""

    @abstractmethod
    async def add(self, order: Order) -> None:
        """Insert a new order.

        Raises:
            DuplicateOrderError: if an order with the same id already exists.
            PersistenceError: if the record could not be written.
        """

    @abstractmethod
    async def get(self, order_id: str) -> Order | None:
        """Fetch one order, or None."""

    @abstractmethod
    async def list_all(self, pickup_location: str | None = None) -> list[Order]:
        """Orders newest transaction first, optionally for one pickup location."""

    @abstractmethod
    async def update_status(self, order_id: str, status: str) -> bool:
        """Set the status; False when no such order exists."""

    @abstractmethod
    async def get_many(self, order_ids: Sequence[str]) -> list[Order]:
        """Fetch every existing order among ``order_ids``."""

    @abstractmethod
    async def delete_many(self, order_ids: Sequence[str]) -> int:
        """Delete orders in one batch; returns the number of rows removed."""


class SqlOrderRepository(OrderRepository):
    """SQLAlchemy implementation of OrderRepository."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def add(self, order: Order) -> None:
        self._db.add(order)
        try:
            await self._db.commit()
        except IntegrityError as exc:
            await self._db.rollback()
            logger.warning("Order %s already exists: %s", order.order_id, exc)
            raise DuplicateOrderError(
                f"Order {order.order_id} already exists",
                user_message=f"Pesanan {order.order_id} sudah pernah dikirim.",
            ) from exc
        except SQLAlchemyError as exc:
            await self._db.rollback()
            logger.error("Failed to insert order %s: %s", order.order_id, exc)
            raise PersistenceError(
                f"Insert of order {order.order_id} failed: {exc}",
                user_message="Gagal menyimpan pesanan ke database.",
            ) from exc
        logger.info("Order %s saved", order.order_id)

    async def get(self, order_id: str) -> Order | None:
        return await self._db.get(Order, order_id)

    async def list_all(self, pickup_location: str | None = None) -> list[Order]:
        stmt = select(Order)
        if pickup_location:
            stmt = stmt.where(Order.pickup_location == pickup_location)
        stmt = stmt.order_by(Order.transaction_time.desc())
        result = await self._db.execute(stmt)
        return list(result.scalars().all())

    async def update_status(self, order_id: str, status: str) -> bool:
        result = await self._db.execute(
            update(Order).where(Order.order_id == order_id).values(status=status)
        )
        await self._db.commit()
        return bool(result.rowcount)  # type: ignore[attr-defined]

    async def get_many(self, order_ids: Sequence[str]) -> list[Order]:
        if not order_ids:
            return []
        result = await self._db.execute(select(Order).where(Order.order_id.in_(order_ids)))
        return list(result.scalars().all())

    async def delete_many(self, order_ids: Sequence[str]) -> int:
        if not order_ids:
            return 0
        try:
            result = await self._db.execute(delete(Order).where(Order.order_id.in_(order_ids)))
            await self._db.commit()
        except SQLAlchemyError as exc:
            await self._db.rollback()
            raise PersistenceError(
                f"Bulk delete failed: {exc}",
                user_message="Gagal menghapus pesanan massal.",
            ) from exc
        count = result.rowcount  # type: ignore[attr-defined]
        logger.info("Deleted %d order records", count)
        return count
