"""Test doubles and builders shared across test modules."""

from __future__ import annotations

import asyncio
import io
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path

from PIL import Image

from src.analysis.rasterizer import BaseRasterizer, RasterizationError
from src.errors import DuplicateOrderError, PersistenceError
from src.models.order import Order
from src.orders.repository import OrderRepository

FIXED_NOW = datetime(2026, 10, 19, 8, 30, tzinfo=UTC)


def png_bytes(img: Image.Image) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def white_page(size: tuple[int, int] = (200, 280)) -> Image.Image:
    return Image.new("RGB", size, (255, 255, 255))


def color_page(size: tuple[int, int] = (200, 280)) -> Image.Image:
    img = white_page(size)
    img.paste((220, 30, 40), (20, 20, 120, 120))
    return img


class InMemoryOrderRepository(OrderRepository):
    """Dict-backed repository keyed like a primary key.

    ``fail_add`` simulates a failed insert; ``get_delay`` widens the window
    between the existence check and the insert.
    """

    def __init__(self) -> None:
        self.orders: dict[str, Order] = {}
        self.fail_add = False
        self.get_delay = 0.0
        self.delete_calls: list[list[str]] = []

    async def add(self, order: Order) -> None:
        if self.fail_add:
            raise PersistenceError(
                "insert failed", user_message="Gagal menyimpan pesanan ke database."
            )
        if order.order_id in self.orders:
            raise DuplicateOrderError(
                f"duplicate key {order.order_id}",
                user_message=f"Pesanan {order.order_id} sudah pernah dikirim.",
            )
        self.orders[order.order_id] = order

    async def get(self, order_id: str) -> Order | None:
        if self.get_delay:
            await asyncio.sleep(self.get_delay)
        return self.orders.get(order_id)

    async def list_all(self, pickup_location: str | None = None) -> list[Order]:
        rows = [
            o for o in self.orders.values()
            if not pickup_location or o.pickup_location == pickup_location
        ]
        return sorted(rows, key=lambda o: o.transaction_time, reverse=True)

    async def update_status(self, order_id: str, status: str) -> bool:
        order = self.orders.get(order_id)
        if order is None:
            return False
        order.status = status
        return True

    async def get_many(self, order_ids: Sequence[str]) -> list[Order]:
        return [self.orders[i] for i in order_ids if i in self.orders]

    async def delete_many(self, order_ids: Sequence[str]) -> int:
        self.delete_calls.append(list(order_ids))
        removed = 0
        for order_id in order_ids:
            if self.orders.pop(order_id, None) is not None:
                removed += 1
        return removed


class FakeRasterizer(BaseRasterizer):
    """Writes the given page images into the workdir; remembers the workdir."""

    def __init__(self, pages: Sequence[Image.Image] = (), error: str | None = None) -> None:
        self.pages = list(pages)
        self.error = error
        self.workdirs: list[Path] = []

    def render(self, document_bytes: bytes, workdir: Path) -> list[Path]:
        self.workdirs.append(workdir)
        paths = []
        for index, page in enumerate(self.pages, start=1):
            path = workdir / f"page-{index:04d}.png"
            page.save(path, format="PNG")
            paths.append(path)
        if self.error:
            raise RasterizationError(self.error)
        return paths


