"""New-order notifications to the shop admin via the Fonnte WhatsApp gateway.

Delivery is best effort. A confirmed order never depends on the gateway:
failures are logged and reported as False, never raised.
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from src.config import NotifierSettings, settings
from src.models.order import Order
from src.notifications.formatters import format_print_mode, format_rupiah

logger = logging.getLogger(__name__)


def build_order_message(order: Order) -> str:
    """Admin-facing summary of a freshly confirmed order."""
    file_name = order.file_path.rsplit("/", 1)[-1] if order.file_path else order.original_name
    return (
        "🔔 *Pesanan Baru (TRANSFER MANUAL)* 🔔\n\n"
        f"*Lokasi Ambil: {order.pickup_location}*\n"
        f"*Mode Cetak: {format_print_mode(order.print_mode)}*\n\n"
        "*Perlu Verifikasi Pembayaran*\n\n"
        f"*Order ID:* {order.order_id}\n"
        f"*Nama:* {order.customer_name or '-'}\n"
        f"*No. WA:* {order.customer_phone or '-'}\n\n"
        "*Rincian Cetak (Final):*\n"
        f"- Warna: {order.color_pages} lbr\n"
        f"- H/P: {order.bw_pages} lbr\n"
        f"- Rangkap: {order.copies}x\n\n"
        f"*Total Tagihan:* Rp {format_rupiah(order.gross_amount)}\n"
        f"*Metode:* {(order.payment_method or '-').upper()}\n\n"
        f"*File:*\n`{file_name}`\n\n"
        "Mohon segera cek bukti transfer dan proses pesanan."
    )


class OrderNotifier:
    """Sends order alerts to the configured admin number."""

    def __init__(self, config: NotifierSettings | None = None) -> None:
        self._config = config or settings.notifier
        self._tasks: set[asyncio.Task[bool]] = set()

    @property
    def is_configured(self) -> bool:
        return bool(self._config.fonnte_token and self._config.admin_whatsapp_number)

    async def notify(self, order: Order) -> bool:
        """Send the alert for ``order``.

        Returns True on success, False on failure or when not configured.
        """
        if not self.is_configured:
            logger.info("WhatsApp notifier not configured, skipping order %s", order.order_id)
            return False

        payload = {
            "target": self._config.admin_whatsapp_number,
            "message": build_order_message(order),
        }
        try:
            async with httpx.AsyncClient(timeout=self._config.notify_timeout) as client:
                resp = await client.post(
                    self._config.fonnte_api_url,
                    json=payload,
                    headers={"Authorization": self._config.fonnte_token},
                )
                resp.raise_for_status()
        except Exception:
            logger.exception("Failed to send WhatsApp notification for order %s", order.order_id)
            return False

        logger.info("WhatsApp notification sent for order %s", order.order_id)
        return True

    def notify_in_background(self, order: Order) -> asyncio.Task[bool]:
        """Schedule ``notify`` without awaiting it.

        The task is referenced until it finishes so it is not garbage
        collected mid-flight.
        """
        task = asyncio.create_task(self.notify(order))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for in-flight notifications; used at shutdown."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
