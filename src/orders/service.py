"""Order workflow: confirmation, admin status changes, downloads, bulk deletion.

Confirmation is fail-closed: the order exists only once the database insert
has succeeded, and a failed insert hands the staged document back to staging.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path, PurePath

from src.analysis.ranges import parse_page_ranges
from src.errors import (
    DuplicateOrderError,
    InvalidOrderError,
    MissingUploadError,
    OrderNotFoundError,
    PersistenceError,
)
from src.models.enums import OrderStatus, PrintMode, normalize_status, parse_print_mode
from src.models.order import Order
from src.orders.repository import OrderRepository
from src.schemas.orders import OrderConfirmation
from src.storage.artifacts import ArtifactStore
from src.storage.paths import sanitize_filename

logger = logging.getLogger(__name__)

ORDER_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,100}$")
EMPTY_RANGE = "N/A"
ALL_BRANCHES = "All"

# Free-text form fields and their labels; limits come from the column types.
BOUNDED_FIELDS = {
    "customer_name": "Nama pelanggan",
    "customer_phone": "Nomor WhatsApp",
    "payment_method": "Metode pembayaran",
    "pickup_location": "Lokasi pengambilan",
}


@dataclass(frozen=True)
class BulkDeletionResult:
    """Outcome of deleting several orders at once."""

    requested: int
    deleted: int
    files_failed: int


def apply_print_mode(color_pages: int, bw_pages: int, mode: PrintMode) -> tuple[int, int]:
    """Final (color, bw) billing counts. GRAYSCALE bills every page as b/w."""
    if mode is PrintMode.GRAYSCALE:
        return 0, bw_pages + color_pages
    return color_pages, bw_pages


def parse_amount(raw: str) -> int:
    """Keep the digits of a formatted amount ('Rp 12.500' -> 12500).

    Raises:
        InvalidOrderError: if there are no digits at all.
    """
    digits = re.sub(r"[^0-9]", "", raw or "")
    if not digits:
        raise InvalidOrderError(
            f"Amount {raw!r} has no digits",
            user_message="Total tagihan tidak valid.",
        )
    return int(digits)


class OrderService:
    """Coordinates the order repository and the artifact store."""

    def __init__(self, repository: OrderRepository, store: ArtifactStore) -> None:
        self._repository = repository
        self._store = store

    # ── Confirmation ─────────────────────────────────────────────────

    async def confirm(
        self,
        request: OrderConfirmation,
        proof: bytes | None,
        proof_filename: str | None,
        now: datetime | None = None,
    ) -> Order:
        """Promote the staged document, store the proof and record the order.

        Raises:
            ClientError subclasses: for missing or invalid input, a duplicate
                order id, or an expired staging handle.
            PersistenceError: if the order record could not be written.
        """
        if not proof:
            raise MissingUploadError("Payment proof missing", user_message="Bukti pembayaran diperlukan.")
        if not request.pickup_location.strip():
            raise InvalidOrderError(
                "Pickup location missing",
                user_message="Lokasi pengambilan belum dipilih.",
            )
        self._validate(request)
        gross_amount = parse_amount(request.total_amount)

        order_id = request.order_id
        if await self._repository.get(order_id) is not None:
            raise DuplicateOrderError(
                f"Order {order_id} already exists",
                user_message=f"Pesanan {order_id} sudah pernah dikirim.",
            )

        mode = parse_print_mode(request.print_mode)
        color_pages, bw_pages = apply_print_mode(request.color_pages, request.bw_pages, mode)
        original_name = sanitize_filename(request.original_name)
        moment = now or datetime.now(UTC)

        file_path = await asyncio.to_thread(
            self._store.promote, request.temp_filename, order_id, original_name, moment
        )
        try:
            proof_path = await asyncio.to_thread(
                self._store.store_proof,
                proof,
                PurePath(proof_filename or "").suffix,
                order_id,
                moment,
            )
        except DuplicateOrderError:
            await asyncio.to_thread(self._store.restore, file_path, request.temp_filename)
            raise
        except OSError as exc:
            await asyncio.to_thread(self._store.restore, file_path, request.temp_filename)
            raise PersistenceError(
                f"Storing proof for {order_id} failed: {exc}",
                user_message="Gagal menyimpan bukti pembayaran.",
            ) from exc

        order = Order(
            order_id=order_id,
            customer_name=request.customer_name,
            customer_phone=request.customer_phone,
            transaction_time=moment,
            payment_method=request.payment_method,
            status=OrderStatus.PENDING_VERIFICATION.value,
            gross_amount=gross_amount,
            color_pages=color_pages,
            bw_pages=bw_pages,
            copies=request.copies,
            color_page_range=request.color_page_range.strip() or EMPTY_RANGE,
            grayscale_page_range=request.grayscale_page_range.strip() or EMPTY_RANGE,
            original_name=original_name,
            file_path=file_path,
            proof_path=proof_path,
            pickup_location=request.pickup_location.strip(),
            print_mode=mode.value,
        )

        # Both files were created exclusively by this call, so undoing them
        # cannot touch another order's files.
        try:
            await self._repository.add(order)
        except (DuplicateOrderError, PersistenceError):
            await asyncio.to_thread(self._store.restore, file_path, request.temp_filename)
            await asyncio.to_thread(self._store.delete_order_files, None, proof_path)
            raise

        logger.info(
            "Order %s confirmed: color=%d bw=%d copies=%d mode=%s branch=%s",
            order_id,
            color_pages,
            bw_pages,
            request.copies,
            mode.value,
            order.pickup_location,
        )
        return order

    def _validate(self, request: OrderConfirmation) -> None:
        if not ORDER_ID_PATTERN.match(request.order_id):
            raise InvalidOrderError(
                f"Invalid order id {request.order_id!r}",
                user_message="Order ID tidak valid.",
            )
        for field, label in BOUNDED_FIELDS.items():
            limit = Order.__table__.c[field].type.length
            if len(getattr(request, field)) > limit:
                raise InvalidOrderError(
                    f"{field} longer than {limit} characters",
                    user_message=f"{label} terlalu panjang (maksimal {limit} karakter).",
                )
        if not request.temp_filename.strip():
            raise InvalidOrderError(
                "Staging handle missing",
                user_message="File dokumen belum diunggah.",
            )
        for text in (request.color_page_range, request.grayscale_page_range):
            if text.strip() in ("", EMPTY_RANGE):
                continue
            try:
                parse_page_ranges(text)
            except ValueError as exc:
                raise InvalidOrderError(
                    str(exc),
                    user_message="Rentang halaman tidak valid.",
                ) from exc
        if request.color_pages < 0 or request.bw_pages < 0 or request.copies < 1:
            raise InvalidOrderError(
                "Page counts must be non-negative and copies positive",
                user_message="Jumlah halaman atau rangkap tidak valid.",
            )

    # ── Admin ────────────────────────────────────────────────────────

    async def list_orders(self, pickup_location: str | None = None) -> list[Order]:
        """All orders, newest first. 'All' or empty means every branch."""
        branch = (pickup_location or "").strip()
        if branch == ALL_BRANCHES:
            branch = ""
        return await self._repository.list_all(branch or None)

    async def update_status(self, order_id: str, status: str) -> str:
        """Set an order's status and return the stored tag."""
        try:
            tag = normalize_status(status)
        except ValueError as exc:
            raise InvalidOrderError(str(exc), user_message="Status tidak valid.") from exc

        if not await self._repository.update_status(order_id, tag):
            raise OrderNotFoundError(
                f"Order {order_id} not found",
                user_message="Pesanan tidak ditemukan.",
            )
        logger.info("Order %s status -> %s", order_id, tag)
        return tag

    async def resolve_download(self, order_id: str) -> tuple[Path, str]:
        """Absolute path and download name of an order's document."""
        order = await self._repository.get(order_id)
        if order is None or not order.file_path:
            raise OrderNotFoundError(
                f"Order {order_id} not found or has no file",
                user_message="Order not found or has no file.",
            )
        return self._existing(order.file_path), order.original_name

    async def resolve_proof(self, order_id: str) -> Path:
        """Absolute path of an order's payment proof."""
        order = await self._repository.get(order_id)
        if order is None or not order.proof_path:
            raise OrderNotFoundError(
                f"Order {order_id} not found or has no proof",
                user_message="Bukti pembayaran tidak ditemukan.",
            )
        return self._existing(order.proof_path)

    def _existing(self, relative: str) -> Path:
        path = self._store.resolve_order_path(relative)
        if not path.is_file():
            raise OrderNotFoundError(
                f"Stored file {relative} is missing",
                user_message="File not found on server.",
            )
        return path

    async def delete_orders(self, order_ids: Sequence[str]) -> BulkDeletionResult:
        """Delete orders with their files.

        Files go first, best effort; the records are then removed in one
        batch whatever happened to the files.
        """
        ids = [order_id for order_id in order_ids if order_id]
        if not ids:
            raise InvalidOrderError("No order ids supplied", user_message="Data orderIds tidak valid.")

        orders = await self._repository.get_many(ids)
        files_failed = 0
        for order in orders:
            files_failed += await asyncio.to_thread(
                self._store.delete_order_files, order.file_path, order.proof_path
            )

        deleted = await self._repository.delete_many(ids)
        if files_failed:
            logger.warning("Bulk delete: %d order files could not be removed", files_failed)
        logger.info("Bulk delete: requested=%d deleted=%d", len(ids), deleted)
        return BulkDeletionResult(requested=len(ids), deleted=deleted, files_failed=files_failed)
