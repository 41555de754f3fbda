"""Shared fixtures: in-memory order repository and a tmp_path artifact store."""

from __future__ import annotations

from datetime import datetime

import pytest
from helpers import FIXED_NOW, InMemoryOrderRepository

from src.models.order import Order
from src.storage.artifacts import ArtifactStore


@pytest.fixture
def store(tmp_path):
    artifact_store = ArtifactStore(tmp_path / "data")
    artifact_store.ensure_roots()
    return artifact_store


@pytest.fixture
def repository():
    return InMemoryOrderRepository()


@pytest.fixture
def make_order(store):
    """Factory for persisted-looking orders with real files on disk."""

    def _make(
        order_id: str = "ORD-1",
        pickup_location: str = "Cabang Utama",
        transaction_time: datetime = FIXED_NOW,
        with_files: bool = True,
    ) -> Order:
        file_path = proof_path = None
        if with_files:
            doc = store.orders_root / "2026-10-19" / f"{order_id}-doc.pdf"
            doc.parent.mkdir(parents=True, exist_ok=True)
            doc.write_bytes(b"%PDF-1.4 test")
            proof = store.proofs_root / "2026-10-19" / f"{order_id}-proof.jpg"
            proof.parent.mkdir(parents=True, exist_ok=True)
            proof.write_bytes(b"jpeg")
            file_path = f"orders/2026-10-19/{order_id}-doc.pdf"
            proof_path = f"proofs/2026-10-19/{order_id}-proof.jpg"
        return Order(
            order_id=order_id,
            customer_name="Budi",
            customer_phone="6281234567890",
            transaction_time=transaction_time,
            payment_method="bca",
            status="pending_verification",
            gross_amount=12500,
            color_pages=2,
            bw_pages=3,
            copies=1,
            color_page_range="1-2",
            grayscale_page_range="3-5",
            original_name="doc.pdf",
            file_path=file_path,
            proof_path=proof_path,
            pickup_location=pickup_location,
            print_mode="color",
        )

    return _make
