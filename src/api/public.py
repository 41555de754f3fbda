"""Customer-facing routes: document analysis and order confirmation."""

# ruff: noqa: B008
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile

from src.analysis.analyzer import DocumentAnalyzer
from src.api.deps import get_analyzer, get_notifier, get_order_service
from src.config import settings
from src.errors import MissingUploadError, UploadTooLargeError
from src.notifications.whatsapp import OrderNotifier
from src.orders.service import OrderService
from src.schemas.orders import (
    AnalysisDetails,
    AnalysisResponse,
    OrderConfirmation,
    OrderConfirmedResponse,
    OrderData,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["public"])


async def _read_limited(upload: UploadFile) -> bytes:
    """Read an upload, refusing anything over the configured limit."""
    limit = settings.storage.max_upload_bytes
    if upload.size is not None and upload.size > limit:
        raise UploadTooLargeError(
            f"Upload {upload.filename!r} is {upload.size} bytes (limit {limit})",
            user_message="Ukuran file melebihi batas maksimum.",
        )
    data = await upload.read(limit + 1)
    if len(data) > limit:
        raise UploadTooLargeError(
            f"Upload {upload.filename!r} exceeds {limit} bytes",
            user_message="Ukuran file melebihi batas maksimum.",
        )
    return data


@router.post("/analyze-pdf", response_model=AnalysisResponse)
async def analyze_pdf(
    pdf: UploadFile | None = File(None),
    analyzer: DocumentAnalyzer = Depends(get_analyzer),
) -> AnalysisResponse:
    """Classify every page of an uploaded PDF and stage it for confirmation."""
    if pdf is None or not pdf.filename:
        raise MissingUploadError("No document uploaded", user_message="No file uploaded.")

    data = await _read_limited(pdf)
    result = await analyzer.analyze(data, pdf.filename)

    classification = result.classification
    return AnalysisResponse(
        color_pages=len(classification.color_pages),
        bw_pages=len(classification.grayscale_pages),
        details=AnalysisDetails(
            color_page_range=classification.color_range,
            grayscale_page_range=classification.grayscale_range,
        ),
        temp_filename=result.artifact.handle,
        original_name=result.artifact.original_name,
    )


@router.post("/submit-manual-payment", response_model=OrderConfirmedResponse)
async def submit_manual_payment(
    proof: UploadFile | None = File(None),
    order_id: str = Form("", alias="orderId"),
    total_amount: str = Form("", alias="totalAmount"),
    customer_name: str = Form("", alias="customerName"),
    customer_phone: str = Form("", alias="customerPhone"),
    color_pages: int = Form(0, alias="colorPages"),
    bw_pages: int = Form(0, alias="bwPages"),
    copies: int = Form(1, alias="copies"),
    payment_method: str = Form("", alias="paymentMethod"),
    temp_filename: str = Form("", alias="tempFilename"),
    original_name: str = Form("", alias="originalName"),
    color_page_range: str = Form("", alias="colorPageRange"),
    grayscale_page_range: str = Form("", alias="grayscalePageRange"),
    pickup_location: str = Form("", alias="pickupLocation"),
    print_mode: str = Form("", alias="printMode"),
    service: OrderService = Depends(get_order_service),
    notifier: OrderNotifier = Depends(get_notifier),
) -> OrderConfirmedResponse:
    """Confirm an order with its payment proof.

    The response goes out as soon as the order is recorded; the admin
    notification is sent in the background.
    """
    request = OrderConfirmation(
        order_id=order_id.strip(),
        total_amount=total_amount,
        customer_name=customer_name.strip(),
        customer_phone=customer_phone.strip(),
        color_pages=color_pages,
        bw_pages=bw_pages,
        copies=copies,
        payment_method=payment_method.strip(),
        temp_filename=temp_filename.strip(),
        original_name=original_name,
        color_page_range=color_page_range,
        grayscale_page_range=grayscale_page_range,
        pickup_location=pickup_location,
        print_mode=print_mode,
    )
    proof_bytes = await _read_limited(proof) if proof is not None and proof.filename else None

    order = await service.confirm(request, proof_bytes, proof.filename if proof else None)
    notifier.notify_in_background(order)

    return OrderConfirmedResponse(
        message="Pesanan berhasil dikirim!",
        order_data=OrderData.model_validate(order),
    )
