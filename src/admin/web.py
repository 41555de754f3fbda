"""Admin JSON API: order management, downloads and staging cleanup.

Every route requires HTTP Basic credentials (see src/admin/auth.py).
"""

# ruff: noqa: B008
from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import FileResponse, JSONResponse

from src.admin.auth import verify_admin
from src.api.deps import get_artifact_store, get_order_service
from src.errors import ClientError
from src.orders.service import OrderService
from src.schemas.orders import (
    BulkDeleteRequest,
    BulkDeleteResponse,
    OrderOut,
    StagedDeleteRequest,
    StagedDeleteResponse,
    StagedFileOut,
    StatusUpdate,
    StatusUpdated,
)
from src.storage.artifacts import ArtifactStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin"], dependencies=[Depends(verify_admin)])


# ── Orders ───────────────────────────────────────────────────────────


@router.get("/api/admin/orders", response_model=list[OrderOut])
async def list_orders(
    branch: str | None = Query(None),
    service: OrderService = Depends(get_order_service),
) -> list[OrderOut]:
    """All orders newest first, optionally for one pickup location."""
    orders = await service.list_orders(branch)
    return [OrderOut.model_validate(order) for order in orders]


@router.put("/api/admin/orders/{order_id}/status", response_model=StatusUpdated)
async def update_order_status(
    order_id: str,
    body: StatusUpdate,
    service: OrderService = Depends(get_order_service),
) -> StatusUpdated:
    await service.update_status(order_id, body.status)
    return StatusUpdated(message="Status updated successfully", changes=1)


@router.delete("/api/admin/orders/bulk", response_model=BulkDeleteResponse)
async def bulk_delete_orders(
    body: BulkDeleteRequest,
    service: OrderService = Depends(get_order_service),
) -> BulkDeleteResponse:
    result = await service.delete_orders(body.order_ids)
    message = f"{result.deleted} pesanan berhasil dihapus."
    if result.files_failed:
        message += f" {result.files_failed} file gagal dihapus."
    return BulkDeleteResponse(
        message=message,
        requested=result.requested,
        deleted=result.deleted,
        files_failed=result.files_failed,
    )


@router.get("/download/order/{order_id}")
async def download_order(
    order_id: str,
    service: OrderService = Depends(get_order_service),
) -> FileResponse:
    """The order's document, served under its original file name."""
    path, download_name = await service.resolve_download(order_id)
    return FileResponse(path, filename=download_name)


@router.get("/api/admin/orders/{order_id}/proof")
async def download_proof(
    order_id: str,
    service: OrderService = Depends(get_order_service),
) -> FileResponse:
    path = await service.resolve_proof(order_id)
    return FileResponse(path, filename=path.name)


# ── Staging ──────────────────────────────────────────────────────────


@router.get("/api/admin/temp-files", response_model=list[StagedFileOut])
async def list_temp_files(
    store: ArtifactStore = Depends(get_artifact_store),
) -> list[StagedFileOut]:
    """Staged uploads that have not been confirmed yet, newest first."""
    files = await asyncio.to_thread(store.list_staged)
    return [StagedFileOut.model_validate(f) for f in files]


@router.post("/api/admin/temp-files/delete", response_model=StagedDeleteResponse)
async def delete_temp_files(
    body: StagedDeleteRequest,
    store: ArtifactStore = Depends(get_artifact_store),
) -> StagedDeleteResponse | JSONResponse:
    paths = [p for p in body.file_paths if p]
    if not paths:
        raise ClientError("No staged paths supplied", user_message="File path tidak valid.")

    result = await asyncio.to_thread(store.delete_staged, paths)
    if result.errors:
        response = StagedDeleteResponse(
            message=(
                f"Berhasil menghapus {result.deleted} file, "
                f"namun terjadi {result.failed} galat."
            ),
            deleted=result.deleted,
            missing=result.missing,
            errors=result.errors,
        )
        return JSONResponse(status_code=500, content=response.model_dump(by_alias=True))

    return StagedDeleteResponse(
        message=f"{result.deleted} file berhasil dihapus.",
        deleted=result.deleted,
        missing=result.missing,
    )
