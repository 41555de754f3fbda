"""Pydantic schemas for the public and admin JSON API.

Field names are camelCase on the wire to stay compatible with the existing
web front end; Python code uses snake_case.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for wire models: camelCase aliases, snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# ── Analysis ─────────────────────────────────────────────────────────


class AnalysisDetails(CamelModel):
    color_page_range: str
    grayscale_page_range: str


class AnalysisResponse(CamelModel):
    """Result of POST /analyze-pdf."""

    color_pages: int
    bw_pages: int
    details: AnalysisDetails
    temp_filename: str = Field(description="Staging handle to present at confirmation")
    original_name: str


# ── Confirmation ─────────────────────────────────────────────────────


class OrderConfirmation(CamelModel):
    """Form fields submitted with the payment proof."""

    order_id: str = ""
    total_amount: str = ""
    customer_name: str = ""
    customer_phone: str = ""
    color_pages: int = 0
    bw_pages: int = 0
    copies: int = 1
    payment_method: str = ""
    temp_filename: str = ""
    original_name: str = ""
    color_page_range: str = ""
    grayscale_page_range: str = ""
    pickup_location: str = ""
    print_mode: str = ""


class OrderData(CamelModel):
    order_id: str
    color_pages: int
    bw_pages: int
    copies: int
    gross_amount: int
    transaction_time: datetime
    original_name: str
    customer_name: str | None = None


class OrderConfirmedResponse(CamelModel):
    message: str
    order_data: OrderData


# ── Admin ────────────────────────────────────────────────────────────


class OrderOut(CamelModel):
    """One row of the admin order list."""

    order_id: str
    customer_name: str | None = None
    customer_phone: str | None = None
    transaction_time: datetime
    payment_method: str | None = None
    status: str
    gross_amount: int
    color_pages: int
    bw_pages: int
    copies: int
    color_page_range: str
    grayscale_page_range: str
    original_name: str
    file_path: str | None = None
    proof_path: str | None = None
    pickup_location: str
    print_mode: str


class StatusUpdate(CamelModel):
    status: str


class StatusUpdated(CamelModel):
    message: str
    changes: int


class BulkDeleteRequest(CamelModel):
    order_ids: list[str] = Field(default_factory=list)


class BulkDeleteResponse(CamelModel):
    message: str
    requested: int
    deleted: int
    files_failed: int


class StagedFileOut(CamelModel):
    name: str
    path: str
    size: int
    created_at: datetime


class StagedDeleteRequest(CamelModel):
    file_paths: list[str] = Field(default_factory=list)


class StagedDeleteResponse(CamelModel):
    message: str
    deleted: int
    missing: int = 0
    errors: list[str] = Field(default_factory=list)
