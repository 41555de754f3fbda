"""Domain enums used across SQLAlchemy models and Pydantic schemas.

All enums use str mixin for JSON serialization; columns store the plain value.
"""

from __future__ import annotations

import logging
from enum import Enum

logger = logging.getLogger(__name__)

MAX_STATUS_LENGTH = 50


class PageKind(str, Enum):
    """Billing class of a single page."""

    COLOR = "color"
    GRAYSCALE = "grayscale"


class PrintMode(str, Enum):
    """Customer choice at confirmation: GRAYSCALE bills every page as b/w."""

    COLOR = "color"
    GRAYSCALE = "grayscale"


class OrderStatus(str, Enum):
    """Known order statuses. Only PENDING_VERIFICATION is set by confirmation."""

    PENDING_VERIFICATION = "pending_verification"
    VERIFIED = "verified"
    PRINTING = "printing"
    READY = "ready"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


def normalize_status(raw: str) -> str:
    """Return a storable status tag.

    Known statuses are matched case-insensitively. Anything else is accepted
    as a custom tag so older admin clients keep working.

    Raises:
        ValueError: if the tag is empty or longer than MAX_STATUS_LENGTH.
    """
    tag = raw.strip()
    if not tag:
        raise ValueError("Status must not be empty")
    if len(tag) > MAX_STATUS_LENGTH:
        raise ValueError(f"Status longer than {MAX_STATUS_LENGTH} characters")
    try:
        return OrderStatus(tag.lower()).value
    except ValueError:
        logger.info("Accepting custom order status %r", tag)
        return tag


def parse_print_mode(raw: str | None) -> PrintMode:
    """Map the form value to a PrintMode. Anything but 'grayscale' prints normally."""
    if raw and raw.strip().lower() == PrintMode.GRAYSCALE.value:
        return PrintMode.GRAYSCALE
    return PrintMode.COLOR
