"""Indonesian locale formatting for notification text."""

from __future__ import annotations

from src.models.enums import PrintMode


def format_rupiah(value: int | None) -> str:
    """Format as Indonesian thousands: 1234567 -> "1.234.567"."""
    if value is None:
        return "-"
    return f"{value:,}".replace(",", ".")


def format_print_mode(value: str | None) -> str:
    """Human label for a stored print mode."""
    if value == PrintMode.GRAYSCALE.value:
        return "SEMUA HITAM PUTIH"
    return "Normal"
