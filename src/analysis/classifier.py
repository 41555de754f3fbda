"""Page color classification.

Synchronous, pure Python (Pillow). Samples pixels on a square grid whose
stride keeps the sample count near 10,000 regardless of render resolution,
so the cost per page stays roughly constant.
"""

from __future__ import annotations

import io
import logging
import math

from PIL import Image

from src.models.enums import PageKind

logger = logging.getLogger(__name__)

TARGET_SAMPLES_PER_SIDE = 100
NEAR_WHITE = 245
NEAR_BLACK = 10
CHANNEL_TOLERANCE = 12
# One small logo or highlight is enough to bill the page as color.
COLOR_THRESHOLD = 0.001


def sampling_stride(width: int, height: int) -> int:
    """Grid stride that bounds the sample count to roughly 10,000 pixels."""
    return max(1, math.isqrt(width * height) // TARGET_SAMPLES_PER_SIDE)


def is_colored_pixel(r: int, g: int, b: int) -> bool:
    """True when the channels diverge by more than CHANNEL_TOLERANCE.

    Near-white and near-black pixels are page background and text, so they
    never count as colored.
    """
    if r > NEAR_WHITE and g > NEAR_WHITE and b > NEAR_WHITE:
        return False
    if r < NEAR_BLACK and g < NEAR_BLACK and b < NEAR_BLACK:
        return False
    return (
        abs(r - g) > CHANNEL_TOLERANCE
        or abs(g - b) > CHANNEL_TOLERANCE
        or abs(r - b) > CHANNEL_TOLERANCE
    )


def colored_fraction(img: Image.Image) -> float:
    """Fraction of sampled pixels that are colored (skipped pixels still count as sampled)."""
    rgb = img if img.mode == "RGB" else img.convert("RGB")
    width, height = rgb.size
    stride = sampling_stride(width, height)
    pixels = rgb.load()

    sampled = 0
    colored = 0
    for y in range(0, height, stride):
        for x in range(0, width, stride):
            sampled += 1
            r, g, b = pixels[x, y]
            if is_colored_pixel(r, g, b):
                colored += 1

    return colored / sampled if sampled else 0.0


def classify_page(image_bytes: bytes) -> PageKind:
    """Classify one rendered page as COLOR or GRAYSCALE.

    Never raises: an image that cannot be decoded is billed as GRAYSCALE
    and the error goes to the operational log.
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            img.load()
            fraction = colored_fraction(img)
    except Exception:
        logger.exception("Cannot decode page image (%d bytes), defaulting to grayscale", len(image_bytes))
        return PageKind.GRAYSCALE

    return PageKind.COLOR if fraction > COLOR_THRESHOLD else PageKind.GRAYSCALE
