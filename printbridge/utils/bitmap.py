"""Geometry helpers for thermal printer bitmaps.

This module provides constants for common printer specifications and the small
calculations shared by the encoder and both command builders.
"""

from __future__ import annotations


# Printer specifications
STANDARD_DPI = 203
MM_PER_INCH = 25.4


def mm_to_dots(mm: float, dpi: int = STANDARD_DPI) -> int:
    """Convert a physical length to printer dots.

    Args:
        mm: Length in millimetres
        dpi: Print head resolution in dots per inch

    Returns:
        Number of dots, rounded to the nearest integer

    Raises:
        ValueError: If the result is not positive
    """
    dots = round(mm / MM_PER_INCH * dpi)
    if dots <= 0:
        raise ValueError(f"{mm} mm at {dpi} dpi is less than one dot")
    return dots


def packed_row_bytes(width: int) -> int:
    """Bytes needed for one packed row of ``width`` pixels."""
    return (width + 7) // 8


def calculate_bitmap_data_size(width: int, height: int) -> int:
    """Calculate the expected size of packed bitmap data.

    Args:
        width: Image width in pixels, any positive value
        height: Image height in pixels

    Returns:
        Expected data size in bytes
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Dimensions must be positive, got {width}x{height}")
    return packed_row_bytes(width) * height


def scaled_size(
    width: int, height: int, target_width: int, max_height: int | None = None
) -> tuple[int, int]:
    """Compute output dimensions for an aspect-preserving resize.

    The width is fitted to ``target_width``. When ``max_height`` is given and the
    resulting height exceeds it, the height is fitted instead and the width is
    derived from the ratio.

    Args:
        width: Source width in pixels
        height: Source height in pixels
        target_width: Desired output width
        max_height: Optional height cap

    Returns:
        (width, height) tuple, both at least 1
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Source dimensions must be positive, got {width}x{height}")
    if target_width <= 0:
        raise ValueError(f"Target width must be positive, got {target_width}")

    out_width = target_width
    out_height = max(1, round(height * target_width / width))

    if max_height is not None and out_height > max_height:
        if max_height <= 0:
            raise ValueError(f"Max height must be positive, got {max_height}")
        out_height = max_height
        out_width = max(1, round(width * max_height / height))

    return out_width, out_height


def strip_data_url(value: str) -> str:
    """Return the base64 part of a ``data:...;base64,`` URL, or the value itself."""
    value = value.strip()
    if value.startswith("data:") and "," in value:
        return value.split(",", 1)[1]
    return value
