"""Default image decoders backed by Pillow."""

from __future__ import annotations

import base64
import binascii
from io import BytesIO

from PIL import Image, UnidentifiedImageError

from printbridge.exceptions import DecodeError
from printbridge.models.bitmap import RasterImage
from printbridge.utils.bitmap import strip_data_url


def decode_image(image_data: bytes) -> RasterImage:
    """Decode encoded image bytes (PNG, JPEG, BMP, ...) into an RGBA raster.

    Raises:
        DecodeError: If the bytes are empty or not a readable image
    """
    if not image_data:
        raise DecodeError("Image data is empty")
    try:
        with Image.open(BytesIO(image_data)) as img:
            img.load()
            return RasterImage.from_pil(img)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise DecodeError(f"Failed to load image: {e}") from e


def decode_base64_image(value: str) -> RasterImage:
    """Decode a base64 string or data URL into an RGBA raster.

    Raises:
        DecodeError: If the text is not base64 or does not hold an image
    """
    try:
        image_data = base64.b64decode(strip_data_url(value), validate=False)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Invalid base64 image data: {e}") from e
    return decode_image(image_data)


def decode_barcode(value: str) -> RasterImage:
    """Decode the base64 barcode image attached to a receipt."""
    return decode_base64_image(value)
