"""Pydantic models for raster input and packed monochrome output."""

from __future__ import annotations

from enum import Enum

from PIL import Image
from pydantic import BaseModel, Field, model_validator

from printbridge.utils.bitmap import calculate_bitmap_data_size, packed_row_bytes


class BitPolarity(str, Enum):
    """Meaning of a set bit in a packed bitmap."""

    INK_IS_ONE = "ink_is_one"
    INK_IS_ZERO = "ink_is_zero"


class RasterImage(BaseModel):
    """Decoded RGBA image, row-major, four bytes per pixel."""

    width: int = Field(..., gt=0, description="Image width in pixels")
    height: int = Field(..., gt=0, description="Image height in pixels")
    pixels: bytes = Field(..., description="RGBA pixel buffer, row-major")

    @model_validator(mode="after")
    def _check_buffer(self) -> RasterImage:
        expected = self.width * self.height * 4
        if len(self.pixels) != expected:
            raise ValueError(
                f"Pixel buffer holds {len(self.pixels)} bytes, expected {expected} "
                f"for {self.width}x{self.height} RGBA"
            )
        return self

    @classmethod
    def from_pil(cls, img: Image.Image) -> RasterImage:
        """Build a raster from any Pillow image, converting it to RGBA."""
        if img.mode != "RGBA":
            img = img.convert("RGBA")
        return cls(width=img.width, height=img.height, pixels=img.tobytes())

    def to_pil(self) -> Image.Image:
        return Image.frombytes("RGBA", (self.width, self.height), self.pixels)


class MonochromeBitmap(BaseModel):
    """Packed 1-bit bitmap, eight pixels per byte, most significant bit first."""

    width: int = Field(..., gt=0, description="Bitmap width in pixels")
    height: int = Field(..., gt=0, description="Bitmap height in pixels")
    data: bytes = Field(..., description="Packed rows of width_bytes each")
    polarity: BitPolarity = Field(
        BitPolarity.INK_IS_ONE, description="Whether a set bit prints a dot"
    )

    @property
    def width_bytes(self) -> int:
        return packed_row_bytes(self.width)

    @model_validator(mode="after")
    def _check_length(self) -> MonochromeBitmap:
        expected = calculate_bitmap_data_size(self.width, self.height)
        if len(self.data) != expected:
            raise ValueError(
                f"Bitmap data holds {len(self.data)} bytes, expected {expected} "
                f"({self.width_bytes} bytes x {self.height} rows)"
            )
        return self

    def locate(self, x: int, y: int) -> tuple[int, int]:
        """Return the (byte index, bit index) holding pixel (x, y)."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} bitmap")
        return y * self.width_bytes + x // 8, 7 - (x % 8)

    def is_ink(self, x: int, y: int) -> bool:
        byte_index, bit_index = self.locate(x, y)
        bit_set = bool(self.data[byte_index] & (1 << bit_index))
        return bit_set if self.polarity is BitPolarity.INK_IS_ONE else not bit_set

    def with_polarity(self, polarity: BitPolarity) -> MonochromeBitmap:
        """Return the same picture packed with the requested polarity.

        Only bits that belong to real pixels are flipped; the padding bits at the
        end of each row stay 0.
        """
        if polarity is self.polarity:
            return self

        width_bytes = self.width_bytes
        tail_bits = self.width % 8
        last_mask = 0xFF if tail_bits == 0 else (0xFF << (8 - tail_bits)) & 0xFF

        output = bytearray(self.data)
        for row_start in range(0, len(output), width_bytes):
            for offset in range(width_bytes):
                mask = last_mask if offset == width_bytes - 1 else 0xFF
                output[row_start + offset] ^= mask

        return MonochromeBitmap(
            width=self.width, height=self.height, data=bytes(output), polarity=polarity
        )
