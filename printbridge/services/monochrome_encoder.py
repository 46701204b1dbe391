"""Service for turning raster images into packed monochrome bitmaps.

The pipeline is:
- Alpha flattening over an opaque white background
- Aspect-preserving resize to the printer width
- Grayscale conversion with BT.601 luma weights
- Floyd-Steinberg dithering, or a flat threshold
- Packing to 1-bit rows, most significant bit first
"""

from __future__ import annotations

from PIL import Image

from printbridge.exceptions import DecodeError
from printbridge.models.bitmap import BitPolarity, MonochromeBitmap, RasterImage
from printbridge.utils.bitmap import packed_row_bytes, scaled_size


DEFAULT_THRESHOLD = 128

# Floyd-Steinberg neighbours as (dx, dy, weight)
_DIFFUSION = (
    (1, 0, 7 / 16),
    (-1, 1, 3 / 16),
    (0, 1, 5 / 16),
    (1, 1, 1 / 16),
)


class MonochromeEncoder:
    """Encoder producing device-ready 1-bit bitmaps from RGBA rasters."""

    @staticmethod
    def flatten_alpha(img: Image.Image) -> Image.Image:
        """Composite an image over opaque white and drop the alpha channel."""
        if img.mode != "RGBA":
            img = img.convert("RGBA")
        background = Image.new("RGBA", img.size, (255, 255, 255, 255))
        return Image.alpha_composite(background, img).convert("RGB")

    @staticmethod
    def resize_for_printer(
        img: Image.Image, target_width: int, max_height: int | None = None
    ) -> Image.Image:
        """Resize an image preserving its aspect ratio.

        Args:
            img: PIL Image to resize
            target_width: Output width in pixels
            max_height: Optional cap on the output height

        Returns:
            Resized PIL Image
        """
        size = scaled_size(img.width, img.height, target_width, max_height)
        if size == img.size:
            return img
        return img.resize(size, Image.Resampling.LANCZOS)

    @staticmethod
    def to_luma(img: Image.Image) -> list[float]:
        """Convert an RGB image to a row-major list of luma values.

        Uses 0.299 R + 0.587 G + 0.114 B without rounding. Pillow's own "L"
        conversion rounds to integers and is not used here.
        """
        if img.mode != "RGB":
            img = img.convert("RGB")
        raw = img.tobytes()
        return [
            0.299 * raw[i] + 0.587 * raw[i + 1] + 0.114 * raw[i + 2]
            for i in range(0, len(raw), 3)
        ]

    @staticmethod
    def apply_dithering(
        luma: list[float], width: int, height: int, threshold: int = DEFAULT_THRESHOLD
    ) -> list[bool]:
        """Apply Floyd-Steinberg error diffusion.

        Error that would land outside the image is dropped, not redistributed.

        Args:
            luma: Row-major grayscale plane
            width: Plane width
            height: Plane height
            threshold: Values below it become ink

        Returns:
            Row-major list, True where a dot must be printed
        """
        plane = list(luma)
        ink = [False] * (width * height)

        for y in range(height):
            row = y * width
            for x in range(width):
                old_pixel = plane[row + x]
                if old_pixel < threshold:
                    new_pixel = 0.0
                    ink[row + x] = True
                else:
                    new_pixel = 255.0

                quant_error = old_pixel - new_pixel
                if quant_error == 0:
                    continue

                for dx, dy, weight in _DIFFUSION:
                    nx = x + dx
                    ny = y + dy
                    if 0 <= nx < width and ny < height:
                        plane[ny * width + nx] += quant_error * weight

        return ink

    @staticmethod
    def apply_threshold(luma: list[float], threshold: int = DEFAULT_THRESHOLD) -> list[bool]:
        """Flat threshold without error diffusion."""
        return [value < threshold for value in luma]

    @staticmethod
    def pack(
        ink: list[bool], width: int, height: int, polarity: BitPolarity = BitPolarity.INK_IS_ONE
    ) -> bytes:
        """Pack an ink plane into 1-bit rows, MSB first.

        Bytes start at 0 and padding bits past the right edge stay 0.
        """
        bytes_per_line = packed_row_bytes(width)
        output = bytearray(bytes_per_line * height)
        ink_bit = polarity is BitPolarity.INK_IS_ONE

        for y in range(height):
            row = y * width
            line = y * bytes_per_line
            for x in range(width):
                if ink[row + x] == ink_bit:
                    output[line + (x >> 3)] |= 0x80 >> (x & 7)

        return bytes(output)

    @staticmethod
    def encode(
        image: RasterImage | Image.Image,
        target_width: int,
        max_height: int | None = None,
        *,
        polarity: BitPolarity = BitPolarity.INK_IS_ONE,
        dither: bool = True,
        threshold: int = DEFAULT_THRESHOLD,
    ) -> MonochromeBitmap:
        """Run the full pipeline on an image.

        Args:
            image: Source raster, or a Pillow image
            target_width: Output width in pixels
            max_height: Optional cap on the output height
            polarity: Meaning of a set bit in the output
            dither: Floyd-Steinberg when True, flat threshold otherwise
            threshold: Ink threshold on the 0-255 luma scale

        Returns:
            Packed MonochromeBitmap

        Raises:
            DecodeError: If the source cannot be read as an image
        """
        try:
            img = image.to_pil() if isinstance(image, RasterImage) else image
            img.load()
        except Exception as e:
            raise DecodeError(f"Failed to read source image: {e}") from e

        if img.width <= 0 or img.height <= 0:
            raise DecodeError(f"Source image is empty ({img.width}x{img.height})")

        img = MonochromeEncoder.flatten_alpha(img)
        img = MonochromeEncoder.resize_for_printer(img, target_width, max_height)
        width, height = img.size

        luma = MonochromeEncoder.to_luma(img)
        if dither:
            ink = MonochromeEncoder.apply_dithering(luma, width, height, threshold)
        else:
            ink = MonochromeEncoder.apply_threshold(luma, threshold)

        return MonochromeBitmap(
            width=width,
            height=height,
            data=MonochromeEncoder.pack(ink, width, height, polarity),
            polarity=polarity,
        )
