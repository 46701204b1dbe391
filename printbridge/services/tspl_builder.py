"""TSPL command construction for thermal label printers.

Text commands are ASCII lines terminated with ``\\n``. The only binary command is
``BITMAP``, whose header and packed payload must reach the printer back to back.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from printbridge.config import Settings, get_settings
from printbridge.models.bitmap import BitPolarity, MonochromeBitmap, RasterImage
from printbridge.models.command import CommandBlock
from printbridge.services.monochrome_encoder import MonochromeEncoder
from printbridge.utils.bitmap import mm_to_dots


def _mm(value: float) -> str:
    # 48.0 -> "48", 12.5 -> "12.5"
    return f"{value:g}"


class TsplOptions(BaseModel):
    """Physical label and print settings sent by the init sequence."""

    label_width_mm: float = Field(48.0, gt=0)
    label_height_mm: float = Field(25.0, gt=0)
    gap_mm: float = Field(3.0, ge=0)
    density: int = Field(6, ge=0, le=15)
    speed: int = Field(3, ge=1, le=5)
    dpi: int = Field(203, gt=0)
    reference_x: int = Field(0, ge=0)
    reference_y: int = Field(0, ge=0)
    direction: int = Field(1, ge=0, le=1)
    print_form: Literal["sets", "copies"] = "sets"
    bitmap_polarity: BitPolarity = BitPolarity.INK_IS_ONE
    dither: bool = True

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> TsplOptions:
        settings = settings or get_settings()
        return cls(
            label_width_mm=settings.label_width_mm,
            label_height_mm=settings.label_height_mm,
            gap_mm=settings.label_gap_mm,
            density=settings.density,
            speed=settings.speed,
            dpi=settings.dpi,
            reference_x=settings.reference_x,
            reference_y=settings.reference_y,
            direction=settings.direction,
            print_form=settings.tspl_print_form,
            bitmap_polarity=settings.tspl_bitmap_polarity,
            dither=settings.label_dither,
        )

    @property
    def label_width_px(self) -> int:
        return mm_to_dots(self.label_width_mm, self.dpi)

    @property
    def label_height_px(self) -> int:
        return mm_to_dots(self.label_height_mm, self.dpi)


class TsplCommandBuilder:
    """Builds TSPL commands for one label configuration."""

    def __init__(self, options: TsplOptions | None = None) -> None:
        self.options = options or TsplOptions.from_settings()

    def init(self, options: TsplOptions | None = None) -> str:
        """Label setup followed by CLS, which clears the image buffer."""
        opts = options or self.options
        return (
            f"SIZE {_mm(opts.label_width_mm)} mm, {_mm(opts.label_height_mm)} mm\n"
            f"GAP {_mm(opts.gap_mm)} mm, 0\n"
            + self.density(opts.density)
            + self.speed(opts.speed)
            + self.reference(opts.reference_x, opts.reference_y)
            + self.direction(opts.direction)
            + self.cls()
        )

    def print_labels(self, copies: int = 1, options: TsplOptions | None = None) -> str:
        if copies < 1:
            raise ValueError(f"Copies must be at least 1, got {copies}")
        opts = options or self.options
        if opts.print_form == "copies":
            return f"PRINT {copies}\n"
        return f"PRINT 1,{copies}\n"

    @staticmethod
    def form_feed() -> str:
        return "FORMFEED\n"

    @staticmethod
    def gap_detect() -> str:
        return "GAPDETECT\n"

    @staticmethod
    def cls() -> str:
        return "CLS\n"

    @staticmethod
    def feed(dots: int) -> str:
        if dots < 0:
            raise ValueError(f"Feed length must not be negative, got {dots}")
        return f"FEED {dots}\n"

    @staticmethod
    def density(level: int) -> str:
        if not 0 <= level <= 15:
            raise ValueError(f"Density must be between 0 and 15, got {level}")
        return f"DENSITY {level}\n"

    @staticmethod
    def speed(level: int) -> str:
        if not 1 <= level <= 5:
            raise ValueError(f"Speed must be between 1 and 5, got {level}")
        return f"SPEED {level}\n"

    @staticmethod
    def direction(value: int) -> str:
        return f"DIRECTION {value}\n"

    @staticmethod
    def reference(x: int, y: int) -> str:
        return f"REFERENCE {x},{y}\n"

    @staticmethod
    def self_test() -> str:
        return "SELFTEST\n"

    @staticmethod
    def status() -> str:
        return "?STATUS\n"

    @staticmethod
    def version() -> str:
        return "?VERSION\n"

    def bitmap_command(
        self,
        bitmap: MonochromeBitmap,
        x: int = 0,
        y: int = 0,
        mode: int = 0,
        options: TsplOptions | None = None,
    ) -> CommandBlock:
        """Frame a packed bitmap as a BITMAP command.

        The payload is converted to the configured polarity when needed.
        """
        packed = bitmap.with_polarity((options or self.options).bitmap_polarity)
        header = f"BITMAP {x},{y},{packed.width_bytes},{packed.height},{mode},"
        return CommandBlock(name="bitmap", header=header.encode("ascii"), payload=packed.data)

    def encode_label(self, image: RasterImage) -> MonochromeBitmap:
        """Encode an image to the label width, capped at the label height."""
        return MonochromeEncoder.encode(
            image,
            self.options.label_width_px,
            self.options.label_height_px,
            polarity=self.options.bitmap_polarity,
            dither=self.options.dither,
        )

    @staticmethod
    def text_block(command: str, name: str) -> CommandBlock:
        return CommandBlock(name=name, header=command.encode("ascii"))
