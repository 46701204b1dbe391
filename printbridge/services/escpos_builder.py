"""ESC/POS command construction and receipt composition for receipt printers."""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import IntEnum
from typing import Callable

from printbridge.config import ReceiptColumns, Settings, get_settings
from printbridge.exceptions import DecodeError
from printbridge.models.bitmap import BitPolarity, MonochromeBitmap, RasterImage
from printbridge.models.receipt import ReceiptDocument
from printbridge.services.image_decoder import decode_barcode
from printbridge.services.monochrome_encoder import MonochromeEncoder
from printbridge.utils.bitmap import mm_to_dots


ESC = 0x1B
GS = 0x1D

_logger = logging.getLogger(__name__)


class Justification(IntEnum):
    LEFT = 0
    CENTER = 1
    RIGHT = 2


class MoneyFormatter:
    """Formats money strings with a single currency prefix.

    Any currency glyph, thousands separator or whitespace already present is
    stripped before the value is formatted again, so "₹1,200" stays "₹1,200"
    instead of becoming "₹₹1,200".
    """

    def __init__(self, symbol: str = "₹") -> None:
        self.symbol = symbol

    def __call__(self, value: str) -> str:
        clean = value.replace(self.symbol, "").replace(",", "").strip()
        try:
            # Halves round up, 2.5 -> 3
            rounded = Decimal(clean).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        except InvalidOperation:
            return value
        if rounded.is_nan():
            return value
        return f"{self.symbol}{rounded:,}"


def parse_amount(value: str, symbol: str = "₹") -> float:
    """Parse a money string, treating anything unparseable as zero."""
    try:
        return float(value.replace(symbol, "").replace(",", "").strip())
    except ValueError:
        return 0.0


class EscPosCommandBuilder:
    """Builds ESC/POS byte sequences and full receipt documents."""

    def __init__(
        self,
        settings: Settings | None = None,
        barcode_decoder: Callable[[str], RasterImage] = decode_barcode,
    ) -> None:
        self.settings = settings or get_settings()
        self.columns: ReceiptColumns = self.settings.receipt_columns
        self.format_money = MoneyFormatter(self.settings.currency_symbol)
        self._decode_barcode = barcode_decoder

    @property
    def print_width_dots(self) -> int:
        return mm_to_dots(self.settings.receipt_print_width_mm, self.settings.dpi)

    # ===========================
    # Basic commands
    # ===========================

    @staticmethod
    def init() -> bytes:
        return bytes([ESC, 0x40])

    @staticmethod
    def feed(lines: int) -> bytes:
        if not 0 <= lines <= 255:
            raise ValueError(f"Feed lines must be between 0 and 255, got {lines}")
        return bytes([ESC, 0x64, lines])

    @staticmethod
    def cut() -> bytes:
        return bytes([GS, 0x56, 0x41, 0x00])

    @staticmethod
    def justify(align: Justification | int) -> bytes:
        return bytes([ESC, 0x61, int(Justification(align))])

    @staticmethod
    def select_font(font: int) -> bytes:
        return bytes([ESC, 0x4D, font & 0xFF])

    @staticmethod
    def bold(on: bool) -> bytes:
        return bytes([ESC, 0x45, 1 if on else 0])

    @staticmethod
    def text_size(width: int, height: int) -> bytes:
        """Character size; each multiplier is stored in one nibble of the size byte."""
        return bytes([GS, 0x21, ((width & 0x0F) << 4) | (height & 0x0F)])

    # ===========================
    # Image printing
    # ===========================

    @staticmethod
    def raster_bitmap(bitmap: MonochromeBitmap) -> bytes:
        """Frame a packed bitmap as a GS v 0 raster block (mode 0)."""
        packed = bitmap.with_polarity(BitPolarity.INK_IS_ONE)
        width_bytes = packed.width_bytes
        height = packed.height
        if width_bytes > 0xFFFF or height > 0xFFFF:
            raise ValueError(f"Raster too large for GS v 0: {width_bytes} bytes x {height} rows")
        header = bytes(
            [
                GS, 0x76, 0x30, 0x00,
                width_bytes & 0xFF, (width_bytes >> 8) & 0xFF,
                height & 0xFF, (height >> 8) & 0xFF,
            ]
        )
        return header + packed.data

    def raster_image(self, image: RasterImage) -> bytes:
        """Scale an image to the paper width and frame it as a raster block.

        Uses a flat threshold unless ``receipt_dither`` is enabled.
        """
        bitmap = MonochromeEncoder.encode(
            image,
            self.print_width_dots,
            dither=self.settings.receipt_dither,
            threshold=self.settings.receipt_threshold,
        )
        return self.raster_bitmap(bitmap)

    # ===========================
    # Receipt
    # ===========================

    def _text(self, line: str) -> bytes:
        return f"{line}\n".encode(self.settings.receipt_encoding, errors="replace")

    def _rule(self) -> bytes:
        return self._text(self.columns.rule_char * self.columns.rule_width)

    def item_row(self, name: str, qty: str, rate: str, amount: str) -> str:
        cols = self.columns
        return (
            f"{name[:cols.name_width]:<{cols.name_width}} "
            f"{qty:>{cols.qty_width}} "
            f"{rate:>{cols.rate_width}} "
            f"{amount:>{cols.amount_width}}"
        )

    def compose_receipt(self, receipt: ReceiptDocument) -> bytes:
        """Assemble a complete receipt, from printer init to paper cut."""
        settings = self.settings
        fmt = self.format_money
        out = bytearray()

        out += self.init()

        # Header
        out += self.justify(Justification.CENTER)
        out += self._text(receipt.shop_name or settings.shop_name)
        address_lines = (
            receipt.address_lines if receipt.address_lines is not None else settings.shop_address_lines
        )
        for line in address_lines:
            out += self._text(line)
        if settings.shop_phone:
            out += self._text(f"Ph: {settings.shop_phone}")
        out += self._rule()

        # Metadata
        out += self.justify(Justification.LEFT)
        out += self._text(f"Invoice: {receipt.invoice_number}")
        out += self._text(f"Customer: {receipt.customer_name}")
        out += self._text(f"Phone: {receipt.customer_phone}")
        if receipt.date.strip() and receipt.date != "Invalid Date":
            out += self._text(f"Date: {receipt.date}   Time: {receipt.time}")
        out += self._rule()

        # Items
        out += self._text(self.item_row("Item", "Qty", "Rate", "Amt"))
        out += self._rule()
        for item in receipt.items:
            out += self._text(self.item_row(item.name, str(item.qty), fmt(item.price), fmt(item.total)))
        out += self._rule()

        # Totals
        out += self.justify(Justification.RIGHT)
        out += self._text(f"Subtotal: {fmt(receipt.subtotal)}")
        if parse_amount(receipt.discount, settings.currency_symbol) > 0:
            out += self._text(f"Discount: {fmt(receipt.discount)}")
        out += self.bold(True)
        out += self._text(f"Total: {fmt(receipt.total)}")
        out += self.bold(False)
        out += self._text(f"Payment: {receipt.payment_method}")

        if receipt.barcode.strip():
            out += self._barcode_block(receipt)

        out += b"\n"
        out += self.justify(Justification.CENTER)
        out += self.text_size(1, 1)
        out += self._text(receipt.footer or settings.thank_you_line)
        out += self.text_size(0, 0)

        out += self.feed(settings.receipt_feed_lines)
        out += self.cut()
        return bytes(out)

    def _barcode_block(self, receipt: ReceiptDocument) -> bytes:
        try:
            image = self._decode_barcode(receipt.barcode)
            raster = self.raster_image(image)
        except DecodeError as e:
            _logger.warning(f"Skipping barcode for invoice {receipt.invoice_number}: {e}")
            return b""
        return self.justify(Justification.CENTER) + raster + self._text(receipt.invoice_number)
