"""Tests for the bitmap models and unit helpers."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from printbridge.models.bitmap import BitPolarity, MonochromeBitmap, RasterImage
from printbridge.models.command import CommandBlock, JobFormat, PrintJob
from printbridge.utils.bitmap import calculate_bitmap_data_size, mm_to_dots, scaled_size, strip_data_url


def test_raster_requires_matching_buffer() -> None:
    with pytest.raises(ValidationError):
        RasterImage(width=2, height=2, pixels=bytes(15))


def test_raster_round_trips_through_pillow() -> None:
    raster = RasterImage(width=2, height=1, pixels=bytes([1, 2, 3, 4, 5, 6, 7, 8]))

    assert RasterImage.from_pil(raster.to_pil()) == raster


def test_bitmap_requires_packed_length() -> None:
    with pytest.raises(ValidationError):
        MonochromeBitmap(width=9, height=2, data=bytes(3))


@pytest.mark.parametrize(
    "x,y,expected",
    [(0, 0, (0, 7)), (7, 0, (0, 0)), (8, 0, (1, 7)), (0, 1, (2, 7)), (9, 2, (5, 6))],
)
def test_locate_is_msb_first(x: int, y: int, expected: tuple[int, int]) -> None:
    bitmap = MonochromeBitmap(width=10, height=3, data=bytes(6))

    assert bitmap.locate(x, y) == expected


def test_locate_rejects_outside_pixels() -> None:
    bitmap = MonochromeBitmap(width=10, height=3, data=bytes(6))

    with pytest.raises(IndexError):
        bitmap.locate(10, 0)


def test_with_polarity_keeps_padding_clear() -> None:
    bitmap = MonochromeBitmap(width=10, height=2, data=b"\x80\x00\x00\x40")

    inverted = bitmap.with_polarity(BitPolarity.INK_IS_ZERO)

    assert inverted.data == b"\x7f\xc0\xff\x80"
    assert inverted.is_ink(0, 0)
    assert not inverted.is_ink(1, 0)
    assert inverted.is_ink(9, 1)
    assert inverted.with_polarity(BitPolarity.INK_IS_ONE) == bitmap


def test_with_same_polarity_is_unchanged() -> None:
    bitmap = MonochromeBitmap(width=8, height=1, data=b"\x0f")

    assert bitmap.with_polarity(BitPolarity.INK_IS_ONE) is bitmap


def test_command_block_bytes() -> None:
    block = CommandBlock(name="bitmap", header=b"BITMAP 0,0,1,1,0,", payload=b"\x80")

    assert block.to_bytes() == b"BITMAP 0,0,1,1,0,\x80"
    assert len(block) == 18
    assert len(CommandBlock(header=b"CLS\n")) == 4


def test_print_job_needs_blocks_and_copies() -> None:
    with pytest.raises(ValidationError):
        PrintJob(format=JobFormat.LABEL, copies=1, blocks=[])
    with pytest.raises(ValidationError):
        PrintJob(format=JobFormat.LABEL, copies=0, blocks=[CommandBlock(header=b"CLS\n")])


@pytest.mark.parametrize("mm,dots", [(48, 384), (25, 200), (3, 24), (72, 575)])
def test_mm_to_dots(mm: float, dots: int) -> None:
    assert mm_to_dots(mm, 203) == dots


def test_bitmap_data_size() -> None:
    assert calculate_bitmap_data_size(384, 10) == 480
    assert calculate_bitmap_data_size(10, 3) == 6


@pytest.mark.parametrize(
    "size,target,max_height,expected",
    [
        ((100, 50), 384, None, (384, 192)),
        ((100, 50), 384, 100, (200, 100)),
        ((1, 1), 384, 200, (200, 200)),
        ((1000, 1), 384, None, (384, 1)),
    ],
)
def test_scaled_size(size, target, max_height, expected) -> None:
    assert scaled_size(*size, target, max_height) == expected


def test_strip_data_url() -> None:
    assert strip_data_url("data:image/png;base64,QUJD") == "QUJD"
    assert strip_data_url("QUJD") == "QUJD"
