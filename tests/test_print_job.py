"""Tests for print job sequencing and failure reporting."""

from __future__ import annotations

import asyncio

import pytest

from printbridge.controllers.print_job import PrintJobOrchestrator
from printbridge.controllers.serial_transport import SerialTransport
from printbridge.models.bitmap import BitPolarity, MonochromeBitmap
from printbridge.models.command import CommandBlock, JobFormat, PrintJob, StepResult
from printbridge.services.tspl_builder import TsplCommandBuilder, TsplOptions

from fakes import FakeOpener, FakeStream, fail_on_nth


DEVICE = "AA:BB:CC:DD:EE:FF"
BITMAP = MonochromeBitmap(width=16, height=2, data=b"\xff\x00\x0f\xf0")


def _run(store, opener, settings, job):
    """Connect, run ``job(orchestrator)`` and close the transport."""
    transport = SerialTransport(store, opener=opener, settings=settings)
    orchestrator = PrintJobOrchestrator(transport, TsplCommandBuilder(TsplOptions()))

    async def scenario():
        await transport.connect(DEVICE)
        try:
            return await job(orchestrator)
        finally:
            await transport.close()

    return asyncio.run(scenario())


def test_label_job_prints_every_copy(store, opener, settings) -> None:
    outcome = _run(store, opener, settings, lambda o: o.run_label_job(BITMAP, 3))

    assert outcome.success
    assert outcome.format is JobFormat.LABEL
    assert outcome.copies_printed == 3
    assert outcome.failed_copy is None
    assert outcome.message == "Print job complete: 3 of 3 label(s) printed."

    tspl = TsplCommandBuilder(TsplOptions())
    one_label = (
        tspl.init().encode()
        + b"BITMAP 0,0,2,2,0," + BITMAP.data
        + b"PRINT 1,1\n"
    )
    assert opener.stream.data == one_label * 3


def test_label_job_stops_at_first_failure(store, settings) -> None:
    opener = FakeOpener(FakeStream(fail_when=fail_on_nth(b"PRINT", 2)))

    outcome = _run(store, opener, settings, lambda o: o.run_label_job(BITMAP, 3))

    assert not outcome.success
    assert outcome.copies_requested == 3
    assert outcome.copies_printed == 1
    assert outcome.failed_copy == 2
    assert outcome.failed_step == "print"
    assert outcome.message == (
        "Print job aborted: 1 of 3 label(s) printed, label #2 failed at print, 1 not attempted."
    )
    assert opener.stream.data.count(b"PRINT 1,1\n") == 1
    assert opener.stream.data.count(b"BITMAP") == 2


def test_failure_on_last_copy_has_nothing_left(store, settings) -> None:
    opener = FakeOpener(FakeStream(fail_when=fail_on_nth(b"BITMAP", 2)))

    outcome = _run(store, opener, settings, lambda o: o.run_label_job(BITMAP, 2))

    assert outcome.failed_step == "bitmap"
    assert outcome.message == "Print job aborted: 1 of 2 label(s) printed, label #2 failed at bitmap."


def test_job_log_records_each_step(store, opener, settings) -> None:
    steps: list[StepResult] = []

    outcome = _run(store, opener, settings, lambda o: o.run_label_job(BITMAP, 2, on_step=steps.append))

    assert [(s.copy_number, s.step) for s in steps] == [
        (1, "init"), (1, "bitmap"), (1, "print"),
        (2, "init"), (2, "bitmap"), (2, "print"),
    ]
    assert all(s.success for s in steps)
    assert outcome.log[0] == "Starting print job for 2 label(s)..."
    assert "Label #2: print sent." in outcome.log


def test_job_on_disconnected_transport_fails_first_step(store, opener, settings) -> None:
    transport = SerialTransport(store, opener=opener, settings=settings)
    orchestrator = PrintJobOrchestrator(transport, TsplCommandBuilder(TsplOptions()))

    async def scenario():
        try:
            return await orchestrator.run_label_job(BITMAP, 2)
        finally:
            await transport.close()

    outcome = asyncio.run(scenario())

    assert not outcome.success
    assert outcome.copies_printed == 0
    assert outcome.failed_copy == 1
    assert outcome.failed_step == "init"
    assert "Printer is not connected" in outcome.log[1]
    assert opener.stream.writes == []


def test_init_options_override_label_setup(store, opener, settings) -> None:
    options = TsplOptions(label_width_mm=40, label_height_mm=30)

    _run(store, opener, settings, lambda o: o.run_label_job(BITMAP, 1, init_options=options))

    assert opener.stream.data.startswith(b"SIZE 40 mm, 30 mm\n")


def test_label_job_requires_a_copy(store, opener, settings) -> None:
    with pytest.raises(ValueError):
        _run(store, opener, settings, lambda o: o.run_label_job(BITMAP, 0))


def test_receipt_job_sends_single_block(store, opener, settings) -> None:
    receipt = b"\x1b\x40Hello\n\x1d\x56\x41\x00"

    outcome = _run(store, opener, settings, lambda o: o.run_receipt_job(receipt))

    assert outcome.success
    assert outcome.format is JobFormat.RECEIPT
    assert outcome.message == "Print job complete: 1 of 1 receipt(s) printed."
    assert opener.stream.data == receipt


def test_generic_job_repeats_blocks_per_copy(store, opener, settings) -> None:
    job = PrintJob(
        format=JobFormat.LABEL,
        copies=2,
        blocks=[CommandBlock(name="a", header=b"A"), CommandBlock(name="b", header=b"B", payload=b"b")],
    )

    outcome = _run(store, opener, settings, lambda o: o.run_job(job))

    assert outcome.copies_printed == 2
    assert opener.stream.data == b"ABbABb"


def test_concurrent_label_jobs_do_not_interleave(store, opener, settings) -> None:
    first = MonochromeBitmap(width=8, height=1, data=b"\xaa")
    second = MonochromeBitmap(width=8, height=1, data=b"\x55")

    async def both(orchestrator):
        return await asyncio.gather(
            orchestrator.run_label_job(first, 1),
            orchestrator.run_label_job(second, 1),
        )

    outcomes = _run(store, opener, settings, both)

    assert all(outcome.success for outcome in outcomes)
    init = TsplCommandBuilder(TsplOptions()).init().encode()
    assert opener.stream.data == (
        init + b"BITMAP 0,0,1,1,0,\xaa" + b"PRINT 1,1\n"
        + init + b"BITMAP 0,0,1,1,0,U" + b"PRINT 1,1\n"
    )


def test_concurrent_receipt_and_label_jobs_stay_whole(store, opener, settings) -> None:
    receipt = b"\x1b\x40Receipt\n\x1d\x56\x41\x00"

    async def both(orchestrator):
        return await asyncio.gather(
            orchestrator.run_label_job(BITMAP, 2),
            orchestrator.run_receipt_job(receipt),
        )

    _run(store, opener, settings, both)

    data = opener.stream.data
    label_part = data[: len(data) - len(receipt)]
    assert data.endswith(receipt)
    assert label_part.count(b"PRINT 1,1\n") == 2
    assert label_part.endswith(b"PRINT 1,1\n")


def test_init_options_print_form_is_honoured(store, opener, settings) -> None:
    options = TsplOptions(print_form="copies")

    _run(store, opener, settings, lambda o: o.run_label_job(BITMAP, 1, init_options=options))

    assert opener.stream.data.endswith(b"PRINT 1\n")
    assert b"PRINT 1,1\n" not in opener.stream.data


def test_init_options_bitmap_polarity_is_honoured(store, opener, settings) -> None:
    options = TsplOptions(bitmap_polarity=BitPolarity.INK_IS_ZERO)

    _run(store, opener, settings, lambda o: o.run_label_job(BITMAP, 1, init_options=options))

    inverted = bytes(b ^ 0xFF for b in BITMAP.data)
    assert b"BITMAP 0,0,2,2,0," + inverted in opener.stream.data
