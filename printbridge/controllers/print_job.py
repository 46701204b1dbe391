"""Sequencing of command blocks through the transport for whole print jobs."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from printbridge.controllers.serial_transport import SerialTransport
from printbridge.models.bitmap import MonochromeBitmap
from printbridge.models.command import CommandBlock, JobFormat, JobOutcome, PrintJob, StepResult
from printbridge.services.tspl_builder import TsplCommandBuilder, TsplOptions


StepCallback = Callable[[StepResult], None]


class PrintJobOrchestrator:
    """Feeds job blocks to one transport in order and stops at the first failure.

    Nothing is retried and nothing already printed can be undone, so a failed job
    reports how many copies made it out before the failing step. Jobs run one at a
    time: the blocks of two concurrent jobs never interleave on the wire.
    """

    def __init__(self, transport: SerialTransport, tspl: TsplCommandBuilder | None = None) -> None:
        self._transport = transport
        self._tspl = tspl or TsplCommandBuilder()
        self._job_lock = asyncio.Lock()
        self._logger = logging.getLogger(__name__)

    async def run_job(self, job: PrintJob, on_step: StepCallback | None = None) -> JobOutcome:
        """Send every block of every copy, in order, holding the job lock throughout."""
        async with self._job_lock:
            return await self._run_job(job, on_step)

    async def _run_job(self, job: PrintJob, on_step: StepCallback | None) -> JobOutcome:
        unit = "label" if job.format is JobFormat.LABEL else "receipt"
        log: list[str] = [f"Starting print job for {job.copies} {unit}(s)..."]
        self._logger.info(log[0])
        copies_printed = 0

        for copy_number in range(1, job.copies + 1):
            for block in job.blocks:
                success = await self._transport.send_command_block(block)
                if success:
                    message = f"{unit.capitalize()} #{copy_number}: {block.name} sent."
                else:
                    message = (
                        f"Error: {unit} #{copy_number} failed at {block.name}: "
                        f"{self._transport.last_error or 'write failed'}"
                    )
                log.append(message)
                self._logger.debug(message)
                if on_step is not None:
                    on_step(StepResult(copy_number=copy_number, step=block.name, success=success, message=message))

                if not success:
                    return self._failed(job, unit, copies_printed, copy_number, block.name, log)

            copies_printed += 1

        message = f"Print job complete: {copies_printed} of {job.copies} {unit}(s) printed."
        log.append(message)
        self._logger.info(message)
        return JobOutcome(
            success=True,
            format=job.format,
            copies_requested=job.copies,
            copies_printed=copies_printed,
            message=message,
            log=log,
        )

    def _failed(
        self,
        job: PrintJob,
        unit: str,
        copies_printed: int,
        failed_copy: int,
        failed_step: str,
        log: list[str],
    ) -> JobOutcome:
        message = (
            f"Print job aborted: {copies_printed} of {job.copies} {unit}(s) printed, "
            f"{unit} #{failed_copy} failed at {failed_step}"
        )
        not_attempted = job.copies - failed_copy
        if not_attempted:
            message += f", {not_attempted} not attempted"
        message += "."
        log.append(message)
        self._logger.warning(message)
        return JobOutcome(
            success=False,
            format=job.format,
            copies_requested=job.copies,
            copies_printed=copies_printed,
            failed_copy=failed_copy,
            failed_step=failed_step,
            message=message,
            log=log,
        )

    async def run_label_job(
        self,
        bitmap: MonochromeBitmap,
        copies: int,
        init_options: TsplOptions | None = None,
        on_step: StepCallback | None = None,
    ) -> JobOutcome:
        """Print ``copies`` labels, each with a fresh init/CLS, its bitmap and a PRINT."""
        if copies < 1:
            raise ValueError(f"Copies must be at least 1, got {copies}")

        tspl = self._tspl
        job = PrintJob(
            format=JobFormat.LABEL,
            copies=copies,
            blocks=[
                tspl.text_block(tspl.init(init_options), "init"),
                tspl.bitmap_command(bitmap, options=init_options),
                tspl.text_block(tspl.print_labels(1, init_options), "print"),
            ],
        )
        return await self.run_job(job, on_step)

    async def run_receipt_job(self, receipt_bytes: bytes, on_step: StepCallback | None = None) -> JobOutcome:
        """Send a fully composed receipt as a single block."""
        job = PrintJob(
            format=JobFormat.RECEIPT,
            copies=1,
            blocks=[CommandBlock(name="receipt", header=receipt_bytes)],
        )
        return await self.run_job(job, on_step)
