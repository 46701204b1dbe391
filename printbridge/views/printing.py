from __future__ import annotations

import asyncio

from fastapi import APIRouter, File, Form, HTTPException, Response, UploadFile, status

from printbridge.dependencies import EscPos, Orchestrator, Transport, Tspl
from printbridge.exceptions import DecodeError
from printbridge.models.bitmap import RasterImage
from printbridge.models.command import JobOutcome
from printbridge.models.receipt import LabelPrintRequest, ReceiptDocument
from printbridge.services.image_decoder import decode_base64_image, decode_image


router = APIRouter(prefix="/api/print", tags=["print"])


def _require_connection(transport: Transport) -> None:
    if not transport.is_connected:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Printer is not connected.",
        )


def _apply_outcome_status(outcome: JobOutcome, response: Response) -> JobOutcome:
    if not outcome.success:
        response.status_code = status.HTTP_502_BAD_GATEWAY
    return outcome


async def _print_label(
    image: RasterImage, copies: int, response: Response, orchestrator: Orchestrator, tspl: Tspl
) -> JobOutcome:
    try:
        bitmap = await asyncio.to_thread(tspl.encode_label, image)
    except DecodeError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc

    outcome = await orchestrator.run_label_job(bitmap, copies)
    return _apply_outcome_status(outcome, response)


@router.post("/label", response_model=JobOutcome)
async def print_label_upload(
    response: Response,
    transport: Transport,
    orchestrator: Orchestrator,
    tspl: Tspl,
    image: UploadFile = File(..., description="Image to print on each label"),
    copies: int = Form(1, ge=1, le=999),
) -> JobOutcome:
    """HTTP endpoint printing an uploaded image as one or more labels.

    Returns:
    - 200: Every label was sent
    - 409: No printer connected
    - 422: The upload is not an image
    - 502: A write failed; the outcome tells how many labels were printed
    """
    _require_connection(transport)
    image_data = await image.read()
    try:
        raster = await asyncio.to_thread(decode_image, image_data)
    except DecodeError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc

    return await _print_label(raster, copies, response, orchestrator, tspl)


@router.post("/label/base64", response_model=JobOutcome)
async def print_label_base64(
    payload: LabelPrintRequest,
    response: Response,
    transport: Transport,
    orchestrator: Orchestrator,
    tspl: Tspl,
) -> JobOutcome:
    """HTTP endpoint printing a base64 encoded image as one or more labels."""
    _require_connection(transport)
    try:
        raster = await asyncio.to_thread(decode_base64_image, payload.image_base64)
    except DecodeError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc

    return await _print_label(raster, payload.copies, response, orchestrator, tspl)


@router.post("/receipt", response_model=JobOutcome)
async def print_receipt(
    payload: ReceiptDocument,
    response: Response,
    transport: Transport,
    orchestrator: Orchestrator,
    escpos: EscPos,
) -> JobOutcome:
    """HTTP endpoint composing and printing a receipt."""
    _require_connection(transport)
    receipt_bytes = await asyncio.to_thread(escpos.compose_receipt, payload)
    outcome = await orchestrator.run_receipt_job(receipt_bytes)
    return _apply_outcome_status(outcome, response)
