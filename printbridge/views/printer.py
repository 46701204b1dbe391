from __future__ import annotations

from enum import Enum

from fastapi import APIRouter, HTTPException, Response, status

from printbridge.dependencies import EscPos, Transport, Tspl
from printbridge.models.connection import (
    CommandResponse,
    ConnectRequest,
    ConnectResult,
    LastPrinterResponse,
    PrinterConnection,
)


router = APIRouter(prefix="/api/printer", tags=["printer"])


class TsplCommand(str, Enum):
    GAPDETECT = "gapdetect"
    FORMFEED = "formfeed"
    SELFTEST = "selftest"
    STATUS = "status"
    VERSION = "version"
    CLS = "cls"
    FEED = "feed"


class EscPosCommand(str, Enum):
    INIT = "init"
    FEED = "feed"
    CUT = "cut"


@router.get("/status", response_model=PrinterConnection)
async def printer_status(transport: Transport) -> PrinterConnection:
    """HTTP endpoint returning the current connection snapshot."""
    return transport.connection


@router.get("/last", response_model=LastPrinterResponse)
async def last_printer(transport: Transport) -> LastPrinterResponse:
    """HTTP endpoint returning the address of the last successfully connected printer."""
    device_address = await transport.last_printer()
    return LastPrinterResponse(device_address=device_address)


@router.post("/connect", response_model=ConnectResult)
async def connect_printer(payload: ConnectRequest, response: Response, transport: Transport) -> ConnectResult:
    """HTTP endpoint to connect to a printer.

    Returns:
    - 200: Connected
    - 502: The device could not be reached
    """
    result = await transport.connect(payload.device_id, payload.device_name)
    if not result.success:
        response.status_code = status.HTTP_502_BAD_GATEWAY
    return result


@router.post("/auto-connect", response_model=ConnectResult)
async def auto_connect_printer(response: Response, transport: Transport) -> ConnectResult:
    """HTTP endpoint reconnecting to the last used printer."""
    if transport.is_connected:
        return ConnectResult(success=True, message=f"Already connected to {transport.connection.device_name}")

    result = await transport.auto_connect()
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No printer has been connected before.",
        )
    if not result.success:
        response.status_code = status.HTTP_502_BAD_GATEWAY
    return result


@router.post("/disconnect", response_model=PrinterConnection)
async def disconnect_printer(transport: Transport) -> PrinterConnection:
    """HTTP endpoint to disconnect. Safe to call when already disconnected."""
    await transport.disconnect()
    return transport.connection


async def _send_control(
    transport: Transport, name: str, data: bytes, response: Response
) -> CommandResponse:
    if not transport.is_connected:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Printer is not connected.",
        )
    success = await transport.send_bytes(data)
    if not success:
        response.status_code = status.HTTP_502_BAD_GATEWAY
        return CommandResponse(command=name, success=False, message=transport.last_error or "Write failed")
    return CommandResponse(command=name, success=True, message=f"{name} sent.")


@router.post("/tspl/{command}", response_model=CommandResponse)
async def send_tspl_command(
    command: TsplCommand, response: Response, transport: Transport, tspl: Tspl, amount: int = 8
) -> CommandResponse:
    """HTTP endpoint sending a TSPL control command. ``amount`` is the feed length in dots."""
    try:
        if command is TsplCommand.FEED:
            text = tspl.feed(amount)
        else:
            text = {
                TsplCommand.GAPDETECT: tspl.gap_detect,
                TsplCommand.FORMFEED: tspl.form_feed,
                TsplCommand.SELFTEST: tspl.self_test,
                TsplCommand.STATUS: tspl.status,
                TsplCommand.VERSION: tspl.version,
                TsplCommand.CLS: tspl.cls,
            }[command]()
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc

    return await _send_control(transport, f"TSPL {command.value.upper()}", text.encode("ascii"), response)


@router.post("/escpos/{command}", response_model=CommandResponse)
async def send_escpos_command(
    command: EscPosCommand, response: Response, transport: Transport, escpos: EscPos, amount: int = 1
) -> CommandResponse:
    """HTTP endpoint sending an ESC/POS control command. ``amount`` is the number of lines to feed."""
    try:
        if command is EscPosCommand.FEED:
            data = escpos.feed(amount)
        elif command is EscPosCommand.CUT:
            data = escpos.cut()
        else:
            data = escpos.init()
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc

    return await _send_control(transport, f"ESC/POS {command.value.upper()}", data, response)
