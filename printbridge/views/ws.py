from __future__ import annotations

import asyncio
import contextlib
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from printbridge.dependencies import Transport


ws_router = APIRouter(tags=["websocket"])

_logger = logging.getLogger(__name__)


@ws_router.websocket("/ws/printer")
async def printer_state_stream(websocket: WebSocket, transport: Transport) -> None:
    """WebSocket endpoint streaming connection snapshots: the current one, then every change.

    Anything the client sends is ignored; the stream ends when the client disconnects.
    """
    await websocket.accept()

    async def forward_states() -> None:
        async for connection in transport.watch():
            await websocket.send_text(connection.model_dump_json())

    sender = asyncio.create_task(forward_states())
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        _logger.debug("Printer state subscriber disconnected")
    finally:
        sender.cancel()
        with contextlib.suppress(asyncio.CancelledError, WebSocketDisconnect, RuntimeError):
            await sender
