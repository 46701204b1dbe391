"""Pydantic models for printer connection state and connection requests."""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"


class PrinterConnection(BaseModel):
    """Snapshot of the transport's connection, published on every change."""

    state: ConnectionState = ConnectionState.DISCONNECTED
    device_address: str | None = Field(None, description="Device identifier, e.g. a Bluetooth MAC")
    device_name: str | None = Field(None, description="Human readable device name")
    reason: str | None = Field(None, description="Failure reason when state is 'failed'")
    changed_at: datetime = Field(default_factory=_utcnow)

    @property
    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED


class ConnectResult(BaseModel):
    success: bool
    message: str


class ConnectRequest(BaseModel):
    """Request body for connecting to a printer."""

    device_id: str = Field(..., min_length=1, description="Bluetooth address or serial device URL")
    device_name: str | None = Field(None, max_length=128, description="Display name of the printer")


class LastPrinterResponse(BaseModel):
    device_address: str | None


class CommandResponse(BaseModel):
    """Result of a single control command sent to the printer."""

    command: str
    success: bool
    message: str
