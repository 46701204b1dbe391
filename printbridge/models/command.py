"""Pydantic models describing command blocks, print jobs and their outcomes."""

from enum import Enum

from pydantic import BaseModel, Field


class CommandBlock(BaseModel):
    """Bytes written verbatim and contiguously to the printer.

    The header carries the textual or structural part of a command, the optional
    payload the binary data that must follow it with nothing in between.
    """

    name: str = Field("command", description="Step name used in job reports")
    header: bytes = Field(..., description="ASCII or control bytes written first")
    payload: bytes | None = Field(None, description="Binary data written right after the header")

    def to_bytes(self) -> bytes:
        return self.header + (self.payload or b"")

    def __len__(self) -> int:
        return len(self.header) + len(self.payload or b"")


class JobFormat(str, Enum):
    LABEL = "label"
    RECEIPT = "receipt"


class PrintJob(BaseModel):
    """One print action: the block sequence is replayed once per copy."""

    format: JobFormat
    copies: int = Field(1, ge=1, description="Number of times the block sequence is sent")
    blocks: list[CommandBlock] = Field(..., min_length=1)


class StepResult(BaseModel):
    """Result of sending one block of one copy."""

    copy_number: int = Field(..., ge=1)
    step: str
    success: bool
    message: str


class JobOutcome(BaseModel):
    """Final report of a print job."""

    success: bool
    format: JobFormat
    copies_requested: int
    copies_printed: int = Field(..., description="Copies whose every step was sent successfully")
    failed_copy: int | None = None
    failed_step: str | None = None
    message: str
    log: list[str] = Field(default_factory=list)
