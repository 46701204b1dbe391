"""Custom exceptions for the printbridge application."""


class PrinterConnectionError(RuntimeError):
    """Raised when the printer byte stream cannot be opened. Nothing has been sent."""


class PrinterIoError(RuntimeError):
    """Raised when a write or flush fails mid-job. Some bytes may already be on the wire."""


class DecodeError(RuntimeError):
    """Raised when image or barcode bytes are not a valid raster."""


class NotConnectedError(RuntimeError):
    """Raised when an operation needs an active connection and there is none."""
