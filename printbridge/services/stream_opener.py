"""Openers for the byte stream between the transport and the printer.

A Bluetooth address (``AA:BB:CC:DD:EE:FF``) is opened as an RFCOMM socket, the
Serial Port Profile channel. Anything else is handed to pyserial, which accepts
device paths (``/dev/rfcomm0``, ``COM5``) and URLs (``socket://host:port``,
``loop://``).
"""

from __future__ import annotations

import logging
import re
import socket
from typing import Callable, Protocol

import serial

from printbridge.config import Settings, get_settings
from printbridge.exceptions import PrinterConnectionError


_MAC_RE = re.compile(r"^[0-9A-Fa-f]{2}(:[0-9A-Fa-f]{2}){5}$")

_logger = logging.getLogger(__name__)


class ByteStream(Protocol):
    def write(self, data: bytes) -> int | None: ...

    def flush(self) -> None: ...

    def close(self) -> None: ...


StreamOpener = Callable[[str], ByteStream]


def is_bluetooth_address(device_id: str) -> bool:
    return bool(_MAC_RE.match(device_id))


class RfcommStream:
    """Write side of a connected RFCOMM socket."""

    def __init__(self, sock: socket.socket) -> None:
        self._sock = sock

    def write(self, data: bytes) -> int:
        self._sock.sendall(data)
        return len(data)

    def flush(self) -> None:
        # sendall returns once the kernel has accepted every byte
        pass

    def close(self) -> None:
        self._sock.close()


class SppStreamOpener:
    """Default opener used by the transport."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    def __call__(self, device_id: str) -> ByteStream:
        if is_bluetooth_address(device_id):
            return self.open_rfcomm(device_id)
        return self.open_serial(device_id)

    def open_rfcomm(self, address: str) -> RfcommStream:
        """Connect to the SPP service of a paired device.

        Raises:
            PrinterConnectionError: If the platform has no Bluetooth sockets or the
                device does not accept the connection
        """
        if not hasattr(socket, "AF_BLUETOOTH"):
            raise PrinterConnectionError("Bluetooth RFCOMM sockets are not available on this platform")

        channel = self.settings.rfcomm_channel
        _logger.debug(
            f"Opening RFCOMM channel {channel} on {address} (service {self.settings.spp_uuid})"
        )
        sock = socket.socket(socket.AF_BLUETOOTH, socket.SOCK_STREAM, socket.BTPROTO_RFCOMM)
        sock.settimeout(self.settings.connect_timeout)
        try:
            sock.connect((address, channel))
        except OSError as e:
            sock.close()
            raise PrinterConnectionError(f"{address}: {e}") from e
        sock.settimeout(self.settings.write_timeout)
        return RfcommStream(sock)

    def open_serial(self, url: str) -> serial.SerialBase:
        """Open a serial device or pyserial URL.

        Raises:
            PrinterConnectionError: If the port cannot be opened
        """
        _logger.debug(f"Opening serial port {url} at {self.settings.serial_baudrate} baud")
        try:
            return serial.serial_for_url(
                url,
                baudrate=self.settings.serial_baudrate,
                timeout=self.settings.connect_timeout,
                write_timeout=self.settings.write_timeout,
            )
        except (serial.SerialException, ValueError) as e:
            raise PrinterConnectionError(f"{url}: {e}") from e
