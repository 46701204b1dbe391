"""Tests for the default printer stream opener."""

from __future__ import annotations

import asyncio

import pytest

from printbridge.config import Settings
from printbridge.controllers.serial_transport import SerialTransport
from printbridge.exceptions import PrinterConnectionError
from printbridge.services.stream_opener import SppStreamOpener, is_bluetooth_address


@pytest.mark.parametrize(
    "device_id,expected",
    [
        ("AA:BB:CC:DD:EE:FF", True),
        ("00:11:22:aa:bb:cc", True),
        ("/dev/rfcomm0", False),
        ("socket://192.168.1.50:9100", False),
        ("AA:BB:CC:DD:EE", False),
    ],
)
def test_is_bluetooth_address(device_id: str, expected: bool) -> None:
    assert is_bluetooth_address(device_id) is expected


def test_opens_pyserial_urls(settings: Settings) -> None:
    stream = SppStreamOpener(settings)("loop://")
    try:
        stream.write(b"CLS\n")
        stream.flush()
        assert stream.read(4) == b"CLS\n"
    finally:
        stream.close()


def test_missing_serial_device_is_a_connection_error(settings: Settings) -> None:
    with pytest.raises(PrinterConnectionError):
        SppStreamOpener(settings)("/dev/printbridge-missing-port")


def test_transport_over_loopback_port(store, settings: Settings) -> None:
    transport = SerialTransport(store, opener=SppStreamOpener(settings), settings=settings)

    async def scenario():
        connected = await transport.connect("loop://", "Loopback")
        sent = await transport.send_text("SELFTEST\n")
        await transport.close()
        return connected, sent

    connected, sent = asyncio.run(scenario())

    assert connected.success
    assert sent is True
    assert store.get_last_printer() == "loop://"
