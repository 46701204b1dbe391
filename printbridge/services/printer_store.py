"""Storage of the last used printer, consumed by the transport as a get/set capability."""

from __future__ import annotations

import threading
from typing import Protocol

from printbridge.crud import get_preference, set_preference


LAST_PRINTER_KEY = "last_printer_address"


class LastPrinterStore(Protocol):
    def get_last_printer(self) -> str | None: ...

    def persist_last_printer(self, device_id: str) -> None: ...


class SqlLastPrinterStore:
    """Keeps the last printer address in the ``printer_preferences`` table."""

    def get_last_printer(self) -> str | None:
        return get_preference(LAST_PRINTER_KEY)

    def persist_last_printer(self, device_id: str) -> None:
        set_preference(LAST_PRINTER_KEY, device_id)


class InMemoryLastPrinterStore:
    """Process-local store, for tests and embedding without a database."""

    def __init__(self, device_id: str | None = None) -> None:
        self._device_id = device_id
        self._lock = threading.Lock()

    def get_last_printer(self) -> str | None:
        with self._lock:
            return self._device_id

    def persist_last_printer(self, device_id: str) -> None:
        with self._lock:
            self._device_id = device_id
