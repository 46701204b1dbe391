"""Connection lifecycle and ordered delivery of bytes to one printer."""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, AsyncIterator, Callable

from printbridge.config import Settings, get_settings
from printbridge.exceptions import NotConnectedError, PrinterConnectionError, PrinterIoError
from printbridge.models.command import CommandBlock
from printbridge.models.connection import ConnectionState, ConnectResult, PrinterConnection
from printbridge.services.printer_store import LastPrinterStore
from printbridge.services.stream_opener import ByteStream, SppStreamOpener, StreamOpener


ConnectionListener = Callable[[PrinterConnection], None]


class SerialTransport:
    """Owns the byte stream to one printer and serializes every operation on it.

    Connects, writes and disconnects run on a single worker thread in the order
    they were submitted, so the bytes of one command block are never interleaved
    with another's. Only the worker thread touches the stream. Connection state is
    published on the event loop thread.
    """

    def __init__(
        self,
        store: LastPrinterStore,
        opener: StreamOpener | None = None,
        settings: Settings | None = None,
    ) -> None:
        settings = settings or get_settings()
        self._store = store
        self._opener = opener or SppStreamOpener(settings)
        self._chunk_size = settings.write_chunk_size
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="serial-transport")
        self._stream: ByteStream | None = None
        self._connection = PrinterConnection()
        self._listeners: list[ConnectionListener] = []
        self._logger = logging.getLogger(__name__)
        self.last_error: str | None = None

    # ------------------------------------------------------------------
    # State observation
    # ------------------------------------------------------------------

    @property
    def connection(self) -> PrinterConnection:
        return self._connection

    @property
    def is_connected(self) -> bool:
        return self._connection.is_connected

    def subscribe(self, listener: ConnectionListener) -> Callable[[], None]:
        """Register a listener for connection changes and return its unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def watch(self) -> AsyncIterator[PrinterConnection]:
        """Yield the current connection, then every change until the consumer stops."""
        queue: asyncio.Queue[PrinterConnection] = asyncio.Queue()
        unsubscribe = self.subscribe(queue.put_nowait)
        try:
            yield self._connection
            while True:
                yield await queue.get()
        finally:
            unsubscribe()

    def _publish(self, state: ConnectionState, **fields: Any) -> None:
        self._connection = PrinterConnection(state=state, **fields)
        for listener in list(self._listeners):
            try:
                listener(self._connection)
            except Exception:
                self._logger.exception("Connection listener failed")

    # ------------------------------------------------------------------
    # Worker queue
    # ------------------------------------------------------------------

    async def _run(self, fn: Callable[..., Any], *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, fn, *args)

    def _open_blocking(self, device_id: str) -> None:
        self._close_blocking()
        try:
            self._stream = self._opener(device_id)
        except PrinterConnectionError:
            raise
        except Exception as e:
            raise PrinterConnectionError(str(e) or e.__class__.__name__) from e

    def _close_blocking(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.close()
        except Exception as e:
            self._logger.debug(f"Ignoring error while closing printer stream: {e}")

    def _write_blocking(self, block: CommandBlock) -> None:
        stream = self._stream
        if stream is None:
            raise NotConnectedError("Printer stream is closed")
        try:
            for part in (block.header, block.payload or b""):
                for start in range(0, len(part), self._chunk_size):
                    stream.write(part[start:start + self._chunk_size])
            stream.flush()
        except OSError as e:
            raise PrinterIoError(f"Write failed during '{block.name}': {e}") from e
        self._logger.debug(f"Wrote {len(block)} bytes ({block.name})")

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    async def connect(
        self,
        device_id: str,
        device_name: str | None = None,
        on_result: Callable[[bool, str], None] | None = None,
    ) -> ConnectResult:
        """Open the stream to a device and remember it as the last used printer."""
        name = device_name or device_id
        self._publish(ConnectionState.CONNECTING, device_address=device_id, device_name=name)
        self._logger.info(f"Connecting to printer {name} ({device_id})")

        try:
            await self._run(self._open_blocking, device_id)
        except PrinterConnectionError as e:
            reason = str(e)
            self._logger.warning(f"Connection to {device_id} failed: {reason}")
            self._publish(
                ConnectionState.FAILED, device_address=device_id, device_name=name, reason=reason
            )
            await self._run(self._close_blocking)
            self._publish(ConnectionState.DISCONNECTED)
            result = ConnectResult(success=False, message=f"Connection failed: {reason}")
        else:
            self._publish(ConnectionState.CONNECTED, device_address=device_id, device_name=name)
            self.last_error = None
            try:
                await asyncio.to_thread(self._store.persist_last_printer, device_id)
            except Exception:
                self._logger.exception(f"Failed to remember {device_id} as last printer")
            self._logger.info(f"Connected to printer {name}")
            result = ConnectResult(success=True, message=f"Connected to {name}")

        if on_result is not None:
            on_result(result.success, result.message)
        return result

    async def last_printer(self) -> str | None:
        """Address of the last successfully connected printer, if any."""
        return await asyncio.to_thread(self._store.get_last_printer)

    async def auto_connect(self) -> ConnectResult | None:
        """Reconnect to the last used printer when not connected.

        Returns:
            The connect result, or None when nothing was attempted
        """
        if self.is_connected:
            return None
        device_id = await self.last_printer()
        if not device_id:
            return None
        return await self.connect(device_id)

    async def disconnect(self) -> None:
        """Close the stream. Valid in any state; always ends disconnected."""
        await self._run(self._close_blocking)
        if self._connection.state is not ConnectionState.DISCONNECTED:
            self._logger.info(f"Disconnected from printer {self._connection.device_name}")
            self._publish(ConnectionState.DISCONNECTED)

    async def close(self) -> None:
        """Disconnect and stop the worker thread."""
        await self.disconnect()
        self._executor.shutdown(wait=False)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def send_text(self, command: str, on_result: Callable[[bool], None] | None = None) -> bool:
        name = (command.strip().splitlines() or ["text"])[0]
        block = CommandBlock(name=name, header=command.encode("ascii", errors="replace"))
        return await self._send(block, on_result)

    async def send_bytes(self, data: bytes, on_result: Callable[[bool], None] | None = None) -> bool:
        return await self._send(CommandBlock(name="bytes", header=data), on_result)

    async def send_command_block(
        self, block: CommandBlock, on_result: Callable[[bool], None] | None = None
    ) -> bool:
        """Write header then payload with nothing from other callers in between."""
        return await self._send(block, on_result)

    async def _send(self, block: CommandBlock, on_result: Callable[[bool], None] | None) -> bool:
        if not self.is_connected:
            self.last_error = "Printer is not connected"
            self._logger.warning(f"Not sending '{block.name}': printer is not connected")
            success = False
        else:
            try:
                await self._run(self._write_blocking, block)
                success = True
            except (NotConnectedError, PrinterIoError) as e:
                self.last_error = str(e)
                self._logger.warning(str(e))
                success = False

        if on_result is not None:
            on_result(success)
        return success
