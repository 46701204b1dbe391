"""In-memory stand-ins for the printer byte stream."""

from __future__ import annotations

from typing import Callable


class FakeStream:
    """Records every write; raises OSError when ``fail_when`` matches a write."""

    def __init__(self, fail_when: Callable[[bytes], bool] | None = None, fail_on_close: bool = False) -> None:
        self.writes: list[bytes] = []
        self.flushes = 0
        self.closed = False
        self.fail_when = fail_when
        self.fail_on_close = fail_on_close

    def write(self, data: bytes) -> int:
        if self.closed:
            raise OSError("stream is closed")
        if self.fail_when is not None and self.fail_when(bytes(data)):
            raise OSError("Broken pipe")
        self.writes.append(bytes(data))
        return len(data)

    def flush(self) -> None:
        self.flushes += 1

    def close(self) -> None:
        self.closed = True
        if self.fail_on_close:
            raise OSError("close failed")

    @property
    def data(self) -> bytes:
        return b"".join(self.writes)


class FakeOpener:
    """Stream opener returning a prepared FakeStream, or raising ``error``."""

    def __init__(self, stream: FakeStream | None = None, error: Exception | None = None) -> None:
        self.stream = stream or FakeStream()
        self.error = error
        self.opened: list[str] = []

    def __call__(self, device_id: str) -> FakeStream:
        self.opened.append(device_id)
        if self.error is not None:
            raise self.error
        return self.stream


def fail_on_nth(prefix: bytes, n: int) -> Callable[[bytes], bool]:
    """Predicate failing the n-th write that starts with ``prefix``."""
    seen = 0

    def predicate(data: bytes) -> bool:
        nonlocal seen
        if data.startswith(prefix):
            seen += 1
            return seen == n
        return False

    return predicate
