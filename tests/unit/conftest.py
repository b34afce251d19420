from __future__ import annotations

from typing import List, Optional

import pytest


class FakeHandle:
    def __init__(self, n: int) -> None:
        self.n = n
        self.eof = False
        self.closed = False
        self.timed_out = False


# Scripted stand-in for SocketTransport. Records every call it receives.
class ScriptedTransport:
    def __init__(
        self,
        chunks: Optional[List[int]] = None,
        *,
        timeout_after_write: Optional[int] = None,
        eof_after_write: Optional[int] = None,
        fail_on_write: Optional[int] = None,
        connect_error: Optional[OSError] = None,
        timeout_ok: bool = True,
    ) -> None:
        self.chunks = list(chunks or [])
        self.timeout_after_write = timeout_after_write
        self.eof_after_write = eof_after_write
        self.fail_on_write = fail_on_write
        self.connect_error = connect_error
        self.timeout_ok = timeout_ok

        self.connects: List[tuple] = []
        self.timeouts: List[int] = []
        self.writes: List[bytes] = []
        self.closed: List[FakeHandle] = []
        self.handles: List[FakeHandle] = []

    def _open(self, kind: str, target: str, timeout: float) -> FakeHandle:
        self.connects.append((kind, target, timeout))
        if self.connect_error is not None:
            raise self.connect_error
        handle = FakeHandle(len(self.handles) + 1)
        self.handles.append(handle)
        return handle

    def connect(self, target, timeout):
        return self._open("plain", target, timeout)

    def connect_persistent(self, target, timeout):
        return self._open("persistent", target, timeout)

    def set_read_write_timeout(self, handle, seconds):
        self.timeouts.append(seconds)
        return self.timeout_ok

    def write_chunk(self, handle, data):
        handle.timed_out = False
        self.writes.append(bytes(data))
        n = len(self.writes)
        if self.fail_on_write == n:
            raise BrokenPipeError(32, "Broken pipe")
        size = self.chunks.pop(0) if self.chunks else len(data)
        if self.timeout_after_write == n:
            handle.timed_out = True
        if self.eof_after_write == n:
            handle.eof = True
        return min(size, len(data))

    def is_timed_out(self, handle):
        return handle.timed_out

    def is_at_end_of_stream(self, handle):
        return handle.closed or handle.eof

    def close(self, handle):
        handle.closed = True
        self.closed.append(handle)

    @property
    def connect_count(self) -> int:
        return len(self.connects)


@pytest.fixture
def scripted():
    """Factory: scripted(chunks=[...], timeout_after_write=2, ...)."""
    return ScriptedTransport
