from __future__ import annotations

import math
from typing import Any, Optional, Union

from .errors import (
    ConnectionFailed,
    ConnectionLost,
    InvalidArgument,
    TimeoutConfigurationFailed,
    WriteFailed,
    WriteTimedOut,
)
from .log import get_logger
from .transport import DEFAULT_CONNECTION_TIMEOUT, SocketTransport, Transport

"""
Socket sink: connection manager + write engine for one destination.

  - write(payload) connects lazily, then sends payload in chunks until
    everything is out, the I/O timeout fires, or the peer hangs up.
  - close() releases the connection unless it was opened persistently.
No error logging here; the caller decides whether to drop or escalate.
"""

_LOG = get_logger(__name__)

Number = Union[int, float]


# This function rejects negative, non-numeric and non-finite timeouts.
def _validate_timeout(value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidArgument(f"Timeout must be 0 or a positive number (got {value!r})")
    if math.isnan(value) or math.isinf(value) or value < 0:
        raise InvalidArgument(f"Timeout must be 0 or a positive number (got {value!r})")


class SocketSink:
    """Writes pre-formatted records to a single socket target.

    A persistent sink deliberately leaks its connection past close() so the
    next logical session (or the next sink on the same target, with the
    real transport) picks it up again. Everything else is released on close.

    Not thread-safe; one write in flight per instance.
    """

    def __init__(
        self,
        connection_string: str,
        *,
        persistent: bool = False,
        connection_timeout: Number = DEFAULT_CONNECTION_TIMEOUT,
        timeout: int = 0,
        transport: Optional[Transport] = None,
    ) -> None:
        self._connection_string = connection_string
        self._transport: Transport = transport or SocketTransport()
        self._handle: Any = None
        # How the live handle was opened; the flag itself may change later.
        self._handle_persistent = False
        self._persistent = False
        self._connection_timeout = float(DEFAULT_CONNECTION_TIMEOUT)
        self._timeout = 0
        self.set_persistent(persistent)
        self.set_connection_timeout(connection_timeout)
        self.set_timeout(timeout)

    # --- configuration ---

    def get_connection_string(self) -> str:
        return self._connection_string

    def is_persistent(self) -> bool:
        return self._persistent

    def set_persistent(self, flag: bool) -> None:
        """Only has effect before the connection is opened."""
        self._persistent = bool(flag)

    def get_connection_timeout(self) -> float:
        return self._connection_timeout

    def set_connection_timeout(self, seconds: Number) -> None:
        """Only has effect before the connection is opened."""
        _validate_timeout(seconds)
        self._connection_timeout = float(seconds)

    def get_timeout(self) -> int:
        return self._timeout

    def set_timeout(self, seconds: Number) -> None:
        """Read/write timeout in whole seconds, 0 for none. Applied on connect."""
        _validate_timeout(seconds)
        if int(seconds) != seconds:
            raise InvalidArgument(f"Timeout must be a whole number of seconds (got {seconds!r})")
        self._timeout = int(seconds)

    # --- connection manager ---

    def is_connected(self) -> bool:
        # Connectionless targets may look connected and still fail on write.
        return self._handle is not None and not self._transport.is_at_end_of_stream(
            self._handle
        )

    def ensure_connected(self) -> None:
        if self.is_connected():
            return
        self.connect()

    def connect(self) -> None:
        self._create_socket_resource()
        self._set_socket_timeout()

    def close(self) -> None:
        """Release the connection. Never raises; no-op when opened persistently."""
        if self._handle is not None and self._handle_persistent:
            return
        self.close_socket()

    def close_socket(self) -> None:
        """Release the connection regardless of persistence."""
        handle, self._handle = self._handle, None
        self._handle_persistent = False
        if handle is None:
            return
        try:
            self._transport.close(handle)
        except OSError as e:
            _LOG.debug("ignoring error while closing %s: %s", self._connection_string, e)
        else:
            _LOG.debug("closed connection to %s", self._connection_string)

    def _create_socket_resource(self) -> None:
        if self._handle is not None:
            # Stale handle from a peer hang-up; release before replacing.
            self.close_socket()
        open_fn = (
            self._transport.connect_persistent if self._persistent else self._transport.connect
        )
        try:
            handle = open_fn(self._connection_string, self._connection_timeout)
        except OSError as e:
            raise ConnectionFailed(
                self._connection_string, e.errno, e.strerror or str(e)
            ) from e
        if not handle:
            raise ConnectionFailed(self._connection_string, None, "no handle returned")
        self._handle = handle
        self._handle_persistent = self._persistent
        _LOG.debug(
            "connected to %s (persistent=%s)", self._connection_string, self._persistent
        )

    def _set_socket_timeout(self) -> None:
        try:
            ok = self._transport.set_read_write_timeout(self._handle, self._timeout)
        except OSError:
            ok = False
        if not ok:
            # A half-configured connection must not be reused by the next write.
            self.close_socket()
            raise TimeoutConfigurationFailed(self._connection_string, self._timeout)

    # --- write engine ---

    def write(self, payload: bytes) -> None:
        """Connect if needed and send all of payload, or raise."""
        if isinstance(payload, (bytearray, memoryview)):
            payload = bytes(payload)
        if not isinstance(payload, bytes):
            raise InvalidArgument(f"payload must be bytes (got {type(payload).__name__})")

        self.ensure_connected()
        self._write_to_socket(payload)

    def _write_to_socket(self, data: bytes) -> None:
        length = len(data)
        sent = 0
        while self.is_connected() and sent < length:
            try:
                chunk = self._transport.write_chunk(self._handle, data[sent:])
            except OSError as e:
                raise WriteFailed(sent, length) from e
            sent += chunk
            if self._transport.is_timed_out(self._handle):
                raise WriteTimedOut(sent, length)
        if not self.is_connected() and sent < length:
            raise ConnectionLost(sent, length)


__all__ = ["SocketSink"]
