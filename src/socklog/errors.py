from __future__ import annotations

from typing import Optional

"""
Error taxonomy for the socket sink.

Every failure raised by SocketSink derives from SocketSinkError so callers
can drop, retry or escalate with a single except clause.
"""


class SocketSinkError(Exception):
    """Base class for all sink failures."""


class InvalidArgument(SocketSinkError, ValueError):
    pass


class ConnectionFailed(SocketSinkError):
    def __init__(self, target: str, errno: Optional[int], errstr: str) -> None:
        self.target = target
        self.errno = errno
        self.errstr = errstr
        super().__init__(f"Failed connecting to {target} ({errno}: {errstr})")


class TimeoutConfigurationFailed(SocketSinkError):
    def __init__(self, target: str, timeout: int) -> None:
        self.target = target
        self.timeout = timeout
        super().__init__(f"Failed setting timeout {timeout}s on connection to {target}")


class _PartialSend(SocketSinkError):
    """A write that stopped after `sent` of `total` bytes."""

    _summary = "write aborted"

    def __init__(self, sent: int, total: int) -> None:
        self.sent = sent
        self.total = total
        super().__init__(f"{self._summary} (sent {sent} of {total})")


class WriteFailed(_PartialSend):
    _summary = "Could not write to socket"


class WriteTimedOut(_PartialSend):
    _summary = "Write timed-out"


class ConnectionLost(_PartialSend):
    _summary = "End-of-file reached, probably we got disconnected"


__all__ = [
    "SocketSinkError",
    "InvalidArgument",
    "ConnectionFailed",
    "TimeoutConfigurationFailed",
    "WriteFailed",
    "WriteTimedOut",
    "ConnectionLost",
]
