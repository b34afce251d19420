from __future__ import annotations

from typing import Iterable

from .errors import SocketSinkError
from .log import get_logger
from .sinks import SocketSink

"""
Dispatch: feed text lines into a SocketSink.

- Each line is stripped of its trailing newline, terminated and encoded.
- A failed write drops that line and is logged to STDERR; the rest go on.
- stop_on_error=True propagates the first failure instead.
- The sink is closed at the end (a persistent sink keeps its connection).
"""

_LOG = get_logger(__name__)


def emit_lines(
    sink: SocketSink,
    lines: Iterable[str],
    *,
    encoding: str = "utf-8",
    terminator: str = "\n",
    stop_on_error: bool = False,
) -> int:
    """Write every line to the sink; return how many were dropped."""
    dropped = 0
    try:
        for line in lines:
            payload = (line.rstrip("\r\n") + terminator).encode(encoding)
            try:
                sink.write(payload)
            except SocketSinkError as e:
                if stop_on_error:
                    raise
                dropped += 1
                _LOG.error(
                    "dropped record for %s (%s): %s",
                    sink.get_connection_string(),
                    type(e).__name__,
                    e,
                )
    finally:
        sink.close()
    return dropped


__all__ = ["emit_lines"]
