from __future__ import annotations

import selectors
import socket
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol, Tuple
from urllib.parse import urlsplit

from .log import get_logger

"""
Transport seam for the socket sink.

SocketSink only talks to the OS through a Transport. SocketTransport binds it
to real sockets; tests bind it to a scripted fake.

Target forms:
  tcp://host:port   udp://host:port   unix:///path   udg:///path   host:port
"""

_LOG = get_logger(__name__)

# Replaces the process-wide default socket timeout.
DEFAULT_CONNECTION_TIMEOUT: float = 60.0

_STREAM_SCHEMES = {"tcp": socket.SOCK_STREAM, "udp": socket.SOCK_DGRAM}
_UNIX_SCHEMES = {"unix": socket.SOCK_STREAM, "udg": socket.SOCK_DGRAM}


class Transport(Protocol):
    def connect(self, target: str, timeout: float) -> Any: ...

    def connect_persistent(self, target: str, timeout: float) -> Any: ...

    def set_read_write_timeout(self, handle: Any, seconds: int) -> bool: ...

    def write_chunk(self, handle: Any, data: bytes) -> int: ...

    def is_timed_out(self, handle: Any) -> bool: ...

    def is_at_end_of_stream(self, handle: Any) -> bool: ...

    def close(self, handle: Any) -> None: ...


@dataclass
class SocketStream:
    """An open socket plus the status flags the write loop probes."""

    sock: socket.socket
    target: str
    persistent: bool = False
    timed_out: bool = False
    eof: bool = False
    closed: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def is_stream(self) -> bool:
        return self.sock.type == socket.SOCK_STREAM


# This function splits a target string into (family, socktype, address).
def parse_target(target: str) -> Tuple[int, int, Any]:
    raw = target.strip()
    if "://" not in raw:
        raw = "tcp://" + raw
    parts = urlsplit(raw)
    scheme = parts.scheme.lower()

    if scheme in _UNIX_SCHEMES:
        path = parts.netloc + parts.path
        if not path:
            raise ValueError(f"missing socket path in target {target!r}")
        return socket.AF_UNIX, _UNIX_SCHEMES[scheme], path

    if scheme not in _STREAM_SCHEMES:
        raise ValueError(f"unsupported scheme {scheme!r} in target {target!r}")
    host = parts.hostname
    port = parts.port  # raises ValueError when out of range
    if not host or port is None:
        raise ValueError(f"target must be host:port (got {target!r})")
    return socket.AF_UNSPEC, _STREAM_SCHEMES[scheme], (host, port)


class SocketTransport:
    """Real-socket Transport.

    Persistent connections live in a process-wide registry keyed by target,
    so a later sink asking for the same target gets the same open socket
    back as long as the peer has not hung up.
    """

    _persistent: Dict[str, SocketStream] = {}
    _registry_lock = threading.Lock()

    def connect(self, target: str, timeout: float) -> SocketStream:
        return SocketStream(sock=self._open(target, timeout), target=target)

    def connect_persistent(self, target: str, timeout: float) -> SocketStream:
        with self._registry_lock:
            existing = self._persistent.get(target)
        if existing is not None and not self.is_at_end_of_stream(existing):
            _LOG.debug("reusing persistent connection to %s", target)
            return existing

        # The connect itself may block; keep it outside the registry lock.
        fresh = SocketStream(sock=self._open(target, timeout), target=target, persistent=True)
        stale = None
        with self._registry_lock:
            current = self._persistent.get(target)
            if current is not None and current is not existing and not current.closed:
                # Another sink registered a live connection meanwhile.
                stream, stale = current, fresh
            else:
                stream, stale = fresh, current
                self._persistent[target] = fresh
        if stale is not None:
            self._release(stale)
        return stream

    def set_read_write_timeout(self, handle: SocketStream, seconds: int) -> bool:
        try:
            handle.sock.settimeout(seconds if seconds > 0 else None)
        except OSError as e:
            _LOG.debug("settimeout failed on %s: %s", handle.target, e)
            return False
        return True

    def write_chunk(self, handle: SocketStream, data: bytes) -> int:
        handle.timed_out = False
        try:
            return handle.sock.send(data)
        except socket.timeout:
            handle.timed_out = True
            return 0
        except (BrokenPipeError, ConnectionResetError):
            handle.eof = True
            raise

    def is_timed_out(self, handle: SocketStream) -> bool:
        return handle.timed_out

    def is_at_end_of_stream(self, handle: SocketStream) -> bool:
        if handle.closed or handle.eof:
            return True
        if not handle.is_stream:
            # Datagram peers can't be observed hanging up.
            return False
        if handle.sock.fileno() == -1:
            handle.eof = True
            return True
        try:
            # fds above FD_SETSIZE must work here, so no select.select()
            with selectors.DefaultSelector() as sel:
                sel.register(handle.sock, selectors.EVENT_READ)
                if not sel.select(0):
                    return False
            peek = handle.sock.recv(1, socket.MSG_PEEK)
        except BlockingIOError:
            return False
        except OSError:
            handle.eof = True
            return True
        if peek == b"":
            handle.eof = True
            return True
        return False

    def close(self, handle: SocketStream) -> None:
        if handle.persistent:
            with self._registry_lock:
                if self._persistent.get(handle.target) is handle:
                    del self._persistent[handle.target]
        self._release(handle)

    @classmethod
    def forget_persistent(cls) -> None:
        """Close every registered persistent connection (process teardown, tests)."""
        with cls._registry_lock:
            streams = list(cls._persistent.values())
            cls._persistent.clear()
        for stream in streams:
            cls._release(stream)

    @staticmethod
    def _release(handle: SocketStream) -> None:
        with handle.lock:
            if handle.closed:
                return
            handle.closed = True
        handle.sock.close()

    @staticmethod
    def _open(target: str, timeout: float) -> socket.socket:
        try:
            family, socktype, address = parse_target(target)
        except ValueError as e:
            raise OSError(0, str(e)) from e

        if family == socket.AF_UNIX:
            sock = socket.socket(family, socktype)
            try:
                sock.settimeout(timeout)
                sock.connect(address)
            except OSError:
                sock.close()
                raise
            return sock

        if socktype == socket.SOCK_STREAM:
            return socket.create_connection(address, timeout=timeout)

        # udp: first resolvable address wins
        last_err: Optional[OSError] = None
        host, port = address
        for af, st, proto, _, sockaddr in socket.getaddrinfo(host, port, family, socktype):
            sock = socket.socket(af, st, proto)
            try:
                sock.settimeout(timeout)
                sock.connect(sockaddr)
                return sock
            except OSError as e:
                last_err = e
                sock.close()
        raise last_err or OSError(0, f"could not resolve {host}")


__all__ = [
    "DEFAULT_CONNECTION_TIMEOUT",
    "Transport",
    "SocketStream",
    "SocketTransport",
    "parse_target",
]
