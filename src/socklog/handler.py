from __future__ import annotations

import logging
from typing import Optional, Union

from .config import SinkConfig
from .sinks import SocketSink
from .transport import DEFAULT_CONNECTION_TIMEOUT, Transport


class SocketSinkHandler(logging.Handler):
    """logging.Handler that ships formatted records through a SocketSink.

    Level filtering comes from Handler.setLevel and bubbling from
    Logger.propagate; this class only formats, encodes and writes.
    Write failures go through handleError like any stdlib handler.
    """

    def __init__(
        self,
        target: str,
        level: Union[int, str] = logging.NOTSET,
        *,
        persistent: bool = False,
        connection_timeout: float = DEFAULT_CONNECTION_TIMEOUT,
        timeout: int = 0,
        transport: Optional[Transport] = None,
        encoding: str = "utf-8",
        terminator: str = "\n",
    ) -> None:
        super().__init__(level)
        self.sink = SocketSink(
            target,
            persistent=persistent,
            connection_timeout=connection_timeout,
            timeout=timeout,
            transport=transport,
        )
        self.encoding = encoding
        self.terminator = terminator

    @classmethod
    def from_config(
        cls, cfg: SinkConfig, transport: Optional[Transport] = None
    ) -> "SocketSinkHandler":
        return cls(
            cfg.target,
            cfg.level,
            persistent=cfg.persistent,
            connection_timeout=cfg.connection_timeout,
            timeout=cfg.timeout,
            transport=transport,
            encoding=cfg.encoding,
            terminator=cfg.terminator,
        )

    def emit(self, record: logging.LogRecord) -> None:
        try:
            payload = (self.format(record) + self.terminator).encode(self.encoding)
            self.sink.write(payload)
        except RecursionError:
            raise
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        self.acquire()
        try:
            self.sink.close()
        finally:
            self.release()
        super().close()

    def __repr__(self) -> str:
        level = logging.getLevelName(self.level)
        return f"<{self.__class__.__name__} {self.sink.get_connection_string()} ({level})>"


__all__ = ["SocketSinkHandler"]
