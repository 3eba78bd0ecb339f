"""WebSocket transport to the game server.

A thin wrapper over the ``websockets`` asyncio client.  It does not retry or
reconnect; a closed connection ends the inbound iteration and every later
:meth:`WebSocketTransport.send` raises :class:`NotConnectedError`.
"""
from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Optional

import websockets
from websockets.exceptions import ConnectionClosed

from .errors import NotConnectedError

logger = logging.getLogger(__name__)

__all__ = ["WebSocketTransport"]

Connector = Callable[[str], Awaitable[Any]]


class WebSocketTransport:
    def __init__(self, url: str, connector: Optional[Connector] = None) -> None:
        self.url = url
        self._connector: Connector = connector or websockets.connect
        self._conn: Optional[Any] = None
        self._closed = False

    @property
    def is_open(self) -> bool:
        return self._conn is not None and not self._closed

    async def connect(self) -> None:
        logger.info("connecting to %s", self.url)
        self._conn = await self._connector(self.url)
        self._closed = False

    async def send(self, text: str) -> None:
        if not self.is_open:
            raise NotConnectedError("not connected to server")
        try:
            await self._conn.send(text)
        except ConnectionClosed as exc:
            self._closed = True
            raise NotConnectedError(f"connection closed: {exc}") from exc
        logger.debug("sent %s", text)

    async def messages(self) -> AsyncIterator[str]:
        """Yield inbound text frames until the connection closes."""

        if self._conn is None:
            raise NotConnectedError("not connected to server")
        try:
            async for frame in self._conn:
                if isinstance(frame, bytes):
                    frame = frame.decode("utf-8", errors="replace")
                yield frame
        except ConnectionClosed as exc:
            logger.info("connection closed: %s", exc)
        finally:
            self._closed = True

    async def close(self) -> None:
        conn, self._conn = self._conn, None
        self._closed = True
        if conn is not None:
            await conn.close()

    async def __aenter__(self) -> "WebSocketTransport":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
