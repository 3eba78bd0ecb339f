import asyncio

import pytest
from websockets.exceptions import ConnectionClosedOK
from websockets.frames import Close

from uttt_client.errors import NotConnectedError
from uttt_client.transport import WebSocketTransport


class FakeConnection:
    def __init__(self, frames=()):
        self.frames = list(frames)
        self.sent = []
        self.closed = False
        self.fail_send = False

    async def send(self, text):
        if self.fail_send:
            raise ConnectionClosedOK(Close(1000, ""), Close(1000, ""), True)
        self.sent.append(text)

    async def close(self):
        self.closed = True

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for frame in self.frames:
            yield frame


def make_transport(conn):
    urls = []

    async def connector(url):
        urls.append(url)
        return conn

    return WebSocketTransport("ws://test/ws?name=alice", connector=connector), urls


def test_send_before_connect_raises():
    transport, _ = make_transport(FakeConnection())
    with pytest.raises(NotConnectedError):
        asyncio.run(transport.send("E5"))


def test_send_and_receive():
    conn = FakeConnection(frames=['{"type": "info"}', b'{"type": "error"}'])
    transport, urls = make_transport(conn)

    async def scenario():
        async with transport:
            await transport.send("E5")
            received = [frame async for frame in transport.messages()]
            assert not transport.is_open
            with pytest.raises(NotConnectedError):
                await transport.send("A1")
            return received

    received = asyncio.run(scenario())
    assert urls == ["ws://test/ws?name=alice"]
    assert conn.sent == ["E5"]
    assert received == ['{"type": "info"}', '{"type": "error"}']
    assert conn.closed


def test_send_on_closed_connection_becomes_not_connected():
    conn = FakeConnection()
    conn.fail_send = True
    transport, _ = make_transport(conn)

    async def scenario():
        await transport.connect()
        with pytest.raises(NotConnectedError):
            await transport.send("R")
        assert not transport.is_open
        await transport.close()

    asyncio.run(scenario())
    assert conn.closed
