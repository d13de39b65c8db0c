import asyncio
import errno

import pytest


class FakeWriter:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True

    async def wait_closed(self):
        return None


def make_open_connection(behaviors, default="silent", calls=None):
    """
    behaviors maps port -> bytes (accepts and sends them, b"" sends EOF),
    "refused", "unreachable", "silent" (never answers the connect) or
    "idle" (accepts, then sends nothing).
    """

    async def fake_open_connection(host, port, **kwargs):
        if calls is not None:
            calls.append((host, port))
        behavior = behaviors.get(port, default)
        if behavior == "refused":
            raise ConnectionRefusedError(errno.ECONNREFUSED, "Connection refused")
        if behavior == "unreachable":
            raise OSError(errno.EHOSTUNREACH, "No route to host")
        if behavior == "silent":
            await asyncio.sleep(3600)
        reader = asyncio.StreamReader()
        if behavior == "idle":
            pass
        elif behavior:
            reader.feed_data(behavior)
        else:
            reader.feed_eof()
        return reader, FakeWriter()

    return fake_open_connection


@pytest.fixture
def fake_network(monkeypatch):
    calls = []

    def install(behaviors, default="silent"):
        monkeypatch.setattr(asyncio, "open_connection", make_open_connection(behaviors, default, calls))
        return calls

    return install
