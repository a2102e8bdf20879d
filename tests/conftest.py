"""Shared fixtures for telnet shell tests."""

from __future__ import annotations

from asyncio import StreamReader
from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, patch

import pytest
from pytest_asyncio import fixture as asyncio_fixture

from telnet_shell.clients.telnet.channel import TelnetChannel
from telnet_shell.clients.telnet.client import TelnetSession
from telnet_shell.constants import ETX_BYTE
from telnet_shell.types import ConnectionConfig

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Generator


class ScriptedDevice:
    """Fake network device standing in for both ends of a stream pair.

    Output is fed into a real StreamReader. Each line written to the device
    (anything ending in a newline) releases the next scripted reply.
    """

    def __init__(self) -> None:
        """Initialise with an empty reader and no scripted replies."""
        self.reader = StreamReader()
        self.written: list[bytes] = []
        self.replies: list[bytes] = []
        self.closed = False

    def say(self, data: bytes) -> None:
        """Make the device send data right away."""
        self.reader.feed_data(data)

    def write(self, data: bytes) -> None:
        """Record written data and answer completed lines."""
        self.written.append(bytes(data))
        if data.endswith(b"\n") and self.replies:
            self.say(self.replies.pop(0))

    async def drain(self) -> None:
        """Mock drain operation."""

    def close(self) -> None:
        """Mark writer as closed."""
        self.closed = True

    async def wait_closed(self) -> None:
        """Mock wait_closed operation."""

    @property
    def lines(self) -> list[bytes]:
        """Every newline-terminated write, in order."""
        return [data for data in self.written if data.endswith(b"\n")]

    @property
    def cancels(self) -> int:
        """Number of Ctrl+C bytes sent to the device."""
        return self.written.count(bytes([ETX_BYTE]))


@asyncio_fixture
async def device() -> ScriptedDevice:
    """Fixture providing a scripted device bound to the running loop."""
    return ScriptedDevice()


@asyncio_fixture
async def channel(device: ScriptedDevice) -> TelnetChannel:
    """Fixture providing a channel connected to the scripted device."""
    return TelnetChannel(reader=device.reader, writer=device)


@pytest.fixture
def open_connection(device: ScriptedDevice) -> Generator[AsyncMock]:
    """Patch the session's connection factory to hand out the scripted device."""
    mock = AsyncMock(return_value=(device.reader, device))
    with patch("telnet_shell.clients.telnet.client.open_connection", new=mock):
        yield mock


@asyncio_fixture
async def session(open_connection: AsyncMock) -> AsyncGenerator[TelnetSession]:
    """Fixture providing an unconnected session to the scripted device."""
    session = TelnetSession(ConnectionConfig(host="router.example.com", exec_timeout=1.0))
    yield session
    await session.disconnect()
