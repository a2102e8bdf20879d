"""Byte channel to a connected telnet device.

A ``TelnetChannel`` wraps the ``StreamReader``/``StreamWriter`` pair returned
by ``asyncio.open_connection``. It decodes received data into text with
telnet commands removed, escapes outgoing text, and turns socket failures
into ``TransportError``. At most one read may be registered on a channel at
a time.
"""

from __future__ import annotations

from asyncio import StreamReader, StreamWriter, timeout as asyncio_timeout
from codecs import IncrementalDecoder, getincrementaldecoder
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from telnet_shell.cli.console import log
from telnet_shell.constants import IAC_BYTE, READ_CHUNK_SIZE
from telnet_shell.errors import TransportError

from .negotiate import TelnetStreamFilter

if TYPE_CHECKING:
    from collections.abc import Iterator

    from .reader import PendingRead


@dataclass(slots=True)
class TelnetChannel:
    """Connected reader/writer pair for one telnet session."""

    reader: StreamReader
    writer: StreamWriter
    encoding: str = field(default="utf-8")
    newline: str = field(default="\n")
    debug: bool = field(default=False)
    closed: bool = field(default=False)
    _filter: TelnetStreamFilter = field(init=False, default_factory=TelnetStreamFilter)
    _decoder: IncrementalDecoder = field(init=False)
    _pending: PendingRead | None = field(init=False, default=None)

    def __post_init__(self) -> None:
        """Create the incremental decoder for the configured encoding."""
        self._decoder = getincrementaldecoder(self.encoding)(errors="replace")

    @contextmanager
    def reading(self, pending: PendingRead) -> Iterator[PendingRead]:
        """Register a read for its lifetime.

        Raises:
            RuntimeError: If another read is already registered
        """
        if self._pending is not None:
            msg = "A read is already in progress on this channel"
            raise RuntimeError(msg)
        self._pending = pending
        try:
            yield pending
        finally:
            self._pending = None

    async def receive(self, time_limit: float) -> str | None:
        """Wait for the next chunk of text from the device.

        Args:
            time_limit: Maximum time to wait for data

        Returns:
            The decoded text, an empty string when nothing arrived in time or
            the chunk only held telnet commands, or None at end of stream.

        Raises:
            TransportError: If the connection was reset or timed out
        """
        self._check_open()
        deadline = asyncio_timeout(time_limit)
        try:
            async with deadline:
                raw_data = await self.reader.read(READ_CHUNK_SIZE)
        except OSError as e:
            # A socket-level ETIMEDOUT is also a TimeoutError
            if isinstance(e, TimeoutError) and deadline.expired():
                return ""
            self.closed = True
            msg = f"Connection lost while reading: {e}"
            raise TransportError(msg) from e

        if not raw_data:
            self.closed = True
            return None

        self._trace("recv", raw_data)
        return self._decoder.decode(self._filter.feed(raw_data))

    async def write(self, data: bytes) -> None:
        """Write data to the device, doubling any IAC bytes."""
        if IAC_BYTE in data:
            data = data.replace(bytes([IAC_BYTE]), bytes([IAC_BYTE, IAC_BYTE]))
        await self.send_raw(data)

    async def send_raw(self, data: bytes) -> None:
        """Write bytes exactly as given, used for control sequences.

        Raises:
            TransportError: If the connection is closed or the write fails
        """
        self._check_open()
        self._trace("send", data)
        try:
            self.writer.write(data)
            await self.writer.drain()
        except OSError as e:
            self.closed = True
            msg = f"Connection lost while writing: {e}"
            raise TransportError(msg) from e

    async def send_line(self, text: str) -> None:
        """Send a line of text terminated by the configured newline."""
        await self.write((text + self.newline).encode(self.encoding))

    async def close(self) -> None:
        """Close the connection, ignoring any error on the way."""
        self.closed = True
        try:
            self.writer.close()
            await self.writer.wait_closed()
        except Exception:  # noqa: BLE001
            log.warning("Error closing telnet connection", exc_info=True)

    def _check_open(self) -> None:
        if self.closed:
            msg = "Connection is closed"
            raise TransportError(msg)

    def _trace(self, direction: str, data: bytes) -> None:
        if self.debug:
            log.debug("%s %d bytes: %s", direction, len(data), data.hex(" "))
