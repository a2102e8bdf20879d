"""Telnet shell session module.

This module provides ``TelnetSession``, which owns the connection to one
network device. It connects lazily on first use, declares an 80x24 terminal,
logs in, and runs commands one at a time.

Sessions are single use: once closed, build a new one to reconnect.
"""

from __future__ import annotations

from asyncio import (
    CancelledError as AsyncioCancelledError,
    Lock,
    Task,
    create_task as asyncio_create_task,
    open_connection,
    shield as asyncio_shield,
    timeout as asyncio_timeout,
    wait as asyncio_wait,
)
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Self

from telnet_shell.cli.console import log
from telnet_shell.constants import DEFAULT_TELNET_PORT, DEFAULT_WINDOW_HEIGHT, DEFAULT_WINDOW_WIDTH
from telnet_shell.errors import ConnectTimeoutError, HostRequiredError, SessionClosedError, TransportError
from telnet_shell.types import ConnectionConfig, SessionState, compile_pattern

from .auth import authenticate
from .channel import TelnetChannel
from .negotiate import negotiate_window_size
from .reader import read_until

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from telnet_shell.types import AuthConfig, PatternLike


def trim_empty_lines(text: str) -> str:
    """Drop trailing lines that are empty or only whitespace.

    Returns:
        The text without its trailing blank lines
    """
    lines = text.split("\n")
    if len(lines) < 2 or lines[-1].strip():  # noqa: PLR2004
        return text
    while len(lines) > 1 and not lines[-1].strip():
        lines.pop()
    return "\n".join(lines).removesuffix("\r")


@dataclass(slots=True)
class TelnetSession:
    """Line-mode telnet session to a network device shell.

    This class implements the async context manager protocol for easy use in
    async with statements.

    Examples:
        Basic usage with context manager:

        ```python
        config = ConnectionConfig(host="192.0.2.1")
        async with TelnetSession(config) as session:
            await session.auth(AuthConfig(login="admin", password="secret"))
            print(await session.exec("show version"))
        ```

        Manual connection management, letting ``exec`` connect lazily:

        ```python
        session = TelnetSession(ConnectionConfig(host="192.0.2.1"))
        try:
            await session.auth(AuthConfig(login="admin", password="secret"))
            output = await session.exec("show log", page_height=500)
        finally:
            await session.disconnect()
        ```
    """

    config: ConnectionConfig
    debug: bool = field(default=False)
    _state: SessionState = field(init=False, default=SessionState.UNCONNECTED)
    _channel: TelnetChannel | None = field(init=False, default=None)
    _connect_task: Task[TelnetChannel] | None = field(init=False, default=None)
    _lock: Lock = field(init=False, default_factory=Lock)

    @classmethod
    async def connect_to(cls, host: str, port: int = DEFAULT_TELNET_PORT, **kwargs: Any) -> Self:
        """Create and connect to a device in one step.

        Args:
            host: The hostname or IP address of the device
            port: The telnet port of the device
            **kwargs: Additional ``ConnectionConfig`` fields, plus ``debug``

        Returns:
            A connected TelnetSession instance
        """
        debug = kwargs.pop("debug", False)
        session = cls(ConnectionConfig(host=host, port=port, **kwargs), debug=debug)
        await session.connect()
        return session

    async def __aenter__(self) -> Self:
        """Connect when entering an async with block.

        Returns:
            The connected session
        """
        await self.connect()
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        """Disconnect when leaving an async with block."""
        await self.disconnect()

    @property
    def state(self) -> SessionState:
        """Current lifecycle state, CLOSED once the connection has dropped."""
        if self._channel is not None and self._channel.closed:
            return SessionState.CLOSED
        return self._state

    @property
    def is_connected(self) -> bool:
        """Check if the session currently holds a live connection."""
        return self.state == SessionState.CONNECTED

    async def connect(self) -> None:
        """Connect to the device unless already connected.

        Concurrent callers share the same connection attempt.

        Raises:
            HostRequiredError: If no host is configured
            ConnectTimeoutError: If the device does not answer in time
            TransportError: If the connection is refused or reset
            SessionClosedError: If the session was already closed
        """
        await self._ensure_connected()

    async def disconnect(self) -> None:
        """Close the connection. Safe to call at any time, never raises."""
        if self._connect_task is not None and not self._connect_task.done():
            self._connect_task.cancel()
            await asyncio_wait([self._connect_task])
        if self._connect_task is not None and not self._connect_task.cancelled():
            # Mark a failed attempt as retrieved, its waiters already saw it
            self._connect_task.exception()
        if self._channel is not None and self._state != SessionState.CLOSED:
            await self._channel.close()
            log.info("Closed telnet connection to %s:%d", self.config.host, self.config.port)
        if self._state != SessionState.UNCONNECTED:
            self._state = SessionState.CLOSED

    async def auth(self, credentials: AuthConfig) -> bool:
        """Log in to the device, connecting first if needed.

        Returns:
            True when the login succeeded

        Raises:
            AuthTimeoutError: If the login takes longer than ``credentials.timeout``
            AuthError: If a prompt is missing or the login is rejected
        """
        await self._ensure_connected()
        async with self._lock:
            return await authenticate(self._live_channel(), credentials)

    async def exec(
        self,
        command: str,
        pattern: PatternLike | None = None,
        time_limit: float | None = None,
        page_height: int | None = None,
    ) -> str:
        """Run a command and return its output.

        Args:
            command: The command line to send
            pattern: Regex marking the end of the output, defaults to the
                configured prompt pattern
            time_limit: Maximum time to wait for the output, defaults to the
                configured exec timeout
            page_height: Terminal height to declare while the command runs

        Returns:
            Everything the device sent back, without trailing blank lines.
            If the pattern never matched this is whatever arrived in time.
        """
        pattern = self.config.prompt_pattern if pattern is None else compile_pattern(pattern)
        if time_limit is None:
            time_limit = self.config.exec_timeout

        await self._ensure_connected()
        async with self._lock:
            channel = self._live_channel()
            async with self._window_height(channel, page_height):
                await channel.send_line(command)
                output = await read_until(channel, pattern, time_limit)

        return trim_empty_lines(output)

    @asynccontextmanager
    async def _window_height(self, channel: TelnetChannel, height: int | None) -> AsyncIterator[None]:
        """Declare a custom height for the duration of the block."""
        if height is None:
            yield
            return

        await negotiate_window_size(channel, DEFAULT_WINDOW_WIDTH, height)
        try:
            yield
        finally:
            if not channel.closed:
                await negotiate_window_size(channel, DEFAULT_WINDOW_WIDTH, DEFAULT_WINDOW_HEIGHT)

    async def _ensure_connected(self) -> TelnetChannel:
        match self.state:
            case SessionState.CONNECTED:
                return self._live_channel()
            case SessionState.CLOSED:
                msg = f"Session to {self.config.host}:{self.config.port} is closed"
                raise SessionClosedError(msg)
            case SessionState.UNCONNECTED:
                if not self.config.host:
                    msg = "Host is required"
                    raise HostRequiredError(msg)
                self._state = SessionState.CONNECTING
                self._connect_task = asyncio_create_task(self._open())

        return await asyncio_shield(self._connect_task)

    async def _open(self) -> TelnetChannel:
        """Open the connection and declare the default terminal size."""
        host, port = self.config.host, self.config.port
        log.info("Connecting with telnet to %s:%d", host, port)
        try:
            async with asyncio_timeout(self.config.connect_timeout):
                reader, writer = await open_connection(host, port)
        except TimeoutError as e:
            self._state = SessionState.CLOSED
            msg = f"{host} could not connect in time"
            raise ConnectTimeoutError(msg) from e
        except OSError as e:
            self._state = SessionState.CLOSED
            msg = f"{host} telnet error: {e}"
            raise TransportError(msg) from e
        except AsyncioCancelledError:
            self._state = SessionState.CLOSED
            raise

        self._channel = TelnetChannel(
            reader=reader,
            writer=writer,
            encoding=self.config.encoding,
            newline=self.config.newline,
            debug=self.debug,
        )
        self._state = SessionState.CONNECTED
        await negotiate_window_size(self._channel, DEFAULT_WINDOW_WIDTH, DEFAULT_WINDOW_HEIGHT)
        log.debug("Connected with telnet to %s:%d", host, port)
        return self._channel

    def _live_channel(self) -> TelnetChannel:
        if self.state != SessionState.CONNECTED or self._channel is None:
            msg = f"Session to {self.config.host}:{self.config.port} is closed"
            raise SessionClosedError(msg)
        return self._channel
