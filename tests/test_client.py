"""Unit tests for the telnet session lifecycle and command execution."""

from __future__ import annotations

from asyncio import (
    CancelledError as AsyncioCancelledError,
    create_task as asyncio_create_task,
    gather as asyncio_gather,
    sleep as asyncio_sleep,
)
from time import perf_counter
from typing import TYPE_CHECKING, Never
from unittest.mock import AsyncMock, patch

import pytest

from telnet_shell.clients.telnet.client import TelnetSession, trim_empty_lines
from telnet_shell.clients.telnet.negotiate import window_size_sequence
from telnet_shell.errors import (
    ConnectTimeoutError,
    HostRequiredError,
    SessionClosedError,
    TransportError,
)
from telnet_shell.types import ConnectionConfig, SessionState

if TYPE_CHECKING:
    from conftest import ScriptedDevice

DEFAULT_NAWS = window_size_sequence(80, 24)
OPEN_CONNECTION = "telnet_shell.clients.telnet.client.open_connection"


@pytest.mark.asyncio
async def test_connect_sends_default_window_size(device: ScriptedDevice, session: TelnetSession) -> None:
    """Test that the first bytes on the wire declare an 80x24 terminal."""
    await session.connect()
    if session.state != SessionState.CONNECTED:
        pytest.fail(f"Expected CONNECTED, got {session.state!r}")
    if device.written != [DEFAULT_NAWS]:
        pytest.fail(f"Initial traffic incorrect: {device.written!r}")


@pytest.mark.asyncio
async def test_connect_is_idempotent(session: TelnetSession, open_connection: AsyncMock) -> None:
    """Test that repeated connects reuse the live connection."""
    await session.connect()
    await session.connect()
    if open_connection.await_count != 1:
        pytest.fail(f"Expected one connection, got {open_connection.await_count}")


@pytest.mark.asyncio
async def test_overlapping_connects_share_attempt(device: ScriptedDevice) -> None:
    """Test that callers arriving while connecting wait on the same attempt."""

    async def slow_open(host: str, port: int) -> tuple:
        await asyncio_sleep(0.05)
        return device.reader, device

    session = TelnetSession(ConnectionConfig(host="router.example.com"))
    with patch(OPEN_CONNECTION, new=AsyncMock(side_effect=slow_open)) as mock_open:
        await asyncio_gather(session.connect(), session.connect(), session.connect())

    if mock_open.await_count != 1:
        pytest.fail(f"Expected one connection attempt, got {mock_open.await_count}")
    if device.written.count(DEFAULT_NAWS) != 1:
        pytest.fail(f"Window size sent more than once: {device.written!r}")
    await session.disconnect()


@pytest.mark.asyncio
async def test_connection_error_reaches_all_waiters() -> None:
    """Test that a failed attempt is reported to every waiting caller."""

    async def failing_open(host: str, port: int) -> Never:
        await asyncio_sleep(0.05)
        raise ConnectionRefusedError(111, "Connection refused")

    session = TelnetSession(ConnectionConfig(host="router.example.com"))
    with patch(OPEN_CONNECTION, new=AsyncMock(side_effect=failing_open)):
        results = await asyncio_gather(session.connect(), session.exec("show version"), return_exceptions=True)

    if not all(isinstance(result, TransportError) for result in results):
        pytest.fail(f"Expected TransportError for every caller, got {results!r}")
    if session.state != SessionState.CLOSED:
        pytest.fail(f"Expected CLOSED, got {session.state!r}")


@pytest.mark.asyncio
async def test_host_required() -> None:
    """Test that an empty host fails without opening a socket."""
    session = TelnetSession(ConnectionConfig(host=""))
    with patch(OPEN_CONNECTION, new=AsyncMock()) as mock_open:
        with pytest.raises(HostRequiredError):
            await session.connect()
        with pytest.raises(HostRequiredError):
            await session.exec("show version")

    if mock_open.await_count:
        pytest.fail("Socket opened without a host")
    if session.state != SessionState.UNCONNECTED:
        pytest.fail(f"Expected UNCONNECTED, got {session.state!r}")


@pytest.mark.asyncio
async def test_connect_timeout() -> None:
    """Test that a device that never answers raises ConnectTimeoutError."""

    async def hanging_open(host: str, port: int) -> Never:
        await asyncio_sleep(10)
        raise AssertionError

    session = TelnetSession(ConnectionConfig(host="192.0.2.1", connect_timeout=0.05))
    with patch(OPEN_CONNECTION, new=AsyncMock(side_effect=hanging_open)):
        with pytest.raises(ConnectTimeoutError):
            await session.connect()
        # A closed session cannot be reused
        with pytest.raises(SessionClosedError):
            await session.connect()

    if session.state != SessionState.CLOSED:
        pytest.fail(f"Expected CLOSED, got {session.state!r}")


@pytest.mark.asyncio
async def test_connection_refused() -> None:
    """Test that a refused connection raises TransportError."""
    session = TelnetSession(ConnectionConfig(host="192.0.2.1"))
    refused = ConnectionRefusedError(111, "Connection refused")
    with patch(OPEN_CONNECTION, new=AsyncMock(side_effect=refused)), pytest.raises(TransportError) as exc_info:
        await session.connect()
    if exc_info.value.__cause__ is not refused:
        pytest.fail("Original socket error not chained")


@pytest.mark.asyncio
async def test_disconnect_is_always_safe(device: ScriptedDevice, session: TelnetSession) -> None:
    """Test that disconnect never raises, whatever the state."""
    try:
        await session.disconnect()
        if session.state != SessionState.UNCONNECTED:
            pytest.fail(f"Disconnect before connect changed state to {session.state!r}")
        await session.connect()
        await session.disconnect()
        await session.disconnect()
    except Exception as e:
        pytest.fail(f"disconnect() raised unexpected exception: {e}")

    if not device.closed:
        pytest.fail("Writer not closed")
    if session.state != SessionState.CLOSED:
        pytest.fail(f"Expected CLOSED, got {session.state!r}")
    with pytest.raises(SessionClosedError):
        await session.exec("show version")


@pytest.mark.asyncio
async def test_disconnect_during_connect() -> None:
    """Test that disconnecting aborts a connection attempt in progress."""

    async def hanging_open(host: str, port: int) -> Never:
        await asyncio_sleep(10)
        raise AssertionError

    session = TelnetSession(ConnectionConfig(host="192.0.2.1"))
    with patch(OPEN_CONNECTION, new=AsyncMock(side_effect=hanging_open)):
        connecting = asyncio_create_task(session.connect())
        await asyncio_sleep(0.01)
        await session.disconnect()
        results = await asyncio_gather(connecting, return_exceptions=True)

    if not isinstance(results[0], AsyncioCancelledError):
        pytest.fail(f"Expected the waiting connect to be cancelled, got {results[0]!r}")
    if session.state != SessionState.CLOSED:
        pytest.fail(f"Expected CLOSED, got {session.state!r}")


@pytest.mark.asyncio
async def test_disconnect_can_be_cancelled() -> None:
    """Test that cancelling the caller of disconnect is not swallowed."""

    async def slow_to_abort_open(host: str, port: int) -> Never:
        try:
            await asyncio_sleep(10)
        except AsyncioCancelledError:
            await asyncio_sleep(0.2)
            raise
        raise AssertionError

    session = TelnetSession(ConnectionConfig(host="192.0.2.1"))
    with patch(OPEN_CONNECTION, new=AsyncMock(side_effect=slow_to_abort_open)):
        connecting = asyncio_create_task(session.connect())
        await asyncio_sleep(0.01)
        closing = asyncio_create_task(session.disconnect())
        await asyncio_sleep(0.05)
        closing.cancel()
        results = await asyncio_gather(closing, connecting, return_exceptions=True)

    if not isinstance(results[0], AsyncioCancelledError):
        pytest.fail(f"Cancellation of disconnect was swallowed, got {results[0]!r}")


@pytest.mark.asyncio
async def test_disconnect_swallows_close_errors(device: ScriptedDevice, session: TelnetSession) -> None:
    """Test that errors while closing the socket are ignored."""

    async def broken_wait_closed() -> Never:
        msg = "Error during close"
        raise ConnectionError(msg)

    await session.connect()
    device.wait_closed = broken_wait_closed
    try:
        await session.disconnect()
    except Exception as e:
        pytest.fail(f"disconnect() raised unexpected exception: {e}")


@pytest.mark.asyncio
async def test_exec_returns_output(device: ScriptedDevice, session: TelnetSession) -> None:
    """Test running a command with the default prompt pattern."""
    device.replies = [b"show version\r\nCisco IOS Software\r\n\r\nRouter#"]
    output = await session.exec("show version")
    if output != "show version\r\nCisco IOS Software\r\n\r\nRouter#":
        pytest.fail(f"Unexpected output: {output!r}")
    if device.lines != [b"show version\n"]:
        pytest.fail(f"Command line incorrect: {device.lines!r}")


@pytest.mark.asyncio
async def test_exec_custom_pattern(device: ScriptedDevice, session: TelnetSession) -> None:
    """Test stopping on a confirmation question instead of the prompt."""
    device.replies = [b"reload\r\nProceed with reload? [confirm]"]
    output = await session.exec("reload", pattern=r"\[confirm\]", time_limit=1.0)
    if not output.endswith("[confirm]"):
        pytest.fail(f"Custom pattern not honoured: {output!r}")


@pytest.mark.asyncio
async def test_exec_trims_trailing_blank_lines(device: ScriptedDevice, session: TelnetSession) -> None:
    """Test that blank lines after the output are dropped."""
    device.replies = [b"done\r\n\r\n   \r\n"]
    output = await session.exec("copy run start", pattern=r"done", time_limit=1.0)
    if output != "done":
        pytest.fail(f"Trailing blank lines kept: {output!r}")


@pytest.mark.asyncio
async def test_exec_deadline_is_not_an_error(session: TelnetSession) -> None:
    """Test that a command without a reply returns empty output."""
    output = await session.exec("show nothing", time_limit=0.1)
    if output != "":
        pytest.fail(f"Expected empty output, got {output!r}")


@pytest.mark.asyncio
async def test_exec_page_height(device: ScriptedDevice, session: TelnetSession) -> None:
    """Test that a custom height wraps the command and is then restored."""
    device.replies = [b"show log\r\nlog line\r\nRouter#"]
    await session.exec("show log", page_height=50)
    expected = [DEFAULT_NAWS, window_size_sequence(80, 50), b"show log\n", DEFAULT_NAWS]
    if device.written != expected:
        pytest.fail(f"Wire traffic incorrect.\nExpected: {expected!r}\nGot: {device.written!r}")


@pytest.mark.asyncio
async def test_exec_restores_height_on_failure(device: ScriptedDevice, session: TelnetSession) -> None:
    """Test that the default height is restored even when the read fails."""
    failing_read = AsyncMock(side_effect=RuntimeError("read failed"))
    with (
        patch("telnet_shell.clients.telnet.client.read_until", new=failing_read),
        pytest.raises(RuntimeError, match="read failed"),
    ):
        await session.exec("show log", page_height=50)

    if device.written[-3:] != [window_size_sequence(80, 50), b"show log\n", DEFAULT_NAWS]:
        pytest.fail(f"Height not restored after failure: {device.written!r}")


@pytest.mark.asyncio
async def test_exec_after_device_hangs_up(device: ScriptedDevice, session: TelnetSession) -> None:
    """Test that a connection dropped by the device closes the session."""
    await session.connect()
    device.reader.feed_eof()
    output = await session.exec("exit", time_limit=1.0)
    if output != "":
        pytest.fail(f"Unexpected output: {output!r}")
    if session.state != SessionState.CLOSED:
        pytest.fail(f"Expected CLOSED, got {session.state!r}")
    with pytest.raises(SessionClosedError):
        await session.exec("show version")


@pytest.mark.asyncio
async def test_exec_calls_are_serialised(device: ScriptedDevice, session: TelnetSession) -> None:
    """Test that concurrent commands run one after the other."""
    device.replies = [b"one\r\nRouter#", b"two\r\nRouter#"]
    first, second = await asyncio_gather(session.exec("show one"), session.exec("show two"))
    if (first, second) != ("one\r\nRouter#", "two\r\nRouter#"):
        pytest.fail(f"Outputs interleaved: {first!r}, {second!r}")


@pytest.mark.asyncio
async def test_context_manager(device: ScriptedDevice, session: TelnetSession) -> None:
    """Test async context manager protocol."""
    async with session:
        if not session.is_connected:
            pytest.fail("Session not connected in context")

    if not device.closed:
        pytest.fail("Writer not closed after context exit")
    if session.is_connected:
        pytest.fail("Session still connected after context exit")


@pytest.mark.asyncio
async def test_connect_to_class_method(device: ScriptedDevice, open_connection: AsyncMock) -> None:
    """Test creating and connecting a session in one step."""
    session = await TelnetSession.connect_to("switch.example.com", 2323, connect_timeout=1.0, debug=True)
    try:
        if session.config.port != 2323:  # noqa: PLR2004
            pytest.fail(f"Port mismatch, got {session.config.port}")
        if not session.debug:
            pytest.fail("Debug flag not passed through")
        open_connection.assert_awaited_once_with("switch.example.com", 2323)
    finally:
        await session.disconnect()


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("a\nb\n\n\n", "a\nb"),
        ("a\nb", "a\nb"),
        ("a\r\nb\r\n\r\n", "a\r\nb"),
        ("a\nb\n  \t\n", "a\nb"),
        ("Router# ", "Router# "),
        ("a\r\n\r\nRouter#", "a\r\n\r\nRouter#"),
        ("   ", "   "),
        ("", ""),
    ],
)
def test_trim_empty_lines(text: str, expected: str) -> None:
    """Test removal of trailing blank lines."""
    result = trim_empty_lines(text)
    if result != expected:
        pytest.fail(f"trim_empty_lines({text!r}) returned {result!r}, expected {expected!r}")


def test_invalid_port() -> None:
    """Test that out of range ports are rejected."""
    with pytest.raises(ValueError, match="Invalid port"):
        ConnectionConfig(host="router.example.com", port=0)


def test_trim_many_blank_lines_is_fast() -> None:
    """Test that long runs of blank lines before a prompt trim in linear time."""
    text = "header" + "\r\n" * 500 + "Router#"
    start = perf_counter()
    if trim_empty_lines(text) != text:
        pytest.fail("Output with a trailing prompt should be unchanged")
    if trim_empty_lines(text + "\r\n" * 500) != text:
        pytest.fail("Trailing blank lines were not removed")
    if perf_counter() - start > 1.0:
        pytest.fail("Trimming blank lines took too long")
