"""Pattern-driven reads from a telnet device.

``read_until`` collects output until it matches a completion pattern, the
device stops in a pager, or the time limit runs out. It never raises on
timeout: whatever arrived is returned and the caller decides whether that
was enough.

Two pager styles are handled:

1. Devices that ring the bell (BEL) when their pager stops. The read sends
   Ctrl+C and gives the device a short grace period to return to its prompt.
2. Devices that print a ``CTRL+C ESC Quit`` banner ahead of more output. The
   read sends Ctrl+C and keeps going.

Only one Ctrl+C is sent per read.
"""

from __future__ import annotations

from asyncio import get_running_loop
from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING

from telnet_shell.cli.console import log
from telnet_shell.constants import BEL_CHAR, ETX_BYTE, PAGER_BANNER_MARKERS, PAGER_GRACE_PERIOD

if TYPE_CHECKING:
    from re import Pattern

    from .channel import TelnetChannel


class ReadSignal(IntEnum):
    """What a new chunk means for the read in progress."""

    CONTINUE = 0
    MATCHED = 1
    PAGER_BELL = 2
    PAGER_BANNER = 3


@dataclass(slots=True)
class PendingRead:
    """State of a single read, discarded once it resolves."""

    pattern: Pattern[str]
    deadline: float
    buffer: str = field(default="")
    interrupted: bool = field(default=False)

    def feed(self, chunk: str) -> ReadSignal:
        """Append a chunk and classify the buffer.

        Returns:
            The signal the read loop should act on
        """
        self.buffer += chunk
        if self.pattern.search(self.buffer):
            return ReadSignal.MATCHED
        if self.interrupted:
            return ReadSignal.CONTINUE
        if BEL_CHAR in chunk:
            return ReadSignal.PAGER_BELL
        if all(marker in self.buffer for marker in PAGER_BANNER_MARKERS):
            return ReadSignal.PAGER_BANNER
        return ReadSignal.CONTINUE

    async def interrupt(self, channel: TelnetChannel) -> None:
        """Send Ctrl+C to abort the device pager, at most once per read."""
        if self.interrupted:
            return
        self.interrupted = True
        await channel.send_raw(bytes([ETX_BYTE]))


async def read_until(channel: TelnetChannel, pattern: Pattern[str], time_limit: float) -> str:
    """Read from the device until the pattern matches or time runs out.

    Args:
        channel: Connected channel to read from
        pattern: Regex searched in everything received so far
        time_limit: Maximum time to spend reading

    Returns:
        Everything received during this read, matched or not

    Raises:
        TransportError: If the connection is reset while reading
    """
    loop = get_running_loop()
    pending = PendingRead(pattern=pattern, deadline=loop.time() + time_limit)

    with channel.reading(pending):
        while (remaining := pending.deadline - loop.time()) > 0:
            chunk = await channel.receive(remaining)
            if chunk is None:
                log.warning("Device closed the connection during read")
                break
            if not chunk:
                continue

            match pending.feed(chunk):
                case ReadSignal.MATCHED:
                    break
                case ReadSignal.PAGER_BELL:
                    log.debug("Pager bell received, sending Ctrl+C")
                    await pending.interrupt(channel)
                    pending.deadline = min(pending.deadline, loop.time() + PAGER_GRACE_PERIOD)
                case ReadSignal.PAGER_BANNER:
                    log.debug("Pager banner received, sending Ctrl+C")
                    await pending.interrupt(channel)

    return pending.buffer
