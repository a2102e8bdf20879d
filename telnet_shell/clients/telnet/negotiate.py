"""Telnet window size negotiation and incoming command filtering.

Only the window size (NAWS) is ever sent. Option commands the device sends
are not answered, they are stripped out of the data stream so that prompt
patterns only ever see printable output.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from telnet_shell.cli.console import log
from telnet_shell.constants import MAX_SUBNEGOTIATION_LENGTH, MAX_WINDOW_DIMENSION

from .types import ParserState, TelnetCommand, TelnetOption, TelnetSequence

if TYPE_CHECKING:
    from .channel import TelnetChannel


def window_size_sequence(width: int, height: int) -> bytes:
    """Build the NAWS subnegotiation declaring a terminal size.

    Args:
        width: Terminal width in columns
        height: Terminal height in rows

    Returns:
        The 9-byte sequence ``IAC SB NAWS wHi wLo hHi hLo IAC SE``

    Raises:
        ValueError: If a dimension does not fit in 16 bits or is not positive
    """
    for name, value in (("width", width), ("height", height)):
        if not 0 < value <= MAX_WINDOW_DIMENSION:
            msg = f"Invalid window {name}: {value}"
            raise ValueError(msg)
    window_data = width.to_bytes(2, "big") + height.to_bytes(2, "big")
    return TelnetSequence.create_subnegotiation(TelnetOption.NAWS, window_data)


async def negotiate_window_size(channel: TelnetChannel, width: int, height: int) -> None:
    """Declare the terminal size to the device.

    No acknowledgement is awaited, devices that ignore NAWS keep their own
    defaults.
    """
    log.debug("Declaring window size %dx%d", width, height)
    await channel.send_raw(window_size_sequence(width, height))


@dataclass(slots=True)
class TelnetStreamFilter:
    """Strip telnet commands out of received data.

    The parser state survives between chunks, so a command split across two
    reads is still removed.
    """

    state: ParserState = field(default=ParserState.DATA)
    _command: int = field(default=0)
    _subneg: bytearray = field(default_factory=bytearray)

    def feed(self, data: bytes) -> bytes:
        """Process a chunk of received bytes.

        Args:
            data: Raw bytes received from the device

        Returns:
            The data with every telnet command removed
        """
        processed = bytearray()

        for byte in data:
            match self.state:
                case ParserState.DATA:
                    if byte == TelnetCommand.IAC:
                        self.state = ParserState.IAC
                    else:
                        processed.append(byte)

                case ParserState.IAC:
                    match byte:
                        case TelnetCommand.IAC:
                            # Escaped IAC - literal 255
                            processed.append(byte)
                            self.state = ParserState.DATA
                        case TelnetCommand.SB:
                            self._subneg = bytearray()
                            self.state = ParserState.SUBNEG
                        case _ if TelnetCommand.is_negotiation(byte):
                            self._command = byte
                            self.state = ParserState.COMMAND
                        case _:
                            # Two-byte command such as GA or NOP
                            self.state = ParserState.DATA

                case ParserState.COMMAND:
                    log.debug(
                        "Ignoring %s %s from device",
                        TelnetCommand.describe(self._command),
                        TelnetOption.describe(byte),
                    )
                    self.state = ParserState.DATA

                case ParserState.SUBNEG:
                    if byte == TelnetCommand.IAC:
                        self.state = ParserState.SUBNEG_IAC
                    else:
                        self._subneg.append(byte)
                        self._check_subneg_length()

                case ParserState.SUBNEG_IAC:
                    if byte == TelnetCommand.SE:
                        if self._subneg:
                            log.debug("Ignoring %s subnegotiation", TelnetOption.describe(self._subneg[0]))
                        self.state = ParserState.DATA
                    else:
                        self._subneg.append(byte)
                        self.state = ParserState.SUBNEG
                        self._check_subneg_length()

        return bytes(processed)

    def _check_subneg_length(self) -> None:
        if len(self._subneg) > MAX_SUBNEGOTIATION_LENGTH:
            log.warning(
                "Dropping unterminated %s subnegotiation after %d bytes",
                TelnetOption.describe(self._subneg[0]),
                len(self._subneg),
            )
            self._subneg = bytearray()
            self.state = ParserState.DATA
