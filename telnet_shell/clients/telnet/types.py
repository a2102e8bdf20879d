"""Telnet protocol types module."""

from __future__ import annotations

from enum import IntEnum


class ParserState(IntEnum):
    """States for the incoming command filter."""

    DATA = 0
    IAC = 1
    COMMAND = 2
    SUBNEG = 3
    SUBNEG_IAC = 4


class TelnetCommand(IntEnum):
    """Telnet protocol commands."""

    IAC = 255  # Interpret As Command
    DONT = 254
    DO = 253
    WONT = 252
    WILL = 251
    SB = 250  # Subnegotiation Begin
    SE = 240  # Subnegotiation End

    @classmethod
    def is_negotiation(cls, cmd: int) -> bool:
        """Check if a command byte is a negotiation command.

        Returns:
            True if the command takes an option byte, False otherwise
        """
        return cmd in {cls.DO, cls.DONT, cls.WILL, cls.WONT}

    @classmethod
    def describe(cls, cmd: int) -> str:
        """Name a command byte for logging."""
        try:
            return cls(cmd).name
        except ValueError:
            return str(cmd)


class TelnetOption(IntEnum):
    """Telnet protocol options seen from network devices."""

    BINARY = 0
    ECHO = 1
    SGA = 3  # Suppress Go Ahead
    STATUS = 5
    TIMING_MARK = 6
    TERMINAL_TYPE = 24
    NAWS = 31  # Negotiate About Window Size
    TERMINAL_SPEED = 32
    LINEMODE = 34
    NEW_ENVIRON = 39

    @classmethod
    def describe(cls, option: int) -> str:
        """Name an option byte for logging."""
        try:
            return cls(option).name
        except ValueError:
            return str(option)


class TelnetSequence:
    """Builders for outgoing telnet byte sequences."""

    @staticmethod
    def create_subnegotiation(option: int, data: bytes) -> bytes:
        """Create a telnet subnegotiation sequence.

        Returns:
            ``IAC SB <option> <data> IAC SE``
        """
        result = bytearray([TelnetCommand.IAC, TelnetCommand.SB, option])
        result.extend(data)
        result.extend([TelnetCommand.IAC, TelnetCommand.SE])
        return bytes(result)
