"""Type definitions module for telnet shell sessions.

This module contains the configuration dataclasses and the session state enum
used throughout the telnet shell package. Patterns may be given as strings or
pre-compiled regular expressions, strings are compiled on construction.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from re import IGNORECASE, Pattern, compile as re_compile
from typing import TypeAlias

from .constants import (
    DEFAULT_AUTH_TIMEOUT,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_EXEC_TIMEOUT,
    DEFAULT_FAILURE_PATTERN,
    DEFAULT_LOGIN_PATTERN,
    DEFAULT_PASSWORD_PATTERN,
    DEFAULT_PROMPT_PATTERN,
    DEFAULT_TELNET_PORT,
    MAX_PORT,
    MIN_PORT,
)
from .errors import CredentialsRequiredError

PatternLike: TypeAlias = Pattern[str] | str


def compile_pattern(pattern: PatternLike, flags: int = 0) -> Pattern[str]:
    """Compile a string pattern, passing compiled patterns through untouched.

    Returns:
        The compiled regular expression
    """
    if isinstance(pattern, str):
        return re_compile(pattern, flags)
    return pattern


class SessionState(IntEnum):
    """Lifecycle states of a telnet session."""

    UNCONNECTED = 0
    CONNECTING = 1
    CONNECTED = 2
    CLOSED = 3


@dataclass(frozen=True, slots=True)
class ConnectionConfig:
    """Where and how to reach a device.

    The host is allowed to be empty here so that the error surfaces on first
    use of the session as a ``HostRequiredError``.
    """

    host: str
    port: int = field(default=DEFAULT_TELNET_PORT)
    connect_timeout: float = field(default=DEFAULT_CONNECT_TIMEOUT)
    exec_timeout: float = field(default=DEFAULT_EXEC_TIMEOUT)
    prompt_pattern: PatternLike = field(default=DEFAULT_PROMPT_PATTERN)
    encoding: str = field(default="utf-8")
    newline: str = field(default="\n")

    def __post_init__(self) -> None:
        """Validate the port and compile the prompt pattern.

        Raises:
            ValueError: If the port is out of range.
        """
        if not MIN_PORT <= self.port <= MAX_PORT:
            msg = f"Invalid port: {self.port}"
            raise ValueError(msg)
        object.__setattr__(self, "prompt_pattern", compile_pattern(self.prompt_pattern))


@dataclass(frozen=True, slots=True)
class AuthConfig:
    """Credentials and prompt patterns for the login handshake."""

    login: str
    password: str = field(repr=False)
    timeout: float = field(default=DEFAULT_AUTH_TIMEOUT)
    login_pattern: PatternLike = field(default=DEFAULT_LOGIN_PATTERN)
    password_pattern: PatternLike = field(default=DEFAULT_PASSWORD_PATTERN)
    failure_pattern: PatternLike = field(default=DEFAULT_FAILURE_PATTERN)
    success_pattern: PatternLike = field(default=DEFAULT_PROMPT_PATTERN)

    def __post_init__(self) -> None:
        """Check the credentials and compile the patterns.

        Raises:
            CredentialsRequiredError: If login or password is empty.
        """
        if not self.login or not self.password:
            msg = "Login and password must not be empty"
            raise CredentialsRequiredError(msg)
        for name in ("login_pattern", "password_pattern", "failure_pattern", "success_pattern"):
            object.__setattr__(self, name, compile_pattern(getattr(self, name), IGNORECASE))
