"""Telnet shell automation package.

This package drives interactive line-mode telnet sessions against network
device command shells. It declares the terminal size, answers vendor login
prompts, and runs commands while absorbing device pagers such as BEL-driven
stops and ``CTRL+C ESC Quit`` banners.

The package is designed for network automation tasks against routers and
switches that only offer telnet. It uses asynchronous Python patterns for
its network operations.
"""

from __future__ import annotations

from importlib.metadata import version

from .cli import console, log, parse_args
from .clients.telnet import TelnetSession, trim_empty_lines, window_size_sequence
from .errors import (
    AuthError,
    AuthTimeoutError,
    ConnectTimeoutError,
    CredentialsRequiredError,
    HostRequiredError,
    InvalidCredentialsError,
    PromptNotValidatedError,
    SessionClosedError,
    TelnetShellError,
    TransportError,
)
from .types import AuthConfig, ConnectionConfig, SessionState

__all__ = [
    "AuthConfig",
    "AuthError",
    "AuthTimeoutError",
    "ConnectTimeoutError",
    "ConnectionConfig",
    "CredentialsRequiredError",
    "HostRequiredError",
    "InvalidCredentialsError",
    "PromptNotValidatedError",
    "SessionClosedError",
    "SessionState",
    "TelnetSession",
    "TelnetShellError",
    "TransportError",
    "console",
    "log",
    "parse_args",
    "trim_empty_lines",
    "window_size_sequence",
]

__version__ = version("telnet-shell")
