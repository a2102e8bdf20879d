"""Exception types raised by telnet shell sessions.

Every error carries a stable ``code`` string so callers can branch on the
failure kind without matching on message text.
"""

from __future__ import annotations

from typing import ClassVar


class TelnetShellError(Exception):
    """Base class for all telnet shell errors."""

    code: ClassVar[str] = "ERR_TELNET"


class HostRequiredError(TelnetShellError):
    """No host was configured for the session."""

    code = "ERR_HOST_REQUIRED"


class ConnectTimeoutError(TelnetShellError):
    """The device did not accept the connection in time."""

    code = "ERR_TIMEOUT_CONNECT"


class TransportError(TelnetShellError):
    """The connection was refused, reset or is no longer usable."""

    code = "ERR_TRANSPORT"


class SessionClosedError(TelnetShellError):
    """The session was closed and cannot be reused."""

    code = "ERR_SESSION_CLOSED"


class CredentialsRequiredError(TelnetShellError):
    """Login or password is empty."""

    code = "ERR_LOGIN_PASSWORD_REQUIRED"


class AuthTimeoutError(TelnetShellError):
    """The whole login handshake took longer than allowed."""

    code = "ERR_TIMEOUT_AUTH"


class AuthError(TelnetShellError):
    """An expected login or password prompt never appeared."""

    code = "ERR_AUTH"


class InvalidCredentialsError(AuthError):
    """The device rejected the login or password."""

    code = "FAIL_LOGIN_OR_PASSWORD"


class PromptNotValidatedError(AuthError):
    """No shell prompt was seen after sending the credentials."""

    code = "FAIL_VALID_CONNECT"
