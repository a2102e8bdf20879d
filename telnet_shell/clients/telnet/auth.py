"""Login handshake against a device shell.

The handshake waits for the login prompt, types the username, waits for the
password prompt, types the password, then checks the reply. A failure
banner wins over a shell prompt when both appear in the reply.
"""

from __future__ import annotations

from asyncio import sleep as asyncio_sleep, timeout as asyncio_timeout
from typing import TYPE_CHECKING

from telnet_shell.cli.console import log
from telnet_shell.constants import SETTLE_DELAY
from telnet_shell.errors import AuthError, AuthTimeoutError, InvalidCredentialsError, PromptNotValidatedError

from .reader import read_until

if TYPE_CHECKING:
    from telnet_shell.types import AuthConfig

    from .channel import TelnetChannel


async def authenticate(channel: TelnetChannel, credentials: AuthConfig) -> bool:
    """Log in to the device on an open channel.

    Each prompt is given half of ``credentials.timeout``, and the handshake as
    a whole is cut off after the full timeout.

    Returns:
        True once a shell prompt is seen after the password

    Raises:
        AuthTimeoutError: If the whole handshake takes too long
        AuthError: If the login or password prompt never appears
        InvalidCredentialsError: If the device reports a failed login
        PromptNotValidatedError: If no shell prompt follows the password
    """
    try:
        async with asyncio_timeout(credentials.timeout):
            return await _handshake(channel, credentials)
    except TimeoutError as e:
        msg = f"Login did not complete within {credentials.timeout}s"
        raise AuthTimeoutError(msg) from e


async def _handshake(channel: TelnetChannel, credentials: AuthConfig) -> bool:
    step_limit = credentials.timeout / 2

    banner = await read_until(channel, credentials.login_pattern, step_limit)
    if not credentials.login_pattern.search(banner):
        msg = "Login prompt not found"
        raise AuthError(msg)
    await asyncio_sleep(SETTLE_DELAY)
    log.debug("Sending login %r", credentials.login)
    await channel.send_line(credentials.login)

    prompt = await read_until(channel, credentials.password_pattern, step_limit)
    if not credentials.password_pattern.search(prompt):
        msg = "Password prompt not found"
        raise AuthError(msg)
    await asyncio_sleep(SETTLE_DELAY)
    log.debug("Sending password")
    await channel.send_line(credentials.password)

    reply = await read_until(channel, credentials.success_pattern, step_limit)
    if credentials.failure_pattern.search(reply):
        msg = "Incorrect login or password"
        raise InvalidCredentialsError(msg)
    if not credentials.success_pattern.search(reply):
        msg = "No shell prompt found after login"
        raise PromptNotValidatedError(msg)

    log.info("Logged in as %s", credentials.login)
    return True
