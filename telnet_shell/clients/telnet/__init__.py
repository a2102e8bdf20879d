"""Telnet Shell Client Module.

This module provides an asyncio-based telnet session for logging in to
network devices and running commands on their command shells.

Example usage:
    ```python
    import asyncio
    from telnet_shell.clients.telnet import TelnetSession
    from telnet_shell.types import AuthConfig

    async def main():
        async with await TelnetSession.connect_to('device.example.com', 23) as session:
            await session.auth(AuthConfig(login='admin', password='secret'))
            print(await session.exec('show version'))

    asyncio.run(main())
    ```
"""

from __future__ import annotations

from .client import TelnetSession, trim_empty_lines
from .negotiate import window_size_sequence

__all__ = ["TelnetSession", "trim_empty_lines", "window_size_sequence"]
