"""Main entry point for telnet shell CLI."""

from __future__ import annotations

from telnet_shell.clients.telnet import TelnetSession
from telnet_shell.errors import TelnetShellError
from telnet_shell.types import AuthConfig, ConnectionConfig

from .args import parse_args
from .console import console, log


async def main(argv: list[str] | None = None) -> None:
    """Log in to a device, run the requested commands and print the output.

    Raises:
        SystemExit: With status 1 when the session fails
    """
    args = parse_args(argv)

    try:
        config = ConnectionConfig(host=args.host, port=args.port, connect_timeout=args.timeout)
        credentials = None
        if args.login:
            credentials = AuthConfig(login=args.login, password=args.password or "", timeout=args.timeout)

        async with TelnetSession(config, debug=args.verbose >= 2) as session:  # noqa: PLR2004
            if credentials is not None:
                await session.auth(credentials)
            for command in args.command:
                output = await session.exec(command, pattern=args.prompt, page_height=args.page_height)
                console.print(output, markup=False, highlight=False)
    except TelnetShellError as e:
        log.error("%s (%s)", e, e.code)  # noqa: TRY400
        raise SystemExit(1) from e
