"""Main entry point for telnet shell."""

from __future__ import annotations

from asyncio import run as asyncio_run

from .cli import main


def launch() -> None:
    """Launch the telnet shell application."""
    asyncio_run(main())


if __name__ == "__main__":
    launch()
