"""Console and logging configuration module for telnet shell.

This module provides the shared Rich console and the package logger. Log
records are rendered by a ``RichHandler`` on the same console that prints
command output, so the two never interleave mid-line.

The handler is attached to the ``telnet_shell`` logger only, leaving the
root logger of host applications alone.
"""

from __future__ import annotations

from logging import DEBUG, INFO, WARNING, getLogger

from rich.console import Console
from rich.logging import RichHandler

# Create a Rich console for output
console = Console()

# Get the logger for the package
log = getLogger("telnet_shell")
log.addHandler(RichHandler(console=console, rich_tracebacks=True, show_time=True))
log.setLevel(WARNING)
log.propagate = False


def set_verbosity(verbose: int) -> None:
    """Set the package log level from a ``-v`` count.

    Args:
        verbose: 0 for warnings only, 1 for info, 2 or more for debug
    """
    if verbose >= 2:  # noqa: PLR2004
        log.setLevel(DEBUG)
    elif verbose == 1:
        log.setLevel(INFO)
    else:
        log.setLevel(WARNING)
