"""Command line interface components for telnet shell.

This module provides CLI-related functionality including console output,
logging and argument parsing for the telnet-shell command.
"""

from __future__ import annotations

from .args import parse_args
from .console import console, log, set_verbosity
from .main import main

__all__ = [
    "console",
    "log",
    "main",
    "parse_args",
    "set_verbosity",
]
