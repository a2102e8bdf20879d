"""Constants for telnet shell sessions."""

from __future__ import annotations

from typing import Any

# Network protocol constants

IAC_BYTE = 0xFF  # Interpret As Command byte
BEL_CHAR = "\x07"  # Pager bell
ETX_BYTE = 0x03  # Ctrl+C, aborts a device pager
MIN_PORT = 1
MAX_PORT = 65535
MAX_WINDOW_DIMENSION = 0xFFFF
MAX_SUBNEGOTIATION_LENGTH = 512  # Longer subnegotiations are treated as unterminated

# Session defaults (seconds)

DEFAULT_TELNET_PORT = 23
DEFAULT_CONNECT_TIMEOUT = 7.5
DEFAULT_AUTH_TIMEOUT = 7.5
DEFAULT_EXEC_TIMEOUT = 7.5
DEFAULT_WINDOW_WIDTH = 80
DEFAULT_WINDOW_HEIGHT = 24
READ_CHUNK_SIZE = 1024
SETTLE_DELAY = 0.05  # Pause before typing credentials
PAGER_GRACE_PERIOD = 1.0  # Time for the device to drop back to its prompt after Ctrl+C
PAGER_BANNER_MARKERS: tuple[str, ...] = ("CTRL+C", "ESC", "Quit")

# Default prompt patterns, auth patterns are matched case-insensitively

DEFAULT_PROMPT_PATTERN = r"[>#]\s*$"
DEFAULT_LOGIN_PATTERN = r"user\s*name|login"
DEFAULT_PASSWORD_PATTERN = r"password"
DEFAULT_FAILURE_PATTERN = r"incorrect|fail"

# CLI constants

PASSWORD_ENV_VAR = "TELNET_SHELL_PASSWORD"
CLI_ARGUMENTS: dict[str, list[tuple[Any]]] = {
    "connection": [
        (["host"], {"help": "Device hostname or IP address"}),
        (["-p", "--port"], {"type": int, "default": DEFAULT_TELNET_PORT, "metavar": "<23>"}),
        (["-t", "--timeout"], {"type": float, "default": DEFAULT_CONNECT_TIMEOUT, "metavar": "<7.5>"}),
    ],
    "authentication": [
        (["-l", "--login"], {"help": "Username to log in with (skip login when omitted)"}),
        (["-P", "--password"], {"help": f"Password (default: ${PASSWORD_ENV_VAR})"}),
    ],
    "commands": [
        (["-c", "--command"], {"action": "append", "default": [], "help": "Command to run, repeatable"}),
        (["--page-height"], {"type": int, "help": "Terminal height to declare while a command runs"}),
        (["--prompt"], {"default": DEFAULT_PROMPT_PATTERN, "help": "Regex marking the end of command output"}),
        (["-v", "--verbose"], {"action": "count", "default": 0, "help": "-v for info, -vv for debug and traffic"}),
    ],
}
CLI_HELP_DESCRIPTION: str = """Telnet shell: log in to network devices and run commands.

Connects to a router or switch over telnet, answers its login and
password prompts, then runs each command in turn and prints the output.
Device pagers are handled automatically, or avoided by declaring a taller
terminal with --page-height.
"""
CLI_HELP_EPILOGUE: str | None = "If an argument has a default, it's shown in <parentheses>."
CLI_HELP_NAME: str = "telnet-shell"
