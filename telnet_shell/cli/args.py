"""Command line argument parser for telnet shell.

This module builds the argument parser from the table in
``telnet_shell.constants`` and applies the requested verbosity.
"""

from __future__ import annotations

from argparse import (
    ArgumentParser,
    Namespace as Arguments,
    RawDescriptionHelpFormatter as Formatter,
)
from os import environ
from re import compile as re_compile, error as RegexError
from sys import argv as sys_argv, exit as sys_exit

from telnet_shell.constants import (
    CLI_ARGUMENTS,
    CLI_HELP_DESCRIPTION,
    CLI_HELP_EPILOGUE,
    CLI_HELP_NAME,
    MAX_PORT,
    MAX_WINDOW_DIMENSION,
    MIN_PORT,
    PASSWORD_ENV_VAR,
)

from .console import set_verbosity


def parse_args(argv: list[str] | None = None) -> Arguments:
    """Parse telnet shell command line arguments.

    Args:
        argv: Arguments to parse, defaults to ``sys.argv[1:]``

    Returns:
        The parsed arguments, with the password filled in from the
        environment when not given on the command line

    Raises:
        SystemExit: If the port, page height or prompt pattern is invalid
    """
    if argv is None:
        argv = sys_argv[1:]

    # Create the parser
    parser = ArgumentParser(
        description=CLI_HELP_DESCRIPTION,
        epilog=CLI_HELP_EPILOGUE,
        prog=CLI_HELP_NAME,
        formatter_class=Formatter,
    )
    # Add groups and arguments
    for category_name, args in CLI_ARGUMENTS.items():
        category = parser.add_argument_group(category_name)
        for flags, kwargs in args:
            category.add_argument(*flags, **kwargs)

    # Check if no arguments are provided
    if not argv:
        parser.print_help()
        sys_exit(0)

    parsed_args = parser.parse_args(argv)
    if not MIN_PORT <= parsed_args.port <= MAX_PORT:
        parser.error(f"invalid port: {parsed_args.port} (must be {MIN_PORT}-{MAX_PORT})")
    if parsed_args.page_height is not None and not 0 < parsed_args.page_height <= MAX_WINDOW_DIMENSION:
        parser.error(f"invalid page height: {parsed_args.page_height} (must be 1-{MAX_WINDOW_DIMENSION})")
    try:
        re_compile(parsed_args.prompt)
    except RegexError as e:
        parser.error(f"invalid prompt pattern: {e}")

    if parsed_args.password is None:
        parsed_args.password = environ.get(PASSWORD_ENV_VAR)

    set_verbosity(parsed_args.verbose)
    return parsed_args
