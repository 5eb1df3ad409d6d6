"""
Unified CLI Error Handling
==========================

Provides consistent error handling and exit codes across the CLI tools.
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click


class ExitCode(IntEnum):
    """Standard exit codes for CLI tools."""
    SUCCESS = 0
    DISASSEMBLY_ERROR = 1  # Unreadable binary or aborted disassembly
    INVALID_ARGS = 2       # Invalid arguments or missing files
    INTERNAL_ERROR = 3     # Unexpected internal error


def handle_cli_exception(
    error: Exception,
    verbose: bool = False,
    error_type: str | None = None
) -> NoReturn:
    """
    Unified exception handler for all CLI tools.

    Formats the error message appropriately, optionally prints traceback
    in verbose mode, and exits with the correct exit code.

    Args:
        error: The exception that was raised
        verbose: If True, print full traceback for internal errors
        error_type: Optional prefix for the error message (e.g., "Disassembly")

    Raises:
        SystemExit: Always exits with an appropriate exit code
    """
    from flowscript.errors import FlowScriptError

    if isinstance(error, FlowScriptError):
        # Malformed binaries and aborted runs
        prefix = f"{error_type} error: " if error_type else "Error: "
        click.echo(f"{prefix}{error}", err=True)
        sys.exit(ExitCode.DISASSEMBLY_ERROR)

    elif isinstance(error, (click.BadParameter, FileNotFoundError, PermissionError)):
        # Invalid command-line arguments or inaccessible files
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    else:
        # Unexpected internal error
        click.echo(f"Internal error: {error}", err=True)
        if verbose:
            traceback.print_exc()
        sys.exit(ExitCode.INTERNAL_ERROR)
