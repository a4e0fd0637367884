"""
CLI Error Reporting
===================

Maps package errors to exit codes and prints them for the command line.

Machine faults are reported with the message, then a location line naming
the halting address and the decoded instruction:

    Machine fault: $0200 [FFFF]: unknown opcode FFFF
      halted at $0200 on FFFF UNKNOWN

Exit codes:
    0  run completed
    1  the program faulted (unknown opcode, stack or address error)
    2  invalid arguments, missing or unreadable files
    3  unexpected internal error
    4  the ROM could not be loaded

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click

from chip8_vm.errors import ExecutionError, LoadError
from chip8_vm.interpreter.decoder import decode


class ExitCode(IntEnum):
    """Exit codes for the CLI tools."""
    SUCCESS = 0
    MACHINE_FAULT = 1
    INVALID_ARGS = 2
    INTERNAL_ERROR = 3
    LOAD_ERROR = 4


def describe_fault_location(error: ExecutionError) -> str | None:
    """
    Describe where a machine fault happened.

    Returns:
        "halted at $PPPP on WWWW OP", or "halted at $PPPP during fetch"
        when no instruction word was read; None if the PC is unknown
    """
    if error.pc is None:
        return None
    if error.word is None:
        return f"halted at ${error.pc:04X} during fetch"
    return f"halted at ${error.pc:04X} on {decode(error.word)}"


def handle_cli_exception(
    error: Exception,
    verbose: bool = False,
    register_dump: str | None = None,
) -> NoReturn:
    """
    Report an exception and exit with the matching exit code.

    Args:
        error: The exception that was raised
        verbose: If True, print full traceback for internal errors
        register_dump: Machine registers at the time of a fault, printed
            below the location line when given

    Raises:
        SystemExit: Always
    """
    if isinstance(error, ExecutionError):
        click.echo(f"Machine fault: {error}", err=True)
        location = describe_fault_location(error)
        if location:
            click.echo(f"  {location}", err=True)
        if register_dump:
            click.echo(register_dump, err=True)
        sys.exit(ExitCode.MACHINE_FAULT)

    elif isinstance(error, LoadError):
        click.echo(f"Load error: {error}", err=True)
        sys.exit(ExitCode.LOAD_ERROR)

    elif isinstance(error, (click.BadParameter, FileNotFoundError, PermissionError)):
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    else:
        click.echo(f"Internal error: {error}", err=True)
        if verbose:
            traceback.print_exc()
        sys.exit(ExitCode.INTERNAL_ERROR)
