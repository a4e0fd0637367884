"""
CHIP-8 VM Error Hierarchy
=========================

This module defines the exception hierarchy for the whole package.
All exceptions inherit from Chip8Error, allowing callers to catch every
interpreter-related failure with a single except clause if desired.

Exception Hierarchy
-------------------
Chip8Error (base)
├── ExecutionError (fatal to the running machine)
│   ├── UnknownOpcode - instruction word matches no opcode pattern
│   ├── StackOverflow - CALL with all 16 stack slots occupied
│   ├── StackUnderflow - RET with an empty stack
│   └── AddressOutOfRange - memory access or fetch outside the valid range
└── LoadError (program image loading)
    └── ProgramImageTooLarge - image does not fit between $200 and $FFF

Design Philosophy
-----------------
Execution errors carry the program counter and the instruction word of the
failing instruction, so that whoever drives the machine can report exactly
where a program went wrong. Messages follow this format:

    $0204 [2ABC]: stack overflow (16 return addresses already pushed)

The PC is attached by the executor once the failing instruction is known;
lower layers (memory, stack) raise without it.

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class Chip8Error(Exception):
    """
    Base exception for all CHIP-8 VM errors.

        try:
            machine.run(10_000)
        except Chip8Error as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Execution Exceptions
# =============================================================================

class ExecutionError(Chip8Error):
    """
    Base exception for errors raised while executing an instruction.

    All execution errors halt the machine. None of them are retried: a
    malformed instruction stream is a defect in the loaded program.

    Attributes:
        message: The error description
        pc: Address of the failing instruction (None until attached)
        word: The 16-bit instruction word being executed (optional)
    """

    def __init__(
        self,
        message: str,
        pc: Optional[int] = None,
        word: Optional[int] = None,
    ):
        self.message = message
        self.pc = pc
        self.word = word
        super().__init__(message)

    def attach(self, pc: int, word: Optional[int] = None) -> None:
        """Record where the error happened, keeping any earlier location."""
        if self.pc is None:
            self.pc = pc
        if self.word is None:
            self.word = word

    def __str__(self) -> str:
        if self.pc is None:
            return self.message
        if self.word is None:
            return f"${self.pc:04X}: {self.message}"
        return f"${self.pc:04X} [{self.word:04X}]: {self.message}"


class UnknownOpcode(ExecutionError):
    """Raised when an instruction word matches no opcode pattern."""

    def __init__(self, word: int, pc: Optional[int] = None):
        super().__init__(f"unknown opcode {word:04X}", pc=pc, word=word)


class StackOverflow(ExecutionError):
    """Raised when CALL is executed with a full return stack."""

    def __init__(self, capacity: int, pc: Optional[int] = None):
        self.capacity = capacity
        super().__init__(
            f"stack overflow ({capacity} return addresses already pushed)",
            pc=pc,
        )


class StackUnderflow(ExecutionError):
    """Raised when RET is executed with an empty return stack."""

    def __init__(self, pc: Optional[int] = None):
        super().__init__("stack underflow (return with empty stack)", pc=pc)


class AddressOutOfRange(ExecutionError):
    """
    Raised when an instruction touches memory outside the permitted range.

    Attributes:
        address: First offending address
        length: Number of bytes the access covered
    """

    def __init__(
        self,
        address: int,
        length: int = 1,
        reason: str = "outside memory",
        pc: Optional[int] = None,
    ):
        self.address = address
        self.length = length
        if length > 1:
            text = f"address ${address:04X}+{length} {reason}"
        else:
            text = f"address ${address:04X} {reason}"
        super().__init__(text, pc=pc)


# =============================================================================
# Load-Time Exceptions
# =============================================================================

class LoadError(Chip8Error):
    """Base exception for program image loading errors."""
    pass


class ProgramImageTooLarge(LoadError):
    """
    Raised when a program image does not fit in memory above $200.

    Attributes:
        size: Image size in bytes
        limit: Maximum image size in bytes
    """

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(
            f"program image is {size} bytes, maximum is {limit} bytes"
        )
