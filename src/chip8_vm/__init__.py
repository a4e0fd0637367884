"""
chip8-vm - A CHIP-8 Virtual Machine Interpreter
===============================================

This package implements the CHIP-8 virtual machine: 35 opcodes, sixteen
8-bit registers, 4KB of memory, a 16-level call stack, 60 Hz delay and
sound timers, a 64x32 monochrome display and a 16-key keypad.

Main Components
---------------
- **interpreter**: Machine state, decoder, executor, clock and the Chip8
    orchestrator
- **cli**: The c8run headless runner

Quick Start
-----------
Run a program for one simulated second:
    >>> from chip8_vm import Chip8
    >>> vm = Chip8()
    >>> vm.load_rom("maze.ch8")
    >>> vm.advance(1.0)
    >>> print(vm.display_text)

Or use the command-line tool:
    $ c8run maze.ch8 --seconds 1 --screenshot maze.png

Reference Documentation
-----------------------
- Cowgod's CHIP-8 Technical Reference: http://devernay.free.fr/hacks/chip8/C8TECH10.HTM
- CHIP-8 quirks overview: https://chip8.gulrak.net/

Version History
---------------
1.0.0 - Initial release
"""

__version__ = "1.0.0"
__author__ = "Hugo José Pinto & Contributors"

# =============================================================================
# Public API Exports
# =============================================================================

from chip8_vm.errors import (
    Chip8Error,
    ExecutionError,
    UnknownOpcode,
    StackOverflow,
    StackUnderflow,
    AddressOutOfRange,
    LoadError,
    ProgramImageTooLarge,
)
from chip8_vm.interpreter import (
    Chip8,
    MachineConfig,
    MachineState,
    Instruction,
    Op,
    decode,
    Keypad,
    FrameBuffer,
    get_quirks,
)

__all__ = [
    "__version__",
    # Errors
    "Chip8Error",
    "ExecutionError",
    "UnknownOpcode",
    "StackOverflow",
    "StackUnderflow",
    "AddressOutOfRange",
    "LoadError",
    "ProgramImageTooLarge",
    # Interpreter
    "Chip8",
    "MachineConfig",
    "MachineState",
    "Instruction",
    "Op",
    "decode",
    "Keypad",
    "FrameBuffer",
    "get_quirks",
]
