"""
CHIP-8 Interpreter
==================

A complete interpreter for the CHIP-8 virtual machine.

This package provides:

- **Machine State**: 16 registers, I, PC, 16-level stack, timers, 4KB memory
- **Decoder**: 16-bit word to tagged Instruction, all 35 opcodes
- **Executor**: Exact instruction semantics, configurable quirks
- **Clock**: Instruction rate decoupled from the fixed 60 Hz timer tick
- **Pixel Buffer**: 64x32 XOR sprite drawing with wraparound and collision
- **Keypad**: 16 keys with wait-for-key support and a QWERTY mapping

Quick Start
-----------

Basic usage::

    >>> from chip8_vm.interpreter import Chip8, MachineConfig
    >>> vm = Chip8(MachineConfig(instructions_per_second=700))
    >>> vm.load_rom("maze.ch8")
    >>> vm.advance(2.0)
    >>> print(vm.display_text)

Driving it from a front-end::

    >>> vm = Chip8(display=my_window, audio=my_beeper)
    >>> vm.load_rom("pong.ch8")
    >>> vm.run_realtime(should_stop=my_window.closed)

Module Structure
----------------

- `machine.py`: Main Chip8 class (high-level API)
- `state.py`: Machine state aggregate
- `decoder.py`: Instruction decoding
- `executor.py`: Instruction semantics
- `clock.py`: Scheduler, timer tick, audio sink protocol
- `memory.py`: 4KB memory and built-in font
- `display.py`: Pixel buffer and display sink protocol
- `keypad.py`: Keypad and input source protocol
- `quirks.py`: Quirk profiles

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

# Main entry point
from .machine import Chip8, MachineConfig, RunResult, StopReason

# Core components
from .state import MachineState, FLAG_REGISTER, STACK_CAPACITY
from .decoder import Instruction, Op, decode
from .executor import Executor, RandomSource, fetch
from .clock import Clock, ClockEvent, AudioSink, NullAudio, TIMER_HZ

# Memory, display and input
from .memory import Memory, FONT, FONT_ADDRESS, PROGRAM_START, MEMORY_SIZE
from .display import FrameBuffer, DisplaySink, NullDisplay, DISPLAY_WIDTH, DISPLAY_HEIGHT
from .keypad import Keypad, InputSource, HOST_KEY_TO_HEX

# Quirk profiles
from .quirks import (
    Quirks,
    get_quirks,
    list_quirk_profiles,
    QUIRKS_MODERN,
    QUIRKS_VIP,
    QUIRKS_SCHIP,
    QUIRKS_AMIGA,
    QUIRKS_DEFAULT,
)

__all__ = [
    # Main API
    "Chip8",
    "MachineConfig",
    "RunResult",
    "StopReason",

    # Core
    "MachineState",
    "FLAG_REGISTER",
    "STACK_CAPACITY",
    "Instruction",
    "Op",
    "decode",
    "Executor",
    "RandomSource",
    "fetch",
    "Clock",
    "ClockEvent",
    "AudioSink",
    "NullAudio",
    "TIMER_HZ",

    # Memory
    "Memory",
    "FONT",
    "FONT_ADDRESS",
    "PROGRAM_START",
    "MEMORY_SIZE",

    # Display
    "FrameBuffer",
    "DisplaySink",
    "NullDisplay",
    "DISPLAY_WIDTH",
    "DISPLAY_HEIGHT",

    # Input
    "Keypad",
    "InputSource",
    "HOST_KEY_TO_HEX",

    # Quirks
    "Quirks",
    "get_quirks",
    "list_quirk_profiles",
    "QUIRKS_MODERN",
    "QUIRKS_VIP",
    "QUIRKS_SCHIP",
    "QUIRKS_AMIGA",
    "QUIRKS_DEFAULT",
]
