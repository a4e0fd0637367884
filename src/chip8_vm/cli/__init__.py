"""
chip8-vm Command-Line Interface
===============================

This package provides the command-line tools for chip8-vm:

- **c8run**: Headless CHIP-8 runner

Each tool is implemented as a Click-based CLI application with
comprehensive help and error reporting.
"""

__all__ = ["c8run"]
