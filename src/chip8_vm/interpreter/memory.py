"""
Memory Subsystem for the CHIP-8 Interpreter
===========================================

Memory Map:
    $000-$04F  Reserved (unused by this interpreter)
    $050-$09F  Built-in hexadecimal font (16 glyphs x 5 bytes)
    $0A0-$1FF  Reserved
    $200-$FFF  Program image and program data

The whole address space is readable. Program-directed writes (Fx33, Fx55)
are only allowed from $200 upwards; the reserved region belongs to the
interpreter. Every access is bounds-checked and multi-byte accesses are
validated in full before any byte is touched, so a failing instruction
never leaves memory half-written.

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

from chip8_vm.errors import AddressOutOfRange, ProgramImageTooLarge


MEMORY_SIZE = 0x1000
PROGRAM_START = 0x200
FONT_ADDRESS = 0x050
FONT_GLYPH_SIZE = 5

MAX_PROGRAM_SIZE = MEMORY_SIZE - PROGRAM_START

# =============================================================================
# BUILT-IN FONT
# =============================================================================
# 4x5 pixel glyphs for the hexadecimal digits 0-F. Each row is one byte,
# only the high nibble is used.

FONT = bytes([
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
])


def font_address(digit: int) -> int:
    """Address of the font glyph for a hexadecimal digit (low nibble used)."""
    return FONT_ADDRESS + (digit & 0x0F) * FONT_GLYPH_SIZE


class Memory:
    """
    Flat 4KB byte-addressable memory.

    Example:
        >>> mem = Memory()
        >>> mem.load_program(bytes([0x60, 0x0A]))
        >>> mem.read_word(0x200)
        24586
    """

    def __init__(self):
        self._data = bytearray(MEMORY_SIZE)
        self._data[FONT_ADDRESS:FONT_ADDRESS + len(FONT)] = FONT

    def __len__(self) -> int:
        return MEMORY_SIZE

    # =========================================================================
    # Range Checks
    # =========================================================================

    @staticmethod
    def _check_read(address: int, length: int) -> None:
        if address < 0 or address + length > MEMORY_SIZE:
            raise AddressOutOfRange(address, length)

    @staticmethod
    def _check_write(address: int, length: int) -> None:
        if address < 0 or address + length > MEMORY_SIZE:
            raise AddressOutOfRange(address, length)
        if address < PROGRAM_START:
            raise AddressOutOfRange(address, length, reason="is in reserved memory")

    # =========================================================================
    # Access
    # =========================================================================

    def read(self, address: int) -> int:
        """Read one byte."""
        self._check_read(address, 1)
        return self._data[address]

    def read_word(self, address: int) -> int:
        """Read a big-endian 16-bit word."""
        self._check_read(address, 2)
        return (self._data[address] << 8) | self._data[address + 1]

    def read_block(self, address: int, length: int) -> bytes:
        """Read `length` consecutive bytes."""
        self._check_read(address, length)
        return bytes(self._data[address:address + length])

    def write(self, address: int, value: int) -> None:
        """Write one byte (program region only)."""
        self._check_write(address, 1)
        self._data[address] = value & 0xFF

    def write_block(self, address: int, data: bytes) -> None:
        """Write consecutive bytes (program region only)."""
        self._check_write(address, len(data))
        self._data[address:address + len(data)] = data

    # =========================================================================
    # Program Loading
    # =========================================================================

    def load_program(self, image: bytes) -> None:
        """
        Copy a program image verbatim to $200.

        Raises:
            ProgramImageTooLarge: If the image extends past $FFF
        """
        if len(image) > MAX_PROGRAM_SIZE:
            raise ProgramImageTooLarge(len(image), MAX_PROGRAM_SIZE)
        self._data[PROGRAM_START:PROGRAM_START + len(image)] = image
