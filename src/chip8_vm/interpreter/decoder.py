"""
CHIP-8 Instruction Decoder
==========================

Turns a raw 16-bit instruction word into an immutable Instruction tagged
with its instruction class (Op). Decoding is pure and total: every word
decodes, and words that match no pattern are tagged Op.UNKNOWN so the
executor can report them with the program counter attached.

Operand fields, named after the usual CHIP-8 notation:

    word = 0xDXYN
    nnn  = low 12 bits (address)
    kk   = low 8 bits (byte constant)
    x, y = second and third nibbles (register indices)
    n    = low nibble (sprite height / sub-opcode)

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Tuple


class Op(Enum):
    """Instruction classes, one per CHIP-8 opcode (value is the pattern)."""
    SYS = "0nnn"
    CLS = "00E0"
    RET = "00EE"
    JP = "1nnn"
    CALL = "2nnn"
    SE_BYTE = "3xkk"
    SNE_BYTE = "4xkk"
    SE_REG = "5xy0"
    LD_BYTE = "6xkk"
    ADD_BYTE = "7xkk"
    LD_REG = "8xy0"
    OR = "8xy1"
    AND = "8xy2"
    XOR = "8xy3"
    ADD_REG = "8xy4"
    SUB = "8xy5"
    SHR = "8xy6"
    SUBN = "8xy7"
    SHL = "8xyE"
    SNE_REG = "9xy0"
    LD_I = "Annn"
    JP_V0 = "Bnnn"
    RND = "Cxkk"
    DRW = "Dxyn"
    SKP = "Ex9E"
    SKNP = "ExA1"
    LD_VX_DT = "Fx07"
    LD_VX_K = "Fx0A"
    LD_DT_VX = "Fx15"
    LD_ST_VX = "Fx18"
    ADD_I_VX = "Fx1E"
    LD_F_VX = "Fx29"
    LD_B_VX = "Fx33"
    LD_MEM_VX = "Fx55"
    LD_VX_MEM = "Fx65"
    UNKNOWN = "????"


# 8xyN arithmetic/logic group, keyed by the low nibble
_ALU_OPS = {
    0x0: Op.LD_REG,
    0x1: Op.OR,
    0x2: Op.AND,
    0x3: Op.XOR,
    0x4: Op.ADD_REG,
    0x5: Op.SUB,
    0x6: Op.SHR,
    0x7: Op.SUBN,
    0xE: Op.SHL,
}

# FxKK miscellaneous group, keyed by the low byte
_MISC_OPS = {
    0x07: Op.LD_VX_DT,
    0x0A: Op.LD_VX_K,
    0x15: Op.LD_DT_VX,
    0x18: Op.LD_ST_VX,
    0x1E: Op.ADD_I_VX,
    0x29: Op.LD_F_VX,
    0x33: Op.LD_B_VX,
    0x55: Op.LD_MEM_VX,
    0x65: Op.LD_VX_MEM,
}


@dataclass(frozen=True)
class Instruction:
    """
    A decoded instruction.

    Attributes:
        word: The raw 16-bit instruction word
        op: Instruction class
        nibbles: The word's four 4-bit fields, most significant first
    """
    word: int
    op: Op
    nibbles: Tuple[int, int, int, int]

    @property
    def x(self) -> int:
        return self.nibbles[1]

    @property
    def y(self) -> int:
        return self.nibbles[2]

    @property
    def n(self) -> int:
        return self.nibbles[3]

    @property
    def kk(self) -> int:
        return self.word & 0x00FF

    @property
    def nnn(self) -> int:
        return self.word & 0x0FFF

    def __str__(self) -> str:
        return f"{self.word:04X} {self.op.name}"


def split_nibbles(word: int) -> Tuple[int, int, int, int]:
    """Split a 16-bit word into four nibbles, most significant first."""
    return (
        (word & 0xF000) >> 12,
        (word & 0x0F00) >> 8,
        (word & 0x00F0) >> 4,
        word & 0x000F,
    )


@lru_cache(maxsize=None)
def decode(word: int) -> Instruction:
    """
    Decode a 16-bit instruction word.

    Args:
        word: Instruction word (only the low 16 bits are used)

    Returns:
        Instruction tagged with its Op (Op.UNKNOWN if no pattern matches)

    Example:
        >>> decode(0x8014).op
        <Op.ADD_REG: '8xy4'>
    """
    word &= 0xFFFF
    nibbles = split_nibbles(word)

    match nibbles:
        case (0x0, 0x0, 0xE, 0x0):
            op = Op.CLS
        case (0x0, 0x0, 0xE, 0xE):
            op = Op.RET
        case (0x0, _, _, _):
            op = Op.SYS
        case (0x1, _, _, _):
            op = Op.JP
        case (0x2, _, _, _):
            op = Op.CALL
        case (0x3, _, _, _):
            op = Op.SE_BYTE
        case (0x4, _, _, _):
            op = Op.SNE_BYTE
        case (0x5, _, _, 0x0):
            op = Op.SE_REG
        case (0x6, _, _, _):
            op = Op.LD_BYTE
        case (0x7, _, _, _):
            op = Op.ADD_BYTE
        case (0x8, _, _, low):
            op = _ALU_OPS.get(low, Op.UNKNOWN)
        case (0x9, _, _, 0x0):
            op = Op.SNE_REG
        case (0xA, _, _, _):
            op = Op.LD_I
        case (0xB, _, _, _):
            op = Op.JP_V0
        case (0xC, _, _, _):
            op = Op.RND
        case (0xD, _, _, _):
            op = Op.DRW
        case (0xE, _, 0x9, 0xE):
            op = Op.SKP
        case (0xE, _, 0xA, 0x1):
            op = Op.SKNP
        case (0xF, _, _, _):
            op = _MISC_OPS.get(word & 0xFF, Op.UNKNOWN)
        case _:
            op = Op.UNKNOWN

    return Instruction(word, op, nibbles)
