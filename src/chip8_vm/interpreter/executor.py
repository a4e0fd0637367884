"""
CHIP-8 Instruction Executor
===========================

Implements the documented effect of every CHIP-8 instruction against a
MachineState.

Conventions shared by all instructions:
- PC is advanced by 2 before dispatch; jumps, calls, returns and skips
  override or extend that.
- Register results are masked to 8 bits.
- Where an instruction writes both Vx and the flag register, the flag is
  written last, so it wins when x is F.
- Flags are plain 0/1 values. For subtraction the flag means "no borrow"
  (1 when the minuend is greater than or equal to the subtrahend).

The executor's collaborators are injected: the input source (keypad), the
random byte source and the quirk profile. Errors raised while executing
carry the PC and word of the failing instruction.

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

from typing import Optional, Protocol

from chip8_vm.errors import AddressOutOfRange, ExecutionError, UnknownOpcode
from chip8_vm.interpreter.decoder import Instruction, Op
from chip8_vm.interpreter.keypad import InputSource
from chip8_vm.interpreter.memory import MEMORY_SIZE, PROGRAM_START, font_address
from chip8_vm.interpreter.quirks import QUIRKS_DEFAULT, Quirks
from chip8_vm.interpreter.state import MachineState


class RandomSource(Protocol):
    """
    Protocol for the random byte generator used by RND (Cxkk).

    random.Random satisfies it; tests pass a seeded instance or a stub.
    """

    def getrandbits(self, k: int) -> int:
        ...


def fetch(state: MachineState) -> int:
    """
    Read the instruction word at PC without advancing it.

    Raises:
        AddressOutOfRange: If PC is odd or outside [$200, $FFF)
    """
    pc = state.pc
    if pc < PROGRAM_START or pc + 2 > MEMORY_SIZE:
        raise AddressOutOfRange(pc, 2, reason="is outside program memory", pc=pc)
    if pc & 1:
        raise AddressOutOfRange(pc, 2, reason="is not word-aligned", pc=pc)
    return state.memory.read_word(pc)


class Executor:
    """
    Executes decoded instructions.

    Example:
        >>> state = MachineState()
        >>> executor = Executor(state.keypad, random.Random(1))
        >>> executor.execute(state, decode(0x600A))
        >>> state.v[0], hex(state.pc)
        (10, '0x202')
    """

    def __init__(
        self,
        input_source: InputSource,
        rng: RandomSource,
        quirks: Quirks = QUIRKS_DEFAULT,
    ):
        """
        Args:
            input_source: Keypad state queried by SKP/SKNP/LD Vx,K
            rng: Random byte source for RND
            quirks: Quirk profile
        """
        self.input = input_source
        self.rng = rng
        self.quirks = quirks

    def execute(self, state: MachineState, instr: Instruction) -> None:
        """
        Execute one instruction.

        Raises:
            UnknownOpcode: If the instruction matches no opcode
            StackOverflow: CALL with a full stack
            StackUnderflow: RET with an empty stack
            AddressOutOfRange: Memory access outside the permitted range
        """
        pc = state.pc
        try:
            self._dispatch(state, instr)
        except ExecutionError as err:
            # A faulting instruction leaves PC on itself
            state.pc = pc
            err.attach(pc, instr.word)
            raise

    # ========================================
    # Dispatch
    # ========================================

    def _dispatch(self, state: MachineState, instr: Instruction) -> None:
        v = state.v
        x = instr.x
        y = instr.y

        state.pc += 2

        match instr.op:
            # ============================================
            # Control Flow
            # ============================================
            case Op.SYS:
                pass
            case Op.CLS:
                state.framebuffer.clear()
            case Op.RET:
                state.pc = state.pop()
            case Op.JP:
                state.pc = instr.nnn
            case Op.CALL:
                state.push(state.pc)
                state.pc = instr.nnn
            case Op.JP_V0:
                if self.quirks.jump_uses_vx:
                    state.pc = instr.nnn + v[x]
                else:
                    state.pc = instr.nnn + v[0]

            # ============================================
            # Conditional Skips
            # ============================================
            case Op.SE_BYTE:
                self._skip_if(state, v[x] == instr.kk)
            case Op.SNE_BYTE:
                self._skip_if(state, v[x] != instr.kk)
            case Op.SE_REG:
                self._skip_if(state, v[x] == v[y])
            case Op.SNE_REG:
                self._skip_if(state, v[x] != v[y])
            case Op.SKP:
                self._skip_if(state, self.input.is_pressed(v[x] & 0x0F))
            case Op.SKNP:
                self._skip_if(state, not self.input.is_pressed(v[x] & 0x0F))

            # ============================================
            # Loads and Arithmetic
            # ============================================
            case Op.LD_BYTE:
                v[x] = instr.kk
            case Op.ADD_BYTE:
                v[x] = (v[x] + instr.kk) & 0xFF
            case Op.LD_REG:
                v[x] = v[y]
            case Op.OR:
                self._logic(state, x, v[x] | v[y])
            case Op.AND:
                self._logic(state, x, v[x] & v[y])
            case Op.XOR:
                self._logic(state, x, v[x] ^ v[y])
            case Op.ADD_REG:
                total = v[x] + v[y]
                v[x] = total & 0xFF
                state.vf = 1 if total > 0xFF else 0
            case Op.SUB:
                self._subtract(state, x, v[x], v[y])
            case Op.SUBN:
                self._subtract(state, x, v[y], v[x])
            case Op.SHR:
                value = v[y] if self.quirks.shift_uses_vy else v[x]
                v[x] = value >> 1
                state.vf = value & 0x01
            case Op.SHL:
                value = v[y] if self.quirks.shift_uses_vy else v[x]
                v[x] = (value << 1) & 0xFF
                state.vf = (value >> 7) & 0x01
            case Op.RND:
                v[x] = self.rng.getrandbits(8) & instr.kk

            # ============================================
            # Address Register and Memory
            # ============================================
            case Op.LD_I:
                state.i = instr.nnn
            case Op.ADD_I_VX:
                total = state.i + v[x]
                state.i = total
                if self.quirks.index_overflow_sets_flag:
                    state.vf = 1 if total > 0x0FFF else 0
            case Op.LD_F_VX:
                state.i = font_address(v[x])
            case Op.LD_B_VX:
                value = v[x]
                state.memory.write_block(
                    state.i, bytes([value // 100, (value // 10) % 10, value % 10])
                )
            case Op.LD_MEM_VX:
                state.memory.write_block(state.i, bytes(v[:x + 1]))
                if self.quirks.load_store_increments_index:
                    state.i += x + 1
            case Op.LD_VX_MEM:
                v[:x + 1] = state.memory.read_block(state.i, x + 1)
                if self.quirks.load_store_increments_index:
                    state.i += x + 1

            # ============================================
            # Display
            # ============================================
            case Op.DRW:
                self._draw(state, v[x], v[y], instr.n)

            # ============================================
            # Timers and Input
            # ============================================
            case Op.LD_VX_DT:
                v[x] = state.delay_timer
            case Op.LD_DT_VX:
                state.delay_timer = v[x]
            case Op.LD_ST_VX:
                state.sound_timer = v[x]
            case Op.LD_VX_K:
                # Resumed by the machine once a key goes down
                state.awaiting_key = x
                self.input.begin_key_wait()

            case Op.UNKNOWN:
                raise UnknownOpcode(instr.word)

    # ========================================
    # Helpers
    # ========================================

    @staticmethod
    def _skip_if(state: MachineState, condition: bool) -> None:
        if condition:
            state.pc += 2

    def _logic(self, state: MachineState, x: int, result: int) -> None:
        state.v[x] = result
        if self.quirks.logic_resets_flag:
            state.vf = 0

    @staticmethod
    def _subtract(state: MachineState, x: int, minuend: int, subtrahend: int) -> None:
        state.v[x] = (minuend - subtrahend) & 0xFF
        state.vf = 1 if minuend >= subtrahend else 0

    @staticmethod
    def _draw(state: MachineState, x: int, y: int, height: int) -> None:
        if height == 0:
            state.vf = 0
            return
        sprite = state.memory.read_block(state.i, height)
        collision = state.framebuffer.draw_sprite(x, y, sprite)
        state.vf = 1 if collision else 0


def resume_key_wait(state: MachineState, input_source: InputSource) -> bool:
    """
    Complete a pending Fx0A if a key has been pressed.

    Returns:
        True if the machine is (now) free to fetch the next instruction
    """
    if state.awaiting_key is None:
        return True
    key: Optional[int] = input_source.next_key_press()
    if key is None:
        return False
    state.v[state.awaiting_key] = key
    state.awaiting_key = None
    return True
