"""
CHIP-8 Machine State
====================

The single aggregate that holds everything an executing program can
observe or change:

- V0-VF: sixteen 8-bit registers (VF doubles as the carry/borrow/collision flag)
- I: 16-bit address register
- PC: 16-bit program counter, starts at $200
- Stack: up to 16 return addresses (SP is the number in use)
- Delay and sound timers: 8-bit, count down at 60 Hz to 0
- 4KB memory, 64x32 pixel buffer, 16-key keypad
- awaiting_key: register index Fx0A is waiting to fill, or None

The state has no behaviour beyond invariant-preserving accessors: setters
mask to the register width, the stack refuses to grow past 16 or shrink
below 0, and timers never go negative. It is mutated only by the executor
and by the clock's timer tick.

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

from typing import List, Optional

from chip8_vm.errors import StackOverflow, StackUnderflow
from chip8_vm.interpreter.display import FrameBuffer
from chip8_vm.interpreter.keypad import Keypad
from chip8_vm.interpreter.memory import Memory, PROGRAM_START


REGISTER_COUNT = 16
FLAG_REGISTER = 0xF
STACK_CAPACITY = 16


class MachineState:
    """
    Complete CHIP-8 machine state.

    Example:
        >>> state = MachineState()
        >>> state.pc
        512
        >>> state.v[0] = 0x42
        >>> state.push(0x202)
        >>> state.sp, state.pop()
        (1, 514)
    """

    def __init__(self, keypad: Optional[Keypad] = None):
        """
        Args:
            keypad: Keypad to share with the input side (a new one if None)
        """
        self.v = bytearray(REGISTER_COUNT)
        self._i = 0
        self._pc = PROGRAM_START
        self._stack: List[int] = []
        self._delay_timer = 0
        self._sound_timer = 0

        self.memory = Memory()
        self.framebuffer = FrameBuffer()
        self.keypad = keypad if keypad is not None else Keypad()

        # Register index Fx0A will store the next key into
        self.awaiting_key: Optional[int] = None

    # ========================================
    # Register Properties
    # ========================================

    @property
    def vf(self) -> int:
        """Flag register (alias for V[F])."""
        return self.v[FLAG_REGISTER]

    @vf.setter
    def vf(self, value: int) -> None:
        self.v[FLAG_REGISTER] = value & 0xFF

    @property
    def i(self) -> int:
        """Address register (16-bit)."""
        return self._i

    @i.setter
    def i(self, value: int) -> None:
        self._i = value & 0xFFFF

    @property
    def pc(self) -> int:
        """Program counter (16-bit)."""
        return self._pc

    @pc.setter
    def pc(self, value: int) -> None:
        self._pc = value & 0xFFFF

    @property
    def delay_timer(self) -> int:
        """Delay timer (8-bit)."""
        return self._delay_timer

    @delay_timer.setter
    def delay_timer(self, value: int) -> None:
        self._delay_timer = max(0, value) & 0xFF

    @property
    def sound_timer(self) -> int:
        """Sound timer (8-bit)."""
        return self._sound_timer

    @sound_timer.setter
    def sound_timer(self, value: int) -> None:
        self._sound_timer = max(0, value) & 0xFF

    # ========================================
    # Stack Operations
    # ========================================

    @property
    def sp(self) -> int:
        """Stack pointer: number of occupied stack slots (0-16)."""
        return len(self._stack)

    @property
    def stack(self) -> List[int]:
        """Copy of the return stack, oldest first."""
        return list(self._stack)

    def push(self, address: int) -> None:
        """
        Push a return address.

        Raises:
            StackOverflow: If all 16 slots are in use
        """
        if len(self._stack) >= STACK_CAPACITY:
            raise StackOverflow(STACK_CAPACITY)
        self._stack.append(address & 0xFFFF)

    def pop(self) -> int:
        """
        Pop the most recent return address.

        Raises:
            StackUnderflow: If the stack is empty
        """
        if not self._stack:
            raise StackUnderflow()
        return self._stack.pop()

    # ========================================
    # Timers
    # ========================================

    def tick_timers(self) -> None:
        """Apply one 60 Hz timer tick: count both timers down towards 0."""
        if self._delay_timer > 0:
            self._delay_timer -= 1
        if self._sound_timer > 0:
            self._sound_timer -= 1

    @property
    def is_waiting_for_key(self) -> bool:
        return self.awaiting_key is not None
