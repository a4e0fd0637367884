"""
CHIP-8 Machine - Main Orchestrator
==================================

This module provides the `Chip8` class that wires the interpreter
components together and drives them:

- Owns the MachineState, the Executor and the Clock
- Loads program images (raw bytes or a ROM file) at $200
- Executes single instructions, instruction budgets, simulated time spans
  or a paced real-time loop
- Checks the wait-for-key suspension before every fetch, so timers keep
  running while a program waits for input
- Presents the pixel buffer to the display sink after any instruction
  that changed it, and keeps the audio sink in step with the sound timer
- Halts on the first execution error and keeps reporting it until reset

Example usage:
    >>> from chip8_vm.interpreter import Chip8, MachineConfig
    >>> vm = Chip8(MachineConfig(instructions_per_second=600, seed=1))
    >>> vm.load_program(bytes([0x60, 0x0A, 0x61, 0x05, 0x80, 0x14]))
    >>> vm.run(3).instructions
    3
    >>> vm.state.v[0]
    15

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

import logging
import random
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Union

from chip8_vm.errors import ExecutionError, ProgramImageTooLarge
from chip8_vm.interpreter.clock import (
    AudioSink,
    Clock,
    ClockEvent,
    DEFAULT_INSTRUCTIONS_PER_SECOND,
)
from chip8_vm.interpreter.decoder import Instruction, Op, decode
from chip8_vm.interpreter.display import DisplaySink, FrameBuffer, NullDisplay
from chip8_vm.interpreter.executor import Executor, RandomSource, fetch, resume_key_wait
from chip8_vm.interpreter.keypad import Keypad
from chip8_vm.interpreter.memory import MAX_PROGRAM_SIZE
from chip8_vm.interpreter.quirks import Quirks, get_quirks
from chip8_vm.interpreter.state import MachineState


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MachineConfig:
    """
    Configuration for machine initialization.

    Attributes:
        instructions_per_second: Instruction rate used when time advances
        quirks: Quirk profile name ("modern", "vip", "schip", "amiga")
        seed: Seed for the random byte source (None for nondeterministic)
        max_catch_up: Longest stretch of wall-clock time, in seconds, the
            real-time loop will catch up on after a stall

    Example:
        >>> config = MachineConfig(instructions_per_second=1000, quirks="vip")
    """
    instructions_per_second: int = DEFAULT_INSTRUCTIONS_PER_SECOND
    quirks: str = "modern"
    seed: Optional[int] = None
    max_catch_up: float = 0.25


class StopReason(Enum):
    """Why a run returned."""
    INSTRUCTION_LIMIT = "instruction_limit"
    WAITING_FOR_KEY = "waiting_for_key"
    TIME_ELAPSED = "time_elapsed"
    STOPPED = "stopped"


@dataclass
class RunResult:
    """
    Outcome of a run.

    Attributes:
        reason: Why execution stopped
        instructions: Instructions executed during the run
        pc: Program counter when the run returned
    """
    reason: StopReason
    instructions: int
    pc: int


class Chip8:
    """
    CHIP-8 virtual machine.

    Attributes:
        config: The MachineConfig used to initialize this instance
        quirks: Resolved quirk profile
        state: Current MachineState (replaced on reset)
        clock: Instruction/timer scheduler
        display: Display sink receiving pixel buffer updates

    Example:
        >>> vm = Chip8()
        >>> vm.load_rom("pong.ch8")
        >>> vm.advance(1.0)            # one simulated second
        >>> print(vm.display_text)
    """

    def __init__(
        self,
        config: Optional[MachineConfig] = None,
        display: Optional[DisplaySink] = None,
        audio: Optional[AudioSink] = None,
        rng: Optional[RandomSource] = None,
    ):
        """
        Initialize the machine with an empty program.

        Args:
            config: MachineConfig; defaults to 700 instructions/s, modern quirks
            display: Display sink (defaults to one that discards frames)
            audio: Audio sink (defaults to silence)
            rng: Random byte source (defaults to random.Random(config.seed))

        Raises:
            ValueError: If the configuration is invalid
        """
        self.config = config or MachineConfig()
        if self.config.max_catch_up <= 0:
            raise ValueError(
                f"max_catch_up must be positive, got {self.config.max_catch_up}"
            )
        self.quirks: Quirks = get_quirks(self.config.quirks)
        self.display: DisplaySink = display or NullDisplay()
        self._owns_rng = rng is None
        self.rng: RandomSource = rng or random.Random(self.config.seed)
        self.clock = Clock(self.config.instructions_per_second, audio)

        self._program = b""
        self._keypad = Keypad()
        self.reset()

    # =========================================================================
    # Program Loading
    # =========================================================================

    def load_program(self, image: bytes) -> None:
        """
        Load a program image at $200 and reset the machine.

        Args:
            image: Program bytes

        Raises:
            ProgramImageTooLarge: If the image extends past $FFF; the
                previously loaded program stays in place
        """
        image = bytes(image)
        if len(image) > MAX_PROGRAM_SIZE:
            raise ProgramImageTooLarge(len(image), MAX_PROGRAM_SIZE)
        self._program = image
        logger.debug(f"Loaded program image ({len(image)} bytes)")
        self.reset()

    def load_rom(self, path: Union[str, Path]) -> None:
        """
        Load a program image from a ROM file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ProgramImageTooLarge: If the image extends past $FFF
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"ROM file not found: {path}")
        logger.debug(f"Reading ROM {path}")
        self.load_program(path.read_bytes())

    # =========================================================================
    # Execution Control
    # =========================================================================

    def reset(self) -> None:
        """
        Reset to power-on state with the current program loaded.

        Registers, timers, stack and pixels are cleared, keys are released,
        any halt is cleared and both clock schedules restart. A machine built
        with a seed and no injected random source is reseeded, so each run
        draws the same RND sequence.
        """
        self._keypad.clear()
        state = MachineState(keypad=self._keypad)
        state.memory.load_program(self._program)
        self.state = state
        if self._owns_rng and self.config.seed is not None:
            self.rng = random.Random(self.config.seed)
        self.executor = Executor(self._keypad, self.rng, self.quirks)
        self.clock.reset()
        self.clock.sync_audio(state)
        self._fault: Optional[ExecutionError] = None
        self._instruction_count = 0
        self.display.present(state.framebuffer)
        logger.debug(f"Machine reset (quirks={self.quirks.name})")

    def step(self) -> Optional[Instruction]:
        """
        Execute one instruction.

        If the machine is waiting for a key (Fx0A), a pending key press is
        collected first; with none pending, nothing is executed.

        Returns:
            The executed instruction, or None while waiting for a key

        Raises:
            ExecutionError: If the instruction fails; the machine halts and
                every later step raises the same error until reset()
        """
        if self._fault is not None:
            raise self._fault

        state = self.state
        if not resume_key_wait(state, self._keypad):
            return None

        try:
            instr = decode(fetch(state))
            self.executor.execute(state, instr)
        except ExecutionError as err:
            self._halt(err)
            raise

        self._instruction_count += 1

        if state.framebuffer.dirty:
            self.display.present(state.framebuffer)
            state.framebuffer.mark_clean()
        if instr.op is Op.LD_ST_VX:
            self.clock.sync_audio(state)
        return instr

    def run(self, max_instructions: int = 1_000) -> RunResult:
        """
        Execute instructions without advancing time.

        Timers do not tick. Use advance() or run_realtime() when the program
        depends on the delay timer.

        Args:
            max_instructions: Maximum instructions to execute

        Returns:
            RunResult; reason is WAITING_FOR_KEY if the program blocked on
            Fx0A, INSTRUCTION_LIMIT otherwise
        """
        executed = 0
        while executed < max_instructions:
            if self.step() is None:
                return self._result(StopReason.WAITING_FOR_KEY, executed)
            executed += 1
        return self._result(StopReason.INSTRUCTION_LIMIT, executed)

    def advance(self, seconds: float) -> RunResult:
        """
        Run for a span of simulated time.

        Instructions execute at the configured rate and the timers tick at
        60 Hz, interleaved in time order. Timers keep ticking while the
        program waits for a key.

        Args:
            seconds: Simulated time to advance

        Returns:
            RunResult with reason TIME_ELAPSED
        """
        return self._result(StopReason.TIME_ELAPSED, self._advance(seconds))

    def run_realtime(
        self,
        duration: Optional[float] = None,
        should_stop: Optional[Callable[[], bool]] = None,
        time_source: Callable[[], float] = time.perf_counter,
        sleep: Callable[[float], None] = time.sleep,
    ) -> RunResult:
        """
        Run paced against a monotonic clock.

        Args:
            duration: Wall-clock seconds to run (None: until should_stop)
            should_stop: Polled between batches; return True to stop
            time_source: Monotonic clock in seconds
            sleep: Function used to wait for the next event

        Returns:
            RunResult with reason TIME_ELAPSED or STOPPED

        Raises:
            ValueError: If neither duration nor should_stop is given
        """
        if duration is None and should_stop is None:
            raise ValueError("run_realtime() needs a duration or a should_stop callback")

        start = last = time_source()
        executed = 0
        while True:
            if should_stop is not None and should_stop():
                return self._result(StopReason.STOPPED, executed)

            now = time_source()
            elapsed = now - last
            last = now
            if elapsed > self.config.max_catch_up:
                logger.warning(
                    f"Running {elapsed:.3f}s behind, skipping "
                    f"{elapsed - self.config.max_catch_up:.3f}s"
                )
                elapsed = self.config.max_catch_up
            executed += self._advance(elapsed)

            if duration is not None and now - start >= duration:
                return self._result(StopReason.TIME_ELAPSED, executed)

            sleep(self.clock.time_to_next_event())

    def _advance(self, seconds: float) -> int:
        executed = 0
        for event in self.clock.advance(seconds):
            if event is ClockEvent.TIMER_TICK:
                self.clock.tick(self.state)
            elif self.step() is not None:
                executed += 1
        return executed

    def _halt(self, err: ExecutionError) -> None:
        self._fault = err
        logger.error(f"Machine halted: {err}")
        self.clock.silence()

    def _result(self, reason: StopReason, executed: int) -> RunResult:
        return RunResult(reason, executed, self.state.pc)

    # =========================================================================
    # Keyboard Input
    # =========================================================================

    def press_key(self, key: Union[str, int]) -> None:
        """
        Press a key (host key name like "W" or logical key 0-F).

        The key remains pressed until release_key() is called.
        """
        self._keypad.key_down(key)

    def release_key(self, key: Union[str, int]) -> None:
        """Release a key pressed with press_key()."""
        self._keypad.key_up(key)

    @property
    def keypad(self) -> Keypad:
        return self._keypad

    # =========================================================================
    # Inspection
    # =========================================================================

    @property
    def framebuffer(self) -> FrameBuffer:
        return self.state.framebuffer

    @property
    def display_text(self) -> str:
        """Pixel buffer rendered as text ('#' for lit pixels)."""
        return self.state.framebuffer.render_text()

    @property
    def fault(self) -> Optional[ExecutionError]:
        """The error that halted the machine, if any."""
        return self._fault

    @property
    def halted(self) -> bool:
        return self._fault is not None

    @property
    def is_waiting_for_key(self) -> bool:
        return self.state.is_waiting_for_key

    @property
    def instruction_count(self) -> int:
        """Instructions executed since the last reset."""
        return self._instruction_count

    def format_registers(self) -> str:
        """Register dump for diagnostics."""
        s = self.state
        regs = " ".join(f"V{n:X}={s.v[n]:02X}" for n in range(16))
        return (
            f"PC=${s.pc:04X} I=${s.i:04X} SP={s.sp} "
            f"DT={s.delay_timer} ST={s.sound_timer}\n{regs}"
        )
