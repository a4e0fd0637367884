"""
Clock and Scheduler for the CHIP-8 Interpreter
==============================================

CHIP-8 has two independent notions of time:

- Instruction throughput. Not an architectural constant: programs were
  written for interpreters running a few hundred instructions per second,
  so the rate is configurable (default 700/s).
- The 60 Hz timer tick, which counts the delay and sound timers down and
  is what programs actually use to measure time.

The Clock turns elapsed time into an ordered stream of INSTRUCTION and
TIMER_TICK events. Both schedules are tracked in integer nanoseconds from
a common origin, so the number of timer ticks depends only on elapsed
time, never on how many instructions ran in between. When both are due at
the same instant the timer tick comes first.

The clock itself does not know about time sources: the machine feeds it
either simulated time (advance) or a monotonic clock (real-time loop).

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

import logging
from enum import Enum
from typing import Iterator, Optional, Protocol

from chip8_vm.interpreter.state import MachineState


logger = logging.getLogger(__name__)

TIMER_HZ = 60
DEFAULT_INSTRUCTIONS_PER_SECOND = 700

NS_PER_SECOND = 1_000_000_000


class ClockEvent(Enum):
    """Events produced by Clock.advance()."""
    INSTRUCTION = "instruction"
    TIMER_TICK = "timer_tick"


class AudioSink(Protocol):
    """
    Protocol for the sound output.

    The core only says when the tone should be on: start_tone() when the
    sound timer becomes non-zero and stop_tone() when it reaches zero.
    """

    def start_tone(self) -> None:
        ...

    def stop_tone(self) -> None:
        ...


class NullAudio:
    """Audio sink that produces no sound."""

    def start_tone(self) -> None:
        pass

    def stop_tone(self) -> None:
        pass


def seconds_to_ns(seconds: float) -> int:
    return round(seconds * NS_PER_SECOND)


class Clock:
    """
    Interleaves instruction execution with the fixed 60 Hz timer tick.

    Example:
        >>> clock = Clock(instructions_per_second=600)
        >>> events = list(clock.advance(1 / 60))
        >>> events.count(ClockEvent.INSTRUCTION), events.count(ClockEvent.TIMER_TICK)
        (10, 1)
    """

    def __init__(
        self,
        instructions_per_second: int = DEFAULT_INSTRUCTIONS_PER_SECOND,
        audio: Optional[AudioSink] = None,
        timer_hz: int = TIMER_HZ,
    ):
        """
        Args:
            instructions_per_second: Instruction rate (must be positive)
            audio: Audio sink signalled from the sound timer
            timer_hz: Timer tick rate

        Raises:
            ValueError: If a rate is not positive
        """
        if instructions_per_second <= 0:
            raise ValueError(
                f"Instruction rate must be positive, got {instructions_per_second}"
            )
        if timer_hz <= 0:
            raise ValueError(f"Timer rate must be positive, got {timer_hz}")

        self.audio = audio or NullAudio()
        self._instructions_per_second = instructions_per_second
        self._timer_hz = timer_hz
        self._tone_on = False
        self.reset()

    def reset(self) -> None:
        """Restart both schedules from time zero."""
        self._now = 0
        self._instructions = 0
        self._ticks = 0

    @property
    def instructions_per_second(self) -> int:
        return self._instructions_per_second

    @property
    def timer_hz(self) -> int:
        return self._timer_hz

    @property
    def now(self) -> float:
        """Simulated time since reset, in seconds."""
        return self._now / NS_PER_SECOND

    @property
    def tick_count(self) -> int:
        """Timer ticks scheduled since reset."""
        return self._ticks

    @property
    def tone_on(self) -> bool:
        return self._tone_on

    # =========================================================================
    # Scheduling
    # =========================================================================

    def _instruction_due(self, index: int) -> int:
        # Instruction k (1-based) falls due at k / rate seconds
        return index * NS_PER_SECOND // self._instructions_per_second

    def _tick_due(self, index: int) -> int:
        return index * NS_PER_SECOND // self._timer_hz

    def advance(self, seconds: float) -> Iterator[ClockEvent]:
        """
        Move time forward, yielding the events that fall due in order.

        Args:
            seconds: Elapsed time (non-negative)

        Yields:
            ClockEvent.TIMER_TICK and ClockEvent.INSTRUCTION events
        """
        if seconds < 0:
            raise ValueError(f"Cannot advance by negative time ({seconds})")

        target = self._now + seconds_to_ns(seconds)
        while True:
            next_tick = self._tick_due(self._ticks + 1)
            next_instruction = self._instruction_due(self._instructions + 1)
            due = min(next_tick, next_instruction)
            if due > target:
                break
            self._now = due
            if next_tick <= next_instruction:
                self._ticks += 1
                yield ClockEvent.TIMER_TICK
            else:
                self._instructions += 1
                yield ClockEvent.INSTRUCTION
        self._now = target

    def time_to_next_event(self) -> float:
        """Seconds until the next event falls due."""
        due = min(
            self._tick_due(self._ticks + 1),
            self._instruction_due(self._instructions + 1),
        )
        return max(0, due - self._now) / NS_PER_SECOND

    # =========================================================================
    # Timers and Audio
    # =========================================================================

    def tick(self, state: MachineState) -> None:
        """Apply one 60 Hz tick to the machine's timers."""
        state.tick_timers()
        self.sync_audio(state)

    def sync_audio(self, state: MachineState) -> None:
        """Start or stop the tone to follow the sound timer."""
        active = state.sound_timer > 0
        if active == self._tone_on:
            return
        self._tone_on = active
        if active:
            logger.debug(f"Tone on (sound timer {state.sound_timer})")
            self.audio.start_tone()
        else:
            logger.debug("Tone off")
            self.audio.stop_tone()

    def silence(self) -> None:
        """Stop the tone regardless of the sound timer."""
        if self._tone_on:
            self._tone_on = False
            self.audio.stop_tone()
