"""
CHIP-8 Machine Integration Tests
================================

Tests for the Chip8 orchestrator:
- Program loading
- Instruction budgets, simulated time and the real-time loop
- Halting on execution errors
- Wait-for-key with timers still running
- Display and audio sink notifications

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

import logging

import pytest
from chip8_vm.errors import (
    AddressOutOfRange,
    ProgramImageTooLarge,
    StackOverflow,
    StackUnderflow,
    UnknownOpcode,
)
from chip8_vm.interpreter import Chip8, MachineConfig, StopReason


# =============================================================================
# Test Helpers
# =============================================================================

class RecordingDisplay:
    """Display sink that records each frame as text."""

    def __init__(self):
        self.frames: list[str] = []

    def present(self, framebuffer) -> None:
        self.frames.append(framebuffer.render_text())


class RecordingAudio:
    def __init__(self):
        self.events: list[str] = []

    def start_tone(self) -> None:
        self.events.append("start")

    def stop_tone(self) -> None:
        self.events.append("stop")


class FakeTime:
    """Monotonic clock whose sleep() just moves time forward."""

    def __init__(self, step: float = 0.0):
        self.now = 0.0
        self.step = step

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.now += max(seconds, self.step)


ADD_PROGRAM = bytes([0x60, 0x0A, 0x61, 0x05, 0x80, 0x14])

# Load V0 with 60, set the delay timer from it, then spin
DELAY_PROGRAM = bytes([0x60, 0x3C, 0xF0, 0x15, 0x12, 0x04])

# Jump to self
SPIN_PROGRAM = bytes([0x12, 0x00])


@pytest.fixture
def vm():
    return Chip8(MachineConfig(seed=1))


# =============================================================================
# Program Loading Tests
# =============================================================================

class TestLoading:
    """Test program loading."""

    def test_initial_state(self, vm):
        assert vm.state.pc == 0x200
        assert vm.state.sp == 0
        assert vm.instruction_count == 0
        assert not vm.halted

    def test_load_program(self, vm):
        vm.load_program(ADD_PROGRAM)
        assert vm.state.memory.read_block(0x200, 6) == ADD_PROGRAM

    def test_load_too_large_keeps_program(self, vm):
        """A rejected image leaves the current program in place."""
        vm.load_program(ADD_PROGRAM)
        with pytest.raises(ProgramImageTooLarge):
            vm.load_program(bytes(3585))
        assert vm.state.memory.read_block(0x200, 6) == ADD_PROGRAM

    def test_load_rom(self, vm, tmp_path):
        rom = tmp_path / "add.ch8"
        rom.write_bytes(ADD_PROGRAM)
        vm.load_rom(rom)
        vm.run(3)
        assert vm.state.v[0] == 15

    def test_load_missing_rom(self, vm, tmp_path):
        with pytest.raises(FileNotFoundError):
            vm.load_rom(tmp_path / "missing.ch8")

    def test_load_resets(self, vm):
        vm.load_program(ADD_PROGRAM)
        vm.run(3)
        vm.load_program(ADD_PROGRAM)
        assert vm.state.pc == 0x200
        assert vm.state.v[0] == 0


# =============================================================================
# Execution Tests
# =============================================================================

class TestExecution:
    """Test step, run and advance."""

    def test_add_program(self, vm):
        """60 0A 61 05 80 14 leaves V0=15, VF=0, PC=$206."""
        vm.load_program(ADD_PROGRAM)
        result = vm.run(3)
        assert vm.state.v[0] == 15
        assert vm.state.vf == 0
        assert vm.state.pc == 0x206
        assert result.reason is StopReason.INSTRUCTION_LIMIT
        assert result.instructions == 3
        assert result.pc == 0x206
        assert vm.instruction_count == 3

    def test_step_returns_instruction(self, vm):
        vm.load_program(ADD_PROGRAM)
        instr = vm.step()
        assert instr.word == 0x600A

    def test_run_does_not_tick_timers(self, vm):
        vm.load_program(DELAY_PROGRAM)
        vm.run(100)
        assert vm.state.delay_timer == 60

    def test_advance_instruction_count(self, vm):
        vm.load_program(SPIN_PROGRAM)
        result = vm.advance(1.0)
        assert result.reason is StopReason.TIME_ELAPSED
        assert result.instructions == 700

    @pytest.mark.parametrize("ips", [100, 700, 2000])
    def test_delay_timer_independent_of_rate(self, ips):
        """The delay timer counts 60 per second whatever the instruction rate."""
        vm = Chip8(MachineConfig(instructions_per_second=ips))
        vm.load_program(DELAY_PROGRAM)
        vm.run(2)
        vm.advance(0.5)
        assert vm.state.delay_timer == 30
        vm.advance(0.5)
        assert vm.state.delay_timer == 0

    def test_reset(self, vm):
        vm.load_program(ADD_PROGRAM)
        vm.run(3)
        vm.press_key(1)
        vm.reset()
        assert vm.state.pc == 0x200
        assert vm.state.v[0] == 0
        assert vm.keypad.pressed_keys() == []
        assert vm.instruction_count == 0

    def test_seeded_random(self):
        program = bytes([0xC0, 0xFF, 0xC1, 0xFF, 0xC2, 0xFF])
        a = Chip8(MachineConfig(seed=7))
        b = Chip8(MachineConfig(seed=7))
        a.load_program(program)
        b.load_program(program)
        a.run(3)
        b.run(3)
        assert a.state.v[:3] == b.state.v[:3]

    def test_seeded_random_repeats_after_reset(self):
        """Reset and reload restart the RND sequence of a seeded machine."""
        program = bytes([0xC0, 0xFF, 0xC1, 0xFF, 0xC2, 0xFF])
        vm = Chip8(MachineConfig(seed=7))
        vm.load_program(program)
        vm.run(3)
        first = vm.state.v[:3]

        vm.reset()
        vm.run(3)
        assert vm.state.v[:3] == first

        vm.load_program(program)
        vm.run(3)
        assert vm.state.v[:3] == first


# =============================================================================
# Halt Tests
# =============================================================================

class TestHalt:
    """Test halting on execution errors."""

    def test_fault_halts(self, vm):
        vm.load_program(bytes([0x60, 0x01, 0xFF, 0xFF]))
        with pytest.raises(UnknownOpcode) as exc_info:
            vm.run(10)
        assert exc_info.value.pc == 0x202
        assert vm.halted
        assert vm.fault is exc_info.value
        assert vm.state.pc == 0x202

    def test_stack_overflow_keeps_pc(self, vm):
        """The 17th nested CALL faults with PC still on the CALL."""
        vm.load_program(bytes([0x22, 0x00]))  # CALL $200
        vm.run(16)
        assert vm.state.sp == 16
        with pytest.raises(StackOverflow) as exc_info:
            vm.step()
        assert exc_info.value.pc == 0x200
        assert vm.state.pc == 0x200
        assert vm.state.sp == 16

    def test_fault_reported_again(self, vm):
        """Every later step reports the same error until reset."""
        vm.load_program(bytes([0xFF, 0xFF]))
        with pytest.raises(UnknownOpcode):
            vm.step()
        with pytest.raises(UnknownOpcode):
            vm.step()
        assert vm.instruction_count == 0
        assert vm.state.pc == 0x200
        assert vm.format_registers().startswith("PC=$0200")

        vm.reset()
        assert not vm.halted

    def test_fault_logged(self, vm, caplog):
        vm.load_program(bytes([0x00, 0xEE]))
        with caplog.at_level(logging.ERROR, logger="chip8_vm"):
            with pytest.raises(StackUnderflow):
                vm.step()
        assert "stack underflow" in caplog.text

    def test_run_off_end_of_memory(self, vm):
        """A jump to $FFF fails on fetch."""
        vm.load_program(bytes([0x1F, 0xFF]))
        vm.step()
        with pytest.raises(AddressOutOfRange) as exc_info:
            vm.step()
        assert "$0FFF" in str(exc_info.value)

    def test_halt_silences_audio(self):
        audio = RecordingAudio()
        vm = Chip8(audio=audio)
        vm.load_program(bytes([0x60, 0x10, 0xF0, 0x18, 0xFF, 0xFF]))
        with pytest.raises(UnknownOpcode):
            vm.run(3)
        assert audio.events == ["start", "stop"]


# =============================================================================
# Key Wait Tests
# =============================================================================

class TestKeyWait:
    """Test Fx0A through the machine."""

    def test_run_stops_waiting(self, vm):
        vm.load_program(bytes([0xF3, 0x0A, 0x12, 0x02]))
        result = vm.run(10)
        assert result.reason is StopReason.WAITING_FOR_KEY
        assert result.instructions == 1
        assert vm.is_waiting_for_key

    def test_key_press_resumes(self, vm):
        vm.load_program(bytes([0xF3, 0x0A, 0x12, 0x02]))
        vm.run(10)
        assert vm.step() is None
        vm.press_key("V")
        assert vm.step().word == 0x1202
        assert vm.state.v[3] == 0xF
        assert not vm.is_waiting_for_key

    def test_held_key_does_not_resume(self, vm):
        """A key held before Fx0A started must be pressed again."""
        vm.load_program(bytes([0xF3, 0x0A, 0x12, 0x02]))
        vm.press_key(0x5)
        vm.run(10)
        assert vm.run(10).reason is StopReason.WAITING_FOR_KEY
        vm.release_key(0x5)
        vm.press_key(0x5)
        vm.run(1)
        assert vm.state.v[3] == 0x5

    def test_timers_tick_while_waiting(self, vm):
        """Delay timer keeps counting while the program waits for a key."""
        vm.load_program(bytes([0x60, 0x3C, 0xF0, 0x15, 0xF1, 0x0A]))
        vm.run(3)
        result = vm.advance(0.5)
        assert result.instructions == 0
        assert vm.state.delay_timer == 30
        assert vm.is_waiting_for_key


# =============================================================================
# Sink Tests
# =============================================================================

class TestSinks:
    """Test display and audio notifications."""

    def test_display_presented_after_draw(self):
        display = RecordingDisplay()
        vm = Chip8(display=display)
        vm.load_program(bytes([0xA0, 0x50, 0xD0, 0x15, 0x12, 0x04]))
        display.frames.clear()

        vm.run(1)
        assert display.frames == []
        vm.run(1)
        assert len(display.frames) == 1
        assert display.frames[0].split("\n")[0].startswith("####.")

        vm.run(5)
        assert len(display.frames) == 1

    def test_display_presented_on_reset(self):
        display = RecordingDisplay()
        Chip8(display=display)
        assert len(display.frames) == 1

    def test_sound_timer_audio(self):
        audio = RecordingAudio()
        vm = Chip8(audio=audio)
        vm.load_program(bytes([0x60, 0x05, 0xF0, 0x18, 0x12, 0x04]))
        vm.run(2)
        assert audio.events == ["start"]
        vm.advance(5 / 60)
        assert audio.events == ["start", "stop"]
        vm.advance(1.0)
        assert audio.events == ["start", "stop"]


# =============================================================================
# Real-Time Loop Tests
# =============================================================================

class TestRealtime:
    """Test run_realtime() with a fake clock."""

    def test_duration(self, vm):
        clock = FakeTime()
        vm.load_program(SPIN_PROGRAM)
        result = vm.run_realtime(duration=0.1, time_source=clock, sleep=clock.sleep)
        assert result.reason is StopReason.TIME_ELAPSED
        assert 69 <= result.instructions <= 71
        assert clock.now >= 0.1

    def test_should_stop(self, vm):
        vm.load_program(SPIN_PROGRAM)
        clock = FakeTime()
        result = vm.run_realtime(
            should_stop=lambda: clock.now >= 0.05,
            time_source=clock,
            sleep=clock.sleep,
        )
        assert result.reason is StopReason.STOPPED
        assert result.instructions > 0

    def test_catch_up_capped(self, vm, caplog):
        """After a stall, at most max_catch_up seconds are replayed."""
        vm.load_program(SPIN_PROGRAM)
        clock = FakeTime(step=10.0)
        with caplog.at_level(logging.WARNING, logger="chip8_vm"):
            result = vm.run_realtime(duration=1.0, time_source=clock, sleep=clock.sleep)
        assert result.instructions == 175
        assert "behind" in caplog.text

    def test_needs_stop_condition(self, vm):
        with pytest.raises(ValueError):
            vm.run_realtime()


# =============================================================================
# Configuration Tests
# =============================================================================

class TestConfig:
    """Test MachineConfig validation and diagnostics."""

    def test_defaults(self):
        config = MachineConfig()
        assert config.instructions_per_second == 700
        assert config.quirks == "modern"
        assert config.seed is None

    def test_quirk_profile_resolved(self):
        vm = Chip8(MachineConfig(quirks="vip"))
        assert vm.quirks.name == "vip"

    def test_unknown_quirks(self):
        with pytest.raises(ValueError):
            Chip8(MachineConfig(quirks="nonsense"))

    def test_invalid_rate(self):
        with pytest.raises(ValueError):
            Chip8(MachineConfig(instructions_per_second=0))

    def test_invalid_catch_up(self):
        with pytest.raises(ValueError):
            Chip8(MachineConfig(max_catch_up=0))

    def test_format_registers(self, vm):
        vm.load_program(ADD_PROGRAM)
        vm.run(3)
        dump = vm.format_registers()
        assert "PC=$0206" in dump
        assert "V0=0F" in dump
        assert "SP=0" in dump


# =============================================================================
# Timer Scenario Tests
# =============================================================================

class TestDelayTimerScenario:
    """Delay timer set to 5, then six 1/60 s advances."""

    @pytest.mark.parametrize("ips", [1, 60, 700, 10_000])
    def test_six_ticks(self, ips):
        """The timer reaches 0 on schedule whatever the instruction rate."""
        vm = Chip8(MachineConfig(instructions_per_second=ips))
        # LD V0, 5; LD DT, V0; JP $204
        vm.load_program(bytes([0x60, 0x05, 0xF0, 0x15, 0x12, 0x04]))
        vm.run(2)
        assert vm.state.delay_timer == 5

        readings = []
        for _ in range(6):
            vm.advance(1 / 60)
            readings.append(vm.state.delay_timer)
        assert readings == [4, 3, 2, 1, 0, 0]
