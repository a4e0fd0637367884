"""
c8run - Headless CHIP-8 Runner Command-Line Interface
=====================================================

This module implements the command-line interface for running CHIP-8
programs without a window. The program runs for a span of simulated (or
real) time or for a fixed number of instructions, then the final screen is
printed as text and can be saved as a PNG screenshot.

Usage Examples
--------------
Run a ROM for one simulated second:
    $ c8run maze.ch8

Run for five seconds with the original COSMAC VIP behaviour:
    $ c8run game.ch8 --seconds 5 --quirks vip

Execute exactly 200 instructions and dump the registers:
    $ c8run test.ch8 --instructions 200 --registers

Hold keys down while running (QWERTY names or hex with 0x/$ prefix):
    $ c8run pong.ch8 --key 1 --key 0xC

Tap keys at given times, e.g. to answer a wait-for-key instruction:
    $ c8run menu.ch8 --seconds 3 --press W@0.5 --press 0xA@2

Save a scaled screenshot:
    $ c8run ibm.ch8 --screenshot ibm.png --scale 10

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

import logging
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union

import click

from chip8_vm import __version__
from chip8_vm.cli.errors import handle_cli_exception
from chip8_vm.interpreter import (
    Chip8,
    Keypad,
    MachineConfig,
    RunResult,
    get_quirks,
)


# How long a --press key stays down
KEY_TAP_SECONDS = 0.1


# =============================================================================
# Option Parsing
# =============================================================================

def parse_key(value: str) -> Union[str, int]:
    """
    Parse a --key value.

    Hex values ("0xA", "$A") name logical keys directly; anything else is
    taken as a host key name on the QWERTY layout.

    Raises:
        ValueError: If the key is not on the keypad
    """
    text = value.strip()
    if text.lower().startswith("0x"):
        key: Union[str, int] = int(text[2:], 16)
    elif text.startswith("$"):
        key = int(text[1:], 16)
    else:
        key = text
    resolved = Keypad.resolve(key)
    if not 0 <= resolved <= 0xF:
        raise ValueError(f"Keypad key must be 0-F, got {value}")
    return key


def _validate_keys(ctx, param, values: Tuple[str, ...]) -> list:
    keys = []
    for value in values:
        try:
            keys.append(parse_key(value))
        except ValueError as e:
            raise click.BadParameter(str(e), ctx=ctx, param=param)
    return keys


def parse_press(value: str) -> Tuple[Union[str, int], float]:
    """
    Parse a --press value of the form KEY@SECONDS.

    Returns:
        (key, seconds) with the key as accepted by parse_key()

    Raises:
        ValueError: If the value is malformed or the time is negative
    """
    key_text, sep, time_text = value.rpartition("@")
    if not sep or not key_text:
        raise ValueError(f"Expected KEY@SECONDS, got {value!r}")
    try:
        at = float(time_text)
    except ValueError:
        raise ValueError(f"Invalid press time in {value!r}") from None
    if at < 0:
        raise ValueError(f"Press time must not be negative, got {value!r}")
    return parse_key(key_text), at


def _validate_presses(ctx, param, values: Tuple[str, ...]) -> list:
    presses = []
    for value in values:
        try:
            presses.append(parse_press(value))
        except ValueError as e:
            raise click.BadParameter(str(e), ctx=ctx, param=param)
    return sorted(presses, key=lambda press: press[1])


def run_with_presses(
    vm: Chip8,
    duration: float,
    presses: List[Tuple[Union[str, int], float]],
    run_for: Callable[[float], RunResult],
) -> RunResult:
    """
    Run for a duration, tapping keys at scheduled times.

    Each key goes down at its time and comes up KEY_TAP_SECONDS later.
    Presses scheduled after the end of the run are ignored.

    Args:
        vm: Machine to drive
        duration: Total run time in seconds
        presses: (key, seconds) pairs
        run_for: Runs the machine for a span of seconds (vm.advance, or a
            wall-clock equivalent)

    Returns:
        RunResult of the final segment, counting every instruction executed
    """
    events = []
    for key, at in presses:
        events.append((at, 0, key))
        events.append((at + KEY_TAP_SECONDS, 1, key))
    events.sort(key=lambda event: event[:2])

    elapsed = 0.0
    executed = 0
    for at, release, key in events:
        if at > duration:
            break
        if at > elapsed:
            executed += run_for(at - elapsed).instructions
            elapsed = at
        if release:
            vm.release_key(key)
        else:
            vm.press_key(key)

    result = run_for(duration - elapsed)
    return RunResult(result.reason, executed + result.instructions, result.pc)


def _validate_quirks(ctx, param, value: str) -> str:
    try:
        return get_quirks(value).name
    except ValueError as e:
        raise click.BadParameter(str(e), ctx=ctx, param=param)


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "rom_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-s", "--seconds",
    type=click.FloatRange(min=0),
    default=None,
    help="Time to run, in seconds (default: 1.0)",
)
@click.option(
    "-n", "--instructions",
    type=click.IntRange(min=0),
    default=None,
    help="Execute exactly this many instructions instead (timers do not tick)",
)
@click.option(
    "--ips",
    type=click.IntRange(min=1),
    default=700,
    show_default=True,
    help="Instructions per second",
)
@click.option(
    "-q", "--quirks",
    type=str,
    default="modern",
    show_default=True,
    callback=_validate_quirks,
    help="Quirk profile: modern, vip, schip or amiga",
)
@click.option(
    "--seed",
    type=int,
    default=None,
    help="Seed for the random number source (default: nondeterministic)",
)
@click.option(
    "-k", "--key",
    "keys",
    multiple=True,
    callback=_validate_keys,
    help=(
        "Hold a key down for the whole run (repeatable). QWERTY name or hex "
        "(0xA, $A). A held key never answers a wait-for-key (Fx0A); use --press"
    ),
)
@click.option(
    "-p", "--press",
    "presses",
    multiple=True,
    metavar="KEY@SECONDS",
    callback=_validate_presses,
    help=f"Tap a key at a time into the run (repeatable); held for {KEY_TAP_SECONDS}s",
)
@click.option(
    "--realtime",
    is_flag=True,
    help="Pace execution against the wall clock instead of simulated time",
)
@click.option(
    "--screenshot",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Save the final screen as a PNG image",
)
@click.option(
    "--scale",
    type=click.IntRange(min=1),
    default=8,
    show_default=True,
    help="Screenshot pixel scale",
)
@click.option(
    "-r", "--registers",
    is_flag=True,
    help="Print the register state after the run",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="c8run")
def main(
    rom_file: Path,
    seconds: Optional[float],
    instructions: Optional[int],
    ips: int,
    quirks: str,
    seed: Optional[int],
    keys: list,
    presses: list,
    realtime: bool,
    screenshot: Optional[Path],
    scale: int,
    registers: bool,
    verbose: bool,
) -> None:
    """
    Run a CHIP-8 program and print the final screen.

    ROM_FILE is the program image, loaded at $200.

    Examples:

        # Run for two seconds of simulated time
        c8run maze.ch8 --seconds 2

        # Run 100 instructions with the SUPER-CHIP jump behaviour
        c8run test.ch8 -n 100 --quirks schip

        # Hold the '5' key (W on QWERTY) and save a screenshot
        c8run game.ch8 --key W --screenshot out.png

        # Answer a wait-for-key half a second in
        c8run menu.ch8 --press W@0.5
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
        )

    vm = None
    try:
        if instructions is not None and seconds is not None:
            raise click.BadParameter(
                "--instructions and --seconds are mutually exclusive",
                param_hint="--instructions",
            )
        if instructions is not None and realtime:
            raise click.BadParameter(
                "--realtime cannot be combined with --instructions",
                param_hint="--realtime",
            )
        if instructions is not None and presses:
            raise click.BadParameter(
                "--press needs a timed run and cannot be combined with --instructions",
                param_hint="--press",
            )

        config = MachineConfig(
            instructions_per_second=ips,
            quirks=quirks,
            seed=seed,
        )
        vm = Chip8(config)
        vm.load_rom(rom_file)

        if verbose:
            click.echo(f"Loaded {rom_file} ({rom_file.stat().st_size} bytes)", err=True)
            click.echo(f"Quirks: {vm.quirks.name}, {ips} instructions/s", err=True)

        for key in keys:
            vm.press_key(key)

        duration = 1.0 if seconds is None else seconds
        if instructions is not None:
            result = vm.run(instructions)
        elif realtime:
            result = run_with_presses(
                vm, duration, presses,
                lambda span: vm.run_realtime(duration=span),
            )
        else:
            result = run_with_presses(vm, duration, presses, vm.advance)

        click.echo(vm.display_text)

        if registers:
            click.echo(vm.format_registers())

        if screenshot:
            screenshot.write_bytes(vm.framebuffer.render_image(scale=scale))
            if verbose:
                click.echo(f"Screenshot written to: {screenshot}", err=True)

        if verbose:
            click.echo(
                f"Stopped ({result.reason.value}) after {result.instructions} "
                f"instructions at ${result.pc:04X}",
                err=True,
            )

    except Exception as e:
        dump = vm.format_registers() if vm is not None and vm.halted else None
        handle_cli_exception(e, verbose=verbose, register_dump=dump)


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    main()
