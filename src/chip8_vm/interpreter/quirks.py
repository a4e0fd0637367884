"""
CHIP-8 Quirk Profiles
=====================

Several CHIP-8 instructions behave differently across the interpreters
that programs were written for. Each such behaviour is a named field of
the Quirks value below, and a handful of predefined profiles bundle the
combinations real programs expect.

Supported profiles:
- modern: The behaviour documented by the common CHIP-8 references (default)
- vip: The original COSMAC VIP interpreter
- schip: SUPER-CHIP 1.1 (instruction semantics only, no extended opcodes)
- amiga: CHIP-8 for the Amiga (Fx1E reports overflow past $FFF in VF)

The executor reads the profile; nothing else in the interpreter depends
on it.

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Quirks:
    """
    Policy for each historically ambiguous instruction behaviour.

    Attributes:
        name: Profile name
        index_overflow_sets_flag: Fx1E sets VF to 1 when I + Vx exceeds
            $FFF and to 0 otherwise. When False, Fx1E leaves VF alone.
        load_store_increments_index: Fx55/Fx65 leave I pointing past the
            last register transferred (I += x + 1).
        logic_resets_flag: 8xy1/8xy2/8xy3 clear VF.
        shift_uses_vy: 8xy6/8xyE shift Vy and store the result in Vx.
            When False, Vx is shifted in place and Vy is ignored.
        jump_uses_vx: Bxnn jumps to xnn + Vx instead of nnn + V0.
    """
    name: str
    index_overflow_sets_flag: bool = False
    load_store_increments_index: bool = False
    logic_resets_flag: bool = False
    shift_uses_vy: bool = False
    jump_uses_vx: bool = False


# =============================================================================
# Predefined Profiles
# =============================================================================

QUIRKS_MODERN = Quirks(name="modern")

QUIRKS_VIP = Quirks(
    name="vip",
    load_store_increments_index=True,
    logic_resets_flag=True,
    shift_uses_vy=True,
)

QUIRKS_SCHIP = Quirks(
    name="schip",
    jump_uses_vx=True,
)

QUIRKS_AMIGA = Quirks(
    name="amiga",
    index_overflow_sets_flag=True,
)

QUIRKS_DEFAULT = QUIRKS_MODERN

_PROFILE_MAP = {
    "MODERN": QUIRKS_MODERN,
    "VIP": QUIRKS_VIP,
    "COSMAC": QUIRKS_VIP,
    "SCHIP": QUIRKS_SCHIP,
    "SUPERCHIP": QUIRKS_SCHIP,
    "AMIGA": QUIRKS_AMIGA,
}


def get_quirks(profile: str) -> Quirks:
    """
    Get a quirk profile by name.

    Args:
        profile: Profile name (case-insensitive); "" or "default" selects modern

    Returns:
        Quirks for the profile

    Raises:
        ValueError: If the profile is not recognized
    """
    code = profile.upper().strip()

    if code in _PROFILE_MAP:
        return _PROFILE_MAP[code]
    if code in ("DEFAULT", ""):
        return QUIRKS_DEFAULT

    available = ", ".join(p.name for p in list_quirk_profiles())
    raise ValueError(
        f"Unknown quirk profile '{profile}'. Available: {available}"
    )


def list_quirk_profiles() -> list[Quirks]:
    """Get all predefined quirk profiles."""
    return [
        QUIRKS_MODERN,
        QUIRKS_VIP,
        QUIRKS_SCHIP,
        QUIRKS_AMIGA,
    ]
