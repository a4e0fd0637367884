"""
Keypad for the CHIP-8 Interpreter
=================================

The CHIP-8 keypad has 16 keys labelled with the hexadecimal digits:

    1 2 3 C
    4 5 6 D
    7 8 9 E
    A 0 B F

Host front-ends conventionally map it onto the left side of a QWERTY
keyboard (the same physical positions):

    1 2 3 4
    Q W E R
    A S D F
    Z X C V

Besides the 16 "currently pressed" states, the keypad records press
transitions so the wait-for-key instruction (Fx0A) can pick up the next key
that goes down after the wait began. A key already held when the wait
starts does not satisfy it.

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

from typing import Dict, List, Optional, Protocol, Union


KEY_COUNT = 16


# =============================================================================
# HOST KEY MAPPING
# =============================================================================

HOST_KEY_TO_HEX: Dict[str, int] = {
    "1": 0x1, "2": 0x2, "3": 0x3, "4": 0xC,
    "Q": 0x4, "W": 0x5, "E": 0x6, "R": 0xD,
    "A": 0x7, "S": 0x8, "D": 0x9, "F": 0xE,
    "Z": 0xA, "X": 0x0, "C": 0xB, "V": 0xF,
}


class InputSource(Protocol):
    """
    Protocol defining what the executor needs from the input side.
    """

    def is_pressed(self, key: int) -> bool:
        """Check whether logical key 0-F is currently down."""
        ...

    def begin_key_wait(self) -> None:
        """Forget earlier presses; a key wait starts now."""
        ...

    def next_key_press(self) -> Optional[int]:
        """Return the next key pressed since begin_key_wait(), if any."""
        ...


class Keypad:
    """
    16-key logical keypad.

    Example:
        >>> pad = Keypad()
        >>> pad.begin_key_wait()
        >>> pad.key_down("W")
        >>> pad.is_pressed(0x5), pad.next_key_press()
        (True, 5)
    """

    def __init__(self):
        self._pressed = [False] * KEY_COUNT
        self._waiting = False
        # Keys that went down since begin_key_wait(), oldest first
        self._press_events: List[int] = []

    # =========================================================================
    # Logical Key API
    # =========================================================================

    def press(self, key: int) -> None:
        """Press logical key 0-F."""
        key = self._check_key(key)
        if not self._pressed[key]:
            self._pressed[key] = True
            if self._waiting:
                self._press_events.append(key)

    def release(self, key: int) -> None:
        """Release logical key 0-F."""
        key = self._check_key(key)
        self._pressed[key] = False

    def is_pressed(self, key: int) -> bool:
        return self._pressed[key & 0x0F]

    def pressed_keys(self) -> List[int]:
        """List the keys currently down."""
        return [k for k in range(KEY_COUNT) if self._pressed[k]]

    def clear(self) -> None:
        """Release every key."""
        self._pressed = [False] * KEY_COUNT
        self._waiting = False
        self._press_events.clear()

    # =========================================================================
    # Key Wait (Fx0A)
    # =========================================================================

    @property
    def waiting(self) -> bool:
        """True between begin_key_wait() and the press that ends the wait."""
        return self._waiting

    def begin_key_wait(self) -> None:
        self._waiting = True
        self._press_events.clear()

    def next_key_press(self) -> Optional[int]:
        if not self._press_events:
            return None
        key = self._press_events.pop(0)
        self._waiting = False
        self._press_events.clear()
        return key

    # =========================================================================
    # Host Key API
    # =========================================================================

    def key_down(self, key: Union[str, int]) -> None:
        """
        Press a key given as a host key name or a logical key number.

        Args:
            key: Host key ("W", "q", "1"...) or logical key 0-F

        Raises:
            ValueError: If the key is not on the keypad
        """
        self.press(self.resolve(key))

    def key_up(self, key: Union[str, int]) -> None:
        """Release a key given as a host key name or a logical key number."""
        self.release(self.resolve(key))

    @staticmethod
    def resolve(key: Union[str, int]) -> int:
        """Translate a host key name to its logical key number."""
        if isinstance(key, int):
            return key
        mapped = HOST_KEY_TO_HEX.get(key.upper())
        if mapped is None:
            raise ValueError(f"Key '{key}' is not mapped to the keypad")
        return mapped

    @staticmethod
    def _check_key(key: int) -> int:
        if not 0 <= key < KEY_COUNT:
            raise ValueError(f"Keypad key must be 0-15, got {key}")
        return key
