"""Input latch holding the 16-key hexadecimal keypad state."""

from __future__ import annotations

from typing import Dict, Iterable, Optional, Tuple

from .constants import KEY_COUNT

# Conventional host layout:
#   1 2 3 C        1 2 3 4
#   4 5 6 D   <-   q w e r
#   7 8 9 E        a s d f
#   A 0 B F        z x c v
DEFAULT_KEYMAP: Dict[str, int] = {
    "1": 0x1, "2": 0x2, "3": 0x3, "4": 0xC,
    "q": 0x4, "w": 0x5, "e": 0x6, "r": 0xD,
    "a": 0x7, "s": 0x8, "d": 0x9, "f": 0xE,
    "z": 0xA, "x": 0x0, "c": 0xB, "v": 0xF,
}


def _check_key(key: int) -> int:
    if not 0 <= key < KEY_COUNT:
        raise ValueError(f"Invalid key index: {key}")
    return key


def resolve_key(key: int | str, keymap: Optional[Dict[str, int]] = None) -> int:
    """Translate a nibble or a host key name into a keypad index."""

    if isinstance(key, str):
        mapping = DEFAULT_KEYMAP if keymap is None else keymap
        try:
            return mapping[key.lower()]
        except KeyError:
            raise ValueError(f"Unmapped key: {key!r}") from None
    return _check_key(int(key))


class InputLatch:
    """Current physical state of keys 0x0-0xF.

    Written by the host input collaborator, read by the engine.
    """

    def __init__(self) -> None:
        self._keys = [False] * KEY_COUNT

    # ------------------------------------------------------------------ #
    # Host side
    # ------------------------------------------------------------------ #
    def press(self, key: int) -> None:
        self._keys[_check_key(key)] = True

    def release(self, key: int) -> None:
        self._keys[_check_key(key)] = False

    def release_all(self) -> None:
        self._keys = [False] * KEY_COUNT

    def set_keys(self, pressed: Iterable[int]) -> None:
        """Replace the whole vector with the given set of pressed keys."""
        keys = [False] * KEY_COUNT
        for key in pressed:
            keys[_check_key(key)] = True
        self._keys = keys

    # ------------------------------------------------------------------ #
    # Engine side
    # ------------------------------------------------------------------ #
    def is_pressed(self, key: int) -> bool:
        # Register values are full bytes; only the low nibble names a key.
        return self._keys[key & 0xF]

    def first_pressed(self) -> Optional[int]:
        for key, down in enumerate(self._keys):
            if down:
                return key
        return None

    def pressed_keys(self) -> Tuple[int, ...]:
        return tuple(key for key, down in enumerate(self._keys) if down)

    def snapshot(self) -> Tuple[bool, ...]:
        return tuple(self._keys)

    def __len__(self) -> int:
        return KEY_COUNT

    def __getitem__(self, key: int) -> bool:
        return self.is_pressed(key)


__all__ = ["DEFAULT_KEYMAP", "InputLatch", "resolve_key"]
