"""Keyboard decoding and key-to-action mapping."""

from dataclasses import dataclass
from enum import Enum, auto

from snapmixer.models.health import ConnectionHealth

ESC = "\x1b"
CTRL_C = "\x03"

# CSI final byte -> key name
_CSI_KEYS = {"A": "up", "B": "down", "C": "right", "D": "left"}

# xterm modifier parameter values that include shift (1 + bitmask)
_SHIFT_MODIFIERS = {2, 4, 6, 8}
_CTRL_MODIFIERS = {5, 6, 7, 8}

# Longest parameter run kept while waiting for the rest of a sequence
MAX_SEQUENCE_LENGTH = 16


@dataclass(frozen=True, slots=True)
class KeyPress:
    """A decoded key press.

    Attributes:
        key: Key name ("up", "down", "left", "right", "esc") or the
            character typed.
        shift: Whether shift was held (for named keys).
        ctrl: Whether control was held.
    """

    key: str
    shift: bool = False
    ctrl: bool = False


@dataclass(frozen=True, slots=True)
class Resize:
    """The terminal was resized."""


InputEvent = KeyPress | Resize


def decode_keys(text: str, final: bool = False) -> tuple[list[KeyPress], str]:
    """Decode raw terminal input into key presses.

    Handles plain and xterm-modified arrow sequences (``ESC [ A`` and
    ``ESC [ 1 ; 2 A``), SS3 arrows (``ESC O A``), a bare escape, Ctrl-C and
    printable characters. Unknown escape sequences are dropped.

    An escape sequence cut off at the end of ``text`` is not decoded; it is
    returned so the caller can prepend it to the next read. A lone trailing
    escape may be the start of a sequence too, so it is only decoded as the
    Esc key when ``final`` is set.

    Args:
        text: Characters read from the terminal, prefixed with the tail
            left over from the previous call.
        final: No more input is expected for now; a trailing escape is Esc.

    Returns:
        Key presses in input order, and the unconsumed tail.
    """
    keys: list[KeyPress] = []
    i = 0
    while i < len(text):
        char = text[i]
        if char == CTRL_C:
            keys.append(KeyPress("c", ctrl=True))
            i += 1
        elif char == ESC:
            if i + 1 == len(text) and not final:
                return keys, text[i:]
            if i + 1 < len(text) and text[i + 1] in "[O":
                end = _decode_sequence(text, i + 2, keys)
                if end is None:
                    return keys, text[i:]
                i = end
            else:
                keys.append(KeyPress("esc"))
                i += 1
        else:
            if char.isprintable():
                keys.append(KeyPress(char))
            i += 1
    return keys, ""


def _decode_sequence(text: str, start: int, keys: list[KeyPress]) -> int | None:
    """Decode a CSI/SS3 sequence body; return the index after it.

    Returns None if the sequence is not terminated within ``text``.
    """
    end = start
    while end < len(text) and not ("@" <= text[end] <= "~"):
        end += 1
    if end >= len(text):
        if end - start > MAX_SEQUENCE_LENGTH:
            # Not a key sequence we could ever finish; drop it
            return len(text)
        return None

    final = text[end]
    params = text[start:end].split(";")
    modifier = 1
    if len(params) == 2 and params[1].isdigit():  # noqa: PLR2004
        modifier = int(params[1])

    name = _CSI_KEYS.get(final)
    if name is not None:
        keys.append(
            KeyPress(
                name,
                shift=modifier in _SHIFT_MODIFIERS,
                ctrl=modifier in _CTRL_MODIFIERS,
            )
        )
    return end + 1


class Action(Enum):
    """What a key press asks the mixer to do."""

    NONE = auto()
    EXIT = auto()
    DISMISS = auto()
    PREV = auto()
    NEXT = auto()
    PREV_GROUP = auto()
    NEXT_GROUP = auto()
    VOLUME_DOWN = auto()
    VOLUME_DOWN_MORE = auto()
    VOLUME_UP = auto()
    VOLUME_UP_MORE = auto()
    SET_VOLUME = auto()
    TOGGLE_MUTE = auto()


@dataclass(frozen=True, slots=True)
class Command:
    """An action with its argument.

    Attributes:
        action: The action to perform.
        value: Volume percent for SET_VOLUME, step for volume changes.
    """

    action: Action
    value: float = 0.0


SMALL_STEP = 1.0
LARGE_STEP = 5.0

_NAVIGATION = {
    ("up", True): Action.PREV_GROUP,
    ("down", True): Action.NEXT_GROUP,
    ("K", False): Action.PREV_GROUP,
    ("J", False): Action.NEXT_GROUP,
    ("up", False): Action.PREV,
    ("down", False): Action.NEXT,
    ("k", False): Action.PREV,
    ("j", False): Action.NEXT,
}

_VOLUME = {
    ("left", True): Command(Action.VOLUME_DOWN_MORE, -LARGE_STEP),
    ("H", False): Command(Action.VOLUME_DOWN_MORE, -LARGE_STEP),
    ("left", False): Command(Action.VOLUME_DOWN, -SMALL_STEP),
    ("h", False): Command(Action.VOLUME_DOWN, -SMALL_STEP),
    ("right", True): Command(Action.VOLUME_UP_MORE, LARGE_STEP),
    ("L", False): Command(Action.VOLUME_UP_MORE, LARGE_STEP),
    ("right", False): Command(Action.VOLUME_UP, SMALL_STEP),
    ("l", False): Command(Action.VOLUME_UP, SMALL_STEP),
}

NO_COMMAND = Command(Action.NONE)


def _is_exit(key: KeyPress) -> bool:
    return key.key == "q" or (key.key == "c" and key.ctrl)


def map_key(key: KeyPress, health: ConnectionHealth, has_errors: bool) -> Command:
    """Map a key press to a command given what the dashboard is showing.

    While the connection modal is up only quitting works; while the error
    modal is up only dismissing works.

    Args:
        key: The decoded key press.
        health: Current connection health.
        has_errors: Whether the error queue is non-empty.

    Returns:
        The command to run (NONE if the key does nothing here).
    """
    if health.blocked:
        return Command(Action.EXIT) if _is_exit(key) else NO_COMMAND
    if has_errors:
        return Command(Action.DISMISS) if key.key == "esc" else NO_COMMAND

    if key.key == "esc":
        return Command(Action.DISMISS)
    if _is_exit(key):
        return Command(Action.EXIT)
    if key.key == "m":
        return Command(Action.TOGGLE_MUTE)
    if len(key.key) == 1 and key.key in "0123456789":
        digit = int(key.key)
        return Command(Action.SET_VOLUME, float(digit * 10 if digit else 100))

    lookup = (key.key, key.shift)
    if lookup in _NAVIGATION:
        return Command(_NAVIGATION[lookup])
    return _VOLUME.get(lookup, NO_COMMAND)


KEY_HELP: list[tuple[str, str]] = [
    ("↑/↓", "navigate up and down (with shift to jump to groups)"),
    ("←/→", "adjust volume (with shift for larger increments)"),
    ("h/j/k/l", "same as ←/↓/↑/→"),
    ("1/2/…/9/0", "snap volume to 10%, 20%, …, 90%, 100%"),
    ("m", "toggle mute"),
    ("q/Esc/^C", "quit"),
]
