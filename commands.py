"""
Command parsing for Treasure Hunt.

Turns raw player input into engine commands. Parsing is case-insensitive
and never touches game state.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Union

from layout import Direction


@dataclass(frozen=True)
class Move:
    """Step one cell in a direction."""
    direction: Direction


@dataclass(frozen=True)
class Probe:
    """Ask whether the neighbouring cell is a trap. Direction may be missing or invalid."""
    direction: Optional[Direction] = None


@dataclass(frozen=True)
class Hint:
    """Ask for the Manhattan distance to the treasure."""
    pass


@dataclass(frozen=True)
class Unrecognized:
    """Input that matches no command."""
    text: str = ''


Command = Union[Move, Probe, Hint, Unrecognized]


# =============================================================================
# KEY BINDINGS
# =============================================================================

DIRECTION_KEYS: Dict[str, Direction] = {
    's': Direction.LEFT,
    'e': Direction.UP,
    'd': Direction.RIGHT,
    'x': Direction.DOWN,
    'left': Direction.LEFT,
    'up': Direction.UP,
    'right': Direction.RIGHT,
    'down': Direction.DOWN,
}

PROBE_KEYS = ('j', 'probe')
HINT_KEYS = ('h', 'hint')


def parse_direction(text: Optional[str]) -> Optional[Direction]:
    """Parse a direction key. Returns None if it is not one."""
    if text is None:
        return None
    return DIRECTION_KEYS.get(text.strip().lower())


def parse_command(text: str) -> Command:
    """
    Parse one line of player input.

    Examples:
        's' -> Move(LEFT), 'E' -> Move(UP), 'j d' -> Probe(RIGHT),
        'j' -> Probe(None), 'h' -> Hint(), 'dance' -> Unrecognized('dance')
    """
    words = text.strip().lower().split()
    if not words:
        return Unrecognized(text)

    key, args = words[0], words[1:]

    if key in DIRECTION_KEYS and not args:
        return Move(DIRECTION_KEYS[key])

    if key in PROBE_KEYS:
        if not args:
            return Probe()
        if len(args) == 1:
            return Probe(parse_direction(args[0]))
        return Unrecognized(text)

    if key in HINT_KEYS and not args:
        return Hint()

    return Unrecognized(text)


def parse_answer(text: str) -> Optional[int]:
    """Parse a challenge answer. Returns None if the text is not an integer."""
    try:
        return int(text.strip())
    except ValueError:
        return None
