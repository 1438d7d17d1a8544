"""
Treasure Hunt - Layout Generation

Grid model and the random placement of treasure, traps and challenge cells.

This module is the single source of truth for:
- Position / Direction / CellKind value types
- The Layout (treasure, traps, challenge sites) and its invariants
- Seeded layout generation with bounded retries
- Setup failures (problem table too small, placement did not converge)
"""

from dataclasses import dataclass, field
from typing import Optional, List, Sequence, Iterable, Tuple, FrozenSet
from enum import Enum
import logging
import random

from problems import Problem, get_problem_table

logger = logging.getLogger(__name__)


# =============================================================================
# GRID CONSTANTS
# =============================================================================

GRID_SIZE = 8
NUM_TRAPS = 5
NUM_CHALLENGES = 8
MAX_ATTEMPTS = 1000

# Position draws allowed per item before one placement attempt gives up
DRAWS_PER_ITEM = GRID_SIZE * GRID_SIZE


# =============================================================================
# VALUE TYPES
# =============================================================================

class Direction(Enum):
    """One-step offsets. UP increases y."""
    LEFT = (-1, 0)
    RIGHT = (1, 0)
    UP = (0, 1)
    DOWN = (0, -1)

    @property
    def dx(self) -> int:
        return self.value[0]

    @property
    def dy(self) -> int:
        return self.value[1]


class CellKind(Enum):
    """Classification of a cell as recorded in the visited history."""
    UNVISITED = 'unvisited'
    SAFE = 'safe'
    TRAP = 'trap'
    CHALLENGE = 'challenge'


@dataclass(frozen=True)
class Position:
    """Grid coordinate, 0-indexed."""

    x: int
    y: int

    def step(self, direction: Direction) -> 'Position':
        """Return the neighbouring position one step in direction (may be off-grid)."""
        return Position(self.x + direction.dx, self.y + direction.dy)

    def in_bounds(self, grid_size: int = GRID_SIZE) -> bool:
        return 0 <= self.x < grid_size and 0 <= self.y < grid_size

    def distance_to(self, other: 'Position') -> int:
        """Manhattan distance."""
        return abs(self.x - other.x) + abs(self.y - other.y)

    def as_tuple(self) -> Tuple[int, int]:
        return (self.x, self.y)


START_POSITION = Position(0, 0)


@dataclass
class ChallengeSite:
    """A challenge cell bound to its problem. Solved sites behave as safe cells."""

    position: Position
    problem: Problem
    solved: bool = False


# =============================================================================
# EXCEPTIONS
# =============================================================================

class TreasureHuntError(Exception):
    """Base class for all Treasure Hunt errors."""
    pass


class SetupError(TreasureHuntError):
    """Raised when a game cannot be set up. The game never starts."""
    pass


class ProblemTableError(SetupError):
    """Raised when the problem table has fewer problems than challenge cells."""
    pass


class LayoutError(SetupError):
    """Raised when placement fails to converge or a supplied layout is invalid."""
    pass


# =============================================================================
# LAYOUT
# =============================================================================

@dataclass
class Layout:
    """
    Hidden board contents. Fixed at generation time, except for the solved
    flag on each challenge site.
    """

    treasure: Position
    traps: FrozenSet[Position]
    challenges: List[ChallengeSite] = field(default_factory=list)
    grid_size: int = GRID_SIZE

    def is_trap(self, pos: Position) -> bool:
        return pos in self.traps

    def challenge_at(self, pos: Position) -> Optional[ChallengeSite]:
        """Return the unsolved challenge site at pos, if any."""
        for site in self.challenges:
            if site.position == pos and not site.solved:
                return site
        return None

    def unsolved_challenges(self) -> List[ChallengeSite]:
        return [site for site in self.challenges if not site.solved]

    def validate(self, start: Position = START_POSITION):
        """
        Check the placement invariants.

        Raises:
            LayoutError: If any invariant is broken
        """
        cells = [self.treasure, *self.traps, *(site.position for site in self.challenges)]

        for pos in cells:
            if not pos.in_bounds(self.grid_size):
                raise LayoutError(f"{pos} lies outside the {self.grid_size}x{self.grid_size} grid")

        if len(set(cells)) != len(cells):
            raise LayoutError("Treasure, traps and challenges must not overlap")

        if start in cells:
            raise LayoutError(f"Start position {start} must be empty")

        if all_adjacent_traps(self.treasure, self.traps, self.grid_size):
            raise LayoutError(f"Every neighbour of the treasure at {self.treasure} is a trap")


# =============================================================================
# PLACEMENT HELPERS
# =============================================================================

def generate_random_position(rng: random.Random, grid_size: int = GRID_SIZE) -> Position:
    """Draw x and y independently and uniformly from [0, grid_size)."""
    return Position(rng.randrange(grid_size), rng.randrange(grid_size))


def adjacent_positions(pos: Position, grid_size: int = GRID_SIZE) -> List[Position]:
    """Orthogonal neighbours of pos that lie on the grid."""
    neighbours = (pos.step(direction) for direction in Direction)
    return [n for n in neighbours if n.in_bounds(grid_size)]


def all_adjacent_traps(treasure: Position, traps: Iterable[Position],
                       grid_size: int = GRID_SIZE) -> bool:
    """True if every on-grid neighbour of the treasure is a trap."""
    trap_set = set(traps)
    return all(n in trap_set for n in adjacent_positions(treasure, grid_size))


def _draw_distinct(rng: random.Random, count: int, excluded: Iterable[Position],
                   grid_size: int) -> Optional[List[Position]]:
    """
    Draw count distinct positions avoiding excluded.

    Returns None if the draw budget runs out before enough positions are found.
    """
    taken = set(excluded)
    drawn: List[Position] = []
    for _ in range(count * DRAWS_PER_ITEM):
        if len(drawn) == count:
            break
        pos = generate_random_position(rng, grid_size)
        if pos not in taken:
            taken.add(pos)
            drawn.append(pos)
    return drawn if len(drawn) == count else None


def place_treasure_and_traps(
    rng: random.Random,
    start: Position = START_POSITION,
    grid_size: int = GRID_SIZE,
    num_traps: int = NUM_TRAPS,
    max_attempts: int = MAX_ATTEMPTS
) -> Tuple[Position, FrozenSet[Position]]:
    """
    Place the treasure and the traps so the treasure is never boxed in.

    Raises:
        LayoutError: If no valid placement is found within max_attempts
    """
    for attempt in range(1, max_attempts + 1):
        treasure = generate_random_position(rng, grid_size)
        if treasure == start:
            continue

        traps = _draw_distinct(rng, num_traps, (treasure, start), grid_size)
        if traps is None:
            logger.debug(f"Trap draw gave up (attempt {attempt}/{max_attempts})")
            continue

        if not all_adjacent_traps(treasure, traps, grid_size):
            logger.debug(f"Treasure and traps placed after {attempt} attempt(s)")
            return treasure, frozenset(traps)

    logger.error(f"Treasure and trap placement failed after {max_attempts} attempts")
    raise LayoutError("Failed to place the treasure and traps. Please run again.")


def place_challenges(
    rng: random.Random,
    reserved: Iterable[Position],
    grid_size: int = GRID_SIZE,
    num_challenges: int = NUM_CHALLENGES,
    max_attempts: int = MAX_ATTEMPTS
) -> List[Position]:
    """
    Place challenge cells away from every reserved position.

    Raises:
        LayoutError: If no valid placement is found within max_attempts
    """
    reserved = list(reserved)
    for attempt in range(1, max_attempts + 1):
        challenges = _draw_distinct(rng, num_challenges, reserved, grid_size)
        if challenges is not None:
            logger.debug(f"Challenges placed after {attempt} attempt(s)")
            return challenges

    logger.error(f"Challenge placement failed after {max_attempts} attempts")
    raise LayoutError("Failed to place the challenge cells. Please run again.")


def assign_problems(rng: random.Random, problems: Sequence[Problem],
                    count: int = NUM_CHALLENGES) -> List[Problem]:
    """
    Pick count problems without replacement.

    Raises:
        ProblemTableError: If the table is too small
    """
    if len(problems) < count:
        raise ProblemTableError(
            f"Not enough problems: need {count}, the table has {len(problems)}"
        )
    return rng.sample(list(problems), count)


# =============================================================================
# LAYOUT FACTORY
# =============================================================================

def generate_layout(
    rng: Optional[random.Random] = None,
    problems: Optional[Sequence[Problem]] = None,
    start: Position = START_POSITION,
    max_attempts: int = MAX_ATTEMPTS
) -> Layout:
    """
    Generate a complete layout.

    The problem table is checked first, so a short table fails before any
    position is drawn.

    Raises:
        ProblemTableError: If the problem table is too small
        LayoutError: If placement does not converge
    """
    rng = rng or random.Random()
    problems = get_problem_table() if problems is None else problems

    if len(problems) < NUM_CHALLENGES:
        logger.error(f"Problem table too small ({len(problems)} < {NUM_CHALLENGES})")
        raise ProblemTableError(
            f"Not enough problems: need {NUM_CHALLENGES}, the table has {len(problems)}"
        )

    treasure, traps = place_treasure_and_traps(rng, start=start, max_attempts=max_attempts)
    positions = place_challenges(rng, [treasure, start, *traps], max_attempts=max_attempts)
    selected = assign_problems(rng, problems)

    layout = Layout(
        treasure=treasure,
        traps=traps,
        challenges=[ChallengeSite(position=pos, problem=problem)
                    for pos, problem in zip(positions, selected)],
    )
    logger.info("Layout generated")
    return layout
