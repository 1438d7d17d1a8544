"""
Treasure Hunt - Game Engine

Core game state and turn logic. ALL RULES ARE HARD-CODED.
Renderers and input loops receive copies and CANNOT modify game state.

This module is the single source of truth for:
- PlayerState and the visited history
- Command dispatch (move, trap probe, distance hint)
- Cell resolution (trap, challenge, treasure, safe)
- Health bookkeeping and win/lose conditions
"""

from dataclasses import dataclass, field
from typing import Optional, Callable, Dict, Any
from enum import Enum
import copy
import logging
import random

from commands import Command, Move, Probe, Hint, Unrecognized
from layout import (
    GRID_SIZE, NUM_TRAPS, NUM_CHALLENGES, MAX_ATTEMPTS, START_POSITION,
    Direction, CellKind, Position, ChallengeSite, Layout,
    TreasureHuntError, SetupError, ProblemTableError, LayoutError,
    generate_layout,
)

logger = logging.getLogger(__name__)


# =============================================================================
# RULE CONSTANTS - THE LAWS OF THE GAME
# =============================================================================

INITIAL_HEALTH = 80
MAX_TRAP_HITS = 3

# Health cost of every accepted move, probe or hint
ACTION_COST = 1
# Extra health lost per wrong challenge answer
WRONG_ANSWER_PENALTY = 1

FAILURE_TRAP_LIMIT = 'trap_limit'
FAILURE_EXHAUSTED = 'exhausted'

# Signature of a synchronous challenge answerer: (question, attempt) -> answer
Answerer = Callable[[str, int], int]


class GameStatus(Enum):
    PLAYING = 0
    SUCCESS = 1
    FAILURE = -1


class OutcomeKind(Enum):
    """What a single command did."""
    BLOCKED = 'blocked'                      # Target cell is off the grid
    INVALID_DIRECTION = 'invalid_direction'  # Probe without a usable direction
    UNRECOGNIZED = 'unrecognized'            # Input matched no command
    MOVED_SAFE = 'moved_safe'
    HIT_TRAP = 'hit_trap'
    ENTERED_CHALLENGE = 'entered_challenge'
    FOUND_TREASURE = 'found_treasure'
    PROBED_CELL = 'probed_cell'
    DISTANCE_HINT = 'distance_hint'


class ChallengeResult(Enum):
    PENDING = 'pending'      # Waiting for answer_challenge()
    INCORRECT = 'incorrect'  # Wrong answer, retries remain
    SOLVED = 'solved'
    FAILED = 'failed'        # Health ran out before a correct answer


# =============================================================================
# STATE DATACLASSES
# =============================================================================

@dataclass
class PlayerState:
    """
    Mutable player state. Owned by GameEngine only.

    Health is clamped at zero; the failure check runs after every change.
    """

    position: Position = START_POSITION
    health: int = INITIAL_HEALTH
    trap_hits: int = 0
    status: GameStatus = GameStatus.PLAYING
    failure_reason: Optional[str] = None
    turn_number: int = 0

    def __post_init__(self):
        self._clamp_all_values()

    def _clamp_all_values(self):
        self.health = max(0, int(self.health))
        self.trap_hits = max(0, int(self.trap_hits))

    def is_terminal(self) -> bool:
        return self.status is not GameStatus.PLAYING


@dataclass(frozen=True)
class Outcome:
    """
    Result of one command plus a snapshot of the state it left behind.

    Payload fields are only set for the kinds that use them.
    """

    kind: OutcomeKind
    status: GameStatus
    health: int
    trap_hits: int
    position: Position
    failure_reason: Optional[str] = None
    target: Optional[Position] = None
    is_trap: Optional[bool] = None
    distance: Optional[int] = None
    challenge_result: Optional[ChallengeResult] = None
    question: Optional[str] = None
    wrong_answers: int = 0

    @property
    def consumed_turn(self) -> bool:
        return self.kind not in (OutcomeKind.BLOCKED, OutcomeKind.INVALID_DIRECTION,
                                 OutcomeKind.UNRECOGNIZED)

    def to_dict(self) -> Dict[str, Any]:
        """Flatten for template context."""
        return {
            'kind': self.kind.value,
            'status': self.status.name,
            'health': self.health,
            'trap_hits': self.trap_hits,
            'max_trap_hits': MAX_TRAP_HITS,
            'position': self.position.as_tuple(),
            'failure_reason': self.failure_reason,
            'target': self.target.as_tuple() if self.target else None,
            'is_trap': self.is_trap,
            'distance': self.distance,
            'challenge_result': self.challenge_result.value if self.challenge_result else None,
            'question': self.question,
            'wrong_answers': self.wrong_answers,
        }


@dataclass(frozen=True)
class VisibleState:
    """Read-only snapshot for renderers."""

    position: Position
    health: int
    trap_hits: int
    status: GameStatus
    failure_reason: Optional[str]
    turn_number: int
    visited: Dict[Position, CellKind] = field(default_factory=dict)
    grid_size: int = GRID_SIZE
    pending_question: Optional[str] = None

    def cell_at(self, pos: Position) -> CellKind:
        return self.visited.get(pos, CellKind.UNVISITED)


# =============================================================================
# GAME ENGINE CLASS
# Handles command dispatch, cell resolution and state transitions.
# =============================================================================

class GameEngine:
    """
    Main game engine. Owns the layout, player state and visited history.

    Challenges are resolved either synchronously through an answerer callable
    given at construction, or step by step through answer_challenge().
    """

    def __init__(
        self,
        layout: Layout,
        answerer: Optional[Answerer] = None,
        start: Position = START_POSITION,
        seed: Optional[int] = None
    ):
        layout.validate(start)
        self.layout = layout
        self.answerer = answerer
        self.seed = seed
        self.state = PlayerState(position=start)
        self.visited: Dict[Position, CellKind] = {start: CellKind.SAFE}
        self._pending: Optional[ChallengeSite] = None
        self._wrong_answers = 0

    # -------------------------------------------------------------------------
    # COMMAND DISPATCH
    # -------------------------------------------------------------------------

    def apply_command(self, command: Command) -> Outcome:
        """
        Execute one player command.

        Raises:
            GameOverError: If the game already ended
            ChallengePendingError: If a challenge is waiting for an answer
            InvalidActionError: If command is not an engine command
        """
        if isinstance(command, Move):
            return self.move(command.direction)
        if isinstance(command, Probe):
            return self.probe(command.direction)
        if isinstance(command, Hint):
            return self.hint()
        if isinstance(command, Unrecognized):
            self._ensure_accepting()
            return self._outcome(OutcomeKind.UNRECOGNIZED)
        raise InvalidActionError(f"Unknown command: {command!r}")

    def move(self, direction: Direction) -> Outcome:
        """Step one cell and resolve whatever is there."""
        self._ensure_accepting()

        target = self.state.position.step(direction)
        if not target.in_bounds(self.layout.grid_size):
            return self._outcome(OutcomeKind.BLOCKED, target=target)

        self.state.position = target
        self.state.turn_number += 1
        self._spend(ACTION_COST)

        payload: Dict[str, Any] = {}
        site = self.layout.challenge_at(target)

        if self.layout.is_trap(target):
            kind = OutcomeKind.HIT_TRAP
            self.state.trap_hits += 1
            self.visited[target] = CellKind.TRAP
            logger.info(f"Trap hit at {target} ({self.state.trap_hits}/{MAX_TRAP_HITS})")
            if self.state.trap_hits >= MAX_TRAP_HITS:
                self._finish(GameStatus.FAILURE, FAILURE_TRAP_LIMIT)

        elif site is not None:
            kind = OutcomeKind.ENTERED_CHALLENGE
            self.visited[target] = CellKind.CHALLENGE
            payload = self._enter_challenge(site)

        elif target == self.layout.treasure:
            kind = OutcomeKind.FOUND_TREASURE
            self._finish(GameStatus.SUCCESS)

        else:
            kind = OutcomeKind.MOVED_SAFE
            self.visited[target] = CellKind.SAFE

        self._check_exhaustion()
        return self._outcome(kind, target=target, **payload)

    def probe(self, direction: Optional[Direction]) -> Outcome:
        """Reveal only whether the neighbouring cell is a trap."""
        self._ensure_accepting()

        if direction is None:
            return self._outcome(OutcomeKind.INVALID_DIRECTION)

        target = self.state.position.step(direction)
        if not target.in_bounds(self.layout.grid_size):
            return self._outcome(OutcomeKind.BLOCKED, target=target)

        is_trap = self.layout.is_trap(target)
        self.state.turn_number += 1
        self._spend(ACTION_COST)
        self._check_exhaustion()
        return self._outcome(OutcomeKind.PROBED_CELL, target=target, is_trap=is_trap)

    def hint(self) -> Outcome:
        """Report the Manhattan distance to the treasure."""
        self._ensure_accepting()

        distance = self.state.position.distance_to(self.layout.treasure)
        self.state.turn_number += 1
        self._spend(ACTION_COST)
        self._check_exhaustion()
        return self._outcome(OutcomeKind.DISTANCE_HINT, distance=distance)

    # -------------------------------------------------------------------------
    # CHALLENGE RESOLUTION
    # -------------------------------------------------------------------------

    def answer_challenge(self, answer: int) -> Outcome:
        """
        Submit an answer to the pending challenge.

        Raises:
            GameOverError: If the game already ended
            NoChallengeError: If no challenge is waiting for an answer
        """
        if self.state.is_terminal():
            raise GameOverError(f"Game is over: {self.state.status.name.lower()}")
        if self._pending is None:
            raise NoChallengeError("No challenge is waiting for an answer")

        target = self._pending.position
        payload = self._submit_answer(answer)
        return self._outcome(OutcomeKind.ENTERED_CHALLENGE, target=target, **payload)

    def _enter_challenge(self, site: ChallengeSite) -> Dict[str, Any]:
        self._pending = site
        self._wrong_answers = 0
        question = site.problem.question
        logger.info(f"Challenge entered at {site.position}")

        if self.state.health <= 0:
            return self._fail_challenge()

        if self.answerer is None:
            return {'challenge_result': ChallengeResult.PENDING, 'question': question}

        attempt = 0
        while True:
            attempt += 1
            payload = self._submit_answer(self.answerer(question, attempt))
            if payload['challenge_result'] is not ChallengeResult.INCORRECT:
                return payload

    def _submit_answer(self, answer: int) -> Dict[str, Any]:
        site = self._pending
        question = site.problem.question

        if site.problem.check(answer):
            site.solved = True
            self._pending = None
            logger.info(f"Challenge at {site.position} solved "
                        f"after {self._wrong_answers} wrong answer(s)")
            return {
                'challenge_result': ChallengeResult.SOLVED,
                'question': question,
                'wrong_answers': self._wrong_answers,
            }

        self._wrong_answers += 1
        self._spend(WRONG_ANSWER_PENALTY)
        if self.state.health <= 0:
            return self._fail_challenge()

        return {
            'challenge_result': ChallengeResult.INCORRECT,
            'question': question,
            'wrong_answers': self._wrong_answers,
        }

    def _fail_challenge(self) -> Dict[str, Any]:
        """Health ran out mid-challenge. The site stays unsolved."""
        question = self._pending.problem.question
        self._pending = None
        self._finish(GameStatus.FAILURE, FAILURE_EXHAUSTED)
        return {
            'challenge_result': ChallengeResult.FAILED,
            'question': question,
            'wrong_answers': self._wrong_answers,
        }

    # -------------------------------------------------------------------------
    # BOOKKEEPING
    # -------------------------------------------------------------------------

    def _ensure_accepting(self):
        if self.state.is_terminal():
            raise GameOverError(f"Game is over: {self.state.status.name.lower()}")
        if self._pending is not None:
            raise ChallengePendingError(
                f"Answer the challenge at {self._pending.position} first"
            )

    def _spend(self, amount: int):
        self.state.health -= amount
        self.state._clamp_all_values()

    def _check_exhaustion(self):
        """Health check after every accepted command. Idempotent."""
        if self.state.health <= 0 and self.state.status is GameStatus.PLAYING:
            self._finish(GameStatus.FAILURE, FAILURE_EXHAUSTED)

    def _finish(self, status: GameStatus, reason: Optional[str] = None):
        if self.state.is_terminal():
            return
        self.state.status = status
        self.state.failure_reason = reason
        logger.info(f"Game over: {status.name} ({reason or 'treasure found'})")

    def _outcome(self, kind: OutcomeKind, **payload) -> Outcome:
        outcome = Outcome(
            kind=kind,
            status=self.state.status,
            health=self.state.health,
            trap_hits=self.state.trap_hits,
            position=self.state.position,
            failure_reason=self.state.failure_reason,
            **payload
        )
        logger.debug(f"Outcome: {outcome.kind.value} health={outcome.health}")
        return outcome

    # -------------------------------------------------------------------------
    # PUBLIC API
    # -------------------------------------------------------------------------

    def get_state(self) -> VisibleState:
        """Return a read-only snapshot."""
        return VisibleState(
            position=self.state.position,
            health=self.state.health,
            trap_hits=self.state.trap_hits,
            status=self.state.status,
            failure_reason=self.state.failure_reason,
            turn_number=self.state.turn_number,
            visited=dict(self.visited),
            grid_size=self.layout.grid_size,
            pending_question=self._pending.problem.question if self._pending else None,
        )

    def is_game_over(self) -> bool:
        return self.state.is_terminal()

    def is_victory(self) -> bool:
        return self.state.status is GameStatus.SUCCESS

    def get_game_over_reason(self) -> Optional[str]:
        return self.state.failure_reason

    def has_pending_challenge(self) -> bool:
        return self._pending is not None

    def reveal_layout(self) -> Layout:
        """
        Return a copy of the hidden layout once the game has ended.

        Raises:
            InvalidActionError: If the game is still in progress
        """
        if not self.state.is_terminal():
            raise InvalidActionError("The layout stays hidden until the game is over")
        return copy.deepcopy(self.layout)


# =============================================================================
# EXCEPTIONS
# =============================================================================

class GameOverError(TreasureHuntError):
    """Raised when attempting to play after game over."""
    pass


class InvalidActionError(TreasureHuntError):
    """Raised when something other than an engine command is submitted."""
    pass


class ChallengePendingError(TreasureHuntError):
    """Raised when a command arrives while a challenge awaits its answer."""
    pass


class NoChallengeError(TreasureHuntError):
    """Raised when an answer arrives with no challenge pending."""
    pass


# =============================================================================
# NEW GAME FACTORY
# =============================================================================

def new_game(
    seed: Optional[int] = None,
    problems=None,
    answerer: Optional[Answerer] = None
) -> GameEngine:
    """
    Create a new game with a freshly generated layout.

    Raises:
        SetupError: If the problem table is too small or placement fails
    """
    seed = seed if seed is not None else random.randint(0, 2**32)
    layout = generate_layout(random.Random(seed), problems)
    logger.info(f"New game (seed={seed})")
    return GameEngine(layout, answerer=answerer, seed=seed)


__all__ = [
    'GRID_SIZE', 'NUM_TRAPS', 'NUM_CHALLENGES', 'MAX_ATTEMPTS', 'START_POSITION',
    'INITIAL_HEALTH', 'MAX_TRAP_HITS', 'ACTION_COST', 'WRONG_ANSWER_PENALTY',
    'FAILURE_TRAP_LIMIT', 'FAILURE_EXHAUSTED',
    'Direction', 'CellKind', 'Position', 'ChallengeSite', 'Layout',
    'GameStatus', 'OutcomeKind', 'ChallengeResult',
    'PlayerState', 'Outcome', 'VisibleState', 'GameEngine',
    'TreasureHuntError', 'SetupError', 'ProblemTableError', 'LayoutError',
    'GameOverError', 'InvalidActionError', 'ChallengePendingError', 'NoChallengeError',
    'new_game',
]
