"""
Narrator for Treasure Hunt.

Turns engine snapshots and outcomes into display text through the
message templates. Reads state only; never calls a state-changing
engine method.
"""

from typing import Dict, Any, Optional, List

from commands import Command, Probe
from engine import (
    MAX_TRAP_HITS, FAILURE_EXHAUSTED,
    Position, Layout, Outcome, OutcomeKind, ChallengeResult, VisibleState,
)
from messages import MessageEngine, get_message_engine


class Narrator:
    """
    Central presentation coordinator.

    Bridges engine snapshots → templates → text.
    """

    def __init__(self, messages: Optional[MessageEngine] = None):
        self.messages = messages or get_message_engine()

    def opening(self, grid_size: int) -> str:
        """Welcome text and controls."""
        return self.messages.render('welcome.j2', {
            'grid_size': grid_size,
            'max_trap_hits': MAX_TRAP_HITS,
        })

    def render_grid(self, state: VisibleState) -> str:
        """Draw the visited history with the player marker on top."""
        return self.messages.render('grid.j2', {
            'columns': list(range(state.grid_size)),
            'rows': build_grid_rows(state),
        })

    def render_status(self, state: VisibleState) -> str:
        return self.messages.render('status.j2', {
            'position': state.position.as_tuple(),
            'health': state.health,
            'trap_hits': state.trap_hits,
            'max_trap_hits': MAX_TRAP_HITS,
        })

    def describe_outcome(self, outcome: Outcome, command: Optional[Command] = None) -> str:
        """Describe what a command did, including a health-exhaustion notice."""
        context = {
            **outcome.to_dict(),
            'command': 'probe' if isinstance(command, Probe) else 'move',
            'direction': getattr(command, 'direction', None),
        }
        lines = [self.messages.render(f'outcomes/{outcome.kind.value}.j2', context)]

        if outcome.failure_reason == FAILURE_EXHAUSTED and not _failed_challenge(outcome):
            lines.append(self.messages.render('outcomes/exhausted.j2', context))

        return '\n'.join(line for line in lines if line)

    def command_prompt(self) -> str:
        return self.messages.render('prompt/command.j2', {})

    def direction_prompt(self) -> str:
        return self.messages.render('prompt/direction.j2', {})

    def answer_prompt(self, question: str, attempt: int) -> str:
        return self.messages.render('prompt/answer.j2', {
            'question': question,
            'attempt': attempt,
        })

    def answer_again(self, question: str) -> str:
        return self.messages.render('prompt/answer_again.j2', {'question': question})

    def not_a_number(self) -> str:
        return self.messages.render('prompt/not_a_number.j2', {})

    def ending(self, state: VisibleState) -> str:
        return self.messages.render('ending.j2', {'status': state.status.name})

    def reveal(self, layout: Layout, seed: Optional[int] = None) -> str:
        """List where everything was hidden."""
        return self.messages.render('reveal.j2', {
            'treasure': layout.treasure.as_tuple(),
            'traps': sorted(p.as_tuple() for p in layout.traps),
            'challenges': sorted(s.position.as_tuple() for s in layout.unsolved_challenges()),
            'seed': seed,
        })

    def setup_error(self, error: Exception) -> str:
        return self.messages.render('setup_error.j2', {'message': str(error)})


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def build_grid_rows(state: VisibleState) -> List[Dict[str, Any]]:
    """
    Grid rows for display, y = 0 first.

    Each cell is a CellKind value name, or 'player' for the player's cell.
    """
    rows = []
    for y in range(state.grid_size):
        cells = []
        for x in range(state.grid_size):
            pos = Position(x, y)
            if pos == state.position:
                cells.append('player')
            else:
                cells.append(state.cell_at(pos).value)
        rows.append({'y': y, 'cells': cells})
    return rows


def _failed_challenge(outcome: Outcome) -> bool:
    return (outcome.kind is OutcomeKind.ENTERED_CHALLENGE
            and outcome.challenge_result is ChallengeResult.FAILED)
