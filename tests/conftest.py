"""
Shared fixtures: a hand-built board so scenarios are deterministic.

    y
    3  .  .  .  .
    2  .  .  $  .        $ treasure (2, 2)
    1  .  .  C  .        C challenge (2, 1), answer 2
    0  @  .  T  .  C     T trap (2, 0), C challenge (4, 0), answer 4
       0  1  2  3  4  x
"""

import pytest

from engine import GameEngine
from layout import ChallengeSite, Layout, Position
from problems import Problem

TREASURE = Position(2, 2)
TRAP = Position(2, 0)
CHALLENGE = Position(2, 1)
FAR_CHALLENGE = Position(4, 0)

ADD_PROBLEM = Problem(question='1 + 1', answer=2)
MUL_PROBLEM = Problem(question='2 * 2', answer=4)


def build_layout() -> Layout:
    return Layout(
        treasure=TREASURE,
        traps=frozenset({TRAP, Position(5, 5), Position(6, 6), Position(7, 7), Position(0, 7)}),
        challenges=[
            ChallengeSite(position=CHALLENGE, problem=ADD_PROBLEM),
            ChallengeSite(position=FAR_CHALLENGE, problem=MUL_PROBLEM),
        ],
    )


class ScriptedAnswerer:
    """Answers challenges from a fixed list and records what it was asked."""

    def __init__(self, answers):
        self.answers = list(answers)
        self.calls = []

    def __call__(self, question, attempt):
        self.calls.append((question, attempt))
        return self.answers.pop(0)


@pytest.fixture
def layout():
    return build_layout()


@pytest.fixture
def engine(layout):
    """Engine without an answerer: challenges are answered step by step."""
    return GameEngine(layout)


@pytest.fixture
def make_engine():
    """Factory for engines with a scripted synchronous answerer."""
    def factory(answers=()):
        answerer = ScriptedAnswerer(answers)
        return GameEngine(build_layout(), answerer=answerer), answerer
    return factory
