"""
Problem Table - Treasure Hunt

Questions guarding the challenge cells.
Each problem has a single integer answer; the engine only compares integers.
"""

from typing import Any, Dict, List, Optional
from dataclasses import dataclass


@dataclass(frozen=True)
class Problem:
    """A trivia or puzzle question with an integer answer."""

    question: str
    answer: int
    category: str = 'math'

    def check(self, candidate: int) -> bool:
        """Return True if the candidate answer is correct."""
        return int(candidate) == self.answer


# =============================================================================
# PROBLEM TABLE
# =============================================================================

PROBLEM_TABLE: List[Problem] = [

    # -------------------------------------------------------------------------
    # OLYMPIAD-STYLE MATH
    # -------------------------------------------------------------------------

    Problem(
        question=(
            'A 9x9 grid has the integer i*j written in the cell on row i, column j. '
            'Choosing n distinct cells, the sum of the chosen numbers is a perfect cube. '
            'What is the largest possible n?'
        ),
        answer=76,
    ),
    Problem(
        question=(
            'A, B and C walk around a pond at constant speeds, taking 3, 5 and 7 minutes '
            'per lap. They start together from the same point in the same direction. '
            'After x minutes all three meet for the first time at a point other than the '
            'start. Writing x = a/b with a and b coprime, what is a+b?'
        ),
        answer=107,
    ),
    Problem(
        question='Find the sum of all positive integers n for which the n-th smallest prime is 2n-1.',
        answer=9,
    ),
    Problem(
        question=(
            'In triangle ABC, let I be the excenter opposite A. '
            'If angle BAC is 6 degrees, what is angle BIC in degrees?'
        ),
        answer=87,
    ),
    Problem(
        question='Positive reals a, b, c, d satisfy ab=10, bc=20, cd=30. What is ad?',
        answer=15,
    ),
    Problem(
        question=(
            'A rectangle has perimeter 8*sqrt(6) and area 10. '
            'What is the square of the length of its diagonal?'
        ),
        answer=76,
    ),

    # -------------------------------------------------------------------------
    # HISTORY
    # -------------------------------------------------------------------------

    Problem(
        question='In which year did the French Revolution begin?',
        answer=1789,
        category='history',
    ),
    Problem(
        question='In which year did the Tokugawa shogunate return power to the Emperor (Taisei Hokan)?',
        answer=1867,
        category='history',
    ),
]


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def get_problem_table() -> List[Problem]:
    """Return a copy of the default problem table."""
    return list(PROBLEM_TABLE)


def _parse_answer(value: Any) -> Optional[int]:
    """Return value as an integer answer, or None if it is not a whole number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def build_problem_table(rows: List[Dict[str, Any]]) -> List[Problem]:
    """
    Build a problem table from plain dictionaries.

    Each row needs 'question' and 'answer' keys; 'category' is optional.
    Answers must be integers or strings holding one; floats and booleans
    are rejected rather than truncated.

    Raises:
        ValueError: If a row is not an object, is missing a key, or its
            answer is not an integer
    """
    table = []
    for index, row in enumerate(rows):
        if not isinstance(row, dict):
            raise ValueError(f"Problem row {index} must be an object, got {type(row).__name__}")

        for key in ('question', 'answer'):
            if key not in row:
                raise ValueError(f"Problem row {index} is missing '{key}'")

        answer = _parse_answer(row['answer'])
        if answer is None:
            raise ValueError(f"Problem row {index} has a non-integer answer: {row['answer']!r}")

        table.append(Problem(
            question=str(row['question']),
            answer=answer,
            category=str(row.get('category', 'math')),
        ))
    return table
