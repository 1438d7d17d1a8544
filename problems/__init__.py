"""
Problem system for Treasure Hunt.

The static question table guarding challenge cells.
"""

from .table import (
    Problem,
    PROBLEM_TABLE,
    get_problem_table,
    build_problem_table,
)

__all__ = [
    'Problem',
    'PROBLEM_TABLE',
    'get_problem_table',
    'build_problem_table',
]
