"""
Treasure Hunt - Console Entry Point

Line-based input loop around the game engine. All rules live in engine.py;
this module only reads input, dispatches commands and prints text.
"""

from typing import Callable, List, Optional
import argparse
import json
import logging
import os
import sys

from commands import Probe, parse_answer, parse_command, parse_direction
from engine import GameEngine, SetupError, new_game
from messages import MessageEngine
from narrator import Narrator
from problems import build_problem_table

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

CLI_CONFIG = {
    'log_level': os.getenv('TREASURE_HUNT_LOG_LEVEL', 'WARNING'),
    'log_format': '%(levelname)s %(name)s: %(message)s',
}

LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']

EXIT_OK = 0
EXIT_SETUP_FAILED = 1

InputFn = Callable[[str], str]
OutputFn = Callable[[str], None]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='treasure-hunt',
        description='Find the hidden treasure on an 8x8 grid before your health runs out.',
    )
    parser.add_argument('--seed', type=int, default=None,
                        help='seed for a reproducible layout')
    parser.add_argument('--problems', default=None,
                        help='JSON file with a list of {"question", "answer"} objects')
    parser.add_argument('--templates', default=None,
                        help='directory of .j2 templates overriding the built-in messages')
    parser.add_argument('--reveal', action='store_true',
                        help='show where everything was hidden when the game ends')
    parser.add_argument('--log-level', type=str.upper, choices=LOG_LEVELS,
                        default=CLI_CONFIG['log_level'].upper(),
                        help='logging level (default: %(default)s)')
    return parser


def load_problems(path: str):
    """
    Load a problem table from a JSON file.

    Raises:
        ValueError: If the file is unreadable or malformed
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            rows = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ValueError(f"Cannot read problem table {path}: {e}") from e

    if not isinstance(rows, list):
        raise ValueError(f"Problem table {path} must contain a JSON list")
    return build_problem_table(rows)


def make_answerer(narrator: Narrator, input_fn: InputFn, output: OutputFn):
    """Build the synchronous challenge answerer. Re-asks until the input is an integer."""

    def answerer(question: str, attempt: int) -> int:
        prompt = narrator.answer_prompt(question, attempt)
        while True:
            answer = parse_answer(input_fn(prompt))
            if answer is not None:
                return answer
            output(narrator.not_a_number())
            prompt = narrator.answer_again(question)

    return answerer


# =============================================================================
# GAME LOOP
# =============================================================================

def play(engine: GameEngine, narrator: Narrator, input_fn: InputFn, output: OutputFn,
         reveal: bool = False) -> int:
    """Drive one playthrough until a terminal status or end of input."""
    output(narrator.opening(engine.layout.grid_size))
    output(narrator.render_grid(engine.get_state()))

    try:
        while not engine.is_game_over():
            output(narrator.render_status(engine.get_state()))
            line = input_fn(narrator.command_prompt())
            command = parse_command(line)

            # A bare probe key asks for the direction separately
            if isinstance(command, Probe) and len(line.split()) == 1:
                command = Probe(parse_direction(input_fn(narrator.direction_prompt())))

            outcome = engine.apply_command(command)
            output(narrator.describe_outcome(outcome, command))
            if outcome.consumed_turn:
                output(narrator.render_grid(engine.get_state()))
    except EOFError:
        logger.info("Input closed before the game ended")

    state = engine.get_state()
    output(narrator.ending(state))
    output(narrator.render_grid(state))
    if reveal and engine.is_game_over():
        output(narrator.reveal(engine.reveal_layout(), engine.seed))
    return EXIT_OK


def main(argv: Optional[List[str]] = None, input_fn: InputFn = input,
         output: OutputFn = print) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    # argparse does not check defaults against choices
    if args.log_level not in LOG_LEVELS:
        parser.error(f"unknown log level {args.log_level!r} (choose from {', '.join(LOG_LEVELS)})")
    logging.basicConfig(level=args.log_level, format=CLI_CONFIG['log_format'])

    narrator = Narrator(MessageEngine(args.templates) if args.templates else None)

    try:
        problems = load_problems(args.problems) if args.problems else None
        engine = new_game(
            seed=args.seed,
            problems=problems,
            answerer=make_answerer(narrator, input_fn, output),
        )
    except (SetupError, ValueError) as e:
        logger.error(f"Setup failed: {e}")
        output(narrator.setup_error(e))
        return EXIT_SETUP_FAILED

    return play(engine, narrator, input_fn, output, reveal=args.reveal)


if __name__ == '__main__':
    sys.exit(main())
