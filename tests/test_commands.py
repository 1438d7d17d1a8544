"""
Tests for command parsing
"""

import pytest

from commands import Hint, Move, Probe, Unrecognized, parse_answer, parse_command, parse_direction
from layout import Direction


class TestParseCommand:
    """Test raw input -> command."""

    @pytest.mark.parametrize('text,expected', [
        ('s', Move(Direction.LEFT)),
        ('E', Move(Direction.UP)),
        ('d', Move(Direction.RIGHT)),
        ('X', Move(Direction.DOWN)),
        ('  left ', Move(Direction.LEFT)),
        ('h', Hint()),
        ('HINT', Hint()),
        ('j', Probe()),
        ('j d', Probe(Direction.RIGHT)),
        ('J E', Probe(Direction.UP)),
        ('probe down', Probe(Direction.DOWN)),
        ('j q', Probe(None)),
    ])
    def test_recognized(self, text, expected):
        assert parse_command(text) == expected

    @pytest.mark.parametrize('text', ['', '   ', 'q', 'dance', 's s', 'h now', 'j d e'])
    def test_unrecognized(self, text):
        """Anything else is rejected, keeping the raw text."""
        command = parse_command(text)
        assert isinstance(command, Unrecognized)
        assert command.text == text


class TestParseHelpers:

    def test_parse_direction(self):
        assert parse_direction('S') is Direction.LEFT
        assert parse_direction('up') is Direction.UP
        assert parse_direction('z') is None
        assert parse_direction(None) is None

    @pytest.mark.parametrize('text,expected', [
        ('76', 76), (' 1789 ', 1789), ('-3', -3), ('seven', None), ('', None), ('1.5', None),
    ])
    def test_parse_answer(self, text, expected):
        assert parse_answer(text) == expected
