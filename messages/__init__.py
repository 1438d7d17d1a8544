"""
Message template system for Treasure Hunt.

Jinja2-based templates for everything the console shows the player.
"""

import os
from pathlib import Path
from typing import Dict, Any, Optional
from jinja2 import Environment, FileSystemLoader, DictLoader, ChoiceLoader, TemplateNotFound

# Optional on-disk templates that override the inline defaults
TEMPLATE_DIR = Path(os.getenv('TREASURE_HUNT_TEMPLATE_DIR', Path(__file__).parent / 'templates'))

CELL_MARKERS = {
    'player': 'P',
    'unvisited': '□',
    'safe': 'S',
    'trap': 'T',
    'challenge': 'C',
}

class MessageEngine:
    """
    Jinja2-based message template engine.

    Templates found in template_dir take precedence over DEFAULT_TEMPLATES.
    """

    def __init__(self, template_dir: Optional[Path] = None):
        self.template_dir = Path(template_dir) if template_dir else TEMPLATE_DIR

        loaders = [DictLoader(DEFAULT_TEMPLATES)]
        if self.template_dir.exists():
            loaders.insert(0, FileSystemLoader(str(self.template_dir)))

        self.env = Environment(
            loader=ChoiceLoader(loaders),
            trim_blocks=True,
            lstrip_blocks=True,
        )

        # Register custom filters
        self.env.filters['marker'] = self._format_marker
        self.env.filters['direction'] = self._format_direction

    def _format_marker(self, value) -> str:
        """Format a cell kind (or its name) as a one-character grid marker."""
        key = getattr(value, 'value', value)
        return CELL_MARKERS.get(str(key).lower(), '?')

    def _format_direction(self, value) -> str:
        """Format a Direction (or its name) as a lowercase word."""
        name = getattr(value, 'name', value)
        return str(name).lower()

    def render(self, template_name: str, context: Dict[str, Any]) -> str:
        """Render a template with context."""
        try:
            template = self.env.get_template(template_name)
        except TemplateNotFound:
            return f"[Template '{template_name}' not found]"
        return template.render(**context).strip('\n')


# =============================================================================
# INLINE DEFAULT TEMPLATES
# Used when no template file overrides them
# =============================================================================

DEFAULT_TEMPLATES = {
    'welcome.j2': '''
Welcome to the Treasure Hunt!
Find the hidden treasure on the {{ grid_size }}x{{ grid_size }} grid before your health runs out.
Every action costs 1 health. {{ max_trap_hits }} trap hits and the hunt is over.
Controls:
  S: move left
  E: move up
  D: move right
  X: move down
  J: trap probe (J <direction>, e.g. "J D")
  H: distance to the treasure
''',

    'grid.j2': '''
Current grid:
    {{ columns | join(' ') }}
{% for row in rows %}
{{ row.y }} | {{ row.cells | map('marker') | join(' ') }}
{% endfor %}
''',

    'status.j2': '''

Position: ({{ position[0] }}, {{ position[1] }})
Health: {{ health }}
Traps hit: {{ trap_hits }}/{{ max_trap_hits }}
''',

    'prompt/command.j2': 'Enter a command (S/E/D/X/J/H): ',

    'prompt/direction.j2': 'Trap probe. Enter a direction (S: left, E: up, D: right, X: down): ',

    'prompt/answer.j2': '''
{% if attempt == 1 %}
You reached a challenge cell! Solve the problem.
{% else %}
Wrong answer. You lose 1 health.
{% endif %}
Question: {{ question }}
Answer: ''',

    'prompt/answer_again.j2': '''
Question: {{ question }}
Answer: ''',

    'prompt/not_a_number.j2': 'Please answer with a whole number.',

    # Outcomes, one per OutcomeKind
    'outcomes/blocked.j2': '''
{% if command == 'probe' %}
There is no cell {% if direction %}one step {{ direction | direction }}{% else %}in that direction{% endif %}.
{% else %}
You cannot move in that direction. Choose another action.
{% endif %}
''',

    'outcomes/invalid_direction.j2': 'Invalid direction.',

    'outcomes/unrecognized.j2': 'Invalid input. Please try again.',

    'outcomes/moved_safe.j2': 'You moved safely.',

    'outcomes/hit_trap.j2': '''
You stepped on a trap! ({{ trap_hits }}/{{ max_trap_hits }})
{% if failure_reason == 'trap_limit' %}
You have hit {{ max_trap_hits }} traps. Game over.
{% endif %}
''',

    'outcomes/entered_challenge.j2': '''
{% if challenge_result == 'pending' %}
You reached a challenge cell! Solve the problem.
Question: {{ question }}
{% elif challenge_result == 'incorrect' %}
Wrong answer. You lose 1 health.
{% elif challenge_result == 'solved' %}
Correct!{% if wrong_answers %} (after {{ wrong_answers }} wrong answer{{ 's' if wrong_answers > 1 }}){% endif %}

{% elif challenge_result == 'failed' %}
{% if wrong_answers %}
Wrong answer. You lose 1 health.
{% endif %}
Your health ran out before you solved the challenge.
{% endif %}
''',

    'outcomes/found_treasure.j2': 'Congratulations! You found the treasure!',

    'outcomes/probed_cell.j2': '''
There is {{ 'a' if is_trap else 'no' }} trap {% if direction %}one step {{ direction | direction }}{% else %}in that cell{% endif %}.
''',

    'outcomes/distance_hint.j2': 'The treasure is {{ distance }} step{{ "s" if distance != 1 }} away.',

    'outcomes/exhausted.j2': 'Your health is exhausted. Game over.',

    # Endings
    'ending.j2': '''
{% if status == 'FAILURE' %}
Unfortunately, the hunt failed.
{% endif %}
Ending the game.
''',

    'reveal.j2': '''
Treasure: ({{ treasure[0] }}, {{ treasure[1] }})
Traps: {% for t in traps %}({{ t[0] }}, {{ t[1] }}){{ ", " if not loop.last }}{% endfor %}

Challenges left: {% for c in challenges %}({{ c[0] }}, {{ c[1] }}){{ ", " if not loop.last }}{% else %}none{% endfor %}

Seed: {{ seed }}
''',

    'setup_error.j2': '{{ message }}',
}


# Global message engine instance
_engine: Optional[MessageEngine] = None


def get_message_engine() -> MessageEngine:
    """Get or create the global message engine."""
    global _engine
    if _engine is None:
        _engine = MessageEngine()
    return _engine
