"""Heuristic text-rule matching.

One engine, two rule sources:
  world rules  : wiki entries of category "rules" checked against chapter prose
  voice profile: a character's register and speech patterns checked against
                  the dialogue attributed to them

Rule descriptions are parsed with the template table in templates.py; prose is
split into sentences and scanned in matcher.py. Output is a suggestion list for
human review: false positives and negatives are expected.
"""

from .dialogue import DialogueLine, extract_dialogue, resolve_speaker  # noqa: F401
from .matcher import find_rule_violations, scan_text, split_sentences  # noqa: F401
from .templates import TEMPLATES, CompiledRule, compile_rule  # noqa: F401
from .voice import VoiceSettings, find_voice_deviations  # noqa: F401
