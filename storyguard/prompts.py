"""Handlebars prompts for the collaborator calls."""

from collections.abc import Callable
from typing import Any

import pybars

from storyguard.models import Chapter, Character, FactAssertion, Issue

_compiler = pybars.Compiler()
_cache: dict[str, Callable] = {}


class PromptError(Exception):
    """Raised when a Handlebars template fails to compile or render."""


def _helper_take(this, options, items, count):
    """{{#take array N}}...{{/take}}: iterate over the first N items."""
    result = []
    for item in list(items)[:int(count)]:
        result.extend(options["fn"](item))
    return result


def _helper_join(this, items, sep=", "):
    """{{join array ", "}}: inline list."""
    return sep.join(str(i) for i in items)


_HELPERS: dict[str, Callable] = {
    "take": _helper_take,
    "join": _helper_join,
}


FACT_EXTRACTION_TEMPLATE = """\
You are a continuity editor. Extract atomic facts from the chapter below and
report contradictions with the facts already known.

Chapter {{chapter.number}}: {{{chapter.title}}} (id: {{chapter.id}})
---
{{{chapter.content}}}
---
{{#if known_facts}}
Known facts:
{{#take known_facts max_known}}
- [{{id}}] {{subject_id}} ({{fact_type}}): {{{assertion}}}
{{/take}}
{{/if}}
{{#if characters}}
Characters: {{{join characters}}}
{{/if}}

Answer with JSON only:
{"facts": [{"id", "subjectId", "subjectType", "factType", "assertion", "quote",
"chapterId", "confidence"}], "conflicts": [{"id", "factIds", "description", "severity"}]}
factType is one of physical, knowledge, location, relationship, temporal,
possession, state. confidence is explicit or inferred. severity is low, medium or high.
"""

VOICE_FIX_TEMPLATE = """\
Rewrite one line of dialogue so it sounds like {{{name}}}.
{{#if vocabulary_level}}Vocabulary: {{{vocabulary_level}}}
{{/if}}{{#if speech_patterns}}Speech patterns: {{{speech_patterns}}}
{{/if}}{{#if catchphrases}}Catchphrases: {{{join catchphrases}}}
{{/if}}
Problem: {{{problem}}}
Original: "{{{dialogue}}}"

Answer with JSON only: {"fixedDialogue": "..."}
"""


def render_prompt(template_str: str, context: dict[str, Any]) -> str:
    """Compile and render a Handlebars template. Compiled templates are cached."""
    try:
        compiled = _cache.get(template_str)
        if compiled is None:
            compiled = _compiler.compile(template_str)
            _cache[template_str] = compiled
        return str(compiled(context, helpers=_HELPERS))
    except Exception as e:
        raise PromptError(f"Template error: {e}") from e


def fact_extraction_prompt(
    chapter: Chapter,
    known_facts: list[FactAssertion],
    characters: list[Character],
    max_known: int = 200,
) -> str:
    return render_prompt(FACT_EXTRACTION_TEMPLATE, {
        "chapter": chapter.model_dump(),
        "known_facts": [f.model_dump() for f in known_facts],
        "max_known": max_known,
        "characters": [c.name for c in characters],
    })


def voice_fix_prompt(character: Character, issue: Issue) -> str:
    return render_prompt(VOICE_FIX_TEMPLATE, {
        "name": character.name,
        "vocabulary_level": character.vocabulary_level,
        "speech_patterns": character.speech_patterns,
        "catchphrases": character.catchphrases,
        "problem": issue.description,
        "dialogue": issue.excerpt or "",
    })
