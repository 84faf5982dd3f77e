"""Collaborator calls and tolerant parsing of their output.

The collaborator answers with JSON when it behaves and with prose when it
doesn't. A parse failure is never an error: the raw text is kept as the
deliverable and the structured part comes back empty.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from storyguard.llm import LLM
from storyguard.models import (
    Chapter,
    Character,
    ContinuityConflict,
    FactAssertion,
    Issue,
)
from storyguard.prompts import fact_extraction_prompt, voice_fix_prompt

logger = logging.getLogger(__name__)

_QUOTED = re.compile(r"[\"“]([^\"“”]+)[\"”]")


def parse_json_output(text: str) -> Any | None:
    """Parse JSON from collaborator output, stripping markdown fences.

    Falls back to the outermost {...} block when the answer wraps JSON in
    prose. Returns None when nothing parses.
    """
    cleaned = text.strip()
    if cleaned.startswith("```"):
        lines = cleaned.split("\n")
        lines = [l for l in lines[1:] if not l.strip().startswith("```")]
        cleaned = "\n".join(lines)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if 0 <= start < end:
            try:
                return json.loads(cleaned[start:end + 1])
            except json.JSONDecodeError:
                pass
        logger.warning(f"Collaborator output is not valid JSON: {e}")
        return None


class ExtractionResult(BaseModel):
    facts: list[FactAssertion] = Field(default_factory=list)
    conflicts: list[ContinuityConflict] = Field(default_factory=list)
    raw_text: str = ""
    parsed: bool = False


def _validate_items(model: type[BaseModel], items: Any, label: str) -> list:
    out = []
    if not isinstance(items, list):
        return out
    for item in items:
        try:
            out.append(model.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Skipping invalid {label} from collaborator: {e.error_count()} errors")
    return out


def parse_extraction(text: str, chapter_id: str) -> ExtractionResult:
    data = parse_json_output(text)
    if not isinstance(data, dict):
        return ExtractionResult(raw_text=text)

    raw_facts = data.get("facts", [])
    if isinstance(raw_facts, list):
        # chapter id is implied by the call
        raw_facts = [
            {"chapterId": chapter_id, **f} if isinstance(f, dict) else f for f in raw_facts
        ]
    return ExtractionResult(
        facts=_validate_items(FactAssertion, raw_facts, "fact"),
        conflicts=_validate_items(ContinuityConflict, data.get("conflicts", []), "conflict"),
        raw_text=text,
        parsed=True,
    )


async def extract_continuity(
    llm: LLM,
    chapter: Chapter,
    known_facts: list[FactAssertion],
    characters: list[Character] | None = None,
) -> ExtractionResult:
    """Ask the collaborator for facts in a chapter and conflicts with known facts."""
    prompt = fact_extraction_prompt(chapter, known_facts, characters or [])
    text = await llm("fact_extractor", prompt)
    result = parse_extraction(text, chapter.id)
    logger.info(
        "extracted %d facts, %d conflicts from chapter %s",
        len(result.facts), len(result.conflicts), chapter.id,
    )
    return result


def parse_voice_fix(text: str) -> str:
    data = parse_json_output(text)
    if isinstance(data, dict) and isinstance(data.get("fixedDialogue"), str):
        return data["fixedDialogue"]
    match = _QUOTED.search(text)
    if match:
        return match.group(1)
    return text.strip()


async def suggest_voice_fix(llm: LLM, character: Character, issue: Issue) -> str:
    """Ask the collaborator to rewrite the dialogue behind a voice_deviation issue."""
    text = await llm("voice_fixer", voice_fix_prompt(character, issue))
    return parse_voice_fix(text)
