"""Tests for collaborator output parsing and the extraction/voice-fix calls."""

import json

from storyguard.extraction import (
    extract_continuity,
    parse_extraction,
    parse_json_output,
    parse_voice_fix,
    suggest_voice_fix,
)
from storyguard.issues import make_issue
from storyguard.llm import EchoLLM
from storyguard.models import Chapter, Character, FactAssertion


class _ScriptedLLM:
    """Returns a fixed answer and records what it was asked."""

    def __init__(self, answer: str) -> None:
        self.answer = answer
        self.calls: list[tuple[str, str]] = []

    async def __call__(self, stage: str, prompt: str) -> str:
        self.calls.append((stage, prompt))
        return self.answer


CHAPTER = Chapter(id="ch2", number=2, title="Ash", content="Mara's green eyes flashed.")
KNOWN = [FactAssertion(id="f1", subject_id="mara", fact_type="physical",
                       assertion="Mara has grey eyes", chapter_id="ch1")]

ANSWER = {
    "facts": [
        {"id": "f2", "subjectId": "mara", "factType": "physical",
         "assertion": "Mara has green eyes", "quote": "green eyes flashed"},
        {"id": "bad", "subjectId": "mara", "factType": "mood", "assertion": "?"},
    ],
    "conflicts": [
        {"id": "k1", "factIds": ["f1", "f2"], "description": "eye colour", "severity": "high"},
        {"id": "k2", "factIds": ["f2"]},
    ],
}


# ── parse_json_output ────────────────────────────────────────


class TestParseJsonOutput:
    def test_plain(self) -> None:
        assert parse_json_output('{"a": 1}') == {"a": 1}

    def test_fenced(self) -> None:
        assert parse_json_output('```json\n{"a": 1}\n```') == {"a": 1}

    def test_wrapped_in_prose(self) -> None:
        assert parse_json_output('Sure! Here it is: {"a": [1, 2]} Hope that helps.') == {"a": [1, 2]}

    def test_garbage(self) -> None:
        assert parse_json_output("I could not find any facts.") is None


# ── parse_extraction ─────────────────────────────────────────


class TestParseExtraction:
    def test_valid_items_kept_invalid_skipped(self) -> None:
        result = parse_extraction(json.dumps(ANSWER), "ch2")
        assert result.parsed
        assert [f.id for f in result.facts] == ["f2"]
        assert result.facts[0].chapter_id == "ch2"
        assert [c.id for c in result.conflicts] == ["k1"]
        assert result.conflicts[0].severity == "high"

    def test_explicit_chapter_id_wins(self) -> None:
        answer = {"facts": [{"id": "f", "subjectId": "s", "factType": "state",
                             "assertion": "asleep", "chapterId": "ch9"}]}
        assert parse_extraction(json.dumps(answer), "ch2").facts[0].chapter_id == "ch9"

    def test_raw_text_fallback(self) -> None:
        result = parse_extraction("Mara's eyes changed colour.", "ch2")
        assert not result.parsed
        assert result.facts == [] and result.conflicts == []
        assert result.raw_text == "Mara's eyes changed colour."

    def test_non_object_json(self) -> None:
        assert not parse_extraction("[1, 2]", "ch2").parsed


# ── collaborator calls ───────────────────────────────────────


async def test_extract_continuity() -> None:
    llm = _ScriptedLLM(json.dumps(ANSWER))
    result = await extract_continuity(llm, CHAPTER, KNOWN, [Character(id="mara", name="Mara")])
    assert [f.id for f in result.facts] == ["f2"]
    [(stage, prompt)] = llm.calls
    assert stage == "fact_extractor"
    assert "Mara's green eyes flashed." in prompt
    assert "[f1] mara (physical): Mara has grey eyes" in prompt


async def test_extract_continuity_with_echo() -> None:
    result = await extract_continuity(EchoLLM(), CHAPTER, [])
    assert not result.parsed
    assert "Mara's green eyes flashed." in result.raw_text


class TestVoiceFix:
    ISSUE = make_issue(
        "voice_deviation", "warning", ["mara", "ch1", "t:abc"],
        "Mara speaks formally, but this line uses slang.", "Use formal words.",
        facet="slang_in_formal", excerpt="Yeah, gonna go.",
    )
    MARA = Character(id="mara", name="Mara", vocabulary_level="formal")

    def test_parse_json(self) -> None:
        assert parse_voice_fix('{"fixedDialogue": "Indeed, I shall go."}') == "Indeed, I shall go."

    def test_parse_quoted(self) -> None:
        assert parse_voice_fix('Try: "Indeed, I shall go." instead.') == "Indeed, I shall go."

    def test_parse_raw(self) -> None:
        assert parse_voice_fix("  Indeed, I shall go.  ") == "Indeed, I shall go."

    async def test_suggest_voice_fix(self) -> None:
        llm = _ScriptedLLM('{"fixedDialogue": "Yes, I shall go."}')
        assert await suggest_voice_fix(llm, self.MARA, self.ISSUE) == "Yes, I shall go."
        [(stage, prompt)] = llm.calls
        assert stage == "voice_fixer"
        assert 'Original: "Yeah, gonna go."' in prompt
        assert "Vocabulary: formal" in prompt
