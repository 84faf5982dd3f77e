"""Core domain models.

All detectors, the engine and storage operate on these types.
Pydantic is used for validation and serialisation at every data boundary.
Field names are snake_case; camelCase keys (as sent by the authoring frontend
and the extraction collaborator) are accepted on input.
"""

from __future__ import annotations

from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

IssueKind = Literal[
    "timeline_paradox",
    "character_location_conflict",
    "orphaned_foreshadowing",
    "orphaned_payoff",
    "rule_violation",
    "voice_deviation",
]
IssueSeverity = Literal["warning", "error"]
IssueStatus = Literal["pending", "ignored", "acknowledged", "fixed"]

FactType = Literal[
    "physical",
    "knowledge",
    "location",
    "relationship",
    "temporal",
    "possession",
    "state",
]
Confidence = Literal["explicit", "inferred"]
ConflictSeverity = Literal["low", "medium", "high"]


class _Model(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Story model (read-only input to the detectors)
# ---------------------------------------------------------------------------

class PlotBeat(_Model):
    """An authored story event placed on the ordinal timeline."""

    id: str
    title: str
    timeline_position: int
    location: str | None = None
    characters_involved: list[str] = Field(default_factory=list)
    foreshadowing: list[str] = Field(default_factory=list)  # forward edges
    payoffs: list[str] = Field(default_factory=list)  # backward edges
    summary: str = ""
    detailed_description: str = ""
    user_notes: str = ""

    def free_text(self) -> str:
        return f"{self.summary} {self.detailed_description} {self.user_notes}"


class WikiEntry(_Model):
    """A worldbuilding wiki entry. Category "rules" entries are rule sources."""

    id: str
    category: str
    name: str
    description: str = ""
    tags: list[str] = Field(default_factory=list)


class VoiceDNA(_Model):
    """Measured voice fingerprint of a character's dialogue."""

    avg_sentence_length: float | None = None
    contraction_ratio: float = 0.5
    question_frequency: float = 0.3
    exclamation_frequency: float = 0.2
    prohibited_vocabulary: list[str] = Field(default_factory=list)
    unique_vocabulary: list[str] = Field(default_factory=list)
    catchphrases: list[str] = Field(default_factory=list)


class Character(_Model):
    """A story character. Only the voice profile fields matter here."""

    id: str
    name: str
    aliases: list[str] = Field(default_factory=list)
    vocabulary_level: str = ""
    speech_patterns: str = ""
    catchphrases: list[str] = Field(default_factory=list)
    voice_dna: VoiceDNA | None = None

    def names(self) -> list[str]:
        return [n for n in [self.name, *self.aliases] if n]


class Chapter(_Model):
    id: str
    number: int = 0
    title: str = ""
    content: str = ""


# ---------------------------------------------------------------------------
# Continuity facts (produced by the extraction collaborator)
# ---------------------------------------------------------------------------

class FactAssertion(_Model):
    """An atomic extracted claim about a story subject. Never mutated."""

    model_config = ConfigDict(frozen=True)

    id: str
    subject_id: str
    subject_type: str = "character"
    fact_type: FactType
    assertion: str
    quote: str = ""
    chapter_id: str = Field(
        validation_alias=AliasChoices("chapter_id", "chapterId", "assertedInChapterId"),
    )
    confidence: Confidence = "explicit"


class ContinuityConflict(_Model):
    """A contradiction between two or more facts."""

    id: str
    fact_ids: list[str]
    description: str = ""
    severity: ConflictSeverity = "medium"
    resolved: bool = False
    resolution: str | None = None
    winning_fact_id: str | None = None

    @field_validator("fact_ids")
    @classmethod
    def _at_least_two(cls, value: list[str]) -> list[str]:
        if len(value) < 2:
            raise ValueError("a conflict references at least two facts")
        return value


# ---------------------------------------------------------------------------
# Detector output
# ---------------------------------------------------------------------------

class Issue(_Model):
    """Unified result emitted by every detector."""

    id: str
    kind: IssueKind
    facet: str = ""  # sub-type, e.g. "foreshadowing" or "slang_in_formal"
    severity: IssueSeverity
    status: IssueStatus = "pending"
    entity_ids: list[str]
    description: str
    suggestion: str
    excerpt: str | None = None  # offending sentence or dialogue
    context: str | None = None


class Manuscript(_Model):
    """In-memory snapshot of everything the detectors read."""

    beats: list[PlotBeat] = Field(default_factory=list)
    wiki_entries: list[WikiEntry] = Field(default_factory=list)
    characters: list[Character] = Field(default_factory=list)
    chapters: list[Chapter] = Field(default_factory=list)
    facts: list[FactAssertion] = Field(default_factory=list)
    conflicts: list[ContinuityConflict] = Field(default_factory=list)

    def rules(self) -> list[WikiEntry]:
        return [e for e in self.wiki_entries if e.category == "rules"]
