"""Rule-template table and domain vocabularies.

A world rule is free text ("Magic requires hand gestures"). It is turned into
a CompiledRule by running every entry of TEMPLATES over the description:

    requires   "X requires Y"              keywords {X}     negations {Y}
    must_have  "X must have/include/use Y" keywords {X}     negations {Y}
    only_can   "only X can Y"              keywords {Y}     negations {X}
    prohibits  "X cannot/never/must not Y" keywords {X, Y}  forbidden (X, Y)

An auxiliary after the prohibition ("cannot be used") is skipped, so Y is "used".
Negations are terms whose absence, next to a keyword, signals a violation.
Recognised domains (magic, gestures, incantations) widen the keyword or
evidence sets with synonyms and add word-boundary regexes.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field

from storyguard.models import WikiEntry

logger = logging.getLogger(__name__)

STOPWORDS = frozenset({
    "a", "an", "the", "and", "or", "of", "to", "be", "is", "are", "their",
    "its", "his", "her", "some", "any", "by", "with", "in", "on", "for",
    "can", "must", "should", "will", "may", "always",
})

# Verbs that carry no meaning of their own after "cannot"; the next word is the action.
AUXILIARIES = frozenset({"be", "been", "being", "have", "has", "had", "do", "does", "get", "got"})


@dataclass
class Extraction:
    keywords: set[str] = field(default_factory=set)
    negations: set[str] = field(default_factory=set)
    subjects: set[str] = field(default_factory=set)
    forbidden: set[tuple[str, str]] = field(default_factory=set)

    def update(self, other: Extraction) -> None:
        self.keywords |= other.keywords
        self.negations |= other.negations
        self.subjects |= other.subjects
        self.forbidden |= other.forbidden


@dataclass(frozen=True)
class RuleTemplate:
    name: str
    pattern: re.Pattern[str]
    extract: Callable[[re.Match[str]], Extraction]

    def apply(self, description: str) -> Extraction:
        found = Extraction()
        for match in self.pattern.finditer(description):
            found.update(self.extract(match))
        return found


def stem(word: str) -> str:
    """Crude singular form so substring matching also hits plurals."""
    if len(word) > 3 and word.endswith("s") and not word.endswith("ss"):
        return word[:-1]
    return word


def _content_words(phrase: str) -> set[str]:
    return {stem(w) for w in phrase.split() if w not in STOPWORDS and len(w) > 2}


def _requirement(match: re.Match[str]) -> Extraction:
    subject = stem(match.group(1))
    if subject in STOPWORDS:
        return Extraction()
    return Extraction(
        keywords={subject},
        negations=_content_words(match.group(2)),
        subjects={subject},
    )


def _exclusive(match: re.Match[str]) -> Extraction:
    who, action = stem(match.group(1)), match.group(2)
    return Extraction(keywords={action}, negations={who}, subjects={action})


def _prohibition(match: re.Match[str]) -> Extraction:
    subject, action = stem(match.group(1)), match.group(2)
    if action in AUXILIARIES or action in STOPWORDS:
        action = match.group(3)
    if subject in STOPWORDS or not action or action in STOPWORDS:
        return Extraction()
    return Extraction(
        keywords={subject, action},
        subjects={subject},
        forbidden={(subject, action)},
    )


_OBJECT = r"(\w+(?:\s+\w+){0,2})"

TEMPLATES: list[RuleTemplate] = [
    RuleTemplate("requires", re.compile(r"\b(\w+)\s+requires?\s+" + _OBJECT), _requirement),
    RuleTemplate(
        "must_have",
        re.compile(r"\b(\w+)\s+must\s+(?:have|include|use)\s+" + _OBJECT),
        _requirement,
    ),
    RuleTemplate("only_can", re.compile(r"\bonly\s+(\w+)\s+can\s+(\w+)"), _exclusive),
    RuleTemplate(
        "prohibits",
        re.compile(r"\b(\w+)\s+(?:cannot|can't|can not|never|must\s+not)\s+(\w+)(?:\s+(\w+))?"),
        _prohibition,
    ),
]


# ---------------------------------------------------------------------------
# Domain vocabularies
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DomainVocabulary:
    name: str
    triggers: tuple[str, ...]
    keywords: tuple[str, ...] = ()
    evidence: tuple[str, ...] = ()
    action_pattern: re.Pattern[str] | None = None
    evidence_pattern: re.Pattern[str] | None = None


VOCABULARIES: list[DomainVocabulary] = [
    DomainVocabulary(
        name="magic",
        triggers=("magic", "spell", "cast"),
        keywords=("magic", "spell", "cast", "enchant", "conjure", "summon"),
        action_pattern=re.compile(
            r"\b(cast|casts|casting|conjure[sd]?|conjuring|summon(?:s|ed|ing)?|"
            r"spells?|magic|enchant\w*)\b",
            re.IGNORECASE,
        ),
    ),
    DomainVocabulary(
        name="gestures",
        triggers=("gesture",),
        evidence=("gesture", "wave", "motion", "movement", "hand"),
        evidence_pattern=re.compile(
            r"\b(gestures?|gestured|gesturing|wave[sd]?|waving|motion(?:ed|s)?|"
            r"hands?|fingers?|arms?)\b",
            re.IGNORECASE,
        ),
    ),
    DomainVocabulary(
        name="incantations",
        triggers=("incantation", "chant", "spoken word", "verbal"),
        evidence=("incant", "chant", "spoke", "whisper", "utter", "murmur"),
        evidence_pattern=re.compile(
            r"\b(incant\w*|chant\w*|spoke|speak\w*|said|whisper\w*|utter\w*|"
            r"murmur\w*|words?)\b",
            re.IGNORECASE,
        ),
    ),
]

# "without a gesture" mentions the evidence only to deny it
ABSENCE = re.compile(
    r"\bwithout\s+(?:any\s+|a\s+|an\s+|the\s+|single\s+)*\w+(?:\s+\w+)?", re.IGNORECASE
)


@dataclass(frozen=True)
class CompiledRule:
    rule: WikiEntry
    keywords: frozenset[str]
    negations: frozenset[str]
    subjects: frozenset[str]
    forbidden: frozenset[tuple[str, str]]
    action_patterns: tuple[re.Pattern[str], ...] = ()
    evidence_patterns: tuple[re.Pattern[str], ...] = ()
    domains: tuple[str, ...] = ()

    @property
    def requires_evidence(self) -> bool:
        return bool(self.negations or self.evidence_patterns)


def compile_rule(rule: WikiEntry) -> CompiledRule | None:
    """Extract keyword/negation sets from a rule. None when nothing is usable."""
    description = rule.description.lower()
    found = Extraction()
    for template in TEMPLATES:
        found.update(template.apply(description))

    found.keywords |= {w for w in rule.name.lower().split() if len(w) > 3}

    actions: list[re.Pattern[str]] = []
    evidence: list[re.Pattern[str]] = []
    domains: list[str] = []
    for vocab in VOCABULARIES:
        if not any(t in description for t in vocab.triggers):
            continue
        domains.append(vocab.name)
        found.keywords.update(vocab.keywords)
        found.negations.update(vocab.evidence)
        if vocab.action_pattern is not None:
            actions.append(vocab.action_pattern)
        if vocab.evidence_pattern is not None:
            evidence.append(vocab.evidence_pattern)

    if not found.keywords:
        logger.debug("rule %r yielded no keywords", rule.name)
        return None

    return CompiledRule(
        rule=rule,
        keywords=frozenset(found.keywords),
        negations=frozenset(found.negations),
        subjects=frozenset(found.subjects),
        forbidden=frozenset(found.forbidden),
        action_patterns=tuple(actions),
        evidence_patterns=tuple(evidence),
        domains=tuple(domains),
    )
