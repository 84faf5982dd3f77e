"""Sentence scanner shared by the rule instantiations, and the world-rule check."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from storyguard.issues import make_issue, text_token
from storyguard.models import Chapter, Issue, WikiEntry

from .templates import ABSENCE, CompiledRule, compile_rule

logger = logging.getLogger(__name__)

SENTENCE_END = re.compile(r"[.!?]+")


def split_sentences(text: str) -> list[str]:
    parts = (s.strip().strip("\"“”").strip() for s in SENTENCE_END.split(text))
    return [s for s in parts if s]


def _prefix(term: str) -> re.Pattern[str]:
    return re.compile(r"\b" + re.escape(term), re.IGNORECASE)


def sentence_violates(sentence: str, rule: CompiledRule) -> bool:
    """True when a single sentence looks like it breaks the rule."""
    lower = sentence.lower()
    if not any(kw in lower for kw in rule.keywords):
        return False

    if rule.requires_evidence:
        if rule.action_patterns:
            in_domain = any(p.search(sentence) for p in rule.action_patterns)
        else:
            in_domain = any(s in lower for s in rule.subjects)
        if in_domain:
            affirmed = ABSENCE.sub(" ", sentence)
            affirmed_lower = affirmed.lower()
            has_evidence = (
                any(n in affirmed_lower for n in rule.negations)
                or any(p.search(affirmed) for p in rule.evidence_patterns)
            )
            if not has_evidence:
                return True

    for subject, action in rule.forbidden:
        if _prefix(subject).search(sentence) and _prefix(action).search(sentence):
            return True
    return False


def scan_text(text: str, rule: CompiledRule) -> list[str]:
    """Return every sentence of text that violates the rule, in order."""
    return [s for s in split_sentences(text) if sentence_violates(s, rule)]


def _reason(rule: CompiledRule) -> str:
    entry = rule.rule
    if rule.action_patterns and rule.evidence_patterns:
        return (
            f"This passage describes {rule.domains[0]} being used but doesn't "
            f'mention what the rule requires. Rule: "{entry.name}"'
        )
    return f'This passage may conflict with the rule "{entry.name}": {entry.description}'


def find_rule_violations(
    chapters: Iterable[Chapter], wiki_entries: Iterable[WikiEntry]
) -> list[Issue]:
    """Check chapter prose against every wiki entry of category "rules"."""
    compiled = [c for c in (compile_rule(e) for e in wiki_entries if e.category == "rules") if c]
    if not compiled:
        return []

    issues: list[Issue] = []
    for chapter in chapters:
        if not chapter.content:
            continue
        for rule in compiled:
            for sentence in scan_text(chapter.content, rule):
                issues.append(make_issue(
                    "rule_violation", "warning",
                    [rule.rule.id, chapter.id, text_token(sentence)],
                    _reason(rule),
                    f'Revise the passage to respect "{rule.rule.name}" '
                    f"({rule.rule.description}), or update the rule if the world has changed.",
                    excerpt=sentence,
                ))
    logger.debug("rule check: %d rules, %d violations", len(compiled), len(issues))
    return issues
