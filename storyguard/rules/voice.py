"""Voice consistency: character voice profiles as a rule source.

For every line of dialogue whose speaker can be resolved:

  formal register  + slang tokens        → slang_in_formal
  casual register  + formal tokens       → formal_in_casual
  "stutters"       + no hesitation marks → speech_pattern_violation
  "no contractions" + contractions       → contraction_violation
  voice DNA score below threshold        → voice_dna

Unresolvable speakers and characters without a profile produce nothing.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from pydantic import BaseModel

from storyguard.issues import make_issue, text_token
from storyguard.models import Chapter, Character, Issue, VoiceDNA

from .dialogue import extract_dialogue, resolve_speaker

logger = logging.getLogger(__name__)

SLANG_PATTERNS = [
    re.compile(
        r"\b(gonna|wanna|gotta|kinda|sorta|dunno|ain't|y'all|yeah|nope|yup|nah|dude|"
        r"bro|sis|chill|lit|sick|dope|cool|awesome|whatever|stuff|basically|literally)\b",
        re.IGNORECASE,
    ),
    re.compile(r"\b(like|you know),", re.IGNORECASE),
    re.compile(r"\b(lol|omg|btw|idk|tbh|imo|fyi|asap)\b", re.IGNORECASE),
    re.compile(r"\b(super|totally|crazy|insane|massive|huge|epic|legit)\b", re.IGNORECASE),
]

FORMAL_PATTERNS = [
    re.compile(
        r"\b(furthermore|therefore|consequently|nevertheless|moreover|hence|thus|"
        r"accordingly|subsequently|hitherto|whereby|wherein|notwithstanding)\b",
        re.IGNORECASE,
    ),
    re.compile(
        r"\b(endeavor|facilitate|utilize|implement|procure|ascertain|elucidate|"
        r"substantiate|corroborate)\b",
        re.IGNORECASE,
    ),
    re.compile(r"\b(I shall|one must|it is imperative|it behooves|permit me to)\b", re.IGNORECASE),
]

CONTRACTIONS = re.compile(
    r"\b(don't|won't|can't|couldn't|wouldn't|shouldn't|isn't|aren't|wasn't|weren't|"
    r"I'm|you're|we're|they're|he's|she's|it's|that's|there's|what's|who's|how's|"
    r"I've|you've|we've|they've|I'll|you'll|we'll|they'll|I'd|you'd|we'd|they'd)\b",
    re.IGNORECASE,
)

FORMAL_REGISTERS = ("formal", "academic", "professional", "eloquent")
CASUAL_REGISTERS = ("casual", "street", "slang", "informal")
HESITATION_MARKERS = ("-", "...", "…")
NO_CONTRACTIONS = ("no contractions", "never uses contractions", "without contractions")


class VoiceSettings(BaseModel):
    context_window: int = 50
    stutter_min_length: int = 30
    dna_threshold: float = 0.7


def _find_tokens(patterns: list[re.Pattern[str]], text: str) -> list[str]:
    found: list[str] = []
    for pattern in patterns:
        found.extend(m.group(1).lower() for m in pattern.finditer(text))
    return list(dict.fromkeys(found))


def contains_slang(text: str) -> list[str]:
    return _find_tokens(SLANG_PATTERNS, text)


def contains_formal_language(text: str) -> list[str]:
    return _find_tokens(FORMAL_PATTERNS, text)


def _is_formal(level: str) -> bool:
    # "informal" contains "formal"
    return any(r in level for r in FORMAL_REGISTERS) and "informal" not in level


def _is_casual(level: str) -> bool:
    return any(r in level for r in CASUAL_REGISTERS)


def score_voice_dna(
    dialogue: str, name: str, dna: VoiceDNA
) -> tuple[float, list[str], list[str]]:
    """Score dialogue against a voice fingerprint. Returns (score, deviations, suggestions)."""
    deviations: list[str] = []
    suggestions: list[str] = []
    score = 1.0
    lower = dialogue.lower()

    sentences = [s for s in re.split(r"[.!?]+", dialogue) if s.strip()]
    avg = (
        sum(len(s.split()) for s in sentences) / len(sentences) if sentences else 0.0
    )
    if dna.avg_sentence_length:
        if abs(avg - dna.avg_sentence_length) / dna.avg_sentence_length > 0.5:
            deviations.append(
                f"Sentence length ({round(avg)} words) differs significantly from "
                f"{name}'s typical style ({round(dna.avg_sentence_length)} words)"
            )
            score -= 0.15
            suggestions.append(
                "Try breaking up sentences into shorter phrases"
                if avg > dna.avg_sentence_length
                else "Consider combining some thoughts into longer, flowing sentences"
            )

    prohibited = [w for w in dna.prohibited_vocabulary if w.lower() in lower]
    if prohibited:
        deviations.append(f'Uses words {name} would never say: "{", ".join(prohibited)}"')
        score -= 0.2 * len(prohibited)
        suggestions.append(f'Replace "{prohibited[0]}" with a word more fitting for {name}\'s voice')

    has_contractions = bool(CONTRACTIONS.search(dialogue))
    if has_contractions and dna.contraction_ratio < 0.2:
        deviations.append(f"{name} typically uses formal speech without contractions")
        score -= 0.1
        suggestions.append("Expand contractions to match formal speech pattern")
    elif not has_contractions and dna.contraction_ratio > 0.7 and len(dialogue) > 30:
        deviations.append(f"{name} typically uses casual speech with contractions")
        score -= 0.1
        suggestions.append("Add contractions for more natural, casual speech")

    if any(p.lower() in lower for p in dna.catchphrases):
        score = min(1.0, score + 0.1)
    if any(w.lower() in lower for w in dna.unique_vocabulary):
        score = min(1.0, score + 0.1)

    if "?" in dialogue and dna.question_frequency < 0.1:
        deviations.append(f"{name} rarely asks questions in dialogue")
        score -= 0.1
    if "!" in dialogue and dna.exclamation_frequency < 0.1:
        deviations.append(f"{name} rarely uses exclamations")
        score -= 0.1

    return max(0.0, min(1.0, score)), deviations, suggestions


def check_dialogue(
    dialogue: str, character: Character, settings: VoiceSettings
) -> list[tuple[str, str, str]]:
    """Voice checks for one attributed line. Returns (facet, description, suggestion)."""
    found: list[tuple[str, str, str]] = []
    level = character.vocabulary_level.lower()
    expected = character.vocabulary_level

    if _is_formal(level):
        slang = contains_slang(dialogue)
        if slang:
            found.append((
                "slang_in_formal",
                f"{character.name} speaks with a {expected or 'formal'} vocabulary, "
                f"but this line uses informal language ({', '.join(slang)}).",
                f"Replace informal language ({', '.join(slang)}) with more formal alternatives. "
                'For example: "gonna" → "going to", "yeah" → "yes", "stuff" → "items" or "matters".',
            ))
    if _is_casual(level):
        formal = contains_formal_language(dialogue)
        if formal:
            found.append((
                "formal_in_casual",
                f"{character.name} speaks with a {expected or 'casual'} vocabulary, "
                f"but this line uses formal language ({', '.join(formal)}).",
                f"The formal language ({', '.join(formal)}) seems out of character. "
                'Consider using more casual alternatives. For example: "therefore" → "so", '
                '"endeavor" → "try".',
            ))

    patterns = character.speech_patterns.lower()
    if (
        "stutter" in patterns
        and len(dialogue) > settings.stutter_min_length
        and not any(m in dialogue for m in HESITATION_MARKERS)
    ):
        found.append((
            "speech_pattern_violation",
            f"{character.name} is noted to stutter, but this dialogue shows none.",
            'Consider adding stutter markers like "I-I didn\'t mean to" '
            'or hesitation markers like "I... didn\'t mean to".',
        ))
    if any(p in patterns for p in NO_CONTRACTIONS):
        used = list(dict.fromkeys(m.group(1) for m in CONTRACTIONS.finditer(dialogue)))
        if used:
            found.append((
                "contraction_violation",
                f"{character.name} never uses contractions, but says {', '.join(used)}.",
                "Expand the contractions to match the character's speech pattern.",
            ))

    if character.voice_dna is not None:
        score, deviations, suggestions = score_voice_dna(
            dialogue, character.name, character.voice_dna
        )
        if score < settings.dna_threshold and deviations:
            found.append((
                "voice_dna",
                f"Voice match {round(score * 100)}% for {character.name}: "
                + "; ".join(deviations),
                " ".join(suggestions) or f"Rework the line to sound more like {character.name}.",
            ))
    return found


def find_voice_deviations(
    chapters: Iterable[Chapter],
    characters: Iterable[Character],
    settings: VoiceSettings | None = None,
) -> list[Issue]:
    settings = settings or VoiceSettings()
    chars = list(characters)
    if not chars:
        return []

    issues: list[Issue] = []
    for chapter in chapters:
        if not chapter.content:
            continue
        for line in extract_dialogue(chapter.content, settings.context_window):
            character = resolve_speaker(line, chars)
            if character is None:
                logger.debug("no speaker for %r in chapter %s", line.text[:30], chapter.id)
                continue
            for facet, description, suggestion in check_dialogue(line.text, character, settings):
                issues.append(make_issue(
                    "voice_deviation", "warning",
                    [character.id, chapter.id, text_token(line.text)],
                    description, suggestion,
                    facet=facet, excerpt=line.text, context=line.context,
                ))
    logger.debug("voice check: %d deviations", len(issues))
    return issues
