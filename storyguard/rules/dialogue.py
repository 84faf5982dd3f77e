"""Dialogue extraction and speaker resolution.

Recognised shapes:
  Name said, "Dialogue."       attribution before the quote
  "Dialogue," Name said.       attribution after the quote
  "Dialogue."                  unattributed

Each line carries a context window of surrounding prose. When attribution is
missing or names nobody we know, the speaker is the character whose name or
alias sits closest to the quote inside that window.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from storyguard.models import Character

SPEECH_VERBS = (
    "said|replied|asked|whispered|shouted|muttered|exclaimed|responded|answered|"
    "stated|declared|remarked|continued|added|noted|observed|suggested|insisted|"
    "demanded|pleaded|begged|cried|screamed|murmured|mumbled|growled|hissed|"
    "sighed|laughed|chuckled|snorted|scoffed|sneered|snarled|barked|snapped|"
    "roared|bellowed|boomed|thundered|called|yelled"
)

QUOTED = re.compile(
    r"(?:\b([A-Z][a-z]+)\s+(?i:" + SPEECH_VERBS + r"),?:?\s+)?"
    r"[\"“]([^\"“”]+)[\"”]"
)
# A verb followed by another quote introduces that quote instead.
TRAILING_ATTRIBUTION = re.compile(
    r"\s*,?\s*([A-Z][a-z]+)\s+(?i:" + SPEECH_VERBS + r")\b(?!\s*[,:]?\s*[\"“])"
)


@dataclass(frozen=True)
class DialogueLine:
    text: str
    speaker: str | None  # attributed name as written, if any
    context: str
    quote_start: int  # offsets of the quoted span inside context
    quote_end: int


def extract_dialogue(text: str, window: int = 50) -> list[DialogueLine]:
    lines: list[DialogueLine] = []
    for match in QUOTED.finditer(text):
        speaker = match.group(1)
        if speaker is None:
            after = TRAILING_ATTRIBUTION.match(text, match.end())
            if after:
                speaker = after.group(1)
        ctx_start = max(0, match.start() - window)
        ctx_end = min(len(text), match.end() + window)
        quote_start = match.start(2) - 1
        lines.append(DialogueLine(
            text=match.group(2).strip(),
            speaker=speaker,
            context=text[ctx_start:ctx_end],
            quote_start=quote_start - ctx_start,
            quote_end=match.end() - ctx_start,
        ))
    return lines


def _distance(start: int, end: int, line: DialogueLine) -> int | None:
    if end <= line.quote_start:
        return line.quote_start - end
    if start >= line.quote_end:
        return start - line.quote_end
    return None  # inside the quote: an addressee, not the speaker


def resolve_speaker(
    line: DialogueLine, characters: Iterable[Character]
) -> Character | None:
    chars = list(characters)
    if line.speaker:
        wanted = line.speaker.lower()
        for char in chars:
            if any(n.lower() == wanted for n in char.names()):
                return char

    best: tuple[int, int] | None = None
    best_char: Character | None = None
    for order, char in enumerate(chars):
        for name in char.names():
            pattern = re.compile(r"\b" + re.escape(name) + r"\b", re.IGNORECASE)
            for m in pattern.finditer(line.context):
                distance = _distance(m.start(), m.end(), line)
                if distance is None:
                    continue
                if best is None or (distance, order) < best:
                    best = (distance, order)
                    best_char = char
    return best_char
