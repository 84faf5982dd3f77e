"""Fact grouping and continuity conflict resolution.

Facts and conflicts come from the extraction collaborator; nothing here
detects conflicts. The ledger only resolves them:

  keep_original : the earliest fact (by chapter order) is correct
  use_newer     : the latest fact is correct
  dismiss       : not a real conflict; dropped from the active list

Each action is one-way. Facts themselves are never modified.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from storyguard.models import Chapter, ContinuityConflict, FactAssertion, FactType

logger = logging.getLogger(__name__)

KEEP_ORIGINAL = "Kept original fact"
USE_NEWER = "Updated to new fact"
DISMISSED = "Dismissed (not a conflict)"


class ConflictError(ValueError):
    """Raised when a resolved conflict is asked to resolve differently."""


def group_facts_by_subject(
    facts: Iterable[FactAssertion],
    fact_type: FactType | None = None,
    query: str | None = None,
) -> dict[str, list[FactAssertion]]:
    """Group facts by subject id, keeping first-seen subject order."""
    needle = query.lower() if query else ""
    grouped: dict[str, list[FactAssertion]] = {}
    for fact in facts:
        if fact_type and fact.fact_type != fact_type:
            continue
        if needle and not (
            needle in fact.subject_id.lower()
            or needle in fact.assertion.lower()
            or needle in fact.quote.lower()
        ):
            continue
        grouped.setdefault(fact.subject_id, []).append(fact)
    return grouped


class ConflictLedger:
    """Resolution state for a list of conflicts.

    Returned conflicts are copies; the ledger's own list is the only state
    it changes. Chapter order decides which fact is "original".
    """

    def __init__(
        self,
        conflicts: Iterable[ContinuityConflict],
        facts: Iterable[FactAssertion] = (),
        chapters: Iterable[Chapter] = (),
    ) -> None:
        self._conflicts: dict[str, ContinuityConflict] = {c.id: c for c in conflicts}
        self._dismissed: set[str] = {
            c.id for c in self._conflicts.values() if c.resolution == DISMISSED
        }
        self._facts = list(facts)
        self._chapter_numbers = {c.id: c.number for c in chapters}

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def get(self, conflict_id: str) -> ContinuityConflict:
        try:
            return self._conflicts[conflict_id]
        except KeyError:
            raise KeyError(f"Unknown conflict: {conflict_id}") from None

    def active(self) -> list[ContinuityConflict]:
        return [c for c in self._conflicts.values() if not c.resolved]

    def resolved(self) -> list[ContinuityConflict]:
        return [
            c for c in self._conflicts.values()
            if c.resolved and c.id not in self._dismissed
        ]

    def all(self) -> list[ContinuityConflict]:
        return list(self._conflicts.values())

    def facts_for(self, conflict_id: str) -> list[FactAssertion]:
        """Facts of a conflict in story order (chapter number, then list order)."""
        wanted = self.get(conflict_id).fact_ids
        by_id = {f.id: f for f in self._facts if f.id in wanted}
        present = [by_id[i] for i in wanted if i in by_id]
        position = {f.id: i for i, f in enumerate(self._facts)}
        return sorted(
            present,
            key=lambda f: (self._chapter_numbers.get(f.chapter_id, 0), position[f.id]),
        )

    # ------------------------------------------------------------------
    # Resolution actions
    # ------------------------------------------------------------------

    def keep_original(self, conflict_id: str) -> ContinuityConflict:
        ordered = self.facts_for(conflict_id)
        winner = ordered[0].id if ordered else None
        return self._resolve(conflict_id, KEEP_ORIGINAL, winner)

    def use_newer(self, conflict_id: str) -> ContinuityConflict:
        ordered = self.facts_for(conflict_id)
        winner = ordered[-1].id if ordered else None
        return self._resolve(conflict_id, USE_NEWER, winner)

    def dismiss(self, conflict_id: str) -> ContinuityConflict:
        conflict = self._resolve(conflict_id, DISMISSED, None)
        self._dismissed.add(conflict_id)
        return conflict

    def apply(self, conflict_id: str, action: str) -> ContinuityConflict:
        actions = {
            "keep_original": self.keep_original,
            "use_newer": self.use_newer,
            "dismiss": self.dismiss,
        }
        if action not in actions:
            raise ConflictError(f"Unknown conflict action: {action}")
        return actions[action](conflict_id)

    def _resolve(
        self, conflict_id: str, resolution: str, winner: str | None
    ) -> ContinuityConflict:
        conflict = self.get(conflict_id)
        if conflict.resolved:
            if conflict.resolution == resolution:
                return conflict
            raise ConflictError(
                f"Conflict {conflict_id} is already resolved ({conflict.resolution})"
            )
        updated = conflict.model_copy(update={
            "resolved": True,
            "resolution": resolution,
            "winning_fact_id": winner,
        })
        self._conflicts[conflict_id] = updated
        logger.debug("conflict %s resolved: %s", conflict_id, resolution)
        return updated

    # ------------------------------------------------------------------
    # Merging new collaborator output
    # ------------------------------------------------------------------

    def add(self, conflicts: Iterable[ContinuityConflict]) -> int:
        """Add newly reported conflicts; ids already known keep their resolution."""
        added = 0
        for conflict in conflicts:
            if conflict.id in self._conflicts:
                continue
            self._conflicts[conflict.id] = conflict
            added += 1
        return added
