"""Tests for fact grouping and the conflict ledger."""

import pytest

from storyguard.continuity import (
    DISMISSED,
    KEEP_ORIGINAL,
    USE_NEWER,
    ConflictError,
    ConflictLedger,
    group_facts_by_subject,
)
from storyguard.models import Chapter, ContinuityConflict, FactAssertion


def _fact(id, subject="mira", fact_type="physical", assertion="has green eyes",
          chapter="ch1", quote=""):
    return FactAssertion(id=id, subject_id=subject, fact_type=fact_type,
                         assertion=assertion, chapter_id=chapter, quote=quote)


CHAPTERS = [Chapter(id="ch1", number=1), Chapter(id="ch3", number=3), Chapter(id="ch2", number=2)]


@pytest.fixture
def ledger() -> ConflictLedger:
    facts = [
        _fact("late", assertion="has blue eyes", chapter="ch3"),
        _fact("early", chapter="ch1"),
        _fact("other", subject="tomas", fact_type="location", assertion="is in the harbor"),
    ]
    conflicts = [
        ContinuityConflict(id="k1", fact_ids=["late", "early"], description="eye colour"),
        ContinuityConflict(id="k2", fact_ids=["early", "other"]),
    ]
    return ConflictLedger(conflicts, facts, CHAPTERS)


# ── grouping ─────────────────────────────────────────────────


class TestGroupFacts:
    FACTS = [
        _fact("f1"),
        _fact("f2", subject="tomas", fact_type="location", assertion="is at the harbor"),
        _fact("f3", assertion="walks with a limp", quote="he limped"),
    ]

    def test_groups_by_subject_in_first_seen_order(self) -> None:
        grouped = group_facts_by_subject(self.FACTS)
        assert list(grouped) == ["mira", "tomas"]
        assert [f.id for f in grouped["mira"]] == ["f1", "f3"]

    def test_type_filter(self) -> None:
        assert list(group_facts_by_subject(self.FACTS, fact_type="location")) == ["tomas"]

    def test_query_matches_subject_assertion_or_quote(self) -> None:
        assert [f.id for f in group_facts_by_subject(self.FACTS, query="LIMP")["mira"]] == ["f3"]
        assert list(group_facts_by_subject(self.FACTS, query="tom")) == ["tomas"]
        assert group_facts_by_subject(self.FACTS, query="nothing") == {}


# ── ledger ───────────────────────────────────────────────────


class TestConflictLedger:
    def test_all_start_active(self, ledger) -> None:
        assert [c.id for c in ledger.active()] == ["k1", "k2"]
        assert ledger.resolved() == []

    def test_facts_in_chapter_order(self, ledger) -> None:
        assert [f.id for f in ledger.facts_for("k1")] == ["early", "late"]

    def test_keep_original(self, ledger) -> None:
        conflict = ledger.keep_original("k1")
        assert conflict.resolved
        assert conflict.resolution == KEEP_ORIGINAL
        assert conflict.winning_fact_id == "early"
        assert [c.id for c in ledger.active()] == ["k2"]
        assert [c.id for c in ledger.resolved()] == ["k1"]

    def test_use_newer(self, ledger) -> None:
        conflict = ledger.use_newer("k1")
        assert conflict.resolution == USE_NEWER
        assert conflict.winning_fact_id == "late"

    def test_dismiss_leaves_both_lists(self, ledger) -> None:
        conflict = ledger.dismiss("k1")
        assert conflict.resolution == DISMISSED
        assert conflict.winning_fact_id is None
        assert "k1" not in [c.id for c in ledger.active()]
        assert "k1" not in [c.id for c in ledger.resolved()]
        assert "k1" in [c.id for c in ledger.all()]

    def test_dismissed_state_survives_reload(self, ledger) -> None:
        ledger.dismiss("k1")
        reloaded = ConflictLedger(ledger.all())
        assert [c.id for c in reloaded.active()] == ["k2"]
        assert reloaded.resolved() == []

    def test_repeat_is_noop(self, ledger) -> None:
        first = ledger.apply("k1", "keep_original")
        assert ledger.apply("k1", "keep_original") == first

    def test_changing_resolution_is_rejected(self, ledger) -> None:
        ledger.keep_original("k1")
        with pytest.raises(ConflictError, match="already resolved"):
            ledger.use_newer("k1")

    def test_unknown_action_and_id(self, ledger) -> None:
        with pytest.raises(ConflictError):
            ledger.apply("k1", "merge")
        with pytest.raises(KeyError):
            ledger.apply("missing", "dismiss")

    def test_facts_are_untouched(self, ledger) -> None:
        before = [f.model_dump() for f in ledger.facts_for("k1")]
        ledger.use_newer("k1")
        assert [f.model_dump() for f in ledger.facts_for("k1")] == before

    def test_missing_facts_still_resolve(self) -> None:
        ledger = ConflictLedger([ContinuityConflict(id="k", fact_ids=["a", "b"])])
        assert ledger.keep_original("k").winning_fact_id is None

    def test_add_keeps_existing_resolution(self, ledger) -> None:
        ledger.keep_original("k1")
        added = ledger.add([
            ContinuityConflict(id="k1", fact_ids=["late", "early"]),
            ContinuityConflict(id="k3", fact_ids=["early", "late"]),
        ])
        assert added == 1
        assert ledger.get("k1").resolved
        assert [c.id for c in ledger.active()] == ["k2", "k3"]
