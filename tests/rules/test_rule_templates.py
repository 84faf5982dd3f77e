"""Tests for rule compilation: template table, vocabularies, stemming."""

import pytest

from storyguard.models import WikiEntry
from storyguard.rules.templates import ABSENCE, TEMPLATES, compile_rule, stem


def _rule(description: str, name: str = "Law") -> WikiEntry:
    return WikiEntry(id="r1", category="rules", name=name, description=description)


@pytest.mark.parametrize("word,expected", [
    ("spells", "spell"), ("gestures", "gesture"), ("glass", "glass"), ("was", "was"),
])
def test_stem(word, expected) -> None:
    assert stem(word) == expected


def test_template_names() -> None:
    assert [t.name for t in TEMPLATES] == ["requires", "must_have", "only_can", "prohibits"]


# ── individual templates ─────────────────────────────────────


class TestTemplates:
    def test_requires(self) -> None:
        rule = compile_rule(_rule("Flight requires feathered wings."))
        assert "flight" in rule.keywords
        assert {"feathered", "wing"} <= rule.negations
        assert rule.subjects == {"flight"}

    def test_must_have(self) -> None:
        rule = compile_rule(_rule("Knights must carry a banner. Squires must use wooden swords."))
        assert "squire" in rule.keywords
        assert {"wooden", "sword"} <= rule.negations

    def test_only_can(self) -> None:
        rule = compile_rule(_rule("Only priests can heal."))
        assert "heal" in rule.keywords
        assert rule.negations == {"priest"}
        assert rule.subjects == {"heal"}

    def test_prohibits(self) -> None:
        rule = compile_rule(_rule("Vampires cannot enter uninvited."))
        assert {"vampire", "enter"} <= rule.keywords
        assert rule.forbidden == {("vampire", "enter")}
        assert not rule.requires_evidence

    @pytest.mark.parametrize("phrase", ["cannot", "never", "must not", "can't"])
    def test_prohibition_phrasings(self, phrase) -> None:
        rule = compile_rule(_rule(f"Ghosts {phrase} touch iron."))
        assert ("ghost", "touch") in rule.forbidden

    def test_modal_is_not_a_subject(self) -> None:
        rule = compile_rule(_rule("Dragons must never fly.", name="Dragon Flight"))
        assert all(subject != "must" for subject, _ in rule.forbidden)
        assert "must" not in rule.keywords

    def test_prohibition_skips_auxiliary(self) -> None:
        rule = compile_rule(_rule("Magic cannot be used on holy ground."))
        assert rule.forbidden == {("magic", "used")}
        assert "be" not in rule.keywords

    def test_prohibition_without_a_content_verb_forbids_nothing(self) -> None:
        rule = compile_rule(_rule("Wardens must not be.", name="Wardens"))
        assert rule.forbidden == frozenset()


# ── vocabularies ─────────────────────────────────────────────


class TestVocabularies:
    def test_magic_and_gestures(self) -> None:
        rule = compile_rule(_rule("Magic requires hand gestures.", name="Magic"))
        assert rule.domains == ("magic", "gestures")
        assert {"magic", "spell", "cast", "conjure"} <= rule.keywords
        assert {"hand", "gesture", "wave"} <= rule.negations
        assert len(rule.action_patterns) == 1
        assert len(rule.evidence_patterns) == 1
        assert rule.requires_evidence

    def test_incantations(self) -> None:
        rule = compile_rule(_rule("Every spell requires a spoken incantation."))
        assert "incantations" in rule.domains
        assert "chant" in rule.negations


def test_rule_name_contributes_keywords() -> None:
    rule = compile_rule(_rule("Nothing recognisable here.", name="Tidal Curse"))
    assert rule.keywords == {"tidal", "curse"}


def test_unusable_rule_compiles_to_none() -> None:
    assert compile_rule(_rule("Be nice.", name="Law")) is None


def test_absence_phrase() -> None:
    assert ABSENCE.sub("", "She cast it without a single gesture") == "She cast it "
    assert ABSENCE.search("waving her hand") is None
