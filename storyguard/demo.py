"""Demo project with one of each kind of inconsistency."""

from storyguard.models import (
    Chapter,
    Character,
    ContinuityConflict,
    FactAssertion,
    Manuscript,
    PlotBeat,
    VoiceDNA,
    WikiEntry,
)
from storyguard.storage import Storage

DEMO_SLUG = "the-ember-crown"


def demo_manuscript() -> Manuscript:
    return Manuscript(
        characters=[
            Character(
                id="mara", name="Mara", aliases=["the Archivist"],
                vocabulary_level="Formal, academic",
                speech_patterns="Measured; never uses contractions",
            ),
            Character(
                id="tobin", name="Tobin", vocabulary_level="Casual street slang",
                speech_patterns="Stutters when nervous",
            ),
            Character(
                id="vess", name="Vess",
                voice_dna=VoiceDNA(
                    avg_sentence_length=4, contraction_ratio=0.1,
                    question_frequency=0.05, prohibited_vocabulary=["please"],
                ),
            ),
        ],
        beats=[
            PlotBeat(
                id="b1", title="The Theft", timeline_position=1, location="Archive",
                characters_involved=["mara"], foreshadowing=["b3"],
                summary="Mara notices the crown missing after the coronation.",
            ),
            PlotBeat(
                id="b2", title="Market Chase", timeline_position=2, location="Lower Market",
                characters_involved=["tobin", "mara"], payoffs=["b9"],
            ),
            PlotBeat(
                id="b2b", title="Council Hearing", timeline_position=2, location="High Hall",
                characters_involved=["mara"], foreshadowing=["b7"],
            ),
            PlotBeat(
                id="b3", title="The Coronation", timeline_position=3, location="High Hall",
                characters_involved=["mara", "vess"], foreshadowing=["b1"],
            ),
        ],
        wiki_entries=[
            WikiEntry(
                id="r1", category="rules", name="Gesture Magic",
                description="Magic requires hand gestures.",
            ),
            WikiEntry(
                id="r2", category="rules", name="Sworn Truth",
                description="Oathbound mages cannot lie.",
            ),
        ],
        chapters=[
            Chapter(
                id="c1", number=1, title="Dust",
                content=(
                    'Mara said, "Yeah, gonna need that stuff back." '
                    "Vess cast a spell instantly. The lamps dimmed. "
                    'Tobin grinned. "Furthermore, I shall ascertain the thief." '
                    '"I think we should go now, before they notice us," Tobin said. '
                    'Vess said, "Could you please, if it is not too much trouble, wait for me?"'
                ),
            ),
            Chapter(id="c2", number=2, title="Ash", content="Mara waved her hand and cast the ward."),
        ],
        facts=[
            FactAssertion(
                id="f1", subject_id="mara", fact_type="physical",
                assertion="Mara has grey eyes", quote="her grey eyes", chapter_id="c1",
            ),
            FactAssertion(
                id="f2", subject_id="mara", fact_type="physical",
                assertion="Mara has green eyes", quote="green eyes flashing",
                chapter_id="c2", confidence="inferred",
            ),
        ],
        conflicts=[
            ContinuityConflict(
                id="x1", fact_ids=["f1", "f2"], severity="high",
                description="Mara's eye colour changes between chapters 1 and 2.",
            ),
        ],
    )


def create_demo_data(storage: Storage) -> str:
    """Write (or overwrite) the demo project. Returns its slug."""
    storage.delete_project(DEMO_SLUG)
    storage.save_manuscript(DEMO_SLUG, demo_manuscript())
    return DEMO_SLUG
