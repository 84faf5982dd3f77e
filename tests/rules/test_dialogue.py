"""Tests for dialogue extraction and speaker resolution."""

from storyguard.models import Character
from storyguard.rules import extract_dialogue, resolve_speaker

MIRA = Character(id="c-mira", name="Mira", aliases=["the Witch"])
TOMAS = Character(id="c-tomas", name="Tomas")


class TestExtractDialogue:
    def test_attribution_before_quote(self) -> None:
        [line] = extract_dialogue('Mira said, "We ride at dawn."')
        assert line.text == "We ride at dawn."
        assert line.speaker == "Mira"

    def test_attribution_after_quote(self) -> None:
        [line] = extract_dialogue('"Fine," Tomas replied. He turned away.')
        assert line.text == "Fine,"
        assert line.speaker == "Tomas"

    def test_curly_quotes(self) -> None:
        [line] = extract_dialogue("Mira whispered: “Not yet.”")
        assert line.text == "Not yet."
        assert line.speaker == "Mira"

    def test_unattributed(self) -> None:
        lines = extract_dialogue('The door creaked. "Who goes there?" Silence.')
        assert [(l.text, l.speaker) for l in lines] == [("Who goes there?", None)]

    def test_multiple_lines_in_order(self) -> None:
        text = 'Mira said, "Go." Then, "Why?" Tomas asked.'
        assert [l.text for l in extract_dialogue(text)] == ["Go.", "Why?"]
        assert [l.speaker for l in extract_dialogue(text)] == ["Mira", "Tomas"]

    def test_attribution_introducing_next_quote(self) -> None:
        text = '"Hi." Bob said, "Yo."'
        assert [l.speaker for l in extract_dialogue(text)] == [None, "Bob"]

    def test_context_window(self) -> None:
        text = "x" * 100 + ' "Hi." ' + "y" * 100
        [line] = extract_dialogue(text, window=10)
        assert line.context == "x" * 9 + ' "Hi." ' + "y" * 9
        assert line.context[line.quote_start:line.quote_end] == '"Hi."'


class TestResolveSpeaker:
    def test_attributed_name(self) -> None:
        [line] = extract_dialogue('Tomas said, "Mira, wait."')
        assert resolve_speaker(line, [MIRA, TOMAS]) is TOMAS

    def test_attributed_alias(self) -> None:
        [line] = extract_dialogue('"Enough," the Witch said.')
        # "the Witch" is lower-case led, so attribution falls through to proximity
        assert resolve_speaker(line, [MIRA, TOMAS]) is MIRA

    def test_nearest_name_outside_quote(self) -> None:
        [line] = extract_dialogue('Mira looked at Tomas. "Hello there, Mira."')
        assert resolve_speaker(line, [MIRA, TOMAS]) is TOMAS

    def test_unknown_attribution_falls_back(self) -> None:
        [line] = extract_dialogue('Mira nodded. She said, "Let us go."')
        assert line.speaker == "She"
        assert resolve_speaker(line, [MIRA, TOMAS]) is MIRA

    def test_nobody_nearby(self) -> None:
        [line] = extract_dialogue('"Who goes there?"')
        assert resolve_speaker(line, [MIRA, TOMAS]) is None
