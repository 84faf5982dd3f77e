"""Plot graph detectors.

Three pure checks over the beat set:

  find_timeline_paradoxes  : edge direction vs. timeline ordinals, plus
                              "after <later beat>" wording in earlier beats
  find_location_conflicts  : one character in two places at one ordinal
  find_orphaned_references : edges pointing at deleted beats

Equal timeline_position is the only simultaneity signal the model has;
there is no interval overlap.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from storyguard.issues import make_issue
from storyguard.models import Character, Issue, PlotBeat

logger = logging.getLogger(__name__)

DEPENDENCY_PHRASES = ("after", "following", "because of")


class PlotGraph:
    """Read-only view of beats and their foreshadowing/payoff edges."""

    def __init__(self, beats: Iterable[PlotBeat]) -> None:
        self.beats: list[PlotBeat] = list(beats)
        self._by_id: dict[str, PlotBeat] = {}
        for beat in self.beats:
            self._by_id.setdefault(beat.id, beat)

    def get(self, beat_id: str) -> PlotBeat | None:
        return self._by_id.get(beat_id)

    def __contains__(self, beat_id: str) -> bool:
        return beat_id in self._by_id

    def in_timeline_order(self) -> list[PlotBeat]:
        return sorted(self.beats, key=lambda b: b.timeline_position)

    def by_position(self) -> dict[int, list[PlotBeat]]:
        groups: dict[int, list[PlotBeat]] = {}
        for beat in self.beats:
            groups.setdefault(beat.timeline_position, []).append(beat)
        return groups

    def edges(self) -> list[tuple[PlotBeat, str, str]]:
        """All (beat, edge_kind, target_id) triples, dangling ones included."""
        out: list[tuple[PlotBeat, str, str]] = []
        for beat in self.beats:
            out.extend((beat, "foreshadowing", t) for t in beat.foreshadowing)
            out.extend((beat, "payoff", t) for t in beat.payoffs)
        return out


# ---------------------------------------------------------------------------
# Timeline paradoxes
# ---------------------------------------------------------------------------

def _describe(beat: PlotBeat) -> str:
    return f'"{beat.title}" (position {beat.timeline_position})'


def find_timeline_paradoxes(graph: PlotGraph) -> list[Issue]:
    issues: list[Issue] = []
    ordered = graph.in_timeline_order()

    for beat in ordered:
        for target_id in beat.foreshadowing:
            target = graph.get(target_id)
            if target and target.timeline_position <= beat.timeline_position:
                issues.append(make_issue(
                    "timeline_paradox", "warning", [beat.id, target.id],
                    f"{_describe(beat)} foreshadows {_describe(target)}, "
                    "but foreshadowing should point to future events.",
                    "Move the foreshadowed event to a later timeline position, "
                    "or remove this foreshadowing reference.",
                    facet=f"foreshadowing>{beat.id}",
                ))
        for source_id in beat.payoffs:
            source = graph.get(source_id)
            if source and source.timeline_position >= beat.timeline_position:
                issues.append(make_issue(
                    "timeline_paradox", "warning", [beat.id, source.id],
                    f"{_describe(beat)} pays off {_describe(source)}, "
                    "but payoffs should reference earlier setups.",
                    "Move the setup event to an earlier timeline position, "
                    "or correct the payoff reference.",
                    facet=f"payoff>{beat.id}",
                ))

    # Earlier beats whose text claims to depend on a later beat
    for i, earlier in enumerate(ordered):
        text = earlier.free_text().lower()
        for later in ordered[i + 1:]:
            if later.timeline_position <= earlier.timeline_position:
                continue
            title = later.title.strip().lower()
            if not title:
                continue
            if any(f"{phrase} {title}" in text for phrase in DEPENDENCY_PHRASES):
                issues.append(make_issue(
                    "timeline_paradox", "error", [earlier.id, later.id],
                    f"{_describe(earlier)} appears to reference {_describe(later)} "
                    "as if it happened before, creating a timeline paradox.",
                    "Swap the timeline positions of these beats, or rewrite the dependency.",
                    facet="text",
                ))

    return issues


# ---------------------------------------------------------------------------
# Character location conflicts
# ---------------------------------------------------------------------------

def find_location_conflicts(
    graph: PlotGraph, characters: Iterable[Character] = ()
) -> list[Issue]:
    names = {c.id: c.name for c in characters}
    issues: list[Issue] = []

    for position, group in graph.by_position().items():
        if len(group) < 2:
            continue
        for i, first in enumerate(group):
            for second in group[i + 1:]:
                if not first.location or not second.location:
                    continue
                if first.location.lower() == second.location.lower():
                    continue
                shared = [c for c in dict.fromkeys(first.characters_involved)
                          if c in second.characters_involved]
                for char_id in shared:
                    name = names.get(char_id) or "Unknown character"
                    issues.append(make_issue(
                        "character_location_conflict", "error",
                        [first.id, second.id, char_id],
                        f'{name} appears in both "{first.title}" (at {first.location}) '
                        f'and "{second.title}" (at {second.location}) '
                        f"at the same timeline position ({position}).",
                        "Either change the timeline position of one of these beats, "
                        f"or remove {name} from one of them, or adjust the locations.",
                    ))
    return issues


# ---------------------------------------------------------------------------
# Orphaned references
# ---------------------------------------------------------------------------

def find_orphaned_references(graph: PlotGraph) -> list[Issue]:
    issues: list[Issue] = []
    for beat, edge, target_id in graph.edges():
        if target_id in graph:
            continue
        if edge == "foreshadowing":
            issues.append(make_issue(
                "orphaned_foreshadowing", "warning", [beat.id, target_id],
                f'"{beat.title}" has a foreshadowing reference to a beat that no '
                "longer exists. The payoff for this setup has been deleted.",
                "Edit this beat and remove the orphaned foreshadowing link, "
                "or recreate the payoff beat.",
            ))
        else:
            issues.append(make_issue(
                "orphaned_payoff", "warning", [beat.id, target_id],
                f'"{beat.title}" references a setup beat that no longer exists. '
                "The foreshadowing for this payoff has been deleted.",
                "Edit this beat and remove the orphaned payoff link, "
                "or recreate the setup beat.",
            ))
    return issues


def check_plot(
    beats: Iterable[PlotBeat], characters: Iterable[Character] = ()
) -> list[Issue]:
    """Run all three plot detectors in a fixed order."""
    graph = PlotGraph(beats)
    issues = [
        *find_timeline_paradoxes(graph),
        *find_location_conflicts(graph, characters),
        *find_orphaned_references(graph),
    ]
    logger.debug("plot check: %d beats, %d issues", len(graph.beats), len(issues))
    return issues
