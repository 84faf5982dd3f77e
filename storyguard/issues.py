"""Issue identity and the resolution lifecycle.

Issues are recomputed from scratch on every edit. The only state kept across
recomputation is the status annotation, stored in a StatusBook keyed by a
deterministic issue id:

    issue_id(kind, entity_ids, facet) = "<kind>[.<facet>]:" + "|".join(sorted(entity_ids))

Lifecycle:

    pending ──ignore──────► ignored
            ──acknowledge─► acknowledged
            ──fix─────────► fixed
    any terminal ──undo──► pending
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Iterable
from typing import Literal

from storyguard.models import Issue, IssueKind, IssueSeverity, IssueStatus

logger = logging.getLogger(__name__)

IssueAction = Literal["ignore", "acknowledge", "fix", "undo"]

ACTION_TARGETS: dict[str, IssueStatus] = {
    "ignore": "ignored",
    "acknowledge": "acknowledged",
    "fix": "fixed",
    "undo": "pending",
}


class IssueTransitionError(ValueError):
    """Raised when an action is not allowed from the issue's current status."""


def issue_id(kind: str, entity_ids: Iterable[str], facet: str = "") -> str:
    qualified = f"{kind}.{facet}" if facet else kind
    return f"{qualified}:" + "|".join(sorted(entity_ids))


def text_token(text: str) -> str:
    """Short stable token for a span of prose, used as an issue participant."""
    normalized = " ".join(text.lower().split())
    return "t:" + hashlib.sha1(normalized.encode("utf-8")).hexdigest()[:12]


def make_issue(
    kind: IssueKind,
    severity: IssueSeverity,
    entity_ids: list[str],
    description: str,
    suggestion: str,
    *,
    facet: str = "",
    excerpt: str | None = None,
    context: str | None = None,
) -> Issue:
    return Issue(
        id=issue_id(kind, entity_ids, facet),
        kind=kind,
        facet=facet,
        severity=severity,
        entity_ids=list(entity_ids),
        description=description,
        suggestion=suggestion,
        excerpt=excerpt,
        context=context,
    )


def dedupe(issues: Iterable[Issue]) -> list[Issue]:
    """Drop repeated ids, keeping the first occurrence (duplicate edges)."""
    seen: set[str] = set()
    out: list[Issue] = []
    for issue in issues:
        if issue.id in seen:
            continue
        seen.add(issue.id)
        out.append(issue)
    return out


def next_status(current: IssueStatus, action: IssueAction) -> IssueStatus:
    """Apply one lifecycle action. Repeating an action is a no-op."""
    if action not in ACTION_TARGETS:
        raise IssueTransitionError(f"Unknown issue action: {action}")
    target = ACTION_TARGETS[action]
    if target == current:
        return current
    if action == "undo" or current == "pending":
        return target
    raise IssueTransitionError(
        f"Cannot {action} an issue that is {current}; undo it first"
    )


class StatusBook:
    """Status annotations keyed by issue id.

    Only non-pending statuses are stored. Entries for ids absent from the
    latest check are kept, so an issue that disappears and later returns
    comes back with the status the author gave it.
    """

    def __init__(self, statuses: dict[str, IssueStatus] | None = None) -> None:
        self._statuses: dict[str, IssueStatus] = dict(statuses or {})

    def status_of(self, issue_id: str) -> IssueStatus:
        return self._statuses.get(issue_id, "pending")

    def apply(self, issue_id: str, action: IssueAction) -> IssueStatus:
        status = next_status(self.status_of(issue_id), action)
        if status == "pending":
            self._statuses.pop(issue_id, None)
        else:
            self._statuses[issue_id] = status
        logger.debug("issue %s -> %s", issue_id, status)
        return status

    def merge(self, issues: Iterable[Issue]) -> list[Issue]:
        """Return copies of freshly computed issues with stored statuses applied."""
        return [
            issue.model_copy(update={"status": self.status_of(issue.id)})
            for issue in issues
        ]

    def prune(self, live_ids: Iterable[str]) -> int:
        """Forget annotations for ids not in live_ids. Returns how many were dropped."""
        live = set(live_ids)
        stale = [k for k in self._statuses if k not in live]
        for k in stale:
            del self._statuses[k]
        return len(stale)

    def to_dict(self) -> dict[str, IssueStatus]:
        return dict(sorted(self._statuses.items()))

    def __len__(self) -> int:
        return len(self._statuses)
