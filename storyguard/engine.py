"""Consistency engine: every detector over one manuscript snapshot.

Check order is fixed (plot, world rules, voice) so that re-running on
unchanged input gives an identical issue list. Statuses come from the
StatusBook; the manuscript itself is never modified.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel

from storyguard.issues import IssueAction, StatusBook, dedupe
from storyguard.models import Issue, IssueStatus, Manuscript
from storyguard.plot import check_plot
from storyguard.rules import VoiceSettings, find_rule_violations, find_voice_deviations

logger = logging.getLogger(__name__)


class CheckReport(BaseModel):
    issues: list[Issue]
    total: int
    pending: int
    pending_errors: int

    @classmethod
    def from_issues(cls, issues: list[Issue]) -> CheckReport:
        pending = [i for i in issues if i.status == "pending"]
        return cls(
            issues=issues,
            total=len(issues),
            pending=len(pending),
            pending_errors=sum(1 for i in pending if i.severity == "error"),
        )


def detect_issues(
    manuscript: Manuscript, voice_settings: VoiceSettings | None = None
) -> list[Issue]:
    """All detectors, no statuses applied. Pure."""
    issues = [
        *check_plot(manuscript.beats, manuscript.characters),
        *find_rule_violations(manuscript.chapters, manuscript.wiki_entries),
        *find_voice_deviations(manuscript.chapters, manuscript.characters, voice_settings),
    ]
    return dedupe(issues)


class ConsistencyEngine:
    def __init__(
        self,
        statuses: StatusBook | None = None,
        voice_settings: VoiceSettings | None = None,
    ) -> None:
        self.statuses = statuses if statuses is not None else StatusBook()
        self.voice_settings = voice_settings or VoiceSettings()

    def check(self, manuscript: Manuscript) -> CheckReport:
        issues = self.statuses.merge(detect_issues(manuscript, self.voice_settings))
        report = CheckReport.from_issues(issues)
        logger.info(
            "check: %d issues (%d pending, %d pending errors)",
            report.total, report.pending, report.pending_errors,
        )
        return report

    # ------------------------------------------------------------------
    # Resolution callbacks
    # ------------------------------------------------------------------

    def apply(self, issue_id: str, action: IssueAction) -> IssueStatus:
        return self.statuses.apply(issue_id, action)

    def ignore(self, issue_id: str) -> IssueStatus:
        return self.apply(issue_id, "ignore")

    def acknowledge(self, issue_id: str) -> IssueStatus:
        return self.apply(issue_id, "acknowledge")

    def fix(self, issue_id: str) -> IssueStatus:
        return self.apply(issue_id, "fix")

    def undo(self, issue_id: str) -> IssueStatus:
        return self.apply(issue_id, "undo")
