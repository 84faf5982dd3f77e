"""Pydantic request/response models for API endpoints."""

from typing import Literal

from pydantic import BaseModel

from storyguard.models import ContinuityConflict, FactAssertion, IssueStatus


class IssueActionBody(BaseModel):
    issue_id: str
    action: Literal["ignore", "acknowledge", "fix", "undo"]


class IssueStatusOut(BaseModel):
    id: str
    status: IssueStatus


class ConflictActionBody(BaseModel):
    action: Literal["keep_original", "use_newer", "dismiss"]


class FactGroup(BaseModel):
    subject_id: str
    subject_type: str
    facts: list[FactAssertion]


class ConflictsOut(BaseModel):
    active: list[ContinuityConflict]
    resolved: list[ContinuityConflict]


class ExtractionOut(BaseModel):
    new_facts: int
    new_conflicts: int
    parsed: bool
    raw_text: str


class VoiceFixOut(BaseModel):
    issue_id: str
    original: str
    fixed: str
