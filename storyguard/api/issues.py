"""Consistency check, issue status, and voice-fix endpoints."""

from fastapi import APIRouter, Depends, HTTPException

from storyguard.config import get_config
from storyguard.engine import CheckReport, ConsistencyEngine
from storyguard.extraction import suggest_voice_fix
from storyguard.issues import IssueTransitionError
from storyguard.llm import LLM, LLMError
from storyguard.rules import VoiceSettings
from storyguard.storage import Storage

from .deps import get_llm, get_storage, load_manuscript
from .models import IssueActionBody, IssueStatusOut, VoiceFixOut

router = APIRouter()


def _engine(storage: Storage, slug: str) -> ConsistencyEngine:
    voice = VoiceSettings.model_validate(get_config(storage.base)["voice"])
    return ConsistencyEngine(storage.get_statuses(slug), voice)


@router.get("/projects/{slug}/issues")
async def list_issues(slug: str, storage: Storage = Depends(get_storage)) -> CheckReport:
    """Run every detector and return issues with their saved statuses."""
    manuscript = load_manuscript(storage, slug)
    return _engine(storage, slug).check(manuscript)


@router.post("/projects/{slug}/issues/status")
async def set_issue_status(
    slug: str, body: IssueActionBody, storage: Storage = Depends(get_storage)
) -> IssueStatusOut:
    """Ignore, acknowledge, fix or undo one issue."""
    load_manuscript(storage, slug)
    engine = _engine(storage, slug)
    try:
        status = engine.apply(body.issue_id, body.action)
    except IssueTransitionError as e:
        raise HTTPException(409, str(e))
    storage.save_statuses(slug, engine.statuses)
    return IssueStatusOut(id=body.issue_id, status=status)


@router.post("/projects/{slug}/issues/voice-fix")
async def voice_fix(
    slug: str,
    issue_id: str,
    storage: Storage = Depends(get_storage),
    llm: LLM = Depends(get_llm),
) -> VoiceFixOut:
    """Ask the collaborator for an in-voice rewrite of a flagged dialogue line."""
    manuscript = load_manuscript(storage, slug)
    report = _engine(storage, slug).check(manuscript)
    issue = next((i for i in report.issues if i.id == issue_id), None)
    if issue is None or issue.kind != "voice_deviation":
        raise HTTPException(404, "Voice issue not found")
    character = next(c for c in manuscript.characters if c.id in issue.entity_ids)
    try:
        fixed = await suggest_voice_fix(llm, character, issue)
    except LLMError as e:
        raise HTTPException(502, str(e))
    return VoiceFixOut(issue_id=issue.id, original=issue.excerpt or "", fixed=fixed)
