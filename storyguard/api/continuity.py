"""Fact listing, conflict resolution and fact extraction endpoints."""

from fastapi import APIRouter, Depends, HTTPException

from storyguard.continuity import ConflictError, ConflictLedger, group_facts_by_subject
from storyguard.extraction import extract_continuity
from storyguard.llm import LLM, LLMError
from storyguard.models import ContinuityConflict, FactType
from storyguard.storage import Storage

from .deps import get_llm, get_storage, load_manuscript
from .models import ConflictActionBody, ConflictsOut, ExtractionOut, FactGroup

router = APIRouter()


@router.get("/projects/{slug}/facts")
async def list_facts(
    slug: str,
    fact_type: FactType | None = None,
    q: str | None = None,
    storage: Storage = Depends(get_storage),
) -> list[FactGroup]:
    """Facts grouped by subject, optionally filtered by type and search text."""
    manuscript = load_manuscript(storage, slug)
    grouped = group_facts_by_subject(manuscript.facts, fact_type=fact_type, query=q)
    return [
        FactGroup(subject_id=subject, subject_type=facts[0].subject_type, facts=facts)
        for subject, facts in grouped.items()
    ]


@router.get("/projects/{slug}/conflicts")
async def list_conflicts(slug: str, storage: Storage = Depends(get_storage)) -> ConflictsOut:
    """Active and resolved conflicts. Dismissed conflicts appear in neither."""
    manuscript = load_manuscript(storage, slug)
    ledger = ConflictLedger(manuscript.conflicts)
    return ConflictsOut(active=ledger.active(), resolved=ledger.resolved())


@router.post("/projects/{slug}/conflicts/{conflict_id}")
async def resolve_conflict(
    slug: str,
    conflict_id: str,
    body: ConflictActionBody,
    storage: Storage = Depends(get_storage),
) -> ContinuityConflict:
    """Keep the original fact, use the newer one, or dismiss the conflict."""
    manuscript = load_manuscript(storage, slug)
    ledger = ConflictLedger(manuscript.conflicts, manuscript.facts, manuscript.chapters)
    try:
        conflict = ledger.apply(conflict_id, body.action)
    except KeyError:
        raise HTTPException(404, "Conflict not found")
    except ConflictError as e:
        raise HTTPException(409, str(e))
    storage.save_conflicts(slug, ledger.all())
    return conflict


@router.post("/projects/{slug}/chapters/{chapter_id}/extract")
async def extract_chapter(
    slug: str,
    chapter_id: str,
    storage: Storage = Depends(get_storage),
    llm: LLM = Depends(get_llm),
) -> ExtractionOut:
    """Run the collaborator's fact extraction on one chapter and store the results."""
    manuscript = load_manuscript(storage, slug)
    chapter = next((c for c in manuscript.chapters if c.id == chapter_id), None)
    if chapter is None:
        raise HTTPException(404, "Chapter not found")
    try:
        result = await extract_continuity(llm, chapter, manuscript.facts, manuscript.characters)
    except LLMError as e:
        raise HTTPException(502, str(e))

    new_facts = storage.add_facts(slug, result.facts)
    ledger = ConflictLedger(manuscript.conflicts)
    new_conflicts = ledger.add(result.conflicts)
    if new_conflicts:
        storage.save_conflicts(slug, ledger.all())
    return ExtractionOut(
        new_facts=new_facts,
        new_conflicts=new_conflicts,
        parsed=result.parsed,
        raw_text=result.raw_text,
    )
