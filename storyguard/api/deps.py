"""Request-scoped dependencies.

Storage and the collaborator client hang off app.state; routes receive them
through Depends so tests can swap either via app.dependency_overrides.
"""

from fastapi import HTTPException, Request

from storyguard.config import get_config
from storyguard.llm import LLM, HttpLLM, LLMError
from storyguard.models import Manuscript
from storyguard.storage import Storage


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def get_llm(request: Request) -> LLM:
    storage: Storage = request.app.state.storage
    try:
        return HttpLLM.from_config(get_config(storage.base)["llm_connection"])
    except LLMError as e:
        raise HTTPException(400, str(e))


def load_manuscript(storage: Storage, slug: str) -> Manuscript:
    manuscript = storage.get_manuscript(slug)
    if manuscript is None:
        raise HTTPException(404, "Project not found")
    return manuscript
