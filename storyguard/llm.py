"""Client for the external analysis collaborator.

Fact extraction and voice rewrites are delegated to a language model reached
over HTTP. Callers depend only on the LLM protocol:

    async def __call__(self, stage: str, prompt: str) -> str: ...

`stage` names the job ("fact_extractor", "voice_fixer") and is only logged.
A failed call raises LLMError; retries and cancellation belong to the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Literal, Protocol

import httpx

logger = logging.getLogger(__name__)


class LLM(Protocol):
    async def __call__(self, stage: str, prompt: str) -> str: ...


class LLMError(RuntimeError):
    """Raised when the collaborator cannot be reached or answers garbage."""


ProviderFormat = Literal["koboldcpp", "openai", "openai_chat"]


# ---------------------------------------------------------------------------
# Wire formats
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class _Backend:
    path: str
    build: Callable[[str, str], dict[str, Any]]  # (prompt, model) -> body
    extract: Callable[[dict[str, Any]], str | None]
    label: str


def _with_model(body: dict[str, Any], model: str) -> dict[str, Any]:
    if model:
        body["model"] = model
    return body


def _first(items: Any) -> dict[str, Any]:
    return items[0] if isinstance(items, list) and items and isinstance(items[0], dict) else {}


_BACKENDS: dict[str, _Backend] = {
    "koboldcpp": _Backend(
        path="/api/v1/generate",
        build=lambda prompt, model: {"prompt": prompt},
        extract=lambda data: _first(data.get("results")).get("text"),
        label="KoboldCpp",
    ),
    "openai": _Backend(
        path="/v1/completions",
        build=lambda prompt, model: _with_model({"prompt": prompt}, model),
        extract=lambda data: _first(data.get("choices")).get("text"),
        label="OpenAI-compatible",
    ),
    "openai_chat": _Backend(
        path="/v1/chat/completions",
        build=lambda prompt, model: _with_model(
            {"messages": [{"role": "user", "content": prompt}]}, model
        ),
        extract=lambda data: (_first(data.get("choices")).get("message") or {}).get("content"),
        label="OpenAI-compatible",
    ),
}


class HttpLLM:
    """Async HTTP client for completion backends.

    provider_format selects the wire shape:
      "koboldcpp"    /api/v1/generate       results[0].text
      "openai"       /v1/completions        choices[0].text
      "openai_chat"  /v1/chat/completions   choices[0].message.content
    """

    def __init__(
        self,
        provider_url: str,
        api_key: str = "",
        provider_format: ProviderFormat = "koboldcpp",
        model: str = "",
        timeout: float = 120.0,
    ) -> None:
        if provider_format not in _BACKENDS:
            raise LLMError(f"Unknown provider format: {provider_format}")
        self._base_url = provider_url.rstrip("/")
        self._api_key = api_key
        self._format = provider_format
        self._model = model
        self._timeout = timeout

    @classmethod
    def from_config(cls, connection: dict[str, Any]) -> HttpLLM:
        """Build a client from the "llm_connection" block of config.json."""
        if not connection.get("provider_url"):
            raise LLMError("No collaborator connection configured")
        return cls(
            provider_url=connection["provider_url"],
            api_key=connection.get("api_key", ""),
            provider_format=connection.get("provider_format", "koboldcpp"),
            model=connection.get("model", ""),
            timeout=float(connection.get("timeout", 120.0)),
        )

    @property
    def _backend(self) -> _Backend:
        return _BACKENDS[self._format]

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def __call__(self, stage: str, prompt: str) -> str:
        backend = self._backend
        url = self._base_url + backend.path
        logger.debug("collaborator call stage=%s url=%s prompt_len=%d", stage, url, len(prompt))

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(
                    url, json=backend.build(prompt, self._model), headers=self._headers()
                )
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise LLMError(f"Cannot connect to collaborator at {self._base_url}") from e
        except httpx.HTTPStatusError as e:
            raise LLMError(f"Collaborator returned HTTP {e.response.status_code}") from e
        except httpx.TimeoutException as e:
            raise LLMError(f"Collaborator timed out after {self._timeout}s") from e

        text = backend.extract(resp.json())
        if not isinstance(text, str):
            raise LLMError(f"Unexpected response format from {backend.label} backend")
        logger.debug("collaborator response stage=%s len=%d", stage, len(text))
        return text


class EchoLLM:
    """Returns the prompt as-is. No network calls.

    Exercises prompt wiring without a model. The echo is never valid JSON,
    so callers fall back to the raw text.
    """

    async def __call__(self, stage: str, prompt: str) -> str:
        logger.debug("EchoLLM stage=%s prompt_len=%d", stage, len(prompt))
        return prompt
