"""Async wrapper around the OpenAI SDK exposing the call shapes the dashboard needs.

Each shape is a small protocol so the resolver, insights and assistant can be
exercised with a scripted stand-in instead of the real provider.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Sequence, TypeVar

import openai

from hyderaqi.config.api_config import ModelSettings, resolve_model_settings

from .errors import TransportError
from .models import Citation, GroundedAnswer

logger = logging.getLogger(__name__)

WEB_SEARCH_TOOL = {"type": "web_search_preview"}

T = TypeVar("T")


class TextGenerator(Protocol):
    async def generate_text(self, prompt: str, *, temperature: float = 0.7) -> str:
        ...


class GroundedSearcher(Protocol):
    async def grounded_search(self, prompt: str) -> GroundedAnswer:
        ...


class StructuredExtractor(Protocol):
    async def extract_structured(self, prompt: str, *, name: str, schema: Dict[str, Any]) -> str:
        ...


class ChatBackend(Protocol):
    async def chat(self, messages: Sequence[Dict[str, str]]) -> str:
        ...


def _describe_error(error: Exception) -> str:
    text = str(error).lower()
    if "insufficient_quota" in text or "insufficient quota" in text:
        return "insufficient quota"

    if isinstance(error, openai.RateLimitError):
        return "429 rate limit"

    status = getattr(error, "status_code", None)
    if status == 429:
        return "429 rate limit"
    if isinstance(error, openai.APITimeoutError):
        return "request timed out"
    if status:
        return f"HTTP {status}: {error}"
    return str(error) or error.__class__.__name__


def _collect_citations(response: Any) -> List[Citation]:
    """Pull url_citation annotations out of a Responses API result."""

    citations: List[Citation] = []
    seen: set[str] = set()
    for item in getattr(response, "output", None) or []:
        if getattr(item, "type", None) != "message":
            continue
        for content in getattr(item, "content", None) or []:
            for annotation in getattr(content, "annotations", None) or []:
                if getattr(annotation, "type", None) != "url_citation":
                    continue
                uri = getattr(annotation, "url", None)
                key = uri or f"untitled-{len(citations)}"
                if key in seen:
                    continue
                seen.add(key)
                citations.append(Citation(uri=uri, title=getattr(annotation, "title", None)))
    return citations


def _first_content(label: str, response: Any) -> str:
    """Message text of the first choice; a response without one is a transport failure."""

    choices = getattr(response, "choices", None) or []
    message = getattr(choices[0], "message", None) if choices else None
    if message is None:
        logger.warning("[llm] %s returned no choices", label)
        raise TransportError(f"{label} returned an empty response")
    return getattr(message, "content", None) or ""


class OpenAIModelClient:
    """Implements every provider protocol on top of `openai.AsyncOpenAI`.

    The SDK client is created lazily so a missing key surfaces as a
    `TransportError` on the first call rather than at construction.
    """

    def __init__(self, settings: Optional[ModelSettings] = None, *, client: Any = None):
        self.settings = settings or resolve_model_settings()
        self._client = client

    def _get_client(self) -> Any:
        if self._client is not None:
            return self._client
        if not self.settings.has_api_key:
            raise TransportError("missing OPENAI_API_KEY")
        self._client = openai.AsyncOpenAI(
            api_key=self.settings.api_key,
            timeout=self.settings.request_timeout,
            max_retries=0,
        )
        return self._client

    async def _call(self, label: str, request: Callable[[Any], Awaitable[T]]) -> T:
        client = self._get_client()
        timeout = self.settings.request_timeout
        try:
            return await asyncio.wait_for(request(client), timeout=timeout)
        except asyncio.TimeoutError as exc:
            logger.warning("[llm] %s timed out after %.1fs", label, timeout)
            raise TransportError(f"{label} timed out after {timeout:.1f}s") from exc
        except openai.OpenAIError as exc:
            note = _describe_error(exc)
            logger.warning("[llm] %s failed: %s", label, note)
            raise TransportError(f"{label} failed: {note}") from exc

    async def generate_text(self, prompt: str, *, temperature: float = 0.7) -> str:
        response = await self._call(
            "text completion",
            lambda client: client.chat.completions.create(
                model=self.settings.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=float(temperature),
            ),
        )
        return _first_content("text completion", response).strip()

    async def grounded_search(self, prompt: str) -> GroundedAnswer:
        response = await self._call(
            "grounded search",
            lambda client: client.responses.create(
                model=self.settings.search_model,
                tools=[WEB_SEARCH_TOOL],
                input=prompt,
            ),
        )
        text = (getattr(response, "output_text", None) or "").strip()
        citations = _collect_citations(response)
        logger.info("[llm] grounded search returned %d chars, %d sources", len(text), len(citations))
        return GroundedAnswer(text=text, citations=citations)

    async def extract_structured(self, prompt: str, *, name: str, schema: Dict[str, Any]) -> str:
        response = await self._call(
            "structured extraction",
            lambda client: client.chat.completions.create(
                model=self.settings.model,
                messages=[{"role": "user", "content": prompt}],
                response_format={
                    "type": "json_schema",
                    "json_schema": {"name": name, "schema": schema, "strict": True},
                },
            ),
        )
        return _first_content("structured extraction", response)

    async def chat(self, messages: Sequence[Dict[str, str]]) -> str:
        response = await self._call(
            "chat turn",
            lambda client: client.chat.completions.create(
                model=self.settings.model,
                messages=list(messages),
            ),
        )
        return _first_content("chat turn", response).strip()
