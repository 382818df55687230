"""
AI provider adapters.

Each adapter performs exactly one call with one credential against one model
and returns a ProviderResponse. Adapters never retry (the fallback chain
does) and raise typed errors from catalyst.common.errors:

- GeminiProvider: google-genai async client, one per API key
- OpenAICompatibleProvider: LangChain ChatOpenAI pointed at OpenRouter or
  DeepSeek's OpenAI-compatible endpoint
"""

import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, List, Optional

from google import genai
from google.genai import types
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from catalyst.common.errors import CatalystError, MalformedOutputError
from catalyst.common.json_utils import strip_reasoning_blocks
from catalyst.fallback.classification import OPENAI_INVALID_STATUSES, translate_exception
from catalyst.services.ai.task_config import DEFAULT_MAX_TOKENS, DEFAULT_TEMPERATURE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationRequest:
    """
    A single text generation request.

    Attributes:
        prompt: User prompt
        model: Requested Gemini model (None uses the configured default)
        temperature: Sampling temperature
        max_tokens: Maximum output tokens
        system_instruction: Optional system prompt
    """

    prompt: str
    model: Optional[str] = None
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    system_instruction: Optional[str] = None

    def __str__(self) -> str:
        # Attempt records carry this; keep prompts out of logs beyond a preview
        preview = self.prompt[:80] + "..." if len(self.prompt) > 80 else self.prompt
        return f"model={self.model or 'default'} prompt={preview!r}"


@dataclass
class ProviderResponse:
    """Raw result of one successful provider call."""
    text: str
    model: str
    tokens_used: Optional[int] = None


class GeminiProvider:
    """Gemini models through google-genai, bound to one API key."""

    name = "gemini"

    def __init__(self, api_key: str, credential: str = "primary", client: Optional[genai.Client] = None):
        self.credential = credential
        self._client = client or genai.Client(api_key=api_key)

    def _config(self, request: GenerationRequest) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            temperature=request.temperature,
            max_output_tokens=request.max_tokens,
            system_instruction=request.system_instruction,
        )

    async def generate(self, request: GenerationRequest, model: str) -> ProviderResponse:
        """
        Generate text with `model`.

        Raises:
            CatalystError: Translated google-genai failure
        """
        try:
            response = await self._client.aio.models.generate_content(
                model=model,
                contents=request.prompt,
                config=self._config(request),
            )
        except CatalystError:
            raise
        except Exception as e:
            raise translate_exception(self.name, e) from e

        text = response.text
        if text is None:
            raise MalformedOutputError("empty candidate (blocked or truncated)", provider=self.name)

        usage = response.usage_metadata
        return ProviderResponse(
            text=text,
            model=model,
            tokens_used=usage.total_token_count if usage else None,
        )

    async def stream(self, request: GenerationRequest, model: str) -> AsyncIterator[str]:
        """Yield text chunks as Gemini produces them."""
        try:
            chunks = await self._client.aio.models.generate_content_stream(
                model=model,
                contents=request.prompt,
                config=self._config(request),
            )
            async for chunk in chunks:
                if chunk.text:
                    yield chunk.text
        except CatalystError:
            raise
        except Exception as e:
            raise translate_exception(self.name, e) from e

    async def embed(self, text: str, model: str) -> List[float]:
        """Embed `text` with the embedding model."""
        try:
            response = await self._client.aio.models.embed_content(model=model, contents=text)
        except Exception as e:
            raise translate_exception(self.name, e) from e

        if not response.embeddings or response.embeddings[0].values is None:
            raise MalformedOutputError("no embedding returned", provider=self.name)
        return list(response.embeddings[0].values)


class OpenAICompatibleProvider:
    """
    Chat completions against an OpenAI-compatible API (OpenRouter, DeepSeek).

    The LangChain client is built per call because temperature and token
    limits travel with the request.
    """

    def __init__(
        self,
        name: str,
        api_key: str,
        base_url: str,
        model: str,
        timeout: Optional[float] = None,
        default_headers: Optional[Dict[str, str]] = None,
    ):
        self.name = name
        self.model = model
        self._api_key = api_key
        self._base_url = base_url
        self._timeout = timeout
        self._default_headers = default_headers

    def _llm(self, request: GenerationRequest) -> ChatOpenAI:
        return ChatOpenAI(
            model=self.model,
            api_key=self._api_key,
            base_url=self._base_url,
            temperature=request.temperature,
            max_tokens=request.max_tokens,
            timeout=self._timeout,
            max_retries=0,
            default_headers=self._default_headers,
        )

    @staticmethod
    def _messages(request: GenerationRequest) -> List[BaseMessage]:
        messages: List[BaseMessage] = []
        if request.system_instruction:
            messages.append(SystemMessage(content=request.system_instruction))
        messages.append(HumanMessage(content=request.prompt))
        return messages

    async def generate(self, request: GenerationRequest) -> ProviderResponse:
        try:
            response = await self._llm(request).ainvoke(self._messages(request))
        except Exception as e:
            raise translate_exception(self.name, e, OPENAI_INVALID_STATUSES) from e

        content: Any = response.content
        if isinstance(content, list):
            content = "".join(part if isinstance(part, str) else part.get("text", "") for part in content)

        usage = getattr(response, "usage_metadata", None)
        return ProviderResponse(
            # Reasoning models served here prepend <think> blocks to the answer
            text=strip_reasoning_blocks(content or ""),
            model=f"{self.name}/{self.model}",
            tokens_used=usage.get("total_tokens") if usage else None,
        )
