"""
AI generation with key, model and provider fallback.

Candidate order for one request:
1. Gemini: the requested model first, then its MODEL_FALLBACKS; for each
   model every configured key (primary, secondary, tertiary)
2. OpenRouter (configured default model)
3. DeepSeek (configured default model)

A capacity error (429 / quota) skips the remaining keys for that model,
since Gemini quota is tracked per model. Any other Gemini error tries the
next key. Leaving Gemini for OpenRouter/DeepSeek only happens when the last
Gemini failure was a capacity or availability problem.

Usage:
    service = AIService(load_settings())
    result = await service.generate(GenerationRequest(prompt="Summarise ..."))
    result.text, result.provider_used, result.used_fallback

    data = await service.generate_json(GenerationRequest(prompt="Return JSON ..."))
"""

import functools
import json
import logging
from dataclasses import asdict, dataclass, replace
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, AsyncIterator, Dict, List, Optional, Sequence, Tuple

from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt

from catalyst.common.attempt_log import AttemptSink
from catalyst.common.config import GEMINI_KEY_ORDER, Settings, load_settings
from catalyst.common.errors import CatalystError, InvalidRequestError, MalformedOutputError
from catalyst.common.json_utils import parse_llm_json
from catalyst.common.structured_logger import StructuredLogger
from catalyst.fallback import (
    Candidate,
    FallbackChain,
    allows_provider_switch,
    classify_ai_error,
    classify_key_only,
)
from catalyst.services.ai.providers import GeminiProvider, GenerationRequest, ProviderResponse
from catalyst.services.ai.task_config import get_task_config

if TYPE_CHECKING:
    from catalyst.services.registry import ProviderRegistry

logger = logging.getLogger(__name__)

# When a model hits its quota, try these alternatives (in order)
MODEL_FALLBACKS: Dict[str, List[str]] = {
    "gemini-2.5-pro": ["gemini-2.5-flash", "gemini-2.0-flash"],
    "gemini-2.5-flash": ["gemini-2.0-flash"],
    "gemini-2.0-flash": ["gemini-2.5-flash"],
}

STRICT_JSON_INSTRUCTION = (
    "Respond with valid JSON only. Do not include explanations, Markdown code "
    "fences or reasoning; the first character must be '{' or '['."
)

HEALTH_PROBE_PROMPT = "test"


@dataclass
class GenerationResult:
    """
    Outcome of a generation request.

    Attributes:
        text: Generated text
        model: Model that produced it ("gemini-2.0-flash", "openrouter/...")
        provider: Provider family ("gemini", "openrouter", "deepseek")
        credential: Credential label for Gemini ("primary", ...), else None
        tokens_used: Total tokens reported by the provider
        used_fallback: True unless the first candidate (requested model,
            first key) answered
    """

    text: str
    model: str
    provider: str
    credential: Optional[str] = None
    tokens_used: Optional[int] = None
    used_fallback: bool = False

    @property
    def provider_used(self) -> str:
        """Label of the winning candidate, e.g. "gemini/primary"."""
        return f"{self.provider}/{self.credential}" if self.credential else self.provider

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["provider_used"] = self.provider_used
        return data


def model_ladder(requested: str) -> List[str]:
    """Requested model followed by its quota fallbacks, without duplicates."""
    ladder = [requested]
    for model in MODEL_FALLBACKS.get(requested, []):
        if model not in ladder:
            ladder.append(model)
    return ladder


def _may_leave_provider(error: Optional[CatalystError]) -> bool:
    """Gemini hands over only on capacity/availability; later hops always may."""
    if error is not None and getattr(error, "provider", None) == "gemini":
        return allows_provider_switch(error)
    return error is not None


class AIService:
    """
    Text generation across Gemini keys, Gemini models, OpenRouter and DeepSeek.

    One instance per request: it holds the request's Settings and registry.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        registry: Optional["ProviderRegistry"] = None,
        sink: Optional[AttemptSink] = None,
        struct_logger: Optional[StructuredLogger] = None,
        request_id: Optional[str] = None,
    ):
        self.settings = settings or load_settings()
        if registry is None:
            # Local import: the registry module imports the AI providers
            from catalyst.services.registry import ProviderRegistry

            registry = ProviderRegistry.from_settings(self.settings)
        self.registry = registry
        self.sink = sink
        self.struct_logger = struct_logger
        self.request_id = request_id

    # ===== Request preparation =====

    def _validate(self, request: GenerationRequest) -> GenerationRequest:
        if not request.prompt or not request.prompt.strip():
            raise InvalidRequestError("ai", "prompt is required")
        if not 0.0 <= request.temperature <= 2.0:
            raise InvalidRequestError("ai", f"temperature must be between 0 and 2, got {request.temperature}")
        if request.max_tokens < 1:
            raise InvalidRequestError("ai", f"max_tokens must be positive, got {request.max_tokens}")
        if request.model is None:
            return replace(request, model=self.settings.gemini_default_model)
        return request

    def candidates(self, request: GenerationRequest) -> List[Candidate[ProviderResponse]]:
        """Ordered candidates for a validated request."""
        timeout = self.settings.provider_timeout_seconds
        candidates: List[Candidate[ProviderResponse]] = []

        for model in model_ladder(request.model or self.settings.gemini_default_model):
            for provider in self.registry.gemini_providers():
                candidates.append(Candidate(
                    provider="gemini",
                    call=functools.partial(provider.generate, model=model),
                    model=model,
                    credential=provider.credential,
                    timeout=timeout,
                ))

        for alternate in (self.registry.openrouter(), self.registry.deepseek()):
            if alternate is not None:
                candidates.append(Candidate(
                    provider=alternate.name,
                    call=alternate.generate,
                    model=alternate.model,
                    timeout=timeout,
                ))
        return candidates

    def _chain(self, name: str, candidates: Sequence[Candidate], classify, escalate=None) -> FallbackChain:
        return FallbackChain(
            name,
            candidates,
            classify=classify,
            escalate=escalate,
            sink=self.sink,
            struct_logger=self.struct_logger,
            request_id=self.request_id,
        )

    # ===== Generation =====

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """
        Generate text with full key/model/provider fallback.

        Raises:
            InvalidRequestError: Invalid request (never retried)
            ConfigurationError: No AI provider configured
            AllProvidersFailedError: Every candidate failed
        """
        request = self._validate(request)
        chain = self._chain("ai", self.candidates(request), classify_ai_error, _may_leave_provider)
        result = await chain.run(request)
        response: ProviderResponse = result.value

        if result.used_fallback:
            logger.info(
                f"[AI] Fallback served request: {request.model} -> {result.candidate.label}"
            )
        return GenerationResult(
            text=response.text,
            model=response.model,
            provider=result.provider,
            credential=result.candidate.credential,
            tokens_used=response.tokens_used,
            used_fallback=result.used_fallback,
        )

    async def generate_json(
        self,
        request: GenerationRequest,
        attempts: int = 2,
        repair: bool = False,
    ) -> Any:
        """
        Generate and parse a JSON response.

        When the response cannot be parsed, the request is retried (through
        the full fallback chain) with a stricter JSON-only instruction.

        Args:
            request: Generation request; the prompt should ask for JSON
            attempts: Total generation attempts on malformed output
            repair: Allow json-repair on near-valid JSON

        Returns:
            Parsed JSON value

        Raises:
            MalformedOutputError: Every attempt returned unparseable output
        """
        strict_request = replace(
            request,
            system_instruction="\n\n".join(
                part for part in (request.system_instruction, STRICT_JSON_INSTRUCTION) if part
            ),
        )

        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(MalformedOutputError),
            stop=stop_after_attempt(max(1, attempts)),
            reraise=True,
        ):
            with attempt:
                number = attempt.retry_state.attempt_number
                current = request if number == 1 else strict_request
                if number > 1:
                    logger.warning(f"[AI] Malformed JSON, retrying with strict instruction (attempt {number})")
                result = await self.generate(current)
                try:
                    return parse_llm_json(result.text, repair=repair)
                except MalformedOutputError as e:
                    e.provider = result.provider_used
                    raise

    async def execute_task(self, task_type: str, prompt: str, **overrides: Any) -> GenerationResult:
        """
        Generate with the settings registered for `task_type`.

        Args:
            task_type: Task identifier (see task_config.TASK_CONFIGS)
            prompt: User prompt
            **overrides: model, temperature, max_tokens or system_instruction

        Returns:
            GenerationResult
        """
        config = get_task_config(task_type)
        fields = {
            "model": config.model,
            "temperature": config.temperature,
            "max_tokens": config.max_tokens,
            "system_instruction": config.system_instruction,
        }
        unknown = set(overrides) - set(fields)
        if unknown:
            raise InvalidRequestError("ai", f"Unknown override(s): {', '.join(sorted(unknown))}")
        fields.update({k: v for k, v in overrides.items() if v is not None})
        return await self.generate(GenerationRequest(prompt=prompt, **fields))

    # ===== Embeddings and streaming (Gemini only, key fallback) =====

    async def embed(self, text: str) -> List[float]:
        """
        Embed `text` with the configured embedding model.

        Falls back across keys only; there is no alternate embedding model.
        """
        if not text or not text.strip():
            raise InvalidRequestError("ai", "text is required for embedding")
        model = self.settings.gemini_embedding_model
        candidates = [
            Candidate(
                provider="gemini",
                call=functools.partial(provider.embed, model=model),
                model=model,
                credential=provider.credential,
                timeout=self.settings.provider_timeout_seconds,
            )
            for provider in self.registry.gemini_providers()
        ]
        result = await self._chain("ai_embedding", candidates, classify_key_only).run(text)
        return result.value

    async def stream(self, request: GenerationRequest) -> AsyncIterator[str]:
        """
        Stream text chunks for `request` on the requested model.

        Keys are tried in order until one produces its first chunk; after
        that the stream is committed to that key and later errors surface.
        """
        request = self._validate(request)
        model = request.model or self.settings.gemini_default_model

        async def open_stream(provider: GeminiProvider, req: GenerationRequest) -> Tuple[str, Any]:
            iterator = provider.stream(req, model).__aiter__()
            try:
                first = await iterator.__anext__()
            except StopAsyncIteration:
                first = ""
            return first, iterator

        candidates = [
            Candidate(
                provider="gemini",
                call=functools.partial(open_stream, provider),
                model=model,
                credential=provider.credential,
                timeout=self.settings.provider_timeout_seconds,
            )
            for provider in self.registry.gemini_providers()
        ]
        result = await self._chain("ai_stream", candidates, classify_key_only).run(request)
        first, iterator = result.value
        try:
            if first:
                yield first
            async for chunk in iterator:
                yield chunk
        finally:
            await iterator.aclose()

    # ===== Health =====

    async def check_health(self) -> Dict[str, Any]:
        """
        Probe every Gemini key with a minimal request.

        Returns:
            {"available": bool, "keys": [{"type", "status", "error"?}],
             "alternates": {"openrouter": bool, "deepseek": bool},
             "timestamp": iso}
            where status is "ok", "error" or "missing"
        """
        providers = {p.credential: p for p in self.registry.gemini_providers()}
        probe = GenerationRequest(prompt=HEALTH_PROBE_PROMPT, max_tokens=8)
        keys: List[Dict[str, Any]] = []

        for label in GEMINI_KEY_ORDER:
            provider = providers.get(label)
            if provider is None:
                keys.append({"type": label, "status": "missing"})
                continue
            try:
                await provider.generate(probe, self.settings.gemini_default_model)
                keys.append({"type": label, "status": "ok"})
            except MalformedOutputError:
                # The key authenticated; the tiny token budget just left no text
                keys.append({"type": label, "status": "ok"})
            except CatalystError as e:
                logger.warning(f"[AI] Health probe failed for {label} key: {e}")
                keys.append({"type": label, "status": "error", "error": str(e)})

        return {
            "available": any(k["status"] == "ok" for k in keys),
            "keys": keys,
            "alternates": {
                "openrouter": self.registry.openrouter() is not None,
                "deepseek": self.registry.deepseek() is not None,
            },
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    # ===== Task helpers =====

    async def analyze_resume(self, resume_text: str) -> GenerationResult:
        return await self.execute_task("resume-analysis", f"""
Analyze this resume and provide feedback on:
1. ATS optimization (keywords, formatting)
2. Content clarity and impact
3. Skills and experience presentation
4. Suggestions for improvement

Resume:
{resume_text}

Provide structured feedback in JSON format.
""")

    async def generate_interview_questions(
        self, job_description: str, role: str, count: int = 5
    ) -> GenerationResult:
        return await self.execute_task("interview-questions", f"""
Generate {count} relevant interview questions for a {role} position.

Job Description:
{job_description}

Return questions in JSON array format.
""")

    async def provide_interview_feedback(
        self, questions: Sequence[str], answers: Sequence[str]
    ) -> GenerationResult:
        if len(questions) != len(answers):
            raise InvalidRequestError("ai", "questions and answers must have the same length")
        qa_text = "\n\n".join(f"Q: {q}\nA: {a}" for q, a in zip(questions, answers))
        return await self.execute_task("interview-feedback", f"""
Evaluate these interview responses and provide detailed feedback:

{qa_text}

Provide:
1. Overall assessment
2. Strengths
3. Areas for improvement
4. Specific suggestions

Return feedback in JSON format.
""")

    async def match_jobs(self, candidate_profile: Dict[str, Any], jobs: Sequence[Dict[str, Any]]) -> GenerationResult:
        return await self.execute_task("job-matching", f"""
Match these jobs to the candidate profile and rank by relevance.

Candidate: {json.dumps(candidate_profile, default=str)}
Jobs: {json.dumps(list(jobs), default=str)}

Return ranked job IDs with match scores and reasons in JSON.
""")


async def generate(request: GenerationRequest, settings: Optional[Settings] = None) -> GenerationResult:
    """Generate with a fresh service built from `settings` (or the environment)."""
    return await AIService(settings).generate(request)
