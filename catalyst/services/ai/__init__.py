"""
AI generation chain.

Public API:
- AIService: generate, generate_json, execute_task, embed, stream, check_health
- GenerationRequest / GenerationResult
- generate(): one-shot convenience using settings from the environment
"""

from .ai_service import MODEL_FALLBACKS, AIService, GenerationResult, generate, model_ladder
from .providers import GeminiProvider, GenerationRequest, OpenAICompatibleProvider, ProviderResponse
from .task_config import TASK_CONFIGS, TaskConfig, get_task_config

__all__ = [
    "AIService",
    "GeminiProvider",
    "GenerationRequest",
    "GenerationResult",
    "MODEL_FALLBACKS",
    "OpenAICompatibleProvider",
    "ProviderResponse",
    "TASK_CONFIGS",
    "TaskConfig",
    "generate",
    "get_task_config",
    "model_ladder",
]
