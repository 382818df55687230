"""
Per-Task AI Configuration.

Each task type (resume analysis, interview feedback, chat, ...) gets its own
preferred model, temperature, token budget and system instruction, with
environment variable overrides for experimentation.

Usage:
    from catalyst.services.ai.task_config import get_task_config

    config = get_task_config("resume-analysis")
    config.model        # "gemini-2.5-pro"
    config.temperature  # 0.3

    # Environment variable overrides (dashes become underscores):
    # AI_MODEL_resume_analysis=gemini-2.5-flash
    # AI_TEMPERATURE_chat=0.5
    # AI_MAX_TOKENS_career_research=4096
"""

import logging
import os
from dataclasses import dataclass, replace
from typing import Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 2048


@dataclass(frozen=True)
class TaskConfig:
    """
    Generation settings for one task type.

    Attributes:
        model: Preferred Gemini model (None uses the configured default)
        temperature: Sampling temperature
        max_tokens: Maximum output tokens
        system_instruction: System prompt sent with every request
    """

    model: Optional[str] = None
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    system_instruction: Optional[str] = None


# ===== TASK CONFIGURATIONS =====

TASK_CONFIGS: Dict[str, TaskConfig] = {
    # Resume
    "resume-analysis": TaskConfig(
        model="gemini-2.5-pro",
        temperature=0.3,
        max_tokens=2048,
        system_instruction="You are an expert resume analyst. Analyze resumes for ATS optimization, clarity, and impact.",
    ),
    "resume-generation": TaskConfig(
        model="gemini-2.5-pro",
        temperature=0.5,
        max_tokens=3072,
        system_instruction="You are a professional resume writer. Create clear, ATS-optimized content.",
    ),

    # Interview
    "interview-questions": TaskConfig(
        model="gemini-2.0-flash",
        temperature=0.7,
        max_tokens=1024,
        system_instruction="You are an experienced interviewer. Ask relevant, probing questions.",
    ),
    "interview-feedback": TaskConfig(
        model="gemini-2.5-pro",
        temperature=0.4,
        max_tokens=2048,
        system_instruction="You are an interview coach. Provide constructive, actionable feedback.",
    ),

    # Jobs and research
    "job-matching": TaskConfig(
        model="gemini-2.0-flash",
        temperature=0.2,
        max_tokens=1024,
        system_instruction="You are a career counselor. Match candidates with suitable job opportunities.",
    ),
    "career-research": TaskConfig(
        model="gemini-2.5-pro",
        temperature=0.6,
        max_tokens=3072,
        system_instruction="You are a career research expert. Provide insights on industries, trends, and opportunities.",
    ),

    # Conversation
    "chat": TaskConfig(
        model="gemini-2.0-flash",
        temperature=0.8,
        max_tokens=2048,
        system_instruction="You are a helpful career assistant. Be conversational and supportive.",
    ),
    "general": TaskConfig(model="gemini-2.0-flash"),
}


def _get_env_override(task_type: str, setting: str) -> Optional[str]:
    """
    Get environment variable override for a task setting.

    Checks AI_{SETTING}_{task} with dashes in the task name replaced by
    underscores, e.g. AI_TEMPERATURE_resume_analysis.
    """
    env_var = f"AI_{setting}_{task_type.replace('-', '_')}"
    value = os.getenv(env_var)
    if value:
        logger.debug(f"Using env override {env_var}={value}")
    return value


def get_task_config(task_type: str) -> TaskConfig:
    """
    Get configuration for a task type, with environment variable overrides.

    Unknown task types fall back to the "general" configuration.

    Args:
        task_type: Task identifier (e.g., "resume-analysis", "chat")

    Returns:
        TaskConfig with overrides applied (the table itself is never mutated)
    """
    config = TASK_CONFIGS.get(task_type, TASK_CONFIGS["general"])

    model_override = _get_env_override(task_type, "MODEL")
    if model_override:
        config = replace(config, model=model_override)

    temperature_override = _get_env_override(task_type, "TEMPERATURE")
    if temperature_override:
        try:
            config = replace(config, temperature=float(temperature_override))
        except ValueError:
            logger.warning(f"Invalid temperature override for {task_type}: {temperature_override}")

    tokens_override = _get_env_override(task_type, "MAX_TOKENS")
    if tokens_override:
        try:
            config = replace(config, max_tokens=int(tokens_override))
        except ValueError:
            logger.warning(f"Invalid max tokens override for {task_type}: {tokens_override}")

    return config


def get_all_task_configs() -> Dict[str, TaskConfig]:
    """Get all task configurations with environment overrides applied."""
    return {task_type: get_task_config(task_type) for task_type in TASK_CONFIGS}
