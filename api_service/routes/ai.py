"""
AI generation routes.

- POST /api/ai/generate - free-form generation with full fallback
- POST /api/ai/generate-json - generation parsed as JSON (retried on malformed output)
- POST /api/ai/tasks/{task_type} - generation with the task's model and settings
"""

import logging

from fastapi import APIRouter, Depends

from catalyst.services.ai import AIService, GenerationRequest

from ..auth import verify_token
from ..dependencies import get_ai_service
from ..models import GenerateJsonRequest, GenerateJsonResponse, GenerateRequest, GenerateResponse, TaskRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai", tags=["ai"], dependencies=[Depends(verify_token)])


@router.post("/generate", response_model=GenerateResponse)
async def generate(body: GenerateRequest, service: AIService = Depends(get_ai_service)) -> GenerateResponse:
    result = await service.generate(GenerationRequest(**body.model_dump()))
    return GenerateResponse(**result.to_dict())


@router.post("/generate-json", response_model=GenerateJsonResponse)
async def generate_json(
    body: GenerateJsonRequest,
    service: AIService = Depends(get_ai_service),
) -> GenerateJsonResponse:
    request = GenerationRequest(**body.model_dump(exclude={"attempts", "repair"}))
    data = await service.generate_json(request, attempts=body.attempts, repair=body.repair)
    return GenerateJsonResponse(data=data)


@router.post("/tasks/{task_type}", response_model=GenerateResponse)
async def execute_task(
    task_type: str,
    body: TaskRequest,
    service: AIService = Depends(get_ai_service),
) -> GenerateResponse:
    """Unknown task types use the "general" settings."""
    overrides = body.model_dump(exclude={"prompt"}, exclude_none=True)
    result = await service.execute_task(task_type, body.prompt, **overrides)
    return GenerateResponse(**result.to_dict())
