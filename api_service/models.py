"""
Pydantic models for the API requests and responses.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field


# ===== AI =====

class GenerateRequest(BaseModel):
    """Request body for text generation."""

    prompt: str = Field(..., min_length=1, description="User prompt")
    model: Optional[str] = Field(None, description="Preferred Gemini model")
    temperature: float = Field(0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(2048, ge=1, le=65536)
    system_instruction: Optional[str] = None


class GenerateJsonRequest(GenerateRequest):
    """Request body for JSON generation."""

    attempts: int = Field(2, ge=1, le=5, description="Generations allowed on malformed output")
    repair: bool = Field(False, description="Allow json-repair on near-valid JSON")


class TaskRequest(BaseModel):
    """Request body for a task-typed generation."""

    prompt: str = Field(..., min_length=1)
    model: Optional[str] = None
    temperature: Optional[float] = Field(None, ge=0.0, le=2.0)
    max_tokens: Optional[int] = Field(None, ge=1, le=65536)


class GenerateResponse(BaseModel):
    text: str
    model: str
    provider: str
    provider_used: str
    credential: Optional[str] = None
    tokens_used: Optional[int] = None
    used_fallback: bool


class GenerateJsonResponse(BaseModel):
    data: Any


# ===== Jobs =====

class JobPostingModel(BaseModel):
    id: str
    title: str
    company: str
    location: str
    description: str
    url: str
    source: str
    salary: Optional[str] = None
    posted_date: Optional[str] = None


class JobSearchResponse(BaseModel):
    """
    Job search result. On total failure `jobs` is empty and `error` is set
    (the endpoint still answers 200).
    """

    jobs: List[JobPostingModel] = Field(default_factory=list)
    count: int = 0
    source: Optional[str] = None
    used_fallback: bool = False
    sources: Optional[Dict[str, int]] = None
    failures: Optional[Dict[str, str]] = None
    error: Optional[str] = None


# ===== Email =====

class AttachmentModel(BaseModel):
    filename: str = Field(..., min_length=1)
    content_base64: str = Field(..., description="Base64-encoded file content")
    content_type: str = "application/octet-stream"


class SendEmailRequest(BaseModel):
    to: Union[str, List[str]]
    subject: str = Field(..., min_length=1)
    html: Optional[str] = None
    text: Optional[str] = None
    attachments: List[AttachmentModel] = Field(default_factory=list)


class ReportEmailRequest(BaseModel):
    to: str = Field(..., min_length=1)
    report_type: str = Field(..., min_length=1, alias="reportType")
    data: Dict[str, Any]

    model_config = {"populate_by_name": True}


class EmailResponse(BaseModel):
    success: bool = True
    provider: str
    used_fallback: bool
    message_id: Optional[str] = None


# ===== Debug =====

class ApiLogsResponse(BaseModel):
    logs: List[Dict[str, Any]]
    count: int


class FallbackStatsResponse(BaseModel):
    stats: List[Dict[str, Any]]
