"""
FastAPI service exposing the Catalyst provider chains.

Error mapping for every route:
- InvalidRequestError -> 400
- ConfigurationError -> 503 (no provider configured for the chain)
- MalformedOutputError, AllProvidersFailedError -> 502
"""

import logging
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from catalyst.common.config import load_settings
from catalyst.common.errors import (
    AllProvidersFailedError,
    CatalystError,
    ConfigurationError,
    InvalidRequestError,
    MalformedOutputError,
)
from catalyst.common.logger import setup_logging
from version import __version__

from .routes import ai_router, debug_router, email_router, jobs_router

_startup_settings = load_settings()
setup_logging(_startup_settings.log_level, _startup_settings.log_format)
logger = logging.getLogger(__name__)

for warning in _startup_settings.validate_providers():
    logger.warning(f"Configuration: {warning}")
logger.info(_startup_settings.summary())

app = FastAPI(title="Catalyst Provider Service", version=__version__)

if _startup_settings.cors_origins_list:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_startup_settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(ai_router)
app.include_router(jobs_router)
app.include_router(email_router)
app.include_router(debug_router)


def _status_for(error: CatalystError) -> int:
    if isinstance(error, InvalidRequestError):
        return 400
    if isinstance(error, ConfigurationError):
        return 503
    if isinstance(error, (MalformedOutputError, AllProvidersFailedError)):
        return 502
    return 502


@app.exception_handler(CatalystError)
async def catalyst_error_handler(request: Request, exc: CatalystError) -> JSONResponse:
    status_code = _status_for(exc)
    body: Dict[str, Any] = {"error": str(exc), "type": type(exc).__name__}
    if isinstance(exc, AllProvidersFailedError):
        body["errors"] = [{"provider": label, "error": message} for label, message in exc.errors]
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=status_code, content=body)


@app.get("/health")
async def health_check() -> Dict[str, Any]:
    """Liveness probe; does not contact any provider."""
    return {"status": "healthy", "version": __version__}
