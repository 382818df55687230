"""
Authentication Module

Bearer-token authentication with a shared secret (API_SECRET). When no
secret is configured every request is accepted.
"""

import logging
import secrets
from typing import Optional

from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from catalyst.common.config import Settings

from .dependencies import get_settings

logger = logging.getLogger(__name__)
security = HTTPBearer(auto_error=False)


async def verify_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    settings: Settings = Depends(get_settings),
) -> Optional[HTTPAuthorizationCredentials]:
    """
    Verify the shared secret token.

    Args:
        credentials: Bearer token from request header
        settings: Request settings

    Returns:
        The credentials (None when auth is not required)

    Raises:
        HTTPException: 401 if the token is missing or invalid
    """
    if not settings.auth_required:
        return credentials

    if credentials is None:
        raise HTTPException(status_code=401, detail="Missing authentication token")

    if not secrets.compare_digest(credentials.credentials, settings.api_secret or ""):
        logger.warning("Rejected request with invalid authentication token")
        raise HTTPException(status_code=401, detail="Invalid authentication token")

    return credentials
