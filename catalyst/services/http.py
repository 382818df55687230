"""
Shared httpx plumbing for the HTTP-based providers (job boards, mailers).

send_request() performs one request and raises typed errors from
catalyst.common.errors on any transport or status failure, so provider
classes only deal with successful responses.
"""

import logging
from typing import Any, Iterable, Optional

import httpx

from catalyst.fallback.classification import translate_exception

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


async def send_request(
    provider: str,
    method: str,
    url: str,
    client: Optional[httpx.AsyncClient] = None,
    timeout: Optional[float] = DEFAULT_TIMEOUT,
    invalid_statuses: Iterable[int] = (),
    **kwargs: Any,
) -> httpx.Response:
    """
    Send one HTTP request on behalf of `provider`.

    Args:
        provider: Provider name used in errors
        method: HTTP method
        url: Absolute URL
        client: Shared client; a short-lived one is created when omitted
        timeout: Request timeout in seconds
        invalid_statuses: Statuses meaning the request itself is invalid
        **kwargs: Passed through to httpx (params, json, data, files, auth, headers)

    Returns:
        The successful (2xx) response

    Raises:
        CatalystError: Translated transport or status failure
    """
    try:
        if client is not None:
            response = await client.request(method, url, timeout=timeout, **kwargs)
        else:
            async with httpx.AsyncClient(timeout=timeout) as owned_client:
                response = await owned_client.request(method, url, **kwargs)
        response.raise_for_status()
    except Exception as e:
        raise translate_exception(provider, e, invalid_statuses) from e

    logger.debug(f"[{provider}] {method} -> {response.status_code}")
    return response
