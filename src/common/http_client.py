"""Shared async HTTP helper used by the registry client.

Encapsulates request/timeout error handling and DEBUG traces so the
registry module only deals with registry semantics.
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Optional, Tuple

import aiohttp

from errors import FetchError
from common.logging_utils import Timer, extra_context, is_debug_enabled, safe_url

logger = logging.getLogger(__name__)


async def get_json(
    session: aiohttp.ClientSession,
    url: str,
    *,
    context: str,
    headers: Optional[Dict[str, str]] = None,
    **kwargs: Any,
) -> Tuple[int, Dict[str, str], Optional[Any]]:
    """Perform a GET request and decode a JSON body.

    Args:
        session: Open aiohttp session.
        url: Target URL.
        context: Human-readable source tag for logs (e.g., "npm").
        headers: Optional request headers.
        **kwargs: Passed through to `session.get` (proxy, ssl, ...).

    Returns:
        Tuple of (status_code, headers_dict, parsed_json_or_none). The body
        is only decoded for 2xx responses.

    Raises:
        FetchError: On transport failures, request timeouts, or a 2xx body
            that is not valid JSON.
    """
    safe_target = safe_url(url)
    with Timer() as t:
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP request",
                extra=extra_context(
                    event="http_request",
                    component="http_client",
                    action="GET",
                    target=safe_target,
                    context=context,
                ),
            )
        try:
            async with session.get(url, headers=headers, **kwargs) as response:
                status = response.status
                response_headers = dict(response.headers)
                body = await response.text() if 200 <= status < 300 else None
        except asyncio.TimeoutError:
            logger.error("%s request timed out: %s", context, safe_target)
            raise FetchError(f"{context} request timed out", url=safe_target) from None
        except aiohttp.ClientError as exc:
            logger.error("%s connection error: %s", context, exc)
            raise FetchError(f"{context} connection error: {exc}", url=safe_target) from exc

    if is_debug_enabled(logger):
        logger.debug(
            "HTTP response",
            extra=extra_context(
                event="http_response",
                component="http_client",
                action="GET",
                status_code=status,
                duration_ms=t.duration_ms(),
                target=safe_target,
                context=context,
            ),
        )

    if body is None:
        return status, response_headers, None
    try:
        return status, response_headers, json.loads(body)
    except json.JSONDecodeError as exc:
        raise FetchError(
            f"{context} returned invalid JSON", url=safe_target, status=status
        ) from exc
