"""Shared JSON-over-HTTP helper for httpx-based adapters."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import httpx

from multiai.errors import ProviderError

logger = logging.getLogger(__name__)


async def post_json(
    provider_id: str,
    url: str,
    payload: dict[str, Any],
    *,
    headers: dict[str, str] | None = None,
    timeout: float = 60.0,
) -> Any:
    """POST *payload* and return the decoded JSON body.

    Transport errors, non-2xx statuses and non-JSON bodies all surface as
    ``ProviderError`` for *provider_id*.
    """
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            resp = await client.post(url, json=payload, headers=headers or {})
    except httpx.TimeoutException as exc:
        msg = f"Request timed out: {exc}"
        raise ProviderError(provider_id, msg) from exc
    except httpx.HTTPError as exc:
        logger.exception("%s request failed", provider_id)
        msg = f"Request failed: {exc}"
        raise ProviderError(provider_id, msg) from exc

    if not resp.is_success:
        msg = f"API error {resp.status_code}: {resp.reason_phrase or resp.text[:200]}"
        raise ProviderError(provider_id, msg, status_code=resp.status_code)

    try:
        return resp.json()
    except ValueError as exc:
        msg = "Response body is not valid JSON"
        raise ProviderError(provider_id, msg, status_code=resp.status_code) from exc


def extract_text(provider_id: str, data: Any, getter: Callable[[Any], Any]) -> str:
    """Pull the reply text out of *data*, raising ``ProviderError`` if the shape is wrong."""
    try:
        text = getter(data)
    except (KeyError, IndexError, TypeError) as exc:
        msg = f"Malformed response: {exc!r}"
        raise ProviderError(provider_id, msg) from exc
    if not isinstance(text, str):
        msg = f"Malformed response: expected text, got {type(text).__name__}"
        raise ProviderError(provider_id, msg)
    return text
