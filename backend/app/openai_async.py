"""Async client for the OpenAI-compatible completion API.

Every failure mode (missing key, transport error, error status, non-JSON body)
surfaces as :class:`OpenAIUnavailable`; callers decide what the end user sees.
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx

from .settings import settings

CHAT_COMPLETIONS_PATH = "/chat/completions"
DEFAULT_API_BASE = "https://api.openai.com/v1"

_client: httpx.AsyncClient | None = None
_client_lock = asyncio.Lock()


class OpenAIUnavailable(RuntimeError):
    pass


def _auth_headers() -> dict[str, str]:
    if not settings.OPENAI_API_KEY:
        raise OpenAIUnavailable("OPENAI_API_KEY not configured")
    return {"Authorization": f"Bearer {settings.OPENAI_API_KEY}"}


def _upstream_reason(response: httpx.Response) -> str:
    # OpenAI wraps failures as {"error": {"message": ..., "type": ...}}
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])[:200]
    return response.text[:200]


async def _get_client() -> httpx.AsyncClient:
    global _client
    if _client is None:
        async with _client_lock:
            if _client is None:
                _client = httpx.AsyncClient(
                    base_url=settings.OPENAI_API_BASE.rstrip("/") or DEFAULT_API_BASE,
                    timeout=httpx.Timeout(
                        settings.OPENAI_TIMEOUT_SECONDS,
                        connect=settings.OPENAI_CONNECT_TIMEOUT_SECONDS,
                    ),
                )
    return _client


async def post_json(path: str, payload: dict[str, Any]) -> dict[str, Any]:
    headers = _auth_headers()
    client = await _get_client()
    try:
        response = await client.post(path, json=payload, headers=headers)
    except httpx.HTTPError as exc:
        raise OpenAIUnavailable(f"Request failed: {type(exc).__name__}: {exc}") from exc
    if response.is_error:
        raise OpenAIUnavailable(
            f"OpenAI error {response.status_code}: {_upstream_reason(response)}"
        )
    try:
        return response.json()
    except ValueError as exc:
        raise OpenAIUnavailable("Invalid JSON from OpenAI") from exc


async def close_async_client() -> None:
    """Release the pooled connection; called from the app lifespan on shutdown."""
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
