"""OpenAI-compatible client construction and JSON-mode chat calls."""
from __future__ import annotations

import json
import re
from typing import Any

from openai import OpenAI, OpenAIError

from applytrack.config import Settings
from applytrack.errors import UpstreamUnavailable
from applytrack.log import get_logger

log = get_logger(__name__)


def build_client(settings: Settings) -> OpenAI | None:
    """One client per process, or None when no key is configured."""
    if not settings.service_configured:
        log.info("No OPENAI_API_KEY — text-understanding features use local fallbacks")
        return None
    return OpenAI(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url or None,
        timeout=settings.openai_timeout,
        max_retries=0,
    )


_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def _decode_object(raw: str) -> dict[str, Any]:
    """The whole reply, optionally inside one code fence, must be a JSON object."""
    fenced = _FENCE_RE.match(raw)
    if fenced:
        raw = fenced.group(1)
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise UpstreamUnavailable(f"Service returned malformed JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise UpstreamUnavailable("Service returned JSON that is not an object")
    return data


def chat_json(
    client: Any,
    model: str,
    system: str,
    user: str,
    *,
    temperature: float = 0.1,
) -> dict[str, Any]:
    """Single attempt; any transport or format problem raises UpstreamUnavailable."""
    try:
        resp = client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            temperature=temperature,
            response_format={"type": "json_object"},
        )
        raw = (resp.choices[0].message.content or "").strip()
    except OpenAIError as exc:
        raise UpstreamUnavailable(f"Text-understanding service failed: {exc}") from exc
    except (AttributeError, IndexError) as exc:
        raise UpstreamUnavailable(f"Unexpected service response shape: {exc}") from exc
    return _decode_object(raw)
