"""
Inference Gateway

Single-shot chat-completion calls against OpenRouter (OpenAI-compatible
schema). One request per call: no streaming, no retries. The caller's
credential is sent only as the bearer token and is never logged.

Provider bodies are validated at the boundary into ProviderSuccess or
ProviderFailure before anything downstream touches them.
"""

import http.client
import json
import logging
import time
from dataclasses import dataclass
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from app.config import settings
from app.errors import UpstreamError

logger = logging.getLogger(__name__)

DEFAULT_MODELS = [
    {"id": "google/gemini-2.0-flash-exp:free", "name": "Gemini 2.0 Flash (Free)"},
    {"id": "openai/gpt-4-turbo", "name": "GPT-4 Turbo"},
    {"id": "anthropic/claude-3-opus", "name": "Claude 3 Opus"},
    {"id": "mistral/mistral-large", "name": "Mistral Large"},
]
MAX_EXTRA_MODELS = 20


@dataclass(frozen=True)
class ProviderSuccess:
    text: str


@dataclass(frozen=True)
class ProviderFailure:
    message: str


def parse_provider_response(payload) -> ProviderSuccess | ProviderFailure:
    """Classify a decoded provider body."""
    if not isinstance(payload, dict):
        return ProviderFailure("Malformed response from inference provider")

    error = payload.get("error")
    if error:
        if isinstance(error, dict):
            return ProviderFailure(error.get("message") or "Inference provider error")
        return ProviderFailure(str(error))

    try:
        content = payload["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return ProviderFailure("Malformed response from inference provider: no completion returned")

    if not isinstance(content, str) or not content.strip():
        return ProviderFailure("Inference provider returned an empty completion")
    return ProviderSuccess(content)


def _headers(credential: str) -> dict:
    return {
        "Authorization": f"Bearer {credential}",
        "Content-Type": "application/json",
        "HTTP-Referer": settings.openrouter_referer,
        "X-Title": settings.openrouter_title,
    }


def _post_json(url: str, payload: dict, headers: dict) -> dict:
    """POST a JSON body and decode the JSON reply.

    Error statuses are decoded too: OpenRouter puts an ``error`` object in
    the body of 4xx/5xx replies.
    """
    try:
        req = Request(url, data=json.dumps(payload).encode(), headers=headers, method="POST")
        with urlopen(req, timeout=settings.llm_timeout_s) as resp:
            body = resp.read()
    except HTTPError as e:
        logger.warning("Inference provider returned HTTP %d", e.code)
        try:
            body = e.read()
        except (OSError, http.client.HTTPException):
            body = b""
        if not body:
            raise UpstreamError(f"Inference provider returned HTTP {e.code}") from e
    except URLError as e:
        raise UpstreamError(f"Could not reach inference provider: {e.reason}") from e
    except (OSError, ValueError, http.client.HTTPException) as e:
        raise UpstreamError(f"Inference provider request failed: {str(e) or type(e).__name__}") from e

    try:
        return json.loads(body)
    except ValueError as e:
        raise UpstreamError("Inference provider returned a non-JSON body") from e


def build_completion_request(messages: list[dict], model_id: str) -> dict:
    return {
        "model": model_id,
        "messages": messages,
        "temperature": settings.llm_temperature,
        "max_tokens": settings.llm_max_tokens,
    }


def call_model(system_message: str, messages: list[dict], model_id: str, credential: str) -> str:
    """Send one chat completion and return its text, or raise UpstreamError."""
    provider_messages = [{"role": "system", "content": system_message}, *messages]
    payload = build_completion_request(provider_messages, model_id)

    start = time.time()
    body = _post_json(
        f"{settings.openrouter_base_url}/chat/completions",
        payload,
        _headers(credential),
    )
    duration_ms = (time.time() - start) * 1000

    result = parse_provider_response(body)
    if isinstance(result, ProviderFailure):
        logger.error(
            "llm_call_failed",
            extra={"model": model_id, "error": result.message, "duration_ms": round(duration_ms, 1)},
        )
        raise UpstreamError(result.message)

    logger.info(
        "llm_call",
        extra={"model": model_id, "chars": len(result.text), "duration_ms": round(duration_ms, 1)},
    )
    return result.text


def _get_json(url: str) -> dict:
    req = Request(url, headers={"User-Agent": "AITradePro/1.0"})
    with urlopen(req, timeout=10) as resp:
        return json.loads(resp.read())


def list_models() -> list[dict]:
    """Built-in models plus up to MAX_EXTRA_MODELS from the provider's public catalog."""
    models = [dict(m) for m in DEFAULT_MODELS]
    try:
        data = _get_json(f"{settings.openrouter_base_url}/models")
    except (URLError, OSError, ValueError, http.client.HTTPException) as e:
        logger.warning("Model catalog fetch failed: %s", e)
        return models

    if not isinstance(data, dict):
        logger.warning("Model catalog returned an unexpected body")
        return models

    known = {m["id"] for m in models}
    extra = []
    for m in data.get("data") or []:
        model_id = m.get("id")
        if not model_id or model_id in known:
            continue
        known.add(model_id)
        extra.append({"id": model_id, "name": m.get("name") or model_id})
    return models + extra[:MAX_EXTRA_MODELS]
