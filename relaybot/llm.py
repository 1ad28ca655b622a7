"""Minimal OpenAI-compatible chat completions client used for both answers."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, fields
from typing import Any
from urllib import error, request

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "llama-3.3-70b-versatile"
GROQ_BASE = "https://api.groq.com/openai/v1"
DEFAULT_TIMEOUT_SECONDS = 60
EMPTY_ANSWER = "(empty answer)"


class LLMError(RuntimeError):
    """Raised when the provider answers with an HTTP error."""

    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"LLM API HTTP {status}: {body}")
        self.status = status
        self.body = body


@dataclass(frozen=True)
class GenerationParams:
    temperature: float | None = None
    max_tokens: int | None = None
    frequency_penalty: float | None = None
    presence_penalty: float | None = None
    stop: tuple[str, ...] | None = None

    def request_fields(self) -> dict[str, Any]:
        """Only the parameters that are set; unset ones are left out of the request."""
        out: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            out[f.name] = list(value) if f.name == "stop" else value
        return out


def _parse_usage(data: Any) -> dict[str, Any]:
    usage = data.get("usage") if isinstance(data, dict) else None
    if not isinstance(usage, dict):
        usage = {}
    return {
        "prompt_tokens": usage.get("prompt_tokens", 0),
        "completion_tokens": usage.get("completion_tokens", 0),
        "total_tokens": usage.get("total_tokens", 0),
    }


def _first_content(data: Any) -> str | None:
    """First choice's message text, or None for any other response shape."""
    if not isinstance(data, dict):
        return None
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    choice = choices[0]
    if not isinstance(choice, dict):
        return None
    msg = choice.get("message")
    if not isinstance(msg, dict):
        return None
    content = msg.get("content")
    return content if isinstance(content, str) else None


def complete(
    messages: list[dict[str, str]],
    params: GenerationParams,
    api_key: str,
    *,
    base_url: str | None = None,
    model: str = DEFAULT_MODEL,
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
) -> tuple[str, dict[str, Any]]:
    """
    Call an OpenAI-compatible chat completions API once.
    Returns (content, usage). Content is EMPTY_ANSWER when the provider sends none.
    HTTP errors raise LLMError; network errors propagate unchanged.
    """
    url = (base_url or GROQ_BASE).rstrip("/") + "/chat/completions"
    body: dict[str, Any] = {"model": model, "messages": messages}
    body.update(params.request_fields())
    encoded = json.dumps(body).encode("utf-8")
    headers: dict[str, str] = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {api_key}",
    }
    req = request.Request(url, data=encoded, headers=headers, method="POST")
    try:
        with request.urlopen(req, timeout=timeout_seconds) as response:  # noqa: S310
            data = json.loads(response.read().decode("utf-8"))
    except error.HTTPError as exc:
        body_read = exc.read().decode("utf-8", errors="replace")
        raise LLMError(exc.code, body_read) from exc

    content = _first_content(data)
    if not content or not content.strip():
        content = EMPTY_ANSWER
    return content, _parse_usage(data)


class CompletionGateway:
    """Binds provider settings so callers only pass messages and parameters."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str | None = None,
        model: str = DEFAULT_MODEL,
        timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url
        self.model = model
        self._timeout_seconds = timeout_seconds

    def complete(self, messages: list[dict[str, str]], params: GenerationParams) -> str:
        content, usage = complete(
            messages,
            params,
            self._api_key,
            base_url=self._base_url,
            model=self.model,
            timeout_seconds=self._timeout_seconds,
        )
        logger.debug(
            "llm_usage model=%s prompt_tokens=%s completion_tokens=%s",
            self.model,
            usage["prompt_tokens"],
            usage["completion_tokens"],
        )
        return content
