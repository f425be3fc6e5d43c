"""Baseline Model Client — chat call to an unguarded model for side-by-side demos.

Invariants:
    - Two wire protocols: "openai_compat" (POST /v1/chat/completions) and
      "ollama" (POST /api/chat, stream=false)
    - Every failure (bad base URL, HTTP status, transport, timeout, missing
      content) raises BaselineModelError; callers decide how to surface it
    - Bearer auth header only for openai_compat and only when an API key is set
    - Never consulted by the policy path: output is display-only

Design Decisions:
    - Plain httpx over vendor SDKs: both targets are self-hosted endpoints
      (vLLM, TGI, Ollama) speaking simple JSON
    - Per-call timeout on the client; the fan-out adds its own wait_for so one
      model can never hold up the other
"""

import logging
from typing import Literal
from urllib.parse import urljoin

import httpx

from rxguard.core.errors import BaselineModelError, ErrorContext

logger = logging.getLogger(__name__)

Provider = Literal["openai_compat", "ollama"]

OPENAI_COMPAT_PATH = "/v1/chat/completions"
OLLAMA_CHAT_PATH = "/api/chat"
_BODY_EXCERPT_CHARS = 300


def build_openai_compat_body(
    model: str, messages: list[dict], temperature: float, max_tokens: int,
) -> dict:
    return {
        "model": model,
        "messages": messages,
        "temperature": temperature,
        "max_tokens": max_tokens,
    }


def build_ollama_body(
    model: str, messages: list[dict], temperature: float, max_tokens: int,
) -> dict:
    return {
        "model": model,
        "messages": messages,
        "stream": False,
        "options": {"temperature": temperature, "num_predict": max_tokens},
    }


def extract_openai_compat_content(data: dict) -> str | None:
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return None
    return content if isinstance(content, str) else None


def extract_ollama_content(data: dict) -> str | None:
    message = data.get("message") if isinstance(data, dict) else None
    content = message.get("content") if isinstance(message, dict) else None
    if content is None and isinstance(data, dict):
        content = data.get("response")
    return content if isinstance(content, str) else None


class BaselineModelClient:
    """ChatModel implementation over an OpenAI-compatible or Ollama endpoint."""

    def __init__(
        self,
        base_url: str,
        provider: Provider = "openai_compat",
        api_key: str | None = None,
        timeout_seconds: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url
        self.provider = provider
        self.api_key = api_key
        self._client = http_client or httpx.AsyncClient(timeout=timeout_seconds)

    async def aclose(self) -> None:
        await self._client.aclose()

    def _request_parts(
        self, model: str, messages: list[dict], temperature: float, max_tokens: int,
    ) -> tuple[str, dict, dict]:
        headers = {"Content-Type": "application/json"}
        if self.provider == "ollama":
            url = urljoin(self.base_url, OLLAMA_CHAT_PATH)
            body = build_ollama_body(model, messages, temperature, max_tokens)
        else:
            url = urljoin(self.base_url, OPENAI_COMPAT_PATH)
            body = build_openai_compat_body(model, messages, temperature, max_tokens)
            if self.api_key:
                headers["Authorization"] = f"Bearer {self.api_key}"
        return url, body, headers

    async def chat(
        self,
        *,
        model: str,
        messages: list[dict],
        temperature: float = 0.2,
        max_tokens: int = 512,
    ) -> str:
        ctx = ErrorContext(model=model)
        try:
            url, body, headers = self._request_parts(model, messages, temperature, max_tokens)
            res = await self._client.post(url, json=body, headers=headers)
        except httpx.TimeoutException as e:
            raise BaselineModelError(f"LLM timeout: {e}", "timeout", ctx)
        except httpx.HTTPError as e:
            raise BaselineModelError(f"LLM transport error: {e}", "connection_error", ctx)
        except (httpx.InvalidURL, ValueError) as e:
            raise BaselineModelError(f"LLM base URL invalid: {e}", "invalid_url", ctx)

        if not res.is_success:
            raise BaselineModelError(
                f"LLM HTTP {res.status_code}: {res.text[:_BODY_EXCERPT_CHARS]}",
                "http_status", ctx,
            )
        try:
            data = res.json()
        except ValueError:
            raise BaselineModelError("LLM response is not JSON", "malformed_payload", ctx)

        if self.provider == "ollama":
            content = extract_ollama_content(data)
            missing = "Ollama response missing message.content"
        else:
            content = extract_openai_compat_content(data)
            missing = "LLM response missing choices[0].message.content"
        if content is None:
            raise BaselineModelError(missing, "malformed_payload", ctx)

        logger.info("Baseline model answered", extra={"model": model})
        return content
