"""Model Gateway - one entry point for every text-generation call.

Two wire shapes are supported and normalised into ``GenerationResult``:

- ``google``: JSON POST of ``contents/parts`` to a generateContent endpoint;
  text comes back under ``candidates[0].content.parts``.
- ``openai``: chat completion routed through LiteLLM; text comes back under
  ``choices[0]``.

This module:
- Retries transient transport failures with exponential backoff via tenacity
- Never raises: every failure becomes ``"LLM_ERROR: <message>"`` text so the
  technique parsers downstream see ordinary (if nonsensical) output
- Logs token usage for monitoring
"""

from __future__ import annotations

import asyncio
import base64
import json
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import httpx
import litellm
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from promptlab.config import Settings, get_settings
from promptlab.llm.types import (
    LLM_ERROR_PREFIX,
    FileAttachment,
    GenerationOptions,
    GenerationResult,
    total_tokens,
)

log = structlog.get_logger(__name__)

_RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class ProviderError(Exception):
    """A provider answered with an error; carries the raw error payload."""

    def __init__(self, message: str, payload: Any = None) -> None:
        super().__init__(message)
        self.payload = payload


class RetryableProviderError(ProviderError):
    """Provider error worth another attempt (rate limit, 5xx)."""


# Types of errors worth retrying (transient network/rate-limit failures)
_RETRYABLE = (
    httpx.TransportError,
    RetryableProviderError,
    litellm.exceptions.RateLimitError,
    litellm.exceptions.ServiceUnavailableError,
    litellm.exceptions.Timeout,
    litellm.exceptions.APIConnectionError,
)


# ---------------------------------------------------------------------------
# Response shape helpers
# ---------------------------------------------------------------------------


def _join_parts(content: Any) -> str:
    """Concatenate text from a ``content`` object, a parts list, or a string."""
    if isinstance(content, str):
        return content
    if isinstance(content, dict):
        parts = content.get("parts")
    elif isinstance(content, list):
        parts = content
    else:
        parts = None
    if not parts:
        return ""

    texts: list[str] = []
    for part in parts:
        if isinstance(part, str):
            texts.append(part)
        elif isinstance(part, dict):
            if part.get("text"):
                texts.append(str(part["text"]))
            else:
                nested = ((part.get("message") or {}).get("content") or {}).get("parts") or []
                texts.extend(str(sp["text"]) for sp in nested if isinstance(sp, dict) and sp.get("text"))
    return "".join(texts).strip()


def extract_candidates_text(data: dict[str, Any]) -> str:
    """Pull generated text out of a candidates/parts payload.

    Falls back through the legacy shapes seen in the wild (``display``,
    ``message.content``, top-level ``output``/``text``) and finally to the
    serialised payload, so the caller always gets something inspectable.
    """
    candidates = data.get("candidates")
    if isinstance(candidates, list) and candidates:
        candidate = candidates[0] or {}
        content = candidate.get("content") or (candidate.get("message") or {}).get("content")
        text = _join_parts(content)
        if not text and candidate.get("display"):
            text = str(candidate["display"])
        if text:
            return text
    for key in ("output", "text"):
        if isinstance(data.get(key), str) and data[key]:
            return data[key]
    return json.dumps(data, default=str)


def extract_choices_text(data: dict[str, Any]) -> str:
    """Pull generated text out of a choices payload (completion or chat)."""
    choices = data.get("choices") or []
    if choices:
        first = choices[0] or {}
        if first.get("text"):
            return str(first["text"])
        message = first.get("message") or {}
        if message.get("content"):
            return str(message["content"])
    return json.dumps(data, default=str)


def _error_message_from_response(response: httpx.Response) -> tuple[str, Any]:
    """Return (message, payload) for a non-2xx provider response."""
    try:
        payload: Any = response.json()
    except ValueError:
        payload = response.text
    message = ""
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict):
            message = str(error.get("message") or "")
        elif isinstance(error, str):
            message = error
    return message or f"HTTP {response.status_code}", payload


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------


class ModelGateway:
    """Sends prompts to the configured backend and normalises the reply.

    Args:
        settings:  Application settings; defaults to ``get_settings()``.
        transport: Optional httpx transport, used by tests and the offline
                   mock provider to short-circuit the network.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._transport = transport

    @property
    def model_name(self) -> str:
        return self._settings.llm_model

    @property
    def provider(self) -> str:
        return self._settings.llm_provider

    async def generate(
        self,
        prompt: str,
        options: GenerationOptions | None = None,
    ) -> GenerationResult:
        """Generate text for a prompt. Never raises."""
        return await self._call(prompt, options or GenerationOptions(), ())

    async def generate_with_files(
        self,
        prompt: str,
        files: Sequence[FileAttachment],
        options: GenerationOptions | None = None,
    ) -> GenerationResult:
        """Generate text for a prompt plus binary attachments. Never raises."""
        return await self._call(prompt, options or GenerationOptions(), tuple(files))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _call(
        self,
        prompt: str,
        options: GenerationOptions,
        files: tuple[FileAttachment, ...],
    ) -> GenerationResult:
        if not prompt:
            return GenerationResult(text="", raw=None)

        log.debug(
            "gateway.request",
            provider=self.provider,
            prompt_chars=len(prompt),
            attachments=len(files),
            temperature=options.temperature,
            max_output_tokens=options.max_output_tokens,
        )

        send = self._send_google if self.provider == "google" else self._send_openai
        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(_RETRYABLE),
                stop=stop_after_attempt(self._settings.llm_max_attempts),
                wait=wait_exponential(multiplier=1, min=1, max=10),
                reraise=True,
            ):
                with attempt:
                    result = await send(prompt, options, files)
        except ProviderError as exc:
            return self._error_result(str(exc), exc.payload)
        except Exception as exc:  # transport, timeout, malformed payload
            return self._error_result(str(exc) or type(exc).__name__, str(exc))

        log.info(
            "gateway.response",
            provider=self.provider,
            total_tokens=total_tokens(result.usage),
            text_chars=len(result.text),
        )
        return result

    def _error_result(self, message: str, payload: Any) -> GenerationResult:
        log.warning("gateway.request_failed", provider=self.provider, error=message)
        return GenerationResult(text=f"{LLM_ERROR_PREFIX} {message}", raw=payload)

    async def _read_attachments(
        self, files: tuple[FileAttachment, ...]
    ) -> list[tuple[FileAttachment, bytes]]:
        loaded: list[tuple[FileAttachment, bytes]] = []
        for attachment in files:
            try:
                data = await asyncio.to_thread(Path(attachment.path).read_bytes)
            except OSError as exc:
                log.warning("gateway.attachment_unreadable", path=attachment.path, error=str(exc))
                continue
            loaded.append((attachment, data))
        return loaded

    async def _send_google(
        self,
        prompt: str,
        options: GenerationOptions,
        files: tuple[FileAttachment, ...],
    ) -> GenerationResult:
        parts: list[dict[str, Any]] = [
            {
                "inline_data": {
                    "mime_type": attachment.mime_type,
                    "data": base64.b64encode(data).decode("ascii"),
                }
            }
            for attachment, data in await self._read_attachments(files)
        ]
        parts.append({"text": prompt})
        body = {
            "contents": [{"parts": parts}],
            "generationConfig": {
                "temperature": options.temperature,
                "maxOutputTokens": options.max_output_tokens,
            },
        }
        api_key = self._settings.llm_api_key.get_secret_value()
        params = {"key": api_key} if api_key else None

        async with httpx.AsyncClient(
            timeout=self._settings.llm_timeout_seconds,
            transport=self._transport,
        ) as client:
            response = await client.post(self._settings.llm_api_url, json=body, params=params)

        if response.status_code >= 400:
            message, payload = _error_message_from_response(response)
            error_cls = (
                RetryableProviderError
                if response.status_code in _RETRYABLE_STATUS
                else ProviderError
            )
            raise error_cls(message, payload)

        data = response.json() or {}
        if not isinstance(data, dict):
            raise ProviderError("Malformed provider payload", data)

        return GenerationResult(
            text=extract_candidates_text(data),
            raw=data,
            usage=data.get("usageMetadata") or data.get("usage"),
            model_version=data.get("modelVersion"),
            response_id=data.get("responseId"),
        )

    async def _send_openai(
        self,
        prompt: str,
        options: GenerationOptions,
        files: tuple[FileAttachment, ...],
    ) -> GenerationResult:
        content: str | list[dict[str, Any]] = prompt
        if files:
            content = [{"type": "text", "text": prompt}]
            for attachment, data in await self._read_attachments(files):
                if not attachment.mime_type.startswith("image/"):
                    log.warning(
                        "gateway.attachment_skipped",
                        path=attachment.path,
                        mime_type=attachment.mime_type,
                    )
                    continue
                encoded = base64.b64encode(data).decode("ascii")
                content.append(
                    {
                        "type": "image_url",
                        "image_url": {"url": f"data:{attachment.mime_type};base64,{encoded}"},
                    }
                )

        api_key = self._settings.llm_api_key.get_secret_value()
        try:
            response = await litellm.acompletion(
                model=self._settings.llm_model,
                messages=[{"role": "user", "content": content}],
                temperature=options.temperature,
                max_tokens=options.max_output_tokens,
                api_base=self._settings.llm_api_url or None,
                api_key=api_key or None,
                timeout=self._settings.llm_timeout_seconds,
            )
        except _RETRYABLE:
            raise
        except Exception as exc:
            raise ProviderError(f"LLM completion failed: {exc}", str(exc)) from exc

        data = response.model_dump() if hasattr(response, "model_dump") else dict(response)
        return GenerationResult(
            text=extract_choices_text(data),
            raw=data,
            usage=data.get("usage"),
            model_version=data.get("model"),
            response_id=data.get("id"),
        )
