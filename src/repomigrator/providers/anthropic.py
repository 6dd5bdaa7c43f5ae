"""Anthropic Messages API adapter."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from repomigrator.errors import GenerationError, ModelUnavailableError
from repomigrator.providers.base import StrategyResponse

logger = logging.getLogger(__name__)

REFUSAL_STOP_REASON = "refusal"


class AnthropicProvider:
    """Shares one ``httpx.Client`` across worker threads; each call is independent."""

    def __init__(
        self,
        api_key: str,
        *,
        model: str,
        base_url: str = "https://api.anthropic.com",
        api_version: str = "2023-06-01",
        max_tokens: int = 8192,
        timeout_seconds: int = 600,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.model = model
        self.max_tokens = max_tokens
        self._client = httpx.Client(
            base_url=self._normalize_base_url(base_url),
            headers={
                "x-api-key": api_key,
                "anthropic-version": api_version,
                "content-type": "application/json",
            },
            timeout=max(10, int(timeout_seconds)),
            transport=transport,
        )

    @staticmethod
    def _normalize_base_url(base_url: str) -> str:
        return base_url.rstrip("/")

    @staticmethod
    def _error_type(response: httpx.Response) -> tuple[str, str]:
        try:
            payload = response.json()
        except ValueError:
            return "", response.text.strip()
        if not isinstance(payload, dict):
            return "", ""
        error = payload.get("error")
        if not isinstance(error, dict):
            return "", ""
        return str(error.get("type") or ""), str(error.get("message") or "")

    @staticmethod
    def _parse_response(payload: dict[str, Any], model: str) -> StrategyResponse:
        stop_reason = str(payload.get("stop_reason") or "")
        if stop_reason == REFUSAL_STOP_REASON:
            raise GenerationError(
                "model refused to generate the migration strategy", retryable=False
            )
        content = payload.get("content")
        if not isinstance(content, list):
            raise GenerationError("anthropic response missing content", retryable=False)
        chunks: list[str] = []
        for block in content:
            if not isinstance(block, dict) or block.get("type") != "text":
                continue
            text = block.get("text")
            if isinstance(text, str):
                chunks.append(text)
        if not chunks:
            raise GenerationError("anthropic response contained no text", retryable=False)
        return StrategyResponse(
            text="".join(chunks),
            model=str(payload.get("model") or model),
            stop_reason=stop_reason,
        )

    def complete(
        self,
        prompt: str,
        *,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float = 0.0,
    ) -> StrategyResponse:
        target_model = model or self.model
        body: dict[str, object] = {
            "model": target_model,
            "max_tokens": max_tokens or self.max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        try:
            response = self._client.post("/v1/messages", json=body)
        except httpx.HTTPError as exc:
            raise GenerationError(f"anthropic request failed: {exc}") from exc

        if response.status_code >= 400:
            error_type, message = self._error_type(response)
            if error_type == "not_found_error":
                raise ModelUnavailableError(f"model not available: {target_model}")
            detail = message or f"HTTP {response.status_code}"
            raise GenerationError(
                f"anthropic request failed: {detail}",
                retryable=response.status_code >= 500 or response.status_code == 429,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise GenerationError(
                f"anthropic response is not valid JSON: {exc}", retryable=False
            ) from exc
        if not isinstance(payload, dict):
            raise GenerationError("anthropic response is not an object", retryable=False)
        result = self._parse_response(payload, target_model)
        logger.debug("Strategy generated model=%s stop_reason=%s", result.model, result.stop_reason)
        return result

    def close(self) -> None:
        self._client.close()
