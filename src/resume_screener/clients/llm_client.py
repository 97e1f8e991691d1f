"""Provider client interface and the Claude (Anthropic) implementation."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

import anthropic

from resume_screener.errors import (
    ModelNotFound,
    ProviderQuotaExceeded,
    ProviderRateLimited,
    ProviderUnavailable,
)

logger = logging.getLogger(__name__)


@dataclass
class LLMResponse:
    """Response from the LLM including usage metadata."""

    text: str
    input_tokens: int
    output_tokens: int
    model: str = ""


@dataclass(frozen=True)
class GenerationOptions:
    temperature: float = 0.2
    max_tokens: int = 4000
    system: str = ""
    json_mode: bool = False  # ask for a JSON-only response where supported
    json_schema: dict | None = None  # strict output schema where supported


class ProviderClient(ABC):
    """One language-model provider. Each call sends exactly one request.

    Implementations translate SDK failures into ModelNotFound,
    ProviderUnavailable, ProviderRateLimited or ProviderQuotaExceeded.
    """

    name: str = "provider"

    def __init__(self) -> None:
        self._token_log: list[tuple[str, int, int]] = []  # (model, input_tokens, output_tokens)

    @abstractmethod
    async def call(self, prompt: str, model: str, options: GenerationOptions) -> LLMResponse:
        ...

    def _record_usage(self, model: str, input_tokens: int, output_tokens: int) -> None:
        logger.debug(
            "%s response: %d input, %d output tokens", self.name, input_tokens, output_tokens
        )
        self._token_log.append((model, input_tokens, output_tokens))

    def get_token_summary(self) -> dict:
        """Return accumulated token usage and reset the log."""
        summary = {
            "input": sum(t[1] for t in self._token_log),
            "output": sum(t[2] for t in self._token_log),
            "calls": list(self._token_log),
        }
        self._token_log.clear()
        return summary


class AnthropicClient(ProviderClient):
    """Async Claude API client. SDK-level retries are disabled."""

    name = "anthropic"

    def __init__(self, api_key: str | None = None, timeout: float | None = None):
        super().__init__()
        kwargs: dict = {"max_retries": 0}
        if api_key is not None:
            kwargs["api_key"] = api_key
        if timeout is not None:
            kwargs["timeout"] = timeout
        self.client = anthropic.AsyncAnthropic(**kwargs)

    async def call(self, prompt: str, model: str, options: GenerationOptions) -> LLMResponse:
        """Send a prompt to Claude and return the text response with usage."""
        logger.debug("LLM call: provider=%s model=%s", self.name, model)
        kwargs: dict = {
            "model": model,
            "max_tokens": options.max_tokens,
            "temperature": options.temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if options.system:
            kwargs["system"] = options.system

        try:
            message = await self.client.messages.create(**kwargs)
        except anthropic.NotFoundError as exc:
            raise ModelNotFound(
                f"Model {model} not found: {exc}", provider=self.name, model=model
            ) from exc
        except anthropic.RateLimitError as exc:
            raise ProviderRateLimited(
                f"Rate limited: {exc}", provider=self.name, model=model
            ) from exc
        except anthropic.APIError as exc:
            logger.error("LLM call failed", exc_info=True)
            raise ProviderUnavailable(
                f"Claude request failed: {exc}", provider=self.name, model=model
            ) from exc

        self._record_usage(model, message.usage.input_tokens, message.usage.output_tokens)

        if message.stop_reason == "max_tokens":
            raise ProviderQuotaExceeded(
                f"Response hit max_tokens={options.max_tokens}", provider=self.name, model=model
            )
        text = "".join(getattr(block, "text", "") for block in message.content)
        if not text.strip():
            raise ProviderUnavailable("Claude returned no text", provider=self.name, model=model)

        return LLMResponse(
            text=text,
            input_tokens=message.usage.input_tokens,
            output_tokens=message.usage.output_tokens,
            model=model,
        )
