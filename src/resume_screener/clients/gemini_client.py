"""Google Gemini implementation of the provider client."""

from __future__ import annotations

import logging

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from google.generativeai.types import BlockedPromptException, StopCandidateException

from resume_screener.clients.llm_client import GenerationOptions, LLMResponse, ProviderClient
from resume_screener.errors import (
    ModelNotFound,
    ProviderQuotaExceeded,
    ProviderRateLimited,
    ProviderUnavailable,
)

logger = logging.getLogger(__name__)


class GeminiClient(ProviderClient):
    """Async Gemini client. Supports JSON response mode and response schemas."""

    name = "gemini"

    def __init__(self, api_key: str, timeout: float | None = None):
        super().__init__()
        genai.configure(api_key=api_key)
        self.timeout = timeout

    async def call(self, prompt: str, model: str, options: GenerationOptions) -> LLMResponse:
        logger.debug("LLM call: provider=%s model=%s", self.name, model)
        generation_config: dict = {
            "temperature": options.temperature,
            "max_output_tokens": options.max_tokens,
        }
        if options.json_mode or options.json_schema is not None:
            generation_config["response_mime_type"] = "application/json"
        if options.json_schema is not None:
            generation_config["response_schema"] = options.json_schema

        generative_model = genai.GenerativeModel(
            model_name=model,
            generation_config=generation_config,
            system_instruction=options.system or None,
        )
        # retry=None: exactly one request per call
        request_options: dict = {"retry": None}
        if self.timeout is not None:
            request_options["timeout"] = self.timeout

        try:
            response = await generative_model.generate_content_async(
                prompt, request_options=request_options
            )
        except google_exceptions.NotFound as exc:
            raise ModelNotFound(
                f"Model {model} not found: {exc}", provider=self.name, model=model
            ) from exc
        except (google_exceptions.ResourceExhausted, google_exceptions.TooManyRequests) as exc:
            raise ProviderRateLimited(
                f"Rate limited: {exc}", provider=self.name, model=model
            ) from exc
        except (google_exceptions.GoogleAPIError, BlockedPromptException, StopCandidateException) as exc:
            logger.error("LLM call failed", exc_info=True)
            raise ProviderUnavailable(
                f"Gemini request failed: {exc}", provider=self.name, model=model
            ) from exc

        usage = getattr(response, "usage_metadata", None)
        input_tokens = int(getattr(usage, "prompt_token_count", 0) or 0)
        output_tokens = int(getattr(usage, "candidates_token_count", 0) or 0)
        self._record_usage(model, input_tokens, output_tokens)

        finish_reason = self._finish_reason(response)
        if finish_reason == "MAX_TOKENS":
            raise ProviderQuotaExceeded(
                f"Response hit max_output_tokens={options.max_tokens}",
                provider=self.name,
                model=model,
            )

        text = self._extract_text(response)
        if not text:
            raise ProviderUnavailable(
                "Gemini returned no text"
                + (f" (finish_reason={finish_reason})" if finish_reason else ""),
                provider=self.name,
                model=model,
            )
        return LLMResponse(
            text=text, input_tokens=input_tokens, output_tokens=output_tokens, model=model
        )

    @staticmethod
    def _finish_reason(response) -> str | None:
        candidates = getattr(response, "candidates", None) or []
        if not candidates:
            return None
        reason = getattr(candidates[0], "finish_reason", None)
        if reason is None:
            return None
        return getattr(reason, "name", str(reason))

    @staticmethod
    def _extract_text(response) -> str:
        try:
            text = (response.text or "").strip()
            if text:
                return text
        except ValueError:
            # No simple text part; collect parts by hand
            pass

        fragments: list[str] = []
        for candidate in getattr(response, "candidates", None) or []:
            content = getattr(candidate, "content", None)
            for part in getattr(content, "parts", None) or []:
                text_value = getattr(part, "text", None)
                if text_value:
                    fragments.append(text_value)
        return "\n".join(fragments).strip()
