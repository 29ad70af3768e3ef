"""Provider adapters: one implementation per LLM back end.

Adapters make exactly one bounded call and translate every failure into a
``ProviderError``. Retrying and falling back are the orchestrator's job.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any

import google.generativeai as genai
import httpx
from google.api_core import exceptions as google_exceptions
from google.generativeai.types import HarmBlockThreshold, HarmCategory

from app.core.config import Settings, settings
from app.domains.generation.catalog import ProviderName
from app.domains.generation.prompts import render_chat_messages, render_prompt_text
from app.exceptions.ai import ProviderError, ProviderErrorKind, classify_provider_failure
from app.schemas.generation import PromptPayload, RawModelResponse, TokenUsage

logger = logging.getLogger(__name__)


class BaseProvider(ABC):
    """Common interface of all provider adapters."""

    name: ProviderName
    reports_token_usage: bool = False

    def __init__(self, timeout: float):
        self.timeout = timeout

    @abstractmethod
    async def invoke(self, model: str, payload: PromptPayload) -> RawModelResponse:
        """Send ``payload`` to ``model`` and return its raw text."""

    def _error(self, kind: ProviderErrorKind, message: str, model: str, **details: Any) -> ProviderError:
        return ProviderError(kind, message, provider=self.name.value, model=model, details=details or None)


class OpenRouterProvider(BaseProvider):
    """Chat-completion style provider (OpenRouter, OpenAI compatible)."""

    name = ProviderName.OPENROUTER
    reports_token_usage = True

    def __init__(
        self,
        api_key: str | None,
        base_url: str,
        timeout: float,
        referer: str = "http://localhost:3000",
        app_title: str = "Component Generator Platform",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(timeout)
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.referer = referer
        self.app_title = app_title
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": self.referer,
            "X-Title": self.app_title,
        }

    async def invoke(self, model: str, payload: PromptPayload) -> RawModelResponse:
        if not self.api_key:
            raise self._error(ProviderErrorKind.AUTH, "OpenRouter API key not configured", model)

        body = {
            "model": model,
            "messages": render_chat_messages(payload),
            "temperature": payload.temperature,
            "max_tokens": payload.max_tokens,
            "stream": False,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await asyncio.wait_for(
                    client.post(f"{self.base_url}/chat/completions", json=body, headers=self._headers()),
                    timeout=self.timeout,
                )
        except (TimeoutError, httpx.TimeoutException):
            raise self._error(
                ProviderErrorKind.TIMEOUT, f"OpenRouter call timed out after {self.timeout}s", model
            ) from None
        except httpx.HTTPError as e:
            logger.error(f"OpenRouter transport error: {str(e)}")
            raise self._error(ProviderErrorKind.TRANSPORT, f"OpenRouter transport error: {str(e)}", model) from e

        if response.status_code >= 400:
            kind = classify_provider_failure(response.text, response.status_code)
            logger.error(f"OpenRouter returned {response.status_code} for {model}: {response.text[:500]}")
            raise self._error(
                kind,
                f"OpenRouter returned HTTP {response.status_code}",
                model,
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise self._error(ProviderErrorKind.TRANSPORT, "OpenRouter returned invalid JSON", model) from e

        text = self._extract_text(data)
        if not text:
            raise self._error(ProviderErrorKind.TRANSPORT, "No content in AI response", model)

        usage = data.get("usage") or {}
        return RawModelResponse(
            provider=self.name.value,
            model=model,
            text=text,
            usage=TokenUsage(
                prompt=usage.get("prompt_tokens") or 0,
                completion=usage.get("completion_tokens") or 0,
                total=usage.get("total_tokens") or 0,
            ),
            raw=data,
        )

    @staticmethod
    def _extract_text(data: dict[str, Any]) -> str:
        choices = data.get("choices") or []
        if not choices:
            return ""
        content = (choices[0].get("message") or {}).get("content")
        # Some upstream models answer with a list of content parts
        if isinstance(content, list):
            content = "".join(part.get("text", "") for part in content if isinstance(part, dict))
        return content or ""


class GeminiProvider(BaseProvider):
    """Prompt-completion style provider (Google Gemini).

    The API reports no token usage for our purposes, so responses carry
    ``usage=None`` rather than zeros.
    """

    name = ProviderName.GEMINI
    reports_token_usage = False

    safety_settings = {
        HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
        HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
        HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
        HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    }

    def __init__(self, api_key: str | None, timeout: float):
        super().__init__(timeout)
        self.api_key = api_key
        if api_key:
            genai.configure(api_key=api_key)

    async def invoke(self, model: str, payload: PromptPayload) -> RawModelResponse:
        if not self.api_key:
            raise self._error(ProviderErrorKind.AUTH, "Gemini API key not configured", model)

        client = genai.GenerativeModel(
            model_name=model,
            safety_settings=self.safety_settings,
            generation_config=genai.types.GenerationConfig(
                candidate_count=1,
                max_output_tokens=payload.max_tokens,
                temperature=payload.temperature,
            ),
        )

        try:
            response = await asyncio.wait_for(
                client.generate_content_async(render_prompt_text(payload)),
                timeout=self.timeout,
            )
        except TimeoutError:
            raise self._error(
                ProviderErrorKind.TIMEOUT, f"Gemini call timed out after {self.timeout}s", model
            ) from None
        except (google_exceptions.Unauthenticated, google_exceptions.PermissionDenied) as e:
            raise self._error(ProviderErrorKind.AUTH, f"Gemini rejected credentials: {str(e)}", model) from e
        except google_exceptions.ResourceExhausted as e:
            raise self._error(ProviderErrorKind.RATE_LIMIT, f"Gemini quota exhausted: {str(e)}", model) from e
        except google_exceptions.DeadlineExceeded as e:
            raise self._error(ProviderErrorKind.TIMEOUT, f"Gemini deadline exceeded: {str(e)}", model) from e
        except Exception as e:
            kind = classify_provider_failure(str(e))
            logger.error(f"Gemini API call failed: {str(e)}")
            raise self._error(kind, f"Gemini API call failed: {str(e)}", model) from e

        text = self._extract_text(response)
        if not text:
            raise self._error(ProviderErrorKind.TRANSPORT, "No content in Gemini response", model)

        return RawModelResponse(provider=self.name.value, model=model, text=text, usage=None)

    @staticmethod
    def _extract_text(response: Any) -> str:
        candidates = getattr(response, "candidates", None) or []
        if not candidates:
            if getattr(response, "prompt_feedback", None):
                logger.error(f"Gemini returned no candidates, prompt feedback: {response.prompt_feedback}")
            return ""
        content = getattr(candidates[0], "content", None)
        parts = getattr(content, "parts", None) or []
        return "".join(getattr(part, "text", "") or "" for part in parts)


def build_providers(config: Settings = settings) -> dict[ProviderName, BaseProvider]:
    """Instantiate every adapter from configuration."""
    return {
        ProviderName.OPENROUTER: OpenRouterProvider(
            api_key=config.openrouter_api_key,
            base_url=config.openrouter_base_url,
            timeout=config.ai_request_timeout,
            referer=config.openrouter_referer,
            app_title=config.openrouter_app_title,
        ),
        ProviderName.GEMINI: GeminiProvider(
            api_key=config.gemini_api_key,
            timeout=config.ai_request_timeout,
        ),
    }
