"""Primary/fallback orchestration of one component generation."""

import logging
import time
from typing import Any

from app.core.config import Settings, settings
from app.domains.generation.catalog import ProviderName, is_known_model, resolve_provider
from app.domains.generation.parser import parse_response
from app.domains.generation.prompts import build_prompt_payload
from app.domains.generation.providers import BaseProvider, build_providers
from app.exceptions.ai import AIConfigurationError, AIServiceError, GenerationError, ProviderError
from app.schemas.generation import ComponentResult, GenerationRequest

logger = logging.getLogger(__name__)


class GenerationOrchestrator:
    """Run a request against the primary model, then at most one fallback.

    Any failure of the primary attempt (adapter error, unexpected parser
    error, missing adapter) triggers exactly one attempt with the configured
    fallback model. If that fails too a ``GenerationError`` is raised.
    """

    def __init__(
        self,
        providers: dict[ProviderName, BaseProvider] | None = None,
        *,
        default_model: str | None = None,
        fallback_model: str | None = None,
        config: Settings = settings,
    ):
        self.providers = providers if providers is not None else build_providers(config)
        self.default_model = default_model or config.default_model
        self.fallback_model = fallback_model or config.fallback_model
        self.window_size = config.context_window_size
        self.max_tokens = config.ai_max_tokens
        self.default_temperature = config.ai_temperature

    async def generate(self, request: GenerationRequest) -> ComponentResult:
        primary_model = request.model or self.default_model
        attempts = [primary_model, self.fallback_model]
        failures: list[dict[str, Any]] = []

        started = time.perf_counter()
        for attempt, model in enumerate(attempts):
            if attempt:
                logger.info(f"Trying fallback model: {model}")
            try:
                result, provider = await self._attempt(model, request)
            except ProviderError as e:
                logger.error(f"Model {model} failed ({e.kind.value}): {e.message}")
                failures.append({"model": model, "provider": e.provider, "kind": e.kind.value, "message": e.message})
            except AIServiceError as e:
                logger.error(f"Model {model} failed: {e.message}")
                failures.append({"model": model, "kind": e.error_code, "message": e.message})
            except Exception as e:
                logger.exception(f"Unexpected error while generating with {model}: {str(e)}")
                failures.append({"model": model, "kind": type(e).__name__, "message": str(e)})
            else:
                elapsed_ms = int((time.perf_counter() - started) * 1000)
                return result.model_copy(
                    update={
                        "model": model,
                        "provider": provider.value,
                        "processing_time_ms": elapsed_ms,
                        "fallback_used": attempt > 0,
                    }
                )

        logger.error(f"All AI models failed for request (tried {', '.join(attempts)})")
        raise GenerationError(details={"attempts": failures})

    async def _attempt(self, model: str, request: GenerationRequest) -> tuple[ComponentResult, ProviderName]:
        provider_name = resolve_provider(model)
        if not is_known_model(model):
            logger.warning(f"Model {model} is not in the catalog, routing it to {provider_name.value}")
        provider = self.providers.get(provider_name)
        if provider is None:
            raise AIConfigurationError(f"No adapter registered for provider {provider_name.value}")

        payload = build_prompt_payload(
            request,
            window_size=self.window_size,
            max_tokens=self.max_tokens,
            default_temperature=self.default_temperature,
        )
        raw = await provider.invoke(model, payload)
        return parse_response(raw, provider_name.value), provider_name
