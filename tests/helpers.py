"""Shared test doubles for the generation pipeline."""

import json
from collections.abc import Iterable
from typing import Any

from app.domains.generation.catalog import ProviderName
from app.domains.generation.providers import BaseProvider
from app.exceptions.ai import ProviderError, ProviderErrorKind
from app.schemas.generation import PromptPayload, RawModelResponse, TokenUsage

PRIMARY_MODEL = "gpt-4o-mini"
FALLBACK_MODEL = "gemini-1.5-flash"


class ScriptedProvider(BaseProvider):
    """Provider double replaying a fixed list of outcomes.

    Each outcome is either response text or an exception to raise.
    """

    def __init__(self, name: ProviderName, outcomes: Iterable[Any] = (), usage: TokenUsage | None = None):
        super().__init__(timeout=1.0)
        self.name = name
        self.outcomes = list(outcomes)
        self.usage = usage
        self.calls: list[tuple[str, PromptPayload]] = []

    async def invoke(self, model: str, payload: PromptPayload) -> RawModelResponse:
        self.calls.append((model, payload))
        if not self.outcomes:
            raise ProviderError(ProviderErrorKind.TRANSPORT, "No scripted response left", self.name.value, model)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return RawModelResponse(provider=self.name.value, model=model, text=outcome, usage=self.usage)


def fenced_json(**fields) -> str:
    """Model style answer wrapping ``fields`` in a fenced JSON block."""
    return f"Here is your component:\n```json\n{json.dumps(fields, indent=2)}\n```"


def transport_error(provider: ProviderName, model: str) -> ProviderError:
    return ProviderError(ProviderErrorKind.TRANSPORT, "connection reset", provider.value, model)


def timeout_error(provider: ProviderName, model: str) -> ProviderError:
    return ProviderError(ProviderErrorKind.TIMEOUT, f"{provider.value} call timed out", provider.value, model)
