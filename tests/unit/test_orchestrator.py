"""
Unit tests for the generation orchestrator.
"""

import logging

import pytest

from app.domains.generation.catalog import ProviderName
from app.domains.generation.orchestrator import GenerationOrchestrator
from app.exceptions.ai import GenerationError, GenerationErrorKind, ProviderError, ProviderErrorKind
from app.schemas.generation import GenerationRequest, ParseProvenance, TokenUsage
from tests.helpers import FALLBACK_MODEL, PRIMARY_MODEL, ScriptedProvider, fenced_json, transport_error

BUTTON = fenced_json(componentName="Button", explanation="A button", jsx="<button>Go</button>")


class TestGenerationOrchestrator:
    """Test cases for primary/fallback orchestration."""

    @pytest.mark.asyncio
    async def test_primary_success_calls_one_provider(self, make_orchestrator):
        """Test a successful primary attempt makes exactly one call."""
        orchestrator, openrouter, gemini = make_orchestrator(primary=[BUTTON])

        result = await orchestrator.generate(GenerationRequest(message="a button"))

        assert len(openrouter.calls) == 1
        assert len(gemini.calls) == 0
        assert openrouter.calls[0][0] == PRIMARY_MODEL
        assert result.jsx == "<button>Go</button>"
        assert result.model == PRIMARY_MODEL
        assert result.provider == ProviderName.OPENROUTER.value
        assert result.fallback_used is False
        assert result.processing_time_ms is not None and result.processing_time_ms >= 0

    @pytest.mark.asyncio
    async def test_fallback_after_primary_failure(self, make_orchestrator):
        """Test exactly one fallback call follows a primary failure."""
        timeout = ProviderError(ProviderErrorKind.TIMEOUT, "timed out", "openrouter", PRIMARY_MODEL)
        orchestrator, openrouter, gemini = make_orchestrator(primary=[timeout], fallback=[BUTTON])

        result = await orchestrator.generate(GenerationRequest(message="a button"))

        assert len(openrouter.calls) == 1
        assert len(gemini.calls) == 1
        assert gemini.calls[0][0] == FALLBACK_MODEL
        assert result.model == FALLBACK_MODEL
        assert result.provider == ProviderName.GEMINI.value
        assert result.fallback_used is True

    @pytest.mark.asyncio
    async def test_both_attempts_fail(self, make_orchestrator):
        """Test failing primary and fallback raise after exactly two calls."""
        orchestrator, openrouter, gemini = make_orchestrator(
            primary=[transport_error(ProviderName.OPENROUTER, PRIMARY_MODEL)],
            fallback=[ProviderError(ProviderErrorKind.AUTH, "bad key", "gemini", FALLBACK_MODEL)],
        )

        with pytest.raises(GenerationError) as exc_info:
            await orchestrator.generate(GenerationRequest(message="a button"))

        assert exc_info.value.kind == GenerationErrorKind.ALL_PROVIDERS_FAILED
        assert len(openrouter.calls) + len(gemini.calls) == 2
        attempts = exc_info.value.details["attempts"]
        assert [attempt["model"] for attempt in attempts] == [PRIMARY_MODEL, FALLBACK_MODEL]
        assert [attempt["kind"] for attempt in attempts] == ["Transport", "Auth"]

    @pytest.mark.asyncio
    async def test_unexpected_error_triggers_fallback(self, make_orchestrator):
        """Test a non-provider exception is treated like any other failure."""
        orchestrator, openrouter, gemini = make_orchestrator(primary=[RuntimeError("boom")], fallback=[BUTTON])

        result = await orchestrator.generate(GenerationRequest(message="a button"))

        assert result.fallback_used is True
        assert len(gemini.calls) == 1

    @pytest.mark.asyncio
    async def test_unparseable_answer_is_a_success(self, make_orchestrator):
        """Test a reply without code is still returned, not retried."""
        orchestrator, openrouter, gemini = make_orchestrator(primary=["I cannot do that."])

        result = await orchestrator.generate(GenerationRequest(message="a button"))

        assert result.provenance == ParseProvenance.UNPARSEABLE
        assert result.explanation == "I cannot do that."
        assert len(gemini.calls) == 0

    @pytest.mark.asyncio
    async def test_requested_model_routes_to_its_provider(self, make_orchestrator):
        """Test a Gemini model requested up front goes to the Gemini adapter."""
        orchestrator, openrouter, gemini = make_orchestrator(fallback=[BUTTON])

        result = await orchestrator.generate(GenerationRequest(message="a button", model="gemini-1.5-pro"))

        assert gemini.calls[0][0] == "gemini-1.5-pro"
        assert len(openrouter.calls) == 0
        assert result.fallback_used is False

    @pytest.mark.asyncio
    async def test_unknown_model_goes_to_chat_provider(self, make_orchestrator, caplog):
        """Test an uncatalogued model id is sent to OpenRouter as is, with a warning."""
        orchestrator, openrouter, gemini = make_orchestrator(primary=[BUTTON])

        with caplog.at_level(logging.WARNING, logger="app.domains.generation.orchestrator"):
            result = await orchestrator.generate(GenerationRequest(message="a button", model="mistral-large"))

        assert openrouter.calls[0][0] == "mistral-large"
        assert result.model == "mistral-large"
        assert any("mistral-large is not in the catalog" in record.getMessage() for record in caplog.records)

    @pytest.mark.asyncio
    async def test_catalogued_model_routes_quietly(self, make_orchestrator, caplog):
        orchestrator, _, _ = make_orchestrator(primary=[BUTTON])

        with caplog.at_level(logging.WARNING, logger="app.domains.generation.orchestrator"):
            await orchestrator.generate(GenerationRequest(message="a button", model=PRIMARY_MODEL))

        assert not any("not in the catalog" in record.getMessage() for record in caplog.records)

    @pytest.mark.asyncio
    async def test_token_usage_is_propagated(self, make_orchestrator):
        orchestrator, _, _ = make_orchestrator(primary=[BUTTON], usage=TokenUsage(prompt=10, completion=5, total=15))

        result = await orchestrator.generate(GenerationRequest(message="a button"))

        assert result.tokens == TokenUsage(prompt=10, completion=5, total=15)

    @pytest.mark.asyncio
    async def test_context_is_passed_to_provider(self, make_orchestrator):
        """Test the payload sent to the adapter carries the conversation window."""
        orchestrator, openrouter, _ = make_orchestrator(primary=[BUTTON])
        request = GenerationRequest(
            message="make it red",
            history=[{"role": "user", "status": "completed", "text": "a button"}],
            temperature=0.3,
        )

        await orchestrator.generate(request)

        payload = openrouter.calls[0][1]
        assert [turn.content for turn in payload.context] == ["a button"]
        assert payload.temperature == 0.3

    @pytest.mark.asyncio
    async def test_missing_adapter(self):
        """Test a provider without an adapter counts as a failed attempt."""
        gemini = ScriptedProvider(ProviderName.GEMINI, [BUTTON])
        orchestrator = GenerationOrchestrator(
            {ProviderName.GEMINI: gemini}, default_model=PRIMARY_MODEL, fallback_model=FALLBACK_MODEL
        )

        result = await orchestrator.generate(GenerationRequest(message="a button"))

        assert result.provider == ProviderName.GEMINI.value
        assert result.fallback_used is True
