"""
Unit tests for the model catalog.
"""

import pytest

from app.domains.generation.catalog import (
    DEFAULT_PROVIDER,
    MODEL_CATALOG,
    ProviderName,
    get_available_models,
    is_known_model,
    resolve_provider,
)


class TestModelCatalog:
    """Test cases for model to provider resolution."""

    @pytest.mark.parametrize(
        ("model_id", "provider"),
        [
            ("gpt-4o-mini", ProviderName.OPENROUTER),
            ("gpt-4o", ProviderName.OPENROUTER),
            ("claude-3-haiku", ProviderName.OPENROUTER),
            ("llama-3.1-8b-instruct", ProviderName.OPENROUTER),
            ("gemini-1.5-flash", ProviderName.GEMINI),
            ("gemini-1.5-pro", ProviderName.GEMINI),
        ],
    )
    def test_catalogued_models(self, model_id, provider):
        """Test every catalogued model resolves to its provider."""
        assert resolve_provider(model_id) == provider
        assert is_known_model(model_id)

    def test_unknown_model_defaults_to_chat_provider(self):
        """Test uncatalogued ids are routed to the chat-style provider."""
        assert resolve_provider("some-new-model") == ProviderName.OPENROUTER
        assert not is_known_model("some-new-model")

    def test_missing_model(self):
        assert resolve_provider(None) == DEFAULT_PROVIDER
        assert resolve_provider("") == DEFAULT_PROVIDER

    def test_available_models_grouped_by_provider(self):
        """Test the catalog listing keeps provider grouping and fields."""
        models = get_available_models()

        assert set(models) == {"openrouter", "gemini"}
        assert len(models["openrouter"]) == len(MODEL_CATALOG[ProviderName.OPENROUTER])
        flash = next(m for m in models["gemini"] if m["id"] == "gemini-1.5-flash")
        assert flash == {
            "id": "gemini-1.5-flash",
            "display_name": "Gemini 1.5 Flash",
            "vendor": "Google",
            "description": "Fast and efficient",
        }

    def test_model_ids_are_unique(self):
        ids = [model.id for models in MODEL_CATALOG.values() for model in models]

        assert len(ids) == len(set(ids))
