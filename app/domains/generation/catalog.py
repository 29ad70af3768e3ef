"""Static model catalog and model to provider resolution."""

from enum import Enum

from app.schemas.generation import ModelInfo


class ProviderName(str, Enum):
    """Provider back ends a model can be served by."""

    OPENROUTER = "openrouter"  # chat-completion style
    GEMINI = "gemini"  # prompt-completion style


DEFAULT_PROVIDER = ProviderName.OPENROUTER

MODEL_CATALOG: dict[ProviderName, tuple[ModelInfo, ...]] = {
    ProviderName.OPENROUTER: (
        ModelInfo(
            id="gpt-4o-mini",
            display_name="GPT-4o Mini",
            vendor="OpenAI",
            description="Fast and efficient for most tasks",
        ),
        ModelInfo(
            id="gpt-4o",
            display_name="GPT-4o",
            vendor="OpenAI",
            description="Most capable model for complex tasks",
        ),
        ModelInfo(
            id="claude-3-haiku",
            display_name="Claude 3 Haiku",
            vendor="Anthropic",
            description="Fast and lightweight",
        ),
        ModelInfo(
            id="claude-3-sonnet",
            display_name="Claude 3 Sonnet",
            vendor="Anthropic",
            description="Balanced performance",
        ),
        ModelInfo(
            id="llama-3.1-8b-instruct",
            display_name="Llama 3.1 8B",
            vendor="Meta",
            description="Open source alternative",
        ),
    ),
    ProviderName.GEMINI: (
        ModelInfo(
            id="gemini-1.5-flash",
            display_name="Gemini 1.5 Flash",
            vendor="Google",
            description="Fast and efficient",
        ),
        ModelInfo(
            id="gemini-1.5-pro",
            display_name="Gemini 1.5 Pro",
            vendor="Google",
            description="Most capable Gemini model",
        ),
    ),
}

_MODEL_PROVIDERS: dict[str, ProviderName] = {
    model.id: provider for provider, models in MODEL_CATALOG.items() for model in models
}


def get_available_models() -> dict[str, list[dict[str, str]]]:
    """Return the catalog as plain data, grouped by provider name."""
    return {
        provider.value: [model.model_dump() for model in models]
        for provider, models in MODEL_CATALOG.items()
    }


def resolve_provider(model_id: str | None) -> ProviderName:
    """Provider serving ``model_id``. Unknown models go to the chat-style provider."""
    if not model_id:
        return DEFAULT_PROVIDER
    return _MODEL_PROVIDERS.get(model_id, DEFAULT_PROVIDER)


def is_known_model(model_id: str) -> bool:
    """Whether ``model_id`` is listed in the catalog."""
    return model_id in _MODEL_PROVIDERS
