"""Static catalog of LLM providers and their models.

The catalog is built once at import time and never mutated. Order is
significant: list_providers() returns declaration order, and the first
model of each provider is its default.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ModelDescriptor:
    """One selectable model of a provider."""

    id: str
    name: str
    description: str


@dataclass(frozen=True)
class ProviderDescriptor:
    """A known LLM vendor.

    Attributes:
        id: Provider identifier stored in credential records.
        name: Display name.
        models: Non-empty ordered models; the first is the default.
        api_key_placeholder: Hint text for the secret key input.
        api_docs_url: Where users obtain a key.
    """

    id: str
    name: str
    models: tuple[ModelDescriptor, ...]
    api_key_placeholder: str
    api_docs_url: str

    def __post_init__(self) -> None:
        if not self.models:
            raise ValueError(f"Provider '{self.id}' must declare at least one model")

    def to_dict(self) -> dict:
        """Serialize for the providers endpoint."""
        return {
            "id": self.id,
            "name": self.name,
            "apiKeyPlaceholder": self.api_key_placeholder,
            "apiDocsUrl": self.api_docs_url,
            "models": [
                {"id": m.id, "name": m.name, "description": m.description}
                for m in self.models
            ],
        }


AI_PROVIDERS: tuple[ProviderDescriptor, ...] = (
    ProviderDescriptor(
        id="openai",
        name="OpenAI",
        api_key_placeholder="sk-...",
        api_docs_url="https://platform.openai.com/api-keys",
        models=(
            ModelDescriptor("gpt-3.5-turbo", "GPT-3.5 Turbo", "Good balance of intelligence and speed"),
            ModelDescriptor("gpt-4", "GPT-4", "Most capable model, but slower and more expensive"),
            ModelDescriptor("gpt-4o", "GPT-4o", "Latest model with improved capabilities"),
        ),
    ),
    ProviderDescriptor(
        id="cohere",
        name="Cohere",
        api_key_placeholder="Co-...",
        api_docs_url="https://dashboard.cohere.com/api-keys",
        models=(
            ModelDescriptor("command", "Command", "General purpose model for various tasks"),
            ModelDescriptor("command-light", "Command Light", "Faster and more cost-effective version"),
            ModelDescriptor("command-r", "Command R", "Advanced reasoning capabilities"),
            ModelDescriptor("command-r-plus", "Command R+", "Most powerful model with enhanced reasoning"),
        ),
    ),
    ProviderDescriptor(
        id="anthropic",
        name="Anthropic",
        api_key_placeholder="sk-ant-...",
        api_docs_url="https://console.anthropic.com/settings/keys",
        models=(
            ModelDescriptor("claude-3-opus", "Claude 3 Opus", "Most powerful model for complex tasks"),
            ModelDescriptor("claude-3-sonnet", "Claude 3 Sonnet", "Balanced performance and cost"),
            ModelDescriptor("claude-3-haiku", "Claude 3 Haiku", "Fast and cost-effective"),
        ),
    ),
    ProviderDescriptor(
        id="mistral",
        name="Mistral AI",
        api_key_placeholder="your-mistral-api-key",
        api_docs_url="https://console.mistral.ai/api-keys/",
        models=(
            ModelDescriptor("mistral-small", "Mistral Small", "Efficient model for general tasks"),
            ModelDescriptor("mistral-medium", "Mistral Medium", "Balanced performance model"),
            ModelDescriptor("mistral-large", "Mistral Large", "Most capable Mistral model"),
        ),
    ),
)

_BY_ID: dict[str, ProviderDescriptor] = {p.id: p for p in AI_PROVIDERS}
if len(_BY_ID) != len(AI_PROVIDERS):
    raise RuntimeError("Duplicate provider id in AI_PROVIDERS")


def list_providers() -> tuple[ProviderDescriptor, ...]:
    """Return all providers in declaration order."""
    return AI_PROVIDERS


def find_provider(provider_id: str) -> ProviderDescriptor | None:
    """Look up a provider by id, None if unknown."""
    return _BY_ID.get(provider_id)


def default_model(provider_id: str) -> str:
    """Return the provider's first model id, or "" for unknown providers."""
    provider = find_provider(provider_id)
    if provider is None:
        return ""
    return provider.models[0].id
