"""LLM provider adapters.

Importing this package registers every implemented adapter. Providers
that appear in the catalog without an adapter here answer with a
"coming soon" reply.
"""

from chatrelay.services.providers.base import (
    ProviderAdapter,
    RoleMessage,
    get_adapter_class,
    register_adapter,
    registered_providers,
)
from chatrelay.services.providers.cohere import CohereAdapter
from chatrelay.services.providers.openai import OpenAIAdapter

__all__ = [
    "ProviderAdapter",
    "RoleMessage",
    "register_adapter",
    "get_adapter_class",
    "registered_providers",
    "OpenAIAdapter",
    "CohereAdapter",
]
