"""ChatRelay: session-gated chat backend that relays messages to LLM providers."""

__version__ = "0.1.0"
