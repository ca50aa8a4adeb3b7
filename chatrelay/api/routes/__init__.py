"""FastAPI route modules.

Exports all route modules for inclusion in the main application.
"""

from chatrelay.api.routes import auth, chat, providers, settings

__all__ = [
    "auth",
    "chat",
    "providers",
    "settings",
]
