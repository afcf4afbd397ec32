"""API routes package."""

from polymath.api.routes import advanced, auth, chat, code

__all__ = [
    "advanced",
    "auth",
    "chat",
    "code",
]
