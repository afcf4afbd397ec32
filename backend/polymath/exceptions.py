"""
Domain exceptions raised below the route layer.

Routes and services raise these; the handlers registered in main.py turn
them into HTTP responses:

- InvalidInputError        -> 400 (rejected before any side effect)
- NotFoundError            -> 404 (missing, or owned by someone else)
- ProviderError            -> 502 (model / transcription / image call failed)
- DatabaseUnavailableError -> 503 (write attempted without a configured database)
"""


class PolymathError(Exception):
    """Base class for application errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInputError(PolymathError):
    """Input rejected before any side effect."""


class NotFoundError(PolymathError):
    """Resource does not exist or belongs to another user."""


class ProviderError(PolymathError):
    """An external provider call failed. The message is safe to show users."""


class DatabaseUnavailableError(PolymathError):
    """The database was never configured, so writes cannot proceed."""

    def __init__(self, message: str = "Database not available"):
        super().__init__(message)
