"""
Persistence access layer.

Plain async functions over the six tables. Every function takes the session
explicitly; there is no module-level database handle. A None session means
the database was never configured: reads degrade to empty results, writes
raise DatabaseUnavailableError.
"""

from polymath.crud import code, conversations, files, messages, users

__all__ = ["code", "conversations", "files", "messages", "users"]
