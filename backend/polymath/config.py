"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Polymath"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    # database_url_override (e.g. a Neon URL with sslmode=require) wins over the
    # postgres_* parts. With neither an override nor a host there is no database.
    database_url_override: str | None = None
    postgres_host: str | None = None
    postgres_port: int = 5432
    postgres_user: str = "polymath"
    postgres_password: str = ""
    postgres_db: str = "polymath"

    def _postgres_url(self, scheme: str) -> str | None:
        if self.database_url_override:
            _, _, rest = self.database_url_override.partition("://")
            return f"{scheme}://{rest}"
        if not self.postgres_host:
            return None
        return (
            f"{scheme}://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @computed_field
    @property
    def database_url(self) -> str | None:
        """Async (asyncpg) URL, or None when no database is configured."""
        url = self._postgres_url("postgresql+asyncpg")
        # asyncpg rejects libpq query params; SSL is passed through connect_args
        return url.split("?", 1)[0] if url else None

    @computed_field
    @property
    def database_requires_ssl(self) -> bool:
        override = self.database_url_override or ""
        return "sslmode=require" in override or "ssl=require" in override

    @computed_field
    @property
    def database_url_sync(self) -> str | None:
        """Sync (psycopg2) URL used by Alembic."""
        return self._postgres_url("postgresql")

    # Auth / JWT
    jwt_secret_key: str  # Required - shared with the identity provider that issues sessions
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24 * 7  # 7 days
    owner_open_id: str | None = None  # Upserted with the admin role

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Cookies
    # Set to true when frontend and backend are on different domains
    cookie_cross_domain: bool = False

    # AWS S3 (content store for uploads, audio and generated images)
    aws_access_key_id: str
    aws_secret_access_key: str
    aws_s3_bucket: str
    aws_s3_region: str = "us-east-2"
    aws_s3_endpoint_url: str | None = None  # Set for MinIO/LocalStack (e.g. http://localhost:9000)
    storage_public_base_url: str | None = None  # CDN or bucket website in front of the store

    # Anthropic API
    anthropic_api_key: str

    # LLM Configuration
    llm_model: str = "claude-sonnet-4-20250514"
    llm_max_tokens: int = 4000
    llm_temperature: float = 0.7
    llm_title_temperature: float = 0.3
    llm_title_max_tokens: int = 32
    llm_timeout_seconds: float = 60.0

    # OpenAI API (image generation, Whisper transcription)
    openai_api_key: str
    image_model: str = "dall-e-3"
    image_size: str = "1024x1024"
    transcription_model: str = "whisper-1"

    # Web search
    search_timeout_seconds: float = 10.0
    search_general_max_results: int = 5
    search_encyclopedia_max_results: int = 3

    # Upload limits
    max_upload_size_bytes: int = 10 * 1024 * 1024  # 10MB
    max_audio_size_bytes: int = 16 * 1024 * 1024  # 16MB

    # Conversations
    default_conversation_title: str = "New Conversation"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def sanitize_error(error: Exception, *, generic_message: str = "An internal error occurred.") -> str:
    """
    Return a user-safe error message.

    In development, returns the full exception string for debugging.
    In staging/production, returns a generic message to avoid leaking internals.
    """
    settings = get_settings()
    if settings.environment == "development":
        return str(error)
    return generic_message
