"""Pytest configuration and fixtures."""

import os

# Settings are read when polymath.main is imported
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "test")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "test")
os.environ.setdefault("AWS_S3_BUCKET", "polymath-test")
os.environ.setdefault("ANTHROPIC_API_KEY", "test")
os.environ.setdefault("OPENAI_API_KEY", "test")

import pytest
from collections.abc import AsyncGenerator
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from polymath.api.deps import (
    create_access_token,
    get_image_service,
    get_llm_service,
    get_search_service,
    get_storage_service,
    get_transcription_service,
)
from polymath.db.base import Base
from polymath.db.session import get_db, json_serializer
from polymath.exceptions import ProviderError
from polymath.main import app
from polymath.schemas.search import SearchResult
from polymath.services.llm import Completion, LLMMessage, clean_title
from polymath.services.transcription import Transcription


# =============================================================================
# FAKE PROVIDERS
# =============================================================================


class FakeLLM:
    """Records every call; replies with fixed text."""

    def __init__(self):
        self.calls: list[dict] = []
        self.reply = "Hello! How can I help you today?"
        self.raw_title = '"Friendly Greeting And Offer Of Help Today"'
        self.fail = False
        self.fail_title = False

    async def complete(
        self,
        messages: list[LLMMessage],
        model: str | None = None,
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> Completion:
        self.calls.append({"messages": list(messages), "model": model})
        if self.fail:
            raise ProviderError("Failed to generate response from LLM")
        return Completion(
            content=self.reply,
            model=model or "claude-sonnet-4-20250514",
            usage={"input_tokens": 12, "output_tokens": 8},
        )

    async def generate_title(self, first_message: str) -> str | None:
        self.calls.append({"title_for": first_message})
        if self.fail_title:
            return None
        return clean_title(self.raw_title) or None


class FakeSearch:
    def __init__(self):
        self.queries: list[str] = []
        self.results = [
            SearchResult(
                title="Python",
                snippet="Python is a programming language.",
                url="https://example.com/python",
                source="duckduckgo",
            ),
            SearchResult(
                title="Python (programming language)",
                snippet="A high-level language.",
                url="https://en.wikipedia.org/wiki/Python_(programming_language)",
                source="wikipedia",
            ),
        ]

    async def search(self, query: str) -> list[SearchResult]:
        self.queries.append(query)
        return list(self.results)


class FakeStorage:
    def __init__(self):
        self.objects: dict[str, tuple[bytes, str]] = {}

    async def put_object(self, file_key: str, data: bytes, content_type: str) -> str:
        self.objects[file_key] = (data, content_type)
        return f"https://files.test/{file_key}"


class FakeTranscriber:
    def __init__(self):
        self.calls: list[tuple] = []

    async def transcribe_bytes(self, data, filename, mime_type, language=None) -> Transcription:
        self.calls.append(("bytes", filename, len(data), language))
        return Transcription(text="hello from the recording", language=language or "en")

    async def transcribe_url(self, audio_url, language=None) -> Transcription:
        self.calls.append(("url", audio_url, language))
        return Transcription(text="hello from the url", language=language or "en")


class FakeImages:
    def __init__(self):
        self.prompts: list[str] = []
        self.fail = False

    async def generate(self, prompt: str) -> bytes:
        self.prompts.append(prompt)
        if self.fail:
            raise ProviderError("Failed to generate image")
        return b"\x89PNG\r\n\x1a\nfake-image-bytes"


# =============================================================================
# DATABASE
# =============================================================================


@pytest.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """In-memory SQLite shared by every session of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        json_serializer=json_serializer,
    )

    # pysqlite's own transaction handling breaks SAVEPOINT; let SQLAlchemy emit BEGIN
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

    await engine.dispose()


# =============================================================================
# APP + CLIENT
# =============================================================================


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def fake_search() -> FakeSearch:
    return FakeSearch()


@pytest.fixture
def fake_storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def fake_transcriber() -> FakeTranscriber:
    return FakeTranscriber()


@pytest.fixture
def fake_images() -> FakeImages:
    return FakeImages()


@pytest.fixture
def no_database():
    """Run the app as if no database were configured."""

    async def override_get_db():
        yield None

    app.dependency_overrides[get_db] = override_get_db
    yield
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
async def client(
    session_factory,
    fake_llm,
    fake_search,
    fake_storage,
    fake_transcriber,
    fake_images,
) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI endpoints."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides.setdefault(get_db, override_get_db)
    app.dependency_overrides[get_llm_service] = lambda: fake_llm
    app.dependency_overrides[get_search_service] = lambda: fake_search
    app.dependency_overrides[get_storage_service] = lambda: fake_storage
    app.dependency_overrides[get_transcription_service] = lambda: fake_transcriber
    app.dependency_overrides[get_image_service] = lambda: fake_images

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def alice_headers() -> dict[str, str]:
    token = create_access_token("alice-open-id", name="Alice", email="alice@example.com", login_method="email")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def bob_headers() -> dict[str, str]:
    token = create_access_token("bob-open-id", name="Bob")
    return {"Authorization": f"Bearer {token}"}
