"""
Polymath FastAPI Application Entry Point.

Run with: uvicorn polymath.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from openai import AsyncOpenAI

from polymath.api.routes import advanced, auth, chat, code
from polymath.config import get_settings, sanitize_error
from polymath.db.session import build_engine, build_session_factory
from polymath.exceptions import (
    DatabaseUnavailableError,
    InvalidInputError,
    NotFoundError,
    ProviderError,
)
from polymath.services import (
    ImageService,
    LLMService,
    StorageService,
    TranscriptionService,
    WebSearchService,
)

settings = get_settings()

logging.basicConfig(
    level=logging.DEBUG if settings.debug else settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build the database pool and provider clients; close them on shutdown."""
    # Startup
    engine = build_engine(settings)
    app.state.session_factory = build_session_factory(engine)

    http_client = httpx.AsyncClient(headers={"User-Agent": f"{settings.app_name}/0.1"})
    openai_client = AsyncOpenAI(api_key=settings.openai_api_key, max_retries=0)

    app.state.llm_service = LLMService.from_settings(settings)
    app.state.search_service = WebSearchService(http_client, settings)
    app.state.storage_service = StorageService.from_settings(settings)
    app.state.transcription_service = TranscriptionService(openai_client, http_client, settings)
    app.state.image_service = ImageService(openai_client, settings)
    logger.info("%s started (environment=%s)", settings.app_name, settings.environment)

    yield

    # Shutdown
    await http_client.aclose()
    await openai_client.close()
    await app.state.llm_service.client.close()
    if engine is not None:
        await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    description="AI chat assistant with web search, file, voice, image and code tools",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# ERROR HANDLERS
# =============================================================================


@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": exc.message})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": exc.message})


@app.exception_handler(ProviderError)
async def provider_error_handler(request: Request, exc: ProviderError) -> JSONResponse:
    # Already logged with the upstream cause where it was raised
    return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"detail": exc.message})


@app.exception_handler(DatabaseUnavailableError)
async def database_unavailable_handler(request: Request, exc: DatabaseUnavailableError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": sanitize_error(exc, generic_message="Service temporarily unavailable.")},
    )


# Include routers
app.include_router(auth.router)
app.include_router(chat.router)
app.include_router(advanced.router)
app.include_router(code.router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}
