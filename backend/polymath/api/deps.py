"""
FastAPI Dependencies for authentication, authorization and providers.

Key patterns:
1. get_current_user: Extracts and validates the session JWT, returns User object
2. User-scoped queries: persistence functions accept user_id to enforce ownership
3. No global "current user" or provider singletons - everything arrives through
   Depends(), built once in the app lifespan and stored on app.state

Security model:
- Sessions are JWTs issued by the identity provider (sub = open_id), carried
  in an HttpOnly cookie or an Authorization header
- Resources owned by another user are reported as 404, never 403
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Annotated

from fastapi import Cookie, Depends, Header, HTTPException, Request, status
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from polymath import crud
from polymath.config import Settings, get_settings
from polymath.db.models import User, UserRole, utcnow
from polymath.db.session import get_db
from polymath.services import (
    ChatService,
    CodeAssistant,
    ImageService,
    LLMService,
    StorageService,
    TranscriptionService,
    WebSearchService,
)

logger = logging.getLogger(__name__)


# =============================================================================
# JWT UTILITIES
# =============================================================================


def create_access_token(
    open_id: str,
    *,
    name: str | None = None,
    email: str | None = None,
    login_method: str | None = None,
    settings: Settings | None = None,
) -> str:
    """
    Create a session JWT for an identity.

    Token payload contains:
    - sub: the identity provider's open_id
    - name / email / login_method: optional profile claims synced on each request
    - exp: expiration timestamp
    """
    settings = settings or get_settings()
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_expire_minutes)
    payload: dict = {"sub": open_id, "exp": expire}
    if name is not None:
        payload["name"] = name
    if email is not None:
        payload["email"] = email
    if login_method is not None:
        payload["login_method"] = login_method
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings | None = None) -> dict | None:
    """
    Decode and validate a session JWT.

    Returns the claims if valid, None if invalid/expired or missing a subject.
    """
    settings = settings or get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        return None
    if not payload.get("sub"):
        return None
    return payload


# =============================================================================
# AUTHENTICATION DEPENDENCIES
# =============================================================================


async def get_token_from_request(
    authorization: Annotated[str | None, Header()] = None,
    access_token: Annotated[str | None, Cookie()] = None,
) -> str:
    """
    Extract JWT token from request.

    Supports two methods (in order of preference):
    1. HttpOnly cookie named 'access_token'
    2. Authorization header: 'Bearer <token>'
    """
    if access_token:
        return access_token

    if authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1]

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    token: Annotated[str, Depends(get_token_from_request)],
    db: Annotated[AsyncSession | None, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> User:
    """
    Validate the session JWT and return the current user.

    The user row is upserted from the token claims on every request, so
    first-time callers are created and last_signed_in stays fresh. With no
    database configured the caller gets an unsaved User built from the claims
    (id 0), so reads come back empty and writes still fail.

    Raises 401 if the token is missing, invalid or expired.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    claims = decode_access_token(token, settings)
    if claims is None:
        raise credentials_exception

    if db is None:
        logger.warning("Database not available; user %s not synced", claims["sub"])
        now = utcnow()
        is_owner = settings.owner_open_id is not None and claims["sub"] == settings.owner_open_id
        return User(
            id=0,
            open_id=claims["sub"],
            name=claims.get("name"),
            email=claims.get("email"),
            login_method=claims.get("login_method"),
            role=UserRole.ADMIN.value if is_owner else UserRole.USER.value,
            created_at=now,
            updated_at=now,
            last_signed_in=now,
        )

    return await crud.users.upsert_user(
        db,
        claims["sub"],
        name=claims.get("name"),
        email=claims.get("email"),
        login_method=claims.get("login_method"),
        owner_open_id=settings.owner_open_id,
    )


# Type aliases for dependency injection
CurrentUser = Annotated[User, Depends(get_current_user)]
DbSession = Annotated[AsyncSession | None, Depends(get_db)]
AppSettings = Annotated[Settings, Depends(get_settings)]


# =============================================================================
# PROVIDER DEPENDENCIES
# =============================================================================


def get_llm_service(request: Request) -> LLMService:
    return request.app.state.llm_service


def get_search_service(request: Request) -> WebSearchService:
    return request.app.state.search_service


def get_storage_service(request: Request) -> StorageService:
    return request.app.state.storage_service


def get_transcription_service(request: Request) -> TranscriptionService:
    return request.app.state.transcription_service


def get_image_service(request: Request) -> ImageService:
    return request.app.state.image_service


def get_chat_service(
    llm: Annotated[LLMService, Depends(get_llm_service)],
    search: Annotated[WebSearchService, Depends(get_search_service)],
) -> ChatService:
    """Chat orchestrator wired with this request's providers."""
    return ChatService(llm, search)


def get_code_assistant(llm: Annotated[LLMService, Depends(get_llm_service)]) -> CodeAssistant:
    return CodeAssistant(llm)


# =============================================================================
# AUTHORIZATION HELPERS
# =============================================================================


def verify_ownership_or_404(resource: object | None, current_user: User, detail: str = "Resource not found") -> None:
    """
    Combined check: resource exists AND user owns it.

    Returns 404 for both cases (privacy-preserving):

        project = await crud.code.get_code_project_by_id(db, project_id)
        verify_ownership_or_404(project, current_user, "Project not found")
        # If we get here, project exists and user owns it
    """
    if resource is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)

    if not hasattr(resource, "user_id"):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)

    if resource.user_id != current_user.id:
        # Return 404 to not reveal resource existence
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
