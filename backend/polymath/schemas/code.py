"""Pydantic schemas for code tools and code projects."""

from datetime import datetime

from pydantic import BaseModel, Field

from polymath.schemas.base import BaseSchema, IDMixin, TimestampMixin


# Request schemas
class GenerateCodeRequest(BaseModel):
    description: str = Field(..., min_length=1, max_length=20000)
    language: str = Field("javascript", min_length=1, max_length=64)
    project_id: int | None = None


class AnalyzeCodeRequest(BaseModel):
    code: str = Field(..., min_length=1)
    language: str = Field(..., min_length=1, max_length=64)
    issues: str | None = None


class ExplainCodeRequest(BaseModel):
    code: str = Field(..., min_length=1)
    language: str = Field(..., min_length=1, max_length=64)


class ProjectCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    language: str = Field("javascript", min_length=1, max_length=64)


class ProjectUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None


class CodeFileCreateRequest(BaseModel):
    filename: str = Field(..., min_length=1, max_length=255)
    content: str
    language: str = Field(..., min_length=1, max_length=64)


# Response schemas
class GenerateCodeResponse(BaseModel):
    code: str
    language: str
    timestamp: datetime


class AnalyzeCodeResponse(BaseModel):
    analysis: str


class ExplainCodeResponse(BaseModel):
    explanation: str


class CodeFileResponse(BaseSchema, IDMixin, TimestampMixin):
    project_id: int
    filename: str
    content: str
    language: str


class ProjectResponse(BaseSchema, IDMixin, TimestampMixin):
    user_id: int
    name: str
    description: str | None = None
    language: str


class ProjectWithFiles(ProjectResponse):
    files: list[CodeFileResponse]


class ProjectCreatedResponse(BaseModel):
    id: int
    name: str


class CodeFileCreatedResponse(BaseModel):
    id: int
    filename: str
