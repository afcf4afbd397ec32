"""API routes for code generation, analysis, explanation and code projects."""

import logging
from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, status

from polymath import crud
from polymath.api.deps import CurrentUser, DbSession, get_code_assistant, verify_ownership_or_404
from polymath.db.models import CodeProject, User
from polymath.schemas.code import (
    AnalyzeCodeRequest,
    AnalyzeCodeResponse,
    CodeFileCreateRequest,
    CodeFileCreatedResponse,
    CodeFileResponse,
    ExplainCodeRequest,
    ExplainCodeResponse,
    GenerateCodeRequest,
    GenerateCodeResponse,
    ProjectCreateRequest,
    ProjectCreatedResponse,
    ProjectResponse,
    ProjectUpdateRequest,
    ProjectWithFiles,
)
from polymath.services import CodeAssistant

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/code", tags=["code"])


async def _get_owned_project(db: DbSession, project_id: int, user: User) -> CodeProject:
    project = await crud.code.get_code_project_by_id(db, project_id)
    verify_ownership_or_404(project, user, "Project not found")
    return project


# =============================================================================
# CODE TOOLS
# =============================================================================


@router.post("/generate", response_model=GenerateCodeResponse)
async def generate_code(
    request: GenerateCodeRequest,
    db: DbSession,
    user: CurrentUser,
    assistant: Annotated[CodeAssistant, Depends(get_code_assistant)],
):
    """Generate code from a natural-language description."""
    if request.project_id is not None:
        await _get_owned_project(db, request.project_id, user)

    code = await assistant.generate(request.description, request.language)
    return GenerateCodeResponse(code=code, language=request.language, timestamp=datetime.now(timezone.utc))


@router.post("/analyze", response_model=AnalyzeCodeResponse)
async def analyze_code(
    request: AnalyzeCodeRequest,
    user: CurrentUser,
    assistant: Annotated[CodeAssistant, Depends(get_code_assistant)],
):
    """Review code for bugs, improvements and security issues."""
    analysis = await assistant.analyze(request.code, request.language, request.issues)
    return AnalyzeCodeResponse(analysis=analysis)


@router.post("/explain", response_model=ExplainCodeResponse)
async def explain_code(
    request: ExplainCodeRequest,
    user: CurrentUser,
    assistant: Annotated[CodeAssistant, Depends(get_code_assistant)],
):
    """Explain code section by section."""
    explanation = await assistant.explain(request.code, request.language)
    return ExplainCodeResponse(explanation=explanation)


# =============================================================================
# PROJECTS
# =============================================================================


@router.post("/projects", response_model=ProjectCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_project(request: ProjectCreateRequest, db: DbSession, user: CurrentUser):
    project = await crud.code.create_code_project(
        db,
        user_id=user.id,
        name=request.name,
        description=request.description,
        language=request.language,
    )
    return ProjectCreatedResponse(id=project.id, name=project.name)


@router.get("/projects", response_model=list[ProjectResponse])
async def list_projects(db: DbSession, user: CurrentUser):
    projects = await crud.code.get_code_projects(db, user.id)
    return [ProjectResponse.model_validate(p) for p in projects]


@router.get("/projects/{project_id}", response_model=ProjectWithFiles)
async def get_project(project_id: int, db: DbSession, user: CurrentUser):
    """Get a project with all of its files."""
    project = await _get_owned_project(db, project_id, user)
    files = await crud.code.get_code_files_by_project_id(db, project_id)
    return ProjectWithFiles(
        **ProjectResponse.model_validate(project).model_dump(),
        files=[CodeFileResponse.model_validate(f) for f in files],
    )


@router.patch("/projects/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: int,
    request: ProjectUpdateRequest,
    db: DbSession,
    user: CurrentUser,
):
    project = await _get_owned_project(db, project_id, user)
    project = await crud.code.update_code_project(
        db,
        project,
        name=request.name,
        description=request.description,
    )
    return ProjectResponse.model_validate(project)


@router.delete("/projects/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(project_id: int, db: DbSession, user: CurrentUser):
    """Delete a project and its files."""
    project = await _get_owned_project(db, project_id, user)
    await crud.code.delete_code_project(db, project)
    return None


# =============================================================================
# PROJECT FILES
# =============================================================================


@router.post(
    "/projects/{project_id}/files",
    response_model=CodeFileCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_file(
    project_id: int,
    request: CodeFileCreateRequest,
    db: DbSession,
    user: CurrentUser,
):
    await _get_owned_project(db, project_id, user)
    code_file = await crud.code.create_code_file(
        db,
        project_id=project_id,
        filename=request.filename,
        content=request.content,
        language=request.language,
    )
    return CodeFileCreatedResponse(id=code_file.id, filename=code_file.filename)


@router.get("/projects/{project_id}/files", response_model=list[CodeFileResponse])
async def list_files(project_id: int, db: DbSession, user: CurrentUser):
    await _get_owned_project(db, project_id, user)
    files = await crud.code.get_code_files_by_project_id(db, project_id)
    return [CodeFileResponse.model_validate(f) for f in files]
