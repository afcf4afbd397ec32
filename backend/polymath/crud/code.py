"""Code project and code file persistence.

Project lookups here are not scoped by user; the code routes compare
project.user_id against the caller on every read, update and delete.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from polymath.crud._common import db_unavailable, require_db
from polymath.db.models import CodeFile, CodeProject, utcnow


async def create_code_project(
    db: AsyncSession | None,
    *,
    user_id: int,
    name: str,
    language: str,
    description: str | None = None,
) -> CodeProject:
    db = require_db(db, "create code project")
    project = CodeProject(user_id=user_id, name=name, description=description or "", language=language)
    db.add(project)
    await db.commit()
    await db.refresh(project)
    return project


async def get_code_projects(db: AsyncSession | None, user_id: int) -> list[CodeProject]:
    """Most recently updated first."""
    if db_unavailable(db, "list code projects"):
        return []
    result = await db.execute(
        select(CodeProject)
        .where(CodeProject.user_id == user_id)
        .order_by(CodeProject.updated_at.desc(), CodeProject.id.desc())
    )
    return list(result.scalars().all())


async def get_code_project_by_id(db: AsyncSession | None, project_id: int) -> CodeProject | None:
    if db_unavailable(db, "get code project"):
        return None
    result = await db.execute(select(CodeProject).where(CodeProject.id == project_id))
    return result.scalar_one_or_none()


async def update_code_project(
    db: AsyncSession | None,
    project: CodeProject,
    *,
    name: str | None = None,
    description: str | None = None,
) -> CodeProject:
    db = require_db(db, "update code project")
    if name is not None:
        project.name = name
    if description is not None:
        project.description = description
    project.updated_at = utcnow()
    await db.commit()
    await db.refresh(project)
    return project


async def delete_code_project(db: AsyncSession | None, project: CodeProject) -> None:
    """Delete a project and all of its files."""
    db = require_db(db, "delete code project")
    await db.delete(project)
    await db.commit()


async def create_code_file(
    db: AsyncSession | None,
    *,
    project_id: int,
    filename: str,
    content: str,
    language: str,
) -> CodeFile:
    db = require_db(db, "create code file")
    code_file = CodeFile(project_id=project_id, filename=filename, content=content, language=language)
    db.add(code_file)
    await db.commit()
    await db.refresh(code_file)
    return code_file


async def get_code_files_by_project_id(db: AsyncSession | None, project_id: int) -> list[CodeFile]:
    if db_unavailable(db, "list code files"):
        return []
    result = await db.execute(
        select(CodeFile)
        .where(CodeFile.project_id == project_id)
        .order_by(CodeFile.created_at.asc(), CodeFile.id.asc())
    )
    return list(result.scalars().all())
