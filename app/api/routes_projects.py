import logging
from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.api.deps import get_current_user_id
from app.api.routes_components import component_response
from app.core.errors import ProjectNotFound
from app.db.models import Project
from app.db.repository import get_owned_project
from app.db.session import get_db
from app.schemas.projects import (
    ProjectCreateRequest,
    ProjectResponse,
    ProjectSummary,
    ProjectUpdateRequest,
)

log = logging.getLogger(__name__)

router = APIRouter(prefix="/projects")


def project_response(project: Project) -> ProjectResponse:
    return ProjectResponse(
        id=project.id,
        name=project.name,
        description=project.description,
        canvas_data=project.canvas_data,
        created_at=project.created_at,
        updated_at=project.updated_at,
        components=[component_response(c) for c in project.components],
    )


@router.get("", response_model=List[ProjectSummary])
def list_projects(db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)):
    stmt = (
        select(Project)
        .where(Project.user_id == user_id)
        .options(selectinload(Project.components))
        .execution_options(populate_existing=True)
        .order_by(Project.created_at.desc(), Project.id)
    )
    return [
        ProjectSummary(
            id=p.id,
            name=p.name,
            description=p.description,
            component_count=len(p.components),
            created_at=p.created_at,
            updated_at=p.updated_at,
        )
        for p in db.scalars(stmt)
    ]


@router.post("", response_model=ProjectResponse, status_code=201)
def create_project(
    req: ProjectCreateRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    project = Project(
        user_id=user_id,
        name=req.name,
        description=req.description,
        canvas_data=req.canvas_data,
    )
    db.add(project)
    db.commit()
    db.refresh(project)
    log.info("Project created", extra={"project_id": project.id, "component": "-"})
    return project_response(project)


@router.get("/{project_id}", response_model=ProjectResponse)
def get_project(project_id: str, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)):
    project = get_owned_project(db, project_id, user_id)
    if not project:
        raise ProjectNotFound(project_id)
    return project_response(project)


@router.patch("/{project_id}", response_model=ProjectResponse)
def update_project(
    project_id: str,
    req: ProjectUpdateRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    project = get_owned_project(db, project_id, user_id)
    if not project:
        raise ProjectNotFound(project_id)
    for field, value in req.model_dump(exclude_unset=True).items():
        setattr(project, field, value)
    db.commit()
    db.refresh(project)
    return project_response(project)


@router.delete("/{project_id}", status_code=204)
def delete_project(project_id: str, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)):
    project = get_owned_project(db, project_id, user_id)
    if not project:
        raise ProjectNotFound(project_id)
    db.delete(project)
    db.commit()
    log.info("Project deleted", extra={"project_id": project_id, "component": "-"})
    return Response(status_code=204)
