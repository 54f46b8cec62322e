"""Load stored projects as detached snapshots for code generation."""
import copy
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.db.models import Component, Project
from app.generators.codegen.types import ComponentSnapshot, ComponentType, ProjectSnapshot


def get_owned_project(db: Session, project_id: str, user_id: str) -> Optional[Project]:
    """Project by id, or None when it is missing or belongs to someone else."""
    stmt = (
        select(Project)
        .where(Project.id == project_id, Project.user_id == user_id)
        .options(selectinload(Project.components))
        .execution_options(populate_existing=True)
    )
    return db.scalars(stmt).first()


def get_owned_component(db: Session, component_id: str, user_id: str) -> Optional[Component]:
    stmt = (
        select(Component)
        .join(Project, Component.project_id == Project.id)
        .where(Component.id == component_id, Project.user_id == user_id)
    )
    return db.scalars(stmt).first()


def to_snapshot(project: Project) -> ProjectSnapshot:
    """Copy a project and its components out of the session.

    Schemas are deep-copied so nothing done during generation can reach the
    persisted rows.
    """
    return ProjectSnapshot(
        id=project.id,
        name=project.name,
        description=project.description or "",
        components=[
            ComponentSnapshot(
                id=c.id,
                type=ComponentType(c.type),
                name=c.name,
                description=c.description or "",
                schema=copy.deepcopy(c.schema_data) if isinstance(c.schema_data, dict) else {},
                status=c.status,
                locked=c.locked,
            )
            for c in project.components
        ],
    )


def load_project_snapshot(db: Session, project_id: str, user_id: Optional[str] = None) -> Optional[ProjectSnapshot]:
    """Snapshot of a project, scoped to ``user_id`` when given."""
    if user_id is not None:
        project = get_owned_project(db, project_id, user_id)
    else:
        project = db.get(Project, project_id, populate_existing=True)
    if project is None:
        return None
    return to_snapshot(project)


class SqlProjectLoader:
    """Project loader bound to a session and, optionally, an owner."""

    def __init__(self, db: Session, user_id: Optional[str] = None):
        self.db = db
        self.user_id = user_id

    def __call__(self, project_id: str) -> Optional[ProjectSnapshot]:
        return load_project_snapshot(self.db, project_id, self.user_id)
