import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.api.deps import get_current_user_id
from app.core.errors import ProjectNotFound
from app.db.models import Component
from app.db.repository import get_owned_component, get_owned_project
from app.db.session import get_db
from app.schemas.components import ComponentCreateRequest, ComponentResponse, ComponentUpdateRequest

log = logging.getLogger(__name__)

router = APIRouter(prefix="/components")


def component_response(component: Component) -> ComponentResponse:
    return ComponentResponse(
        id=component.id,
        project_id=component.project_id,
        type=component.type,
        name=component.name,
        description=component.description,
        schema_=component.schema_data or {},
        status=component.status,
        locked=component.locked,
        position=component.position,
        created_at=component.created_at,
        updated_at=component.updated_at,
    )


@router.post("", response_model=ComponentResponse, status_code=201)
def create_component(
    req: ComponentCreateRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    project = get_owned_project(db, req.project_id, user_id)
    if not project:
        raise ProjectNotFound(req.project_id)

    next_order = db.scalar(
        select(func.coalesce(func.max(Component.sort_order) + 1, 0)).where(Component.project_id == project.id)
    )
    component = Component(
        project_id=project.id,
        type=req.type.value,
        name=req.name,
        description=req.description,
        schema_data=req.schema_,
        status="ready",
        position=req.position,
        sort_order=next_order,
    )
    db.add(component)
    db.commit()
    db.refresh(component)
    log.info("Component created", extra={"project_id": project.id, "component": component.name})
    return component_response(component)


@router.get("/{component_id}", response_model=ComponentResponse)
def get_component(component_id: str, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)):
    component = get_owned_component(db, component_id, user_id)
    if not component:
        raise HTTPException(status_code=404, detail="Component not found")
    return component_response(component)


@router.patch("/{component_id}", response_model=ComponentResponse)
def update_component(
    component_id: str,
    req: ComponentUpdateRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    component = get_owned_component(db, component_id, user_id)
    if not component:
        raise HTTPException(status_code=404, detail="Component not found")
    changes = req.model_dump(exclude_unset=True)
    if "schema_" in changes:
        component.schema_data = changes.pop("schema_") or {}
    for field, value in changes.items():
        setattr(component, field, value)
    db.commit()
    db.refresh(component)
    return component_response(component)


@router.delete("/{component_id}", status_code=204)
def delete_component(component_id: str, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)):
    component = get_owned_component(db, component_id, user_id)
    if not component:
        raise HTTPException(status_code=404, detail="Component not found")
    db.delete(component)
    db.commit()
    log.info("Component deleted", extra={"project_id": component.project_id, "component": component.name})
    return Response(status_code=204)
