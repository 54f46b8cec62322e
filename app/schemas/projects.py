from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from app.schemas.components import ComponentResponse


class ProjectCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, examples=["Task Tracker"])
    description: Optional[str] = None
    canvas_data: Optional[Dict[str, Any]] = None


class ProjectUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    canvas_data: Optional[Dict[str, Any]] = None


class ProjectSummary(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    component_count: int = 0
    created_at: datetime
    updated_at: datetime


class ProjectResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    canvas_data: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: datetime
    components: List[ComponentResponse] = []
