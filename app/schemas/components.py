from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.generators.codegen.types import ComponentType

ComponentStatus = Literal["draft", "ready", "error"]


class ComponentCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    project_id: str
    type: ComponentType = Field(..., examples=["element"])
    name: str = Field(..., min_length=1, max_length=100, examples=["Blog Post"])
    description: Optional[str] = None
    # Per-type shape; see app.generators.codegen.schema_models
    schema_: Dict[str, Any] = Field(default_factory=dict, alias="schema")
    position: Optional[Dict[str, Any]] = None


class ComponentUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    schema_: Optional[Dict[str, Any]] = Field(None, alias="schema")
    status: Optional[ComponentStatus] = None
    locked: Optional[bool] = None
    position: Optional[Dict[str, Any]] = None


class ComponentResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    project_id: str
    type: ComponentType
    name: str
    description: Optional[str] = None
    schema_: Dict[str, Any] = Field(default_factory=dict, alias="schema")
    status: str
    locked: bool = False
    position: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: datetime
