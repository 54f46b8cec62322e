"""Typed views over the per-type component ``schema`` JSON.

Every field is optional so that partially authored schemas still render.
Keys arrive in camelCase from the editor and are exposed as snake_case
attributes to the templates.  Validation degrades field by field: a null
or a value of the wrong type falls back to that field's default, and a
list item that does not validate is dropped from its list.
"""
import logging
from typing import Any, Dict, List, Optional, Type, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from app.generators.codegen.types import ComponentSnapshot, ComponentType

log = logging.getLogger(__name__)


def _prune_invalid(data: Dict[str, Any], errors: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Copy of ``data`` without the keys and list items named by ``errors``.

    Returns None when an error cannot be traced back to an input key.
    """
    drop_keys = set()
    drop_items: Dict[str, set] = {}
    for error in errors:
        loc = error.get("loc") or ()
        if not loc or loc[0] not in data:
            return None
        key = loc[0]
        if len(loc) > 1 and isinstance(loc[1], int) and isinstance(data[key], list):
            drop_items.setdefault(key, set()).add(loc[1])
        else:
            drop_keys.add(key)

    pruned = {}
    for key, value in data.items():
        if key in drop_keys:
            continue
        if key in drop_items:
            value = [item for position, item in enumerate(value) if position not in drop_items[key]]
        pruned[key] = value
    return pruned


class SchemaModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    @model_validator(mode="wrap")
    @classmethod
    def _validate_field_by_field(cls, data: Any, handler: ValidatorFunctionWrapHandler, info: ValidationInfo):
        if not isinstance(data, dict):
            return handler(data)
        data = {key: value for key, value in data.items() if value is not None}
        while True:
            try:
                return handler(data)
            except ValidationError as e:
                pruned = _prune_invalid(data, e.errors(include_url=False))
                if pruned is None:
                    raise
                dropped = [key for key in data if key not in pruned or pruned[key] != data[key]]
                if info.context is not None:
                    info.context.setdefault("dropped", []).extend(f"{cls.__name__}.{key}" for key in dropped)
                data = pruned


# -- element ------------------------------------------------------------------

class PropertySpec(SchemaModel):
    name: str = ""
    type: str = "string"
    required: bool = False
    unique: bool = False
    min: Optional[float] = None
    max: Optional[float] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    default: Any = None
    values: List[str] = Field(default_factory=list, validation_alias=AliasChoices("values", "enum", "options"))
    description: str = ""

    @field_validator("values", mode="before")
    @classmethod
    def _scalar_values_as_strings(cls, value):
        if isinstance(value, list):
            return [str(v) if isinstance(v, (int, float)) and not isinstance(v, bool) else v for v in value]
        return value


class RelationshipSpec(SchemaModel):
    name: str = ""
    type: str = "many-to-one"
    target: str = Field(default="", validation_alias=AliasChoices("target", "targetElement", "element"))
    required: bool = False


class BehaviorSpec(SchemaModel):
    name: str = ""
    description: str = ""
    trigger: str = Field(default="", validation_alias=AliasChoices("trigger", "hook", "event"))
    helper: str = Field(default="", validation_alias=AliasChoices("helper", "helperId", "helperName"))
    method: str = ""


class ElementSchema(SchemaModel):
    properties: List[PropertySpec] = Field(default_factory=list)
    relationships: List[RelationshipSpec] = Field(default_factory=list)
    behaviors: List[BehaviorSpec] = Field(default_factory=list)
    indexes: List[Any] = Field(default_factory=list)
    table_name: str = ""


# -- manipulator --------------------------------------------------------------

class EndpointSpec(SchemaModel):
    name: str = ""
    method: str = "GET"
    path: str = ""
    description: str = ""
    auth: str = "public"


class ManipulatorSchema(SchemaModel):
    linked_element: Optional[str] = None
    linked_element_id: Optional[str] = None
    operations: Union[List[str], Dict[str, bool]] = Field(default_factory=list)
    endpoints: List[EndpointSpec] = Field(default_factory=list)
    authentication: Union[Dict[str, str], str, None] = None
    pagination: bool = True
    filters: List[str] = Field(default_factory=list)
    base_path: str = ""

    @field_validator("operations", mode="before")
    @classmethod
    def _operation_flags(cls, value):
        # The editor saves {"create": true, "read": true, ...}
        if isinstance(value, dict):
            return {str(op): bool(enabled) for op, enabled in value.items()}
        return value


# -- worker / helper ----------------------------------------------------------

class StepSpec(SchemaModel):
    name: str = ""
    description: str = ""
    action: str = ""
    helper: str = Field(default="", validation_alias=AliasChoices("helper", "helperId", "helperName"))


class RetrySpec(SchemaModel):
    attempts: int = 3
    backoff: Any = "exponential"
    delay: int = 2000


class WorkerSchema(SchemaModel):
    queue: str = ""
    concurrency: int = 1
    steps: List[StepSpec] = Field(default_factory=list)
    retry: RetrySpec = Field(default_factory=RetrySpec)
    timeout: int = 30000
    helpers: List[str] = Field(default_factory=list)
    schedule: str = ""


class ParamSpec(SchemaModel):
    name: str = ""
    type: str = "string"
    required: bool = True


class MethodSpec(SchemaModel):
    name: str = ""
    description: str = ""
    params: List[ParamSpec] = Field(default_factory=list, validation_alias=AliasChoices("params", "parameters"))
    returns: str = ""


class HelperSchema(SchemaModel):
    integration: str = ""
    methods: List[MethodSpec] = Field(default_factory=list)
    config: Dict[str, Any] = Field(default_factory=dict)


# -- non-emitting kinds -------------------------------------------------------

class AuthSchema(SchemaModel):
    provider: str = ""
    strategy: str = ""
    roles: List[str] = Field(default_factory=list)
    session_duration: Optional[int] = None


class AuditorEvent(SchemaModel):
    name: str = ""
    action: str = ""


class AuditorSchema(SchemaModel):
    target_element: str = ""
    events: List[Union[str, AuditorEvent]] = Field(default_factory=list)
    track_changes: bool = True
    retention_days: Optional[int] = None


class RuleSpec(SchemaModel):
    name: str = ""
    description: str = ""
    type: str = "validation"
    trigger: str = ""
    condition: str = ""
    error_message: str = ""


class EnforcerSchema(SchemaModel):
    target_element: str = ""
    rules: List[RuleSpec] = Field(default_factory=list)


class WorkflowStep(SchemaModel):
    name: str = ""
    component: str = ""
    action: str = ""
    on_error: str = "abort"
    timeout: Optional[int] = None


class ErrorHandlingSpec(SchemaModel):
    strategy: str = "abort"
    retries: int = 0


class WorkflowSchema(SchemaModel):
    trigger: str = ""
    steps: List[WorkflowStep] = Field(default_factory=list)
    error_handling: ErrorHandlingSpec = Field(default_factory=ErrorHandlingSpec)


ComponentSchema = Union[
    ElementSchema,
    ManipulatorSchema,
    WorkerSchema,
    HelperSchema,
    AuthSchema,
    AuditorSchema,
    EnforcerSchema,
    WorkflowSchema,
]

SCHEMA_MODELS: Dict[ComponentType, Type[SchemaModel]] = {
    ComponentType.ELEMENT: ElementSchema,
    ComponentType.MANIPULATOR: ManipulatorSchema,
    ComponentType.WORKER: WorkerSchema,
    ComponentType.HELPER: HelperSchema,
    ComponentType.AUTH: AuthSchema,
    ComponentType.AUDITOR: AuditorSchema,
    ComponentType.ENFORCER: EnforcerSchema,
    ComponentType.WORKFLOW: WorkflowSchema,
}


def parse_schema(component: ComponentSnapshot, project_id: str = "-") -> ComponentSchema:
    """Return the typed schema for a component.

    Fields and list items that do not validate are logged and left at
    their defaults.  A schema that is not a JSON object at all renders as
    an empty schema of the same kind, so generation degrades instead of
    failing.
    """
    model = SCHEMA_MODELS[component.type]
    extra = {"project_id": project_id, "component": component.name}
    if component.schema is not None and not isinstance(component.schema, dict):
        log.warning("Schema is not an object, rendering with defaults", extra=extra)
        return model()

    context: Dict[str, Any] = {}
    try:
        schema = model.model_validate(component.schema or {}, context=context)
    except ValidationError as e:
        log.warning(
            "Malformed %s schema, rendering with defaults: %s",
            component.type.value,
            e.errors(include_url=False),
            extra=extra,
        )
        return model()
    if context.get("dropped"):
        log.warning(
            "Ignoring invalid %s schema fields: %s",
            component.type.value,
            ", ".join(context["dropped"]),
            extra=extra,
        )
    return schema
