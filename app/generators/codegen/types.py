"""Dataclasses for project code generation."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ComponentType(str, Enum):
    ELEMENT = "element"
    MANIPULATOR = "manipulator"
    WORKER = "worker"
    HELPER = "helper"
    AUTH = "auth"
    AUDITOR = "auditor"
    ENFORCER = "enforcer"
    WORKFLOW = "workflow"


@dataclass(frozen=True)
class GeneratedFile:
    """Represents a generated file."""
    path: str  # Relative path inside the generated project
    content: str  # File contents


@dataclass
class ComponentSnapshot:
    """Read-only copy of a stored component, detached from the database session."""
    id: str
    type: ComponentType
    name: str
    description: str = ""
    schema: Dict[str, Any] = field(default_factory=dict)
    status: str = "draft"
    locked: bool = False


@dataclass
class ProjectSnapshot:
    """Project plus its components in stored order."""
    id: str
    name: str
    description: str = ""
    components: List[ComponentSnapshot] = field(default_factory=list)

    def of_type(self, component_type: ComponentType) -> List[ComponentSnapshot]:
        return [c for c in self.components if c.type == component_type]


class ProjectIndex:
    """Lookup of a project's components by id and by name, per type.

    Used by the emitters to resolve cross-component references such as a
    manipulator's linked element or a helper named by a lifecycle hook.
    """

    def __init__(self, components: List[ComponentSnapshot]):
        self._by_id: Dict[str, ComponentSnapshot] = {}
        self._by_name: Dict[tuple, ComponentSnapshot] = {}
        for component in components:
            self._by_id[component.id] = component
            # Later components shadow earlier ones, matching last-write-wins output
            self._by_name[(component.type, component.name.strip().lower())] = component

    @classmethod
    def empty(cls) -> "ProjectIndex":
        return cls([])

    def get(self, component_id: Optional[str]) -> Optional[ComponentSnapshot]:
        if not component_id:
            return None
        return self._by_id.get(component_id)

    def find(self, component_type: ComponentType, name: Optional[str]) -> Optional[ComponentSnapshot]:
        if not name:
            return None
        return self._by_name.get((component_type, str(name).strip().lower()))

    def resolve(self, component_type: ComponentType, reference: Optional[str]) -> Optional[ComponentSnapshot]:
        """Resolve a reference that may be either a component id or a name."""
        found = self.get(reference)
        if found is not None and found.type == component_type:
            return found
        return self.find(component_type, reference)
