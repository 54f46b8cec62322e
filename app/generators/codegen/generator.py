"""Orchestrator for project code generation."""
import logging
from typing import Callable, Dict, List, Optional

from app.core.errors import ProjectNotFound
from app.generators.codegen.emitters import EmitContext, EMITTERS
from app.generators.codegen.renderer import TemplateRenderer
from app.generators.codegen.scaffold import (
    render_docker_compose,
    render_dockerfile,
    render_env_example,
    render_package_json,
    render_prisma_schema,
    render_readme,
    render_server_entry,
    render_test_setup,
    render_vitest_config,
)
from app.generators.codegen.types import GeneratedFile, ProjectIndex, ProjectSnapshot

log = logging.getLogger(__name__)

ProjectLoader = Callable[[str], Optional[ProjectSnapshot]]


def render_project_files(project: ProjectSnapshot, renderer: TemplateRenderer) -> List[GeneratedFile]:
    """
    Render every file of a generated project from an already loaded snapshot.

    Args:
        project: Project and its components in stored order
        renderer: Template renderer shared across requests

    Returns:
        List of GeneratedFile objects with unique paths
    """
    index = ProjectIndex(project.components)
    ctx = EmitContext(renderer=renderer, index=index, project_id=project.id)

    files: List[GeneratedFile] = [
        GeneratedFile(path="package.json", content=render_package_json(project)),
        GeneratedFile(path="README.md", content=render_readme(project, renderer)),
        GeneratedFile(path=".env.example", content=render_env_example()),
        GeneratedFile(path="prisma/schema.prisma", content=render_prisma_schema(project, renderer, index)),
    ]

    for component in project.components:
        emitted = EMITTERS[component.type](component, ctx)
        log.info(
            "Emitted %d file(s)",
            len(emitted),
            extra={"project_id": project.id, "component": component.name},
        )
        files.extend(emitted)

    emitted_paths = {f.path for f in files}
    files.extend([
        GeneratedFile(path="src/index.ts", content=render_server_entry(project, renderer, index, emitted_paths)),
        GeneratedFile(path="Dockerfile", content=render_dockerfile()),
        GeneratedFile(path="docker-compose.yml", content=render_docker_compose()),
        GeneratedFile(path="vitest.config.ts", content=render_vitest_config()),
        GeneratedFile(path="tests/setup.ts", content=render_test_setup()),
    ])

    return dedupe_paths(files, project.id)


def dedupe_paths(files: List[GeneratedFile], project_id: str = "-") -> List[GeneratedFile]:
    """Keep the last file emitted for each path, at that file's position."""
    last_seen: Dict[str, int] = {}
    for position, file in enumerate(files):
        if file.path in last_seen:
            log.warning(
                "Duplicate path %s, keeping the later file",
                file.path,
                extra={"project_id": project_id, "component": "-"},
            )
        last_seen[file.path] = position
    keep = set(last_seen.values())
    return [file for position, file in enumerate(files) if position in keep]


def generate_project(project_id: str, loader: ProjectLoader, renderer: TemplateRenderer) -> List[GeneratedFile]:
    """
    Generate the complete backend project for a stored project.

    Args:
        project_id: Project identifier
        loader: Returns the project snapshot, or None when it does not exist
        renderer: Template renderer shared across requests

    Returns:
        List of GeneratedFile objects

    Raises:
        ProjectNotFound: the loader has no such project
    """
    project = loader(project_id)
    if project is None:
        raise ProjectNotFound(project_id)

    log.info(
        "Generating project %r",
        project.name,
        extra={"project_id": project_id, "component": "-"},
    )

    files = render_project_files(project, renderer)
    log.info(
        "Generated %d files from %d components",
        len(files),
        len(project.components),
        extra={"project_id": project_id, "component": "-"},
    )
    return files
