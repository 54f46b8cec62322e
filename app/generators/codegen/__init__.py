"""Project code generation: components in, TypeScript backend files out."""
from app.generators.codegen.emitters import EMITTERS, generate_component
from app.generators.codegen.generator import generate_project, render_project_files
from app.generators.codegen.renderer import TemplateRenderer
from app.generators.codegen.sinks import build_zip, iter_zip_stream, preview_files, summarize_files, write_zip
from app.generators.codegen.types import (
    ComponentSnapshot,
    ComponentType,
    GeneratedFile,
    ProjectIndex,
    ProjectSnapshot,
)
from app.generators.codegen.writer import write_files

__all__ = [
    "EMITTERS",
    "ComponentSnapshot",
    "ComponentType",
    "GeneratedFile",
    "ProjectIndex",
    "ProjectSnapshot",
    "TemplateRenderer",
    "build_zip",
    "generate_component",
    "generate_project",
    "iter_zip_stream",
    "preview_files",
    "render_project_files",
    "summarize_files",
    "write_files",
    "write_zip",
]
