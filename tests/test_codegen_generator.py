"""Tests for whole-project generation."""
import copy
import json
import shutil
from pathlib import Path

import pytest
import yaml

from app.core.errors import ProjectNotFound
from app.generators.codegen.generator import dedupe_paths, generate_project
from app.generators.codegen.renderer import TemplateRenderer
from app.generators.codegen.types import ComponentSnapshot, ComponentType, GeneratedFile, ProjectSnapshot

TEMPLATE_DIR = Path(__file__).parent.parent / "app" / "generators" / "codegen" / "templates"


def _by_path(files):
    return {f.path: f.content for f in files}


def test_generate_project_completeness(renderer, blog_project, make_loader):
    """Test that every project-level file is present exactly once, in step order."""
    files = generate_project("proj-1", make_loader(blog_project), renderer)
    paths = [f.path for f in files]

    assert paths[:4] == ["package.json", "README.md", ".env.example", "prisma/schema.prisma"]
    assert paths[-5:] == ["src/index.ts", "Dockerfile", "docker-compose.yml", "vitest.config.ts", "tests/setup.ts"]
    assert len(paths) == len(set(paths)), "Paths must be unique"

    # 2 elements x 3 files, 1 manipulator x 2, 1 worker, 1 helper, auth emits nothing
    assert len(files) == 4 + 6 + 2 + 1 + 1 + 5
    assert len([p for p in paths if p.startswith("src/workers/")]) == 1
    assert len([p for p in paths if p.startswith("src/helpers/")]) == 1

    component_paths = [p for p in paths if p.startswith("src/")]
    for path in component_paths:
        assert " " not in path and path == path.lower(), f"Unexpected characters in {path}"
    assert "src/entities/blog-post.entity.ts" in paths


def test_generate_project_is_idempotent(renderer, blog_project, make_loader):
    loader = make_loader(blog_project)
    first = generate_project("proj-1", loader, renderer)
    second = generate_project("proj-1", loader, renderer)
    assert first == second


def test_generate_project_not_found(renderer, make_loader):
    with pytest.raises(ProjectNotFound) as exc_info:
        generate_project("missing", make_loader(), renderer)
    assert exc_info.value.project_id == "missing"
    assert str(exc_info.value) == "Project not found"


def test_package_json_dependencies(renderer, blog_project, make_loader):
    """Test that worker and integration dependencies follow the components present."""
    files = _by_path(generate_project("proj-1", make_loader(blog_project), renderer))
    assert files["package.json"].endswith("}\n")
    manifest = json.loads(files["package.json"])

    assert manifest["name"] == "blog-platform"
    assert manifest["dependencies"]["express"] == "^4.18.2"
    assert manifest["dependencies"]["bullmq"] == "^5.1.0"
    assert manifest["dependencies"]["ioredis"] == "^5.3.2"
    assert manifest["dependencies"]["@sendgrid/mail"] == "^7.7.0"
    assert "stripe" not in manifest["dependencies"]
    assert manifest["scripts"]["worker:dev"] == "tsx watch src/workers/*.worker.ts"
    assert manifest["scripts"]["test"] == "vitest run"
    assert "vitest" in manifest["devDependencies"]


def test_package_json_without_workers(renderer, make_loader):
    project = ProjectSnapshot(id="p", name="Plain", components=[
        ComponentSnapshot(id="e", type=ComponentType.ELEMENT, name="Task"),
    ])
    manifest = json.loads(_by_path(generate_project("p", make_loader(project), renderer))["package.json"])
    assert "bullmq" not in manifest["dependencies"]
    assert "worker:dev" not in manifest["scripts"]


def test_project_level_files(renderer, blog_project, make_loader):
    files = _by_path(generate_project("proj-1", make_loader(blog_project), renderer))

    readme = files["README.md"]
    assert readme.startswith("# Blog Platform\n")
    assert "- Blog Post (element)" in readme
    assert "- Login (auth)" in readme

    assert "PORT=3001" in files[".env.example"]

    prisma = files["prisma/schema.prisma"]
    assert 'provider = "postgresql"' in prisma
    assert "model BlogPost {" in prisma
    assert "model Author {" in prisma
    assert "  email String @unique" in prisma
    assert '  status String @default("draft")' in prisma
    assert "  author Author? @relation(fields: [authorId], references: [id])" in prisma

    index = files["src/index.ts"]
    assert "import blogPostRouter from './controllers/blog-post.controller';" in index
    assert "app.use('/api/blog-posts', blogPostRouter);" in index
    assert "app.get('/health'" in index
    assert "Blog Platform API listening" in index

    compose = yaml.safe_load(files["docker-compose.yml"])
    assert set(compose["services"]) == {"app", "db"}
    assert compose["services"]["db"]["image"] == "postgres:16-alpine"
    assert files["Dockerfile"].startswith("FROM node:20-alpine AS builder")


def test_manipulator_base_path_mount(renderer, make_loader):
    project = ProjectSnapshot(id="p", name="Shop", components=[
        ComponentSnapshot(id="e", type=ComponentType.ELEMENT, name="Order"),
        ComponentSnapshot(id="m", type=ComponentType.MANIPULATOR, name="Orders API",
                          schema={"linkedElement": "Order", "basePath": "v2/orders"}),
    ])
    index = _by_path(generate_project("p", make_loader(project), renderer))["src/index.ts"]
    assert "app.use('/v2/orders', orderRouter);" in index


def test_generation_does_not_mutate_components(renderer, blog_project, make_loader):
    before = copy.deepcopy([c.schema for c in blog_project.components])
    generate_project("proj-1", make_loader(blog_project), renderer)
    assert [c.schema for c in blog_project.components] == before


def test_duplicate_paths_last_write_wins(renderer, make_loader):
    """Test that colliding component names keep only the later component's files."""
    project = ProjectSnapshot(id="p", name="Dupes", components=[
        ComponentSnapshot(id="t1", type=ComponentType.ELEMENT, name="Task",
                          schema={"properties": [{"name": "first"}]}),
        ComponentSnapshot(id="t2", type=ComponentType.ELEMENT, name="task",
                          schema={"properties": [{"name": "second"}]}),
    ])
    files = generate_project("p", make_loader(project), renderer)
    paths = [f.path for f in files]

    assert paths.count("src/entities/task.entity.ts") == 1
    entity = _by_path(files)["src/entities/task.entity.ts"]
    assert "second:" in entity
    assert "first:" not in entity
    assert paths[4] == "src/entities/task.entity.ts"


def test_dedupe_paths_keeps_later_position():
    a1 = GeneratedFile(path="a", content="1")
    b = GeneratedFile(path="b", content="b")
    a2 = GeneratedFile(path="a", content="2")
    assert dedupe_paths([a1, b, a2]) == [b, a2]


def test_missing_templates_still_produce_structure(empty_renderer, blog_project, make_loader):
    """Test that a renderer without templates still yields every structural file."""
    files = generate_project("proj-1", make_loader(blog_project), empty_renderer)
    by_path = _by_path(files)

    assert not any(p.startswith(("src/entities/", "src/services/", "src/controllers/")) for p in by_path)
    assert "// TODO: implement" in by_path["src/workers/digest-mailer.worker.ts"]
    assert "// TODO: implement" in by_path["src/helpers/notification-helper.helper.ts"]
    assert by_path["README.md"].startswith("# Blog Platform")
    assert "model " not in by_path["prisma/schema.prisma"]
    assert "express" in by_path["src/index.ts"]
    assert len(files) == 4 + 2 + 5


def test_entry_skips_controllers_that_were_not_generated(tmp_path, make_loader):
    """Test that a manipulator whose controller failed to render is not mounted."""
    (tmp_path / "project").mkdir()
    shutil.copy(TEMPLATE_DIR / "project" / "index.ts.j2", tmp_path / "project" / "index.ts.j2")
    project = ProjectSnapshot(id="p", name="Shop", components=[
        ComponentSnapshot(id="e", type=ComponentType.ELEMENT, name="Order"),
        ComponentSnapshot(id="m", type=ComponentType.MANIPULATOR, name="Orders API",
                          schema={"linkedElement": "Order"}),
    ])
    files = _by_path(generate_project("p", make_loader(project), TemplateRenderer(tmp_path)))

    assert "src/controllers/order.controller.ts" not in files
    assert "orderRouter" not in files["src/index.ts"]
    assert "app.listen(PORT" in files["src/index.ts"]
