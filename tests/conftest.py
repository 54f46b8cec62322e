"""Shared fixtures: in-memory database, API client, sample projects."""
import os

# Settings are read at import time; point them at SQLite before any app import
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db import models  # noqa
from app.db.session import Base, get_db
from app.generators.codegen.renderer import TemplateRenderer
from app.generators.codegen.types import ComponentSnapshot, ComponentType, ProjectSnapshot


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    TestingSession = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def client(db_session):
    # Imported here so the lifespan (database wait + migrations) never runs:
    # TestClient is used without its context manager
    from app.main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(scope="session")
def renderer():
    return TemplateRenderer()


@pytest.fixture
def empty_renderer(tmp_path):
    """Renderer whose template directory holds no templates at all."""
    return TemplateRenderer(tmp_path)


BLOG_POST_SCHEMA = {
    "properties": [
        {"name": "title", "type": "string", "required": True, "minLength": 1, "maxLength": 200},
        {"name": "status", "type": "enum", "values": ["draft", "published"], "default": "draft"},
        {"name": "views", "type": "integer", "min": 0},
        {"name": "publishedAt", "type": "datetime"},
        {"name": "id", "type": "uuid"},
    ],
    "relationships": [
        {"name": "author", "type": "many-to-one", "target": "Author"},
    ],
    "behaviors": [
        {"name": "notifySubscribers", "trigger": "afterCreate", "helper": "Notification Helper", "method": "sendPublished"},
        {"name": "auditTrail", "trigger": "beforeDelete", "helper": "Missing Helper"},
    ],
}


def make_blog_project() -> ProjectSnapshot:
    return ProjectSnapshot(
        id="proj-1",
        name="Blog Platform",
        description="A small blogging backend",
        components=[
            ComponentSnapshot(id="el-1", type=ComponentType.ELEMENT, name="Blog Post", schema=BLOG_POST_SCHEMA),
            ComponentSnapshot(
                id="el-2",
                type=ComponentType.ELEMENT,
                name="Author",
                schema={"properties": [{"name": "email", "type": "string", "required": True, "unique": True}]},
            ),
            ComponentSnapshot(
                id="man-1",
                type=ComponentType.MANIPULATOR,
                name="Blog Post API",
                schema={
                    "linkedElement": "Blog Post",
                    "operations": ["read", "create", "update", "delete"],
                    "authentication": {"create": "user", "delete": "admin"},
                    "filters": ["status"],
                },
            ),
            ComponentSnapshot(
                id="wk-1",
                type=ComponentType.WORKER,
                name="Digest Mailer",
                schema={
                    "queue": "digest",
                    "concurrency": 2,
                    "retry": {"attempts": 5, "backoff": {"type": "fixed", "delay": 1000}},
                    "steps": [
                        {"name": "Collect Posts", "description": "Gather posts from the last day"},
                        {"name": "Send Emails", "helper": "Notification Helper"},
                    ],
                },
            ),
            ComponentSnapshot(
                id="hp-1",
                type=ComponentType.HELPER,
                name="Notification Helper",
                schema={
                    "integration": "sendgrid",
                    "methods": [
                        {
                            "name": "sendPublished",
                            "description": "Email subscribers about a new post",
                            "params": [{"name": "postId", "type": "uuid"}, {"name": "cc", "type": "string", "required": False}],
                            "returns": "boolean",
                        },
                    ],
                },
            ),
            ComponentSnapshot(
                id="au-1",
                type=ComponentType.AUTH,
                name="Login",
                schema={"provider": "email", "roles": ["user", "admin"]},
            ),
        ],
    )


@pytest.fixture
def blog_project():
    return make_blog_project()


@pytest.fixture
def make_loader():
    """Build a project loader over in-memory snapshots."""
    def _make(*projects: ProjectSnapshot):
        by_id = {p.id: p for p in projects}
        return lambda project_id: by_id.get(project_id)
    return _make
