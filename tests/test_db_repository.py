"""Tests for loading stored projects as snapshots."""
from app.db.models import Component, Project
from app.db.repository import SqlProjectLoader, load_project_snapshot
from app.generators.codegen.types import ComponentType


def _seed(db_session):
    project = Project(user_id="user-1", name="Blog", description=None)
    db_session.add(project)
    db_session.flush()
    db_session.add_all([
        Component(project_id=project.id, type="element", name="Post", sort_order=0,
                  schema_data={"properties": [{"name": "title"}]}),
        Component(project_id=project.id, type="auth", name="Login", sort_order=1, schema_data={"roles": ["admin"]}),
    ])
    db_session.commit()
    return project.id


def test_snapshot_copies_project_and_components(db_session):
    """Test that snapshots carry components in stored order with typed kinds."""
    project_id = _seed(db_session)
    snapshot = load_project_snapshot(db_session, project_id, "user-1")

    assert snapshot.name == "Blog"
    assert snapshot.description == ""
    assert [c.name for c in snapshot.components] == ["Post", "Login"]
    assert snapshot.components[0].type is ComponentType.ELEMENT
    assert snapshot.components[1].schema == {"roles": ["admin"]}


def test_snapshot_schema_is_detached(db_session):
    """Test that changing a snapshot schema never reaches the stored row."""
    project_id = _seed(db_session)
    snapshot = load_project_snapshot(db_session, project_id)
    snapshot.components[0].schema["properties"].append({"name": "injected"})

    stored = db_session.get(Project, project_id).components[0]
    assert stored.schema_data == {"properties": [{"name": "title"}]}


def test_loader_scopes_to_owner(db_session):
    project_id = _seed(db_session)
    assert SqlProjectLoader(db_session, "user-1")(project_id) is not None
    assert SqlProjectLoader(db_session, "user-2")(project_id) is None
    assert SqlProjectLoader(db_session)("missing") is None
