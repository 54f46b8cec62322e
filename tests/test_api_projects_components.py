"""Tests for project and component CRUD routes."""
from sqlalchemy import select

from app.db.models import Component

OWNER = {"X-User-Id": "user-1"}
STRANGER = {"X-User-Id": "user-2"}


def test_project_crud(client):
    """Test create, read, list, update and delete of a project."""
    res = client.post("/v1/projects", json={"name": "Shop", "canvas_data": {"zoom": 1}}, headers=OWNER)
    assert res.status_code == 201
    project = res.json()
    assert project["name"] == "Shop"
    assert project["canvas_data"] == {"zoom": 1}
    assert project["components"] == []

    res = client.get("/v1/projects", headers=OWNER)
    assert res.status_code == 200
    assert [p["id"] for p in res.json()] == [project["id"]]
    assert res.json()[0]["component_count"] == 0

    res = client.patch(f"/v1/projects/{project['id']}", json={"description": "Online shop"}, headers=OWNER)
    assert res.status_code == 200
    assert res.json()["description"] == "Online shop"
    assert res.json()["name"] == "Shop", "Unset fields must not change"

    res = client.delete(f"/v1/projects/{project['id']}", headers=OWNER)
    assert res.status_code == 204
    res = client.get(f"/v1/projects/{project['id']}", headers=OWNER)
    assert res.status_code == 404
    assert res.json() == {"error": "Project not found"}


def test_projects_are_scoped_to_owner(client):
    project_id = client.post("/v1/projects", json={"name": "Mine"}, headers=OWNER).json()["id"]

    assert client.get("/v1/projects", headers=STRANGER).json() == []
    assert client.get(f"/v1/projects/{project_id}", headers=STRANGER).status_code == 404
    assert client.patch(f"/v1/projects/{project_id}", json={"name": "Theirs"}, headers=STRANGER).status_code == 404
    assert client.delete(f"/v1/projects/{project_id}", headers=STRANGER).status_code == 404
    assert client.get("/v1/projects").status_code == 401


def test_project_validation(client):
    res = client.post("/v1/projects", json={"name": ""}, headers=OWNER)
    assert res.status_code == 422
    assert res.json()["error"] == "Invalid request"

    res = client.post("/v1/projects", json={"name": "x" * 101}, headers=OWNER)
    assert res.status_code == 422


def test_component_crud(client):
    """Test component lifecycle and that new components are created ready."""
    project_id = client.post("/v1/projects", json={"name": "Blog"}, headers=OWNER).json()["id"]

    res = client.post("/v1/components", json={
        "project_id": project_id,
        "type": "element",
        "name": "Post",
        "schema": {"properties": [{"name": "title"}]},
        "position": {"x": 10, "y": 20},
    }, headers=OWNER)
    assert res.status_code == 201
    component = res.json()
    assert component["status"] == "ready"
    assert component["schema"] == {"properties": [{"name": "title"}]}
    assert component["locked"] is False

    res = client.patch(f"/v1/components/{component['id']}", json={
        "schema": {"properties": []},
        "status": "draft",
        "locked": True,
    }, headers=OWNER)
    assert res.status_code == 200
    assert res.json()["schema"] == {"properties": []}
    assert res.json()["status"] == "draft"
    assert res.json()["locked"] is True
    assert res.json()["name"] == "Post"

    project = client.get(f"/v1/projects/{project_id}", headers=OWNER).json()
    assert [c["id"] for c in project["components"]] == [component["id"]]

    assert client.delete(f"/v1/components/{component['id']}", headers=OWNER).status_code == 204
    res = client.get(f"/v1/components/{component['id']}", headers=OWNER)
    assert res.status_code == 404
    assert res.json() == {"error": "Component not found"}


def test_component_validation_and_ownership(client):
    project_id = client.post("/v1/projects", json={"name": "Blog"}, headers=OWNER).json()["id"]

    res = client.post("/v1/components", json={"project_id": project_id, "type": "gadget", "name": "X"}, headers=OWNER)
    assert res.status_code == 422

    res = client.post("/v1/components", json={"project_id": project_id, "type": "element", "name": "X"}, headers=STRANGER)
    assert res.status_code == 404
    assert res.json() == {"error": "Project not found"}

    component_id = client.post(
        "/v1/components", json={"project_id": project_id, "type": "helper", "name": "Mailer"}, headers=OWNER
    ).json()["id"]
    assert client.get(f"/v1/components/{component_id}", headers=STRANGER).status_code == 404

    res = client.patch(f"/v1/components/{component_id}", json={"status": "broken"}, headers=OWNER)
    assert res.status_code == 422


def test_components_keep_creation_order(client, db_session):
    """Test that components are numbered in creation order within a project."""
    project_id = client.post("/v1/projects", json={"name": "Ordered"}, headers=OWNER).json()["id"]
    names = ["Zeta", "Alpha", "Mid"]
    for name in names:
        client.post("/v1/components", json={"project_id": project_id, "type": "element", "name": name}, headers=OWNER)

    project = client.get(f"/v1/projects/{project_id}", headers=OWNER).json()
    assert [c["name"] for c in project["components"]] == names

    orders = db_session.scalars(
        select(Component.sort_order).where(Component.project_id == project_id).order_by(Component.sort_order)
    ).all()
    assert orders == [0, 1, 2]


def test_deleting_project_removes_components(client, db_session):
    project_id = client.post("/v1/projects", json={"name": "Gone"}, headers=OWNER).json()["id"]
    client.post("/v1/components", json={"project_id": project_id, "type": "element", "name": "A"}, headers=OWNER)

    assert client.delete(f"/v1/projects/{project_id}", headers=OWNER).status_code == 204
    remaining = db_session.scalars(select(Component).where(Component.project_id == project_id)).all()
    assert remaining == []
