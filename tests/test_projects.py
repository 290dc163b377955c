import sys
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

os.environ.setdefault("database_url", "sqlite:///:memory:")

from fastapi.testclient import TestClient
from sqlmodel import SQLModel, Session, create_engine, select
from sqlalchemy.pool import StaticPool

from app.main import app
from app.models.project import Project
from app.models.requirement import Requirement
from app.database import get_session
from app.services.view_cache import ViewCache, get_view_cache


engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
SQLModel.metadata.create_all(engine)
cache = ViewCache()


def override_get_session():
    with Session(engine) as session:
        yield session


def reset_database():
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    cache.clear()
    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_view_cache] = lambda: cache


def test_create_project():
    reset_database()
    client = TestClient(app)

    payload = {"name": "Proj", "description": "Desc"}
    response = client.post("/projects/", json=payload)
    assert response.status_code == 201
    data = response.json()
    assert data["name"] == payload["name"]
    assert data["description"] == payload["description"]

    with Session(engine) as session:
        assert session.get(Project, data["id"]) is not None

    missing_name = client.post("/projects/", json={"name": ""})
    assert missing_name.status_code == 422

    app.dependency_overrides.clear()


def test_list_projects_newest_first():
    reset_database()
    client = TestClient(app)

    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    with Session(engine) as session:
        session.add(Project(name="old", created_at=base))
        session.add(Project(name="new", created_at=base + timedelta(days=1)))
        session.commit()

    response = client.get("/projects/")
    assert response.status_code == 200
    assert [p["name"] for p in response.json()] == ["new", "old"]

    app.dependency_overrides.clear()


def test_get_project_page_with_requirement_tree():
    reset_database()
    client = TestClient(app)

    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    with Session(engine) as session:
        session.add(Project(id="P1", name="own", description="d"))
        session.add(Requirement(id="A", title="A", project_id="P1", created_at=base))
        session.add(Requirement(id="B", title="B", project_id="P1", created_at=base + timedelta(minutes=1)))
        session.add(
            Requirement(id="A1", title="A1", project_id="P1", parent_id="A", created_at=base + timedelta(minutes=2))
        )
        session.commit()

    resp = client.get("/projects/P1")
    assert resp.status_code == 200
    data = resp.json()
    assert data["name"] == "own"
    assert data["requirements_count"] == 2
    assert [r["id"] for r in data["requirements"]] == ["B", "A"]
    assert [r["id"] for r in data["requirements"][1]["subtasks"]] == ["A1"]

    resp_404 = client.get("/projects/missing")
    assert resp_404.status_code == 404

    app.dependency_overrides.clear()


def test_project_page_refreshes_after_requirement_writes():
    reset_database()
    client = TestClient(app)

    with Session(engine) as session:
        session.add(Project(id="P1", name="own"))
        session.commit()

    assert client.get("/projects/P1").json()["requirements"] == []
    assert cache.get("/projects/P1") is not None

    rid = client.post("/requirements/", data={"title": "Design API", "project_id": "P1"}).json()["id"]
    assert cache.get("/projects/P1") is None

    page = client.get("/projects/P1").json()
    assert [r["title"] for r in page["requirements"]] == ["Design API"]

    client.patch(f"/requirements/{rid}/status", json={"status": "IN_PROGRESS", "project_id": "P1"})
    page = client.get("/projects/P1").json()
    assert page["requirements"][0]["status"] == "IN_PROGRESS"

    app.dependency_overrides.clear()


def test_update_project_name_and_description():
    reset_database()
    client = TestClient(app)

    with Session(engine) as session:
        project = Project(name="old", description="old")
        session.add(project)
        session.commit()
        session.refresh(project)
        pid = project.id

    client.get(f"/projects/{pid}")
    payload = {"name": "new", "description": "new desc"}
    response = client.put(f"/projects/{pid}", json=payload)
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "new"
    assert data["description"] == "new desc"
    assert client.get(f"/projects/{pid}").json()["name"] == "new"

    with Session(engine) as session:
        updated = session.get(Project, pid)
        assert updated.name == "new"
        assert updated.description == "new desc"

    app.dependency_overrides.clear()


def test_delete_project_keeps_requirements():
    reset_database()
    client = TestClient(app)

    with Session(engine) as session:
        project = Project(name="todel")
        session.add(project)
        session.commit()
        session.refresh(project)
        pid = project.id
        session.add(Requirement(id="R1", title="orphan", project_id=pid))
        session.commit()

    resp = client.delete(f"/projects/{pid}")
    assert resp.status_code == 204

    resp2 = client.delete(f"/projects/{pid}")
    assert resp2.status_code == 404

    with Session(engine) as session:
        assert [r.id for r in session.exec(select(Requirement)).all()] == ["R1"]

    app.dependency_overrides.clear()
