"""Tests for the import / export HTTP routes.

The routers run against a throwaway SQLite file; the session factory
dependency is overridden so no global engine is created.
"""

from __future__ import annotations

import asyncio
from io import BytesIO

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from openpyxl import load_workbook
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from plhcc.db.models import Base
from plhcc.db.repository import Repository
from plhcc.web.dependencies import get_session_factory
from plhcc.web.routes import exports, health, imports

HEADERS = {"X-User-Id": "user-1"}
PROJECTS_CSV = b"Project Name,Client,Budget\nKitchen,Smith,\"10,000\"\n,Nobody,\nBath,Jones,500\n"


@pytest.fixture
def factory(tmp_path) -> async_sessionmaker[AsyncSession]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'web.db'}", poolclass=NullPool)

    async def create():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(create())
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def client(factory) -> TestClient:
    app = FastAPI()
    app.include_router(health.router)
    app.include_router(imports.router)
    app.include_router(exports.router)
    app.dependency_overrides[get_session_factory] = lambda: factory
    return TestClient(app)


def upload(content: bytes, filename: str = "projects.csv"):
    return {"file": (filename, BytesIO(content), "text/csv")}


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestAuth:
    def test_missing_user_header(self, client):
        response = client.get("/exports/executive-report")

        assert response.status_code == 401
        assert response.json()["detail"] == "Not authenticated"

    def test_import_requires_user(self, client):
        response = client.post("/imports/projects", files=upload(PROJECTS_CSV))

        assert response.status_code == 401


class TestImportRoutes:
    def test_types(self, client):
        response = client.get("/imports/types")

        assert response.status_code == 200
        body = response.json()
        assert set(body) == {"projects", "tasks", "budget_items", "vendors"}
        assert body["projects"]["fields"][0]["key"] == "name"

    def test_preview(self, client):
        response = client.post("/imports/projects/preview", files=upload(PROJECTS_CSV), headers=HEADERS)

        assert response.status_code == 200
        body = response.json()
        assert body["headers"] == ["Project Name", "Client", "Budget"]
        assert body["mapping"] == {"name": "Project Name", "client_name": "Client", "total_budget": "Budget"}
        assert body["missing_fields"] == []
        assert body["valid_count"] == 2
        assert body["errors"] == [{"row": 2, "field": "name", "message": "Project name is required"}]

    def test_preview_reports_unmapped_required(self, client):
        response = client.post(
            "/imports/projects/preview", files=upload(b"Job,Budget\nKitchen,5\n"), headers=HEADERS
        )

        assert response.status_code == 200
        assert response.json()["missing_fields"] == ["name", "client_name"]

    def test_mapping_override(self, client):
        response = client.post(
            "/imports/projects/preview",
            files=upload(b"Job,Customer\nKitchen,Smith\n"),
            data={"mapping": '{"name": "Job"}'},
            headers=HEADERS,
        )

        assert response.json()["valid_count"] == 1

    def test_bad_csv(self, client):
        response = client.post(
            "/imports/projects/preview", files=upload(b"Project\n"), data={"skip_rows": "3"}, headers=HEADERS
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Not enough rows after skipping"

    def test_negative_skip_rows_rejected(self, client):
        response = client.post(
            "/imports/projects/preview", files=upload(PROJECTS_CSV), data={"skip_rows": "-1"}, headers=HEADERS
        )

        assert response.status_code == 422

    def test_unknown_type(self, client):
        response = client.post("/imports/widgets", files=upload(PROJECTS_CSV), headers=HEADERS)

        assert response.status_code == 422

    def test_run_import(self, client, factory):
        response = client.post("/imports/projects", files=upload(PROJECTS_CSV), headers=HEADERS)

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "SUCCESS"
        assert body["success"] == 2
        assert body["skipped"] == 1

        projects = asyncio.run(Repository(factory, "user-1").list_projects())
        assert sorted(p.name for p in projects) == ["Bath", "Kitchen"]

    def test_run_import_missing_mapping(self, client):
        response = client.post("/imports/projects", files=upload(b"Job\nKitchen\n"), headers=HEADERS)

        assert response.status_code == 400
        assert "Required fields not mapped" in response.json()["detail"]


class TestExportRoutes:
    def test_executive_report(self, client):
        client.post("/imports/projects", files=upload(PROJECTS_CSV), headers=HEADERS)

        response = client.get("/exports/executive-report", headers=HEADERS)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith(exports.XLSX_MEDIA_TYPE)
        assert "PLH-Executive-Report-" in response.headers["content-disposition"]
        wb = load_workbook(BytesIO(response.content))
        assert wb.sheetnames[0] == "Executive Summary"
        assert wb["Executive Summary"]["A5"].value == "Bath"

    def test_backup(self, client):
        client.post("/imports/projects", files=upload(PROJECTS_CSV), headers=HEADERS)

        response = client.get("/exports/backup", headers=HEADERS)

        assert response.status_code == 200
        assert "PLH-Data-Backup-" in response.headers["content-disposition"]
        wb = load_workbook(BytesIO(response.content))
        assert sorted(c.value for c in wb["Projects"]["A"][1:]) == ["Bath", "Kitchen"]

    def test_other_user_sees_nothing(self, client):
        client.post("/imports/projects", files=upload(PROJECTS_CSV), headers=HEADERS)

        response = client.get("/exports/backup", headers={"X-User-Id": "user-2"})

        wb = load_workbook(BytesIO(response.content))
        assert wb["Projects"].max_row == 1
