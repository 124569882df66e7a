"""Tests for the quote, task, budget, call log and message HTTP routes."""

from __future__ import annotations

import asyncio
from datetime import timedelta
from uuid import uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from plhcc.db.models import Base
from plhcc.db.repository import NO_PROJECT, Repository
from plhcc.models import utcnow
from plhcc.web.dependencies import get_session_factory
from plhcc.web.routes import budget, call_logs, messages, quotes, tasks

HEADERS = {"X-User-Id": "user-1"}
OTHER_HEADERS = {"X-User-Id": "user-2"}


@pytest.fixture
def factory(tmp_path) -> async_sessionmaker[AsyncSession]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'writes.db'}", poolclass=NullPool)

    async def create():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(create())
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def client(factory) -> TestClient:
    app = FastAPI()
    for module in (quotes, tasks, budget, call_logs, messages):
        app.include_router(module.router)
    app.dependency_overrides[get_session_factory] = lambda: factory
    return TestClient(app)


@pytest.fixture
def repository(factory) -> Repository:
    return Repository(factory, "user-1")


@pytest.fixture
def project(repository):
    return asyncio.run(repository.insert_project({"name": "Kitchen", "client_name": "Smith"}))


def recent_changes(repository: Repository):
    return asyncio.run(repository.list_change_log(utcnow() - timedelta(minutes=5)))


class TestQuoteRoutes:
    def test_create_logs_creation(self, client, repository, project):
        response = client.post(
            "/quotes",
            json={"project_id": str(project.id), "budget_amount": 1000, "quoted_price": 900},
            headers=HEADERS,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "pending"
        assert body["user_id"] == "user-1"

        entries = recent_changes(repository)
        assert [(e.record_type, e.field_name) for e in entries] == [("quote", "_created")]
        assert '"quoted_price": 900.0' in entries[0].new_value

    def test_create_for_unknown_project(self, client):
        response = client.post("/quotes", json={"project_id": str(uuid4())}, headers=HEADERS)

        assert response.status_code == 404

    def test_create_rejects_unknown_status(self, client, project):
        response = client.post(
            "/quotes", json={"project_id": str(project.id), "status": "maybe"}, headers=HEADERS
        )

        assert response.status_code == 422

    def test_patch_diffs_only_sent_fields(self, client, repository, project):
        quote = asyncio.run(repository.insert_quote({"project_id": project.id, "quoted_price": 900, "notes": "Base"}))

        response = client.patch(
            f"/quotes/{quote.id}",
            json={"status": "approved", "quoted_price": 900, "note": "Client signed"},
            headers=HEADERS,
        )

        assert response.status_code == 200
        assert response.json()["status"] == "approved"
        assert response.json()["notes"] == "Base"
        entries = [e for e in recent_changes(repository) if e.record_type == "quote"]
        assert [(e.field_name, e.old_value, e.new_value, e.note) for e in entries] == [
            ("status", "pending", "approved", "Client signed")
        ]

    def test_patch_other_users_quote(self, client, repository, project):
        quote = asyncio.run(repository.insert_quote({"project_id": project.id}))

        response = client.patch(f"/quotes/{quote.id}", json={"status": "approved"}, headers=OTHER_HEADERS)

        assert response.status_code == 404

    def test_list_filters_by_project(self, client, repository, project):
        other = asyncio.run(repository.insert_project({"name": "Bath", "client_name": "Jones"}))
        asyncio.run(repository.insert_quote({"project_id": project.id}))
        asyncio.run(repository.insert_quote({"project_id": other.id}))

        response = client.get("/quotes", params={"project_id": str(other.id)}, headers=HEADERS)

        assert [q["project_name"] for q in response.json()] == ["Bath"]

    def test_requires_user(self, client):
        assert client.get("/quotes").status_code == 401


class TestTaskRoutes:
    def test_status_change_records_activity(self, client, repository, project):
        task = asyncio.run(repository.insert_task({"project_id": project.id, "task": "Order tile"}))

        response = client.post(
            f"/tasks/{task.id}/status",
            json={"status": "waiting_on_vendor", "note": "Emailed Stone Co", "next_action_date": "2026-10-25"},
            headers=HEADERS,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "waiting_on_vendor"
        assert body["latest_update"] == "Emailed Stone Co"
        assert body["next_action_date"] == "2026-10-25"

        activity = asyncio.run(repository.list_task_activity(utcnow() - timedelta(minutes=5)))
        assert [(a.previous_status, a.new_status) for a in activity] == [("open", "waiting_on_vendor")]

    def test_unknown_status(self, client, repository, project):
        task = asyncio.run(repository.insert_task({"project_id": project.id, "task": "Order tile"}))

        response = client.post(f"/tasks/{task.id}/status", json={"status": "lost"}, headers=HEADERS)

        assert response.status_code == 422

    def test_unknown_task(self, client):
        response = client.post(f"/tasks/{uuid4()}/status", json={"status": "completed"}, headers=HEADERS)

        assert response.status_code == 404

    def test_war_room(self, client, repository, project):
        asyncio.run(repository.insert_task({"project_id": project.id, "task": "Order tile"}))

        response = client.get("/tasks/war-room", headers=HEADERS)

        assert response.status_code == 200
        assert [item["task"] for item in response.json()] == ["Order tile"]


class TestBudgetRoutes:
    @pytest.fixture
    def item(self, repository, project):
        area = asyncio.run(repository.insert_budget_area(project.id, "Cabinets"))
        return asyncio.run(
            repository.insert_line_item(
                {"budget_area_id": area.id, "item_name": "Uppers", "budgeted_amount": 1000, "actual_amount": 0}
            )
        )

    def test_dashboard(self, client, item, project):
        response = client.get("/budget/dashboard", params={"project_id": str(project.id)}, headers=HEADERS)

        assert response.status_code == 200
        body = response.json()
        assert body["total_budgeted"] == 1000
        assert [a["area_name"] for a in body["budget_by_area"]] == ["Cabinets"]
        assert body["budget_by_project"][0]["project_name"] == "Kitchen"

    def test_patch_logs_changed_fields(self, client, repository, item):
        response = client.patch(
            f"/budget/items/{item.id}",
            json={"actual_amount": 1200, "budgeted_amount": 1000},
            headers=HEADERS,
        )

        assert response.status_code == 200
        assert response.json()["actual_amount"] == 1200
        entries = recent_changes(repository)
        assert [(e.record_type, e.field_name) for e in entries] == [("budget_line_item", "actual_amount")]
        assert entries[0].note == "Updated budget line item: Uppers"

    def test_patch_rejects_blank_name(self, client, item):
        response = client.patch(f"/budget/items/{item.id}", json={"item_name": ""}, headers=HEADERS)

        assert response.status_code == 422

    def test_delete_logs_snapshot(self, client, repository, item):
        response = client.delete(f"/budget/items/{item.id}", headers=HEADERS)

        assert response.status_code == 200
        assert asyncio.run(repository.list_line_items()) == []
        entries = recent_changes(repository)
        assert [(e.record_type, e.field_name) for e in entries] == [("budget_line_item", "_deleted")]
        assert '"item_name": "Uppers"' in entries[0].old_value

        assert client.delete(f"/budget/items/{item.id}", headers=HEADERS).status_code == 404

    def test_other_user_cannot_touch_item(self, client, item):
        assert client.patch(f"/budget/items/{item.id}", json={"notes": "x"}, headers=OTHER_HEADERS).status_code == 404
        assert client.delete(f"/budget/items/{item.id}", headers=OTHER_HEADERS).status_code == 404


class TestCallLogRoutes:
    def log_call(self, client, **fields):
        payload = {"contact_name": "Dana", "note": "Asked about tile", "outcome": "waiting_on_them", **fields}
        return client.post("/call-logs", json=payload, headers=HEADERS)

    def test_create_and_list(self, client, project):
        response = self.log_call(client, project_id=str(project.id), contact_type="client", duration_minutes=5)

        assert response.status_code == 201
        assert response.json()["user_id"] == "user-1"

        logs = client.get("/call-logs", headers=HEADERS).json()
        assert [(log["contact_name"], log["project_name"]) for log in logs] == [("Dana", "Kitchen")]

    def test_create_validation(self, client):
        assert self.log_call(client, outcome="maybe").status_code == 422
        assert self.log_call(client, duration_minutes=-1).status_code == 422
        assert self.log_call(client, project_id=str(uuid4())).status_code == 404

    def test_grouped_by_project(self, client, project):
        self.log_call(client, project_id=str(project.id))
        self.log_call(client)

        grouped = client.get("/call-logs/by-project", headers=HEADERS).json()

        assert set(grouped) == {str(project.id), NO_PROJECT}

    def test_follow_up_task_clears_pending(self, client, repository, project):
        log_id = self.log_call(client, project_id=str(project.id)).json()["id"]
        self.log_call(client, project_id=str(project.id), outcome="done")
        task = asyncio.run(repository.insert_task({"project_id": project.id, "task": "Send tile samples"}))

        before = client.get(f"/call-logs/stats/{project.id}", headers=HEADERS).json()
        response = client.post(
            f"/call-logs/{log_id}/follow-up-task", json={"task_id": str(task.id)}, headers=HEADERS
        )
        after = client.get(f"/call-logs/stats/{project.id}", headers=HEADERS).json()

        assert response.status_code == 200
        assert before["total_calls"] == 2
        assert before["pending_follow_ups"] == 1
        assert after["pending_follow_ups"] == 0
        logs = client.get("/call-logs", params={"project_id": str(project.id)}, headers=HEADERS).json()
        assert "Send tile samples" in [log["follow_up_task"] for log in logs]

    def test_follow_up_task_must_exist(self, client):
        log_id = self.log_call(client).json()["id"]

        response = client.post(
            f"/call-logs/{log_id}/follow-up-task", json={"task_id": str(uuid4())}, headers=HEADERS
        )

        assert response.status_code == 404


class TestMessageRoutes:
    def test_render(self, client):
        response = client.post(
            "/messages/render",
            json={
                "subject_template": "Dimensions needed for {{project}}",
                "body_template": "Hi {{poc}}, please confirm {{item}}.",
                "variables": {"project": "Kitchen", "poc": "Dana"},
            },
            headers=HEADERS,
        )

        assert response.status_code == 200
        assert response.json() == {
            "subject": "Dimensions needed for Kitchen",
            "body": "Hi Dana, please confirm {{item}}.",
            "missing": ["item"],
        }

    def test_requires_user(self, client):
        response = client.post("/messages/render", json={"body_template": "x"})

        assert response.status_code == 401
