"""Integration tests for loading export data from the database."""

from __future__ import annotations

from datetime import date, timedelta
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from plhcc.core.exceptions import ExportDataError
from plhcc.models import utcnow
from plhcc.reporting.fetch import load_backup_data, load_budget_dashboard, load_export_data, load_report_inputs


async def seed(repository):
    await repository.seed_trade_categories(["Tile"])
    trade = (await repository.list_trade_categories())[0]
    kitchen = await repository.insert_project({"name": "Kitchen", "client_name": "Smith"})
    await repository.insert_project({"name": "Old Job", "client_name": "Lee", "status": "archived"})
    area = await repository.insert_budget_area(kitchen.id, "Cabinets")
    await repository.insert_line_item(
        {"budget_area_id": area.id, "item_name": "Uppers", "budgeted_amount": 100000, "actual_amount": 120000}
    )
    task = await repository.insert_task(
        {"project_id": kitchen.id, "task": "Order tile", "next_action_date": date(2020, 1, 1)}
    )
    await repository.update_task_status(task.id, "waiting_on_vendor", note="Emailed Stone Co")
    quote = await repository.insert_quote(
        {"project_id": kitchen.id, "trade_category_id": trade.id, "budget_amount": 1000, "quoted_price": 900}
    )
    await repository.update_quote(quote.id, {"status": "quoted"})
    return kitchen


class TestLoadReportInputs:
    @pytest.mark.asyncio
    async def test_collects_reported_projects_only(self, repository):
        await seed(repository)

        inputs = await load_report_inputs(repository, utcnow())

        assert [p.name for p in inputs.projects] == ["Kitchen"]
        assert [t.task for t in inputs.tasks] == ["Order tile"]
        assert inputs.tasks[0].is_overdue
        assert len(inputs.quotes) == 1
        assert len(inputs.line_items) == 1
        assert {c.record_type for c in inputs.change_log} == {"rfi", "quote"}
        assert len(inputs.task_activity) == 1

    @pytest.mark.asyncio
    async def test_window_excludes_old_activity(self, repository):
        await seed(repository)

        inputs = await load_report_inputs(repository, utcnow() + timedelta(days=30), window_days=14)

        assert inputs.change_log == []
        assert inputs.task_activity == []

    @pytest.mark.asyncio
    async def test_read_failure_becomes_export_error(self, repository):
        repository.list_budget_areas = AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("locked")))

        with pytest.raises(ExportDataError, match="Failed to load export data"):
            await load_report_inputs(repository, utcnow())


@pytest.mark.integration
class TestLoadExportData:
    @pytest.mark.asyncio
    async def test_builds_report_rows(self, repository):
        await seed(repository)

        data = await load_export_data(repository, utcnow())

        summary = data.executive_summary[0]
        assert summary.project_name == "Kitchen"
        assert summary.variance == 20000
        assert summary.health == "At Risk"
        assert [d.type for d in data.decisions_needed] == ["Approval"]
        actions = {a.action for a in data.recent_activity}
        assert "Task Status Change" in actions
        assert "Status Updated" in actions


class TestLoadBackupData:
    @pytest.mark.asyncio
    async def test_includes_every_project(self, repository):
        await seed(repository)

        backup = await load_backup_data(repository)

        assert sorted(p.name for p in backup.projects) == ["Kitchen", "Old Job"]
        assert len(backup.tasks) == 1
        assert backup.quotes[0].trade_name == "Tile"
        assert backup.budget_areas[0].area_name == "Cabinets"


class TestLoadBudgetDashboard:
    @pytest.mark.asyncio
    async def test_rolls_up_reported_projects(self, repository):
        kitchen = await seed(repository)

        dashboard = await load_budget_dashboard(repository, kitchen.id)

        assert dashboard.total_budgeted == 100000
        assert dashboard.total_committed == 120000
        assert [t.trade_name for t in dashboard.quotes_by_trade] == ["Tile"]
        assert dashboard.percent_quoted == 100
        assert [p.name for p in dashboard.projects] == ["Kitchen"]

    @pytest.mark.asyncio
    async def test_read_failure_becomes_export_error(self, repository):
        repository.quote_comparison = AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("locked")))

        with pytest.raises(ExportDataError):
            await load_budget_dashboard(repository)
