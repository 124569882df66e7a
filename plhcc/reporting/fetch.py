"""Concurrent loading of the collections behind the exports.

Each repository read opens its own session, so the reads run side by side
under ``asyncio.gather``. Any failure becomes a single ``ExportDataError``.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from plhcc.core.exceptions import ExportDataError
from plhcc.db.repository import Repository
from plhcc.models import ProjectStatus, utcnow
from plhcc.reporting.aggregator import ExportData, ReportInputs, build_export_data
from plhcc.reporting.backup import BackupData
from plhcc.reporting.dashboard import BudgetDashboard, build_budget_dashboard

logger = logging.getLogger(__name__)

REPORTED_PROJECT_STATUSES = (ProjectStatus.ACTIVE.value, ProjectStatus.ON_HOLD.value)


async def load_report_inputs(
    repository: Repository, now: datetime | None = None, window_days: int = 14
) -> ReportInputs:
    now = now or utcnow()
    since = now - timedelta(days=window_days)

    try:
        projects, tasks, quotes, areas, items, changes, activity = await asyncio.gather(
            repository.list_projects(REPORTED_PROJECT_STATUSES),
            repository.war_room(now),
            repository.quote_comparison(),
            repository.list_budget_areas(),
            repository.list_line_items(),
            repository.list_change_log(since),
            repository.list_task_activity(since),
        )
    except SQLAlchemyError as e:
        logger.error("Failed to load export data", exc_info=True)
        raise ExportDataError(str(e)) from e

    return ReportInputs(
        projects=projects,
        tasks=tasks,
        quotes=quotes,
        budget_areas=areas,
        line_items=items,
        change_log=changes,
        task_activity=activity,
    )


async def load_export_data(
    repository: Repository, now: datetime | None = None, window_days: int = 14
) -> ExportData:
    """Fetch everything and aggregate it into report rows."""
    now = now or utcnow()
    inputs = await load_report_inputs(repository, now, window_days)
    return build_export_data(inputs, now, window_days)


async def load_backup_data(repository: Repository, now: datetime | None = None) -> BackupData:
    try:
        projects, tasks, quotes, vendors, areas, items = await asyncio.gather(
            repository.list_projects(),
            repository.list_tasks(),
            repository.quote_comparison(),
            repository.list_vendors(),
            repository.list_budget_areas(),
            repository.list_line_items(),
        )
    except SQLAlchemyError as e:
        logger.error("Failed to load backup data", exc_info=True)
        raise ExportDataError(str(e)) from e

    return BackupData(
        exported_at=now or utcnow(),
        projects=projects,
        tasks=tasks,
        quotes=quotes,
        vendors=vendors,
        budget_areas=areas,
        line_items=items,
    )


async def load_budget_dashboard(repository: Repository, project_id: UUID | None = None) -> BudgetDashboard:
    try:
        projects, quotes, areas, items = await asyncio.gather(
            repository.list_projects(REPORTED_PROJECT_STATUSES),
            repository.quote_comparison(),
            repository.list_budget_areas(),
            repository.list_line_items(),
        )
    except SQLAlchemyError as e:
        logger.error("Failed to load budget dashboard", exc_info=True)
        raise ExportDataError(str(e)) from e

    inputs = ReportInputs(projects=projects, quotes=quotes, budget_areas=areas, line_items=items)
    return build_budget_dashboard(inputs, project_id)
