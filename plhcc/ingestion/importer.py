"""Batch importer for validated CSV rows.

Rows are written one at a time, in order. A failing row is recorded and the
run moves on; nothing already written is rolled back.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from plhcc.config import get_config
from plhcc.core.change_log import ChangeLogger
from plhcc.core.exceptions import PLHError, ReferenceNotFoundError
from plhcc.core.state import ImportFinished, ImportProgressed, ImportStarted, Store
from plhcc.db.repository import Repository
from plhcc.ingestion.fields import ImportType
from plhcc.ingestion.validation import (
    RowError,
    ValidatedBudgetItemRow,
    ValidatedProjectRow,
    ValidatedRow,
    ValidatedTaskRow,
    ValidatedVendorRow,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


class ImportStatus(str, Enum):
    """Status of an import run."""

    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    PARTIAL_SUCCESS = "PARTIAL_SUCCESS"
    SKIPPED = "SKIPPED"


@dataclass
class ImportResult:
    """Outcome of one import run."""

    success: int = 0
    failed: int = 0
    errors: list[RowError] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def total(self) -> int:
        return self.success + self.failed

    @property
    def status(self) -> ImportStatus:
        if self.total == 0:
            return ImportStatus.SKIPPED
        if self.failed == 0:
            return ImportStatus.SUCCESS
        if self.success == 0:
            return ImportStatus.FAILED
        return ImportStatus.PARTIAL_SUCCESS


def progress_percent(processed: int, total: int) -> int:
    return round(processed / total * 100) if total else 100


class BatchImporter:
    """Writes validated rows for one user.

    Lookups (project names, budget areas, trades) are loaded once per run.
    Budget areas created during the run are cached so later rows naming the
    same area reuse it.
    """

    def __init__(
        self,
        repository: Repository,
        change_log: ChangeLogger,
        store: Store | None = None,
        on_progress: ProgressCallback | None = None,
    ):
        self.repository = repository
        self.change_log = change_log
        self.store = store
        self.on_progress = on_progress
        self.settings = get_config().imports

        self._project_ids: dict[str, Any] = {}
        self._area_ids: dict[str, Any] = {}
        self._trade_ids: dict[str, Any] = {}

    @property
    def user_id(self) -> str:
        return self.repository.user_id

    async def run(self, rows: list[ValidatedRow], import_type: ImportType | str) -> ImportResult:
        """Import ``rows``; never raises for a row-level failure."""
        import_type = ImportType(import_type)
        start_time = time.time()
        result = ImportResult()

        self._dispatch(ImportStarted(import_type.value))
        logger.info("Starting import", extra={"import_type": import_type.value, "rows": len(rows)})

        try:
            await self._prepare(import_type)
            write_row = self._writer(import_type)

            for index, row in enumerate(rows):
                try:
                    await write_row(row)
                    result.success += 1
                except (PLHError, SQLAlchemyError, ValueError) as e:
                    result.failed += 1
                    result.errors.append(RowError(row=index + 1, field="general", message=str(e)))
                    logger.warning(
                        "Import row failed",
                        extra={"import_type": import_type.value, "row": index + 1, "error": str(e)},
                    )
                self._report_progress(progress_percent(index + 1, len(rows)))
        finally:
            result.duration_seconds = time.time() - start_time
            self._dispatch(ImportFinished())

        logger.info(
            "Import finished",
            extra={
                "import_type": import_type.value,
                "success": result.success,
                "failed": result.failed,
                "status": result.status.value,
            },
        )
        return result

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _dispatch(self, action) -> None:
        if self.store is not None:
            self.store.dispatch(action)

    def _report_progress(self, percent: int) -> None:
        self._dispatch(ImportProgressed(percent))
        if self.on_progress is not None:
            self.on_progress(percent)

    async def _prepare(self, import_type: ImportType) -> None:
        if import_type in (ImportType.TASKS, ImportType.BUDGET_ITEMS):
            self._project_ids = await self.repository.project_ids_by_name()
        if import_type == ImportType.BUDGET_ITEMS:
            self._area_ids = await self.repository.budget_area_ids_by_key()
        if import_type == ImportType.VENDORS:
            trades = await self.repository.list_trade_categories()
            self._trade_ids = {trade.name.lower(): trade.id for trade in trades}

    def _writer(self, import_type: ImportType):
        return {
            ImportType.PROJECTS: self._import_project,
            ImportType.TASKS: self._import_task,
            ImportType.BUDGET_ITEMS: self._import_budget_item,
            ImportType.VENDORS: self._import_vendor,
        }[import_type]

    def _project_id(self, project_name: str):
        project_id = self._project_ids.get(project_name.lower())
        if project_id is None:
            raise ReferenceNotFoundError("Project", project_name)
        return project_id

    # ------------------------------------------------------------------
    # Per-type writers
    # ------------------------------------------------------------------

    async def _import_project(self, row: ValidatedProjectRow) -> None:
        project = await self.repository.insert_project(
            {
                "name": row.name,
                "client_name": row.client_name,
                "address": row.address,
                "client_email": row.client_email,
                "client_phone": row.client_phone,
                "total_budget": row.total_budget,
                "status": "active",
            }
        )
        await self.change_log.log_creation(
            "project",
            project.id,
            self.user_id,
            {"name": row.name, "client_name": row.client_name},
            note=f"Imported project: {row.name}",
        )

    async def _import_task(self, row: ValidatedTaskRow) -> None:
        project_id = self._project_id(row.project_name)
        await self.repository.insert_task(
            {
                "project_id": project_id,
                "task": row.task,
                "status": row.status,
                "priority": row.priority,
                "poc_name": row.poc_name,
                "poc_type": row.poc_type,
                "is_blocking": row.is_blocking,
                "is_complete": row.is_complete,
                "follow_up_days": self.settings.task_follow_up_days,
            }
        )

    async def _import_budget_item(self, row: ValidatedBudgetItemRow) -> None:
        project_id = self._project_id(row.project_name)

        area_key = f"{project_id}:{row.area_name.lower()}"
        area_id = self._area_ids.get(area_key)
        if area_id is None:
            area = await self.repository.insert_budget_area(
                project_id, row.area_name, sort_order=self.settings.appended_sort_order
            )
            area_id = area.id
            self._area_ids[area_key] = area_id

        await self.repository.insert_line_item(
            {
                "budget_area_id": area_id,
                "item_name": row.item_name,
                "budgeted_amount": row.budgeted_amount,
                "actual_amount": row.actual_amount,
                "sort_order": self.settings.appended_sort_order,
            }
        )

    async def _import_vendor(self, row: ValidatedVendorRow) -> None:
        vendor = await self.repository.insert_vendor(
            {
                "company_name": row.company_name,
                "poc_name": row.poc_name,
                "phone": row.phone,
                "email": row.email,
                "quality_rating": "unknown",
                "communication_rating": "unknown",
                "status": "active",
            }
        )

        trade_ids = [
            self._trade_ids[name.lower()] for name in row.trade_names if name.lower() in self._trade_ids
        ]
        await self.repository.insert_vendor_trades(vendor.id, trade_ids)

        await self.change_log.log_creation(
            "vendor",
            vendor.id,
            self.user_id,
            {"company_name": row.company_name},
            note=f"Imported vendor: {row.company_name}",
        )
