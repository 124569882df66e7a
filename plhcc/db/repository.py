"""Data access for one user's records.

``Repository`` wraps an async session factory and scopes every query by
``user_id``. Read methods return pydantic domain models; the two read views
(war room, quote comparison) derive their figures here so nothing derived is
ever stored.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import date, datetime, timedelta
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from plhcc.core.change_log import FieldChange, change_entries, detect_changes
from plhcc.core.exceptions import NotAuthenticatedError
from plhcc.db.models import (
    BudgetAreaModel,
    BudgetLineItemModel,
    CallLogModel,
    ChangeLogModel,
    ProjectModel,
    QuoteModel,
    TaskActivityModel,
    TaskModel,
    TradeCategoryModel,
    VendorModel,
    VendorTradeModel,
)
from plhcc.models import (
    FOLLOW_UP_STATUSES,
    TRADE_CATEGORIES,
    BudgetArea,
    BudgetLineItem,
    CallLog,
    CallLogView,
    CallOutcome,
    CallStats,
    ChangeLogEntry,
    Project,
    Quote,
    QuoteComparison,
    Task,
    TaskActivity,
    TaskStatus,
    TradeCategory,
    Vendor,
    WarRoomItem,
    as_utc,
    utcnow,
)

logger = logging.getLogger(__name__)

# Fields on a quote that are diffed into the change log on update
QUOTE_TRACKED_FIELDS = ("vendor_id", "trade_category_id", "budget_amount", "quoted_price", "status", "notes")
LINE_ITEM_TRACKED_FIELDS = ("item_name", "budgeted_amount", "actual_amount", "notes")

NO_PROJECT = "no-project"


def days_since_contact(last_contacted_at: datetime | None, now: datetime) -> int | None:
    if last_contacted_at is None:
        return None
    return (now - as_utc(last_contacted_at)).days


def is_task_overdue(task: Task, now: datetime) -> bool:
    """Past its next action date, or silent longer than its follow-up cadence."""
    if task.next_action_date is not None and task.next_action_date < now.date():
        return True
    if (
        task.last_contacted_at is not None
        and task.status in FOLLOW_UP_STATUSES
        and as_utc(task.last_contacted_at) + timedelta(days=task.follow_up_days) < now
    ):
        return True
    return False


def to_war_room_item(task: Task, project_name: str, now: datetime) -> WarRoomItem:
    return WarRoomItem(
        **task.model_dump(),
        project_name=project_name,
        days_since_contact=days_since_contact(task.last_contacted_at, now),
        is_overdue=is_task_overdue(task, now),
    )


def quote_variance(budget_amount: float | None, quoted_price: float | None) -> tuple[float | None, float | None]:
    """Return ``(variance, variance_percent)``; percent is rounded to one decimal."""
    if budget_amount is None or quoted_price is None:
        return None, None
    variance = quoted_price - budget_amount
    if budget_amount > 0:
        return variance, round(variance / budget_amount * 100, 1)
    return variance, None


def group_call_logs_by_project(logs: Iterable[CallLogView]) -> dict[str, list[CallLogView]]:
    """Group by project id; calls with no project go under ``"no-project"``."""
    grouped: dict[str, list[CallLogView]] = {}
    for log in logs:
        key = str(log.project_id) if log.project_id is not None else NO_PROJECT
        grouped.setdefault(key, []).append(log)
    return grouped


def call_stats(logs: list[CallLogView]) -> CallStats:
    """Summarize ``logs`` (newest first). A call is pending until done or linked to a task."""
    pending = sum(
        1 for log in logs if log.outcome != CallOutcome.DONE.value and log.follow_up_task_id is None
    )
    return CallStats(
        total_calls=len(logs),
        pending_follow_ups=pending,
        last_call_at=logs[0].created_at if logs else None,
    )


class Repository:
    """Async store for a single user."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], user_id: str | None):
        if not user_id:
            raise NotAuthenticatedError()
        self.session_factory = session_factory
        self.user_id = user_id

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_projects(self, statuses: Iterable[str] | None = None) -> list[Project]:
        query = select(ProjectModel).where(ProjectModel.user_id == self.user_id)
        if statuses is not None:
            query = query.where(ProjectModel.status.in_(list(statuses)))
        query = query.order_by(ProjectModel.name)

        async with self.session_factory() as session:
            result = await session.execute(query)
            return [Project.model_validate(row) for row in result.scalars().all()]

    async def get_project(self, project_id: UUID) -> Project | None:
        async with self.session_factory() as session:
            result = await session.execute(
                select(ProjectModel).where(ProjectModel.id == project_id, ProjectModel.user_id == self.user_id)
            )
            project = result.scalar_one_or_none()
            return Project.model_validate(project) if project is not None else None

    async def project_ids_by_name(self) -> dict[str, UUID]:
        """Lowercased project name -> id. Later duplicates win."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(ProjectModel.id, ProjectModel.name).where(ProjectModel.user_id == self.user_id)
            )
            return {name.lower(): project_id for project_id, name in result.all()}

    async def budget_area_ids_by_key(self) -> dict[str, UUID]:
        """``"<project_id>:<area name lowercased>"`` -> area id."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(BudgetAreaModel.id, BudgetAreaModel.project_id, BudgetAreaModel.area_name)
                .join(ProjectModel, BudgetAreaModel.project_id == ProjectModel.id)
                .where(ProjectModel.user_id == self.user_id)
            )
            return {
                f"{project_id}:{area_name.lower()}": area_id
                for area_id, project_id, area_name in result.all()
            }

    async def list_trade_categories(self) -> list[TradeCategory]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(TradeCategoryModel).order_by(TradeCategoryModel.sort_order, TradeCategoryModel.name)
            )
            return [TradeCategory.model_validate(row) for row in result.scalars().all()]

    async def list_tasks(self) -> list[Task]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(TaskModel)
                .where(TaskModel.user_id == self.user_id)
                .order_by(TaskModel.created_at)
            )
            return [Task.model_validate(row) for row in result.scalars().all()]

    async def war_room(self, now: datetime | None = None) -> list[WarRoomItem]:
        """Incomplete, non-dead tasks on active projects, ordered by priority."""
        now = now or utcnow()
        async with self.session_factory() as session:
            result = await session.execute(
                select(TaskModel, ProjectModel.name)
                .join(ProjectModel, TaskModel.project_id == ProjectModel.id)
                .where(
                    TaskModel.user_id == self.user_id,
                    TaskModel.is_complete.is_(False),
                    TaskModel.status != TaskStatus.DEAD.value,
                    ProjectModel.status == "active",
                )
                .order_by(TaskModel.priority, TaskModel.created_at)
            )
            return [
                to_war_room_item(Task.model_validate(task), project_name, now)
                for task, project_name in result.all()
            ]

    async def list_quotes(self) -> list[Quote]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(QuoteModel)
                .where(QuoteModel.user_id == self.user_id)
                .order_by(QuoteModel.created_at)
            )
            return [Quote.model_validate(row) for row in result.scalars().all()]

    async def quote_comparison(self) -> list[QuoteComparison]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(
                    QuoteModel,
                    ProjectModel.name,
                    TradeCategoryModel.name,
                    VendorModel.company_name,
                    VendorModel.poc_name,
                )
                .join(ProjectModel, QuoteModel.project_id == ProjectModel.id)
                .outerjoin(TradeCategoryModel, QuoteModel.trade_category_id == TradeCategoryModel.id)
                .outerjoin(VendorModel, QuoteModel.vendor_id == VendorModel.id)
                .where(QuoteModel.user_id == self.user_id)
                .order_by(ProjectModel.name)
            )

            rows = []
            for quote, project_name, trade_name, vendor_name, vendor_poc in result.all():
                variance, variance_percent = quote_variance(quote.budget_amount, quote.quoted_price)
                rows.append(
                    QuoteComparison(
                        **Quote.model_validate(quote).model_dump(),
                        project_name=project_name,
                        trade_name=trade_name,
                        vendor_name=vendor_name,
                        vendor_poc=vendor_poc,
                        budget_variance=variance,
                        budget_variance_percent=variance_percent,
                    )
                )
            return rows

    async def list_budget_areas(self) -> list[BudgetArea]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(BudgetAreaModel)
                .join(ProjectModel, BudgetAreaModel.project_id == ProjectModel.id)
                .where(ProjectModel.user_id == self.user_id)
                .order_by(BudgetAreaModel.sort_order)
            )
            return [BudgetArea.model_validate(row) for row in result.scalars().all()]

    async def list_line_items(self) -> list[BudgetLineItem]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(BudgetLineItemModel)
                .join(BudgetAreaModel, BudgetLineItemModel.budget_area_id == BudgetAreaModel.id)
                .join(ProjectModel, BudgetAreaModel.project_id == ProjectModel.id)
                .where(ProjectModel.user_id == self.user_id)
                .order_by(BudgetLineItemModel.sort_order)
            )
            return [BudgetLineItem.model_validate(row) for row in result.scalars().all()]

    async def list_vendors(self) -> list[Vendor]:
        """Vendors with their trade names attached."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(VendorModel)
                .where(VendorModel.user_id == self.user_id)
                .order_by(VendorModel.company_name)
            )
            vendors = result.scalars().all()

            trades_result = await session.execute(
                select(VendorTradeModel.vendor_id, TradeCategoryModel.name)
                .join(TradeCategoryModel, VendorTradeModel.trade_category_id == TradeCategoryModel.id)
                .join(VendorModel, VendorTradeModel.vendor_id == VendorModel.id)
                .where(VendorModel.user_id == self.user_id)
                .order_by(TradeCategoryModel.sort_order, TradeCategoryModel.name)
            )
            trades: dict[UUID, list[str]] = {}
            for vendor_id, trade_name in trades_result.all():
                trades.setdefault(vendor_id, []).append(trade_name)

            return [
                Vendor(**Vendor.model_validate(vendor).model_dump(exclude={"trades"}), trades=trades.get(vendor.id, []))
                for vendor in vendors
            ]

    async def vendor_trade_ids(self, vendor_id: UUID) -> list[UUID]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(VendorTradeModel.trade_category_id).where(VendorTradeModel.vendor_id == vendor_id)
            )
            return list(result.scalars().all())

    async def list_change_log(self, since: datetime) -> list[ChangeLogEntry]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(ChangeLogModel)
                .where(ChangeLogModel.changed_by == self.user_id, ChangeLogModel.created_at >= since)
                .order_by(ChangeLogModel.created_at.desc())
            )
            return [ChangeLogEntry.model_validate(row) for row in result.scalars().all()]

    async def list_task_activity(self, since: datetime) -> list[TaskActivity]:
        """Status transitions with their task's name and project attached."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(TaskActivityModel, TaskModel.project_id, TaskModel.task)
                .join(TaskModel, TaskActivityModel.task_id == TaskModel.id)
                .where(TaskModel.user_id == self.user_id, TaskActivityModel.created_at >= since)
                .order_by(TaskActivityModel.created_at.desc())
            )
            return [
                TaskActivity(
                    id=activity.id,
                    task_id=activity.task_id,
                    project_id=project_id,
                    task_name=task_name,
                    previous_status=activity.previous_status,
                    new_status=activity.new_status,
                    note=activity.note,
                    created_at=activity.created_at,
                )
                for activity, project_id, task_name in result.all()
            ]

    async def list_call_logs(self, project_id: UUID | None = None, limit: int | None = None) -> list[CallLogView]:
        """Newest first, with project and follow-up task names attached."""
        query = (
            select(CallLogModel, ProjectModel.name, TaskModel.task)
            .outerjoin(ProjectModel, CallLogModel.project_id == ProjectModel.id)
            .outerjoin(TaskModel, CallLogModel.follow_up_task_id == TaskModel.id)
            .where(CallLogModel.user_id == self.user_id)
            .order_by(CallLogModel.created_at.desc())
        )
        if project_id is not None:
            query = query.where(CallLogModel.project_id == project_id)
        if limit is not None:
            query = query.limit(limit)

        async with self.session_factory() as session:
            result = await session.execute(query)
            return [
                CallLogView(
                    **CallLog.model_validate(log).model_dump(),
                    project_name=project_name,
                    follow_up_task=task_name,
                )
                for log, project_name, task_name in result.all()
            ]

    async def project_call_stats(self, project_id: UUID) -> CallStats:
        return call_stats(await self.list_call_logs(project_id=project_id))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def _insert(self, record: Any) -> Any:
        async with self.session_factory() as session:
            session.add(record)
            await session.commit()
            return record

    async def insert_project(self, data: Mapping[str, Any]) -> Project:
        record = await self._insert(ProjectModel(user_id=self.user_id, **data))
        return Project.model_validate(record)

    async def insert_task(self, data: Mapping[str, Any]) -> Task:
        record = await self._insert(TaskModel(user_id=self.user_id, **data))
        return Task.model_validate(record)

    async def insert_quote(self, data: Mapping[str, Any]) -> Quote:
        record = await self._insert(QuoteModel(user_id=self.user_id, **data))
        return Quote.model_validate(record)

    async def insert_budget_area(self, project_id: UUID, area_name: str, sort_order: int = 0) -> BudgetArea:
        record = await self._insert(
            BudgetAreaModel(project_id=project_id, area_name=area_name, sort_order=sort_order)
        )
        return BudgetArea.model_validate(record)

    async def insert_line_item(self, data: Mapping[str, Any]) -> BudgetLineItem:
        record = await self._insert(BudgetLineItemModel(**data))
        return BudgetLineItem.model_validate(record)

    async def insert_vendor(self, data: Mapping[str, Any]) -> Vendor:
        record = await self._insert(VendorModel(user_id=self.user_id, **data))
        return Vendor.model_validate(record)

    async def insert_vendor_trades(self, vendor_id: UUID, trade_ids: Iterable[UUID]) -> int:
        """Link ``vendor_id`` to each trade once; returns the number of links."""
        unique_ids = list(dict.fromkeys(trade_ids))
        if not unique_ids:
            return 0

        async with self.session_factory() as session:
            session.add_all(
                VendorTradeModel(vendor_id=vendor_id, trade_category_id=trade_id) for trade_id in unique_ids
            )
            await session.commit()
        return len(unique_ids)

    async def seed_trade_categories(self, names: Iterable[str] = TRADE_CATEGORIES) -> int:
        """Insert missing trade categories; returns how many were added."""
        async with self.session_factory() as session:
            result = await session.execute(select(TradeCategoryModel.name))
            existing = {name.lower() for name in result.scalars().all()}

            added = 0
            for sort_order, name in enumerate(names, start=1):
                if name.lower() in existing:
                    continue
                session.add(TradeCategoryModel(name=name, sort_order=sort_order))
                existing.add(name.lower())
                added += 1

            await session.commit()

        logger.info("Seeded trade categories", extra={"added": added})
        return added

    async def update_quote(
        self, quote_id: UUID, updates: Mapping[str, Any], note: str | None = None
    ) -> Quote | None:
        """Apply ``updates`` and log each changed field in the same transaction."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(QuoteModel).where(QuoteModel.id == quote_id, QuoteModel.user_id == self.user_id)
            )
            quote = result.scalar_one_or_none()
            if quote is None:
                return None

            # Diff against the validated view so amounts compare as floats
            current = Quote.model_validate(quote).model_dump()
            changes = detect_changes(current, updates, QUOTE_TRACKED_FIELDS)
            for change in changes:
                setattr(quote, change.field, change.new_value)

            session.add_all(change_entries("quote", quote.id, self.user_id, changes, note))
            await session.commit()
            return Quote.model_validate(quote)

    async def update_task_status(
        self,
        task_id: UUID,
        new_status: str,
        note: str | None = None,
        next_action_date: date | None = None,
        source: str = "quick_entry",
    ) -> Task | None:
        """Move a task to ``new_status`` and append the transition to the activity log."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(TaskModel).where(TaskModel.id == task_id, TaskModel.user_id == self.user_id)
            )
            task = result.scalar_one_or_none()
            if task is None:
                return None

            previous_status = task.status
            task.status = new_status
            task.latest_update = note
            task.last_contacted_at = utcnow()
            task.is_complete = new_status == TaskStatus.COMPLETED.value
            if next_action_date is not None:
                task.next_action_date = next_action_date

            session.add(
                TaskActivityModel(
                    task_id=task.id,
                    previous_status=previous_status,
                    new_status=new_status,
                    note=note,
                    source=source,
                )
            )
            changes = detect_changes({"status": previous_status}, {"status": new_status})
            session.add_all(change_entries("rfi", task.id, self.user_id, changes, note))
            await session.commit()
            return Task.model_validate(task)

    def _owned_line_item(self, item_id: UUID):
        return (
            select(BudgetLineItemModel)
            .join(BudgetAreaModel, BudgetLineItemModel.budget_area_id == BudgetAreaModel.id)
            .join(ProjectModel, BudgetAreaModel.project_id == ProjectModel.id)
            .where(BudgetLineItemModel.id == item_id, ProjectModel.user_id == self.user_id)
        )

    async def update_line_item(
        self, item_id: UUID, updates: Mapping[str, Any]
    ) -> tuple[BudgetLineItem, list[FieldChange]] | None:
        """Apply ``updates``; returns the item and the fields that actually changed."""
        async with self.session_factory() as session:
            item = (await session.execute(self._owned_line_item(item_id))).scalar_one_or_none()
            if item is None:
                return None

            current = BudgetLineItem.model_validate(item).model_dump()
            changes = detect_changes(current, updates, LINE_ITEM_TRACKED_FIELDS)
            for change in changes:
                setattr(item, change.field, change.new_value)

            await session.commit()
            return BudgetLineItem.model_validate(item), changes

    async def delete_line_item(self, item_id: UUID) -> BudgetLineItem | None:
        """Delete and return the item as it was."""
        async with self.session_factory() as session:
            item = (await session.execute(self._owned_line_item(item_id))).scalar_one_or_none()
            if item is None:
                return None

            snapshot = BudgetLineItem.model_validate(item)
            await session.delete(item)
            await session.commit()
            return snapshot

    async def insert_call_log(self, data: Mapping[str, Any]) -> CallLog:
        record = await self._insert(CallLogModel(user_id=self.user_id, **data))
        return CallLog.model_validate(record)

    async def link_call_log_task(self, call_log_id: UUID, task_id: UUID) -> CallLog | None:
        """Attach the follow-up task created from a call; ``None`` if either is not the user's."""
        async with self.session_factory() as session:
            task = await session.execute(
                select(TaskModel.id).where(TaskModel.id == task_id, TaskModel.user_id == self.user_id)
            )
            if task.scalar_one_or_none() is None:
                return None

            result = await session.execute(
                select(CallLogModel).where(CallLogModel.id == call_log_id, CallLogModel.user_id == self.user_id)
            )
            log = result.scalar_one_or_none()
            if log is None:
                return None

            log.follow_up_task_id = task_id
            await session.commit()
            return CallLog.model_validate(log)
