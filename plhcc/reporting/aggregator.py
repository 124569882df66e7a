"""Executive report aggregation.

Pure functions over in-memory collections: given the same ``ReportInputs`` and
``now`` they always produce the same rows. Nothing here touches the database.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from uuid import UUID

from plhcc.models import (
    APPROVED_QUOTE_STATUSES,
    CLOSED_TASK_STATUSES,
    BudgetArea,
    BudgetLineItem,
    ChangeLogEntry,
    Project,
    QuoteComparison,
    TaskActivity,
    WarRoomItem,
    as_utc,
    utcnow,
)
from plhcc.reporting.labels import (
    TASK_STATUS_CHANGE,
    change_action_label,
    quote_status_label,
    task_status_label,
)

HEALTH_ON_TRACK = "On Track"
HEALTH_AT_RISK = "At Risk"
HEALTH_BLOCKED = "Blocked"

AT_RISK_OVERDUE_THRESHOLD = 2
AT_RISK_VARIANCE_PERCENT = 10

PRIORITY_ORDER = {"P1": 0, "P2": 1, "P3": 2}

UNKNOWN_PROJECT = "Unknown Project"
SEE_DETAIL = "See Detail"


@dataclass
class ReportInputs:
    """Collections the report is derived from."""

    projects: list[Project] = field(default_factory=list)
    tasks: list[WarRoomItem] = field(default_factory=list)
    quotes: list[QuoteComparison] = field(default_factory=list)
    budget_areas: list[BudgetArea] = field(default_factory=list)
    line_items: list[BudgetLineItem] = field(default_factory=list)
    change_log: list[ChangeLogEntry] = field(default_factory=list)
    task_activity: list[TaskActivity] = field(default_factory=list)


@dataclass
class ProjectHealth:
    project_id: UUID
    project_name: str
    client_name: str
    status: str
    health: str
    total_budgeted: float
    total_actual: float
    variance: float
    variance_percent: float | None
    open_tasks: int
    overdue_items: int
    blocking_items: int
    decisions_needed: int


@dataclass
class BudgetDetailRow:
    project_name: str
    area_name: str
    item_name: str
    budgeted: float
    actual: float
    variance: float
    variance_percent: float | None
    is_area_subtotal: bool = False
    is_project_total: bool = False


@dataclass
class OpenTaskRow:
    project_name: str
    task: str
    priority: str
    status: str
    poc_name: str
    days_since_contact: int | None
    follow_up_date: date | None
    is_blocking: bool
    latest_update: str


@dataclass
class QuoteRow:
    project_name: str
    trade_name: str
    vendor_name: str
    budget_allowance: float | None
    quoted_price: float | None
    variance: float | None
    variance_percent: float | None
    status: str
    is_approved: bool


@dataclass
class ActivityRow:
    timestamp: datetime
    project_name: str
    action: str
    detail: str

    @property
    def date(self) -> str:
        return f"{self.timestamp.month}/{self.timestamp.day}/{self.timestamp.year}"

    @property
    def time(self) -> str:
        return self.timestamp.strftime("%I:%M %p")


@dataclass
class DecisionRow:
    project_name: str
    item: str
    type: str
    detail: str
    amount: float | None
    days_waiting: int


@dataclass
class ExportData:
    generated_at: datetime
    executive_summary: list[ProjectHealth]
    budget_detail: list[BudgetDetailRow]
    open_tasks: list[OpenTaskRow]
    quote_comparison: list[QuoteRow]
    recent_activity: list[ActivityRow]
    decisions_needed: list[DecisionRow]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def variance_percent(variance: float, budgeted: float) -> float | None:
    return variance / budgeted * 100 if budgeted > 0 else None


def classify_health(blocking_items: int, overdue_items: int, percent: float | None) -> str:
    """Blocked beats At Risk beats On Track."""
    if blocking_items > 0:
        return HEALTH_BLOCKED
    if overdue_items > AT_RISK_OVERDUE_THRESHOLD or (percent is not None and percent > AT_RISK_VARIANCE_PERCENT):
        return HEALTH_AT_RISK
    return HEALTH_ON_TRACK


def is_open(status: str) -> bool:
    return status not in CLOSED_TASK_STATUSES


def needs_decision(quote: QuoteComparison) -> bool:
    return quote.status == "quoted" or (quote.budget_variance is not None and quote.budget_variance > 0)


def days_between(start: datetime, now: datetime) -> int:
    return (now - as_utc(start)).days


def _areas_by_project(inputs: ReportInputs) -> dict[UUID, list[BudgetArea]]:
    grouped: dict[UUID, list[BudgetArea]] = defaultdict(list)
    for area in inputs.budget_areas:
        grouped[area.project_id].append(area)
    return grouped


def _items_by_area(inputs: ReportInputs) -> dict[UUID, list[BudgetLineItem]]:
    grouped: dict[UUID, list[BudgetLineItem]] = defaultdict(list)
    for item in inputs.line_items:
        grouped[item.budget_area_id].append(item)
    return grouped


# ---------------------------------------------------------------------------
# Sheets
# ---------------------------------------------------------------------------


def build_executive_summary(inputs: ReportInputs) -> list[ProjectHealth]:
    areas_by_project = _areas_by_project(inputs)
    items_by_area = _items_by_area(inputs)

    summary = []
    for project in inputs.projects:
        tasks = [t for t in inputs.tasks if t.project_id == project.id]
        quotes = [q for q in inputs.quotes if q.project_id == project.id]

        total_budgeted = 0.0
        total_actual = 0.0
        for area in areas_by_project.get(project.id, []):
            for item in items_by_area.get(area.id, []):
                total_budgeted += item.budgeted_amount or 0
                total_actual += item.actual_amount or 0

        variance = total_actual - total_budgeted
        percent = variance_percent(variance, total_budgeted)

        overdue = sum(1 for t in tasks if t.is_overdue)
        blocking = sum(1 for t in tasks if t.is_blocking)

        summary.append(
            ProjectHealth(
                project_id=project.id,
                project_name=project.name,
                client_name=project.client_name or "",
                status=project.status,
                health=classify_health(blocking, overdue, percent),
                total_budgeted=total_budgeted,
                total_actual=total_actual,
                variance=variance,
                variance_percent=percent,
                open_tasks=sum(1 for t in tasks if is_open(t.status)),
                overdue_items=overdue,
                blocking_items=blocking,
                decisions_needed=sum(1 for q in quotes if needs_decision(q)),
            )
        )

    return summary


def build_budget_detail(inputs: ReportInputs) -> list[BudgetDetailRow]:
    """Line items, an area subtotal after each non-empty area, a project total last."""
    areas_by_project = _areas_by_project(inputs)
    items_by_area = _items_by_area(inputs)

    rows: list[BudgetDetailRow] = []
    for project in inputs.projects:
        areas = areas_by_project.get(project.id, [])
        project_budgeted = 0.0
        project_actual = 0.0

        for area in areas:
            items = items_by_area.get(area.id, [])
            area_budgeted = 0.0
            area_actual = 0.0

            for item in items:
                budgeted = item.budgeted_amount or 0
                actual = item.actual_amount or 0
                rows.append(
                    BudgetDetailRow(
                        project_name=project.name,
                        area_name=area.area_name,
                        item_name=item.item_name,
                        budgeted=budgeted,
                        actual=actual,
                        variance=actual - budgeted,
                        variance_percent=variance_percent(actual - budgeted, budgeted),
                    )
                )
                area_budgeted += budgeted
                area_actual += actual

            if items:
                rows.append(
                    BudgetDetailRow(
                        project_name=project.name,
                        area_name=area.area_name,
                        item_name=f"{area.area_name} Subtotal",
                        budgeted=area_budgeted,
                        actual=area_actual,
                        variance=area_actual - area_budgeted,
                        variance_percent=variance_percent(area_actual - area_budgeted, area_budgeted),
                        is_area_subtotal=True,
                    )
                )

            project_budgeted += area_budgeted
            project_actual += area_actual

        if areas:
            rows.append(
                BudgetDetailRow(
                    project_name=project.name,
                    area_name="",
                    item_name=f"{project.name} TOTAL",
                    budgeted=project_budgeted,
                    actual=project_actual,
                    variance=project_actual - project_budgeted,
                    variance_percent=variance_percent(project_actual - project_budgeted, project_budgeted),
                    is_project_total=True,
                )
            )

    return rows


def build_open_tasks(inputs: ReportInputs) -> list[OpenTaskRow]:
    """Open tasks, most urgent priority first, then longest silence first."""
    tasks = [t for t in inputs.tasks if is_open(t.status)]
    tasks.sort(key=lambda t: (PRIORITY_ORDER.get(t.priority, 2), -(t.days_since_contact or 0)))

    return [
        OpenTaskRow(
            project_name=t.project_name,
            task=t.task,
            priority=t.priority,
            status=task_status_label(t.status),
            poc_name=t.poc_name or "",
            days_since_contact=t.days_since_contact,
            follow_up_date=t.next_action_date,
            is_blocking=t.is_blocking,
            latest_update=t.latest_update or "",
        )
        for t in tasks
    ]


def build_quote_comparison(inputs: ReportInputs) -> list[QuoteRow]:
    quotes = sorted(inputs.quotes, key=lambda q: (q.project_name, q.trade_name or ""))

    rows = []
    for quote in quotes:
        variance = None
        percent = None
        if quote.budget_amount is not None and quote.quoted_price is not None:
            variance = quote.quoted_price - quote.budget_amount
            percent = variance_percent(variance, quote.budget_amount)

        rows.append(
            QuoteRow(
                project_name=quote.project_name,
                trade_name=quote.trade_name or "",
                vendor_name=quote.vendor_name or "",
                budget_allowance=quote.budget_amount,
                quoted_price=quote.quoted_price,
                variance=variance,
                variance_percent=percent,
                status=quote_status_label(quote.status),
                is_approved=quote.status in APPROVED_QUOTE_STATUSES,
            )
        )
    return rows


def _record_project_names(inputs: ReportInputs) -> dict[UUID, str]:
    """Map any record id the inputs know about to its project's name."""
    project_names = {p.id: p.name for p in inputs.projects}
    names: dict[UUID, str] = dict(project_names)

    for task in inputs.tasks:
        names[task.id] = task.project_name
    for quote in inputs.quotes:
        names[quote.id] = quote.project_name
    for area in inputs.budget_areas:
        if area.project_id in project_names:
            names[area.id] = project_names[area.project_id]
    area_projects = {area.id: area.project_id for area in inputs.budget_areas}
    for item in inputs.line_items:
        project_id = area_projects.get(item.budget_area_id)
        if project_id in project_names:
            names[item.id] = project_names[project_id]
    return names


def build_recent_activity(
    inputs: ReportInputs, now: datetime | None = None, window_days: int = 14
) -> list[ActivityRow]:
    """Change-log and task status entries from the last ``window_days``, newest first."""
    now = now or utcnow()
    since = now - timedelta(days=window_days)
    project_names = {p.id: p.name for p in inputs.projects}
    record_projects = _record_project_names(inputs)

    rows: list[ActivityRow] = []
    for change in inputs.change_log:
        created_at = as_utc(change.created_at)
        if created_at < since:
            continue

        if change.record_type == "project":
            project_name = project_names.get(change.record_id, UNKNOWN_PROJECT)
        else:
            project_name = record_projects.get(change.record_id, SEE_DETAIL)

        rows.append(
            ActivityRow(
                timestamp=created_at,
                project_name=project_name,
                action=change_action_label(change.record_type, change.field_name),
                detail=change.note or f"{change.old_value or ''} → {change.new_value or ''}",
            )
        )

    for activity in inputs.task_activity:
        created_at = as_utc(activity.created_at)
        if created_at < since:
            continue

        rows.append(
            ActivityRow(
                timestamp=created_at,
                project_name=project_names.get(activity.project_id, UNKNOWN_PROJECT),
                action=TASK_STATUS_CHANGE,
                detail=(
                    f"{activity.task_name or 'Task'}: "
                    f"{activity.previous_status or 'new'} → {activity.new_status}"
                ),
            )
        )

    rows.sort(key=lambda r: r.timestamp, reverse=True)
    return rows


def build_decisions_needed(inputs: ReportInputs, now: datetime | None = None) -> list[DecisionRow]:
    """Quotes awaiting approval, quotes over budget, and blockers; longest wait first."""
    now = now or utcnow()
    rows: list[DecisionRow] = []

    for quote in inputs.quotes:
        if quote.status != "quoted":
            continue
        rows.append(
            DecisionRow(
                project_name=quote.project_name,
                item=f"{quote.trade_name or 'Quote'} from {quote.vendor_name or 'vendor'}",
                type="Approval",
                detail="Quote awaiting approval",
                amount=quote.quoted_price,
                days_waiting=days_between(quote.created_at, now),
            )
        )

    for quote in inputs.quotes:
        if quote.status == "quoted" or quote.budget_variance is None or quote.budget_variance <= 0:
            continue
        rows.append(
            DecisionRow(
                project_name=quote.project_name,
                item=f"{quote.trade_name or 'Item'} over budget",
                type="Decision",
                detail=f"Over budget by ${quote.budget_variance:,.0f}",
                amount=quote.budget_variance,
                days_waiting=days_between(quote.created_at, now),
            )
        )

    for task in inputs.tasks:
        if not task.is_blocking:
            continue
        rows.append(
            DecisionRow(
                project_name=task.project_name,
                item=task.task,
                type="Blocker",
                detail=task.blocks_description or "Blocking other work",
                amount=None,
                days_waiting=days_between(task.last_contacted_at or task.created_at, now),
            )
        )

    rows.sort(key=lambda r: r.days_waiting, reverse=True)
    return rows


def build_export_data(
    inputs: ReportInputs, now: datetime | None = None, activity_window_days: int = 14
) -> ExportData:
    now = now or utcnow()
    return ExportData(
        generated_at=now,
        executive_summary=build_executive_summary(inputs),
        budget_detail=build_budget_detail(inputs),
        open_tasks=build_open_tasks(inputs),
        quote_comparison=build_quote_comparison(inputs),
        recent_activity=build_recent_activity(inputs, now, activity_window_days),
        decisions_needed=build_decisions_needed(inputs, now),
    )
