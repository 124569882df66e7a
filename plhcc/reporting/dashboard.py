"""Budget dashboard rollup.

Budget and quote figures per area, per project and per trade, computed from
the same collections as the executive report. Optionally narrowed to one
project.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from uuid import UUID

from plhcc.models import APPROVED_QUOTE_STATUSES, BudgetLineItem, Project, QuoteComparison
from plhcc.reporting.aggregator import ReportInputs

OTHER_TRADE = "Other"


@dataclass
class AreaBudget:
    area_id: UUID
    area_name: str
    budgeted: float
    actual: float
    remaining: float


@dataclass
class ProjectBudget:
    project_id: UUID
    project_name: str
    budgeted: float
    actual: float
    remaining: float


@dataclass
class TradeQuotes:
    trade_name: str
    trade_id: UUID | None
    budget_allowance: float
    lowest_quote: float | None
    approved_quote: float | None
    is_approved_over_budget: bool
    is_lowest_under_budget: bool
    quote_count: int


@dataclass
class BudgetDashboard:
    total_budgeted: float = 0.0
    total_committed: float = 0.0
    total_variance: float = 0.0
    percent_quoted: int = 0
    trades_with_quotes: int = 0
    total_trades: int = 0
    budget_by_area: list[AreaBudget] = field(default_factory=list)
    budget_by_project: list[ProjectBudget] = field(default_factory=list)
    quotes_by_trade: list[TradeQuotes] = field(default_factory=list)
    projects: list[Project] = field(default_factory=list)


def _sums(items: list[BudgetLineItem]) -> tuple[float, float]:
    budgeted = sum(item.budgeted_amount or 0 for item in items)
    actual = sum(item.actual_amount or 0 for item in items)
    return budgeted, actual


def _trade_quotes(trade_name: str, quotes: list[QuoteComparison]) -> TradeQuotes:
    allowance = max((q.budget_amount for q in quotes if q.budget_amount and q.budget_amount > 0), default=0.0)
    prices = [q.quoted_price for q in quotes if q.quoted_price is not None and q.quoted_price > 0]
    lowest = min(prices) if prices else None
    approved = next((q for q in quotes if q.status in APPROVED_QUOTE_STATUSES), None)
    approved_price = approved.quoted_price if approved is not None and approved.quoted_price else None

    return TradeQuotes(
        trade_name=trade_name,
        trade_id=quotes[0].trade_category_id,
        budget_allowance=allowance,
        lowest_quote=lowest,
        approved_quote=approved_price,
        is_approved_over_budget=approved_price is not None and allowance > 0 and approved_price > allowance,
        is_lowest_under_budget=lowest is not None and allowance > 0 and lowest < allowance,
        quote_count=len(quotes),
    )


def build_budget_dashboard(inputs: ReportInputs, project_id: UUID | None = None) -> BudgetDashboard:
    """Roll budgets and quotes up for every project, or only ``project_id``.

    Areas and projects with neither budgeted nor actual spend are left out, as
    are trades with no allowance and no priced quote. ``remaining`` never goes
    below zero. A trade counts as quoted once it has a positively priced quote.
    """
    projects = [p for p in inputs.projects if project_id is None or p.id == project_id]
    project_ids = {p.id for p in projects}

    areas = [a for a in inputs.budget_areas if a.project_id in project_ids]
    items_by_area: dict[UUID, list[BudgetLineItem]] = defaultdict(list)
    for item in inputs.line_items:
        items_by_area[item.budget_area_id].append(item)

    budget_by_area = []
    area_ids_by_project: dict[UUID, list[UUID]] = defaultdict(list)
    for area in areas:
        area_ids_by_project[area.project_id].append(area.id)
        budgeted, actual = _sums(items_by_area[area.id])
        if budgeted > 0 or actual > 0:
            budget_by_area.append(
                AreaBudget(area.id, area.area_name, budgeted, actual, max(0.0, budgeted - actual))
            )

    budget_by_project = []
    for project in projects:
        items = [item for area_id in area_ids_by_project[project.id] for item in items_by_area[area_id]]
        budgeted, actual = _sums(items)
        if budgeted > 0 or actual > 0:
            budget_by_project.append(
                ProjectBudget(project.id, project.name, budgeted, actual, max(0.0, budgeted - actual))
            )

    quotes_by_trade_name: dict[str, list[QuoteComparison]] = {}
    for quote in inputs.quotes:
        if quote.project_id in project_ids:
            quotes_by_trade_name.setdefault(quote.trade_name or OTHER_TRADE, []).append(quote)

    trades = [_trade_quotes(name, quotes) for name, quotes in quotes_by_trade_name.items()]
    quotes_by_trade = sorted(
        (t for t in trades if t.budget_allowance > 0 or t.lowest_quote or t.approved_quote),
        key=lambda t: t.trade_name.lower(),
    )

    total_trades = len(trades)
    trades_with_quotes = sum(1 for t in trades if t.lowest_quote is not None)
    total_budgeted = sum(p.budgeted for p in budget_by_project)
    total_committed = sum(p.actual for p in budget_by_project)

    return BudgetDashboard(
        total_budgeted=total_budgeted,
        total_committed=total_committed,
        total_variance=total_committed - total_budgeted,
        percent_quoted=round(trades_with_quotes / total_trades * 100) if total_trades else 0,
        trades_with_quotes=trades_with_quotes,
        total_trades=total_trades,
        budget_by_area=budget_by_area,
        budget_by_project=budget_by_project,
        quotes_by_trade=quotes_by_trade,
        projects=list(inputs.projects),
    )
