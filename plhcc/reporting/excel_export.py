"""Executive report workbook.

Writes the six report sheets with openpyxl. Every sheet has the same frame:
title on row 1, generated date on row 2, a styled header on row 4 and data
from row 5, with the header frozen.
"""

from __future__ import annotations

from datetime import datetime
from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from plhcc.config import get_config
from plhcc.reporting.aggregator import (
    HEALTH_AT_RISK,
    HEALTH_ON_TRACK,
    ExportData,
)

HEADER_ROW = 4
FIRST_DATA_ROW = HEADER_ROW + 1

CURRENCY_FORMAT = '"$"#,##0'
PERCENT_FORMAT = "0.0%"

RED = "DC2626"
GREEN = "16A34A"
AMBER = "D97706"
GREY = "6B7280"

_thin = Side(style="thin", color="000000")

HEADER_FILL = PatternFill(start_color="2D3748", end_color="2D3748", fill_type="solid")
HEADER_FONT = Font(color="FFFFFF", bold=True)
HEADER_ALIGNMENT = Alignment(horizontal="center", vertical="center")
HEADER_BORDER = Border(top=_thin, bottom=_thin, left=_thin, right=_thin)

SUBTOTAL_FILL = PatternFill(start_color="E5E7EB", end_color="E5E7EB", fill_type="solid")
TOTAL_FILL = PatternFill(start_color="D1D5DB", end_color="D1D5DB", fill_type="solid")

HEALTH_FONTS = {
    HEALTH_ON_TRACK: Font(color=GREEN),
    HEALTH_AT_RISK: Font(color=AMBER),
}
BLOCKED_FONT = Font(color=RED, bold=True)
APPROVED_FONT = Font(color=GREEN, bold=True)


def export_filename(generated_at: datetime, report_type: str = "Executive-Report") -> str:
    """``PLH-Executive-Report-2026-10-19.xlsx``."""
    product = get_config().report.product_name
    return f"{product}-{report_type}-{generated_at.date().isoformat()}.xlsx"


def report_date(generated_at: datetime) -> str:
    return f"{generated_at.strftime('%B')} {generated_at.day}, {generated_at.year}"


def _sheet(
    wb: Workbook,
    name: str,
    heading: str,
    generated: str,
    headers: list[str],
    widths: list[int],
) -> Worksheet:
    ws = wb.create_sheet(name)
    title = get_config().report.title

    ws["A1"] = f"{title} - {heading}"
    ws["A1"].font = Font(bold=True, size=14)
    ws["A2"] = f"Generated: {generated}"
    ws["A2"].font = Font(italic=True, color=GREY)

    for col, header in enumerate(headers, 1):
        cell = ws.cell(row=HEADER_ROW, column=col, value=header)
        cell.fill = HEADER_FILL
        cell.font = HEADER_FONT
        cell.alignment = HEADER_ALIGNMENT
        cell.border = HEADER_BORDER

    for col, width in enumerate(widths, 1):
        ws.column_dimensions[get_column_letter(col)].width = width

    ws.freeze_panes = ws.cell(row=FIRST_DATA_ROW, column=1)
    return ws


def _variance_cell(cell, value: float | None) -> None:
    """Over budget in red, at or under in green."""
    if value is None:
        return
    cell.number_format = CURRENCY_FORMAT
    cell.font = Font(color=RED if value > 0 else GREEN)


def _fraction(percent: float | None) -> float | None:
    # Stored as a fraction so the 0.0% format renders it
    return None if percent is None else percent / 100


def _write_executive_summary(wb: Workbook, data: ExportData, generated: str) -> None:
    headers = [
        "Project Name",
        "Client",
        "Status",
        "Health",
        "Total Budget",
        "Total Committed",
        "Variance",
        "Variance %",
        "Open Tasks",
        "Overdue",
        "Blocking",
        "Decisions Needed",
    ]
    ws = _sheet(wb, "Executive Summary", "Executive Summary", generated, headers,
                [30, 20, 12, 12, 15, 15, 15, 12, 12, 10, 10, 18])

    for row, project in enumerate(data.executive_summary, FIRST_DATA_ROW):
        values = [
            project.project_name,
            project.client_name,
            project.status,
            project.health,
            project.total_budgeted,
            project.total_actual,
            project.variance,
            _fraction(project.variance_percent),
            project.open_tasks,
            project.overdue_items,
            project.blocking_items,
            project.decisions_needed,
        ]
        for col, value in enumerate(values, 1):
            ws.cell(row=row, column=col, value=value)

        ws.cell(row=row, column=4).font = HEALTH_FONTS.get(project.health, BLOCKED_FONT)
        ws.cell(row=row, column=5).number_format = CURRENCY_FORMAT
        ws.cell(row=row, column=6).number_format = CURRENCY_FORMAT
        _variance_cell(ws.cell(row=row, column=7), project.variance)
        if project.variance_percent is not None:
            ws.cell(row=row, column=8).number_format = PERCENT_FORMAT


def _write_budget_detail(wb: Workbook, data: ExportData, generated: str) -> None:
    headers = ["Project", "Budget Area", "Line Item", "Budgeted", "Actual", "Variance", "Variance %"]
    ws = _sheet(wb, "Budget Detail", "Budget Detail", generated, headers, [30, 25, 35, 15, 15, 15, 12])

    for row, item in enumerate(data.budget_detail, FIRST_DATA_ROW):
        values = [
            item.project_name,
            item.area_name,
            item.item_name,
            item.budgeted,
            item.actual,
            item.variance,
            _fraction(item.variance_percent),
        ]
        for col, value in enumerate(values, 1):
            ws.cell(row=row, column=col, value=value)

        if item.is_project_total or item.is_area_subtotal:
            fill = TOTAL_FILL if item.is_project_total else SUBTOTAL_FILL
            for col in range(1, len(headers) + 1):
                cell = ws.cell(row=row, column=col)
                cell.fill = fill
                cell.font = Font(bold=True)
                if 4 <= col <= 6:
                    cell.number_format = CURRENCY_FORMAT
        else:
            ws.cell(row=row, column=4).number_format = CURRENCY_FORMAT
            ws.cell(row=row, column=5).number_format = CURRENCY_FORMAT
            _variance_cell(ws.cell(row=row, column=6), item.variance)

        if item.variance_percent is not None:
            ws.cell(row=row, column=7).number_format = PERCENT_FORMAT


def _write_open_tasks(wb: Workbook, data: ExportData, generated: str) -> None:
    headers = [
        "Project",
        "Task",
        "Priority",
        "Status",
        "Contact",
        "Days Since Contact",
        "Follow-Up Date",
        "Blocking",
        "Latest Update",
    ]
    ws = _sheet(wb, "Open Tasks", "Open Tasks", generated, headers, [25, 40, 10, 20, 20, 18, 15, 10, 40])

    for row, task in enumerate(data.open_tasks, FIRST_DATA_ROW):
        values = [
            task.project_name,
            task.task,
            task.priority,
            task.status,
            task.poc_name,
            task.days_since_contact,
            task.follow_up_date,
            "YES" if task.is_blocking else "",
            task.latest_update,
        ]
        for col, value in enumerate(values, 1):
            ws.cell(row=row, column=col, value=value)

        if task.follow_up_date is not None:
            ws.cell(row=row, column=7).number_format = "yyyy-mm-dd"
        if task.is_blocking:
            ws.cell(row=row, column=8).font = BLOCKED_FONT


def _write_quote_comparison(wb: Workbook, data: ExportData, generated: str) -> None:
    headers = [
        "Project",
        "Trade",
        "Vendor",
        "Budget Allowance",
        "Quoted Price",
        "Variance",
        "Variance %",
        "Status",
    ]
    ws = _sheet(wb, "Quote Comparison", "Quote Comparison", generated, headers,
                [25, 25, 25, 18, 15, 15, 12, 15])

    for row, quote in enumerate(data.quote_comparison, FIRST_DATA_ROW):
        values = [
            quote.project_name,
            quote.trade_name,
            quote.vendor_name,
            quote.budget_allowance,
            quote.quoted_price,
            quote.variance,
            _fraction(quote.variance_percent),
            quote.status,
        ]
        for col, value in enumerate(values, 1):
            ws.cell(row=row, column=col, value=value)

        ws.cell(row=row, column=4).number_format = CURRENCY_FORMAT
        ws.cell(row=row, column=5).number_format = CURRENCY_FORMAT
        _variance_cell(ws.cell(row=row, column=6), quote.variance)
        if quote.variance_percent is not None:
            ws.cell(row=row, column=7).number_format = PERCENT_FORMAT
        if quote.is_approved:
            ws.cell(row=row, column=8).font = APPROVED_FONT


def _write_recent_activity(wb: Workbook, data: ExportData, generated: str) -> None:
    window = get_config().report.activity_window_days
    headers = ["Date", "Time", "Project", "Action", "Detail"]
    ws = _sheet(wb, "Recent Activity", f"Recent Activity ({window} Days)", generated, headers,
                [12, 10, 25, 25, 50])

    for row, activity in enumerate(data.recent_activity, FIRST_DATA_ROW):
        values = [activity.date, activity.time, activity.project_name, activity.action, activity.detail]
        for col, value in enumerate(values, 1):
            ws.cell(row=row, column=col, value=value)


def _write_decisions_needed(wb: Workbook, data: ExportData, generated: str) -> None:
    headers = ["Project", "Item", "Type", "Detail", "Amount", "Days Waiting"]
    ws = _sheet(wb, "Decisions Needed", "Decisions Needed", generated, headers, [25, 35, 12, 40, 15, 15])

    for row, decision in enumerate(data.decisions_needed, FIRST_DATA_ROW):
        values = [
            decision.project_name,
            decision.item,
            decision.type,
            decision.detail,
            decision.amount,
            decision.days_waiting,
        ]
        for col, value in enumerate(values, 1):
            ws.cell(row=row, column=col, value=value)

        if decision.amount is not None:
            ws.cell(row=row, column=5).number_format = CURRENCY_FORMAT


def build_executive_workbook(data: ExportData) -> Workbook:
    wb = Workbook()

    # Remove default sheet
    if "Sheet" in wb.sheetnames:
        wb.remove(wb["Sheet"])

    generated = report_date(data.generated_at)
    _write_executive_summary(wb, data, generated)
    _write_budget_detail(wb, data, generated)
    _write_open_tasks(wb, data, generated)
    _write_quote_comparison(wb, data, generated)
    _write_recent_activity(wb, data, generated)
    _write_decisions_needed(wb, data, generated)
    return wb


def write_executive_report(data: ExportData) -> bytes:
    """Render ``data`` as an xlsx file and return its bytes."""
    output = BytesIO()
    build_executive_workbook(data).save(output)
    return output.getvalue()
