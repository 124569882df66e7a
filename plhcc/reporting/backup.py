"""Full data backup workbook.

One sheet per entity with foreign keys replaced by names, so the file reads
on its own and can be fed back through the CSV import.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from io import BytesIO
from typing import Any

from openpyxl import Workbook
from openpyxl.utils import get_column_letter

from plhcc.models import (
    BudgetArea,
    BudgetLineItem,
    Project,
    QuoteComparison,
    Task,
    Vendor,
    as_utc,
)
from plhcc.reporting.excel_export import CURRENCY_FORMAT, HEADER_BORDER, HEADER_FILL, HEADER_FONT

UNKNOWN = "Unknown"


@dataclass
class BackupData:
    exported_at: datetime
    projects: list[Project] = field(default_factory=list)
    tasks: list[Task] = field(default_factory=list)
    quotes: list[QuoteComparison] = field(default_factory=list)
    vendors: list[Vendor] = field(default_factory=list)
    budget_areas: list[BudgetArea] = field(default_factory=list)
    line_items: list[BudgetLineItem] = field(default_factory=list)


def _timestamp(value: datetime | None) -> str | None:
    return as_utc(value).isoformat() if value else None


def _write_table(
    wb: Workbook,
    name: str,
    headers: list[str],
    rows: list[list[Any]],
    currency_columns: tuple[int, ...] = (),
) -> None:
    ws = wb.create_sheet(name)

    for col, header in enumerate(headers, 1):
        cell = ws.cell(row=1, column=col, value=header)
        cell.fill = HEADER_FILL
        cell.font = HEADER_FONT
        cell.border = HEADER_BORDER
        ws.column_dimensions[get_column_letter(col)].width = max(12, len(header) + 4)

    for row_idx, values in enumerate(rows, 2):
        for col, value in enumerate(values, 1):
            cell = ws.cell(row=row_idx, column=col, value=value)
            if col in currency_columns and value is not None:
                cell.number_format = CURRENCY_FORMAT

    ws.freeze_panes = "A2"


def write_data_backup(backup: BackupData) -> bytes:
    """Render every collection in ``backup`` to an xlsx file."""
    project_names = {p.id: p.name for p in backup.projects}
    areas = {a.id: a for a in backup.budget_areas}

    wb = Workbook()
    if "Sheet" in wb.sheetnames:
        wb.remove(wb["Sheet"])

    _write_table(
        wb,
        "Projects",
        ["Name", "Client", "Client Email", "Client Phone", "Address", "Status", "Total Budget", "Notes", "Created"],
        [
            [p.name, p.client_name, p.client_email, p.client_phone, p.address, p.status,
             p.total_budget, p.notes, _timestamp(p.created_at)]
            for p in backup.projects
        ],
        currency_columns=(7,),
    )

    _write_table(
        wb,
        "Tasks",
        ["Project", "Task", "Scope", "Status", "Priority", "Contact Type", "Contact", "Latest Update",
         "Blocking", "Complete", "Next Action Date", "Notes", "Created"],
        [
            [project_names.get(t.project_id, UNKNOWN), t.task, t.scope, t.status, t.priority, t.poc_type,
             t.poc_name, t.latest_update, t.is_blocking, t.is_complete, t.next_action_date, t.notes,
             _timestamp(t.created_at)]
            for t in backup.tasks
        ],
    )

    _write_table(
        wb,
        "Quotes",
        ["Project", "Trade", "Vendor", "Vendor Contact", "Status", "Budget Amount", "Quoted Price", "Notes",
         "Created"],
        [
            [q.project_name, q.trade_name, q.vendor_name, q.vendor_poc, q.status, q.budget_amount,
             q.quoted_price, q.notes, _timestamp(q.created_at)]
            for q in backup.quotes
        ],
        currency_columns=(6, 7),
    )

    _write_table(
        wb,
        "Vendors",
        ["Company", "Contact", "Phone", "Email", "Website", "License Number", "Quality Rating",
         "Communication Rating", "Trades", "Status", "Notes", "Created"],
        [
            [v.company_name, v.poc_name, v.phone, v.email, v.website, v.license_number, v.quality_rating,
             v.communication_rating, ", ".join(v.trades), v.status, v.notes, _timestamp(v.created_at)]
            for v in backup.vendors
        ],
    )

    _write_table(
        wb,
        "Budget Areas",
        ["Project", "Area", "Sort Order"],
        [[project_names.get(a.project_id, UNKNOWN), a.area_name, a.sort_order] for a in backup.budget_areas],
    )

    line_rows = []
    for item in backup.line_items:
        area = areas.get(item.budget_area_id)
        line_rows.append(
            [
                project_names.get(area.project_id, UNKNOWN) if area else UNKNOWN,
                area.area_name if area else UNKNOWN,
                item.item_name,
                item.budgeted_amount,
                item.actual_amount,
                item.notes,
            ]
        )
    _write_table(
        wb,
        "Budget Line Items",
        ["Project", "Area", "Item", "Budgeted Amount", "Actual Amount", "Notes"],
        line_rows,
        currency_columns=(4, 5),
    )

    output = BytesIO()
    wb.save(output)
    return output.getvalue()
