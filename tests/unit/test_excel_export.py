"""Tests for the executive report and backup workbooks."""

from __future__ import annotations

from datetime import datetime, timezone
from io import BytesIO
from uuid import uuid4

from openpyxl import load_workbook

from plhcc.models import BudgetArea, BudgetLineItem, Project, QuoteComparison, Task, Vendor, WarRoomItem
from plhcc.reporting.aggregator import ReportInputs, build_export_data
from plhcc.reporting.backup import BackupData, write_data_backup
from plhcc.reporting.excel_export import (
    CURRENCY_FORMAT,
    FIRST_DATA_ROW,
    HEADER_ROW,
    PERCENT_FORMAT,
    build_executive_workbook,
    export_filename,
    report_date,
    write_executive_report,
)

NOW = datetime(2026, 10, 19, 15, 30, tzinfo=timezone.utc)
USER = "user-1"

SHEETS = [
    "Executive Summary",
    "Budget Detail",
    "Open Tasks",
    "Quote Comparison",
    "Recent Activity",
    "Decisions Needed",
]


def sample_inputs() -> ReportInputs:
    project = Project(user_id=USER, name="Kitchen", client_name="Smith")
    area = BudgetArea(project_id=project.id, area_name="Cabinets")
    item = BudgetLineItem(budget_area_id=area.id, item_name="Uppers", budgeted_amount=100000, actual_amount=120000)
    task = WarRoomItem(
        user_id=USER, project_id=project.id, project_name=project.name, task="Order tile", is_blocking=True
    )
    quote = QuoteComparison(
        user_id=USER,
        project_id=project.id,
        project_name=project.name,
        trade_name="Tile",
        vendor_name="Stone Co",
        budget_amount=1000,
        quoted_price=1100,
        status="approved",
    )
    return ReportInputs(projects=[project], tasks=[task], quotes=[quote], budget_areas=[area], line_items=[item])


class TestNaming:
    def test_filename(self):
        assert export_filename(NOW) == "PLH-Executive-Report-2026-10-19.xlsx"
        assert export_filename(NOW, "Data-Backup") == "PLH-Data-Backup-2026-10-19.xlsx"

    def test_report_date(self):
        assert report_date(NOW) == "October 19, 2026"


class TestExecutiveWorkbook:
    def test_sheet_order(self):
        wb = build_executive_workbook(build_export_data(sample_inputs(), NOW))

        assert wb.sheetnames == SHEETS

    def test_frame(self):
        wb = build_executive_workbook(build_export_data(sample_inputs(), NOW))

        ws = wb["Executive Summary"]
        assert ws["A1"].value == "PLH Command Center - Executive Summary"
        assert ws["A2"].value == "Generated: October 19, 2026"
        assert ws.cell(row=HEADER_ROW, column=1).value == "Project Name"
        assert ws.cell(row=HEADER_ROW, column=1).font.bold
        assert ws.freeze_panes == "A5"
        assert wb["Recent Activity"]["A1"].value == "PLH Command Center - Recent Activity (14 Days)"

    def test_summary_values_and_formats(self):
        wb = build_executive_workbook(build_export_data(sample_inputs(), NOW))

        ws = wb["Executive Summary"]
        row = FIRST_DATA_ROW
        assert ws.cell(row=row, column=1).value == "Kitchen"
        assert ws.cell(row=row, column=4).value == "Blocked"
        assert ws.cell(row=row, column=5).value == 100000
        assert ws.cell(row=row, column=5).number_format == CURRENCY_FORMAT
        assert ws.cell(row=row, column=7).value == 20000
        assert ws.cell(row=row, column=8).value == 0.2
        assert ws.cell(row=row, column=8).number_format == PERCENT_FORMAT

    def test_budget_detail_rows(self):
        wb = build_executive_workbook(build_export_data(sample_inputs(), NOW))

        ws = wb["Budget Detail"]
        names = [ws.cell(row=r, column=3).value for r in range(FIRST_DATA_ROW, FIRST_DATA_ROW + 3)]
        assert names == ["Uppers", "Cabinets Subtotal", "Kitchen TOTAL"]
        assert ws.cell(row=FIRST_DATA_ROW + 2, column=1).font.bold

    def test_open_tasks_blocking_flag(self):
        wb = build_executive_workbook(build_export_data(sample_inputs(), NOW))

        ws = wb["Open Tasks"]
        assert ws.cell(row=FIRST_DATA_ROW, column=2).value == "Order tile"
        assert ws.cell(row=FIRST_DATA_ROW, column=8).value == "YES"

    def test_empty_data_still_has_every_sheet(self):
        content = write_executive_report(build_export_data(ReportInputs(), NOW))

        wb = load_workbook(BytesIO(content))
        assert wb.sheetnames == SHEETS
        assert wb["Decisions Needed"].cell(row=FIRST_DATA_ROW, column=1).value is None


class TestBackupWorkbook:
    def test_sheets_and_resolved_names(self):
        project = Project(user_id=USER, name="Kitchen", client_name="Smith", total_budget=5000)
        area = BudgetArea(project_id=project.id, area_name="Cabinets")
        backup = BackupData(
            exported_at=NOW,
            projects=[project],
            tasks=[Task(user_id=USER, project_id=project.id, task="Order tile")],
            vendors=[Vendor(user_id=USER, company_name="Sparks LLC", trades=["Electrical", "Plumbing"])],
            budget_areas=[area],
            line_items=[BudgetLineItem(budget_area_id=area.id, item_name="Uppers", budgeted_amount=10)],
        )

        wb = load_workbook(BytesIO(write_data_backup(backup)))

        assert wb.sheetnames == ["Projects", "Tasks", "Quotes", "Vendors", "Budget Areas", "Budget Line Items"]
        assert wb["Projects"]["A2"].value == "Kitchen"
        assert wb["Projects"]["G2"].value == 5000
        assert wb["Tasks"]["A2"].value == "Kitchen"
        assert wb["Vendors"]["I2"].value == "Electrical, Plumbing"
        assert [c.value for c in wb["Budget Line Items"][2][:3]] == ["Kitchen", "Cabinets", "Uppers"]

    def test_orphan_line_item(self):
        backup = BackupData(
            exported_at=NOW,
            line_items=[BudgetLineItem(budget_area_id=uuid4(), item_name="Stray")],
        )

        wb = load_workbook(BytesIO(write_data_backup(backup)))

        assert wb["Budget Line Items"]["A2"].value == "Unknown"
        assert wb["Budget Line Items"]["B2"].value == "Unknown"
