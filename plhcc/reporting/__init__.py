"""Reporting module for PLH Command Center.

Aggregates projects, tasks, quotes and budgets into the executive workbook.
"""

from plhcc.reporting.aggregator import ExportData, ReportInputs, build_export_data
from plhcc.reporting.excel_export import export_filename, write_executive_report

__all__ = ["ExportData", "ReportInputs", "build_export_data", "export_filename", "write_executive_report"]
