"""Human-readable labels for statuses and change-log actions."""

from __future__ import annotations

from plhcc.core.change_log import CREATED_FIELD, DELETED_FIELD

TASK_STATUS_LABELS = {
    "open": "Open",
    "waiting_on_client": "Waiting on Client",
    "waiting_on_vendor": "Waiting on Vendor",
    "waiting_on_contractor": "Waiting on Contractor",
    "waiting_on_design_team": "Waiting on Design Team",
    "waiting_on_plh": "Waiting on PLH",
    "waiting_on_me": "Waiting on Me",
    "follow_up": "Follow Up",
    "completed": "Completed",
    "dead": "Dead",
}

QUOTE_STATUS_LABELS = {
    "pending": "Pending",
    "quoted": "Quoted",
    "approved": "Approved",
    "declined": "Declined",
    "contract_sent": "Contract Sent",
    "signed": "Signed",
    "in_progress": "In Progress",
    "completed": "Completed",
}

CREATED_LABELS = {
    "project": "Project Created",
    "rfi": "Task Created",
    "quote": "Quote Logged",
    "budget_area": "Budget Area Added",
    "budget_line_item": "Budget Item Added",
    "vendor": "Vendor Added",
}

FIELD_UPDATE_LABELS = {
    "status": "Status Updated",
    "quoted_price": "Quote Amount Updated",
    "budgeted_amount": "Budget Updated",
    "actual_amount": "Actual Cost Updated",
    "priority": "Priority Changed",
    "is_blocking": "Blocking Status Changed",
}

TASK_STATUS_CHANGE = "Task Status Change"


def task_status_label(status: str) -> str:
    return TASK_STATUS_LABELS.get(status, status)


def quote_status_label(status: str) -> str:
    return QUOTE_STATUS_LABELS.get(status, status)


def change_action_label(record_type: str, field_name: str) -> str:
    """Label a change-log entry by what kind of edit it records."""
    readable_type = record_type.replace("_", " ")

    if field_name == CREATED_FIELD:
        return CREATED_LABELS.get(record_type, f"{record_type} Created")
    if field_name == DELETED_FIELD:
        return f"{readable_type} Deleted"

    return FIELD_UPDATE_LABELS.get(field_name, f"{readable_type} Updated")
