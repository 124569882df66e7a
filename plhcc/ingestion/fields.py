"""Import field catalog.

For each import type: the ordered target fields with the header aliases used
by column auto-detection, plus which keys are required.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ImportType(str, Enum):
    PROJECTS = "projects"
    TASKS = "tasks"
    BUDGET_ITEMS = "budget_items"
    VENDORS = "vendors"


@dataclass(frozen=True)
class FieldDefinition:
    key: str
    label: str
    required: bool
    aliases: tuple[str, ...]


@dataclass(frozen=True)
class ImportTypeInfo:
    label: str
    description: str
    fields: tuple[FieldDefinition, ...]

    @property
    def required_fields(self) -> list[str]:
        return [f.key for f in self.fields if f.required]

    @property
    def optional_fields(self) -> list[str]:
        return [f.key for f in self.fields if not f.required]


PROJECT_FIELDS = (
    FieldDefinition("name", "Project Name", True, ("project_name", "project", "title", "name")),
    FieldDefinition("client_name", "Client Name", True, ("client_name", "client", "customer", "owner")),
    FieldDefinition("address", "Address", False, ("address", "location", "site_address", "project_address")),
    FieldDefinition("client_email", "Client Email", False, ("client_email", "email", "contact_email")),
    FieldDefinition("client_phone", "Client Phone", False, ("client_phone", "phone", "contact_phone", "tel")),
    FieldDefinition("total_budget", "Total Budget", False, ("total_budget", "budget", "amount", "contract_value")),
)

TASK_FIELDS = (
    FieldDefinition("project_name", "Project Name", True, ("project_name", "project", "project_title")),
    FieldDefinition("task", "Task Description", True, ("task", "description", "title", "item", "action")),
    FieldDefinition("status", "Status", False, ("status", "state", "task_status")),
    FieldDefinition("priority", "Priority", False, ("priority", "urgency", "importance")),
    FieldDefinition("poc_name", "Contact Name", False, ("poc_name", "contact", "assigned_to", "owner")),
    FieldDefinition("poc_type", "Contact Type", False, ("poc_type", "contact_type", "type")),
    FieldDefinition("is_blocking", "Is Blocking", False, ("is_blocking", "blocking", "blocker")),
)

BUDGET_ITEM_FIELDS = (
    FieldDefinition("project_name", "Project Name", True, ("project_name", "project")),
    FieldDefinition("area_name", "Budget Area", True, ("area_name", "area", "category", "section")),
    FieldDefinition("item_name", "Item Name", True, ("item_name", "item", "description", "line_item")),
    FieldDefinition("budgeted_amount", "Budgeted Amount", False, ("budgeted_amount", "budgeted", "budget", "estimate")),
    FieldDefinition("actual_amount", "Actual Amount", False, ("actual_amount", "actual", "spent", "cost")),
)

VENDOR_FIELDS = (
    FieldDefinition("company_name", "Company Name", True, ("company_name", "company", "vendor", "name", "business_name")),
    FieldDefinition("poc_name", "Contact Person", False, ("poc_name", "contact", "contact_name", "representative")),
    FieldDefinition("phone", "Phone", False, ("phone", "tel", "telephone", "contact_phone")),
    FieldDefinition("email", "Email", False, ("email", "contact_email", "e-mail")),
    FieldDefinition("trades", "Trades", False, ("trades", "trade", "services", "categories", "specialty")),
)

IMPORT_TYPES: dict[ImportType, ImportTypeInfo] = {
    ImportType.PROJECTS: ImportTypeInfo(
        "Projects",
        "Import project details including client information and budget",
        PROJECT_FIELDS,
    ),
    ImportType.TASKS: ImportTypeInfo(
        "Tasks / RFIs",
        "Import tasks and action items linked to projects",
        TASK_FIELDS,
    ),
    ImportType.BUDGET_ITEMS: ImportTypeInfo(
        "Budget Line Items",
        "Import budget line items organized by area",
        BUDGET_ITEM_FIELDS,
    ),
    ImportType.VENDORS: ImportTypeInfo(
        "Vendors",
        "Import vendor contacts with trade associations",
        VENDOR_FIELDS,
    ),
}


def get_fields(import_type: ImportType | str) -> tuple[FieldDefinition, ...]:
    return IMPORT_TYPES[ImportType(import_type)].fields


def get_type_info(import_type: ImportType | str) -> ImportTypeInfo:
    return IMPORT_TYPES[ImportType(import_type)]
