"""Row validation and coercion for CSV imports.

Each import type has a pydantic schema that turns raw cell strings into typed
values. Invalid enum values fall back to a default instead of failing the row;
those fallbacks (and dropped emails) are reported as warnings so bad input is
visible without blocking the import.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, ValidationError

from plhcc.ingestion.fields import ImportType

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_NUMBER_NOISE = re.compile(r"[$€£,\s]")
_WHITESPACE = re.compile(r"\s+")

TRUE_VALUES = frozenset({"true", "1", "yes", "y"})

# Statuses accepted from a CSV; the design team / PLH waits are app-only
IMPORT_TASK_STATUSES = (
    "open",
    "waiting_on_client",
    "waiting_on_vendor",
    "waiting_on_contractor",
    "waiting_on_me",
    "follow_up",
    "completed",
    "dead",
)
IMPORT_PRIORITIES = ("P1", "P2", "P3")
IMPORT_POC_TYPES = ("client", "vendor", "contractor", "internal")

DEFAULT_TASK_STATUS = "open"
DEFAULT_PRIORITY = "P3"


@dataclass(frozen=True)
class RowError:
    row: int
    field: str
    message: str


@dataclass(frozen=True)
class RowWarning:
    row: int
    field: str
    message: str


# ---------------------------------------------------------------------------
# Coercions
# ---------------------------------------------------------------------------


def empty_to_none(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def to_number(value: Any) -> float | None:
    """Parse money-ish text: ``"$10,000"`` -> 10000.0; junk or empty -> None."""
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value) if math.isfinite(value) else None
    cleaned = _NUMBER_NOISE.sub("", str(value))
    if not cleaned:
        return None
    try:
        number = float(cleaned)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in TRUE_VALUES


def to_email(value: Any) -> str | None:
    text = empty_to_none(value)
    if text is None:
        return None
    return text if EMAIL_RE.match(text) else None


def normalize_status(value: str) -> str:
    return _WHITESPACE.sub("_", value.strip().lower())


def to_task_status(value: Any) -> str:
    text = empty_to_none(value)
    if text is None:
        return DEFAULT_TASK_STATUS
    status = normalize_status(text)
    return status if status in IMPORT_TASK_STATUSES else DEFAULT_TASK_STATUS


def to_priority(value: Any) -> str:
    text = empty_to_none(value)
    if text is None:
        return DEFAULT_PRIORITY
    priority = text.upper()
    return priority if priority in IMPORT_PRIORITIES else DEFAULT_PRIORITY


def to_poc_type(value: Any) -> str | None:
    text = empty_to_none(value)
    if text is None:
        return None
    poc_type = text.lower()
    return poc_type if poc_type in IMPORT_POC_TYPES else None


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------


OptionalText = Annotated[str | None, BeforeValidator(empty_to_none)]
Email = Annotated[str | None, BeforeValidator(to_email)]
Money = Annotated[float | None, BeforeValidator(to_number)]
Flag = Annotated[bool, BeforeValidator(to_bool)]
TaskStatusField = Annotated[str, BeforeValidator(to_task_status)]
PriorityField = Annotated[str, BeforeValidator(to_priority)]
POCTypeField = Annotated[str | None, BeforeValidator(to_poc_type)]


class _ImportRow(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore", frozen=True)


class ValidatedProjectRow(_ImportRow):
    name: str
    client_name: str
    address: OptionalText = None
    client_email: Email = None
    client_phone: OptionalText = None
    total_budget: Money = None


class ValidatedTaskRow(_ImportRow):
    project_name: str
    task: str
    status: TaskStatusField = DEFAULT_TASK_STATUS
    priority: PriorityField = DEFAULT_PRIORITY
    poc_name: OptionalText = None
    poc_type: POCTypeField = None
    is_blocking: Flag = False

    @property
    def is_complete(self) -> bool:
        return self.status == "completed"


class ValidatedBudgetItemRow(_ImportRow):
    project_name: str
    area_name: str
    item_name: str
    budgeted_amount: Money = None
    actual_amount: Money = None


class ValidatedVendorRow(_ImportRow):
    company_name: str
    poc_name: OptionalText = None
    phone: OptionalText = None
    email: Email = None
    trades: OptionalText = None  # comma separated trade names

    @property
    def trade_names(self) -> list[str]:
        if not self.trades:
            return []
        return [name.strip() for name in self.trades.split(",") if name.strip()]


ValidatedRow = ValidatedProjectRow | ValidatedTaskRow | ValidatedBudgetItemRow | ValidatedVendorRow

SCHEMAS: dict[ImportType, type[_ImportRow]] = {
    ImportType.PROJECTS: ValidatedProjectRow,
    ImportType.TASKS: ValidatedTaskRow,
    ImportType.BUDGET_ITEMS: ValidatedBudgetItemRow,
    ImportType.VENDORS: ValidatedVendorRow,
}

REQUIRED_MESSAGES: dict[str, str] = {
    "name": "Project name is required",
    "client_name": "Client name is required",
    "project_name": "Project name is required",
    "task": "Task description is required",
    "area_name": "Budget area name is required",
    "item_name": "Item name is required",
    "company_name": "Company name is required",
}


def _lenient(check: Callable[[str], bool], message: str) -> Callable[[str], str | None]:
    def warn(raw: str) -> str | None:
        return None if check(raw) else message.format(value=raw)

    return warn


# field -> raw value -> warning message (or None if the value was accepted)
WARNING_CHECKS: dict[ImportType, dict[str, Callable[[str], str | None]]] = {
    ImportType.PROJECTS: {
        "client_email": _lenient(lambda v: bool(EMAIL_RE.match(v)), "Invalid email '{value}' was dropped"),
    },
    ImportType.TASKS: {
        "status": _lenient(
            lambda v: normalize_status(v) in IMPORT_TASK_STATUSES,
            "Unknown status '{value}', using 'open'",
        ),
        "priority": _lenient(
            lambda v: v.upper() in IMPORT_PRIORITIES, "Unknown priority '{value}', using 'P3'"
        ),
        "poc_type": _lenient(
            lambda v: v.lower() in IMPORT_POC_TYPES, "Unknown contact type '{value}' was dropped"
        ),
    },
    ImportType.BUDGET_ITEMS: {},
    ImportType.VENDORS: {
        "email": _lenient(lambda v: bool(EMAIL_RE.match(v)), "Invalid email '{value}' was dropped"),
    },
}


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@dataclass
class ValidationResult:
    valid: list[ValidatedRow] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)
    warnings: list[RowWarning] = field(default_factory=list)
    total: int = 0

    @property
    def valid_count(self) -> int:
        return len(self.valid)

    @property
    def error_count(self) -> int:
        return self.total - self.valid_count


def _row_errors(row_number: int, exc: ValidationError) -> list[RowError]:
    errors = []
    for err in exc.errors():
        field_name = ".".join(str(part) for part in err["loc"]) or "general"
        if err["type"] in ("missing", "string_too_short") and field_name in REQUIRED_MESSAGES:
            message = REQUIRED_MESSAGES[field_name]
        else:
            message = err["msg"]
        errors.append(RowError(row=row_number, field=field_name, message=message))
    return errors


def _blank_required(schema: type[_ImportRow], row: dict[str, str]) -> list[str]:
    required = [name for name, info in schema.model_fields.items() if info.is_required()]
    return [name for name in required if name in row and not str(row[name]).strip()]


def validate_rows(rows: list[dict[str, str]], import_type: ImportType | str) -> ValidationResult:
    """Validate mapped rows (canonical field keys) for ``import_type``.

    Pure: the same input always yields the same partition. Row numbers are
    1-based. A failing row keeps every one of its field errors.
    """
    import_type = ImportType(import_type)
    schema = SCHEMAS[import_type]
    checks = WARNING_CHECKS[import_type]
    result = ValidationResult(total=len(rows))

    for index, row in enumerate(rows):
        row_number = index + 1

        # Blank required cells would pass a plain ``str`` field
        blank = _blank_required(schema, row)
        try:
            validated = schema.model_validate({k: v for k, v in row.items() if k not in blank})
        except ValidationError as e:
            result.errors.extend(_row_errors(row_number, e))
            continue

        result.valid.append(validated)
        for field_name, check in checks.items():
            raw = (row.get(field_name) or "").strip()
            if not raw:
                continue
            message = check(raw)
            if message:
                result.warnings.append(RowWarning(row=row_number, field=field_name, message=message))

    return result
