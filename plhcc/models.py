"""PLH Command Center pydantic models for type-safe data validation.

These are the in-memory shapes that the store hands to import and report
code. Derived figures (variance, overdue flags) live only on the read views.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive timestamps (SQLite drops the offset)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class ProjectStatus(str, Enum):
    ACTIVE = "active"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class TaskStatus(str, Enum):
    """Who a task is waiting on."""

    OPEN = "open"
    WAITING_ON_CLIENT = "waiting_on_client"
    WAITING_ON_VENDOR = "waiting_on_vendor"
    WAITING_ON_CONTRACTOR = "waiting_on_contractor"
    WAITING_ON_DESIGN_TEAM = "waiting_on_design_team"
    WAITING_ON_PLH = "waiting_on_plh"
    WAITING_ON_ME = "waiting_on_me"
    FOLLOW_UP = "follow_up"
    COMPLETED = "completed"
    DEAD = "dead"


class Priority(str, Enum):
    P1 = "P1"
    P2 = "P2"
    P3 = "P3"


class POCType(str, Enum):
    CLIENT = "client"
    VENDOR = "vendor"
    CONTRACTOR = "contractor"
    INTERNAL = "internal"
    DESIGN_TEAM = "design_team"
    PLH = "plh"


class QuoteStatus(str, Enum):
    PENDING = "pending"
    QUOTED = "quoted"
    APPROVED = "approved"
    DECLINED = "declined"
    CONTRACT_SENT = "contract_sent"
    SIGNED = "signed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Rating(str, Enum):
    GREAT = "great"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    UNKNOWN = "unknown"


class VendorStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class CallOutcome(str, Enum):
    WAITING_ON_THEM = "waiting_on_them"
    I_NEED_TO_DO = "i_need_to_do"
    DONE = "done"
    FOLLOW_UP_BY = "follow_up_by"


class ContactType(str, Enum):
    CLIENT = "client"
    VENDOR = "vendor"
    CONTRACTOR = "contractor"
    DESIGN_TEAM = "design_team"
    OTHER = "other"


# Quote statuses at or past approval
APPROVED_QUOTE_STATUSES = frozenset(
    {
        QuoteStatus.APPROVED.value,
        QuoteStatus.SIGNED.value,
        QuoteStatus.CONTRACT_SENT.value,
        QuoteStatus.IN_PROGRESS.value,
        QuoteStatus.COMPLETED.value,
    }
)

CLOSED_TASK_STATUSES = frozenset({TaskStatus.COMPLETED.value, TaskStatus.DEAD.value})

# Waiting states whose follow-up cadence can make a task overdue
FOLLOW_UP_STATUSES = frozenset(
    {
        TaskStatus.WAITING_ON_CLIENT.value,
        TaskStatus.WAITING_ON_VENDOR.value,
        TaskStatus.WAITING_ON_CONTRACTOR.value,
    }
)

TRADE_CATEGORIES = [
    "Acoustical Ceilings",
    "Appliances",
    "Cabinets & Millwork",
    "Concrete",
    "Countertops",
    "Demolition",
    "Doors & Hardware",
    "Drywall",
    "Electrical",
    "Elevators",
    "Excavation & Grading",
    "Fencing",
    "Fire Protection",
    "Flooring",
    "Framing",
    "Glass & Glazing",
    "HVAC",
    "Insulation",
    "Landscaping",
    "Masonry",
    "Painting",
    "Plumbing",
    "Roofing",
    "Security Systems",
    "Siding",
    "Solar",
    "Stucco",
    "Tile",
    "Waterproofing",
    "Windows",
    "Other",
]


class _Record(BaseModel):
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


class Project(_Record):
    id: UUID = Field(default_factory=uuid4)
    user_id: str
    name: str
    address: str | None = None
    client_name: str | None = None
    client_email: str | None = None
    client_phone: str | None = None
    status: str = ProjectStatus.ACTIVE.value
    total_budget: float | None = None
    notes: str | None = None
    created_at: datetime = Field(default_factory=utcnow)


class TradeCategory(_Record):
    id: UUID = Field(default_factory=uuid4)
    name: str
    sort_order: int = 0


class Vendor(_Record):
    id: UUID = Field(default_factory=uuid4)
    user_id: str
    company_name: str
    poc_name: str | None = None
    phone: str | None = None
    email: str | None = None
    website: str | None = None
    license_number: str | None = None
    quality_rating: str = Rating.UNKNOWN.value
    communication_rating: str = Rating.UNKNOWN.value
    status: str = VendorStatus.ACTIVE.value
    notes: str | None = None
    trades: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)


class Task(_Record):
    """Task / RFI tied to a single project."""

    id: UUID = Field(default_factory=uuid4)
    user_id: str
    project_id: UUID
    task: str
    scope: str | None = None
    poc_type: str | None = None
    poc_name: str | None = None
    status: str = TaskStatus.OPEN.value
    priority: str = Priority.P3.value
    next_action_date: date | None = None
    follow_up_days: int = 5
    last_contacted_at: datetime | None = None
    latest_update: str | None = None
    is_complete: bool = False
    is_blocking: bool = False
    blocks_description: str | None = None
    notes: str | None = None
    created_at: datetime = Field(default_factory=utcnow)


class WarRoomItem(Task):
    """Open task joined with its project, plus urgency figures."""

    project_name: str
    days_since_contact: int | None = None
    is_overdue: bool = False


class TaskActivity(_Record):
    """Status transition on a task."""

    id: UUID = Field(default_factory=uuid4)
    task_id: UUID
    project_id: UUID | None = None
    task_name: str | None = None
    previous_status: str | None = None
    new_status: str
    note: str | None = None
    created_at: datetime = Field(default_factory=utcnow)


class Quote(_Record):
    id: UUID = Field(default_factory=uuid4)
    user_id: str
    project_id: UUID
    trade_category_id: UUID | None = None
    vendor_id: UUID | None = None
    budget_amount: float | None = None
    quoted_price: float | None = None
    status: str = QuoteStatus.PENDING.value
    notes: str | None = None
    created_at: datetime = Field(default_factory=utcnow)


class QuoteComparison(Quote):
    """Quote joined with project, trade and vendor names."""

    project_name: str
    trade_name: str | None = None
    vendor_name: str | None = None
    vendor_poc: str | None = None
    budget_variance: float | None = None
    budget_variance_percent: float | None = None


class BudgetArea(_Record):
    id: UUID = Field(default_factory=uuid4)
    project_id: UUID
    area_name: str
    sort_order: int = 0


class BudgetLineItem(_Record):
    id: UUID = Field(default_factory=uuid4)
    budget_area_id: UUID
    item_name: str
    budgeted_amount: float | None = None
    actual_amount: float | None = None
    sort_order: int = 0
    notes: str | None = None


class ChangeLogEntry(_Record):
    """Immutable audit record of one field edit."""

    id: UUID = Field(default_factory=uuid4)
    record_type: str
    record_id: UUID
    field_name: str
    old_value: str | None = None
    new_value: str | None = None
    changed_by: str
    note: str | None = None
    created_at: datetime = Field(default_factory=utcnow)


class CallLog(_Record):
    id: UUID = Field(default_factory=uuid4)
    user_id: str
    project_id: UUID | None = None
    contact_name: str
    contact_type: str | None = None
    phone_number: str | None = None
    note: str
    outcome: str
    follow_up_date: date | None = None
    follow_up_task_id: UUID | None = None
    duration_minutes: int | None = None
    created_at: datetime = Field(default_factory=utcnow)


class CallLogView(CallLog):
    """Call log joined with its project and follow-up task names."""

    project_name: str | None = None
    follow_up_task: str | None = None


class CallStats(BaseModel):
    """Call history summary for one project."""

    total_calls: int = 0
    pending_follow_ups: int = 0
    last_call_at: datetime | None = None
