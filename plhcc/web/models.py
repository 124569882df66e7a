"""Request models for the PLH Command Center web API.

Update models are partial: only fields present in the request body are
applied (``model_dump(exclude_unset=True)``), and only those are diffed into
the change log.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from plhcc.models import CallOutcome, ContactType, QuoteStatus, TaskStatus


class _Request(BaseModel):
    model_config = ConfigDict(use_enum_values=True)


# ============================================================================
# Quotes
# ============================================================================


class QuoteCreate(_Request):
    project_id: UUID
    trade_category_id: UUID | None = None
    vendor_id: UUID | None = None
    budget_amount: float | None = None
    quoted_price: float | None = None
    status: QuoteStatus = QuoteStatus.PENDING
    notes: str | None = None


class QuoteUpdate(_Request):
    trade_category_id: UUID | None = None
    vendor_id: UUID | None = None
    budget_amount: float | None = None
    quoted_price: float | None = None
    status: QuoteStatus | None = None
    notes: str | None = None
    note: str | None = Field(default=None, description="Change-log note, not stored on the quote")


# ============================================================================
# Tasks
# ============================================================================


class TaskStatusUpdate(_Request):
    """Quick-entry status change for a task."""

    status: TaskStatus
    note: str | None = None
    next_action_date: date | None = None


# ============================================================================
# Budget
# ============================================================================


class LineItemUpdate(_Request):
    item_name: str | None = Field(default=None, min_length=1)
    budgeted_amount: float | None = None
    actual_amount: float | None = None
    notes: str | None = None


# ============================================================================
# Call logs
# ============================================================================


class CallLogCreate(_Request):
    project_id: UUID | None = None
    contact_name: str = Field(min_length=1)
    contact_type: ContactType | None = None
    phone_number: str | None = None
    note: str = Field(min_length=1)
    outcome: CallOutcome
    follow_up_date: date | None = None
    duration_minutes: int | None = Field(default=None, ge=0)


class FollowUpTaskLink(_Request):
    task_id: UUID


# ============================================================================
# Messages
# ============================================================================


class MessageRenderRequest(_Request):
    body_template: str
    subject_template: str | None = None
    variables: dict[str, str] = Field(default_factory=dict)
