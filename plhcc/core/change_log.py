"""Field-level audit trail.

Edits are diffed into ``change_log`` rows. Creation and deletion are recorded
under the sentinel field names ``_created`` / ``_deleted`` with the record
snapshot serialized as JSON.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from plhcc.db.models import ChangeLogModel

logger = logging.getLogger(__name__)

CREATED_FIELD = "_created"
DELETED_FIELD = "_deleted"

RECORD_TYPES = ("project", "rfi", "quote", "budget_area", "budget_line_item", "vendor")


@dataclass(frozen=True)
class FieldChange:
    field: str
    old_value: Any
    new_value: Any


def values_equal(a: Any, b: Any) -> bool:
    """Null equals null; everything else compares by string form."""
    if a is None and b is None:
        return True
    if a is None or b is None:
        return False
    return str(a) == str(b)


def detect_changes(
    old: Mapping[str, Any] | None,
    new: Mapping[str, Any],
    fields: Iterable[str] | None = None,
) -> list[FieldChange]:
    """Return the fields whose value differs between ``old`` and ``new``.

    Only keys present in ``new`` are compared (partial updates). ``fields``
    narrows the comparison further.
    """
    tracked = list(fields) if fields is not None else list(new.keys())
    changes: list[FieldChange] = []

    for name in tracked:
        if name not in new:
            continue
        old_value = old.get(name) if old else None
        new_value = new[name]
        if not values_equal(old_value, new_value):
            changes.append(FieldChange(name, old_value, new_value))

    return changes


def _check_record_type(record_type: str) -> None:
    if record_type not in RECORD_TYPES:
        raise ValueError(f"Unknown record type: {record_type}")


def _stringify(value: Any) -> str | None:
    return None if value is None else str(value)


def _snapshot(data: Mapping[str, Any]) -> str:
    return json.dumps(dict(data), default=str)


def change_entries(
    record_type: str,
    record_id: UUID,
    user_id: str,
    changes: Iterable[FieldChange],
    note: str | None = None,
) -> list[ChangeLogModel]:
    """Build one ``change_log`` row per changed field."""
    _check_record_type(record_type)
    return [
        ChangeLogModel(
            record_type=record_type,
            record_id=record_id,
            field_name=change.field,
            old_value=_stringify(change.old_value),
            new_value=_stringify(change.new_value),
            changed_by=user_id,
            note=note,
        )
        for change in changes
    ]


def creation_entry(
    record_type: str,
    record_id: UUID,
    user_id: str,
    data: Mapping[str, Any],
    note: str | None = None,
) -> ChangeLogModel:
    _check_record_type(record_type)
    return ChangeLogModel(
        record_type=record_type,
        record_id=record_id,
        field_name=CREATED_FIELD,
        old_value=None,
        new_value=_snapshot(data),
        changed_by=user_id,
        note=note or "Record created",
    )


def deletion_entry(
    record_type: str,
    record_id: UUID,
    user_id: str,
    data: Mapping[str, Any],
    note: str | None = None,
) -> ChangeLogModel:
    _check_record_type(record_type)
    return ChangeLogModel(
        record_type=record_type,
        record_id=record_id,
        field_name=DELETED_FIELD,
        old_value=_snapshot(data),
        new_value=None,
        changed_by=user_id,
        note=note or "Record deleted",
    )


class ChangeLogger:
    """Appends audit rows.

    When a session is passed the rows join the caller's transaction and the
    caller commits. Without one, a short-lived session is opened; a failed
    write there is logged and reported as ``False`` so the audited operation
    itself still succeeds.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def _write(self, entries: list[ChangeLogModel], session: AsyncSession | None) -> bool:
        if not entries:
            return True

        if session is not None:
            session.add_all(entries)
            return True

        try:
            async with self.session_factory() as new_session:
                new_session.add_all(entries)
                await new_session.commit()
        except SQLAlchemyError:
            logger.exception(
                "Failed to write change log",
                extra={"record_type": entries[0].record_type, "entries": len(entries)},
            )
            return False
        return True

    async def log_change(
        self,
        record_type: str,
        record_id: UUID,
        user_id: str,
        changes: list[FieldChange],
        note: str | None = None,
        session: AsyncSession | None = None,
    ) -> bool:
        entries = change_entries(record_type, record_id, user_id, changes, note)
        return await self._write(entries, session)

    async def log_creation(
        self,
        record_type: str,
        record_id: UUID,
        user_id: str,
        data: Mapping[str, Any],
        note: str | None = None,
        session: AsyncSession | None = None,
    ) -> bool:
        entry = creation_entry(record_type, record_id, user_id, data, note)
        return await self._write([entry], session)

    async def log_deletion(
        self,
        record_type: str,
        record_id: UUID,
        user_id: str,
        data: Mapping[str, Any],
        note: str | None = None,
        session: AsyncSession | None = None,
    ) -> bool:
        entry = deletion_entry(record_type, record_id, user_id, data, note)
        return await self._write([entry], session)
