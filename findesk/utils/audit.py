"""Helpers for recording audit log entries.

Usage:
    await log_change(
        db, actor, action="updated", entity_type="invoice",
        entity_id=invoice.id, entity_code=invoice.invoice_number,
        field_name="status", old_value="sent", new_value="paid",
    )

The row is added to the current session and committed with the
enclosing transaction.  No extra flush is performed.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from findesk.models.audit_log import AuditLog


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


async def log_change(
    db: AsyncSession,
    actor: str,
    *,
    action: str,
    entity_type: str,
    entity_id: str | None = None,
    entity_code: str | None = None,
    field_name: str | None = None,
    old_value: Any = None,
    new_value: Any = None,
    reason: str | None = None,
    details: dict | None = None,
) -> AuditLog:
    """Append an audit log entry to the current DB session."""
    entry = AuditLog(
        entity_type=entity_type,
        entity_id=entity_id,
        entity_code=entity_code,
        action=action,
        field_name=field_name,
        old_value=_jsonable(old_value),
        new_value=_jsonable(new_value),
        changed_by=actor,
        change_reason=reason,
        details=details,
    )
    db.add(entry)
    return entry


def diff_fields(before: dict, after: dict, fields: Iterable[str]) -> list[tuple[str, Any, Any]]:
    """Return (field, old, new) for every field whose value changed."""
    changes = []
    for field in fields:
        old, new = _jsonable(before.get(field)), _jsonable(after.get(field))
        if old != new:
            changes.append((field, old, new))
    return changes


async def log_field_changes(
    db: AsyncSession,
    actor: str,
    *,
    entity_type: str,
    entity_id: str,
    entity_code: str | None,
    changes: list[tuple[str, Any, Any]],
    status_field: str | None = None,
    details: dict | None = None,
) -> int:
    """One `updated` entry per changed field.

    A change to `status_field` is logged as `status_changed` instead.
    Returns the number of entries written.
    """
    for field, old, new in changes:
        await log_change(
            db, actor,
            action="status_changed" if field == status_field else "updated",
            entity_type=entity_type,
            entity_id=entity_id,
            entity_code=entity_code,
            field_name=field,
            old_value=old,
            new_value=new,
            details=details,
        )
    return len(changes)
