"""Audit log viewer.

Endpoints:
    GET /api/audit-logs/         Filtered, paginated log entries
    GET /api/audit-logs/export   CSV of the filtered entries
"""

from datetime import date, datetime, time, timedelta, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy import String, cast, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from findesk.database import get_db
from findesk.models.audit_log import AuditLog
from findesk.schemas.audit_log import AuditLogOut
from findesk.schemas.common import PaginatedResponse
from findesk.utils.csv_export import AUDIT_LOG_COLUMNS, csv_response, export_filename, render_csv
from findesk.utils.dates import IST

router = APIRouter()


def _ist_day_start_utc(d: date) -> datetime:
    """Midnight IST of `d` as the naive UTC value stored in created_at."""
    return datetime.combine(d, time.min, tzinfo=IST).astimezone(timezone.utc).replace(tzinfo=None)


def _filtered(
    search: str | None,
    action: str | None,
    entity_type: str | None,
    changed_by: str | None,
    date_from: date | None,
    date_to: date | None,
):
    stmt = select(AuditLog)
    if search:
        q = f"%{search}%"
        stmt = stmt.where(
            or_(
                AuditLog.entity_code.ilike(q),
                AuditLog.field_name.ilike(q),
                cast(AuditLog.details, String).ilike(q),
            )
        )
    if action:
        stmt = stmt.where(AuditLog.action == action)
    if entity_type:
        stmt = stmt.where(AuditLog.entity_type == entity_type)
    if changed_by:
        stmt = stmt.where(AuditLog.changed_by == changed_by)
    if date_from:
        stmt = stmt.where(AuditLog.created_at >= _ist_day_start_utc(date_from))
    if date_to:
        stmt = stmt.where(AuditLog.created_at < _ist_day_start_utc(date_to + timedelta(days=1)))
    return stmt


@router.get("/", response_model=PaginatedResponse[AuditLogOut])
async def list_audit_logs(
    search: str | None = Query(None),
    action: str | None = Query(None),
    entity_type: str | None = Query(None),
    changed_by: str | None = Query(None),
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    stmt = _filtered(search, action, entity_type, changed_by, date_from, date_to)
    total = await db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
    result = await db.execute(
        stmt.order_by(AuditLog.created_at.desc()).offset(offset).limit(limit)
    )
    return PaginatedResponse(
        items=[AuditLogOut.model_validate(a) for a in result.scalars().all()],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/export")
async def export_audit_logs(
    search: str | None = Query(None),
    action: str | None = Query(None),
    entity_type: str | None = Query(None),
    changed_by: str | None = Query(None),
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    stmt = _filtered(search, action, entity_type, changed_by, date_from, date_to)
    result = await db.execute(stmt.order_by(AuditLog.created_at.desc()))
    csv_text = render_csv(AUDIT_LOG_COLUMNS, result.scalars().all())
    return csv_response(csv_text, export_filename("audit_logs"))
