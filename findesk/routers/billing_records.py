"""Billing record router.

Endpoints:
    GET    /api/billing-records/          Filtered, paginated list
    GET    /api/billing-records/export    CSV of the filtered list
    GET    /api/billing-records/{id}      Single record
    POST   /api/billing-records/          Create
    PATCH  /api/billing-records/{id}      Update
    DELETE /api/billing-records/{id}      Hard delete
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from findesk.database import get_db
from findesk.deps import get_actor
from findesk.middleware.exceptions import BusinessLogicError, ResourceNotFoundError
from findesk.models.billing_record import BillingRecord
from findesk.schemas.billing_record import (
    BillingRecordCreate,
    BillingRecordOut,
    BillingRecordUpdate,
)
from findesk.schemas.common import PaginatedResponse
from findesk.services.dashboard import invalidate_dashboard
from findesk.utils.audit import diff_fields, log_change, log_field_changes
from findesk.utils.csv_export import BILLING_COLUMNS, csv_response, export_filename, render_csv

router = APIRouter()

AUDITED_FIELDS = tuple(BillingRecordUpdate.model_fields)
NULLABLE_FIELDS = ("project_name", "next_billing_date", "internal_notes", "assigned_to_finance")


def _filtered(search: str | None):
    stmt = select(BillingRecord)
    if search:
        q = f"%{search}%"
        stmt = stmt.where(
            or_(
                BillingRecord.client_name.ilike(q),
                BillingRecord.project_name.ilike(q),
            )
        )
    return stmt


async def _get_record(db: AsyncSession, record_id: str) -> BillingRecord:
    record = await db.get(BillingRecord, record_id)
    if record is None:
        raise ResourceNotFoundError("Billing record", record_id)
    return record


@router.get("/", response_model=PaginatedResponse[BillingRecordOut])
async def list_billing_records(
    search: str | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    stmt = _filtered(search)
    total = await db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
    result = await db.execute(
        stmt.order_by(BillingRecord.created_at.desc()).offset(offset).limit(limit)
    )
    return PaginatedResponse(
        items=[BillingRecordOut.model_validate(r) for r in result.scalars().all()],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/export")
async def export_billing_records(
    search: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(_filtered(search).order_by(BillingRecord.created_at.desc()))
    csv_text = render_csv(BILLING_COLUMNS, result.scalars().all())
    return csv_response(csv_text, export_filename("billing_records"))


@router.get("/{record_id}", response_model=BillingRecordOut)
async def get_billing_record(record_id: str, db: AsyncSession = Depends(get_db)):
    return BillingRecordOut.model_validate(await _get_record(db, record_id))


@router.post("/", response_model=BillingRecordOut, status_code=201)
async def create_billing_record(
    body: BillingRecordCreate,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    record = BillingRecord(**body.model_dump(), created_by=actor, last_modified_by=actor)
    record.recompute_remaining()
    db.add(record)
    await db.flush()

    await log_change(
        db, actor,
        action="created",
        entity_type="billing_record",
        entity_id=record.id,
        entity_code=record.project_name or record.client_name,
        new_value={"contract_value": record.contract_value, "billed_to_date": record.billed_to_date},
        details={"client_name": record.client_name},
    )
    await invalidate_dashboard()
    return BillingRecordOut.model_validate(record)


@router.patch("/{record_id}", response_model=BillingRecordOut)
async def update_billing_record(
    record_id: str,
    body: BillingRecordUpdate,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    record = await _get_record(db, record_id)
    before = {f: getattr(record, f) for f in AUDITED_FIELDS}

    updates = body.model_dump(exclude_unset=True)
    for key, value in updates.items():
        if value is None and key not in NULLABLE_FIELDS:
            continue
        setattr(record, key, value)
    if record.contract_end_date < record.contract_start_date:
        raise BusinessLogicError("contract_end_date must not be before contract_start_date")
    record.recompute_remaining()
    record.last_modified_by = actor
    await db.flush()

    changes = diff_fields(before, {f: getattr(record, f) for f in AUDITED_FIELDS}, AUDITED_FIELDS)
    await log_field_changes(
        db, actor,
        entity_type="billing_record",
        entity_id=record.id,
        entity_code=record.project_name or record.client_name,
        changes=changes,
        details={"client_name": record.client_name},
    )
    await invalidate_dashboard()
    return BillingRecordOut.model_validate(record)


@router.delete("/{record_id}", status_code=204)
async def delete_billing_record(
    record_id: str,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    record = await _get_record(db, record_id)
    await log_change(
        db, actor,
        action="deleted",
        entity_type="billing_record",
        entity_id=record.id,
        entity_code=record.project_name or record.client_name,
        details={"client_name": record.client_name},
    )
    await db.delete(record)
    await db.flush()
    await invalidate_dashboard()
