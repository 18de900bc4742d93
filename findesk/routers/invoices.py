"""Invoice router.

Endpoints:
    GET    /api/invoices/               Filtered, paginated list
    GET    /api/invoices/export         CSV of the filtered list
    GET    /api/invoices/next-number    Next free number for a (date, type)
    POST   /api/invoices/draft          Apply one action to an invoice draft
    GET    /api/invoices/{id}           Invoice with tasks
    POST   /api/invoices/               Create (number auto-assigned if omitted)
    PATCH  /api/invoices/{id}           Update; a task list replaces all tasks
    DELETE /api/invoices/{id}           Hard delete (audit entries are kept)
    GET    /api/invoices/{id}/logs      Audit entries for one invoice
"""

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from findesk.database import get_db
from findesk.deps import get_actor
from findesk.models.audit_log import AuditLog
from findesk.models.invoice import Invoice, InvoiceStatus, InvoiceType
from findesk.schemas.audit_log import AuditLogOut
from findesk.schemas.common import PaginatedResponse
from findesk.schemas.invoice import (
    DraftActionRequest,
    InvoiceCreate,
    InvoiceDraftSchema,
    InvoiceOut,
    InvoiceUpdate,
    NextNumberOut,
)
from findesk.services import invoices as invoice_service
from findesk.services.dashboard import invalidate_dashboard
from findesk.services.invoice_draft import DraftTask, InvoiceDraft, allocation_scope, reduce
from findesk.services.invoice_numbering import next_invoice_number, scope_invoices
from findesk.utils.csv_export import INVOICE_COLUMNS, csv_response, export_filename, render_csv
from findesk.utils.dates import today_ist

router = APIRouter()


def _filtered(
    search: str | None,
    invoice_status: InvoiceStatus | None,
    client_name: str | None,
    invoice_type: InvoiceType | None,
    date_from: date | None,
    date_to: date | None,
):
    return invoice_service.filter_invoices(
        select(Invoice),
        search=search,
        status=invoice_status.value if invoice_status else None,
        client_name=client_name,
        invoice_type=invoice_type.value if invoice_type else None,
        date_from=date_from,
        date_to=date_to,
    )


# ── List / export ────────────────────────────────────────────

@router.get("/", response_model=PaginatedResponse[InvoiceOut])
async def list_invoices(
    search: str | None = Query(None),
    invoice_status: InvoiceStatus | None = Query(None, alias="status"),
    client_name: str | None = Query(None),
    invoice_type: InvoiceType | None = Query(None),
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    stmt = _filtered(search, invoice_status, client_name, invoice_type, date_from, date_to)
    total = await db.scalar(select(func.count()).select_from(stmt.subquery())) or 0

    result = await db.execute(
        stmt.order_by(Invoice.created_at.desc()).offset(offset).limit(limit)
    )
    return PaginatedResponse(
        items=[InvoiceOut.model_validate(i) for i in result.scalars().all()],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/export")
async def export_invoices(
    search: str | None = Query(None),
    invoice_status: InvoiceStatus | None = Query(None, alias="status"),
    client_name: str | None = Query(None),
    invoice_type: InvoiceType | None = Query(None),
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Every filtered invoice as a quoted CSV attachment."""
    stmt = _filtered(search, invoice_status, client_name, invoice_type, date_from, date_to)
    result = await db.execute(stmt.order_by(Invoice.created_at.desc()))
    csv_text = render_csv(INVOICE_COLUMNS, result.scalars().all())
    return csv_response(csv_text, export_filename("invoices"))


# ── Numbering / draft ────────────────────────────────────────

@router.get("/next-number", response_model=NextNumberOut)
async def get_next_number(
    invoice_type: InvoiceType = Query(InvoiceType.US_ENTITY),
    invoice_date: date | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Suggested number only; it is re-checked when the invoice is saved."""
    invoice_date = invoice_date or today_ist()
    number = await next_invoice_number(db, invoice_date, invoice_type)
    return NextNumberOut(
        invoice_number=number,
        invoice_type=invoice_type.value,
        invoice_date=invoice_date,
    )


@router.post("/draft", response_model=InvoiceDraftSchema)
async def apply_draft_action(
    body: DraftActionRequest,
    db: AsyncSession = Depends(get_db),
):
    data = body.draft.model_dump()
    data["invoice_type"] = body.draft.invoice_type.value
    data["status"] = body.draft.status.value
    data["tasks"] = tuple(DraftTask(**t) for t in data["tasks"])
    draft = InvoiceDraft(**data)

    existing = []
    scope = allocation_scope(draft, body.action, body.payload)
    if scope:
        existing = await scope_invoices(db, *scope)

    next_draft = reduce(draft, body.action, body.payload, existing)
    return InvoiceDraftSchema.model_validate(next_draft)


# ── CRUD ─────────────────────────────────────────────────────

@router.get("/{invoice_id}", response_model=InvoiceOut)
async def get_invoice(invoice_id: str, db: AsyncSession = Depends(get_db)):
    invoice = await invoice_service.get_invoice(db, invoice_id)
    return InvoiceOut.model_validate(invoice)


@router.post("/", response_model=InvoiceOut, status_code=201)
async def create_invoice(
    body: InvoiceCreate,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    invoice = await invoice_service.create_invoice(db, actor, body)
    await invalidate_dashboard()
    return InvoiceOut.model_validate(invoice)


@router.patch("/{invoice_id}", response_model=InvoiceOut)
async def update_invoice(
    invoice_id: str,
    body: InvoiceUpdate,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    invoice = await invoice_service.update_invoice(db, actor, invoice_id, body)
    await invalidate_dashboard()
    return InvoiceOut.model_validate(invoice)


@router.delete("/{invoice_id}", status_code=204)
async def delete_invoice(
    invoice_id: str,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    await invoice_service.delete_invoice(db, actor, invoice_id)
    await invalidate_dashboard()


@router.get("/{invoice_id}/logs", response_model=list[AuditLogOut])
async def invoice_logs(invoice_id: str, db: AsyncSession = Depends(get_db)):
    """Audit trail of one invoice, newest first.  Works after deletion."""
    result = await db.execute(
        select(AuditLog)
        .where(AuditLog.entity_id == invoice_id)
        .order_by(AuditLog.created_at.desc())
    )
    return [AuditLogOut.model_validate(a) for a in result.scalars().all()]
