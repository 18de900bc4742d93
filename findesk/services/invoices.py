"""Invoice create / update / delete with numbering, totals and audit trail.

Write path for every invoice mutation:
  1. client address autofilled from the client master (exact name match)
  2. period_year / period_month mirrored from invoice_date
  3. invoice number allocated (create without a number) or checked
     against its scope (explicit number, or date / type / number edits)
  4. invoice_amount resolved from tasks or the manual amount
  5. payment fields kept only while status is paid
  6. one audit entry per changed field
"""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from findesk.config import settings
from findesk.middleware.exceptions import InvoiceNumberConflictError, ResourceNotFoundError
from findesk.models.client_master import ClientMaster
from findesk.models.invoice import Invoice, InvoiceStatus, InvoiceTask
from findesk.schemas.invoice import InvoiceCreate, InvoiceTaskIn, InvoiceUpdate
from findesk.services.invoice_numbering import next_invoice_number, number_in_use
from findesk.services.invoice_status import check_transition
from findesk.services.invoice_totals import compute_pending, resolve_invoice_amount
from findesk.utils.audit import diff_fields, log_change, log_field_changes
from findesk.utils.dates import today_ist

logger = logging.getLogger(__name__)

AUDITED_FIELDS = (
    "invoice_number", "invoice_type", "invoice_title", "project",
    "billing_reference", "invoice_date", "due_date",
    "service_period_start", "service_period_end", "reference_invoice_numbers",
    "client_name", "client_address", "client_state", "client_zip_code",
    "currency", "invoice_amount", "payment_terms", "notes_to_finance",
    "status", "payment_receive_date", "amount_received", "pending_amount",
    "payment_remarks", "assigned_finance_poc",
)

PAYMENT_FIELDS = ("payment_receive_date", "amount_received", "pending_amount", "payment_remarks")

# Explicit nulls on these are ignored on update
REQUIRED_FIELDS = (
    "invoice_number", "invoice_type", "due_date", "client_name",
    "currency", "payment_terms", "status",
)

NUMBER_CONSTRAINT_MARKERS = ("uq_invoices_number_scope", "invoices.invoice_number")


# ── Helpers ──────────────────────────────────────────────────

def _snapshot(invoice: Invoice) -> dict:
    return {f: getattr(invoice, f) for f in AUDITED_FIELDS}


def _task_rows(tasks: list[InvoiceTaskIn]) -> list[InvoiceTask]:
    return [
        InvoiceTask(
            task_name=t.task_name,
            task_description=t.task_description,
            hours=t.hours,
            rate_per_hour=t.rate_per_hour,
            display_order=i,
        )
        for i, t in enumerate(tasks)
    ]


def _task_summary(tasks) -> list[dict]:
    return [
        {"task_name": t.task_name, "hours": t.hours, "rate_per_hour": t.rate_per_hour}
        for t in tasks
    ]


def _set_period(invoice: Invoice) -> None:
    if invoice.invoice_date:
        invoice.period_year = invoice.invoice_date.year
        invoice.period_month = invoice.invoice_date.month
    else:
        invoice.period_year = None
        invoice.period_month = None


def _apply_payment_policy(invoice: Invoice) -> None:
    """Payment fields only exist on paid invoices."""
    if invoice.status == InvoiceStatus.PAID.value:
        invoice.pending_amount = compute_pending(
            invoice.invoice_amount, invoice.amount_received
        )
    else:
        for f in PAYMENT_FIELDS:
            setattr(invoice, f, None)


async def find_client(db: AsyncSession, client_name: str) -> ClientMaster | None:
    """First active client master row whose name matches exactly."""
    result = await db.execute(
        select(ClientMaster)
        .where(
            ClientMaster.client_name == client_name,
            ClientMaster.is_active == True,  # noqa: E712
        )
        .order_by(ClientMaster.created_at)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def _autofill_client(db: AsyncSession, invoice: Invoice) -> None:
    client = await find_client(db, invoice.client_name)
    if client is None:
        return
    invoice.client_address = client.address
    invoice.client_state = client.state
    invoice.client_zip_code = client.zip_code


async def _allocate_number(db: AsyncSession, invoice_date: date, invoice_type: str) -> str:
    candidate = ""
    for attempt in range(1, settings.invoice_number_max_attempts + 1):
        candidate = await next_invoice_number(db, invoice_date, invoice_type)
        if not await number_in_use(db, candidate, invoice_date, invoice_type):
            return candidate
        logger.warning(
            "Invoice number %s taken during allocation (attempt %d)", candidate, attempt
        )
    raise InvoiceNumberConflictError(candidate)


async def _ensure_number_free(db: AsyncSession, invoice: Invoice) -> None:
    if invoice.invoice_date is None:
        return
    if await number_in_use(
        db, invoice.invoice_number, invoice.invoice_date, invoice.invoice_type,
        exclude_id=invoice.id,
    ):
        suggested = await next_invoice_number(db, invoice.invoice_date, invoice.invoice_type)
        raise InvoiceNumberConflictError(invoice.invoice_number, suggested)


async def _flush(db: AsyncSession, invoice: Invoice) -> None:
    try:
        await db.flush()
    except IntegrityError as exc:
        if any(m in str(exc.orig) for m in NUMBER_CONSTRAINT_MARKERS):
            logger.warning("Concurrent insert took invoice number %s", invoice.invoice_number)
            raise InvoiceNumberConflictError(invoice.invoice_number) from exc
        raise


async def get_invoice(db: AsyncSession, invoice_id: str) -> Invoice:
    invoice = await db.get(Invoice, invoice_id)
    if invoice is None:
        raise ResourceNotFoundError("Invoice", invoice_id)
    return invoice


# ── Filters ──────────────────────────────────────────────────

def filter_invoices(
    stmt,
    *,
    search: str | None = None,
    status: str | None = None,
    client_name: str | None = None,
    invoice_type: str | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
):
    if search:
        q = f"%{search}%"
        stmt = stmt.where(
            or_(
                Invoice.invoice_title.ilike(q),
                Invoice.client_name.ilike(q),
                Invoice.project.ilike(q),
                Invoice.invoice_number.ilike(q),
            )
        )
    if status:
        stmt = stmt.where(Invoice.status == status)
    if client_name:
        stmt = stmt.where(Invoice.client_name == client_name)
    if invoice_type:
        stmt = stmt.where(Invoice.invoice_type == invoice_type)
    if date_from:
        stmt = stmt.where(Invoice.invoice_date >= date_from)
    if date_to:
        stmt = stmt.where(Invoice.invoice_date <= date_to)
    return stmt


# ── Mutations ────────────────────────────────────────────────

async def create_invoice(db: AsyncSession, actor: str, body: InvoiceCreate) -> Invoice:
    data = body.model_dump(exclude={"tasks", "invoice_amount", "invoice_number"})
    data["invoice_type"] = body.invoice_type.value
    data["status"] = body.status.value
    data["invoice_date"] = body.invoice_date or today_ist()

    invoice = Invoice(**data)
    invoice.tasks = _task_rows(body.tasks)
    invoice.invoice_amount = resolve_invoice_amount(invoice.tasks, body.invoice_amount)
    _set_period(invoice)
    await _autofill_client(db, invoice)

    if body.invoice_number:
        invoice.invoice_number = body.invoice_number
        await _ensure_number_free(db, invoice)
    else:
        invoice.invoice_number = await _allocate_number(
            db, invoice.invoice_date, invoice.invoice_type
        )

    invoice.invoice_title = invoice.invoice_title or invoice.invoice_number
    invoice.assigned_finance_poc = invoice.assigned_finance_poc or actor
    invoice.created_by = actor
    invoice.last_modified_by = actor
    _apply_payment_policy(invoice)

    db.add(invoice)
    await _flush(db, invoice)

    await log_change(
        db, actor,
        action="created",
        entity_type="invoice",
        entity_id=invoice.id,
        entity_code=invoice.invoice_number,
        new_value={
            "invoice_amount": invoice.invoice_amount,
            "status": invoice.status,
            "tasks": len(invoice.tasks),
        },
        details={"client_name": invoice.client_name},
    )
    logger.info("Invoice %s created by %s", invoice.invoice_number, actor)
    return invoice


async def update_invoice(
    db: AsyncSession,
    actor: str,
    invoice_id: str,
    body: InvoiceUpdate,
) -> Invoice:
    invoice = await get_invoice(db, invoice_id)
    before = _snapshot(invoice)
    old_tasks = _task_summary(invoice.tasks)

    updates = body.model_dump(exclude_unset=True)
    new_tasks = updates.pop("tasks", None)
    manual_amount = updates.pop("invoice_amount", invoice.invoice_amount)

    if updates.get("status") is not None:
        check_transition(invoice.status, updates["status"])

    for key, value in updates.items():
        if key in REQUIRED_FIELDS and value is None:
            continue
        setattr(invoice, key, getattr(value, "value", value))

    _set_period(invoice)
    # Lookups must not flush the half-applied edit
    with db.no_autoflush:
        if "client_name" in updates:
            await _autofill_client(db, invoice)
        if any(k in updates for k in ("invoice_number", "invoice_date", "invoice_type")):
            await _ensure_number_free(db, invoice)

    if new_tasks is not None:
        invoice.tasks = _task_rows(body.tasks)
    invoice.invoice_amount = resolve_invoice_amount(invoice.tasks, manual_amount)
    _apply_payment_policy(invoice)
    invoice.last_modified_by = actor

    await _flush(db, invoice)

    context = {"client_name": invoice.client_name}
    changes = diff_fields(before, _snapshot(invoice), AUDITED_FIELDS)
    await log_field_changes(
        db, actor,
        entity_type="invoice",
        entity_id=invoice.id,
        entity_code=invoice.invoice_number,
        changes=changes,
        status_field="status",
        details=context,
    )
    if new_tasks is not None and _task_summary(invoice.tasks) != old_tasks:
        await log_change(
            db, actor,
            action="updated",
            entity_type="invoice_task",
            entity_id=invoice.id,
            entity_code=invoice.invoice_number,
            field_name="tasks",
            old_value=old_tasks,
            new_value=_task_summary(invoice.tasks),
            details=context,
        )
    logger.info(
        "Invoice %s updated by %s (%d field changes)",
        invoice.invoice_number, actor, len(changes),
    )
    return invoice


async def delete_invoice(db: AsyncSession, actor: str, invoice_id: str) -> None:
    """Hard delete.  The invoice's audit entries are kept."""
    invoice = await get_invoice(db, invoice_id)
    await log_change(
        db, actor,
        action="deleted",
        entity_type="invoice",
        entity_id=invoice.id,
        entity_code=invoice.invoice_number,
        old_value={
            "invoice_amount": invoice.invoice_amount,
            "status": invoice.status,
        },
        details={"client_name": invoice.client_name},
    )
    await db.delete(invoice)
    await db.flush()
    logger.info("Invoice %s deleted by %s", invoice.invoice_number, actor)
