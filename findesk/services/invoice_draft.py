"""Invoice draft state and its transitions.

A draft is the in-progress state of the invoice form: an immutable value
that only changes through `reduce(draft, action, payload, existing)`.

Actions:
    set_invoice_date     {"invoice_date": date}
    set_invoice_type     {"invoice_type": "Mechlin LLC" | "Mechlin Indian"}
    set_invoice_number   {"invoice_number": str}
    regenerate_number    {}
    add_task             {"task_name", "hours", "rate_per_hour", "task_description"?}
    remove_task          {"index": int}
    set_manual_amount    {"amount": float | None}
    set_amount_received  {"amount": float | None}
    set_status           {"status": str}

Date and type changes re-allocate the number only for new invoices
(`editing_invoice_id is None`).  Task and amount changes recompute
`invoice_amount` and `pending_amount`.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from typing import Any, Callable, Iterable

from findesk.middleware.exceptions import BusinessLogicError
from findesk.models.invoice import InvoiceStatus, InvoiceType
from findesk.services.invoice_numbering import allocate
from findesk.services.invoice_status import check_transition
from findesk.services.invoice_totals import compute_pending, resolve_invoice_amount


@dataclass(frozen=True)
class DraftTask:
    task_name: str
    hours: float
    rate_per_hour: float
    task_description: str | None = None


@dataclass(frozen=True)
class InvoiceDraft:
    invoice_type: str = InvoiceType.US_ENTITY.value
    invoice_date: date | None = None
    invoice_number: str = ""
    tasks: tuple[DraftTask, ...] = ()
    manual_amount: float | None = None
    invoice_amount: float = 0.0
    amount_received: float | None = None
    pending_amount: float | None = None
    status: str = InvoiceStatus.IN_PROGRESS.value
    editing_invoice_id: str | None = None


def _with_amounts(draft: InvoiceDraft) -> InvoiceDraft:
    amount = resolve_invoice_amount(list(draft.tasks), draft.manual_amount)
    pending = None
    if draft.amount_received is not None:
        pending = compute_pending(amount, draft.amount_received)
    return replace(draft, invoice_amount=amount, pending_amount=pending)


def _with_number(draft: InvoiceDraft, existing: Iterable) -> InvoiceDraft:
    if draft.editing_invoice_id is not None or draft.invoice_date is None:
        return draft
    return replace(
        draft,
        invoice_number=allocate(draft.invoice_date, draft.invoice_type, existing),
    )


def _require(payload: dict, key: str) -> Any:
    if key not in payload:
        raise BusinessLogicError(f"Missing '{key}' in action payload", "INVALID_DRAFT_ACTION")
    return payload[key]


def _parse_date(value) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as exc:
        raise BusinessLogicError(f"Invalid invoice date: {value}", "INVALID_DRAFT_ACTION") from exc


def _parse_type(value) -> str:
    try:
        return InvoiceType(value).value
    except ValueError as exc:
        raise BusinessLogicError(f"Invalid invoice type: {value}", "INVALID_DRAFT_ACTION") from exc


# ── Action handlers ──────────────────────────────────────────

def _set_invoice_date(draft, payload, existing):
    value = _parse_date(_require(payload, "invoice_date"))
    return _with_number(replace(draft, invoice_date=value), existing)


def _set_invoice_type(draft, payload, existing):
    value = _parse_type(_require(payload, "invoice_type"))
    return _with_number(replace(draft, invoice_type=value), existing)


def _set_invoice_number(draft, payload, existing):
    return replace(draft, invoice_number=str(_require(payload, "invoice_number")))


def _regenerate_number(draft, payload, existing):
    return _with_number(draft, existing)


def _add_task(draft, payload, existing):
    hours = float(_require(payload, "hours"))
    rate = float(_require(payload, "rate_per_hour"))
    if hours <= 0 or rate <= 0:
        raise BusinessLogicError("Task hours and rate must be greater than 0", "INVALID_TASK")
    task = DraftTask(
        task_name=str(_require(payload, "task_name")),
        hours=hours,
        rate_per_hour=rate,
        task_description=payload.get("task_description"),
    )
    return _with_amounts(replace(draft, tasks=draft.tasks + (task,)))


def _remove_task(draft, payload, existing):
    index = int(_require(payload, "index"))
    if not 0 <= index < len(draft.tasks):
        raise BusinessLogicError(f"No task at index {index}", "INVALID_TASK")
    tasks = draft.tasks[:index] + draft.tasks[index + 1:]
    return _with_amounts(replace(draft, tasks=tasks))


def _parse_amount(value) -> float | None:
    if value is None:
        return None
    amount = float(value)
    if amount < 0:
        raise BusinessLogicError("Amounts must not be negative", "INVALID_DRAFT_ACTION")
    return amount


def _set_manual_amount(draft, payload, existing):
    amount = _parse_amount(_require(payload, "amount"))
    return _with_amounts(replace(draft, manual_amount=amount))


def _set_amount_received(draft, payload, existing):
    amount = _parse_amount(_require(payload, "amount"))
    return _with_amounts(replace(draft, amount_received=amount))


def _set_status(draft, payload, existing):
    try:
        status = InvoiceStatus(_require(payload, "status")).value
    except ValueError as exc:
        raise BusinessLogicError(f"Invalid status: {payload['status']}", "INVALID_DRAFT_ACTION") from exc
    check_transition(draft.status, status)
    return replace(draft, status=status)


ACTIONS: dict[str, Callable[[InvoiceDraft, dict, Iterable], InvoiceDraft]] = {
    "set_invoice_date": _set_invoice_date,
    "set_invoice_type": _set_invoice_type,
    "set_invoice_number": _set_invoice_number,
    "regenerate_number": _regenerate_number,
    "add_task": _add_task,
    "remove_task": _remove_task,
    "set_manual_amount": _set_manual_amount,
    "set_amount_received": _set_amount_received,
    "set_status": _set_status,
}

# Actions whose result depends on the existing invoices of a scope
ALLOCATING_ACTIONS = {"set_invoice_date", "set_invoice_type", "regenerate_number"}


def reduce(
    draft: InvoiceDraft,
    action: str,
    payload: dict | None = None,
    existing: Iterable = (),
) -> InvoiceDraft:
    """Apply one action and return the next draft.  `draft` is untouched."""
    handler = ACTIONS.get(action)
    if handler is None:
        raise BusinessLogicError(f"Unknown draft action: {action}", "INVALID_DRAFT_ACTION")
    try:
        return handler(draft, payload or {}, existing)
    except (TypeError, ValueError) as exc:
        raise BusinessLogicError(
            f"Invalid payload for {action}: {exc}", "INVALID_DRAFT_ACTION"
        ) from exc


def allocation_scope(
    draft: InvoiceDraft,
    action: str,
    payload: dict | None = None,
) -> tuple[date, str] | None:
    """The (date, type) whose invoices `reduce` needs, or None."""
    if action not in ALLOCATING_ACTIONS or draft.editing_invoice_id is not None:
        return None
    payload = payload or {}
    invoice_date = draft.invoice_date
    invoice_type = draft.invoice_type
    if action == "set_invoice_date" and payload.get("invoice_date"):
        invoice_date = _parse_date(payload["invoice_date"])
    if action == "set_invoice_type" and payload.get("invoice_type"):
        invoice_type = _parse_type(payload["invoice_type"])
    if invoice_date is None:
        return None
    return invoice_date, invoice_type
