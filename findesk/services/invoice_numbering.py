"""Sequential invoice numbering scoped by entity and calendar month.

Format:  {prefix}{MON}{seq:3}

  prefix  MT/ for the Indian entity, MECH/ for the US entity (configurable)
  MON     JAN..DEC taken from the invoice date
  seq     max(existing in scope) + 1, zero padded to 3 digits

Examples:  MECH/DEC003, MT/JAN001

Numbers re-seed at 001 for every (invoice_type, month, year).  The
allocated number is only a hint: the caller re-checks the scope before
insert and the `uq_invoices_number_scope` constraint rejects a concurrent
duplicate.
"""

from __future__ import annotations

import re
from datetime import date
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from findesk.config import settings
from findesk.models.invoice import Invoice, InvoiceType
from findesk.utils.dates import month_abbr

SEQ_WIDTH = 3


def invoice_prefix(invoice_type: InvoiceType | str) -> str:
    """Company prefix for an invoice type."""
    if InvoiceType(invoice_type) == InvoiceType.INDIAN_ENTITY:
        return settings.invoice_prefix_india
    return settings.invoice_prefix_us


def number_pattern(invoice_date: date, invoice_type: InvoiceType | str) -> str:
    """Static part of the number, e.g. MECH/DEC."""
    return f"{invoice_prefix(invoice_type)}{month_abbr(invoice_date)}"


def _in_scope(inv, invoice_date: date, invoice_type: str, pattern: str) -> bool:
    # Invoices without a date never count, even if the number looks right
    if not inv.invoice_date:
        return False
    return (
        inv.invoice_date.month == invoice_date.month
        and inv.invoice_date.year == invoice_date.year
        and inv.invoice_type == invoice_type
        and (inv.invoice_number or "").startswith(pattern)
    )


def allocate(
    invoice_date: date,
    invoice_type: InvoiceType | str,
    existing_invoices: Iterable,
) -> str:
    """Return the next free number for the scope of `invoice_date`.

    `existing_invoices` is any iterable of objects exposing `invoice_date`,
    `invoice_type` and `invoice_number`.  Numbers in scope that do not end
    in exactly three digits are treated as 0.
    """
    invoice_type = InvoiceType(invoice_type).value
    pattern = number_pattern(invoice_date, invoice_type)
    seq_re = re.compile(rf"^{re.escape(pattern)}(\d{{{SEQ_WIDTH}}})$")

    highest = 0
    for inv in existing_invoices:
        if not _in_scope(inv, invoice_date, invoice_type, pattern):
            continue
        match = seq_re.match(inv.invoice_number)
        if match:
            highest = max(highest, int(match.group(1)))

    return f"{pattern}{highest + 1:0{SEQ_WIDTH}d}"


async def scope_invoices(
    db: AsyncSession,
    invoice_date: date,
    invoice_type: str,
) -> list[Invoice]:
    pattern = number_pattern(invoice_date, invoice_type)
    result = await db.execute(
        select(Invoice).where(
            Invoice.invoice_type == invoice_type,
            Invoice.period_year == invoice_date.year,
            Invoice.period_month == invoice_date.month,
            Invoice.invoice_number.like(f"{pattern}%"),
        )
    )
    return list(result.scalars().all())


async def next_invoice_number(
    db: AsyncSession,
    invoice_date: date,
    invoice_type: InvoiceType | str,
) -> str:
    """Allocate against the current database snapshot of the scope."""
    invoice_type = InvoiceType(invoice_type).value
    existing = await scope_invoices(db, invoice_date, invoice_type)
    return allocate(invoice_date, invoice_type, existing)


async def number_in_use(
    db: AsyncSession,
    invoice_number: str,
    invoice_date: date,
    invoice_type: InvoiceType | str,
    exclude_id: str | None = None,
) -> bool:
    """True when another invoice already holds this number in its scope."""
    stmt = select(Invoice.id).where(
        Invoice.invoice_type == InvoiceType(invoice_type).value,
        Invoice.period_year == invoice_date.year,
        Invoice.period_month == invoice_date.month,
        Invoice.invoice_number == invoice_number,
    )
    if exclude_id:
        stmt = stmt.where(Invoice.id != exclude_id)
    result = await db.execute(stmt.limit(1))
    return result.scalar_one_or_none() is not None
