"""Finance dashboard aggregates, cached in Redis.

Invoice and billing-record writes call `invalidate_dashboard()`.
"""

import logging
from datetime import date, timedelta

from sqlalchemy import distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from findesk.config import settings
from findesk.models.billing_record import BillingRecord
from findesk.models.employee import Employee
from findesk.models.invoice import Invoice
from findesk.services.invoice_status import UNPAID_STATUSES
from findesk.utils.cache import cached, invalidate_cache

logger = logging.getLogger(__name__)

DUE_SOON_DAYS = 7


@cached(ttl=settings.dashboard_cache_ttl, prefix="dashboard")
async def dashboard_stats(db: AsyncSession, *, today: date) -> dict:
    """Headline numbers for the finance desk as of `today` (IST)."""
    active_clients = await db.scalar(
        select(func.count(distinct(BillingRecord.client_name))).where(
            BillingRecord.contract_end_date >= today
        )
    )

    unpaid_r = await db.execute(
        select(func.count(), func.coalesce(func.sum(Invoice.invoice_amount), 0.0)).where(
            Invoice.status.in_(UNPAID_STATUSES)
        )
    )
    unpaid_count, unpaid_amount = unpaid_r.one()

    due_soon = await db.scalar(
        select(func.count()).select_from(BillingRecord).where(
            BillingRecord.next_billing_date >= today,
            BillingRecord.next_billing_date <= today + timedelta(days=DUE_SOON_DAYS),
        )
    )
    unpaid_billing = await db.scalar(
        select(func.coalesce(func.sum(BillingRecord.remaining_amount), 0.0)).where(
            BillingRecord.remaining_amount > 0
        )
    )

    emp_r = await db.execute(
        select(
            func.count(),
            func.coalesce(func.sum(Employee.annual_salary), 0.0),
        ).where(Employee.is_active == True)  # noqa: E712
    )
    active_employees, annual_total = emp_r.one()

    return {
        "active_clients": active_clients or 0,
        "unpaid_invoice_count": unpaid_count or 0,
        "unpaid_invoice_amount": round(float(unpaid_amount or 0), 2),
        "billing_due_soon": due_soon or 0,
        "unpaid_billing_amount": round(float(unpaid_billing or 0), 2),
        "active_employees": active_employees or 0,
        "monthly_payroll": round(float(annual_total or 0) / 12, 2),
    }


async def invalidate_dashboard() -> None:
    await invalidate_cache("dashboard:*")
