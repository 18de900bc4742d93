"""BillingRecord: a client contract tracking billed amount against value.

`remaining_amount` is recomputed from `contract_value - billed_to_date`
whenever either side changes.  Billing records are deliberately not linked
to invoices, so nothing keeps `billed_to_date` in step with issued invoices.
"""

import uuid
from datetime import date, datetime

from sqlalchemy import Date, DateTime, Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from findesk.database import Base
from findesk.utils.dates import utcnow


class BillingRecord(Base):
    __tablename__ = "billing_records"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    client_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    project_name: Mapped[str | None] = mapped_column(String(255))

    # fixed | hourly | retainer | milestone
    contract_type: Mapped[str] = mapped_column(String(30), nullable=False)
    # one_time | monthly | quarterly | custom
    billing_cycle: Mapped[str] = mapped_column(String(30), nullable=False)
    contract_start_date: Mapped[date] = mapped_column(Date, nullable=False)
    contract_end_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    # ── Amounts ──────────────────────────────────────────────
    contract_value: Mapped[float] = mapped_column(Float, nullable=False)
    billed_to_date: Mapped[float] = mapped_column(Float, default=0.0)
    remaining_amount: Mapped[float] = mapped_column(Float, default=0.0)

    next_billing_date: Mapped[date | None] = mapped_column(Date, index=True)
    payment_terms: Mapped[str] = mapped_column(String(30), nullable=False)
    internal_notes: Mapped[str | None] = mapped_column(Text)

    # ── Metadata ─────────────────────────────────────────────
    assigned_to_finance: Mapped[str | None] = mapped_column(String(255))
    created_by: Mapped[str | None] = mapped_column(String(255))
    last_modified_by: Mapped[str | None] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )

    def recompute_remaining(self) -> None:
        self.remaining_amount = (self.contract_value or 0) - (self.billed_to_date or 0)
