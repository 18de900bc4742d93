"""Invoice and InvoiceTask: invoices raised by either legal entity.

An invoice number is unique within its (invoice_type, month, year) scope.
`period_year` / `period_month` mirror `invoice_date` on every write so the
database can enforce that scope with a plain unique constraint.

Status:  in_progress | partially_paid | sent | paid | overdue
"""

import enum
import uuid
from datetime import date, datetime

from sqlalchemy import (
    Date, DateTime, Float, ForeignKey, Integer,
    JSON, String, Text, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from findesk.database import Base
from findesk.utils.dates import utcnow


class InvoiceType(str, enum.Enum):
    US_ENTITY = "Mechlin LLC"
    INDIAN_ENTITY = "Mechlin Indian"


class InvoiceStatus(str, enum.Enum):
    IN_PROGRESS = "in_progress"
    PARTIALLY_PAID = "partially_paid"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"


class Invoice(Base):
    __tablename__ = "invoices"
    __table_args__ = (
        UniqueConstraint(
            "invoice_type", "period_year", "period_month", "invoice_number",
            name="uq_invoices_number_scope",
        ),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    invoice_number: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    invoice_type: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    invoice_title: Mapped[str | None] = mapped_column(String(255))
    project: Mapped[str | None] = mapped_column(String(255))
    billing_reference: Mapped[str | None] = mapped_column(String(255))

    # ── Dates ────────────────────────────────────────────────
    invoice_date: Mapped[date | None] = mapped_column(Date, index=True)
    due_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    period_year: Mapped[int | None] = mapped_column(Integer)
    period_month: Mapped[int | None] = mapped_column(Integer)
    service_period_start: Mapped[date | None] = mapped_column(Date)
    service_period_end: Mapped[date | None] = mapped_column(Date)
    # LLC invoices may cite earlier invoice numbers
    reference_invoice_numbers: Mapped[list] = mapped_column(JSON, default=list)

    # ── Client (address auto-filled from client master) ──────
    client_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    client_address: Mapped[str | None] = mapped_column(Text)
    client_state: Mapped[str | None] = mapped_column(String(100))
    client_zip_code: Mapped[str | None] = mapped_column(String(20))

    # ── Amounts ──────────────────────────────────────────────
    currency: Mapped[str] = mapped_column(String(3), default="USD")
    invoice_amount: Mapped[float] = mapped_column(Float, default=0.0)
    payment_terms: Mapped[str] = mapped_column(String(30), default="net_30")
    notes_to_finance: Mapped[str | None] = mapped_column(Text)

    status: Mapped[str] = mapped_column(
        String(30), default=InvoiceStatus.IN_PROGRESS.value, index=True
    )

    # ── Payment (only populated once status = paid) ──────────
    payment_receive_date: Mapped[date | None] = mapped_column(Date)
    amount_received: Mapped[float | None] = mapped_column(Float)
    pending_amount: Mapped[float | None] = mapped_column(Float)
    payment_remarks: Mapped[str | None] = mapped_column(Text)

    # ── Metadata ─────────────────────────────────────────────
    assigned_finance_poc: Mapped[str | None] = mapped_column(String(255), index=True)
    created_by: Mapped[str | None] = mapped_column(String(255))
    last_modified_by: Mapped[str | None] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )

    tasks = relationship(
        "InvoiceTask",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceTask.display_order",
        lazy="selectin",
    )


class InvoiceTask(Base):
    __tablename__ = "invoice_tasks"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    invoice_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True
    )
    task_name: Mapped[str] = mapped_column(String(255), nullable=False)
    task_description: Mapped[str | None] = mapped_column(Text)
    hours: Mapped[float] = mapped_column(Float, nullable=False)
    rate_per_hour: Mapped[float] = mapped_column(Float, nullable=False)
    display_order: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    invoice = relationship("Invoice", back_populates="tasks")

    @property
    def total_amount(self) -> float:
        return self.hours * self.rate_per_hour
