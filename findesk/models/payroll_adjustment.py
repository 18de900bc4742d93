"""PayrollAdjustment: an admin override for one employee's month.

Overrides never touch the employee baseline; payroll is recomputed with the
adjustment applied on top.  One row per (employee, month, year), upserted.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from findesk.database import Base
from findesk.utils.dates import utcnow


class PayrollAdjustment(Base):
    __tablename__ = "payroll_adjustments"
    __table_args__ = (
        UniqueConstraint("employee_id", "month", "year", name="uq_payroll_adjustment_period"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    employee_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True
    )
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)

    # ── Overrides (None = use computed value) ────────────────
    basic_salary: Mapped[float | None] = mapped_column(Float)
    allowances: Mapped[float | None] = mapped_column(Float)
    deductions: Mapped[float | None] = mapped_column(Float)
    bonus: Mapped[float | None] = mapped_column(Float)
    overtime_hours: Mapped[float | None] = mapped_column(Float)

    adjustment_reason: Mapped[str] = mapped_column(Text, nullable=False)
    adjusted_by: Mapped[str] = mapped_column(String(255), nullable=False)
    adjusted_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    employee = relationship("Employee", lazy="selectin")
