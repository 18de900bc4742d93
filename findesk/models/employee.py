"""Employee and monthly AttendanceSummary: the inputs to payroll.

Salary is stored annually; payroll works on `annual_salary / 12`.
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean, DateTime, Float, ForeignKey, Integer, String, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from findesk.database import Base
from findesk.utils.dates import utcnow


class Employee(Base):
    __tablename__ = "employees"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    employee_code: Mapped[str | None] = mapped_column(String(50), unique=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    department: Mapped[str | None] = mapped_column(String(100), index=True)
    annual_salary: Mapped[float | None] = mapped_column(Float)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )

    attendance = relationship(
        "AttendanceSummary", back_populates="employee", cascade="all, delete-orphan"
    )


class AttendanceSummary(Base):
    __tablename__ = "attendance_summaries"
    __table_args__ = (
        UniqueConstraint("employee_id", "month", "year", name="uq_attendance_period"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    employee_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True
    )
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)

    total_working_days: Mapped[int] = mapped_column(Integer, default=22)
    days_present: Mapped[float] = mapped_column(Float, default=0.0)
    days_absent: Mapped[float] = mapped_column(Float, default=0.0)
    # Approved leave counts towards paid days
    days_on_leave: Mapped[float] = mapped_column(Float, default=0.0)
    total_hours_worked: Mapped[float] = mapped_column(Float, default=0.0)
    overtime_hours: Mapped[float] = mapped_column(Float, default=0.0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )

    employee = relationship("Employee", back_populates="attendance")
