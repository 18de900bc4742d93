"""Payroll net-pay calculation for one (month, year) period.

Formula (monthly basic = annual salary / 12):

    hra              = 30% of basic
    gross            = basic + hra + allowances
    tax / pf / esi   = 10% / 12% / 0.75% of gross
    professional tax = flat amount (settings.professional_tax)
    net              = (gross - deductions) × attendance ratio
                       + bonus + overtime pay

Bonus and overtime pay are added after proration.  Admin overrides live
in PayrollAdjustment and are applied on top of the employee baseline;
the baseline itself is never mutated.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from findesk.config import settings
from findesk.middleware.exceptions import ResourceNotFoundError
from findesk.models.employee import AttendanceSummary, Employee
from findesk.models.payroll_adjustment import PayrollAdjustment
from findesk.utils.audit import diff_fields, log_change
from findesk.utils.dates import utcnow

logger = logging.getLogger(__name__)

HRA_RATE = 0.30
TAX_RATE = 0.10
PF_RATE = 0.12
ESI_RATE = 0.0075

OVERRIDE_FIELDS = ("basic_salary", "allowances", "deductions", "bonus", "overtime_hours")


@dataclass
class PayrollOverrides:
    """Values that replace (basic, overtime) or extend (the rest) the inputs."""

    basic_salary: float | None = None
    allowances: float | None = None
    deductions: float | None = None
    bonus: float | None = None
    overtime_hours: float | None = None

    @classmethod
    def from_adjustment(cls, adj: PayrollAdjustment | None) -> "PayrollOverrides":
        if adj is None:
            return cls()
        return cls(**{f: getattr(adj, f) for f in OVERRIDE_FIELDS})


@dataclass
class PayrollBreakdown:
    basic_salary: float
    hra: float
    allowances: float
    gross_pay: float
    tax_deduction: float
    pf_deduction: float
    esi_deduction: float
    professional_tax: float
    other_deductions: float
    total_deductions: float
    attendance_ratio: float
    bonus: float
    overtime_hours: float
    overtime_pay: float
    net_pay: float


@dataclass
class PayrollRecord:
    """Derived, never persisted: one employee's payroll for a period."""

    employee_id: str
    employee_code: str | None
    full_name: str
    email: str
    department: str | None
    month: int
    year: int
    base_salary: float
    monthly_salary: float
    total_working_days: int
    days_present: float
    days_on_leave: float
    days_absent: float
    attendance_percent: float
    breakdown: PayrollBreakdown
    adjustment_reason: str | None = None
    adjusted_by: str | None = None


# ── Pure calculator ──────────────────────────────────────────

def attendance_ratio(
    days_present: float,
    days_on_leave: float,
    total_working_days: int,
) -> float:
    """Paid days over working days.  Approved leave counts as paid."""
    if not total_working_days:
        return 1.0
    return ((days_present or 0) + (days_on_leave or 0)) / total_working_days


def overtime_pay(
    overtime_hours: float,
    basic_salary: float,
    working_days: int,
) -> float:
    if not overtime_hours:
        return 0.0
    days = working_days or settings.default_working_days
    hourly = basic_salary / (days * settings.standard_hours_per_day)
    return overtime_hours * hourly * settings.overtime_multiplier


def compute(
    basic_salary: float,
    ratio: float,
    overrides: PayrollOverrides | None = None,
    working_days: int | None = None,
) -> PayrollBreakdown:
    """Compute one month's pay.  Unrounded; callers round for display."""
    overrides = overrides or PayrollOverrides()
    working_days = working_days if working_days is not None else settings.default_working_days

    basic = overrides.basic_salary if overrides.basic_salary is not None else basic_salary
    basic = basic or 0.0
    hra = basic * HRA_RATE
    allowances = overrides.allowances or 0.0
    gross = basic + hra + allowances

    tax = gross * TAX_RATE
    pf = gross * PF_RATE
    esi = gross * ESI_RATE
    other = overrides.deductions or 0.0
    total_deductions = tax + pf + esi + settings.professional_tax + other

    bonus = overrides.bonus or 0.0
    ot_hours = overrides.overtime_hours or 0.0
    ot_pay = overtime_pay(ot_hours, basic, working_days)

    net = (gross - total_deductions) * ratio + bonus + ot_pay

    return PayrollBreakdown(
        basic_salary=basic,
        hra=hra,
        allowances=allowances,
        gross_pay=gross,
        tax_deduction=tax,
        pf_deduction=pf,
        esi_deduction=esi,
        professional_tax=settings.professional_tax,
        other_deductions=other,
        total_deductions=total_deductions,
        attendance_ratio=ratio,
        bonus=bonus,
        overtime_hours=ot_hours,
        overtime_pay=ot_pay,
        net_pay=net,
    )


def build_record(
    employee: Employee,
    month: int,
    year: int,
    attendance: AttendanceSummary | None,
    adjustment: PayrollAdjustment | None,
) -> PayrollRecord:
    """Assemble a PayrollRecord from the stored inputs."""
    base_salary = employee.annual_salary or 0.0
    monthly = base_salary / 12

    if attendance is not None:
        # A stored 0 means "not entered", not a zero-day month
        working_days = attendance.total_working_days or settings.default_working_days
        present = attendance.days_present or 0.0
        leave = attendance.days_on_leave or 0.0
        absent = attendance.days_absent or 0.0
        attendance_ot = attendance.overtime_hours or 0.0
    else:
        # No summary yet: nothing worked this month
        working_days = settings.default_working_days
        present = leave = absent = attendance_ot = 0.0

    overrides = PayrollOverrides.from_adjustment(adjustment)
    if overrides.overtime_hours is None:
        overrides.overtime_hours = attendance_ot

    ratio = attendance_ratio(present, leave, working_days)
    breakdown = compute(monthly, ratio, overrides, working_days)

    return PayrollRecord(
        employee_id=employee.id,
        employee_code=employee.employee_code,
        full_name=employee.full_name,
        email=employee.email,
        department=employee.department,
        month=month,
        year=year,
        base_salary=base_salary,
        monthly_salary=monthly,
        total_working_days=working_days,
        days_present=present,
        days_on_leave=leave,
        days_absent=absent,
        attendance_percent=ratio * 100,
        breakdown=breakdown,
        adjustment_reason=adjustment.adjustment_reason if adjustment else None,
        adjusted_by=adjustment.adjusted_by if adjustment else None,
    )


# ── Database aggregation ─────────────────────────────────────

async def _period_inputs(
    db: AsyncSession,
    month: int,
    year: int,
    employee_ids: list[str],
) -> tuple[dict[str, AttendanceSummary], dict[str, PayrollAdjustment]]:
    if not employee_ids:
        return {}, {}
    att_r = await db.execute(
        select(AttendanceSummary).where(
            AttendanceSummary.employee_id.in_(employee_ids),
            AttendanceSummary.month == month,
            AttendanceSummary.year == year,
        )
    )
    adj_r = await db.execute(
        select(PayrollAdjustment).where(
            PayrollAdjustment.employee_id.in_(employee_ids),
            PayrollAdjustment.month == month,
            PayrollAdjustment.year == year,
        )
    )
    attendance = {a.employee_id: a for a in att_r.scalars().all()}
    adjustments = {a.employee_id: a for a in adj_r.scalars().all()}
    return attendance, adjustments


async def build_period_payroll(
    db: AsyncSession,
    month: int,
    year: int,
    *,
    search: str | None = None,
    department: str | None = None,
) -> list[PayrollRecord]:
    """Payroll for every active employee matching the filters."""
    stmt = select(Employee).where(Employee.is_active == True)  # noqa: E712
    if department:
        stmt = stmt.where(Employee.department == department)
    if search:
        q = f"%{search}%"
        stmt = stmt.where(
            or_(
                Employee.full_name.ilike(q),
                Employee.employee_code.ilike(q),
                Employee.email.ilike(q),
            )
        )
    result = await db.execute(stmt.order_by(Employee.full_name))
    employees = list(result.scalars().all())

    attendance, adjustments = await _period_inputs(
        db, month, year, [e.id for e in employees]
    )
    records = [
        build_record(e, month, year, attendance.get(e.id), adjustments.get(e.id))
        for e in employees
    ]
    logger.info("Computed payroll for %d employees (%02d/%d)", len(records), month, year)
    return records


async def employee_payroll(
    db: AsyncSession,
    employee_id: str,
    month: int,
    year: int,
) -> PayrollRecord:
    employee = await db.get(Employee, employee_id)
    if employee is None:
        raise ResourceNotFoundError("Employee", employee_id)
    attendance, adjustments = await _period_inputs(db, month, year, [employee_id])
    return build_record(
        employee, month, year, attendance.get(employee_id), adjustments.get(employee_id)
    )


async def save_adjustment(
    db: AsyncSession,
    actor: str,
    employee_id: str,
    month: int,
    year: int,
    overrides: PayrollOverrides,
    reason: str,
) -> PayrollAdjustment:
    """Upsert the (employee, month, year) adjustment and audit the change."""
    employee = await db.get(Employee, employee_id)
    if employee is None:
        raise ResourceNotFoundError("Employee", employee_id)

    result = await db.execute(
        select(PayrollAdjustment).where(
            PayrollAdjustment.employee_id == employee_id,
            PayrollAdjustment.month == month,
            PayrollAdjustment.year == year,
        )
    )
    adj = result.scalar_one_or_none()
    before = {f: getattr(adj, f) for f in OVERRIDE_FIELDS} if adj else {}

    if adj is None:
        adj = PayrollAdjustment(
            employee_id=employee_id,
            month=month,
            year=year,
            adjustment_reason=reason,
            adjusted_by=actor,
        )
        db.add(adj)
        action = "created"
    else:
        action = "updated"

    for f in OVERRIDE_FIELDS:
        setattr(adj, f, getattr(overrides, f))
    adj.adjustment_reason = reason
    adj.adjusted_by = actor
    adj.adjusted_at = utcnow()
    await db.flush()

    changes = diff_fields(before, asdict(overrides), OVERRIDE_FIELDS)
    await log_change(
        db, actor,
        action=action,
        entity_type="payroll_adjustment",
        entity_id=adj.id,
        entity_code=employee.employee_code or employee.full_name,
        old_value={f: old for f, old, _ in changes} or None,
        new_value={f: new for f, _, new in changes} or None,
        reason=reason,
        details={
            "employee_id": employee_id,
            "employee_name": employee.full_name,
            "month": month,
            "year": year,
        },
    )
    logger.info(
        "Payroll adjustment %s for %s (%02d/%d) by %s",
        action, employee.full_name, month, year, actor,
    )
    return adj


async def generate_payslips(db: AsyncSession, month: int, year: int) -> dict:
    """Run the period payroll and summarise it.  Delivery happens elsewhere."""
    records = await build_period_payroll(db, month, year)
    total = round(sum(r.breakdown.net_pay for r in records), 2)
    logger.info("Payslip run %02d/%d: %d employees, net %.2f", month, year, len(records), total)
    return {"employees_processed": len(records), "total_net_pay": total}
