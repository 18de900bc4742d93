"""Payroll router.

Payroll is computed on read from salary, attendance and adjustments; only
adjustments are stored.

Endpoints:
    GET  /api/payroll/                           Period payroll (filtered)
    GET  /api/payroll/export                     Period payroll as CSV
    POST /api/payroll/payslips                   Payslip run summary
    GET  /api/payroll/{employee_id}              One employee's breakdown
    PUT  /api/payroll/{employee_id}/adjustment   Save an override (reason required)
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from findesk.database import get_db
from findesk.deps import get_actor, period_query
from findesk.schemas.payroll import (
    PayrollAdjustmentIn,
    PayrollAdjustmentOut,
    PayrollRecordOut,
    PayslipRunOut,
)
from findesk.services import payroll as payroll_service
from findesk.utils.csv_export import PAYROLL_COLUMNS, csv_response, export_filename, render_csv

router = APIRouter()


@router.get("/", response_model=list[PayrollRecordOut])
async def list_payroll(
    period: tuple[int, int] = Depends(period_query),
    search: str | None = Query(None),
    department: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    month, year = period
    records = await payroll_service.build_period_payroll(
        db, month, year, search=search, department=department
    )
    return [PayrollRecordOut.model_validate(r) for r in records]


@router.get("/export")
async def export_payroll(
    period: tuple[int, int] = Depends(period_query),
    search: str | None = Query(None),
    department: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    month, year = period
    records = await payroll_service.build_period_payroll(
        db, month, year, search=search, department=department
    )
    return csv_response(render_csv(PAYROLL_COLUMNS, records), export_filename("payroll"))


@router.post("/payslips", response_model=PayslipRunOut)
async def generate_payslips(
    period: tuple[int, int] = Depends(period_query),
    db: AsyncSession = Depends(get_db),
):
    month, year = period
    summary = await payroll_service.generate_payslips(db, month, year)
    return PayslipRunOut(month=month, year=year, **summary)


@router.get("/{employee_id}", response_model=PayrollRecordOut)
async def get_employee_payroll(
    employee_id: str,
    period: tuple[int, int] = Depends(period_query),
    db: AsyncSession = Depends(get_db),
):
    month, year = period
    record = await payroll_service.employee_payroll(db, employee_id, month, year)
    return PayrollRecordOut.model_validate(record)


@router.put("/{employee_id}/adjustment", response_model=PayrollAdjustmentOut)
async def save_adjustment(
    employee_id: str,
    body: PayrollAdjustmentIn,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    overrides = payroll_service.PayrollOverrides(
        basic_salary=body.basic_salary,
        allowances=body.allowances,
        deductions=body.deductions,
        bonus=body.bonus,
        overtime_hours=body.overtime_hours,
    )
    adj = await payroll_service.save_adjustment(
        db, actor, employee_id, body.month, body.year, overrides, body.adjustment_reason
    )
    return PayrollAdjustmentOut.model_validate(adj)
