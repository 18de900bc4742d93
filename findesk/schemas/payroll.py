"""Pydantic schemas for computed payroll and admin adjustments."""

from datetime import datetime

from pydantic import BaseModel, Field, field_serializer, field_validator


class PayrollBreakdownOut(BaseModel):
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

    model_config = {"from_attributes": True}

    @field_serializer(
        "basic_salary", "hra", "allowances", "gross_pay", "tax_deduction",
        "pf_deduction", "esi_deduction", "professional_tax", "other_deductions",
        "total_deductions", "bonus", "overtime_pay", "net_pay",
    )
    def round_money(self, v: float) -> float:
        return round(v, 2)


class PayrollRecordOut(BaseModel):
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
    breakdown: PayrollBreakdownOut
    adjustment_reason: str | None = None
    adjusted_by: str | None = None

    model_config = {"from_attributes": True}

    @field_serializer("monthly_salary", "attendance_percent")
    def round_display(self, v: float) -> float:
        return round(v, 2)


class PayrollAdjustmentIn(BaseModel):
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=2000, le=2100)
    basic_salary: float | None = Field(None, ge=0)
    allowances: float | None = Field(None, ge=0)
    deductions: float | None = Field(None, ge=0)
    bonus: float | None = Field(None, ge=0)
    overtime_hours: float | None = Field(None, ge=0)
    adjustment_reason: str

    @field_validator("adjustment_reason")
    @classmethod
    def reason_required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Adjustment reason is required")
        return v.strip()


class PayrollAdjustmentOut(BaseModel):
    id: str
    employee_id: str
    month: int
    year: int
    basic_salary: float | None
    allowances: float | None
    deductions: float | None
    bonus: float | None
    overtime_hours: float | None
    adjustment_reason: str
    adjusted_by: str
    adjusted_at: datetime

    model_config = {"from_attributes": True}


class PayslipRunOut(BaseModel):
    month: int
    year: int
    employees_processed: int
    total_net_pay: float
