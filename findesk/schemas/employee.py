"""Pydantic schemas for employees and monthly attendance."""

from datetime import datetime

from pydantic import BaseModel, Field, model_validator


class EmployeeCreate(BaseModel):
    employee_code: str | None = Field(None, max_length=50)
    full_name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., max_length=255)
    department: str | None = None
    annual_salary: float | None = Field(None, ge=0)


class EmployeeUpdate(BaseModel):
    employee_code: str | None = None
    full_name: str | None = Field(None, min_length=1, max_length=255)
    email: str | None = None
    department: str | None = None
    annual_salary: float | None = Field(None, ge=0)
    is_active: bool | None = None


class EmployeeOut(BaseModel):
    id: str
    employee_code: str | None
    full_name: str
    email: str
    department: str | None
    annual_salary: float | None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class AttendanceUpsert(BaseModel):
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=2000, le=2100)
    total_working_days: int = Field(22, ge=0, le=31)
    days_present: float = Field(0.0, ge=0)
    days_absent: float = Field(0.0, ge=0)
    days_on_leave: float = Field(0.0, ge=0)
    total_hours_worked: float = Field(0.0, ge=0)
    overtime_hours: float = Field(0.0, ge=0)

    @model_validator(mode="after")
    def days_within_month(self):
        if self.days_present + self.days_on_leave > self.total_working_days:
            raise ValueError("days_present + days_on_leave cannot exceed total_working_days")
        return self


class AttendanceOut(BaseModel):
    id: str
    employee_id: str
    month: int
    year: int
    total_working_days: int
    days_present: float
    days_absent: float
    days_on_leave: float
    total_hours_worked: float
    overtime_hours: float

    model_config = {"from_attributes": True}
