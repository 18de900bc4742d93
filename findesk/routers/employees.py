"""Employee router: the salary and attendance inputs to payroll.

Endpoints:
    GET   /api/employees/                  List employees
    POST  /api/employees/                  Create employee
    GET   /api/employees/{id}              Single employee
    PATCH /api/employees/{id}              Update employee
    PUT   /api/employees/{id}/attendance   Upsert one month's attendance summary
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from findesk.database import get_db
from findesk.models.employee import AttendanceSummary, Employee
from findesk.schemas.employee import (
    AttendanceOut,
    AttendanceUpsert,
    EmployeeCreate,
    EmployeeOut,
    EmployeeUpdate,
)
from findesk.services.dashboard import invalidate_dashboard

router = APIRouter()


async def _get_employee(db: AsyncSession, employee_id: str) -> Employee:
    employee = await db.get(Employee, employee_id)
    if not employee:
        raise HTTPException(status_code=404, detail="Employee not found")
    return employee


@router.get("/", response_model=list[EmployeeOut])
async def list_employees(
    include_inactive: bool = False,
    search: str | None = Query(None),
    department: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    query = select(Employee)
    if not include_inactive:
        query = query.where(Employee.is_active == True)  # noqa: E712
    if department:
        query = query.where(Employee.department == department)
    if search:
        q = f"%{search}%"
        query = query.where(
            or_(
                Employee.full_name.ilike(q),
                Employee.employee_code.ilike(q),
                Employee.email.ilike(q),
            )
        )
    result = await db.execute(query.order_by(Employee.full_name))
    return [EmployeeOut.model_validate(e) for e in result.scalars().all()]


@router.post("/", response_model=EmployeeOut, status_code=201)
async def create_employee(body: EmployeeCreate, db: AsyncSession = Depends(get_db)):
    existing = await db.execute(select(Employee).where(Employee.email == body.email))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=400, detail=f"Employee '{body.email}' already exists")

    employee = Employee(**body.model_dump())
    db.add(employee)
    await db.flush()
    await invalidate_dashboard()
    return EmployeeOut.model_validate(employee)


@router.get("/{employee_id}", response_model=EmployeeOut)
async def get_employee(employee_id: str, db: AsyncSession = Depends(get_db)):
    return EmployeeOut.model_validate(await _get_employee(db, employee_id))


@router.patch("/{employee_id}", response_model=EmployeeOut)
async def update_employee(
    employee_id: str,
    body: EmployeeUpdate,
    db: AsyncSession = Depends(get_db),
):
    employee = await _get_employee(db, employee_id)
    for key, value in body.model_dump(exclude_unset=True).items():
        if value is None and key in ("full_name", "email", "is_active"):
            continue
        setattr(employee, key, value)
    await db.flush()
    await invalidate_dashboard()
    return EmployeeOut.model_validate(employee)


@router.put("/{employee_id}/attendance", response_model=AttendanceOut)
async def upsert_attendance(
    employee_id: str,
    body: AttendanceUpsert,
    db: AsyncSession = Depends(get_db),
):
    await _get_employee(db, employee_id)
    result = await db.execute(
        select(AttendanceSummary).where(
            AttendanceSummary.employee_id == employee_id,
            AttendanceSummary.month == body.month,
            AttendanceSummary.year == body.year,
        )
    )
    summary = result.scalar_one_or_none()
    if summary is None:
        summary = AttendanceSummary(employee_id=employee_id)
        db.add(summary)

    for key, value in body.model_dump().items():
        setattr(summary, key, value)
    await db.flush()
    return AttendanceOut.model_validate(summary)
