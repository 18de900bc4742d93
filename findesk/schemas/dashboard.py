"""Finance dashboard response."""

from pydantic import BaseModel


class DashboardStats(BaseModel):
    active_clients: int
    unpaid_invoice_count: int
    unpaid_invoice_amount: float
    billing_due_soon: int
    unpaid_billing_amount: float
    active_employees: int
    monthly_payroll: float
