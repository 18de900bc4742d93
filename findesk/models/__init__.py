"""Aggregate model imports for Alembic auto-detection."""

# Invoicing
from findesk.models.invoice import Invoice, InvoiceStatus, InvoiceTask, InvoiceType  # noqa: F401
from findesk.models.billing_record import BillingRecord  # noqa: F401
from findesk.models.client_master import ClientMaster  # noqa: F401

# Payroll
from findesk.models.employee import AttendanceSummary, Employee  # noqa: F401
from findesk.models.payroll_adjustment import PayrollAdjustment  # noqa: F401

# Audit
from findesk.models.audit_log import AuditLog  # noqa: F401
