"""CSV export: column definitions and rendering for every dataset.

Every field is double-quoted and embedded quotes are doubled, so values
containing commas or newlines survive a round trip through any
spreadsheet.  One row per record, after a header row.
"""

from __future__ import annotations

import csv
import io
import json
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from fastapi.responses import StreamingResponse

from findesk.utils.dates import format_date, format_timestamp, today_ist


@dataclass
class ColumnDef:
    header: str
    value: Callable[[Any], Any]


def money(v: float | None) -> str:
    return "" if v is None else f"{v:.2f}"


def _cell(v: Any) -> str:
    if v is None:
        return ""
    if isinstance(v, (list, dict)):
        return json.dumps(v, default=str)
    return str(v)


def render_csv(columns: list[ColumnDef], rows: Iterable[Any]) -> str:
    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow([c.header for c in columns])
    for row in rows:
        writer.writerow([_cell(c.value(row)) for c in columns])
    return output.getvalue()


def export_filename(dataset: str) -> str:
    """e.g. invoices_export_2026-03-31.csv (date in IST)."""
    return f"{dataset}_export_{format_date(today_ist())}.csv"


def csv_response(csv_text: str, filename: str) -> StreamingResponse:
    return StreamingResponse(
        iter([csv_text]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ── Datasets ─────────────────────────────────────────────────

INVOICE_COLUMNS = [
    ColumnDef("Invoice Number", lambda i: i.invoice_number),
    ColumnDef("Invoice Title", lambda i: i.invoice_title),
    ColumnDef("Invoice Type", lambda i: i.invoice_type),
    ColumnDef("Client Name", lambda i: i.client_name),
    ColumnDef("Project", lambda i: i.project),
    ColumnDef("Amount", lambda i: money(i.invoice_amount)),
    ColumnDef("Currency", lambda i: i.currency),
    ColumnDef("Invoice Date", lambda i: format_date(i.invoice_date)),
    ColumnDef("Due Date", lambda i: format_date(i.due_date)),
    ColumnDef("Status", lambda i: i.status),
    ColumnDef("Payment Terms", lambda i: i.payment_terms),
    ColumnDef("Assigned Finance POC", lambda i: i.assigned_finance_poc),
    ColumnDef("Created Date", lambda i: format_date(i.created_at)),
]

PAYROLL_COLUMNS = [
    ColumnDef("Employee ID", lambda r: r.employee_code),
    ColumnDef("Employee Name", lambda r: r.full_name),
    ColumnDef("Department", lambda r: r.department),
    ColumnDef("Base Salary", lambda r: money(r.base_salary)),
    ColumnDef("Monthly Salary", lambda r: money(r.monthly_salary)),
    ColumnDef("Gross Pay", lambda r: money(r.breakdown.gross_pay)),
    ColumnDef("Tax Deduction", lambda r: money(r.breakdown.tax_deduction)),
    ColumnDef("PF Deduction", lambda r: money(r.breakdown.pf_deduction)),
    ColumnDef("Total Deductions", lambda r: money(r.breakdown.total_deductions)),
    ColumnDef("Net Pay", lambda r: money(r.breakdown.net_pay)),
    ColumnDef("Total Working Days", lambda r: r.total_working_days),
    ColumnDef("Days Worked", lambda r: r.days_present),
    ColumnDef("Days on Leave", lambda r: r.days_on_leave),
    ColumnDef("Attendance %", lambda r: f"{r.attendance_percent:.1f}"),
]

BILLING_COLUMNS = [
    ColumnDef("Client Name", lambda b: b.client_name),
    ColumnDef("Project", lambda b: b.project_name),
    ColumnDef("Contract Type", lambda b: b.contract_type),
    ColumnDef("Billing Cycle", lambda b: b.billing_cycle),
    ColumnDef("Contract Value", lambda b: money(b.contract_value)),
    ColumnDef("Billed To Date", lambda b: money(b.billed_to_date)),
    ColumnDef("Remaining Amount", lambda b: money(b.remaining_amount)),
    ColumnDef("Next Billing Date", lambda b: format_date(b.next_billing_date)),
    ColumnDef("Payment Terms", lambda b: b.payment_terms),
]

AUDIT_LOG_COLUMNS = [
    ColumnDef("Date/Time", lambda a: format_timestamp(a.created_at, seconds=True)),
    ColumnDef("Reference", lambda a: a.entity_code),
    ColumnDef("Client Name", lambda a: (a.details or {}).get("client_name")),
    ColumnDef("Log Type", lambda a: a.entity_type),
    ColumnDef("Action", lambda a: a.action),
    ColumnDef("Field Changed", lambda a: a.field_name),
    ColumnDef("Old Value", lambda a: a.old_value),
    ColumnDef("New Value", lambda a: a.new_value),
    ColumnDef("Changed By", lambda a: a.changed_by),
    ColumnDef("Reason", lambda a: a.change_reason),
]
