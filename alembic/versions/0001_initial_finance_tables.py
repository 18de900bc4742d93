"""Initial finance tables: invoices, billing, client master, payroll, audit.

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

from alembic import op
import sqlalchemy as sa


def upgrade() -> None:
    # ── Invoices ─────────────────────────────────────────────
    op.create_table(
        "invoices",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("invoice_number", sa.String(50), nullable=False),
        sa.Column("invoice_type", sa.String(30), nullable=False),
        sa.Column("invoice_title", sa.String(255)),
        sa.Column("project", sa.String(255)),
        sa.Column("billing_reference", sa.String(255)),
        sa.Column("invoice_date", sa.Date()),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("period_year", sa.Integer()),
        sa.Column("period_month", sa.Integer()),
        sa.Column("service_period_start", sa.Date()),
        sa.Column("service_period_end", sa.Date()),
        sa.Column("reference_invoice_numbers", sa.JSON()),
        sa.Column("client_name", sa.String(255), nullable=False),
        sa.Column("client_address", sa.Text()),
        sa.Column("client_state", sa.String(100)),
        sa.Column("client_zip_code", sa.String(20)),
        sa.Column("currency", sa.String(3)),
        sa.Column("invoice_amount", sa.Float()),
        sa.Column("payment_terms", sa.String(30)),
        sa.Column("notes_to_finance", sa.Text()),
        sa.Column("status", sa.String(30)),
        sa.Column("payment_receive_date", sa.Date()),
        sa.Column("amount_received", sa.Float()),
        sa.Column("pending_amount", sa.Float()),
        sa.Column("payment_remarks", sa.Text()),
        sa.Column("assigned_finance_poc", sa.String(255)),
        sa.Column("created_by", sa.String(255)),
        sa.Column("last_modified_by", sa.String(255)),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
        sa.UniqueConstraint(
            "invoice_type", "period_year", "period_month", "invoice_number",
            name="uq_invoices_number_scope",
        ),
    )
    for col in ("invoice_number", "invoice_type", "invoice_date", "due_date",
                "client_name", "status", "assigned_finance_poc"):
        op.create_index(f"ix_invoices_{col}", "invoices", [col])

    op.create_table(
        "invoice_tasks",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "invoice_id", sa.String(36),
            sa.ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("task_name", sa.String(255), nullable=False),
        sa.Column("task_description", sa.Text()),
        sa.Column("hours", sa.Float(), nullable=False),
        sa.Column("rate_per_hour", sa.Float(), nullable=False),
        sa.Column("display_order", sa.Integer()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_invoice_tasks_invoice_id", "invoice_tasks", ["invoice_id"])

    # ── Billing records ──────────────────────────────────────
    op.create_table(
        "billing_records",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("client_name", sa.String(255), nullable=False),
        sa.Column("project_name", sa.String(255)),
        sa.Column("contract_type", sa.String(30), nullable=False),
        sa.Column("billing_cycle", sa.String(30), nullable=False),
        sa.Column("contract_start_date", sa.Date(), nullable=False),
        sa.Column("contract_end_date", sa.Date(), nullable=False),
        sa.Column("contract_value", sa.Float(), nullable=False),
        sa.Column("billed_to_date", sa.Float()),
        sa.Column("remaining_amount", sa.Float()),
        sa.Column("next_billing_date", sa.Date()),
        sa.Column("payment_terms", sa.String(30), nullable=False),
        sa.Column("internal_notes", sa.Text()),
        sa.Column("assigned_to_finance", sa.String(255)),
        sa.Column("created_by", sa.String(255)),
        sa.Column("last_modified_by", sa.String(255)),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_billing_records_client_name", "billing_records", ["client_name"])
    op.create_index("ix_billing_records_contract_end_date", "billing_records", ["contract_end_date"])
    op.create_index("ix_billing_records_next_billing_date", "billing_records", ["next_billing_date"])

    # ── Client master ────────────────────────────────────────
    op.create_table(
        "client_master",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("client_name", sa.String(255), nullable=False),
        sa.Column("client_email", sa.String(255), nullable=False),
        sa.Column("recipient_name", sa.String(255), nullable=False),
        sa.Column("recipient_email", sa.String(255), nullable=False),
        sa.Column("address", sa.Text(), nullable=False),
        sa.Column("state", sa.String(100), nullable=False),
        sa.Column("zip_code", sa.String(20), nullable=False),
        sa.Column("country", sa.String(100)),
        sa.Column("phone", sa.String(50)),
        sa.Column("payment_terms_days", sa.Integer()),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        sa.Column("created_by", sa.String(255)),
        sa.Column("updated_by", sa.String(255)),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
        sa.UniqueConstraint("client_name", "client_email", name="uq_client_master_name_email"),
    )
    op.create_index("ix_client_master_client_name", "client_master", ["client_name"])
    op.create_index("ix_client_master_is_active", "client_master", ["is_active"])

    # ── Employees / attendance / adjustments ─────────────────
    op.create_table(
        "employees",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("employee_code", sa.String(50), unique=True),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("department", sa.String(100)),
        sa.Column("annual_salary", sa.Float()),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_employees_full_name", "employees", ["full_name"])
    op.create_index("ix_employees_department", "employees", ["department"])
    op.create_index("ix_employees_is_active", "employees", ["is_active"])

    op.create_table(
        "attendance_summaries",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "employee_id", sa.String(36),
            sa.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("total_working_days", sa.Integer(), server_default="22"),
        sa.Column("days_present", sa.Float(), server_default="0"),
        sa.Column("days_absent", sa.Float(), server_default="0"),
        sa.Column("days_on_leave", sa.Float(), server_default="0"),
        sa.Column("total_hours_worked", sa.Float(), server_default="0"),
        sa.Column("overtime_hours", sa.Float(), server_default="0"),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
        sa.UniqueConstraint("employee_id", "month", "year", name="uq_attendance_period"),
    )
    op.create_index("ix_attendance_summaries_employee_id", "attendance_summaries", ["employee_id"])

    op.create_table(
        "payroll_adjustments",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "employee_id", sa.String(36),
            sa.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("basic_salary", sa.Float()),
        sa.Column("allowances", sa.Float()),
        sa.Column("deductions", sa.Float()),
        sa.Column("bonus", sa.Float()),
        sa.Column("overtime_hours", sa.Float()),
        sa.Column("adjustment_reason", sa.Text(), nullable=False),
        sa.Column("adjusted_by", sa.String(255), nullable=False),
        sa.Column("adjusted_at", sa.DateTime(), server_default=sa.func.now()),
        sa.UniqueConstraint("employee_id", "month", "year", name="uq_payroll_adjustment_period"),
    )
    op.create_index("ix_payroll_adjustments_employee_id", "payroll_adjustments", ["employee_id"])

    # ── Audit log (no FK: entries outlive their entities) ────
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.String(36)),
        sa.Column("entity_code", sa.String(100)),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("field_name", sa.String(100)),
        sa.Column("old_value", sa.JSON()),
        sa.Column("new_value", sa.JSON()),
        sa.Column("changed_by", sa.String(255), nullable=False),
        sa.Column("change_reason", sa.Text()),
        sa.Column("details", sa.JSON()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    for col in ("entity_type", "entity_id", "action", "changed_by", "created_at"):
        op.create_index(f"ix_audit_logs_{col}", "audit_logs", [col])


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("payroll_adjustments")
    op.drop_table("attendance_summaries")
    op.drop_table("employees")
    op.drop_table("client_master")
    op.drop_table("billing_records")
    op.drop_table("invoice_tasks")
    op.drop_table("invoices")
