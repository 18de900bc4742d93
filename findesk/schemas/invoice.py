"""Pydantic schemas for invoices, invoice tasks and the invoice draft."""

from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator

from findesk.models.invoice import InvoiceStatus, InvoiceType

CURRENCIES = ("USD", "INR", "EUR", "GBP")
PAYMENT_TERMS = ("net_15", "net_30", "custom")


def _check_currency(v: str | None) -> str | None:
    if v is not None and v not in CURRENCIES:
        raise ValueError(f"currency must be one of {', '.join(CURRENCIES)}")
    return v


def _check_terms(v: str | None) -> str | None:
    if v is not None and v not in PAYMENT_TERMS:
        raise ValueError(f"payment_terms must be one of {', '.join(PAYMENT_TERMS)}")
    return v


# ── Tasks ────────────────────────────────────────────────────

class InvoiceTaskIn(BaseModel):
    task_name: str = Field(..., min_length=1, max_length=255)
    task_description: str | None = None
    hours: float = Field(..., gt=0)
    rate_per_hour: float = Field(..., gt=0)


class InvoiceTaskOut(BaseModel):
    id: str
    task_name: str
    task_description: str | None
    hours: float
    rate_per_hour: float
    display_order: int
    total_amount: float

    model_config = {"from_attributes": True}


# ── Invoice ──────────────────────────────────────────────────

class InvoiceCreate(BaseModel):
    # Omit to have the next number in scope assigned
    invoice_number: str | None = Field(None, max_length=50)
    invoice_type: InvoiceType = InvoiceType.US_ENTITY
    invoice_title: str | None = Field(None, max_length=255)
    project: str | None = None
    billing_reference: str | None = None
    invoice_date: date | None = None
    due_date: date
    service_period_start: date | None = None
    service_period_end: date | None = None
    reference_invoice_numbers: list[str] = []
    client_name: str = Field(..., min_length=1, max_length=255)
    client_address: str | None = None
    client_state: str | None = None
    client_zip_code: str | None = None
    currency: str = "USD"
    payment_terms: str = "net_30"
    notes_to_finance: str | None = None
    # Manual amount; ignored when tasks are given
    invoice_amount: float | None = Field(None, ge=0)
    status: InvoiceStatus = InvoiceStatus.IN_PROGRESS
    payment_receive_date: date | None = None
    amount_received: float | None = Field(None, ge=0)
    payment_remarks: str | None = None
    assigned_finance_poc: str | None = None
    tasks: list[InvoiceTaskIn] = []

    @field_validator("currency")
    @classmethod
    def valid_currency(cls, v: str | None) -> str | None:
        return _check_currency(v)

    @field_validator("payment_terms")
    @classmethod
    def valid_terms(cls, v: str | None) -> str | None:
        return _check_terms(v)


class InvoiceUpdate(BaseModel):
    invoice_number: str | None = Field(None, min_length=1, max_length=50)
    invoice_type: InvoiceType | None = None
    invoice_title: str | None = None
    project: str | None = None
    billing_reference: str | None = None
    invoice_date: date | None = None
    due_date: date | None = None
    service_period_start: date | None = None
    service_period_end: date | None = None
    reference_invoice_numbers: list[str] | None = None
    client_name: str | None = Field(None, min_length=1, max_length=255)
    client_address: str | None = None
    client_state: str | None = None
    client_zip_code: str | None = None
    currency: str | None = None
    payment_terms: str | None = None
    notes_to_finance: str | None = None
    invoice_amount: float | None = Field(None, ge=0)
    status: InvoiceStatus | None = None
    payment_receive_date: date | None = None
    amount_received: float | None = Field(None, ge=0)
    payment_remarks: str | None = None
    assigned_finance_poc: str | None = None
    # None keeps the current tasks; a list (even empty) replaces them
    tasks: list[InvoiceTaskIn] | None = None

    @field_validator("currency")
    @classmethod
    def valid_currency(cls, v: str | None) -> str | None:
        return _check_currency(v)

    @field_validator("payment_terms")
    @classmethod
    def valid_terms(cls, v: str | None) -> str | None:
        return _check_terms(v)


class InvoiceOut(BaseModel):
    id: str
    invoice_number: str
    invoice_type: str
    invoice_title: str | None
    project: str | None
    billing_reference: str | None
    invoice_date: date | None
    due_date: date
    service_period_start: date | None
    service_period_end: date | None
    reference_invoice_numbers: list[str] | None
    client_name: str
    client_address: str | None
    client_state: str | None
    client_zip_code: str | None
    currency: str
    invoice_amount: float
    payment_terms: str
    notes_to_finance: str | None
    status: str
    payment_receive_date: date | None
    amount_received: float | None
    pending_amount: float | None
    payment_remarks: str | None
    assigned_finance_poc: str | None
    created_by: str | None
    last_modified_by: str | None
    created_at: datetime
    updated_at: datetime
    tasks: list[InvoiceTaskOut] = []

    model_config = {"from_attributes": True}


class NextNumberOut(BaseModel):
    invoice_number: str
    invoice_type: str
    invoice_date: date


# ── Draft ────────────────────────────────────────────────────

class DraftTaskSchema(BaseModel):
    task_name: str
    hours: float
    rate_per_hour: float
    task_description: str | None = None

    model_config = {"from_attributes": True}


class InvoiceDraftSchema(BaseModel):
    invoice_type: InvoiceType = InvoiceType.US_ENTITY
    invoice_date: date | None = None
    invoice_number: str = ""
    tasks: list[DraftTaskSchema] = []
    manual_amount: float | None = None
    invoice_amount: float = 0.0
    amount_received: float | None = None
    pending_amount: float | None = None
    status: InvoiceStatus = InvoiceStatus.IN_PROGRESS
    editing_invoice_id: str | None = None

    model_config = {"from_attributes": True}


class DraftActionRequest(BaseModel):
    draft: InvoiceDraftSchema = InvoiceDraftSchema()
    action: str
    payload: dict = {}
