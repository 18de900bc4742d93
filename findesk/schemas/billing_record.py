"""Pydantic schemas for billing record CRUD."""

from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator, model_validator

CONTRACT_TYPES = ("fixed", "hourly", "retainer", "milestone")
BILLING_CYCLES = ("one_time", "monthly", "quarterly", "custom")


def _check_choice(v: str | None, choices: tuple[str, ...], name: str) -> str | None:
    if v is not None and v not in choices:
        raise ValueError(f"{name} must be one of {', '.join(choices)}")
    return v


class BillingRecordCreate(BaseModel):
    client_name: str = Field(..., min_length=1, max_length=255)
    project_name: str | None = None
    contract_type: str
    billing_cycle: str
    contract_start_date: date
    contract_end_date: date
    contract_value: float = Field(..., ge=0)
    billed_to_date: float = Field(0.0, ge=0)
    next_billing_date: date | None = None
    payment_terms: str = "net_30"
    internal_notes: str | None = None
    assigned_to_finance: str | None = None

    @field_validator("contract_type")
    @classmethod
    def valid_contract_type(cls, v: str) -> str:
        return _check_choice(v, CONTRACT_TYPES, "contract_type")

    @field_validator("billing_cycle")
    @classmethod
    def valid_billing_cycle(cls, v: str) -> str:
        return _check_choice(v, BILLING_CYCLES, "billing_cycle")

    @model_validator(mode="after")
    def end_after_start(self):
        if self.contract_end_date < self.contract_start_date:
            raise ValueError("contract_end_date must not be before contract_start_date")
        return self


class BillingRecordUpdate(BaseModel):
    client_name: str | None = Field(None, min_length=1, max_length=255)
    project_name: str | None = None
    contract_type: str | None = None
    billing_cycle: str | None = None
    contract_start_date: date | None = None
    contract_end_date: date | None = None
    contract_value: float | None = Field(None, ge=0)
    billed_to_date: float | None = Field(None, ge=0)
    next_billing_date: date | None = None
    payment_terms: str | None = None
    internal_notes: str | None = None
    assigned_to_finance: str | None = None

    @field_validator("contract_type")
    @classmethod
    def valid_contract_type(cls, v: str | None) -> str | None:
        return _check_choice(v, CONTRACT_TYPES, "contract_type")

    @field_validator("billing_cycle")
    @classmethod
    def valid_billing_cycle(cls, v: str | None) -> str | None:
        return _check_choice(v, BILLING_CYCLES, "billing_cycle")


class BillingRecordOut(BaseModel):
    id: str
    client_name: str
    project_name: str | None
    contract_type: str
    billing_cycle: str
    contract_start_date: date
    contract_end_date: date
    contract_value: float
    billed_to_date: float
    remaining_amount: float
    next_billing_date: date | None
    payment_terms: str
    internal_notes: str | None
    assigned_to_finance: str | None
    created_by: str | None
    last_modified_by: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
