"""Pydantic schemas for client master CRUD."""

from datetime import datetime

from pydantic import BaseModel, Field


class ClientCreate(BaseModel):
    client_name: str = Field(..., min_length=1, max_length=255)
    client_email: str = Field(..., max_length=255)
    recipient_name: str = Field(..., max_length=255)
    recipient_email: str = Field(..., max_length=255)
    address: str
    state: str = Field(..., max_length=100)
    zip_code: str = Field(..., max_length=20)
    country: str | None = "United States"
    phone: str | None = None
    payment_terms_days: int | None = Field(30, ge=0)


class ClientUpdate(BaseModel):
    client_name: str | None = Field(None, min_length=1, max_length=255)
    client_email: str | None = None
    recipient_name: str | None = None
    recipient_email: str | None = None
    address: str | None = None
    state: str | None = None
    zip_code: str | None = None
    country: str | None = None
    phone: str | None = None
    payment_terms_days: int | None = Field(None, ge=0)
    is_active: bool | None = None


class ClientOut(BaseModel):
    id: str
    client_name: str
    client_email: str
    recipient_name: str
    recipient_email: str
    address: str
    state: str
    zip_code: str
    country: str | None
    phone: str | None
    payment_terms_days: int | None
    is_active: bool
    created_by: str | None
    updated_by: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
