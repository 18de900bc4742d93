"""Pydantic schemas for the audit log viewer."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel


class AuditLogOut(BaseModel):
    id: str
    entity_type: str
    entity_id: str | None
    entity_code: str | None
    action: str
    field_name: str | None
    old_value: Any = None
    new_value: Any = None
    changed_by: str
    change_reason: str | None
    details: dict | None
    created_at: datetime

    model_config = {"from_attributes": True}
