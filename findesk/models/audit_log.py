"""AuditLog: immutable trail of field-level changes.

Records who changed what, when, and why.  `entity_id` is intentionally not
a foreign key so entries outlive the rows they describe (invoice logs are
kept after the invoice is deleted).
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from findesk.database import Base
from findesk.utils.dates import utcnow


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )

    # ── Target ─────────────────────────────────────────────────
    # invoice | invoice_task | billing_record | client_master | payroll_adjustment
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    entity_id: Mapped[str | None] = mapped_column(String(36), index=True)
    entity_code: Mapped[str | None] = mapped_column(String(100))

    # ── What ───────────────────────────────────────────────────
    # created | updated | deleted | status_changed
    action: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    field_name: Mapped[str | None] = mapped_column(String(100))
    old_value: Mapped[Any] = mapped_column(JSON)
    new_value: Mapped[Any] = mapped_column(JSON)

    # ── Who / why ──────────────────────────────────────────────
    changed_by: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    change_reason: Mapped[str | None] = mapped_column(Text)
    details: Mapped[dict | None] = mapped_column(JSON)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False, index=True
    )
