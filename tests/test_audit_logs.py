"""API tests for the audit log viewer."""

import csv
import io
from datetime import datetime

import pytest

from findesk.models.audit_log import AuditLog


@pytest.mark.api
class TestAuditLogs:

    @pytest.mark.asyncio
    async def test_filters(self, client, invoice_payload, actor_headers):
        invoice = (await client.post(
            "/api/invoices/", json=invoice_payload, headers=actor_headers
        )).json()
        await client.patch(f"/api/invoices/{invoice['id']}", json={"status": "sent"})

        by_action = (await client.get("/api/audit-logs/", params={"action": "status_changed"})).json()
        assert by_action["total"] == 1
        assert by_action["items"][0]["changed_by"] == "system"

        by_actor = (await client.get(
            "/api/audit-logs/", params={"changed_by": "priya@findesk.test"}
        )).json()
        assert [entry["action"] for entry in by_actor["items"]] == ["created"]

        by_search = (await client.get("/api/audit-logs/", params={"search": "acme"})).json()
        assert by_search["total"] == 2

    @pytest.mark.asyncio
    async def test_date_range_is_ist(self, client, db_session):
        # 2025-12-31 20:00 UTC is already 2026-01-01 in IST
        db_session.add(AuditLog(
            entity_type="invoice", action="created", changed_by="system",
            entity_code="MECH/JAN001", created_at=datetime(2025, 12, 31, 20, 0),
        ))
        await db_session.flush()

        jan = (await client.get(
            "/api/audit-logs/", params={"date_from": "2026-01-01", "date_to": "2026-01-01"}
        )).json()
        dec = (await client.get(
            "/api/audit-logs/", params={"date_from": "2025-12-31", "date_to": "2025-12-31"}
        )).json()

        assert jan["total"] == 1
        assert dec["total"] == 0

    @pytest.mark.asyncio
    async def test_export(self, client, invoice_payload):
        await client.post("/api/invoices/", json=invoice_payload)

        response = await client.get("/api/audit-logs/export")

        assert 'filename="audit_logs_export_' in response.headers["content-disposition"]
        rows = list(csv.reader(io.StringIO(response.text)))
        assert rows[0][:3] == ["Date/Time", "Reference", "Client Name"]
        assert rows[1][1:3] == ["MECH/DEC001", "Acme Corp"]
