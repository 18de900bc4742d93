"""API tests for invoices: numbering, totals, payment fields and audit trail."""

import csv
import io

import pytest

from findesk.models.client_master import ClientMaster


async def create(client, payload, **overrides):
    body = {**payload, **overrides}
    return await client.post("/api/invoices/", json=body)


@pytest.mark.api
class TestInvoiceCreate:

    @pytest.mark.asyncio
    async def test_number_assigned_and_total_from_tasks(self, client, invoice_payload, actor_headers):
        response = await client.post("/api/invoices/", json=invoice_payload, headers=actor_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["invoice_number"] == "MECH/DEC001"
        assert data["invoice_type"] == "Mechlin LLC"
        assert data["invoice_amount"] == 350.0
        assert data["invoice_title"] == "MECH/DEC001"
        assert data["status"] == "in_progress"
        assert data["created_by"] == "priya@findesk.test"
        assert data["assigned_finance_poc"] == "priya@findesk.test"
        assert [t["total_amount"] for t in data["tasks"]] == [200.0, 150.0]

    @pytest.mark.asyncio
    async def test_sequence_increments_within_scope(self, client, invoice_payload):
        await create(client, invoice_payload)
        second = await create(client, invoice_payload)
        january = await create(client, invoice_payload, invoice_date="2026-01-03")

        assert second.json()["invoice_number"] == "MECH/DEC002"
        assert january.json()["invoice_number"] == "MECH/JAN001"

    @pytest.mark.asyncio
    async def test_indian_entity_has_its_own_sequence(self, client, invoice_payload):
        await create(client, invoice_payload)
        response = await create(client, invoice_payload, invoice_type="Mechlin Indian")

        assert response.json()["invoice_number"] == "MT/DEC001"

    @pytest.mark.asyncio
    async def test_duplicate_number_conflicts(self, client, invoice_payload):
        await create(client, invoice_payload)

        response = await create(client, invoice_payload, invoice_number="MECH/DEC001")

        assert response.status_code == 409
        error = response.json()["error"]
        assert error["code"] == "INVOICE_NUMBER_CONFLICT"
        assert error["details"]["suggested"] == "MECH/DEC002"

    @pytest.mark.asyncio
    async def test_same_number_allowed_in_another_month(self, client, invoice_payload):
        await create(client, invoice_payload)

        response = await create(
            client, invoice_payload, invoice_number="MECH/DEC001", invoice_date="2024-12-10"
        )
        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_tasks_override_manual_amount(self, client, invoice_payload):
        response = await create(client, invoice_payload, invoice_amount=999)
        assert response.json()["invoice_amount"] == 350.0

    @pytest.mark.asyncio
    async def test_manual_amount_without_tasks(self, client, invoice_payload):
        response = await create(client, invoice_payload, tasks=[], invoice_amount=1250.5)
        assert response.json()["invoice_amount"] == 1250.5

    @pytest.mark.asyncio
    async def test_task_hours_must_be_positive(self, client, invoice_payload):
        tasks = [{"task_name": "Dev", "hours": 0, "rate_per_hour": 100}]
        response = await create(client, invoice_payload, tasks=tasks)
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_unknown_currency_rejected(self, client, invoice_payload):
        response = await create(client, invoice_payload, currency="JPY")
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_paid_invoice_pending_never_negative(self, client, invoice_payload):
        response = await create(client, invoice_payload, status="paid", amount_received=400)

        data = response.json()
        assert data["amount_received"] == 400.0
        assert data["pending_amount"] == 0.0

    @pytest.mark.asyncio
    async def test_payment_fields_cleared_unless_paid(self, client, invoice_payload):
        response = await create(
            client, invoice_payload,
            status="sent", amount_received=100, payment_remarks="wire",
        )

        data = response.json()
        assert data["amount_received"] is None
        assert data["pending_amount"] is None
        assert data["payment_remarks"] is None

    @pytest.mark.asyncio
    async def test_client_address_autofilled(self, client, db_session, invoice_payload):
        db_session.add(ClientMaster(
            client_name="Acme Corp",
            client_email="billing@acme.test",
            recipient_name="Jo Doe",
            recipient_email="jo@acme.test",
            address="1 Main St",
            state="CA",
            zip_code="94016",
        ))
        await db_session.flush()

        response = await create(client, invoice_payload)

        data = response.json()
        assert data["client_address"] == "1 Main St"
        assert data["client_state"] == "CA"
        assert data["client_zip_code"] == "94016"


@pytest.mark.api
class TestInvoiceUpdate:

    @pytest.mark.asyncio
    async def test_status_change_logged(self, client, invoice_payload, actor_headers):
        invoice = (await create(client, invoice_payload)).json()

        response = await client.patch(
            f"/api/invoices/{invoice['id']}", json={"status": "sent"}, headers=actor_headers
        )
        assert response.status_code == 200

        logs = (await client.get(f"/api/invoices/{invoice['id']}/logs")).json()
        status_logs = [entry for entry in logs if entry["action"] == "status_changed"]
        assert len(status_logs) == 1
        assert status_logs[0]["field_name"] == "status"
        assert status_logs[0]["old_value"] == "in_progress"
        assert status_logs[0]["new_value"] == "sent"
        assert status_logs[0]["changed_by"] == "priya@findesk.test"

    @pytest.mark.asyncio
    async def test_mark_paid_computes_pending(self, client, invoice_payload):
        invoice = (await create(client, invoice_payload)).json()

        response = await client.patch(
            f"/api/invoices/{invoice['id']}",
            json={"status": "paid", "amount_received": 100, "payment_receive_date": "2026-01-05"},
        )

        data = response.json()
        assert data["pending_amount"] == 250.0
        assert data["payment_receive_date"] == "2026-01-05"

    @pytest.mark.asyncio
    async def test_replacing_tasks_recomputes_amount(self, client, invoice_payload):
        invoice = (await create(client, invoice_payload)).json()

        response = await client.patch(
            f"/api/invoices/{invoice['id']}",
            json={"tasks": [{"task_name": "Support", "hours": 10, "rate_per_hour": 20}]},
        )

        data = response.json()
        assert data["invoice_amount"] == 200.0
        assert [t["task_name"] for t in data["tasks"]] == ["Support"]

        logs = (await client.get(f"/api/invoices/{invoice['id']}/logs")).json()
        assert any(entry["entity_type"] == "invoice_task" for entry in logs)

    @pytest.mark.asyncio
    async def test_clearing_tasks_uses_manual_amount(self, client, invoice_payload):
        invoice = (await create(client, invoice_payload)).json()

        response = await client.patch(
            f"/api/invoices/{invoice['id']}", json={"tasks": [], "invoice_amount": 500}
        )

        data = response.json()
        assert data["tasks"] == []
        assert data["invoice_amount"] == 500.0

    @pytest.mark.asyncio
    async def test_renumber_to_taken_number_conflicts(self, client, invoice_payload):
        await create(client, invoice_payload)
        second = (await create(client, invoice_payload)).json()

        response = await client.patch(
            f"/api/invoices/{second['id']}", json={"invoice_number": "MECH/DEC001"}
        )

        assert response.status_code == 409
        assert response.json()["error"]["details"]["invoice_number"] == "MECH/DEC001"

    @pytest.mark.asyncio
    async def test_update_missing_invoice(self, client):
        response = await client.patch("/api/invoices/missing", json={"status": "sent"})
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "RESOURCE_NOT_FOUND"


@pytest.mark.api
class TestInvoiceReadDelete:

    @pytest.mark.asyncio
    async def test_delete_keeps_logs(self, client, invoice_payload):
        invoice = (await create(client, invoice_payload)).json()

        response = await client.delete(f"/api/invoices/{invoice['id']}")
        assert response.status_code == 204
        assert (await client.get(f"/api/invoices/{invoice['id']}")).status_code == 404

        logs = (await client.get(f"/api/invoices/{invoice['id']}/logs")).json()
        assert {entry["action"] for entry in logs} == {"created", "deleted"}

    @pytest.mark.asyncio
    async def test_filters(self, client, invoice_payload):
        await create(client, invoice_payload)
        await create(client, invoice_payload, client_name="Globex", status="sent")
        await create(client, invoice_payload, invoice_type="Mechlin Indian")

        by_status = (await client.get("/api/invoices/", params={"status": "sent"})).json()
        by_client = (await client.get("/api/invoices/", params={"client_name": "Globex"})).json()
        by_type = (await client.get(
            "/api/invoices/", params={"invoice_type": "Mechlin Indian"}
        )).json()
        by_search = (await client.get("/api/invoices/", params={"search": "glob"})).json()

        assert by_status["total"] == 1
        assert by_client["items"][0]["client_name"] == "Globex"
        assert by_type["items"][0]["invoice_number"] == "MT/DEC001"
        assert by_search["total"] == 1

    @pytest.mark.asyncio
    async def test_date_range_filter(self, client, invoice_payload):
        await create(client, invoice_payload)
        await create(client, invoice_payload, invoice_date="2026-02-01")

        response = await client.get(
            "/api/invoices/", params={"date_from": "2026-01-01", "date_to": "2026-03-31"}
        )
        assert response.json()["total"] == 1

    @pytest.mark.asyncio
    async def test_export(self, client, invoice_payload):
        await create(client, invoice_payload, project='Phase "A", rollout')
        await create(client, invoice_payload)

        response = await client.get("/api/invoices/export")

        assert response.status_code == 200
        assert 'filename="invoices_export_' in response.headers["content-disposition"]
        assert '"Phase ""A"", rollout"' in response.text
        rows = list(csv.reader(io.StringIO(response.text)))
        assert rows[0][0] == "Invoice Number"
        assert len(rows) == 3

    @pytest.mark.asyncio
    async def test_next_number(self, client, invoice_payload):
        await create(client, invoice_payload)

        response = await client.get(
            "/api/invoices/next-number",
            params={"invoice_type": "Mechlin LLC", "invoice_date": "2025-12-31"},
        )

        assert response.status_code == 200
        assert response.json()["invoice_number"] == "MECH/DEC002"
