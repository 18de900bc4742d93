"""API tests for the client master."""

import pytest


@pytest.fixture
def client_payload() -> dict:
    return {
        "client_name": "Acme Corp",
        "client_email": "billing@acme.test",
        "recipient_name": "Jo Doe",
        "recipient_email": "jo@acme.test",
        "address": "1 Main St",
        "state": "CA",
        "zip_code": "94016",
    }


@pytest.mark.api
class TestClientMaster:

    @pytest.mark.asyncio
    async def test_create_and_list(self, client, client_payload):
        response = await client.post("/api/clients/", json=client_payload)
        assert response.status_code == 201
        assert response.json()["country"] == "United States"

        listing = (await client.get("/api/clients/")).json()
        assert [c["client_name"] for c in listing] == ["Acme Corp"]

    @pytest.mark.asyncio
    async def test_duplicate_name_and_email_rejected(self, client, client_payload):
        await client.post("/api/clients/", json=client_payload)

        response = await client.post("/api/clients/", json=client_payload)
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "HTTP_400"

        # same name, different email is a separate record
        other = {**client_payload, "client_email": "ap@acme.test"}
        assert (await client.post("/api/clients/", json=other)).status_code == 201

    @pytest.mark.asyncio
    async def test_lookup_exact_name(self, client, client_payload):
        await client.post("/api/clients/", json=client_payload)

        found = await client.get("/api/clients/lookup", params={"client_name": "Acme Corp"})
        assert found.status_code == 200
        assert found.json()["zip_code"] == "94016"

        missing = await client.get("/api/clients/lookup", params={"client_name": "Acme"})
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_update_logs_changes(self, client, client_payload, actor_headers):
        created = (await client.post("/api/clients/", json=client_payload)).json()

        response = await client.patch(
            f"/api/clients/{created['id']}", json={"state": "NY"}, headers=actor_headers
        )
        assert response.json()["state"] == "NY"
        assert response.json()["updated_by"] == "priya@findesk.test"

        logs = (await client.get(
            "/api/audit-logs/", params={"entity_type": "client_master", "action": "updated"}
        )).json()
        assert logs["items"][0]["old_value"] == "CA"
        assert logs["items"][0]["new_value"] == "NY"

    @pytest.mark.asyncio
    async def test_deactivated_client_not_used_for_autofill(
        self, client, client_payload, invoice_payload
    ):
        created = (await client.post("/api/clients/", json=client_payload)).json()

        response = await client.delete(f"/api/clients/{created['id']}")
        assert response.json()["is_active"] is False
        assert (await client.get("/api/clients/")).json() == []
        assert len((await client.get("/api/clients/", params={"include_inactive": True})).json()) == 1

        invoice = (await client.post("/api/invoices/", json=invoice_payload)).json()
        assert invoice["client_address"] is None
