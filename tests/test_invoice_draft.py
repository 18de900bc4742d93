"""Tests for the invoice draft reducer and the draft endpoint."""

from datetime import date
from types import SimpleNamespace

import pytest

from findesk.middleware.exceptions import BusinessLogicError
from findesk.services.invoice_draft import InvoiceDraft, allocation_scope, reduce


def existing(number, invoice_date=date(2025, 12, 1), invoice_type="Mechlin LLC"):
    return SimpleNamespace(
        invoice_number=number, invoice_date=invoice_date, invoice_type=invoice_type
    )


@pytest.mark.unit
class TestDraftReducer:

    def test_setting_date_allocates_number(self):
        draft = reduce(
            InvoiceDraft(), "set_invoice_date", {"invoice_date": "2025-12-10"},
            [existing("MECH/DEC004")],
        )
        assert draft.invoice_date == date(2025, 12, 10)
        assert draft.invoice_number == "MECH/DEC005"

    def test_changing_type_reallocates(self):
        draft = InvoiceDraft(invoice_date=date(2025, 12, 10), invoice_number="MECH/DEC001")
        draft = reduce(draft, "set_invoice_type", {"invoice_type": "Mechlin Indian"}, [])
        assert draft.invoice_number == "MT/DEC001"

    def test_editing_invoice_keeps_number(self):
        draft = InvoiceDraft(
            invoice_date=date(2025, 12, 10),
            invoice_number="MECH/DEC001",
            editing_invoice_id="abc",
        )
        draft = reduce(draft, "set_invoice_date", {"invoice_date": "2026-01-15"}, [])
        assert draft.invoice_number == "MECH/DEC001"
        assert draft.invoice_date == date(2026, 1, 15)

    def test_manual_number_then_regenerate(self):
        draft = InvoiceDraft(invoice_date=date(2025, 12, 10))
        draft = reduce(draft, "set_invoice_number", {"invoice_number": "MECH/DEC099"})
        assert draft.invoice_number == "MECH/DEC099"
        draft = reduce(draft, "regenerate_number", {}, [existing("MECH/DEC001")])
        assert draft.invoice_number == "MECH/DEC002"

    def test_tasks_drive_amount(self):
        draft = reduce(InvoiceDraft(), "set_manual_amount", {"amount": 999})
        assert draft.invoice_amount == 999

        draft = reduce(draft, "add_task", {"task_name": "Dev", "hours": 2, "rate_per_hour": 100})
        draft = reduce(draft, "add_task", {"task_name": "QA", "hours": 3, "rate_per_hour": 50})
        assert draft.invoice_amount == 350

        draft = reduce(draft, "remove_task", {"index": 0})
        assert [t.task_name for t in draft.tasks] == ["QA"]
        assert draft.invoice_amount == 150

        # back to the manual amount once the last task is gone
        draft = reduce(draft, "remove_task", {"index": 0})
        assert draft.invoice_amount == 999

    def test_amount_received_sets_pending(self):
        draft = reduce(InvoiceDraft(), "add_task", {"task_name": "Dev", "hours": 2, "rate_per_hour": 100})
        draft = reduce(draft, "set_amount_received", {"amount": 50})
        assert draft.pending_amount == 150
        draft = reduce(draft, "set_amount_received", {"amount": 500})
        assert draft.pending_amount == 0

    def test_reduce_does_not_mutate(self):
        original = InvoiceDraft()
        reduce(original, "add_task", {"task_name": "Dev", "hours": 1, "rate_per_hour": 10})
        assert original.tasks == ()
        assert original.invoice_amount == 0.0

    def test_amounts_can_be_cleared(self):
        draft = reduce(InvoiceDraft(), "set_manual_amount", {"amount": "120.5"})
        assert draft.invoice_amount == 120.5
        draft = reduce(draft, "set_amount_received", {"amount": 20})
        assert draft.pending_amount == 100.5
        draft = reduce(draft, "set_amount_received", {"amount": None})
        assert draft.pending_amount is None

    def test_set_status(self):
        draft = reduce(InvoiceDraft(), "set_status", {"status": "sent"})
        assert draft.status == "sent"

    @pytest.mark.parametrize("action, payload", [
        ("launch_rocket", {}),
        ("set_invoice_date", {}),
        ("set_invoice_date", {"invoice_date": "not-a-date"}),
        ("set_invoice_type", {"invoice_type": "Mechlin GmbH"}),
        ("add_task", {"task_name": "Dev", "hours": 0, "rate_per_hour": 10}),
        ("add_task", {"task_name": "Dev", "hours": "many", "rate_per_hour": 10}),
        ("remove_task", {"index": 3}),
        ("set_status", {"status": "archived"}),
        ("set_manual_amount", {"amount": -500}),
        ("set_manual_amount", {"amount": "lots"}),
        ("set_amount_received", {"amount": -1}),
    ])
    def test_invalid_actions(self, action, payload):
        with pytest.raises(BusinessLogicError):
            reduce(InvoiceDraft(), action, payload)

    def test_allocation_scope(self):
        draft = InvoiceDraft()
        assert allocation_scope(draft, "add_task", {}) is None
        assert allocation_scope(draft, "regenerate_number", {}) is None
        assert allocation_scope(
            draft, "set_invoice_date", {"invoice_date": "2025-12-10"}
        ) == (date(2025, 12, 10), "Mechlin LLC")
        editing = InvoiceDraft(invoice_date=date(2025, 12, 10), editing_invoice_id="x")
        assert allocation_scope(editing, "regenerate_number", {}) is None


@pytest.mark.api
class TestDraftEndpoint:

    @pytest.mark.asyncio
    async def test_date_action_uses_stored_invoices(self, client, invoice_payload):
        await client.post("/api/invoices/", json=invoice_payload)

        response = await client.post("/api/invoices/draft", json={
            "action": "set_invoice_date",
            "payload": {"invoice_date": "2025-12-20"},
        })

        assert response.status_code == 200
        assert response.json()["invoice_number"] == "MECH/DEC002"

    @pytest.mark.asyncio
    async def test_task_action(self, client):
        response = await client.post("/api/invoices/draft", json={
            "draft": {"manual_amount": 80, "invoice_amount": 80},
            "action": "add_task",
            "payload": {"task_name": "Dev", "hours": 1.5, "rate_per_hour": 40},
        })

        data = response.json()
        assert data["invoice_amount"] == 60.0
        assert data["tasks"][0]["task_name"] == "Dev"

    @pytest.mark.asyncio
    async def test_unknown_action(self, client):
        response = await client.post("/api/invoices/draft", json={"action": "explode"})

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_DRAFT_ACTION"

    @pytest.mark.asyncio
    async def test_negative_manual_amount_rejected(self, client):
        response = await client.post("/api/invoices/draft", json={
            "action": "set_manual_amount",
            "payload": {"amount": -500},
        })

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_DRAFT_ACTION"
