"""API tests for employees and attendance."""

import pytest


@pytest.mark.api
class TestEmployees:

    @pytest.mark.asyncio
    async def test_create_and_filter(self, client, employee):
        response = await client.post("/api/employees/", json={
            "employee_code": "EMP002",
            "full_name": "Anita Rao",
            "email": "anita@findesk.test",
            "department": "Finance",
            "annual_salary": 24000,
        })
        assert response.status_code == 201

        finance = (await client.get("/api/employees/", params={"department": "Finance"})).json()
        assert [e["employee_code"] for e in finance] == ["EMP002"]

        search = (await client.get("/api/employees/", params={"search": "ravi"})).json()
        assert [e["employee_code"] for e in search] == ["EMP001"]

    @pytest.mark.asyncio
    async def test_duplicate_email_rejected(self, client, employee):
        response = await client.post("/api/employees/", json={
            "full_name": "Someone Else", "email": "ravi@findesk.test",
        })
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_attendance_upsert(self, client, employee):
        url = f"/api/employees/{employee.id}/attendance"
        first = await client.put(url, json={"month": 12, "year": 2025, "days_present": 20})
        second = await client.put(url, json={"month": 12, "year": 2025, "days_present": 21})

        assert first.json()["id"] == second.json()["id"]
        assert second.json()["days_present"] == 21

    @pytest.mark.asyncio
    async def test_unknown_employee(self, client):
        response = await client.get("/api/employees/missing")
        assert response.status_code == 404
