"""
Audit Trail Tests.

Workflow writes leave audit rows that superadmins can read back.
"""

import pytest


@pytest.mark.asyncio
async def test_audit_trail_lists_workflow_events(client, superadmin_headers, admin_headers, register_shipment):
    await register_shipment(bility_number="AUD-1")
    await register_shipment(bility_number="AUD-2")

    response = await client.get(
        "/api/audit-logs", params={"action": "SHIPMENT_REGISTERED"}, headers=superadmin_headers
    )

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    assert {log["actor_username"] for log in body["logs"]} == {"operator1"}

    limited = await client.get("/api/audit-logs", params={"limit": 1}, headers=superadmin_headers)
    assert limited.json()["total"] == 1

    by_actor = await client.get("/api/audit-logs", params={"actor": "admin1"}, headers=superadmin_headers)
    assert by_actor.json()["total"] == 0


@pytest.mark.asyncio
async def test_audit_trail_is_superadmin_only(client, admin_headers, operator_headers):
    assert (await client.get("/api/audit-logs", headers=admin_headers)).status_code == 403
    assert (await client.get("/api/audit-logs", headers=operator_headers)).status_code == 403
