"""
Delivery Approval Tests.

Direct delivery recording and the two-stage approval workflow.
"""

import pytest
from datetime import datetime, timezone
from sqlalchemy import select, update

from backend.app.core.exceptions import InvalidStateTransitionError
from backend.app.domain.deliveries.delivery_service import check_transition, day_bounds
from backend.app.models.delivery import Delivery
from backend.app.models.delivery_enums import ApprovalStatus
from backend.app.models.shipment import Shipment


def delivery_payload(shipment_id: str, **overrides) -> dict:
    payload = {
        "shipment_id": shipment_id,
        "delivery_date": "2025-03-18",
        "station_expense": 10,
        "bility_expense": 20,
        "station_labour": 30,
        "cart_labour": 40.5,
        "receiver_name": "Bilal",
        "receiver_cnic": "35202-1234567-1",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def record_delivery(client, operator_headers, register_shipment):
    async def _record(bility_number: str = "B-1001") -> dict:
        shipment = await register_shipment(bility_number=bility_number)
        response = await client.post(
            "/api/deliveries", json=delivery_payload(shipment["register_number"]), headers=operator_headers
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _record


def test_transition_table():
    check_transition(ApprovalStatus.PENDING, ApprovalStatus.APPROVED_BY_ADMIN)
    check_transition(ApprovalStatus.PENDING, ApprovalStatus.APPROVED)
    check_transition(ApprovalStatus.PENDING, ApprovalStatus.REJECTED)
    check_transition(ApprovalStatus.APPROVED_BY_ADMIN, ApprovalStatus.APPROVED)
    check_transition(ApprovalStatus.APPROVED_BY_ADMIN, ApprovalStatus.REJECTED)

    for current, target in [
        (ApprovalStatus.APPROVED_BY_ADMIN, ApprovalStatus.APPROVED_BY_ADMIN),
        (ApprovalStatus.APPROVED, ApprovalStatus.REJECTED),
        (ApprovalStatus.APPROVED, ApprovalStatus.APPROVED),
        (ApprovalStatus.REJECTED, ApprovalStatus.APPROVED_BY_ADMIN),
        (ApprovalStatus.REJECTED, ApprovalStatus.APPROVED),
    ]:
        with pytest.raises(InvalidStateTransitionError):
            check_transition(current, target)


def test_day_bounds_cover_whole_utc_day():
    start, end = day_bounds(datetime(2025, 3, 15).date())
    assert start == datetime(2025, 3, 15, 0, 0, 0, tzinfo=timezone.utc)
    assert end == datetime(2025, 3, 15, 23, 59, 59, 999000, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_record_delivery_computes_expenses_and_marks_shipment(record_delivery, db_session):
    delivery = await record_delivery()

    assert delivery["total_expenses"] == 100.5
    assert delivery["approval_status"] == "PENDING"
    assert delivery["delivery_status"] == "DELIVERED"
    assert delivery["approved_by"] is None

    shipment = await db_session.get(Shipment, delivery["shipment_id"])
    assert shipment.delivery_date.isoformat() == "2025-03-18"


@pytest.mark.asyncio
async def test_second_delivery_for_shipment_conflicts(client, operator_headers, record_delivery, db_session):
    delivery = await record_delivery()

    response = await client.post(
        "/api/deliveries", json=delivery_payload(delivery["shipment_id"]), headers=operator_headers
    )

    assert response.status_code == 409
    result = await db_session.execute(select(Delivery).where(Delivery.shipment_id == delivery["shipment_id"]))
    assert len(result.scalars().all()) == 1


@pytest.mark.asyncio
async def test_delivery_for_unknown_shipment_returns_404(client, operator_headers, master):
    response = await client.post(
        "/api/deliveries", json=delivery_payload("209901-0001"), headers=operator_headers
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_two_stage_approval(client, record_delivery, admin_headers, superadmin_headers):
    delivery = await record_delivery()
    url = f"/api/deliveries/{delivery['id']}"

    pending = await client.get("/api/deliveries/pending-approvals", headers=admin_headers)
    assert [row["id"] for row in pending.json()] == [delivery["id"]]
    assert pending.json()[0]["bility_number"] == "B-1001"

    first = await client.patch(url, json={"action": "APPROVED_BY_ADMIN"}, headers=admin_headers)
    assert first.status_code == 200
    assert first.json()["approval_status"] == "APPROVED_BY_ADMIN"
    assert first.json()["approved_by"] == "admin1"
    assert first.json()["approved_at"] is not None

    queue = await client.get("/api/deliveries/admin-approved", headers=superadmin_headers)
    assert [row["id"] for row in queue.json()] == [delivery["id"]]

    final = await client.patch(url, json={"action": "APPROVED"}, headers=superadmin_headers)
    assert final.status_code == 200
    assert final.json()["approval_status"] == "APPROVED"
    assert final.json()["approved_by"] == "super1"

    queue = await client.get("/api/deliveries/admin-approved", headers=superadmin_headers)
    assert queue.json() == []


@pytest.mark.asyncio
async def test_terminal_statuses_cannot_change(client, record_delivery, admin_headers, superadmin_headers):
    delivery = await record_delivery()
    url = f"/api/deliveries/{delivery['id']}"

    approved = await client.patch(url, json={"action": "APPROVED"}, headers=superadmin_headers)
    assert approved.status_code == 200

    for action in ("REJECTED", "APPROVED_BY_ADMIN", "APPROVED"):
        response = await client.patch(url, json={"action": action}, headers=superadmin_headers)
        assert response.status_code == 409
        assert response.json()["error_code"] == "ERR_STATE_001"

    other = await record_delivery(bility_number="B-2002")
    other_url = f"/api/deliveries/{other['id']}"
    rejected = await client.patch(other_url, json={"action": "REJECTED"}, headers=admin_headers)
    assert rejected.status_code == 200
    again = await client.patch(other_url, json={"action": "APPROVED"}, headers=superadmin_headers)
    assert again.status_code == 409


@pytest.mark.asyncio
async def test_repeating_admin_approval_conflicts(client, record_delivery, admin_headers):
    delivery = await record_delivery()
    url = f"/api/deliveries/{delivery['id']}"

    assert (await client.patch(url, json={"action": "APPROVED_BY_ADMIN"}, headers=admin_headers)).status_code == 200
    repeat = await client.patch(url, json={"action": "APPROVED_BY_ADMIN"}, headers=admin_headers)
    assert repeat.status_code == 409


@pytest.mark.asyncio
async def test_approval_role_gates(client, record_delivery, operator_headers, admin_headers, db_session):
    delivery = await record_delivery()
    url = f"/api/deliveries/{delivery['id']}"

    by_operator = await client.patch(url, json={"action": "APPROVED_BY_ADMIN"}, headers=operator_headers)
    assert by_operator.status_code == 403

    final_by_admin = await client.patch(url, json={"action": "APPROVED"}, headers=admin_headers)
    assert final_by_admin.status_code == 403
    assert final_by_admin.json()["error_code"] == "ERR_PERM_001"

    queue = await client.get("/api/deliveries/admin-approved", headers=admin_headers)
    assert queue.status_code == 403
    pending = await client.get("/api/deliveries/pending-approvals", headers=operator_headers)
    assert pending.status_code == 403

    stored = await db_session.get(Delivery, delivery["id"])
    assert stored.approval_status == ApprovalStatus.PENDING


@pytest.mark.asyncio
async def test_unknown_action_and_unknown_delivery(client, record_delivery, superadmin_headers):
    delivery = await record_delivery()

    invalid = await client.patch(
        f"/api/deliveries/{delivery['id']}", json={"action": "SHIPPED"}, headers=superadmin_headers
    )
    assert invalid.status_code == 422

    missing = await client.patch("/api/deliveries/9999", json={"action": "APPROVED"}, headers=superadmin_headers)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_approved_on_day_uses_utc_day_boundaries(client, record_delivery, superadmin_headers, operator_headers, db_session):
    late = await record_delivery(bility_number="LATE")
    early = await record_delivery(bility_number="EARLY")
    for delivery in (late, early):
        response = await client.patch(
            f"/api/deliveries/{delivery['id']}", json={"action": "APPROVED"}, headers=superadmin_headers
        )
        assert response.status_code == 200

    await db_session.execute(
        update(Delivery).where(Delivery.id == late["id"])
        .values(approved_at=datetime(2025, 3, 15, 23, 59, 59, 999000, tzinfo=timezone.utc))
    )
    await db_session.execute(
        update(Delivery).where(Delivery.id == early["id"])
        .values(approved_at=datetime(2025, 3, 16, 0, 0, 0, tzinfo=timezone.utc))
    )
    await db_session.commit()

    on_15th = await client.get("/api/deliveries/approved", params={"date": "2025-03-15"}, headers=operator_headers)
    assert on_15th.status_code == 200
    assert [row["id"] for row in on_15th.json()] == [late["id"]]

    on_16th = await client.get("/api/deliveries/approved", params={"date": "2025-03-16"}, headers=operator_headers)
    assert [row["id"] for row in on_16th.json()] == [early["id"]]


@pytest.mark.asyncio
async def test_approved_on_day_requires_valid_date(client, operator_headers):
    missing = await client.get("/api/deliveries/approved", headers=operator_headers)
    assert missing.status_code == 400
    assert missing.json()["error_code"] == "ERR_VALIDATION_001"

    malformed = await client.get("/api/deliveries/approved", params={"date": "15-03-2025"}, headers=operator_headers)
    assert malformed.status_code == 400


@pytest.mark.asyncio
async def test_list_deliveries_filters_by_status(client, record_delivery, admin_headers, operator_headers):
    first = await record_delivery(bility_number="ONE")
    await record_delivery(bility_number="TWO")
    await client.patch(f"/api/deliveries/{first['id']}", json={"action": "REJECTED"}, headers=admin_headers)

    rejected = await client.get("/api/deliveries", params={"approval_status": "REJECTED"}, headers=operator_headers)
    assert [row["id"] for row in rejected.json()] == [first["id"]]

    everything = await client.get("/api/deliveries", headers=operator_headers)
    assert len(everything.json()) == 2
