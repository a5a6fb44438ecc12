"""
Ledger Tests.

Vehicle balances, fare settlement, manual postings and party statements.
"""

import pytest
from decimal import Decimal
from sqlalchemy import select, func

from backend.app.domain.ledger.ledger_service import running_balance
from backend.app.models.trip_log import TripLog
from backend.app.models.vehicle_transaction import VehicleTransaction


@pytest.fixture
def log_trip(client, operator_headers, register_shipment):
    async def _log(vehicle_id: int, bility_number: str = "V-1", trip_date: str = "2025-03-15") -> dict:
        shipment = await register_shipment(bility_number=bility_number, vehicle_id=vehicle_id)
        payload = {
            "vehicle_id": vehicle_id,
            "driver_name": "Aslam",
            "date": trip_date,
            "delivery_cut_percentage": 10,
            "cuts": 20,
            "accountant_charges": 30,
            "shipment_logs": [
                {"serial_number": 1, "shipment_id": shipment["register_number"], "quantity": 1, "delivery_charges": 500},
            ],
        }
        response = await client.post("/api/trips", json=payload, headers=operator_headers)
        assert response.status_code == 201, response.text
        return response.json()
    return _log


class _Row:
    def __init__(self, credit, debit):
        self.credit_amount = credit
        self.debit_amount = debit


def test_running_balance_folds_in_order():
    rows = [_Row(Decimal("100"), 0), _Row(0, Decimal("30.50")), _Row(Decimal("0.25"), 0)]
    assert [balance for _, balance in running_balance(rows)] == [
        Decimal("100.00"), Decimal("69.50"), Decimal("69.75")
    ]


@pytest.mark.asyncio
async def test_vehicle_balance_matches_rows(client, admin_headers, log_trip, master, db_session):
    vehicle_id = master["vehicle_id"]
    await log_trip(vehicle_id)

    credit = await client.post(
        f"/api/vehicles/{vehicle_id}/transaction",
        json={"amount": 1000.5, "description": "Advance", "type": "CREDIT"},
        headers=admin_headers,
    )
    assert credit.status_code == 201
    assert credit.json()["credit_amount"] == 1000.5
    assert credit.json()["trip_id"] is None

    debit = await client.post(
        f"/api/vehicles/{vehicle_id}/transaction",
        json={"amount": 99.25, "description": "Diesel", "type": "DEBIT"},
        headers=admin_headers,
    )
    assert debit.status_code == 201
    assert debit.json()["debit_amount"] == 99.25

    rows = (await db_session.execute(
        select(VehicleTransaction).where(VehicleTransaction.vehicle_id == vehicle_id)
    )).scalars().all()
    expected = sum(r.credit_amount for r in rows) - sum(r.debit_amount for r in rows)
    assert expected == Decimal("501.25")

    ledgers = await client.get("/api/vehicles/ledgers", headers=admin_headers)
    summary = next(row for row in ledgers.json() if row["vehicle_id"] == vehicle_id)
    assert summary["balance"] == float(expected)
    assert summary["total_credits"] == 1000.5
    assert summary["total_debits"] == 499.25
    assert summary["transaction_count"] == 3
    assert summary["fare_status"] == "UNPAID"

    financials = await client.get(f"/api/vehicles/{vehicle_id}/financials", headers=admin_headers)
    lines = financials.json()["transactions"]
    assert [line["balance"] for line in lines] == [-400, 600.5, 501.25]
    assert financials.json()["balance"] == 501.25


@pytest.mark.asyncio
async def test_vehicle_without_trips_has_no_fare_status(client, operator_headers, master):
    response = await client.get("/api/vehicles/ledgers", headers=operator_headers)

    assert response.status_code == 200
    statuses = {row["vehicle_number"]: row["fare_status"] for row in response.json()}
    assert statuses == {"KHI-9876": "N/A", "LES-1234": "N/A"}


@pytest.mark.asyncio
async def test_manual_transaction_validation(client, admin_headers, operator_headers, master):
    url = f"/api/vehicles/{master['vehicle_id']}/transaction"

    zero = await client.post(url, json={"amount": 0, "description": "x", "type": "CREDIT"}, headers=admin_headers)
    assert zero.status_code == 422

    bad_type = await client.post(url, json={"amount": 5, "description": "x", "type": "REFUND"}, headers=admin_headers)
    assert bad_type.status_code == 422

    by_operator = await client.post(url, json={"amount": 5, "description": "x", "type": "CREDIT"}, headers=operator_headers)
    assert by_operator.status_code == 403

    unknown = await client.post(
        "/api/vehicles/9999/transaction", json={"amount": 5, "description": "x", "type": "CREDIT"}, headers=admin_headers
    )
    assert unknown.status_code == 404


@pytest.mark.asyncio
async def test_partial_fare_settlement_changes_nothing(client, admin_headers, log_trip, master, db_session):
    vehicle_id = master["vehicle_id"]
    trip = await log_trip(vehicle_id)

    response = await client.patch(
        f"/api/vehicles/{vehicle_id}/settle-fare",
        json={"paymentAmount": 100, "tripId": trip["id"], "owedAmount": 400},
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert response.json()["details"] == {"payment_amount": "100.00", "owed_amount": "400.00"}

    stored = await db_session.get(TripLog, trip["id"])
    assert stored.fare_is_paid is False
    count = await db_session.execute(
        select(func.count()).select_from(VehicleTransaction).where(VehicleTransaction.vehicle_id == vehicle_id)
    )
    assert count.scalar_one() == 1


@pytest.mark.asyncio
async def test_understated_owed_amount_cannot_settle_fare(client, admin_headers, log_trip, master, db_session):
    vehicle_id = master["vehicle_id"]
    trip = await log_trip(vehicle_id)

    response = await client.patch(
        f"/api/vehicles/{vehicle_id}/settle-fare",
        json={"paymentAmount": 1, "tripId": trip["id"], "owedAmount": 1},
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert response.json()["details"] == {"payment_amount": "1.00", "owed_amount": "400.00"}

    stored = await db_session.get(TripLog, trip["id"])
    assert stored.fare_is_paid is False

    ledgers = await client.get("/api/vehicles/ledgers", headers=admin_headers)
    summary = next(row for row in ledgers.json() if row["vehicle_id"] == vehicle_id)
    assert summary["fare_status"] == "UNPAID"


@pytest.mark.asyncio
async def test_full_fare_settlement(client, admin_headers, superadmin_headers, log_trip, master):
    vehicle_id = master["vehicle_id"]
    trip = await log_trip(vehicle_id)

    response = await client.patch(
        f"/api/vehicles/{vehicle_id}/settle-fare",
        json={"paymentAmount": 400, "tripId": trip["id"], "paymentDescription": "Cash to driver"},
        headers=admin_headers,
    )

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["fare_is_paid"] is True
    assert body["trip_id"] == trip["id"]
    assert body["transaction"]["credit_amount"] == 400
    assert body["transaction"]["trip_id"] == trip["id"]
    assert body["transaction"]["description"] == "Cash to driver"

    ledgers = await client.get("/api/vehicles/ledgers", headers=admin_headers)
    summary = next(row for row in ledgers.json() if row["vehicle_id"] == vehicle_id)
    assert summary["fare_status"] == "PAID"
    assert summary["balance"] == 0

    again = await client.patch(
        f"/api/vehicles/{vehicle_id}/settle-fare",
        json={"payment_amount": 400, "trip_id": trip["id"]},
        headers=superadmin_headers,
    )
    assert again.status_code == 409


@pytest.mark.asyncio
async def test_fare_status_follows_latest_trip(client, admin_headers, log_trip, master):
    vehicle_id = master["vehicle_id"]
    older = await log_trip(vehicle_id, bility_number="OLD", trip_date="2025-03-10")
    await client.patch(
        f"/api/vehicles/{vehicle_id}/settle-fare",
        json={"paymentAmount": 400, "tripId": older["id"]},
        headers=admin_headers,
    )
    await log_trip(vehicle_id, bility_number="NEW", trip_date="2025-03-20")

    ledgers = await client.get("/api/vehicles/ledgers", headers=admin_headers)
    summary = next(row for row in ledgers.json() if row["vehicle_id"] == vehicle_id)
    assert summary["fare_status"] == "UNPAID"


@pytest.mark.asyncio
async def test_settle_fare_rejects_foreign_trip_and_non_reviewers(client, admin_headers, operator_headers, log_trip, master):
    trip = await log_trip(master["vehicle_id"])

    foreign = await client.patch(
        f"/api/vehicles/{master['other_vehicle_id']}/settle-fare",
        json={"paymentAmount": 400, "tripId": trip["id"]},
        headers=admin_headers,
    )
    assert foreign.status_code == 404

    by_operator = await client.patch(
        f"/api/vehicles/{master['vehicle_id']}/settle-fare",
        json={"paymentAmount": 400, "tripId": trip["id"]},
        headers=operator_headers,
    )
    assert by_operator.status_code == 403

    zero = await client.patch(
        f"/api/vehicles/{master['vehicle_id']}/settle-fare",
        json={"paymentAmount": 0, "tripId": trip["id"], "owedAmount": 0},
        headers=admin_headers,
    )
    assert zero.status_code == 400


@pytest.mark.asyncio
async def test_party_ledgers(client, operator_headers, register_shipment, master):
    await register_shipment(bility_number="P-1", total_amount=5000)
    await register_shipment(bility_number="P-2", total_amount=1250.75)
    await register_shipment(bility_number="P-3", total_amount=800, payment_status="ALREADY_PAID")

    summaries = await client.get("/api/parties/ledgers", headers=operator_headers)
    assert summaries.status_code == 200
    by_id = {row["party_id"]: row for row in summaries.json()}
    assert by_id[master["sender_id"]]["total_credits"] == 6250.75
    assert by_id[master["sender_id"]]["balance"] == 6250.75
    assert by_id[master["sender_id"]]["transaction_count"] == 2
    assert by_id[master["receiver_id"]]["balance"] == 0

    ledger = await client.get(f"/api/parties/{master['sender_id']}/ledger", headers=operator_headers)
    assert ledger.status_code == 200
    lines = ledger.json()["transactions"]
    assert [line["balance"] for line in lines] == [5000, 6250.75]
    assert all(line["party_type"] == "SENDER" for line in lines)

    missing = await client.get("/api/parties/9999/ledger", headers=operator_headers)
    assert missing.status_code == 404
