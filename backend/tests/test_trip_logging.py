"""
Trip Logging Tests.

Fare roll-up is computed on the server and the received amount is debited
to the vehicle's ledger.
"""

import pytest
from decimal import Decimal
from sqlalchemy import select, func

from backend.app.domain.trips.trip_service import compute_fare
from backend.app.models.trip_log import TripLog
from backend.app.models.vehicle_transaction import VehicleTransaction


@pytest.fixture
def trip_payload(master):
    def _build(lines, **overrides) -> dict:
        payload = {
            "vehicle_id": master["vehicle_id"],
            "driver_name": "Aslam",
            "driver_mobile": "0333-4444444",
            "station_name": "Badami Bagh",
            "city": "Lahore",
            "date": "2025-03-15",
            "delivery_cut_percentage": 10,
            "cuts": 20,
            "accountant_charges": 30,
            "shipment_logs": lines,
        }
        payload.update(overrides)
        return payload
    return _build


def test_compute_fare():
    fare = compute_fare([Decimal("300"), Decimal("200")], Decimal("10"), Decimal("20"), Decimal("30"))
    assert fare == {
        "total_fare_collected": Decimal("500.00"),
        "delivery_cut": Decimal("50.00"),
        "received_amount": Decimal("400.00"),
    }


def test_compute_fare_never_negative():
    fare = compute_fare([Decimal("100")], Decimal("50"), Decimal("80"), Decimal("10"))
    assert fare["received_amount"] == Decimal("0.00")


def test_compute_fare_rounds_cut_to_cents():
    fare = compute_fare([Decimal("333.33")], Decimal("12.5"), 0, 0)
    assert fare["delivery_cut"] == Decimal("41.67")
    assert fare["received_amount"] == Decimal("291.66")


@pytest.mark.asyncio
async def test_log_trip_computes_fare_and_debits_vehicle(client, operator_headers, register_shipment, trip_payload, master, db_session):
    first = await register_shipment(bility_number="T-1", walk_in_receiver_name="Walk In Zahid")
    second = await register_shipment(bility_number="T-2")

    payload = trip_payload([
        {"serial_number": 1, "shipment_id": first["register_number"], "item_details": "Cotton", "quantity": 10, "delivery_charges": 300},
        {"serial_number": 2, "shipment_id": second["register_number"], "quantity": 2, "delivery_charges": 200},
    ])
    # client-supplied totals are ignored
    payload["total_fare_collected"] = 99999
    payload["received_amount"] = 99999

    response = await client.post("/api/trips", json=payload, headers=operator_headers)

    assert response.status_code == 201, response.text
    trip = response.json()
    assert trip["total_fare_collected"] == 500
    assert trip["delivery_cut"] == 50
    assert trip["received_amount"] == 400
    assert trip["fare_is_paid"] is False
    assert trip["vehicle_number"] == "LES-1234"
    assert [line["receiver_name"] for line in trip["shipment_logs"]] == ["Walk In Zahid", "Bilal Stores"]
    assert [line["bility_number"] for line in trip["shipment_logs"]] == ["T-1", "T-2"]

    entries = (await db_session.execute(
        select(VehicleTransaction).where(VehicleTransaction.vehicle_id == master["vehicle_id"])
    )).scalars().all()
    assert len(entries) == 1
    assert entries[0].trip_id == trip["id"]
    assert entries[0].debit_amount == Decimal("400.00")
    assert entries[0].credit_amount == Decimal("0.00")


@pytest.mark.asyncio
async def test_log_trip_clamps_received_amount(client, operator_headers, register_shipment, trip_payload):
    shipment = await register_shipment()
    payload = trip_payload(
        [{"serial_number": 1, "shipment_id": shipment["register_number"], "quantity": 1, "delivery_charges": 100}],
        cuts=500,
    )

    response = await client.post("/api/trips", json=payload, headers=operator_headers)

    assert response.status_code == 201
    assert response.json()["received_amount"] == 0


@pytest.mark.asyncio
async def test_log_trip_with_unknown_shipment_writes_nothing(client, operator_headers, trip_payload, db_session):
    payload = trip_payload(
        [{"serial_number": 1, "shipment_id": "209901-0001", "quantity": 1, "delivery_charges": 100}]
    )

    response = await client.post("/api/trips", json=payload, headers=operator_headers)

    assert response.status_code == 404
    trips = await db_session.execute(select(func.count()).select_from(TripLog))
    assert trips.scalar_one() == 0
    entries = await db_session.execute(select(func.count()).select_from(VehicleTransaction))
    assert entries.scalar_one() == 0


@pytest.mark.asyncio
async def test_log_trip_validation(client, operator_headers, register_shipment, trip_payload):
    shipment = await register_shipment()
    line = {"serial_number": 1, "shipment_id": shipment["register_number"], "quantity": 1, "delivery_charges": 100}

    repeated = await client.post("/api/trips", json=trip_payload([line, dict(line)]), headers=operator_headers)
    assert repeated.status_code == 400

    empty = await client.post("/api/trips", json=trip_payload([]), headers=operator_headers)
    assert empty.status_code == 422

    bad_percentage = await client.post(
        "/api/trips", json=trip_payload([line], delivery_cut_percentage=120), headers=operator_headers
    )
    assert bad_percentage.status_code == 422

    unknown_vehicle = await client.post(
        "/api/trips", json=trip_payload([line], vehicle_id=9999), headers=operator_headers
    )
    assert unknown_vehicle.status_code == 404


@pytest.mark.asyncio
async def test_next_serial_and_listing(client, operator_headers, register_shipment, trip_payload, master):
    empty = await client.get("/api/trips/next-serial", headers=operator_headers)
    assert empty.json() == {"next_serial": 1}

    shipment = await register_shipment()
    line = {"serial_number": 1, "shipment_id": shipment["register_number"], "quantity": 1, "delivery_charges": 100}
    created = await client.post("/api/trips", json=trip_payload([line]), headers=operator_headers)
    await client.post(
        "/api/trips",
        json=trip_payload([line], vehicle_id=master["other_vehicle_id"], date="2025-03-16"),
        headers=operator_headers,
    )

    following = await client.get("/api/trips/next-serial", headers=operator_headers)
    assert following.json() == {"next_serial": created.json()["id"] + 2}

    for_vehicle = await client.get(
        "/api/trips", params={"vehicle_id": master["vehicle_id"]}, headers=operator_headers
    )
    assert [trip["id"] for trip in for_vehicle.json()] == [created.json()["id"]]

    everything = await client.get("/api/trips", headers=operator_headers)
    assert [trip["date"] for trip in everything.json()] == ["2025-03-16", "2025-03-15"]
