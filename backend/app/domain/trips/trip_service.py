"""
Trip Service (Domain Logic).

Logs a vehicle's daily manifest and computes its fare roll-up:

    total_fare_collected = sum(line delivery_charges)
    delivery_cut         = total_fare_collected * delivery_cut_percentage / 100
    received_amount      = max(0, total - delivery_cut - cuts - accountant_charges)

The received amount is posted as a debit on the vehicle's ledger in the
same transaction as the trip rows.
"""

import logging
from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc

from backend.app.core.exceptions import ResourceNotFoundError, ValidationFailedError
from backend.app.db.session import atomic
from backend.app.domain.ledger.money import to_decimal, total, ZERO
from backend.app.domain.shipments.shipment_service import ShipmentService, resolve_party_name
from backend.app.models.party import Party
from backend.app.models.trip_log import TripLog
from backend.app.models.trip_shipment_log import TripShipmentLog
from backend.app.models.vehicle import Vehicle
from backend.app.models.vehicle_transaction import VehicleTransaction
from backend.app.schemas.trip import TripLogCreate, TripLogResponse, TripLogDetail, TripShipmentLogResponse

logger = logging.getLogger(__name__)


def compute_fare(line_charges, percentage, cuts, accountant_charges) -> dict:
    fare_total = total(line_charges)
    delivery_cut = to_decimal(fare_total * to_decimal(percentage) / 100)
    received = fare_total - delivery_cut - to_decimal(cuts) - to_decimal(accountant_charges)
    return {
        "total_fare_collected": fare_total,
        "delivery_cut": delivery_cut,
        "received_amount": max(received, ZERO),
    }


class TripService:

    @staticmethod
    async def create(db: AsyncSession, data: TripLogCreate) -> TripLog:
        """
        Log a trip with its shipment lines.

        Raises:
            ResourceNotFoundError: Unknown vehicle or shipment
            ValidationFailedError: Repeated serial numbers
        """
        vehicle = await db.get(Vehicle, data.vehicle_id)
        if not vehicle:
            raise ResourceNotFoundError("Vehicle", data.vehicle_id)

        serials = [line.serial_number for line in data.shipment_logs]
        if len(serials) != len(set(serials)):
            raise ValidationFailedError("Serial numbers must be unique within a trip")

        shipments = await ShipmentService.fetch_many(db, [line.shipment_id for line in data.shipment_logs])
        for line in data.shipment_logs:
            if line.shipment_id not in shipments:
                raise ResourceNotFoundError("Shipment", line.shipment_id)

        receiver_ids = {s.receiver_id for s in shipments.values()}
        receivers = {
            p.id: p for p in (await db.execute(select(Party).where(Party.id.in_(receiver_ids)))).scalars().all()
        }

        fare = compute_fare(
            [line.delivery_charges for line in data.shipment_logs],
            data.delivery_cut_percentage, data.cuts, data.accountant_charges
        )

        trip = TripLog(
            vehicle_id=data.vehicle_id,
            driver_name=data.driver_name,
            driver_mobile=data.driver_mobile,
            station_name=data.station_name,
            city=data.city,
            date=data.date,
            arrival_time=data.arrival_time,
            departure_time=data.departure_time,
            delivery_cut_percentage=to_decimal(data.delivery_cut_percentage),
            cuts=to_decimal(data.cuts),
            accountant_charges=to_decimal(data.accountant_charges),
            fare_is_paid=False,
            note=data.note,
            **fare,
        )

        async with atomic(db):
            db.add(trip)
            await db.flush()

            for line in data.shipment_logs:
                shipment = shipments[line.shipment_id]
                db.add(TripShipmentLog(
                    trip_log_id=trip.id,
                    serial_number=line.serial_number,
                    shipment_id=shipment.register_number,
                    bility_number=shipment.bility_number,
                    receiver_name=resolve_party_name(shipment.walk_in_receiver_name, receivers.get(shipment.receiver_id)),
                    item_details=line.item_details,
                    quantity=line.quantity,
                    delivery_charges=to_decimal(line.delivery_charges),
                ))

            db.add(VehicleTransaction(
                vehicle_id=data.vehicle_id,
                trip_id=trip.id,
                credit_amount=ZERO,
                debit_amount=fare["received_amount"],
                description=f"Trip #{trip.id} on {data.date.isoformat()} ({data.driver_name})",
            ))
            await db.flush()

        await db.refresh(trip)
        logger.info(
            "Trip %s logged for vehicle %s: fare %s, received %s",
            trip.id, vehicle.vehicle_number, fare["total_fare_collected"], fare["received_amount"]
        )
        return trip

    @staticmethod
    async def list_trips(db: AsyncSession, vehicle_id: Optional[int] = None) -> List[TripLogDetail]:
        query = (
            select(TripLog, Vehicle.vehicle_number)
            .join(Vehicle, TripLog.vehicle_id == Vehicle.id)
            .order_by(desc(TripLog.date), desc(TripLog.id))
        )
        if vehicle_id is not None:
            query = query.where(TripLog.vehicle_id == vehicle_id)
        trips = (await db.execute(query)).all()

        trip_ids = [trip.id for trip, _ in trips]
        lines = (await db.execute(
            select(TripShipmentLog)
            .where(TripShipmentLog.trip_log_id.in_(trip_ids))
            .order_by(TripShipmentLog.trip_log_id, TripShipmentLog.serial_number)
        )).scalars().all() if trip_ids else []

        return [
            TripLogDetail(
                **TripLogResponse.model_validate(trip).model_dump(),
                vehicle_number=vehicle_number,
                shipment_logs=[
                    TripShipmentLogResponse.model_validate(line)
                    for line in lines if line.trip_log_id == trip.id
                ],
            )
            for trip, vehicle_number in trips
        ]

    @staticmethod
    async def get_detail(db: AsyncSession, trip_id: int) -> TripLogDetail:
        trip = await db.get(TripLog, trip_id)
        if not trip:
            raise ResourceNotFoundError("Trip", trip_id)
        for detail in await TripService.list_trips(db, trip.vehicle_id):
            if detail.id == trip_id:
                return detail
        raise ResourceNotFoundError("Trip", trip_id)

    @staticmethod
    async def next_serial(db: AsyncSession) -> int:
        """Next trip serial shown on the manifest form (last id + 1)."""
        result = await db.execute(select(func.max(TripLog.id)))
        return (result.scalar_one_or_none() or 0) + 1
