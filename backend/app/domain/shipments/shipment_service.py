"""
Shipment Service (Domain Logic).

Registers shipments with their goods lines and the sender's bill, and
answers the lookups the booking and trip screens need.
"""

import logging
from datetime import date
from typing import Optional, List, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_, desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import aliased

from backend.app.core.config import settings
from backend.app.core.exceptions import (
    ResourceNotFoundError,
    DuplicateBilityNumberError,
    RegisterNumberExhaustedError,
)
from backend.app.db.session import atomic
from backend.app.domain.ledger.money import to_decimal, total
from backend.app.domain.shipments.register_number import RegisterNumberAllocator
from backend.app.models.agency import Agency
from backend.app.models.city import City
from backend.app.models.goods_detail import GoodsDetail
from backend.app.models.item_catalog import ItemCatalog
from backend.app.models.ledger_enums import PartyType
from backend.app.models.party import Party
from backend.app.models.shipment import Shipment
from backend.app.models.shipment_enums import PaymentStatus
from backend.app.models.transaction import Transaction
from backend.app.models.vehicle import Vehicle
from backend.app.schemas.shipment import (
    ShipmentCreate,
    ShipmentFilter,
    ShipmentResponse,
    ShipmentListItem,
    ShipmentDetailResponse,
    GoodsLineResponse,
    VehicleDateLine,
)

logger = logging.getLogger(__name__)

# Payment statuses that mean the sender owes nothing on booking
SETTLED_AT_BOOKING = {PaymentStatus.ALREADY_PAID, PaymentStatus.FREE}


def resolve_party_name(walk_in_name: Optional[str], party: Optional[Party]) -> str:
    """Walk-in name wins over the linked party's name."""
    if walk_in_name and walk_in_name.strip():
        return walk_in_name.strip()
    return party.name if party else ""


def _list_item(shipment: Shipment, sender: Party, receiver: Party) -> ShipmentListItem:
    return ShipmentListItem(
        **ShipmentResponse.model_validate(shipment).model_dump(),
        sender_name=resolve_party_name(shipment.walk_in_sender_name, sender),
        receiver_name=resolve_party_name(shipment.walk_in_receiver_name, receiver),
    )


class ShipmentService:

    @staticmethod
    async def _require(db: AsyncSession, model, resource: str, resource_id):
        instance = await db.get(model, resource_id)
        if not instance:
            raise ResourceNotFoundError(resource, resource_id)
        return instance

    @staticmethod
    async def _validate_references(db: AsyncSession, data: ShipmentCreate) -> Party:
        await ShipmentService._require(db, City, "Departure city", data.departure_city_id)
        if data.to_city_id is not None:
            await ShipmentService._require(db, City, "Destination city", data.to_city_id)
        await ShipmentService._require(db, Agency, "Forwarding agency", data.forwarding_agency_id)
        await ShipmentService._require(db, Vehicle, "Vehicle", data.vehicle_id)
        sender = await ShipmentService._require(db, Party, "Sender", data.sender_id)
        await ShipmentService._require(db, Party, "Receiver", data.receiver_id)

        item_ids = {line.item_id for line in data.goods_details}
        result = await db.execute(select(ItemCatalog.id).where(ItemCatalog.id.in_(item_ids)))
        missing = item_ids - set(result.scalars().all())
        if missing:
            raise ResourceNotFoundError("Item", ", ".join(str(i) for i in sorted(missing)))

        return sender

    @staticmethod
    async def register(db: AsyncSession, data: ShipmentCreate) -> Shipment:
        """
        Register a shipment.

        Flow (one DB transaction per attempt):
        1. Allocate the register number from the month's counter
        2. Insert the shipment and its goods lines
        3. Post the sender's bill unless the booking is ALREADY_PAID or FREE

        A unique violation on the bility number is fatal. Any other unique
        violation (register number or counter seeding) is retried.

        Raises:
            ResourceNotFoundError: A referenced master record is missing
            DuplicateBilityNumberError: The bility number is already registered
            RegisterNumberExhaustedError: No number could be allocated
        """
        sender = await ShipmentService._validate_references(db, data)

        existing = await db.execute(
            select(Shipment.register_number).where(Shipment.bility_number == data.bility_number)
        )
        if existing.scalar_one_or_none():
            raise DuplicateBilityNumberError(data.bility_number)

        bill_amount = to_decimal(data.total_amount)
        if data.total_delivery_charges is not None:
            delivery_total = to_decimal(data.total_delivery_charges)
        else:
            delivery_total = total(line.delivery_charges for line in data.goods_details)
        sender_name = resolve_party_name(data.walk_in_sender_name, sender)

        max_attempts = settings.register_number_max_retries
        for attempt in range(1, max_attempts + 1):
            try:
                async with atomic(db):
                    register_number = await RegisterNumberAllocator.allocate(db, data.bility_date)

                    shipment = Shipment(
                        register_number=register_number,
                        bility_number=data.bility_number,
                        bility_date=data.bility_date,
                        departure_city_id=data.departure_city_id,
                        to_city_id=data.to_city_id,
                        forwarding_agency_id=data.forwarding_agency_id,
                        vehicle_id=data.vehicle_id,
                        sender_id=data.sender_id,
                        receiver_id=data.receiver_id,
                        walk_in_sender_name=data.walk_in_sender_name,
                        walk_in_receiver_name=data.walk_in_receiver_name,
                        total_charges=bill_amount,
                        total_delivery_charges=delivery_total,
                        payment_status=data.payment_status,
                        remarks=data.remarks,
                    )
                    db.add(shipment)
                    await db.flush()

                    for line in data.goods_details:
                        db.add(GoodsDetail(
                            shipment_id=register_number,
                            item_id=line.item_id,
                            quantity=line.quantity,
                            charges=to_decimal(line.charges),
                            delivery_charges=to_decimal(line.delivery_charges),
                        ))

                    if data.payment_status not in SETTLED_AT_BOOKING:
                        db.add(Transaction(
                            party_type=PartyType.SENDER,
                            party_id=data.sender_id,
                            shipment_id=register_number,
                            credit_amount=bill_amount,
                            debit_amount=to_decimal(0),
                            description=f"Shipment Bill for Bility #{data.bility_number}. Sender: {sender_name}.",
                        ))
                    await db.flush()
            except IntegrityError as exc:
                if "bility_number" in str(exc.orig):
                    raise DuplicateBilityNumberError(data.bility_number) from exc
                logger.warning(
                    "Register number collision for bility %s (attempt %d/%d)",
                    data.bility_number, attempt, max_attempts
                )
                continue

            await db.refresh(shipment)
            logger.info("Shipment %s registered (bility %s)", register_number, data.bility_number)
            return shipment

        raise RegisterNumberExhaustedError(max_attempts)

    @staticmethod
    async def mark_delivered(db: AsyncSession, shipment: Shipment, delivery_date: date) -> Shipment:
        """Stamp the delivery date. This is the only mutation a shipment sees after booking."""
        shipment.delivery_date = delivery_date
        await db.flush()
        return shipment

    @staticmethod
    async def list_shipments(db: AsyncSession, filters: ShipmentFilter) -> List[ShipmentListItem]:
        sender = aliased(Party)
        receiver = aliased(Party)
        query = (
            select(Shipment, sender, receiver)
            .join(sender, Shipment.sender_id == sender.id)
            .join(receiver, Shipment.receiver_id == receiver.id)
        )

        if filters.query:
            pattern = f"%{filters.query.strip()}%"
            query = query.where(or_(
                Shipment.register_number.ilike(pattern),
                Shipment.bility_number.ilike(pattern),
                Shipment.walk_in_sender_name.ilike(pattern),
                Shipment.walk_in_receiver_name.ilike(pattern),
                sender.name.ilike(pattern),
                receiver.name.ilike(pattern),
            ))
        if filters.delivered is False:
            query = query.where(Shipment.delivery_date.is_(None))
        elif filters.delivered is True:
            query = query.where(Shipment.delivery_date.is_not(None))
        if filters.bility_date:
            query = query.where(Shipment.bility_date == filters.bility_date)

        query = query.order_by(desc(Shipment.created_at), desc(Shipment.register_number))
        result = await db.execute(query)
        return [_list_item(s, snd, rcv) for s, snd, rcv in result.all()]

    @staticmethod
    async def get_detail(db: AsyncSession, register_number: str) -> ShipmentDetailResponse:
        shipment = await ShipmentService._require(db, Shipment, "Shipment", register_number)
        sender = await db.get(Party, shipment.sender_id)
        receiver = await db.get(Party, shipment.receiver_id)

        result = await db.execute(
            select(GoodsDetail, ItemCatalog.item_description)
            .join(ItemCatalog, GoodsDetail.item_id == ItemCatalog.id)
            .where(GoodsDetail.shipment_id == register_number)
            .order_by(GoodsDetail.id)
        )
        lines = [
            GoodsLineResponse(
                id=line.id,
                item_id=line.item_id,
                item_description=description,
                quantity=line.quantity,
                charges=line.charges,
                delivery_charges=line.delivery_charges,
            )
            for line, description in result.all()
        ]

        return ShipmentDetailResponse(
            **_list_item(shipment, sender, receiver).model_dump(),
            goods_details=lines,
        )

    @staticmethod
    async def lines_by_vehicle_and_date(db: AsyncSession, vehicle_id: int, bility_date: date) -> List[VehicleDateLine]:
        """One row per goods line of the vehicle's shipments on that bility date."""
        result = await db.execute(
            select(Shipment, Party, GoodsDetail, ItemCatalog.item_description)
            .join(Party, Shipment.receiver_id == Party.id)
            .join(GoodsDetail, GoodsDetail.shipment_id == Shipment.register_number)
            .join(ItemCatalog, GoodsDetail.item_id == ItemCatalog.id)
            .where(Shipment.vehicle_id == vehicle_id, Shipment.bility_date == bility_date)
            .order_by(Shipment.register_number, GoodsDetail.id)
        )
        return [
            VehicleDateLine(
                register_number=shipment.register_number,
                bility_number=shipment.bility_number,
                receiver_name=resolve_party_name(shipment.walk_in_receiver_name, receiver),
                item_description=description,
                quantity=line.quantity,
                delivery_charges=line.delivery_charges,
                total_charges=shipment.total_charges,
            )
            for shipment, receiver, line, description in result.all()
        ]

    @staticmethod
    async def fetch_many(db: AsyncSession, register_numbers: Sequence[str]) -> dict:
        """Map of register number to shipment for the numbers that exist."""
        if not register_numbers:
            return {}
        result = await db.execute(select(Shipment).where(Shipment.register_number.in_(list(register_numbers))))
        return {s.register_number: s for s in result.scalars().all()}
