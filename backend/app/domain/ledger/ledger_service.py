"""
Ledger Service (Domain Logic).

Read-side aggregation over the append-only party and vehicle ledgers, plus
the two vehicle postings (fare settlement and manual entries).

    balance = sum(credit_amount) - sum(debit_amount)

Running balances are folded at read time in transaction-date order and are
never stored.
"""

import logging
from decimal import Decimal
from typing import List, Iterable
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc

from backend.app.core.exceptions import ResourceNotFoundError, ValidationFailedError, ConflictError
from backend.app.db.session import atomic
from backend.app.domain.ledger.money import to_decimal, ZERO
from backend.app.models.ledger_enums import LedgerEntryType, FareStatus
from backend.app.models.party import Party
from backend.app.models.transaction import Transaction
from backend.app.models.trip_log import TripLog
from backend.app.models.vehicle import Vehicle
from backend.app.models.vehicle_transaction import VehicleTransaction
from backend.app.schemas.ledger import (
    VehicleLedgerSummary,
    VehicleFinancials,
    LedgerLine,
    SettleFareRequest,
    VehicleTransactionCreate,
    PartyLedgerSummary,
    PartyLedger,
    PartyLedgerLine,
)

logger = logging.getLogger(__name__)


def running_balance(rows: Iterable) -> list[tuple[object, Decimal]]:
    """Pair each ledger row with the balance after it."""
    balance = ZERO
    folded = []
    for row in rows:
        balance += to_decimal(row.credit_amount) - to_decimal(row.debit_amount)
        folded.append((row, balance))
    return folded


class LedgerService:

    @staticmethod
    async def _totals_by(db: AsyncSession, key_column, model) -> dict:
        result = await db.execute(
            select(
                key_column,
                func.coalesce(func.sum(model.credit_amount), 0),
                func.coalesce(func.sum(model.debit_amount), 0),
                func.count(model.id),
            ).group_by(key_column)
        )
        return {
            key: (to_decimal(credits), to_decimal(debits), count)
            for key, credits, debits, count in result.all()
        }

    @staticmethod
    async def _latest_fare_status(db: AsyncSession) -> dict:
        result = await db.execute(
            select(TripLog.vehicle_id, TripLog.fare_is_paid)
            .order_by(desc(TripLog.date), desc(TripLog.id))
        )
        latest = {}
        for vehicle_id, fare_is_paid in result.all():
            latest.setdefault(vehicle_id, FareStatus.PAID if fare_is_paid else FareStatus.UNPAID)
        return latest

    @staticmethod
    async def vehicle_summaries(db: AsyncSession) -> List[VehicleLedgerSummary]:
        vehicles = (await db.execute(select(Vehicle).order_by(Vehicle.vehicle_number))).scalars().all()
        totals = await LedgerService._totals_by(db, VehicleTransaction.vehicle_id, VehicleTransaction)
        fare_status = await LedgerService._latest_fare_status(db)

        summaries = []
        for vehicle in vehicles:
            credits, debits, count = totals.get(vehicle.id, (ZERO, ZERO, 0))
            summaries.append(VehicleLedgerSummary(
                vehicle_id=vehicle.id,
                vehicle_number=vehicle.vehicle_number,
                total_credits=credits,
                total_debits=debits,
                balance=credits - debits,
                transaction_count=count,
                fare_status=fare_status.get(vehicle.id, FareStatus.NOT_APPLICABLE),
            ))
        return summaries

    @staticmethod
    async def _vehicle(db: AsyncSession, vehicle_id: int) -> Vehicle:
        vehicle = await db.get(Vehicle, vehicle_id)
        if not vehicle:
            raise ResourceNotFoundError("Vehicle", vehicle_id)
        return vehicle

    @staticmethod
    async def vehicle_financials(db: AsyncSession, vehicle_id: int) -> VehicleFinancials:
        vehicle = await LedgerService._vehicle(db, vehicle_id)
        rows = (await db.execute(
            select(VehicleTransaction)
            .where(VehicleTransaction.vehicle_id == vehicle_id)
            .order_by(VehicleTransaction.transaction_date, VehicleTransaction.id)
        )).scalars().all()

        lines = [
            LedgerLine(
                id=row.id,
                transaction_date=row.transaction_date,
                description=row.description,
                credit_amount=row.credit_amount,
                debit_amount=row.debit_amount,
                balance=balance,
                shipment_id=row.shipment_id,
                trip_id=row.trip_id,
            )
            for row, balance in running_balance(rows)
        ]
        credits = sum((to_decimal(r.credit_amount) for r in rows), ZERO)
        debits = sum((to_decimal(r.debit_amount) for r in rows), ZERO)

        return VehicleFinancials(
            vehicle_id=vehicle.id,
            vehicle_number=vehicle.vehicle_number,
            total_credits=credits,
            total_debits=debits,
            balance=credits - debits,
            transactions=lines,
        )

    @staticmethod
    async def settle_fare(db: AsyncSession, vehicle_id: int, data: SettleFareRequest) -> tuple[TripLog, VehicleTransaction]:
        """
        Settle one trip's fare in full.

        Partial payments are rejected so a trip is never shown as PAID while
        money is still owed; those go through post_transaction instead.

        Raises:
            ResourceNotFoundError: Unknown vehicle, or trip not on this vehicle
            ConflictError: Trip fare already paid
            ValidationFailedError: Non-positive or partial payment
        """
        await LedgerService._vehicle(db, vehicle_id)

        trip = await db.get(TripLog, data.trip_id)
        if not trip or trip.vehicle_id != vehicle_id:
            raise ResourceNotFoundError("Trip", data.trip_id)
        if trip.fare_is_paid:
            raise ConflictError("Trip fare is already settled", details={"trip_id": trip.id})

        payment = to_decimal(data.payment_amount)
        # The client's figure may raise the amount owed, never lower it below the trip's fare
        owed = max(to_decimal(data.owed_amount or 0), to_decimal(trip.received_amount))
        if payment <= 0:
            raise ValidationFailedError("Payment amount must be greater than zero")
        if payment < owed:
            raise ValidationFailedError(
                "Partial payment is not allowed. Payment must cover the full amount owed.",
                details={"payment_amount": str(payment), "owed_amount": str(owed)}
            )

        entry = VehicleTransaction(
            vehicle_id=vehicle_id,
            trip_id=trip.id,
            credit_amount=payment,
            debit_amount=ZERO,
            description=data.payment_description or f"Fare settlement for trip #{trip.id}",
        )
        async with atomic(db):
            db.add(entry)
            trip.fare_is_paid = True
            await db.flush()

        await db.refresh(entry)
        logger.info("Trip %s fare settled for vehicle %s (%s)", trip.id, vehicle_id, payment)
        return trip, entry

    @staticmethod
    async def post_transaction(db: AsyncSession, vehicle_id: int, data: VehicleTransactionCreate) -> VehicleTransaction:
        """Ad hoc credit or debit against a vehicle, with no trip linkage."""
        await LedgerService._vehicle(db, vehicle_id)

        amount = to_decimal(data.amount)
        is_credit = data.type == LedgerEntryType.CREDIT
        entry = VehicleTransaction(
            vehicle_id=vehicle_id,
            credit_amount=amount if is_credit else ZERO,
            debit_amount=ZERO if is_credit else amount,
            description=data.description,
        )
        async with atomic(db):
            db.add(entry)
            await db.flush()

        await db.refresh(entry)
        logger.info("Manual %s of %s posted to vehicle %s", data.type.value, amount, vehicle_id)
        return entry

    @staticmethod
    async def party_summaries(db: AsyncSession) -> List[PartyLedgerSummary]:
        parties = (await db.execute(select(Party).order_by(Party.name, Party.id))).scalars().all()
        totals = await LedgerService._totals_by(db, Transaction.party_id, Transaction)

        summaries = []
        for party in parties:
            credits, debits, count = totals.get(party.id, (ZERO, ZERO, 0))
            summaries.append(PartyLedgerSummary(
                party_id=party.id,
                party_name=party.name,
                opening_balance=party.opening_balance,
                total_credits=credits,
                total_debits=debits,
                balance=credits - debits,
                transaction_count=count,
            ))
        return summaries

    @staticmethod
    async def party_ledger(db: AsyncSession, party_id: int) -> PartyLedger:
        party = await db.get(Party, party_id)
        if not party:
            raise ResourceNotFoundError("Party", party_id)

        rows = (await db.execute(
            select(Transaction)
            .where(Transaction.party_id == party_id)
            .order_by(Transaction.transaction_date, Transaction.id)
        )).scalars().all()

        lines = [
            PartyLedgerLine(
                id=row.id,
                transaction_date=row.transaction_date,
                description=row.description,
                credit_amount=row.credit_amount,
                debit_amount=row.debit_amount,
                balance=balance,
                shipment_id=row.shipment_id,
                party_type=row.party_type,
            )
            for row, balance in running_balance(rows)
        ]
        credits = sum((to_decimal(r.credit_amount) for r in rows), ZERO)
        debits = sum((to_decimal(r.debit_amount) for r in rows), ZERO)

        return PartyLedger(
            party_id=party.id,
            party_name=party.name,
            opening_balance=party.opening_balance,
            total_credits=credits,
            total_debits=debits,
            balance=credits - debits,
            transactions=lines,
        )
