"""
Labour Assignment Service (Domain Logic).

Assignment status flow (linear):
    ASSIGNED -> DELIVERED -> COLLECTED -> SETTLED

Each PATCH action runs in one DB transaction together with the Delivery,
Shipment and Transaction writes it causes. A failed guard rolls back
everything the action wrote.
"""

import logging
from datetime import date, datetime, timezone
from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc

from backend.app.core.exceptions import (
    ResourceNotFoundError,
    ValidationFailedError,
    ConflictError,
    InvalidStateTransitionError,
    MissingPrerequisiteError,
    ids_detail,
)
from backend.app.db.session import atomic
from backend.app.domain.ledger.money import to_decimal, total
from backend.app.domain.shipments.shipment_service import ShipmentService, resolve_party_name
from backend.app.models.delivery import Delivery
from backend.app.models.delivery_enums import ApprovalStatus
from backend.app.models.labour_assignment import LabourAssignment
from backend.app.models.labour_enums import LabourAssignmentStatus, LabourAction
from backend.app.models.labour_person import LabourPerson
from backend.app.models.ledger_enums import PartyType
from backend.app.models.party import Party
from backend.app.models.shipment import Shipment
from backend.app.models.transaction import Transaction
from backend.app.schemas.labour import (
    LabourAssignmentCreate,
    LabourAssignmentUpdate,
    LabourAssignmentFilter,
    LabourAssignmentResponse,
    LabourAssignmentRow,
    LabourReminder,
)

logger = logging.getLogger(__name__)

LABOUR_CNIC_PLACEHOLDER = "N/A from Labour"

# Statuses an action may start from
ALLOWED_FROM = {
    LabourAction.DELIVER: {LabourAssignmentStatus.ASSIGNED},
    LabourAction.COLLECT: {LabourAssignmentStatus.DELIVERED, LabourAssignmentStatus.COLLECTED},
    LabourAction.SETTLE: {LabourAssignmentStatus.COLLECTED},
}

TARGET_STATUS = {
    LabourAction.DELIVER: LabourAssignmentStatus.DELIVERED,
    LabourAction.COLLECT: LabourAssignmentStatus.COLLECTED,
    LabourAction.SETTLE: LabourAssignmentStatus.SETTLED,
}


class LabourAssignmentService:

    @staticmethod
    async def _person(db: AsyncSession, labour_person_id: int) -> LabourPerson:
        person = await db.get(LabourPerson, labour_person_id)
        if not person:
            raise ResourceNotFoundError("Labour person", labour_person_id)
        return person

    @staticmethod
    async def create(db: AsyncSession, data: LabourAssignmentCreate) -> List[LabourAssignment]:
        """
        Assign undelivered shipments to a labour person.

        Shipments that already have an unsettled assignment are rejected
        rather than reassigned.

        Raises:
            ResourceNotFoundError: Unknown labour person
            ValidationFailedError: Unknown or already delivered shipments
            ConflictError: Shipments with an active assignment
        """
        await LabourAssignmentService._person(db, data.labour_person_id)

        shipment_ids = list(dict.fromkeys(s.strip() for s in data.shipment_ids if s.strip()))
        if not shipment_ids:
            raise ValidationFailedError("At least one shipment is required")

        shipments = await ShipmentService.fetch_many(db, shipment_ids)
        missing = [sid for sid in shipment_ids if sid not in shipments]
        if missing:
            raise ValidationFailedError("Shipments not found", details=ids_detail(missing))

        delivered = [sid for sid in shipment_ids if shipments[sid].delivery_date is not None]
        if delivered:
            raise ValidationFailedError("Shipments are already delivered", details=ids_detail(delivered))

        result = await db.execute(
            select(LabourAssignment.shipment_id).where(
                LabourAssignment.shipment_id.in_(shipment_ids),
                LabourAssignment.status != LabourAssignmentStatus.SETTLED
            )
        )
        active = set(result.scalars().all())
        if active:
            raise ConflictError(
                "Shipments already have an active labour assignment",
                details=ids_detail(active)
            )

        assignments = [
            LabourAssignment(
                labour_person_id=data.labour_person_id,
                shipment_id=sid,
                due_date=data.due_date,
                status=LabourAssignmentStatus.ASSIGNED,
                notes=data.notes,
            )
            for sid in shipment_ids
        ]
        async with atomic(db):
            db.add_all(assignments)
            await db.flush()

        for assignment in assignments:
            await db.refresh(assignment)
        logger.info("Assigned %d shipments to labour person %s", len(assignments), data.labour_person_id)
        return assignments

    @staticmethod
    async def apply_action(db: AsyncSession, data: LabourAssignmentUpdate) -> LabourAssignment:
        """
        Apply DELIVER, COLLECT or SETTLE to one assignment.

        Raises:
            ResourceNotFoundError: Unknown assignment
            InvalidStateTransitionError: Action not allowed from current status
            ValidationFailedError: COLLECT without a positive amount
            MissingPrerequisiteError: COLLECT before a delivery exists
            ConflictError: DELIVER when the shipment already has a delivery
        """
        async with atomic(db):
            assignment = await db.get(LabourAssignment, data.assignment_id)
            if not assignment:
                raise ResourceNotFoundError("Labour assignment", data.assignment_id)

            current = assignment.status
            if current not in ALLOWED_FROM[data.action]:
                raise InvalidStateTransitionError(
                    "Labour assignment", current.value, TARGET_STATUS[data.action].value,
                    message=f"Cannot {data.action.value} an assignment that is {current.value}"
                )

            shipment = await db.get(Shipment, assignment.shipment_id)
            person = await db.get(LabourPerson, assignment.labour_person_id)

            if data.action == LabourAction.DELIVER:
                await LabourAssignmentService._deliver(db, assignment, shipment, person, data)
            elif data.action == LabourAction.COLLECT:
                await LabourAssignmentService._collect(db, assignment, data)
            else:
                await LabourAssignmentService._settle(db, assignment, shipment, person)

        await db.refresh(assignment)
        logger.info(
            "Labour assignment %s: %s (%s -> %s)",
            assignment.id, data.action.value, current.value, assignment.status.value
        )
        return assignment

    @staticmethod
    async def _deliver(db, assignment, shipment, person, data) -> None:
        existing = await db.execute(select(Delivery.id).where(Delivery.shipment_id == shipment.register_number))
        if existing.scalar_one_or_none():
            raise ConflictError(
                "Delivery already recorded for this shipment.",
                details={"shipment_id": shipment.register_number}
            )

        receiver = await db.get(Party, shipment.receiver_id)
        now = datetime.now(timezone.utc)
        notes = f"Delivered by Labour Person: {person.name}. {data.notes or ''}".strip()

        db.add(Delivery(
            shipment_id=shipment.register_number,
            delivery_date=now.date(),
            delivery_time=now.strftime("%H:%M:%S"),
            station_expense=to_decimal(0),
            bility_expense=to_decimal(0),
            station_labour=to_decimal(0),
            cart_labour=to_decimal(0),
            total_expenses=to_decimal(0),
            receiver_name=resolve_party_name(shipment.walk_in_receiver_name, receiver),
            receiver_phone=receiver.contact_info if receiver else None,
            receiver_cnic=LABOUR_CNIC_PLACEHOLDER,
            receiver_address=receiver.contact_info if receiver else None,
            delivery_notes=notes,
            delivery_status="DELIVERED",
            approval_status=ApprovalStatus.PENDING,
        ))
        await db.flush()

        await ShipmentService.mark_delivered(db, shipment, now.date())

        assignment.delivered_date = now
        assignment.status = LabourAssignmentStatus.DELIVERED

    @staticmethod
    async def _collect(db, assignment, data) -> None:
        if data.collected_amount is None or data.collected_amount <= 0:
            raise ValidationFailedError(
                "Collected amount must be greater than zero",
                details={"collected_amount": str(data.collected_amount)}
            )

        result = await db.execute(select(Delivery).where(Delivery.shipment_id == assignment.shipment_id))
        delivery = result.scalar_one_or_none()
        if not delivery:
            raise MissingPrerequisiteError(
                "Delivery record missing for this shipment",
                details={"shipment_id": assignment.shipment_id}
            )

        expenses = [data.station_expense, data.bility_expense, data.station_labour, data.cart_labour]
        delivery.station_expense = to_decimal(data.station_expense)
        delivery.bility_expense = to_decimal(data.bility_expense)
        delivery.station_labour = to_decimal(data.station_labour)
        delivery.cart_labour = to_decimal(data.cart_labour)
        delivery.total_expenses = total(expenses)

        assignment.collected_amount = to_decimal(data.collected_amount)
        if data.notes:
            assignment.notes = data.notes
        if assignment.status == LabourAssignmentStatus.DELIVERED:
            assignment.status = LabourAssignmentStatus.COLLECTED
        await db.flush()

    @staticmethod
    async def _settle(db, assignment, shipment, person) -> None:
        db.add(Transaction(
            party_type=PartyType.RECEIVER,
            party_id=shipment.receiver_id,
            shipment_id=shipment.register_number,
            credit_amount=to_decimal(assignment.collected_amount),
            debit_amount=to_decimal(0),
            description=f"Collection for Bility #{shipment.bility_number} settled by {person.name}.",
        ))
        assignment.settled_date = datetime.now(timezone.utc)
        assignment.status = LabourAssignmentStatus.SETTLED
        await db.flush()

    @staticmethod
    async def _rows(db: AsyncSession, *conditions, order_by) -> list:
        query = (
            select(LabourAssignment, LabourPerson, Shipment, Party)
            .join(LabourPerson, LabourAssignment.labour_person_id == LabourPerson.id)
            .join(Shipment, LabourAssignment.shipment_id == Shipment.register_number)
            .join(Party, Shipment.receiver_id == Party.id)
            .where(*conditions)
            .order_by(*order_by)
        )
        result = await db.execute(query)
        return [
            dict(
                **LabourAssignmentResponse.model_validate(assignment).model_dump(),
                labour_person_name=person.name,
                bility_number=shipment.bility_number,
                receiver_name=resolve_party_name(shipment.walk_in_receiver_name, receiver),
                total_charges=shipment.total_charges,
            )
            for assignment, person, shipment, receiver in result.all()
        ]

    @staticmethod
    async def list_assignments(db: AsyncSession, filters: LabourAssignmentFilter) -> List[LabourAssignmentRow]:
        conditions = []
        if filters.labour_person_id is not None:
            conditions.append(LabourAssignment.labour_person_id == filters.labour_person_id)
        if filters.status is not None:
            conditions.append(LabourAssignment.status == filters.status)
        if filters.exclude_settled:
            conditions.append(LabourAssignment.status != LabourAssignmentStatus.SETTLED)

        rows = await LabourAssignmentService._rows(
            db, *conditions,
            order_by=[desc(LabourAssignment.assigned_date), desc(LabourAssignment.id)]
        )
        return [LabourAssignmentRow(**row) for row in rows]

    @staticmethod
    async def reminders(db: AsyncSession, today: date = None) -> List[LabourReminder]:
        """Unsettled assignments by due date (undated last), flagged when overdue."""
        today = today or date.today()
        rows = await LabourAssignmentService._rows(
            db,
            LabourAssignment.status != LabourAssignmentStatus.SETTLED,
            order_by=[
                LabourAssignment.due_date.is_(None),
                LabourAssignment.due_date,
                desc(LabourAssignment.assigned_date),
                desc(LabourAssignment.id),
            ]
        )
        return [
            LabourReminder(**row, is_overdue=row["due_date"] is not None and row["due_date"] < today)
            for row in rows
        ]
