"""
Labour Settlement Service (Domain Logic).

Tracks what each labour person owes the office and what has been paid:

    total_due = sum(shipment total charges + delivery total expenses)
    balance   = total_due - total_paid
"""

import logging
from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from backend.app.core.exceptions import ResourceNotFoundError
from backend.app.db.session import atomic
from backend.app.domain.ledger.money import to_decimal, ZERO
from backend.app.models.delivery import Delivery
from backend.app.models.labour_assignment import LabourAssignment
from backend.app.models.labour_payment import LabourPaymentHistory
from backend.app.models.labour_person import LabourPerson
from backend.app.models.shipment import Shipment
from backend.app.schemas.labour import (
    LabourPaymentCreate,
    LabourPaymentResponse,
    LabourSettlementSummary,
    SettlementAssignmentLine,
)

logger = logging.getLogger(__name__)


class LabourSettlementService:

    @staticmethod
    async def summaries(db: AsyncSession, labour_person_id: Optional[int] = None) -> List[LabourSettlementSummary]:
        query = select(LabourPerson).order_by(LabourPerson.name, LabourPerson.id)
        if labour_person_id is not None:
            query = query.where(LabourPerson.id == labour_person_id)
        persons = (await db.execute(query)).scalars().all()
        if labour_person_id is not None and not persons:
            raise ResourceNotFoundError("Labour person", labour_person_id)

        person_ids = [p.id for p in persons]

        assignment_rows = (await db.execute(
            select(LabourAssignment, Shipment, Delivery.total_expenses)
            .join(Shipment, LabourAssignment.shipment_id == Shipment.register_number)
            .outerjoin(Delivery, Delivery.shipment_id == Shipment.register_number)
            .where(LabourAssignment.labour_person_id.in_(person_ids))
            .order_by(LabourAssignment.assigned_date, LabourAssignment.id)
        )).all()

        payments = (await db.execute(
            select(LabourPaymentHistory)
            .where(LabourPaymentHistory.labour_person_id.in_(person_ids))
            .order_by(LabourPaymentHistory.payment_date, LabourPaymentHistory.id)
        )).scalars().all()

        summaries = []
        for person in persons:
            lines = []
            for assignment, shipment, expenses in assignment_rows:
                if assignment.labour_person_id != person.id:
                    continue
                charges = to_decimal(shipment.total_charges)
                expenses = to_decimal(expenses)
                lines.append(SettlementAssignmentLine(
                    assignment_id=assignment.id,
                    shipment_id=shipment.register_number,
                    bility_number=shipment.bility_number,
                    status=assignment.status,
                    total_charges=charges,
                    total_expenses=expenses,
                    amount_due=charges + expenses,
                ))

            person_payments = [p for p in payments if p.labour_person_id == person.id]
            total_due = sum((to_decimal(line.amount_due) for line in lines), ZERO)
            total_paid = sum((to_decimal(p.amount_paid) for p in person_payments), ZERO)

            summaries.append(LabourSettlementSummary(
                labour_person_id=person.id,
                labour_person_name=person.name,
                total_due=total_due,
                total_paid=total_paid,
                balance=total_due - total_paid,
                assignments=lines,
                payments=[LabourPaymentResponse.model_validate(p) for p in person_payments],
            ))
        return summaries

    @staticmethod
    async def record_payment(db: AsyncSession, data: LabourPaymentCreate) -> LabourPaymentHistory:
        """
        Record a payment from a labour person against one of their shipments.

        Raises:
            ResourceNotFoundError: Unknown person, shipment, or no assignment linking them
        """
        if not await db.get(LabourPerson, data.labour_person_id):
            raise ResourceNotFoundError("Labour person", data.labour_person_id)
        if not await db.get(Shipment, data.shipment_id):
            raise ResourceNotFoundError("Shipment", data.shipment_id)

        link = await db.execute(
            select(LabourAssignment.id).where(
                LabourAssignment.labour_person_id == data.labour_person_id,
                LabourAssignment.shipment_id == data.shipment_id
            ).limit(1)
        )
        if link.scalar_one_or_none() is None:
            raise ResourceNotFoundError("Labour assignment", f"{data.labour_person_id}/{data.shipment_id}")

        payment = LabourPaymentHistory(
            labour_person_id=data.labour_person_id,
            shipment_id=data.shipment_id,
            amount_paid=to_decimal(data.amount_paid),
            payment_method=data.payment_method or "CASH",
            notes=data.notes,
        )
        async with atomic(db):
            db.add(payment)
            await db.flush()

        await db.refresh(payment)
        logger.info("Labour payment %s recorded for person %s", payment.id, data.labour_person_id)
        return payment
