"""
Delivery Service (Domain Logic).

Records deliveries and drives the approval workflow:

    PENDING -> APPROVED_BY_ADMIN -> APPROVED
    PENDING / APPROVED_BY_ADMIN -> REJECTED

APPROVED and REJECTED are terminal. The approval day is the day of
approved_at, not the delivery date.
"""

import logging
from datetime import date, datetime, time, timezone
from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from sqlalchemy.exc import IntegrityError

from backend.app.core.exceptions import (
    ResourceNotFoundError,
    ConflictError,
    InvalidStateTransitionError,
    InsufficientPermissionsError,
)
from backend.app.db.session import atomic
from backend.app.domain.ledger.money import to_decimal, total
from backend.app.domain.shipments.shipment_service import ShipmentService, resolve_party_name
from backend.app.models.delivery import Delivery
from backend.app.models.delivery_enums import ApprovalStatus, ApprovalAction
from backend.app.models.enums import UserRole
from backend.app.models.party import Party
from backend.app.models.shipment import Shipment
from backend.app.schemas.delivery import DeliveryCreate, DeliveryResponse, DeliveryReportRow

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = {ApprovalStatus.APPROVED, ApprovalStatus.REJECTED}

# Roles allowed to request each target status
ACTION_ROLES = {
    ApprovalAction.APPROVED_BY_ADMIN: {UserRole.ADMIN, UserRole.SUPERADMIN},
    ApprovalAction.REJECTED: {UserRole.ADMIN, UserRole.SUPERADMIN},
    ApprovalAction.APPROVED: {UserRole.SUPERADMIN},
}


def check_transition(current: ApprovalStatus, target: ApprovalStatus) -> None:
    """
    Raise InvalidStateTransitionError unless current -> target is allowed.

    Leaving PENDING is always allowed. Terminal states never move, and a
    delivery already at the target status is rejected.
    """
    if current == ApprovalStatus.PENDING:
        return
    if current in TERMINAL_STATUSES:
        raise InvalidStateTransitionError(
            "Delivery", current.value, target.value,
            message=f"Delivery is already {current.value} and cannot be changed"
        )
    if current == target:
        raise InvalidStateTransitionError(
            "Delivery", current.value, target.value,
            message=f"Delivery is already {current.value}"
        )


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """UTC [00:00:00.000, 23:59:59.999] of a calendar day."""
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    end = datetime.combine(day, time(23, 59, 59, 999000), tzinfo=timezone.utc)
    return start, end


class DeliveryService:

    @staticmethod
    async def record(db: AsyncSession, data: DeliveryCreate) -> Delivery:
        """
        Record a direct delivery and stamp the shipment's delivery date.

        Raises:
            ResourceNotFoundError: Unknown shipment
            ConflictError: The shipment already has a delivery
        """
        shipment = await db.get(Shipment, data.shipment_id)
        if not shipment:
            raise ResourceNotFoundError("Shipment", data.shipment_id)

        existing = await db.execute(select(Delivery.id).where(Delivery.shipment_id == data.shipment_id))
        if existing.scalar_one_or_none():
            raise ConflictError("Delivery already recorded for this shipment.", details={"shipment_id": data.shipment_id})

        expenses = [data.station_expense, data.bility_expense, data.station_labour, data.cart_labour]
        delivery = Delivery(
            shipment_id=data.shipment_id,
            delivery_date=data.delivery_date,
            delivery_time=datetime.now(timezone.utc).strftime("%H:%M:%S"),
            station_expense=to_decimal(data.station_expense),
            bility_expense=to_decimal(data.bility_expense),
            station_labour=to_decimal(data.station_labour),
            cart_labour=to_decimal(data.cart_labour),
            total_expenses=total(expenses),
            receiver_name=data.receiver_name,
            receiver_phone=data.receiver_phone,
            receiver_cnic=data.receiver_cnic,
            receiver_address=data.receiver_address,
            delivery_notes=data.delivery_notes,
            delivery_status="DELIVERED",
            approval_status=ApprovalStatus.PENDING,
        )

        try:
            async with atomic(db):
                db.add(delivery)
                await db.flush()
                await ShipmentService.mark_delivered(db, shipment, data.delivery_date)
        except IntegrityError as exc:
            raise ConflictError("Delivery already recorded for this shipment.", details={"shipment_id": data.shipment_id}) from exc

        await db.refresh(delivery)
        logger.info("Delivery %s recorded for shipment %s", delivery.id, delivery.shipment_id)
        return delivery

    @staticmethod
    async def change_approval(
        db: AsyncSession,
        delivery_id: int,
        action: ApprovalAction,
        actor_username: str,
        actor_role: UserRole
    ) -> Delivery:
        """
        Move a delivery to the requested approval status.

        Args:
            actor_username: Authenticated reviewer, stored as approved_by
            actor_role: Reviewer's role, checked against the requested action

        Raises:
            ResourceNotFoundError: Unknown delivery
            InsufficientPermissionsError: Role may not request this status
            InvalidStateTransitionError: Transition not allowed
        """
        if actor_role not in ACTION_ROLES[action]:
            raise InsufficientPermissionsError(
                f"{actor_role.value} cannot set approval status {action.value}",
                details={"action": action.value}
            )

        async with atomic(db):
            delivery = await db.get(Delivery, delivery_id)
            if not delivery:
                raise ResourceNotFoundError("Delivery", delivery_id)

            previous = delivery.approval_status
            target = ApprovalStatus(action.value)
            check_transition(previous, target)

            delivery.approval_status = target
            delivery.approved_by = actor_username
            delivery.approved_at = datetime.now(timezone.utc)

        await db.refresh(delivery)
        logger.info(
            "Delivery %s approval %s -> %s by %s",
            delivery_id, previous.value, target.value, actor_username
        )
        return delivery

    @staticmethod
    async def _report(db: AsyncSession, *conditions, order_by=None) -> List[DeliveryReportRow]:
        query = (
            select(Delivery, Shipment, Party)
            .join(Shipment, Delivery.shipment_id == Shipment.register_number)
            .join(Party, Shipment.receiver_id == Party.id)
            .where(*conditions)
        )
        query = query.order_by(*(order_by if order_by is not None else [desc(Delivery.created_at), desc(Delivery.id)]))
        result = await db.execute(query)
        return [
            DeliveryReportRow(
                **DeliveryResponse.model_validate(delivery).model_dump(),
                bility_number=shipment.bility_number,
                total_charges=shipment.total_charges,
                shipment_receiver_name=resolve_party_name(shipment.walk_in_receiver_name, receiver),
            )
            for delivery, shipment, receiver in result.all()
        ]

    @staticmethod
    async def list_deliveries(
        db: AsyncSession,
        shipment_id: Optional[str] = None,
        approval_status: Optional[ApprovalStatus] = None
    ) -> List[DeliveryReportRow]:
        conditions = []
        if shipment_id:
            conditions.append(Delivery.shipment_id == shipment_id)
        if approval_status:
            conditions.append(Delivery.approval_status == approval_status)
        return await DeliveryService._report(db, *conditions)

    @staticmethod
    async def pending_approvals(db: AsyncSession) -> List[DeliveryReportRow]:
        """Admin queue, oldest delivery first."""
        return await DeliveryService._report(
            db,
            Delivery.approval_status == ApprovalStatus.PENDING,
            order_by=[Delivery.created_at, Delivery.id]
        )

    @staticmethod
    async def admin_approved(db: AsyncSession) -> List[DeliveryReportRow]:
        """Superadmin queue, oldest admin approval first."""
        return await DeliveryService._report(
            db,
            Delivery.approval_status == ApprovalStatus.APPROVED_BY_ADMIN,
            order_by=[Delivery.approved_at, Delivery.id]
        )

    @staticmethod
    async def approved_on(db: AsyncSession, day: date) -> List[DeliveryReportRow]:
        """Deliveries given final approval during the UTC day."""
        start, end = day_bounds(day)
        return await DeliveryService._report(
            db,
            Delivery.approval_status == ApprovalStatus.APPROVED,
            Delivery.approved_at >= start,
            Delivery.approved_at <= end,
            order_by=[Delivery.approved_at, Delivery.id]
        )
