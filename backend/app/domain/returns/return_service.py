"""
Return Service (Domain Logic).

Opens returns against registered shipments and moves them through:

    PENDING -> IN_TRANSIT -> COMPLETED
    PENDING / IN_TRANSIT -> CANCELLED

A goods line can never have more units out on returns than it shipped.
Cancelled returns give their units back.
"""

import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Optional, List, Dict
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc
from sqlalchemy.orm import aliased

from backend.app.core.exceptions import (
    ResourceNotFoundError,
    ValidationFailedError,
    InvalidStateTransitionError,
)
from backend.app.db.session import atomic
from backend.app.domain.shipments.shipment_service import resolve_party_name
from backend.app.models.goods_detail import GoodsDetail
from backend.app.models.item_catalog import ItemCatalog
from backend.app.models.party import Party
from backend.app.models.return_enums import ReturnStatus
from backend.app.models.return_shipment import ReturnShipment, ReturnItem
from backend.app.models.shipment import Shipment
from backend.app.schemas.returns import ReturnCreate, ReturnStatusUpdate, ReturnResponse, ReturnItemResponse

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = {ReturnStatus.COMPLETED, ReturnStatus.CANCELLED}

ALLOWED_TRANSITIONS = {
    ReturnStatus.PENDING: {ReturnStatus.IN_TRANSIT, ReturnStatus.COMPLETED, ReturnStatus.CANCELLED},
    ReturnStatus.IN_TRANSIT: {ReturnStatus.COMPLETED, ReturnStatus.CANCELLED},
}


def check_return_transition(current: ReturnStatus, target: ReturnStatus) -> None:
    if target not in ALLOWED_TRANSITIONS.get(current, set()):
        message = None
        if current in TERMINAL_STATUSES:
            message = f"Return is already {current.value} and cannot be changed"
        raise InvalidStateTransitionError("Return", current.value, target.value, message=message)


class ReturnService:

    @staticmethod
    async def _returned_so_far(db: AsyncSession, goods_detail_ids) -> Dict[int, int]:
        """Units per goods line already on returns that were not cancelled."""
        result = await db.execute(
            select(ReturnItem.goods_detail_id, func.sum(ReturnItem.quantity_returned))
            .join(ReturnShipment, ReturnItem.return_id == ReturnShipment.id)
            .where(
                ReturnItem.goods_detail_id.in_(list(goods_detail_ids)),
                ReturnShipment.status != ReturnStatus.CANCELLED
            )
            .group_by(ReturnItem.goods_detail_id)
        )
        return {goods_id: int(qty or 0) for goods_id, qty in result.all()}

    @staticmethod
    async def create(db: AsyncSession, data: ReturnCreate) -> ReturnShipment:
        """
        Open a return with one item per goods line.

        Raises:
            ResourceNotFoundError: Unknown shipment
            ValidationFailedError: Goods line not on this shipment, listed
                twice, or more units returned than were shipped
        """
        shipment = await db.get(Shipment, data.original_shipment_id)
        if not shipment:
            raise ResourceNotFoundError("Shipment", data.original_shipment_id)

        requested = [item.goods_detail_id for item in data.items]
        if len(set(requested)) != len(requested):
            raise ValidationFailedError("Each goods line can appear only once in a return")

        result = await db.execute(
            select(GoodsDetail).where(
                GoodsDetail.id.in_(requested),
                GoodsDetail.shipment_id == shipment.register_number
            )
        )
        lines = {line.id: line for line in result.scalars().all()}
        foreign = [goods_id for goods_id in requested if goods_id not in lines]
        if foreign:
            raise ValidationFailedError(
                "Goods lines do not belong to this shipment",
                details={"goods_detail_ids": foreign, "shipment_id": shipment.register_number}
            )

        already = await ReturnService._returned_so_far(db, requested)
        for item in data.items:
            line = lines[item.goods_detail_id]
            available = line.quantity - already.get(line.id, 0)
            if item.quantity_returned > available:
                raise ValidationFailedError(
                    "Quantity returned exceeds the quantity shipped",
                    details={
                        "goods_detail_id": line.id,
                        "quantity_shipped": line.quantity,
                        "already_returned": already.get(line.id, 0),
                        "quantity_returned": item.quantity_returned,
                    }
                )

        return_shipment = ReturnShipment(
            original_shipment_id=shipment.register_number,
            reason=data.reason,
            action_taken=data.action_taken,
            comments=data.comments,
            status=ReturnStatus.PENDING,
        )
        async with atomic(db):
            db.add(return_shipment)
            await db.flush()
            for item in data.items:
                db.add(ReturnItem(
                    return_id=return_shipment.id,
                    goods_detail_id=item.goods_detail_id,
                    quantity_returned=item.quantity_returned,
                    condition=item.condition,
                ))
            await db.flush()

        await db.refresh(return_shipment)
        logger.info("Return %s opened for shipment %s", return_shipment.id, shipment.register_number)
        return return_shipment

    @staticmethod
    async def update_status(db: AsyncSession, return_id: int, data: ReturnStatusUpdate) -> ReturnShipment:
        """
        Move a return to a new status. Reaching COMPLETED stamps the
        resolution date.

        Raises:
            ResourceNotFoundError: Unknown return
            InvalidStateTransitionError: Transition not allowed
        """
        async with atomic(db):
            return_shipment = await db.get(ReturnShipment, return_id)
            if not return_shipment:
                raise ResourceNotFoundError("Return", return_id)

            previous = return_shipment.status
            check_return_transition(previous, data.status)

            return_shipment.status = data.status
            if data.action_taken:
                return_shipment.action_taken = data.action_taken
            if data.comments:
                return_shipment.comments = data.comments
            if data.status == ReturnStatus.COMPLETED:
                return_shipment.resolution_date = datetime.now(timezone.utc)

        await db.refresh(return_shipment)
        logger.info("Return %s %s -> %s", return_id, previous.value, data.status.value)
        return return_shipment

    @staticmethod
    async def _items_for(db: AsyncSession, return_ids: List[int]) -> Dict[int, List[ReturnItemResponse]]:
        if not return_ids:
            return {}
        result = await db.execute(
            select(ReturnItem, GoodsDetail, ItemCatalog.item_description)
            .join(GoodsDetail, ReturnItem.goods_detail_id == GoodsDetail.id)
            .join(ItemCatalog, GoodsDetail.item_id == ItemCatalog.id)
            .where(ReturnItem.return_id.in_(return_ids))
            .order_by(ReturnItem.id)
        )
        items = defaultdict(list)
        for item, line, description in result.all():
            items[item.return_id].append(ReturnItemResponse(
                id=item.id,
                goods_detail_id=line.id,
                item_description=description,
                quantity_shipped=line.quantity,
                quantity_returned=item.quantity_returned,
                condition=item.condition,
            ))
        return items

    @staticmethod
    async def _report(db: AsyncSession, *conditions) -> List[ReturnResponse]:
        sender = aliased(Party)
        receiver = aliased(Party)
        result = await db.execute(
            select(ReturnShipment, Shipment, sender, receiver)
            .join(Shipment, ReturnShipment.original_shipment_id == Shipment.register_number)
            .join(sender, Shipment.sender_id == sender.id)
            .join(receiver, Shipment.receiver_id == receiver.id)
            .where(*conditions)
            .order_by(desc(ReturnShipment.created_at), desc(ReturnShipment.id))
        )
        rows = result.all()
        items = await ReturnService._items_for(db, [ret.id for ret, _, _, _ in rows])
        return [
            ReturnResponse(
                id=ret.id,
                original_shipment_id=ret.original_shipment_id,
                bility_number=shipment.bility_number,
                sender_name=resolve_party_name(shipment.walk_in_sender_name, snd),
                receiver_name=resolve_party_name(shipment.walk_in_receiver_name, rcv),
                reason=ret.reason,
                action_taken=ret.action_taken,
                comments=ret.comments,
                status=ret.status,
                resolution_date=ret.resolution_date,
                created_at=ret.created_at,
                items=items.get(ret.id, []),
            )
            for ret, shipment, snd, rcv in rows
        ]

    @staticmethod
    async def list_returns(
        db: AsyncSession,
        shipment_id: Optional[str] = None,
        status: Optional[ReturnStatus] = None
    ) -> List[ReturnResponse]:
        """Returns newest first, optionally for one shipment or one status."""
        conditions = []
        if shipment_id:
            conditions.append(ReturnShipment.original_shipment_id == shipment_id)
        if status:
            conditions.append(ReturnShipment.status == status)
        return await ReturnService._report(db, *conditions)

    @staticmethod
    async def get_return(db: AsyncSession, return_id: int) -> ReturnResponse:
        rows = await ReturnService._report(db, ReturnShipment.id == return_id)
        if not rows:
            raise ResourceNotFoundError("Return", return_id)
        return rows[0]
