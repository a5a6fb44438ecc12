"""
Return shipment API endpoints.

Returns are opened against a registered shipment and reviewed through
PENDING -> IN_TRANSIT -> COMPLETED, or CANCELLED.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.session import get_db
from backend.app.core.dependencies import get_current_user
from backend.app.core.guards import require_role, ALL_ROLES, REVIEWER_ROLES
from backend.app.domain.returns.return_service import ReturnService
from backend.app.models.return_enums import ReturnStatus
from backend.app.schemas.returns import ReturnCreate, ReturnStatusUpdate, ReturnResponse
from backend.app.services.audit import log_actor_event, AuditAction

router = APIRouter(prefix="/returns", tags=["Returns"])


@router.post("", response_model=ReturnResponse, status_code=status.HTTP_201_CREATED)
async def open_return(
    data: ReturnCreate,
    current_user: dict = Depends(require_role(ALL_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Open a return. It starts as PENDING."""
    return_shipment = await ReturnService.create(db, data)

    await log_actor_event(
        db, AuditAction.RETURN_OPENED, current_user,
        metadata={"return_id": return_shipment.id, "shipment_id": return_shipment.original_shipment_id}
    )
    return await ReturnService.get_return(db, return_shipment.id)


@router.get("", response_model=List[ReturnResponse])
async def list_returns(
    shipment_id: Optional[str] = Query(None, alias="shipmentId"),
    return_status: Optional[ReturnStatus] = Query(None, alias="status"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await ReturnService.list_returns(db, shipment_id, return_status)


@router.get("/{return_id}", response_model=ReturnResponse)
async def get_return(
    return_id: int = Path(..., description="Return ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await ReturnService.get_return(db, return_id)


@router.patch("/{return_id}", response_model=ReturnResponse)
async def change_return_status(
    body: ReturnStatusUpdate,
    return_id: int = Path(..., description="Return ID"),
    current_user: dict = Depends(require_role(REVIEWER_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Advance, complete or cancel a return (ADMIN or SUPERADMIN)."""
    return_shipment = await ReturnService.update_status(db, return_id, body)

    await log_actor_event(
        db, AuditAction.RETURN_STATUS_CHANGED, current_user,
        metadata={"return_id": return_shipment.id, "status": return_shipment.status.value}
    )
    return await ReturnService.get_return(db, return_shipment.id)
