"""
Delivery API endpoints.

Direct delivery recording and the two-stage approval workflow.
Static paths are declared before /{delivery_id}.
"""

from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.session import get_db
from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import ValidationFailedError
from backend.app.core.guards import require_role, ALL_ROLES, REVIEWER_ROLES
from backend.app.domain.deliveries.delivery_service import DeliveryService
from backend.app.models.delivery_enums import ApprovalStatus
from backend.app.models.enums import UserRole
from backend.app.schemas.delivery import DeliveryCreate, DeliveryApprovalRequest, DeliveryResponse, DeliveryReportRow
from backend.app.services.audit import log_actor_event, AuditAction

router = APIRouter(prefix="/deliveries", tags=["Deliveries"])


@router.post("", response_model=DeliveryResponse, status_code=status.HTTP_201_CREATED)
async def record_delivery(
    data: DeliveryCreate,
    current_user: dict = Depends(require_role(ALL_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Record a direct delivery. It enters the approval queue as PENDING."""
    delivery = await DeliveryService.record(db, data)

    await log_actor_event(
        db, AuditAction.DELIVERY_RECORDED, current_user,
        metadata={"delivery_id": delivery.id, "shipment_id": delivery.shipment_id}
    )
    return DeliveryResponse.model_validate(delivery)


@router.get("", response_model=List[DeliveryReportRow])
async def list_deliveries(
    shipment_id: Optional[str] = Query(None),
    approval_status: Optional[ApprovalStatus] = Query(None),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await DeliveryService.list_deliveries(db, shipment_id, approval_status)


@router.get("/pending-approvals", response_model=List[DeliveryReportRow])
async def pending_approvals(
    current_user: dict = Depends(require_role(REVIEWER_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Deliveries waiting for first-stage review."""
    return await DeliveryService.pending_approvals(db)


@router.get("/admin-approved", response_model=List[DeliveryReportRow])
async def admin_approved(
    current_user: dict = Depends(require_role([UserRole.SUPERADMIN])),
    db: AsyncSession = Depends(get_db)
):
    """Deliveries waiting for final superadmin approval."""
    return await DeliveryService.admin_approved(db)


@router.get("/approved", response_model=List[DeliveryReportRow])
async def approved_on_day(
    date: Optional[str] = Query(None, description="Approval day (YYYY-MM-DD, UTC)"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Deliveries whose final approval happened on the given UTC day."""
    if not date:
        raise ValidationFailedError("Query parameter 'date' is required (YYYY-MM-DD)")
    try:
        day = _parse_day(date)
    except ValueError:
        raise ValidationFailedError("Invalid date format. Use YYYY-MM-DD", details={"date": date})
    return await DeliveryService.approved_on(db, day)


@router.patch("/{delivery_id}", response_model=DeliveryResponse)
async def change_approval(
    body: DeliveryApprovalRequest,
    delivery_id: int = Path(..., description="Delivery ID"),
    current_user: dict = Depends(require_role(REVIEWER_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    Advance or reject a delivery.

    APPROVED needs SUPERADMIN. APPROVED_BY_ADMIN and REJECTED need ADMIN or
    SUPERADMIN. The caller is recorded as approved_by.
    """
    delivery = await DeliveryService.change_approval(
        db, delivery_id, body.action,
        actor_username=current_user["sub"],
        actor_role=UserRole(current_user["role"]),
    )

    await log_actor_event(
        db, AuditAction.DELIVERY_APPROVAL_CHANGED, current_user,
        metadata={"delivery_id": delivery.id, "approval_status": delivery.approval_status.value}
    )
    return DeliveryResponse.model_validate(delivery)


def _parse_day(value: str) -> date:
    return date.fromisoformat(value.strip())
