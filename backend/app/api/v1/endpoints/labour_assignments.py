"""
Labour assignment API endpoints.

Assign shipments to labour persons and drive DELIVER / COLLECT / SETTLE.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.session import get_db
from backend.app.core.dependencies import get_current_user
from backend.app.core.guards import require_role, ALL_ROLES
from backend.app.domain.labour.assignment_service import LabourAssignmentService
from backend.app.models.labour_enums import LabourAssignmentStatus, LabourAction
from backend.app.schemas.labour import (
    LabourAssignmentCreate,
    LabourAssignmentUpdate,
    LabourAssignmentFilter,
    LabourAssignmentResponse,
    LabourAssignmentRow,
    LabourAssignmentCreateResponse,
    LabourReminder,
)
from backend.app.services.audit import log_actor_event, AuditAction

router = APIRouter(prefix="/labour-assignments", tags=["Labour Assignments"])

ACTION_AUDIT = {
    LabourAction.DELIVER: AuditAction.LABOUR_DELIVERED,
    LabourAction.COLLECT: AuditAction.LABOUR_COLLECTED,
    LabourAction.SETTLE: AuditAction.LABOUR_SETTLED,
}


@router.post("", response_model=LabourAssignmentCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_assignments(
    data: LabourAssignmentCreate,
    current_user: dict = Depends(require_role(ALL_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Assign undelivered shipments. Shipments with an unsettled assignment are rejected (409)."""
    assignments = await LabourAssignmentService.create(db, data)

    await log_actor_event(
        db, AuditAction.LABOUR_ASSIGNED, current_user,
        metadata={
            "labour_person_id": data.labour_person_id,
            "assignment_ids": [a.id for a in assignments],
        }
    )
    return LabourAssignmentCreateResponse(
        message=f"{len(assignments)} shipment(s) assigned",
        assignments=[LabourAssignmentResponse.model_validate(a) for a in assignments],
    )


@router.get("", response_model=List[LabourAssignmentRow])
async def list_assignments(
    labour_person_id: Optional[int] = Query(None),
    status: Optional[LabourAssignmentStatus] = Query(None),
    exclude_settled: bool = Query(False),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    filters = LabourAssignmentFilter(
        labour_person_id=labour_person_id,
        status=status,
        exclude_settled=exclude_settled,
    )
    return await LabourAssignmentService.list_assignments(db, filters)


@router.get("/reminders", response_model=List[LabourReminder])
async def reminders(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Unsettled assignments ordered by due date, with overdue flag."""
    return await LabourAssignmentService.reminders(db)


@router.patch("", response_model=LabourAssignmentResponse)
async def apply_action(
    data: LabourAssignmentUpdate,
    current_user: dict = Depends(require_role(ALL_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    DELIVER: ASSIGNED -> DELIVERED, creates the delivery.
    COLLECT: DELIVERED -> COLLECTED (or correct a COLLECTED one), writes expenses.
    SETTLE: COLLECTED -> SETTLED, credits the receiver.
    """
    assignment = await LabourAssignmentService.apply_action(db, data)

    await log_actor_event(
        db, ACTION_AUDIT[data.action], current_user,
        metadata={
            "assignment_id": assignment.id,
            "shipment_id": assignment.shipment_id,
            "status": assignment.status.value,
        }
    )
    return LabourAssignmentResponse.model_validate(assignment)
