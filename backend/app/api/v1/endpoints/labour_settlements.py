"""
Labour settlement API endpoints.

Per-person dues, payments and balance.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.session import get_db
from backend.app.core.dependencies import get_current_user
from backend.app.core.guards import require_role, ALL_ROLES
from backend.app.domain.labour.settlement_service import LabourSettlementService
from backend.app.schemas.labour import LabourPaymentCreate, LabourPaymentResponse, LabourSettlementSummary
from backend.app.services.audit import log_actor_event, AuditAction

router = APIRouter(prefix="/labour-settlements", tags=["Labour Settlements"])


@router.get("", response_model=List[LabourSettlementSummary])
async def settlement_summaries(
    labour_person_id: Optional[int] = Query(None),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await LabourSettlementService.summaries(db, labour_person_id)


@router.post("", response_model=LabourPaymentResponse, status_code=status.HTTP_201_CREATED)
async def record_payment(
    data: LabourPaymentCreate,
    current_user: dict = Depends(require_role(ALL_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    payment = await LabourSettlementService.record_payment(db, data)

    await log_actor_event(
        db, AuditAction.LABOUR_PAYMENT_RECORDED, current_user,
        metadata={
            "payment_id": payment.id,
            "labour_person_id": payment.labour_person_id,
            "amount_paid": str(payment.amount_paid),
        }
    )
    return LabourPaymentResponse.model_validate(payment)
