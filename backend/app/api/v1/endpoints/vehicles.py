"""
Vehicle ledger API endpoints.

Balances, running-balance statements, fare settlement and manual postings.
"""

from typing import List
from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.session import get_db
from backend.app.core.dependencies import get_current_user
from backend.app.core.guards import require_role, REVIEWER_ROLES
from backend.app.domain.ledger.ledger_service import LedgerService
from backend.app.schemas.ledger import (
    VehicleLedgerSummary,
    VehicleFinancials,
    SettleFareRequest,
    SettleFareResponse,
    VehicleTransactionCreate,
    VehicleTransactionResponse,
)
from backend.app.services.audit import log_actor_event, AuditAction

router = APIRouter(prefix="/vehicles", tags=["Vehicle Ledger"])


@router.get("/ledgers", response_model=List[VehicleLedgerSummary])
async def vehicle_ledgers(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Per-vehicle credits, debits, balance and latest-trip fare status."""
    return await LedgerService.vehicle_summaries(db)


@router.get("/{vehicle_id}/financials", response_model=VehicleFinancials)
async def vehicle_financials(
    vehicle_id: int = Path(...),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await LedgerService.vehicle_financials(db, vehicle_id)


@router.patch("/{vehicle_id}/settle-fare", response_model=SettleFareResponse)
async def settle_fare(
    data: SettleFareRequest,
    vehicle_id: int = Path(...),
    current_user: dict = Depends(require_role(REVIEWER_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Full payment only. Partial payments go through /transaction."""
    trip, entry = await LedgerService.settle_fare(db, vehicle_id, data)

    await log_actor_event(
        db, AuditAction.FARE_SETTLED, current_user,
        metadata={"vehicle_id": vehicle_id, "trip_id": trip.id, "amount": str(entry.credit_amount)}
    )
    return SettleFareResponse(
        message="Fare settled successfully",
        trip_id=trip.id,
        fare_is_paid=trip.fare_is_paid,
        transaction=VehicleTransactionResponse.model_validate(entry),
    )


@router.post("/{vehicle_id}/transaction", response_model=VehicleTransactionResponse, status_code=status.HTTP_201_CREATED)
async def post_vehicle_transaction(
    data: VehicleTransactionCreate,
    vehicle_id: int = Path(...),
    current_user: dict = Depends(require_role(REVIEWER_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Ad hoc credit or debit, e.g. partial or advance payments."""
    entry = await LedgerService.post_transaction(db, vehicle_id, data)

    await log_actor_event(
        db, AuditAction.VEHICLE_TRANSACTION_POSTED, current_user,
        metadata={"vehicle_id": vehicle_id, "transaction_id": entry.id, "type": data.type.value}
    )
    return VehicleTransactionResponse.model_validate(entry)
