"""
Trip log API endpoints.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.session import get_db
from backend.app.core.dependencies import get_current_user
from backend.app.core.guards import require_role, ALL_ROLES
from backend.app.domain.trips.trip_service import TripService
from backend.app.schemas.trip import TripLogCreate, TripLogDetail, NextSerialResponse
from backend.app.services.audit import log_actor_event, AuditAction

router = APIRouter(prefix="/trips", tags=["Trips"])


@router.post("", response_model=TripLogDetail, status_code=status.HTTP_201_CREATED)
async def log_trip(
    data: TripLogCreate,
    current_user: dict = Depends(require_role(ALL_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    Log a trip. Fare totals are computed here; the received amount is
    debited to the vehicle's ledger.
    """
    trip = await TripService.create(db, data)

    await log_actor_event(
        db, AuditAction.TRIP_LOGGED, current_user,
        metadata={
            "trip_id": trip.id,
            "vehicle_id": trip.vehicle_id,
            "received_amount": str(trip.received_amount),
        }
    )
    return await TripService.get_detail(db, trip.id)


@router.get("", response_model=List[TripLogDetail])
async def list_trips(
    vehicle_id: Optional[int] = Query(None),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await TripService.list_trips(db, vehicle_id)


@router.get("/next-serial", response_model=NextSerialResponse)
async def next_serial(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return NextSerialResponse(next_serial=await TripService.next_serial(db))
