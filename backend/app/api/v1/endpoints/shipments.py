"""
Shipment API endpoints.

Registration, filtered listing and the lookups used by booking and trip screens.
"""

from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.session import get_db
from backend.app.core.dependencies import get_current_user
from backend.app.core.guards import require_role, ALL_ROLES
from backend.app.domain.shipments.register_number import RegisterNumberAllocator
from backend.app.domain.shipments.shipment_service import ShipmentService
from backend.app.schemas.shipment import (
    ShipmentCreate,
    ShipmentFilter,
    ShipmentResponse,
    ShipmentListItem,
    ShipmentDetailResponse,
    ShipmentRegisteredResponse,
    NextRegisterNumberResponse,
    VehicleDateLine,
)
from backend.app.services.audit import log_actor_event, AuditAction

router = APIRouter(prefix="/shipments", tags=["Shipments"])


@router.post("", response_model=ShipmentRegisteredResponse, status_code=status.HTTP_201_CREATED)
async def register_shipment(
    data: ShipmentCreate,
    current_user: dict = Depends(require_role(ALL_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    Register a shipment.

    The register number is generated from the bility date's month. Unless
    the booking is ALREADY_PAID or FREE, the sender is credited with the bill.
    """
    shipment = await ShipmentService.register(db, data)

    await log_actor_event(
        db, AuditAction.SHIPMENT_REGISTERED, current_user,
        metadata={
            "register_number": shipment.register_number,
            "bility_number": shipment.bility_number,
            "payment_status": shipment.payment_status.value,
        }
    )

    return ShipmentRegisteredResponse(
        message="Shipment registered successfully.",
        register_number=shipment.register_number,
        shipment=ShipmentResponse.model_validate(shipment),
    )


@router.get("", response_model=List[ShipmentListItem])
async def list_shipments(
    query: Optional[str] = Query(None, description="Register/bility number or party name"),
    delivered: Optional[bool] = Query(None, description="false: undelivered only, true: delivered only"),
    date: Optional[date] = Query(None, description="Bility date (YYYY-MM-DD)"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    filters = ShipmentFilter(query=query, delivered=delivered, bility_date=date)
    return await ShipmentService.list_shipments(db, filters)


@router.get("/next-register-number", response_model=NextRegisterNumberResponse)
async def next_register_number(
    bility_date: date = Query(..., description="Bility date (YYYY-MM-DD)"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Preview only. The number is not reserved."""
    return NextRegisterNumberResponse(
        register_number=await RegisterNumberAllocator.preview(db, bility_date)
    )


@router.get("/by-vehicle-date", response_model=List[VehicleDateLine])
async def shipments_by_vehicle_and_date(
    vehicle_id: int = Query(...),
    date: date = Query(..., description="Bility date (YYYY-MM-DD)"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Goods lines carried by a vehicle on a day, used to prefill a trip log."""
    return await ShipmentService.lines_by_vehicle_and_date(db, vehicle_id, date)


@router.get("/{register_number}", response_model=ShipmentDetailResponse)
async def get_shipment(
    register_number: str = Path(..., description="Register number"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await ShipmentService.get_detail(db, register_number)
