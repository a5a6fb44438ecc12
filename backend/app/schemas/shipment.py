"""
Shipment Pydantic schemas.

Defines request and response models for shipment registration and lookup.
"""

from pydantic import BaseModel, Field
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List
from backend.app.models.shipment_enums import PaymentStatus


class GoodsLineCreate(BaseModel):
    """One goods line of a new shipment."""
    item_id: int = Field(..., gt=0)
    quantity: int = Field(..., ge=1)
    charges: Decimal = Field(default=Decimal("0"), ge=0)
    delivery_charges: Decimal = Field(default=Decimal("0"), ge=0)


class ShipmentCreate(BaseModel):
    """
    Schema for registering a shipment.

    The register number is always generated by the server.
    total_amount is the bill posted to the sender's ledger.
    """
    bility_number: str = Field(..., min_length=1, max_length=50)
    bility_date: date
    departure_city_id: int
    to_city_id: Optional[int] = None
    forwarding_agency_id: int
    vehicle_id: int
    sender_id: int
    receiver_id: int
    walk_in_sender_name: Optional[str] = Field(None, max_length=100)
    walk_in_receiver_name: Optional[str] = Field(None, max_length=100)
    total_amount: Decimal = Field(..., ge=0)
    total_delivery_charges: Optional[Decimal] = Field(None, ge=0, description="Defaults to the sum of line delivery charges")
    payment_status: PaymentStatus = PaymentStatus.PENDING
    remarks: Optional[str] = None
    goods_details: List[GoodsLineCreate] = Field(..., min_length=1)


class ShipmentFilter(BaseModel):
    """Typed filter for GET /shipments."""
    query: Optional[str] = None
    delivered: Optional[bool] = None
    bility_date: Optional[date] = None


class GoodsLineResponse(BaseModel):
    id: int
    item_id: int
    item_description: Optional[str] = None
    quantity: int
    charges: float
    delivery_charges: float


class ShipmentResponse(BaseModel):
    """Schema for shipment response."""
    register_number: str
    bility_number: str
    bility_date: date
    departure_city_id: int
    to_city_id: Optional[int]
    forwarding_agency_id: int
    vehicle_id: int
    sender_id: int
    receiver_id: int
    walk_in_sender_name: Optional[str]
    walk_in_receiver_name: Optional[str]
    total_charges: float
    total_delivery_charges: float
    payment_status: PaymentStatus
    delivery_date: Optional[date]
    remarks: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class ShipmentListItem(ShipmentResponse):
    """List row with party names resolved (walk-in names win)."""
    sender_name: str
    receiver_name: str


class ShipmentDetailResponse(ShipmentListItem):
    goods_details: List[GoodsLineResponse]


class ShipmentRegisteredResponse(BaseModel):
    message: str
    register_number: str
    shipment: ShipmentResponse


class NextRegisterNumberResponse(BaseModel):
    register_number: str


class VehicleDateLine(BaseModel):
    """Flattened goods line used to prefill a trip log."""
    register_number: str
    bility_number: str
    receiver_name: str
    item_description: str
    quantity: int
    delivery_charges: float
    total_charges: float
