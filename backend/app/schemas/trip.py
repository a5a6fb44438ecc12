"""
Trip log Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List


class TripShipmentLine(BaseModel):
    """
    One manifest line.

    Receiver name and bility number are resolved from the shipment.
    """
    serial_number: int = Field(..., ge=1)
    shipment_id: str = Field(..., min_length=1)
    item_details: Optional[str] = Field(None, max_length=255)
    quantity: int = Field(..., ge=1)
    delivery_charges: Decimal = Field(..., ge=0)


class TripLogCreate(BaseModel):
    """
    Schema for logging a trip.

    total_fare_collected, delivery_cut and received_amount are always
    computed by the server.
    """
    vehicle_id: int
    driver_name: str = Field(..., min_length=1, max_length=100)
    driver_mobile: Optional[str] = Field(None, max_length=50)
    station_name: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, max_length=100)
    date: date
    arrival_time: Optional[str] = Field(None, max_length=20)
    departure_time: Optional[str] = Field(None, max_length=20)
    delivery_cut_percentage: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    cuts: Decimal = Field(default=Decimal("0"), ge=0)
    accountant_charges: Decimal = Field(default=Decimal("0"), ge=0)
    note: Optional[str] = None
    shipment_logs: List[TripShipmentLine] = Field(..., min_length=1)


class TripShipmentLogResponse(BaseModel):
    id: int
    serial_number: int
    shipment_id: str
    bility_number: str
    receiver_name: str
    item_details: Optional[str]
    quantity: int
    delivery_charges: float

    class Config:
        from_attributes = True


class TripLogResponse(BaseModel):
    id: int
    vehicle_id: int
    driver_name: str
    driver_mobile: Optional[str]
    station_name: Optional[str]
    city: Optional[str]
    date: date
    arrival_time: Optional[str]
    departure_time: Optional[str]
    total_fare_collected: float
    delivery_cut_percentage: float
    delivery_cut: float
    cuts: float
    accountant_charges: float
    received_amount: float
    fare_is_paid: bool
    note: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class TripLogDetail(TripLogResponse):
    vehicle_number: str
    shipment_logs: List[TripShipmentLogResponse]


class NextSerialResponse(BaseModel):
    next_serial: int
