"""
Delivery Pydantic schemas.

Covers direct delivery recording and the approval workflow.
"""

from pydantic import BaseModel, Field
from datetime import datetime, date
from decimal import Decimal
from typing import Optional
from backend.app.models.delivery_enums import ApprovalStatus, ApprovalAction


class DeliveryCreate(BaseModel):
    """
    Schema for recording a direct delivery.

    total_expenses is computed by the server from the four expense fields.
    """
    shipment_id: str = Field(..., min_length=1, description="Register number of the shipment")
    delivery_date: date
    station_expense: Decimal = Field(default=Decimal("0"), ge=0)
    bility_expense: Decimal = Field(default=Decimal("0"), ge=0)
    station_labour: Decimal = Field(default=Decimal("0"), ge=0)
    cart_labour: Decimal = Field(default=Decimal("0"), ge=0)
    receiver_name: str = Field(..., min_length=1, max_length=100)
    receiver_phone: Optional[str] = Field(None, max_length=50)
    receiver_cnic: Optional[str] = Field(None, max_length=50)
    receiver_address: Optional[str] = None
    delivery_notes: Optional[str] = None


class DeliveryApprovalRequest(BaseModel):
    action: ApprovalAction


class DeliveryResponse(BaseModel):
    id: int
    shipment_id: str
    delivery_date: date
    delivery_time: Optional[str]
    station_expense: float
    bility_expense: float
    station_labour: float
    cart_labour: float
    total_expenses: float
    receiver_name: str
    receiver_phone: Optional[str]
    receiver_cnic: Optional[str]
    receiver_address: Optional[str]
    delivery_notes: Optional[str]
    delivery_status: str
    approval_status: ApprovalStatus
    approved_by: Optional[str]
    approved_at: Optional[datetime]
    created_at: datetime

    class Config:
        from_attributes = True


class DeliveryReportRow(DeliveryResponse):
    """Delivery joined with its shipment for approval queues and reports."""
    bility_number: str
    total_charges: float
    shipment_receiver_name: str
