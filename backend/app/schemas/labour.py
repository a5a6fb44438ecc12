"""
Labour assignment and settlement Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List
from backend.app.models.labour_enums import LabourAssignmentStatus, LabourAction


class LabourAssignmentCreate(BaseModel):
    labour_person_id: int
    shipment_ids: List[str] = Field(..., min_length=1)
    due_date: Optional[date] = None
    notes: Optional[str] = None


class LabourAssignmentUpdate(BaseModel):
    """
    Body of PATCH /labour-assignments.

    collected_amount and the expense fields are only read by COLLECT.
    """
    assignment_id: int
    action: LabourAction
    collected_amount: Optional[Decimal] = None
    notes: Optional[str] = None
    station_expense: Decimal = Field(default=Decimal("0"), ge=0)
    bility_expense: Decimal = Field(default=Decimal("0"), ge=0)
    station_labour: Decimal = Field(default=Decimal("0"), ge=0)
    cart_labour: Decimal = Field(default=Decimal("0"), ge=0)


class LabourAssignmentFilter(BaseModel):
    labour_person_id: Optional[int] = None
    status: Optional[LabourAssignmentStatus] = None
    exclude_settled: bool = False


class LabourAssignmentResponse(BaseModel):
    id: int
    labour_person_id: int
    shipment_id: str
    assigned_date: datetime
    due_date: Optional[date]
    status: LabourAssignmentStatus
    delivered_date: Optional[datetime]
    collected_amount: Optional[float]
    settled_date: Optional[datetime]
    notes: Optional[str]

    class Config:
        from_attributes = True


class LabourAssignmentRow(LabourAssignmentResponse):
    labour_person_name: str
    bility_number: str
    receiver_name: str
    total_charges: float


class LabourReminder(LabourAssignmentRow):
    is_overdue: bool


class LabourAssignmentCreateResponse(BaseModel):
    message: str
    assignments: List[LabourAssignmentResponse]


class LabourPaymentCreate(BaseModel):
    labour_person_id: int
    shipment_id: str = Field(..., min_length=1)
    amount_paid: Decimal = Field(..., gt=0)
    payment_method: str = Field(default="CASH", max_length=20)
    notes: Optional[str] = None


class LabourPaymentResponse(BaseModel):
    id: int
    labour_person_id: int
    shipment_id: str
    amount_paid: float
    payment_date: datetime
    payment_method: str
    notes: Optional[str]

    class Config:
        from_attributes = True


class SettlementAssignmentLine(BaseModel):
    assignment_id: int
    shipment_id: str
    bility_number: str
    status: LabourAssignmentStatus
    total_charges: float
    total_expenses: float
    amount_due: float


class LabourSettlementSummary(BaseModel):
    labour_person_id: int
    labour_person_name: str
    total_due: float
    total_paid: float
    balance: float
    assignments: List[SettlementAssignmentLine]
    payments: List[LabourPaymentResponse]
