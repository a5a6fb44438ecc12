"""
Return shipment Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from backend.app.models.return_enums import ReturnStatus, ReturnCondition


class ReturnItemCreate(BaseModel):
    goods_detail_id: int
    quantity_returned: int = Field(..., gt=0)
    condition: ReturnCondition


class ReturnCreate(BaseModel):
    """Schema for opening a return against a registered shipment."""
    original_shipment_id: str = Field(..., min_length=1, description="Register number of the shipment")
    reason: str = Field(..., min_length=1)
    action_taken: Optional[str] = None
    comments: Optional[str] = None
    items: List[ReturnItemCreate] = Field(..., min_length=1)


class ReturnStatusUpdate(BaseModel):
    status: ReturnStatus
    action_taken: Optional[str] = None
    comments: Optional[str] = None


class ReturnItemResponse(BaseModel):
    id: int
    goods_detail_id: int
    item_description: str
    quantity_shipped: int
    quantity_returned: int
    condition: ReturnCondition


class ReturnResponse(BaseModel):
    id: int
    original_shipment_id: str
    bility_number: str
    sender_name: str
    receiver_name: str
    reason: str
    action_taken: Optional[str]
    comments: Optional[str]
    status: ReturnStatus
    resolution_date: Optional[datetime]
    created_at: datetime
    items: List[ReturnItemResponse]
