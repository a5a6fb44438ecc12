"""
Master data Pydantic schemas.

Cities, agencies, vehicles, items, parties and labour persons.
"""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from decimal import Decimal
from typing import Optional


class CityCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)


class CityResponse(BaseModel):
    id: int
    name: str
    created_at: datetime

    class Config:
        from_attributes = True


class AgencyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class AgencyResponse(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class VehicleCreate(BaseModel):
    vehicle_number: str = Field(..., min_length=1, max_length=50)

    @field_validator("vehicle_number")
    @classmethod
    def normalize_number(cls, value: str) -> str:
        value = value.strip().upper()
        if not value:
            raise ValueError("Vehicle number is required")
        return value


class VehicleResponse(BaseModel):
    id: int
    vehicle_number: str
    created_at: datetime

    class Config:
        from_attributes = True


class ItemCreate(BaseModel):
    item_description: str = Field(..., min_length=1, max_length=100)


class ItemResponse(BaseModel):
    id: int
    item_description: str
    created_at: datetime

    class Config:
        from_attributes = True


class PartyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    contact_info: str = Field(..., min_length=1, max_length=100)
    opening_balance: Decimal = Field(default=Decimal("0"))


class PartyResponse(BaseModel):
    id: int
    name: str
    contact_info: str
    opening_balance: float
    created_at: datetime

    class Config:
        from_attributes = True


class LabourPersonCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    contact_info: Optional[str] = Field(None, max_length=100)


class LabourPersonResponse(BaseModel):
    id: int
    name: str
    contact_info: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True
