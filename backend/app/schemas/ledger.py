"""
Ledger Pydantic schemas.

Vehicle and party balances, running-balance statements and postings.
"""

from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from backend.app.models.ledger_enums import LedgerEntryType, FareStatus, PartyType


class VehicleLedgerSummary(BaseModel):
    vehicle_id: int
    vehicle_number: str
    total_credits: float
    total_debits: float
    balance: float
    transaction_count: int
    fare_status: FareStatus


class LedgerLine(BaseModel):
    id: int
    transaction_date: datetime
    description: Optional[str]
    credit_amount: float
    debit_amount: float
    balance: float
    shipment_id: Optional[str] = None
    trip_id: Optional[int] = None


class VehicleFinancials(BaseModel):
    vehicle_id: int
    vehicle_number: str
    total_credits: float
    total_debits: float
    balance: float
    transactions: List[LedgerLine]


class SettleFareRequest(BaseModel):
    """
    Full-payment settlement of one trip's fare.

    Accepts camelCase keys as sent by the web client.
    """
    model_config = ConfigDict(populate_by_name=True)

    payment_amount: Decimal = Field(..., alias="paymentAmount")
    trip_id: int = Field(..., alias="tripId")
    owed_amount: Optional[Decimal] = Field(None, alias="owedAmount")
    payment_description: Optional[str] = Field(None, alias="paymentDescription")


class VehicleTransactionCreate(BaseModel):
    amount: Decimal = Field(..., gt=0)
    description: str = Field(..., min_length=1)
    type: LedgerEntryType


class VehicleTransactionResponse(BaseModel):
    id: int
    vehicle_id: int
    shipment_id: Optional[str]
    trip_id: Optional[int]
    credit_amount: float
    debit_amount: float
    description: Optional[str]
    transaction_date: datetime

    class Config:
        from_attributes = True


class SettleFareResponse(BaseModel):
    message: str
    trip_id: int
    fare_is_paid: bool
    transaction: VehicleTransactionResponse


class PartyLedgerSummary(BaseModel):
    party_id: int
    party_name: str
    opening_balance: float
    total_credits: float
    total_debits: float
    balance: float
    transaction_count: int


class PartyLedgerLine(LedgerLine):
    party_type: PartyType


class PartyLedger(BaseModel):
    party_id: int
    party_name: str
    opening_balance: float
    total_credits: float
    total_debits: float
    balance: float
    transactions: List[PartyLedgerLine]
