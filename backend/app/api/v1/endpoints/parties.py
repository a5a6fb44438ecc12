"""
Party ledger API endpoints.
"""

from typing import List
from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.session import get_db
from backend.app.core.dependencies import get_current_user
from backend.app.domain.ledger.ledger_service import LedgerService
from backend.app.schemas.ledger import PartyLedgerSummary, PartyLedger

router = APIRouter(prefix="/parties", tags=["Party Ledger"])


@router.get("/ledgers", response_model=List[PartyLedgerSummary])
async def party_ledgers(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await LedgerService.party_summaries(db)


@router.get("/{party_id}/ledger", response_model=PartyLedger)
async def party_ledger(
    party_id: int = Path(...),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Party statement with a running balance in transaction-date order."""
    return await LedgerService.party_ledger(db, party_id)
