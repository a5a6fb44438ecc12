"""
Audit trail API endpoints (SUPERADMIN only).
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.session import get_db
from backend.app.core.guards import require_role
from backend.app.models.enums import UserRole
from backend.app.schemas.audit import AuditLogResponse, AuditTrailResponse
from backend.app.services.audit import get_audit_trail

router = APIRouter(prefix="/audit-logs", tags=["Audit"])


@router.get("", response_model=AuditTrailResponse)
async def get_audit_logs(
    action: Optional[str] = Query(None, description="Filter by action type"),
    actor: Optional[str] = Query(None, description="Filter by actor username"),
    limit: int = Query(100, ge=1, le=500, description="Maximum records to return"),
    current_user: dict = Depends(require_role([UserRole.SUPERADMIN])),
    db: AsyncSession = Depends(get_db)
):
    """Recent workflow and security events, newest first."""
    logs = await get_audit_trail(db=db, action=action, actor_username=actor, limit=limit)

    return AuditTrailResponse(
        logs=[AuditLogResponse.model_validate(log) for log in logs],
        total=len(logs)
    )
