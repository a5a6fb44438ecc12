"""
Audit logging service.

Records who performed each mutating workflow action. Workflows call
log_event after their own transaction has committed.
"""

from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from backend.app.models.audit_log import AuditLog


# Audit event constants
class AuditAction:
    """Standardized audit action constants."""
    USER_CREATED = "USER_CREATED"
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILED = "LOGIN_FAILED"
    LOGOUT = "LOGOUT"

    # Shipments
    SHIPMENT_REGISTERED = "SHIPMENT_REGISTERED"

    # Deliveries
    DELIVERY_RECORDED = "DELIVERY_RECORDED"
    DELIVERY_APPROVAL_CHANGED = "DELIVERY_APPROVAL_CHANGED"

    # Labour
    LABOUR_ASSIGNED = "LABOUR_ASSIGNED"
    LABOUR_DELIVERED = "LABOUR_DELIVERED"
    LABOUR_COLLECTED = "LABOUR_COLLECTED"
    LABOUR_SETTLED = "LABOUR_SETTLED"
    LABOUR_PAYMENT_RECORDED = "LABOUR_PAYMENT_RECORDED"

    # Ledgers and trips
    VEHICLE_TRANSACTION_POSTED = "VEHICLE_TRANSACTION_POSTED"
    FARE_SETTLED = "FARE_SETTLED"
    TRIP_LOGGED = "TRIP_LOGGED"

    # Returns
    RETURN_OPENED = "RETURN_OPENED"
    RETURN_STATUS_CHANGED = "RETURN_STATUS_CHANGED"

    # Master data
    MASTER_DATA_CREATED = "MASTER_DATA_CREATED"


async def log_event(
    db: AsyncSession,
    action: str,
    actor_id: Optional[int] = None,
    actor_username: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
    ip_address: Optional[str] = None
) -> AuditLog:
    """
    Log a workflow or security event to the audit log.

    Args:
        db: Database session
        action: Action being performed (use AuditAction constants)
        actor_id: ID of user performing the action
        actor_username: Username of actor
        metadata: Additional context as JSON
        ip_address: IP address of the request

    Returns:
        Created AuditLog instance
    """
    audit_log = AuditLog(
        actor_id=actor_id,
        actor_username=actor_username,
        action=action,
        meta_data=metadata,
        ip_address=ip_address
    )

    db.add(audit_log)
    await db.commit()
    await db.refresh(audit_log)

    return audit_log


async def log_actor_event(
    db: AsyncSession,
    action: str,
    current_user: dict,
    metadata: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """Log an event for the authenticated caller (decoded JWT payload)."""
    return await log_event(
        db=db,
        action=action,
        actor_id=current_user.get("user_id"),
        actor_username=current_user.get("sub"),
        metadata=metadata
    )


async def get_audit_trail(
    db: AsyncSession,
    action: Optional[str] = None,
    actor_username: Optional[str] = None,
    limit: int = 100
) -> list[AuditLog]:
    """
    Retrieve audit trail, most recent first, optionally filtered by action
    or by the user who performed it.
    """
    query = select(AuditLog).order_by(desc(AuditLog.timestamp), desc(AuditLog.id))

    if action:
        query = query.where(AuditLog.action == action)
    if actor_username:
        query = query.where(AuditLog.actor_username == actor_username)

    result = await db.execute(query.limit(limit))
    return result.scalars().all()
