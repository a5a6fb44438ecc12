"""
API v1 Router.

Aggregates all back office endpoints.
"""

from fastapi import APIRouter
from backend.app.api.v1.endpoints import (
    auth, master_data,
    shipments, deliveries,
    labour_assignments, labour_settlements,
    vehicles, parties, trips,
    returns, audit
)

router = APIRouter()

# Authentication
router.include_router(auth.router)

# Ledgers
router.include_router(vehicles.router)
router.include_router(parties.router)

# Master data
router.include_router(master_data.router)

# Shipment registry
router.include_router(shipments.router)

# Delivery workflow
router.include_router(deliveries.router)

# Labour workflow
router.include_router(labour_assignments.router)
router.include_router(labour_settlements.router)

# Trip logging
router.include_router(trips.router)

# Returns
router.include_router(returns.router)

# Audit trail
router.include_router(audit.router)
