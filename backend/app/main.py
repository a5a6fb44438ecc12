"""
FastAPI Application Entry Point.

This is the main application file for the Goods Transport Back Office.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from backend.app.core.config import settings
from backend.app.api.v1.router import router as api_v1_router
from backend.app.core.observability import ObservabilityMiddleware, configure_logging
from backend.app.db.session import engine, Base
from backend.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from backend.app.models.user import User
from backend.app.models.audit_log import AuditLog
from backend.app.models.city import City
from backend.app.models.agency import Agency
from backend.app.models.vehicle import Vehicle
from backend.app.models.party import Party
from backend.app.models.item_catalog import ItemCatalog
from backend.app.models.labour_person import LabourPerson
from backend.app.models.shipment import Shipment
from backend.app.models.goods_detail import GoodsDetail
from backend.app.models.register_sequence import RegisterSequence
from backend.app.models.delivery import Delivery
from backend.app.models.labour_assignment import LabourAssignment
from backend.app.models.labour_payment import LabourPaymentHistory
from backend.app.models.transaction import Transaction
from backend.app.models.trip_log import TripLog
from backend.app.models.trip_shipment_log import TripShipmentLog
from backend.app.models.vehicle_transaction import VehicleTransaction
from backend.app.models.return_shipment import ReturnShipment, ReturnItem

configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    Creates database tables on startup.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Back office for a goods transport company: shipments, deliveries, labour settlements and ledgers",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status and application information
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
    }


# All back office routes live under /api
app.include_router(api_v1_router, prefix=settings.api_prefix)


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": "Welcome to the Goods Transport Back Office API",
        "docs": "/docs",
        "health": "/health",
    }
