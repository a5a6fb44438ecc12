"""
Master data API endpoints.

Thin create/list endpoints for cities, agencies, vehicles, items, parties
and labour persons.
"""

from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from backend.app.db.session import get_db
from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import ConflictError
from backend.app.core.guards import require_role, ALL_ROLES
from backend.app.models.agency import Agency
from backend.app.models.city import City
from backend.app.models.item_catalog import ItemCatalog
from backend.app.models.labour_person import LabourPerson
from backend.app.models.party import Party
from backend.app.models.vehicle import Vehicle
from backend.app.schemas.master_data import (
    CityCreate, CityResponse,
    AgencyCreate, AgencyResponse,
    VehicleCreate, VehicleResponse,
    ItemCreate, ItemResponse,
    PartyCreate, PartyResponse,
    LabourPersonCreate, LabourPersonResponse,
)
from backend.app.services.audit import log_actor_event, AuditAction

router = APIRouter(tags=["Master Data"])


async def _create_unique(db: AsyncSession, instance, column, value, resource: str, current_user: dict):
    """Insert a master record whose `column` must be unique, 409 on duplicates."""
    existing = await db.execute(select(column).where(column == value))
    if existing.scalar_one_or_none() is not None:
        raise ConflictError(f"{resource} '{value}' already exists", details={"name": value})

    db.add(instance)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise ConflictError(f"{resource} '{value}' already exists", details={"name": value}) from exc
    await db.refresh(instance)

    await log_actor_event(
        db, AuditAction.MASTER_DATA_CREATED, current_user,
        metadata={"resource": resource, "id": instance.id, "name": value}
    )
    return instance


async def _list(db: AsyncSession, model, order_column):
    result = await db.execute(select(model).order_by(order_column))
    return result.scalars().all()


@router.post("/cities", response_model=CityResponse, status_code=status.HTTP_201_CREATED)
async def create_city(
    data: CityCreate,
    current_user: dict = Depends(require_role(ALL_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    name = data.name.strip()
    return await _create_unique(db, City(name=name), City.name, name, "City", current_user)


@router.get("/cities", response_model=List[CityResponse])
async def list_cities(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await _list(db, City, City.name)


@router.post("/agencies", response_model=AgencyResponse, status_code=status.HTTP_201_CREATED)
async def create_agency(
    data: AgencyCreate,
    current_user: dict = Depends(require_role(ALL_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    name = data.name.strip()
    return await _create_unique(db, Agency(name=name), Agency.name, name, "Agency", current_user)


@router.get("/agencies", response_model=List[AgencyResponse])
async def list_agencies(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await _list(db, Agency, Agency.name)


@router.post("/vehicles", response_model=VehicleResponse, status_code=status.HTTP_201_CREATED)
async def create_vehicle(
    data: VehicleCreate,
    current_user: dict = Depends(require_role(ALL_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Vehicle numbers are stored trimmed and upper-cased."""
    number = data.vehicle_number
    return await _create_unique(db, Vehicle(vehicle_number=number), Vehicle.vehicle_number, number, "Vehicle", current_user)


@router.get("/vehicles", response_model=List[VehicleResponse])
async def list_vehicles(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await _list(db, Vehicle, Vehicle.vehicle_number)


@router.post("/items", response_model=ItemResponse, status_code=status.HTTP_201_CREATED)
async def create_item(
    data: ItemCreate,
    current_user: dict = Depends(require_role(ALL_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    description = data.item_description.strip()
    return await _create_unique(
        db, ItemCatalog(item_description=description),
        ItemCatalog.item_description, description, "Item", current_user
    )


@router.get("/items", response_model=List[ItemResponse])
async def list_items(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await _list(db, ItemCatalog, ItemCatalog.item_description)


@router.post("/parties", response_model=PartyResponse, status_code=status.HTTP_201_CREATED)
async def create_party(
    data: PartyCreate,
    current_user: dict = Depends(require_role(ALL_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    name = data.name.strip()
    party = Party(name=name, contact_info=data.contact_info.strip(), opening_balance=data.opening_balance)
    return await _create_unique(db, party, Party.name, name, "Party", current_user)


@router.get("/parties", response_model=List[PartyResponse])
async def list_parties(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await _list(db, Party, Party.name)


@router.post("/labour-persons", response_model=LabourPersonResponse, status_code=status.HTTP_201_CREATED)
async def create_labour_person(
    data: LabourPersonCreate,
    current_user: dict = Depends(require_role(ALL_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    name = data.name.strip()
    person = LabourPerson(name=name, contact_info=data.contact_info)
    return await _create_unique(db, person, LabourPerson.name, name, "Labour person", current_user)


@router.get("/labour-persons", response_model=List[LabourPersonResponse])
async def list_labour_persons(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await _list(db, LabourPerson, LabourPerson.name)
