"""
Centralized Test Configuration.

Each test gets a fresh in-memory SQLite database and an in-memory Redis.
"""

import pytest

from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool, Pool

from backend.app.main import app
from backend.app.db.session import get_db, Base
from backend.app.core.redis_client import get_redis
import backend.app.core.redis_client as redis_client_module
from backend.app.core.jwt import create_access_token
from backend.app.core.security import get_password_hash
from backend.app.models.enums import UserRole
from backend.app.models.user import User
from backend.app.models.city import City
from backend.app.models.agency import Agency
from backend.app.models.vehicle import Vehicle
from backend.app.models.item_catalog import ItemCatalog
from backend.app.models.party import Party
from backend.app.models.labour_person import LabourPerson

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}

    async def ping(self):
        return True

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        return True

    async def setex(self, key, ttl, value):
        self.store[key] = value
        return True

    async def delete(self, key):
        return 1 if self.store.pop(key, None) is not None else 0

    async def exists(self, key):
        return 1 if key in self.store else 0

    async def flushdb(self):
        self.store = {}


@pytest.fixture
async def engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def mock_redis():
    return MockRedis()


@pytest.fixture(autouse=True)
def patch_redis(mock_redis, monkeypatch):
    """Token revocation talks to the in-memory Redis."""
    monkeypatch.setattr(redis_client_module, "redis_client", mock_redis)


@pytest.fixture
async def client(session_factory, mock_redis):
    """Async client bound to the per-test database."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_redis():
        return mock_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides = {}


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


async def _headers_for(session_factory, username: str, role: UserRole) -> dict:
    async with session_factory() as session:
        user = User(
            username=username,
            hashed_password=get_password_hash("password123"),
            role=role,
            is_active=True,
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)

    token = create_access_token(data={"sub": user.username, "user_id": user.id, "role": role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def operator_headers(session_factory):
    return await _headers_for(session_factory, "operator1", UserRole.OPERATOR)


@pytest.fixture
async def admin_headers(session_factory):
    return await _headers_for(session_factory, "admin1", UserRole.ADMIN)


@pytest.fixture
async def superadmin_headers(session_factory):
    return await _headers_for(session_factory, "super1", UserRole.SUPERADMIN)


@pytest.fixture
async def master(session_factory):
    """Minimal master data: two cities, an agency, two vehicles, two items, parties and a labour person."""
    async with session_factory() as session:
        rows = {
            "city": City(name="Lahore"),
            "dest_city": City(name="Karachi"),
            "agency": Agency(name="Express Forwarders"),
            "vehicle": Vehicle(vehicle_number="LES-1234"),
            "other_vehicle": Vehicle(vehicle_number="KHI-9876"),
            "item": ItemCatalog(item_description="Cotton Bales"),
            "item2": ItemCatalog(item_description="Machine Parts"),
            "sender": Party(name="Ali Traders", contact_info="0300-1111111"),
            "receiver": Party(name="Bilal Stores", contact_info="0301-2222222"),
            "labour": LabourPerson(name="Rashid", contact_info="0302-3333333"),
        }
        session.add_all(rows.values())
        await session.commit()
        return {f"{key}_id": row.id for key, row in rows.items()}


def _shipment_payload(master: dict, **overrides) -> dict:
    payload = {
        "bility_number": "B-1001",
        "bility_date": "2025-03-15",
        "departure_city_id": master["city_id"],
        "to_city_id": master["dest_city_id"],
        "forwarding_agency_id": master["agency_id"],
        "vehicle_id": master["vehicle_id"],
        "sender_id": master["sender_id"],
        "receiver_id": master["receiver_id"],
        "total_amount": 5000,
        "payment_status": "PENDING",
        "goods_details": [
            {"item_id": master["item_id"], "quantity": 10, "charges": 4000, "delivery_charges": 300},
            {"item_id": master["item2_id"], "quantity": 2, "charges": 1000, "delivery_charges": 200},
        ],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def register_shipment(client, operator_headers, master):
    """Register a shipment through the API and return the response JSON."""
    async def _register(**overrides) -> dict:
        response = await client.post(
            "/api/shipments", json=_shipment_payload(master, **overrides), headers=operator_headers
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _register


@pytest.fixture
def shipment_payload(master):
    """Builder for a valid registration payload."""
    def _build(**overrides) -> dict:
        return _shipment_payload(master, **overrides)
    return _build
