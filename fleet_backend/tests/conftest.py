"""
Centralized Test Configuration.
"""

import pytest
from datetime import date, datetime, timedelta
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import Pool, StaticPool

from fleet_backend.app.main import app
from fleet_backend.app.db.session import get_db, Base
from fleet_backend.app.core.redis_client import get_redis
from fleet_backend.app.core.reliability import cache_circuit_breaker
import fleet_backend.app.core.redis_client as redis_client_module
from fleet_backend.app.models.city import City
from fleet_backend.app.models.driver import Driver
from fleet_backend.app.models.enums import VehicleStatus, DriverStatus
from fleet_backend.app.models.vehicle import Vehicle

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self.fail = False  # When set, every call raises ConnectionError

    def _check(self):
        if self.fail:
            raise ConnectionError("redis unavailable")

    async def ping(self):
        self._check()
        return True

    async def get(self, key):
        self._check()
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self._check()
        self.store[key] = value
        return True

    async def incr(self, key):
        self._check()
        self.store[key] = str(int(self.store.get(key, 0)) + 1)
        return int(self.store[key])

    async def delete(self, key):
        self._check()
        return 1 if self.store.pop(key, None) is not None else 0

    async def flushdb(self):
        self.store = {}


@pytest.fixture(scope="session")
def redis_client_session():
    return MockRedis()


@pytest.fixture(scope="session", autouse=True)
def apply_overrides(redis_client_session):
    """Apply overrides once for the session."""
    original_client = redis_client_module.redis_client
    redis_client_module.redis_client = redis_client_session

    async def override_get_db():
        async with TestingSessionLocal() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def override_get_redis():
        return redis_client_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    yield

    app.dependency_overrides = {}
    redis_client_module.redis_client = original_client


@pytest.fixture(autouse=True)
async def setup_database(redis_client_session):
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    redis_client_session.fail = False
    await redis_client_session.flushdb()
    cache_circuit_breaker.reset_state()

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


# Fleet fixtures

@pytest.fixture
async def fleet(db_session):
    """
    A small fleet: two active vehicles, one in maintenance, two active
    drivers and three cities.
    """
    vehicles = [
        Vehicle(placa="ABC1D23", marca="Volvo", modelo="FH 540", ano=2020, tipo="Caminhão",
                km_atual=10000, capacidade_tanque=600, status=VehicleStatus.ACTIVE),
        Vehicle(placa="EFG4H56", marca="Fiat", modelo="Ducato", ano=2021, tipo="Van",
                km_atual=25000, capacidade_tanque=90, status=VehicleStatus.ACTIVE),
        Vehicle(placa="IJK7L89", marca="Mercedes", modelo="Sprinter", ano=2019, tipo="Van",
                km_atual=80000, capacidade_tanque=75, status=VehicleStatus.MAINTENANCE),
    ]
    drivers = [
        Driver(cpf="11122233344", nome="Ana Souza", cnh="CNH0001", cat_cnh="E",
               validade_cnh=date.today() + timedelta(days=400), status=DriverStatus.ACTIVE),
        Driver(cpf="55566677788", nome="Bruno Lima", cnh="CNH0002", cat_cnh="D",
               validade_cnh=date.today() - timedelta(days=10), status=DriverStatus.ACTIVE),
    ]
    cities = [
        City(nome="São Paulo", uf="SP"),
        City(nome="Campinas", uf="SP"),
        City(nome="Curitiba", uf="PR"),
    ]
    db_session.add_all(vehicles + drivers + cities)
    await db_session.commit()

    return {"vehicles": vehicles, "drivers": drivers, "cities": cities}


@pytest.fixture
def now():
    return datetime.utcnow()
