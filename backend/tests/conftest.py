"""Pytest configuration and fixtures for async testing."""
from typing import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from invoicing.api.deps import get_current_user, get_db
from invoicing.database import Base
from invoicing.main import app
from invoicing.models.business import Business
from invoicing.models.customer import Customer
from invoicing.services.directory import BusinessContext

# In-memory SQLite shared by every connection of one test
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

MAHARASHTRA = "27"
KARNATAKA = "29"


def _enable_savepoints(engine: AsyncEngine) -> None:
    """Let SQLAlchemy emit BEGIN itself so SAVEPOINT works on pysqlite."""

    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")


@pytest_asyncio.fixture(scope="function")
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """
    Create a fresh in-memory database for each test.

    Yields:
        AsyncEngine: Engine with all tables created
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    _enable_savepoints(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """
    Create a database session for each test.

    Yields:
        AsyncSession: Database session for testing
    """
    session_factory = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def business(db_session: AsyncSession) -> Business:
    """Business registered in Maharashtra."""
    business = Business(
        user_id="user-maharashtra",
        business_name="Sahyadri Traders",
        state_code=MAHARASHTRA,
        gst_number="27AAPFU0939F1ZV",
    )
    db_session.add(business)
    await db_session.commit()
    return business


@pytest_asyncio.fixture(scope="function")
async def other_business(db_session: AsyncSession) -> Business:
    """A second, unrelated business registered in Karnataka."""
    business = Business(
        user_id="user-karnataka",
        business_name="Malnad Exports",
        state_code=KARNATAKA,
    )
    db_session.add(business)
    await db_session.commit()
    return business


@pytest_asyncio.fixture(scope="function")
async def business_context(business: Business) -> BusinessContext:
    """Requester context for ``business``."""
    return BusinessContext(id=business.id, state_code=business.state_code)


@pytest_asyncio.fixture(scope="function")
async def other_business_context(other_business: Business) -> BusinessContext:
    """Requester context for ``other_business``."""
    return BusinessContext(id=other_business.id, state_code=other_business.state_code)


async def _add_customer(db: AsyncSession, business: Business, name: str, state_code: str | None) -> Customer:
    customer = Customer(business_id=business.id, name=name, state_code=state_code)
    db.add(customer)
    await db.commit()
    return customer


@pytest_asyncio.fixture(scope="function")
async def local_customer(db_session: AsyncSession, business: Business) -> Customer:
    """Customer in the business's own state."""
    return await _add_customer(db_session, business, "Pune Retail LLP", MAHARASHTRA)


@pytest_asyncio.fixture(scope="function")
async def interstate_customer(db_session: AsyncSession, business: Business) -> Customer:
    """Customer in another state."""
    return await _add_customer(db_session, business, "Bengaluru Stores", KARNATAKA)


@pytest_asyncio.fixture(scope="function")
async def stateless_customer(db_session: AsyncSession, business: Business) -> Customer:
    """Customer with no recorded state."""
    return await _add_customer(db_session, business, "Walk-in Account", None)


@pytest_asyncio.fixture(scope="function")
async def foreign_customer(db_session: AsyncSession, other_business: Business) -> Customer:
    """Customer owned by ``other_business``."""
    return await _add_customer(db_session, other_business, "Mysuru Silks", KARNATAKA)


def _override_db(db_session: AsyncSession):
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        """Override database dependency to use test database."""
        yield db_session

    return override_get_db


@pytest_asyncio.fixture(scope="function")
async def async_client(db_session: AsyncSession, business: Business) -> AsyncGenerator[AsyncClient, None]:
    """
    Async HTTP client authenticated as the owner of ``business``.

    Yields:
        AsyncClient: Async HTTP client for API testing
    """

    async def override_current_user() -> dict:
        return {"sub": business.user_id, "type": "access"}

    app.dependency_overrides[get_db] = _override_db(db_session)
    app.dependency_overrides[get_current_user] = override_current_user

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def anonymous_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Async HTTP client using real token verification.

    Yields:
        AsyncClient: Async HTTP client without an identity override
    """
    app.dependency_overrides[get_db] = _override_db(db_session)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
