import pytest_asyncio
from unittest.mock import AsyncMock, MagicMock
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from src.depends import get_session, get_session_factory, get_event_publisher, get_gateway_client
from src.adapter.services.event_publisher import InProcessEventPublisher
from src.domain.charge_events import ChargeEvent
from src.domain.customer import Customer, CustomerStatus
import src.domain  # noqa: F401  registers every table on SQLModel.metadata


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    """Create a throwaway SQLite database per test"""
    test_db_url = f"sqlite+aiosqlite:///{tmp_path / 'charges_test.db'}"

    engine = create_async_engine(test_db_url, echo=False, future=True)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Create a new database session for each test"""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def published_events():
    return []


@pytest_asyncio.fixture
async def event_publisher(published_events):
    """In-process publisher that records every event it dispatches"""
    publisher = InProcessEventPublisher()

    async def record(event):
        published_events.append(event)

    publisher.subscribe(ChargeEvent, record)
    return publisher


@pytest_asyncio.fixture
async def customer(db_session):
    customer = Customer(
        name="Maria Silva",
        email="maria@example.com",
        document="12345678901",
        status=CustomerStatus.ACTIVE,
    )
    db_session.add(customer)
    await db_session.commit()
    await db_session.refresh(customer)
    return customer


@pytest_asyncio.fixture
async def blocked_customer(db_session):
    customer = Customer(
        name="Blocked Buyer",
        email="blocked@example.com",
        document="98765432100",
        status=CustomerStatus.BLOCKED,
    )
    db_session.add(customer)
    await db_session.commit()
    await db_session.refresh(customer)
    return customer


@pytest_asyncio.fixture
async def gateway_client():
    """Gateway stub; tests set fetch_remote_status as needed"""
    client = MagicMock()
    client.fetch_remote_status = AsyncMock()
    return client


@pytest_asyncio.fixture
async def client(db_session, session_factory, event_publisher, gateway_client):
    """Create test client with database session override"""
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    # Override the session dependency to use test session
    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_event_publisher] = lambda: event_publisher
    app.dependency_overrides[get_gateway_client] = lambda: gateway_client

    # Use ASGITransport for httpx AsyncClient
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
