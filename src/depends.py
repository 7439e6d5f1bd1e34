from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.repositories.charge_repository import SqlAlchemyChargeRepository
from src.adapter.repositories.customer_repository import SqlAlchemyCustomerDirectory
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.adapter.services.event_publisher import InProcessEventPublisher
from src.adapter.services.notification_service import (
    create_notification_service,
    register_charge_notifications,
)
from src.adapter.services.payment_gateway_client import create_payment_gateway_client
from src.app.services.event_publisher import EventPublisher
from src.app.services.payment_gateway_client import PaymentGatewayClient

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


def build_event_publisher(config=ApplicationConfig) -> EventPublisher:
    """Process-wide publisher with the notification observers attached"""
    publisher = InProcessEventPublisher()
    register_charge_notifications(
        publisher, create_notification_service(config.CHARGE_NOTIFICATION_WEBHOOK)
    )
    return publisher


def build_gateway_client(config=ApplicationConfig) -> PaymentGatewayClient:
    return create_payment_gateway_client(
        config.GATEWAY_BASE_URL,
        api_key=config.GATEWAY_API_KEY,
        timeout=config.GATEWAY_TIMEOUT_SECONDS,
    )


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


def get_session_factory():
    """Session factory for work that outlives the request (background sync)"""
    return AsyncSessionLocal


async def get_unit_of_work(session: AsyncSession = Depends(get_session)):
    yield SqlAlchemyUnitOfWork(session)


def get_charge_repository(session: AsyncSession = Depends(get_session)):
    return SqlAlchemyChargeRepository(session)


def get_customer_directory(session: AsyncSession = Depends(get_session)):
    return SqlAlchemyCustomerDirectory(session)


def get_event_publisher(request: Request) -> EventPublisher:
    return request.app.state.event_publisher


def get_gateway_client(request: Request) -> PaymentGatewayClient:
    return request.app.state.gateway_client
