"""Charge Expiry Background Worker

Periodically expires pending charges whose due date has passed.
Can be run as a standalone script or integrated with a scheduler.
"""

import asyncio
import logging
from datetime import date
from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories.charge_repository import SqlAlchemyChargeRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.adapter.services.event_publisher import InProcessEventPublisher
from src.adapter.services.notification_service import (
    create_notification_service,
    register_charge_notifications,
)
from src.app.services.event_publisher import EventPublisher
from src.domain.base import utc_today
from src.app.use_cases.charges import ExpireOverdueCharges, ExpireOverdueResultDTO

logger = logging.getLogger(__name__)


class ChargeExpiryWorker:
    """
    Background worker for the overdue charge expiry sweep

    Usage:
        # Run once
        worker = ChargeExpiryWorker()
        result = await worker.run_once()

        # Run continuously
        await worker.run_forever(interval_seconds=3600)  # Hourly
    """

    def __init__(
        self,
        db_uri: Optional[str] = None,
        publisher: Optional[EventPublisher] = None,
    ):
        """
        Initialize the worker

        Args:
            db_uri: Database URI (defaults to ApplicationConfig.DB_URI)
            publisher: Event publisher (defaults to one with notification observers)
        """
        self.db_uri = db_uri or ApplicationConfig.DB_URI
        self.batch_size = ApplicationConfig.EXPIRY_SWEEP_BATCH_SIZE

        if publisher is None:
            publisher = InProcessEventPublisher()
            register_charge_notifications(
                publisher,
                create_notification_service(ApplicationConfig.CHARGE_NOTIFICATION_WEBHOOK),
            )
        self.publisher = publisher

        # Create engine and session factory
        self.engine = create_async_engine(self.db_uri, echo=False, future=True)
        self.async_session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )

        logger.info("ChargeExpiryWorker initialized")

    async def run_once(self, as_of: Optional[date] = None) -> ExpireOverdueResultDTO:
        """
        Run the expiry sweep once

        Args:
            as_of: Reference date (defaults to today, UTC)

        Returns:
            ExpireOverdueResultDTO with sweep results
        """
        if not ApplicationConfig.EXPIRY_SWEEP_ENABLED:
            logger.info("Charge expiry sweep is disabled, skipping")
            return ExpireOverdueResultDTO(
                as_of=as_of or utc_today(),
                total_checked=0,
                expired_count=0,
                failed_count=0,
                expired_charge_ids=[],
                execution_time_ms=0,
            )

        async with self.async_session_factory() as session:
            uow = SqlAlchemyUnitOfWork(session)
            charge_repo = SqlAlchemyChargeRepository(session)

            use_case = ExpireOverdueCharges(
                uow=uow,
                charge_repo=charge_repo,
                publisher=self.publisher,
            )

            result = await use_case.execute(as_of=as_of, batch_size=self.batch_size)

            if result.is_err():
                logger.error(f"Expiry sweep failed: {result.error.message}")
                raise RuntimeError(f"Expiry sweep failed: {result.error.message}")

            response = result.value
            if response.failed_count > 0:
                logger.error(f"{response.failed_count} overdue charges could not be expired")

            return response

    async def run_forever(self, interval_seconds: int = 3600):
        """
        Run the expiry sweep continuously at specified interval

        Args:
            interval_seconds: Seconds between sweeps (default: 1 hour)
        """
        logger.info(f"Starting continuous expiry sweep with {interval_seconds}s interval")

        while True:
            try:
                result = await self.run_once()
                logger.info(
                    f"Expiry sweep complete. "
                    f"Checked {result.total_checked} overdue charges, "
                    f"expired {result.expired_count} in {result.execution_time_ms}ms"
                )
            except Exception as e:
                logger.error(f"Expiry sweep cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        """Cleanup resources"""
        await self.engine.dispose()
        logger.info("ChargeExpiryWorker shutdown complete")


async def main():
    """
    Entry point for running the worker as a standalone script

    Usage:
        # Run once
        python -m src.worker.charge_expiry --once

        # Run continuously (default: hourly)
        python -m src.worker.charge_expiry --interval 1800
    """
    import argparse

    logging.basicConfig(
        level=ApplicationConfig.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Charge Expiry Worker")
    parser.add_argument("--once", action="store_true", help="Run once and exit")
    parser.add_argument(
        "--as-of", type=date.fromisoformat, default=None,
        help="Reference date YYYY-MM-DD (default: today)"
    )
    parser.add_argument(
        "--interval", type=int, default=ApplicationConfig.EXPIRY_SWEEP_INTERVAL_SECONDS,
        help="Interval between runs in seconds (default: 3600 = 1 hour)"
    )
    args = parser.parse_args()

    worker = ChargeExpiryWorker()

    try:
        if args.once:
            result = await worker.run_once(as_of=args.as_of)
            print("Expiry sweep complete:")
            print(f"  As of: {result.as_of.isoformat()}")
            print(f"  Overdue charges checked: {result.total_checked}")
            print(f"  Expired: {result.expired_count}")
            print(f"  Failed: {result.failed_count}")
            print(f"  Execution time: {result.execution_time_ms}ms")
        else:
            await worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
