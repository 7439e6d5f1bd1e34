"""Gateway Sync Background Worker

Periodically synchronizes pending charges that carry a gateway reference with
their payment gateway. Can also sync a single charge on demand.
Can be run as a standalone script or integrated with a scheduler.
"""

import asyncio
import logging
import time
from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from libs.result import Result
from src.adapter.repositories.charge_repository import SqlAlchemyChargeRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.adapter.services.event_publisher import InProcessEventPublisher
from src.adapter.services.notification_service import (
    create_notification_service,
    register_charge_notifications,
)
from src.adapter.services.payment_gateway_client import create_payment_gateway_client
from src.app.services.event_publisher import EventPublisher
from src.app.services.payment_gateway_client import PaymentGatewayClient
from src.app.use_cases.charges import (
    ReconcileCharge,
    SyncChargeWithGateway,
    SyncChargeResultDTO,
    SyncOutcome,
    GatewaySyncSummaryDTO,
)

logger = logging.getLogger(__name__)


class GatewaySyncWorker:
    """
    Background worker for gateway status synchronization

    Features:
    - Sweeps pending charges with a gateway_charge_id
    - Each charge syncs in its own session with retry and backoff
    - Bounded concurrency across charges
    - Can run once, continuously, or for a single charge

    Usage:
        # Sync one charge
        worker = GatewaySyncWorker()
        result = await worker.sync_charge(42)

        # Run once
        summary = await worker.run_once()

        # Run continuously
        await worker.run_forever(interval_seconds=900)
    """

    def __init__(
        self,
        db_uri: Optional[str] = None,
        gateway_client: Optional[PaymentGatewayClient] = None,
        publisher: Optional[EventPublisher] = None,
    ):
        """
        Initialize the worker

        Args:
            db_uri: Database URI (defaults to ApplicationConfig.DB_URI)
            gateway_client: Gateway client (defaults to the configured HTTP client)
            publisher: Event publisher (defaults to one with notification observers)
        """
        self.db_uri = db_uri or ApplicationConfig.DB_URI
        self.max_attempts = ApplicationConfig.SYNC_MAX_ATTEMPTS
        self.backoff_seconds = ApplicationConfig.SYNC_BACKOFF_SECONDS
        self.timeout_seconds = ApplicationConfig.GATEWAY_TIMEOUT_SECONDS
        self.batch_size = ApplicationConfig.SYNC_BATCH_SIZE
        self.concurrency = max(1, ApplicationConfig.SYNC_CONCURRENCY)

        self.gateway_client = gateway_client or create_payment_gateway_client(
            ApplicationConfig.GATEWAY_BASE_URL,
            api_key=ApplicationConfig.GATEWAY_API_KEY,
            timeout=ApplicationConfig.GATEWAY_TIMEOUT_SECONDS,
        )
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

        logger.info("GatewaySyncWorker initialized")

    async def sync_charge(self, charge_id: int) -> Result[SyncChargeResultDTO]:
        """
        Synchronize one charge in its own session

        Args:
            charge_id: Charge ID

        Returns:
            Result of SyncChargeWithGateway
        """
        async with self.async_session_factory() as session:
            uow = SqlAlchemyUnitOfWork(session)
            charge_repo = SqlAlchemyChargeRepository(session)

            use_case = SyncChargeWithGateway(
                uow=uow,
                charge_repo=charge_repo,
                gateway_client=self.gateway_client,
                reconcile=ReconcileCharge(uow, charge_repo, self.publisher),
                max_attempts=self.max_attempts,
                backoff_seconds=self.backoff_seconds,
                timeout_seconds=self.timeout_seconds,
            )
            return await use_case.execute(charge_id)

    async def _pending_charge_ids(self) -> list[int]:
        async with self.async_session_factory() as session:
            charge_repo = SqlAlchemyChargeRepository(session)
            charges = await charge_repo.list_pending_with_gateway(limit=self.batch_size)
            return [charge.id for charge in charges]

    async def run_once(self) -> GatewaySyncSummaryDTO:
        """
        Sync every pending charge with a gateway reference once

        Returns:
            GatewaySyncSummaryDTO with per-outcome counts
        """
        start = time.monotonic()

        if not ApplicationConfig.SYNC_ENABLED:
            logger.info("Gateway sync is disabled, skipping")
            return GatewaySyncSummaryDTO(
                total_checked=0,
                synced_count=0,
                unchanged_count=0,
                skipped_count=0,
                failed_count=0,
                execution_time_ms=0,
            )

        charge_ids = await self._pending_charge_ids()
        semaphore = asyncio.Semaphore(self.concurrency)

        async def bounded(charge_id: int) -> Result[SyncChargeResultDTO]:
            async with semaphore:
                return await self.sync_charge(charge_id)

        results = await asyncio.gather(
            *(bounded(charge_id) for charge_id in charge_ids),
            return_exceptions=True,
        )

        counts = {outcome: 0 for outcome in SyncOutcome}
        failed = 0
        for charge_id, result in zip(charge_ids, results):
            if isinstance(result, BaseException):
                failed += 1
                logger.error(f"Sync of charge {charge_id} crashed: {result}")
            elif result.is_err():
                failed += 1
                logger.error(
                    f"Sync of charge {charge_id} failed: "
                    f"{result.error.code} - {result.error.message}"
                )
            else:
                counts[result.value.outcome] += 1

        return GatewaySyncSummaryDTO(
            total_checked=len(charge_ids),
            synced_count=counts[SyncOutcome.SYNCED],
            unchanged_count=counts[SyncOutcome.UNCHANGED],
            skipped_count=counts[SyncOutcome.SKIPPED],
            failed_count=failed,
            execution_time_ms=int((time.monotonic() - start) * 1000),
        )

    async def run_forever(self, interval_seconds: int = 900):
        """
        Run gateway sync continuously at specified interval

        Args:
            interval_seconds: Seconds between sweeps (default: 15 minutes)
        """
        logger.info(f"Starting continuous gateway sync with {interval_seconds}s interval")

        while True:
            try:
                summary = await self.run_once()
                logger.info(
                    f"Gateway sync cycle complete. "
                    f"Checked {summary.total_checked} charges: "
                    f"{summary.synced_count} synced, {summary.unchanged_count} unchanged, "
                    f"{summary.failed_count} failed in {summary.execution_time_ms}ms"
                )
            except Exception as e:
                logger.error(f"Gateway sync cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        """Cleanup resources"""
        await self.engine.dispose()
        logger.info("GatewaySyncWorker shutdown complete")


async def main():
    """
    Entry point for running the worker as a standalone script

    Usage:
        # Sync a single charge
        python -m src.worker.charge_sync --charge-id 42

        # Run once
        python -m src.worker.charge_sync --once

        # Run continuously (default: every 15 minutes)
        python -m src.worker.charge_sync --interval 600
    """
    import argparse

    logging.basicConfig(
        level=ApplicationConfig.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Gateway Sync Worker")
    parser.add_argument("--once", action="store_true", help="Run once and exit")
    parser.add_argument("--charge-id", type=int, help="Sync a single charge and exit")
    parser.add_argument(
        "--interval", type=int, default=ApplicationConfig.SYNC_INTERVAL_SECONDS,
        help="Interval between runs in seconds (default: 900 = 15 minutes)"
    )
    args = parser.parse_args()

    worker = GatewaySyncWorker()

    try:
        if args.charge_id is not None:
            result = await worker.sync_charge(args.charge_id)
            if result.is_err():
                print(f"Sync failed: {result.error.code} - {result.error.message}")
            else:
                print(f"Charge {args.charge_id}: {result.value.outcome.value}")
        elif args.once:
            summary = await worker.run_once()
            print("Gateway sync complete:")
            print(f"  Charges checked: {summary.total_checked}")
            print(f"  Synced: {summary.synced_count}")
            print(f"  Unchanged: {summary.unchanged_count}")
            print(f"  Failed: {summary.failed_count}")
            print(f"  Execution time: {summary.execution_time_ms}ms")
        else:
            await worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
