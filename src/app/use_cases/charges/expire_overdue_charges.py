"""ExpireOverdueCharges Use Case (expiry sweep)

Moves pending charges whose due date has passed to EXPIRED. Each charge is
expired in its own transaction, so one failure never blocks the rest of the
batch.
"""

import logging
import time
from datetime import date, datetime
from typing import Callable, Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.event_publisher import EventPublisher
from src.app.repositories.charge_repository import ChargeRepository, StaleChargeError
from src.domain.base import utcnow
from src.domain.charge_events import ChargeExpired
from src.domain.charge_lifecycle import plan_expire
from src.domain.exceptions import ChargeError
from .dtos import ExpireOverdueResultDTO

logger = logging.getLogger(__name__)


class ExpireOverdueCharges:
    """
    Use Case: Expire overdue pending charges

    Business Rules:
    1. Only PENDING charges with due_date < as_of are expired
    2. metadata gains expired_at
    3. A charge paid or cancelled between listing and locking is skipped
    4. Per-charge failures are counted and logged, never raised

    Flow:
    1. List overdue pending charges
    2. For each: lock, re-check guard, write with version check, commit
    3. Publish ChargeExpired per expired charge
    4. Return sweep summary
    """

    def __init__(
        self,
        uow: UnitOfWork,
        charge_repo: ChargeRepository,
        publisher: EventPublisher,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.charge_repo = charge_repo
        self.publisher = publisher
        self.clock = clock

    async def execute(
        self, as_of: Optional[date] = None, batch_size: int = 500
    ) -> Result[ExpireOverdueResultDTO]:
        start = time.monotonic()
        as_of = as_of or self.clock().date()

        try:
            # Step 1: Candidates (ids only; instances expire on rollback)
            overdue = await self.charge_repo.list_overdue(as_of, limit=batch_size)
            charge_ids = [charge.id for charge in overdue]
        except Exception as e:
            return Return.err(
                Error(
                    code="EXPIRE_OVERDUE_CHARGES_FAILED",
                    message="Failed to list overdue charges",
                    reason=str(e),
                )
            )

        expired_ids = []
        failed_count = 0

        # Step 2: One transaction per charge
        for charge_id in charge_ids:
            try:
                charge = await self.charge_repo.get_by_id(charge_id, for_update=True)
                if not charge:
                    await self.uow.rollback()
                    continue
                changes = plan_expire(charge, as_of, self.clock())
                expired = await self.charge_repo.apply_changes(charge.id, charge.version, changes)
                await self.uow.commit()
            except ChargeError as e:
                # Settled or cancelled since listing
                await self.uow.rollback()
                logger.debug(f"Charge {charge_id} skipped by expiry sweep: {e.message}")
                continue
            except StaleChargeError:
                await self.uow.rollback()
                logger.info(f"Charge {charge_id} changed during expiry sweep, skipped")
                continue
            except Exception as e:
                await self.uow.rollback()
                failed_count += 1
                logger.error(f"Failed to expire charge {charge_id}: {e}")
                continue

            # Step 3: Publish after commit
            expired_ids.append(expired.id)
            await self.publisher.publish(ChargeExpired.for_charge(expired))

        # Step 4: Summary
        execution_time_ms = int((time.monotonic() - start) * 1000)
        return Return.ok(
            ExpireOverdueResultDTO(
                as_of=as_of,
                total_checked=len(charge_ids),
                expired_count=len(expired_ids),
                failed_count=failed_count,
                expired_charge_ids=expired_ids,
                execution_time_ms=execution_time_ms,
            )
        )
