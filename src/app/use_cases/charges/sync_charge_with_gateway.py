"""SyncChargeWithGateway Use Case (gateway sync reconciler)

Fetches the remote status of a charge from its payment gateway and applies it
through ReconcileCharge. Owns retry and backoff for transient gateway
failures; the gateway fetch runs outside any database transaction.
"""

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, Optional, Sequence
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.payment_gateway_client import (
    PaymentGatewayClient,
    GatewayTransientError,
    GatewayDefinitiveError,
)
from src.app.repositories.charge_repository import ChargeRepository
from src.domain.base import utcnow
from .reconcile_charge import ReconcileCharge
from .dtos import ReconcileChargeCommandDTO, SyncChargeResultDTO, SyncOutcome
from . import errors

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_SECONDS = (60, 300, 900)  # 1min, 5min, 15min
DEFAULT_TIMEOUT_SECONDS = 10.0


class SyncChargeWithGateway:
    """
    Use Case: Synchronize a charge's status with its payment gateway

    Business Rules:
    1. Charges without gateway_charge_id are skipped silently
    2. The gateway fetch is bounded by timeout_seconds; a timeout is transient
    3. Transient failures are retried up to max_attempts in total, waiting
       backoff_seconds[n] after the n-th failed attempt
    4. Definitive gateway errors are not retried (GATEWAY_REJECTED)
    5. Exhausted retries are logged and returned as GATEWAY_UNAVAILABLE
    6. A concurrent modification while applying the status counts as transient
    7. metadata gains synced_at and gateway_status on every successful sync

    Flow:
    1. Load charge and its gateway reference
    2. Fetch remote status (with timeout and retry)
    3. Apply through ReconcileCharge
    4. Return sync outcome
    """

    def __init__(
        self,
        uow: UnitOfWork,
        charge_repo: ChargeRepository,
        gateway_client: PaymentGatewayClient,
        reconcile: ReconcileCharge,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff_seconds: Sequence[float] = DEFAULT_BACKOFF_SECONDS,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.charge_repo = charge_repo
        self.gateway_client = gateway_client
        self.reconcile = reconcile
        self.max_attempts = max(1, max_attempts)
        self.backoff_seconds = list(backoff_seconds) or [0]
        self.timeout_seconds = timeout_seconds
        self.sleep = sleep
        self.clock = clock

    async def execute(self, charge_id: int) -> Result[SyncChargeResultDTO]:
        # Step 1: Load charge, then release the read transaction before any I/O
        try:
            charge = await self.charge_repo.get_by_id(charge_id)
            if not charge:
                return Return.err(errors.charge_not_found(charge_id))
            gateway_charge_id = charge.gateway_charge_id
            previous_status = charge.status
        except Exception as e:
            return Return.err(
                errors.unexpected("SYNC_CHARGE_FAILED", "Failed to load charge for sync", e)
            )
        finally:
            await self.uow.rollback()

        if not gateway_charge_id:
            logger.debug(f"Charge {charge_id} has no gateway reference, sync skipped")
            return Return.ok(
                SyncChargeResultDTO(charge_id=charge_id, outcome=SyncOutcome.SKIPPED)
            )

        last_error: Optional[str] = None
        for attempt in range(1, self.max_attempts + 1):
            # Step 2: Fetch remote status
            try:
                remote = await asyncio.wait_for(
                    self.gateway_client.fetch_remote_status(gateway_charge_id),
                    timeout=self.timeout_seconds,
                )
            except GatewayDefinitiveError as e:
                logger.error(
                    f"Gateway rejected status request for charge {charge_id} "
                    f"({gateway_charge_id}): {e}"
                )
                return Return.err(
                    Error(
                        code=errors.GATEWAY_REJECTED,
                        message=f"Gateway rejected status request for charge {charge_id}",
                        reason=str(e),
                    )
                )
            except (GatewayTransientError, asyncio.TimeoutError) as e:
                last_error = str(e) or "Gateway request timed out"
                logger.warning(
                    f"Gateway sync attempt {attempt}/{self.max_attempts} "
                    f"for charge {charge_id} failed: {last_error}"
                )
                await self._backoff(attempt)
                continue
            except Exception as e:
                logger.exception(
                    f"Unexpected gateway client failure for charge {charge_id} "
                    f"({gateway_charge_id})"
                )
                return Return.err(
                    Error(
                        code=errors.GATEWAY_REJECTED,
                        message=f"Gateway status for charge {charge_id} could not be read",
                        reason=str(e),
                    )
                )

            # Step 3: Apply through the lifecycle engine
            result = await self.reconcile.execute(
                ReconcileChargeCommandDTO(
                    charge_id=charge_id,
                    reported_status=remote.status,
                    reported_paid_at=remote.paid_at,
                    metadata={
                        "synced_at": self.clock(),
                        "gateway_status": remote.raw_status,
                    },
                )
            )
            if result.is_err():
                if result.error.code == errors.CHARGE_CONCURRENT_MODIFICATION:
                    last_error = result.error.message
                    logger.warning(
                        f"Gateway sync attempt {attempt}/{self.max_attempts} "
                        f"for charge {charge_id} lost a race: {last_error}"
                    )
                    await self._backoff(attempt)
                    continue
                return Return.err(result.error)

            # Step 4: Outcome
            synced = result.value
            outcome = (
                SyncOutcome.SYNCED if synced.status != previous_status else SyncOutcome.UNCHANGED
            )
            logger.info(
                f"Charge {charge_id} synced with gateway: {outcome.value} "
                f"(remote status {remote.raw_status})"
            )
            return Return.ok(
                SyncChargeResultDTO(
                    charge_id=charge_id,
                    outcome=outcome,
                    attempts=attempt,
                    remote_status=remote.status,
                    charge=synced,
                )
            )

        logger.error(
            f"Failed to sync charge {charge_id} after {self.max_attempts} attempts: {last_error}"
        )
        return Return.err(
            Error(
                code=errors.GATEWAY_UNAVAILABLE,
                message=f"Gateway unavailable for charge {charge_id}",
                reason=last_error,
            )
        )

    async def _backoff(self, attempt: int) -> None:
        if attempt >= self.max_attempts:
            return
        delay = self.backoff_seconds[min(attempt - 1, len(self.backoff_seconds) - 1)]
        await self.sleep(delay)
