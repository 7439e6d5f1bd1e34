"""CreateCharge Use Case

Issues a new pending charge against an eligible customer.
"""

import logging
from typing import Callable
from datetime import datetime
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.event_publisher import EventPublisher
from src.app.services.customer_directory import CustomerDirectory, CustomerEligibility
from src.app.repositories.charge_repository import ChargeRepository, DuplicateGatewayChargeError
from src.domain.base import utcnow
from src.domain.charge import Charge
from src.domain.charge_events import ChargeCreated
from src.domain.charge_lifecycle import plan_create
from src.domain.exceptions import ChargeError
from .dtos import CreateChargeCommandDTO, ChargeResponseDTO
from . import errors

logger = logging.getLogger(__name__)


class CreateCharge:
    """
    Use Case: Create a charge for a customer

    Business Rules:
    1. Customer must exist (CUSTOMER_NOT_FOUND) and be eligible (CUSTOMER_NOT_ELIGIBLE)
    2. amount > 0 with at most 2 decimal places (INVALID_AMOUNT)
    3. due_date is not before today, UTC (INVALID_DUE_DATE)
    4. gateway_charge_id is unique across charges (GATEWAY_CHARGE_ID_TAKEN)
    5. New charges always start PENDING with paid_at unset
    6. ChargeCreated is published only after commit

    Flow:
    1. Check customer eligibility
    2. Validate fields against the lifecycle rules
    3. Reject a gateway reference that is already in use
    4. Persist the charge
    5. Commit transaction
    6. Publish ChargeCreated
    7. Return response
    """

    def __init__(
        self,
        uow: UnitOfWork,
        charge_repo: ChargeRepository,
        customer_directory: CustomerDirectory,
        publisher: EventPublisher,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.charge_repo = charge_repo
        self.customer_directory = customer_directory
        self.publisher = publisher
        self.clock = clock

    async def execute(self, command: CreateChargeCommandDTO) -> Result[ChargeResponseDTO]:
        """
        Execute charge creation

        Args:
            command: CreateChargeCommandDTO

        Returns:
            Result[ChargeResponseDTO]: Created charge or error
        """
        try:
            # Step 1: Customer must exist and be chargeable
            eligibility = await self.customer_directory.check_eligibility(command.customer_id)
            if eligibility == CustomerEligibility.NOT_FOUND:
                return Return.err(
                    Error(
                        code=errors.CUSTOMER_NOT_FOUND,
                        message=f"Customer {command.customer_id} not found",
                        reason="Customer does not exist or was deleted",
                    )
                )
            if eligibility == CustomerEligibility.INELIGIBLE:
                return Return.err(
                    Error(
                        code=errors.CUSTOMER_NOT_ELIGIBLE,
                        message=f"Customer {command.customer_id} cannot receive new charges",
                        reason="Customer is blocked",
                    )
                )

            # Step 2: Validate amount, description, due date and metadata
            fields = plan_create(
                today=self.clock().date(),
                amount=command.amount,
                description=command.description,
                due_date=command.due_date,
                metadata=command.metadata,
            )

            # Step 3: Gateway reference must be unused
            if command.gateway_charge_id:
                existing = await self.charge_repo.get_by_gateway_charge_id(
                    command.gateway_charge_id
                )
                if existing:
                    return Return.err(
                        Error(
                            code=errors.GATEWAY_CHARGE_ID_TAKEN,
                            message=f"Gateway charge {command.gateway_charge_id} is already linked to charge {existing.id}",
                            reason="gateway_charge_id must be unique",
                        )
                    )

            # Step 4: Persist
            now = self.clock()
            charge = Charge(
                customer_id=command.customer_id,
                payment_gateway_id=command.payment_gateway_id,
                gateway_charge_id=command.gateway_charge_id,
                payment_method=command.payment_method,
                created_at=now,
                updated_at=now,
                **fields,
            )
            created = await self.charge_repo.create(charge)

            # Step 5: Commit
            await self.uow.commit()

        except ChargeError as e:
            await self.uow.rollback()
            return Return.err(errors.from_charge_error(e))
        except DuplicateGatewayChargeError as e:
            await self.uow.rollback()
            logger.warning(f"Lost gateway reference race on create: {e}")
            return Return.err(
                Error(
                    code=errors.GATEWAY_CHARGE_ID_TAKEN,
                    message=str(e),
                    reason="gateway_charge_id must be unique",
                )
            )
        except Exception as e:
            await self.uow.rollback()
            logger.exception("Charge creation failed")
            return Return.err(
                errors.unexpected("CREATE_CHARGE_FAILED", "Failed to create charge", e)
            )

        # Step 6: Publish after commit; observers cannot undo the charge
        await self.publisher.publish(ChargeCreated.for_charge(created))
        logger.info(f"Charge {created.id} created for customer {created.customer_id}")

        # Step 7: Return response
        return Return.ok(ChargeResponseDTO.from_charge(created))
