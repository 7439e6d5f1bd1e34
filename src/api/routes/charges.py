"""Charges API Routes

FastAPI routes for the charge lifecycle.
"""

import logging
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, Response, status

from src.api.error import ClientError
from src.api.schemas.charge_request import (
    CreateChargeRequestSchema,
    UpdateChargeRequestSchema,
    CancelChargeRequestSchema,
    RefundChargeRequestSchema,
    MarkChargePaidRequestSchema,
    ReconcileChargeRequestSchema,
)
from src.app.use_cases.charges import (
    CreateCharge,
    UpdateCharge,
    CancelCharge,
    MarkChargePaid,
    RefundCharge,
    ReconcileCharge,
    GetCharge,
    ListCharges,
    DeleteCharge,
    SyncChargeWithGateway,
    CreateChargeCommandDTO,
    UpdateChargeCommandDTO,
    CancelChargeCommandDTO,
    MarkChargePaidCommandDTO,
    RefundChargeCommandDTO,
    ReconcileChargeCommandDTO,
    ListChargesQueryDTO,
    ChargeResponseDTO,
    ChargeListResponseDTO,
    SyncChargeResultDTO,
)
from src.adapter.repositories.charge_repository import SqlAlchemyChargeRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.repositories.charge_repository import ChargeRepository
from src.app.services.customer_directory import CustomerDirectory
from src.app.services.event_publisher import EventPublisher
from src.app.services.payment_gateway_client import PaymentGatewayClient
from src.app.services.unit_of_work import UnitOfWork
from src.depends import (
    get_unit_of_work,
    get_charge_repository,
    get_customer_directory,
    get_event_publisher,
    get_gateway_client,
    get_session_factory,
)
from src.domain.charge import ChargeStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/charges", tags=["Charges"])

ERROR_EXAMPLE = {
    "application/json": {
        "example": {
            "error": {
                "code": "CHARGE_NOT_FOUND",
                "message": "Charge 1 not found",
                "reason": "Charge does not exist or was deleted"
            }
        }
    }
}


def _unwrap(result):
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.get("", response_model=ChargeListResponseDTO)
async def list_charges(
    status_filter: Optional[List[ChargeStatus]] = Query(default=None, alias="status"),
    customer_id: Optional[int] = Query(default=None),
    date_from: Optional[date] = Query(default=None),
    date_to: Optional[date] = Query(default=None),
    overdue: bool = Query(default=False),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    charge_repo: ChargeRepository = Depends(get_charge_repository),
):
    """
    List charges, newest first.

    **Query parameters:**
    - `status` (repeatable): pending, paid, cancelled, refunded, expired, failed
    - `customer_id`: only this customer's charges
    - `date_from` / `date_to`: inclusive creation date range
    - `overdue`: only pending charges past their due date
    - `limit` / `offset`: pagination
    """
    query = ListChargesQueryDTO(
        statuses=status_filter or [],
        customer_id=customer_id,
        date_from=date_from,
        date_to=date_to,
        overdue=overdue,
        limit=limit,
        offset=offset,
    )
    return _unwrap(await ListCharges(charge_repo).execute(query))


@router.get(
    "/gateway/{gateway_charge_id}",
    response_model=ChargeResponseDTO,
    responses={404: {"description": "Charge not found", "content": ERROR_EXAMPLE}},
)
async def get_charge_by_gateway_id(
    gateway_charge_id: str,
    charge_repo: ChargeRepository = Depends(get_charge_repository),
):
    """Look up a charge by its payment gateway reference."""
    return _unwrap(await GetCharge(charge_repo).by_gateway_charge_id(gateway_charge_id))


@router.get(
    "/{charge_id}",
    response_model=ChargeResponseDTO,
    responses={404: {"description": "Charge not found", "content": ERROR_EXAMPLE}},
)
async def get_charge(
    charge_id: int,
    charge_repo: ChargeRepository = Depends(get_charge_repository),
):
    return _unwrap(await GetCharge(charge_repo).execute(charge_id))


@router.post(
    "",
    response_model=ChargeResponseDTO,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"description": "Customer not found"},
        422: {"description": "Invalid amount or due date, or customer not eligible"},
    },
)
async def create_charge(
    request: CreateChargeRequestSchema,
    uow: UnitOfWork = Depends(get_unit_of_work),
    charge_repo: ChargeRepository = Depends(get_charge_repository),
    customer_directory: CustomerDirectory = Depends(get_customer_directory),
    publisher: EventPublisher = Depends(get_event_publisher),
):
    """
    Create a pending charge for a customer.

    **Request body:**
    - `customer_id` (required): Customer to charge
    - `amount` (required): Positive amount with at most 2 decimal places
    - `description` (required): 3-500 characters
    - `payment_method` (required): credit_card, debit_card, boleto or pix
    - `due_date` (required): Today or later
    - `payment_gateway_id`, `gateway_charge_id`, `metadata` (optional)

    **Returns:**
    - 201: Charge created with status `pending`
    - 404: Customer not found
    - 422: Business rule violated (INVALID_AMOUNT, INVALID_DUE_DATE, CUSTOMER_NOT_ELIGIBLE)
    """
    command = CreateChargeCommandDTO(**request.model_dump())
    use_case = CreateCharge(uow, charge_repo, customer_directory, publisher)
    return _unwrap(await use_case.execute(command))


@router.patch(
    "/{charge_id}",
    response_model=ChargeResponseDTO,
    responses={
        404: {"description": "Charge not found", "content": ERROR_EXAMPLE},
        409: {"description": "Charge modified concurrently"},
        422: {"description": "Charge not updatable or invalid field"},
    },
)
async def update_charge(
    charge_id: int,
    request: UpdateChargeRequestSchema,
    uow: UnitOfWork = Depends(get_unit_of_work),
    charge_repo: ChargeRepository = Depends(get_charge_repository),
    publisher: EventPublisher = Depends(get_event_publisher),
):
    """
    Update amount, description, due date or metadata of an open charge.

    Metadata keys are merged into the existing audit trail.
    """
    command = UpdateChargeCommandDTO(charge_id=charge_id, **request.model_dump())
    return _unwrap(await UpdateCharge(uow, charge_repo, publisher).execute(command))


@router.post(
    "/{charge_id}/cancel",
    response_model=ChargeResponseDTO,
    responses={
        404: {"description": "Charge not found", "content": ERROR_EXAMPLE},
        409: {"description": "Charge modified concurrently"},
        422: {"description": "Charge cannot be cancelled"},
    },
)
async def cancel_charge(
    charge_id: int,
    request: CancelChargeRequestSchema,
    uow: UnitOfWork = Depends(get_unit_of_work),
    charge_repo: ChargeRepository = Depends(get_charge_repository),
    publisher: EventPublisher = Depends(get_event_publisher),
):
    command = CancelChargeCommandDTO(charge_id=charge_id, reason=request.reason)
    return _unwrap(await CancelCharge(uow, charge_repo, publisher).execute(command))


@router.post(
    "/{charge_id}/pay",
    response_model=ChargeResponseDTO,
    responses={
        404: {"description": "Charge not found", "content": ERROR_EXAMPLE},
        409: {"description": "Charge modified concurrently"},
        422: {"description": "Charge is cancelled or refunded"},
    },
)
async def mark_charge_paid(
    charge_id: int,
    request: Optional[MarkChargePaidRequestSchema] = None,
    uow: UnitOfWork = Depends(get_unit_of_work),
    charge_repo: ChargeRepository = Depends(get_charge_repository),
    publisher: EventPublisher = Depends(get_event_publisher),
):
    """
    Mark a charge as paid.

    Paying an already paid charge returns it unchanged.
    """
    command = MarkChargePaidCommandDTO(
        charge_id=charge_id,
        paid_at=request.paid_at if request else None,
    )
    return _unwrap(await MarkChargePaid(uow, charge_repo, publisher).execute(command))


@router.post(
    "/{charge_id}/refund",
    response_model=ChargeResponseDTO,
    responses={
        404: {"description": "Charge not found", "content": ERROR_EXAMPLE},
        409: {"description": "Charge modified concurrently"},
        422: {"description": "Only paid charges can be refunded"},
    },
)
async def refund_charge(
    charge_id: int,
    request: RefundChargeRequestSchema,
    uow: UnitOfWork = Depends(get_unit_of_work),
    charge_repo: ChargeRepository = Depends(get_charge_repository),
    publisher: EventPublisher = Depends(get_event_publisher),
):
    command = RefundChargeCommandDTO(charge_id=charge_id, reason=request.reason)
    return _unwrap(await RefundCharge(uow, charge_repo, publisher).execute(command))


@router.post(
    "/{charge_id}/reconcile",
    response_model=ChargeResponseDTO,
    responses={
        404: {"description": "Charge not found", "content": ERROR_EXAMPLE},
        409: {"description": "Charge modified concurrently"},
    },
)
async def reconcile_charge(
    charge_id: int,
    request: ReconcileChargeRequestSchema,
    uow: UnitOfWork = Depends(get_unit_of_work),
    charge_repo: ChargeRepository = Depends(get_charge_repository),
    publisher: EventPublisher = Depends(get_event_publisher),
):
    """
    Apply a status reported by the payment gateway (gateway callback).

    Accepted from any status and safe to replay.
    """
    command = ReconcileChargeCommandDTO(
        charge_id=charge_id,
        reported_status=request.status,
        reported_paid_at=request.paid_at,
        metadata=request.metadata,
    )
    return _unwrap(await ReconcileCharge(uow, charge_repo, publisher).execute(command))


@router.delete(
    "/{charge_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={
        404: {"description": "Charge not found", "content": ERROR_EXAMPLE},
        422: {"description": "Only cancelled, expired or failed charges can be deleted"},
    },
)
async def delete_charge(
    charge_id: int,
    uow: UnitOfWork = Depends(get_unit_of_work),
    charge_repo: ChargeRepository = Depends(get_charge_repository),
):
    _unwrap(await DeleteCharge(uow, charge_repo).execute(charge_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


async def _sync_in_background(
    session_factory,
    publisher: EventPublisher,
    gateway_client: PaymentGatewayClient,
    config,
    charge_id: int,
) -> None:
    async with session_factory() as session:
        uow = SqlAlchemyUnitOfWork(session)
        charge_repo = SqlAlchemyChargeRepository(session)
        use_case = SyncChargeWithGateway(
            uow,
            charge_repo,
            gateway_client,
            ReconcileCharge(uow, charge_repo, publisher),
            max_attempts=config.SYNC_MAX_ATTEMPTS,
            backoff_seconds=config.SYNC_BACKOFF_SECONDS,
            timeout_seconds=config.GATEWAY_TIMEOUT_SECONDS,
        )
        result = await use_case.execute(charge_id)
        if result.is_err():
            logger.error(f"Background sync of charge {charge_id} failed: {result.error.code}")


@router.post(
    "/{charge_id}/sync",
    status_code=status.HTTP_202_ACCEPTED,
    responses={
        200: {"description": "Synchronized (wait=true)", "model": SyncChargeResultDTO},
        404: {"description": "Charge not found", "content": ERROR_EXAMPLE},
        502: {"description": "Gateway rejected the request (wait=true)"},
        503: {"description": "Gateway unavailable (wait=true)"},
    },
)
async def sync_charge(
    charge_id: int,
    http_request: Request,
    background_tasks: BackgroundTasks,
    response: Response,
    wait: bool = Query(default=False, description="Sync now with a single attempt"),
    uow: UnitOfWork = Depends(get_unit_of_work),
    charge_repo: ChargeRepository = Depends(get_charge_repository),
    publisher: EventPublisher = Depends(get_event_publisher),
    gateway_client: PaymentGatewayClient = Depends(get_gateway_client),
    session_factory=Depends(get_session_factory),
):
    """
    Synchronize a charge's status with its payment gateway.

    By default the sync is queued (202) and retried in the background with
    backoff. With `wait=true` a single attempt runs inline and its outcome is
    returned.
    """
    config = http_request.app.state.config

    if wait:
        use_case = SyncChargeWithGateway(
            uow,
            charge_repo,
            gateway_client,
            ReconcileCharge(uow, charge_repo, publisher),
            max_attempts=1,
            timeout_seconds=config.GATEWAY_TIMEOUT_SECONDS,
        )
        response.status_code = status.HTTP_200_OK
        return _unwrap(await use_case.execute(charge_id)).model_dump(mode="json")

    _unwrap(await GetCharge(charge_repo).execute(charge_id))
    background_tasks.add_task(
        _sync_in_background, session_factory, publisher, gateway_client, config, charge_id
    )
    return {
        "message": "Charge status sync queued",
        "charge_id": charge_id,
        "status": "queued",
    }
