"""GetCharge Use Case

Point lookups by charge ID or gateway reference.
"""

from libs.result import Result, Return, Error
from src.app.repositories.charge_repository import ChargeRepository
from .dtos import ChargeResponseDTO
from . import errors


class GetCharge:
    """
    Use Case: Retrieve a single charge

    Read-only; soft-deleted charges are reported as not found.
    """

    def __init__(self, charge_repo: ChargeRepository):
        self.charge_repo = charge_repo

    async def execute(self, charge_id: int) -> Result[ChargeResponseDTO]:
        try:
            charge = await self.charge_repo.get_by_id(charge_id)
            if not charge:
                return Return.err(errors.charge_not_found(charge_id))
            return Return.ok(ChargeResponseDTO.from_charge(charge))
        except Exception as e:
            return Return.err(
                errors.unexpected("GET_CHARGE_FAILED", "Failed to retrieve charge", e)
            )

    async def by_gateway_charge_id(self, gateway_charge_id: str) -> Result[ChargeResponseDTO]:
        try:
            charge = await self.charge_repo.get_by_gateway_charge_id(gateway_charge_id)
            if not charge:
                return Return.err(
                    Error(
                        code=errors.CHARGE_NOT_FOUND,
                        message=f"No charge linked to gateway charge {gateway_charge_id}",
                        reason="Charge does not exist or was deleted",
                    )
                )
            return Return.ok(ChargeResponseDTO.from_charge(charge))
        except Exception as e:
            return Return.err(
                errors.unexpected("GET_CHARGE_FAILED", "Failed to retrieve charge", e)
            )
