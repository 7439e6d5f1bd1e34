"""Error builders shared by the charge use cases"""

from libs.result import Error
from src.app.repositories.charge_repository import StaleChargeError
from src.domain.exceptions import ChargeError, InvalidChargeData

CHARGE_NOT_FOUND = "CHARGE_NOT_FOUND"
CUSTOMER_NOT_FOUND = "CUSTOMER_NOT_FOUND"
CUSTOMER_NOT_ELIGIBLE = "CUSTOMER_NOT_ELIGIBLE"
GATEWAY_CHARGE_ID_TAKEN = "GATEWAY_CHARGE_ID_TAKEN"
CHARGE_CONCURRENT_MODIFICATION = "CHARGE_CONCURRENT_MODIFICATION"
GATEWAY_UNAVAILABLE = "GATEWAY_UNAVAILABLE"
GATEWAY_REJECTED = "GATEWAY_REJECTED"


def charge_not_found(charge_id) -> Error:
    return Error(
        code=CHARGE_NOT_FOUND,
        message=f"Charge {charge_id} not found",
        reason="Charge does not exist or was deleted",
    )


def concurrent_modification(exc: StaleChargeError) -> Error:
    return Error(
        code=CHARGE_CONCURRENT_MODIFICATION,
        message=f"Charge {exc.charge_id} was modified concurrently",
        reason="Reload the charge and retry",
    )


def from_charge_error(exc: ChargeError) -> Error:
    reason = exc.reason if isinstance(exc, InvalidChargeData) else None
    return Error(code=exc.code, message=exc.message, reason=reason)


def unexpected(code: str, message: str, exc: Exception) -> Error:
    return Error(code=code, message=message, reason=str(exc))
