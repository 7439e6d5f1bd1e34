from .charge_repository import (
    ChargeRepository,
    ChargeFilter,
    StaleChargeError,
    DuplicateGatewayChargeError,
)

__all__ = [
    "ChargeRepository",
    "ChargeFilter",
    "StaleChargeError",
    "DuplicateGatewayChargeError",
]
