"""Payment Gateway Client Interface

Defines the single capability the charge lifecycle needs from a payment
gateway: fetching the current remote status of a gateway charge.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from src.domain.charge import ChargeStatus


@dataclass
class RemoteChargeStatus:
    """Status of a charge as reported by the gateway"""

    status: ChargeStatus
    raw_status: str
    paid_at: Optional[datetime] = None


class GatewayError(Exception):
    pass


class GatewayTransientError(GatewayError):
    """Timeout, network failure or gateway unavailable - safe to retry"""


class GatewayDefinitiveError(GatewayError):
    """Gateway rejected the request permanently - do not retry"""


class PaymentGatewayClient(ABC):

    @abstractmethod
    async def fetch_remote_status(self, gateway_charge_id: str) -> RemoteChargeStatus:
        """
        Fetch the current status of a charge on the gateway

        Args:
            gateway_charge_id: Charge reference on the gateway

        Returns:
            RemoteChargeStatus

        Raises:
            GatewayTransientError: Retryable failure
            GatewayDefinitiveError: Permanent failure
        """
        pass
