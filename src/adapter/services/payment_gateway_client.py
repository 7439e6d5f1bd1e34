"""HTTP Payment Gateway Client

Fetches charge status from a REST payment gateway and maps the gateway's
status vocabulary onto ChargeStatus.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional
import httpx
from src.app.services.payment_gateway_client import (
    PaymentGatewayClient,
    RemoteChargeStatus,
    GatewayTransientError,
    GatewayDefinitiveError,
)
from src.domain.base import to_naive_utc
from src.domain.charge import ChargeStatus

logger = logging.getLogger(__name__)

# Gateway status token -> local status
REMOTE_STATUS_MAP: Dict[str, ChargeStatus] = {
    "pending": ChargeStatus.PENDING,
    "processing": ChargeStatus.PENDING,
    "awaiting_payment": ChargeStatus.PENDING,
    "paid": ChargeStatus.PAID,
    "succeeded": ChargeStatus.PAID,
    "confirmed": ChargeStatus.PAID,
    "received": ChargeStatus.PAID,
    "cancelled": ChargeStatus.CANCELLED,
    "canceled": ChargeStatus.CANCELLED,
    "refunded": ChargeStatus.REFUNDED,
    "expired": ChargeStatus.EXPIRED,
    "overdue": ChargeStatus.EXPIRED,
    "failed": ChargeStatus.FAILED,
    "declined": ChargeStatus.FAILED,
    "refused": ChargeStatus.FAILED,
}

RETRYABLE_STATUS_CODES = {408, 425, 429}


def map_remote_status(raw_status: str) -> ChargeStatus:
    try:
        return REMOTE_STATUS_MAP[raw_status.strip().lower()]
    except (KeyError, AttributeError):
        raise GatewayDefinitiveError(f"Unknown gateway status: {raw_status!r}")


def _parse_paid_at(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if not isinstance(value, str):
        logger.warning(f"Ignoring non-string gateway paid_at: {value!r}")
        return None
    try:
        return to_naive_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except ValueError:
        logger.warning(f"Ignoring unparseable gateway paid_at: {value!r}")
        return None


class HttpPaymentGatewayClient(PaymentGatewayClient):
    """
    Payment gateway client over HTTP

    GET {base_url}/charges/{gateway_charge_id} -> {"status": "...", "paid_at": "..."}

    Error mapping:
    - Timeouts, connection errors, 5xx, 408/425/429 -> GatewayTransientError
    - Other 4xx, malformed bodies, unknown statuses -> GatewayDefinitiveError
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize gateway client

        Args:
            base_url: Gateway API root
            api_key: Bearer token sent with every request
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def fetch_remote_status(self, gateway_charge_id: str) -> RemoteChargeStatus:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self._headers(),
                transport=self.transport,
            ) as client:
                response = await client.get(f"/charges/{gateway_charge_id}")
        except httpx.TimeoutException as e:
            raise GatewayTransientError(f"Gateway timed out: {e}") from e
        except httpx.TransportError as e:
            raise GatewayTransientError(f"Gateway unreachable: {e}") from e

        if response.status_code >= 500 or response.status_code in RETRYABLE_STATUS_CODES:
            raise GatewayTransientError(
                f"Gateway returned {response.status_code} for {gateway_charge_id}"
            )
        if response.status_code >= 400:
            raise GatewayDefinitiveError(
                f"Gateway returned {response.status_code} for {gateway_charge_id}"
            )

        try:
            body = response.json()
            raw_status = body["status"]
        except (ValueError, KeyError, TypeError) as e:
            raise GatewayDefinitiveError(f"Malformed gateway response: {e}") from e

        return RemoteChargeStatus(
            status=map_remote_status(raw_status),
            raw_status=str(raw_status),
            paid_at=_parse_paid_at(body.get("paid_at")),
        )


class UnconfiguredPaymentGatewayClient(PaymentGatewayClient):
    """Stand-in used when GATEWAY_BASE_URL is empty; every fetch is transient"""

    async def fetch_remote_status(self, gateway_charge_id: str) -> RemoteChargeStatus:
        raise GatewayTransientError("Payment gateway is not configured")


def create_payment_gateway_client(
    base_url: Optional[str],
    api_key: Optional[str] = None,
    timeout: float = 10.0,
) -> PaymentGatewayClient:
    """
    Factory function to create the configured gateway client

    Returns:
        HttpPaymentGatewayClient, or UnconfiguredPaymentGatewayClient when no
        base URL is set
    """
    if not base_url:
        return UnconfiguredPaymentGatewayClient()
    return HttpPaymentGatewayClient(base_url, api_key=api_key, timeout=timeout)
