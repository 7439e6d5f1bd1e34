"""Charge Repository Interface

Defines the contract for charge persistence operations.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Sequence
from src.domain.charge import Charge, ChargeStatus


class StaleChargeError(Exception):
    """The charge row changed (or vanished) since it was read"""

    def __init__(self, charge_id: int, expected_version: int):
        super().__init__(
            f"Charge {charge_id} is no longer at version {expected_version}"
        )
        self.charge_id = charge_id
        self.expected_version = expected_version


class DuplicateGatewayChargeError(Exception):
    """Another charge already holds this gateway_charge_id"""

    def __init__(self, gateway_charge_id: str):
        super().__init__(f"Gateway charge {gateway_charge_id} is already linked to a charge")
        self.gateway_charge_id = gateway_charge_id


@dataclass
class ChargeFilter:
    """Criteria for listing charges; empty criteria match everything"""

    statuses: Sequence[ChargeStatus] = field(default_factory=list)
    customer_id: Optional[int] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    due_before: Optional[date] = None
    limit: int = 100
    offset: int = 0


class ChargeRepository(ABC):
    """
    Repository interface for Charge persistence

    Soft-deleted charges are invisible to every method. Writes go through
    apply_changes(), a compare-and-swap on the charge version.
    """

    @abstractmethod
    async def get_by_id(self, charge_id: int, for_update: bool = False) -> Optional[Charge]:
        """
        Retrieve charge by ID

        Args:
            charge_id: Charge ID
            for_update: If True, lock the row with SELECT FOR UPDATE

        Returns:
            Charge if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_by_gateway_charge_id(self, gateway_charge_id: str) -> Optional[Charge]:
        """
        Retrieve charge by its gateway reference

        Args:
            gateway_charge_id: Charge reference on the payment gateway

        Returns:
            Charge if found, None otherwise
        """
        pass

    @abstractmethod
    async def create(self, charge: Charge) -> Charge:
        """
        Create a new charge

        Args:
            charge: Charge entity to persist

        Returns:
            Created Charge with generated ID

        Raises:
            DuplicateGatewayChargeError: If gateway_charge_id already exists
        """
        pass

    @abstractmethod
    async def apply_changes(
        self, charge_id: int, expected_version: int, changes: Dict[str, Any]
    ) -> Charge:
        """
        Write field changes if the charge is still at expected_version

        Bumps version and updated_at alongside the changes.

        Args:
            charge_id: Charge ID
            expected_version: Version the changes were planned against
            changes: Charge attribute name -> new value

        Returns:
            Charge reloaded after the write

        Raises:
            StaleChargeError: Version moved on or the charge was deleted
        """
        pass

    @abstractmethod
    async def list(self, criteria: ChargeFilter) -> List[Charge]:
        """
        List charges matching criteria, newest first

        Args:
            criteria: ChargeFilter

        Returns:
            Page of charges
        """
        pass

    @abstractmethod
    async def count(self, criteria: ChargeFilter) -> int:
        """Count charges matching criteria, ignoring limit/offset"""
        pass

    @abstractmethod
    async def list_overdue(self, today: date, limit: int = 500) -> List[Charge]:
        """
        List pending charges whose due date is before today

        Args:
            today: Reference date
            limit: Maximum charges to return

        Returns:
            Overdue pending charges, oldest due date first
        """
        pass

    @abstractmethod
    async def list_pending_with_gateway(self, limit: int = 200) -> List[Charge]:
        """
        List pending charges that carry a gateway_charge_id

        Args:
            limit: Maximum charges to return

        Returns:
            Charges eligible for gateway synchronization
        """
        pass
