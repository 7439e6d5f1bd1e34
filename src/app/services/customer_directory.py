"""Customer Directory Interface

The charge lifecycle only asks the customer directory two questions: does the
customer exist, and may it be charged. The eligibility policy lives behind
this interface.
"""

from abc import ABC, abstractmethod
from enum import Enum


class CustomerEligibility(str, Enum):
    ELIGIBLE = "eligible"
    NOT_FOUND = "not_found"
    INELIGIBLE = "ineligible"


class CustomerDirectory(ABC):

    @abstractmethod
    async def check_eligibility(self, customer_id: int) -> CustomerEligibility:
        """
        Check whether a customer exists and may receive new charges

        Args:
            customer_id: Customer ID

        Returns:
            CustomerEligibility
        """
        pass

    async def customer_exists(self, customer_id: int) -> bool:
        return await self.check_eligibility(customer_id) != CustomerEligibility.NOT_FOUND
