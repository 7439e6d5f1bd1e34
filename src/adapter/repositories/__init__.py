from .charge_repository import SqlAlchemyChargeRepository
from .customer_repository import SqlAlchemyCustomerDirectory

__all__ = [
    "SqlAlchemyChargeRepository",
    "SqlAlchemyCustomerDirectory",
]
