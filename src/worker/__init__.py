"""Background workers for charge billing service"""
from .charge_sync import GatewaySyncWorker
from .charge_expiry import ChargeExpiryWorker

__all__ = ["GatewaySyncWorker", "ChargeExpiryWorker"]
