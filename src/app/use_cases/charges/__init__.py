from .create_charge import CreateCharge
from .update_charge import UpdateCharge
from .cancel_charge import CancelCharge
from .mark_charge_paid import MarkChargePaid
from .refund_charge import RefundCharge
from .reconcile_charge import ReconcileCharge
from .get_charge import GetCharge
from .list_charges import ListCharges
from .delete_charge import DeleteCharge
from .expire_overdue_charges import ExpireOverdueCharges
from .sync_charge_with_gateway import SyncChargeWithGateway
from .dtos import (
    CreateChargeCommandDTO,
    UpdateChargeCommandDTO,
    CancelChargeCommandDTO,
    MarkChargePaidCommandDTO,
    RefundChargeCommandDTO,
    ReconcileChargeCommandDTO,
    ListChargesQueryDTO,
    ChargeResponseDTO,
    ChargeListResponseDTO,
    ExpireOverdueResultDTO,
    SyncChargeResultDTO,
    SyncOutcome,
    GatewaySyncSummaryDTO,
)

__all__ = [
    "CreateCharge",
    "UpdateCharge",
    "CancelCharge",
    "MarkChargePaid",
    "RefundCharge",
    "ReconcileCharge",
    "GetCharge",
    "ListCharges",
    "DeleteCharge",
    "ExpireOverdueCharges",
    "SyncChargeWithGateway",
    "CreateChargeCommandDTO",
    "UpdateChargeCommandDTO",
    "CancelChargeCommandDTO",
    "MarkChargePaidCommandDTO",
    "RefundChargeCommandDTO",
    "ReconcileChargeCommandDTO",
    "ListChargesQueryDTO",
    "ChargeResponseDTO",
    "ChargeListResponseDTO",
    "ExpireOverdueResultDTO",
    "SyncChargeResultDTO",
    "SyncOutcome",
    "GatewaySyncSummaryDTO",
]
