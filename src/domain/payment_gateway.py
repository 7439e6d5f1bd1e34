"""Payment Gateway Domain Entity

Registry of external payment gateways a charge can be routed through.
"""

from datetime import datetime
from typing import Optional
from sqlmodel import Field, Column
from sqlalchemy import Boolean, DateTime, String
from src.domain.base import BaseModel, IdType, utcnow


class PaymentGateway(BaseModel, table=True):
    __tablename__ = "payment_gateways"

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
        description="Unique gateway identifier (auto-increment)"
    )

    name: str = Field(
        sa_column=Column(String(100), nullable=False),
        description="Display name"
    )

    slug: str = Field(
        sa_column=Column(String(50), nullable=False, unique=True),
        description="Stable gateway key (e.g. 'pagarme')"
    )

    is_active: bool = Field(
        default=True,
        sa_column=Column(Boolean, nullable=False, default=True),
        description="Whether new charges may use this gateway"
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime, nullable=False),
    )

    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime, nullable=False),
    )
