"""Customer Domain Entity

Charges are issued against customers. The charge lifecycle only needs to know
whether a customer exists and may be charged; everything else about customers
is owned by the customer directory.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import DateTime, Enum as SAEnum, String
from src.domain.base import BaseModel, IdType, utcnow


class CustomerStatus(str, Enum):
    """Customer status types"""
    ACTIVE = "active"
    INACTIVE = "inactive"
    BLOCKED = "blocked"


class Customer(BaseModel, table=True):
    """
    Customer - Party that charges are billed to

    Domain Rules:
    - email and document are unique
    - Blocked customers cannot receive new charges
    - Soft-deleted customers (deleted_at set) are treated as missing
    """

    __tablename__ = "customers"
    __table_args__ = (
        Index('ix_customers_status', 'status'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
        description="Unique customer identifier (auto-increment)"
    )

    name: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Customer full name"
    )

    email: str = Field(
        sa_column=Column(String(255), nullable=False, unique=True),
        description="Customer email (unique)"
    )

    document: str = Field(
        sa_column=Column(String(20), nullable=False, unique=True),
        description="Tax document number (unique)"
    )

    phone: Optional[str] = Field(
        default=None,
        sa_column=Column(String(20), nullable=True),
        description="Contact phone"
    )

    status: CustomerStatus = Field(
        default=CustomerStatus.ACTIVE,
        sa_column=Column(
            SAEnum(
                CustomerStatus,
                name="customer_status",
                native_enum=False,
                length=20,
                values_callable=lambda enum: [member.value for member in enum],
            ),
            nullable=False,
        ),
        description="Customer status (active, inactive, blocked)"
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime, nullable=False),
        description="Customer creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime, nullable=False),
        description="Last update timestamp"
    )

    deleted_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime, nullable=True),
        description="Soft deletion timestamp"
    )
