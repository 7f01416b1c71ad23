"""User account data models."""

import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, EmailStr, Field, field_validator
from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, String, false
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from barberbook.models.base import Base, utcnow


class UserRole(str, Enum):
    """Account role."""

    CUSTOMER = "CUSTOMER"
    BARBER = "BARBER"
    ADMIN = "ADMIN"


# ========== SQLAlchemy ORM Models ==========


class UserDB(Base):
    """SQLAlchemy model for users table."""

    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    phone = Column(String(30), nullable=True)
    role = Column(
        String(20),
        nullable=False,
        default=UserRole.CUSTOMER.value,
        server_default=UserRole.CUSTOMER.value,
    )
    email_verified = Column(Boolean, nullable=False, default=False, server_default=false())
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )

    __table_args__ = (
        CheckConstraint(
            f"role IN ('{UserRole.CUSTOMER.value}', '{UserRole.BARBER.value}', '{UserRole.ADMIN.value}')",
            name="users_role_check",
        ),
    )


# ========== Pydantic Models ==========


class RegisterRequest(BaseModel):
    """Self-service registration payload. ADMIN accounts cannot be self-registered."""

    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    first_name: str = Field(..., min_length=2, max_length=50)
    last_name: str = Field(..., min_length=2, max_length=50)
    phone: str | None = Field(None, max_length=30)
    role: UserRole = Field(UserRole.CUSTOMER, description="CUSTOMER or BARBER")

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: UserRole) -> UserRole:
        """Reject self-registration as ADMIN."""
        if v == UserRole.ADMIN:
            raise ValueError("role must be CUSTOMER or BARBER")
        return v


class LoginRequest(BaseModel):
    """Login payload."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class User(BaseModel):
    """Public view of a user account (never carries the password hash)."""

    id: uuid.UUID
    email: str
    first_name: str
    last_name: str
    phone: str | None = None
    role: UserRole
    email_verified: bool = False
    created_at: datetime
    updated_at: datetime

    class Config:
        """Pydantic configuration."""

        from_attributes = True
        use_enum_values = True
