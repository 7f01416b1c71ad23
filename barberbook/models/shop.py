"""Shop, service and weekly schedule data models."""

import uuid
from datetime import datetime, timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator, model_validator
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    true,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from barberbook.models.base import Base, utcnow

SLUG_PATTERN = r"^[a-z0-9-]+$"
TIME_PATTERN = r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$"


def check_timezone(value: str) -> str:
    """Ensure ``value`` is a known IANA timezone name."""
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone: {value}") from e
    return value


def reject_explicit_null(value):
    """Refuse null for a column that cannot be cleared."""
    if value is None:
        raise ValueError("field cannot be null")
    return value


def normalize_hhmm(value: str) -> str:
    """Zero-pad an ``H:MM`` / ``HH:MM`` string to ``HH:MM``."""
    hours, minutes = value.split(":")
    return f"{int(hours):02d}:{int(minutes):02d}"


# ========== SQLAlchemy ORM Models ==========


class ShopDB(Base):
    """SQLAlchemy model for shops table."""

    __tablename__ = "shops"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    slug = Column(String(50), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    address = Column(String(200), nullable=True)
    phone = Column(String(30), nullable=True)
    timezone = Column(String(64), nullable=False, default="UTC", server_default="UTC")
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())
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


class ServiceDB(Base):
    """SQLAlchemy model for services table."""

    __tablename__ = "services"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    shop_id = Column(UUID(as_uuid=True), ForeignKey("shops.id"), nullable=False)
    name = Column(String(100), nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint(
            "duration_minutes BETWEEN 15 AND 480", name="services_duration_check"
        ),
        CheckConstraint("price > 0", name="services_price_check"),
        Index("idx_shop_services", "shop_id", "is_active"),
    )

    @property
    def duration(self) -> timedelta:
        return timedelta(minutes=self.duration_minutes)


class ScheduleDB(Base):
    """SQLAlchemy model for schedules table (weekly opening windows)."""

    __tablename__ = "schedules"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    shop_id = Column(UUID(as_uuid=True), ForeignKey("shops.id"), nullable=False)
    day_of_week = Column(Integer, nullable=False)  # 0 = Sunday
    open_time = Column(String(5), nullable=False)
    close_time = Column(String(5), nullable=False)

    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="schedules_day_check"),
        CheckConstraint("open_time < close_time", name="schedules_window_check"),
        UniqueConstraint("shop_id", "day_of_week", "open_time", name="uq_schedule_window"),
        Index("idx_shop_schedules", "shop_id", "day_of_week"),
    )


# ========== Pydantic Models ==========


class ShopCreate(BaseModel):
    """Request schema for creating a shop."""

    name: str = Field(..., min_length=2, max_length=100)
    slug: str = Field(..., min_length=2, max_length=50, pattern=SLUG_PATTERN)
    description: str | None = Field(None, max_length=500)
    address: str | None = Field(None, max_length=200)
    phone: str | None = Field(None, max_length=30)
    timezone: str = Field("UTC", description="IANA timezone of the shop's opening hours")

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        return check_timezone(v)


class ShopUpdate(BaseModel):
    """Partial update for a shop. Slug is immutable."""

    name: str | None = Field(None, min_length=2, max_length=100)
    description: str | None = Field(None, max_length=500)
    address: str | None = Field(None, max_length=200)
    phone: str | None = Field(None, max_length=30)
    timezone: str | None = None

    # Omitted fields keep their default without validation, so only an explicit null reaches these
    @field_validator("name")
    @classmethod
    def reject_null(cls, v: str | None) -> str:
        return reject_explicit_null(v)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str | None) -> str:
        return check_timezone(reject_explicit_null(v))


class Shop(BaseModel):
    """Shop response."""

    id: uuid.UUID
    owner_id: uuid.UUID
    name: str
    slug: str
    description: str | None = None
    address: str | None = None
    phone: str | None = None
    timezone: str
    is_active: bool
    created_at: datetime

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class ServiceCreate(BaseModel):
    """Request schema for creating a service offered by a shop."""

    name: str = Field(..., min_length=2, max_length=100)
    duration_minutes: int = Field(..., ge=15, le=480)
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    description: str | None = Field(None, max_length=500)


class ServiceUpdate(BaseModel):
    """Partial update for a service."""

    name: str | None = Field(None, min_length=2, max_length=100)
    duration_minutes: int | None = Field(None, ge=15, le=480)
    price: Decimal | None = Field(None, gt=0, max_digits=10, decimal_places=2)
    description: str | None = Field(None, max_length=500)

    @field_validator("name", "duration_minutes", "price")
    @classmethod
    def reject_null(cls, v):
        return reject_explicit_null(v)


class Service(BaseModel):
    """Service response."""

    id: uuid.UUID
    shop_id: uuid.UUID
    name: str
    duration_minutes: int
    price: Decimal
    description: str | None = None
    is_active: bool

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class ScheduleEntry(BaseModel):
    """One opening window of a shop's weekly schedule."""

    day_of_week: int = Field(..., ge=0, le=6, description="0 = Sunday ... 6 = Saturday")
    open_time: str = Field(..., pattern=TIME_PATTERN)
    close_time: str = Field(..., pattern=TIME_PATTERN)

    @field_validator("open_time", "close_time")
    @classmethod
    def pad_time(cls, v: str) -> str:
        return normalize_hhmm(v)

    @model_validator(mode="after")
    def check_window(self) -> "ScheduleEntry":
        """Opening time must precede closing time."""
        if self.open_time >= self.close_time:
            raise ValueError("open_time must be before close_time")
        return self

    class Config:
        """Pydantic configuration."""

        from_attributes = True
