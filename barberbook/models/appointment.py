"""Appointment and notification data models."""

import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    false,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from barberbook.models.base import Base, utcnow


class AppointmentStatus(str, Enum):
    """Appointment lifecycle status."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    RESCHEDULED = "RESCHEDULED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


class NotificationType(str, Enum):
    """What happened to the appointment a notification refers to."""

    APPOINTMENT_BOOKED = "APPOINTMENT_BOOKED"
    APPOINTMENT_CONFIRMED = "APPOINTMENT_CONFIRMED"
    APPOINTMENT_RESCHEDULED = "APPOINTMENT_RESCHEDULED"
    APPOINTMENT_CANCELLED = "APPOINTMENT_CANCELLED"
    APPOINTMENT_COMPLETED = "APPOINTMENT_COMPLETED"


_STATUS_VALUES = ", ".join(f"'{s.value}'" for s in AppointmentStatus)
_NOTIFICATION_VALUES = ", ".join(f"'{t.value}'" for t in NotificationType)


# ========== SQLAlchemy ORM Models ==========


class AppointmentDB(Base):
    """SQLAlchemy model for appointments table.

    start_time and end_time are always stored in UTC.
    """

    __tablename__ = "appointments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    shop_id = Column(UUID(as_uuid=True), ForeignKey("shops.id"), nullable=False)
    service_id = Column(UUID(as_uuid=True), ForeignKey("services.id"), nullable=False)
    customer_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)
    status = Column(
        String(20),
        nullable=False,
        default=AppointmentStatus.PENDING.value,
        server_default=AppointmentStatus.PENDING.value,
    )
    notes = Column(Text, nullable=True)
    cancellation_reason = Column(Text, nullable=True)
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
        CheckConstraint(f"status IN ({_STATUS_VALUES})", name="appointments_status_check"),
        CheckConstraint("start_time < end_time", name="appointments_interval_check"),
        Index("idx_shop_appointments", "shop_id", "start_time"),
    )


class NotificationDB(Base):
    """SQLAlchemy model for notifications table."""

    __tablename__ = "notifications"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    appointment_id = Column(UUID(as_uuid=True), ForeignKey("appointments.id"), nullable=True)
    type = Column(String(40), nullable=False)
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False, server_default=false())
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint(f"type IN ({_NOTIFICATION_VALUES})", name="notifications_type_check"),
        Index("idx_user_notifications", "user_id", "is_read", "created_at"),
    )


# ========== Pydantic Models ==========


class AppointmentCreate(BaseModel):
    """Request schema for booking an appointment."""

    service_id: uuid.UUID
    start_time: datetime = Field(..., description="ISO 8601 start time; naive values are read as UTC")
    notes: str | None = Field(None, max_length=500)


class RescheduleRequest(BaseModel):
    """Request schema for moving an appointment."""

    start_time: datetime


class CancelRequest(BaseModel):
    """Request schema for cancelling an appointment."""

    reason: str | None = Field(None, max_length=500)


class Appointment(BaseModel):
    """Appointment response."""

    id: uuid.UUID
    shop_id: uuid.UUID
    service_id: uuid.UUID
    customer_id: uuid.UUID
    start_time: datetime
    end_time: datetime
    status: AppointmentStatus
    notes: str | None = None
    cancellation_reason: str | None = None
    created_at: datetime

    class Config:
        """Pydantic configuration."""

        from_attributes = True
        use_enum_values = True


class Notification(BaseModel):
    """Notification response."""

    id: uuid.UUID
    appointment_id: uuid.UUID | None = None
    type: NotificationType
    message: str
    is_read: bool
    created_at: datetime

    class Config:
        """Pydantic configuration."""

        from_attributes = True
        use_enum_values = True
