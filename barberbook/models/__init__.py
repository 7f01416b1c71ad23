"""Data models for the barberbook booking service."""

# Import SQLAlchemy ORM models to register them with Base.metadata
# This ensures all tables are known when create_tables() is called
from barberbook.models.appointment import (  # noqa: F401
    Appointment,
    AppointmentCreate,
    AppointmentDB,
    AppointmentStatus,
    Notification,
    NotificationDB,
    NotificationType,
)
from barberbook.models.shop import (  # noqa: F401
    ScheduleDB,
    ScheduleEntry,
    Service,
    ServiceDB,
    Shop,
    ShopDB,
)
from barberbook.models.user import User, UserDB, UserRole  # noqa: F401

__all__ = [
    # User models
    "User",
    "UserRole",
    # Shop models
    "Shop",
    "Service",
    "ScheduleEntry",
    # Appointment models
    "Appointment",
    "AppointmentCreate",
    "AppointmentStatus",
    "Notification",
    "NotificationType",
]
