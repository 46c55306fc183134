from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from auralog.db.database import Base
from auralog.models.base import TimestampMixin

DEFAULT_TIMEZONE = "UTC"
DEFAULT_PREFERRED_TIME = "09:00"


class UserNotificationRecord(Base, TimestampMixin):
    """Per-user reminder preferences and dedupe state.

    Profile and settings screens own every column except ``last_sent_at``
    and the clearing of ``push_token``, which only the reminder job writes.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    push_token: Mapped[Optional[str]] = mapped_column(String(512))
    timezone: Mapped[str] = mapped_column(String(64), default=DEFAULT_TIMEZONE)
    preferred_time: Mapped[str] = mapped_column(String(5), default=DEFAULT_PREFERRED_TIME)
    notifications_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    is_premium: Mapped[bool] = mapped_column(Boolean, default=False)
    # Stored as naive UTC
    last_sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    def __repr__(self) -> str:
        return f"<UserNotificationRecord {self.id} {self.preferred_time} {self.timezone}>"
