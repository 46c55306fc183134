from auralog.models.quote import StaticQuote
from auralog.models.user import UserNotificationRecord

__all__ = [
    "StaticQuote",
    "UserNotificationRecord",
]
