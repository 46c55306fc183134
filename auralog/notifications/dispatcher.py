from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional

from loguru import logger

from auralog.models.user import UserNotificationRecord
from auralog.notifications.fcm import FcmSender, PushDeliveryError
from auralog.notifications.formatter import PushMessage, compose_message
from auralog.quotes.source import QuoteSource


@dataclass(frozen=True)
class Recipient:
    """Detached copy of the user fields a dispatch worker needs."""

    user_id: int
    push_token: str
    is_premium: bool = False

    @classmethod
    def from_user(cls, user: UserNotificationRecord) -> "Recipient":
        return cls(
            user_id=user.id,
            push_token=user.push_token,
            is_premium=bool(user.is_premium),
        )


@dataclass
class DispatchOutcome:
    user_id: int
    success: bool
    token_invalid: bool = False
    static_quote_id: Optional[int] = None
    error_code: Optional[str] = None


class Dispatcher:
    """Sends one push per recipient and classifies each result."""

    def __init__(self, sender: FcmSender, max_workers: int = 8):
        self.sender = sender
        self.max_workers = max(1, max_workers)

    def send(
        self,
        recipient: Recipient,
        message: PushMessage,
        static_quote_id: Optional[int] = None,
    ) -> DispatchOutcome:
        try:
            self.sender.send(
                recipient.push_token,
                message.title,
                message.body,
                data={"type": "daily_reminder"},
            )
        except PushDeliveryError as e:
            if e.is_token_invalid:
                logger.info(f"Push token for user {recipient.user_id} is invalid ({e.code}), clearing")
            else:
                logger.error(f"Push to user {recipient.user_id} failed: {e.code}")
            return DispatchOutcome(
                user_id=recipient.user_id,
                success=False,
                token_invalid=e.is_token_invalid,
                static_quote_id=static_quote_id,
                error_code=e.code,
            )
        except Exception as e:
            logger.error(f"Push to user {recipient.user_id} failed unexpectedly: {e}")
            return DispatchOutcome(
                user_id=recipient.user_id,
                success=False,
                static_quote_id=static_quote_id,
                error_code="unexpected",
            )

        return DispatchOutcome(
            user_id=recipient.user_id, success=True, static_quote_id=static_quote_id
        )

    def deliver(
        self,
        recipient: Recipient,
        quote_source: QuoteSource,
        test_mode: bool = False,
    ) -> DispatchOutcome:
        """Build and send the reminder for a single recipient."""
        quote = quote_source.get_quote_for_user(recipient)
        message = compose_message(quote, test_mode=test_mode)
        return self.send(recipient, message, static_quote_id=quote.static_quote_id)

    def deliver_all(
        self,
        recipients: List[Recipient],
        quote_source: QuoteSource,
        test_mode: bool = False,
    ) -> List[DispatchOutcome]:
        """Deliver to every recipient concurrently and wait for all of them.

        One outcome is returned per recipient, in input order. A failure for
        one recipient never stops delivery to the others.
        """
        if not recipients:
            return []

        outcomes: List[DispatchOutcome] = []
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = [
                pool.submit(self.deliver, recipient, quote_source, test_mode)
                for recipient in recipients
            ]
            for recipient, future in zip(recipients, futures):
                try:
                    outcomes.append(future.result())
                except Exception as e:
                    logger.error(f"Dispatch worker for user {recipient.user_id} crashed: {e}")
                    outcomes.append(
                        DispatchOutcome(
                            user_id=recipient.user_id, success=False, error_code="unexpected"
                        )
                    )
        return outcomes
