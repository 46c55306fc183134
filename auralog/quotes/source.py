from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from auralog.models.quote import StaticQuote
from auralog.quotes.generator import QuoteGenerator

if TYPE_CHECKING:
    from auralog.notifications.dispatcher import Recipient


@dataclass
class QuoteResult:
    text: Optional[str] = None
    static_quote_id: Optional[int] = None


def pick_static_quote(session: Session) -> Optional[StaticQuote]:
    """Least recently sent quote in the pool; never-sent quotes come first."""
    stmt = (
        select(StaticQuote)
        .order_by(StaticQuote.last_sent_date.asc().nulls_first(), StaticQuote.id.asc())
        .limit(1)
    )
    return session.scalars(stmt).first()


def format_static_quote(quote: StaticQuote) -> str:
    if quote.author:
        return f"{quote.text} — {quote.author}"
    return quote.text


class QuoteSource:
    """Supplies quote text for one tick.

    The static pool head is fetched once per tick and shared by every user in
    it, so free users in the same tick all see the same quote. Premium users
    get an AI line when the generator is configured and answers, otherwise
    they fall back to the shared static quote.
    """

    def __init__(
        self,
        static_pool_head: Optional[StaticQuote],
        generator: Optional[QuoteGenerator] = None,
    ):
        # Copy out of the ORM object; worker threads only read these
        self.static_quote_id = static_pool_head.id if static_pool_head else None
        self.static_text = format_static_quote(static_pool_head) if static_pool_head else None
        self.generator = generator

    def get_quote_for_user(self, user: "Recipient") -> QuoteResult:
        if user.is_premium and self.generator is not None:
            text = self._generate()
            if text:
                return QuoteResult(text=text)
            logger.warning(f"AI quote unavailable for user {user.user_id}, using static pool")

        if self.static_text is None:
            return QuoteResult()
        return QuoteResult(text=self.static_text, static_quote_id=self.static_quote_id)

    def _generate(self) -> str:
        try:
            return self.generator.generate()
        except Exception as e:
            logger.warning(f"Quote generator raised: {e}")
            return ""
