from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Set

from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from auralog.models.quote import StaticQuote
from auralog.models.user import UserNotificationRecord
from auralog.notifications.dispatcher import DispatchOutcome
from auralog.scheduler.time_matcher import to_naive_utc


@dataclass
class CommitSummary:
    users_updated: int = 0
    tokens_cleared: int = 0
    quote_ids: Set[int] = field(default_factory=set)


class StateCommitter:
    """Persists one tick's dispatch results in a single transaction.

    Every attempted user gets ``last_sent_at = now``, including users whose
    send failed transiently, so they are not retried until their next local
    day. Users with a dead token also lose ``push_token``. The consumed
    static quote's rotation cursor moves once.
    """

    # TODO: decide whether a transient push failure should still stamp
    # last_sent_at; today it suppresses any retry until the next local day.

    def __init__(self, session: Session):
        self.session = session

    def commit(self, outcomes: List[DispatchOutcome], now: datetime) -> CommitSummary:
        summary = CommitSummary()
        if not outcomes:
            return summary

        stamp = to_naive_utc(now)
        user_ids = {o.user_id for o in outcomes}
        invalid_ids = {o.user_id for o in outcomes if o.token_invalid}
        quote_ids = {o.static_quote_id for o in outcomes if o.static_quote_id is not None}

        try:
            users = self.session.scalars(
                select(UserNotificationRecord).where(
                    UserNotificationRecord.id.in_(sorted(user_ids))
                )
            ).all()
            for user in users:
                user.last_sent_at = stamp
                if user.id in invalid_ids:
                    user.push_token = None
                    summary.tokens_cleared += 1
            summary.users_updated = len(users)

            # Once per quote, however many users received it
            if quote_ids:
                self.session.execute(
                    update(StaticQuote)
                    .where(StaticQuote.id.in_(sorted(quote_ids)))
                    .values(last_sent_date=stamp)
                )
            summary.quote_ids = quote_ids

            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Failed to commit reminder state for {len(user_ids)} users: {e}")
            raise

        logger.info(
            f"Committed reminder state: {summary.users_updated} users, "
            f"{summary.tokens_cleared} tokens cleared, quotes {sorted(quote_ids)}"
        )
        return summary
