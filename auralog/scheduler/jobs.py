from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from loguru import logger
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session

from auralog.config import get_settings
from auralog.models import UserNotificationRecord
from auralog.notifications.committer import StateCommitter
from auralog.notifications.dispatcher import Dispatcher, Recipient
from auralog.notifications.fcm import FcmSender
from auralog.quotes.generator import QuoteGenerator
from auralog.quotes.source import QuoteSource, pick_static_quote
from auralog.scheduler.time_matcher import has_push_token, is_eligible


def get_sync_session() -> Session:
    engine = create_engine(get_settings().sync_database_url)
    return Session(engine)


def run_daily_reminders(now: Optional[datetime] = None, test_mode: bool = False) -> int:
    """One scheduler tick: send the daily reminder to every user due now.

    In test mode every opted-in user with a push token is sent to,
    regardless of their preferred time or last send.

    Returns the number of users attempted. Never raises.
    """
    now = now or datetime.now(timezone.utc)
    logger.info(f"Starting daily reminder tick at {now.isoformat()} (test_mode={test_mode})")

    try:
        attempted = _run_tick(now, test_mode)
    except Exception as e:
        logger.error(f"Daily reminder tick failed: {e}")
        return 0

    logger.info(f"Daily reminder tick completed, {attempted} users attempted")
    return attempted


def _run_tick(now: datetime, test_mode: bool) -> int:
    settings = get_settings()
    if not settings.notification_enabled:
        logger.info("Notifications are disabled, skipping tick")
        return 0
    if not FcmSender.is_configured():
        logger.warning("FCM is not configured, skipping tick")
        return 0

    with get_sync_session() as session:
        users = session.scalars(
            select(UserNotificationRecord).where(
                UserNotificationRecord.notifications_enabled == True  # noqa: E712
            )
        ).all()
        if not users:
            logger.info("No users opted in for reminder notifications")
            return 0

        with_token = [user for user in users if has_push_token(user)]
        if test_mode:
            due = with_token
        else:
            grid = settings.scheduler_interval_minutes
            due = [user for user in users if is_eligible(user, now, grid)]
        if not due:
            logger.info(
                f"{len(users)} opted in, {len(with_token)} with push token, "
                f"0 in the current time window"
            )
            return 0

        logger.info(f"Found {len(due)} users due for a reminder")

        quote_source = QuoteSource(
            pick_static_quote(session),
            generator=QuoteGenerator() if QuoteGenerator.is_configured() else None,
        )
        dispatcher = Dispatcher(FcmSender(), max_workers=settings.dispatch_max_workers)

        recipients = [Recipient.from_user(user) for user in due]
        outcomes = dispatcher.deliver_all(recipients, quote_source, test_mode=test_mode)

        sent = sum(1 for o in outcomes if o.success)
        logger.info(f"Reminder sends: {sent}/{len(outcomes)} succeeded")

        try:
            StateCommitter(session).commit(outcomes, now)
        except Exception as e:
            # Sends already went out; the next tick in the same slot may re-send
            logger.error(f"Error committing reminder state: {e}")

    return len(outcomes)
