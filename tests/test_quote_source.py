from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from auralog.db.database import Base
from auralog.models import StaticQuote
from auralog.notifications.dispatcher import Recipient
from auralog.quotes.source import QuoteSource, format_static_quote, pick_static_quote


@pytest.fixture
def db_session():
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    Base.metadata.drop_all(engine)


def _make_quote(id=1, text="Progress, not perfection.", author=None):
    quote = MagicMock()
    quote.id = id
    quote.text = text
    quote.author = author
    return quote


FREE_USER = Recipient(user_id=1, push_token="token-free", is_premium=False)
PREMIUM_USER = Recipient(user_id=2, push_token="token-premium", is_premium=True)


class TestFormatStaticQuote:
    def test_with_author(self):
        quote = _make_quote(text="What we think, we become.", author="Buddha")
        assert format_static_quote(quote) == "What we think, we become. — Buddha"

    def test_without_author(self):
        quote = _make_quote(text="Be gentle with yourself.")
        assert format_static_quote(quote) == "Be gentle with yourself."


class TestPickStaticQuote:
    def test_empty_pool(self, db_session):
        assert pick_static_quote(db_session) is None

    def test_never_sent_first(self, db_session):
        sent = StaticQuote(text="Sent before", last_sent_date=datetime(2026, 1, 1))
        fresh = StaticQuote(text="Never sent")
        db_session.add_all([sent, fresh])
        db_session.commit()

        assert pick_static_quote(db_session).text == "Never sent"

    def test_oldest_first(self, db_session):
        db_session.add_all(
            [
                StaticQuote(text="Newer", last_sent_date=datetime(2026, 2, 1)),
                StaticQuote(text="Oldest", last_sent_date=datetime(2026, 1, 1)),
                StaticQuote(text="Middle", last_sent_date=datetime(2026, 1, 15)),
            ]
        )
        db_session.commit()

        assert pick_static_quote(db_session).text == "Oldest"

    def test_rotation_covers_pool_once(self, db_session):
        db_session.add_all([StaticQuote(text=f"Quote {i}") for i in range(5)])
        db_session.commit()

        now = datetime(2026, 3, 10, 9, 0)
        used = []
        for tick in range(5):
            head = pick_static_quote(db_session)
            used.append(head.id)
            head.last_sent_date = now + timedelta(minutes=15 * tick)
            db_session.commit()

        assert sorted(used) == [1, 2, 3, 4, 5]
        # The cycle then restarts from the least recently used quote
        assert pick_static_quote(db_session).id == used[0]


class TestQuoteSource:
    def test_free_user_gets_static_quote(self):
        source = QuoteSource(_make_quote(id=7, text="Progress, not perfection.", author="Unknown"))
        result = source.get_quote_for_user(FREE_USER)

        assert result.text == "Progress, not perfection. — Unknown"
        assert result.static_quote_id == 7

    def test_free_user_never_calls_generator(self):
        generator = MagicMock()
        source = QuoteSource(_make_quote(), generator=generator)
        source.get_quote_for_user(FREE_USER)

        generator.generate.assert_not_called()

    def test_premium_user_gets_ai_quote(self):
        generator = MagicMock()
        generator.generate.return_value = "Keep going."
        source = QuoteSource(_make_quote(id=7), generator=generator)

        result = source.get_quote_for_user(PREMIUM_USER)

        assert result.text == "Keep going."
        assert result.static_quote_id is None

    def test_premium_falls_back_on_empty_ai_result(self):
        generator = MagicMock()
        generator.generate.return_value = ""
        source = QuoteSource(_make_quote(id=7, text="Breathe."), generator=generator)

        result = source.get_quote_for_user(PREMIUM_USER)

        assert result.text == "Breathe."
        assert result.static_quote_id == 7

    def test_premium_falls_back_when_generator_raises(self):
        generator = MagicMock()
        generator.generate.side_effect = RuntimeError("boom")
        source = QuoteSource(_make_quote(id=7, text="Breathe."), generator=generator)

        result = source.get_quote_for_user(PREMIUM_USER)

        assert result.text == "Breathe."
        assert result.static_quote_id == 7

    def test_premium_without_generator_uses_static(self):
        source = QuoteSource(_make_quote(id=3, text="Breathe."))
        result = source.get_quote_for_user(PREMIUM_USER)

        assert result.static_quote_id == 3

    def test_empty_pool_and_failed_ai_gives_no_quote(self):
        generator = MagicMock()
        generator.generate.return_value = ""
        source = QuoteSource(None, generator=generator)

        result = source.get_quote_for_user(PREMIUM_USER)

        assert result.text is None
        assert result.static_quote_id is None

    def test_empty_pool_free_user(self):
        result = QuoteSource(None).get_quote_for_user(FREE_USER)
        assert result.text is None
        assert result.static_quote_id is None
