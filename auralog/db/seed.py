from loguru import logger
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from auralog.config import get_settings
from auralog.db.database import Base, ensure_sqlite_directory
from auralog.models import StaticQuote

QUOTES = [
    {"text": "The only impossible journey is the one you never begin.", "author": "Tony Robbins"},
    {"text": "You are never too old to set another goal or to dream a new dream.", "author": "C.S. Lewis"},
    {"text": "Every day may not be good, but there is something good in every day.", "author": "Alice Morse Earle"},
    {"text": "Small steps every day lead to big changes over time.", "author": "Unknown"},
    {"text": "Your mood is valid. Taking a moment to name it is a gift to yourself."},
    {"text": "How you start your day often determines how you live your day.", "author": "Hal Elrod"},
    {"text": "The present moment is the only moment you have.", "author": "Thich Nhat Hanh"},
    {"text": "Be gentle with yourself. You're doing the best you can."},
    {"text": "Progress, not perfection.", "author": "Unknown"},
    {"text": "Today is a good day to check in with how you feel.", "author": "Unknown"},
    {"text": "One small positive thought can change your whole day.", "author": "Zig Ziglar"},
    {"text": "What we think, we become.", "author": "Buddha"},
    {"text": "The best time to plant a tree was 20 years ago. The second best time is now.", "author": "Chinese proverb"},
    {"text": "You don't have to be great to start, but you have to start to be great.", "author": "Zig Ziglar"},
]


def seed_quotes(session: Session) -> int:
    """Add the default quote pool, skipping texts that already exist."""
    added = 0
    for quote_data in QUOTES:
        existing = session.query(StaticQuote).filter_by(text=quote_data["text"]).first()
        if not existing:
            # last_sent_date stays NULL so new quotes rotate in first
            session.add(StaticQuote(**quote_data))
            added += 1
        else:
            logger.debug(f"Quote already exists: {quote_data['text']}")

    session.commit()
    logger.info(f"Seed completed, {added} quotes added")
    return added


def main():
    url = get_settings().sync_database_url
    ensure_sqlite_directory(url)
    engine = create_engine(url)
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        seed_quotes(session)


if __name__ == "__main__":
    main()
