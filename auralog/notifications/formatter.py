from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional

from auralog.quotes.source import QuoteResult

TITLE = "Daily Aura Check-In ✨"
TEST_TITLE = f"Test: {TITLE}"

# Short and long variants, picked per user per tick
REMINDER_MESSAGES = [
    "Take a mindful pause and capture today's mood in your journal.",
    "Time to check in with yourself and log your aura for today.",
    "Your daily moment of reflection awaits. How are you feeling?",
    "Pause, breathe, and let your journal hold what you're carrying today.",
    "Ready to capture today's energy? Your journal is waiting.",
    "A quick check-in can shift your whole day. Take a moment now.",
    "Your inner weather is worth noting. Log your aura today.",
    "Every day is a new chapter. What's yours saying today?",
    "Log your aura. Feel the shift.",
    "Your journal is waiting for you.",
    "One entry. A calmer you.",
    "Capture today's moment. Just one.",
    "Check in. Your mind will thank you.",
    "Today's mood deserves a note.",
    "A quick pause. A clearer head.",
    "Your thoughts matter. Write them.",
    "One minute. One journal entry.",
    "Breathe. Reflect. Log your day.",
]


@dataclass
class PushMessage:
    title: str
    body: str


def pick_reminder(rng: Optional[random.Random] = None) -> str:
    return (rng or random).choice(REMINDER_MESSAGES)


def compose_message(
    quote: QuoteResult,
    test_mode: bool = False,
    rng: Optional[random.Random] = None,
) -> PushMessage:
    """Build the push title and body for one user.

    The body is a random reminder phrase, followed by the quote in double
    quotes on its own paragraph when there is one.
    """
    body = pick_reminder(rng)
    if quote.text:
        body = f'{body}\n\n"{quote.text}"'
    return PushMessage(title=TEST_TITLE if test_mode else TITLE, body=body)
