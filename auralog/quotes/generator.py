from __future__ import annotations

import random
from typing import Optional

from loguru import logger
from openai import OpenAI, OpenAIError

from auralog.config import get_settings

SYSTEM_PROMPT = """You are a thoughtful writer of short, uplifting lines. Rules:
- Reply with ONE line only. No quotation marks, no preamble.
- Maximum 15 words. Plain text.
- No attribution, no author names, no emoji, no extra punctuation.
- Sound fresh and genuine, avoid overused cliches.
- Favor calm, mindful, gentle motivation. No hustle culture."""

QUOTE_THEMES = [
    "calm and inner peace",
    "mindfulness and being present",
    "self-compassion and kindness to yourself",
    "gratitude and noticing the good",
    "small steps and progress",
    "rest and gentle pace",
    "courage to show up as you are",
    "letting go of perfectionism",
    "resilience without forcing",
    "quiet strength",
    "breathing and grounding",
    "accepting today as it is",
    "hope without toxic positivity",
    "starting fresh without judgment",
]

QUOTE_ANGLES = [
    "for someone starting their day",
    "for someone who needs a gentle nudge",
    "for a moment of pause",
    "for someone feeling overwhelmed",
    "for someone learning to go slow",
    "for someone building a small habit",
    "for someone who needs to hear they're enough",
    "for a mindful check-in",
]

_WRAPPING_QUOTES = "\"'“”‘’"
_ATTRIBUTION_SEPARATOR = " — "


def clean_quote(raw: str) -> str:
    """Reduce a model reply to a bare one-line quote."""
    lines = (raw or "").strip().splitlines()
    if not lines:
        return ""
    text = lines[0].strip()
    head, sep, author = text.rpartition(_ATTRIBUTION_SEPARATOR)
    if sep and head.strip() and author.strip():
        text = head
    return text.strip().strip(_WRAPPING_QUOTES).strip()


class QuoteGenerator:
    """Generate short motivational lines via the OpenAI chat completions API."""

    def __init__(self, client: Optional[OpenAI] = None):
        self.settings = get_settings()
        self.client = client or OpenAI(
            api_key=self.settings.openai_api_key,
            timeout=self.settings.openai_timeout,
            max_retries=0,
        )

    @classmethod
    def is_configured(cls) -> bool:
        """Check if an OpenAI API key is set."""
        return bool(get_settings().openai_api_key)

    def build_user_prompt(self, rng: Optional[random.Random] = None) -> str:
        rng = rng or random
        theme = rng.choice(QUOTE_THEMES)
        angle = rng.choice(QUOTE_ANGLES)
        return f"Write one short, calming motivational line about {theme}, {angle}. Unique phrasing."

    def generate(self) -> str:
        """Return one quote, or "" on any failure.

        Single attempt, no retries: callers fall back to the static pool.
        """
        try:
            response = self.client.chat.completions.create(
                model=self.settings.openai_model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": self.build_user_prompt()},
                ],
                temperature=self.settings.openai_temperature,
                max_tokens=self.settings.openai_max_tokens,
            )
        except OpenAIError as e:
            logger.warning(f"Quote generation failed: {e}")
            return ""

        if not response.choices:
            logger.warning("Quote generation returned no choices")
            return ""
        return clean_quote(response.choices[0].message.content or "")
