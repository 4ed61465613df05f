"""
Sentiment tagging of chat messages.

Each message is cleaned before scoring:
1. Channel stamps (``:_hololiveKusa:``, ``:face-blue-smiling:``) are removed
2. Emoji and other pictographs are stripped; they carry no signal for the
   scorer and can make it reject the document
3. Text is NFKC-normalized (full-width letters, half-width kana, ...)

A message is flagged negative only when the score is below ``-magnitude``,
i.e. the scorer is confidently negative.

Usage:
    tagger = SentimentTagger(language_client)
    classified = await tagger.classify(messages)
"""

import re
import unicodedata
from collections.abc import Sequence
from typing import Protocol

import structlog

from src.chat.errors import SentimentError
from src.chat.schemas import ChatMessage, ClassifiedMessage

logger = structlog.get_logger(__name__)

_STAMP_PATTERN = re.compile(r":[^:]+:")

# Keycaps (1️⃣, #️⃣) and any base in emoji presentation (❤️, ▶️); the base
# goes with its selector
_EMOJI_SEQUENCE_PATTERN = re.compile(r"[0-9#*]\ufe0f?\u20e3|\S\ufe0f")

# Pictograph ranges only; CJK and kana blocks must survive for Japanese chat
_EMOJI_PATTERN = re.compile(
    "["
    "\U0001F000-\U0001F0FF"  # Mahjong, domino, playing cards
    "\U0001F100-\U0001F1FF"  # Enclosed alphanumerics, regional indicators
    "\U0001F200-\U0001F2FF"  # Enclosed ideographic supplement
    "\U0001F300-\U0001F5FF"  # Symbols & pictographs (incl. skin tones)
    "\U0001F600-\U0001F64F"  # Emoticons
    "\U0001F680-\U0001F6FF"  # Transport & map symbols
    "\U0001F700-\U0001F7FF"  # Alchemical, geometric shapes extended
    "\U0001F800-\U0001F8FF"  # Supplemental arrows-C
    "\U0001F900-\U0001F9FF"  # Supplemental symbols
    "\U0001FA00-\U0001FAFF"  # Chess, symbols extended-A
    "\U000000A9\U000000AE"  # Copyright, registered
    "\U0000203C\U00002049"  # Double exclamation, exclamation question
    "\U00002122\U00002139"  # Trade mark, information source
    "\U00002190-\U000021FF"  # Arrows
    "\U00002300-\U000023FF"  # Misc technical
    "\U000024C2"  # Circled M
    "\U000025A0-\U000025FF"  # Geometric shapes
    "\U00002600-\U000026FF"  # Misc symbols
    "\U00002700-\U000027BF"  # Dingbats
    "\U00002900-\U0000297F"  # Supplemental arrows-B
    "\U00002B00-\U00002BFF"  # Misc symbols and arrows
    "\U00003030\U0000303D"  # Wavy dash, part alternation mark
    "\U00003297\U00003299"  # Circled ideographs congratulation, secret
    "\U0000FE0E-\U0000FE0F"  # Variation selectors
    "\U0000200D"  # Zero width joiner
    "\U000020E3"  # Combining enclosing keycap
    "\U000E0020-\U000E007F"  # Tag characters
    "]+",
    flags=re.UNICODE,
)

_WHITESPACE_PATTERN = re.compile(r"\s+")


class SentimentScorer(Protocol):
    """Anything that scores text as (score, magnitude)."""

    async def analyze_sentiment(self, text: str) -> tuple[float, float]:
        ...


def remove_stamps(text: str) -> str:
    """Remove ``:stamp:`` tokens."""
    return _STAMP_PATTERN.sub(" ", text)


def remove_emojis(text: str) -> str:
    """Remove emoji, emoji sequences and pictographic symbols."""
    text = _EMOJI_SEQUENCE_PATTERN.sub(" ", text)
    return _EMOJI_PATTERN.sub(" ", text)


def preprocess_text(text: str) -> str:
    """Clean a chat message for sentiment scoring."""
    text = remove_stamps(text)
    # Before NFKC, which rewrites ‼ to "!!" and ™ to "TM"
    text = remove_emojis(text)
    text = unicodedata.normalize("NFKC", text)
    return _WHITESPACE_PATTERN.sub(" ", text).strip()


def is_negative(score: float, magnitude: float) -> bool:
    """True when the score is confidently negative."""
    return score < -magnitude


class SentimentTagger:
    """Classifies chat messages as negative / non-negative."""

    def __init__(self, scorer: SentimentScorer) -> None:
        self._scorer = scorer

    async def classify_text(self, text: str) -> bool:
        """
        Return the negative flag for one message text.

        Empty text after cleaning is non-negative and never sent to the
        scorer.
        """
        cleaned = preprocess_text(text)
        if not cleaned:
            return False

        score, magnitude = await self._scorer.analyze_sentiment(cleaned)
        return is_negative(score, magnitude)

    async def classify(
        self, messages: Sequence[ChatMessage]
    ) -> list[ClassifiedMessage]:
        """
        Classify a batch of messages, in order.

        Raises:
            SentimentError: If scoring any message fails; nothing from the
                batch is returned
        """
        results: list[ClassifiedMessage] = []

        for message in messages:
            try:
                negative = await self.classify_text(message.text)
            except SentimentError as e:
                if e.source_id is None:
                    e.source_id = message.source_id
                raise
            except Exception as e:
                raise SentimentError(
                    f"Sentiment scoring failed: {e}",
                    source_id=message.source_id,
                ) from e
            results.append(ClassifiedMessage(message=message, is_negative=negative))

        negatives = sum(1 for r in results if r.is_negative)
        logger.debug("Classified messages", total=len(results), negative=negatives)
        return results
