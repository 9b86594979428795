from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.orm import Session

from . import storage
from .chat_safety import SAFETY_RESPONSE, add_empathy, classify, fallback_reply
from .inference_client import InferenceError, SentimentResult
from .models import ChatMessage

logger = logging.getLogger(__name__)

CONTEXT_MESSAGES = 5
NEUTRAL_SENTIMENT = SentimentResult(label="neutral", confidence=0.5)


@dataclass
class ChatReply:
    message: str
    is_crisis: bool
    sentiment: Optional[SentimentResult] = None


def build_context(messages: List[ChatMessage]) -> str:
    """Render messages (newest first, as stored) as chronological dialogue lines."""
    return "\n".join(
        f"{'User' if msg.is_user else 'Assistant'}: {msg.message}"
        for msg in reversed(messages)
    )


def analyze_sentiment_safe(client, text: str) -> SentimentResult:
    try:
        return client.analyze_sentiment(text)
    except InferenceError as exc:
        logger.warning("Sentiment analysis unavailable: %s", exc)
        return NEUTRAL_SENTIMENT


def generate_reply_safe(client, message: str, context: str, rng: random.Random) -> str:
    try:
        reply = client.generate_reply(message, context)
    except InferenceError as exc:
        logger.warning("Reply generation unavailable, using fallback: %s", exc)
        return fallback_reply(message, rng)
    return add_empathy(reply, message, rng)


def handle_chat_message(
    db: Session,
    user_id: int,
    message: str,
    client,
    rng: random.Random,
) -> ChatReply:
    decision = classify(message)
    if decision.is_crisis:
        logger.warning("Crisis language detected for user %s; returning safety response", user_id)
        storage.create_chat_message(db, user_id, message, is_user=True)
        storage.create_chat_message(db, user_id, SAFETY_RESPONSE, is_user=False, sentiment="crisis")
        return ChatReply(message=SAFETY_RESPONSE, is_crisis=True)

    sentiment = analyze_sentiment_safe(client, message)
    storage.create_chat_message(db, user_id, message, is_user=True, sentiment=sentiment.label)

    recent = storage.get_user_chat_messages(db, user_id, limit=CONTEXT_MESSAGES)
    context = build_context(recent)
    reply = generate_reply_safe(client, message, context, rng)

    storage.create_chat_message(db, user_id, reply, is_user=False, sentiment="supportive")
    return ChatReply(message=reply, is_crisis=False, sentiment=sentiment)
