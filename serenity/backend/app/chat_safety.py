from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import List

CRISIS_PHRASES = [
    "suicide",
    "kill myself",
    "end it all",
    "no point living",
    "better off dead",
    "harm myself",
    "hurt myself",
    "can't go on",
    "giving up",
    "hopeless",
    "want to die",
    "end my life",
    "not worth living",
]

DISTRESS_KEYWORDS = ["anxious", "sad", "depressed", "worried", "scared", "stressed"]

SAFETY_RESPONSE = (
    "I'm concerned about what you've shared. Please reach out to a crisis helpline immediately:\n\n"
    "• National Suicide Prevention Lifeline: 988\n"
    "• Crisis Text Line: Text HOME to 741741\n"
    "• International Association for Suicide Prevention: https://www.iasp.info/resources/Crisis_Centres/\n\n"
    "You matter, and help is available."
)

EMPATHY_PHRASES = [
    "I hear you, and what you're feeling is valid. ",
    "It sounds like you're going through a tough time. ",
    "Thank you for sharing that with me. ",
    "I'm here to support you through this. ",
]

ANXIETY_FALLBACK = (
    "Anxiety can feel overwhelming, but you're not alone. "
    "Would you like to try a breathing exercise together?"
)
SADNESS_FALLBACK = (
    "I hear that you're feeling sad. It's okay to feel this way. "
    "What has been most challenging for you today?"
)
GENERAL_FALLBACKS = [
    "I'm here to listen and support you. Can you tell me more about how you're feeling?",
    "Thank you for sharing that with me. How has your day been going?",
    "I understand this might be difficult to talk about. What would help you feel better right now?",
    "It's important that you're reaching out. What's been on your mind lately?",
    "I'm here for you. Would you like to try a breathing exercise or talk about something else?",
]


@dataclass
class CrisisDecision:
    is_crisis: bool
    matched_phrases: List[str] = field(default_factory=list)


def classify(message: str) -> CrisisDecision:
    lowered = (message or "").lower()
    matches = [phrase for phrase in CRISIS_PHRASES if phrase in lowered]
    return CrisisDecision(is_crisis=bool(matches), matched_phrases=matches)


def is_distressed(message: str) -> bool:
    lowered = message.lower()
    return any(keyword in lowered for keyword in DISTRESS_KEYWORDS)


def add_empathy(reply: str, user_message: str, rng: random.Random) -> str:
    if not is_distressed(user_message):
        return reply
    return rng.choice(EMPATHY_PHRASES) + reply


def fallback_reply(user_message: str, rng: random.Random) -> str:
    lowered = user_message.lower()
    if "anxious" in lowered or "anxiety" in lowered:
        return ANXIETY_FALLBACK
    if "sad" in lowered or "depressed" in lowered:
        return SADNESS_FALLBACK
    return rng.choice(GENERAL_FALLBACKS)
