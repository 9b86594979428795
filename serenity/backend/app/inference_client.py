from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from .config import DEFAULT_HF_API_URL

logger = logging.getLogger(__name__)

CHAT_MODEL = "microsoft/DialoGPT-medium"
SENTIMENT_MODEL = "cardiffnlp/twitter-roberta-base-sentiment-latest"
DEFAULT_REPLY = "I'm here to listen and support you."


class InferenceError(Exception):
    """The text-inference service could not produce a usable result."""


@dataclass
class SentimentResult:
    label: str
    confidence: float


class HuggingFaceClient:
    """Thin client for the Hugging Face Inference API.

    Built once at startup and handed to request handlers; every failure is
    raised as InferenceError so callers can substitute fallbacks.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_HF_API_URL,
        chat_model: str = CHAT_MODEL,
        sentiment_model: str = SENTIMENT_MODEL,
        timeout: float = 20.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.chat_model = chat_model
        self.sentiment_model = sentiment_model
        self.timeout = timeout
        self.session = session or requests.Session()
        if not api_key:
            logger.warning("Hugging Face API key not found. Chat replies will use fallbacks.")

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _post(self, model: str, payload: dict):
        if not self.api_key:
            raise InferenceError("Hugging Face API key not configured")
        try:
            resp = self.session.post(
                f"{self.base_url}/{model}",
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise InferenceError(f"Request to {model} failed: {exc}") from exc
        if not resp.ok:
            raise InferenceError(f"Hugging Face API error: {resp.status_code} {resp.reason}")
        try:
            data = resp.json()
        except ValueError as exc:
            raise InferenceError(f"Invalid JSON from {model}") from exc
        if isinstance(data, dict) and data.get("error"):
            raise InferenceError(str(data["error"]))
        return data

    def generate_reply(self, message: str, context: str = "") -> str:
        prompt = f"{context}\nUser: {message}\nAssistant:" if context else f"User: {message}\nAssistant:"
        data = self._post(self.chat_model, {
            "inputs": prompt,
            "parameters": {
                "max_length": 150,
                "temperature": 0.7,
                "do_sample": True,
                "pad_token_id": 50256,
            },
        })
        generated = ""
        if isinstance(data, list) and data and isinstance(data[0], dict):
            generated = data[0].get("generated_text") or ""
        if not generated:
            return DEFAULT_REPLY
        if "Assistant:" in generated:
            generated = generated.split("Assistant:")[-1].strip() or generated
        return generated

    def analyze_sentiment(self, text: str) -> SentimentResult:
        data = self._post(self.sentiment_model, {"inputs": text})
        candidates = data
        while isinstance(candidates, list) and candidates and isinstance(candidates[0], list):
            candidates = candidates[0]
        if not isinstance(candidates, list) or not candidates:
            raise InferenceError("Empty sentiment response")
        try:
            best = max(candidates, key=lambda item: float(item["score"]))
            return SentimentResult(label=str(best["label"]).lower(), confidence=float(best["score"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise InferenceError("Unexpected sentiment response shape") from exc
