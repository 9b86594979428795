import unittest

import requests

from serenity.backend.app.inference_client import (
    DEFAULT_REPLY,
    HuggingFaceClient,
    InferenceError,
)


class FakeResponse:
    def __init__(self, payload=None, status_code=200, reason="OK", raw=None):
        self.payload = payload
        self.status_code = status_code
        self.reason = reason
        self.raw = raw

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def json(self):
        if self.raw is not None:
            raise ValueError("not json")
        return self.payload


class FakeSession:
    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.calls = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if self.exc is not None:
            raise self.exc
        return self.response


def make_client(session, api_key="hf_test"):
    return HuggingFaceClient(api_key=api_key, base_url="https://hf.example/models/", timeout=3, session=session)


class GenerateReplyTests(unittest.TestCase):
    def test_extracts_text_after_last_assistant_marker(self):
        session = FakeSession(FakeResponse([{"generated_text": "User: hi\nAssistant: Hello, how are you?"}]))
        client = make_client(session)
        reply = client.generate_reply("hi", "User: earlier\nAssistant: sure")
        self.assertEqual(reply, "Hello, how are you?")

        call = session.calls[0]
        self.assertEqual(call["url"], "https://hf.example/models/microsoft/DialoGPT-medium")
        self.assertEqual(call["headers"]["Authorization"], "Bearer hf_test")
        self.assertEqual(call["timeout"], 3)
        self.assertTrue(call["json"]["inputs"].startswith("User: earlier\nAssistant: sure\nUser: hi"))
        self.assertTrue(call["json"]["inputs"].endswith("Assistant:"))

    def test_prompt_without_context(self):
        session = FakeSession(FakeResponse([{"generated_text": "Sounds good"}]))
        reply = make_client(session).generate_reply("hi")
        self.assertEqual(reply, "Sounds good")
        self.assertEqual(session.calls[0]["json"]["inputs"], "User: hi\nAssistant:")

    def test_empty_generation_uses_default(self):
        session = FakeSession(FakeResponse([{}]))
        self.assertEqual(make_client(session).generate_reply("hi"), DEFAULT_REPLY)

    def test_missing_key_raises_without_request(self):
        session = FakeSession(FakeResponse([]))
        with self.assertRaises(InferenceError):
            make_client(session, api_key="").generate_reply("hi")
        self.assertEqual(session.calls, [])

    def test_transport_error_raises(self):
        session = FakeSession(exc=requests.ConnectionError("down"))
        with self.assertRaises(InferenceError):
            make_client(session).generate_reply("hi")

    def test_http_error_raises(self):
        session = FakeSession(FakeResponse(status_code=503, reason="Service Unavailable"))
        with self.assertRaises(InferenceError):
            make_client(session).generate_reply("hi")

    def test_error_payload_raises(self):
        session = FakeSession(FakeResponse({"error": "Model is currently loading"}))
        with self.assertRaises(InferenceError):
            make_client(session).generate_reply("hi")

    def test_invalid_json_raises(self):
        session = FakeSession(FakeResponse(raw="<html>"))
        with self.assertRaises(InferenceError):
            make_client(session).generate_reply("hi")


class SentimentTests(unittest.TestCase):
    def test_nested_candidates_pick_highest_score(self):
        payload = [[
            {"label": "negative", "score": 0.1},
            {"label": "Positive", "score": 0.8},
            {"label": "neutral", "score": 0.1},
        ]]
        result = make_client(FakeSession(FakeResponse(payload))).analyze_sentiment("great day")
        self.assertEqual(result.label, "positive")
        self.assertAlmostEqual(result.confidence, 0.8)

    def test_flat_response(self):
        payload = [{"label": "NEGATIVE", "score": 0.92}]
        result = make_client(FakeSession(FakeResponse(payload))).analyze_sentiment("awful")
        self.assertEqual(result.label, "negative")

    def test_unexpected_shape_raises(self):
        with self.assertRaises(InferenceError):
            make_client(FakeSession(FakeResponse([{"unexpected": True}]))).analyze_sentiment("x")
        with self.assertRaises(InferenceError):
            make_client(FakeSession(FakeResponse([]))).analyze_sentiment("x")


if __name__ == "__main__":
    unittest.main()
