from __future__ import annotations

import json
from typing import Any

import pytest

from textaudit.core.config import Settings
from textaudit.core.logging import configure_logging
from textaudit.services.engine import AuditEngine

AUDIT_TEXT = (
    "The industrial revolution changed how people worked and lived. Factories drew workers from farms "
    "into crowded cities, and new machines reshaped entire trades within a single generation."
)

ANALYSIS_PAYLOAD: dict[str, Any] = {
    "plagiarismFound": True,
    "aiScore": 72,
    "totalIssues": 2,
    "scores": {
        "grammar": 85,
        "spelling": 90,
        "punctuation": 95,
        "conciseness": 70,
        "readability": 60,
        "wordChoice": 80,
        "additionalIssues": 10,
    },
    "flags": [
        {"text": "bad word", "issue": "GRAMMAR", "fix": "good word", "severity": "MINOR"},
    ],
    "summary": "Text has issues.",
}

REWRITE_PAYLOAD: dict[str, Any] = {
    "humanizedText": "Rewritten text content.",
    "stats": {"originalAiScore": 100, "predictedNewAiScore": 0, "readabilityScore": 92},
    "changesMade": ["fixed grammar"],
}


class FakeBackend:
    """Scripted completion backend: each call pops the next response or raises it."""

    def __init__(self, responses: list[Any] | None = None) -> None:
        self.responses = list(responses or [])
        self.calls: list[dict[str, Any]] = []

    async def complete(
        self,
        *,
        messages: list[dict[str, str]],
        temperature: float,
        json_mode: bool = True,
    ) -> str:
        self.calls.append({"messages": messages, "temperature": temperature, "json_mode": json_mode})
        if not self.responses:
            raise AssertionError("FakeBackend ran out of scripted responses")
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, dict):
            return json.dumps(item)
        return item


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture(autouse=True, scope="session")
def _log_to_stderr():
    configure_logging(level="WARNING", json_logs=True)


@pytest.fixture
def settings(monkeypatch) -> Settings:
    for key in ("GROQ_API_KEY", "API_KEY", "GEMINI_API_KEY"):
        monkeypatch.delenv(key, raising=False)
    return Settings(
        GROQ_API_KEY="gsk_test_key",
        ENGINE_BACKOFF_BASE_SECONDS=0,
        ENGINE_ATTEMPT_TIMEOUT_SECONDS=5,
    )


@pytest.fixture
def make_engine(settings):
    def _make(responses: list[Any] | None = None) -> tuple[AuditEngine, FakeBackend]:
        backend = FakeBackend(responses)
        return AuditEngine(backend, settings=settings), backend

    return _make
