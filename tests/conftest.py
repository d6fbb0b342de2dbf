"""
Shared fixtures and fakes for the EpiGuard test suite.
The Language Model and Translation services are replaced with in-process
fakes so tests run fast and offline.
"""

import asyncio
import json
from datetime import datetime, timezone

import pytest

from epiguard.tracker.llm import LanguageModelService
from epiguard.tracker.notifications import InMemoryNotifier
from epiguard.tracker.session import SessionController
from epiguard.tracker.translation import TranslationOrchestrator, TranslationService

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def model_reply(
    message: str = "Thanks for letting me know.",
    symptoms: list | None = None,
    risk_level: str | None = "Low",
    add: list | None = None,
    update: list | None = None,
    remove: list | None = None,
) -> str:
    """Build a raw model response in the wire format."""
    payload = {
        "message": message,
        "symptoms": [{"symptom": n, "severity": s} for n, s in (symptoms or [])],
        "symptomActions": {
            "add": [{"symptom": n, "severity": s} for n, s in (add or [])],
            "update": [{"symptom": n, "severity": s} for n, s in (update or [])],
            "remove": list(remove or []),
        },
    }
    if risk_level is not None:
        payload["riskLevel"] = risk_level
    return json.dumps(payload)


class FakeLanguageModel(LanguageModelService):
    """Returns queued replies in order and records every request."""

    def __init__(self, replies: list[str] | None = None, error: Exception | None = None):
        self.replies = list(replies or [])
        self.error = error
        self.calls: list[tuple[str, list[dict[str, str]]]] = []
        self.gate: asyncio.Event | None = None  # set to hold a request open

    async def complete(self, user_message, prior_turns):
        self.calls.append((user_message, list(prior_turns)))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.replies.pop(0)


class FakeTranslator(TranslationService):
    """Tags text with the target language: 'hello' → '[es] hello'."""

    def __init__(self, fail_on: set[str] | None = None):
        self.fail_on = set(fail_on or ())
        self.calls: list[tuple[str, str]] = []

    async def translate(self, text, target_language):
        self.calls.append((text, target_language))
        if text in self.fail_on:
            raise RuntimeError("translation backend unavailable")
        return f"[{target_language}] {text}"


@pytest.fixture
def fake_llm():
    return FakeLanguageModel()


@pytest.fixture
def fake_translator():
    return FakeTranslator()


@pytest.fixture
def notifier():
    return InMemoryNotifier()


@pytest.fixture
def make_controller(fake_llm, fake_translator, notifier):
    """Factory: SessionController wired to the fakes with a fixed clock."""

    def _make(clock=lambda: NOW, **kwargs):
        return SessionController(
            language_model=kwargs.pop("language_model", fake_llm),
            translator=TranslationOrchestrator(kwargs.pop("translation_service", fake_translator)),
            notifier=kwargs.pop("notifier", notifier),
            clock=clock,
            **kwargs,
        )

    return _make
