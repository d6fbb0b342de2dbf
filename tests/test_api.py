"""
Tests for the HTTP surface — health and tracker endpoints.

The controller is injected with fake services, so no model calls are made.
"""

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from epiguard.app import app
from epiguard.tracker.reminder import REMINDER_TEXT
from epiguard.tracker.setup import set_controller

from conftest import NOW, model_reply


@pytest.fixture
def client(make_controller, fake_llm):
    set_controller(make_controller())
    yield TestClient(app)
    set_controller(None)


class TestHealth:

    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "healthy"
        assert body["service"] == "epiguard-tracker"


class TestChatEndpoint:

    def test_chat_records_symptom(self, client, fake_llm):
        fake_llm.replies.append(model_reply(
            message="Take it easy today.",
            symptoms=[("headache", "Moderate")],
            risk_level="Moderate",
        ))

        resp = client.post("/api/chat", json={"message": "I have a headache"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["accepted"] is True
        assert body["reply"] == "Take it easy today."
        session = body["session"]
        assert session["risk_level"] == "Moderate"
        assert [s["name"] for s in session["symptoms"]] == ["headache"]
        assert session["symptoms"][0]["advice"].startswith("Contact your healthcare provider")
        assert session["pending"] is False

    def test_empty_message_not_accepted(self, client, fake_llm):
        resp = client.post("/api/chat", json={"message": ""})
        assert resp.status_code == 200
        assert resp.json()["accepted"] is False
        assert fake_llm.calls == []

    def test_missing_body_rejected(self, client):
        resp = client.post("/api/chat", json={})
        assert resp.status_code == 422


class TestSessionEndpoint:

    def test_new_session_view(self, client):
        resp = client.get("/api/session")
        assert resp.status_code == 200
        body = resp.json()
        assert body["symptoms"] == []
        assert body["risk_level"] == "Low"
        assert len(body["history"]) == 1
        assert body["reminder"]["interval_hours"] == 12
        assert 0 <= body["reminder"]["progress"] <= 100
        assert body["settings"]["language"] == "en"


class TestSettingsEndpoint:

    def test_update_interval(self, client):
        resp = client.put("/api/settings", json={"reminder_interval_hours": 8})
        assert resp.status_code == 200
        body = resp.json()
        assert body["settings"]["reminder_interval_hours"] == 8
        assert body["reminder"]["interval_hours"] == 8

    def test_invalid_interval_is_422(self, client):
        resp = client.put("/api/settings", json={"reminder_interval_hours": 5})
        assert resp.status_code == 422

    def test_invalid_language_is_422(self, client):
        resp = client.put("/api/settings", json={"language": "xx"})
        assert resp.status_code == 422

    def test_change_language(self, client):
        resp = client.put("/api/settings", json={"language": "fr"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["settings"]["language"] == "fr"
        assert body["history"][0]["text"].startswith("[fr] ")


class TestReminderEndpoint:

    def test_check_before_due(self, client):
        resp = client.post("/api/reminder/check")
        assert resp.status_code == 200
        body = resp.json()
        assert body["fired"] is False
        assert body["reply"] is None

    def test_check_when_due(self, make_controller):
        clock = [NOW]
        set_controller(make_controller(clock=lambda: clock[0]))
        clock[0] = NOW + timedelta(hours=12)
        try:
            resp = TestClient(app).post("/api/reminder/check")
        finally:
            set_controller(None)
        body = resp.json()
        assert body["fired"] is True
        assert body["reply"] == REMINDER_TEXT
        assert body["session"]["history"][-1]["kind"] == "reminder"
