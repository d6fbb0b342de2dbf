"""
Tracker API — HTTP endpoints over the session controller.

Endpoints:
  POST /api/chat              Send a chat message (rejected while one is pending)
  GET  /api/session           Read-only snapshot: symptoms, risk, history, reminder
  PUT  /api/settings          Partial settings update
  POST /api/reminder/check    Run one reminder check now
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from epiguard.tracker import reminder as reminder_schedule
from epiguard.tracker.models import EmergencyContact, SessionState
from epiguard.tracker.session import InvalidSettingError

logger = logging.getLogger("tracker.api")

router = APIRouter(prefix="/api", tags=["tracker"])


# ── Request / Response Models ──


class ChatRequest(BaseModel):
    message: str


class SettingsRequest(BaseModel):
    notifications: Optional[bool] = None
    reminder_interval_hours: Optional[int] = None
    language: Optional[str] = None
    emergency_contacts: Optional[list[EmergencyContact]] = None


class ReminderView(BaseModel):
    next_due_at: Optional[datetime] = None
    interval_hours: int
    remaining_seconds: int
    remaining_label: str  # "3h 12m"
    progress: float       # 0–100


class SessionView(BaseModel):
    symptoms: list[dict[str, Any]] = Field(default_factory=list)
    risk_level: str
    history: list[dict[str, Any]] = Field(default_factory=list)
    reminder: ReminderView
    settings: dict[str, Any] = Field(default_factory=dict)
    pending: bool = False


class ChatResponse(BaseModel):
    accepted: bool
    reply: Optional[str] = None
    session: SessionView


def _format_remaining(seconds: int) -> str:
    hours, rest = divmod(seconds, 3600)
    return f"{hours}h {rest // 60}m"


def build_session_view(state: SessionState, pending: bool = False) -> SessionView:
    now = datetime.now(timezone.utc)
    remaining = int(reminder_schedule.time_remaining(state.reminder, now).total_seconds())
    return SessionView(
        symptoms=[s.model_dump(mode="json") for s in state.symptoms.values()],
        risk_level=state.risk.value,
        history=[t.model_dump(mode="json") for t in state.history],
        reminder=ReminderView(
            next_due_at=state.reminder.next_due_at,
            interval_hours=state.reminder.interval_hours,
            remaining_seconds=remaining,
            remaining_label=_format_remaining(remaining),
            progress=round(reminder_schedule.progress(state.reminder, now), 1),
        ),
        settings=state.settings.model_dump(mode="json"),
        pending=pending,
    )


# ── Endpoints ──


@router.post("/chat", response_model=ChatResponse)
async def chat(request: ChatRequest):
    from epiguard.tracker.setup import get_controller

    controller = get_controller()
    result = await controller.send_message(request.message)
    if not result.accepted:
        logger.info("Chat message not accepted (empty or request pending)")
    return ChatResponse(
        accepted=result.accepted,
        reply=result.reply,
        session=build_session_view(result.state, controller.is_pending),
    )


@router.get("/session", response_model=SessionView)
async def get_session():
    from epiguard.tracker.setup import get_controller

    controller = get_controller()
    return build_session_view(controller.snapshot(), controller.is_pending)


@router.put("/settings", response_model=SessionView)
async def update_settings(request: SettingsRequest):
    from epiguard.tracker.setup import get_controller

    controller = get_controller()
    try:
        result = await controller.update_settings(
            notifications=request.notifications,
            reminder_interval_hours=request.reminder_interval_hours,
            language=request.language,
            emergency_contacts=request.emergency_contacts,
        )
    except InvalidSettingError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return build_session_view(result.state, controller.is_pending)


@router.post("/reminder/check")
async def check_reminder():
    from epiguard.tracker.setup import get_controller

    controller = get_controller()
    result = await controller.tick()
    return {
        "fired": result.reply is not None,
        "reply": result.reply,
        "session": build_session_view(result.state, controller.is_pending),
    }
