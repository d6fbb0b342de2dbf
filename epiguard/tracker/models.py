"""
Session Models — the data a single symptom-tracking session owns.

One SessionState per active session.  Only the SessionController writes
it; everything else receives copies or read-only snapshots.

Wire format of a model response (StructuredUpdate) keeps the camelCase
keys the conversational service emits: ``symptom``, ``riskLevel``,
``symptomActions``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, Field, field_validator

from epiguard import settings as config

logger = logging.getLogger("tracker.models")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
#  Enums
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class RiskLevel(str, Enum):
    HIGH = "High"
    MODERATE = "Moderate"
    LOW = "Low"

    @classmethod
    def coerce(cls, value: Any) -> RiskLevel | None:
        """Case-insensitive lookup.  Unknown values return None."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        wanted = value.strip().lower()
        for level in cls:
            if level.value.lower() == wanted:
                return level
        return None


class Severity(str, Enum):
    """Canonical symptom severity used for advice lookup."""

    HIGH = "High"
    MODERATE = "Moderate"
    LOW = "Low"


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class TurnKind(str, Enum):
    CHAT = "chat"
    REMINDER = "reminder"
    ERROR = "error"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def canonical_name(name: str) -> str:
    """SymptomSet key: trimmed, lower-cased symptom name."""
    return (name or "").strip().lower()


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
#  Structured model output
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class SymptomObservation(BaseModel):
    """One {symptom, severity} pair reported by the model."""

    name: str = Field(alias="symptom")
    severity: str = ""

    model_config = {"populate_by_name": True}

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("severity", mode="before")
    @classmethod
    def _severity_text(cls, v: Any) -> str:
        if v is None:
            return ""
        return str(v).strip()

    @property
    def key(self) -> str:
        return canonical_name(self.name)


def _clean_observations(value: Any) -> Any:
    """Drop entries that are not objects or carry a blank name."""
    if value is None:
        return []
    if not isinstance(value, list):
        return value  # let pydantic reject it
    kept = []
    for item in value:
        if isinstance(item, SymptomObservation):
            kept.append(item)
            continue
        if not isinstance(item, dict):
            logger.debug("Dropping non-object symptom entry: %r", item)
            continue
        name = item.get("symptom", item.get("name"))
        if not isinstance(name, str) or not name.strip():
            logger.debug("Dropping symptom entry without a name: %r", item)
            continue
        kept.append(item)
    return kept


class SymptomActions(BaseModel):
    add: list[SymptomObservation] = Field(default_factory=list)
    update: list[SymptomObservation] = Field(default_factory=list)
    remove: list[str] = Field(default_factory=list)

    @field_validator("add", "update", mode="before")
    @classmethod
    def _observations(cls, v: Any) -> Any:
        return _clean_observations(v)

    @field_validator("remove", mode="before")
    @classmethod
    def _names(cls, v: Any) -> Any:
        if v is None:
            return []
        if not isinstance(v, list):
            return v
        return [n for n in v if isinstance(n, str) and n.strip()]

    def is_empty(self) -> bool:
        return not (self.add or self.update or self.remove)


class StructuredUpdate(BaseModel):
    """Validated (or fallback) payload derived from one model response."""

    message: str
    symptoms: list[SymptomObservation] = Field(default_factory=list)
    risk_level: Optional[RiskLevel] = Field(default=None, alias="riskLevel")
    symptom_actions: SymptomActions = Field(
        default_factory=SymptomActions, alias="symptomActions",
    )

    model_config = {"populate_by_name": True}

    @field_validator("message")
    @classmethod
    def _message_required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("message must not be empty")
        return v

    @field_validator("symptoms", mode="before")
    @classmethod
    def _observations(cls, v: Any) -> Any:
        return _clean_observations(v)

    @field_validator("risk_level", mode="before")
    @classmethod
    def _risk(cls, v: Any) -> RiskLevel | None:
        level = RiskLevel.coerce(v)
        if v is not None and level is None:
            logger.info("Ignoring unrecognised riskLevel %r", v)
        return level

    @field_validator("symptom_actions", mode="before")
    @classmethod
    def _actions(cls, v: Any) -> Any:
        return {} if v is None else v

    @classmethod
    def fallback(cls, raw_text: str) -> StructuredUpdate:
        """Unstructured reply: keep the text, report nothing, assume Low risk."""
        return cls.model_construct(
            message=raw_text,
            symptoms=[],
            risk_level=RiskLevel.LOW,
            symptom_actions=SymptomActions(),
        )

    def is_empty(self) -> bool:
        return not self.symptoms and self.symptom_actions.is_empty()


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
#  Session state
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class Symptom(BaseModel):
    name: str
    severity: str
    timestamp: datetime = Field(default_factory=_now)
    advice: str  # always derived from severity, never edited directly

    @property
    def key(self) -> str:
        return canonical_name(self.name)


# Canonical name → Symptom
SymptomSet = dict[str, Symptom]


class ConversationTurn(BaseModel):
    role: Role
    text: str
    kind: TurnKind = TurnKind.CHAT
    timestamp: datetime = Field(default_factory=_now)

    def as_prior_turn(self) -> dict[str, str]:
        """Shape sent to the Language Model Service."""
        return {"role": self.role.value, "content": self.text}


def _validate_interval(hours: int) -> int:
    if hours not in config.REMINDER_INTERVAL_OPTIONS:
        raise ValueError(
            f"reminder interval must be one of {config.REMINDER_INTERVAL_OPTIONS}, got {hours}"
        )
    return hours


class ReminderState(BaseModel):
    next_due_at: Optional[datetime] = None
    interval_hours: int = config.DEFAULT_REMINDER_INTERVAL_HOURS

    @field_validator("interval_hours")
    @classmethod
    def _interval(cls, v: int) -> int:
        return _validate_interval(v)


class EmergencyContact(BaseModel):
    name: str
    number: str
    type: str = "Medical"


def _default_contacts() -> list[EmergencyContact]:
    return [EmergencyContact(name="Dr. Smith", number="555-0123", type="Medical")]


class UserSettings(BaseModel):
    notifications: bool = True
    reminder_interval_hours: int = config.DEFAULT_REMINDER_INTERVAL_HOURS
    language: str = config.CANONICAL_LANGUAGE
    emergency_contacts: list[EmergencyContact] = Field(default_factory=_default_contacts)

    @field_validator("reminder_interval_hours")
    @classmethod
    def _interval(cls, v: int) -> int:
        return _validate_interval(v)

    @field_validator("language")
    @classmethod
    def _language(cls, v: str) -> str:
        if v not in config.SUPPORTED_LANGUAGES:
            raise ValueError(f"unsupported language '{v}'")
        return v


GREETING = "Hi, how are you feeling today?"


class SessionState(BaseModel):
    symptoms: dict[str, Symptom] = Field(default_factory=dict)
    risk: RiskLevel = RiskLevel.LOW
    history: list[ConversationTurn] = Field(default_factory=list)
    reminder: ReminderState = Field(default_factory=ReminderState)
    settings: UserSettings = Field(default_factory=UserSettings)

    MAX_HISTORY: ClassVar[int] = 200

    def add_turn(self, turn: ConversationTurn) -> None:
        self.history.append(turn)
        if len(self.history) > self.MAX_HISTORY:
            self.history = self.history[-self.MAX_HISTORY:]

    def prior_turns(self, limit: int) -> list[dict[str, str]]:
        """Most recent ``limit`` turns in Language Model Service shape."""
        if limit <= 0:
            return []
        return [t.as_prior_turn() for t in self.history[-limit:]]

    @classmethod
    def create_new(cls, user_settings: UserSettings | None = None) -> SessionState:
        """Fresh session: empty timeline, Low risk, greeting from the assistant."""
        user_settings = user_settings or UserSettings()
        state = cls(
            settings=user_settings,
            reminder=ReminderState(interval_hours=user_settings.reminder_interval_hours),
        )
        state.add_turn(ConversationTurn(role=Role.ASSISTANT, text=GREETING))
        return state
