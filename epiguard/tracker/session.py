"""
Session Controller — the single owner of a session's state.

Commands (SendMessage, Tick, ChangeLanguage, UpdateSettings) come in,
a CommandResult goes out.  State transitions are plain functions that
return a new SessionState plus the side effects to perform; the
controller performs the I/O (model calls, translation, notifications)
around them.

Concurrency rules:
  - at most one chat request outstanding; a second send while one is
    pending is rejected, not queued
  - every write to the state happens under one asyncio.Lock, so a
    reminder tick or a retranslation never interleaves with a
    reconciliation pass
  - text produced by a command is localized into the language that is
    active when it is applied, not when the command started
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from epiguard import settings as config
from epiguard.tracker.llm import LanguageModelService
from epiguard.tracker.models import (
    ConversationTurn,
    EmergencyContact,
    Role,
    SessionState,
    StructuredUpdate,
    TurnKind,
)
from epiguard.tracker.notifications import NotificationService
from epiguard.tracker.parser import parse_model_response
from epiguard.tracker.reminder import (
    REMINDER_TEXT,
    REMINDER_TITLE,
    ReminderDue,
    ensure_started,
    evaluate,
    with_interval,
)
from epiguard.tracker.risk import adopt_risk
from epiguard.tracker.settings_store import SettingsStore
from epiguard.tracker.timeline import ReconciliationResult, reconcile
from epiguard.tracker.translation import TranslationOrchestrator

logger = logging.getLogger("tracker.session")

APOLOGY_REPLY = (
    "I apologize, but I'm having trouble responding right now. "
    "Please try again in a moment."
)


class InvalidSettingError(ValueError):
    """A settings change names an unsupported language or interval."""


@dataclass
class NotificationRequest:
    title: str
    body: str


@dataclass
class CommandResult:
    """
    What a command hands back to the caller.

    - state: read-only snapshot after the command
    - accepted: False when a send was rejected (empty text or busy)
    - reply: assistant text added by the command, if any
    - notifications: notification requests the command produced
    """

    state: SessionState
    accepted: bool = True
    reply: str | None = None
    notifications: list[NotificationRequest] = field(default_factory=list)
    reconciliation: ReconciliationResult | None = None


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
#  Pure transitions
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def append_turn(state: SessionState, turn: ConversationTurn) -> SessionState:
    new_state = state.model_copy(deep=True)
    new_state.add_turn(turn)
    return new_state


def apply_update(
    state: SessionState, update: StructuredUpdate, now: datetime
) -> tuple[SessionState, ReconciliationResult]:
    """Reconcile the timeline, adopt risk and record the assistant reply."""
    result = reconcile(state.symptoms, update, now)
    new_state = state.model_copy(deep=True)
    new_state.symptoms = result.symptoms
    new_state.risk = adopt_risk(state.risk, update)
    new_state.add_turn(
        ConversationTurn(role=Role.ASSISTANT, text=update.message, timestamp=now)
    )
    return new_state, result


def apply_reminder(
    state: SessionState, now: datetime, text: str = REMINDER_TEXT
) -> tuple[SessionState, ReminderDue | None, list[NotificationRequest]]:
    """Run one reminder check.  When due, add the prompt to the conversation."""
    reminder, due = evaluate(state.reminder, now)
    new_state = state.model_copy(deep=True)
    new_state.reminder = reminder
    if due is None:
        return new_state, None, []

    new_state.add_turn(ConversationTurn(
        role=Role.ASSISTANT, text=text, kind=TurnKind.REMINDER, timestamp=now,
    ))
    effects = []
    if state.settings.notifications:
        effects.append(NotificationRequest(title=REMINDER_TITLE, body=text))
    return new_state, due, effects


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
#  Controller
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionController:
    """
    Owns SessionState and exposes the session's commands.

    Usage:
        controller = SessionController(
            language_model=GeminiLanguageModel(),
            translator=TranslationOrchestrator(GeminiTranslationService()),
            notifier=LoggingNotifier(),
            settings_store=JsonFileSettingsStore("epiguard_settings.json"),
        )
        result = await controller.send_message("I have a headache")
    """

    def __init__(
        self,
        language_model: LanguageModelService,
        translator: TranslationOrchestrator,
        notifier: NotificationService | None = None,
        state: SessionState | None = None,
        history_window: int = config.HISTORY_WINDOW_TURNS,
        clock: Callable[[], datetime] = _utcnow,
        settings_store: SettingsStore | None = None,
    ) -> None:
        self._llm = language_model
        self._translator = translator
        self._notifier = notifier
        self._settings_store = settings_store
        self._history_window = history_window
        self._clock = clock
        self._lock = asyncio.Lock()
        self._pending = False

        if state is None:
            saved = settings_store.load() if settings_store is not None else None
            state = SessionState.create_new(saved)
        state.reminder = ensure_started(state.reminder, self._clock())
        self._state = state

    # ── Read-only access ──

    def snapshot(self) -> SessionState:
        return self._state.model_copy(deep=True)

    @property
    def is_pending(self) -> bool:
        """True while a chat request is waiting on the Language Model Service."""
        return self._pending

    @property
    def language(self) -> str:
        return self._state.settings.language

    # ── Commands ──

    async def send_message(self, text: str) -> CommandResult:
        """SendMessage: one chat round trip with the Language Model Service."""
        text = str(text or "").strip()
        if not text:
            return CommandResult(state=self.snapshot(), accepted=False)
        if self._pending:
            logger.info("Chat request already pending, new message ignored")
            return CommandResult(state=self.snapshot(), accepted=False)

        self._pending = True
        try:
            async with self._lock:
                language = self._state.settings.language
                prior_turns = self._state.prior_turns(self._history_window)
                self._state = append_turn(
                    self._state,
                    ConversationTurn(role=Role.USER, text=text, timestamp=self._clock()),
                )

            outbound = await self._translator.to_canonical(text, language)
            try:
                raw = await self._llm.complete(outbound, prior_turns)
            except Exception as exc:
                logger.error("Language Model Service failed: %s", exc)
                return await self._apologize(language)

            update = parse_model_response(raw)
            localized = await self._translator.localize_update(update, language)

            async with self._lock:
                # The session may have switched language while the model was busy
                current = self._state.settings.language
                if current != language:
                    logger.info("Language changed to %s during the request, relocalizing reply", current)
                    localized = await self._translator.localize_update(update, current)
                try:
                    self._state, recon = apply_update(self._state, localized, self._clock())
                except Exception as exc:
                    logger.error("Reconciliation failed, timeline unchanged: %s", exc, exc_info=True)
                    recon = None
                    self._state = append_turn(
                        self._state,
                        ConversationTurn(role=Role.ASSISTANT, text=localized.message, timestamp=self._clock()),
                    )
                snapshot = self.snapshot()
            return CommandResult(state=snapshot, reply=localized.message, reconciliation=recon)
        finally:
            self._pending = False

    async def tick(self, now: datetime | None = None) -> CommandResult:
        """Tick: reminder check.  Fires at most one reminder."""
        now = now or self._clock()
        async with self._lock:
            text = REMINDER_TEXT
            _, due = evaluate(self._state.reminder, now)
            if due is not None:
                text = await self._localize(text, self._state.settings.language)
            self._state, due, effects = apply_reminder(self._state, now, text)
            snapshot = self.snapshot()

        if due is not None:
            logger.info("Reminder fired; next due at %s", due.next_due_at.isoformat())
        await self._dispatch(effects)
        return CommandResult(
            state=snapshot,
            reply=text if due is not None else None,
            notifications=effects,
        )

    async def change_language(self, language: str) -> CommandResult:
        """ChangeLanguage: switch the active language and retranslate the session."""
        if language not in config.SUPPORTED_LANGUAGES:
            raise InvalidSettingError(f"Unsupported language '{language}'")

        async with self._lock:
            if language != self._state.settings.language:
                history, symptoms = await self._translator.retranslate(
                    self._state.history, self._state.symptoms, language,
                )
                new_state = self._state.model_copy(deep=True)
                new_state.history = history
                new_state.symptoms = symptoms
                new_state.settings.language = language
                self._state = new_state
                self._persist_settings()
                logger.info("Active language changed to %s", language)
            snapshot = self.snapshot()
        return CommandResult(state=snapshot)

    async def update_settings(
        self,
        *,
        notifications: bool | None = None,
        reminder_interval_hours: int | None = None,
        language: str | None = None,
        emergency_contacts: list[EmergencyContact] | None = None,
    ) -> CommandResult:
        """UpdateSettings: partial settings change.  Validates before applying anything."""
        if (
            reminder_interval_hours is not None
            and reminder_interval_hours not in config.REMINDER_INTERVAL_OPTIONS
        ):
            raise InvalidSettingError(
                f"Reminder interval must be one of {config.REMINDER_INTERVAL_OPTIONS}"
            )
        if language is not None and language not in config.SUPPORTED_LANGUAGES:
            raise InvalidSettingError(f"Unsupported language '{language}'")

        async with self._lock:
            new_state = self._state.model_copy(deep=True)
            if notifications is not None:
                new_state.settings.notifications = notifications
            if reminder_interval_hours is not None:
                new_state.settings.reminder_interval_hours = reminder_interval_hours
                new_state.reminder = with_interval(new_state.reminder, reminder_interval_hours)
            if emergency_contacts is not None:
                new_state.settings.emergency_contacts = list(emergency_contacts)
            self._state = new_state
            self._persist_settings()

        if language is not None:
            return await self.change_language(language)
        return CommandResult(state=self.snapshot())

    # ── Internal ──

    async def _localize(self, text: str, language: str) -> str:
        if language == self._translator.canonical_language:
            return text
        return await self._translator.translate(text, language)

    async def _apologize(self, language: str) -> CommandResult:
        reply = await self._localize(APOLOGY_REPLY, language)
        async with self._lock:
            current = self._state.settings.language
            if current != language:
                reply = await self._localize(APOLOGY_REPLY, current)
            self._state = append_turn(
                self._state,
                ConversationTurn(
                    role=Role.ASSISTANT, text=reply, kind=TurnKind.ERROR,
                    timestamp=self._clock(),
                ),
            )
            snapshot = self.snapshot()
        return CommandResult(state=snapshot, reply=reply)

    def _persist_settings(self) -> None:
        if self._settings_store is None:
            return
        try:
            self._settings_store.save(self._state.settings)
        except OSError as exc:
            logger.error("Could not save settings: %s", exc)

    async def _dispatch(self, effects: list[NotificationRequest]) -> None:
        if self._notifier is None:
            return
        for request in effects:
            try:
                await self._notifier.fire(request.title, request.body)
            except Exception as exc:
                logger.warning("Notification delivery failed: %s", exc)
