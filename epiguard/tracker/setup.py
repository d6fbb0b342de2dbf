"""
Tracker Setup — builds the session controller and its reminder loop.

Called once during app startup.  Tests and the HTTP layer reach the
controller through ``get_controller()``.
"""

from __future__ import annotations

import logging

from epiguard import settings as config
from epiguard.tracker.llm import GeminiLanguageModel, GeminiTranslationService
from epiguard.tracker.notifications import NotificationService, build_notifier
from epiguard.tracker.reminder import ReminderScheduler
from epiguard.tracker.session import SessionController
from epiguard.tracker.settings_store import JsonFileSettingsStore
from epiguard.tracker.translation import TranslationOrchestrator

logger = logging.getLogger("tracker.setup")

# Module-level singletons (set during initialize)
_controller: SessionController | None = None
_reminder_scheduler: ReminderScheduler | None = None
_scheduled_controller: SessionController | None = None


def build_controller(notifier: NotificationService | None = None) -> SessionController:
    """Controller wired to Gemini for chat and translation, settings kept on disk."""
    return SessionController(
        language_model=GeminiLanguageModel(),
        translator=TranslationOrchestrator(GeminiTranslationService()),
        notifier=notifier or build_notifier(),
        settings_store=JsonFileSettingsStore(config.SETTINGS_FILE),
    )


async def initialize_tracker(controller: SessionController | None = None) -> SessionController:
    """
    Create the session controller (unless given) and start reminder checks.

    Called again with a different controller, the reminder loop is
    restarted so it ticks the new one.
    """
    global _controller, _reminder_scheduler, _scheduled_controller

    _controller = controller or _controller or build_controller()
    if _reminder_scheduler is not None and _scheduled_controller is not _controller:
        logger.info("Controller replaced, restarting reminder checks")
        await _reminder_scheduler.stop()
        _reminder_scheduler = None

    if _reminder_scheduler is None:
        _reminder_scheduler = ReminderScheduler(processor=_controller.tick)
        _scheduled_controller = _controller
        await _reminder_scheduler.start()

    logger.info("Symptom tracker initialized")
    return _controller


async def shutdown_tracker() -> None:
    global _reminder_scheduler, _scheduled_controller
    if _reminder_scheduler is not None:
        await _reminder_scheduler.stop()
        _reminder_scheduler = None
        _scheduled_controller = None
    logger.info("Symptom tracker shut down")


def get_controller() -> SessionController:
    """Current controller; built lazily when startup has not run."""
    global _controller
    if _controller is None:
        _controller = build_controller()
    return _controller


def set_controller(controller: SessionController | None) -> None:
    """Replace the controller (tests inject one with fake services)."""
    global _controller
    _controller = controller
