"""
Reminder Scheduler — recurring "time to log your symptoms" prompt.

Two halves:
  - pure schedule arithmetic over ReminderState (``evaluate`` and friends)
  - an in-process asyncio loop that calls the session's tick on a fixed
    rate and can be cancelled explicitly

Missed cycles are not replayed.  When a check finds the reminder overdue
it fires once and schedules the next one from the firing moment, so the
schedule drifts forward instead of queueing catch-up reminders.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable

from epiguard import settings as config
from epiguard.tracker.models import ReminderState

logger = logging.getLogger("tracker.reminder")

REMINDER_TITLE = "EpiGuard Reminder"
REMINDER_TEXT = "It's time to log your symptoms. How are you feeling now?"


@dataclass
class ReminderDue:
    """Signal that the symptom-logging prompt should be delivered."""

    due_at: datetime
    fired_at: datetime
    next_due_at: datetime


def _interval(state: ReminderState) -> timedelta:
    return timedelta(hours=state.interval_hours)


def ensure_started(state: ReminderState, now: datetime) -> ReminderState:
    """First due time is one interval after the session starts."""
    if state.next_due_at is not None:
        return state
    return state.model_copy(update={"next_due_at": now + _interval(state)})


def evaluate(
    state: ReminderState, now: datetime
) -> tuple[ReminderState, ReminderDue | None]:
    """One fixed-rate check.  Fires at most once, however late it runs."""
    state = ensure_started(state, now)
    if now < state.next_due_at:
        return state, None

    next_due = now + _interval(state)
    due = ReminderDue(due_at=state.next_due_at, fired_at=now, next_due_at=next_due)
    overdue = now - state.next_due_at
    if overdue > _interval(state):
        logger.info(
            "Reminder overdue by %s, firing once (no catch-up)", overdue,
        )
    return state.model_copy(update={"next_due_at": next_due}), due


def with_interval(state: ReminderState, hours: int) -> ReminderState:
    """Change the interval.  The pending due time stays; the next firing uses it."""
    return ReminderState(next_due_at=state.next_due_at, interval_hours=hours)


def time_remaining(state: ReminderState, now: datetime) -> timedelta:
    if state.next_due_at is None:
        return _interval(state)
    return max(state.next_due_at - now, timedelta(0))


def progress(state: ReminderState, now: datetime) -> float:
    """Elapsed share of the current interval, clamped to 0–100."""
    total = _interval(state).total_seconds()
    elapsed = total - time_remaining(state, now).total_seconds()
    return min(max(elapsed / total * 100, 0.0), 100.0)


class ReminderScheduler:
    """
    Background loop that asks the session to check its reminder.

    Usage:
        scheduler = ReminderScheduler(processor=controller.tick)
        await scheduler.start()

    On shutdown:
        await scheduler.stop()
    """

    def __init__(
        self,
        processor: Callable[[], Awaitable[Any]],
        check_interval: float = config.REMINDER_CHECK_SECONDS,
    ) -> None:
        self._processor = processor
        self._check_interval = check_interval
        self._task: asyncio.Task | None = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            logger.warning("ReminderScheduler already running")
            return
        self._running = True
        self._task = asyncio.create_task(self._reminder_loop())
        logger.info("ReminderScheduler started (check every %ss)", self._check_interval)

    async def stop(self) -> None:
        self._running = False
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("ReminderScheduler stopped")

    async def _reminder_loop(self) -> None:
        while self._running:
            try:
                await asyncio.sleep(self._check_interval)
                if not self._running:
                    break
                await self._processor()
            except asyncio.CancelledError:
                break
            except Exception as exc:
                logger.error("Reminder check failed: %s", exc, exc_info=True)
