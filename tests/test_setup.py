"""
Tests for Tracker Setup — controller singletons and the reminder loop wiring.
"""

import pytest

from epiguard.tracker import setup
from epiguard.tracker.setup import (
    get_controller,
    initialize_tracker,
    set_controller,
    shutdown_tracker,
)


async def _reset():
    await shutdown_tracker()
    set_controller(None)


class TestInitialize:

    @pytest.mark.asyncio
    async def test_uses_given_controller(self, make_controller):
        controller = make_controller()
        try:
            assert await initialize_tracker(controller) is controller
            assert get_controller() is controller
            assert setup._reminder_scheduler.is_running
        finally:
            await _reset()

    @pytest.mark.asyncio
    async def test_reinitialize_rebinds_reminder_loop(self, make_controller):
        first, second = make_controller(), make_controller()
        try:
            await initialize_tracker(first)
            old_scheduler = setup._reminder_scheduler

            await initialize_tracker(second)

            assert not old_scheduler.is_running
            assert setup._reminder_scheduler.is_running
            assert setup._reminder_scheduler._processor == second.tick
        finally:
            await _reset()

    @pytest.mark.asyncio
    async def test_same_controller_keeps_loop(self, make_controller):
        controller = make_controller()
        try:
            await initialize_tracker(controller)
            scheduler = setup._reminder_scheduler

            await initialize_tracker(controller)

            assert setup._reminder_scheduler is scheduler
        finally:
            await _reset()

    @pytest.mark.asyncio
    async def test_shutdown_stops_loop(self, make_controller):
        try:
            await initialize_tracker(make_controller())
            scheduler = setup._reminder_scheduler
            await shutdown_tracker()
            assert not scheduler.is_running
            assert setup._reminder_scheduler is None
        finally:
            await _reset()
