"""
Settings Store — keeps UserSettings across restarts.

Saved settings are merged over the defaults on load, so a file written
by an older build (or hand-edited to a subset of fields) still loads.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import ValidationError

from epiguard.tracker.models import UserSettings

logger = logging.getLogger("tracker.settings_store")


class SettingsStore(ABC):
    @abstractmethod
    def load(self) -> UserSettings:
        """Saved settings merged over the defaults."""

    @abstractmethod
    def save(self, settings: UserSettings) -> None:
        ...


class JsonFileSettingsStore(SettingsStore):
    """
    Persists UserSettings as a JSON document on local disk.

    A missing file yields the defaults.  An unreadable or invalid file is
    logged and also yields the defaults; the next save overwrites it.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> UserSettings:
        if not self._path.exists():
            return UserSettings()
        try:
            saved = json.loads(self._path.read_text(encoding="utf-8"))
            if not isinstance(saved, dict):
                raise ValueError(f"expected a JSON object, got {type(saved).__name__}")
            merged = {**UserSettings().model_dump(), **saved}
            settings = UserSettings.model_validate(merged)
        except (OSError, ValueError, ValidationError) as exc:
            logger.warning("Could not load settings from %s, using defaults: %s", self._path, exc)
            return UserSettings()
        logger.info("Loaded settings from %s", self._path)
        return settings

    def save(self, settings: UserSettings) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(settings.model_dump_json(indent=2), encoding="utf-8")
        logger.debug("Saved settings to %s", self._path)
