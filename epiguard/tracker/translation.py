"""
Translation Orchestrator — localizes conversation text, fail-soft.

The conversation with the Language Model Service runs in the canonical
language (English).  User input is translated into it on the way out;
the assistant reply and symptom names are translated into the user's
language on the way back.  A failed translation keeps the original text
and is only logged.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod

from epiguard import settings as config
from epiguard.tracker.models import (
    ConversationTurn,
    StructuredUpdate,
    SymptomActions,
    SymptomObservation,
    SymptomSet,
    canonical_name,
)

logger = logging.getLogger("tracker.translation")


class TranslationService(ABC):
    """Translates one text into a target language.  May raise on failure."""

    @abstractmethod
    async def translate(self, text: str, target_language: str) -> str:
        """Return ``text`` rendered in ``target_language``."""


class TranslationOrchestrator:
    """
    Wraps every translation call so the pipeline never blocks on it.

    Usage:
        orchestrator = TranslationOrchestrator(service)
        outbound = await orchestrator.to_canonical(text, "es")
        update = await orchestrator.localize_update(update, "es")
    """

    def __init__(
        self,
        service: TranslationService | None,
        canonical_language: str = config.CANONICAL_LANGUAGE,
    ) -> None:
        self._service = service
        self._canonical = canonical_language

    @property
    def canonical_language(self) -> str:
        return self._canonical

    async def translate(self, text: str, target_language: str) -> str:
        """Translate one field.  On any failure the original text is kept."""
        if self._service is None or not text or not text.strip():
            return text
        try:
            translated = await self._service.translate(text, target_language)
        except Exception as exc:
            logger.warning(
                "Translation to %s failed, keeping original text: %s",
                target_language, exc,
            )
            return text
        if not isinstance(translated, str) or not translated.strip():
            logger.warning("Empty translation to %s, keeping original text", target_language)
            return text
        return translated.strip()

    async def to_canonical(self, text: str, active_language: str) -> str:
        """Outbound: user input → working language of the model."""
        if active_language == self._canonical:
            return text
        return await self.translate(text, self._canonical)

    async def localize_update(
        self, update: StructuredUpdate, active_language: str
    ) -> StructuredUpdate:
        """
        Inbound: translate the reply and every symptom name field.

        Action names are translated alongside the observations so that
        removals and updates still match the localized SymptomSet keys.
        """
        if active_language == self._canonical:
            return update

        actions = update.symptom_actions
        message, symptoms, added, updated, removed = await asyncio.gather(
            self.translate(update.message, active_language),
            self._localize_observations(update.symptoms, active_language),
            self._localize_observations(actions.add, active_language),
            self._localize_observations(actions.update, active_language),
            asyncio.gather(*(self.translate(n, active_language) for n in actions.remove)),
        )
        return update.model_copy(update={
            "message": message,
            "symptoms": symptoms,
            "symptom_actions": SymptomActions(
                add=added, update=updated, remove=list(removed),
            ),
        })

    async def _localize_observations(
        self, observations: list[SymptomObservation], language: str
    ) -> list[SymptomObservation]:
        names = await asyncio.gather(
            *(self.translate(obs.name, language) for obs in observations)
        )
        return [
            obs.model_copy(update={"name": name})
            for obs, name in zip(observations, names)
        ]

    async def retranslate(
        self,
        history: list[ConversationTurn],
        symptoms: SymptomSet,
        target_language: str,
    ) -> tuple[list[ConversationTurn], SymptomSet]:
        """
        Batch pass after a language change: every turn and symptom name.

        Fields whose translation fails keep their previous value; nothing
        is dropped.  Advice text is derived from severity and is left as is.
        """
        turn_texts, names = await asyncio.gather(
            asyncio.gather(*(self.translate(t.text, target_language) for t in history)),
            asyncio.gather(*(self.translate(s.name, target_language) for s in symptoms.values())),
        )

        new_history = [
            turn.model_copy(update={"text": text})
            for turn, text in zip(history, turn_texts)
        ]

        new_symptoms: SymptomSet = {}
        for (old_key, entry), name in zip(symptoms.items(), names):
            key = canonical_name(name)
            if key in new_symptoms or (key != old_key and key in symptoms):
                logger.warning(
                    "Translated name '%s' collides with an existing entry, keeping '%s'",
                    name, entry.name,
                )
                key, name = old_key, entry.name
            new_symptoms[key] = entry.model_copy(update={"name": name})

        logger.info(
            "Retranslated %d turns and %d symptoms to %s",
            len(new_history), len(new_symptoms), target_language,
        )
        return new_history, new_symptoms
