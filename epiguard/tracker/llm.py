"""
Language Model Service adapters — Gemini via google-genai.

One attempt per call, no retry.  Failures surface as LanguageModelError
and the session controller turns them into its apology reply.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from google.genai import types

from epiguard import settings as config
from epiguard.tracker.prompts import (
    SYSTEM_INSTRUCTION,
    TRANSLATION_INSTRUCTION,
    translation_request,
)
from epiguard.tracker.translation import TranslationService

logger = logging.getLogger("tracker.llm")

# Conversation roles → Gemini content roles
_GEMINI_ROLES = {"user": "user", "assistant": "model"}


class LanguageModelError(Exception):
    """The Language Model Service could not produce a reply."""


class LanguageModelService(ABC):
    """Request: user message + prior turns (+ fixed system instruction).  Response: raw text."""

    @abstractmethod
    async def complete(
        self, user_message: str, prior_turns: list[dict[str, str]]
    ) -> str:
        """Return the model's raw reply.  Raise LanguageModelError on failure."""


class _GeminiClientMixin:
    def __init__(self, llm_client=None, model_name: str = config.CHAT_MODEL) -> None:
        self._client = llm_client
        self._model_name = model_name

    @property
    def client(self):
        if self._client is None:
            try:
                from google import genai
                self._client = genai.Client(api_key=config.GOOGLE_API_KEY or None)
            except Exception as exc:
                logger.error("Failed to create Gemini client: %s", exc)
        return self._client

    async def _generate(self, contents: Any, generation_config: types.GenerateContentConfig) -> str:
        client = self.client
        if client is None:
            raise LanguageModelError("Gemini client unavailable")
        try:
            response = await client.aio.models.generate_content(
                model=self._model_name,
                contents=contents,
                config=generation_config,
            )
        except Exception as exc:
            raise LanguageModelError(f"Gemini request failed: {exc}") from exc

        text = response.text
        if not isinstance(text, str) or not text.strip():
            raise LanguageModelError("Gemini returned an empty response")
        return text


class GeminiLanguageModel(_GeminiClientMixin, LanguageModelService):
    """Chat completion with the EpiGuard persona and JSON reply schema."""

    async def complete(
        self, user_message: str, prior_turns: list[dict[str, str]]
    ) -> str:
        contents = [
            types.Content(
                role=_GEMINI_ROLES.get(turn["role"], "user"),
                parts=[types.Part(text=turn["content"])],
            )
            for turn in prior_turns
        ]
        contents.append(types.Content(role="user", parts=[types.Part(text=user_message)]))

        logger.debug("Sending chat request (%d prior turns)", len(prior_turns))
        return await self._generate(
            contents,
            types.GenerateContentConfig(
                system_instruction=SYSTEM_INSTRUCTION,
                response_mime_type="application/json",
            ),
        )


class GeminiTranslationService(_GeminiClientMixin, TranslationService):
    """Translation Service backed by the same Gemini client."""

    def __init__(self, llm_client=None, model_name: str = config.TRANSLATION_MODEL) -> None:
        super().__init__(llm_client=llm_client, model_name=model_name)

    async def translate(self, text: str, target_language: str) -> str:
        language_name = config.SUPPORTED_LANGUAGES.get(target_language, target_language)
        return await self._generate(
            translation_request(text, language_name),
            types.GenerateContentConfig(
                system_instruction=TRANSLATION_INSTRUCTION,
                temperature=0.0,
                response_mime_type="text/plain",
            ),
        )
