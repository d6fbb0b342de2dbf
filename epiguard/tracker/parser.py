"""
Response Parser — raw model text → StructuredUpdate.

Never raises.  Anything that does not decode into a valid update becomes
a fallback update that carries the raw text as the assistant message, so
the conversation continues even when the model answers in plain prose.
"""

from __future__ import annotations

import json
import logging
import re

from epiguard.tracker.models import StructuredUpdate

logger = logging.getLogger("tracker.parser")

# Opening fence with an optional language tag, closing fence at the very end
_OPEN_FENCE = re.compile(r"^```[\w-]*[ \t]*\n?")
_CLOSE_FENCE = re.compile(r"\n?[ \t]*```$")


def strip_code_fence(text: str) -> str:
    """Remove a surrounding ```json ... ``` fence if the model added one."""
    raw = text.strip()
    if raw.startswith("```"):
        raw = _OPEN_FENCE.sub("", raw, count=1)
        raw = _CLOSE_FENCE.sub("", raw, count=1)
        raw = raw.strip()
    return raw


def parse_model_response(raw_text: str | None) -> StructuredUpdate:
    """Decode the model's reply, degrading to a fallback update on failure."""
    if raw_text is None:
        raw_text = ""

    try:
        data = json.loads(strip_code_fence(raw_text))
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        return StructuredUpdate.model_validate(data)
    except Exception as exc:
        # includes RecursionError from deeply nested arrays
        logger.warning(
            "Model response is not a structured update (%s), using fallback: %.200s",
            type(exc).__name__, raw_text,
        )
        return StructuredUpdate.fallback(raw_text)
