"""
Risk Adopter — session risk follows the conversational service.

The declared ``riskLevel`` of the latest update is taken as-is.  Risk is
never recomputed from symptom severities here; medical judgment stays with
the upstream service.
"""

from __future__ import annotations

import logging

from epiguard.tracker.models import RiskLevel, StructuredUpdate

logger = logging.getLogger("tracker.risk")


def adopt_risk(current: RiskLevel, update: StructuredUpdate) -> RiskLevel:
    if update.risk_level is None:
        return current
    if update.risk_level != current:
        logger.info("Session risk %s → %s", current.value, update.risk_level.value)
    return update.risk_level
