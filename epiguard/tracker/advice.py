"""
Advice Resolver — maps a symptom severity label to caregiving advice.

Pure table lookup.  The conversational service reports severities as
High/Moderate/Low while caregiving copy has historically used
Severe/Moderate/Mild, so both vocabularies resolve onto ``Severity``.
"""

from __future__ import annotations

from epiguard.tracker.models import Severity

ADVICE_TABLE: dict[Severity, str] = {
    Severity.HIGH: "Seek immediate medical attention. Contact emergency services if needed.",
    Severity.MODERATE: "Contact your healthcare provider for guidance. Monitor symptoms closely.",
    Severity.LOW: "Rest and monitor your symptoms. Follow your regular treatment plan.",
}

DEFAULT_ADVICE = "Monitor your symptoms and consult your healthcare provider if they worsen."

SEVERITY_ALIASES: dict[str, Severity] = {
    "high": Severity.HIGH,
    "severe": Severity.HIGH,
    "moderate": Severity.MODERATE,
    "low": Severity.LOW,
    "mild": Severity.LOW,
}


def normalize_severity(label: str | None) -> Severity | None:
    """Canonical severity for a reported label, or None if unrecognised."""
    if not label:
        return None
    return SEVERITY_ALIASES.get(label.strip().lower())


def resolve_advice(label: str | None) -> str:
    severity = normalize_severity(label)
    if severity is None:
        return DEFAULT_ADVICE
    return ADVICE_TABLE[severity]
