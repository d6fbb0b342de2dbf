"""
Timeline Reconciler — merges one StructuredUpdate into the SymptomSet.

Pass order (fixed, the result depends on it):
  1. Remove entries named in ``symptomActions.remove``
  2. Update entries named in ``symptomActions.update`` (never inserts)
  3. Stage every ``symptoms`` observation as a fresh entry
  4. Evict pre-existing survivors older than the rolling window
  5. Drop survivors superseded by a staged entry of the same name
  6. Result = survivors + staged

The pass works on a copy.  The caller's SymptomSet is never touched, so a
failure part-way leaves the previous timeline exactly as it was.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from epiguard import settings as config
from epiguard.tracker.advice import resolve_advice
from epiguard.tracker.models import (
    StructuredUpdate,
    Symptom,
    SymptomSet,
    canonical_name,
)

logger = logging.getLogger("tracker.timeline")

SYMPTOM_WINDOW = timedelta(hours=config.SYMPTOM_WINDOW_HOURS)


@dataclass
class ReconciliationResult:
    """Outcome of one reconciliation pass."""

    symptoms: SymptomSet
    removed: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    dropped_updates: list[str] = field(default_factory=list)  # update for an unknown name
    evicted: list[str] = field(default_factory=list)
    superseded: list[str] = field(default_factory=list)
    added: list[str] = field(default_factory=list)


def record_symptom(name: str, severity: str, timestamp: datetime) -> Symptom:
    """Build an entry whose advice matches its severity."""
    return Symptom(
        name=name,
        severity=severity,
        timestamp=timestamp,
        advice=resolve_advice(severity),
    )


def reconcile(
    current: SymptomSet,
    update: StructuredUpdate,
    now: datetime | None = None,
    window: timedelta = SYMPTOM_WINDOW,
) -> ReconciliationResult:
    """Apply one update to ``current`` and return the new timeline."""
    now = now or datetime.now(timezone.utc)
    actions = update.symptom_actions
    result = ReconciliationResult(symptoms={})

    pool: SymptomSet = {key: entry.model_copy() for key, entry in current.items()}

    # 1. Remove
    for name in actions.remove:
        key = canonical_name(name)
        if pool.pop(key, None) is not None:
            result.removed.append(key)

    # 2. Update existing entries only
    for obs in actions.update:
        key = obs.key
        existing = pool.get(key)
        if existing is None:
            result.dropped_updates.append(key)
            continue
        severity = obs.severity or existing.severity
        pool[key] = record_symptom(existing.name, severity, now)
        result.updated.append(key)

    # 3. Stage new entries (later duplicates win)
    staged: SymptomSet = {}
    for obs in update.symptoms:
        staged[obs.key] = record_symptom(obs.name, obs.severity, now)

    # 4. Evict stale pre-existing entries
    cutoff = now - window
    for key in list(pool):
        if pool[key].timestamp < cutoff:
            del pool[key]
            result.evicted.append(key)

    # 5. New entries win over survivors
    for key in staged:
        if key in pool:
            del pool[key]
            result.superseded.append(key)

    pool.update(staged)
    result.symptoms = pool
    result.added = list(staged)

    if not update.is_empty() or result.evicted:
        logger.info(
            "Reconciled timeline: %d entries (removed=%s updated=%s added=%s evicted=%s)",
            len(pool), result.removed, result.updated, result.added, result.evicted,
        )
    if result.dropped_updates:
        logger.debug("Ignored updates for unknown symptoms: %s", result.dropped_updates)
    return result
