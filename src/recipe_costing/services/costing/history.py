"""
Cost history tracking.

A recipe's cost history is an ordered series of dated cost snapshots used
for trend analysis. Recording is append-or-update only:

- If the cost is within COST_EPSILON of the latest entry and that entry is
  outside the replacement window, nothing is recorded.
- If the latest entry is on the same calendar date (UTC), it is overwritten.
- If the latest entry is younger than the debounce window, it is overwritten.
- Otherwise a new entry is appended.

Viewing a recipe repeatedly therefore never floods the series. Retention
and trimming belong to the storage layer, not here.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple

from recipe_costing.utils.constants import COST_EPSILON, HISTORY_DEBOUNCE_SECONDS
from recipe_costing.utils.datetime_utils import ensure_aware

from .types import CostHistoryEntry

HISTORY_APPENDED = "appended"
HISTORY_UPDATED = "updated"
HISTORY_UNCHANGED = "unchanged"


def should_replace_latest(
    latest: CostHistoryEntry, now: datetime, debounce_seconds: float = HISTORY_DEBOUNCE_SECONDS
) -> bool:
    """True if a recording at ``now`` should overwrite ``latest``."""
    latest_date = ensure_aware(latest.date)
    now = ensure_aware(now)

    if latest_date.date() == now.date():
        return True
    elapsed = now - latest_date
    return timedelta(0) <= elapsed < timedelta(seconds=debounce_seconds)


def apply_history_entry(
    history: Sequence[CostHistoryEntry],
    cost: float,
    now: datetime,
    debounce_seconds: float = HISTORY_DEBOUNCE_SECONDS,
) -> Tuple[Tuple[CostHistoryEntry, ...], str]:
    """
    Record a cost into a history series.

    Args:
        history: Existing series, oldest first
        cost: Cost to record
        now: Recording time
        debounce_seconds: Window in which a repeat recording replaces the latest

    Returns:
        Tuple of (new_series, outcome). Outcome is "appended", "updated"
        (latest entry overwritten) or "unchanged" (series returned as is)

    Example:
        >>> series, outcome = apply_history_entry((), 10.0, datetime(2025, 1, 1))
        >>> len(series), outcome
        (1, 'appended')
    """
    entry = CostHistoryEntry(date=now, cost=cost)
    if history:
        latest = history[-1]
        if should_replace_latest(latest, now, debounce_seconds):
            return tuple(history[:-1]) + (entry,), HISTORY_UPDATED
        if abs(latest.cost - cost) <= COST_EPSILON:
            return tuple(history), HISTORY_UNCHANGED
    return tuple(history) + (entry,), HISTORY_APPENDED


@dataclass(frozen=True)
class CostTrend:
    """Change between the first and last entries of a history series."""

    first_cost: float
    last_cost: float
    change: float
    percent_change: Optional[float]
    entries: int


def cost_trend(history: Sequence[CostHistoryEntry]) -> CostTrend:
    """
    Summarize a history series.

    With fewer than two entries there is no trend: change is 0. The percent
    change is None when the first cost is 0.
    """
    if not history:
        return CostTrend(0.0, 0.0, 0.0, None, 0)

    first = history[0].cost
    last = history[-1].cost
    if len(history) < 2:
        return CostTrend(first, last, 0.0, 0.0, 1)

    change = last - first
    percent_change = (change / first) * 100 if first else None
    return CostTrend(first, last, change, percent_change, len(history))


class CostHistoryTracker:
    """In-memory per-recipe cost history.

    Used by callers that hold recipe snapshots in memory; the database-backed
    ``recipe_costing_service.record_recipe_cost_history`` applies the same
    rule through ``apply_history_entry``.
    """

    def __init__(
        self,
        histories: Optional[Dict[Any, Iterable[CostHistoryEntry]]] = None,
        debounce_seconds: float = HISTORY_DEBOUNCE_SECONDS,
    ):
        self._histories: Dict[Any, Tuple[CostHistoryEntry, ...]] = {
            recipe_id: tuple(entries) for recipe_id, entries in (histories or {}).items()
        }
        self.debounce_seconds = debounce_seconds

    def record(self, recipe_id: Any, cost: float, now: datetime) -> Tuple[CostHistoryEntry, ...]:
        """Record a cost for a recipe and return its updated series."""
        series, _ = apply_history_entry(
            self._histories.get(recipe_id, ()), cost, now, self.debounce_seconds
        )
        self._histories[recipe_id] = series
        return series

    def history(self, recipe_id: Any) -> Tuple[CostHistoryEntry, ...]:
        return self._histories.get(recipe_id, ())
