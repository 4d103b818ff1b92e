"""
Number Trend Summary Service

Per-number cadence and timing summary over a number's delivery attempts:

- Cadence: day gaps between consecutive attempts and a readable
  "M/D/YYYY | +g1 | +g2" string, with min / avg / median / max gap
- Frequency: attempts per week and per calendar month spanned
- Top message, caller and message/caller combination (with delivered rate)
- Best and worst hour, best day of week, among buckets with enough attempts
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from delivery_intel.models.enums import DAY_NAMES
from delivery_intel.models.schemas import BucketPick
from delivery_intel.services.aggregator import NumberProfile


# Buckets with fewer attempts are not eligible for best/worst picks
MIN_BUCKET_ATTEMPTS: int = 3

BLANK_LABEL: str = "(blank)"
COMBO_SEPARATOR: str = " ⟂ "

SECONDS_PER_DAY: float = 86400.0
SECONDS_PER_WEEK: float = 7 * SECONDS_PER_DAY


@dataclass
class _Tally:
    total: int = 0
    delivered: int = 0

    @property
    def rate(self) -> float:
        return self.delivered / self.total if self.total else 0.0


def round2(value: float) -> float:
    return round(value, 2)


# =============================================================================
# Cadence
# =============================================================================


def attempt_gaps(timestamps: List[datetime]) -> List[int]:
    """Whole-day gaps between consecutive timestamps (rounded, never negative)."""
    return [
        max(0, int(round((later - earlier).total_seconds() / SECONDS_PER_DAY)))
        for earlier, later in zip(timestamps, timestamps[1:])
    ]


def cadence_string(first: datetime, gaps: List[int]) -> str:
    """
    Example:
        >>> cadence_string(datetime(2024, 1, 5), [2, 7])
        '1/5/2024 | +2 | +7'
    """
    base = f"{first.month}/{first.day}/{first.year}"
    if not gaps:
        return base
    return " | ".join([base] + [f"+{gap}" for gap in gaps])


def weeks_spanned(first: datetime, last: datetime) -> int:
    return max(1, math.ceil(abs((last - first).total_seconds()) / SECONDS_PER_WEEK))


def months_spanned(first: datetime, last: datetime) -> int:
    """Calendar months touched by the range, inclusive, at least 1."""
    months = (last.year - first.year) * 12 + (last.month - first.month)
    return max(1, months + 1)


# =============================================================================
# Top Keys and Bucket Picks
# =============================================================================


def pick_top_key(tallies: Dict[Any, _Tally]) -> Optional[Any]:
    """
    Most frequent key; ties go to more deliveries, then case-insensitive key order.
    """
    if not tallies:
        return None
    return min(
        tallies,
        key=lambda k: (-tallies[k].total, -tallies[k].delivered, str(k).lower()),
    )


def pick_bucket(
    tallies: Dict[int, _Tally],
    best: bool,
    min_attempts: int = MIN_BUCKET_ATTEMPTS,
) -> Optional[Tuple[int, _Tally]]:
    """
    Bucket with the highest (best=True) or lowest success rate among buckets
    with at least min_attempts; ties go to more attempts, then lower key.
    """
    chosen: Optional[Tuple[int, _Tally]] = None
    for key in sorted(tallies):
        tally = tallies[key]
        if tally.total < min_attempts:
            continue
        if chosen is None:
            chosen = (key, tally)
            continue
        rate, chosen_rate = round2(tally.rate), round2(chosen[1].rate)
        better = rate > chosen_rate if best else rate < chosen_rate
        if better or (rate == chosen_rate and tally.total > chosen[1].total):
            chosen = (key, tally)
    return chosen


def _to_pick(chosen: Optional[Tuple[int, _Tally]], labels: Optional[List[str]] = None) -> Optional[BucketPick]:
    if chosen is None:
        return None
    key, tally = chosen
    return BucketPick(
        key=key,
        label=labels[key] if labels else str(key),
        attempts=tally.total,
        successRate=tally.rate,
    )


# =============================================================================
# Summary
# =============================================================================


def summarize_trends(profile: NumberProfile) -> Dict[str, Any]:
    """
    Compute the cadence / timing fields of a NumberSummary.

    Args:
        profile: Folded NumberProfile (not mutated)

    Returns:
        Dict keyed by NumberSummary field names; empty for numbers without
        delivery attempts
    """
    if not profile.attempts:
        return {}

    records = [sequenced.attempt for sequenced in profile.attempts]
    timestamps = [record.timestamp for record in records]
    first, last = timestamps[0], timestamps[-1]
    gaps = attempt_gaps(timestamps)

    messages: Dict[str, _Tally] = {}
    callers: Dict[str, _Tally] = {}
    combos: Dict[str, _Tally] = {}
    hours: Dict[int, _Tally] = {}
    days: Dict[int, _Tally] = {}

    for record in records:
        message = record.message_id or BLANK_LABEL
        caller = record.caller_number or BLANK_LABEL
        keyed = (
            (messages, message),
            (callers, caller),
            (combos, f"{message}{COMBO_SEPARATOR}{caller}"),
            (hours, record.hour_of_day),
            (days, record.day_of_week),
        )
        for tallies, key in keyed:
            tally = tallies.setdefault(key, _Tally())
            tally.total += 1
            if record.is_success:
                tally.delivered += 1

    top_combo = pick_top_key(combos)
    attempts = len(records)

    return {
        "firstAttempt": first,
        "lastAttempt": last,
        "cadence": cadence_string(first, gaps),
        "gapCount": len(gaps),
        "gapMin": float(min(gaps)) if gaps else 0.0,
        "gapAvg": round2(float(np.mean(gaps))) if gaps else 0.0,
        "gapMedian": round2(float(np.median(gaps))) if gaps else 0.0,
        "gapMax": float(max(gaps)) if gaps else 0.0,
        "attemptsPerWeek": round2(attempts / weeks_spanned(first, last)),
        "attemptsPerMonth": round2(attempts / months_spanned(first, last)),
        "topMessageId": pick_top_key(messages) or "",
        "topCallerNumber": pick_top_key(callers) or "",
        "topCombo": top_combo or "",
        "topComboSuccessRate": combos[top_combo].rate if top_combo else 0.0,
        "bestHour": _to_pick(pick_bucket(hours, best=True)),
        "worstHour": _to_pick(pick_bucket(hours, best=False)),
        "bestDayOfWeek": _to_pick(pick_bucket(days, best=True), DAY_NAMES),
    }
