"""
Variability Scoring Service

Computes a 0-100 diversity score per number from how its delivery attempts
are spread across messages, caller numbers, days of the week and hours of
the day, and how often the same message was sent twice in a row. Low scores
indicate repetitive, reputation-damaging contact patterns.

Score Formula:
    msgDiversity    = (1 - topMessageShare) * 100
    callerDiversity = (1 - topCallerShare) * 100
    dayEntropyNorm  = H(dayOfWeekCounts) / log2(7)
    hourEntropyNorm = H(hourCounts) / log2(24)
    backToBackRatio = backToBackIdenticalCount / (totalAttempts - 1)

    score = round(clamp(0, 100,
        msgDiversity * 0.30
        + callerDiversity * 0.20
        + dayEntropyNorm * 100 * 0.25
        + hourEntropyNorm * 100 * 0.15
        + (1 - backToBackRatio) * 100 * 0.10))

Message and caller shares count delivery attempts only; pre-delivery rows
never move the score.

A number with a single delivery attempt gets the neutral score 50.
"""

import math
from typing import Mapping, Optional, Sequence

import numpy as np

from delivery_intel.models.schemas import VariabilityBreakdown
from delivery_intel.services.aggregator import NumberProfile


# =============================================================================
# Constants
# =============================================================================

MESSAGE_WEIGHT: float = 0.30
CALLER_WEIGHT: float = 0.20
DAY_WEIGHT: float = 0.25
HOUR_WEIGHT: float = 0.15
BACK_TO_BACK_WEIGHT: float = 0.10

NEUTRAL_SCORE: int = 50

_LOG2_DAYS: float = math.log2(7)
_LOG2_HOURS: float = math.log2(24)


# =============================================================================
# Numeric Helpers
# =============================================================================


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def shannon_entropy(counts: Sequence[int]) -> float:
    """
    Shannon entropy (base 2) of a count distribution.

    Args:
        counts: Non-negative counts per category

    Returns:
        -sum(p * log2(p)) over nonzero categories, 0 if the total is 0

    Example:
        >>> shannon_entropy([5, 5])
        1.0
        >>> shannon_entropy([0, 0, 0])
        0.0
    """
    values = np.asarray(counts, dtype=np.float64)
    total = values.sum()
    if total <= 0:
        return 0.0
    probabilities = values[values > 0] / total
    return float(-(probabilities * np.log2(probabilities)).sum())


def top_share(counts: Mapping[str, int], total: int) -> float:
    """Share of the most frequent key, clamped to [0, 1]."""
    if total <= 0 or not counts:
        return 0.0
    return clamp(max(counts.values()) / total, 0.0, 1.0)


# =============================================================================
# Scoring
# =============================================================================


def variability_breakdown(profile: NumberProfile) -> Optional[VariabilityBreakdown]:
    """
    Compute the variability score and its components for one number.

    Args:
        profile: Folded NumberProfile (not mutated)

    Returns:
        VariabilityBreakdown, or None when the number has no delivery attempts
    """
    total = profile.total_attempts
    if total == 0:
        return None

    if total == 1:
        return VariabilityBreakdown(
            messageDiversity=0.0,
            callerDiversity=0.0,
            dayEntropy=0.0,
            hourEntropy=0.0,
            backToBackRatio=0.0,
            score=NEUTRAL_SCORE,
        )

    msg_diversity = (1 - top_share(profile.attempt_message_counts, total)) * 100
    caller_diversity = (1 - top_share(profile.attempt_caller_counts, total)) * 100
    day_entropy = clamp(shannon_entropy(profile.day_of_week_counts) / _LOG2_DAYS, 0.0, 1.0)
    hour_entropy = clamp(shannon_entropy(profile.hour_counts) / _LOG2_HOURS, 0.0, 1.0)
    back_to_back = clamp(profile.back_to_back_identical_count / (total - 1), 0.0, 1.0)

    raw_score = (
        msg_diversity * MESSAGE_WEIGHT
        + caller_diversity * CALLER_WEIGHT
        + day_entropy * 100 * DAY_WEIGHT
        + hour_entropy * 100 * HOUR_WEIGHT
        + (1 - back_to_back) * 100 * BACK_TO_BACK_WEIGHT
    )

    return VariabilityBreakdown(
        messageDiversity=msg_diversity,
        callerDiversity=caller_diversity,
        dayEntropy=day_entropy,
        hourEntropy=hour_entropy,
        backToBackRatio=back_to_back,
        score=int(round(clamp(raw_score, 0.0, 100.0))),
    )


def variability_score(profile: NumberProfile) -> Optional[int]:
    """Shortcut returning only the 0-100 score (None without attempts)."""
    breakdown = variability_breakdown(profile)
    return breakdown.score if breakdown is not None else None
