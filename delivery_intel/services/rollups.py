"""
Global Rollup Service

Builds dataset-wide tables from the folded profiles:

1. HOURLY / DAILY GLOBAL STATS - delivery attempts, successes and failures in
   24 hour-of-day and 7 day-of-week buckets
2. ENTITY STATS - per-account, per-message and per-caller rollups with unique
   phone-number counts and day-of-week histograms
3. DAY-USAGE PATTERN - flags entities that are only used on a couple of
   weekdays and recommends diversifying delivery days
4. LIST QUALITY GRADE - letter grade from the health distribution

Only delivery attempts contribute to these tables.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Set

from delivery_intel.models.enums import DAY_NAMES, EntityType, ListGrade
from delivery_intel.models.schemas import (
    DayUsagePattern,
    EntityStats,
    MessageInfo,
    TimeBucketStats,
)
from delivery_intel.services.aggregator import DAYS_PER_WEEK, HOURS_PER_DAY, NumberProfile
from delivery_intel.services.normalizer import Attempt, normalize_phone


# =============================================================================
# Constants
# =============================================================================

# A day counts as "used" when it carries more than this share of attempts
DAY_USAGE_SHARE: float = 0.10

# Flag when at most this many non-Sunday days are used
LIMITED_DAY_USAGE_MAX_DAYS: int = 2

BLANK_LABEL: str = "(blank)"


# =============================================================================
# Time Rollups
# =============================================================================


def _time_buckets(
    profiles: Iterable[NumberProfile],
    size: int,
    key_fn: Callable[[Attempt], int],
    label_fn: Callable[[int], str],
) -> List[TimeBucketStats]:
    attempts = [0] * size
    successful = [0] * size

    for profile in profiles:
        for sequenced in profile.attempts:
            key = key_fn(sequenced.attempt)
            attempts[key] += 1
            if sequenced.attempt.is_success:
                successful[key] += 1

    return [
        TimeBucketStats(
            key=key,
            label=label_fn(key),
            attempts=attempts[key],
            successful=successful[key],
            unsuccessful=attempts[key] - successful[key],
            successRate=(successful[key] / attempts[key]) if attempts[key] else 0.0,
        )
        for key in range(size)
    ]


def build_hourly_stats(profiles: Iterable[NumberProfile]) -> List[TimeBucketStats]:
    """24 hour-of-day buckets (0-23, UTC)."""
    return _time_buckets(profiles, HOURS_PER_DAY, lambda a: a.hour_of_day, str)


def build_daily_stats(profiles: Iterable[NumberProfile]) -> List[TimeBucketStats]:
    """7 day-of-week buckets (0 = Sunday)."""
    return _time_buckets(profiles, DAYS_PER_WEEK, lambda a: a.day_of_week, lambda d: DAY_NAMES[d])


# =============================================================================
# Day-Usage Pattern
# =============================================================================


def detect_day_usage_pattern(day_of_week_counts: List[int], total: int) -> DayUsagePattern:
    """
    Detect a limited day-of-week usage pattern.

    A day is "used" when its count exceeds 10% of the entity's total
    attempts. When the used days excluding Sunday number two or fewer, the
    entity is flagged with a recommendation to diversify.

    Args:
        day_of_week_counts: 7 counts, index 0 = Sunday
        total: Total attempts for the entity

    Returns:
        DayUsagePattern
    """
    used = [
        day for day in range(DAYS_PER_WEEK)
        if total > 0 and day_of_week_counts[day] > total * DAY_USAGE_SHARE
    ]
    used_names = [DAY_NAMES[day] for day in used]

    if total <= 0:
        return DayUsagePattern(limitedDayUsage=False, usedDays=used_names)

    weekdays_used = [day for day in used if day != 0]
    if len(weekdays_used) > LIMITED_DAY_USAGE_MAX_DAYS:
        return DayUsagePattern(limitedDayUsage=False, usedDays=used_names)

    if weekdays_used:
        days_text = ", ".join(DAY_NAMES[day] for day in weekdays_used)
        recommendation = (
            f"Deliveries concentrate on {days_text}. "
            f"Spread attempts across more days of the week to improve reach."
        )
    else:
        recommendation = (
            "Deliveries rarely land on weekdays. "
            "Spread attempts across more days of the week to improve reach."
        )
    return DayUsagePattern(limitedDayUsage=True, usedDays=used_names, recommendation=recommendation)


# =============================================================================
# Entity Rollups
# =============================================================================


@dataclass
class _EntityAccumulator:
    total: int = 0
    successful: int = 0
    phone_numbers: Set[str] = field(default_factory=set)
    day_of_week_counts: List[int] = field(default_factory=lambda: [0] * DAYS_PER_WEEK)


_ENTITY_KEYS: Dict[EntityType, Callable[[Attempt], str]] = {
    EntityType.ACCOUNT: lambda a: a.account_id,
    EntityType.MESSAGE: lambda a: a.message_id,
    EntityType.CALLER: lambda a: a.caller_number,
}


def build_entity_stats(
    profiles: Iterable[NumberProfile],
    entity_type: EntityType,
    display_names: Optional[Mapping[str, str]] = None,
    descriptions: Optional[Mapping[str, str]] = None,
) -> List[EntityStats]:
    """
    Fold every delivery attempt into its entity bucket.

    Args:
        profiles: Folded NumberProfiles
        entity_type: Which id to group by
        display_names: Optional id -> display name directory
        descriptions: Optional id -> description (messages)

    Returns:
        EntityStats sorted by total desc, then id
    """
    key_fn = _ENTITY_KEYS[entity_type]
    display_names = display_names or {}
    descriptions = descriptions or {}
    buckets: Dict[str, _EntityAccumulator] = {}

    for profile in profiles:
        for sequenced in profile.attempts:
            attempt = sequenced.attempt
            key = key_fn(attempt)
            bucket = buckets.get(key)
            if bucket is None:
                bucket = _EntityAccumulator()
                buckets[key] = bucket
            bucket.total += 1
            if attempt.is_success:
                bucket.successful += 1
            bucket.phone_numbers.add(attempt.phone_number)
            bucket.day_of_week_counts[attempt.day_of_week] += 1

    stats = [
        EntityStats(
            id=key,
            displayName=display_names.get(key) or key or BLANK_LABEL,
            description=descriptions.get(key, ""),
            total=bucket.total,
            successful=bucket.successful,
            unsuccessful=bucket.total - bucket.successful,
            successRate=bucket.successful / bucket.total if bucket.total else 0.0,
            uniquePhoneNumberCount=len(bucket.phone_numbers),
            dayOfWeekCounts=list(bucket.day_of_week_counts),
            dayPattern=detect_day_usage_pattern(bucket.day_of_week_counts, bucket.total),
        )
        for key, bucket in buckets.items()
    ]
    stats.sort(key=lambda s: (-s.total, s.id))
    return stats


def build_account_stats(
    profiles: Iterable[NumberProfile],
    account_directory: Optional[Mapping[str, str]] = None,
) -> List[EntityStats]:
    return build_entity_stats(profiles, EntityType.ACCOUNT, account_directory)


def build_message_stats(
    profiles: Iterable[NumberProfile],
    message_directory: Optional[Mapping[str, MessageInfo]] = None,
) -> List[EntityStats]:
    message_directory = message_directory or {}
    names = {key: info.name for key, info in message_directory.items()}
    descriptions = {key: info.description for key, info in message_directory.items()}
    return build_entity_stats(profiles, EntityType.MESSAGE, names, descriptions)


def build_caller_stats(
    profiles: Iterable[NumberProfile],
    caller_directory: Optional[Mapping[str, str]] = None,
) -> List[EntityStats]:
    """
    Caller rollup. Directory keys are normalized like caller ids, so
    "+1 (555) 000-1111" and "5550001111" name the same caller.
    """
    names = {
        normalize_phone(key, allow_generic=True) or key: name
        for key, name in (caller_directory or {}).items()
    }
    return build_entity_stats(profiles, EntityType.CALLER, names)


# =============================================================================
# List Quality Grade
# =============================================================================


def calculate_list_grade(
    healthy_pct: float,
    toxic_pct: float,
    never_delivered_pct: float,
) -> ListGrade:
    """
    Letter grade for a whole number list (percentages on a 0-100 scale).

    Example:
        >>> calculate_list_grade(85.0, 2.0, 5.0)
        <ListGrade.A: 'A'>
    """
    if healthy_pct >= 80 and toxic_pct < 5 and never_delivered_pct < 10:
        return ListGrade.A
    if healthy_pct >= 60 and toxic_pct < 10 and never_delivered_pct < 20:
        return ListGrade.B
    if healthy_pct >= 40 and toxic_pct < 20:
        return ListGrade.C
    return ListGrade.D
