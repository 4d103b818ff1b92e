"""
Health Classification Service

Rule-based state function mapping a number's aggregate delivery metrics to
Healthy / Degrading / Toxic.

Rules (evaluated in order, first match wins):
    1. success_rate < 0.10 AND consecutive_failures >= 4  -> Toxic
    2. consecutive_failures >= 6                          -> Toxic
    3. total_attempts >= 5 AND success_rate == 0          -> Toxic
    4. success_rate < 0.25 AND consecutive_failures >= 2  -> Degrading
    5. success_rate < 0.20 AND NOT has_recent_success     -> Degrading
    6. consecutive_failures >= 3                          -> Degrading
    7. otherwise                                          -> Healthy

"Recent" is measured against the dataset's latest delivery timestamp, not
the wall clock, so historical exports classify the same way every time.
"""

from datetime import datetime, timedelta
from typing import Optional

from delivery_intel.models.enums import HealthLabel
from delivery_intel.services.aggregator import NumberProfile


# =============================================================================
# Thresholds
# =============================================================================

TOXIC_RATE_MAX: float = 0.10
TOXIC_RATE_MIN_FAILURES: int = 4
TOXIC_CONSECUTIVE_FAILURES: int = 6
TOXIC_NEVER_DELIVERED_MIN_ATTEMPTS: int = 5

DEGRADING_RATE_MAX: float = 0.25
DEGRADING_RATE_MIN_FAILURES: int = 2
DEGRADING_STALE_RATE_MAX: float = 0.20
DEGRADING_CONSECUTIVE_FAILURES: int = 3

DEFAULT_RECENT_SUCCESS_WINDOW_DAYS: int = 14


def classify_health(
    success_rate: float,
    consecutive_failures: int,
    total_attempts: int,
    has_recent_success: bool,
) -> HealthLabel:
    """
    Classify a number's delivery health.

    Pure function of its four inputs.

    Args:
        success_rate: success_count / total_attempts (0 when no attempts)
        consecutive_failures: Trailing failures since the last success
        total_attempts: Number of delivery attempts
        has_recent_success: Success within the trailing recent window

    Returns:
        HealthLabel

    Example:
        >>> classify_health(0.05, 5, 10, False)
        <HealthLabel.TOXIC: 'Toxic'>
    """
    if success_rate < TOXIC_RATE_MAX and consecutive_failures >= TOXIC_RATE_MIN_FAILURES:
        return HealthLabel.TOXIC
    if consecutive_failures >= TOXIC_CONSECUTIVE_FAILURES:
        return HealthLabel.TOXIC
    if total_attempts >= TOXIC_NEVER_DELIVERED_MIN_ATTEMPTS and success_rate == 0:
        return HealthLabel.TOXIC

    if success_rate < DEGRADING_RATE_MAX and consecutive_failures >= DEGRADING_RATE_MIN_FAILURES:
        return HealthLabel.DEGRADING
    if success_rate < DEGRADING_STALE_RATE_MAX and not has_recent_success:
        return HealthLabel.DEGRADING
    if consecutive_failures >= DEGRADING_CONSECUTIVE_FAILURES:
        return HealthLabel.DEGRADING

    return HealthLabel.HEALTHY


def has_recent_success(
    last_success_timestamp: Optional[datetime],
    dataset_max_timestamp: Optional[datetime],
    window_days: int = DEFAULT_RECENT_SUCCESS_WINDOW_DAYS,
) -> bool:
    """
    Whether the last success falls inside the trailing window ending at the
    dataset's latest timestamp.

    Args:
        last_success_timestamp: The number's most recent success, if any
        dataset_max_timestamp: Latest delivery timestamp in the whole dataset
        window_days: Width of the trailing window in days

    Returns:
        True if last_success_timestamp >= dataset_max_timestamp - window_days
    """
    if last_success_timestamp is None or dataset_max_timestamp is None:
        return False
    return last_success_timestamp >= dataset_max_timestamp - timedelta(days=window_days)


def classify_profile(
    profile: NumberProfile,
    dataset_max_timestamp: Optional[datetime],
    window_days: int = DEFAULT_RECENT_SUCCESS_WINDOW_DAYS,
) -> Optional[HealthLabel]:
    """
    Classify a folded profile.

    Returns:
        HealthLabel, or None for a number with no delivery attempts
    """
    if profile.total_attempts == 0:
        return None
    return classify_health(
        success_rate=profile.success_rate,
        consecutive_failures=profile.consecutive_failures,
        total_attempts=profile.total_attempts,
        has_recent_success=has_recent_success(
            profile.last_success_timestamp, dataset_max_timestamp, window_days
        ),
    )
