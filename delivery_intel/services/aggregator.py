"""
Per-Number Aggregator Service

Folds canonical Attempt records into one NumberProfile per destination number.

Ordering Precondition:
    Delivery attempts are sorted globally by (timestamp, input sequence)
    ascending before the fold. Every per-number sequence is therefore
    chronological and ties keep their input order. The fold never relies on
    the order rows arrived in.

Per-Attempt Steps (delivery attempts, in order):
    1. total_attempts += 1, attempt_index += 1
    2. message / caller / account counts += 1, plus the attempt-only
       message / caller counts used for variability scoring
    3. hour-of-day / day-of-week histograms += 1
    4. back_to_back_identical_count += 1 when message_id equals the previous
       delivery attempt's message_id for the same number
    5. Success: success_count += 1, consecutive_failures = 0,
       attempt_index = 0, last_success_timestamp = timestamp
    6. Otherwise: unsuccessful_count += 1, consecutive_failures += 1

OtherNonAttempt records are folded afterwards. They only bump the entity
count maps and non_attempt_count; they never touch the attempt sequence or
the attempt-only counts.

Invariant:
    success_count + unsuccessful_count == total_attempts
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from delivery_intel.services.normalizer import Attempt


HOURS_PER_DAY: int = 24
DAYS_PER_WEEK: int = 7


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class SequencedAttempt:
    """
    A delivery attempt together with the fold state it carried when it occurred.

    Attributes:
        attempt: The canonical attempt.
        attempt_index: Delivery attempts since the last success, including this one.
        consecutive_failures: Trailing failures after applying this attempt.
    """
    attempt: Attempt
    attempt_index: int
    consecutive_failures: int


@dataclass
class NumberProfile:
    """
    Stateful per-number accumulator.

    Created on first sight of a phone number, mutated attempt by attempt in
    timestamp order, then treated as read-only by the classifier, scorer,
    run detector and rollups.
    """
    phone_number: str
    attempts: List[SequencedAttempt] = field(default_factory=list)

    attempt_index: int = 0
    consecutive_failures: int = 0
    total_attempts: int = 0
    success_count: int = 0
    unsuccessful_count: int = 0
    non_attempt_count: int = 0
    last_success_timestamp: Optional[datetime] = None

    message_counts: Dict[str, int] = field(default_factory=dict)
    caller_counts: Dict[str, int] = field(default_factory=dict)
    account_counts: Dict[str, int] = field(default_factory=dict)
    attempt_message_counts: Dict[str, int] = field(default_factory=dict)
    attempt_caller_counts: Dict[str, int] = field(default_factory=dict)
    hour_counts: List[int] = field(default_factory=lambda: [0] * HOURS_PER_DAY)
    day_of_week_counts: List[int] = field(default_factory=lambda: [0] * DAYS_PER_WEEK)
    back_to_back_identical_count: int = 0

    @property
    def success_rate(self) -> float:
        if self.total_attempts == 0:
            return 0.0
        return self.success_count / self.total_attempts

    @property
    def first_attempt_timestamp(self) -> Optional[datetime]:
        return self.attempts[0].attempt.timestamp if self.attempts else None

    @property
    def last_attempt_timestamp(self) -> Optional[datetime]:
        return self.attempts[-1].attempt.timestamp if self.attempts else None

    def record_attempt(self, attempt: Attempt) -> SequencedAttempt:
        """
        Apply one delivery attempt to the profile (steps 1-6 of the fold).

        Args:
            attempt: Delivery attempt belonging to this number, not older
                than any attempt already recorded

        Returns:
            The SequencedAttempt appended to the profile
        """
        previous = self.attempts[-1].attempt if self.attempts else None

        self.total_attempts += 1
        self.attempt_index += 1
        index_at_attempt = self.attempt_index

        self._count_entities(attempt)
        _bump(self.attempt_message_counts, attempt.message_id)
        _bump(self.attempt_caller_counts, attempt.caller_number)

        self.hour_counts[attempt.hour_of_day] += 1
        self.day_of_week_counts[attempt.day_of_week] += 1

        if previous is not None and previous.message_id == attempt.message_id:
            self.back_to_back_identical_count += 1

        if attempt.is_success:
            self.success_count += 1
            self.consecutive_failures = 0
            self.attempt_index = 0
            self.last_success_timestamp = attempt.timestamp
        else:
            self.unsuccessful_count += 1
            self.consecutive_failures += 1

        sequenced = SequencedAttempt(
            attempt=attempt,
            attempt_index=index_at_attempt,
            consecutive_failures=self.consecutive_failures,
        )
        self.attempts.append(sequenced)
        return sequenced

    def record_non_attempt(self, attempt: Attempt) -> None:
        """Count a pre-delivery (no timestamp) record for entity visibility only."""
        self.non_attempt_count += 1
        self._count_entities(attempt)

    def _count_entities(self, attempt: Attempt) -> None:
        _bump(self.message_counts, attempt.message_id)
        _bump(self.caller_counts, attempt.caller_number)
        _bump(self.account_counts, attempt.account_id)


def _bump(counts: Dict[str, int], key: str) -> None:
    counts[key] = counts.get(key, 0) + 1


# =============================================================================
# Fold
# =============================================================================


def sort_attempts(attempts: Iterable[Attempt]) -> List[Attempt]:
    """
    Sort delivery attempts globally by timestamp, then by input sequence.

    Raises:
        ValueError: If a record without a timestamp is passed in
    """
    attempts = list(attempts)
    for attempt in attempts:
        if attempt.timestamp is None:
            raise ValueError(
                f"Non-attempt record for {attempt.phone_number} cannot be sequenced"
            )
    return sorted(attempts, key=lambda a: (a.timestamp, a.sequence))


def build_profiles(
    attempts: Iterable[Attempt],
    non_attempts: Iterable[Attempt] = (),
) -> Dict[str, NumberProfile]:
    """
    Build NumberProfiles with a single forward fold.

    Args:
        attempts: Delivery attempts in any order
        non_attempts: OtherNonAttempt records (no timestamp)

    Returns:
        Mapping of phone number to its profile, in first-seen order of the
        chronological fold
    """
    profiles: Dict[str, NumberProfile] = {}

    for attempt in sort_attempts(attempts):
        profile = profiles.get(attempt.phone_number)
        if profile is None:
            profile = NumberProfile(phone_number=attempt.phone_number)
            profiles[attempt.phone_number] = profile
        profile.record_attempt(attempt)

    for record in non_attempts:
        profile = profiles.get(record.phone_number)
        if profile is None:
            profile = NumberProfile(phone_number=record.phone_number)
            profiles[record.phone_number] = profile
        profile.record_non_attempt(record)

    return profiles
