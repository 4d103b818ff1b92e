"""
Consecutive-Failure Run Detection Service

Scans each number's chronological delivery attempts once for maximal runs of
consecutive unsuccessful attempts (a run breaks on any success).

Retention Rule:
    length >= min_consec_unsuccessful
    AND (span_days >= min_run_span_days OR length >= LONG_RUN_LENGTH)

span_days is fractional when compared and floored when reported. A trailing
run that reaches the end of the data is evaluated with the same rule and
marked open. The trailing run is the number's current consecutive_failures
streak, so one pass covers both interior and still-open runs and never emits
a run twice.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from delivery_intel.models.enums import HealthLabel, ResultCategory
from delivery_intel.models.schemas import ConsecutiveRun
from delivery_intel.services.aggregator import NumberProfile, SequencedAttempt

logger = logging.getLogger(__name__)


DEFAULT_MIN_CONSEC_UNSUCCESSFUL: int = 4
DEFAULT_MIN_RUN_SPAN_DAYS: int = 30

# A run this long qualifies regardless of how few days it spans
LONG_RUN_LENGTH: int = 6

SECONDS_PER_DAY: float = 86400.0


@dataclass(frozen=True)
class RunSpan:
    """Raw maximal run found by the scanner (indices into profile.attempts)."""
    start_index: int
    end_index: int
    is_open: bool

    @property
    def length(self) -> int:
        return self.end_index - self.start_index + 1


def span_days(start: datetime, end: datetime) -> float:
    """Fractional days between two timestamps (never negative)."""
    return max(0.0, (end - start).total_seconds() / SECONDS_PER_DAY)


def find_failure_runs(attempts: List[SequencedAttempt]) -> List[RunSpan]:
    """
    Find every maximal run of UnsuccessfulAttempt records.

    Args:
        attempts: One number's chronological delivery attempts

    Returns:
        RunSpans in chronological order; the last one is open when the data
        ends mid-run
    """
    spans: List[RunSpan] = []
    run_start: Optional[int] = None

    for i, sequenced in enumerate(attempts):
        if sequenced.attempt.result_category is ResultCategory.UNSUCCESSFUL_ATTEMPT:
            if run_start is None:
                run_start = i
        elif run_start is not None:
            spans.append(RunSpan(start_index=run_start, end_index=i - 1, is_open=False))
            run_start = None

    if run_start is not None:
        spans.append(RunSpan(start_index=run_start, end_index=len(attempts) - 1, is_open=True))

    return spans


def run_qualifies(length: int, days: float, min_consec_unsuccessful: int, min_run_span_days: int) -> bool:
    if length < min_consec_unsuccessful:
        return False
    return days >= min_run_span_days or length >= LONG_RUN_LENGTH


def detect_runs(
    profile: NumberProfile,
    min_consec_unsuccessful: int = DEFAULT_MIN_CONSEC_UNSUCCESSFUL,
    min_run_span_days: int = DEFAULT_MIN_RUN_SPAN_DAYS,
    health_label: Optional[HealthLabel] = None,
) -> List[ConsecutiveRun]:
    """
    Detect qualifying consecutive-failure runs for one number.

    Args:
        profile: Folded NumberProfile (not mutated)
        min_consec_unsuccessful: Minimum run length
        min_run_span_days: Minimum span in days (unless the run is long)
        health_label: The number's health label, copied onto every run

    Returns:
        One ConsecutiveRun per qualifying maximal run, chronological
    """
    runs: List[ConsecutiveRun] = []
    attempts = profile.attempts

    for span in find_failure_runs(attempts):
        start = attempts[span.start_index].attempt
        end = attempts[span.end_index].attempt
        days = span_days(start.timestamp, end.timestamp)

        if not run_qualifies(span.length, days, min_consec_unsuccessful, min_run_span_days):
            continue

        runs.append(ConsecutiveRun(
            phoneNumber=profile.phone_number,
            length=span.length,
            startTimestamp=start.timestamp,
            endTimestamp=end.timestamp,
            spanDays=math.floor(days),
            healthLabel=health_label,
            isOpen=span.is_open,
            totalAttempts=profile.total_attempts,
            overallSuccessRate=profile.success_rate,
            lastMessageId=end.message_id,
            lastCallerNumber=end.caller_number,
        ))

    return runs


def detect_all_runs(
    profiles: Dict[str, NumberProfile],
    health_labels: Dict[str, Optional[HealthLabel]],
    min_consec_unsuccessful: int = DEFAULT_MIN_CONSEC_UNSUCCESSFUL,
    min_run_span_days: int = DEFAULT_MIN_RUN_SPAN_DAYS,
) -> List[ConsecutiveRun]:
    """
    Detect runs across all numbers and order them for reporting.

    Ordering: length desc, span desc, end desc, then phone number and start
    for a deterministic total order.
    """
    runs: List[ConsecutiveRun] = []
    for phone_number, profile in profiles.items():
        runs.extend(detect_runs(
            profile,
            min_consec_unsuccessful=min_consec_unsuccessful,
            min_run_span_days=min_run_span_days,
            health_label=health_labels.get(phone_number),
        ))

    runs.sort(key=lambda r: (r.phoneNumber, r.startTimestamp))
    runs.sort(key=lambda r: (r.length, r.spanDays, r.endTimestamp), reverse=True)

    logger.info(f"Detected {len(runs)} qualifying consecutive-failure runs")
    return runs
