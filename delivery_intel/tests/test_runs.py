"""
Consecutive-Failure Run Detection Test Module

Test Coverage:
- Maximal run scanning (interior and trailing runs)
- Retention rule: minimum length AND (minimum span OR long run)
- Open trailing runs reported once
- Floored span days
- Global ordering across numbers
"""

from datetime import timedelta

from delivery_intel.models.enums import HealthLabel
from delivery_intel.services.aggregator import build_profiles
from delivery_intel.services.normalizer import normalize_rows
from delivery_intel.services.runs import detect_all_runs, detect_runs, find_failure_runs
from delivery_intel.tests.conftest import (
    BASE_TIME,
    OTHER_PHONE,
    profile_from_rows,
    rows_from_outcomes,
)


class TestFindFailureRuns:
    """Raw maximal run scanning."""

    def test_interior_and_trailing_runs(self):
        profile = profile_from_rows(rows_from_outcomes("FFFFSFF"))
        spans = find_failure_runs(profile.attempts)

        assert [(s.start_index, s.end_index, s.is_open) for s in spans] == [
            (0, 3, False),
            (5, 6, True),
        ]

    def test_all_successes_has_no_runs(self):
        profile = profile_from_rows(rows_from_outcomes("SSS"))
        assert find_failure_runs(profile.attempts) == []


class TestDetectRuns:
    """Retention rule and run fields."""

    def test_four_then_success_then_two(self):
        """[F,F,F,F,S,F,F] with min_consec=4, min_span=0 -> one run of length 4."""
        profile = profile_from_rows(rows_from_outcomes("FFFFSFF"))
        runs = detect_runs(profile, min_consec_unsuccessful=4, min_run_span_days=0)

        assert len(runs) == 1
        assert runs[0].length == 4
        assert runs[0].startTimestamp == BASE_TIME
        assert runs[0].endTimestamp == BASE_TIME + timedelta(days=3)
        assert runs[0].isOpen is False

    def test_short_span_rejected(self):
        profile = profile_from_rows(rows_from_outcomes("FFFF", step=timedelta(days=2)))
        assert detect_runs(profile, min_consec_unsuccessful=4, min_run_span_days=30) == []

    def test_long_run_qualifies_without_span(self):
        profile = profile_from_rows(rows_from_outcomes("FFFFFF", step=timedelta(hours=1)))
        runs = detect_runs(profile, min_consec_unsuccessful=4, min_run_span_days=30)

        assert len(runs) == 1
        assert runs[0].length == 6
        assert runs[0].spanDays == 0

    def test_span_days_floored(self):
        profile = profile_from_rows(rows_from_outcomes("FFFF", step=timedelta(days=10, hours=12)))
        runs = detect_runs(profile, min_consec_unsuccessful=4, min_run_span_days=30)

        assert len(runs) == 1
        assert runs[0].spanDays == 31

    def test_trailing_run_is_open_and_emitted_once(self):
        profile = profile_from_rows(rows_from_outcomes("SFFFFFFF"))
        runs = detect_runs(profile, min_consec_unsuccessful=4, min_run_span_days=30)

        assert len(runs) == 1
        assert runs[0].isOpen is True
        assert runs[0].length == profile.consecutive_failures == 7

    def test_run_carries_number_context(self):
        profile = profile_from_rows(rows_from_outcomes("SFFFFFF", message_id="m7"))
        run = detect_runs(profile, 4, 30, health_label=HealthLabel.TOXIC)[0]

        assert run.healthLabel is HealthLabel.TOXIC
        assert run.totalAttempts == 7
        assert run.lastMessageId == "m7"
        assert abs(run.overallSuccessRate - 1 / 7) < 1e-9


class TestDetectAllRuns:
    """Ordering across numbers."""

    def test_sorted_by_length_then_span(self):
        rows = rows_from_outcomes("FFFFFF")
        rows += rows_from_outcomes("FFFFFFFF", number=OTHER_PHONE)
        batch = normalize_rows(rows)
        profiles = build_profiles(batch.attempts)

        runs = detect_all_runs(profiles, {}, min_consec_unsuccessful=4, min_run_span_days=30)

        assert [r.length for r in runs] == [8, 6]
        assert runs[0].phoneNumber == OTHER_PHONE
