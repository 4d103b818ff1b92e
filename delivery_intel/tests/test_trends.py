"""
Number Trend Summary Test Module

Test Coverage:
- Cadence gaps and cadence string
- Attempts per week / month
- Top message / caller / combo picks and tie-breaks
- Best / worst hour and best day of week with the minimum-attempts rule
"""

from datetime import datetime, timedelta, timezone

from delivery_intel.services.aggregator import NumberProfile
from delivery_intel.services.trends import (
    _Tally,
    attempt_gaps,
    cadence_string,
    months_spanned,
    pick_bucket,
    pick_top_key,
    summarize_trends,
    weeks_spanned,
)
from delivery_intel.tests.conftest import BASE_TIME, PHONE, make_row, profile_from_rows, rows_from_outcomes


class TestCadence:
    """Gap helpers."""

    def test_gaps_round_to_whole_days(self):
        stamps = [BASE_TIME, BASE_TIME + timedelta(days=2, hours=13), BASE_TIME + timedelta(days=3)]
        assert attempt_gaps(stamps) == [3, 0]

    def test_cadence_string(self):
        assert cadence_string(datetime(2024, 1, 5), [2, 7]) == "1/5/2024 | +2 | +7"
        assert cadence_string(datetime(2024, 1, 5), []) == "1/5/2024"

    def test_spans(self):
        assert weeks_spanned(BASE_TIME, BASE_TIME) == 1
        assert weeks_spanned(BASE_TIME, BASE_TIME + timedelta(days=8)) == 2
        assert months_spanned(BASE_TIME, BASE_TIME) == 1
        assert months_spanned(
            datetime(2024, 1, 31, tzinfo=timezone.utc), datetime(2024, 3, 1, tzinfo=timezone.utc)
        ) == 3


class TestPicks:
    """Top-key and bucket selection."""

    def test_top_key_prefers_count_then_deliveries(self):
        tallies = {"b": _Tally(total=3, delivered=0), "a": _Tally(total=3, delivered=1), "c": _Tally(total=1)}
        assert pick_top_key(tallies) == "a"

    def test_top_key_case_insensitive_tiebreak(self):
        tallies = {"beta": _Tally(total=2), "Alpha": _Tally(total=2)}
        assert pick_top_key(tallies) == "Alpha"

    def test_bucket_requires_minimum_attempts(self):
        tallies = {9: _Tally(total=2, delivered=2), 10: _Tally(total=3, delivered=1)}
        key, _ = pick_bucket(tallies, best=True)
        assert key == 10

    def test_bucket_none_when_nothing_qualifies(self):
        assert pick_bucket({9: _Tally(total=2, delivered=2)}, best=True) is None

    def test_bucket_tie_goes_to_more_attempts(self):
        tallies = {9: _Tally(total=3, delivered=3), 14: _Tally(total=5, delivered=5)}
        key, _ = pick_bucket(tallies, best=True)
        assert key == 14


class TestSummarizeTrends:
    """summarize_trends over folded profiles."""

    def test_empty_profile(self):
        assert summarize_trends(NumberProfile(phone_number=PHONE)) == {}

    def test_summary_fields(self):
        rows = rows_from_outcomes("FFSF", step=timedelta(days=2))
        rows.append(make_row(timestamp=BASE_TIME + timedelta(days=14), message_id="m2", result="Successfully delivered"))
        trends = summarize_trends(profile_from_rows(rows))

        assert trends["firstAttempt"] == BASE_TIME
        assert trends["cadence"] == "1/1/2024 | +2 | +2 | +2 | +8"
        assert trends["gapCount"] == 4
        assert trends["gapMin"] == 2.0
        assert trends["gapMax"] == 8.0
        assert trends["gapAvg"] == 3.5
        assert trends["gapMedian"] == 2.0
        assert trends["attemptsPerWeek"] == 2.5
        assert trends["attemptsPerMonth"] == 5.0
        assert trends["topMessageId"] == "m1"
        assert trends["topCombo"] == "m1 ⟂ 5550001111"
        assert trends["topComboSuccessRate"] == 0.25

    def test_best_hour_and_day(self):
        trends = summarize_trends(profile_from_rows(rows_from_outcomes("SSF", step=timedelta(days=7))))

        assert trends["bestHour"].key == 10
        assert trends["worstHour"].key == 10
        assert trends["bestDayOfWeek"].label == "Mon"
        assert trends["bestDayOfWeek"].attempts == 3
