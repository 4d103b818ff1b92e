"""
Record Normalizer Test Module

Test Coverage:
- Phone normalization (US 10/11 digit, generic >=7 digit flag)
- Timestamp parsing (" UTC" suffix, ISO, Z suffix, naive, datetime objects)
- Result classification (Success / UnsuccessfulAttempt / OtherNonAttempt)
- Field fallback order
- Silent row rejection with counters
"""

from datetime import datetime, timedelta, timezone

import pandas as pd
import pytest

from delivery_intel.models.enums import ResultCategory
from delivery_intel.services.normalizer import (
    classify_result,
    first_present,
    normalize_phone,
    normalize_row,
    normalize_rows,
    parse_timestamp,
    NormalizationStats,
)
from delivery_intel.tests.conftest import BASE_TIME, PHONE, SUCCESS, UNSUCCESSFUL, make_row


# =============================================================================
# Phone Numbers
# =============================================================================

class TestNormalizePhone:
    """Tests for normalize_phone."""

    @pytest.mark.parametrize("raw", [
        "5551234567",
        "(555) 123-4567",
        "+1 555 123 4567",
        "15551234567",
        5551234567,
        5551234567.0,
    ])
    def test_us_formats_normalize_to_ten_digits(self, raw):
        assert normalize_phone(raw) == "5551234567"

    @pytest.mark.parametrize("raw", ["", None, "12345", "abc", "555123456789"])
    def test_unusable_numbers_rejected(self, raw):
        assert normalize_phone(raw) is None

    def test_generic_numbers_need_flag(self):
        assert normalize_phone("4471234567890") is None
        assert normalize_phone("4471234567890", allow_generic=True) == "4471234567890"

    def test_generic_minimum_length(self):
        assert normalize_phone("123456", allow_generic=True) is None
        assert normalize_phone("1234567", allow_generic=True) == "1234567"


# =============================================================================
# Timestamps
# =============================================================================

class TestParseTimestamp:
    """Tests for parse_timestamp."""

    def test_utc_suffix(self):
        parsed = parse_timestamp("2024-01-01 10:00:00 UTC")
        assert parsed == datetime(2024, 1, 1, 10, tzinfo=timezone.utc)

    def test_iso_z_suffix(self):
        parsed = parse_timestamp("2024-01-01T10:00:00Z")
        assert parsed == datetime(2024, 1, 1, 10, tzinfo=timezone.utc)

    def test_offset_converted_to_utc(self):
        parsed = parse_timestamp("2024-01-01T05:00:00-05:00")
        assert parsed == datetime(2024, 1, 1, 10, tzinfo=timezone.utc)
        assert parsed.tzinfo == timezone.utc

    def test_naive_treated_as_utc(self):
        parsed = parse_timestamp("2024-01-01 10:00:00")
        assert parsed.tzinfo == timezone.utc
        assert parsed.hour == 10

    def test_datetime_and_pandas_timestamp_accepted(self):
        assert parse_timestamp(BASE_TIME) == BASE_TIME
        assert parse_timestamp(pd.Timestamp("2024-01-01 10:00:00", tz="UTC")) == BASE_TIME

    @pytest.mark.parametrize("raw", [None, "", "   ", float("nan")])
    def test_blank_values_return_none(self, raw):
        assert parse_timestamp(raw) is None

    def test_garbage_returns_none(self):
        assert parse_timestamp("not a date") is None


# =============================================================================
# Result Classification
# =============================================================================

class TestClassifyResult:
    """Tests for classify_result."""

    @pytest.mark.parametrize("text", [
        "Successfully delivered",
        "  successfully DELIVERED ",
    ])
    def test_success_is_case_and_space_insensitive(self, text):
        assert classify_result(text, has_timestamp=True) is ResultCategory.SUCCESS

    @pytest.mark.parametrize("text", [UNSUCCESSFUL, "Busy", ""])
    def test_anything_else_with_timestamp_is_unsuccessful(self, text):
        assert classify_result(text, has_timestamp=True) is ResultCategory.UNSUCCESSFUL_ATTEMPT

    def test_missing_timestamp_is_non_attempt(self):
        assert classify_result(SUCCESS, has_timestamp=False) is ResultCategory.OTHER_NON_ATTEMPT


# =============================================================================
# Rows
# =============================================================================

class TestNormalizeRow:
    """Tests for normalize_row and field fallbacks."""

    def test_primary_fields(self):
        attempt = normalize_row(make_row(), sequence=7)

        assert attempt.phone_number == PHONE
        assert attempt.timestamp == BASE_TIME
        assert attempt.result_category is ResultCategory.UNSUCCESSFUL_ATTEMPT
        assert attempt.message_id == "m1"
        assert attempt.account_id == "a1"
        assert attempt.sequence == 7

    def test_fallback_fields(self):
        row = {
            "phone_number": "555-123-4567",
            "timestamp": "2024-01-01T10:00:00Z",
            "result": SUCCESS,
            "voapps_caller_number": "1 (555) 000-1111",
        }
        attempt = normalize_row(row)

        assert attempt.phone_number == PHONE
        assert attempt.result_category is ResultCategory.SUCCESS
        assert attempt.caller_number == "5550001111"

    def test_first_field_wins(self):
        row = {"number": "5551234567", "phone_number": "5559999999"}
        assert first_present(row, ("number", "phone_number")) == "5551234567"

    def test_blank_first_field_falls_through(self):
        row = {"number": "  ", "phone_number": "5559999999"}
        assert first_present(row, ("number", "phone_number")) == "5559999999"

    def test_day_of_week_sunday_is_zero(self):
        sunday = datetime(2024, 1, 7, 12, tzinfo=timezone.utc)
        attempt = normalize_row(make_row(timestamp=sunday))
        assert attempt.day_of_week == 0
        assert attempt.hour_of_day == 12

    def test_bad_number_rejected_and_counted(self):
        stats = NormalizationStats()
        assert normalize_row(make_row(number="123"), stats=stats) is None
        assert stats.rejected_number == 1

    def test_bad_timestamp_rejected_and_counted(self):
        stats = NormalizationStats()
        row = make_row()
        row["voapps_timestamp"] = "yesterday-ish"
        assert normalize_row(row, stats=stats) is None
        assert stats.rejected_timestamp == 1

    def test_missing_timestamp_is_kept_as_non_attempt(self):
        attempt = normalize_row(make_row(timestamp=None))
        assert attempt is not None
        assert attempt.timestamp is None
        assert not attempt.is_delivery_attempt


class TestNormalizeRows:
    """Tests for normalize_rows batch behavior."""

    def test_split_and_counts(self, mixed_rows):
        batch = normalize_rows(mixed_rows)

        assert batch.stats.total_rows == len(mixed_rows)
        assert len(batch.attempts) == 12
        assert len(batch.non_attempts) == 1
        assert batch.stats.rejected_number == 1
        assert batch.stats.rejected_timestamp == 1
        assert batch.stats.rejected_rows == 2

    def test_sequence_follows_input_order(self):
        rows = [make_row(timestamp=BASE_TIME + timedelta(days=i)) for i in range(3)]
        batch = normalize_rows(rows)
        assert [a.sequence for a in batch.attempts] == [0, 1, 2]

    def test_accepts_generator(self):
        batch = normalize_rows(make_row() for _ in range(4))
        assert batch.stats.total_rows == 4
