"""
CSV Ingestion Test Module

Test Coverage:
- Header validation (phone-number and timestamp columns)
- Chunked parsing yields every row as text
- Column name normalization
- Unparseable input raises CsvIngestionError
- Parsed rows feed straight into the analyzer as a lazy stream
- Malformed body chunks fail while the stream is consumed
"""

from io import BytesIO

import pandas as pd
import pytest

from delivery_intel.core.exceptions import CsvIngestionError
from delivery_intel.services.analyzer import analyze
from delivery_intel.services.ingestion import iter_csv_rows, read_csv_rows, validate_columns
from delivery_intel.tests.conftest import create_csv_bytes


class TestValidateColumns:
    """Tests for validate_columns."""

    def test_valid_header(self):
        assert validate_columns(["Number", "VOAPPS_TIMESTAMP", "voapps_result"]) == []

    def test_fallback_columns_accepted(self):
        assert validate_columns(["phone_number", "timestamp"]) == []

    def test_missing_both(self):
        errors = validate_columns(["message_id", "account_id"])

        assert len(errors) == 2
        assert {e.field for e in errors} == {"number", "timestamp"}
        assert all(e.row_number is None for e in errors)


class TestIterCsvRows:
    """Tests for chunked parsing."""

    def test_rows_across_chunks(self, export_df: pd.DataFrame):
        rows = list(iter_csv_rows(create_csv_bytes(export_df), chunk_size=4))

        assert len(rows) == len(export_df)
        assert rows[0]["number"] == "5551234567"

    def test_cells_stay_text_and_blanks_empty(self, export_df: pd.DataFrame):
        rows = list(iter_csv_rows(create_csv_bytes(export_df)))
        non_attempt = [r for r in rows if r["voapps_result"] == "Filtered"][0]

        assert non_attempt["voapps_timestamp"] == ""
        assert all(isinstance(v, str) for v in non_attempt.values())

    def test_column_names_normalized(self):
        content = b" Number ,Voapps_Timestamp\n5551234567,2024-01-01 10:00:00 UTC\n"
        rows = list(iter_csv_rows(content))
        assert set(rows[0]) == {"number", "voapps_timestamp"}

    def test_accepts_file_objects(self, export_df: pd.DataFrame):
        rows = list(iter_csv_rows(BytesIO(create_csv_bytes(export_df))))
        assert len(rows) == len(export_df)


class TestReadCsvRows:
    """Tests for read_csv_rows."""

    def test_valid_upload(self, export_df: pd.DataFrame):
        rows, errors = read_csv_rows(create_csv_bytes(export_df), chunk_size=5)

        assert errors == []
        assert not isinstance(rows, list)
        assert len(list(rows)) == len(export_df)

    def test_header_errors_return_no_rows(self):
        rows, errors = read_csv_rows(b"foo,bar\n1,2\n")

        assert list(rows) == []
        assert len(errors) == 2

    def test_empty_file_raises(self):
        with pytest.raises(CsvIngestionError):
            read_csv_rows(b"")

    def test_header_only_yields_no_rows(self):
        rows, errors = read_csv_rows(b"number,voapps_timestamp\n")
        assert errors == []
        assert list(rows) == []

    def test_malformed_body_fails_while_streaming(self):
        content = b"number,voapps_timestamp\n5551234567,2024-01-01 10:00:00 UTC\n1,2,3,4\n"
        rows, errors = read_csv_rows(content, chunk_size=1)

        assert errors == []
        with pytest.raises(CsvIngestionError):
            list(rows)

    def test_parsed_rows_analyze_like_dict_rows(self, export_df: pd.DataFrame, mixed_rows):
        rows, _ = read_csv_rows(create_csv_bytes(export_df))

        from_csv = analyze(rows)
        from_dicts = analyze(mixed_rows)

        assert from_csv.deliveryAttempts == from_dicts.deliveryAttempts
        assert from_csv.rejectedRows == from_dicts.rejectedRows
        assert [s.healthLabel for s in from_csv.numberProfiles] == [
            s.healthLabel for s in from_dicts.numberProfiles
        ]
