"""
Report Assembler Test Module

Test Coverage:
- One DataFrame per sheet, in order
- Row counts match the AnalysisResult tables
- Workbook round trip through openpyxl
"""

from io import BytesIO

import pandas as pd
import pytest

from delivery_intel.services.analyzer import analyze
from delivery_intel.services.report import SHEET_ORDER, build_report_tables, write_report


@pytest.fixture
def result(mixed_rows):
    return analyze(mixed_rows, min_consec_unsuccessful=4, min_run_span_days=30)


class TestBuildReportTables:
    """build_report_tables."""

    def test_sheet_names_and_order(self, result):
        assert list(build_report_tables(result)) == SHEET_ORDER

    def test_row_counts(self, result):
        tables = build_report_tables(result)

        assert len(tables["Number Health"]) == len(result.numberProfiles)
        assert len(tables["Consecutive Unsuccessful"]) == len(result.consecutiveRuns) == 1
        assert len(tables["Retry Decay"]) == 10
        assert len(tables["Global Time (Hour)"]) == 24
        assert len(tables["Global Time (Day)"]) == 7
        assert len(tables["Accounts"]) == len(result.accountStats)

    def test_summary_metrics(self, result):
        summary = build_report_tables(result)["Summary"].set_index("Metric")["Value"]

        assert summary["Delivery Attempts"] == 12
        assert summary["List Quality Grade"] == "D"
        assert summary["Toxic"] == 1

    def test_timestamps_are_naive_for_excel(self, result):
        health = build_report_tables(result)["Number Health"]
        first_attempt = health["First Attempt (UTC)"].iloc[0]
        assert first_attempt.tzinfo is None


class TestWriteReport:
    """write_report to an in-memory workbook."""

    def test_round_trip(self, result):
        buffer = BytesIO()
        write_report(result, buffer)
        buffer.seek(0)

        sheets = pd.read_excel(buffer, sheet_name=None, engine="openpyxl")

        assert list(sheets) == SHEET_ORDER
        assert len(sheets["Retry Decay"]) == 10
        assert len(sheets["Number Health"]) == 2
