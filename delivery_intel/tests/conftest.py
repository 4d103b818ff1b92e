"""
Pytest Configuration and Shared Fixtures for Delivery Intelligence Tests.

This module provides fixtures and helpers for all engine and API tests:
- Raw row factories shaped like voice-drop campaign exports
- Outcome-string builders ("FFFSF") for quick per-number sequences
- The literal five-row end-to-end scenario
- CSV byte conversion for ingestion and upload tests
- Float comparison helper
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pandas as pd
import pytest

from delivery_intel.services.aggregator import NumberProfile, build_profiles
from delivery_intel.services.normalizer import normalize_rows


# ============================================================
# CONSTANTS
# ============================================================

SUCCESS = "Successfully delivered"
UNSUCCESSFUL = "Unsuccessful delivery attempt"

PHONE = "5551234567"
OTHER_PHONE = "5559876543"
CALLER = "5550001111"

# Monday 2024-01-01 10:00 UTC
BASE_TIME = datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)


# ============================================================
# PYTEST HOOKS
# ============================================================

def pytest_configure(config) -> None:
    """
    Configure custom pytest markers for test organization.

    Custom markers defined:
    - integration: Marks tests that exercise the HTTP surface end to end
    """
    config.addinivalue_line(
        'markers',
        'integration: marks tests that go through the FastAPI app'
    )


# ============================================================
# ROW FACTORIES
# ============================================================

def format_ts(ts: datetime) -> str:
    """Format a timestamp the way campaign exports do ("2024-01-01 10:00:00 UTC")."""
    return ts.strftime("%Y-%m-%d %H:%M:%S") + " UTC"


def make_row(
    number: str = PHONE,
    timestamp: Optional[datetime] = BASE_TIME,
    result: str = UNSUCCESSFUL,
    message_id: str = "m1",
    caller_number: str = CALLER,
    account_id: str = "a1",
    **extra: Any,
) -> Dict[str, Any]:
    """
    Build one raw export row.

    Pass timestamp=None for a pre-delivery (non-attempt) row.
    """
    row: Dict[str, Any] = {
        "number": number,
        "voapps_timestamp": format_ts(timestamp) if timestamp is not None else "",
        "voapps_result": result,
        "message_id": message_id,
        "caller_number": caller_number,
        "account_id": account_id,
    }
    row.update(extra)
    return row


def rows_from_outcomes(
    outcomes: str,
    number: str = PHONE,
    start: datetime = BASE_TIME,
    step: timedelta = timedelta(days=1),
    **kwargs: Any,
) -> List[Dict[str, Any]]:
    """
    Build chronological rows from an outcome string.

    Each "S" is a successful delivery and each "F" an unsuccessful attempt,
    spaced `step` apart starting at `start`.

    Example:
        >>> len(rows_from_outcomes("FFS"))
        3
    """
    rows = []
    for i, outcome in enumerate(outcomes):
        rows.append(make_row(
            number=number,
            timestamp=start + step * i,
            result=SUCCESS if outcome == "S" else UNSUCCESSFUL,
            **kwargs,
        ))
    return rows


def profile_from_rows(rows: List[Dict[str, Any]], number: str = PHONE) -> NumberProfile:
    """Normalize and fold rows, returning the profile for one number."""
    batch = normalize_rows(rows)
    return build_profiles(batch.attempts, batch.non_attempts)[number]


def create_csv_bytes(df: pd.DataFrame) -> bytes:
    """
    Convert DataFrame to CSV bytes for upload testing.

    The output excludes the DataFrame index to match the export format.
    """
    return df.to_csv(index=False).encode('utf-8')


def assert_close(
    actual: float,
    expected: float,
    tolerance: float = 0.001
) -> None:
    """
    Assert two floats are close within tolerance.

    Raises:
        AssertionError: If values differ by more than tolerance
    """
    assert abs(actual - expected) <= tolerance, (
        f"{actual} not close to {expected} within tolerance {tolerance}"
    )


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def end_to_end_rows() -> List[Dict[str, Any]]:
    """
    Five rows for one number: failures on days 1, 2, 3, a success on day 4
    and a failure on day 35.
    """
    day = lambda n: BASE_TIME + timedelta(days=n - 1)
    return [
        make_row(timestamp=day(1), result=UNSUCCESSFUL),
        make_row(timestamp=day(2), result=UNSUCCESSFUL),
        make_row(timestamp=day(3), result=UNSUCCESSFUL),
        make_row(timestamp=day(4), result=SUCCESS),
        make_row(timestamp=day(35), result=UNSUCCESSFUL),
    ]


@pytest.fixture
def mixed_rows() -> List[Dict[str, Any]]:
    """
    Two numbers with varied messages and callers, one pre-delivery row and
    two unusable rows.
    """
    rows = rows_from_outcomes("SFSFS", number=PHONE, message_id="m1")
    rows += rows_from_outcomes(
        "FFFFFFF",
        number=OTHER_PHONE,
        start=BASE_TIME + timedelta(hours=3),
        message_id="m2",
        caller_number="5550002222",
        account_id="a2",
    )
    rows.append(make_row(number=OTHER_PHONE, timestamp=None, result="Filtered"))
    rows.append(make_row(number="12345"))
    rows.append(make_row(timestamp=None, voapps_timestamp="not a date"))
    return rows


@pytest.fixture
def export_df(mixed_rows: List[Dict[str, Any]]) -> pd.DataFrame:
    """mixed_rows as a DataFrame, ready for create_csv_bytes."""
    return pd.DataFrame(mixed_rows)
