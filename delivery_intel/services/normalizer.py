"""
Record Normalizer Service

Validates and coerces raw delivery rows (CSV rows or API export rows) into
canonical Attempt records. Rows that cannot be used are dropped one at a time
and only show up in the returned NormalizationStats counters.

Field Fallback Order (first present value wins):
- phone number: number, phone_number
- timestamp: voapps_timestamp, timestamp
- result: voapps_result, result
- message id: message_id
- caller number: caller_number, voapps_caller_number
- account id: account_id
- campaign: campaign_id, campaign_name

Result Classification:
- Success: result text equals "successfully delivered" after lowercase/trim
- UnsuccessfulAttempt: a timestamp is present and the result is not Success
- OtherNonAttempt: empty/absent timestamp (filtered before delivery)

Phone Numbers:
- Strip non-digits, drop a leading "1" from 11-digit numbers, accept 10 digits
- With allow_generic_numbers=True, any other digit string of length >= 7
"""

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from delivery_intel.models.enums import ResultCategory

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

NUMBER_FIELDS: Tuple[str, ...] = ('number', 'phone_number')
TIMESTAMP_FIELDS: Tuple[str, ...] = ('voapps_timestamp', 'timestamp')
RESULT_FIELDS: Tuple[str, ...] = ('voapps_result', 'result')
MESSAGE_FIELDS: Tuple[str, ...] = ('message_id',)
CALLER_FIELDS: Tuple[str, ...] = ('caller_number', 'voapps_caller_number')
ACCOUNT_FIELDS: Tuple[str, ...] = ('account_id',)
CAMPAIGN_ID_FIELDS: Tuple[str, ...] = ('campaign_id',)
CAMPAIGN_NAME_FIELDS: Tuple[str, ...] = ('campaign_name',)

SUCCESS_RESULT: str = "successfully delivered"

US_NUMBER_LENGTH: int = 10
GENERIC_NUMBER_MIN_LENGTH: int = 7

_NON_DIGITS = re.compile(r"\D+")


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class Attempt:
    """
    Canonical, immutable record derived from one input row.

    Attributes:
        phone_number: Normalized destination number (digits only).
        timestamp: UTC-aware timestamp, None for OtherNonAttempt rows.
        result_category: Canonical outcome.
        result_raw: Trimmed original result text.
        message_id: Message identifier ("" when absent).
        caller_number: Caller number, phone-normalized when possible ("" when absent).
        account_id: Account identifier ("" when absent).
        campaign_id: Campaign identifier ("" when absent).
        campaign_name: Campaign name ("" when absent).
        sequence: Input position, used as a stable sort tie-breaker.
    """
    phone_number: str
    timestamp: Optional[datetime]
    result_category: ResultCategory
    result_raw: str = ""
    message_id: str = ""
    caller_number: str = ""
    account_id: str = ""
    campaign_id: str = ""
    campaign_name: str = ""
    sequence: int = 0

    @property
    def is_delivery_attempt(self) -> bool:
        return self.result_category is not ResultCategory.OTHER_NON_ATTEMPT

    @property
    def is_success(self) -> bool:
        return self.result_category is ResultCategory.SUCCESS

    @property
    def hour_of_day(self) -> Optional[int]:
        if self.timestamp is None:
            return None
        return self.timestamp.hour

    @property
    def day_of_week(self) -> Optional[int]:
        """Day index with 0 = Sunday .. 6 = Saturday."""
        if self.timestamp is None:
            return None
        return (self.timestamp.weekday() + 1) % 7


@dataclass
class NormalizationStats:
    """
    Counters describing what happened to the raw rows.

    rejected_number and rejected_timestamp are silent per-row rejections.
    """
    total_rows: int = 0
    accepted_attempts: int = 0
    non_attempts: int = 0
    rejected_number: int = 0
    rejected_timestamp: int = 0

    @property
    def rejected_rows(self) -> int:
        return self.rejected_number + self.rejected_timestamp


@dataclass
class NormalizedBatch:
    """Output of normalize_rows: canonical records plus counters."""
    attempts: List[Attempt] = field(default_factory=list)
    non_attempts: List[Attempt] = field(default_factory=list)
    stats: NormalizationStats = field(default_factory=NormalizationStats)


# =============================================================================
# Field Helpers
# =============================================================================


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if value is pd.NaT:
        return True
    return isinstance(value, str) and not value.strip()


def first_present(row: Mapping[str, Any], names: Sequence[str]) -> Any:
    """
    Return the first non-blank value among the given field names.

    Args:
        row: Raw row mapping
        names: Field names in fallback order

    Returns:
        The raw value, or None when no field is present
    """
    for name in names:
        value = row.get(name)
        if not _is_blank(value):
            return value
    return None


def _text(value: Any) -> str:
    if _is_blank(value):
        return ""
    # Spreadsheet exports turn integer ids into floats ("12345.0")
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


# =============================================================================
# Normalization Functions
# =============================================================================


def normalize_phone(value: Any, allow_generic: bool = False) -> Optional[str]:
    """
    Normalize a phone number to its digit string.

    Args:
        value: Raw phone value (string or number)
        allow_generic: Also accept non-US digit strings of length >= 7

    Returns:
        Normalized digits, or None when the value is not a usable number

    Example:
        >>> normalize_phone("+1 (555) 123-4567")
        '5551234567'
        >>> normalize_phone("12345") is None
        True
    """
    digits = _NON_DIGITS.sub("", _text(value))
    if len(digits) == US_NUMBER_LENGTH + 1 and digits.startswith("1"):
        digits = digits[1:]
    if len(digits) == US_NUMBER_LENGTH:
        return digits
    if allow_generic and len(digits) >= GENERIC_NUMBER_MIN_LENGTH:
        return digits
    return None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a timestamp into a UTC-aware datetime.

    Accepts datetime / pandas.Timestamp objects and ISO-like strings,
    including a literal " UTC" suffix. Naive values are treated as UTC.

    Args:
        value: Raw timestamp value

    Returns:
        UTC datetime, or None if the value is blank or unparseable
    """
    if _is_blank(value):
        return None

    if isinstance(value, pd.Timestamp):
        value = value.to_pydatetime()

    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.upper().endswith(" UTC"):
            text = text[:-4].strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            coerced = pd.to_datetime(text, utc=True, errors="coerce")
            if pd.isna(coerced):
                return None
            parsed = coerced.to_pydatetime()

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def classify_result(result_raw: str, has_timestamp: bool) -> ResultCategory:
    """
    Map free-text result + timestamp presence to a ResultCategory.

    Args:
        result_raw: Result text as found in the row
        has_timestamp: Whether the row carries a delivery timestamp

    Returns:
        ResultCategory for the row
    """
    if not has_timestamp:
        return ResultCategory.OTHER_NON_ATTEMPT
    if result_raw.strip().lower() == SUCCESS_RESULT:
        return ResultCategory.SUCCESS
    return ResultCategory.UNSUCCESSFUL_ATTEMPT


def normalize_row(
    row: Mapping[str, Any],
    sequence: int = 0,
    allow_generic_numbers: bool = False,
    stats: Optional[NormalizationStats] = None,
) -> Optional[Attempt]:
    """
    Normalize one raw row into an Attempt.

    Args:
        row: Raw row mapping
        sequence: Input position of the row
        allow_generic_numbers: Accept >=7 digit generic identifiers
        stats: Optional counters to update with the rejection reason

    Returns:
        Attempt, or None when the row was rejected
    """
    phone = normalize_phone(first_present(row, NUMBER_FIELDS), allow_generic_numbers)
    if phone is None:
        if stats is not None:
            stats.rejected_number += 1
        return None

    raw_timestamp = first_present(row, TIMESTAMP_FIELDS)
    timestamp = parse_timestamp(raw_timestamp)
    if raw_timestamp is not None and timestamp is None:
        if stats is not None:
            stats.rejected_timestamp += 1
        return None

    result_raw = _text(first_present(row, RESULT_FIELDS))
    caller_raw = _text(first_present(row, CALLER_FIELDS))

    return Attempt(
        phone_number=phone,
        timestamp=timestamp,
        result_category=classify_result(result_raw, timestamp is not None),
        result_raw=result_raw,
        message_id=_text(first_present(row, MESSAGE_FIELDS)),
        caller_number=normalize_phone(caller_raw, allow_generic=True) or caller_raw,
        account_id=_text(first_present(row, ACCOUNT_FIELDS)),
        campaign_id=_text(first_present(row, CAMPAIGN_ID_FIELDS)),
        campaign_name=_text(first_present(row, CAMPAIGN_NAME_FIELDS)),
        sequence=sequence,
    )


def iter_attempts(
    rows: Iterable[Mapping[str, Any]],
    allow_generic_numbers: bool = False,
    stats: Optional[NormalizationStats] = None,
) -> Iterator[Attempt]:
    """
    Lazily normalize a stream of rows, skipping rejected rows.

    Works with any iterable, including a generator fed by the chunked CSV
    reader, so raw rows never need to be held in memory together.
    """
    for sequence, row in enumerate(rows):
        if stats is not None:
            stats.total_rows += 1
        attempt = normalize_row(row, sequence, allow_generic_numbers, stats)
        if attempt is not None:
            yield attempt


def normalize_rows(
    rows: Iterable[Mapping[str, Any]],
    allow_generic_numbers: bool = False,
) -> NormalizedBatch:
    """
    Normalize all rows and split them into delivery attempts and non-attempts.

    Args:
        rows: Iterable of raw row mappings
        allow_generic_numbers: Accept >=7 digit generic identifiers

    Returns:
        NormalizedBatch with attempts, non_attempts and stats
    """
    batch = NormalizedBatch()
    for attempt in iter_attempts(rows, allow_generic_numbers, batch.stats):
        if attempt.is_delivery_attempt:
            batch.attempts.append(attempt)
        else:
            batch.non_attempts.append(attempt)

    batch.stats.accepted_attempts = len(batch.attempts)
    batch.stats.non_attempts = len(batch.non_attempts)

    logger.info(
        f"Normalized {batch.stats.total_rows} rows: {batch.stats.accepted_attempts} attempts, "
        f"{batch.stats.non_attempts} non-attempts, {batch.stats.rejected_number} bad numbers, "
        f"{batch.stats.rejected_timestamp} bad timestamps"
    )
    return batch
