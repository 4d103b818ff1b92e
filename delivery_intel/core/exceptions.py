"""
Exception types raised by the Delivery Intelligence engine and its collaborators.

Only one condition is fatal for an analysis run: nothing survived
normalization. Bad individual rows are dropped and counted, never raised.
"""

from enum import Enum
from typing import Optional


class DeliveryIntelError(Exception):
    """Base class for all Delivery Intelligence errors."""


class NoDataReason(str, Enum):
    """
    Why an analysis run had nothing to analyze.

    - no_rows: The input collection was empty
    - no_valid_numbers: Rows were provided but none had a usable phone number
    - no_timestamps: Rows had phone numbers but none had a parseable timestamp
    """
    NO_ROWS = "no_rows"
    NO_VALID_NUMBERS = "no_valid_numbers"
    NO_TIMESTAMPS = "no_timestamps"


_REASON_MESSAGES = {
    NoDataReason.NO_ROWS: "No rows were provided for analysis",
    NoDataReason.NO_VALID_NUMBERS: (
        "{total_rows} rows were provided but none had a usable phone number"
    ),
    NoDataReason.NO_TIMESTAMPS: (
        "{total_rows} rows were provided but none had a usable delivery timestamp"
    ),
}


class NoAnalyzableDataError(DeliveryIntelError):
    """
    Raised when zero rows survive normalization with both a usable phone
    number and a parseable timestamp.

    Attributes:
        reason: NoDataReason distinguishing empty input from malformed input
        total_rows: Number of raw rows that were provided
    """

    def __init__(self, reason: NoDataReason, total_rows: int = 0, message: Optional[str] = None):
        self.reason = reason
        self.total_rows = total_rows
        if message is None:
            message = _REASON_MESSAGES[reason].format(total_rows=total_rows)
        super().__init__(message)


class CsvIngestionError(DeliveryIntelError):
    """Raised when an uploaded CSV cannot be parsed at all."""
