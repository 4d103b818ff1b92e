"""
Enumeration definitions for the Delivery Intelligence service.

All enums inherit from both `str` and `Enum` to ensure JSON serialization compatibility
with Pydantic models, enabling automatic serialization/deserialization in API responses.
"""

from enum import Enum


class ResultCategory(str, Enum):
    """
    Canonical outcome of one delivery record.

    - success: Result text is exactly "successfully delivered" (case-insensitive, trimmed)
    - unsuccessful_attempt: A timestamped delivery attempt that did not succeed
    - other_non_attempt: No timestamp; the contact was filtered out before an attempt
    """
    SUCCESS = "success"
    UNSUCCESSFUL_ATTEMPT = "unsuccessful_attempt"
    OTHER_NON_ATTEMPT = "other_non_attempt"


class HealthLabel(str, Enum):
    """
    Delivery health of a destination number.

    - Healthy: Delivering normally
    - Degrading: Failing often enough to reduce contact frequency
    - Toxic: Should be suppressed from future attempts
    """
    HEALTHY = "Healthy"
    DEGRADING = "Degrading"
    TOXIC = "Toxic"


class ListGrade(str, Enum):
    """
    List Quality Grade for a whole analyzed number list.

    - A: >= 80% healthy, < 5% toxic, < 10% never delivered
    - B: >= 60% healthy, < 10% toxic, < 20% never delivered
    - C: >= 40% healthy, < 20% toxic
    - D: Everything else
    """
    A = "A"
    B = "B"
    C = "C"
    D = "D"


class EntityType(str, Enum):
    """Entity dimensions that get their own rollup table."""
    ACCOUNT = "account"
    MESSAGE = "message"
    CALLER = "caller"


# Day-of-week labels as used in every histogram (index 0 = Sunday)
DAY_NAMES = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
