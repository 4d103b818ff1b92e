"""
Pydantic request/response models for the Delivery Intelligence service.

This module provides type-safe data validation and serialization for the
analysis engine output and the API contracts built on top of it:
- Per-number summaries (health, variability, cadence)
- Consecutive-failure runs
- Retry decay curve buckets
- Global time-of-day / day-of-week tables
- Account / message / caller entity rollups
- The AnalysisResult envelope and the AnalyzeRequest body

All models use Pydantic v2 syntax. Response field names are camelCase to match
the JSON contract consumed by the UI and report assembler.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ConfigDict

from delivery_intel.models.enums import HealthLabel, ListGrade


# =============================================================================
# Directory Models
# =============================================================================


class MessageInfo(BaseModel):
    """
    Display information for a message id.

    Supplied by the caller of the engine (typically fetched from the campaign
    API by a collaborator) and used only for labelling rollup rows.
    """
    name: str = Field(default="", description="Message display name")
    description: str = Field(default="", description="Message description")


# =============================================================================
# Ingestion Models
# =============================================================================


class ValidationError(BaseModel):
    """
    Validation error detail.

    Used for reporting structural problems with an uploaded CSV.
    """
    field: str = Field(
        ...,
        description="Field with validation error"
    )
    message: str = Field(
        ...,
        description="Error message"
    )
    row_number: Optional[int] = Field(
        default=None,
        ge=1,
        description="Row number where error occurred"
    )


# =============================================================================
# Per-Number Models
# =============================================================================


class VariabilityBreakdown(BaseModel):
    """
    Components of the 0-100 variability score.

    Diversity components are on a 0-100 scale, entropies are normalized to
    [0, 1] and the back-to-back ratio is the share of attempts that repeated
    the previous attempt's message.
    """
    messageDiversity: float = Field(..., ge=0.0, le=100.0)
    callerDiversity: float = Field(..., ge=0.0, le=100.0)
    dayEntropy: float = Field(..., ge=0.0, le=1.0)
    hourEntropy: float = Field(..., ge=0.0, le=1.0)
    backToBackRatio: float = Field(..., ge=0.0, le=1.0)
    score: int = Field(..., ge=0, le=100)


class BucketPick(BaseModel):
    """Best or worst hour / day-of-week bucket for a number."""
    key: int = Field(..., description="Hour (0-23) or day-of-week (0=Sunday)")
    label: str = Field(..., description="Display label, e.g. '14' or 'Tue'")
    attempts: int = Field(..., ge=0)
    successRate: float = Field(..., ge=0.0, le=1.0)


class NumberSummary(BaseModel):
    """
    Frozen summary of one destination number after the aggregation fold.

    healthLabel and variabilityScore are None for numbers that only appeared
    in non-attempt rows (never classified).
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "phoneNumber": "5551234567",
                "totalAttempts": 5,
                "successCount": 1,
                "unsuccessfulCount": 4,
                "nonAttemptCount": 0,
                "successRate": 0.2,
                "attemptIndex": 1,
                "consecutiveFailures": 1,
                "healthLabel": "Healthy",
                "suppress": False,
                "variabilityScore": 23,
            }
        }
    )

    phoneNumber: str = Field(..., min_length=1)

    # Fold counters
    totalAttempts: int = Field(..., ge=0)
    successCount: int = Field(..., ge=0)
    unsuccessfulCount: int = Field(..., ge=0)
    nonAttemptCount: int = Field(default=0, ge=0)
    successRate: float = Field(..., ge=0.0, le=1.0)
    attemptIndex: int = Field(..., ge=0)
    consecutiveFailures: int = Field(..., ge=0)
    lastSuccessTimestamp: Optional[datetime] = None
    hasRecentSuccess: bool = False

    # Classification
    healthLabel: Optional[HealthLabel] = None
    suppress: bool = Field(default=False, description="True for Toxic numbers")
    variabilityScore: Optional[int] = Field(default=None, ge=0, le=100)
    variability: Optional[VariabilityBreakdown] = None

    # Entity usage
    distinctMessages: int = Field(default=0, ge=0)
    distinctCallers: int = Field(default=0, ge=0)
    accountIds: List[str] = Field(default_factory=list)

    # Cadence / trend
    firstAttempt: Optional[datetime] = None
    lastAttempt: Optional[datetime] = None
    cadence: str = ""
    gapCount: int = 0
    gapMin: float = 0.0
    gapAvg: float = 0.0
    gapMedian: float = 0.0
    gapMax: float = 0.0
    attemptsPerWeek: float = 0.0
    attemptsPerMonth: float = 0.0
    topMessageId: str = ""
    topCallerNumber: str = ""
    topCombo: str = ""
    topComboSuccessRate: float = 0.0
    bestHour: Optional[BucketPick] = None
    worstHour: Optional[BucketPick] = None
    bestDayOfWeek: Optional[BucketPick] = None


class ConsecutiveRun(BaseModel):
    """
    A qualifying maximal run of consecutive unsuccessful delivery attempts.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "phoneNumber": "5551234567",
                "length": 3,
                "startTimestamp": "2024-01-01T10:00:00Z",
                "endTimestamp": "2024-01-03T10:00:00Z",
                "spanDays": 2,
                "healthLabel": "Healthy",
                "isOpen": False,
            }
        }
    )

    phoneNumber: str
    length: int = Field(..., ge=1)
    startTimestamp: datetime
    endTimestamp: datetime
    spanDays: int = Field(..., ge=0, description="Floored day span of the run")
    healthLabel: Optional[HealthLabel] = None
    isOpen: bool = Field(
        default=False,
        description="Run reaches the end of the data without a success"
    )
    totalAttempts: int = Field(default=0, ge=0)
    overallSuccessRate: float = Field(default=0.0, ge=0.0, le=1.0)
    lastMessageId: str = ""
    lastCallerNumber: str = ""


# =============================================================================
# Global Models
# =============================================================================


class DecayBucket(BaseModel):
    """One point of the retry decay curve (attemptIndex 10 means "10 or more")."""
    attemptIndex: int = Field(..., ge=1, le=10)
    label: str
    totalDeliveryAttempts: int = Field(..., ge=0)
    successfulCount: int = Field(..., ge=0)
    probability: float = Field(..., ge=0.0, le=1.0)


class TimeBucketStats(BaseModel):
    """Global hour-of-day or day-of-week bucket."""
    key: int
    label: str
    attempts: int = Field(..., ge=0)
    successful: int = Field(..., ge=0)
    unsuccessful: int = Field(..., ge=0)
    successRate: float = Field(..., ge=0.0, le=1.0)


class DayUsagePattern(BaseModel):
    """Result of the limited day-of-week usage detector for one entity."""
    limitedDayUsage: bool = False
    usedDays: List[str] = Field(default_factory=list)
    recommendation: Optional[str] = None


class EntityStats(BaseModel):
    """
    Rollup row shared by the per-account, per-message and per-caller tables.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "12345",
                "displayName": "Payment Reminder",
                "total": 1200,
                "successful": 900,
                "unsuccessful": 300,
                "successRate": 0.75,
                "uniquePhoneNumberCount": 480,
                "dayOfWeekCounts": [0, 400, 400, 400, 0, 0, 0],
                "dayPattern": {
                    "limitedDayUsage": False,
                    "usedDays": ["Mon", "Tue", "Wed"],
                    "recommendation": None,
                },
            }
        }
    )

    id: str
    displayName: str
    description: str = ""
    total: int = Field(..., ge=0)
    successful: int = Field(..., ge=0)
    unsuccessful: int = Field(..., ge=0)
    successRate: float = Field(..., ge=0.0, le=1.0)
    uniquePhoneNumberCount: int = Field(..., ge=0)
    dayOfWeekCounts: List[int] = Field(..., min_length=7, max_length=7)
    dayPattern: DayUsagePattern = Field(default_factory=DayUsagePattern)


# =============================================================================
# Analysis Envelope
# =============================================================================


class AnalysisParameters(BaseModel):
    """Effective (post-clamping) parameters of an analysis run."""
    minConsecUnsuccessful: int = Field(..., ge=1)
    minRunSpanDays: int = Field(..., ge=0)
    recentSuccessWindowDays: int = Field(..., ge=0)
    allowGenericNumbers: bool = False


class AnalysisResult(BaseModel):
    """
    Complete structured output of one analysis run.

    Everything downstream (sheets, CSV columns, HTTP payloads) is built from
    this object only.
    """
    parameters: AnalysisParameters
    datasetStart: Optional[datetime] = None
    datasetEnd: Optional[datetime] = None

    # Raw counts
    totalRows: int = Field(..., ge=0)
    rejectedRows: int = Field(..., ge=0)
    nonAttemptRows: int = Field(..., ge=0)
    deliveryAttempts: int = Field(..., ge=0)

    # Aggregate counts
    uniqueNumberCount: int = Field(..., ge=0)
    healthyCount: int = Field(..., ge=0)
    degradingCount: int = Field(..., ge=0)
    toxicCount: int = Field(..., ge=0)
    neverDeliveredCount: int = Field(..., ge=0)
    suppressionCount: int = Field(..., ge=0)
    overallSuccessRate: float = Field(..., ge=0.0, le=1.0)
    listGrade: ListGrade

    # Tables
    numberProfiles: List[NumberSummary] = Field(default_factory=list)
    consecutiveRuns: List[ConsecutiveRun] = Field(default_factory=list)
    decayCurve: List[DecayBucket] = Field(default_factory=list)
    hourlyGlobal: List[TimeBucketStats] = Field(default_factory=list)
    dailyGlobal: List[TimeBucketStats] = Field(default_factory=list)
    accountStats: List[EntityStats] = Field(default_factory=list)
    messageStats: List[EntityStats] = Field(default_factory=list)
    callerStats: List[EntityStats] = Field(default_factory=list)


class AnalyzeRequest(BaseModel):
    """
    JSON body for POST /analysis.

    Threshold fields left as None fall back to the configured defaults.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "rows": [
                    {
                        "number": "5551234567",
                        "voapps_timestamp": "2024-01-01 10:00:00 UTC",
                        "voapps_result": "Unsuccessful delivery attempt",
                        "message_id": "m1",
                        "caller_number": "5559990000",
                        "account_id": "a1",
                    }
                ],
                "minConsecUnsuccessful": 4,
                "minRunSpanDays": 30,
            }
        }
    )

    rows: List[Dict[str, Any]] = Field(default_factory=list)
    minConsecUnsuccessful: Optional[int] = None
    minRunSpanDays: Optional[int] = None
    recentSuccessWindowDays: Optional[int] = None
    allowGenericNumbers: Optional[bool] = None
    messageDirectory: Dict[str, MessageInfo] = Field(default_factory=dict)
    callerDirectory: Dict[str, str] = Field(default_factory=dict)
    accountDirectory: Dict[str, str] = Field(default_factory=dict)
