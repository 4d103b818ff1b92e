"""
Package initialization file for Delivery Intelligence models.

This module exports all Pydantic schemas and enumerations from schemas.py and enums.py,
making them importable from delivery_intel.models directly.

Usage:
    from delivery_intel.models import (
        HealthLabel,
        ResultCategory,
        AnalysisResult,
        NumberSummary,
    )
"""

# =============================================================================
# Enums - Import and re-export all enumerations from enums.py
# =============================================================================

from delivery_intel.models.enums import (
    ResultCategory,
    HealthLabel,
    ListGrade,
    EntityType,
    DAY_NAMES,
)


# =============================================================================
# Schemas - Import and re-export all Pydantic models from schemas.py
# =============================================================================

from delivery_intel.models.schemas import (
    # -------------------------------------------------------------------------
    # Directory / Ingestion Models
    # -------------------------------------------------------------------------
    MessageInfo,
    ValidationError,

    # -------------------------------------------------------------------------
    # Per-Number Models
    # -------------------------------------------------------------------------
    VariabilityBreakdown,
    BucketPick,
    NumberSummary,
    ConsecutiveRun,

    # -------------------------------------------------------------------------
    # Global Models
    # -------------------------------------------------------------------------
    DecayBucket,
    TimeBucketStats,
    DayUsagePattern,
    EntityStats,

    # -------------------------------------------------------------------------
    # Analysis Envelope
    # -------------------------------------------------------------------------
    AnalysisParameters,
    AnalysisResult,
    AnalyzeRequest,
)


__all__ = [
    # Enums
    'ResultCategory',
    'HealthLabel',
    'ListGrade',
    'EntityType',
    'DAY_NAMES',
    # Schemas
    'MessageInfo',
    'ValidationError',
    'VariabilityBreakdown',
    'BucketPick',
    'NumberSummary',
    'ConsecutiveRun',
    'DecayBucket',
    'TimeBucketStats',
    'DayUsagePattern',
    'EntityStats',
    'AnalysisParameters',
    'AnalysisResult',
    'AnalyzeRequest',
]
