"""
Delivery Intelligence Services Module

This module contains the analysis engine and its collaborators. Engine
services are synchronous and stateless; one analyze() call owns its own
profile map.

Services:
- normalizer: Raw row -> canonical Attempt (field fallbacks, phone/timestamp parsing)
- aggregator: Global sort + per-number fold into NumberProfiles
- health: Healthy / Degrading / Toxic rules
- variability: 0-100 diversity score
- runs: Consecutive-failure run detection
- decay: Retry decay curve
- rollups: Global time tables, entity rollups, list quality grade
- trends: Per-number cadence and timing summary
- analyzer: End-to-end orchestration (analyze)
- ingestion: Chunked CSV parsing
- report: Multi-sheet xlsx report assembler

All services are designed to be consumed by the API layer (delivery_intel/api/).
"""

# =============================================================================
# Engine Exports
# =============================================================================

from delivery_intel.services.normalizer import (
    Attempt,
    NormalizationStats,
    NormalizedBatch,
    normalize_phone,
    normalize_row,
    normalize_rows,
    parse_timestamp,
    classify_result,
)

from delivery_intel.services.aggregator import (
    NumberProfile,
    SequencedAttempt,
    build_profiles,
    sort_attempts,
)

from delivery_intel.services.health import (
    classify_health,
    classify_profile,
    has_recent_success,
)

from delivery_intel.services.variability import (
    shannon_entropy,
    variability_breakdown,
    variability_score,
)

from delivery_intel.services.runs import (
    detect_runs,
    detect_all_runs,
)

from delivery_intel.services.decay import build_decay_curve

from delivery_intel.services.rollups import (
    build_hourly_stats,
    build_daily_stats,
    build_account_stats,
    build_message_stats,
    build_caller_stats,
    detect_day_usage_pattern,
    calculate_list_grade,
)

from delivery_intel.services.trends import summarize_trends

from delivery_intel.services.analyzer import analyze

# =============================================================================
# Collaborator Exports
# CSV ingestion and xlsx report assembly around the engine
# =============================================================================

from delivery_intel.services.ingestion import (
    iter_csv_rows,
    read_csv_rows,
    validate_columns,
)

from delivery_intel.services.report import (
    build_report_tables,
    write_report,
    SHEET_ORDER,
)


__all__ = [
    # Normalizer
    "Attempt",
    "NormalizationStats",
    "NormalizedBatch",
    "normalize_phone",
    "normalize_row",
    "normalize_rows",
    "parse_timestamp",
    "classify_result",
    # Aggregator
    "NumberProfile",
    "SequencedAttempt",
    "build_profiles",
    "sort_attempts",
    # Health
    "classify_health",
    "classify_profile",
    "has_recent_success",
    # Variability
    "shannon_entropy",
    "variability_breakdown",
    "variability_score",
    # Runs
    "detect_runs",
    "detect_all_runs",
    # Decay
    "build_decay_curve",
    # Rollups
    "build_hourly_stats",
    "build_daily_stats",
    "build_account_stats",
    "build_message_stats",
    "build_caller_stats",
    "detect_day_usage_pattern",
    "calculate_list_grade",
    # Trends
    "summarize_trends",
    # Orchestration
    "analyze",
    # Ingestion
    "iter_csv_rows",
    "read_csv_rows",
    "validate_columns",
    # Report
    "build_report_tables",
    "write_report",
    "SHEET_ORDER",
]
