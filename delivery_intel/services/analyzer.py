"""
Delivery Analysis Orchestrator

Single entry point of the engine. One call owns one profile map and runs the
pipeline end to end:

    raw rows
      -> normalize (drop bad rows, split attempts / non-attempts)
      -> global sort + per-number fold
      -> health classification, variability scoring, trend summary
      -> consecutive-failure runs, retry decay curve
      -> global hour / day tables, account / message / caller rollups
      -> list quality grade
      -> AnalysisResult

The engine is synchronous and keeps no module-level state, so concurrent
calls on different inputs are independent.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from delivery_intel.core.exceptions import NoAnalyzableDataError, NoDataReason
from delivery_intel.models.enums import HealthLabel
from delivery_intel.models.schemas import (
    AnalysisParameters,
    AnalysisResult,
    MessageInfo,
    NumberSummary,
)
from delivery_intel.services.aggregator import NumberProfile, build_profiles
from delivery_intel.services.decay import build_decay_curve
from delivery_intel.services.health import classify_profile, has_recent_success
from delivery_intel.services.normalizer import NormalizedBatch, normalize_rows
from delivery_intel.services.rollups import (
    build_account_stats,
    build_caller_stats,
    build_daily_stats,
    build_hourly_stats,
    build_message_stats,
    calculate_list_grade,
)
from delivery_intel.services.runs import detect_all_runs
from delivery_intel.services.trends import summarize_trends
from delivery_intel.services.variability import variability_breakdown

logger = logging.getLogger(__name__)


DEFAULT_MIN_CONSEC_UNSUCCESSFUL: int = 4
DEFAULT_MIN_RUN_SPAN_DAYS: int = 30
DEFAULT_RECENT_SUCCESS_WINDOW_DAYS: int = 14

# Report order for number summaries: worst first, unclassified last
_HEALTH_ORDER: Dict[Optional[HealthLabel], int] = {
    HealthLabel.TOXIC: 0,
    HealthLabel.DEGRADING: 1,
    HealthLabel.HEALTHY: 2,
    None: 3,
}


# =============================================================================
# Parameter Handling
# =============================================================================


def _clamp_parameter(name: str, value: int, minimum: int) -> int:
    if value < minimum:
        logger.warning(f"{name}={value} is below {minimum}; using {minimum}")
        return minimum
    return value


def resolve_parameters(
    min_consec_unsuccessful: int,
    min_run_span_days: int,
    recent_success_window_days: int,
    allow_generic_numbers: bool,
) -> AnalysisParameters:
    """
    Clamp out-of-range thresholds into the effective parameter set.

    Out-of-range values are logged and corrected, never raised.
    """
    return AnalysisParameters(
        minConsecUnsuccessful=_clamp_parameter("min_consec_unsuccessful", int(min_consec_unsuccessful), 1),
        minRunSpanDays=_clamp_parameter("min_run_span_days", int(min_run_span_days), 0),
        recentSuccessWindowDays=_clamp_parameter(
            "recent_success_window_days", int(recent_success_window_days), 0
        ),
        allowGenericNumbers=bool(allow_generic_numbers),
    )


def coerce_message_directory(
    directory: Optional[Mapping[str, Union[MessageInfo, Mapping[str, Any]]]],
) -> Dict[str, MessageInfo]:
    """Accept MessageInfo models or plain {"name", "description"} mappings."""
    coerced: Dict[str, MessageInfo] = {}
    for key, info in (directory or {}).items():
        if isinstance(info, MessageInfo):
            coerced[str(key)] = info
        else:
            coerced[str(key)] = MessageInfo(
                name=str(info.get("name") or ""),
                description=str(info.get("description") or ""),
            )
    return coerced


def _check_analyzable(batch: NormalizedBatch) -> None:
    stats = batch.stats
    if batch.attempts:
        return
    if stats.total_rows == 0:
        raise NoAnalyzableDataError(NoDataReason.NO_ROWS)
    if stats.rejected_number == stats.total_rows:
        raise NoAnalyzableDataError(NoDataReason.NO_VALID_NUMBERS, stats.total_rows)
    raise NoAnalyzableDataError(NoDataReason.NO_TIMESTAMPS, stats.total_rows)


# =============================================================================
# Summaries
# =============================================================================


def build_number_summary(
    profile: NumberProfile,
    health_label: Optional[HealthLabel],
    recent_success: bool,
) -> NumberSummary:
    """Freeze one folded profile into its response model."""
    breakdown = variability_breakdown(profile)
    return NumberSummary(
        phoneNumber=profile.phone_number,
        totalAttempts=profile.total_attempts,
        successCount=profile.success_count,
        unsuccessfulCount=profile.unsuccessful_count,
        nonAttemptCount=profile.non_attempt_count,
        successRate=profile.success_rate,
        attemptIndex=profile.attempt_index,
        consecutiveFailures=profile.consecutive_failures,
        lastSuccessTimestamp=profile.last_success_timestamp,
        hasRecentSuccess=recent_success,
        healthLabel=health_label,
        suppress=health_label is HealthLabel.TOXIC,
        variabilityScore=breakdown.score if breakdown is not None else None,
        variability=breakdown,
        distinctMessages=len([k for k in profile.message_counts if k]),
        distinctCallers=len([k for k in profile.caller_counts if k]),
        accountIds=sorted(k for k in profile.account_counts if k),
        **summarize_trends(profile),
    )


def _percent(count: int, total: int) -> float:
    return (count / total) * 100 if total else 0.0


# =============================================================================
# Entry Point
# =============================================================================


def analyze(
    rows: Iterable[Mapping[str, Any]],
    min_consec_unsuccessful: int = DEFAULT_MIN_CONSEC_UNSUCCESSFUL,
    min_run_span_days: int = DEFAULT_MIN_RUN_SPAN_DAYS,
    message_directory: Optional[Mapping[str, Union[MessageInfo, Mapping[str, Any]]]] = None,
    caller_directory: Optional[Mapping[str, str]] = None,
    account_directory: Optional[Mapping[str, str]] = None,
    allow_generic_numbers: bool = False,
    recent_success_window_days: int = DEFAULT_RECENT_SUCCESS_WINDOW_DAYS,
) -> AnalysisResult:
    """
    Run the full delivery analysis over raw rows.

    Args:
        rows: Raw row mappings (CSV rows or API export rows), any order
        min_consec_unsuccessful: Minimum length of a reported failure run
        min_run_span_days: Minimum day span of a reported failure run
        message_directory: Optional message id -> name / description
        caller_directory: Optional caller number -> display name
        account_directory: Optional account id -> display name
        allow_generic_numbers: Accept >=7 digit identifiers
        recent_success_window_days: Trailing window for the recent-success flag

    Returns:
        AnalysisResult

    Raises:
        NoAnalyzableDataError: When no row has both a usable phone number
            and a parseable timestamp
    """
    parameters = resolve_parameters(
        min_consec_unsuccessful,
        min_run_span_days,
        recent_success_window_days,
        allow_generic_numbers,
    )
    logger.info(
        f"Starting analysis: min_consec_unsuccessful={parameters.minConsecUnsuccessful}, "
        f"min_run_span_days={parameters.minRunSpanDays}, "
        f"recent_success_window_days={parameters.recentSuccessWindowDays}, "
        f"allow_generic_numbers={parameters.allowGenericNumbers}"
    )

    batch = normalize_rows(rows, allow_generic_numbers=parameters.allowGenericNumbers)
    _check_analyzable(batch)

    profiles = build_profiles(batch.attempts, batch.non_attempts)

    dataset_start = min(a.timestamp for a in batch.attempts)
    dataset_end = max(a.timestamp for a in batch.attempts)

    health_labels: Dict[str, Optional[HealthLabel]] = {}
    summaries: List[NumberSummary] = []
    for phone_number, profile in profiles.items():
        label = classify_profile(profile, dataset_end, parameters.recentSuccessWindowDays)
        recent = has_recent_success(
            profile.last_success_timestamp, dataset_end, parameters.recentSuccessWindowDays
        )
        health_labels[phone_number] = label
        summaries.append(build_number_summary(profile, label, recent))

    summaries.sort(key=lambda s: (_HEALTH_ORDER[s.healthLabel], -s.consecutiveFailures, s.phoneNumber))

    runs = detect_all_runs(
        profiles,
        health_labels,
        min_consec_unsuccessful=parameters.minConsecUnsuccessful,
        min_run_span_days=parameters.minRunSpanDays,
    )

    classified = [s for s in summaries if s.healthLabel is not None]
    healthy = sum(1 for s in classified if s.healthLabel is HealthLabel.HEALTHY)
    degrading = sum(1 for s in classified if s.healthLabel is HealthLabel.DEGRADING)
    toxic = sum(1 for s in classified if s.healthLabel is HealthLabel.TOXIC)
    never_delivered = sum(1 for s in classified if s.successCount == 0)

    list_grade = calculate_list_grade(
        healthy_pct=_percent(healthy, len(classified)),
        toxic_pct=_percent(toxic, len(classified)),
        never_delivered_pct=_percent(never_delivered, len(classified)),
    )

    delivery_attempts = len(batch.attempts)
    total_successes = sum(p.success_count for p in profiles.values())

    result = AnalysisResult(
        parameters=parameters,
        datasetStart=dataset_start,
        datasetEnd=dataset_end,
        totalRows=batch.stats.total_rows,
        rejectedRows=batch.stats.rejected_rows,
        nonAttemptRows=batch.stats.non_attempts,
        deliveryAttempts=delivery_attempts,
        uniqueNumberCount=len(profiles),
        healthyCount=healthy,
        degradingCount=degrading,
        toxicCount=toxic,
        neverDeliveredCount=never_delivered,
        suppressionCount=toxic,
        overallSuccessRate=total_successes / delivery_attempts,
        listGrade=list_grade,
        numberProfiles=summaries,
        consecutiveRuns=runs,
        decayCurve=build_decay_curve(profiles.values()),
        hourlyGlobal=build_hourly_stats(profiles.values()),
        dailyGlobal=build_daily_stats(profiles.values()),
        accountStats=build_account_stats(profiles.values(), account_directory),
        messageStats=build_message_stats(profiles.values(), coerce_message_directory(message_directory)),
        callerStats=build_caller_stats(profiles.values(), caller_directory),
    )

    logger.info(
        f"Analysis complete: {result.uniqueNumberCount} numbers, {delivery_attempts} attempts, "
        f"{healthy} healthy, {degrading} degrading, {toxic} toxic, "
        f"{len(runs)} runs, grade {list_grade.value}"
    )
    return result
