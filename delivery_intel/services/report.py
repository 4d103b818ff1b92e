"""
Report Assembler Service

Turns an AnalysisResult into spreadsheet-ready tables and writes them as an
.xlsx workbook. Everything here is derived from the AnalysisResult only; the
engine is never re-run.

Sheets:
- Summary: headline metric / value pairs
- Number Health: one row per number
- Consecutive Unsuccessful: qualifying failure runs
- Retry Decay: success probability by attempt index
- Global Time (Hour) / Global Time (Day): dataset-wide time tables
- Accounts / Messages / Callers: entity rollups
"""

import logging
from datetime import datetime, timezone
from typing import Any, BinaryIO, Dict, List, Optional, Union

import pandas as pd

from delivery_intel.models.enums import DAY_NAMES
from delivery_intel.models.schemas import AnalysisResult, BucketPick, EntityStats, TimeBucketStats

logger = logging.getLogger(__name__)


SHEET_SUMMARY = 'Summary'
SHEET_NUMBER_HEALTH = 'Number Health'
SHEET_RUNS = 'Consecutive Unsuccessful'
SHEET_DECAY = 'Retry Decay'
SHEET_HOURLY = 'Global Time (Hour)'
SHEET_DAILY = 'Global Time (Day)'
SHEET_ACCOUNTS = 'Accounts'
SHEET_MESSAGES = 'Messages'
SHEET_CALLERS = 'Callers'

SHEET_ORDER: List[str] = [
    SHEET_SUMMARY,
    SHEET_NUMBER_HEALTH,
    SHEET_RUNS,
    SHEET_DECAY,
    SHEET_HOURLY,
    SHEET_DAILY,
    SHEET_ACCOUNTS,
    SHEET_MESSAGES,
    SHEET_CALLERS,
]


def _excel_time(value: Optional[datetime]) -> Optional[datetime]:
    # Excel cells cannot hold timezone-aware datetimes
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _pct(rate: float) -> float:
    return round(rate * 100, 2)


def _pick_label(pick: Optional[BucketPick]) -> str:
    if pick is None:
        return ''
    return f"{pick.label} ({_pct(pick.successRate)}% of {pick.attempts})"


# =============================================================================
# Table Builders
# =============================================================================

def _summary_table(result: AnalysisResult) -> pd.DataFrame:
    params = result.parameters
    rows = [
        ('Dataset Start (UTC)', _excel_time(result.datasetStart)),
        ('Dataset End (UTC)', _excel_time(result.datasetEnd)),
        ('Total Rows', result.totalRows),
        ('Rejected Rows', result.rejectedRows),
        ('Non-Attempt Rows', result.nonAttemptRows),
        ('Delivery Attempts', result.deliveryAttempts),
        ('Unique Numbers', result.uniqueNumberCount),
        ('Healthy', result.healthyCount),
        ('Degrading', result.degradingCount),
        ('Toxic', result.toxicCount),
        ('Never Delivered', result.neverDeliveredCount),
        ('Suppression Candidates', result.suppressionCount),
        ('Overall Success Rate (%)', _pct(result.overallSuccessRate)),
        ('List Quality Grade', result.listGrade.value),
        ('Min Consecutive Unsuccessful', params.minConsecUnsuccessful),
        ('Min Run Span (Days)', params.minRunSpanDays),
        ('Recent Success Window (Days)', params.recentSuccessWindowDays),
    ]
    return pd.DataFrame(rows, columns=['Metric', 'Value'])


def _number_health_table(result: AnalysisResult) -> pd.DataFrame:
    records = [
        {
            'Phone Number': s.phoneNumber,
            'Health': s.healthLabel.value if s.healthLabel else '',
            'Suppress': s.suppress,
            'Attempts': s.totalAttempts,
            'Successful': s.successCount,
            'Unsuccessful': s.unsuccessfulCount,
            'Non-Attempts': s.nonAttemptCount,
            'Success Rate (%)': _pct(s.successRate),
            'Consecutive Failures': s.consecutiveFailures,
            'Attempt Index': s.attemptIndex,
            'Last Success (UTC)': _excel_time(s.lastSuccessTimestamp),
            'Recent Success': s.hasRecentSuccess,
            'Variability Score': s.variabilityScore,
            'Distinct Messages': s.distinctMessages,
            'Distinct Callers': s.distinctCallers,
            'Accounts': ', '.join(s.accountIds),
            'First Attempt (UTC)': _excel_time(s.firstAttempt),
            'Last Attempt (UTC)': _excel_time(s.lastAttempt),
            'Cadence': s.cadence,
            'Gap Min': s.gapMin,
            'Gap Avg': s.gapAvg,
            'Gap Median': s.gapMedian,
            'Gap Max': s.gapMax,
            'Attempts / Week': s.attemptsPerWeek,
            'Attempts / Month': s.attemptsPerMonth,
            'Top Message': s.topMessageId,
            'Top Caller': s.topCallerNumber,
            'Top Combo': s.topCombo,
            'Top Combo Success Rate (%)': _pct(s.topComboSuccessRate),
            'Best Hour': _pick_label(s.bestHour),
            'Worst Hour': _pick_label(s.worstHour),
            'Best Day': _pick_label(s.bestDayOfWeek),
        }
        for s in result.numberProfiles
    ]
    return pd.DataFrame.from_records(records)


def _runs_table(result: AnalysisResult) -> pd.DataFrame:
    records = [
        {
            'Phone Number': r.phoneNumber,
            'Run Length': r.length,
            'Start (UTC)': _excel_time(r.startTimestamp),
            'End (UTC)': _excel_time(r.endTimestamp),
            'Span (Days)': r.spanDays,
            'Open': r.isOpen,
            'Health': r.healthLabel.value if r.healthLabel else '',
            'Total Attempts': r.totalAttempts,
            'Overall Success Rate (%)': _pct(r.overallSuccessRate),
            'Last Message': r.lastMessageId,
            'Last Caller': r.lastCallerNumber,
        }
        for r in result.consecutiveRuns
    ]
    return pd.DataFrame.from_records(records)


def _decay_table(result: AnalysisResult) -> pd.DataFrame:
    return pd.DataFrame.from_records([
        {
            'Attempt Index': b.label,
            'Delivery Attempts': b.totalDeliveryAttempts,
            'Successful': b.successfulCount,
            'Success Probability (%)': _pct(b.probability),
        }
        for b in result.decayCurve
    ])


def _time_table(buckets: List[TimeBucketStats], key_name: str) -> pd.DataFrame:
    return pd.DataFrame.from_records([
        {
            key_name: b.label,
            'Attempts': b.attempts,
            'Successful': b.successful,
            'Unsuccessful': b.unsuccessful,
            'Success Rate (%)': _pct(b.successRate),
        }
        for b in buckets
    ])


def _entity_table(stats: List[EntityStats], id_name: str) -> pd.DataFrame:
    records: List[Dict[str, Any]] = []
    for e in stats:
        record: Dict[str, Any] = {
            id_name: e.id,
            'Name': e.displayName,
            'Description': e.description,
            'Attempts': e.total,
            'Successful': e.successful,
            'Unsuccessful': e.unsuccessful,
            'Success Rate (%)': _pct(e.successRate),
            'Unique Numbers': e.uniquePhoneNumberCount,
        }
        for day, count in zip(DAY_NAMES, e.dayOfWeekCounts):
            record[day] = count
        record['Limited Day Usage'] = e.dayPattern.limitedDayUsage
        record['Recommendation'] = e.dayPattern.recommendation or ''
        records.append(record)
    return pd.DataFrame.from_records(records)


def build_report_tables(result: AnalysisResult) -> Dict[str, pd.DataFrame]:
    """
    Build one DataFrame per report sheet.

    Args:
        result: Completed AnalysisResult

    Returns:
        Ordered mapping of sheet name to DataFrame
    """
    return {
        SHEET_SUMMARY: _summary_table(result),
        SHEET_NUMBER_HEALTH: _number_health_table(result),
        SHEET_RUNS: _runs_table(result),
        SHEET_DECAY: _decay_table(result),
        SHEET_HOURLY: _time_table(result.hourlyGlobal, 'Hour (UTC)'),
        SHEET_DAILY: _time_table(result.dailyGlobal, 'Day'),
        SHEET_ACCOUNTS: _entity_table(result.accountStats, 'Account ID'),
        SHEET_MESSAGES: _entity_table(result.messageStats, 'Message ID'),
        SHEET_CALLERS: _entity_table(result.callerStats, 'Caller Number'),
    }


def write_report(result: AnalysisResult, target: Union[str, BinaryIO]) -> None:
    """
    Write the workbook to a path or a binary buffer.

    Args:
        result: Completed AnalysisResult
        target: File path or writable binary buffer (e.g. io.BytesIO)
    """
    tables = build_report_tables(result)
    with pd.ExcelWriter(target, engine='openpyxl') as writer:
        for sheet_name, frame in tables.items():
            frame.to_excel(writer, sheet_name=sheet_name, index=False)
    logger.info(f"Wrote report with {len(tables)} sheets")
