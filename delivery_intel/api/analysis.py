"""
FastAPI router module for delivery analysis.

Implements:
- POST /analysis: analyze rows sent as JSON (AnalyzeRequest)
- POST /analysis/csv: analyze a raw CSV body, thresholds as query parameters
- POST /analysis/report: analyze a raw CSV body and download the .xlsx report

The engine is synchronous and is called directly; every request owns its own
analysis run. Thresholds omitted by the caller fall back to the configured
defaults (see delivery_intel.core.config).

Error Mapping:
- NoAnalyzableDataError -> 422 with the reason and a descriptive message
- CsvIngestionError (up front or while streaming rows) / header validation errors -> 400
- Anything else -> 500, logged with the traceback
- Body larger than MAX_UPLOAD_BYTES -> 413
"""

import io
import logging
from typing import Any, Dict, Iterator, Optional

from fastapi import APIRouter, Body, HTTPException, Query, Request
from fastapi.responses import StreamingResponse

from delivery_intel.core.dependencies import SettingsDep
from delivery_intel.core.exceptions import CsvIngestionError, NoAnalyzableDataError
from delivery_intel.models.schemas import AnalysisResult, AnalyzeRequest
from delivery_intel.services.analyzer import analyze
from delivery_intel.services.ingestion import read_csv_rows
from delivery_intel.services.report import write_report


# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analysis", tags=["analysis"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
REPORT_FILENAME = "delivery_intelligence_report.xlsx"


# =============================================================================
# Helpers
# =============================================================================

def _pick(value: Optional[Any], default: Any) -> Any:
    return default if value is None else value


def _no_data_exception(error: NoAnalyzableDataError) -> HTTPException:
    logger.info(f"Nothing to analyze: {error.reason.value} ({error.total_rows} rows)")
    return HTTPException(
        status_code=422,
        detail={
            "reason": error.reason.value,
            "message": str(error),
            "totalRows": error.total_rows,
        },
    )


async def _read_csv_body(request: Request, settings: SettingsDep) -> Iterator[Dict[str, str]]:
    body = await request.body()
    if len(body) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"CSV body exceeds {settings.max_upload_bytes} bytes"
        )

    try:
        rows, errors = read_csv_rows(body, chunk_size=settings.csv_chunk_size)
    except CsvIngestionError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if errors:
        raise HTTPException(
            status_code=400,
            detail=[error.model_dump() for error in errors]
        )
    return rows


def _run_csv_analysis(
    rows: Iterator[Dict[str, str]],
    settings: SettingsDep,
    min_consec_unsuccessful: Optional[int],
    min_run_span_days: Optional[int],
    recent_success_window_days: Optional[int],
    allow_generic_numbers: Optional[bool],
) -> AnalysisResult:
    try:
        return analyze(
            rows,
            min_consec_unsuccessful=_pick(min_consec_unsuccessful, settings.min_consec_unsuccessful),
            min_run_span_days=_pick(min_run_span_days, settings.min_run_span_days),
            recent_success_window_days=_pick(
                recent_success_window_days, settings.recent_success_window_days
            ),
            allow_generic_numbers=_pick(allow_generic_numbers, settings.allow_generic_numbers),
        )
    except NoAnalyzableDataError as e:
        raise _no_data_exception(e)
    except CsvIngestionError as e:
        logger.info(f"CSV body rejected while streaming: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Error analyzing CSV upload")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to analyze CSV: {str(e)}"
        )


# =============================================================================
# Endpoints
# =============================================================================

@router.post("", response_model=AnalysisResult)
async def analyze_rows(
    settings: SettingsDep,
    analyze_request: AnalyzeRequest = Body(...),
) -> AnalysisResult:
    """
    Analyze rows sent as JSON.

    Args:
        analyze_request: Rows, optional thresholds and display directories

    Returns:
        AnalysisResult
    """
    try:
        result = analyze(
            analyze_request.rows,
            min_consec_unsuccessful=_pick(
                analyze_request.minConsecUnsuccessful, settings.min_consec_unsuccessful
            ),
            min_run_span_days=_pick(analyze_request.minRunSpanDays, settings.min_run_span_days),
            message_directory=analyze_request.messageDirectory,
            caller_directory=analyze_request.callerDirectory,
            account_directory=analyze_request.accountDirectory,
            allow_generic_numbers=_pick(
                analyze_request.allowGenericNumbers, settings.allow_generic_numbers
            ),
            recent_success_window_days=_pick(
                analyze_request.recentSuccessWindowDays, settings.recent_success_window_days
            ),
        )
    except NoAnalyzableDataError as e:
        raise _no_data_exception(e)
    except Exception as e:
        logger.exception("Error analyzing JSON rows")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to analyze rows: {str(e)}"
        )

    logger.info(f"Analyzed {result.totalRows} JSON rows")
    return result


@router.post("/csv", response_model=AnalysisResult)
async def analyze_csv(
    request: Request,
    settings: SettingsDep,
    min_consec_unsuccessful: Optional[int] = Query(None, description="Minimum failure run length"),
    min_run_span_days: Optional[int] = Query(None, description="Minimum failure run span in days"),
    recent_success_window_days: Optional[int] = Query(None, description="Recent success window in days"),
    allow_generic_numbers: Optional[bool] = Query(None, description="Accept >=7 digit identifiers"),
) -> AnalysisResult:
    """
    Analyze a raw CSV body (Content-Type: text/csv).

    Returns:
        AnalysisResult
    """
    rows = await _read_csv_body(request, settings)
    result = _run_csv_analysis(
        rows,
        settings,
        min_consec_unsuccessful,
        min_run_span_days,
        recent_success_window_days,
        allow_generic_numbers,
    )
    logger.info(f"Analyzed CSV upload with {result.totalRows} rows")
    return result


@router.post("/report")
async def analyze_csv_report(
    request: Request,
    settings: SettingsDep,
    min_consec_unsuccessful: Optional[int] = Query(None, description="Minimum failure run length"),
    min_run_span_days: Optional[int] = Query(None, description="Minimum failure run span in days"),
    recent_success_window_days: Optional[int] = Query(None, description="Recent success window in days"),
    allow_generic_numbers: Optional[bool] = Query(None, description="Accept >=7 digit identifiers"),
) -> StreamingResponse:
    """
    Analyze a raw CSV body and return the multi-sheet .xlsx report.

    Returns:
        StreamingResponse with the workbook as an attachment
    """
    rows = await _read_csv_body(request, settings)
    result = _run_csv_analysis(
        rows,
        settings,
        min_consec_unsuccessful,
        min_run_span_days,
        recent_success_window_days,
        allow_generic_numbers,
    )

    buffer = io.BytesIO()
    try:
        write_report(result, buffer)
    except Exception as e:
        logger.exception("Error writing analysis report")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to build report: {str(e)}"
        )
    buffer.seek(0)

    return StreamingResponse(
        buffer,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{REPORT_FILENAME}"'},
    )
