"""
CSV Ingestion Service

Turns an uploaded delivery export CSV into the raw row mappings consumed by
the analysis engine.

Key Features:
- Chunked parsing with pandas (bounded memory for the raw-text stage)
- Every cell read as text; blanks stay "" so the normalizer decides what
  is usable
- Column names lower-cased and stripped before they reach the normalizer
- Header validation: a phone-number column and a timestamp column must exist

Cell-level problems are not errors here. Bad rows are dropped and counted by
the normalizer.
"""

import io
import logging
from typing import Any, BinaryIO, Dict, Iterator, List, Sequence, Tuple, Union

import pandas as pd

from delivery_intel.core.exceptions import CsvIngestionError
from delivery_intel.models.schemas import ValidationError
from delivery_intel.services.normalizer import NUMBER_FIELDS, TIMESTAMP_FIELDS

logger = logging.getLogger(__name__)


DEFAULT_CHUNK_SIZE: int = 50_000

CsvSource = Union[bytes, str, BinaryIO]


def _read_content(file: CsvSource) -> bytes:
    if hasattr(file, 'read'):
        content = file.read()
    else:
        content = file
    if isinstance(content, str):
        content = content.encode('utf-8')
    return content


def _normalize_columns(columns: Sequence[Any]) -> List[str]:
    return [str(col).strip().lower() for col in columns]


def _read_csv(content: bytes, **kwargs: Any) -> Any:
    try:
        return pd.read_csv(
            io.BytesIO(content),
            dtype=str,
            keep_default_na=False,
            encoding='utf-8-sig',
            **kwargs,
        )
    except (pd.errors.EmptyDataError, pd.errors.ParserError, UnicodeDecodeError) as e:
        raise CsvIngestionError(f"Failed to parse CSV file: {e}") from e


# =============================================================================
# VALIDATION
# =============================================================================

def validate_columns(columns: Sequence[str]) -> List[ValidationError]:
    """
    Validate that the header carries a phone-number and a timestamp column.

    Args:
        columns: Header names (any case)

    Returns:
        List of ValidationError objects for any missing column group
    """
    errors: List[ValidationError] = []
    present = set(_normalize_columns(columns))

    if not present.intersection(NUMBER_FIELDS):
        errors.append(ValidationError(
            field='number',
            message=f"One of the columns {', '.join(NUMBER_FIELDS)} is required",
            row_number=None
        ))
    if not present.intersection(TIMESTAMP_FIELDS):
        errors.append(ValidationError(
            field='timestamp',
            message=f"One of the columns {', '.join(TIMESTAMP_FIELDS)} is required",
            row_number=None
        ))

    return errors


# =============================================================================
# PARSING
# =============================================================================

def read_csv_columns(file: CsvSource) -> List[str]:
    """Read only the header row, normalized."""
    frame = _read_csv(_read_content(file), nrows=0)
    return _normalize_columns(frame.columns)


def iter_csv_rows(
    file: CsvSource,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Iterator[Dict[str, str]]:
    """
    Lazily yield CSV rows as dicts, parsing chunk_size rows at a time.

    Args:
        file: Raw CSV bytes, text, or a binary file object
        chunk_size: Rows per pandas chunk

    Yields:
        One {column: cell text} dict per data row

    Raises:
        CsvIngestionError: If the CSV cannot be parsed
    """
    content = _read_content(file)
    reader = _read_csv(content, chunksize=max(1, chunk_size))

    chunks = 0
    with reader:
        while True:
            try:
                chunk = next(reader)
            except StopIteration:
                break
            except pd.errors.ParserError as e:
                raise CsvIngestionError(f"Failed to parse CSV file: {e}") from e
            chunks += 1
            chunk.columns = _normalize_columns(chunk.columns)
            logger.debug(f"Parsed CSV chunk {chunks} with {len(chunk)} rows")
            for row in chunk.to_dict(orient='records'):
                yield row


def read_csv_rows(
    file: CsvSource,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Tuple[Iterator[Dict[str, str]], List[ValidationError]]:
    """
    Validate a CSV upload and open a lazy row stream over its body.

    Performs the following steps:
    1. Read the header and validate required columns
    2. Return a generator that parses the body in chunks into row dicts, so
       the analyzer consumes rows without the whole file being materialized

    Args:
        file: Raw CSV bytes, text, or a binary file object
        chunk_size: Rows per pandas chunk

    Returns:
        Tuple of (row iterator, validation errors); the iterator is empty
        when the header failed validation

    Raises:
        CsvIngestionError: If the CSV cannot be parsed at all. A malformed
            body chunk raises it later, while the iterator is consumed.
    """
    content = _read_content(file)
    if not content.strip():
        raise CsvIngestionError("CSV file is empty")

    errors = validate_columns(read_csv_columns(content))
    if errors:
        logger.info(f"CSV header rejected with {len(errors)} validation errors")
        return iter(()), errors

    logger.info(f"CSV header accepted; streaming rows in chunks of {chunk_size}")
    return iter_csv_rows(content, chunk_size), errors
