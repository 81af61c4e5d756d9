"""
Upload Ingestion Service

Turns uploaded spreadsheet blobs into two aggregated period snapshots
(previous / current) for the normalizer.

Pipeline:
1. Parse each blob: CSV (mimetype contains "csv" or name ends with .csv) and
   single-sheet spreadsheets (mimetype contains "spreadsheet" or name ends
   with .xlsx, first sheet only). Anything else is skipped, as is a blob that
   fails to parse. Skipping is not an error.
2. Normalize column names (trimmed, lower-case, spaces to underscores).
3. Parse the `date` column; rows without a parseable date are dropped.
   Every date is placed on UTC, so naive and offset-carrying values sort
   together.
4. Fail with InsufficientDataError if fewer than 2 dated rows remain.
5. Sort ascending by date (stable) and split at the midpoint:
   first half -> previous, second half -> current.
6. Aggregate each half into a PeriodSnapshot.

Aggregation Rules:
- Summed: revenue, marketing_spend. Missing/non-numeric cells count as 0.
- Averaged: cac, ltv, churn_rate, conversion_rate, gross_margin, burn_rate.
  Missing/non-numeric cells are excluded; no usable cell -> None.
- A metric whose column (or alias column) does not appear at all -> None.

The midpoint split is parameterless: it does not look at calendar months or
any other period boundary.
"""

import io
import logging
from typing import List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd

from execbrief.core.exceptions import InsufficientDataError
from execbrief.models import (
    AggregateMetadata,
    FileBlob,
    MetricKey,
    PeriodRange,
    PeriodSnapshot,
    RawAggregate,
)
from execbrief.services.normalization import METRIC_ALIASES, to_number

# Configure module logger
logger = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

DATE_COLUMN: str = 'date'

# Internal column holding the parsed timestamp
_PARSED_DATE: str = '__date'

MIN_DATED_ROWS: int = 2

SUMMED_METRICS: Tuple[MetricKey, ...] = (
    MetricKey.REVENUE,
    MetricKey.MARKETING_SPEND,
)

AVERAGED_METRICS: Tuple[MetricKey, ...] = (
    MetricKey.CAC,
    MetricKey.LTV,
    MetricKey.CHURN_RATE,
    MetricKey.CONVERSION_RATE,
    MetricKey.GROSS_MARGIN,
    MetricKey.BURN_RATE,
)

UPLOAD_ASSUMPTIONS: List[str] = [
    'Time-based comparison derived from uploaded data',
    'Periods split evenly',
]


# =============================================================================
# FILE PARSING
# =============================================================================

def _is_csv(blob: FileBlob) -> bool:
    return 'csv' in blob.mimetype.lower() or blob.originalname.lower().endswith('.csv')


def _is_spreadsheet(blob: FileBlob) -> bool:
    return 'spreadsheet' in blob.mimetype.lower() or blob.originalname.lower().endswith('.xlsx')


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df.columns = (
        df.columns.astype(str)
        .str.strip()
        .str.lower()
        .str.replace(r'\s+', '_', regex=True)
    )
    return df


def read_blob(blob: FileBlob) -> Optional[pd.DataFrame]:
    """
    Parse one uploaded blob into a DataFrame.

    Args:
        blob: Uploaded file

    Returns:
        DataFrame with normalized column names, or None if the blob is of an
        unsupported type or cannot be parsed.
    """
    try:
        if _is_csv(blob):
            df = pd.read_csv(
                io.BytesIO(blob.content),
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
            )
        elif _is_spreadsheet(blob):
            df = pd.read_excel(
                io.BytesIO(blob.content),
                sheet_name=0,
                engine='openpyxl',
            )
        else:
            logger.info(f"Skipping unsupported upload '{blob.originalname}' ({blob.mimetype})")
            return None
    except Exception as e:
        logger.warning(f"Skipping unreadable upload '{blob.originalname}': {e}")
        return None

    logger.info(f"Parsed '{blob.originalname}' with {len(df)} rows and {len(df.columns)} columns")
    return _normalize_columns(df)


# =============================================================================
# AGGREGATION
# =============================================================================

def _metric_series(df: pd.DataFrame, key: MetricKey) -> Optional[pd.Series]:
    """
    Per-row numeric values for `key`, taking the first alias column that holds
    a usable number in that row. None if no alias column exists.
    """
    columns = [alias for alias in METRIC_ALIASES[key] if alias in df.columns]
    if not columns:
        return None

    numeric = df[columns].apply(lambda column: column.map(to_number)).astype(float)
    return numeric.bfill(axis=1).iloc[:, 0]


def aggregate(rows: Union[pd.DataFrame, Sequence[Mapping]]) -> PeriodSnapshot:
    """
    Aggregate rows of one period into a PeriodSnapshot.

    Missing data stays None rather than 0: a metric with no column is None
    even for summed fields, so aggregate([]) is all-None, not zero revenue.

    Args:
        rows: DataFrame or sequence of row mappings (column -> scalar)

    Returns:
        PeriodSnapshot with summed and averaged metrics
    """
    df = rows if isinstance(rows, pd.DataFrame) else pd.DataFrame(list(rows))

    values = {}
    for key in SUMMED_METRICS:
        series = _metric_series(df, key)
        values[key.value] = None if series is None else float(series.fillna(0).sum())

    for key in AVERAGED_METRICS:
        series = _metric_series(df, key)
        if series is None:
            values[key.value] = None
            continue
        mean = series.mean(skipna=True)
        values[key.value] = None if pd.isna(mean) else float(mean)

    return PeriodSnapshot(**values)


def _period_range(df: pd.DataFrame) -> PeriodRange:
    return PeriodRange(
        start=df[_PARSED_DATE].min().date(),
        end=df[_PARSED_DATE].max().date(),
        rows=len(df),
    )


def build_time_based_aggregate(
    df: pd.DataFrame,
    metadata: Optional[AggregateMetadata] = None,
) -> RawAggregate:
    """
    Split dated rows at the midpoint and aggregate both halves.

    Args:
        df: Combined upload rows with normalized column names
        metadata: Provenance to complete (filenames, skipped files, currency)

    Returns:
        RawAggregate with previous (earlier half) and current (later half)

    Raises:
        InsufficientDataError: If fewer than 2 rows carry a parseable date
    """
    metadata = metadata.model_copy() if metadata else AggregateMetadata()
    total_rows = len(df)

    if DATE_COLUMN in df.columns:
        dates = pd.to_datetime(df[DATE_COLUMN], errors='coerce', format='mixed', utc=True)
    else:
        dates = pd.Series(pd.NaT, index=df.index, dtype='datetime64[ns, UTC]')
    dated = df.assign(**{_PARSED_DATE: dates}).dropna(subset=[_PARSED_DATE])

    dropped = total_rows - len(dated)
    if dropped:
        logger.info(f"Dropped {dropped} rows without a parseable '{DATE_COLUMN}'")

    if len(dated) < MIN_DATED_ROWS:
        raise InsufficientDataError(
            f"Not enough dated rows to compare periods (found {len(dated)}, need {MIN_DATED_ROWS})"
        )

    dated = dated.sort_values(_PARSED_DATE, kind='mergesort').reset_index(drop=True)

    midpoint = len(dated) // 2
    previous_rows = dated.iloc[:midpoint]
    current_rows = dated.iloc[midpoint:]

    logger.info(
        f"Split {len(dated)} dated rows into previous={len(previous_rows)} "
        f"and current={len(current_rows)}"
    )

    metadata.assumptions = list(UPLOAD_ASSUMPTIONS)
    metadata.row_count = len(dated)
    metadata.dropped_rows = dropped
    metadata.previous_period = _period_range(previous_rows)
    metadata.current_period = _period_range(current_rows)

    return RawAggregate(
        current=aggregate(current_rows),
        previous=aggregate(previous_rows),
        metadata=metadata,
    )


# =============================================================================
# ENTRY POINT
# =============================================================================

def parse_upload_files(files: Sequence[FileBlob], currency: str = 'USD') -> RawAggregate:
    """
    Parse uploaded blobs and build the two-period raw aggregate.

    Args:
        files: Uploaded blobs in upload order
        currency: Currency code recorded in the aggregate metadata

    Returns:
        RawAggregate ready for normalization

    Raises:
        InsufficientDataError: If fewer than 2 dated rows exist across all
            usable files
    """
    frames: List[pd.DataFrame] = []
    skipped: List[str] = []

    for blob in files:
        df = read_blob(blob)
        if df is None:
            skipped.append(blob.originalname)
            continue
        frames.append(df)

    combined = pd.concat(frames, ignore_index=True, sort=False) if frames else pd.DataFrame()

    metadata = AggregateMetadata(
        source='upload',
        currency=currency,
        confidence='high',
        filenames=[blob.originalname for blob in files],
        skipped_files=skipped,
    )

    return build_time_based_aggregate(combined, metadata)
