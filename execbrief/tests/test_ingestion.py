"""
Test Module for Upload Ingestion Service.

Validates:
- File type detection (CSV / XLSX) and skipping of unsupported or unreadable files
- Column name normalization and alias resolution
- Date parsing, undated-row dropping and the 2-row minimum
- Stable sort and midpoint split into previous / current periods
- Sum vs. average aggregation semantics and missing-column handling
"""

import pandas as pd
import pytest

from execbrief.core.exceptions import InsufficientDataError
from execbrief.models import FileBlob, RawAggregate
from execbrief.services.ingestion import (
    UPLOAD_ASSUMPTIONS,
    aggregate,
    build_time_based_aggregate,
    parse_upload_files,
    read_blob,
)

from execbrief.tests.conftest import csv_blob, xlsx_blob


# =============================================================================
# TEST CLASS: File Parsing
# =============================================================================

class TestReadBlob:
    """Tests for single-blob parsing."""

    def test_csv_columns_are_normalized(self):
        """Headers are trimmed, lower-cased and spaces become underscores."""
        df = pd.DataFrame({' Date ': ['2024-01-01'], 'Marketing Spend': ['10']})
        parsed = read_blob(csv_blob(df))

        assert list(parsed.columns) == ['date', 'marketing_spend']

    def test_csv_detected_by_extension(self):
        """A .csv name is enough even with a generic mimetype."""
        df = pd.DataFrame({'date': ['2024-01-01'], 'revenue': ['1']})
        blob = csv_blob(df)
        blob = FileBlob(mimetype='application/octet-stream', originalname='data.CSV', content=blob.content)

        assert read_blob(blob) is not None

    def test_xlsx_first_sheet_is_read(self):
        """Spreadsheets are read from the first sheet."""
        df = pd.DataFrame({'Date': ['2024-01-01', '2024-02-01'], 'Revenue': [100, 150]})
        parsed = read_blob(xlsx_blob(df))

        assert list(parsed.columns) == ['date', 'revenue']
        assert len(parsed) == 2

    def test_unsupported_type_is_skipped(self):
        """Anything other than CSV / XLSX returns None."""
        blob = FileBlob(mimetype='text/plain', originalname='notes.txt', content=b'hello')
        assert read_blob(blob) is None

    def test_unreadable_spreadsheet_is_skipped(self):
        """A corrupt spreadsheet is skipped, not raised."""
        blob = FileBlob(mimetype='', originalname='broken.xlsx', content=b'not a zip archive')
        assert read_blob(blob) is None


# =============================================================================
# TEST CLASS: Aggregation
# =============================================================================

class TestAggregate:
    """Tests for per-period aggregation."""

    def test_sums_treat_bad_cells_as_zero(self):
        """Missing or non-numeric revenue cells count as 0 in the sum."""
        snapshot = aggregate([
            {'revenue': '100'},
            {'revenue': 'n/a'},
            {'revenue': ''},
            {'revenue': '$1,200'},
        ])
        assert snapshot.revenue == 1300.0

    def test_averages_exclude_bad_cells(self):
        """Averages only count usable cells."""
        snapshot = aggregate([
            {'cac': '100'},
            {'cac': ''},
            {'cac': 'unknown'},
            {'cac': '120'},
        ])
        assert snapshot.cac == 110.0

    def test_average_without_usable_cells_is_none(self):
        """An averaged column with no usable cell is None, not 0."""
        snapshot = aggregate([{'churn_rate': ''}, {'churn_rate': 'x'}])
        assert snapshot.churn_rate is None

    def test_missing_column_is_none(self):
        """A metric whose column never appears is None even for sums."""
        snapshot = aggregate([{'revenue': '10'}])

        assert snapshot.marketing_spend is None
        assert snapshot.ltv is None

    def test_alias_columns_are_resolved(self):
        """Source aliases (sales, ad_spend, churn, cvr) map onto canonical fields."""
        snapshot = aggregate([
            {'sales': '50', 'ad_spend': '5', 'churn': '2%', 'cvr': '3'},
            {'sales': '70', 'ad_spend': '7', 'churn': '4%', 'cvr': '5'},
        ])

        assert snapshot.revenue == 120.0
        assert snapshot.marketing_spend == 12.0
        assert snapshot.churn_rate == 3.0
        assert snapshot.conversion_rate == 4.0

    def test_empty_period_is_all_none(self):
        """No rows means no columns, so even summed metrics are None."""
        snapshot = aggregate([])

        assert snapshot.revenue is None
        assert snapshot.cac is None

    def test_first_usable_alias_wins_per_row(self):
        """When several alias columns exist, the first usable one is taken per row."""
        snapshot = aggregate([
            {'revenue': '10', 'sales': '999'},
            {'revenue': '', 'sales': '20'},
        ])
        assert snapshot.revenue == 30.0


# =============================================================================
# TEST CLASS: Period Split
# =============================================================================

class TestTimeBasedAggregate:
    """Tests for date handling and the midpoint split."""

    def test_two_rows_split_one_and_one(self, two_month_df):
        """The smallest upload compares row 1 against row 2."""
        df = two_month_df.astype(str)
        raw = build_time_based_aggregate(df)

        assert raw.previous.revenue == 100.0
        assert raw.current.revenue == 150.0
        assert raw.metadata.previous_period.rows == 1
        assert raw.metadata.current_period.rows == 1

    def test_odd_row_count_gives_current_the_extra_row(self):
        """floor(n/2) rows go to previous, the rest to current."""
        df = pd.DataFrame({
            'date': ['2024-01-01', '2024-02-01', '2024-03-01'],
            'revenue': ['10', '20', '30'],
        })
        raw = build_time_based_aggregate(df)

        assert raw.previous.revenue == 10.0
        assert raw.current.revenue == 50.0

    def test_rows_are_sorted_by_date(self):
        """Rows arrive in any order; the split is by ascending date."""
        df = pd.DataFrame({
            'date': ['2024-04-01', '2024-01-01', '2024-03-01', '2024-02-01'],
            'revenue': ['4', '1', '3', '2'],
        })
        raw = build_time_based_aggregate(df)

        assert raw.previous.revenue == 3.0
        assert raw.current.revenue == 7.0
        assert str(raw.metadata.previous_period.start) == '2024-01-01'
        assert str(raw.metadata.current_period.end) == '2024-04-01'

    def test_undated_rows_are_dropped(self):
        """Rows without a parseable date are excluded before splitting."""
        df = pd.DataFrame({
            'date': ['2024-01-01', '', 'not a date', '2024-02-01'],
            'revenue': ['100', '5000', '5000', '150'],
        })
        raw = build_time_based_aggregate(df)

        assert raw.previous.revenue == 100.0
        assert raw.current.revenue == 150.0
        assert raw.metadata.dropped_rows == 2
        assert raw.metadata.row_count == 2

    def test_naive_and_offset_dates_mix(self):
        """A plain date and a UTC-offset timestamp are both kept and ordered."""
        df = pd.DataFrame({
            'date': ['2024-02-01T00:00:00Z', '2024-01-01'],
            'revenue': ['150', '100'],
        })
        raw = parse_upload_files([csv_blob(df)])

        assert raw.previous.revenue == 100.0
        assert raw.current.revenue == 150.0
        assert raw.metadata.dropped_rows == 0
        assert str(raw.metadata.previous_period.start) == '2024-01-01'
        assert str(raw.metadata.current_period.end) == '2024-02-01'

    def test_single_dated_row_is_insufficient(self):
        """Fewer than 2 dated rows fails the upload."""
        df = pd.DataFrame({'date': ['2024-01-01', ''], 'revenue': ['1', '2']})

        with pytest.raises(InsufficientDataError):
            build_time_based_aggregate(df)

    def test_missing_date_column_is_insufficient(self):
        """Without a date column no row is dated."""
        df = pd.DataFrame({'revenue': ['1', '2', '3']})

        with pytest.raises(InsufficientDataError):
            build_time_based_aggregate(df)

    def test_metadata_records_assumptions(self, two_month_df):
        """The fixed split is documented in the metadata."""
        raw = build_time_based_aggregate(two_month_df.astype(str))

        assert raw.metadata.assumptions == UPLOAD_ASSUMPTIONS
        assert raw.metadata.source == 'upload'
        assert raw.metadata.confidence == 'high'


# =============================================================================
# TEST CLASS: Upload Entry Point
# =============================================================================

class TestParseUploadFiles:
    """Tests for the multi-file entry point."""

    def test_end_to_end_csv(self, two_month_df):
        """Two monthly rows produce previous=100 / current=150."""
        raw = parse_upload_files([csv_blob(two_month_df)])

        assert isinstance(raw, RawAggregate)
        assert raw.previous.revenue == 100.0
        assert raw.current.revenue == 150.0
        assert raw.metadata.filenames == ['metrics.csv']
        assert raw.metadata.currency == 'USD'

    def test_source_headers_are_mapped(self, monthly_metrics_df):
        """Capitalized alias headers aggregate into canonical fields."""
        raw = parse_upload_files([csv_blob(monthly_metrics_df)])

        assert raw.previous.revenue == 220.0
        assert raw.current.revenue == 200.0
        assert raw.previous.cac == 100.0
        assert raw.current.cac == 130.0
        assert raw.current.churn_rate == 5.0
        assert raw.current.ltv is None

    def test_files_are_combined_before_splitting(self):
        """Rows from every usable file are pooled."""
        jan = pd.DataFrame({'date': ['2024-01-01'], 'revenue': [100]})
        feb = pd.DataFrame({'date': ['2024-02-01'], 'revenue': [150]})

        raw = parse_upload_files([csv_blob(jan, 'jan.csv'), xlsx_blob(feb, 'feb.xlsx')])

        assert raw.previous.revenue == 100.0
        assert raw.current.revenue == 150.0
        assert raw.metadata.filenames == ['jan.csv', 'feb.xlsx']

    def test_unsupported_files_are_skipped(self, two_month_df):
        """A skipped file is recorded but does not fail the upload."""
        notes = FileBlob(mimetype='text/plain', originalname='notes.txt', content=b'hello')

        raw = parse_upload_files([notes, csv_blob(two_month_df)])

        assert raw.metadata.skipped_files == ['notes.txt']
        assert raw.current.revenue == 150.0

    def test_only_unsupported_files_is_insufficient(self):
        """With nothing parseable there are no dated rows."""
        notes = FileBlob(mimetype='text/plain', originalname='notes.txt', content=b'hello')

        with pytest.raises(InsufficientDataError):
            parse_upload_files([notes])

    def test_currency_is_recorded(self, two_month_df):
        raw = parse_upload_files([csv_blob(two_month_df)], currency='EUR')
        assert raw.metadata.currency == 'EUR'
