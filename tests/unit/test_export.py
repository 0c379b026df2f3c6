"""Unit tests for CSV and XLSX export."""

import csv
import io
from datetime import date

import pandas as pd
import pytest

from respondent_registry.browser import EXPORT_COLUMNS, annotate
from respondent_registry.export import (
    ExportFormat,
    export_filename,
    parse_format,
    render_export,
    write_export,
)
from respondent_registry.models.respondent import SchemaVariant
from respondent_registry.utils.exceptions import ExportError


@pytest.fixture
def rows(store, make_input, today):
    """Two annotated rows, Ana first."""
    ana = store.create(make_input())
    budi = store.create(make_input(name="Budi Santoso", phone="+10000000002", weight="55"))
    return [annotate(ana, today=today), annotate(budi, today=today)]


class TestExportFilename:
    """Test export file naming."""

    def test_csv_name(self):
        assert export_filename("csv", date(2024, 6, 15)) == "respondents_20240615.csv"

    def test_xlsx_name(self):
        assert export_filename(ExportFormat.XLSX, date(2024, 1, 2)) == "respondents_20240102.xlsx"

    def test_unknown_format(self):
        """Test an unsupported format raises ExportError."""
        with pytest.raises(ExportError, match="Unsupported export format"):
            parse_format("pdf")

    def test_format_case_insensitive(self):
        assert parse_format("XLSX") is ExportFormat.XLSX


class TestRenderCsv:
    """Test CSV serialization."""

    def test_header_and_values(self, rows):
        """Test labels head the file and values are formatted for reading."""
        # Act
        content = render_export(rows, EXPORT_COLUMNS[SchemaVariant.BASE], "csv")

        # Assert
        records = list(csv.DictReader(io.StringIO(content.decode("utf-8"))))
        assert list(records[0].keys()) == [c.label for c in EXPORT_COLUMNS[SchemaVariant.BASE]]
        assert records[0]["Name"] == "Ana Lopez"
        assert records[0]["Date of Birth"] == "2000-01-01"
        assert records[0]["Created At"] == "2024-06-15 09:30:00"
        assert records[0]["Age"] == "24"
        assert records[0]["BMI"] == "24.22"

    def test_text_fields_quoted(self, rows):
        """Test text is double-quoted and numbers are not."""
        # Act
        content = render_export(rows, EXPORT_COLUMNS[SchemaVariant.BASE], "csv").decode("utf-8")

        # Assert
        lines = content.splitlines()
        assert lines[0].startswith('"ID","Name"')
        assert '"Ana Lopez"' in lines[1]
        assert ",24," in lines[1]

    def test_row_order_preserved(self, rows):
        """Test rows are written in the order given."""
        # Act
        content = render_export(list(reversed(rows)), EXPORT_COLUMNS[SchemaVariant.BASE], "csv")

        # Assert
        records = list(csv.DictReader(io.StringIO(content.decode("utf-8"))))
        assert [r["Name"] for r in records] == ["Budi Santoso", "Ana Lopez"]

    def test_empty_view(self):
        """Test an empty view still writes the header."""
        # Act
        content = render_export([], EXPORT_COLUMNS[SchemaVariant.BASE], "csv").decode("utf-8")

        # Assert
        assert content.splitlines()[0].startswith('"ID"')
        assert len(content.splitlines()) == 1


class TestRenderXlsx:
    """Test XLSX serialization."""

    def test_single_named_sheet(self, rows):
        """Test the workbook has one Respondents sheet with the rows."""
        # Act
        content = render_export(rows, EXPORT_COLUMNS[SchemaVariant.BASE], "xlsx")

        # Assert
        sheets = pd.read_excel(io.BytesIO(content), sheet_name=None, engine="openpyxl")
        assert list(sheets.keys()) == ["Respondents"]
        df = sheets["Respondents"]
        assert len(df) == 2
        assert df["Name"].tolist() == ["Ana Lopez", "Budi Santoso"]
        assert df.loc[0, "BMI"] == pytest.approx(24.22)


class TestWriteExport:
    """Test writing exports to disk."""

    def test_writes_dated_file(self, rows, tmp_path, today):
        """Test the file lands in the output directory with the dated name."""
        # Act
        path = write_export(rows, EXPORT_COLUMNS[SchemaVariant.BASE], "csv", tmp_path / "out", today=today)

        # Assert
        assert path == tmp_path / "out" / "respondents_20240615.csv"
        assert path.exists()

    def test_unsupported_format_writes_nothing(self, rows, tmp_path, today):
        """Test a bad format fails before touching the disk."""
        # Act & Assert
        with pytest.raises(ExportError):
            write_export(rows, EXPORT_COLUMNS[SchemaVariant.BASE], "pdf", tmp_path, today=today)

        assert list(tmp_path.iterdir()) == []
