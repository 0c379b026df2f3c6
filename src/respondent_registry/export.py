"""CSV and XLSX export of the visible respondent view.

Rows are written in the order given, with one column per export column and
the derived fields as plain values.
"""

import csv
import io
import time
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Protocol, Sequence, Union

import pandas as pd

from respondent_registry.logging_audit import get_operation_logger, log_audit_event
from respondent_registry.utils.dates import parse_timestamp, today_utc
from respondent_registry.utils.exceptions import ExportError

logger = get_operation_logger("export")

SHEET_NAME = "Respondents"
FILENAME_PREFIX = "respondents"
DOB_FORMAT = "%Y-%m-%d"
CREATED_AT_FORMAT = "%Y-%m-%d %H:%M:%S"


class ExportFormat(str, Enum):
    CSV = "csv"
    XLSX = "xlsx"


MIME_TYPES = {
    ExportFormat.CSV: "text/csv",
    ExportFormat.XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


class ExportRow(Protocol):
    def value(self, key: str) -> Any: ...


class ExportColumn(Protocol):
    key: str
    label: str


def parse_format(fmt: Union[str, ExportFormat]) -> ExportFormat:
    """Resolve a format name.

    Raises:
        ExportError: If the format is not csv or xlsx
    """
    try:
        return ExportFormat(str(getattr(fmt, "value", fmt)).lower())
    except ValueError:
        raise ExportError(
            f"Unsupported export format: {fmt}. "
            f"Must be one of: {', '.join(f.value for f in ExportFormat)}"
        )


def export_filename(fmt: Union[str, ExportFormat], today: Optional[date] = None) -> str:
    """File name for an export taken on ``today``.

    Example:
        >>> export_filename("csv", date(2024, 6, 15))
        'respondents_20240615.csv'
    """
    export_format = parse_format(fmt)
    day = today or today_utc()
    return f"{FILENAME_PREFIX}_{day.strftime('%Y%m%d')}.{export_format.value}"


def build_frame(
    rows: Sequence[ExportRow], columns: Sequence[ExportColumn]
) -> pd.DataFrame:
    """Tabulate rows into a DataFrame headed by the column labels."""
    data = [[_cell(column.key, row.value(column.key)) for column in columns] for row in rows]
    # object dtype keeps ints as ints next to missing values
    return pd.DataFrame(data, columns=[column.label for column in columns], dtype=object)


def render_export(
    rows: Sequence[ExportRow],
    columns: Sequence[ExportColumn],
    fmt: Union[str, ExportFormat],
) -> bytes:
    """Serialize rows to CSV or XLSX bytes.

    Raises:
        ExportError: If the format is unsupported or serialization fails
    """
    export_format = parse_format(fmt)
    df = build_frame(rows, columns)

    if export_format is ExportFormat.CSV:
        return df.to_csv(index=False, quoting=csv.QUOTE_NONNUMERIC).encode("utf-8")

    buffer = io.BytesIO()
    try:
        df.to_excel(buffer, sheet_name=SHEET_NAME, index=False, engine="openpyxl")
    except (ValueError, OSError) as e:
        raise ExportError(f"Failed to build XLSX export: {e}") from e
    return buffer.getvalue()


def write_export(
    rows: Sequence[ExportRow],
    columns: Sequence[ExportColumn],
    fmt: Union[str, ExportFormat],
    output_dir: Path,
    today: Optional[date] = None,
) -> Path:
    """Write rows to ``output_dir/respondents_<YYYYMMDD>.<ext>``.

    Args:
        rows: Rows in display order
        columns: Columns to write, in order
        fmt: "csv" or "xlsx"
        output_dir: Destination directory, created if missing
        today: Export date used in the file name

    Returns:
        Path of the written file

    Raises:
        ExportError: If the format is unsupported or the file cannot be written
    """
    start_time = time.time()
    output_path = Path(output_dir) / export_filename(fmt, today)
    content = render_export(rows, columns, fmt)

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(content)
    except OSError as e:
        log_audit_event(
            "EXPORT_WRITTEN",
            {"status": "failure", "output_file": str(output_path), "error_message": str(e)},
        )
        raise ExportError(f"Failed to write export to {output_path}: {e}") from e

    logger.info(f"Exported {len(rows)} respondent(s) to {output_path}")
    log_audit_event(
        "EXPORT_WRITTEN",
        {
            "status": "success",
            "record_count": len(rows),
            "output_file": str(output_path),
            "duration": time.time() - start_time,
        },
    )
    return output_path


def _cell(key: str, value: Any) -> Any:
    if value is None:
        return None
    if key == "dob":
        return parse_timestamp(value).strftime(DOB_FORMAT)
    if key == "created_at":
        return parse_timestamp(value).strftime(CREATED_AT_FORMAT)
    return value
