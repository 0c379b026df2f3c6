"""Record browser: list, filter, sort, edit, delete and export respondents.

The browser holds the last snapshot read from the store and renders it
through one pipeline: annotate each record with its derived fields, filter,
then sort. Exports write exactly what the pipeline produces.
"""

from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Optional, Union

from respondent_registry.actions import ActionResponse, delete_record
from respondent_registry.derived import derive_fields
from respondent_registry.editor import RecordEditor
from respondent_registry.export import ExportFormat, write_export
from respondent_registry.logging_audit import get_logger
from respondent_registry.models.respondent import RespondentRecord, SchemaVariant
from respondent_registry.store.respondents import RespondentStore
from respondent_registry.utils.exceptions import ReadFailure, RecordNotFoundError

logger = get_logger(__name__)

ASCENDING = "ascending"
DESCENDING = "descending"


@dataclass(frozen=True)
class Column:
    """A displayed or exported column.

    Attributes:
        key: Row attribute the column reads
        label: Header text
    """

    key: str
    label: str


DISPLAY_COLUMNS: dict[SchemaVariant, list[Column]] = {
    SchemaVariant.BASE: [
        Column("name", "Name"),
        Column("age", "Age"),
        Column("phone", "Phone"),
        Column("email", "Email"),
        Column("bmi", "BMI"),
        Column("created_at", "Created At"),
    ],
    SchemaVariant.EXTENDED: [
        Column("name", "Name"),
        Column("age", "Age"),
        Column("gender", "Gender"),
        Column("semester", "Semester"),
        Column("phone", "Phone"),
        Column("bmi", "BMI"),
        Column("created_at", "Created At"),
    ],
}

EXPORT_COLUMNS: dict[SchemaVariant, list[Column]] = {
    SchemaVariant.BASE: [
        Column("id", "ID"),
        Column("name", "Name"),
        Column("dob", "Date of Birth"),
        Column("age", "Age"),
        Column("phone", "Phone"),
        Column("email", "Email"),
        Column("height", "Height (cm)"),
        Column("weight", "Weight (kg)"),
        Column("bmi", "BMI"),
        Column("created_at", "Created At"),
    ],
    SchemaVariant.EXTENDED: [
        Column("id", "ID"),
        Column("name", "Name"),
        Column("pob", "Place of Birth"),
        Column("dob", "Date of Birth"),
        Column("age", "Age"),
        Column("gender", "Gender"),
        Column("address", "Address"),
        Column("semester", "Semester"),
        Column("phone", "Phone"),
        Column("email", "Email"),
        Column("height", "Height (cm)"),
        Column("weight", "Weight (kg)"),
        Column("bmi", "BMI"),
        Column("medical_history", "Medical History"),
        Column("created_at", "Created At"),
    ],
}


@dataclass(frozen=True)
class BrowserRow:
    """A stored record annotated with its derived fields."""

    record: RespondentRecord
    age: Optional[int]
    bmi: Optional[float]

    @property
    def id(self) -> str:
        return self.record.id

    def value(self, key: str) -> Any:
        """Value of a column for this row."""
        if key == "age":
            return self.age
        if key == "bmi":
            return self.bmi
        return getattr(self.record, key)

    def to_dict(self) -> dict[str, Any]:
        data = self.record.to_dict()
        data["age"] = self.age
        data["bmi"] = self.bmi
        return data


@dataclass(frozen=True)
class SortConfig:
    key: str
    direction: str = ASCENDING


def annotate(record: RespondentRecord, today: Optional[date] = None) -> BrowserRow:
    """Attach age and BMI to a stored record."""
    derived = derive_fields(record.dob, record.height, record.weight, today=today)
    return BrowserRow(record=record, age=derived.age, bmi=derived.bmi)


def matches_filter(row: BrowserRow, text: str) -> bool:
    """Case-insensitive substring match on name, phone and email."""
    needle = text.strip().lower()
    if not needle:
        return True
    haystacks = (row.record.name, row.record.phone, row.record.email)
    return any(needle in value.lower() for value in haystacks if value)


def sort_rows(rows: list[BrowserRow], sort: Optional[SortConfig]) -> list[BrowserRow]:
    """Order rows by one column.

    Missing values come first in ascending order. Descending order is the
    exact reverse of ascending order.
    """
    if sort is None:
        return list(rows)

    def sort_key(row: BrowserRow) -> tuple:
        value = row.value(sort.key)
        return (0, 0) if value is None else (1, value)

    ordered = sorted(rows, key=sort_key)
    if sort.direction == DESCENDING:
        ordered.reverse()
    return ordered


def sortable_keys(variant: SchemaVariant) -> set[str]:
    columns = DISPLAY_COLUMNS[variant] + EXPORT_COLUMNS[variant]
    return {column.key for column in columns}


def build_view(
    records: list[RespondentRecord],
    filter_text: str = "",
    sort: Optional[SortConfig] = None,
    today: Optional[date] = None,
) -> list[BrowserRow]:
    """Run the annotate, filter, sort pipeline over a snapshot."""
    annotated = [annotate(record, today=today) for record in records]
    visible = [row for row in annotated if matches_filter(row, filter_text)]
    return sort_rows(visible, sort)


class RecordBrowser:
    """Tabular view over every respondent in the store.

    Attributes:
        store: Respondent store
        variant: Schema variant whose columns are shown
        filter_text: Current filter
        sort: Current sort, None for store order (newest first)
        last_error: Failure of the most recent refresh, None when it succeeded

    Example:
        >>> browser = RecordBrowser(store, SchemaVariant.BASE)
        >>> browser.refresh()
        >>> browser.set_filter("ana")
        >>> browser.request_sort("bmi")
        >>> [row.bmi for row in browser.rows]
    """

    def __init__(
        self,
        store: RespondentStore,
        variant: Optional[SchemaVariant] = None,
        today: Optional[date] = None,
    ) -> None:
        self.store = store
        self.variant = SchemaVariant(variant or store.variant)
        self.today = today
        self.filter_text = ""
        self.sort: Optional[SortConfig] = None
        self.last_error: Optional[ReadFailure] = None
        self._records: list[RespondentRecord] = []

    @property
    def columns(self) -> list[Column]:
        return DISPLAY_COLUMNS[self.variant]

    @property
    def export_columns(self) -> list[Column]:
        return EXPORT_COLUMNS[self.variant]

    @property
    def rows(self) -> list[BrowserRow]:
        return build_view(self._records, self.filter_text, self.sort, today=self.today)

    def refresh(self) -> None:
        """Re-read every record from the store.

        On a read failure the previous snapshot is kept and the error is
        exposed as ``last_error``.
        """
        try:
            self._records = self.store.read_all()
        except ReadFailure as e:
            logger.error(f"Failed to refresh respondents: {e}")
            self.last_error = e
            return
        self.last_error = None
        logger.debug(f"Browser refreshed with {len(self._records)} respondent(s)")

    def set_filter(self, text: str) -> None:
        self.filter_text = text or ""

    def request_sort(self, key: str) -> SortConfig:
        """Sort by a column, toggling direction when it is already the sort key.

        Raises:
            ValueError: If the column cannot be sorted on
        """
        if key not in sortable_keys(self.variant):
            raise ValueError(f"Cannot sort by unknown column: {key}")

        if self.sort is not None and self.sort.key == key and self.sort.direction == ASCENDING:
            self.sort = SortConfig(key, DESCENDING)
        else:
            self.sort = SortConfig(key, ASCENDING)
        return self.sort

    def edit(self, record_id: str) -> RecordEditor:
        """Open an editor on one record; a successful save refreshes the view.

        Raises:
            RecordNotFoundError: If the record is not in the current snapshot
        """
        for record in self._records:
            if record.id == record_id:
                return RecordEditor(
                    self.store,
                    record=record,
                    on_success=lambda _response: self.refresh(),
                    today=self.today,
                )
        raise RecordNotFoundError(record_id)

    def delete(self, record_id: str) -> ActionResponse:
        """Delete a record; the row leaves the view only once the store confirms."""
        response = delete_record(self.store, record_id)
        if response.success:
            self._records = [r for r in self._records if r.id != record_id]
        return response

    def export(
        self,
        fmt: Union[str, ExportFormat],
        output_dir: Path,
        today: Optional[date] = None,
    ) -> Path:
        """Write the currently visible rows, in display order, to a file.

        Returns:
            Path of the written file

        Raises:
            ExportError: If the format is unsupported or the file cannot be written
        """
        return write_export(
            self.rows,
            self.export_columns,
            fmt,
            output_dir,
            today=today or self.today,
        )
