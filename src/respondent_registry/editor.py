"""Record editor: collect, preview and submit one respondent.

The editor works in create mode (no record given) or edit mode (an existing
record is loaded). It keeps the in-progress values, recomputes the age and
BMI preview on every change, and submits through the actions layer.
"""

from datetime import date
from enum import Enum
from typing import Any, Callable, Optional

from respondent_registry.actions import (
    ActionResponse,
    create_record,
    update_record,
)
from respondent_registry.derived import DerivedFields, derive_fields
from respondent_registry.logging_audit import get_logger
from respondent_registry.models.respondent import RespondentRecord, SchemaVariant
from respondent_registry.store.respondents import RespondentStore
from respondent_registry.utils.dates import parse_date

logger = get_logger(__name__)

BASE_FIELDS = ("name", "dob", "phone", "email", "height", "weight")
EXTENDED_FIELDS = BASE_FIELDS + ("pob", "gender", "address", "semester", "medical_history")

SUBMIT_IN_PROGRESS = "A submission is already in progress."


class EditorState(str, Enum):
    """Lifecycle of one editing session."""

    EMPTY = "empty"
    EDITING = "editing"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    FAILED = "failed"


def editor_fields(variant: SchemaVariant) -> tuple[str, ...]:
    """Field names the editor collects for a schema variant."""
    if SchemaVariant(variant) is SchemaVariant.EXTENDED:
        return EXTENDED_FIELDS
    return BASE_FIELDS


class RecordEditor:
    """Form state for creating or editing a respondent.

    Attributes:
        store: Respondent store writes go to
        record: Record being edited, None in create mode
        state: Current EditorState
        values: In-progress field values, keyed by field name
        preview: Age and BMI for the current values
        message: Outcome message of the last submission
        errors: Field name to message for the last failed submission
        last_outcome: SUCCESS or FAILED after a submission, else None

    Example:
        >>> editor = RecordEditor(store)
        >>> editor.update(name="Ana Lopez", height="170", weight="70")
        >>> editor.preview.bmi
        24.22
        >>> editor.submit().success
        False
    """

    def __init__(
        self,
        store: RespondentStore,
        record: Optional[RespondentRecord] = None,
        on_success: Optional[Callable[[ActionResponse], None]] = None,
        today: Optional[date] = None,
    ) -> None:
        self.store = store
        self.record = record
        self.on_success = on_success
        self.today = today
        self.message: Optional[str] = None
        self.errors: dict[str, str] = {}
        self.last_outcome: Optional[EditorState] = None
        self._load()

    @property
    def mode(self) -> str:
        return "create" if self.record is None else "edit"

    @property
    def fields(self) -> tuple[str, ...]:
        return editor_fields(self.store.variant)

    @property
    def submit_enabled(self) -> bool:
        return self.state is not EditorState.SUBMITTING

    def set_field(self, name: str, value: Any) -> None:
        """Record one field value and refresh the preview.

        Raises:
            KeyError: If the field is not part of the active schema
        """
        if name not in self.fields:
            raise KeyError(f"Unknown field for {self.store.variant.value} schema: {name}")
        self.values[name] = value
        self.errors.pop(name, None)
        if self.state is not EditorState.SUBMITTING:
            self.state = EditorState.EDITING
        self._refresh_preview()

    def update(self, **fields: Any) -> None:
        """Record several field values at once."""
        for name, value in fields.items():
            self.set_field(name, value)

    def submit(self) -> ActionResponse:
        """Create or update the record from the current values.

        Returns:
            The action outcome. On failure the values are kept for correction.
        """
        if not self.submit_enabled:
            return ActionResponse(False, SUBMIT_IN_PROGRESS)

        self.state = EditorState.SUBMITTING
        if self.record is None:
            response = create_record(self.store, dict(self.values))
        else:
            response = update_record(self.store, self.record.id, dict(self.values))

        self.message = response.message
        if response.success:
            self._succeed(response)
        else:
            self.errors = response.messages_by_field()
            self.last_outcome = EditorState.FAILED
            self.state = EditorState.EDITING
            logger.debug(f"Editor submission failed: {response.message}")
        return response

    def reset(self) -> None:
        """Discard in-progress values and return to the pristine state."""
        self._load()

    def _succeed(self, response: ActionResponse) -> None:
        self.errors = {}
        self.last_outcome = EditorState.SUCCESS
        self.state = EditorState.SUCCESS
        if response.record is not None and self.record is not None:
            self.record = response.record

        if self.on_success is not None:
            self.on_success(response)

        if self.record is None:
            message = self.message
            self._load()
            self.message = message
            self.last_outcome = EditorState.SUCCESS

    def _load(self) -> None:
        self.values: dict[str, Any] = {name: None for name in self.fields}
        if self.record is not None:
            loaded = self.record.to_dict()
            for name in self.fields:
                self.values[name] = loaded.get(name)
            self.values["dob"] = parse_date(self.record.dob)
        self.state = EditorState.EMPTY
        self.errors = {}
        self.message = None
        self.last_outcome = None
        self._refresh_preview()

    def _refresh_preview(self) -> None:
        self.preview: DerivedFields = derive_fields(
            self.values.get("dob"),
            self.values.get("height"),
            self.values.get("weight"),
            today=self.today,
        )
