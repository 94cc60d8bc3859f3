"""Types shared by the form registry and the submission pipeline."""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from src.shared.security.validation import FieldRule

RecordValue = Union[str, int, float]

SUBMITTED_AT_FIELD = "Submitted At"


class UnknownFormTypeError(ValueError):
    """Raised for a missing or unsupported formType tag."""

    def __init__(self, form_type: Optional[str]):
        self.form_type = form_type
        super().__init__(f"Invalid or missing formType: {form_type!r}")


class MissingFieldsError(ValueError):
    """Raised when a form's required fields are empty after validation."""

    def __init__(self, fields: Sequence[str]):
        self.fields = list(fields)
        super().__init__(f"Missing required fields: {', '.join(self.fields)}")


@dataclass
class Submission:
    """
    One inbound form post.

    ``values`` holds the validated, trimmed strings; ``raw`` keeps the
    decoded body for the few non-string fields (e.g. a numeric age).
    """
    form_type: str
    raw: Mapping[str, Any]
    values: Dict[str, str]
    submitted_at: str

    def get(self, name: str) -> str:
        return self.values.get(name, "")


@dataclass(frozen=True)
class NotificationEmail:
    subject: str
    recipients: Tuple[str, ...]
    html: str


@dataclass
class FormOutcome:
    """Record to store plus the optional staff notification."""
    record: Dict[str, RecordValue]
    email: Optional[NotificationEmail] = None


FormBuilder = Callable[[Submission, Sequence[str]], FormOutcome]


@dataclass(frozen=True)
class FormDescriptor:
    """
    Everything the pipeline needs to handle one form type.

    Attributes:
        form_type: Discriminator tag sent by the site
        table_name: Airtable table receiving the records
        rules: Validator rules per submitted field
        required: Fields the builder refuses to map without
        build: Maps a validated Submission to a FormOutcome
        check_origin: Whether the unified endpoint applies the origin guard
    """
    form_type: str
    table_name: str
    rules: Mapping[str, FieldRule]
    required: Tuple[str, ...]
    build: FormBuilder
    check_origin: bool = False


def require_fields(submission: Submission, names: Sequence[str]) -> None:
    """Raise MissingFieldsError listing every empty name."""
    missing = [name for name in names if not submission.get(name)]
    if missing:
        raise MissingFieldsError(missing)


def add_optional(record: Dict[str, RecordValue], column: str, value: Optional[str]) -> None:
    """Set column only when value is non-empty (Airtable rejects empty dates)."""
    if value:
        record[column] = value


@dataclass
class FieldMap:
    """Ordered internal-field to column mapping for one table."""
    required: List[Tuple[str, str]] = field(default_factory=list)
    optional: List[Tuple[str, str]] = field(default_factory=list)

    def apply(self, submission: Submission) -> Dict[str, RecordValue]:
        record: Dict[str, RecordValue] = {
            column: submission.get(name) for name, column in self.required
        }
        for name, column in self.optional:
            add_optional(record, column, submission.get(name))
        record[SUBMITTED_AT_FIELD] = submission.submitted_at
        return record
