"""
Input validation and sanitization utilities for form submissions.
Every field is checked independently so callers get the full error list.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional


# Maximum lengths for different input types
MAX_LENGTHS = {
    "email": 254,
    "phone": 20,
    "name": 100,
    "text": 10000,
    "message": 5000,
    "notes": 2000,
    "subject": 200,
}

# Format patterns, applied after trimming
PATTERNS = {
    "email": re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$"),
    "phone": re.compile(r"^[\d\s\-+()]+$"),
    "name": re.compile(r"^[a-zA-Z\s\-'.]+$"),
    "url": re.compile(r"^https?://.+"),
}

REQUIRED_ERROR = "This field is required"


@dataclass(frozen=True)
class FieldRule:
    """Validation rule for a single submitted field."""
    type: str = "text"
    required: bool = False


@dataclass
class FieldResult:
    valid: bool
    sanitized: str = ""
    error: Optional[str] = None


@dataclass
class ValidationResult:
    """Outcome of validating a whole request body."""
    errors: List[Dict[str, str]] = field(default_factory=list)
    sanitized: Dict[str, str] = field(default_factory=dict)

    @property
    def valid(self) -> bool:
        return not self.errors


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def validate_input(value: Any, field_type: str = "text", required: bool = False) -> FieldResult:
    """
    Validate and sanitize one input value.

    Args:
        value: Raw value from the request body
        field_type: One of the keys of MAX_LENGTHS / PATTERNS
        required: Whether an empty value is an error

    Returns:
        FieldResult with the trimmed value or an error message
    """
    if _is_blank(value):
        if required:
            return FieldResult(valid=False, error=REQUIRED_ERROR)
        # Allow empty optional fields
        return FieldResult(valid=True, sanitized="")

    trimmed = value.strip()

    max_length = MAX_LENGTHS.get(field_type, MAX_LENGTHS["text"])
    if len(trimmed) > max_length:
        return FieldResult(
            valid=False,
            error=f"Input exceeds maximum length of {max_length} characters"
        )

    pattern = PATTERNS.get(field_type)
    if pattern is not None and not pattern.match(trimmed):
        return FieldResult(valid=False, error=f"Invalid {field_type} format")

    return FieldResult(valid=True, sanitized=trimmed)


def validate_request_body(body: Mapping[str, Any], schema: Mapping[str, FieldRule]) -> ValidationResult:
    """
    Validate every field named in schema and collect all errors.

    Args:
        body: Decoded JSON request body
        schema: Mapping of field name to FieldRule

    Returns:
        ValidationResult; ``errors`` holds ``{"field", "error"}`` entries
    """
    result = ValidationResult()
    for name, rule in schema.items():
        outcome = validate_input(body.get(name), rule.type, rule.required)
        if outcome.valid:
            result.sanitized[name] = outcome.sanitized
        else:
            result.errors.append({"field": name, "error": outcome.error})
    return result


def sanitize_for_html(text: Any) -> str:
    """Escape a value for embedding in HTML."""
    if not isinstance(text, str):
        return ""
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&#x27;")
        .replace("/", "&#x2F;")
    )


def sanitize_for_email(text: Any) -> str:
    """Escape HTML but keep line breaks."""
    return sanitize_for_html(text).replace("\n", "<br>")
