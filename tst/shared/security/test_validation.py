"""Tests for field validation and HTML sanitization."""

from src.shared.security.validation import (
    REQUIRED_ERROR,
    FieldRule,
    sanitize_for_email,
    sanitize_for_html,
    validate_input,
    validate_request_body,
)


class TestValidateInput:

    def test_trims_valid_email(self):
        result = validate_input("  jane@example.com ", "email", required=True)
        assert result.valid
        assert result.sanitized == "jane@example.com"

    def test_blank_required_field(self):
        result = validate_input("   ", "text", required=True)
        assert not result.valid
        assert result.error == REQUIRED_ERROR

    def test_blank_optional_field_is_empty(self):
        result = validate_input(None, "phone")
        assert result.valid
        assert result.sanitized == ""

    def test_non_string_counts_as_blank(self):
        assert validate_input(42, "text", required=True).error == REQUIRED_ERROR
        assert validate_input(["a"], "text").sanitized == ""

    def test_max_length(self):
        result = validate_input("x" * 201, "subject")
        assert not result.valid
        assert result.error == "Input exceeds maximum length of 200 characters"

    def test_length_checked_after_trim(self):
        assert validate_input("  " + "x" * 200 + "  ", "subject").valid

    def test_unknown_type_uses_text_limit(self):
        assert validate_input("x" * 10000, "whatever").valid
        assert not validate_input("x" * 10001, "whatever").valid

    def test_invalid_email(self):
        result = validate_input("not-an-email", "email")
        assert result.error == "Invalid email format"
        assert validate_input("user@example.com", "email").valid

    def test_email_too_long(self):
        email = "a" * 243 + "@example.com"
        assert len(email) == 255
        assert validate_input(email, "email").error == "Input exceeds maximum length of 254 characters"

    def test_invalid_phone(self):
        assert validate_input("(310) 555-0100", "phone").valid
        assert validate_input("555-CALL-NOW", "phone").error == "Invalid phone format"

    def test_name_pattern(self):
        assert validate_input("Mary-Jane O'Neil Jr.", "name").valid
        assert validate_input("R2D2", "name").error == "Invalid name format"


class TestValidateRequestBody:

    def test_collects_every_error(self):
        schema = {
            "name": FieldRule("name", required=True),
            "email": FieldRule("email", required=True),
            "phone": FieldRule("phone"),
        }
        result = validate_request_body({"email": "bad", "phone": "abc"}, schema)

        assert not result.valid
        assert result.errors == [
            {"field": "name", "error": REQUIRED_ERROR},
            {"field": "email", "error": "Invalid email format"},
            {"field": "phone", "error": "Invalid phone format"},
        ]

    def test_sanitized_values(self):
        schema = {"email": FieldRule("email", required=True), "notes": FieldRule("notes")}
        result = validate_request_body({"email": " a@b.co ", "extra": "ignored"}, schema)

        assert result.valid
        assert result.sanitized == {"email": "a@b.co", "notes": ""}


class TestSanitize:

    def test_escapes_markup(self):
        assert sanitize_for_html("<script>alert('x')</script>") == (
            "&lt;script&gt;alert(&#x27;x&#x27;)&lt;&#x2F;script&gt;"
        )

    def test_escapes_ampersand_first(self):
        assert sanitize_for_html('Tom & "Jerry"') == "Tom &amp; &quot;Jerry&quot;"

    def test_non_string(self):
        assert sanitize_for_html(None) == ""

    def test_email_keeps_line_breaks(self):
        assert sanitize_for_email("line one\nline <two>") == "line one<br>line &lt;two&gt;"
