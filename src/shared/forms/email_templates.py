"""HTML notification emails for form submissions."""

from datetime import datetime
from typing import Iterable, Optional, Sequence, Tuple

from src.shared.security.validation import sanitize_for_email

GOLD = "#C9B27F"
NOT_SPECIFIED = "Not specified"

Row = Tuple[str, Optional[str]]


def _row(label: str, value: str) -> str:
    return (
        '<p style="margin:0 0 10px 0;font-size:15px;line-height:1.6;">'
        f'<strong style="color:{GOLD};">{label}:</strong> {sanitize_for_email(value)}</p>'
    )


def _section(rows: Iterable[Row], placeholder: Optional[str] = None) -> str:
    """
    Render a bordered block of label/value rows.

    Rows with an empty value are skipped unless a placeholder is given.
    """
    lines = []
    for label, value in rows:
        if value:
            lines.append(_row(label, value))
        elif placeholder is not None:
            lines.append(_row(label, placeholder))
    if not lines:
        return ""
    return (
        '<div style="background-color:rgba(201,178,127,.04);border:1px solid rgba(201,178,127,.18);'
        'border-radius:8px;padding:18px;margin-bottom:18px;">'
        + "".join(lines)
        + "</div>"
    )


def _text_block(title: str, text: Optional[str]) -> str:
    if not text:
        return ""
    return (
        '<div style="background-color:rgba(201,178,127,.04);border:1px solid rgba(201,178,127,.18);'
        'border-radius:8px;padding:18px;margin-bottom:18px;">'
        f'<p style="margin:0 0 8px 0;font-size:15px;line-height:1.6;color:{GOLD};font-weight:700;">{title}</p>'
        f'<p style="margin:0;font-size:15px;line-height:1.7;white-space:pre-wrap;">{sanitize_for_email(text)}</p>'
        "</div>"
    )


def render_email(heading: str, blocks: Sequence[str], submitted: Optional[datetime] = None) -> str:
    """Wrap content blocks in the clinic's email layout."""
    submitted = submitted or datetime.now()
    body = "".join(blocks)
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
</head>
<body style="margin:0;padding:0;background-color:#070707;font-family:system-ui,-apple-system,sans-serif;color:#F2EDE6;">
  <table width="100%" cellpadding="0" cellspacing="0" style="background-color:#070707;padding:40px 20px;">
    <tr>
      <td align="center">
        <table width="600" cellpadding="0" cellspacing="0" style="max-width:600px;width:100%;">
          <tr>
            <td style="padding:40px;background-color:rgba(201,178,127,.08);border:1px solid rgba(201,178,127,.22);border-radius:10px;">
              <div style="font-size:12px;letter-spacing:.28em;text-transform:uppercase;color:rgba(201,178,127,.85);font-weight:700;margin-bottom:14px;">
                Elite Performance Clinic
              </div>
              <h1 style="margin:0 0 18px 0;font-size:22px;font-weight:700;color:{GOLD};">
                {sanitize_for_email(heading)}
              </h1>
              {body}
              <p style="margin:0;font-size:12px;color:rgba(242,237,230,.6);">
                Submitted: {submitted.strftime("%m/%d/%Y, %I:%M:%S %p")}
              </p>
            </td>
          </tr>
        </table>
      </td>
    </tr>
  </table>
</body>
</html>"""


def contact_email(subject_line: str, fields: dict) -> str:
    return render_email(subject_line, [
        _section([
            ("Name", fields.get("name")),
            ("Email", fields.get("email")),
            ("Phone", fields.get("phone")),
            ("Subject", fields.get("subject")),
        ]),
        _text_block("Message", fields.get("message")),
    ])


def booking_email(subject_line: str, fields: dict) -> str:
    return render_email(subject_line, [
        _section([
            ("Name", fields.get("name")),
            ("Email", fields.get("email")),
            ("Phone", fields.get("phone")),
            ("Service", fields.get("service")),
        ]),
        _section([
            ("Preferred days", fields.get("preferredDays")),
            ("Preferred time window", fields.get("preferredTimes")),
            ("Time option 1", fields.get("slot1")),
            ("Time option 2", fields.get("slot2")),
            ("Time option 3", fields.get("slot3")),
        ], placeholder=NOT_SPECIFIED),
        _text_block("Notes", fields.get("notes")),
    ])


def academy_email(subject_line: str, fields: dict, program_rows: Sequence[Row]) -> str:
    athlete = f"{fields.get('firstName', '')} {fields.get('lastName', '')}".strip()
    return render_email(subject_line, [
        _section([
            ("Athlete", athlete),
            ("Parent/Guardian", fields.get("parentName")),
            ("Phone", fields.get("phone")),
            ("Email", fields.get("email")),
        ]),
        _section([
            ("Grade", fields.get("grade")),
            ("Sport", fields.get("sport")),
            ("Date of birth", fields.get("dob")),
            ("Desired start term", fields.get("startTerm")),
            *program_rows,
            ("Highlight tape", fields.get("highlightTapeUrl")),
        ]),
        _text_block("Additional notes", fields.get("additionalNotes")),
    ])


def winter_ball_email(subject_line: str, fields: dict, program: str, age: Optional[str]) -> str:
    return render_email(subject_line, [
        _section([
            ("Athlete", fields.get("athleteName")),
            ("Age", age),
            ("Position", fields.get("position")),
            ("Club or school team", fields.get("clubOrSchool")),
            ("Program", program),
        ]),
        _section([
            ("Parent/Guardian", fields.get("parentName")),
            ("Phone", fields.get("phone")),
            ("Email", fields.get("email")),
        ]),
    ])
