"""Per-form field mappings and notification emails."""

import math
import re
from typing import Any, Optional, Sequence, Union

from src.shared.forms import email_templates
from src.shared.forms.models import (
    FieldMap,
    FormDescriptor,
    FormOutcome,
    NotificationEmail,
    Submission,
    SUBMITTED_AT_FIELD,
    require_fields,
)
from src.shared.security.validation import FieldRule

# Airtable single-select options for the Winter Ball "Program" field
WINTER_BALL_PROGRAMS = ("Outdoor", "Indoor", "Full Bundle")
DEFAULT_WINTER_BALL_PROGRAM = "Outdoor"
WINTER_BALL_PROGRAM_LOOKUP = {
    "outdoor": "Outdoor",
    "indoor": "Indoor",
    "full bundle": "Full Bundle",
    "outdoor ($500/month)": "Outdoor",
    "indoor ($600/month)": "Indoor",
    "full bundle ($1,400 for 8 weeks)": "Full Bundle",
}
_PRICE_SUFFIX = re.compile(r"\s*\([^)]*\).*$")

CONTACT_SOURCE = "Website"  # only option of the contact table's Source select


def _email(subject: str, recipients: Sequence[str], html: str) -> Optional[NotificationEmail]:
    if not recipients:
        return None
    return NotificationEmail(subject=subject, recipients=tuple(recipients), html=html)


def normalize_winter_ball_program(value: Optional[str]) -> str:
    """Map free-form program text onto one of WINTER_BALL_PROGRAMS."""
    text = (value or "").strip()
    match = WINTER_BALL_PROGRAM_LOOKUP.get(text.lower())
    if match:
        return match
    stripped = _PRICE_SUFFIX.sub("", text).strip().lower()
    return WINTER_BALL_PROGRAM_LOOKUP.get(stripped, DEFAULT_WINTER_BALL_PROGRAM)


def parse_age(value: Any) -> Optional[Union[int, float]]:
    """Numeric age or None when absent or not a number."""
    if value is None or isinstance(value, bool):
        return None
    text = value if isinstance(value, (int, float)) else str(value).strip()
    if text == "":
        return None
    try:
        number = float(text)
    except (ValueError, OverflowError):
        # Integers beyond the float range overflow
        return None
    if not math.isfinite(number):
        return None
    return int(number) if number.is_integer() else number


# contact

CONTACT_MAP = FieldMap(
    required=[("name", "Name"), ("email", "Email"), ("subject", "Subject"), ("message", "Message")],
    optional=[("phone", "Phone")],
)


def build_contact(submission: Submission, recipients: Sequence[str]) -> FormOutcome:
    require_fields(submission, CONTACT.required)
    record = CONTACT_MAP.apply(submission)
    record["Source"] = CONTACT_SOURCE

    subject = f"📧 New Contact Form: {submission.get('subject')}"
    html = email_templates.contact_email(subject, submission.values)
    return FormOutcome(record=record, email=_email(subject, recipients, html))


CONTACT = FormDescriptor(
    form_type="contact",
    table_name="Contact Form Submissions",
    rules={
        "name": FieldRule("name", required=True),
        "email": FieldRule("email", required=True),
        "phone": FieldRule("phone"),
        "subject": FieldRule("subject", required=True),
        "message": FieldRule("message", required=True),
    },
    required=("name", "email", "subject", "message"),
    build=build_contact,
    check_origin=True,
)


# email-signup

def build_email_signup(submission: Submission, recipients: Sequence[str]) -> FormOutcome:
    require_fields(submission, EMAIL_SIGNUP.required)
    # The signup table has always received Name and Source, even when blank
    record = {
        "Name": submission.get("name"),
        "Email": submission.get("email"),
        "Source": submission.get("source"),
        SUBMITTED_AT_FIELD: submission.submitted_at,
    }
    return FormOutcome(record=record)


EMAIL_SIGNUP = FormDescriptor(
    form_type="email-signup",
    table_name="Email List Signups",
    rules={
        "email": FieldRule("email", required=True),
        "name": FieldRule("text"),
        "source": FieldRule("text"),
    },
    required=("email",),
    build=build_email_signup,
)


# booking

BOOKING_MAP = FieldMap(
    required=[("name", "Name"), ("email", "Email"), ("phone", "Phone")],
    optional=[
        ("service", "Service of Interest"),
        ("preferredDays", "Preferred Days"),
        ("preferredTimes", "Preferred Time Window"),
        ("notes", "Notes"),
        ("source", "Source"),
        ("slot1", "Time Option 1"),
        ("slot2", "Time Option 2"),
        ("slot3", "Time Option 3"),
    ],
)


def build_booking(submission: Submission, recipients: Sequence[str]) -> FormOutcome:
    require_fields(submission, BOOKING.required)
    record = BOOKING_MAP.apply(submission)

    service = submission.get("service")
    subject = f"📅 New Booking Request: {service}" if service else "📅 New Booking Request"
    html = email_templates.booking_email(subject, submission.values)
    return FormOutcome(record=record, email=_email(subject, recipients, html))


BOOKING = FormDescriptor(
    form_type="booking",
    table_name="Booking Requests",
    rules={
        "name": FieldRule("text", required=True),
        "email": FieldRule("email", required=True),
        "phone": FieldRule("phone", required=True),
        "service": FieldRule("text"),
        "preferredDays": FieldRule("text"),
        "preferredTimes": FieldRule("text"),
        "slot1": FieldRule("text"),
        "slot2": FieldRule("text"),
        "slot3": FieldRule("text"),
        "notes": FieldRule("notes"),
        "source": FieldRule("text"),
    },
    required=("name", "email", "phone"),
    build=build_booking,
)


# quiz

QUIZ_MAP = FieldMap(
    required=[
        ("email", "Email"),
        ("goal", "Goal"),
        ("body_areas", "Body Areas"),
        ("activity", "Activity Level"),
        ("priority", "Priority"),
    ],
    optional=[
        ("source", "Source"),
        ("protocol_list", "Protocol List"),
        ("protocol_summary", "Protocol Summary"),
    ],
)


def build_quiz(submission: Submission, recipients: Sequence[str]) -> FormOutcome:
    require_fields(submission, QUIZ.required)
    # Quiz results are reviewed in Airtable; no email goes out
    return FormOutcome(record=QUIZ_MAP.apply(submission))


QUIZ = FormDescriptor(
    form_type="quiz",
    table_name="EPC Intake Quiz Submissions",
    rules={
        "email": FieldRule("email", required=True),
        "goal": FieldRule("text", required=True),
        "body_areas": FieldRule("text", required=True),
        "activity": FieldRule("text", required=True),
        "priority": FieldRule("text", required=True),
        "source": FieldRule("text"),
        "protocol_list": FieldRule("text"),
        "protocol_summary": FieldRule("text"),
    },
    required=("email", "goal", "body_areas", "activity", "priority"),
    build=build_quiz,
    check_origin=True,
)


# academies

ACADEMY_IDENTITY = [
    ("firstName", "Athlete First Name"),
    ("lastName", "Athlete Last Name"),
    ("parentName", "Parent/Guardian Name"),
    ("phone", "Preferred Contact Phone"),
    ("email", "Email"),
]
ACADEMY_REQUIRED = tuple(name for name, _ in ACADEMY_IDENTITY)

ACADEMY_RULES = {
    "firstName": FieldRule("text", required=True),
    "lastName": FieldRule("text", required=True),
    "parentName": FieldRule("text", required=True),
    "phone": FieldRule("phone", required=True),
    "email": FieldRule("email", required=True),
    "grade": FieldRule("text"),
    "sport": FieldRule("text"),
    "dob": FieldRule("text"),
    "startTerm": FieldRule("text"),
    "highlightTapeUrl": FieldRule("text"),
    "additionalNotes": FieldRule("message"),
}

FULLTIME_ACADEMY_MAP = FieldMap(
    required=ACADEMY_IDENTITY,
    optional=[
        ("grade", "Grade"),
        ("sport", "Sport"),
        ("dob", "Date of Birth"),
        ("startTerm", "Desired Start Term"),
        ("homeschoolProgram", "Current/Preferred Homeschool Program"),
        ("academicPriorities", "Academic Priorities"),
        ("highlightTapeUrl", "Highlight Tape URL"),
        ("additionalNotes", "Additional Notes"),
    ],
)

PARTTIME_ACADEMY_MAP = FieldMap(
    required=ACADEMY_IDENTITY,
    optional=[
        ("grade", "Grade"),
        ("sport", "Sport"),
        ("dob", "Date of Birth"),
        ("startTerm", "Desired Start Term"),
        ("trainingSchedule", "Training Schedule/Availability"),
        ("developmentGoals", "Primary Development Goals"),
        ("highlightTapeUrl", "Highlight Tape URL"),
        ("additionalNotes", "Additional Notes"),
    ],
)


def build_fulltime_academy(submission: Submission, recipients: Sequence[str]) -> FormOutcome:
    require_fields(submission, ACADEMY_REQUIRED)
    record = FULLTIME_ACADEMY_MAP.apply(submission)

    subject = "🎓 New Full-Time Academy Application"
    html = email_templates.academy_email(subject, submission.values, [
        ("Homeschool program", submission.get("homeschoolProgram")),
        ("Academic priorities", submission.get("academicPriorities")),
    ])
    return FormOutcome(record=record, email=_email(subject, recipients, html))


def build_parttime_academy(submission: Submission, recipients: Sequence[str]) -> FormOutcome:
    require_fields(submission, ACADEMY_REQUIRED)
    record = PARTTIME_ACADEMY_MAP.apply(submission)

    subject = "⚡ New Part-Time Academy Application"
    html = email_templates.academy_email(subject, submission.values, [
        ("Training schedule", submission.get("trainingSchedule")),
        ("Development goals", submission.get("developmentGoals")),
    ])
    return FormOutcome(record=record, email=_email(subject, recipients, html))


FULLTIME_ACADEMY = FormDescriptor(
    form_type="fulltime-academy",
    table_name="Full-Time Academy Applications",
    rules={
        **ACADEMY_RULES,
        "homeschoolProgram": FieldRule("text"),
        "academicPriorities": FieldRule("text"),
    },
    required=ACADEMY_REQUIRED,
    build=build_fulltime_academy,
)

PARTTIME_ACADEMY = FormDescriptor(
    form_type="parttime-academy",
    table_name="Part-Time Academy Applications",
    rules={
        **ACADEMY_RULES,
        "trainingSchedule": FieldRule("text"),
        "developmentGoals": FieldRule("text"),
    },
    required=ACADEMY_REQUIRED,
    build=build_parttime_academy,
)


# winter-ball

WINTER_BALL_MAP = FieldMap(
    required=[
        ("athleteName", "Athlete Name"),
        ("parentName", "Parent/Guardian Name"),
        ("phone", "Phone Number"),
        ("email", "Email"),
    ],
    optional=[
        ("position", "Position"),
        ("clubOrSchool", "Club or School Team"),
    ],
)


def build_winter_ball(submission: Submission, recipients: Sequence[str]) -> FormOutcome:
    require_fields(submission, WINTER_BALL.required)
    record = WINTER_BALL_MAP.apply(submission)

    program = normalize_winter_ball_program(submission.get("program"))
    record["Program"] = program

    age = parse_age(submission.raw.get("age"))
    if age is not None:
        record["Age"] = age

    subject = "⚽ New Winter Ball Registration"
    html = email_templates.winter_ball_email(
        subject,
        submission.values,
        program,
        str(age) if age is not None else None
    )
    return FormOutcome(record=record, email=_email(subject, recipients, html))


WINTER_BALL = FormDescriptor(
    form_type="winter-ball",
    table_name="Winter Ball Registrations",
    rules={
        "athleteName": FieldRule("text", required=True),
        "parentName": FieldRule("text", required=True),
        "phone": FieldRule("phone", required=True),
        "email": FieldRule("email", required=True),
        "program": FieldRule("text", required=True),
        "position": FieldRule("text"),
        "clubOrSchool": FieldRule("text"),
    },
    required=("athleteName", "parentName", "phone", "email", "program"),
    build=build_winter_ball,
)


DESCRIPTORS = (
    CONTACT,
    EMAIL_SIGNUP,
    BOOKING,
    QUIZ,
    FULLTIME_ACADEMY,
    PARTTIME_ACADEMY,
    WINTER_BALL,
)
