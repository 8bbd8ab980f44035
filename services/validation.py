"""
Claim submission validation.

Pure, deterministic checks run before anything touches the database. Each
check raises ValidationError on the first problem it finds; validate_submission
runs them in a fixed order and returns a typed ClaimSubmission.
"""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional, Sequence

from services.errors import ValidationError

REQUIRED_FIELDS: tuple[str, ...] = (
    "employee_name",
    "employee_email",
    "employee_id",
    "department",
    "claim_date",
    "amount",
    "description",
    "type",
)

EMPLOYEE_ID_PATTERN = re.compile(r"ATS0[1-9]\d{2}", re.ASCII)
EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@(gmail|outlook)\.com", re.ASCII)
AMOUNT_PATTERN = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?", re.ASCII)

MAX_AMOUNT = Decimal("50000")
CLAIM_WINDOW_MONTHS = 3

ALLOWED_CONTENT_TYPES = frozenset({"application/pdf", "image/jpeg", "image/png"})
MAX_ATTACHMENT_BYTES = 5 * 1024 * 1024
MAX_ATTACHMENTS = 5


@dataclass(frozen=True)
class Attachment:
    """An uploaded file already written to the file store."""

    original_name: str
    content_type: str
    size: int
    storage_path: str


@dataclass(frozen=True)
class ClaimSubmission:
    employee_name: str
    employee_email: str
    employee_id: str
    department: str
    claim_date: date
    amount: Decimal
    description: str
    type: str


# ---------------------------------------------------------------------------
# Field checks
# ---------------------------------------------------------------------------


def _clean(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def check_required_fields(fields: Mapping[str, Any]) -> None:
    missing = [name for name in REQUIRED_FIELDS if not _clean(fields.get(name))]
    if missing:
        raise ValidationError(
            "missing field", f"All fields are required (missing: {', '.join(missing)})"
        )


def check_employee_id(employee_id: str) -> str:
    if not EMPLOYEE_ID_PATTERN.fullmatch(employee_id or ""):
        raise ValidationError(
            "bad employee id",
            "Employee ID must be ATS0 followed by 3 digits (e.g., ATS0123)",
        )
    return employee_id


def check_email(email: str) -> str:
    if not EMAIL_PATTERN.fullmatch(email or ""):
        raise ValidationError(
            "bad email", "Email must be a valid @gmail.com or @outlook.com address"
        )
    return email


def parse_amount(raw: Any) -> Decimal:
    """Parse a plain ASCII decimal amount and enforce 0 < amount <= 50,000."""
    text = _clean(raw)
    amount = None
    if AMOUNT_PATTERN.fullmatch(text):
        try:
            amount = Decimal(text)
        except InvalidOperation:
            amount = None

    if amount is None or not amount.is_finite() or amount <= 0 or amount > MAX_AMOUNT:
        raise ValidationError("bad amount", "Amount must be between ₹0.01 and ₹50,000")
    return amount


def months_before(day: date, months: int) -> date:
    """Same calendar day ``months`` earlier, clamped to the end of shorter months."""
    total = day.year * 12 + (day.month - 1) - months
    year, month = divmod(total, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def parse_claim_date(raw: Any, today: Optional[date] = None) -> date:
    """
    Parse an ISO date and require it to fall inside the claim window.

    Valid dates are not after today and strictly later than the same day
    three months earlier.
    """
    bad_date = ValidationError(
        "bad date", "Claim date must be within the last 3 months and not in the future"
    )
    text = _clean(raw)
    try:
        claim_date = date.fromisoformat(text)
    except ValueError:
        try:
            claim_date = datetime.fromisoformat(text).date()
        except ValueError:
            raise bad_date from None

    today = today or date.today()
    if claim_date > today or claim_date <= months_before(today, CLAIM_WINDOW_MONTHS):
        raise bad_date
    return claim_date


def check_attachments(attachments: Sequence[Attachment]) -> None:
    """Whole-request policy: one bad attachment rejects the submission."""
    if not attachments:
        raise ValidationError("no documents", "At least one document is required")
    if len(attachments) > MAX_ATTACHMENTS:
        raise ValidationError(
            "too many documents",
            f"A maximum of {MAX_ATTACHMENTS} documents can be attached",
        )
    for attachment in attachments:
        if attachment.content_type not in ALLOWED_CONTENT_TYPES:
            raise ValidationError("bad document", "Only PDF, JPG, and PNG files are allowed")
        if attachment.size > MAX_ATTACHMENT_BYTES:
            raise ValidationError("bad document", "File size exceeds 5MB limit")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def validate_submission(
    fields: Mapping[str, Any],
    attachments: Sequence[Attachment],
    today: Optional[date] = None,
) -> ClaimSubmission:
    """Run every check in order and return the typed submission."""
    check_required_fields(fields)
    employee_id = check_employee_id(_clean(fields["employee_id"]))
    employee_email = check_email(_clean(fields["employee_email"]))
    amount = parse_amount(fields["amount"])
    claim_date = parse_claim_date(fields["claim_date"], today)
    check_attachments(attachments)

    return ClaimSubmission(
        employee_name=_clean(fields["employee_name"]),
        employee_email=employee_email,
        employee_id=employee_id,
        department=_clean(fields["department"]),
        claim_date=claim_date,
        amount=amount,
        description=_clean(fields["description"]),
        type=_clean(fields["type"]),
    )
