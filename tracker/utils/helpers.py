"""Shared utility functions.

parse_date:        lenient (returns None on empty input, raises on garbage)
parse_instant:     accepts date / datetime / ISO string, returns a date
clean_text:        optional string normalisation (blank → None)
require_text:      required string field (blank → ValidationError)
full_url:         ticket link reconstruction from a configured base URL
"""
from datetime import date, datetime

from tracker.core.exceptions import ValidationError


def parse_date(value, field_name: str = "date"):
    """Parse a date string (ISO or DD.MM.YYYY) to a date object.

    Returns None for empty input. Supports:
    - YYYY-MM-DD (ISO format)
    - YYYY-MM-DDTHH:MM:SS (datetime ISO → .date())
    - DD.MM.YYYY

    Raises:
        ValidationError: if the value is present but unparseable.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except (ValueError, TypeError):
        pass
    try:
        return datetime.fromisoformat(str(value)).date()
    except (ValueError, TypeError):
        pass
    try:
        return datetime.strptime(str(value), "%d.%m.%Y").date()
    except (ValueError, TypeError) as exc:
        raise ValidationError(
            f"Invalid {field_name}: {value!r}. Use YYYY-MM-DD or DD.MM.YYYY.",
            details={field_name: str(value)},
        ) from exc


def parse_instant(value) -> date:
    """Normalise a caller-supplied "now" (date, datetime or string) to a date."""
    parsed = parse_date(value, "now")
    if parsed is None:
        raise ValidationError("now is required")
    return parsed


def clean_text(value) -> str | None:
    """Strip a string field; blank or missing values become None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def require_text(value, field_name: str) -> str:
    text = clean_text(value)
    if text is None:
        raise ValidationError(f"{field_name} is required", details={field_name: "required"})
    return text


def full_url(base: str, ticket_id: str) -> str:
    """Build a ticket link as the literal concatenation ``base + ticket_id``.

    No validation is applied: an empty or malformed ticket id still yields
    the raw concatenation.
    """
    return f"{base}{ticket_id}"
