"""Email request rules shared by the HTTP and event-stream boundaries.

Mental model refresher:
- Domain modules hold the business rules.
- They decide whether a request may be attempted and what the confirmation
  event looks like.
- They do not parse Kafka records, build HTTP responses, or talk to providers.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from ..types import ConfirmationEvent

REQUIRED_FIELDS = ("to", "subject")


def missing_required_fields(to: Any, subject: Any) -> list[str]:
    """Return the names of required fields that are absent or blank."""
    missing: list[str] = []
    for field_name, value in zip(REQUIRED_FIELDS, (to, subject)):
        if not isinstance(value, str) or not value.strip():
            missing.append(field_name)
    return missing


def iso_timestamp(moment: datetime | None = None) -> str:
    """UTC timestamp with millisecond precision and a `Z` suffix."""
    value = (moment or datetime.now(tz=UTC)).astimezone(UTC)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_confirmation_event(
    to: str,
    event_type: Any,
    *,
    now: datetime | None = None,
) -> ConfirmationEvent:
    """Build the `email-sent` payload for one successful send."""
    return {
        "to": to,
        "type": event_type,
        "timestamp": iso_timestamp(now),
    }
