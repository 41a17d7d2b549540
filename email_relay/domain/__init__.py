"""Domain layer: request validation and confirmation rules."""

from .email import build_confirmation_event, iso_timestamp, missing_required_fields

__all__ = [
    "build_confirmation_event",
    "iso_timestamp",
    "missing_required_fields",
]
