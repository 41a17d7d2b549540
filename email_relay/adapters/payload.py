"""Payload adapter functions.

Mental model refresher:
- This is an adapter/edge module.
- It translates transport-shaped data (raw Kafka message values) into the
  internal send-email event dictionary.
- It validates shape and required fields, but it does not decide what happens
  to a message that fails validation.
"""

from __future__ import annotations

import json
from typing import Any, Mapping

from ..domain.email import missing_required_fields
from ..types import Payload, SendEmailEvent


def parse_send_email_payload(payload: Payload) -> SendEmailEvent:
    """Normalize a `send-email` payload into a plain event dictionary.

    Raises `ValueError` when `to` or `subject` is missing.
    """
    to = payload.get("to")
    subject = payload.get("subject")
    missing = missing_required_fields(to, subject)
    if missing:
        raise ValueError(f"Missing required field(s): {', '.join(missing)}")

    return {
        "to": to,
        "subject": subject,
        "text": _as_optional_str(payload.get("text")),
        "html": _as_optional_str(payload.get("html")),
        "type": payload.get("type"),
    }


def serialize_json_object(payload: Mapping[str, Any]) -> bytes:
    return json.dumps(payload, separators=(",", ":")).encode("utf-8")


def deserialize_json_object(raw: bytes | str | Mapping[str, Any] | None) -> dict[str, Any]:
    if isinstance(raw, Mapping):
        return dict(raw)

    if isinstance(raw, bytes):
        text = raw.decode("utf-8")
    elif isinstance(raw, str):
        text = raw
    else:
        raise ValueError(f"Unsupported Kafka payload type: {type(raw).__name__}")

    parsed = json.loads(text)
    if not isinstance(parsed, dict):
        raise ValueError("Kafka payload must decode to a JSON object")
    return parsed


def _as_optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text or None
