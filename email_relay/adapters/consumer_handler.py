"""Consumer-handler adapter functions (Kafka-like flow without Kafka).

Mental model refresher:
- This is the controller-like entrypoint for event processing.
- `kafka_runtime` calls it once per polled record; tests and the demo script
  call it with plain dictionaries.
- Flow:
  record -> decode -> validate -> send_mail -> confirmation (only on success)
- Malformed or incomplete records are logged and dropped. Nothing here raises,
  so one bad message never halts the loop.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from ..domain.email import build_confirmation_event
from ..types import HandlerResult, PublishConfirmationFn, SendMailFn
from .payload import deserialize_json_object, parse_send_email_payload

logger = logging.getLogger(__name__)

SEND_EMAIL_TOPIC = "send-email"

Record = Mapping[str, Any]


def handle_message(
    record: Record,
    *,
    send_mail: SendMailFn,
    publish_confirmation: PublishConfirmationFn,
    topic: str = SEND_EMAIL_TOPIC,
) -> HandlerResult:
    """Handle one incoming record.

    The confirmation event is published if and only if the send succeeded.
    A failed publish is reported in the result but never retried.
    """
    meta = _record_meta(record)

    if record.get("topic") != topic:
        return _result("ignored_topic", meta)

    try:
        payload = deserialize_json_object(record.get("value"))
    except ValueError as exc:
        logger.error(
            "[DECODE ERROR] topic=%s partition=%s offset=%s error=%s",
            meta["topic"],
            meta["partition"],
            meta["offset"],
            exc,
        )
        return _result("decode_failed", meta, error=f"decode_failed: {exc}")

    try:
        event = parse_send_email_payload(payload)
    except ValueError as exc:
        logger.warning(
            "[INVALID EVENT] topic=%s partition=%s offset=%s error=%s",
            meta["topic"],
            meta["partition"],
            meta["offset"],
            exc,
        )
        return _result("invalid_payload", meta, error=f"invalid_payload: {exc}")

    logger.info("[PROCESSING] type=%s to=%s", event["type"], event["to"])
    sent = send_mail(event["to"], event["subject"], event["text"], event["html"])
    if not sent:
        return _result("send_failed", meta, event=event, error="send_failed")

    confirmation = build_confirmation_event(event["to"], event["type"])
    if not publish_confirmation(confirmation):
        return _result(
            "sent_confirm_failed",
            meta,
            event=event,
            sent=True,
            error="confirmation_publish_failed",
        )

    return _result("sent_and_confirmed", meta, event=event, sent=True, confirmed=True)


def handle_batch(
    records: Sequence[Record],
    *,
    send_mail: SendMailFn,
    publish_confirmation: PublishConfirmationFn,
    topic: str = SEND_EMAIL_TOPIC,
) -> list[HandlerResult]:
    """Handle a batch of records sequentially using `handle_message`."""
    results: list[HandlerResult] = []
    for record in records:
        result = handle_message(
            record,
            send_mail=send_mail,
            publish_confirmation=publish_confirmation,
            topic=topic,
        )
        results.append(result)
    return results


def _result(
    status: str,
    meta: dict[str, Any],
    *,
    event: dict[str, Any] | None = None,
    sent: bool = False,
    confirmed: bool = False,
    error: str | None = None,
) -> HandlerResult:
    return {
        "status": status,
        "record_meta": meta,
        "event": event,
        "sent": sent,
        "confirmed": confirmed,
        "error": error,
    }


def _record_meta(record: Record) -> dict[str, Any]:
    return {
        "topic": record.get("topic"),
        "partition": record.get("partition"),
        "offset": record.get("offset"),
    }
