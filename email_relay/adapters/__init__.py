"""Adapter layer: provider integrations, payload mapping and Kafka transport."""

from .consumer_handler import SEND_EMAIL_TOPIC, handle_batch, handle_message
from .kafka_runtime import (
    EMAIL_SENT_TOPIC,
    EmailRelayWorker,
    WorkerStartupError,
    WorkerState,
    publish_send_email_event,
)
from .mock_provider import MockProvider
from .payload import parse_send_email_payload
from .providers import BrevoProvider, ResendProvider, SmtpProvider

__all__ = [
    "EMAIL_SENT_TOPIC",
    "SEND_EMAIL_TOPIC",
    "BrevoProvider",
    "EmailRelayWorker",
    "MockProvider",
    "ResendProvider",
    "SmtpProvider",
    "WorkerStartupError",
    "WorkerState",
    "handle_batch",
    "handle_message",
    "parse_send_email_payload",
    "publish_send_email_event",
]
