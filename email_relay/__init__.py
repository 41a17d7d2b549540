"""Email relay: HTTP and Kafka-triggered sends through one selected provider."""

from .adapters.consumer_handler import handle_batch, handle_message
from .adapters.kafka_runtime import EmailRelayWorker, publish_send_email_event
from .application.dispatch import MailDispatcher, resolve_provider_name, select_provider
from .config import ConfigError, RelayConfig

__all__ = [
    "ConfigError",
    "EmailRelayWorker",
    "MailDispatcher",
    "RelayConfig",
    "handle_batch",
    "handle_message",
    "publish_send_email_event",
    "resolve_provider_name",
    "select_provider",
]
