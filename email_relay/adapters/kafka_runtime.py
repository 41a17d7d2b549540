"""Kafka transport adapters for consuming send requests and publishing confirmations.

Mental model refresher:
- This module is transport glue to Kafka itself.
- It maps Kafka records into the consumer-handler flow and owns both broker
  connections for the process lifetime.
- Worker lifecycle:
  disconnected -> connected -> subscribed -> running -> stopped
  A failure while connecting or subscribing moves to `failed` and raises
  `WorkerStartupError`; the service treats that as fatal.
- Offsets are committed by the client's default auto-commit, so delivery is
  at-least-once: a crash between send and commit can resend an email.
"""

from __future__ import annotations

import enum
import logging
import threading
from typing import Any, Callable, Mapping

from ..config import RelayConfig
from ..types import ConfirmationEvent, HandlerResult, SendMailFn
from .consumer_handler import SEND_EMAIL_TOPIC, handle_message
from .payload import serialize_json_object

logger = logging.getLogger(__name__)

EMAIL_SENT_TOPIC = "email-sent"

ClientFactory = Callable[..., Any]


class WorkerState(str, enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    SUBSCRIBED = "subscribed"
    RUNNING = "running"
    STOPPED = "stopped"
    FAILED = "failed"


class WorkerStartupError(RuntimeError):
    """Raised when the worker cannot connect to or subscribe on the broker."""


def kafka_client_options(config: RelayConfig) -> dict[str, Any]:
    """Connection options shared by the consumer and producer."""
    options: dict[str, Any] = {
        "bootstrap_servers": list(config.kafka_brokers),
        "client_id": config.kafka_client_id,
    }
    if config.sasl_enabled:
        options.update(
            security_protocol="SASL_SSL",
            sasl_mechanism="PLAIN",
            sasl_plain_username=config.kafka_username,
            sasl_plain_password=config.kafka_password,
        )
    return options


class EmailRelayWorker:
    """Single-threaded consume -> send -> confirm loop."""

    def __init__(
        self,
        config: RelayConfig,
        send_mail: SendMailFn,
        *,
        consumer_factory: ClientFactory | None = None,
        producer_factory: ClientFactory | None = None,
    ) -> None:
        self._config = config
        self._send_mail = send_mail
        self._consumer_factory = consumer_factory
        self._producer_factory = producer_factory
        self._consumer: Any = None
        self._producer: Any = None
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self.state = WorkerState.DISCONNECTED

    def connect(self) -> None:
        consumer_factory = self._consumer_factory
        producer_factory = self._producer_factory
        if consumer_factory is None or producer_factory is None:
            KafkaConsumer, KafkaProducer = _import_kafka_python()
            consumer_factory = consumer_factory or KafkaConsumer
            producer_factory = producer_factory or KafkaProducer

        options = kafka_client_options(self._config)
        try:
            self._producer = producer_factory(
                value_serializer=serialize_json_object,
                **options,
            )
            self._consumer = consumer_factory(
                group_id=self._config.kafka_group_id,
                auto_offset_reset="earliest",
                **options,
            )
        except Exception as exc:
            self._fail_startup()
            raise WorkerStartupError(f"Kafka connection failed: {exc}") from exc

        self.state = WorkerState.CONNECTED
        logger.info(
            "[WORKER CONNECTED] brokers=%s sasl=%s",
            ",".join(self._config.kafka_brokers),
            self._config.sasl_enabled,
        )

    def subscribe(self) -> None:
        if self.state is not WorkerState.CONNECTED:
            raise WorkerStartupError(f"Cannot subscribe from state {self.state.value}")

        try:
            self._consumer.subscribe(topics=[SEND_EMAIL_TOPIC])
        except Exception as exc:
            self._fail_startup()
            raise WorkerStartupError(f"Kafka subscribe failed: {exc}") from exc

        self.state = WorkerState.SUBSCRIBED
        logger.info(
            "[WORKER SUBSCRIBED] topic=%s group_id=%s",
            SEND_EMAIL_TOPIC,
            self._config.kafka_group_id,
        )

    def start(self) -> None:
        """Connect, subscribe and run the loop on a background thread."""
        self.connect()
        self.subscribe()
        self._thread = threading.Thread(
            target=self.run_forever,
            name="email-relay-worker",
            daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            return
        if self.state is WorkerState.RUNNING:
            # run_forever closes the clients once the current poll returns.
            return
        self._close_clients()
        if self.state is not WorkerState.FAILED:
            self.state = WorkerState.STOPPED

    def run_forever(self) -> int:
        if self.state is not WorkerState.SUBSCRIBED:
            raise RuntimeError(f"Cannot run worker from state {self.state.value}")

        self.state = WorkerState.RUNNING
        logger.info("[WORKER START] topic=%s", SEND_EMAIL_TOPIC)
        try:
            while not self._stop_event.is_set():
                self.poll_once()
        except Exception as exc:
            logger.exception("[WORKER ERROR] %s", exc)
            self.state = WorkerState.FAILED
            return 1
        finally:
            self._close_clients()

        self.state = WorkerState.STOPPED
        logger.info("[WORKER STOP]")
        return 0

    def poll_once(self) -> list[HandlerResult]:
        """Poll one batch and handle its records in delivery order."""
        batches = self._consumer.poll(
            timeout_ms=int(self._config.kafka_poll_timeout_seconds * 1000),
            max_records=self._config.kafka_max_records,
        )
        results: list[HandlerResult] = []
        if not batches:
            return results

        for _topic_partition, messages in batches.items():
            for message in messages:
                record = {
                    "topic": message.topic,
                    "partition": int(message.partition),
                    "offset": int(message.offset),
                    "value": message.value,
                }
                try:
                    result = handle_message(
                        record,
                        send_mail=self._send_mail,
                        publish_confirmation=self.publish_confirmation,
                    )
                except Exception as exc:
                    logger.exception(
                        "[HANDLER ERROR] topic=%s partition=%s offset=%s error=%s",
                        record["topic"],
                        record["partition"],
                        record["offset"],
                        exc,
                    )
                    continue

                logger.info(
                    "[RESULT] topic=%s partition=%s offset=%s status=%s error=%s",
                    record["topic"],
                    record["partition"],
                    record["offset"],
                    result["status"],
                    result["error"],
                )
                results.append(result)
        return results

    def publish_confirmation(self, event: ConfirmationEvent) -> bool:
        """Best-effort publish to `email-sent`; failures are logged, never retried."""
        if self._producer is None:
            logger.error("[CONFIRM ERROR] to=%s error=producer not connected", event.get("to"))
            return False

        try:
            future = self._producer.send(EMAIL_SENT_TOPIC, value=event)
            metadata = future.get(timeout=self._config.kafka_send_timeout_seconds)
        except Exception as exc:
            logger.error(
                "[CONFIRM ERROR] topic=%s to=%s error=%s",
                EMAIL_SENT_TOPIC,
                event.get("to"),
                exc,
            )
            return False

        logger.info(
            "[CONFIRMED] topic=%s partition=%s offset=%s to=%s",
            metadata.topic,
            metadata.partition,
            metadata.offset,
            event.get("to"),
        )
        return True

    def _fail_startup(self) -> None:
        self.state = WorkerState.FAILED
        self._close_clients()

    def _close_clients(self) -> None:
        if self._consumer is not None:
            try:
                self._consumer.close()
            except Exception as exc:
                logger.warning("[WORKER] consumer close failed: %s", exc)
            self._consumer = None

        if self._producer is not None:
            try:
                self._producer.flush(timeout=self._config.kafka_send_timeout_seconds)
                self._producer.close()
            except Exception as exc:
                logger.warning("[WORKER] producer close failed: %s", exc)
            self._producer = None


def publish_send_email_event(
    payload: Mapping[str, Any],
    config: RelayConfig,
    *,
    producer_factory: ClientFactory | None = None,
) -> dict[str, Any]:
    """Publish one `send-email` message to Kafka."""
    if producer_factory is None:
        _KafkaConsumer, producer_factory = _import_kafka_python()

    producer = producer_factory(
        value_serializer=serialize_json_object,
        **kafka_client_options(config),
    )
    try:
        future = producer.send(SEND_EMAIL_TOPIC, value=dict(payload))
        metadata = future.get(timeout=config.kafka_send_timeout_seconds)
        producer.flush(timeout=config.kafka_send_timeout_seconds)
    finally:
        producer.close()

    return {
        "topic": metadata.topic,
        "partition": metadata.partition,
        "offset": metadata.offset,
    }


def _import_kafka_python() -> tuple[Any, Any]:
    try:
        from kafka import KafkaConsumer, KafkaProducer
    except Exception as exc:
        raise RuntimeError(
            "Kafka support requires `kafka-python`. Install with: pip install kafka-python"
        ) from exc
    return KafkaConsumer, KafkaProducer
