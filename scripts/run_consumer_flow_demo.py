#!/usr/bin/env python3
"""Run the send-email consumer flow without Kafka."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

# Allow running this file directly from repository root.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from email_relay.adapters.consumer_handler import handle_batch  # noqa: E402
from email_relay.adapters.mock_provider import MockProvider  # noqa: E402
from email_relay.logging_config import configure_logging  # noqa: E402


def main() -> int:
    configure_logging()
    provider = MockProvider()
    confirmations: list[dict[str, Any]] = []

    def send_mail_maybe_fail(
        to: str, subject: str, text: str | None = None, html: str | None = None
    ) -> bool:
        if to == "fail-email@example.com":
            return False
        return provider.send(to, subject, text, html)

    def publish_confirmation(event: dict[str, Any]) -> bool:
        confirmations.append(event)
        print(f"[CONFIRMATION] to={event['to']} type={event['type']}")
        return True

    results = handle_batch(
        sample_records(),
        send_mail=send_mail_maybe_fail,
        publish_confirmation=publish_confirmation,
    )

    print("")
    print("[BATCH SUMMARY]")
    for result in results:
        meta = result["record_meta"]
        print(
            f"offset={meta['offset']} status={result['status']} "
            f"confirmed={result['confirmed']} error={result['error']}"
        )

    print("")
    print(f"[CONFIRMATIONS] count={len(confirmations)}")
    return 0


def sample_records() -> list[dict[str, Any]]:
    return [
        {
            "topic": "send-email",
            "partition": 0,
            "offset": 100,
            "value": b'{"to":"person@example.com","subject":"Welcome","text":"Hi","type":"welcome"}',
        },
        {
            "topic": "send-email",
            "partition": 0,
            "offset": 101,
            "value": b"not json",
        },
        {
            "topic": "send-email",
            "partition": 0,
            "offset": 102,
            "value": b'{"subject":"No recipient"}',
        },
        {
            "topic": "send-email",
            "partition": 0,
            "offset": 103,
            "value": b'{"to":"fail-email@example.com","subject":"Order shipped","type":"order"}',
        },
    ]


if __name__ == "__main__":
    sys.exit(main())
