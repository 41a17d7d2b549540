#!/usr/bin/env python3
"""Publish one `send-email` event to Kafka for local testing."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Allow running this file directly from repository root.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from email_relay.adapters.kafka_runtime import publish_send_email_event  # noqa: E402
from email_relay.config import RelayConfig, load_env_file  # noqa: E402


def main() -> int:
    load_env_file(REPO_ROOT / ".env")
    args = parse_args()
    payload = build_payload(args)
    metadata = publish_send_email_event(payload, RelayConfig.from_env())

    print("[PUBLISHED]")
    print(f"topic={metadata['topic']}")
    print(f"partition={metadata['partition']}")
    print(f"offset={metadata['offset']}")
    print(f"to={payload['to']} type={payload.get('type')}")
    return 0


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Publish one send-email event for Kafka testing."
    )
    parser.add_argument("--to", required=True, help="Recipient email address.")
    parser.add_argument("--subject", required=True, help="Email subject.")
    parser.add_argument("--text", default=None, help="Optional plain-text body.")
    parser.add_argument("--html", default=None, help="Optional HTML body.")
    parser.add_argument(
        "--type",
        default=None,
        help="Optional classification tag echoed on the email-sent event.",
    )
    return parser.parse_args()


def build_payload(args: argparse.Namespace) -> dict[str, object]:
    payload: dict[str, object] = {"to": args.to, "subject": args.subject}
    for key in ("text", "html", "type"):
        value = getattr(args, key)
        if value is not None:
            payload[key] = value
    return payload


if __name__ == "__main__":
    sys.exit(main())
