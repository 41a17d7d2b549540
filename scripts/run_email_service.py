#!/usr/bin/env python3
"""Run the email relay service.

Connects to Kafka, subscribes to `send-email`, then serves the HTTP API.
Exits non-zero when the broker is unreachable.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Allow running this file directly from repository root.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from email_relay.config import load_env_file  # noqa: E402
from email_relay.service import run_service  # noqa: E402


def main() -> int:
    parse_args()
    load_env_file(REPO_ROOT / ".env")
    return run_service()


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run the email relay (Kafka consumer plus HTTP API)."
    )
    return parser.parse_args()


if __name__ == "__main__":
    sys.exit(main())
