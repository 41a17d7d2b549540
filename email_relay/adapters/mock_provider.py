"""No-op provider used when no email backend is configured.

Mental model refresher:
- This is outbound adapter code with the same contract as the real providers.
- It keeps the service operable for local development and integration tests:
  nothing leaves the process, the would-be send is only logged.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class MockProvider:
    name = "Mock"

    def send(
        self,
        to: str,
        subject: str,
        text: str | None = None,
        html: str | None = None,
    ) -> bool:
        logger.info("[MOCK] Email would be sent to: %s", to)
        logger.info("[MOCK] Subject: %s", subject)
        logger.info("[MOCK] Text: %s", text)
        return True
