"""Provider selection and the dispatch facade.

Mental model refresher:
- Application layer coordinates the use-case across adapters.
- Selection runs once per process: the first configured provider in
  Brevo -> Resend -> SMTP order wins, Mock is the fallback of last resort.
- Both inbound boundaries (HTTP and Kafka) call `MailDispatcher.send_mail`.
  Validation stays with the callers because their required-field handling
  differs.
"""

from __future__ import annotations

import logging

from ..adapters.mock_provider import MockProvider
from ..adapters.providers import BrevoProvider, ResendProvider, SmtpProvider
from ..config import RelayConfig
from ..types import EmailProvider

logger = logging.getLogger(__name__)


def resolve_provider_name(config: RelayConfig) -> str:
    """Name of the provider that `select_provider` binds for this config."""
    if config.brevo_api_key:
        return "Brevo"
    if config.resend_api_key:
        return "Resend"
    if config.smtp_configured:
        return "SMTP"
    return "Mock"


def select_provider(config: RelayConfig) -> EmailProvider:
    name = resolve_provider_name(config)
    if name == "Brevo":
        return BrevoProvider.from_config(config)
    if name == "Resend":
        return ResendProvider.from_config(config)
    if name == "SMTP":
        return SmtpProvider.from_config(config)
    return MockProvider()


class MailDispatcher:
    """Single send path bound to one provider for the process lifetime."""

    def __init__(self, provider: EmailProvider) -> None:
        self._provider = provider

    @classmethod
    def from_config(cls, config: RelayConfig) -> "MailDispatcher":
        provider = select_provider(config)
        logger.info("[PROVIDER SELECTED] provider=%s", provider.name)
        return cls(provider)

    @property
    def provider_name(self) -> str:
        return self._provider.name

    def send_mail(
        self,
        to: str,
        subject: str,
        text: str | None = None,
        html: str | None = None,
    ) -> bool:
        return self._provider.send(to, subject, text, html)
