"""Real provider adapters for outbound email.

Mental model refresher:
- This module is an outbound adapter.
- Each class owns request construction, auth and error interpretation for one
  provider, and collapses the outcome to a boolean.
- Diagnostics go to the log; callers only ever see True/False.

Operational note:
- SMTP egress is blocked on most cloud hosts. `SmtpProvider` is meant for
  local or trusted networks and never falls back to another provider.
"""

from __future__ import annotations

import html as html_lib
import http.client
import json
import logging
import smtplib
import ssl
import urllib.error
import urllib.request
from email.message import EmailMessage
from typing import Any, Mapping

from ..config import RelayConfig

logger = logging.getLogger(__name__)

BREVO_ENDPOINT = "https://api.brevo.com/v3/smtp/email"
RESEND_ENDPOINT = "https://api.resend.com/emails"
SMTP_CONNECT_TIMEOUT_SECONDS = 10.0

DEFAULT_FROM_NAME = "ShopEase"
DEFAULT_BREVO_FROM = "noreply@shopease.com"
DEFAULT_RESEND_FROM = "onboarding@resend.dev"

_HTTP_ERRORS = (urllib.error.URLError, http.client.HTTPException, OSError, ValueError)


class BrevoProvider:
    name = "Brevo"

    def __init__(
        self,
        api_key: str,
        *,
        from_name: str | None = None,
        from_email: str | None = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._api_key = api_key
        self._from_name = from_name or DEFAULT_FROM_NAME
        self._from_email = from_email or DEFAULT_BREVO_FROM
        self._timeout_seconds = timeout_seconds

    @classmethod
    def from_config(cls, config: RelayConfig) -> "BrevoProvider":
        return cls(
            config.brevo_api_key or "",
            from_name=config.email_from_name,
            from_email=config.email_from,
            timeout_seconds=config.email_api_timeout_seconds,
        )

    def send(
        self,
        to: str,
        subject: str,
        text: str | None = None,
        html: str | None = None,
    ) -> bool:
        plain_text = text or ""
        payload = {
            "sender": {"name": self._from_name, "email": self._from_email},
            "to": [{"email": to}],
            "subject": subject,
            "htmlContent": html or wrap_text_as_html(plain_text),
            "textContent": plain_text,
        }
        headers = {
            "accept": "application/json",
            "api-key": self._api_key,
            "content-type": "application/json",
        }

        logger.info("[EMAIL SEND] provider=%s to=%s", self.name, to)
        try:
            status, body = _post_json(BREVO_ENDPOINT, payload, headers, self._timeout_seconds)
        except _HTTP_ERRORS as exc:
            logger.error("[EMAIL ERROR] provider=%s to=%s error=%s", self.name, to, exc)
            return False

        if not _is_success(status):
            logger.error(
                "[EMAIL ERROR] provider=%s to=%s status=%s details=%s",
                self.name,
                to,
                status,
                body[:300],
            )
            return False

        logger.info(
            "[EMAIL SENT] provider=%s to=%s message_id=%s",
            self.name,
            to,
            _response_field(body, "messageId"),
        )
        return True


class ResendProvider:
    name = "Resend"

    def __init__(
        self,
        api_key: str,
        *,
        from_email: str | None = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._api_key = api_key
        self._from_email = from_email or DEFAULT_RESEND_FROM
        self._timeout_seconds = timeout_seconds

    @classmethod
    def from_config(cls, config: RelayConfig) -> "ResendProvider":
        return cls(
            config.resend_api_key or "",
            from_email=config.email_from,
            timeout_seconds=config.email_api_timeout_seconds,
        )

    def send(
        self,
        to: str,
        subject: str,
        text: str | None = None,
        html: str | None = None,
    ) -> bool:
        plain_text = text or ""
        payload = {
            "from": self._from_email,
            "to": to,
            "subject": subject,
            "text": plain_text,
            "html": html or plain_text,
        }
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

        logger.info("[EMAIL SEND] provider=%s to=%s", self.name, to)
        try:
            status, body = _post_json(RESEND_ENDPOINT, payload, headers, self._timeout_seconds)
        except _HTTP_ERRORS as exc:
            logger.error("[EMAIL ERROR] provider=%s to=%s error=%s", self.name, to, exc)
            return False

        if not _is_success(status):
            logger.error(
                "[EMAIL ERROR] provider=%s to=%s status=%s details=%s",
                self.name,
                to,
                status,
                body[:300],
            )
            return False

        logger.info(
            "[EMAIL SENT] provider=%s to=%s id=%s",
            self.name,
            to,
            _response_field(body, "id"),
        )
        return True


class SmtpProvider:
    name = "SMTP"

    def __init__(
        self,
        host: str,
        user: str,
        password: str,
        *,
        port: int = 587,
        secure: bool = False,
        from_email: str | None = None,
        timeout_seconds: float = SMTP_CONNECT_TIMEOUT_SECONDS,
    ) -> None:
        self._host = host
        self._port = port
        self._secure = secure
        self._user = user
        self._password = password
        self._from_email = from_email or user
        self._timeout_seconds = timeout_seconds

    @classmethod
    def from_config(cls, config: RelayConfig) -> "SmtpProvider":
        return cls(
            config.smtp_host or "",
            config.smtp_user or "",
            config.smtp_pass or "",
            port=config.smtp_port,
            secure=config.smtp_secure,
            from_email=config.smtp_from,
        )

    def send(
        self,
        to: str,
        subject: str,
        text: str | None = None,
        html: str | None = None,
    ) -> bool:
        logger.info("[EMAIL SEND] provider=%s to=%s host=%s", self.name, to, self._host)
        try:
            # Header values with CR/LF raise ValueError here.
            message = _build_message(self._from_email, to, subject, text or "", html)
            with self._connect() as server:
                server.login(self._user, self._password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError, ValueError) as exc:
            logger.error("[EMAIL ERROR] provider=%s to=%s error=%s", self.name, to, exc)
            return False

        logger.info("[EMAIL SENT] provider=%s to=%s", self.name, to)
        return True

    def _connect(self) -> smtplib.SMTP:
        context = ssl.create_default_context()
        if self._secure:
            return smtplib.SMTP_SSL(
                self._host, self._port, timeout=self._timeout_seconds, context=context
            )

        server = smtplib.SMTP(self._host, self._port, timeout=self._timeout_seconds)
        try:
            server.ehlo()
            if server.has_extn("starttls"):
                server.starttls(context=context)
                server.ehlo()
        except (smtplib.SMTPException, OSError):
            server.close()
            raise
        return server


def _build_message(
    from_email: str, to: str, subject: str, text: str, html: str | None
) -> EmailMessage:
    message = EmailMessage()
    message["From"] = from_email
    message["To"] = to
    message["Subject"] = subject
    message.set_content(text)
    message.add_alternative(html or text, subtype="html")
    return message


def wrap_text_as_html(text: str) -> str:
    """Minimal HTML body for providers that require one."""
    return f"<p>{html_lib.escape(text)}</p>"


def _post_json(
    url: str,
    payload: Mapping[str, Any],
    headers: Mapping[str, str],
    timeout_seconds: float,
) -> tuple[int, str]:
    """POST a JSON body and return `(status, response_text)`.

    HTTP error statuses are returned, not raised; only transport failures raise.
    """
    data = json.dumps(payload).encode("utf-8")
    request = urllib.request.Request(url, data=data, method="POST")
    for key, value in headers.items():
        request.add_header(key, value)

    try:
        with urllib.request.urlopen(request, timeout=timeout_seconds) as response:
            status = int(response.getcode())
            body = response.read().decode("utf-8", errors="replace")
    except urllib.error.HTTPError as exc:
        details = exc.read().decode("utf-8", errors="replace") if exc.fp else ""
        return int(exc.code), details
    return status, body


def _is_success(status: int) -> bool:
    return 200 <= status < 300


def _response_field(body: str, field_name: str) -> Any:
    try:
        parsed = json.loads(body)
    except ValueError:
        return None
    if isinstance(parsed, dict):
        return parsed.get(field_name)
    return None
